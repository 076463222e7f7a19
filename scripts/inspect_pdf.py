#!/usr/bin/env python
"""Inspect a P&ID PDF by reading page text and counting tags per page."""

from __future__ import annotations

import argparse
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config import load_settings
from src.pid_tagger.logging_utils import configure_logging, get_logger
from src.pid_tagger.page_reader import PageReadError, PageTextReader
from src.pid_tagger.pipeline import TagCategory
from src.pid_tagger.tag_extractor import TagExtractor


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Inspect P&ID page text and tag counts.")
    parser.add_argument("--input", type=Path, required=True, help="Path to the PDF file to inspect.")
    parser.add_argument("--ocr", action="store_true", help="Enable OCR for pages without a text layer.")
    parser.add_argument("--pages", type=int, default=3, help="Number of page snippets to log.")
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    settings = load_settings()
    if args.ocr:
        settings.ocr_fallback = True

    configure_logging(settings, force=True)
    logger = get_logger("inspect_pdf")

    try:
        pages = PageTextReader(settings).read_pages(args.input)
    except PageReadError as exc:
        logger.error("Reading failed: %s", exc)
        return 1
    logger.info("Read %s pages from %s", len(pages), args.input)

    extractor = TagExtractor(settings)
    for page in pages:
        result = extractor.extract_page(page)
        counts = ", ".join(
            f"{category.value}={len(result.tags_for(category))}" for category in TagCategory
        )
        logger.info("Page %s: %s tags (%s)", page.page_number, result.tags_found, counts)

    for page in pages[: args.pages]:
        snippet = page.text.strip().splitlines()[0] if page.text.strip() else ""
        logger.info("Page %s snippet: %s", page.page_number, snippet)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
