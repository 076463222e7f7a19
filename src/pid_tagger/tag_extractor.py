"""Pattern-based P&ID tag extraction from per-page document text."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from config import Settings
from .classification import classify, describe
from .logging_utils import get_logger
from .pipeline import (
    DocumentMetadata,
    PageDetail,
    PageTags,
    RawPage,
    Tag,
    TagCatalogue,
    TagCategory,
    TagOccurrence,
)
from .tag_linker import link_pages
from .tag_patterns import TAG_PATTERNS, TagPattern, collapse_whitespace, normalize_tag

logger = get_logger(__name__)


class TagExtractor:
    """Recognize, classify and deduplicate tags across the pages of a document."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        patterns: Optional[Mapping[TagCategory, Sequence[TagPattern]]] = None,
    ):
        self.settings = settings or Settings()
        self.patterns = patterns or TAG_PATTERNS

    def extract(
        self,
        pages: Sequence[RawPage],
        *,
        file_name: str = "",
        file_size_bytes: int = 0,
    ) -> TagCatalogue:
        """Scan every page in order and return the aggregated catalogue."""
        started_at = datetime.now(timezone.utc)
        start = time.perf_counter()

        page_results = [self.extract_page(page) for page in pages]
        index = link_pages(page_results)

        duration_ms = int(round((time.perf_counter() - start) * 1000))
        catalogue = TagCatalogue(
            equipment=tuple(index[TagCategory.EQUIPMENT].values()),
            instruments=tuple(index[TagCategory.INSTRUMENT].values()),
            control_valves=tuple(index[TagCategory.CONTROL_VALVE].values()),
            line_numbers=tuple(index[TagCategory.LINE_NUMBER].values()),
            page_details=tuple(
                PageDetail(page_number=result.page_number, tags_found=result.tags_found)
                for result in page_results
            ),
            document_metadata=DocumentMetadata(
                file_name=file_name,
                file_size_bytes=file_size_bytes,
                page_count=len(pages),
                extraction_timestamp=started_at,
                processing_duration_ms=duration_ms,
            ),
        )
        summary = catalogue.summary
        logger.info(
            "Extracted %s tags from %s pages (equipment=%s, instruments=%s, valves=%s, lines=%s)",
            summary.total_tags,
            len(pages),
            summary.equipment_count,
            summary.instrument_count,
            summary.control_valve_count,
            summary.line_number_count,
        )
        return catalogue

    def extract_page(self, page: RawPage) -> PageTags:
        """Return the distinct tags found on one page, grouped by category."""
        text = collapse_whitespace(page.text)
        scan_text = text.upper()
        # Context is cut from the original casing unless uppercasing changed offsets.
        context_source = text if len(text) == len(scan_text) else scan_text

        found: Dict[TagCategory, Tuple[Tag, ...]] = {}
        for category, patterns in self.patterns.items():
            found[category] = tuple(
                self._match_category(category, patterns, scan_text, context_source, page.page_number)
            )

        result = PageTags(page_number=page.page_number, tags=found)
        logger.debug("Page %s: %s tags found", page.page_number, result.tags_found)
        return result

    def _match_category(
        self,
        category: TagCategory,
        patterns: Sequence[TagPattern],
        scan_text: str,
        context_source: str,
        page_number: int,
    ) -> List[Tag]:
        seen: Dict[str, Tag] = {}
        for pattern in patterns:
            for match in pattern.finditer(scan_text):
                raw = match.group(0)
                normalized = normalize_tag(raw)
                if normalized in seen:
                    continue
                if not pattern.is_valid(normalized):
                    logger.debug(
                        "Discarding %s candidate '%s' on page %s (%s)",
                        category.value,
                        normalized,
                        page_number,
                        pattern.name,
                    )
                    continue
                tag_type = classify(category, normalized)
                seen[normalized] = Tag(
                    tag=normalized,
                    category=category,
                    type=tag_type,
                    description=describe(category, normalized, tag_type),
                    occurrences=(
                        TagOccurrence(
                            page_number=page_number,
                            context=self._context(context_source, match.start(), match.end()),
                        ),
                    ),
                )
        return list(seen.values())

    def _context(self, source: str, start: int, end: int) -> str:
        """Text around one accepted match, cut by its own offsets."""
        window = self.settings.context_window
        return source[max(0, start - window) : min(len(source), end + window)].strip()
