"""Command-line interface entry point for the P&ID tag sheet generator."""

from __future__ import annotations

import argparse
from pathlib import Path
import sys

from config import load_settings
from src.pid_tagger.logging_utils import configure_logging, get_logger
from src.pid_tagger.orchestrator import PipelineError, TagSheetPipeline
from src.pid_tagger.pipeline import ProcessInfo, ProjectInfo


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pid-tagger",
        description="Extract equipment, instrument, valve and line tags from a P&ID PDF into a tag sheet.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override the configured log level (default comes from PIDTAG_LOG_LEVEL).",
    )
    parser.add_argument("--show-settings", action="store_true", help="Print runtime settings and exit.")
    parser.add_argument("-i", "--input", help="Path to the P&ID PDF to process.")
    parser.add_argument(
        "-o",
        "--output",
        help="Optional override for the tag sheet output directory (defaults to settings).",
    )
    parser.add_argument("--project", default=None, help="Project name shown on the tag sheet.")
    parser.add_argument("--client", default=None, help="Client name.")
    parser.add_argument("--site", default=None, help="Site code (project default).")
    parser.add_argument("--unit", default=None, help="Unit code (project default).")
    parser.add_argument("--process", default=None, help="Process name; also used as the P&ID number.")
    parser.add_argument("--process-site", default=None, help="Site code overriding the project default.")
    parser.add_argument("--process-unit", default=None, help="Unit code overriding the project default.")
    parser.add_argument("--author", default=None, help="Name recorded in the Added By column.")
    parser.add_argument(
        "--no-write",
        action="store_true",
        help="Run extraction and build the sheet without writing files.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = load_settings()

    if args.log_level:
        settings.log_level = args.log_level

    configure_logging(settings, force=True)
    logger = get_logger(__name__)
    logger.info("P&ID tag sheet CLI ready.")

    if args.show_settings:
        logger.info("Active settings: %s", settings.model_dump())
        if not args.input:
            return 0

    if args.output:
        settings.output_dir = Path(args.output)
    settings.ensure_directories()

    if not args.input:
        logger.error("No input PDF provided. Use --input to specify a file.")
        return 1

    project = ProjectInfo(
        name=args.project,
        client_name=args.client,
        site_default=args.site,
        unit_code_default=args.unit,
    )
    process = None
    if args.process or args.process_site or args.process_unit:
        process = ProcessInfo(name=args.process, site=args.process_site, unit_code=args.process_unit)

    pipeline = TagSheetPipeline(settings)
    try:
        result = pipeline.process_pdf(
            Path(args.input),
            project,
            process,
            author=args.author,
            write=not args.no_write,
        )
    except PipelineError as exc:
        logger.error("Pipeline failed: %s", exc)
        return 2

    summary = result.catalogue.summary
    logger.info(
        "Tags: %s total (equipment=%s, instruments=%s, valves=%s, lines=%s)",
        summary.total_tags,
        summary.equipment_count,
        summary.instrument_count,
        summary.control_valve_count,
        summary.line_number_count,
    )
    if result.stage_durations:
        for stage, duration in result.stage_durations.items():
            logger.info("Stage %s took %.2fs", stage, duration)
    if result.xlsx_path:
        logger.info("Tag sheet written to %s", result.xlsx_path)
        logger.info("Metadata written to %s", result.metadata_path)
    else:
        logger.info("Tag sheet %s built (not written)", result.artifact.suggested_file_name)
    return 0


if __name__ == "__main__":
    sys.exit(main())
