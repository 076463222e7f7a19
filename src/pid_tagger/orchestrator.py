"""High-level orchestrator wiring PDF reading, tag extraction and tag sheet output."""

from __future__ import annotations

import tempfile
import time
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from config import Settings, load_settings
from .artifact_writer import ArtifactWriter
from .logging_utils import get_logger
from .page_reader import PageTextReader
from .pipeline import ProcessInfo, ProjectInfo, TagSheetResult
from .sheet_builder import TagSheetBuilder
from .tag_extractor import TagExtractor

logger = get_logger(__name__)

ProjectLike = Union[ProjectInfo, Mapping[str, Any], None]
ProcessLike = Union[ProcessInfo, Mapping[str, Any], None]


class PipelineError(RuntimeError):
    """Top-level pipeline failure."""


class TagSheetPipeline:
    """Run the full P&ID tag sheet pipeline on PDFs."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        page_reader: Optional[PageTextReader] = None,
        tag_extractor: Optional[TagExtractor] = None,
        sheet_builder: Optional[TagSheetBuilder] = None,
        artifact_writer: Optional[ArtifactWriter] = None,
    ):
        self.settings = settings or load_settings()
        self.settings.ensure_directories()

        self.page_reader = page_reader or PageTextReader(self.settings)
        self.tag_extractor = tag_extractor or TagExtractor(self.settings)
        self.sheet_builder = sheet_builder or TagSheetBuilder(self.settings)
        self.artifact_writer = artifact_writer or ArtifactWriter(self.settings)

    def process_pdf(
        self,
        pdf_path: Path,
        project: ProjectLike,
        process: ProcessLike = None,
        *,
        author: Optional[str] = None,
        write: bool = True,
        output_dir: Optional[Path] = None,
        display_name: Optional[str] = None,
    ) -> TagSheetResult:
        """Read, extract, build and (optionally) write the tag sheet for one PDF."""

        pdf_path = Path(pdf_path).resolve()
        if not pdf_path.exists():
            raise PipelineError(f"PDF not found: {pdf_path}")

        logger.info("Starting tag sheet pipeline for %s", pdf_path)
        start = time.time()
        stage_timings: Dict[str, float] = {}

        try:
            stage_start = time.perf_counter()
            pages = self.page_reader.read_pages(pdf_path)
            stage_timings["page_reading"] = time.perf_counter() - stage_start
            logger.info("Read %s pages", len(pages))

            stage_start = time.perf_counter()
            catalogue = self.tag_extractor.extract(
                pages,
                file_name=display_name or pdf_path.name,
                file_size_bytes=pdf_path.stat().st_size,
            )
            stage_timings["tag_extraction"] = time.perf_counter() - stage_start

            stage_start = time.perf_counter()
            metadata = {"author": author} if author else None
            artifact = self.sheet_builder.build(catalogue, project, process, metadata)
            stage_timings["sheet_building"] = time.perf_counter() - stage_start

            result = TagSheetResult(catalogue=catalogue, artifact=artifact)
            if write:
                stage_start = time.perf_counter()
                result.xlsx_path, result.metadata_path = self.artifact_writer.write(
                    artifact, catalogue, output_dir
                )
                stage_timings["artifact_writing"] = time.perf_counter() - stage_start

            result.stage_durations = stage_timings
            logger.info(
                "Pipeline finished in %.2fs (tags=%s, sheet=%s)",
                time.time() - start,
                catalogue.summary.total_tags,
                artifact.suggested_file_name,
            )
            return result
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception("Pipeline failed for %s", pdf_path)
            raise PipelineError(str(exc)) from exc

    def process_bytes(
        self,
        data: bytes,
        filename: str = "upload.pdf",
        project: ProjectLike = None,
        process: ProcessLike = None,
        **kwargs: Any,
    ) -> TagSheetResult:
        """Process an uploaded PDF provided as bytes."""

        with tempfile.NamedTemporaryFile(
            suffix=Path(filename).suffix or ".pdf",
            dir=self.settings.temp_dir,
            delete=False,
        ) as temp_file:
            temp_file.write(data)
            temp_path = Path(temp_file.name)

        kwargs.setdefault("display_name", Path(filename).name)
        try:
            return self.process_pdf(temp_path, project, process, **kwargs)
        finally:
            try:
                temp_path.unlink(missing_ok=True)
            except OSError:
                logger.warning("Failed to delete temporary file %s", temp_path)
