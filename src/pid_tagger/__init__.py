"""Expose P&ID tag extraction and tag sheet modules."""

from .pipeline import (
    DocumentMetadata,
    LineNumberInfo,
    PageDetail,
    PageTags,
    ProcessInfo,
    ProjectInfo,
    RawPage,
    ReportArtifact,
    Tag,
    TagCatalogue,
    TagCategory,
    TagOccurrence,
    TagSheetResult,
    TagSummary,
)
from .page_reader import PageReadError, PageTextReader
from .ocr_processor import OCRProcessingError, OCRProcessor
from .tag_extractor import TagExtractor
from .sheet_builder import SheetCell, SheetSection, TagSheetBuilder
from .artifact_writer import ArtifactWriter
from .orchestrator import PipelineError, TagSheetPipeline

__all__ = [
    "DocumentMetadata",
    "LineNumberInfo",
    "PageDetail",
    "PageTags",
    "ProcessInfo",
    "ProjectInfo",
    "RawPage",
    "ReportArtifact",
    "Tag",
    "TagCatalogue",
    "TagCategory",
    "TagOccurrence",
    "TagSheetResult",
    "TagSummary",
    "PageTextReader",
    "PageReadError",
    "OCRProcessor",
    "OCRProcessingError",
    "TagExtractor",
    "SheetCell",
    "SheetSection",
    "TagSheetBuilder",
    "ArtifactWriter",
    "TagSheetPipeline",
    "PipelineError",
]
