"""Persist generated tag sheets and their catalogue metadata."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from config import Settings
from .logging_utils import get_logger
from .pipeline import ReportArtifact, TagCatalogue

logger = get_logger(__name__)


class ArtifactWriter:
    """Write an XLSX artifact plus a JSON or YAML sidecar describing the extraction."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def write(
        self,
        artifact: ReportArtifact,
        catalogue: TagCatalogue,
        output_dir: Optional[Path] = None,
    ) -> Tuple[Path, Path]:
        """Return the paths of the written workbook and metadata file."""
        output_dir = Path(output_dir) if output_dir else self.settings.sheet_output_path
        output_dir.mkdir(parents=True, exist_ok=True)

        xlsx_path = output_dir / artifact.suggested_file_name
        xlsx_path.write_bytes(artifact.content)

        metadata_format = (self.settings.metadata_format or "json").lower()
        if metadata_format not in {"json", "yaml"}:
            logger.warning("Unsupported metadata format '%s'; defaulting to JSON.", metadata_format)
            metadata_format = "json"
        extension = ".yaml" if metadata_format == "yaml" else ".json"
        metadata_path = xlsx_path.with_suffix(extension)

        data: Dict[str, Any] = {
            "tag_sheet": str(xlsx_path),
            "tag_sheet_bytes": len(artifact.content),
            **catalogue.to_dict(),
        }
        with metadata_path.open("w", encoding="utf-8") as handle:
            if metadata_format == "yaml":
                yaml.safe_dump(data, handle, sort_keys=False)
            else:
                json.dump(data, handle, indent=2)

        logger.info(
            "Wrote tag sheet %s (%s tags) with metadata %s",
            xlsx_path,
            catalogue.summary.total_tags,
            metadata_path,
        )
        return xlsx_path, metadata_path
