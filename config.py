"""Project-level configuration helpers for the P&ID tag sheet pipeline."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError


class Settings(BaseModel):
    """Runtime settings loaded from environment variables or defaults."""

    data_dir: Path = Field(default_factory=lambda: Path("data"))
    output_dir: Path = Field(default_factory=lambda: Path("outputs"))
    temp_dir: Path = Field(default_factory=lambda: Path("tmp"))
    log_level: str = "INFO"
    debug: bool = False
    ocr_backend: str = "tesseract"
    ocr_handler: Optional[str] = None
    ocr_fallback: bool = False
    ocr_warn_threshold: float = 0.5
    pdf_render_dpi: int = 200
    context_window: int = Field(default=30, ge=0)
    sheet_label: str = "TagSheet"
    default_author: str = "AIMS System"
    default_client: str = "N/A"
    pid_revision: str = "Rev. 0"
    app_version: str = "1.0.0"
    metadata_format: str = "json"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings by reading environment variables with the PIDTAG_ prefix."""
        defaults = cls()
        env_overrides: Dict[str, Any] = {
            "data_dir": Path(os.getenv("PIDTAG_DATA_DIR", str(defaults.data_dir))),
            "output_dir": Path(os.getenv("PIDTAG_OUTPUT_DIR", str(defaults.output_dir))),
            "temp_dir": Path(os.getenv("PIDTAG_TEMP_DIR", str(defaults.temp_dir))),
            "log_level": os.getenv("PIDTAG_LOG_LEVEL", defaults.log_level),
            "debug": _coerce_bool(os.getenv("PIDTAG_DEBUG", str(defaults.debug))),
            "ocr_backend": os.getenv("PIDTAG_OCR_BACKEND", defaults.ocr_backend),
            "ocr_handler": os.getenv("PIDTAG_OCR_HANDLER", defaults.ocr_handler),
            "ocr_fallback": _coerce_bool(
                os.getenv("PIDTAG_OCR_FALLBACK", str(defaults.ocr_fallback))
            ),
            "ocr_warn_threshold": float(
                os.getenv("PIDTAG_OCR_WARN_THRESHOLD", defaults.ocr_warn_threshold)
            ),
            "pdf_render_dpi": int(os.getenv("PIDTAG_PDF_RENDER_DPI", defaults.pdf_render_dpi)),
            "context_window": int(os.getenv("PIDTAG_CONTEXT_WINDOW", defaults.context_window)),
            "sheet_label": os.getenv("PIDTAG_SHEET_LABEL", defaults.sheet_label),
            "default_author": os.getenv("PIDTAG_DEFAULT_AUTHOR", defaults.default_author),
            "default_client": os.getenv("PIDTAG_DEFAULT_CLIENT", defaults.default_client),
            "pid_revision": os.getenv("PIDTAG_PID_REVISION", defaults.pid_revision),
            "app_version": os.getenv("PIDTAG_APP_VERSION", defaults.app_version),
            "metadata_format": os.getenv("PIDTAG_METADATA_FORMAT", defaults.metadata_format),
        }
        return cls(**env_overrides)

    def ensure_directories(self) -> None:
        """Create directories that the pipeline expects to exist."""
        for path in (self.data_dir, self.output_dir, self.temp_dir):
            path.mkdir(parents=True, exist_ok=True)

    @property
    def sheet_output_path(self) -> Path:
        """Directory that receives generated tag sheets and their metadata."""
        base = self.output_dir / "tag_sheets"
        base.mkdir(parents=True, exist_ok=True)
        return base


def _coerce_bool(value: str) -> bool:
    if isinstance(value, bool):
        return value
    return value.lower() in {"1", "true", "yes", "y"}


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Return cached settings, raising a helpful error if validation fails."""
    try:
        settings = Settings.from_env()
        settings.ensure_directories()
        return settings
    except ValidationError as exc:
        raise RuntimeError(f"Invalid application configuration: {exc}") from exc
