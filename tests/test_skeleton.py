"""Sanity checks for configuration and logging."""

from __future__ import annotations

import logging

import pytest

from config import Settings, load_settings
from src.pid_tagger.logging_utils import configure_logging, get_logger


def test_load_settings_respects_environment(tmp_path, monkeypatch):
    data_dir = tmp_path / "data"
    output_dir = tmp_path / "outputs"
    temp_dir = tmp_path / "tmp"

    monkeypatch.setenv("PIDTAG_DATA_DIR", str(data_dir))
    monkeypatch.setenv("PIDTAG_OUTPUT_DIR", str(output_dir))
    monkeypatch.setenv("PIDTAG_TEMP_DIR", str(temp_dir))
    monkeypatch.setenv("PIDTAG_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("PIDTAG_DEBUG", "true")
    monkeypatch.setenv("PIDTAG_OCR_BACKEND", "custom")
    monkeypatch.setenv("PIDTAG_OCR_HANDLER", "tests.fake_module:fake_handler")
    monkeypatch.setenv("PIDTAG_OCR_FALLBACK", "yes")
    monkeypatch.setenv("PIDTAG_OCR_WARN_THRESHOLD", "0.25")
    monkeypatch.setenv("PIDTAG_PDF_RENDER_DPI", "150")
    monkeypatch.setenv("PIDTAG_CONTEXT_WINDOW", "12")
    monkeypatch.setenv("PIDTAG_SHEET_LABEL", "Tags")
    monkeypatch.setenv("PIDTAG_DEFAULT_AUTHOR", "Ops")
    monkeypatch.setenv("PIDTAG_DEFAULT_CLIENT", "Acme")
    monkeypatch.setenv("PIDTAG_PID_REVISION", "Rev. B")
    monkeypatch.setenv("PIDTAG_APP_VERSION", "2.0.0")
    monkeypatch.setenv("PIDTAG_METADATA_FORMAT", "yaml")

    load_settings.cache_clear()
    settings = load_settings()

    assert settings.data_dir == data_dir
    assert settings.output_dir == output_dir
    assert settings.temp_dir == temp_dir
    assert settings.log_level == "DEBUG"
    assert settings.debug is True
    assert settings.ocr_backend == "custom"
    assert settings.ocr_handler == "tests.fake_module:fake_handler"
    assert settings.ocr_fallback is True
    assert settings.ocr_warn_threshold == 0.25
    assert settings.pdf_render_dpi == 150
    assert settings.context_window == 12
    assert settings.sheet_label == "Tags"
    assert settings.default_author == "Ops"
    assert settings.default_client == "Acme"
    assert settings.pid_revision == "Rev. B"
    assert settings.app_version == "2.0.0"
    assert settings.metadata_format == "yaml"

    # Directories should be created automatically.
    for directory in (data_dir, output_dir, temp_dir, settings.sheet_output_path):
        assert directory.exists()
    load_settings.cache_clear()


def test_invalid_settings_raise_runtime_error(tmp_path, monkeypatch):
    monkeypatch.setenv("PIDTAG_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("PIDTAG_OUTPUT_DIR", str(tmp_path / "outputs"))
    monkeypatch.setenv("PIDTAG_TEMP_DIR", str(tmp_path / "tmp"))
    monkeypatch.setenv("PIDTAG_CONTEXT_WINDOW", "-1")

    load_settings.cache_clear()
    with pytest.raises(RuntimeError, match="Invalid application configuration"):
        load_settings()
    load_settings.cache_clear()


def test_configure_logging_emit_debug(tmp_path, caplog):
    settings = Settings(
        data_dir=tmp_path / "data",
        output_dir=tmp_path / "outputs",
        temp_dir=tmp_path / "tmp",
        log_level="DEBUG",
        debug=True,
    )

    settings.ensure_directories()
    configure_logging(settings, force=True)

    logger = get_logger("pid_tagger.test")
    logger.debug("debug message emitted")

    root_logger = logging.getLogger()
    assert root_logger.level == logging.DEBUG
    assert any(isinstance(handler, logging.StreamHandler) for handler in root_logger.handlers)
