"""CLI tests for the tag sheet pipeline."""

from __future__ import annotations

from pathlib import Path

import pytest

from config import load_settings
from src.__main__ import main
from src.pid_tagger.pipeline import RawPage, ReportArtifact, TagSheetResult
from src.pid_tagger.tag_extractor import TagExtractor


class _StubPipeline:
    calls: list = []

    def __init__(self, settings):
        self.settings = settings

    def process_pdf(self, pdf_path: Path, project, process=None, *, author=None, write=True) -> TagSheetResult:
        _StubPipeline.calls.append((project, process, author, write))
        catalogue = TagExtractor().extract([RawPage(1, "P-101 and PIC-10001")])
        result = TagSheetResult(
            catalogue=catalogue,
            artifact=ReportArtifact(content=b"xlsx", suggested_file_name="sheet.xlsx"),
        )
        if write:
            result.xlsx_path = pdf_path.with_suffix(".xlsx")
            result.metadata_path = pdf_path.with_suffix(".json")
        return result


@pytest.fixture(autouse=True)
def _patch_pipeline(monkeypatch, tmp_path):
    monkeypatch.setenv("PIDTAG_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("PIDTAG_OUTPUT_DIR", str(tmp_path / "outputs"))
    monkeypatch.setenv("PIDTAG_TEMP_DIR", str(tmp_path / "tmp"))
    load_settings.cache_clear()
    _StubPipeline.calls = []
    monkeypatch.setattr("src.__main__.TagSheetPipeline", _StubPipeline)
    yield
    load_settings.cache_clear()


def test_cli_requires_input(capsys):
    exit_code = main([])
    assert exit_code == 1
    captured = capsys.readouterr()
    assert "No input PDF provided" in captured.out


def test_cli_show_settings_without_input(capsys):
    exit_code = main(["--show-settings"])
    assert exit_code == 0
    assert "Active settings" in capsys.readouterr().out


def test_cli_runs_pipeline(tmp_path, capsys):
    pdf = tmp_path / "sample.pdf"
    pdf.write_text("dummy")

    exit_code = main(
        [
            "--input",
            str(pdf),
            "--output",
            str(tmp_path / "sheets"),
            "--project",
            "Plant A",
            "--client",
            "Acme",
            "--process",
            "Crude Unit",
            "--author",
            "J. Smith",
        ]
    )

    assert exit_code == 0
    captured = capsys.readouterr()
    assert "Tags: 2 total" in captured.out
    assert "Tag sheet written to" in captured.out
    project, process, author, write = _StubPipeline.calls[0]
    assert project.name == "Plant A"
    assert project.client_name == "Acme"
    assert process.name == "Crude Unit"
    assert author == "J. Smith"
    assert write is True


def test_cli_no_write(tmp_path, capsys):
    pdf = tmp_path / "sample.pdf"
    pdf.write_text("dummy")

    exit_code = main(["--input", str(pdf), "--no-write"])

    assert exit_code == 0
    assert "built (not written)" in capsys.readouterr().out
    project, process, _, write = _StubPipeline.calls[0]
    assert project.name is None
    assert process is None
    assert write is False


def test_cli_handles_pipeline_error(monkeypatch, tmp_path, capsys):
    from src import __main__

    class _FailingPipeline(_StubPipeline):
        def process_pdf(self, pdf_path: Path, project, process=None, **kwargs) -> TagSheetResult:
            raise __main__.PipelineError("boom")

    monkeypatch.setattr("src.__main__.TagSheetPipeline", _FailingPipeline)
    pdf = tmp_path / "sample.pdf"
    pdf.write_text("dummy")

    exit_code = main(["--input", str(pdf)])

    assert exit_code == 2
    captured = capsys.readouterr()
    assert "Pipeline failed" in captured.out
