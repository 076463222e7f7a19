"""FastAPI application exposing the P&ID tag sheet pipeline."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import JSONResponse, Response

from config import Settings, load_settings
from src.pid_tagger.orchestrator import PipelineError, TagSheetPipeline
from src.pid_tagger.pipeline import ProcessInfo, ProjectInfo, TagSheetResult

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    settings = load_settings()
    settings.ensure_directories()
    return settings


@lru_cache(maxsize=1)
def get_pipeline() -> TagSheetPipeline:
    return TagSheetPipeline(get_settings())


app = FastAPI(title="P&ID Tag Sheet Generator", version="0.1.0")


@app.get("/healthz")
def health(settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    return {
        "status": "ok",
        "ocr_fallback": settings.ocr_fallback,
        "ocr_backend": settings.ocr_backend,
        "sheet_output_dir": str(settings.sheet_output_path),
    }


async def _run(
    file: UploadFile,
    pipeline: TagSheetPipeline,
    project: ProjectInfo,
    process: Optional[ProcessInfo],
    author: Optional[str],
) -> TagSheetResult:
    if not file.filename or not file.filename.lower().endswith(".pdf"):
        raise HTTPException(status_code=400, detail="Only PDF uploads are supported.")

    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="Uploaded file is empty.")

    try:
        return pipeline.process_bytes(data, file.filename, project, process, author=author, write=False)
    except PipelineError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


def _process(name: Optional[str], site: Optional[str], unit_code: Optional[str]) -> Optional[ProcessInfo]:
    if not (name or site or unit_code):
        return None
    return ProcessInfo(name=name, site=site, unit_code=unit_code)


@app.post("/extract")
async def extract_tags(
    file: UploadFile = File(...),
    pipeline: TagSheetPipeline = Depends(get_pipeline),
) -> JSONResponse:
    result = await _run(file, pipeline, ProjectInfo(), None, None)
    payload = result.catalogue.to_dict()
    payload["stage_durations"] = result.stage_durations
    return JSONResponse(content=payload)


@app.post("/tag-sheet")
async def tag_sheet(
    file: UploadFile = File(...),
    project_name: Optional[str] = Form(None),
    client_name: Optional[str] = Form(None),
    site: Optional[str] = Form(None),
    unit_code: Optional[str] = Form(None),
    process_name: Optional[str] = Form(None),
    process_site: Optional[str] = Form(None),
    process_unit_code: Optional[str] = Form(None),
    author: Optional[str] = Form(None),
    pipeline: TagSheetPipeline = Depends(get_pipeline),
) -> Response:
    project = ProjectInfo(
        name=project_name,
        client_name=client_name,
        site_default=site,
        unit_code_default=unit_code,
    )
    process = _process(process_name, process_site, process_unit_code)
    result = await _run(file, pipeline, project, process, author)

    artifact = result.artifact
    return Response(
        content=artifact.content,
        media_type=XLSX_MEDIA_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="{artifact.suggested_file_name}"',
            "X-Total-Tags": str(result.catalogue.summary.total_tags),
        },
    )
