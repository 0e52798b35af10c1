"""Card news export web app: render surface, export routes and published artifacts."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import Body, Depends, FastAPI, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, Field, field_validator

from config import get_export_settings
from core import DEFAULT_PRESETS, ExportFormat, apply_preset, list_presets, parse_project
from orchestrator import ExportOrchestrator, get_default_orchestrator
from render import render_surface_page
from render.adapters import BaseImageGenerator, KieImageJobClient
from utils.exceptions import (
    CardNewsError,
    ExportTimeoutError,
    RemoteJobError,
    RemoteJobTimeout,
    ValidationError,
)


logger = logging.getLogger(__name__)


class GenerateImageRequest(BaseModel):
    prompt: str = ""
    aspect_ratio: Optional[str] = Field(default=None, alias="aspectRatio")

    model_config = {"populate_by_name": True}

    @field_validator("prompt", mode="before")
    @classmethod
    def _strip_prompt(cls, value: Any) -> str:
        return str(value or "").strip()


def _status_for(exc: CardNewsError) -> int:
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, (ExportTimeoutError, RemoteJobTimeout)):
        return 504
    if isinstance(exc, RemoteJobError):
        return 502
    return 500


def _error_body(exc: CardNewsError) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "error": exc.message}
    stage = getattr(exc, "stage", None)
    if stage:
        body["stage"] = stage
    slide_index = getattr(exc, "slide_index", None)
    if slide_index is not None:
        body["slideIndex"] = slide_index
    if isinstance(exc, ValidationError) and exc.details.get("errors"):
        body["details"] = exc.details["errors"]
    return body


def _with_preset(data: Dict[str, Any], preset: Optional[str]) -> Any:
    if not preset:
        return data
    try:
        return apply_preset(parse_project(data), preset)
    except KeyError as exc:
        raise ValidationError(f"unknown preset: {preset}", {"presets": list_presets()}) from exc


def get_orchestrator() -> ExportOrchestrator:
    return get_default_orchestrator()


def get_image_generator() -> BaseImageGenerator:
    return KieImageJobClient()


_settings = get_export_settings()

app = FastAPI(title="Card News Export Service", version="1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.mount("/exports", StaticFiles(directory=_settings.exports_dir, check_dir=False), name="exports")


@app.exception_handler(CardNewsError)
async def _card_news_error_handler(request: Request, exc: CardNewsError) -> JSONResponse:
    status = _status_for(exc)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status, content=_error_body(exc))


@app.exception_handler(RequestValidationError)
async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = [
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', '')}"
        for err in exc.errors()
    ]
    logger.info("%s %s rejected: malformed request", request.method, request.url.path)
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": "Invalid request", "details": problems},
    )


@app.exception_handler(Exception)
async def _unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("%s %s failed unexpectedly", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"success": False, "error": str(exc) or type(exc).__name__})


@app.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/favicon.ico", include_in_schema=False)
async def favicon() -> Response:
    return Response(status_code=204)


@app.get("/render", response_class=HTMLResponse)
async def render_surface(
    width: Optional[int] = Query(default=None, gt=0, le=4096),
    height: Optional[int] = Query(default=None, gt=0, le=4096),
) -> HTMLResponse:
    return HTMLResponse(render_surface_page(width=width, height=height))


@app.get("/api/presets")
async def presets() -> Dict[str, Any]:
    return {"presets": [{"name": name, "style": DEFAULT_PRESETS[name]} for name in list_presets()]}


@app.post("/api/export")
async def export(
    project: Dict[str, Any] = Body(...),
    preset: Optional[str] = Query(default=None),
    orchestrator: ExportOrchestrator = Depends(get_orchestrator),
) -> Dict[str, Any]:
    result = await orchestrator.export(_with_preset(project, preset))
    return result.to_response()


@app.post("/api/generate")
async def generate_images(
    project: Dict[str, Any] = Body(...),
    orchestrator: ExportOrchestrator = Depends(get_orchestrator),
) -> Dict[str, Any]:
    result = await orchestrator.export(project, export_format=ExportFormat.IMAGES)
    return result.to_response()


@app.post("/api/generate-video")
async def generate_video(
    project: Dict[str, Any] = Body(...),
    orchestrator: ExportOrchestrator = Depends(get_orchestrator),
) -> Dict[str, Any]:
    result = await orchestrator.export(project, export_format=ExportFormat.VIDEO)
    return result.to_response()


@app.post("/api/ai/generate-image")
async def generate_image(
    req: GenerateImageRequest,
    generator: BaseImageGenerator = Depends(get_image_generator),
) -> Dict[str, Any]:
    if not req.prompt:
        raise ValidationError("prompt is required")
    image_src = await generator.generate_image(req.prompt, aspect_ratio=req.aspect_ratio)
    return {"success": True, "imageSrc": image_src}
