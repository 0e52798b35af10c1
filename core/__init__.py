"""Core contracts and shared types for the export pipeline."""

from .contracts import (
    CANVAS_HEIGHTS,
    CANVAS_WIDTH,
    CanvasSize,
    CapturedFrame,
    ExportFormat,
    FontSettings,
    FontWeight,
    GridPosition,
    ImageExportResult,
    LogoPosition,
    Project,
    ProjectStyle,
    RenderPayload,
    Slide,
    TextBoxSettings,
    TextBoxStyle,
    VideoExportResult,
    VideoTransition,
    build_render_payload,
    canvas_viewport,
    image_bytes_to_data_uri,
    parse_project,
)
from .presets import DEFAULT_PRESETS, apply_preset, list_presets

__all__ = [
    "CANVAS_HEIGHTS",
    "CANVAS_WIDTH",
    "CanvasSize",
    "CapturedFrame",
    "DEFAULT_PRESETS",
    "ExportFormat",
    "FontSettings",
    "FontWeight",
    "GridPosition",
    "ImageExportResult",
    "LogoPosition",
    "Project",
    "ProjectStyle",
    "RenderPayload",
    "Slide",
    "TextBoxSettings",
    "TextBoxStyle",
    "VideoExportResult",
    "VideoTransition",
    "apply_preset",
    "build_render_payload",
    "canvas_viewport",
    "image_bytes_to_data_uri",
    "list_presets",
    "parse_project",
]
