"""Export orchestration for the card news pipeline."""

from .service import (
    ExportOrchestrator,
    ExportResult,
    get_default_orchestrator,
    image_artifact_name,
    video_artifact_name,
)

__all__ = [
    "ExportOrchestrator",
    "ExportResult",
    "get_default_orchestrator",
    "image_artifact_name",
    "video_artifact_name",
]
