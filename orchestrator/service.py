"""Export orchestrator: validate, capture, assemble, publish, always clean up."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, List, Optional, Union

from config import ExportSettings, VideoSettings, get_export_settings, get_video_settings
from core import (
    CapturedFrame,
    ExportFormat,
    ImageExportResult,
    Project,
    VideoExportResult,
    parse_project,
)
from outputs import VideoAssembler
from render.capture import FrameCaptureDriver, new_batch_id
from storage import ExportStore
from utils.cleanup import remove_tree
from utils.exceptions import ExportTimeoutError, ValidationError


logger = logging.getLogger(__name__)

ExportResult = Union[ImageExportResult, VideoExportResult]


def image_artifact_name(batch_id: str, index: int) -> str:
    return f"card-{batch_id}-{index}.png"


def video_artifact_name(batch_id: str) -> str:
    return f"video-{batch_id}.mp4"


class ExportOrchestrator:
    """Single request/response export of one project."""

    def __init__(
        self,
        *,
        settings: Optional[ExportSettings] = None,
        video_settings: Optional[VideoSettings] = None,
        capture_driver: Optional[FrameCaptureDriver] = None,
        assembler: Optional[VideoAssembler] = None,
        store: Optional[ExportStore] = None,
    ) -> None:
        self.settings = settings or get_export_settings()
        self.video_settings = video_settings or get_video_settings()
        self.capture_driver = capture_driver or FrameCaptureDriver(settings=self.settings)
        self.assembler = assembler or VideoAssembler(settings=self.video_settings)
        self.store = store or ExportStore(self.settings)

    def validate(self, data: Any, *, export_format: Optional[ExportFormat] = None) -> Project:
        """Reject malformed input before any browser or encoder work starts."""
        project = parse_project(data)
        if export_format is not None:
            project = project.model_copy(update={"export_format": ExportFormat(export_format)})
        if not project.slides:
            raise ValidationError("Project has no slides")
        if project.export_format is ExportFormat.VIDEO and self.per_slide_duration(project) <= 0:
            raise ValidationError("videoDuration must be positive", {"videoDuration": project.video_duration})
        return project

    def per_slide_duration(self, project: Project) -> float:
        if project.video_duration is None:
            return float(self.video_settings.default_duration_s)
        return float(project.video_duration)

    async def export(self, data: Any, *, export_format: Optional[ExportFormat] = None) -> ExportResult:
        project = self.validate(data, export_format=export_format)
        timeout_s = float(self.settings.export_timeout_s)
        try:
            return await asyncio.wait_for(self._run(project), timeout=timeout_s)
        except asyncio.TimeoutError as exc:
            logger.error("Export exceeded %ss deadline", timeout_s)
            raise ExportTimeoutError(f"export exceeded {timeout_s:g}s deadline", timeout_s=timeout_s) from exc

    async def _run(self, project: Project) -> ExportResult:
        self.store.ensure_dirs()
        batch_id = new_batch_id()
        scratch = Path(self.settings.scratch_dir) / batch_id
        scratch.mkdir(parents=True, exist_ok=True)
        logger.info(
            "Export %s started: %s slides, format=%s, canvas=%s",
            batch_id,
            len(project.slides),
            project.export_format.value,
            project.canvas_size.value,
        )
        try:
            frames = await self.capture_driver.capture(project, scratch, batch_id=batch_id)
            if project.export_format is ExportFormat.VIDEO:
                return await self._export_video(project, frames, scratch, batch_id)
            return self._publish_images(frames, batch_id)
        finally:
            remove_tree(scratch)

    def _publish_images(self, frames: List[CapturedFrame], batch_id: str) -> ImageExportResult:
        published: List[str] = []
        urls: List[str] = []
        try:
            for frame in sorted(frames, key=lambda item: item.index):
                name = image_artifact_name(batch_id, frame.index)
                urls.append(self.store.publish(frame.path, name))
                published.append(name)
        except Exception:
            for name in published:
                self.store.unpublish(name)
            raise
        logger.info("Export %s published %s images", batch_id, len(urls))
        return ImageExportResult(image_urls=urls)

    async def _export_video(
        self,
        project: Project,
        frames: List[CapturedFrame],
        scratch: Path,
        batch_id: str,
    ) -> VideoExportResult:
        name = video_artifact_name(batch_id)
        assembled = await self.assembler.assemble(
            frames,
            per_slide_duration=self.per_slide_duration(project),
            transition=project.video_transition,
            output_path=scratch / name,
        )
        url = self.store.publish(assembled.path, name)
        logger.info("Export %s published video (%ss)", batch_id, assembled.duration)
        return VideoExportResult(video_url=url, duration=assembled.duration)


_DEFAULT_ORCHESTRATOR: Optional[ExportOrchestrator] = None


def get_default_orchestrator() -> ExportOrchestrator:
    global _DEFAULT_ORCHESTRATOR
    if _DEFAULT_ORCHESTRATOR is None:
        _DEFAULT_ORCHESTRATOR = ExportOrchestrator()
    return _DEFAULT_ORCHESTRATOR
