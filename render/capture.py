"""Frame capture driver: one browser per batch, strictly sequential slides."""

from __future__ import annotations

import logging
from pathlib import Path
import time
from typing import Any, Callable, List, Optional
from uuid import uuid4

from config import ExportSettings, get_export_settings
from core import CapturedFrame, Project, build_render_payload

from .browser import BrowserSession


logger = logging.getLogger(__name__)

SessionFactory = Callable[..., Any]


def new_batch_id() -> str:
    """Timestamp prefix plus a random suffix so concurrent batches never collide."""
    return f"{int(time.time() * 1000)}-{uuid4().hex[:8]}"


def frame_file_name(batch_id: str, index: int) -> str:
    # Zero padding keeps lexical order equal to slide order.
    return f"slide-{batch_id}-{index:03d}.png"


class FrameCaptureDriver:
    """Rasterises every slide of a project into PNG frames."""

    def __init__(
        self,
        *,
        settings: Optional[ExportSettings] = None,
        session_factory: Optional[SessionFactory] = None,
    ) -> None:
        self.settings = settings or get_export_settings()
        self._session_factory = session_factory or BrowserSession

    def _open_session(self, project: Project) -> Any:
        width, height = project.viewport
        return self._session_factory(
            url=self.settings.resolved_render_url,
            width=width,
            height=height,
            no_sandbox=self.settings.browser_no_sandbox,
            navigation_timeout_ms=self.settings.navigation_timeout_ms,
            paint_ack_timeout_ms=self.settings.paint_ack_timeout_ms,
            settle_delay_ms=self.settings.settle_delay_ms,
        )

    async def capture(
        self,
        project: Project,
        work_dir: Path,
        *,
        batch_id: Optional[str] = None,
    ) -> List[CapturedFrame]:
        """Capture all slides in order; frames are returned as an ordered list."""
        batch_id = batch_id or new_batch_id()
        work_dir.mkdir(parents=True, exist_ok=True)

        frames: List[CapturedFrame] = []
        total = len(project.slides)
        async with self._open_session(project) as session:
            for index, slide in enumerate(project.slides):
                payload = build_render_payload(project, slide)
                acked = await session.paint(payload, slide_index=index)
                path = work_dir / frame_file_name(batch_id, index)
                await session.screenshot(path, slide_index=index)
                frames.append(CapturedFrame(index=index, slide_id=slide.id, path=path, batch_id=batch_id))
                logger.info("Captured slide %s/%s (ack=%s) -> %s", index + 1, total, acked, path.name)
        return frames
