"""Headless Chromium session bound to the render surface.

One session covers a whole batch: launch, navigate once, then any number of
paint/screenshot rounds. Release is guaranteed by the async context manager
on every exit path, including cancellation.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from playwright.async_api import async_playwright

from core import RenderPayload
from utils.exceptions import RenderStageError

from .surface import ACK_BINDING, READY_FLAG, build_render_message


logger = logging.getLogger(__name__)

_POST_MESSAGE_JS = "message => window.postMessage(message, '*')"


class BrowserSession:
    """Async context manager owning one Chromium process and one page."""

    def __init__(
        self,
        *,
        url: str,
        width: int,
        height: int,
        no_sandbox: bool = False,
        navigation_timeout_ms: int = 30000,
        paint_ack_timeout_ms: int = 5000,
        settle_delay_ms: int = 300,
        playwright_factory: Optional[Callable[[], Any]] = None,
    ) -> None:
        self.url = url
        self.width = int(width)
        self.height = int(height)
        self.no_sandbox = bool(no_sandbox)
        self.navigation_timeout_ms = int(navigation_timeout_ms)
        self.paint_ack_timeout_ms = int(paint_ack_timeout_ms)
        self.settle_delay_ms = int(settle_delay_ms)
        self._playwright_factory = playwright_factory or async_playwright

        self._playwright = None
        self._browser = None
        self._page = None
        self._seq = itertools.count(1)
        self._pending: Dict[int, asyncio.Future] = {}

    async def __aenter__(self) -> "BrowserSession":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _launch_args(self) -> List[str]:
        # Only acceptable inside trusted containers.
        if self.no_sandbox:
            return ["--no-sandbox", "--disable-setuid-sandbox"]
        return []

    async def open(self) -> None:
        try:
            self._playwright = await self._playwright_factory().start()
            self._browser = await self._playwright.chromium.launch(headless=True, args=self._launch_args())
        except Exception as exc:
            await self.close()
            raise RenderStageError(f"browser launch failed: {exc}", stage="launch") from exc

        try:
            context = await self._browser.new_context(
                viewport={"width": self.width, "height": self.height},
                device_scale_factor=1,
            )
            self._page = await context.new_page()
            await self._page.expose_binding(ACK_BINDING, self._on_ack)
            await self._page.goto(self.url, wait_until="networkidle", timeout=self.navigation_timeout_ms)
            await self._page.wait_for_function(
                f"() => window.{READY_FLAG} === true",
                timeout=self.navigation_timeout_ms,
            )
        except Exception as exc:
            await self.close()
            raise RenderStageError(f"render surface navigation failed: {exc}", stage="navigate", url=self.url) from exc

        logger.info("Browser ready at %s (%sx%s)", self.url, self.width, self.height)

    def _on_ack(self, source: Any, seq: Any) -> None:
        future = self._pending.pop(int(seq), None)
        if future is not None and not future.done():
            future.set_result(True)

    async def paint(self, payload: RenderPayload, *, slide_index: int) -> bool:
        """Inject one payload; True when the surface acknowledged the paint."""
        if self._page is None:
            raise RenderStageError("browser session is not open", stage="inject", slide_index=slide_index)

        seq = next(self._seq)
        future = asyncio.get_running_loop().create_future()
        self._pending[seq] = future
        try:
            await self._page.evaluate(_POST_MESSAGE_JS, build_render_message(seq, payload))
        except Exception as exc:
            self._pending.pop(seq, None)
            raise RenderStageError(f"payload injection failed: {exc}", stage="inject", slide_index=slide_index) from exc

        try:
            await asyncio.wait_for(future, timeout=self.paint_ack_timeout_ms / 1000)
            return True
        except asyncio.TimeoutError:
            self._pending.pop(seq, None)
            logger.warning(
                "No paint ack for slide %s within %sms; falling back to %sms settle delay",
                slide_index,
                self.paint_ack_timeout_ms,
                self.settle_delay_ms,
            )
            await asyncio.sleep(self.settle_delay_ms / 1000)
            return False

    async def screenshot(self, path: Path, *, slide_index: int) -> Path:
        if self._page is None:
            raise RenderStageError("browser session is not open", stage="capture", slide_index=slide_index)
        try:
            await self._page.screenshot(path=str(path), type="png", full_page=False)
        except Exception as exc:
            raise RenderStageError(f"screenshot failed: {exc}", stage="capture", slide_index=slide_index) from exc
        return path

    async def close(self) -> None:
        for future in self._pending.values():
            if not future.done():
                future.cancel()
        self._pending.clear()

        browser, playwright = self._browser, self._playwright
        self._page = None
        self._browser = None
        self._playwright = None
        if browser is not None:
            try:
                await browser.close()
            except Exception:
                logger.debug("Browser close failed", exc_info=True)
        if playwright is not None:
            try:
                await playwright.stop()
            except Exception:
                logger.debug("Playwright stop failed", exc_info=True)
