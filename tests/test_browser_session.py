from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from core import build_render_payload, parse_project
from render.browser import BrowserSession
from render.surface import ACK_BINDING, MESSAGE_TYPE
from utils.exceptions import RenderStageError


class _FakePage:
    def __init__(self, *, ack: bool = True, fail_goto: bool = False) -> None:
        self.ack = ack
        self.fail_goto = fail_goto
        self.bindings: Dict[str, Any] = {}
        self.messages: List[Dict[str, Any]] = []
        self.screenshots: List[str] = []

    async def expose_binding(self, name: str, callback) -> None:
        self.bindings[name] = callback

    async def goto(self, url: str, **kwargs) -> None:
        if self.fail_goto:
            raise RuntimeError("net::ERR_CONNECTION_REFUSED")
        self.url = url
        self.goto_kwargs = kwargs

    async def wait_for_function(self, expression: str, **kwargs) -> None:
        self.ready_expression = expression

    async def evaluate(self, script: str, message: Dict[str, Any]) -> None:
        self.messages.append(message)
        if self.ack:
            self.bindings[ACK_BINDING](None, message["seq"])

    async def screenshot(self, *, path: str, **kwargs) -> None:
        Path(path).write_bytes(b"png")
        self.screenshots.append(path)


class _FakeContext:
    def __init__(self, page: _FakePage) -> None:
        self.page = page

    async def new_page(self) -> _FakePage:
        return self.page


class _FakeBrowser:
    def __init__(self, page: _FakePage) -> None:
        self.page = page
        self.closed = False
        self.context_kwargs: Optional[Dict[str, Any]] = None

    async def new_context(self, **kwargs) -> _FakeContext:
        self.context_kwargs = kwargs
        return _FakeContext(self.page)

    async def close(self) -> None:
        self.closed = True


class _FakeChromium:
    def __init__(self, browser: _FakeBrowser, fail: bool = False) -> None:
        self.browser = browser
        self.fail = fail
        self.launch_kwargs: Optional[Dict[str, Any]] = None

    async def launch(self, **kwargs) -> _FakeBrowser:
        if self.fail:
            raise RuntimeError("Executable doesn't exist")
        self.launch_kwargs = kwargs
        return self.browser


class _FakePlaywright:
    def __init__(self, chromium: _FakeChromium) -> None:
        self.chromium = chromium
        self.stopped = False

    async def stop(self) -> None:
        self.stopped = True


class _FakeManager:
    def __init__(self, playwright: _FakePlaywright) -> None:
        self.playwright = playwright

    async def start(self) -> _FakePlaywright:
        return self.playwright


def _stack(*, ack: bool = True, fail_launch: bool = False, fail_goto: bool = False):
    page = _FakePage(ack=ack, fail_goto=fail_goto)
    browser = _FakeBrowser(page)
    playwright = _FakePlaywright(_FakeChromium(browser, fail=fail_launch))
    return page, browser, playwright, (lambda: _FakeManager(playwright))


def _payload():
    project = parse_project({"slides": [{"id": "s1", "headline": "Hello"}]})
    return build_render_payload(project, project.slides[0])


def _session(factory, **kwargs) -> BrowserSession:
    options = dict(url="http://render.test/render", width=1080, height=1350, playwright_factory=factory)
    options.update(kwargs)
    return BrowserSession(**options)


def test_session_paints_with_ack_and_releases(tmp_path: Path) -> None:
    page, browser, playwright, factory = _stack()

    async def _run():
        async with _session(factory) as session:
            acked = await session.paint(_payload(), slide_index=0)
            await session.screenshot(tmp_path / "slide.png", slide_index=0)
            return acked

    assert asyncio.run(_run()) is True
    assert browser.context_kwargs == {"viewport": {"width": 1080, "height": 1350}, "device_scale_factor": 1}
    assert playwright.chromium.launch_kwargs["args"] == []
    assert page.goto_kwargs["wait_until"] == "networkidle"
    assert "cardnewsReady" in page.ready_expression
    assert page.messages[0]["type"] == MESSAGE_TYPE
    assert page.messages[0]["payload"]["headline"] == "Hello"
    assert (tmp_path / "slide.png").read_bytes() == b"png"
    assert browser.closed is True
    assert playwright.stopped is True


def test_session_falls_back_to_settle_delay_without_ack() -> None:
    page, browser, playwright, factory = _stack(ack=False)

    async def _run():
        async with _session(factory, paint_ack_timeout_ms=10, settle_delay_ms=1) as session:
            return await session.paint(_payload(), slide_index=0)

    assert asyncio.run(_run()) is False
    assert browser.closed is True


def test_no_sandbox_only_when_configured() -> None:
    _, _, playwright, factory = _stack()

    async def _run():
        async with _session(factory, no_sandbox=True):
            pass

    asyncio.run(_run())
    assert "--no-sandbox" in playwright.chromium.launch_kwargs["args"]


def test_launch_failure_maps_to_launch_stage() -> None:
    _, _, playwright, factory = _stack(fail_launch=True)

    async def _run():
        async with _session(factory):
            pass

    with pytest.raises(RenderStageError) as exc_info:
        asyncio.run(_run())
    assert exc_info.value.stage == "launch"
    assert playwright.stopped is True


def test_navigation_failure_maps_to_navigate_stage() -> None:
    _, browser, playwright, factory = _stack(fail_goto=True)

    async def _run():
        async with _session(factory):
            pass

    with pytest.raises(RenderStageError) as exc_info:
        asyncio.run(_run())
    assert exc_info.value.stage == "navigate"
    assert browser.closed is True
    assert playwright.stopped is True
