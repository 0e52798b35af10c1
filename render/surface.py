"""Render surface page and the message contract used to drive it.

The page exposes one mutation entry point: a ``cardnews:render`` message
carrying ``{seq, payload}``. After the DOM reflects the payload (images
decoded, fonts ready, two animation frames) it calls the driver binding
``cardnewsAck(seq)``. ``window.cardnewsReady`` is set once on mount.
"""

from __future__ import annotations

from functools import lru_cache
import json
from pathlib import Path
from typing import Any, Dict, Optional

from core import RenderPayload

from .layout import surface_stylesheet


MESSAGE_TYPE = "cardnews:render"
READY_FLAG = "cardnewsReady"
ACK_BINDING = "cardnewsAck"

STATIC_DIR = Path(__file__).resolve().parent / "static"


def build_render_message(seq: int, payload: RenderPayload) -> Dict[str, Any]:
    """Wire message for one injection; ``seq`` pairs it with its paint ack."""
    if not isinstance(payload, RenderPayload):
        raise TypeError("render surface only accepts a RenderPayload")
    return {"type": MESSAGE_TYPE, "seq": int(seq), "payload": payload.to_wire()}


@lru_cache()
def _surface_script() -> str:
    return (STATIC_DIR / "surface.js").read_text(encoding="utf-8")


def render_surface_page(width: Optional[int] = None, height: Optional[int] = None) -> str:
    """Self-contained surface HTML: no requests are issued after load.

    Without explicit dimensions the card fills the browser viewport.
    """
    size_rule = ""
    if width and height:
        size_rule = f"#card {{ width: {int(width)}px; height: {int(height)}px; }}"
    config = json.dumps(
        {"messageType": MESSAGE_TYPE, "readyFlag": READY_FLAG, "ackBinding": ACK_BINDING}
    )
    return f"""<!doctype html>
<html lang="ko">
<head>
<meta charset="utf-8">
<title>card render surface</title>
<style>
{surface_stylesheet()}
{size_rule}
</style>
</head>
<body>
<div id="card" data-font-weight="bold">
  <img class="card__background" alt="" hidden>
  <div class="card__placeholder">No Image</div>
  <div class="card__overlay" hidden></div>
  <img class="card__logo" alt="" data-position="top-left" hidden>
  <span class="card__date" hidden></span>
  <div class="card__layer card__layer--small-title" data-anchor="top-left" hidden>
    <span class="card__small-title"></span>
  </div>
  <div class="card__layer card__layer--content" data-anchor="bottom-left">
    <div class="card__textbox" data-style="none">
      <h1 class="card__headline"></h1>
      <div class="card__tags"></div>
    </div>
  </div>
</div>
<script>window.CARDNEWS_SURFACE = {config};</script>
<script>
{_surface_script()}
</script>
</body>
</html>
"""
