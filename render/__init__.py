"""Render surface, headless capture driver and remote generation adapters."""

from .browser import BrowserSession
from .capture import FrameCaptureDriver, frame_file_name, new_batch_id
from .surface import ACK_BINDING, MESSAGE_TYPE, READY_FLAG, build_render_message, render_surface_page

__all__ = [
    "ACK_BINDING",
    "BrowserSession",
    "FrameCaptureDriver",
    "MESSAGE_TYPE",
    "READY_FLAG",
    "build_render_message",
    "frame_file_name",
    "new_batch_id",
    "render_surface_page",
]
