"""
Outputs Module
Video assembly from captured frames.
"""

from .video_assembly import (
    Playlist,
    PlaylistEntry,
    VideoAssembler,
    VideoAssemblyResult,
    build_concat_command,
    build_concat_playlist,
    build_fade_command,
    build_fade_filter,
    fade_window,
)

__all__ = [
    "Playlist",
    "PlaylistEntry",
    "VideoAssembler",
    "VideoAssemblyResult",
    "build_concat_command",
    "build_concat_playlist",
    "build_fade_command",
    "build_fade_filter",
    "fade_window",
]
