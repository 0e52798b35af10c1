"""
Configuration Management Module
Environment-driven settings for capture, encoding and the job API.
"""
from .settings import (
    ExportSettings,
    ImageJobSettings,
    Settings,
    VideoSettings,
    get_export_settings,
    get_image_job_settings,
    get_settings,
    get_video_settings,
)

__all__ = [
    "ExportSettings",
    "ImageJobSettings",
    "Settings",
    "VideoSettings",
    "get_export_settings",
    "get_image_job_settings",
    "get_settings",
    "get_video_settings",
]
