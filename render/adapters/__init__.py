"""Remote generation adapters package."""

from .base import BaseImageGenerator, ImageJobResult
from .image_jobs import KieImageJobClient

__all__ = [
    "BaseImageGenerator",
    "ImageJobResult",
    "KieImageJobClient",
]
