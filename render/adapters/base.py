"""Image generation adapter abstractions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class ImageJobResult:
    """Outcome of one remote generation job."""

    task_id: str
    image_url: str
    polls: int = 0


class BaseImageGenerator:
    """Base adapter that can be replaced by a real job API client or mocks."""

    provider = "base"

    async def generate_image(self, prompt: str, *, aspect_ratio: Optional[str] = None) -> str:
        raise NotImplementedError
