"""Canonical data contracts for the card news export pipeline."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from utils.exceptions import ValidationError


CANVAS_WIDTH = 1080


class CanvasSize(str, Enum):
    """Output canvas; width is fixed, the size picks the height."""

    SQUARE = "square"
    PORTRAIT_4_5 = "portrait-4:5"
    PORTRAIT_9_16 = "portrait-9:16"


CANVAS_HEIGHTS: Dict[CanvasSize, int] = {
    CanvasSize.SQUARE: 1080,
    CanvasSize.PORTRAIT_4_5: 1350,
    CanvasSize.PORTRAIT_9_16: 1920,
}

# Ratio spellings sent by the editor client.
_CANVAS_ALIASES = {
    "1:1": CanvasSize.SQUARE,
    "4:5": CanvasSize.PORTRAIT_4_5,
    "9:16": CanvasSize.PORTRAIT_9_16,
}


class ExportFormat(str, Enum):
    IMAGES = "images"
    VIDEO = "video"


class VideoTransition(str, Enum):
    FADE = "fade"
    SLIDE = "slide"
    NONE = "none"


class LogoPosition(str, Enum):
    TOP_LEFT = "top-left"
    TOP_RIGHT = "top-right"
    BOTTOM_CENTER = "bottom-center"
    BOTTOM_RIGHT = "bottom-right"


class GridPosition(str, Enum):
    """3x3 anchor grid: {top,middle,bottom} x {left,center,right}."""

    TOP_LEFT = "top-left"
    TOP_CENTER = "top-center"
    TOP_RIGHT = "top-right"
    MIDDLE_LEFT = "middle-left"
    MIDDLE_CENTER = "middle-center"
    MIDDLE_RIGHT = "middle-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_CENTER = "bottom-center"
    BOTTOM_RIGHT = "bottom-right"

    @property
    def row(self) -> str:
        return self.value.split("-", 1)[0]

    @property
    def column(self) -> str:
        return self.value.split("-", 1)[1]


class TextBoxStyle(str, Enum):
    NONE = "none"
    SOLID = "solid"
    OUTLINE = "outline"
    GRADIENT = "gradient"
    BLUR = "blur"


class FontWeight(str, Enum):
    NORMAL = "normal"
    MEDIUM = "medium"
    SEMIBOLD = "semibold"
    BOLD = "bold"
    EXTRABOLD = "extrabold"


def canvas_viewport(canvas_size: CanvasSize) -> Tuple[int, int]:
    """Capture viewport (width, height) in CSS pixels at scale factor 1."""
    return CANVAS_WIDTH, CANVAS_HEIGHTS[CanvasSize(canvas_size)]


class _WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python; either accepted on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class FontSettings(_WireModel):
    font_family: str = "Pretendard, sans-serif"
    small_title_font_size: int = Field(default=24, gt=0)
    headline_font_size: int = Field(default=60, gt=0)
    tags_font_size: int = Field(default=26, gt=0)
    font_color: str = "#FFFFFF"
    font_weight: FontWeight = FontWeight.BOLD


class TextBoxSettings(_WireModel):
    style: TextBoxStyle = TextBoxStyle.BLUR
    position: GridPosition = GridPosition.BOTTOM_LEFT
    background_color: str = "#000000"
    background_opacity: float = Field(default=60, ge=0, le=100)
    gradient_end_color: str = "#FFFFFF"
    border_color: str = "#FFFFFF"
    border_width: int = Field(default=0, ge=0)
    border_radius: int = Field(default=12, ge=0)
    padding: int = Field(default=32, ge=0)


def _sniff_image_mime(raw: bytes) -> str:
    if raw.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if raw.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if raw[:4] == b"RIFF" and raw[8:12] == b"WEBP":
        return "image/webp"
    if raw[:6] in (b"GIF87a", b"GIF89a"):
        return "image/gif"
    return "application/octet-stream"


def image_bytes_to_data_uri(raw: bytes) -> str:
    """Inline raw image bytes so the render surface needs no network fetch."""
    encoded = base64.b64encode(raw).decode("ascii")
    return f"data:{_sniff_image_mime(raw)};base64,{encoded}"


def _normalize_image_source(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
        return image_bytes_to_data_uri(raw) if raw else None
    text = str(value).strip()
    return text or None


class Slide(_WireModel):
    """One card's content. Styling is inherited from the project at render time."""

    id: str
    image_src: Optional[str] = None
    small_title: str = ""
    headline: str = ""
    tags: List[str] = Field(default_factory=list)
    caption: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _non_empty_id(cls, value: Any) -> str:
        text = str(value or "").strip()
        if not text:
            raise ValueError("slide id is required")
        return text

    @field_validator("image_src", mode="before")
    @classmethod
    def _image_source(cls, value: Any) -> Optional[str]:
        return _normalize_image_source(value)

    @field_validator("small_title", "headline", "caption", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        return [str(tag).strip() for tag in value if str(tag or "").strip()]


class ProjectStyle(_WireModel):
    """Project-level style and display toggles merged onto every slide."""

    template_type: Literal["card_news_v1"] = "card_news_v1"
    show_date: bool = True
    show_small_title: bool = False
    small_title_position: GridPosition = GridPosition.TOP_LEFT
    show_headline: bool = True
    show_tags: bool = True
    enable_overlay: bool = False
    overlay_opacity: float = Field(default=30, ge=0, le=100)
    enable_text_background: bool = True
    font_settings: FontSettings = Field(default_factory=FontSettings)
    text_box_settings: TextBoxSettings = Field(default_factory=TextBoxSettings)
    logo_src: Optional[str] = None
    logo_position: LogoPosition = LogoPosition.TOP_LEFT

    @field_validator("logo_src", mode="before")
    @classmethod
    def _logo_source(cls, value: Any) -> Optional[str]:
        return _normalize_image_source(value)


class Project(ProjectStyle):
    """The unit of export: ordered slides plus global style and export mode."""

    canvas_size: CanvasSize = CanvasSize.PORTRAIT_4_5
    slides: List[Slide] = Field(min_length=1)
    export_format: ExportFormat = ExportFormat.IMAGES
    video_duration: Optional[float] = Field(default=None, gt=0, le=60)
    video_transition: VideoTransition = VideoTransition.FADE

    @field_validator("canvas_size", mode="before")
    @classmethod
    def _canvas_alias(cls, value: Any) -> Any:
        if isinstance(value, str):
            return _CANVAS_ALIASES.get(value.strip(), value.strip())
        return value

    @property
    def viewport(self) -> Tuple[int, int]:
        return canvas_viewport(self.canvas_size)


class RenderPayload(Slide, ProjectStyle):
    """Flattened slide content + project style: the only render surface input."""


def build_render_payload(project: Project, slide: Slide) -> RenderPayload:
    """Merge project-level style fields onto one slide."""
    merged: Dict[str, Any] = {name: getattr(project, name) for name in ProjectStyle.model_fields}
    merged.update({name: getattr(slide, name) for name in Slide.model_fields})
    return RenderPayload.model_validate(merged)


def parse_project(data: Any) -> Project:
    """Validate raw request data into a Project, raising the export ValidationError."""
    if isinstance(data, Project):
        return data
    try:
        return Project.model_validate(data)
    except PydanticValidationError as exc:
        problems = [
            f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', '')}"
            for err in exc.errors()
        ]
        raise ValidationError("Invalid project", {"errors": problems}) from exc


@dataclass
class CapturedFrame:
    """One rasterised slide in the scratch directory."""

    index: int
    slide_id: str
    path: Path
    batch_id: str


class ImageExportResult(_WireModel):
    image_urls: List[str] = Field(default_factory=list)

    def to_response(self) -> Dict[str, Any]:
        return {"success": True, **self.to_wire()}


class VideoExportResult(_WireModel):
    video_url: str
    duration: float

    def to_response(self) -> Dict[str, Any]:
        return {"success": True, **self.to_wire()}
