"""
Settings Configuration
Pydantic-backed configuration for the export pipeline.
"""
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


ROOT_DIR = Path(__file__).resolve().parents[1]


class ExportSettings(BaseSettings):
    """Capture and publication settings"""
    base_url: str = Field(default="http://localhost:3000", description="Public base URL for published artifacts")
    render_url: Optional[str] = Field(default=None, description="Render surface URL (defaults to {base_url}/render)")
    exports_dir: Path = Field(default=ROOT_DIR / "public" / "exports", description="Served directory for published artifacts")
    scratch_dir: Path = Field(default=ROOT_DIR / "public" / "exports" / "temp", description="Root for request-scoped scratch dirs")
    export_timeout_s: float = Field(default=300.0, description="Overall deadline for one export")
    settle_delay_ms: int = Field(default=300, description="Fallback wait when no paint ack arrives")
    paint_ack_timeout_ms: int = Field(default=5000, description="How long to wait for the surface paint ack")
    navigation_timeout_ms: int = Field(default=30000, description="Render surface navigation timeout")
    browser_no_sandbox: bool = Field(default=False, description="Pass --no-sandbox (containerised deployments only)")

    class Config:
        env_prefix = "CARDNEWS_"

    @property
    def resolved_render_url(self) -> str:
        if self.render_url:
            return self.render_url
        return f"{self.base_url.rstrip('/')}/render"


class VideoSettings(BaseSettings):
    """Encoder settings"""
    ffmpeg_path: Optional[str] = Field(default=None, description="ffmpeg binary (PATH lookup when empty)")
    ffprobe_path: Optional[str] = Field(default=None, description="ffprobe binary (PATH lookup when empty)")
    fps: int = Field(default=30)
    codec: str = Field(default="libx264")
    pix_fmt: str = Field(default="yuv420p")
    crf: int = Field(default=23)
    preset: str = Field(default="medium")
    fade_duration_s: float = Field(default=0.5, description="Cross-fade window at the tail of each slide")
    encode_timeout_s: float = Field(default=240.0)
    default_duration_s: float = Field(default=3.0, description="Per-slide duration when the project omits it")

    class Config:
        env_prefix = "VIDEO_"


class ImageJobSettings(BaseSettings):
    """Third-party image generation job API"""
    api_key: Optional[str] = Field(default=None, description="Job API bearer token")
    base_url: str = Field(default="https://api.kie.ai/api/v1/jobs")
    model: str = Field(default="nano-banana-pro")
    aspect_ratio: str = Field(default="3:4")
    resolution: str = Field(default="1K")
    output_format: str = Field(default="png")
    poll_interval_s: float = Field(default=1.0)
    max_attempts: int = Field(default=60)
    request_timeout_s: float = Field(default=30.0)

    class Config:
        env_prefix = "KIE_"


class Settings(BaseSettings):
    """Aggregated settings"""

    export: ExportSettings = Field(default_factory=ExportSettings)
    video: VideoSettings = Field(default_factory=VideoSettings)
    image_jobs: ImageJobSettings = Field(default_factory=ImageJobSettings)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @classmethod
    def load_from_env_file(cls, env_path: Optional[Path] = None) -> "Settings":
        """Load settings, reading config/.env into the environment first when present."""
        if env_path is None:
            env_path = Path(__file__).parent / ".env"

        if env_path.exists():
            from dotenv import load_dotenv
            load_dotenv(env_path)

        return cls(
            export=ExportSettings(),
            video=VideoSettings(),
            image_jobs=ImageJobSettings(),
        )


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings singleton."""
    return Settings.load_from_env_file()


def get_export_settings() -> ExportSettings:
    return get_settings().export


def get_video_settings() -> VideoSettings:
    return get_settings().video


def get_image_job_settings() -> ImageJobSettings:
    return get_settings().image_jobs
