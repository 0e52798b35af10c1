"""
Export Store
Publishes finished artifacts into the served exports directory.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
import shutil
from typing import Optional

from config import ExportSettings, get_export_settings


logger = logging.getLogger(__name__)


class ExportStore:
    """Served directory of published PNG/MP4 artifacts."""

    def __init__(self, settings: Optional[ExportSettings] = None):
        self.settings = settings or get_export_settings()
        self.root = Path(self.settings.exports_dir)

    def ensure_dirs(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        Path(self.settings.scratch_dir).mkdir(parents=True, exist_ok=True)

    def path_for(self, name: str) -> Path:
        safe = Path(name).name
        if not safe or safe != name:
            raise ValueError(f"invalid artifact name: {name!r}")
        return self.root / safe

    def public_url(self, name: str) -> str:
        return f"{self.settings.base_url.rstrip('/')}/exports/{name}"

    def publish(self, source: Path, name: str) -> str:
        """Move `source` into the exports dir under `name` and return its public URL."""
        target = self.path_for(name)
        self.root.mkdir(parents=True, exist_ok=True)
        partial = target.with_name(f".{target.name}.partial")
        shutil.copyfile(source, partial)
        os.replace(partial, target)
        logger.info("Published %s", target.name)
        return self.public_url(target.name)

    def unpublish(self, name: str) -> None:
        self.path_for(name).unlink(missing_ok=True)
