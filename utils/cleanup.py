"""
Best-effort artifact removal.
Failures are reported as CleanupWarning and logged; they never abort a request.
"""

from __future__ import annotations

import logging
from pathlib import Path
import shutil
from typing import Iterable, List
import warnings

from .exceptions import CleanupWarning


logger = logging.getLogger(__name__)


def _report(path: Path, exc: BaseException) -> None:
    message = f"failed to remove {path}: {exc}"
    logger.warning(message)
    warnings.warn(message, CleanupWarning, stacklevel=3)


def remove_file(path: Path) -> bool:
    try:
        Path(path).unlink(missing_ok=True)
        return True
    except OSError as exc:
        _report(Path(path), exc)
        return False


def remove_files(paths: Iterable[Path]) -> List[Path]:
    """Remove every path; returns the ones that could not be deleted."""
    return [Path(path) for path in paths if not remove_file(path)]


def remove_tree(path: Path) -> bool:
    target = Path(path)
    if not target.exists():
        return True
    try:
        shutil.rmtree(target)
        return True
    except OSError as exc:
        _report(target, exc)
        return False
