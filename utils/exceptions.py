"""
Custom Exceptions
Error taxonomy for the export pipeline.
"""

from typing import Optional


class CardNewsError(Exception):
    """Base error for the card news export service."""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(CardNewsError):
    """Missing or invalid runtime configuration."""
    pass


class ValidationError(CardNewsError):
    """Malformed project rejected before any expensive work."""
    pass


class RenderStageError(CardNewsError):
    """Browser launch / navigation / injection / capture failure."""

    def __init__(self, message: str, stage: str = "capture", slide_index: Optional[int] = None, **kwargs):
        if slide_index is not None:
            kwargs.setdefault("slide_index", slide_index)
        super().__init__(message, kwargs)
        self.stage = stage
        self.slide_index = slide_index


class EncodeStageError(CardNewsError):
    """Video encoder failure (nonzero exit, missing binary, bad playlist)."""

    def __init__(self, message: str, stderr_tail: str = "", **kwargs):
        super().__init__(message, kwargs)
        self.stage = "encode"
        self.stderr_tail = stderr_tail


class ExportTimeoutError(CardNewsError):
    """The overall export deadline expired."""

    def __init__(self, message: str, timeout_s: float = 0.0, **kwargs):
        super().__init__(message, kwargs)
        self.stage = "deadline"
        self.timeout_s = timeout_s


class RemoteJobError(CardNewsError):
    """Third-party generation job failed or returned a malformed result."""

    def __init__(self, message: str, task_id: Optional[str] = None, **kwargs):
        super().__init__(message, kwargs)
        self.task_id = task_id


class RemoteJobTimeout(RemoteJobError):
    """Polling ceiling exhausted before the remote job finished."""

    def __init__(self, message: str, task_id: Optional[str] = None, attempts: int = 0, **kwargs):
        super().__init__(message, task_id=task_id, **kwargs)
        self.attempts = attempts


class CleanupWarning(UserWarning):
    """Best-effort artifact deletion failed. Logged, never raised."""
