"""
Utils Module
Logging and error taxonomy shared by every stage.
"""
from .logger import setup_logger
from .exceptions import (
    CardNewsError,
    CleanupWarning,
    ConfigurationError,
    EncodeStageError,
    ExportTimeoutError,
    RemoteJobError,
    RemoteJobTimeout,
    RenderStageError,
    ValidationError,
)

__all__ = [
    "setup_logger",
    "CardNewsError",
    "CleanupWarning",
    "ConfigurationError",
    "EncodeStageError",
    "ExportTimeoutError",
    "RemoteJobError",
    "RemoteJobTimeout",
    "RenderStageError",
    "ValidationError",
]
