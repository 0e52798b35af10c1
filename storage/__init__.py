"""
Storage Module
Published artifact storage.
"""
from .export_store import ExportStore

__all__ = [
    "ExportStore",
]
