# src/verser/storage/__init__.py
"""Pluggable persistence backends."""

from __future__ import annotations

from functools import lru_cache

from verser.core.settings import settings

from .base import Storage, StorageError
from .memory import MemoryStorage
from .sql import SqlStorage

__all__ = ["MemoryStorage", "SqlStorage", "Storage", "StorageError", "get_storage"]


@lru_cache
def get_storage() -> Storage:
    """Return the process-wide storage backend selected by ``STORAGE_BACKEND``."""
    if settings.storage_backend == "memory":
        return MemoryStorage()
    return SqlStorage()
