"""Storage layer — persistence adapters behind the StorageAdapter protocol.

This layer depends on stdlib and SQLAlchemy.
It must never import from pipeline, services, events, or config.
"""

from crudkit.storage.base import StorageAdapter, apply_find_options, iter_page, matches
from crudkit.storage.memory import MemoryStorage
from crudkit.storage.sql import SqlStorage

__all__ = [
    "MemoryStorage",
    "SqlStorage",
    "StorageAdapter",
    "apply_find_options",
    "iter_page",
    "matches",
]
