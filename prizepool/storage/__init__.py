# prizepool/storage/__init__.py
from __future__ import annotations

from prizepool.config.settings import Settings
from prizepool.database.session import Database

from .base import KeyValueStore, StoredValue
from .file import FileKeyValueStore
from .memory import MemoryKeyValueStore
from .sql import SqlKeyValueStore


def build_store(settings: Settings, db: Database) -> KeyValueStore:
    if settings.state_backend == "file":
        return FileKeyValueStore(settings.data_dir)
    if settings.state_backend == "memory":
        return MemoryKeyValueStore()
    return SqlKeyValueStore(db)


__all__ = [
    "FileKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SqlKeyValueStore",
    "StoredValue",
    "build_store",
]
