from __future__ import annotations

from ..config import StorageConfig
from .base import JsonFileStore, KeyValueStore, SQLiteStore


def create_store(config: StorageConfig) -> KeyValueStore:
    if config.backend == "sqlite":
        return SQLiteStore(config.db_path)
    return JsonFileStore(config.data_dir)
