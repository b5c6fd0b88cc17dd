from __future__ import annotations

import asyncio
import os
import sqlite3
from pathlib import Path
from typing import Hashable, Protocol


class KeyValueStore(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> Hashable | None: ...

    async def revision(self, key: str) -> Hashable | None: ...


class JsonFileStore:
    """One ``<key>.json`` file per key inside ``directory``.

    Writes land in a temporary sibling that is renamed over the target, so a
    concurrent reader sees either the old blob or the new one.
    """

    def __init__(self, directory: Path) -> None:
        self._directory = directory
        self._lock = asyncio.Lock()
        self._directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        return self._directory / f"{key}.json"

    async def get(self, key: str) -> str | None:
        async with self._lock:
            path = self.path_for(key)
            if not path.exists():
                return None
            return path.read_text(encoding="utf-8")

    async def set(self, key: str, value: str) -> tuple[int, int] | None:
        async with self._lock:
            path = self.path_for(key)
            tmp = path.with_name(f"{path.name}.{os.getpid()}.tmp")
            tmp.write_text(value, encoding="utf-8")
            tmp.replace(path)
            return self._stat(path)

    async def revision(self, key: str) -> tuple[int, int] | None:
        return self._stat(self.path_for(key))

    @staticmethod
    def _stat(path: Path) -> tuple[int, int] | None:
        try:
            stat = path.stat()
        except FileNotFoundError:
            return None
        return stat.st_mtime_ns, stat.st_size


class SQLiteStore:
    """Key-value rows in a single SQLite table with a per-key revision counter."""

    def __init__(self, path: Path, table: str = "kv") -> None:
        self._path = path
        self._table = table
        self._lock = asyncio.Lock()
        path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize()

    def _initialize(self) -> None:
        with sqlite3.connect(self._path) as conn:
            conn.execute(
                f"CREATE TABLE IF NOT EXISTS {self._table} (\n"
                "    key TEXT PRIMARY KEY,\n"
                "    payload TEXT NOT NULL,\n"
                "    revision INTEGER NOT NULL DEFAULT 1\n"
                ")"
            )
            conn.commit()

    async def get(self, key: str) -> str | None:
        async with self._lock:
            row = await asyncio.to_thread(self._fetch_row, key)
        return None if row is None else row[0]

    async def set(self, key: str, value: str) -> int:
        async with self._lock:
            return await asyncio.to_thread(self._write_row, key, value)

    async def revision(self, key: str) -> int | None:
        async with self._lock:
            row = await asyncio.to_thread(self._fetch_row, key)
        return None if row is None else row[1]

    def _fetch_row(self, key: str) -> tuple[str, int] | None:
        conn = sqlite3.connect(self._path)
        try:
            cursor = conn.execute(
                f"SELECT payload, revision FROM {self._table} WHERE key = ?", (key,)
            )
            return cursor.fetchone()
        finally:
            conn.close()

    def _write_row(self, key: str, value: str) -> int:
        conn = sqlite3.connect(self._path)
        try:
            with conn:
                conn.execute(
                    f"INSERT INTO {self._table} (key, payload, revision) VALUES (?, ?, 1)\n"
                    "ON CONFLICT(key) DO UPDATE SET\n"
                    "    payload = excluded.payload,\n"
                    f"    revision = {self._table}.revision + 1",
                    (key, value),
                )
                cursor = conn.execute(
                    f"SELECT revision FROM {self._table} WHERE key = ?", (key,)
                )
                return cursor.fetchone()[0]
        finally:
            conn.close()
