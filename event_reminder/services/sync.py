from __future__ import annotations

import json
import logging
import sqlite3
from typing import Hashable

from ..errors import StorageReadError
from ..storage.events import EventStore, decode_events
from .events import EventRepository

logger = logging.getLogger("event_reminder.services.sync")
audit_logger = logging.getLogger("event_reminder.audit")


class CrossInstanceSync:
    """Replace the repository with a payload written by another instance.

    Last writer wins: no merge, no retention filtering and no write-back.
    """

    def __init__(self, repository: EventRepository) -> None:
        self._repository = repository

    async def apply(self, raw: str | None) -> bool:
        if raw is None or not raw.strip():
            await self._repository.replace_all([])
            audit_logger.info(json.dumps({"event": "STORE_SYNCED", "count": 0}))
            return True
        try:
            events = decode_events(raw)
        except StorageReadError as exc:
            logger.warning("sync_payload_rejected error=%s", exc)
            return False
        await self._repository.replace_all(events)
        audit_logger.info(json.dumps({"event": "STORE_SYNCED", "count": len(events)}))
        return True


class StoreWatcher:
    """Detect writes to the shared store made by other instances."""

    def __init__(self, store: EventStore, sync: CrossInstanceSync) -> None:
        self._store = store
        self._sync = sync
        self._seen: Hashable | None = None

    async def prime(self) -> None:
        self._seen = await self._store.revision()

    async def poll(self) -> bool:
        try:
            revision = await self._store.revision()
            if revision == self._seen:
                return False
            self._seen = revision
            if revision is not None and revision == self._store.last_written_revision:
                return False
            raw = await self._store.read_raw()
        except (OSError, sqlite3.Error) as exc:
            logger.warning("store_watch_failed error=%r", exc)
            return False
        except StorageReadError as exc:
            logger.warning("sync_payload_rejected error=%s", exc)
            return False
        logger.info("store_changed_externally key=%s", self._store.key)
        return await self._sync.apply(raw)
