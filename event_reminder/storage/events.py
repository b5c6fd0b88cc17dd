from __future__ import annotations

import json
import logging
import sqlite3
from typing import Callable, Hashable, Iterable

from ..errors import StorageReadError, StorageWriteError
from ..models.event import Event
from ..utils.datetime import days_ms, now_ms
from .base import KeyValueStore

logger = logging.getLogger("event_reminder.storage.events")
error_logger = logging.getLogger("event_reminder.error")
audit_logger = logging.getLogger("event_reminder.audit")

STORAGE_KEY = "event_reminder_events"
RETENTION_DAYS = 30


def encode_events(events: Iterable[Event]) -> str:
    return json.dumps([event.to_payload() for event in events], ensure_ascii=False)


def decode_events(raw: str | None) -> list[Event]:
    """Parse a stored JSON array into events.

    Raises :class:`StorageReadError` when the payload is absent or any entry
    is malformed; the whole payload is rejected in that case.
    """

    if raw is None or not raw.strip():
        raise StorageReadError("no stored events")
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise StorageReadError(f"stored events are not valid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise StorageReadError("stored events must be a JSON array")
    events: list[Event] = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise StorageReadError(f"entry {index} is not an object")
        try:
            events.append(Event.from_payload(item))
        except (KeyError, TypeError, ValueError, OverflowError) as exc:
            raise StorageReadError(f"entry {index} is malformed: {exc!r}") from exc
    return events


class EventStore:
    """Durable copy of the event collection under a single key."""

    def __init__(
        self,
        backend: KeyValueStore,
        *,
        key: str = STORAGE_KEY,
        retention_days: int = RETENTION_DAYS,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._backend = backend
        self._key = key
        self._retention_ms = days_ms(retention_days)
        self._clock = clock
        self._last_written: Hashable | None = None

    @property
    def key(self) -> str:
        return self._key

    @property
    def last_written_revision(self) -> Hashable | None:
        return self._last_written

    async def load(self) -> list[Event]:
        try:
            raw = await self.read_raw()
            if raw is None:
                logger.info("storage_empty key=%s", self._key)
                return []
            events = decode_events(raw)
        except (OSError, sqlite3.Error) as exc:
            error_logger.warning("storage_read_failed key=%s error=%r", self._key, exc)
            return []
        except StorageReadError as exc:
            error_logger.warning("storage_read_failed key=%s error=%s", self._key, exc)
            return []

        kept = self._apply_retention(events)
        evicted = len(events) - len(kept)
        if evicted:
            logger.info("events_evicted count=%s key=%s", evicted, self._key)
            audit_logger.info(json.dumps({"event": "EVENTS_EVICTED", "count": evicted}))
            await self.save(kept)
        return kept

    async def write(self, events: Iterable[Event]) -> None:
        """Overwrite the stored blob, raising :class:`StorageWriteError` on failure."""

        payload = encode_events(events)
        try:
            self._last_written = await self._backend.set(self._key, payload)
        except (OSError, sqlite3.Error) as exc:
            raise StorageWriteError(f"failed to write key={self._key}: {exc!r}") from exc

    async def save(self, events: Iterable[Event]) -> None:
        try:
            await self.write(events)
        except StorageWriteError as exc:
            error_logger.error("storage_write_failed %s", exc)

    async def read_raw(self) -> str | None:
        try:
            return await self._backend.get(self._key)
        except UnicodeDecodeError as exc:
            raise StorageReadError(f"stored events are not valid UTF-8: {exc}") from exc

    async def revision(self) -> Hashable | None:
        return await self._backend.revision(self._key)

    def _apply_retention(self, events: list[Event]) -> list[Event]:
        now = self._clock()
        return [
            event
            for event in events
            if event.created_at is None or now - event.created_at <= self._retention_ms
        ]
