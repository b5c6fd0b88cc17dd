from __future__ import annotations

import asyncio
import json
import logging
from typing import Iterable

from ..models.event import Event
from ..storage.events import EventStore
from .tracker import NotificationTracker

logger = logging.getLogger("event_reminder.services.events")
audit_logger = logging.getLogger("event_reminder.audit")


class EventRepository:
    """Authoritative in-memory event collection with write-through persistence.

    Events keep insertion order. Every mutation saves the full collection
    before returning, under :attr:`lock`, which the scheduler tick holds as
    well.
    """

    def __init__(self, store: EventStore, tracker: NotificationTracker) -> None:
        self._store = store
        self._tracker = tracker
        self._events: dict[int, Event] = {}
        self._lock = asyncio.Lock()

    @property
    def lock(self) -> asyncio.Lock:
        return self._lock

    async def load(self) -> list[Event]:
        async with self._lock:
            items = await self._store.load()
            self._events = {item.id: item for item in items}
        logger.info("events_loaded count=%s", len(self._events))
        return self.all()

    def all(self) -> list[Event]:
        return list(self._events.values())

    def get(self, event_id: int) -> Event | None:
        return self._events.get(event_id)

    def __len__(self) -> int:
        return len(self._events)

    async def add(self, event: Event) -> None:
        async with self._lock:
            self._events[event.id] = event
            await self._store.save(self._events.values())
        logger.info("event_created id=%s date=%s time=%s", event.id, event.date, event.time)
        audit_logger.info(json.dumps({"event": "EVENT_CREATED", "event_id": event.id}))

    async def update(self, event_id: int, event: Event) -> bool:
        async with self._lock:
            if event_id not in self._events:
                logger.warning("event_update_missing id=%s", event_id)
                return False
            self._events[event_id] = event
            await self._store.save(self._events.values())
        logger.info("event_updated id=%s date=%s time=%s", event_id, event.date, event.time)
        audit_logger.info(json.dumps({"event": "EVENT_UPDATED", "event_id": event_id}))
        return True

    async def remove(self, event_id: int) -> bool:
        async with self._lock:
            removed = self._events.pop(event_id, None)
            self._tracker.forget(event_id)
            if removed is None:
                return False
            await self._store.save(self._events.values())
        logger.info("event_deleted id=%s", event_id)
        audit_logger.info(json.dumps({"event": "EVENT_DELETED", "event_id": event_id}))
        return True

    async def toggle_completed(self, event_id: int) -> Event | None:
        async with self._lock:
            event = self._events.get(event_id)
            if event is None:
                return None
            event.completed = not event.completed
            self._tracker.mark_fired(event_id)
            await self._store.save(self._events.values())
        logger.info("event_toggled id=%s completed=%s", event_id, event.completed)
        audit_logger.info(
            json.dumps({"event": "EVENT_TOGGLED", "event_id": event_id, "completed": event.completed})
        )
        return event

    async def replace_all(self, events: Iterable[Event]) -> None:
        async with self._lock:
            self._events = {event.id: event for event in events}
        logger.info("events_replaced count=%s", len(self._events))
