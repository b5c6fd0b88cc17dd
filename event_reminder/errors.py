"""Exception hierarchy shared by the reminder engine."""
from __future__ import annotations

from typing import Iterable


class EventReminderError(Exception):
    """Base class for engine errors."""


class InvalidEventInput(EventReminderError, ValueError):
    """Raised when a create or edit request misses required fields."""

    def __init__(self, message: str, *, fields: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.fields = tuple(fields)


class MalformedEventTimestamp(EventReminderError, ValueError):
    """Raised when an event's date and time do not form a valid instant."""

    def __init__(self, event_id: int | None, date: str, time: str) -> None:
        super().__init__(f"event {event_id}: cannot combine date={date!r} time={time!r}")
        self.event_id = event_id
        self.date = date
        self.time = time


class StorageReadError(EventReminderError):
    """Durable payload is missing or cannot be decoded."""


class StorageWriteError(EventReminderError):
    """Durable payload could not be written."""


class NotificationError(EventReminderError):
    """A system-level alert could not be raised."""
