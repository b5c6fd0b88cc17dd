from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Iterable

from ..errors import MalformedEventTimestamp
from ..models.event import Event
from .datetime import now_utc, to_local


def _sort_key(event: Event, tz: tzinfo | None) -> tuple[int, float]:
    try:
        return 0, event.scheduled_at(tz).timestamp()
    except MalformedEventTimestamp:
        return 1, 0.0


def sorted_for_display(events: Iterable[Event], tz: tzinfo | None = None) -> list[Event]:
    """Order events by scheduled instant; unparsable ones go last."""

    return sorted(events, key=lambda event: _sort_key(event, tz))


def is_past(event: Event, *, now: datetime | None = None, tz: tzinfo | None = None) -> bool:
    try:
        return event.scheduled_at(tz) < (now or now_utc())
    except MalformedEventTimestamp:
        return False


def format_event_line(
    event: Event,
    *,
    tz: tzinfo | None = None,
    now: datetime | None = None,
) -> str:
    """Return a short human-friendly description of an event."""

    try:
        prefix = to_local(event.scheduled_at(tz), tz).strftime("%Y-%m-%d %H:%M")
    except MalformedEventTimestamp:
        prefix = f"{event.date} {event.time} (invalid)"
    marks = "[x]" if event.completed else "[ ]"
    line = f"{marks} {event.id}  {prefix}  {event.title}"
    if event.description:
        line = f"{line} · {event.description}"
    if not event.completed and is_past(event, now=now, tz=tz):
        line = f"{line} (past)"
    return line
