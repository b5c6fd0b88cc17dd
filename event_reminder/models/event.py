from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, tzinfo
from typing import Any, Mapping

from ..errors import InvalidEventInput, MalformedEventTimestamp
from ..utils.datetime import combine_date_time


EDITABLE_FIELDS = ("title", "description", "date", "time")
REQUIRED_FIELDS = ("title", "date", "time")


@dataclass(slots=True)
class Event:
    id: int
    title: str
    date: str
    time: str
    description: str = ""
    completed: bool = False
    created_at: int | None = None

    def scheduled_at(self, tz: tzinfo | None = None) -> datetime:
        """Return the event instant as an aware UTC datetime.

        Raises :class:`MalformedEventTimestamp` when ``date``/``time`` do not
        combine into a valid instant.
        """

        try:
            return combine_date_time(self.date, self.time, tz)
        except (TypeError, ValueError, AttributeError) as exc:
            raise MalformedEventTimestamp(self.id, self.date, self.time) from exc

    def with_changes(self, **fields: Any) -> "Event":
        unknown = sorted(set(fields) - set(EDITABLE_FIELDS))
        if unknown:
            raise InvalidEventInput(
                f"fields cannot be edited: {', '.join(unknown)}", fields=unknown
            )
        return replace(self, **fields)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "date": self.date,
            "time": self.time,
            "completed": self.completed,
        }
        if self.created_at is not None:
            payload["createdAt"] = self.created_at
        return payload

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "Event":
        """Build an event from its stored JSON object.

        Raises ``KeyError``/``TypeError``/``ValueError`` on a malformed entry:
        a missing key, a blank or non-string title/date/time, a non-integral
        id or ``createdAt``, or a ``completed`` flag that is not a boolean.
        """

        completed = data.get("completed", False)
        if not isinstance(completed, bool):
            raise TypeError(f"completed must be a boolean, got {completed!r}")
        description = data.get("description")
        if description is not None and not isinstance(description, str):
            raise TypeError(f"description must be a string, got {description!r}")
        created_at = data.get("createdAt")
        return cls(
            id=_stored_int(data["id"], "id"),
            title=_stored_text(data["title"], "title"),
            date=_stored_text(data["date"], "date"),
            time=_stored_text(data["time"], "time"),
            description=description or "",
            completed=completed,
            created_at=_stored_int(created_at, "createdAt") if created_at is not None else None,
        )


def _stored_text(value: Any, name: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a string, got {value!r}")
    if not value.strip():
        raise ValueError(f"{name} must not be blank")
    return value


def _stored_int(value: Any, name: str) -> int:
    # JSON numbers arrive as int or float; 1e400 parses to inf.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{name} must be a number, got {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"{name} must be an integer, got {value!r}")
    return int(value)


def validate_event_fields(title: str | None, date: str | None, time: str | None) -> None:
    """Reject a draft that misses title, date or time."""

    values = {"title": title, "date": date, "time": time}
    missing = [name for name in REQUIRED_FIELDS if not (values[name] or "").strip()]
    if missing:
        raise InvalidEventInput(
            "Please fill in at least title, date, and time.", fields=missing
        )
