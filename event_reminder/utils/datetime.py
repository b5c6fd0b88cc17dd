from __future__ import annotations

import time as _time
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo


UTC = timezone.utc


def now_utc() -> datetime:
    return datetime.now(tz=UTC)


def now_ms() -> int:
    return int(_time.time() * 1000)


def days_ms(days: int) -> int:
    return int(timedelta(days=days).total_seconds() * 1000)


def resolve_timezone(tz_name: str | None) -> tzinfo | None:
    """Return a ``ZoneInfo`` for ``tz_name`` or ``None`` for the system zone."""

    if not tz_name:
        return None
    return ZoneInfo(tz_name)


def combine_date_time(date_value: str, time_value: str, tz: tzinfo | None = None) -> datetime:
    """Combine ISO date and wall-clock time strings into an aware UTC datetime.

    ``tz`` defaults to the local timezone of the running process. Raises
    ``ValueError`` for strings that do not parse.
    """

    day = date.fromisoformat(date_value.strip())
    clock = time.fromisoformat(time_value.strip())
    if clock.tzinfo is not None:
        raise ValueError("event time must not carry a UTC offset")
    if tz is None:
        combined = datetime.combine(day, clock).astimezone()
    else:
        combined = datetime.combine(day, clock, tzinfo=tz)
    return combined.astimezone(UTC)


def to_local(dt: datetime, tz: tzinfo | None = None) -> datetime:
    if tz is None:
        return dt.astimezone()
    return dt.astimezone(tz)
