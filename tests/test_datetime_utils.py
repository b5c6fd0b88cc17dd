from datetime import timezone

import pytest

from event_reminder.errors import InvalidEventInput, MalformedEventTimestamp
from event_reminder.models.event import Event, validate_event_fields
from event_reminder.utils import datetime as dt_utils


def test_combine_date_time_returns_utc():
    combined = dt_utils.combine_date_time("2024-10-01", "10:30", dt_utils.resolve_timezone("Europe/Moscow"))
    assert combined.tzinfo == timezone.utc
    assert combined.hour == 7
    assert combined.minute == 30


def test_combine_date_time_defaults_to_local_zone():
    combined = dt_utils.combine_date_time("2024-10-01", "10:30")
    assert combined.tzinfo == timezone.utc
    assert combined.astimezone().hour == 10


def test_combine_date_time_rejects_offsets():
    with pytest.raises(ValueError):
        dt_utils.combine_date_time("2024-10-01", "10:30+02:00")


def test_scheduled_at_wraps_parse_errors():
    event = Event(id=9, title="x", date="2024-02-30", time="10:00")
    with pytest.raises(MalformedEventTimestamp) as excinfo:
        event.scheduled_at(timezone.utc)
    assert excinfo.value.event_id == 9


def test_from_payload_fills_optional_fields():
    event = Event.from_payload({"id": 1.0, "title": "t", "date": "2025-01-01", "time": "10:00"})
    assert event == Event(id=1, title="t", date="2025-01-01", time="10:00")
    assert "createdAt" not in event.to_payload()


def test_validate_reports_every_missing_field():
    with pytest.raises(InvalidEventInput) as excinfo:
        validate_event_fields(" ", None, "10:00")
    assert excinfo.value.fields == ("title", "date")
