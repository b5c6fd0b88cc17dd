import asyncio
from datetime import timezone

import pytest

from conftest import NOW, NOW_MS
from event_reminder.config import AlertConfig, Config, StorageConfig, SyncConfig
from event_reminder.core.engine import ReminderEngine
from event_reminder.errors import InvalidEventInput
from event_reminder.jobs.scheduler import REMINDER_JOB_ID, SYNC_JOB_ID
from event_reminder.models.event import Event
from event_reminder.utils.texts import format_event_line, is_past, sorted_for_display


@pytest.mark.parametrize(
    "title, date, time",
    [("", "2025-01-01", "10:00"), ("   ", "2025-01-01", "10:00"), ("Dentist", "", "10:00"), ("Dentist", "2025-01-01", "")],
)
def test_create_rejects_missing_fields(make_engine, title, date, time):
    async def scenario():
        engine = make_engine()
        with pytest.raises(InvalidEventInput):
            await engine.create_event(title, "", date, time)
        assert engine.list_events() == []

    asyncio.run(scenario())


def test_create_assigns_timestamp_id_and_defaults(make_engine, ms_clock):
    async def scenario():
        engine = make_engine()
        first = await engine.create_event("Dentist", None, "2025-01-01", "10:00")
        second = await engine.create_event("Barber", "", "2025-01-01", "11:00")

        assert first.id == NOW_MS
        assert first.created_at == NOW_MS
        assert first.description == ""
        assert first.completed is False
        assert second.id == NOW_MS + 1

    asyncio.run(scenario())


def test_edit_changes_fields_but_keeps_identity(make_engine):
    async def scenario():
        engine = make_engine()
        event = await engine.create_event("Dentist", "", "2025-01-01", "10:00")
        await engine.toggle_complete(event.id)

        assert await engine.edit_event(event.id, title="Orthodontist", time="10:30") is True

        edited = engine.repository.get(event.id)
        assert edited.title == "Orthodontist"
        assert edited.time == "10:30"
        assert edited.date == "2025-01-01"
        assert edited.completed is True
        assert edited.created_at == NOW_MS

    asyncio.run(scenario())


def test_edit_validation(make_engine):
    async def scenario():
        engine = make_engine()
        event = await engine.create_event("Dentist", "", "2025-01-01", "10:00")

        with pytest.raises(InvalidEventInput):
            await engine.edit_event(event.id, title="")
        with pytest.raises(InvalidEventInput):
            await engine.edit_event(event.id, id=5)
        with pytest.raises(InvalidEventInput):
            await engine.edit_event(event.id, created_at=1)

        assert engine.repository.get(event.id).title == "Dentist"
        assert await engine.edit_event(123, title="Nobody") is False

    asyncio.run(scenario())


def test_start_and_shutdown_manage_both_jobs(make_engine, notifier):
    async def scenario():
        engine = make_engine()
        await engine.start()
        try:
            assert engine.running
            assert sorted(engine._jobs.job_ids()) == sorted([REMINDER_JOB_ID, SYNC_JOB_ID])
            assert notifier.probed == 1
        finally:
            await engine.shutdown()
        assert not engine.running
        assert engine._jobs.job_ids() == []
        await engine.shutdown()

    asyncio.run(scenario())


def test_engine_as_context_manager_loads_store(make_engine, make_store):
    async def scenario():
        store = make_store()
        await store.save([Event(id=1, title="Saved", date="2025-01-01", time="10:00", created_at=NOW_MS)])
        async with make_engine(store=store) as engine:
            assert [event.title for event in engine.list_events()] == ["Saved"]
        assert not engine.running

    asyncio.run(scenario())


def test_from_config_uses_sqlite_backend(tmp_path, notifier, sound):
    async def scenario():
        config = Config(
            storage=StorageConfig(data_dir=tmp_path / "data", backend="sqlite"),
            logs_dir=tmp_path / "logs",
            alerts=AlertConfig(notifications=False),
            sync=SyncConfig(poll_seconds=0.5),
        )
        engine = ReminderEngine.from_config(config, notifier=notifier, sound=sound)
        await engine.load()
        await engine.create_event("Persisted", "", "2025-01-01", "10:00")

        again = ReminderEngine.from_config(config, notifier=notifier, sound=sound)
        await again.load()
        assert [event.title for event in again.list_events()] == ["Persisted"]
        assert (tmp_path / "data" / "events.db").exists()

    asyncio.run(scenario())


def test_display_helpers_sort_and_flag_past():
    events = [
        Event(id=1, title="late", date="2025-01-03", time="09:00"),
        Event(id=2, title="broken", date="bad", time="09:00"),
        Event(id=3, title="early", date="2024-12-31", time="23:00"),
    ]
    utc = timezone.utc

    ordered = sorted_for_display(events, utc)

    assert [event.id for event in ordered] == [3, 1, 2]
    assert is_past(events[2], now=NOW, tz=utc)
    assert not is_past(events[0], now=NOW, tz=utc)
    assert not is_past(events[1], now=NOW, tz=utc)
    assert format_event_line(events[2], tz=utc, now=NOW).endswith("(past)")
    assert "(invalid)" in format_event_line(events[1], tz=utc, now=NOW)
