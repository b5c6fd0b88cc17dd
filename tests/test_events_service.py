import asyncio

from event_reminder.models.event import Event
from event_reminder.services.events import EventRepository
from event_reminder.services.tracker import NotificationTracker
from event_reminder.storage.events import decode_events


def _repository(make_store):
    store = make_store()
    tracker = NotificationTracker()
    return EventRepository(store, tracker), store, tracker


async def _stored_ids(store):
    return [event.id for event in decode_events(await store.read_raw())]


def test_every_mutation_writes_through(make_store):
    async def scenario():
        repository, store, _ = _repository(make_store)
        await repository.add(Event(id=1, title="a", date="2025-01-01", time="10:00"))
        await repository.add(Event(id=2, title="b", date="2025-01-01", time="11:00"))
        assert await _stored_ids(store) == [1, 2]

        await repository.update(1, Event(id=1, title="a2", date="2025-01-01", time="10:30"))
        stored = decode_events(await store.read_raw())
        assert [event.title for event in stored] == ["a2", "b"]

        await repository.toggle_completed(2)
        assert decode_events(await store.read_raw())[1].completed is True

        await repository.remove(1)
        assert await _stored_ids(store) == [2]

    asyncio.run(scenario())


def test_update_of_missing_id_is_a_no_op(make_store):
    async def scenario():
        repository, store, _ = _repository(make_store)
        await repository.add(Event(id=1, title="a", date="2025-01-01", time="10:00"))
        revision = await store.revision()

        updated = await repository.update(99, Event(id=99, title="x", date="2025-01-01", time="10:00"))

        assert updated is False
        assert [event.id for event in repository.all()] == [1]
        assert await store.revision() == revision

    asyncio.run(scenario())


def test_remove_forgets_tracker_state(make_store):
    async def scenario():
        repository, _, tracker = _repository(make_store)
        await repository.add(Event(id=5, title="a", date="2025-01-01", time="10:00"))
        tracker.mark_fired(5)

        assert await repository.remove(5) is True
        assert 5 not in tracker
        assert await repository.remove(5) is False

    asyncio.run(scenario())


def test_toggle_marks_event_as_notified(make_store):
    async def scenario():
        repository, _, tracker = _repository(make_store)
        await repository.add(Event(id=3, title="a", date="2025-01-01", time="10:00"))

        event = await repository.toggle_completed(3)

        assert event.completed is True
        assert tracker.has_fired(3)
        assert await repository.toggle_completed(404) is None

    asyncio.run(scenario())


def test_update_keeps_insertion_order(make_store):
    async def scenario():
        repository, _, _ = _repository(make_store)
        for event_id in (3, 1, 2):
            await repository.add(Event(id=event_id, title=str(event_id), date="2025-01-01", time="10:00"))

        await repository.update(3, Event(id=3, title="changed", date="2025-02-01", time="10:00"))

        assert [event.id for event in repository.all()] == [3, 1, 2]

    asyncio.run(scenario())


def test_replace_all_does_not_write_back(make_store):
    async def scenario():
        repository, store, _ = _repository(make_store)
        await repository.add(Event(id=1, title="a", date="2025-01-01", time="10:00"))
        revision = await store.revision()

        await repository.replace_all([Event(id=9, title="z", date="2025-01-01", time="10:00")])

        assert [event.id for event in repository.all()] == [9]
        assert await store.revision() == revision

    asyncio.run(scenario())
