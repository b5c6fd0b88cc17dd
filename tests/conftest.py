import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from event_reminder.core.engine import ReminderEngine  # noqa: E402
from event_reminder.storage.base import JsonFileStore  # noqa: E402
from event_reminder.storage.events import EventStore  # noqa: E402

NOW = datetime(2025, 1, 1, 10, 0, tzinfo=timezone.utc)
NOW_MS = int(NOW.timestamp() * 1000)


class FakeNotifier:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.notified: list[int] = []
        self.probed = 0

    def probe(self) -> bool:
        self.probed += 1
        return True

    def notify(self, event) -> None:
        if self.fail:
            raise PermissionError("notifications denied")
        self.notified.append(event.id)


class FakeSound:
    def __init__(self) -> None:
        self.plays = 0

    def play(self) -> None:
        self.plays += 1


class MsClock:
    """Hands out ``NOW_MS``-based creation stamps; tests can pin ``value``."""

    def __init__(self, value: int = NOW_MS) -> None:
        self.value = value

    def __call__(self) -> int:
        return self.value


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def sound():
    return FakeSound()


@pytest.fixture
def ms_clock():
    return MsClock()


@pytest.fixture
def make_store(tmp_path):
    def factory(name: str = "data", **kwargs) -> EventStore:
        kwargs.setdefault("clock", lambda: NOW_MS)
        return EventStore(JsonFileStore(tmp_path / name), **kwargs)

    return factory


@pytest.fixture
def make_engine(make_store, notifier, sound, ms_clock):
    def factory(store: EventStore | None = None, **kwargs) -> ReminderEngine:
        kwargs.setdefault("notifier", notifier)
        kwargs.setdefault("sound", sound)
        kwargs.setdefault("timezone", "UTC")
        kwargs.setdefault("clock", lambda: NOW)
        kwargs.setdefault("ms_clock", ms_clock)
        return ReminderEngine(store=store or make_store(), **kwargs)

    return factory


def at(seconds: float) -> datetime:
    """Instant ``seconds`` away from ``NOW``."""

    return NOW + timedelta(seconds=seconds)
