from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable

from ..config import Config
from ..jobs.scheduler import PeriodicJobs
from ..models.event import Event, validate_event_fields
from ..services.events import EventRepository
from ..services.notifier import DesktopNotifier, Notifier, SoundCue, SoundPlayer
from ..services.reminders import ALERT_WINDOW, ReminderHandler, ReminderScheduler
from ..services.sync import CrossInstanceSync, StoreWatcher
from ..services.tracker import NotificationTracker
from ..storage.events import EventStore
from ..storage.factory import create_store
from ..utils.datetime import now_ms, now_utc, resolve_timezone

logger = logging.getLogger("event_reminder.core.engine")


class ReminderEngine:
    """Collaborator-facing facade over repository, tracker, scheduler and sync.

    Construct once, ``await start()`` inside a running event loop and
    ``await shutdown()`` when done (or use ``async with``).
    """

    def __init__(
        self,
        *,
        store: EventStore,
        notifier: Notifier | None = None,
        sound: SoundCue | None = None,
        tick_seconds: float = 10.0,
        window: timedelta = ALERT_WINDOW,
        sync_seconds: float = 2.0,
        timezone: str | None = None,
        clock: Callable[[], datetime] = now_utc,
        ms_clock: Callable[[], int] = now_ms,
    ) -> None:
        self._notifier = notifier
        self._ms_clock = ms_clock
        self.tracker = NotificationTracker()
        self.repository = EventRepository(store, self.tracker)
        self.reminders = ReminderScheduler(
            self.repository,
            self.tracker,
            notifier=notifier,
            sound=sound,
            window=window,
            tz=resolve_timezone(timezone),
            clock=clock,
        )
        self._sync = CrossInstanceSync(self.repository)
        self._watcher = StoreWatcher(store, self._sync)
        self._jobs = PeriodicJobs(
            reminders=self.reminders,
            watcher=self._watcher,
            tick_seconds=tick_seconds,
            sync_seconds=sync_seconds,
        )
        self._loaded = False

    @classmethod
    def from_config(
        cls,
        config: Config,
        *,
        notifier: Notifier | None = None,
        sound: SoundCue | None = None,
    ) -> "ReminderEngine":
        store = EventStore(
            create_store(config.storage),
            retention_days=config.storage.retention_days,
        )
        return cls(
            store=store,
            notifier=notifier or DesktopNotifier(enabled=config.alerts.notifications),
            sound=sound
            or SoundPlayer(config.alerts.sound_file, duration=config.alerts.sound_seconds),
            tick_seconds=config.reminder.tick_seconds,
            window=timedelta(seconds=config.reminder.window_seconds),
            sync_seconds=config.sync.poll_seconds,
            timezone=config.reminder.timezone,
        )

    @property
    def running(self) -> bool:
        return self._jobs.running

    async def load(self) -> list[Event]:
        events = await self.repository.load()
        await self._watcher.prime()
        self._loaded = True
        return events

    async def start(self) -> None:
        if not self._loaded:
            await self.load()
        if self._notifier is not None:
            self._notifier.probe()
        await self._jobs.start()
        logger.info("engine started events=%s", len(self.repository))

    async def shutdown(self) -> None:
        await self._jobs.shutdown()
        self.reminders.clear_handlers()
        logger.info("engine stopped")

    async def __aenter__(self) -> "ReminderEngine":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.shutdown()

    # collaborator API -------------------------------------------------
    def list_events(self) -> list[Event]:
        return self.repository.all()

    async def create_event(
        self,
        title: str,
        description: str | None,
        date: str,
        time: str,
    ) -> Event:
        validate_event_fields(title, date, time)
        created_at = self._ms_clock()
        event = Event(
            id=self._next_id(created_at),
            title=title,
            description=description or "",
            date=date,
            time=time,
            completed=False,
            created_at=created_at,
        )
        await self.repository.add(event)
        return event

    async def edit_event(self, event_id: int, **fields: str) -> bool:
        current = self.repository.get(event_id)
        if current is None:
            logger.warning("edit ignored: event %s does not exist", event_id)
            return False
        if "description" in fields and fields["description"] is None:
            fields["description"] = ""
        updated = current.with_changes(**fields)
        validate_event_fields(updated.title, updated.date, updated.time)
        return await self.repository.update(event_id, updated)

    async def delete_event(self, event_id: int) -> bool:
        return await self.repository.remove(event_id)

    async def toggle_complete(self, event_id: int) -> Event | None:
        return await self.repository.toggle_completed(event_id)

    def on_reminder_due(self, callback: ReminderHandler) -> Callable[[], None]:
        return self.reminders.add_handler(callback)

    async def on_store_changed_externally(self, raw_payload: str | None) -> bool:
        return await self._sync.apply(raw_payload)

    async def tick(self, now: datetime | None = None) -> list[Event]:
        return await self.reminders.tick(now)

    async def poll_store(self) -> bool:
        return await self._watcher.poll()

    def _next_id(self, candidate: int) -> int:
        while self.repository.get(candidate) is not None:
            candidate += 1
        return candidate
