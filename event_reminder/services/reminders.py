from __future__ import annotations

import inspect
import json
import logging
from datetime import datetime, timedelta, tzinfo
from typing import Any, Awaitable, Callable, Union

from ..errors import MalformedEventTimestamp
from ..models.event import Event
from ..utils.datetime import now_utc
from .events import EventRepository
from .notifier import NullNotifier, NullSoundPlayer, Notifier, SoundCue
from .tracker import NotificationTracker

logger = logging.getLogger("event_reminder.services.reminders")
audit_logger = logging.getLogger("event_reminder.audit")

ALERT_WINDOW = timedelta(seconds=60)

ReminderHandler = Callable[[Event], Union[None, Awaitable[Any]]]


class ReminderScheduler:
    """Evaluates the repository against the tracker on every tick.

    An event alerts when it is not completed, has not fired yet, and its
    scheduled instant lies within ``window`` of ``now`` on either side
    (bounds inclusive). Each alerting event is marked fired before any
    handler runs, so a handler that fails cannot cause a second alert.
    Handlers run after the repository lock is released.
    """

    def __init__(
        self,
        repository: EventRepository,
        tracker: NotificationTracker,
        *,
        notifier: Notifier | None = None,
        sound: SoundCue | None = None,
        window: timedelta = ALERT_WINDOW,
        tz: tzinfo | None = None,
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        self._repository = repository
        self._tracker = tracker
        self._notifier = notifier or NullNotifier()
        self._sound = sound or NullSoundPlayer()
        self._window = window
        self._tz = tz
        self._clock = clock
        self._handlers: list[ReminderHandler] = []

    def add_handler(self, handler: ReminderHandler) -> Callable[[], None]:
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def clear_handlers(self) -> None:
        self._handlers.clear()

    def is_due(self, event: Event, now: datetime) -> bool:
        if event.completed or self._tracker.has_fired(event.id):
            return False
        delta = event.scheduled_at(self._tz) - now
        return abs(delta) <= self._window

    async def tick(self, now: datetime | None = None) -> list[Event]:
        """Run one evaluation pass and return the events that alerted."""

        now = now or self._clock()
        fired: list[Event] = []
        async with self._repository.lock:
            for event in self._repository.all():
                try:
                    if not self.is_due(event, now):
                        continue
                    self._raise_alerts(event)
                    self._tracker.mark_fired(event.id)
                except MalformedEventTimestamp as exc:
                    logger.warning("reminder_skipped %s", exc)
                    continue
                except Exception:
                    logger.exception("reminder_evaluation_failed id=%s", event.id)
                    continue
                fired.append(event)
                logger.info("reminder_fired id=%s title=%s", event.id, event.title)
                audit_logger.info(json.dumps({"event": "REMINDER_FIRED", "event_id": event.id}))
        for event in fired:
            await self._dispatch(event)
        return fired

    def _raise_alerts(self, event: Event) -> None:
        try:
            self._notifier.notify(event)
        except Exception as exc:
            logger.warning("notification_failed id=%s error=%r", event.id, exc)
        try:
            self._sound.play()
        except Exception as exc:
            logger.warning("sound_cue_failed id=%s error=%r", event.id, exc)

    async def _dispatch(self, event: Event) -> None:
        for handler in list(self._handlers):
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("reminder_handler_failed id=%s handler=%r", event.id, handler)
