from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from ..services.reminders import ReminderScheduler
from ..services.sync import StoreWatcher

logger = logging.getLogger("event_reminder.jobs.scheduler")

REMINDER_JOB_ID = "reminder-tick"
SYNC_JOB_ID = "store-watch"


class PeriodicJobs:
    """Reminder tick and store watcher, started and stopped as a pair."""

    def __init__(
        self,
        *,
        reminders: ReminderScheduler,
        watcher: StoreWatcher,
        tick_seconds: float,
        sync_seconds: float,
    ) -> None:
        self._reminders = reminders
        self._watcher = watcher
        self._tick_seconds = tick_seconds
        self._sync_seconds = sync_seconds
        self._scheduler: AsyncIOScheduler | None = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def job_ids(self) -> list[str]:
        if self._scheduler is None:
            return []
        return [job.id for job in self._scheduler.get_jobs()]

    async def start(self) -> None:
        if self.running:
            return
        self._scheduler = AsyncIOScheduler(timezone="UTC")
        self._scheduler.add_job(
            self._reminder_job,
            "interval",
            seconds=self._tick_seconds,
            id=REMINDER_JOB_ID,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=int(self._tick_seconds) or 1,
        )
        self._scheduler.add_job(
            self._sync_job,
            "interval",
            seconds=self._sync_seconds,
            id=SYNC_JOB_ID,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        logger.info(
            "scheduler started tick=%ss sync=%ss", self._tick_seconds, self._sync_seconds
        )

    async def shutdown(self) -> None:
        if self._scheduler is None:
            return
        if self._scheduler.running:
            self._scheduler.remove_all_jobs()
            self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("scheduler stopped")

    async def _reminder_job(self) -> None:
        await self._reminders.tick()

    async def _sync_job(self) -> None:
        await self._watcher.poll()
