"""Recurring backup job on top of APScheduler."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Awaitable, Callable, Protocol

from apscheduler.job import Job
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from .domain.snapshots import SnapshotService
from .storage.base import SnapshotRecord
from .telegram.formatters import format_backup_caption

logger = logging.getLogger(__name__)

JOB_ID = "banforge-backup"


class BackupChannel(Protocol):
    async def deliver(self, filename: str, data: bytes, caption: str) -> bool:
        ...


@dataclass(slots=True)
class BackupResult:
    snapshot: SnapshotRecord | None
    delivered: bool = False


class BackupJob:
    """Take a snapshot and ship its export to the backup channel."""

    def __init__(self, snapshots: SnapshotService, channel: BackupChannel | None = None) -> None:
        self._snapshots = snapshots
        self._channel = channel

    @property
    def channel(self) -> BackupChannel | None:
        return self._channel

    async def run(self, label: str | None = None, *, manual: bool = False) -> BackupResult:
        snapshot = await self._snapshots.take_snapshot(label)
        if snapshot is None:
            return BackupResult(snapshot=None)
        if self._channel is None:
            logger.info("No backup channel configured; snapshot %s kept locally.", snapshot.snapshot_id)
            return BackupResult(snapshot=snapshot)
        filename, data = self._snapshots.export_snapshot(snapshot)
        delivered = await self._channel.deliver(
            filename, data, format_backup_caption(snapshot, manual=manual)
        )
        return BackupResult(snapshot=snapshot, delivered=delivered)


class BackupScheduler:
    """Own at most one recurring backup job.

    Re-arming removes the previous job before adding the new one. A run that
    fires while the previous one is still in progress is skipped, and a
    failing run is logged without affecting the next one.
    """

    def __init__(self, scheduler: AsyncIOScheduler | None = None) -> None:
        self._scheduler = scheduler or AsyncIOScheduler()
        self._job: Job | None = None
        self._callback: Callable[[], Awaitable[object]] | None = None
        self._running = asyncio.Lock()

    @property
    def job(self) -> Job | None:
        return self._job

    @property
    def running(self) -> bool:
        return bool(self._scheduler.running)

    def schedule_recurring(
        self,
        callback: Callable[[], Awaitable[object]],
        *,
        interval: timedelta | None = None,
        cron: str | None = None,
        timezone: str = "UTC",
    ) -> Job:
        if (interval is None) == (cron is None):
            raise ValueError("Provide exactly one of interval or cron")
        if interval is not None and interval <= timedelta(0):
            raise ValueError("Backup interval must be positive")
        trigger = (
            IntervalTrigger(seconds=interval.total_seconds(), timezone=timezone)
            if interval is not None
            else CronTrigger.from_crontab(cron, timezone=timezone)
        )
        self.cancel()
        self._callback = callback
        self._job = self._scheduler.add_job(
            self.run_once,
            trigger,
            id=JOB_ID,
            name="BanForge snapshot backup",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info("Backup schedule armed (%s).", trigger)
        return self._job

    def cancel(self) -> None:
        if self._job is not None:
            if self._scheduler.get_job(JOB_ID) is not None:
                self._scheduler.remove_job(JOB_ID)
            self._job = None

    def start(self) -> None:
        if not self._scheduler.running:
            self._scheduler.start()

    def shutdown(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)

    async def run_once(self) -> bool:
        """Run the scheduled callback once; return ``False`` if it was skipped or failed."""
        if self._callback is None:
            return False
        if self._running.locked():
            logger.warning("Previous backup still running; skipping this run.")
            return False
        async with self._running:
            logger.info("Scheduled backup triggered.")
            try:
                await self._callback()
            except Exception:
                logger.exception("Scheduled backup failed; next run stays scheduled.")
                return False
        return True
