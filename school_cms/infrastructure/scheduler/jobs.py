# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Scheduler for periodic maintenance jobs.

Uses APScheduler's AsyncIOScheduler so jobs run as coroutines on the
application event loop and share its database pool.

Example:
    from school_cms.infrastructure.scheduler import get_scheduler

    scheduler = get_scheduler()
    scheduler.add_interval_job(
        name="Clean Expired Sessions",
        func=clean_expired_sessions_job,
        minutes=60,
    )
    await scheduler.start()
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Awaitable, Callable
from uuid import uuid4

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from school_cms.utils.datetime import utc_now

if TYPE_CHECKING:
    from school_cms.core.config.settings import Settings

logger = logging.getLogger(__name__)

JobFunc = Callable[[], Awaitable[Any]]


# =============================================================================
# JOBS
# =============================================================================


async def clean_expired_sessions_job() -> int:
    """Delete expired and revoked refresh sessions.

    Returns:
        Number of sessions removed.
    """
    from school_cms.domains.auth.service import clean_expired_sessions
    from school_cms.infrastructure.database.connection import get_session

    async with get_session() as db:
        removed = await clean_expired_sessions(db)

    logger.info("Session cleanup removed %d sessions", removed)
    return removed


# =============================================================================
# SCHEDULER
# =============================================================================


@dataclass
class ScheduledJob:
    """Bookkeeping for a scheduled coroutine.

    Attributes:
        name: Human-readable job name.
        func: Coroutine function to run.
        id: Unique job identifier.
        last_run: Last run timestamp.
        run_count: Total number of successful runs.
        error_count: Number of failed runs.
    """

    name: str
    func: JobFunc
    trigger: IntervalTrigger | None = None
    id: str = field(default_factory=lambda: str(uuid4()))
    last_run: datetime | None = None
    last_result: Any = None
    run_count: int = 0
    error_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "run_count": self.run_count,
            "error_count": self.error_count,
        }


class MaintenanceScheduler:
    """Interval scheduler for maintenance coroutines.

    Job failures are counted and logged; they never stop the scheduler.
    """

    def __init__(self) -> None:
        self._scheduler: AsyncIOScheduler | None = None
        self._jobs: dict[str, ScheduledJob] = {}
        self._running = False

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running."""
        return self._running

    def add_interval_job(
        self,
        name: str,
        func: JobFunc,
        minutes: int = 0,
        hours: int = 0,
    ) -> ScheduledJob:
        """Schedule func every interval.

        Jobs added before start() are registered when the scheduler starts.
        """
        job = ScheduledJob(
            name=name,
            func=func,
            trigger=IntervalTrigger(minutes=minutes, hours=hours),
        )
        self._jobs[job.id] = job

        if self._scheduler is not None:
            self._register(job)

        logger.info("Added interval job: %s (every %dh %dm)", name, hours, minutes)
        return job

    def _register(self, job: ScheduledJob) -> None:
        assert self._scheduler is not None
        self._scheduler.add_job(
            self._execute_job,
            trigger=job.trigger,
            args=[job.id],
            id=job.id,
            name=job.name,
            coalesce=True,
            max_instances=1,
        )

    async def _execute_job(self, job_id: str) -> None:
        job = self._jobs.get(job_id)
        if job is None:
            return

        logger.debug("Executing scheduled job: %s", job.name)
        try:
            job.last_result = await job.func()
            job.last_run = utc_now()
            job.run_count += 1
        except Exception as e:
            job.error_count += 1
            logger.error("Scheduled job %s failed: %s", job.name, e)

    def list_jobs(self) -> list[ScheduledJob]:
        """List all scheduled jobs."""
        return list(self._jobs.values())

    async def start(self) -> None:
        """Start the scheduler and register pending jobs."""
        if self._running:
            return

        self._scheduler = AsyncIOScheduler()
        for job in self._jobs.values():
            self._register(job)
        self._scheduler.start()
        self._running = True

        logger.info("Maintenance scheduler started")

    async def stop(self) -> None:
        """Stop the scheduler."""
        if not self._running:
            return

        if self._scheduler:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None

        self._running = False
        logger.info("Maintenance scheduler stopped")

    def get_stats(self) -> dict[str, Any]:
        """Get scheduler statistics."""
        return {
            "is_running": self._running,
            "job_count": len(self._jobs),
            "total_runs": sum(j.run_count for j in self._jobs.values()),
            "total_errors": sum(j.error_count for j in self._jobs.values()),
            "jobs": [j.to_dict() for j in self._jobs.values()],
        }


# Singleton instance
_scheduler: MaintenanceScheduler | None = None


def get_scheduler() -> MaintenanceScheduler:
    """Get the singleton scheduler instance."""
    global _scheduler
    if _scheduler is None:
        _scheduler = MaintenanceScheduler()
    return _scheduler


async def start_scheduler(settings: "Settings") -> MaintenanceScheduler:
    """Register the default jobs and start the scheduler.

    Returns:
        Started scheduler instance.
    """
    scheduler = get_scheduler()
    scheduler.add_interval_job(
        name="Clean Expired Sessions",
        func=clean_expired_sessions_job,
        minutes=settings.scheduler.session_cleanup_interval_minutes,
    )
    await scheduler.start()
    return scheduler


async def stop_scheduler() -> None:
    """Stop the scheduler."""
    global _scheduler
    if _scheduler is not None:
        await _scheduler.stop()
        _scheduler = None
