# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the maintenance scheduler."""

from unittest.mock import AsyncMock

import pytest

from school_cms.infrastructure.scheduler.jobs import MaintenanceScheduler


@pytest.fixture
def scheduler() -> MaintenanceScheduler:
    return MaintenanceScheduler()


class TestMaintenanceScheduler:
    def test_jobs_are_tracked_before_start(self, scheduler: MaintenanceScheduler) -> None:
        job = scheduler.add_interval_job("Clean Expired Sessions", AsyncMock(), minutes=60)

        assert scheduler.list_jobs() == [job]
        assert scheduler.is_running is False
        stats = scheduler.get_stats()
        assert stats["job_count"] == 1
        assert stats["jobs"][0]["name"] == "Clean Expired Sessions"

    @pytest.mark.asyncio
    async def test_successful_run_is_counted(self, scheduler: MaintenanceScheduler) -> None:
        job = scheduler.add_interval_job("cleanup", AsyncMock(return_value=3), minutes=5)

        await scheduler._execute_job(job.id)

        assert job.run_count == 1
        assert job.last_result == 3
        assert job.last_run is not None
        assert scheduler.get_stats()["total_runs"] == 1

    @pytest.mark.asyncio
    async def test_failure_does_not_propagate(self, scheduler: MaintenanceScheduler) -> None:
        job = scheduler.add_interval_job(
            "cleanup", AsyncMock(side_effect=RuntimeError("db down")), minutes=5
        )

        await scheduler._execute_job(job.id)

        assert job.run_count == 0
        assert job.error_count == 1
        assert scheduler.get_stats()["total_errors"] == 1

    @pytest.mark.asyncio
    async def test_unknown_job_is_ignored(self, scheduler: MaintenanceScheduler) -> None:
        await scheduler._execute_job("missing")

    @pytest.mark.asyncio
    async def test_start_and_stop(self, scheduler: MaintenanceScheduler) -> None:
        scheduler.add_interval_job("cleanup", AsyncMock(), hours=1)

        await scheduler.start()
        assert scheduler.is_running is True

        await scheduler.stop()
        assert scheduler.is_running is False
