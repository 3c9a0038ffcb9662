# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Periodic maintenance jobs running on the API event loop."""

from school_cms.infrastructure.scheduler.jobs import (
    MaintenanceScheduler,
    ScheduledJob,
    clean_expired_sessions_job,
    get_scheduler,
    start_scheduler,
    stop_scheduler,
)

__all__ = [
    "MaintenanceScheduler",
    "ScheduledJob",
    "clean_expired_sessions_job",
    "get_scheduler",
    "start_scheduler",
    "stop_scheduler",
]
