# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Maintenance endpoints for super admins."""

import logging
from typing import Any

from fastapi import APIRouter, Request

from school_cms.api.dependencies import DbSession, SuperAdminUser
from school_cms.api.middleware.rate_limit import admin_rate_limit
from school_cms.core.config import get_settings
from school_cms.domains.auth.service import clean_expired_sessions
from school_cms.infrastructure.database.migrations.runner import get_migration_status
from school_cms.infrastructure.scheduler.jobs import get_scheduler
from school_cms.models.common import ORMModel

logger = logging.getLogger(__name__)

router = APIRouter()


class CleanSessionsResponse(ORMModel):
    success: bool = True
    removed: int


@router.post("/clean-sessions", response_model=CleanSessionsResponse)
@admin_rate_limit
async def clean_sessions(
    request: Request,
    db: DbSession,
    current_user: SuperAdminUser,
) -> CleanSessionsResponse:
    """Delete expired and revoked sessions now instead of waiting for the job."""
    removed = await clean_expired_sessions(db)
    logger.info("Manual session cleanup by %s removed %d sessions", current_user.id, removed)
    return CleanSessionsResponse(removed=removed)


@router.get("/jobs")
@admin_rate_limit
async def scheduler_status(request: Request, current_user: SuperAdminUser) -> dict[str, Any]:
    """Scheduled jobs with their run and error counts."""
    return get_scheduler().get_stats()


@router.get("/migrations")
@admin_rate_limit
async def migration_status(request: Request, current_user: SuperAdminUser) -> dict[str, Any]:
    """Current schema version with applied and pending migrations."""
    return await get_migration_status(get_settings().database.url)
