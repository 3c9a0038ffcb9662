# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Admin dashboard endpoint."""

from fastapi import APIRouter, Request

from school_cms.api.dependencies import AuthenticatedUser, DbSession, TenantId
from school_cms.api.middleware.rate_limit import admin_rate_limit
from school_cms.domains.dashboard.service import DEFAULT_PERIOD, DashboardService
from school_cms.models.dashboard import DashboardStatsResponse

router = APIRouter()


@router.get("/stats", response_model=DashboardStatsResponse)
@admin_rate_limit
async def dashboard_stats(
    request: Request,
    db: DbSession,
    current_user: AuthenticatedUser,
    tenant_id: TenantId,
    period: str = DEFAULT_PERIOD,
) -> DashboardStatsResponse:
    """Tenant totals, recent content within ``period`` and most viewed content."""
    return await DashboardService(db).stats(tenant_id, period)
