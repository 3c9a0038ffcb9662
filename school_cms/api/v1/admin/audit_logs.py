# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Admin audit log endpoint."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, Request

from school_cms.api.dependencies import AdminUser, DbSession, TenantId
from school_cms.api.middleware.rate_limit import admin_rate_limit
from school_cms.domains.audit.service import AuditService
from school_cms.models.audit import AuditLogListResponse
from school_cms.models.common import Pagination

router = APIRouter()


@router.get("", response_model=AuditLogListResponse)
@admin_rate_limit
async def list_audit_logs(
    request: Request,
    db: DbSession,
    current_user: AdminUser,
    tenant_id: TenantId,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
    operation: str | None = None,
    table_name: str | None = None,
    user_id: UUID | None = None,
) -> AuditLogListResponse:
    """The tenant's audit trail, newest first."""
    logs, total = await AuditService(db).list_logs(
        tenant_id, operation, table_name, str(user_id) if user_id else None, page, limit
    )
    return AuditLogListResponse(logs=logs, pagination=Pagination.build(page, limit, total))
