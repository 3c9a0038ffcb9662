# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Audit trail service.

Every CMS mutation is recorded twice: as an ``audit_logs`` row that admins
can browse, and as a structured ``audit`` log event for log shipping.

The row is added to the caller's session and persisted by the caller's
commit, so an audit entry never outlives a rolled-back change.

Example:
    >>> audit = AuditService(db)
    >>> await audit.record(
    ...     "content_created", "contents",
    ...     user_id=user.id, tenant_id=user.tenant_id,
    ...     record_id=content.id, details={"title": content.title},
    ... )
"""

import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from school_cms.infrastructure.database.models import AuditLog, CmsUser, full_name_expr
from school_cms.models.audit import AuditLogResponse
from school_cms.models.common import page_offset
from school_cms.utils.logging import audit_event

logger = logging.getLogger(__name__)


class AuditService:
    """Records and lists audit entries.

    Attributes:
        _db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def record(
        self,
        operation: str,
        table_name: str,
        user_id: str | None = None,
        tenant_id: str | None = None,
        record_id: str | None = None,
        details: dict[str, Any] | None = None,
        ip_address: str | None = None,
    ) -> AuditLog:
        """Add an audit entry to the current unit of work.

        Args:
            operation: Action name, e.g. ``content_updated``.
            table_name: Affected table.
            user_id: Acting user.
            tenant_id: Tenant the change belongs to (None for global tables).
            record_id: Primary key of the affected row.
            details: JSON-serializable context.
            ip_address: Client address.

        Returns:
            The pending AuditLog row.
        """
        details = details or {}
        entry = AuditLog(
            operation=operation,
            table_name=table_name,
            user_id=str(user_id) if user_id else None,
            tenant_id=str(tenant_id) if tenant_id else None,
            record_id=str(record_id) if record_id else None,
            details=details,
            ip_address=ip_address,
        )
        self._db.add(entry)

        audit_event(
            operation,
            table_name,
            user_id=entry.user_id,
            tenant_id=entry.tenant_id,
            record_id=entry.record_id,
            **details,
        )
        return entry

    async def list_logs(
        self,
        tenant_id: str,
        operation: str | None = None,
        table_name: str | None = None,
        user_id: str | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> tuple[list[AuditLogResponse], int]:
        """List a tenant's audit entries, newest first.

        Returns:
            Tuple of (entries with user name and email, total count).
        """
        stmt = select(AuditLog).where(AuditLog.tenant_id == tenant_id)
        if operation:
            stmt = stmt.where(AuditLog.operation == operation)
        if table_name:
            stmt = stmt.where(AuditLog.table_name == table_name)
        if user_id:
            stmt = stmt.where(AuditLog.user_id == user_id)

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await self._db.execute(count_stmt)).scalar() or 0

        user_name = full_name_expr().label("user_name")
        rows_stmt = (
            stmt.add_columns(user_name, CmsUser.email.label("user_email"))
            .outerjoin(CmsUser, CmsUser.id == AuditLog.user_id)
            .order_by(AuditLog.created_at.desc())
            .limit(limit)
            .offset(page_offset(page, limit))
        )
        result = await self._db.execute(rows_stmt)

        entries = [
            AuditLogResponse.model_validate(
                {
                    **log.to_dict(),
                    "user_name": name,
                    "user_email": email,
                }
            )
            for log, name, email in result.all()
        ]
        return entries, total
