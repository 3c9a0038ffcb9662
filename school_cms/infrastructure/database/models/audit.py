# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Audit log model."""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import DateTime, String, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from school_cms.infrastructure.database.models.base import Base, UUIDPrimaryKeyMixin
from school_cms.utils.datetime import utc_now


class AuditLog(UUIDPrimaryKeyMixin, Base):
    """Append-only record of a change made through the CMS.

    user_id and tenant_id carry no foreign keys so entries outlive the
    rows they describe.
    """

    __tablename__ = "audit_logs"

    tenant_id: Mapped[Optional[str]] = mapped_column(UUID(as_uuid=False), index=True)
    user_id: Mapped[Optional[str]] = mapped_column(UUID(as_uuid=False), index=True)
    operation: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    table_name: Mapped[str] = mapped_column(String(100), nullable=False)
    record_id: Mapped[Optional[str]] = mapped_column(String(100))
    details: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    ip_address: Mapped[Optional[str]] = mapped_column(String(45))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=text("now()"),
        index=True,
    )
