# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Audit log API models."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from school_cms.models.common import ORMModel, Pagination


class AuditLogResponse(ORMModel):
    id: str
    tenant_id: str | None = None
    user_id: str | None = None
    user_name: str | None = None
    user_email: str | None = None
    operation: str
    table_name: str
    record_id: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)
    ip_address: str | None = None
    created_at: datetime


class AuditLogListResponse(BaseModel):
    logs: list[AuditLogResponse]
    pagination: Pagination
