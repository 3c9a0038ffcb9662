# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Per-tenant site settings."""

from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from school_cms.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)

SETTING_TYPES = ("text", "number", "boolean", "json")


class SiteSetting(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A key/value setting stored as text and parsed by ``setting_type``."""

    __tablename__ = "site_settings"

    tenant_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("schools.id", ondelete="CASCADE"),
        nullable=False,
    )
    setting_key: Mapped[str] = mapped_column(String(100), nullable=False)
    setting_value: Mapped[Optional[str]] = mapped_column(Text)
    setting_type: Mapped[str] = mapped_column(String(20), nullable=False, default="text")
    description: Mapped[Optional[str]] = mapped_column(Text)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    updated_by: Mapped[Optional[str]] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("cms_users.id", ondelete="SET NULL"),
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "setting_key", name="uq_site_setting_tenant_key"),
        CheckConstraint(
            "setting_type IN ('text', 'number', 'boolean', 'json')",
            name="valid_setting_type",
        ),
    )
