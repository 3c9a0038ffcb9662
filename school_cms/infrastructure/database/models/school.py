# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School (tenant) model."""

from typing import Optional

from sqlalchemy import CheckConstraint, String
from sqlalchemy.orm import Mapped, mapped_column

from school_cms.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)


class School(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A school in the network. Every tenant-owned row references one.

    ``country`` is an ISO 3166 alpha-3 code and is what country-based
    tenant resolution matches against.
    """

    __tablename__ = "schools"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    country: Mapped[str] = mapped_column(String(3), nullable=False, index=True)
    country_name: Mapped[Optional[str]] = mapped_column(String(100))
    timezone: Mapped[str] = mapped_column(String(50), nullable=False, default="America/Sao_Paulo")
    language: Mapped[str] = mapped_column(String(10), nullable=False, default="pt-BR")
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="BRL")
    domain: Mapped[Optional[str]] = mapped_column(String(255))
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")

    __table_args__ = (
        CheckConstraint("status IN ('active', 'inactive')", name="valid_status"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == "active"
