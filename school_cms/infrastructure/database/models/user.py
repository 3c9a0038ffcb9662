# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""CMS user and session models."""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from school_cms.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)

USER_ROLES = ("super_admin", "admin", "editor", "viewer")


class CmsUser(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A person who signs in to the CMS.

    Super admins may have no tenant; everyone else belongs to one school.
    """

    __tablename__ = "cms_users"

    tenant_id: Mapped[Optional[str]] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("schools.id", ondelete="CASCADE"),
        index=True,
    )
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="editor")
    avatar_url: Mapped[Optional[str]] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        CheckConstraint(
            "role IN ('super_admin', 'admin', 'editor', 'viewer')",
            name="valid_role",
        ),
    )


class UserSession(TimestampMixin, Base):
    """A refresh-token session.

    The primary key is the ``sessionId`` claim embedded in the refresh
    token, so a session can be revoked without knowing the token.
    """

    __tablename__ = "user_sessions"

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True)
    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("cms_users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    session_token: Mapped[str] = mapped_column(Text, nullable=False)
    ip_address: Mapped[Optional[str]] = mapped_column(String(45))
    user_agent: Mapped[Optional[str]] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


def full_name_expr():
    """SQL ``first last`` for a joined user.

    A NULL or empty part is skipped; the result is NULL when both are
    missing, as for an outer join that found no user.
    """
    joined = func.concat_ws(" ", func.nullif(CmsUser.first_name, ""), CmsUser.last_name)
    return func.nullif(func.trim(joined), "")
