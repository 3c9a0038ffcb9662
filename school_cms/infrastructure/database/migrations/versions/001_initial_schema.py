# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial CMS schema.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2025-01-15

Creates every table defined in school_cms/infrastructure/database/models/.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=False),
        server_default=sa.text("gen_random_uuid()"),
        primary_key=True,
    )


def _timestamp_columns() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def _tenant_column() -> sa.Column:
    return sa.Column(
        "tenant_id",
        postgresql.UUID(as_uuid=False),
        sa.ForeignKey("schools.id", ondelete="CASCADE"),
        nullable=False,
    )


def upgrade() -> None:
    """Create CMS tables."""
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    # ==========================================================================
    # 1. schools table
    # ==========================================================================
    op.create_table(
        "schools",
        _id_column(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(100), unique=True, nullable=False),
        sa.Column("country", sa.String(3), nullable=False),
        sa.Column("country_name", sa.String(100), nullable=True),
        sa.Column("timezone", sa.String(50), nullable=False, server_default="America/Sao_Paulo"),
        sa.Column("language", sa.String(10), nullable=False, server_default="pt-BR"),
        sa.Column("currency", sa.String(3), nullable=False, server_default="BRL"),
        sa.Column("domain", sa.String(255), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        *_timestamp_columns(),
        sa.CheckConstraint("status IN ('active', 'inactive')", name="valid_status"),
    )
    op.create_index("ix_schools_country", "schools", ["country"])

    # ==========================================================================
    # 2. cms_users table
    # ==========================================================================
    op.create_table(
        "cms_users",
        _id_column(),
        sa.Column(
            "tenant_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("schools.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False, server_default=""),
        sa.Column("role", sa.String(20), nullable=False, server_default="editor"),
        sa.Column("avatar_url", sa.Text, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        *_timestamp_columns(),
        sa.CheckConstraint(
            "role IN ('super_admin', 'admin', 'editor', 'viewer')",
            name="valid_role",
        ),
    )
    op.create_index("ix_cms_users_tenant_id", "cms_users", ["tenant_id"])

    # ==========================================================================
    # 3. user_sessions table
    # ==========================================================================
    op.create_table(
        "user_sessions",
        sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("cms_users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("session_token", sa.Text, nullable=False),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("user_agent", sa.Text, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamp_columns(),
    )
    op.create_index("ix_user_sessions_user_id", "user_sessions", ["user_id"])
    op.create_index("ix_user_sessions_expires_at", "user_sessions", ["expires_at"])

    # ==========================================================================
    # 4. content_categories table
    # ==========================================================================
    op.create_table(
        "content_categories",
        _id_column(),
        _tenant_column(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column(
            "parent_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("content_categories.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        *_timestamp_columns(),
        sa.UniqueConstraint("tenant_id", "slug", name="uq_category_tenant_slug"),
    )
    op.create_index("ix_content_categories_tenant_id", "content_categories", ["tenant_id"])

    # ==========================================================================
    # 5. contents table
    # ==========================================================================
    op.create_table(
        "contents",
        _id_column(),
        _tenant_column(),
        sa.Column(
            "author_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("cms_users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "category_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("content_categories.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("slug", sa.String(200), nullable=False),
        sa.Column("excerpt", sa.Text, nullable=True),
        sa.Column("body", sa.Text, nullable=False),
        sa.Column("featured_image_url", sa.Text, nullable=True),
        sa.Column("meta_title", sa.String(255), nullable=True),
        sa.Column("meta_description", sa.String(500), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        sa.Column("language", sa.String(10), nullable=False, server_default="pt-BR"),
        sa.Column("content_type", sa.String(20), nullable=False, server_default="article"),
        sa.Column("is_featured", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("view_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("seo_settings", postgresql.JSONB, nullable=False, server_default="{}"),
        sa.Column("custom_fields", postgresql.JSONB, nullable=False, server_default="{}"),
        *_timestamp_columns(),
        sa.UniqueConstraint(
            "tenant_id", "slug", "language", name="uq_content_tenant_slug_language"
        ),
        sa.CheckConstraint(
            "status IN ('draft', 'published', 'archived', 'scheduled')",
            name="valid_status",
        ),
        sa.CheckConstraint(
            "content_type IN ('article', 'page', 'news', 'event')",
            name="valid_content_type",
        ),
    )
    op.create_index("ix_contents_tenant_id", "contents", ["tenant_id"])
    op.create_index("ix_contents_category_id", "contents", ["category_id"])
    op.create_index("ix_contents_status", "contents", ["status"])
    op.create_index("ix_contents_published_at", "contents", ["published_at"])

    # ==========================================================================
    # 6. location_tags and content_location_tags tables
    # ==========================================================================
    op.create_table(
        "location_tags",
        _id_column(),
        sa.Column("name", sa.String(100), unique=True, nullable=False),
        sa.Column("code", sa.String(10), unique=True, nullable=False),
        sa.Column("country", sa.String(3), nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("color", sa.String(7), nullable=False, server_default="#3B82F6"),
        sa.Column("icon", sa.String(50), nullable=True),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        *_timestamp_columns(),
    )

    op.create_table(
        "content_location_tags",
        sa.Column(
            "content_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("contents.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "location_tag_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("location_tags.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )
    op.create_index(
        "ix_content_location_tags_location_tag_id",
        "content_location_tags",
        ["location_tag_id"],
    )

    # ==========================================================================
    # 7. media_files table
    # ==========================================================================
    op.create_table(
        "media_files",
        _id_column(),
        _tenant_column(),
        sa.Column(
            "uploaded_by",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("cms_users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("filename", sa.String(255), nullable=False),
        sa.Column("original_filename", sa.String(255), nullable=False),
        sa.Column("file_path", sa.Text, nullable=False),
        sa.Column("file_url", sa.Text, nullable=False),
        sa.Column("mime_type", sa.String(100), nullable=False),
        sa.Column("file_size", sa.BigInteger, nullable=False),
        sa.Column("width", sa.Integer, nullable=True),
        sa.Column("height", sa.Integer, nullable=True),
        sa.Column("alt_text", sa.Text, nullable=True),
        sa.Column("caption", sa.Text, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        *_timestamp_columns(),
    )
    op.create_index("ix_media_files_tenant_id", "media_files", ["tenant_id"])

    # ==========================================================================
    # 8. navigation_menus and navigation_menu_items tables
    # ==========================================================================
    op.create_table(
        "navigation_menus",
        _id_column(),
        _tenant_column(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("location", sa.String(50), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        *_timestamp_columns(),
    )
    op.create_index("ix_navigation_menus_tenant_id", "navigation_menus", ["tenant_id"])

    op.create_table(
        "navigation_menu_items",
        _id_column(),
        sa.Column(
            "menu_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("navigation_menus.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "parent_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("navigation_menu_items.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column(
            "content_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("contents.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("url", sa.Text, nullable=True),
        sa.Column("target", sa.String(20), nullable=False, server_default="_self"),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        *_timestamp_columns(),
    )
    op.create_index("ix_navigation_menu_items_menu_id", "navigation_menu_items", ["menu_id"])

    # ==========================================================================
    # 9. site_settings table
    # ==========================================================================
    op.create_table(
        "site_settings",
        _id_column(),
        _tenant_column(),
        sa.Column("setting_key", sa.String(100), nullable=False),
        sa.Column("setting_value", sa.Text, nullable=True),
        sa.Column("setting_type", sa.String(20), nullable=False, server_default="text"),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("is_public", sa.Boolean, nullable=False, server_default="false"),
        sa.Column(
            "updated_by",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("cms_users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        *_timestamp_columns(),
        sa.UniqueConstraint("tenant_id", "setting_key", name="uq_site_setting_tenant_key"),
        sa.CheckConstraint(
            "setting_type IN ('text', 'number', 'boolean', 'json')",
            name="valid_setting_type",
        ),
    )

    # ==========================================================================
    # 10. audit_logs table
    # ==========================================================================
    op.create_table(
        "audit_logs",
        _id_column(),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("operation", sa.String(100), nullable=False),
        sa.Column("table_name", sa.String(100), nullable=False),
        sa.Column("record_id", sa.String(100), nullable=True),
        sa.Column("details", postgresql.JSONB, nullable=False, server_default="{}"),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )
    op.create_index("ix_audit_logs_tenant_id", "audit_logs", ["tenant_id"])
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_operation", "audit_logs", ["operation"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])


def downgrade() -> None:
    """Drop CMS tables."""
    op.drop_table("audit_logs")
    op.drop_table("site_settings")
    op.drop_table("navigation_menu_items")
    op.drop_table("navigation_menus")
    op.drop_table("media_files")
    op.drop_table("content_location_tags")
    op.drop_table("location_tags")
    op.drop_table("contents")
    op.drop_table("content_categories")
    op.drop_table("user_sessions")
    op.drop_table("cms_users")
    op.drop_table("schools")
