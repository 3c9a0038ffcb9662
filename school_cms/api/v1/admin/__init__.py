# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Admin (CMS) API routes.

Every route requires an access token. Queries are scoped to the effective
tenant: the caller's school, or for super admins the ``tenant_id`` they
name. All admin routes share a limit of 500 requests per 15 minutes.

Modules:
    contents: Content CRUD, publishing, duplication and location tags.
    categories: Category CRUD.
    media: Uploads, presigned uploads and deletion.
    users: User management (admins only).
    settings: Site settings.
    menus: Navigation menus and items.
    dashboard: Dashboard statistics.
    audit_logs: Audit trail (admins only).
    location_tags: Shared location tags.
    maintenance: Session cleanup, job and migration status (super admins only).
"""

from fastapi import APIRouter

from school_cms.api.v1.admin import (
    audit_logs,
    categories,
    contents,
    dashboard,
    location_tags,
    maintenance,
    media,
    menus,
    settings,
    users,
)

router = APIRouter()

router.include_router(contents.router, prefix="/contents", tags=["Admin Contents"])
router.include_router(categories.router, prefix="/categories", tags=["Admin Categories"])
router.include_router(media.router, prefix="/media", tags=["Admin Media"])
router.include_router(users.router, prefix="/users", tags=["Admin Users"])
router.include_router(settings.router, prefix="/settings", tags=["Admin Settings"])
router.include_router(menus.router, prefix="/menus", tags=["Admin Menus"])
router.include_router(dashboard.router, prefix="/dashboard", tags=["Admin Dashboard"])
router.include_router(audit_logs.router, prefix="/audit-logs", tags=["Admin Audit Logs"])
router.include_router(
    location_tags.router,
    prefix="/location-tags",
    tags=["Admin Location Tags"],
)
router.include_router(maintenance.router, prefix="/maintenance", tags=["Maintenance"])

__all__ = ["router"]
