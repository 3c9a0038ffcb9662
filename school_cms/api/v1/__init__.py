# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

This package contains all v1 API endpoint definitions.
Each module provides a FastAPI router for one surface.

Modules:
    auth: Authentication endpoints (login, refresh, logout, sessions).
    public: Storefront endpoints, scoped by visitor country.
    admin: CMS endpoints, scoped by tenant.
"""

from fastapi import APIRouter

from school_cms.api.v1 import admin, auth, public

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(public.router, prefix="/public", tags=["Public"])
router.include_router(admin.router, prefix="/admin")

__all__ = ["router"]
