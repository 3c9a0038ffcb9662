# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get database sessions
- Get authenticated users and enforce roles
- Resolve the effective tenant of an admin request
- Get service instances

Example:
    @router.get("/contents")
    async def list_contents(
        db: DbSession,
        current_user: AuthenticatedUser,
        tenant_id: TenantId,
    ):
        ...
"""

import json
import logging
from typing import Annotated, AsyncGenerator
from uuid import UUID

from fastapi import Depends, Query, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from school_cms.api.errors import APIError, bad_request, forbidden
from school_cms.api.middleware.auth import CurrentUser, get_current_user
from school_cms.api.middleware.country import validate_country_compatibility
from school_cms.api.middleware.rate_limit import get_client_ip
from school_cms.core.config import get_settings
from school_cms.domains.auth.jwt import JWTManager
from school_cms.domains.auth.password import PasswordHasher
from school_cms.domains.auth.service import AuthService, ClientInfo
from school_cms.infrastructure.database.connection import get_session
from school_cms.infrastructure.database.models import CmsUser
from school_cms.infrastructure.storage.s3 import S3Storage, get_storage
from school_cms.models.common import canonical_uuid
from school_cms.utils.logging import bind_context, security_event

logger = logging.getLogger(__name__)

READ_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session for the request.

    Yields:
        AsyncSession committed on success and rolled back on error.
    """
    async with get_session() as session:
        yield session


DbSession = Annotated[AsyncSession, Depends(get_db)]


# =========================================================================
# Authentication Dependencies
# =========================================================================


def get_optional_user(request: Request) -> CurrentUser | None:
    """Get current user if authenticated, None otherwise."""
    return get_current_user(request)


async def require_auth(request: Request, db: DbSession) -> CurrentUser:
    """Require an authenticated, still active user.

    Raises:
        APIError: 401 MISSING_TOKEN without a token, 401 INVALID_TOKEN when
            the token is bad or expired or its user is no longer active.
    """
    user = get_current_user(request)
    headers = {"WWW-Authenticate": "Bearer"}

    if user is None:
        if getattr(request.state, "auth_error", "missing") == "missing":
            raise APIError(
                status.HTTP_401_UNAUTHORIZED,
                "Access token required",
                "MISSING_TOKEN",
                headers=headers,
            )
        security_event(
            "invalid_token",
            ip=get_client_ip(request),
            reason=request.state.auth_error,
            path=request.url.path,
        )
        raise APIError(
            status.HTTP_401_UNAUTHORIZED,
            "Invalid or expired token",
            "INVALID_TOKEN",
            headers=headers,
        )

    result = await db.execute(select(CmsUser.is_active).where(CmsUser.id == user.id))
    if result.scalar_one_or_none() is not True:
        security_event(
            "inactive_user_token",
            user_id=user.id,
            ip=get_client_ip(request),
        )
        raise APIError(
            status.HTTP_401_UNAUTHORIZED,
            "Invalid or expired token",
            "INVALID_TOKEN",
            headers=headers,
        )

    return user


AuthenticatedUser = Annotated[CurrentUser, Depends(require_auth)]
OptionalUser = Annotated[CurrentUser | None, Depends(get_optional_user)]


class RequireRole:
    """Dependency that requires one of the given roles.

    ``super_admin`` always passes.

    Example:
        @router.get("/users", dependencies=[Depends(RequireRole("admin"))])
    """

    def __init__(self, *roles: str) -> None:
        self.roles = roles

    async def __call__(self, request: Request, user: AuthenticatedUser) -> CurrentUser:
        if user.is_super_admin or user.has_any_role(*self.roles):
            return user

        security_event(
            "insufficient_permissions",
            user_id=user.id,
            ip=get_client_ip(request),
            required=list(self.roles),
            current=user.role,
            path=request.url.path,
        )
        raise forbidden(
            "Insufficient permissions",
            "INSUFFICIENT_PERMISSIONS",
            required=list(self.roles),
            current=user.role,
        )


require_admin = RequireRole("super_admin", "admin")
require_super_admin = RequireRole("super_admin")

AdminUser = Annotated[CurrentUser, Depends(require_admin)]
SuperAdminUser = Annotated[CurrentUser, Depends(require_super_admin)]


async def require_write_access(request: Request, user: AuthenticatedUser) -> CurrentUser:
    """Let reads through; writes need super_admin, admin or editor."""
    if request.method in READ_METHODS or user.can_write:
        return user

    security_event(
        "write_access_denied",
        user_id=user.id,
        ip=get_client_ip(request),
        role=user.role,
        method=request.method,
        path=request.url.path,
    )
    raise forbidden(
        "Write access denied",
        "READ_ONLY_ACCESS",
        message="Viewer role only has read access",
    )


WriterUser = Annotated[CurrentUser, Depends(require_write_access)]


# =========================================================================
# Tenant Scoping
# =========================================================================


async def _body_tenant_id(request: Request) -> str | None:
    """``tenant_id`` from a JSON write body, if any."""
    if request.method in READ_METHODS:
        return None
    if "application/json" not in request.headers.get("content-type", ""):
        return None

    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None

    if not isinstance(body, dict) or not body.get("tenant_id"):
        return None
    try:
        return canonical_uuid(body["tenant_id"])
    except ValueError:
        raise bad_request("tenant_id must be a UUID", "INVALID_TENANT_ID")


async def check_tenant_access(
    request: Request,
    db: DbSession,
    user: AuthenticatedUser,
    tenant_id: Annotated[UUID | None, Query()] = None,
) -> str:
    """Resolve the tenant an admin request operates on.

    Regular users are pinned to their own school; a write body naming
    another school is rejected. Super admins may pick a school with the
    ``tenant_id`` query parameter or body field.

    Returns:
        The effective tenant ID.

    Raises:
        APIError: 403 TENANT_ACCESS_VIOLATION or 400 INVALID_TENANT_ID.
    """
    body_tenant = await _body_tenant_id(request)

    if user.is_super_admin:
        effective = body_tenant or (str(tenant_id) if tenant_id else None) or user.tenant_id
    else:
        if body_tenant and body_tenant != user.tenant_id:
            security_event(
                "tenant_access_violation",
                user_id=user.id,
                ip=get_client_ip(request),
                user_tenant=user.tenant_id,
                requested_tenant=body_tenant,
                path=request.url.path,
            )
            raise forbidden(
                "Cannot access resources from different tenant",
                "TENANT_ACCESS_VIOLATION",
            )
        effective = user.tenant_id

    if not effective:
        raise APIError(
            status.HTTP_400_BAD_REQUEST,
            "Tenant could not be determined",
            "TENANT_REQUIRED",
        )

    await validate_country_compatibility(request, db, body_tenant)
    bind_context(tenant_id=effective)
    return effective


TenantId = Annotated[str, Depends(check_tenant_access)]


# =========================================================================
# Service Dependencies
# =========================================================================


def get_client_info(request: Request) -> ClientInfo:
    return ClientInfo(
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )


def get_jwt_manager() -> JWTManager:
    return JWTManager(get_settings().jwt)


def get_password_hasher() -> PasswordHasher:
    return PasswordHasher()


def get_auth_service(
    db: DbSession,
    jwt_manager: Annotated[JWTManager, Depends(get_jwt_manager)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
) -> AuthService:
    return AuthService(db, jwt_manager, hasher)


def get_storage_client() -> S3Storage:
    return get_storage(get_settings().storage)


Client = Annotated[ClientInfo, Depends(get_client_info)]
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
Storage = Annotated[S3Storage, Depends(get_storage_client)]
