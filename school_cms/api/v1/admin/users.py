# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Admin user management endpoints.

Restricted to admins and super admins. Password hashes never leave the
service layer.
"""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, Request, status

from school_cms.api.dependencies import AdminUser, DbSession, TenantId
from school_cms.api.errors import bad_request, conflict, forbidden, not_found
from school_cms.api.middleware.rate_limit import admin_rate_limit
from school_cms.domains.user.service import (
    RoleNotAllowedError,
    SelfDeactivationError,
    UserExistsError,
    UserNotFoundError,
    UserService,
)
from school_cms.models.common import Pagination
from school_cms.models.user import (
    UserCreateRequest,
    UserEnvelope,
    UserListResponse,
    UserRole,
    UserUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=UserListResponse)
@admin_rate_limit
async def list_users(
    request: Request,
    db: DbSession,
    current_user: AdminUser,
    tenant_id: TenantId,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    role: UserRole | None = None,
    active: bool | None = None,
    search: str | None = None,
) -> UserListResponse:
    users, total = await UserService(db).list_users(tenant_id, role, active, search, page, limit)
    return UserListResponse(users=users, pagination=Pagination.build(page, limit, total))


@router.get("/{user_id}", response_model=UserEnvelope)
@admin_rate_limit
async def get_user(
    request: Request,
    user_id: UUID,
    db: DbSession,
    current_user: AdminUser,
    tenant_id: TenantId,
) -> UserEnvelope:
    try:
        user = await UserService(db).get_user(tenant_id, str(user_id))
    except UserNotFoundError:
        raise not_found("User not found", "USER_NOT_FOUND")
    return UserEnvelope(user=user)


@router.post("", response_model=UserEnvelope, status_code=status.HTTP_201_CREATED)
@admin_rate_limit
async def create_user(
    request: Request,
    data: UserCreateRequest,
    db: DbSession,
    current_user: AdminUser,
    tenant_id: TenantId,
) -> UserEnvelope:
    """Create a CMS user in the effective tenant.

    Raises:
        APIError: 409 USER_EXISTS or 403 ROLE_NOT_ALLOWED.
    """
    try:
        user = await UserService(db).create_user(
            tenant_id, data, current_user.id, creator_role=current_user.role
        )
    except UserExistsError:
        raise conflict("User with this email already exists", "USER_EXISTS")
    except RoleNotAllowedError as e:
        raise forbidden(str(e), "ROLE_NOT_ALLOWED")
    return UserEnvelope(user=user)


@router.put("/{user_id}", response_model=UserEnvelope)
@admin_rate_limit
async def update_user(
    request: Request,
    user_id: UUID,
    data: UserUpdateRequest,
    db: DbSession,
    current_user: AdminUser,
    tenant_id: TenantId,
) -> UserEnvelope:
    try:
        user = await UserService(db).update_user(
            tenant_id, str(user_id), data, current_user.id, updater_role=current_user.role
        )
    except UserNotFoundError:
        raise not_found("User not found", "USER_NOT_FOUND")
    except RoleNotAllowedError as e:
        raise forbidden(str(e), "ROLE_NOT_ALLOWED")
    except SelfDeactivationError as e:
        raise bad_request(str(e), "SELF_DEACTIVATION")
    return UserEnvelope(user=user)


@router.delete("/{user_id}", response_model=UserEnvelope)
@admin_rate_limit
async def deactivate_user(
    request: Request,
    user_id: UUID,
    db: DbSession,
    current_user: AdminUser,
    tenant_id: TenantId,
) -> UserEnvelope:
    """Deactivate a user and revoke their sessions."""
    try:
        user = await UserService(db).deactivate_user(
            tenant_id, str(user_id), current_user.id, deactivator_role=current_user.role
        )
    except UserNotFoundError:
        raise not_found("User not found", "USER_NOT_FOUND")
    except RoleNotAllowedError as e:
        raise forbidden(str(e), "ROLE_NOT_ALLOWED")
    except SelfDeactivationError as e:
        raise bad_request(str(e), "SELF_DEACTIVATION")
    return UserEnvelope(user=user)
