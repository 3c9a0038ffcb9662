# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Admin navigation menu endpoints."""

import logging
from uuid import UUID

from fastapi import APIRouter, Request, status

from school_cms.api.dependencies import AuthenticatedUser, DbSession, TenantId, WriterUser
from school_cms.api.errors import bad_request, not_found
from school_cms.api.middleware.rate_limit import admin_rate_limit
from school_cms.domains.navigation.service import (
    InvalidMenuItemError,
    MenuItemNotFoundError,
    MenuNotFoundError,
    NavigationService,
)
from school_cms.models.common import SuccessResponse
from school_cms.models.navigation import (
    MenuCreateRequest,
    MenuEnvelope,
    MenuItemCreateRequest,
    MenuItemEnvelope,
    MenuListResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=MenuListResponse)
@admin_rate_limit
async def list_menus(
    request: Request,
    db: DbSession,
    current_user: AuthenticatedUser,
    tenant_id: TenantId,
) -> MenuListResponse:
    menus = await NavigationService(db).list_menus(tenant_id)
    return MenuListResponse(menus=menus)


@router.post("", response_model=MenuEnvelope, status_code=status.HTTP_201_CREATED)
@admin_rate_limit
async def create_menu(
    request: Request,
    data: MenuCreateRequest,
    db: DbSession,
    current_user: WriterUser,
    tenant_id: TenantId,
) -> MenuEnvelope:
    menu = await NavigationService(db).create_menu(tenant_id, data, current_user.id)
    return MenuEnvelope(menu=menu)


@router.delete("/{menu_id}", response_model=SuccessResponse)
@admin_rate_limit
async def delete_menu(
    request: Request,
    menu_id: UUID,
    db: DbSession,
    current_user: WriterUser,
    tenant_id: TenantId,
) -> SuccessResponse:
    """Delete a menu together with its items."""
    try:
        await NavigationService(db).delete_menu(tenant_id, str(menu_id), current_user.id)
    except MenuNotFoundError:
        raise not_found("Menu not found", "MENU_NOT_FOUND")
    return SuccessResponse(message="Menu deleted successfully")


@router.post(
    "/{menu_id}/items",
    response_model=MenuItemEnvelope,
    status_code=status.HTTP_201_CREATED,
)
@admin_rate_limit
async def add_menu_item(
    request: Request,
    menu_id: UUID,
    data: MenuItemCreateRequest,
    db: DbSession,
    current_user: WriterUser,
    tenant_id: TenantId,
) -> MenuItemEnvelope:
    """Add an item linking to a URL or to a content entry.

    Raises:
        APIError: 404 MENU_NOT_FOUND or 400 INVALID_MENU_ITEM.
    """
    try:
        item = await NavigationService(db).add_item(tenant_id, str(menu_id), data, current_user.id)
    except MenuNotFoundError:
        raise not_found("Menu not found", "MENU_NOT_FOUND")
    except InvalidMenuItemError as e:
        raise bad_request(str(e), "INVALID_MENU_ITEM")
    return MenuItemEnvelope(item=item)


@router.delete("/{menu_id}/items/{item_id}", response_model=SuccessResponse)
@admin_rate_limit
async def delete_menu_item(
    request: Request,
    menu_id: UUID,
    item_id: UUID,
    db: DbSession,
    current_user: WriterUser,
    tenant_id: TenantId,
) -> SuccessResponse:
    try:
        await NavigationService(db).delete_item(
            tenant_id, str(menu_id), str(item_id), current_user.id
        )
    except MenuNotFoundError:
        raise not_found("Menu not found", "MENU_NOT_FOUND")
    except MenuItemNotFoundError:
        raise not_found("Menu item not found", "MENU_ITEM_NOT_FOUND")
    return SuccessResponse(message="Menu item deleted successfully")
