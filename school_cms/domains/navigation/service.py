# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Navigation menu service.

Menus belong to a tenant and are rendered at a named location such as
``header`` or ``footer``. Items may nest through ``parent_id`` and may
link either to a URL or to a content entry.
"""

import logging
from collections import defaultdict
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from school_cms.domains.audit.service import AuditService
from school_cms.infrastructure.database.models import (
    Content,
    NavigationMenu,
    NavigationMenuItem,
)
from school_cms.models.navigation import (
    MenuCreateRequest,
    MenuItemCreateRequest,
    MenuItemResponse,
    MenuResponse,
)

logger = logging.getLogger(__name__)


class NavigationServiceError(Exception):
    """Base exception for navigation errors."""

    pass


class MenuNotFoundError(NavigationServiceError):
    """Raised when a menu does not exist in the tenant."""

    pass


class MenuItemNotFoundError(NavigationServiceError):
    """Raised when a menu item does not exist in the menu."""

    pass


class InvalidMenuItemError(NavigationServiceError):
    """Raised when an item links nowhere or to a missing parent or content."""

    pass


def build_tree(items: list[MenuItemResponse]) -> list[MenuItemResponse]:
    """Nest items under their parents, keeping the given order.

    Items whose parent is missing from the list are promoted to roots.
    """
    ids = {item.id for item in items}
    children: dict[str, list[MenuItemResponse]] = defaultdict(list)
    roots = []
    for item in items:
        if item.parent_id and item.parent_id in ids:
            children[item.parent_id].append(item)
        else:
            roots.append(item)

    def attach(node: MenuItemResponse) -> MenuItemResponse:
        return node.model_copy(update={"children": [attach(c) for c in children[node.id]]})

    return [attach(root) for root in roots]


class NavigationService:
    """Service for managing navigation menus."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db
        self._audit = AuditService(db)

    async def list_menus(self, tenant_id: str) -> list[MenuResponse]:
        """All menus of a tenant with their flat item lists.

        Menus are ordered by location then name. Items are ordered by
        sort_order and carry the linked content title.
        """
        result = await self._db.execute(
            select(NavigationMenu)
            .where(NavigationMenu.tenant_id == tenant_id)
            .order_by(NavigationMenu.location, NavigationMenu.name)
        )
        menus = result.scalars().all()
        if not menus:
            return []

        items = await self._items_for([m.id for m in menus], active_only=False)

        return [
            MenuResponse.model_validate({**menu.to_dict(), "items": items.get(menu.id, [])})
            for menu in menus
        ]

    async def menus_for_location(self, tenant_id: str, location: str) -> list[MenuResponse]:
        """Active menus at a location, with their active items as a tree."""
        result = await self._db.execute(
            select(NavigationMenu)
            .where(
                NavigationMenu.tenant_id == tenant_id,
                NavigationMenu.location == location,
                NavigationMenu.is_active.is_(True),
            )
            .order_by(NavigationMenu.name)
        )
        menus = result.scalars().all()
        if not menus:
            return []

        items = await self._items_for([m.id for m in menus], active_only=True)

        return [
            MenuResponse.model_validate(
                {**menu.to_dict(), "items": build_tree(items.get(menu.id, []))}
            )
            for menu in menus
        ]

    async def create_menu(
        self,
        tenant_id: str,
        request: MenuCreateRequest,
        user_id: str,
    ) -> MenuResponse:
        menu = NavigationMenu(
            tenant_id=tenant_id,
            name=request.name,
            location=request.location,
            is_active=request.is_active,
        )
        self._db.add(menu)
        await self._db.flush()

        await self._audit.record(
            "menu_created",
            "navigation_menus",
            user_id=user_id,
            tenant_id=tenant_id,
            record_id=menu.id,
            details={"name": menu.name, "location": menu.location},
        )
        await self._db.commit()

        return MenuResponse.model_validate({**menu.to_dict(), "items": []})

    async def delete_menu(self, tenant_id: str, menu_id: str, user_id: str) -> None:
        """Delete a menu; its items are removed by cascade.

        Raises:
            MenuNotFoundError: If not found.
        """
        menu = await self._get_menu(tenant_id, menu_id)
        await self._db.delete(menu)

        await self._audit.record(
            "menu_deleted",
            "navigation_menus",
            user_id=user_id,
            tenant_id=tenant_id,
            record_id=menu_id,
            details={"name": menu.name},
        )
        await self._db.commit()

    async def add_item(
        self,
        tenant_id: str,
        menu_id: str,
        request: MenuItemCreateRequest,
        user_id: str,
    ) -> MenuItemResponse:
        """Append an item to a menu.

        Raises:
            MenuNotFoundError: If the menu is not in the tenant.
            InvalidMenuItemError: If the item has neither url nor content,
                or references a parent or content that does not exist.
        """
        await self._get_menu(tenant_id, menu_id)

        if not request.url and not request.content_id:
            raise InvalidMenuItemError("A menu item needs a url or a content_id")

        if request.parent_id:
            parent = await self._db.execute(
                select(NavigationMenuItem.id).where(
                    NavigationMenuItem.id == request.parent_id,
                    NavigationMenuItem.menu_id == menu_id,
                )
            )
            if parent.scalar_one_or_none() is None:
                raise InvalidMenuItemError("Parent item not found in this menu")

        content_title = content_slug = None
        if request.content_id:
            content = await self._db.execute(
                select(Content.title, Content.slug).where(
                    Content.id == request.content_id,
                    Content.tenant_id == tenant_id,
                )
            )
            row = content.first()
            if row is None:
                raise InvalidMenuItemError("Linked content not found")
            content_title, content_slug = row

        item = NavigationMenuItem(menu_id=menu_id, **request.model_dump())
        self._db.add(item)
        await self._db.flush()

        await self._audit.record(
            "menu_item_created",
            "navigation_menu_items",
            user_id=user_id,
            tenant_id=tenant_id,
            record_id=item.id,
            details={"menuId": menu_id, "title": item.title},
        )
        await self._db.commit()

        return MenuItemResponse.model_validate(
            {**item.to_dict(), "content_title": content_title, "content_slug": content_slug}
        )

    async def delete_item(
        self,
        tenant_id: str,
        menu_id: str,
        item_id: str,
        user_id: str,
    ) -> None:
        """Delete a menu item and, by cascade, its children.

        Raises:
            MenuNotFoundError: If the menu is not in the tenant.
            MenuItemNotFoundError: If the item is not in the menu.
        """
        await self._get_menu(tenant_id, menu_id)

        result = await self._db.execute(
            select(NavigationMenuItem).where(
                NavigationMenuItem.id == item_id,
                NavigationMenuItem.menu_id == menu_id,
            )
        )
        item = result.scalar_one_or_none()
        if item is None:
            raise MenuItemNotFoundError("Menu item not found")

        await self._db.delete(item)
        await self._audit.record(
            "menu_item_deleted",
            "navigation_menu_items",
            user_id=user_id,
            tenant_id=tenant_id,
            record_id=item_id,
            details={"menuId": menu_id, "title": item.title},
        )
        await self._db.commit()

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    async def _get_menu(self, tenant_id: str, menu_id: str) -> NavigationMenu:
        result = await self._db.execute(
            select(NavigationMenu).where(
                NavigationMenu.id == menu_id,
                NavigationMenu.tenant_id == tenant_id,
            )
        )
        menu = result.scalar_one_or_none()
        if menu is None:
            raise MenuNotFoundError("Menu not found")
        return menu

    async def _items_for(
        self,
        menu_ids: list[str],
        active_only: bool,
    ) -> dict[str, list[MenuItemResponse]]:
        stmt = (
            select(
                NavigationMenuItem,
                Content.title.label("content_title"),
                Content.slug.label("content_slug"),
            )
            .outerjoin(Content, Content.id == NavigationMenuItem.content_id)
            .where(NavigationMenuItem.menu_id.in_(menu_ids))
            .order_by(NavigationMenuItem.sort_order, NavigationMenuItem.title)
        )
        if active_only:
            stmt = stmt.where(NavigationMenuItem.is_active.is_(True))
        result = await self._db.execute(stmt)

        grouped: dict[str, list[MenuItemResponse]] = defaultdict(list)
        for item, title, slug in result.all():
            data: dict[str, Any] = {**item.to_dict(), "content_title": title, "content_slug": slug}
            grouped[item.menu_id].append(MenuItemResponse.model_validate(data))
        return grouped
