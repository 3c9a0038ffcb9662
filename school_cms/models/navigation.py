# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Navigation menu API models."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from school_cms.models.common import ORMModel, UUIDStr


class MenuCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    location: str = Field(min_length=1, max_length=50)
    is_active: bool = True


class MenuItemCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    url: str | None = None
    content_id: UUIDStr | None = None
    parent_id: UUIDStr | None = None
    target: Literal["_self", "_blank"] = "_self"
    sort_order: int = Field(default=0, ge=0)
    is_active: bool = True


class MenuItemResponse(ORMModel):
    id: str
    menu_id: str
    parent_id: str | None = None
    content_id: str | None = None
    title: str
    url: str | None = None
    target: str = "_self"
    sort_order: int = 0
    is_active: bool = True
    content_title: str | None = None
    content_slug: str | None = None
    children: list["MenuItemResponse"] = Field(default_factory=list)


class MenuResponse(ORMModel):
    id: str
    tenant_id: str
    name: str
    location: str
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None
    items: list[MenuItemResponse] = Field(default_factory=list)


class MenuListResponse(BaseModel):
    menus: list[MenuResponse]


class MenuEnvelope(BaseModel):
    success: bool = True
    menu: MenuResponse


class MenuItemEnvelope(BaseModel):
    success: bool = True
    item: MenuItemResponse
