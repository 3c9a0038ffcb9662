# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""CMS user management API models.

Responses never include the password hash.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, Field

from school_cms.models.common import ORMModel, Pagination, UUIDStr

UserRole = Literal["super_admin", "admin", "editor", "viewer"]


class UserCreateRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(default="", max_length=100)
    role: UserRole = "editor"
    avatar_url: str | None = None
    tenant_id: UUIDStr | None = None


class UserUpdateRequest(BaseModel):
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    role: UserRole | None = None
    avatar_url: str | None = None
    is_active: bool | None = None
    password: str | None = Field(default=None, min_length=6, max_length=128)


class UserResponse(ORMModel):
    id: str
    tenant_id: str | None = None
    email: str
    first_name: str
    last_name: str
    role: str
    avatar_url: str | None = None
    is_active: bool
    last_login: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserListResponse(BaseModel):
    users: list[UserResponse]
    pagination: Pagination


class UserEnvelope(BaseModel):
    success: bool = True
    user: UserResponse
