# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication API models.

The auth surface speaks camelCase on the wire.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from school_cms.models.common import ORMModel


class CamelModel(BaseModel):
    """Model that serializes and accepts camelCase aliases."""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class LoginRequest(BaseModel):
    """Credentials for POST /auth/login."""

    email: EmailStr
    password: str = Field(min_length=6)


class RefreshRequest(CamelModel):
    """Optional body for POST /auth/refresh; the cookie is the fallback."""

    refresh_token: str | None = Field(default=None, alias="refreshToken")


class TokensInfo(CamelModel):
    access_token: str = Field(alias="accessToken")
    refresh_token: str = Field(alias="refreshToken")
    expires_in: str = Field(alias="expiresIn")


class AuthUserInfo(CamelModel):
    """User block returned after login or refresh."""

    id: str
    email: str
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    role: str
    avatar_url: str | None = Field(default=None, alias="avatarUrl")


class LoginResponse(CamelModel):
    success: bool = True
    tokens: TokensInfo
    user: AuthUserInfo


class MeUserInfo(CamelModel):
    id: str
    tenant_id: str | None = Field(default=None, alias="tenantId")
    email: str
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    role: str
    avatar_url: str | None = Field(default=None, alias="avatarUrl")
    school_name: str | None = Field(default=None, alias="schoolName")
    country: str | None = None


class MeResponse(BaseModel):
    user: MeUserInfo


class VerifyUserInfo(CamelModel):
    id: str
    tenant_id: str | None = Field(default=None, alias="tenantId")
    role: str
    email: str


class VerifyResponse(BaseModel):
    valid: bool = True
    user: VerifyUserInfo


class SessionInfo(CamelModel):
    """One active refresh session."""

    id: str
    ip_address: str | None = Field(default=None, alias="ipAddress")
    user_agent: str | None = Field(default=None, alias="userAgent")
    created_at: datetime = Field(alias="createdAt")
    expires_at: datetime = Field(alias="expiresAt")
    is_current: bool = Field(default=False, alias="isCurrent")


class SessionListResponse(BaseModel):
    sessions: list[SessionInfo]


class LogoutAllResponse(ORMModel):
    success: bool = True
    message: str
    revoked: int
