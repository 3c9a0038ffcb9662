# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication API endpoints.

This module provides endpoints for CMS user authentication:
- POST /login - Email and password login
- POST /refresh - Rotate the refresh token and issue a new pair
- POST /logout - Revoke the current session
- POST /logout-all - Revoke every session of the user
- GET /me - Current user with school details
- GET /verify - Check an access token
- GET /sessions - List active sessions
- DELETE /sessions/{session_id} - Revoke a session

The refresh token is returned in the body and also set as an httpOnly
``refreshToken`` cookie. Login and refresh share a per-IP limit of 10
requests per 15 minutes.

Example:
    POST /api/v1/auth/login
    {"email": "admin@school-cms.local", "password": "..."}
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Request, Response, status
from fastapi.responses import JSONResponse

from school_cms.api.dependencies import AuthenticatedUser, AuthServiceDep, Client
from school_cms.api.errors import APIError, not_found
from school_cms.api.middleware.rate_limit import auth_rate_limit
from school_cms.core.config import get_settings
from school_cms.domains.auth.service import (
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    LoginResult,
    SessionNotFoundError,
)
from school_cms.models.auth import (
    AuthUserInfo,
    LoginRequest,
    LoginResponse,
    LogoutAllResponse,
    MeResponse,
    MeUserInfo,
    RefreshRequest,
    SessionListResponse,
    TokensInfo,
    VerifyResponse,
    VerifyUserInfo,
)
from school_cms.models.common import SuccessResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _set_refresh_cookie(response: Response, refresh_token: str) -> None:
    settings = get_settings()
    response.set_cookie(
        key=settings.jwt.refresh_cookie_name,
        value=refresh_token,
        max_age=settings.jwt.refresh_token_expire_days * 24 * 60 * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )


def _clear_refresh_cookie(response: Response) -> None:
    settings = get_settings()
    response.delete_cookie(
        key=settings.jwt.refresh_cookie_name,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )


def _login_response(result: LoginResult, expires_label: str) -> LoginResponse:
    return LoginResponse(
        tokens=TokensInfo(
            access_token=result.tokens.access_token,
            refresh_token=result.tokens.refresh_token,
            expires_in=expires_label,
        ),
        user=AuthUserInfo.model_validate(result.user),
    )


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Log in with email and password",
)
@auth_rate_limit
async def login(
    request: Request,
    response: Response,
    data: LoginRequest,
    auth_service: AuthServiceDep,
    client: Client,
) -> LoginResponse:
    """Authenticate a CMS user and open a session.

    Raises:
        APIError: 401 INVALID_CREDENTIALS for unknown users, inactive users
            and wrong passwords alike.
    """
    try:
        result = await auth_service.authenticate(data.email, data.password, client)
    except InvalidCredentialsError:
        raise APIError(
            status.HTTP_401_UNAUTHORIZED,
            "Invalid credentials",
            "INVALID_CREDENTIALS",
        )

    _set_refresh_cookie(response, result.tokens.refresh_token)
    return _login_response(result, auth_service.access_expires_label)


@router.post(
    "/refresh",
    response_model=LoginResponse,
    summary="Refresh the token pair",
)
@auth_rate_limit
async def refresh(
    request: Request,
    response: Response,
    auth_service: AuthServiceDep,
    client: Client,
    data: RefreshRequest | None = None,
) -> LoginResponse | JSONResponse:
    """Exchange a refresh token, from the body or the cookie, for a new pair.

    The presented token is rotated out and cannot be used again.
    """
    token = (data.refresh_token if data else None) or request.cookies.get(
        get_settings().jwt.refresh_cookie_name
    )
    if not token:
        raise APIError(
            status.HTTP_400_BAD_REQUEST,
            "Refresh token required",
            "MISSING_REFRESH_TOKEN",
        )

    try:
        result = await auth_service.refresh(token, client)
    except InvalidRefreshTokenError as e:
        logger.info("Refresh rejected: %s", e)
        error = JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"error": "Invalid refresh token", "code": "INVALID_REFRESH_TOKEN"},
        )
        _clear_refresh_cookie(error)
        return error

    _set_refresh_cookie(response, result.tokens.refresh_token)
    return _login_response(result, auth_service.access_expires_label)


@router.post("/logout", response_model=SuccessResponse)
async def logout(
    request: Request,
    response: Response,
    current_user: AuthenticatedUser,
    auth_service: AuthServiceDep,
    client: Client,
) -> SuccessResponse:
    """Revoke the session the access token was issued for."""
    await auth_service.logout(
        current_user.id,
        current_user.session_id,
        tenant_id=current_user.tenant_id,
        ip_address=client.ip_address,
    )
    _clear_refresh_cookie(response)
    return SuccessResponse(message="Logged out successfully")


@router.post("/logout-all", response_model=LogoutAllResponse)
async def logout_all(
    request: Request,
    response: Response,
    current_user: AuthenticatedUser,
    auth_service: AuthServiceDep,
    client: Client,
) -> LogoutAllResponse:
    revoked = await auth_service.logout_all(
        current_user.id,
        tenant_id=current_user.tenant_id,
        ip_address=client.ip_address,
    )
    _clear_refresh_cookie(response)
    return LogoutAllResponse(message="Logged out from all devices", revoked=revoked)


@router.get("/me", response_model=MeResponse)
async def me(
    request: Request,
    current_user: AuthenticatedUser,
    auth_service: AuthServiceDep,
) -> MeResponse:
    """Current user with the name and country of their school."""
    profile = await auth_service.get_profile(current_user.id)
    if profile is None:
        raise not_found("User not found", "USER_NOT_FOUND")

    user, school = profile
    return MeResponse(
        user=MeUserInfo(
            id=user.id,
            tenant_id=user.tenant_id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role,
            avatar_url=user.avatar_url,
            school_name=school.name if school else None,
            country=school.country if school else None,
        )
    )


@router.get("/verify", response_model=VerifyResponse)
async def verify(request: Request, current_user: AuthenticatedUser) -> VerifyResponse:
    return VerifyResponse(
        user=VerifyUserInfo(
            id=current_user.id,
            tenant_id=current_user.tenant_id,
            role=current_user.role,
            email=current_user.email,
        )
    )


@router.get("/sessions", response_model=SessionListResponse)
async def list_sessions(
    request: Request,
    current_user: AuthenticatedUser,
    auth_service: AuthServiceDep,
) -> SessionListResponse:
    sessions = await auth_service.list_sessions(current_user.id, current_user.session_id)
    return SessionListResponse(sessions=sessions)


@router.delete("/sessions/{session_id}", response_model=SuccessResponse)
async def revoke_session(
    request: Request,
    session_id: UUID,
    current_user: AuthenticatedUser,
    auth_service: AuthServiceDep,
    client: Client,
) -> SuccessResponse:
    """Revoke one of the caller's sessions.

    Raises:
        APIError: 404 SESSION_NOT_FOUND.
    """
    try:
        await auth_service.revoke_session(
            current_user.id,
            str(session_id),
            tenant_id=current_user.tenant_id,
            ip_address=client.ip_address,
        )
    except SessionNotFoundError:
        raise not_found("Session not found", "SESSION_NOT_FOUND")

    return SuccessResponse(message="Session revoked")
