# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication service for CMS sign-in and session management.

This module provides the AuthService that orchestrates:
- Email/password login
- Refresh token rotation
- Session listing and revocation
- User logout

Each login creates a UserSession whose ID is embedded in both tokens as
``sessionId``. The session stores a SHA-256 digest of the current refresh
token; refreshing rotates the digest so a refresh token is single-use.

Example:
    >>> auth_service = AuthService(db_session, jwt_manager)
    >>> result = await auth_service.authenticate("a@b.com", "secret", ip, ua)
    >>> tokens = await auth_service.refresh(result.tokens.refresh_token)
"""

import logging
from typing import NamedTuple
from uuid import uuid4

from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from school_cms.domains.audit.service import AuditService
from school_cms.domains.auth.jwt import (
    InvalidTokenError,
    JWTManager,
    TokenExpiredError,
    TokenPair,
)
from school_cms.domains.auth.password import PasswordHasher
from school_cms.infrastructure.database.models import CmsUser, School, UserSession
from school_cms.models.auth import SessionInfo
from school_cms.utils.datetime import utc_now
from school_cms.utils.logging import security_event

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Base exception for authentication errors."""

    pass


class InvalidCredentialsError(AuthenticationError):
    """Raised when email or password is wrong, or the account is inactive."""

    pass


class InvalidRefreshTokenError(AuthenticationError):
    """Raised when a refresh token cannot be exchanged."""

    pass


class SessionNotFoundError(AuthenticationError):
    """Raised when a session does not exist, is inactive, or is not the caller's."""

    pass


class ClientInfo(NamedTuple):
    """Client details recorded on the session."""

    ip_address: str | None = None
    user_agent: str | None = None


class LoginResult(NamedTuple):
    """Outcome of a successful login or refresh."""

    tokens: TokenPair
    user: CmsUser
    session_id: str


class AuthService:
    """Authentication service for CMS users.

    Attributes:
        _db: Database session for queries.
        _jwt_manager: JWT token manager.
        _hasher: Password hasher.
        _audit: Audit trail writer.
    """

    def __init__(
        self,
        db: AsyncSession,
        jwt_manager: JWTManager,
        hasher: PasswordHasher | None = None,
    ) -> None:
        """Initialize the authentication service.

        Args:
            db: Async database session.
            jwt_manager: JWT token manager.
            hasher: Password hasher, defaults to bcrypt with 12 rounds.
        """
        self._db = db
        self._jwt_manager = jwt_manager
        self._hasher = hasher or PasswordHasher()
        self._audit = AuditService(db)

    @property
    def access_expires_label(self) -> str:
        return self._jwt_manager.access_expires_label

    async def authenticate(
        self,
        email: str,
        password: str,
        client: ClientInfo = ClientInfo(),
    ) -> LoginResult:
        """Sign a user in and open a new session.

        Args:
            email: Login email (case-insensitive).
            password: Plain text password.
            client: IP address and user agent of the caller.

        Returns:
            LoginResult with the token pair and the user.

        Raises:
            InvalidCredentialsError: If the user is unknown, inactive or the
                password does not match. The reason is only logged.
        """
        email = email.strip().lower()
        user = await self._get_active_user_by_email(email)

        if user is None:
            security_event("login_failed_unknown_user", ip=client.ip_address, email=email)
            raise InvalidCredentialsError("Invalid credentials")

        if not self._hasher.verify(password, user.password_hash):
            security_event(
                "login_failed_bad_password",
                user_id=user.id,
                ip=client.ip_address,
                email=email,
            )
            raise InvalidCredentialsError("Invalid credentials")

        user.last_login = utc_now()

        session_id = str(uuid4())
        tokens = self._jwt_manager.create_token_pair(user, session_id)
        self._db.add(
            UserSession(
                id=session_id,
                user_id=user.id,
                session_token=self._jwt_manager.hash_token(tokens.refresh_token),
                ip_address=client.ip_address,
                user_agent=client.user_agent,
                is_active=True,
                expires_at=utc_now() + self._jwt_manager.refresh_lifetime,
            )
        )

        await self._audit.record(
            "user_login",
            "cms_users",
            user_id=user.id,
            tenant_id=user.tenant_id,
            record_id=user.id,
            details={"email": email, "userAgent": client.user_agent},
            ip_address=client.ip_address,
        )
        await self._db.commit()

        logger.info("User logged in: %s", user.id)
        return LoginResult(tokens=tokens, user=user, session_id=session_id)

    async def refresh(
        self,
        refresh_token: str,
        client: ClientInfo = ClientInfo(),
    ) -> LoginResult:
        """Exchange a refresh token for a new token pair.

        The session keeps its ID; its stored token digest is replaced so the
        presented refresh token cannot be used again.

        Raises:
            InvalidRefreshTokenError: If the token, session or user is invalid.
        """
        try:
            payload = self._jwt_manager.decode_token(refresh_token, expected_type="refresh")
        except (TokenExpiredError, InvalidTokenError) as e:
            security_event("refresh_failed", ip=client.ip_address, reason=str(e))
            raise InvalidRefreshTokenError(f"Invalid refresh token: {str(e)}")

        if not payload.session_id:
            raise InvalidRefreshTokenError("Refresh token has no session")

        session = await self._get_live_session(payload.session_id, payload.user_id)
        if session is None:
            security_event(
                "refresh_failed",
                user_id=payload.user_id,
                ip=client.ip_address,
                reason="session not found or expired",
            )
            raise InvalidRefreshTokenError("Invalid session")

        if session.session_token != self._jwt_manager.hash_token(refresh_token):
            security_event(
                "refresh_token_reuse",
                user_id=payload.user_id,
                ip=client.ip_address,
                session_id=session.id,
            )
            raise InvalidRefreshTokenError("Refresh token has already been used")

        user = await self._get_user(payload.user_id)
        if user is None or not user.is_active:
            raise InvalidRefreshTokenError("User not found or inactive")

        tokens = self._jwt_manager.create_token_pair(user, session.id)
        session.session_token = self._jwt_manager.hash_token(tokens.refresh_token)
        session.expires_at = utc_now() + self._jwt_manager.refresh_lifetime
        if client.ip_address:
            session.ip_address = client.ip_address
        if client.user_agent:
            session.user_agent = client.user_agent

        await self._db.commit()

        logger.info("Tokens refreshed for user: %s", user.id)
        return LoginResult(tokens=tokens, user=user, session_id=session.id)

    async def logout(
        self,
        user_id: str,
        session_id: str | None,
        tenant_id: str | None = None,
        ip_address: str | None = None,
    ) -> None:
        """Revoke the caller's current session."""
        if session_id:
            await self._db.execute(
                update(UserSession)
                .where(UserSession.id == session_id, UserSession.user_id == user_id)
                .values(is_active=False, updated_at=utc_now())
            )

        await self._audit.record(
            "user_logout",
            "user_sessions",
            user_id=user_id,
            tenant_id=tenant_id,
            record_id=session_id,
            ip_address=ip_address,
        )
        await self._db.commit()

        logger.info("User logged out: %s", user_id)

    async def logout_all(
        self,
        user_id: str,
        tenant_id: str | None = None,
        ip_address: str | None = None,
    ) -> int:
        """Revoke every active session of a user.

        Returns:
            Number of sessions revoked.
        """
        revoked = await self.revoke_user_sessions(user_id)

        await self._audit.record(
            "user_logout_all",
            "user_sessions",
            user_id=user_id,
            tenant_id=tenant_id,
            details={"revoked": revoked},
            ip_address=ip_address,
        )
        await self._db.commit()

        logger.info("Revoked %d sessions for user: %s", revoked, user_id)
        return revoked

    async def revoke_user_sessions(self, user_id: str) -> int:
        """Deactivate all active sessions of user_id without committing."""
        result = await self._db.execute(
            update(UserSession)
            .where(UserSession.user_id == user_id, UserSession.is_active.is_(True))
            .values(is_active=False, updated_at=utc_now())
        )
        return result.rowcount or 0

    async def list_sessions(
        self,
        user_id: str,
        current_session_id: str | None = None,
    ) -> list[SessionInfo]:
        """List active, unexpired sessions, newest first."""
        stmt = (
            select(UserSession)
            .where(
                UserSession.user_id == user_id,
                UserSession.is_active.is_(True),
                UserSession.expires_at > utc_now(),
            )
            .order_by(UserSession.created_at.desc())
        )
        result = await self._db.execute(stmt)

        return [
            SessionInfo(
                id=session.id,
                ip_address=session.ip_address,
                user_agent=session.user_agent,
                created_at=session.created_at,
                expires_at=session.expires_at,
                is_current=session.id == current_session_id,
            )
            for session in result.scalars().all()
        ]

    async def revoke_session(
        self,
        user_id: str,
        session_id: str,
        tenant_id: str | None = None,
        ip_address: str | None = None,
    ) -> None:
        """Revoke one of the caller's sessions.

        Raises:
            SessionNotFoundError: If the session is not an active session of user_id.
        """
        stmt = select(UserSession).where(
            UserSession.id == session_id,
            UserSession.user_id == user_id,
            UserSession.is_active.is_(True),
        )
        result = await self._db.execute(stmt)
        session = result.scalar_one_or_none()

        if session is None:
            raise SessionNotFoundError(f"Session {session_id} not found")

        session.is_active = False

        await self._audit.record(
            "session_revoked",
            "user_sessions",
            user_id=user_id,
            tenant_id=tenant_id,
            record_id=session_id,
            ip_address=ip_address,
        )
        await self._db.commit()

    async def get_user_by_token(self, access_token: str) -> CmsUser | None:
        """Resolve the active user behind an access token.

        Returns:
            The user, or None if the token is invalid or the user inactive.
        """
        try:
            payload = self._jwt_manager.decode_token(access_token, expected_type="access")
        except (TokenExpiredError, InvalidTokenError):
            return None

        user = await self._get_user(payload.user_id)
        if user is None or not user.is_active:
            return None
        return user

    async def get_profile(self, user_id: str) -> tuple[CmsUser, School | None] | None:
        """Load a user and their school for the /me endpoint."""
        stmt = (
            select(CmsUser, School)
            .outerjoin(School, School.id == CmsUser.tenant_id)
            .where(CmsUser.id == user_id)
        )
        result = await self._db.execute(stmt)
        row = result.first()
        if row is None:
            return None
        return row[0], row[1]

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    async def _get_active_user_by_email(self, email: str) -> CmsUser | None:
        stmt = select(CmsUser).where(CmsUser.email == email, CmsUser.is_active.is_(True))
        result = await self._db.execute(stmt)
        return result.scalar_one_or_none()

    async def _get_user(self, user_id: str) -> CmsUser | None:
        result = await self._db.execute(select(CmsUser).where(CmsUser.id == user_id))
        return result.scalar_one_or_none()

    async def _get_live_session(self, session_id: str, user_id: str) -> UserSession | None:
        stmt = select(UserSession).where(
            UserSession.id == session_id,
            UserSession.user_id == user_id,
            UserSession.is_active.is_(True),
            UserSession.expires_at > utc_now(),
        )
        result = await self._db.execute(stmt)
        return result.scalar_one_or_none()


async def clean_expired_sessions(db: AsyncSession) -> int:
    """Delete sessions that are expired or were revoked.

    Returns:
        Number of sessions deleted.
    """
    result = await db.execute(
        delete(UserSession).where(
            or_(UserSession.expires_at < utc_now(), UserSession.is_active.is_(False))
        )
    )
    await db.commit()

    removed = result.rowcount or 0
    logger.info("Cleaned %d expired sessions", removed)
    return removed
