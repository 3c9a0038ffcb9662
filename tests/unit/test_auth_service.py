# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the authentication service."""

from typing import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from school_cms.domains.auth.jwt import JWTManager
from school_cms.domains.auth.password import PasswordHasher
from school_cms.domains.auth.service import (
    AuthService,
    ClientInfo,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    SessionNotFoundError,
    clean_expired_sessions,
)
from school_cms.infrastructure.database.models import AuditLog, UserSession


def create_mock_result(value=None, rowcount: int = 0):
    """Create a mock result with scalar_one_or_none."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    result.rowcount = rowcount
    return result


def added(mock_db: AsyncMock, model: type) -> list:
    return [c.args[0] for c in mock_db.add.call_args_list if isinstance(c.args[0], model)]


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def auth_service(mock_db: AsyncMock, jwt_manager: JWTManager, hasher: PasswordHasher):
    return AuthService(mock_db, jwt_manager, hasher)


@pytest.fixture
def client() -> ClientInfo:
    return ClientInfo(ip_address="203.0.113.7", user_agent="pytest")


@pytest.fixture
def active_user(user_factory: Callable[..., MagicMock], hasher: PasswordHasher) -> MagicMock:
    return user_factory(password_hash=hasher.hash("admin123456"))


def live_session(user_id: str, refresh_token: str, session_id: str = "session-1") -> MagicMock:
    session = MagicMock()
    session.id = session_id
    session.user_id = user_id
    session.session_token = JWTManager.hash_token(refresh_token)
    return session


class TestAuthenticate:
    """Tests for AuthService.authenticate."""

    @pytest.mark.asyncio
    async def test_login_opens_session_and_audits(
        self,
        auth_service: AuthService,
        mock_db: AsyncMock,
        jwt_manager: JWTManager,
        active_user: MagicMock,
        client: ClientInfo,
    ) -> None:
        mock_db.execute.return_value = create_mock_result(active_user)

        result = await auth_service.authenticate("  ADMIN@School.test ", "admin123456", client)

        sessions = added(mock_db, UserSession)
        assert len(sessions) == 1
        session = sessions[0]
        assert session.id == result.session_id
        assert session.user_id == active_user.id
        assert session.ip_address == "203.0.113.7"
        assert session.session_token == JWTManager.hash_token(result.tokens.refresh_token)

        claims = jwt_manager.decode_token(result.tokens.access_token, "access")
        assert claims.session_id == result.session_id
        assert claims.user_id == active_user.id

        audit = added(mock_db, AuditLog)[0]
        assert audit.operation == "user_login"
        assert audit.details["email"] == "admin@school.test"
        assert active_user.last_login is not None
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unknown_user_is_rejected(
        self,
        auth_service: AuthService,
        mock_db: AsyncMock,
        client: ClientInfo,
    ) -> None:
        mock_db.execute.return_value = create_mock_result(None)

        with pytest.raises(InvalidCredentialsError, match="Invalid credentials"):
            await auth_service.authenticate("nobody@school.test", "whatever", client)

        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_wrong_password_is_rejected_the_same_way(
        self,
        auth_service: AuthService,
        mock_db: AsyncMock,
        active_user: MagicMock,
        client: ClientInfo,
    ) -> None:
        mock_db.execute.return_value = create_mock_result(active_user)

        with pytest.raises(InvalidCredentialsError, match="Invalid credentials"):
            await auth_service.authenticate(active_user.email, "wrong-password", client)

        mock_db.commit.assert_not_called()


class TestRefresh:
    """Tests for refresh token rotation."""

    @pytest.mark.asyncio
    async def test_refresh_rotates_session_token(
        self,
        auth_service: AuthService,
        mock_db: AsyncMock,
        jwt_manager: JWTManager,
        active_user: MagicMock,
    ) -> None:
        old_token = jwt_manager.create_refresh_token(active_user.id, "session-1")
        session = live_session(active_user.id, old_token)
        mock_db.execute.side_effect = [
            create_mock_result(session),
            create_mock_result(active_user),
        ]

        result = await auth_service.refresh(old_token)

        assert result.session_id == "session-1"
        assert result.tokens.refresh_token != old_token
        assert session.session_token == JWTManager.hash_token(result.tokens.refresh_token)
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_reused_refresh_token_is_rejected(
        self,
        auth_service: AuthService,
        mock_db: AsyncMock,
        jwt_manager: JWTManager,
        active_user: MagicMock,
    ) -> None:
        """A token that was already rotated out no longer matches the session."""
        old_token = jwt_manager.create_refresh_token(active_user.id, "session-1")
        session = live_session(active_user.id, "a-newer-refresh-token")
        mock_db.execute.return_value = create_mock_result(session)

        with pytest.raises(InvalidRefreshTokenError, match="already been used"):
            await auth_service.refresh(old_token)

        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_revoked_session_is_rejected(
        self,
        auth_service: AuthService,
        mock_db: AsyncMock,
        jwt_manager: JWTManager,
    ) -> None:
        token = jwt_manager.create_refresh_token("user-1", "session-1")
        mock_db.execute.return_value = create_mock_result(None)

        with pytest.raises(InvalidRefreshTokenError, match="Invalid session"):
            await auth_service.refresh(token)

    @pytest.mark.asyncio
    async def test_access_token_cannot_refresh(
        self,
        auth_service: AuthService,
        mock_db: AsyncMock,
        jwt_manager: JWTManager,
        active_user: MagicMock,
    ) -> None:
        access = jwt_manager.create_access_token(active_user, "session-1")

        with pytest.raises(InvalidRefreshTokenError):
            await auth_service.refresh(access)

        mock_db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_inactive_user_cannot_refresh(
        self,
        auth_service: AuthService,
        mock_db: AsyncMock,
        jwt_manager: JWTManager,
        user_factory: Callable[..., MagicMock],
    ) -> None:
        user = user_factory(is_active=False)
        token = jwt_manager.create_refresh_token(user.id, "session-1")
        mock_db.execute.side_effect = [
            create_mock_result(live_session(user.id, token)),
            create_mock_result(user),
        ]

        with pytest.raises(InvalidRefreshTokenError, match="inactive"):
            await auth_service.refresh(token)


class TestSessions:
    """Tests for logout and session revocation."""

    @pytest.mark.asyncio
    async def test_logout_all_reports_revoked_count(
        self,
        auth_service: AuthService,
        mock_db: AsyncMock,
    ) -> None:
        mock_db.execute.return_value = create_mock_result(rowcount=3)

        revoked = await auth_service.logout_all("user-1", tenant_id="tenant-1")

        assert revoked == 3
        audit = added(mock_db, AuditLog)[0]
        assert audit.operation == "user_logout_all"
        assert audit.details == {"revoked": 3}

    @pytest.mark.asyncio
    async def test_revoke_foreign_session_raises(
        self,
        auth_service: AuthService,
        mock_db: AsyncMock,
    ) -> None:
        mock_db.execute.return_value = create_mock_result(None)

        with pytest.raises(SessionNotFoundError):
            await auth_service.revoke_session("user-1", "someone-elses-session")

    @pytest.mark.asyncio
    async def test_revoke_session_deactivates_it(
        self,
        auth_service: AuthService,
        mock_db: AsyncMock,
    ) -> None:
        session = MagicMock(is_active=True)
        mock_db.execute.return_value = create_mock_result(session)

        await auth_service.revoke_session("user-1", "session-2")

        assert session.is_active is False
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_get_user_by_token_ignores_bad_tokens(
        self,
        auth_service: AuthService,
        mock_db: AsyncMock,
    ) -> None:
        assert await auth_service.get_user_by_token("garbage") is None
        mock_db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_clean_expired_sessions(self, mock_db: AsyncMock) -> None:
        mock_db.execute.return_value = create_mock_result(rowcount=5)

        removed = await clean_expired_sessions(mock_db)

        assert removed == 5
        mock_db.commit.assert_awaited_once()
