# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""JWT token management utilities.

Access tokens carry the user's identity and role so requests can be
authorized without a database hit. Refresh tokens only carry the user ID and
the ``sessionId`` of the persisted UserSession they belong to.

Both token types are signed with the same secret and carry the configured
issuer and audience.

Example:
    >>> from school_cms.core.config import get_settings
    >>> jwt_manager = JWTManager(get_settings().jwt)
    >>> pair = jwt_manager.create_token_pair(user, session_id="...")
    >>> claims = jwt_manager.decode_token(pair.access_token, "access")
"""

import hashlib
import logging
import secrets
from datetime import timedelta
from typing import TYPE_CHECKING, Literal

from jose import ExpiredSignatureError, jwt
from pydantic import BaseModel, ConfigDict, Field

from school_cms.core.config.settings import JWTSettings
from school_cms.utils.datetime import utc_now

if TYPE_CHECKING:
    from school_cms.infrastructure.database.models import CmsUser

logger = logging.getLogger(__name__)


class TokenPayload(BaseModel):
    """Decoded JWT claims.

    Attributes:
        user_id: Subject user ID (``userId`` claim).
        type: Token type (access or refresh).
        email: User email (access tokens only).
        role: User role (access tokens only).
        tenant_id: School the user belongs to (access tokens only).
        session_id: Session the token pair was issued for.
    """

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId")
    type: Literal["access", "refresh"]
    email: str | None = None
    role: str | None = None
    first_name: str | None = Field(default=None, alias="firstName")
    last_name: str | None = Field(default=None, alias="lastName")
    tenant_id: str | None = Field(default=None, alias="tenantId")
    session_id: str | None = Field(default=None, alias="sessionId")
    exp: int
    iat: int
    jti: str


class TokenPair(BaseModel):
    """Access and refresh token pair.

    Attributes:
        access_token: JWT access token string.
        refresh_token: JWT refresh token string.
        expires_in: Access token lifetime in seconds.
        refresh_expires_in: Refresh token lifetime in seconds.
    """

    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int
    refresh_expires_in: int


class JWTError(Exception):
    """Base exception for JWT operations."""

    pass


class TokenExpiredError(JWTError):
    """Raised when a token has expired."""

    pass


class InvalidTokenError(JWTError):
    """Raised when a token is invalid."""

    pass


class JWTManager:
    """JWT token creation and validation manager.

    Attributes:
        _settings: JWT configuration settings.
    """

    def __init__(self, settings: JWTSettings) -> None:
        self._settings = settings

    @property
    def refresh_lifetime(self) -> timedelta:
        return timedelta(days=self._settings.refresh_token_expire_days)

    @property
    def access_expires_label(self) -> str:
        """Human-readable access lifetime, e.g. ``24h``."""
        minutes = self._settings.access_token_expire_minutes
        if minutes % 60 == 0:
            return f"{minutes // 60}h"
        return f"{minutes}m"

    def _encode(self, claims: dict, lifetime: timedelta) -> str:
        now = utc_now()
        payload = {
            **claims,
            "iss": self._settings.issuer,
            "aud": self._settings.audience,
            "iat": int(now.timestamp()),
            "exp": int((now + lifetime).timestamp()),
            "jti": secrets.token_urlsafe(16),
        }
        return jwt.encode(
            payload,
            self._settings.secret_key.get_secret_value(),
            algorithm=self._settings.algorithm,
        )

    def create_access_token(self, user: "CmsUser", session_id: str | None = None) -> str:
        """Create an access token for user.

        Args:
            user: Authenticated user.
            session_id: Session the token belongs to, used by logout.

        Returns:
            JWT access token string.
        """
        return self._encode(
            {
                "sessionId": str(session_id) if session_id else None,
                "userId": str(user.id),
                "email": user.email,
                "role": user.role,
                "firstName": user.first_name,
                "lastName": user.last_name,
                "tenantId": str(user.tenant_id) if user.tenant_id else None,
                "type": "access",
            },
            timedelta(minutes=self._settings.access_token_expire_minutes),
        )

    def create_refresh_token(self, user_id: str, session_id: str) -> str:
        """Create a refresh token bound to a session."""
        return self._encode(
            {
                "userId": str(user_id),
                "sessionId": str(session_id),
                "type": "refresh",
            },
            timedelta(days=self._settings.refresh_token_expire_days),
        )

    def create_token_pair(self, user: "CmsUser", session_id: str) -> TokenPair:
        """Create an access and refresh token pair.

        Args:
            user: Authenticated user.
            session_id: ID of the session the refresh token belongs to.

        Returns:
            TokenPair with access and refresh tokens.
        """
        return TokenPair(
            access_token=self.create_access_token(user, session_id),
            refresh_token=self.create_refresh_token(user.id, session_id),
            expires_in=self._settings.access_token_expire_minutes * 60,
            refresh_expires_in=self._settings.refresh_token_expire_days * 24 * 60 * 60,
        )

    def decode_token(
        self,
        token: str,
        expected_type: Literal["access", "refresh"] | None = None,
    ) -> TokenPayload:
        """Decode and validate a JWT token.

        Signature, expiry, issuer and audience are all checked.

        Args:
            token: JWT token string.
            expected_type: Expected token type (access or refresh).

        Returns:
            TokenPayload with decoded claims.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the token is invalid or wrong type.
        """
        try:
            payload = jwt.decode(
                token,
                self._settings.secret_key.get_secret_value(),
                algorithms=[self._settings.algorithm],
                audience=self._settings.audience,
                issuer=self._settings.issuer,
            )
        except ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except Exception as e:
            logger.warning("Token decode failed: %s", str(e))
            raise InvalidTokenError(f"Invalid token: {str(e)}")

        if expected_type and payload.get("type") != expected_type:
            raise InvalidTokenError(f"Expected {expected_type} token, got {payload.get('type')}")

        try:
            return TokenPayload.model_validate(payload)
        except ValueError as e:
            raise InvalidTokenError(f"Invalid token claims: {e}")

    def verify_token(
        self,
        token: str,
        expected_type: Literal["access", "refresh"] | None = None,
    ) -> bool:
        """Verify if a token is valid."""
        try:
            self.decode_token(token, expected_type)
            return True
        except (TokenExpiredError, InvalidTokenError):
            return False

    @staticmethod
    def hash_token(token: str) -> str:
        """SHA-256 hex digest of a token.

        Sessions store this digest instead of the refresh token itself.
        """
        return hashlib.sha256(token.encode()).hexdigest()
