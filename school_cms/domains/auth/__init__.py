# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication domain: JWT handling, password hashing and sessions."""

from school_cms.domains.auth.jwt import (
    InvalidTokenError,
    JWTError,
    JWTManager,
    TokenExpiredError,
    TokenPair,
    TokenPayload,
)
from school_cms.domains.auth.password import PasswordHasher, hash_password, verify_password
from school_cms.domains.auth.service import (
    AuthService,
    ClientInfo,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    LoginResult,
    SessionNotFoundError,
    clean_expired_sessions,
)

__all__ = [
    "AuthService",
    "ClientInfo",
    "InvalidCredentialsError",
    "InvalidRefreshTokenError",
    "InvalidTokenError",
    "JWTError",
    "JWTManager",
    "LoginResult",
    "PasswordHasher",
    "SessionNotFoundError",
    "TokenExpiredError",
    "TokenPair",
    "TokenPayload",
    "clean_expired_sessions",
    "hash_password",
    "verify_password",
]
