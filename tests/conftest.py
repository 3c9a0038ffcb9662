# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests (mocked AsyncSession)
- Integration tests (FastAPI TestClient with dependency overrides)
"""

import os

# Settings are read on first import of school_cms; pin a test environment
# that needs neither Redis nor AWS.
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("LOG_LEVEL", "DEBUG")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-jwt-testing")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("SEED_ENABLED", "false")
os.environ.setdefault("SECRETS_ENABLED", "false")

from datetime import datetime, timezone  # noqa: E402
from typing import Any  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402
from uuid import uuid4  # noqa: E402

import pytest  # noqa: E402
from pydantic import SecretStr  # noqa: E402

from school_cms.core.config.settings import JWTSettings  # noqa: E402
from school_cms.domains.auth.jwt import JWTManager  # noqa: E402

# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def mock_db() -> AsyncMock:
    """Create mock database session."""
    db = AsyncMock()
    db.add = MagicMock()
    db.delete = AsyncMock()
    db.flush = AsyncMock()
    db.commit = AsyncMock()
    db.refresh = AsyncMock()
    db.execute = AsyncMock()
    return db


# =============================================================================
# Auth Fixtures
# =============================================================================


@pytest.fixture
def jwt_settings() -> JWTSettings:
    """JWT settings with a test secret."""
    return JWTSettings(secret_key=SecretStr("test-secret-key-for-jwt-testing"))


@pytest.fixture
def jwt_manager(jwt_settings: JWTSettings) -> JWTManager:
    """Create JWT manager with test settings."""
    return JWTManager(jwt_settings)


@pytest.fixture
def sample_tenant_id() -> str:
    """Provide a sample tenant ID for testing."""
    return "550e8400-e29b-41d4-a716-446655440000"


def make_user(
    role: str = "admin",
    tenant_id: str | None = "550e8400-e29b-41d4-a716-446655440000",
    **overrides: Any,
) -> MagicMock:
    """Create a CmsUser-like object."""
    user = MagicMock()
    user.id = str(uuid4())
    user.tenant_id = tenant_id
    user.email = f"{role}@school.test"
    user.first_name = "Ana"
    user.last_name = "Silva"
    user.role = role
    user.avatar_url = None
    user.is_active = True
    user.last_login = None
    user.password_hash = "$2b$04$invalidinvalidinvalidinvalidinvalidinvalidinvalidinva"
    user.created_at = datetime.now(timezone.utc)
    user.updated_at = datetime.now(timezone.utc)
    for key, value in overrides.items():
        setattr(user, key, value)
    return user


@pytest.fixture
def user_factory():
    """Factory for CmsUser-like objects."""
    return make_user


@pytest.fixture
def sample_user() -> MagicMock:
    """Active admin of the sample tenant."""
    return make_user()


@pytest.fixture
def sample_super_admin() -> MagicMock:
    return make_user(role="super_admin")


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
