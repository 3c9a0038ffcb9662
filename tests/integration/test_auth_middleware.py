# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for authentication, role and tenant dependencies.

A small app wires AuthMiddleware to routes guarded by the real
dependencies; the database session is mocked.
"""

from typing import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient

from school_cms.api.dependencies import (
    AuthenticatedUser,
    SuperAdminUser,
    TenantId,
    WriterUser,
    get_db,
    require_admin,
)
from school_cms.api.errors import register_exception_handlers
from school_cms.api.middleware.auth import AuthMiddleware, CurrentUser, get_current_user
from school_cms.core.config.settings import JWTSettings
from school_cms.domains.auth.jwt import JWTManager

OTHER_TENANT = "6f1c1a52-1d0b-4c43-9a33-2f6f0d1b7e10"
QUERY_TENANT = "0b7d4c1e-5a2f-4e8b-9c3d-7f6e5a4b3c2d"


def create_mock_result(value=None):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


@pytest.fixture
def session() -> AsyncMock:
    """Session whose user lookup reports an active user."""
    db = AsyncMock()
    db.execute = AsyncMock(return_value=create_mock_result(True))
    return db


@pytest.fixture
def client(jwt_manager: JWTManager, session: AsyncMock) -> TestClient:
    app = FastAPI()
    register_exception_handlers(app)
    app.add_middleware(AuthMiddleware, jwt_manager=jwt_manager)

    async def override_db():
        yield session

    app.dependency_overrides[get_db] = override_db

    @app.get("/whoami")
    async def whoami(request: Request) -> dict:
        user = get_current_user(request)
        return {
            "user": user.id if user else None,
            "authError": request.state.auth_error,
        }

    @app.get("/protected")
    async def protected(user: AuthenticatedUser) -> dict:
        return {"id": user.id, "role": user.role}

    @app.get("/admin-only")
    async def admin_only(user: CurrentUser = Depends(require_admin)) -> dict:
        return {"role": user.role}

    @app.get("/super-only")
    async def super_only(user: SuperAdminUser) -> dict:
        return {"role": user.role}

    @app.api_route("/write", methods=["GET", "POST"])
    async def write(user: WriterUser) -> dict:
        return {"role": user.role}

    @app.api_route("/tenant", methods=["GET", "POST"])
    async def tenant(tenant_id: TenantId) -> dict:
        return {"tenantId": tenant_id}

    return TestClient(app)


@pytest.fixture
def auth_header(jwt_manager: JWTManager, user_factory) -> Callable[..., dict[str, str]]:
    def build(role: str = "admin", **overrides) -> dict[str, str]:
        user = user_factory(role=role, **overrides)
        return {"Authorization": f"Bearer {jwt_manager.create_access_token(user, 'session-1')}"}

    return build


class TestAuthMiddleware:
    """Tests for AuthMiddleware."""

    def test_no_token(self, client: TestClient) -> None:
        assert client.get("/whoami").json() == {"user": None, "authError": "missing"}

    def test_non_bearer_scheme_is_missing(self, client: TestClient) -> None:
        response = client.get("/whoami", headers={"Authorization": "Basic dXNlcjpwdw=="})

        assert response.json()["authError"] == "missing"

    def test_valid_token_sets_user(self, client: TestClient, auth_header) -> None:
        body = client.get("/whoami", headers=auth_header()).json()

        assert body["user"] is not None
        assert body["authError"] is None

    def test_invalid_token(self, client: TestClient) -> None:
        response = client.get("/whoami", headers={"Authorization": "Bearer not.a.jwt"})

        assert response.json() == {"user": None, "authError": "invalid"}

    def test_expired_token(
        self,
        client: TestClient,
        jwt_settings: JWTSettings,
        user_factory,
    ) -> None:
        expired = JWTManager(jwt_settings.model_copy(update={"access_token_expire_minutes": -1}))
        token = expired.create_access_token(user_factory())

        response = client.get("/whoami", headers={"Authorization": f"Bearer {token}"})

        assert response.json()["authError"] == "expired"

    def test_refresh_token_is_not_an_access_token(
        self,
        client: TestClient,
        jwt_manager: JWTManager,
    ) -> None:
        token = jwt_manager.create_refresh_token("user-1", "session-1")

        response = client.get("/whoami", headers={"Authorization": f"Bearer {token}"})

        assert response.json()["authError"] == "invalid"


class TestRequireAuth:
    """Tests for the require_auth dependency."""

    def test_missing_token(self, client: TestClient) -> None:
        response = client.get("/protected")

        assert response.status_code == 401
        assert response.json()["code"] == "MISSING_TOKEN"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_invalid_token(self, client: TestClient) -> None:
        response = client.get("/protected", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 401
        assert response.json()["code"] == "INVALID_TOKEN"

    def test_active_user(self, client: TestClient, auth_header) -> None:
        response = client.get("/protected", headers=auth_header("editor"))

        assert response.status_code == 200
        assert response.json()["role"] == "editor"

    def test_deactivated_user(
        self,
        client: TestClient,
        session: AsyncMock,
        auth_header,
    ) -> None:
        session.execute.return_value = create_mock_result(False)

        response = client.get("/protected", headers=auth_header())

        assert response.status_code == 401
        assert response.json()["code"] == "INVALID_TOKEN"


class TestRoles:
    """Tests for RequireRole and write access."""

    @pytest.mark.parametrize(
        "role,status_code",
        [("super_admin", 200), ("admin", 200), ("editor", 403), ("viewer", 403)],
    )
    def test_admin_only(self, client: TestClient, auth_header, role, status_code) -> None:
        response = client.get("/admin-only", headers=auth_header(role))

        assert response.status_code == status_code

    def test_forbidden_body(self, client: TestClient, auth_header) -> None:
        response = client.get("/super-only", headers=auth_header("admin"))

        assert response.status_code == 403
        assert response.json() == {
            "error": "Insufficient permissions",
            "code": "INSUFFICIENT_PERMISSIONS",
            "required": ["super_admin"],
            "current": "admin",
        }

    def test_viewer_can_read(self, client: TestClient, auth_header) -> None:
        assert client.get("/write", headers=auth_header("viewer")).status_code == 200

    def test_viewer_cannot_write(self, client: TestClient, auth_header) -> None:
        response = client.post("/write", headers=auth_header("viewer"))

        assert response.status_code == 403
        assert response.json()["code"] == "READ_ONLY_ACCESS"

    def test_editor_can_write(self, client: TestClient, auth_header) -> None:
        assert client.post("/write", headers=auth_header("editor")).status_code == 200


class TestTenantAccess:
    """Tests for check_tenant_access."""

    def test_user_is_pinned_to_own_tenant(
        self,
        client: TestClient,
        auth_header,
        sample_tenant_id: str,
    ) -> None:
        response = client.get(
            "/tenant",
            params={"tenant_id": OTHER_TENANT},
            headers=auth_header("admin"),
        )

        assert response.json() == {"tenantId": sample_tenant_id}

    def test_body_naming_other_tenant_is_rejected(
        self,
        client: TestClient,
        auth_header,
    ) -> None:
        response = client.post(
            "/tenant",
            json={"tenant_id": OTHER_TENANT},
            headers=auth_header("admin"),
        )

        assert response.status_code == 403
        assert response.json()["code"] == "TENANT_ACCESS_VIOLATION"

    def test_body_naming_own_tenant_is_allowed(
        self,
        client: TestClient,
        auth_header,
        sample_tenant_id: str,
    ) -> None:
        response = client.post(
            "/tenant",
            json={"tenant_id": sample_tenant_id},
            headers=auth_header("editor"),
        )

        assert response.status_code == 200

    def test_super_admin_picks_tenant(self, client: TestClient, auth_header) -> None:
        response = client.get(
            "/tenant",
            params={"tenant_id": OTHER_TENANT},
            headers=auth_header("super_admin", tenant_id=None),
        )

        assert response.json() == {"tenantId": OTHER_TENANT}

    def test_super_admin_body_wins_over_query(self, client: TestClient, auth_header) -> None:
        response = client.post(
            "/tenant",
            params={"tenant_id": QUERY_TENANT},
            json={"tenant_id": OTHER_TENANT},
            headers=auth_header("super_admin", tenant_id=None),
        )

        assert response.json() == {"tenantId": OTHER_TENANT}

    def test_super_admin_without_tenant(self, client: TestClient, auth_header) -> None:
        response = client.get("/tenant", headers=auth_header("super_admin", tenant_id=None))

        assert response.status_code == 400
        assert response.json()["code"] == "TENANT_REQUIRED"

    def test_malformed_query_tenant(self, client: TestClient, auth_header) -> None:
        response = client.get(
            "/tenant",
            params={"tenant_id": "not-a-uuid"},
            headers=auth_header("super_admin", tenant_id=None),
        )

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_malformed_body_tenant(self, client: TestClient, auth_header) -> None:
        response = client.post(
            "/tenant",
            json={"tenant_id": "not-a-uuid"},
            headers=auth_header("super_admin", tenant_id=None),
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_TENANT_ID"

    def test_body_tenant_is_normalized(self, client: TestClient, auth_header) -> None:
        response = client.post(
            "/tenant",
            json={"tenant_id": OTHER_TENANT.upper()},
            headers=auth_header("super_admin", tenant_id=None),
        )

        assert response.json() == {"tenantId": OTHER_TENANT}
