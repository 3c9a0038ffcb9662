# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the assembled application.

The app is built by create_app() with the database session and services
mocked. The lifespan is not entered, so no database or scheduler starts.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from school_cms import __version__
from school_cms.api.app import create_app
from school_cms.api.dependencies import get_db
from school_cms.domains.auth.jwt import JWTManager
from school_cms.domains.content.service import InvalidSortFieldError, SlugExistsError
from school_cms.domains.user.service import RoleNotAllowedError
from school_cms.models.dashboard import DashboardCounts, DashboardStatsResponse


def create_mock_result(value=None):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


@pytest.fixture
def session() -> AsyncMock:
    db = AsyncMock()
    db.execute = AsyncMock(return_value=create_mock_result(True))
    return db


@pytest.fixture
def client(session: AsyncMock) -> TestClient:
    app = create_app()

    async def override_db():
        yield session

    app.dependency_overrides[get_db] = override_db
    return TestClient(app)


@pytest.fixture
def admin_headers(jwt_manager: JWTManager, sample_user) -> dict[str, str]:
    return {"Authorization": f"Bearer {jwt_manager.create_access_token(sample_user, 's-1')}"}


@pytest.fixture
def viewer_headers(jwt_manager: JWTManager, user_factory) -> dict[str, str]:
    token = jwt_manager.create_access_token(user_factory(role="viewer"), "s-2")
    return {"Authorization": f"Bearer {token}"}


class TestAppRoutes:
    """Tests for the root, docs and operational routes."""

    def test_root(self, client: TestClient) -> None:
        body = client.get("/").json()

        assert body["version"] == __version__
        assert body["documentation"] == "/api/v1/docs"
        assert body["health"] == "/health"

    def test_endpoint_index(self, client: TestClient) -> None:
        endpoints = client.get("/api/v1/docs").json()["endpoints"]

        assert "POST /api/v1/auth/login" in endpoints["Authentication"]
        assert "GET /api/v1/public/search" in endpoints["Public"]
        assert "DELETE /api/v1/admin/contents/{content_id}" in endpoints["Admin Contents"]
        assert "POST /api/v1/admin/maintenance/clean-sessions" in endpoints["Maintenance"]

    def test_liveness(self, client: TestClient) -> None:
        response = client.get("/live")

        assert response.status_code == 200
        assert response.json()["status"] == "alive"

    def test_unknown_route(self, client: TestClient) -> None:
        response = client.get("/api/v1/nothing-here")

        assert response.status_code == 404
        assert response.json()["code"] == "ROUTE_NOT_FOUND"

    def test_correlation_id_is_echoed(self, client: TestClient) -> None:
        response = client.get("/live", headers={"X-Correlation-ID": "cms-test-1"})

        assert response.headers["X-Correlation-ID"] == "cms-test-1"

    def test_correlation_id_is_generated(self, client: TestClient) -> None:
        response = client.get("/live")

        assert response.headers["X-Correlation-ID"].startswith("cms-")

    def test_metrics(self, client: TestClient) -> None:
        client.get("/live")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "cms_http_requests_total" in response.text


class TestPublicApi:
    def test_short_search_query(self, client: TestClient, session: AsyncMock) -> None:
        response = client.get("/api/v1/public/search", params={"q": "a"})

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_SEARCH_QUERY"
        session.execute.assert_not_called()

    def test_invalid_page(self, client: TestClient) -> None:
        response = client.get("/api/v1/public/contents", params={"page": 0})

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"


class TestAdminContentsApi:
    """Admin content routes with a mocked ContentService."""

    def test_requires_token(self, client: TestClient) -> None:
        response = client.get("/api/v1/admin/contents")

        assert response.status_code == 401
        assert response.json()["code"] == "MISSING_TOKEN"

    def test_list_is_scoped_to_tenant(
        self,
        client: TestClient,
        admin_headers: dict[str, str],
        sample_tenant_id: str,
    ) -> None:
        with patch("school_cms.api.v1.admin.contents.ContentService") as service_cls:
            service_cls.return_value.list_contents = AsyncMock(return_value=([], 0))

            response = client.get(
                "/api/v1/admin/contents",
                params={"status": "draft", "page": 2},
                headers=admin_headers,
            )

        assert response.status_code == 200
        assert response.json()["contents"] == []
        assert response.json()["pagination"]["page"] == 2
        args = service_cls.return_value.list_contents.call_args.args
        assert args[0] == sample_tenant_id
        assert args[1].status == "draft"

    def test_invalid_sort_field(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        with patch("school_cms.api.v1.admin.contents.ContentService") as service_cls:
            service_cls.return_value.list_contents = AsyncMock(
                side_effect=InvalidSortFieldError("Invalid sort field: password")
            )

            response = client.get(
                "/api/v1/admin/contents",
                params={"sort_by": "password"},
                headers=admin_headers,
            )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_SORT_FIELD"

    def test_viewer_cannot_create(
        self,
        client: TestClient,
        viewer_headers: dict[str, str],
    ) -> None:
        response = client.post(
            "/api/v1/admin/contents",
            json={"title": "Hello", "slug": "hello", "body": "<p>Hi</p>"},
            headers=viewer_headers,
        )

        assert response.status_code == 403
        assert response.json()["code"] == "READ_ONLY_ACCESS"

    def test_duplicate_slug(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        with patch("school_cms.api.v1.admin.contents.ContentService") as service_cls:
            service_cls.return_value.create = AsyncMock(side_effect=SlugExistsError("taken"))

            response = client.post(
                "/api/v1/admin/contents",
                json={"title": "Hello", "slug": "hello", "body": "<p>Hi</p>"},
                headers=admin_headers,
            )

        assert response.status_code == 409
        assert response.json()["code"] == "SLUG_EXISTS"

    @pytest.mark.parametrize(
        ("method", "path"),
        [
            ("GET", "/api/v1/admin/contents/not-a-uuid"),
            ("DELETE", "/api/v1/admin/contents/42"),
            ("GET", "/api/v1/admin/contents/not-a-uuid/related"),
        ],
    )
    def test_malformed_content_id(
        self,
        client: TestClient,
        admin_headers: dict[str, str],
        method: str,
        path: str,
    ) -> None:
        with patch("school_cms.api.v1.admin.contents.ContentService") as service_cls:
            response = client.request(method, path, headers=admin_headers)

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"
        service_cls.assert_not_called()

    def test_malformed_author_filter(
        self, client: TestClient, admin_headers: dict[str, str]
    ) -> None:
        with patch("school_cms.api.v1.admin.contents.ContentService") as service_cls:
            response = client.get(
                "/api/v1/admin/contents",
                params={"author_id": "someone"},
                headers=admin_headers,
            )

        assert response.status_code == 422
        service_cls.assert_not_called()

    def test_content_id_is_passed_as_text(
        self, client: TestClient, admin_headers: dict[str, str]
    ) -> None:
        content_id = "7c9e6679-7425-40de-944b-e07fc1f90ae7"
        with patch("school_cms.api.v1.admin.contents.ContentService") as service_cls:
            service_cls.return_value.set_location_tags = AsyncMock(return_value=[])

            response = client.put(
                f"/api/v1/admin/contents/{content_id}/location-tags",
                json={"locationTagIds": []},
                headers=admin_headers,
            )

        assert response.status_code == 200
        assert response.json()["contentId"] == content_id
        assert service_cls.return_value.set_location_tags.call_args.args[1] == content_id

    def test_malformed_location_tag_ids(
        self, client: TestClient, admin_headers: dict[str, str]
    ) -> None:
        with patch("school_cms.api.v1.admin.contents.ContentService") as service_cls:
            response = client.put(
                "/api/v1/admin/contents/7c9e6679-7425-40de-944b-e07fc1f90ae7/location-tags",
                json={"locationTagIds": ["not-a-uuid"]},
                headers=admin_headers,
            )

        assert response.status_code == 422
        service_cls.assert_not_called()

    def test_malformed_session_id(
        self, client: TestClient, admin_headers: dict[str, str]
    ) -> None:
        response = client.delete("/api/v1/auth/sessions/not-a-uuid", headers=admin_headers)

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_maintenance_needs_super_admin(
        self,
        client: TestClient,
        admin_headers: dict[str, str],
    ) -> None:
        response = client.post("/api/v1/admin/maintenance/clean-sessions", headers=admin_headers)

        assert response.status_code == 403
        assert response.json()["code"] == "INSUFFICIENT_PERMISSIONS"

    def test_migration_status(
        self,
        client: TestClient,
        jwt_manager: JWTManager,
        sample_super_admin,
    ) -> None:
        token = jwt_manager.create_access_token(sample_super_admin, "s-3")
        status = {
            "current_version": "001_initial_schema",
            "pending_count": 0,
            "is_up_to_date": True,
        }

        with patch(
            "school_cms.api.v1.admin.maintenance.get_migration_status",
            AsyncMock(return_value=status),
        ) as get_status:
            response = client.get(
                "/api/v1/admin/maintenance/migrations",
                headers={"Authorization": f"Bearer {token}"},
            )

        assert response.status_code == 200
        assert response.json() == status
        get_status.assert_awaited_once()


class TestAdminDashboardApi:
    """Tests for /api/v1/admin/dashboard."""

    def test_stats(
        self,
        client: TestClient,
        admin_headers: dict[str, str],
        sample_tenant_id: str,
    ) -> None:
        stats = DashboardStatsResponse(
            period="30d",
            stats=DashboardCounts(total_contents=3, published_contents=2, draft_contents=1),
            recent_contents=[],
            top_contents=[],
        )
        with patch("school_cms.api.v1.admin.dashboard.DashboardService") as service_cls:
            service_cls.return_value.stats = AsyncMock(return_value=stats)

            response = client.get(
                "/api/v1/admin/dashboard/stats",
                params={"period": "30d"},
                headers=admin_headers,
            )

        assert response.status_code == 200
        body = response.json()
        assert body["period"] == "30d"
        assert body["stats"]["total_contents"] == 3
        assert body["recentContents"] == []
        assert body["topContents"] == []
        service_cls.return_value.stats.assert_awaited_once_with(sample_tenant_id, "30d")

    def test_viewer_can_read(self, client: TestClient, viewer_headers: dict[str, str]) -> None:
        with patch("school_cms.api.v1.admin.dashboard.DashboardService") as service_cls:
            service_cls.return_value.stats = AsyncMock(
                return_value=DashboardStatsResponse(
                    period="7d", stats=DashboardCounts(), recent_contents=[], top_contents=[]
                )
            )

            response = client.get("/api/v1/admin/dashboard/stats", headers=viewer_headers)

        assert response.status_code == 200
        assert service_cls.return_value.stats.call_args.args[1] == "7d"

    def test_requires_token(self, client: TestClient) -> None:
        response = client.get("/api/v1/admin/dashboard/stats")

        assert response.status_code == 401


class TestAdminAuditLogsApi:
    """Tests for /api/v1/admin/audit-logs."""

    def test_list(
        self,
        client: TestClient,
        admin_headers: dict[str, str],
        sample_tenant_id: str,
    ) -> None:
        user_id = "7c9e6679-7425-40de-944b-e07fc1f90ae7"
        with patch("school_cms.api.v1.admin.audit_logs.AuditService") as service_cls:
            service_cls.return_value.list_logs = AsyncMock(return_value=([], 0))

            response = client.get(
                "/api/v1/admin/audit-logs",
                params={"operation": "content_deleted", "user_id": user_id, "page": 2},
                headers=admin_headers,
            )

        assert response.status_code == 200
        body = response.json()
        assert body["logs"] == []
        assert body["pagination"]["total"] == 0
        service_cls.return_value.list_logs.assert_awaited_once_with(
            sample_tenant_id, "content_deleted", None, user_id, 2, 50
        )

    def test_viewer_is_forbidden(
        self, client: TestClient, viewer_headers: dict[str, str]
    ) -> None:
        with patch("school_cms.api.v1.admin.audit_logs.AuditService") as service_cls:
            response = client.get("/api/v1/admin/audit-logs", headers=viewer_headers)

        assert response.status_code == 403
        assert response.json()["code"] == "INSUFFICIENT_PERMISSIONS"
        service_cls.assert_not_called()

    def test_malformed_user_filter(
        self, client: TestClient, admin_headers: dict[str, str]
    ) -> None:
        with patch("school_cms.api.v1.admin.audit_logs.AuditService") as service_cls:
            response = client.get(
                "/api/v1/admin/audit-logs",
                params={"user_id": "someone"},
                headers=admin_headers,
            )

        assert response.status_code == 422
        service_cls.assert_not_called()


class TestAdminUsersApi:
    """Tests for /api/v1/admin/users."""

    def test_admin_cannot_deactivate_super_admin(
        self,
        client: TestClient,
        admin_headers: dict[str, str],
    ) -> None:
        with patch("school_cms.api.v1.admin.users.UserService") as service_cls:
            service_cls.return_value.deactivate_user = AsyncMock(
                side_effect=RoleNotAllowedError("Only super admins can modify super admins")
            )

            response = client.delete(
                "/api/v1/admin/users/7c9e6679-7425-40de-944b-e07fc1f90ae7",
                headers=admin_headers,
            )

        assert response.status_code == 403
        assert response.json()["code"] == "ROLE_NOT_ALLOWED"
        call = service_cls.return_value.deactivate_user.call_args
        assert call.kwargs["deactivator_role"] == "admin"
