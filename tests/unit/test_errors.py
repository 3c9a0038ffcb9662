# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for API error bodies and exception handlers."""

from types import SimpleNamespace
from unittest.mock import patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field
from slowapi.errors import RateLimitExceeded

from school_cms.api.errors import APIError, conflict, register_exception_handlers


class Item(BaseModel):
    title: str = Field(min_length=1)
    priority: int


FIFTEEN_MINUTES = SimpleNamespace(get_expiry=lambda: 900)


def rate_limited() -> RateLimitExceeded:
    return RateLimitExceeded(
        SimpleNamespace(error_message="10 per 15 minute", limit=FIFTEEN_MINUTES)
    )


@pytest.fixture
def client() -> TestClient:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/conflict")
    async def raise_conflict():
        raise conflict("Slug already exists", "SLUG_EXISTS", slug="news")

    @app.post("/items")
    async def create_item(item: Item):
        return item

    @app.get("/boom")
    async def boom():
        raise RuntimeError("database exploded")

    @app.get("/api/v1/auth/limited")
    async def auth_limited():
        raise rate_limited()

    @app.get("/api/v1/admin/limited")
    async def admin_limited():
        raise rate_limited()

    @app.get("/api/v1/public/limited")
    async def public_limited():
        raise rate_limited()

    return TestClient(app, raise_server_exceptions=False)


class TestAPIError:
    def test_body_includes_extra_keys(self) -> None:
        error = APIError(
            403,
            "Insufficient permissions",
            "INSUFFICIENT_PERMISSIONS",
            required=["admin"],
            current="viewer",
        )

        assert error.to_body() == {
            "error": "Insufficient permissions",
            "code": "INSUFFICIENT_PERMISSIONS",
            "required": ["admin"],
            "current": "viewer",
        }

    def test_api_error_response(self, client: TestClient) -> None:
        response = client.get("/conflict")

        assert response.status_code == 409
        assert response.json() == {
            "error": "Slug already exists",
            "code": "SLUG_EXISTS",
            "slug": "news",
        }


class TestHandlers:
    def test_unknown_route(self, client: TestClient) -> None:
        response = client.delete("/nowhere")

        assert response.status_code == 404
        assert response.json() == {
            "error": "Route not found",
            "code": "ROUTE_NOT_FOUND",
            "path": "/nowhere",
            "method": "DELETE",
        }

    def test_method_not_allowed(self, client: TestClient) -> None:
        response = client.put("/conflict")

        assert response.status_code == 405
        assert response.json()["code"] == "HTTP_405"

    def test_validation_error(self, client: TestClient) -> None:
        response = client.post("/items", json={"title": "", "priority": "high"})

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert {d["field"] for d in body["details"]} == {"title", "priority"}

    def test_unhandled_error_hides_details(self, client: TestClient) -> None:
        response = client.get("/boom")

        assert response.status_code == 500
        body = response.json()
        assert body["code"] == "INTERNAL_SERVER_ERROR"
        assert "timestamp" in body
        assert "correlationId" in body
        assert "details" not in body

    def test_unhandled_error_details_in_development(self, client: TestClient) -> None:
        with patch(
            "school_cms.api.errors.get_settings",
            return_value=SimpleNamespace(is_development=True),
        ):
            response = client.get("/boom")

        assert response.json()["details"] == "database exploded"


class TestRateLimitHandler:
    @pytest.mark.parametrize(
        "path,code",
        [
            ("/api/v1/auth/limited", "AUTH_RATE_LIMIT_EXCEEDED"),
            ("/api/v1/admin/limited", "ADMIN_RATE_LIMIT_EXCEEDED"),
            ("/api/v1/public/limited", "RATE_LIMIT_EXCEEDED"),
        ],
    )
    def test_code_depends_on_route_group(self, client: TestClient, path: str, code: str) -> None:
        response = client.get(path)

        assert response.status_code == 429
        assert response.json()["code"] == code
        assert response.headers["Retry-After"] == "900"
