# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API error type and global exception handlers.

Every error body has the shape ``{"error": <message>, "code": <CODE>}``
plus optional extra keys, e.g.::

    {"error": "Slug already exists", "code": "SLUG_EXISTS"}
    {"error": "Insufficient permissions", "code": "INSUFFICIENT_PERMISSIONS",
     "required": ["admin"], "current": "viewer"}
"""

import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from school_cms.core.config import get_settings
from school_cms.utils.datetime import format_iso, utc_now

logger = logging.getLogger(__name__)


class APIError(HTTPException):
    """HTTP error carrying a machine-readable code.

    Example:
        >>> raise APIError(404, "Content not found", "CONTENT_NOT_FOUND")
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        code: str,
        headers: dict[str, str] | None = None,
        **extra: Any,
    ) -> None:
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.message = message
        self.code = code
        self.extra = extra

    def to_body(self) -> dict[str, Any]:
        return {"error": self.message, "code": self.code, **self.extra}


def not_found(message: str, code: str) -> APIError:
    return APIError(status.HTTP_404_NOT_FOUND, message, code)


def bad_request(message: str, code: str, **extra: Any) -> APIError:
    return APIError(status.HTTP_400_BAD_REQUEST, message, code, **extra)


def conflict(message: str, code: str, **extra: Any) -> APIError:
    return APIError(status.HTTP_409_CONFLICT, message, code, **extra)


def forbidden(message: str, code: str, **extra: Any) -> APIError:
    return APIError(status.HTTP_403_FORBIDDEN, message, code, **extra)


# =============================================================================
# Handlers
# =============================================================================


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_body(), headers=exc.headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render plain HTTPExceptions, including unmatched routes."""
    if isinstance(exc, APIError):
        return await api_error_handler(request, exc)

    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        body = {
            "error": "Route not found",
            "code": "ROUTE_NOT_FOUND",
            "path": request.url.path,
            "method": request.method,
        }
    else:
        body = {"error": exc.detail, "code": f"HTTP_{exc.status_code}"}

    return JSONResponse(
        status_code=exc.status_code,
        content=body,
        headers=getattr(exc, "headers", None),
    )


_LOCATIONS = ("body", "query", "path", "header", "cookie")

# 429 bodies for router groups with their own limit
RATE_LIMIT_MESSAGES = (
    ("/api/v1/auth", "Too many authentication attempts", "AUTH_RATE_LIMIT_EXCEEDED"),
    ("/api/v1/admin", "Too many admin requests", "ADMIN_RATE_LIMIT_EXCEEDED"),
)


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Flatten pydantic errors into ``details: [{field, message}]``."""
    details = [
        {
            "field": ".".join(str(part) for part in err["loc"] if part not in _LOCATIONS),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Validation error", "code": "VALIDATION_ERROR", "details": details},
    )


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning("Rate limit exceeded on %s: %s", request.url.path, exc.detail)

    content = {
        "error": "Too many requests, please try again later",
        "code": "RATE_LIMIT_EXCEEDED",
    }
    for prefix, message, code in RATE_LIMIT_MESSAGES:
        if request.url.path.startswith(prefix):
            content = {"error": message, "code": code}
            break

    response = JSONResponse(status_code=status.HTTP_429_TOO_MANY_REQUESTS, content=content)
    limit = getattr(exc, "limit", None)
    item = getattr(limit, "limit", None)
    response.headers["Retry-After"] = str(item.get_expiry() if item is not None else 900)
    return response


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log the traceback and hide internals outside development."""
    correlation_id = getattr(request.state, "correlation_id", None)
    logger.exception(
        "Unhandled error on %s %s (correlation_id=%s)",
        request.method,
        request.url.path,
        correlation_id,
    )

    body: dict[str, Any] = {
        "error": "Internal server error",
        "code": "INTERNAL_SERVER_ERROR",
        "correlationId": correlation_id,
        "timestamp": format_iso(utc_now()),
    }
    if get_settings().is_development:
        body["details"] = str(exc)

    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
