# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Correlation ID and request metrics middleware.

Every request gets a correlation ID, taken from the ``X-Correlation-ID``
header or generated as ``cms-<hex>``. The ID is bound to the structlog
context for the duration of the request and echoed in the response.

Metrics Collected:
- cms_http_requests_total: Requests by method, route and status
- cms_http_request_duration_seconds: Latency histogram by method and route
- cms_http_errors_total: Responses with status >= 400 by method, route and status
"""

import logging
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware

from school_cms.utils.logging import bind_context, clear_context, performance_event

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"

REQUESTS_TOTAL = Counter(
    "cms_http_requests_total",
    "Total HTTP requests",
    ["method", "route", "status"],
)
REQUEST_DURATION = Histogram(
    "cms_http_request_duration_seconds",
    "HTTP request latency",
    ["method", "route"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)
ERRORS_TOTAL = Counter(
    "cms_http_errors_total",
    "HTTP responses with an error status",
    ["method", "route", "status"],
)


def new_correlation_id() -> str:
    return f"cms-{uuid.uuid4().hex}"


def route_label(request: Request) -> str:
    """Route template of the matched route, so IDs do not explode cardinality."""
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    return path or "unmatched"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind the correlation ID and record request metrics."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or new_correlation_id()
        request.state.correlation_id = correlation_id

        clear_context()
        bind_context(
            correlation_id=correlation_id,
            method=request.method,
            path=request.url.path,
        )

        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            elapsed = time.perf_counter() - start
            route = route_label(request)

            REQUESTS_TOTAL.labels(request.method, route, str(status_code)).inc()
            REQUEST_DURATION.labels(request.method, route).observe(elapsed)
            if status_code >= 400:
                ERRORS_TOTAL.labels(request.method, route, str(status_code)).inc()

            performance_event(
                "http_request",
                elapsed * 1000,
                method=request.method,
                route=route,
                status=status_code,
            )
            clear_context()

        response.headers[CORRELATION_HEADER] = correlation_id
        return response
