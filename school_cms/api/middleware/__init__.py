# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API middleware components.

This package provides middleware for request processing:
- RequestContextMiddleware: Correlation ID and Prometheus request metrics.
- AuthMiddleware: Optional JWT authentication.
- CountryMiddleware: Visitor country and target school resolution.
- limiter: slowapi rate limiter backed by Redis.
"""

from school_cms.api.middleware.auth import AuthMiddleware, CurrentUser
from school_cms.api.middleware.country import CountryMiddleware
from school_cms.api.middleware.rate_limit import limiter
from school_cms.api.middleware.request_context import RequestContextMiddleware

__all__ = [
    "AuthMiddleware",
    "CountryMiddleware",
    "CurrentUser",
    "RequestContextMiddleware",
    "limiter",
]
