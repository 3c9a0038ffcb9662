# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Rate limiting using slowapi.

Limits are counted per client: the user ID when authenticated, otherwise
the client IP (honoring ``X-Forwarded-For``). Counters live in Redis so
every worker shares them.

Limits:
- global: 1000/15min in production, 5000/15min elsewhere
- auth routes: 10/15min per IP
- public routes: 1000/15min
- admin routes: 500/15min

Example:
    @router.post("/login")
    @auth_rate_limit
    async def login(request: Request, ...):
        ...
"""

import logging

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from school_cms.core.config import get_settings

logger = logging.getLogger(__name__)


def get_client_ip(request: Request) -> str:
    """Client IP, preferring the first ``X-Forwarded-For`` hop."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


def get_client_identifier(request: Request) -> str:
    """Rate limit key: ``user:<id>`` when authenticated, else ``ip:<addr>``."""
    user = getattr(request.state, "user", None)
    if user:
        return f"user:{user.id}"
    return f"ip:{get_client_ip(request)}"


def get_ip_only(request: Request) -> str:
    """Rate limit key for login and refresh, where no user is known yet."""
    return f"ip:{get_client_ip(request)}"


def auth_limit() -> str:
    return get_settings().rate_limit.auth


def public_limit() -> str:
    return get_settings().rate_limit.public


def admin_limit() -> str:
    return get_settings().rate_limit.admin


settings = get_settings()
limiter = Limiter(
    key_func=get_client_identifier,
    default_limits=[settings.global_rate_limit],
    storage_uri=settings.redis.url,
    enabled=settings.rate_limit.enabled,
)

# Location tag mutation limits
RATE_LIMIT_TAG_CREATE = "5/minute"
RATE_LIMIT_TAG_UPDATE = "20/minute"
RATE_LIMIT_TAG_DELETE = "10/5minutes"

# Router group limits; every route in a group draws from one counter
auth_rate_limit = limiter.shared_limit(auth_limit, scope="auth", key_func=get_ip_only)
public_rate_limit = limiter.shared_limit(public_limit, scope="public")
admin_rate_limit = limiter.shared_limit(admin_limit, scope="admin")
