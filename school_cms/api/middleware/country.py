# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Visitor country detection and target school resolution.

The country is read from CDN headers, in order of precedence:
1. cloudfront-viewer-country (CloudFront)
2. cf-ipcountry (Cloudflare)
3. x-country

Two-letter codes are normalized to ISO 3166-1 alpha-3. On public routes
the school serving that country is resolved into
``request.state.target_school``; when the country has no school the
Brazilian school is used.

Example:
    GET /api/v1/public/contents
    CloudFront-Viewer-Country: JP
"""

import logging
from contextlib import AbstractAsyncContextManager
from typing import Callable

from fastapi import Request, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from school_cms.domains.school.service import SchoolService
from school_cms.infrastructure.database.connection import DatabaseError
from school_cms.infrastructure.database.models import School
from school_cms.models.public import LocationInfo

logger = logging.getLogger(__name__)

COUNTRY_CODES = {
    "BR": "BRA",
    "US": "USA",
    "JP": "JPN",
    "PE": "PER",
    "CO": "COL",
    "TH": "THA",
}

# Path prefixes whose requests get a target school
SCHOOL_PATH_PREFIXES = ("/api/v1/public",)


def normalize_country(code: str | None) -> str | None:
    """Map a two-letter country code to three letters, upper-casing others."""
    if not code:
        return None
    code = code.strip().upper()
    if len(code) == 2:
        return COUNTRY_CODES.get(code, code)
    return code


def extract_location(request: Request) -> LocationInfo:
    """Build the visitor location from CDN headers."""
    headers = request.headers
    cloudfront = headers.get("cloudfront-viewer-country")
    cloudflare = headers.get("cf-ipcountry")
    explicit = headers.get("x-country")

    if cloudfront:
        source = "cloudfront"
    elif cloudflare:
        source = "cloudflare"
    else:
        source = "header"

    return LocationInfo(
        country=normalize_country(cloudfront or cloudflare or explicit),
        region=headers.get("cloudfront-viewer-country-region"),
        city=headers.get("cloudfront-viewer-city"),
        source=source,
    )


class CountryMiddleware(BaseHTTPMiddleware):
    """Attach ``request.state.location`` and, on public routes, the target school.

    Attributes:
        _get_db: Callable returning a session context manager.
    """

    def __init__(
        self,
        app: ASGIApp,
        get_db: Callable[[], AbstractAsyncContextManager[AsyncSession]],
    ) -> None:
        super().__init__(app)
        self._get_db = get_db

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        location = extract_location(request)
        request.state.location = location
        request.state.target_school = None

        if location.country and request.url.path.startswith(SCHOOL_PATH_PREFIXES):
            request.state.target_school = await self._resolve_school(location.country)

        return await call_next(request)

    async def _resolve_school(self, country: str) -> School | None:
        try:
            async with self._get_db() as db:
                school = await SchoolService(db).find_for_country(country)
        except (DatabaseError, SQLAlchemyError) as e:
            logger.error("Target school lookup failed for %s: %s", country, e)
            return None

        if school is not None:
            logger.debug("Target school for %s: %s", country, school.name)
        return school


def get_location(request: Request) -> LocationInfo | None:
    return getattr(request.state, "location", None)


def get_target_school(request: Request) -> School | None:
    return getattr(request.state, "target_school", None)


async def validate_country_compatibility(
    request: Request,
    db: AsyncSession,
    tenant_id: str | None,
) -> None:
    """Warn when an admin write targets a school outside the visitor's country.

    Never blocks the request.
    """
    if request.method not in ("POST", "PUT", "PATCH", "DELETE") or not tenant_id:
        return

    location = get_location(request)
    if location is None or not location.country:
        return

    try:
        school_country = await SchoolService(db).get_country(tenant_id)
    except (DatabaseError, SQLAlchemyError) as e:
        logger.error("Country check failed for school %s: %s", tenant_id, e)
        return

    if school_country and school_country != location.country:
        logger.warning(
            "Country mismatch detected: detected=%s school=%s school_id=%s ip=%s",
            location.country,
            school_country,
            tenant_id,
            request.client.host if request.client else None,
        )
