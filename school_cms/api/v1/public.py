# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Public storefront API endpoints.

These routes need no authentication. The country middleware resolves the
visitor's country and the school serving it; content, categories, search
and stats are scoped to that school, or span every active school when
none was resolved. Responses echo ``location`` and ``targetSchool``.

Example:
    GET /api/v1/public/contents?category=news&page=2
    CloudFront-Viewer-Country: JP
"""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, Request

from school_cms.api.dependencies import DbSession
from school_cms.api.errors import bad_request, not_found
from school_cms.api.middleware.country import get_location, get_target_school
from school_cms.api.middleware.rate_limit import public_rate_limit
from school_cms.domains.content.service import ContentNotFoundError
from school_cms.domains.location_tag.service import LocationTagService
from school_cms.domains.public.service import (
    InvalidSearchQueryError,
    PublicContentFilters,
    PublicContentService,
)
from school_cms.domains.school.service import SchoolNotFoundError, SchoolService
from school_cms.models.common import Pagination
from school_cms.models.public import (
    PublicCategoryListResponse,
    PublicContentListResponse,
    PublicContentResponse,
    PublicLocationTagListResponse,
    PublicMenusResponse,
    PublicSettingsEnvelope,
    PublicStatsResponse,
    SchoolDetail,
    SchoolInfo,
    SchoolListResponse,
    SchoolResponse,
    SearchPagination,
    SearchResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

Page = Annotated[int, Query(ge=1)]


def _service(request: Request, db: DbSession) -> PublicContentService:
    return PublicContentService(db, get_target_school(request))


def _envelope(request: Request) -> dict:
    school = get_target_school(request)
    return {
        "location": get_location(request),
        "target_school": SchoolInfo.model_validate(school) if school else None,
    }


@router.get("/contents", response_model=PublicContentListResponse)
@public_rate_limit
async def list_contents(
    request: Request,
    db: DbSession,
    page: Page = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    category: str | None = None,
    content_type: str | None = None,
    language: str | None = None,
    featured: bool = False,
    search: str | None = None,
    location_tag_id: Annotated[UUID | None, Query(alias="locationTagId")] = None,
) -> PublicContentListResponse:
    """Published content, featured entries first."""
    filters = PublicContentFilters(
        category=category,
        content_type=content_type,
        language=language,
        featured=featured,
        search=search,
        location_tag_id=str(location_tag_id) if location_tag_id else None,
    )
    contents, total = await _service(request, db).list_contents(filters, page, limit)

    return PublicContentListResponse(
        contents=contents,
        pagination=Pagination.build(page, limit, total),
        **_envelope(request),
    )


@router.get("/contents/{slug}", response_model=PublicContentResponse)
@public_rate_limit
async def get_content(
    request: Request,
    slug: str,
    db: DbSession,
    language: str | None = None,
) -> PublicContentResponse:
    """One published entry by slug; counts the view."""
    try:
        content = await _service(request, db).get_content_by_slug(slug, language)
    except ContentNotFoundError:
        raise not_found("Content not found", "CONTENT_NOT_FOUND")
    return PublicContentResponse(content=content)


@router.get("/categories", response_model=PublicCategoryListResponse)
@public_rate_limit
async def list_categories(request: Request, db: DbSession) -> PublicCategoryListResponse:
    categories = await _service(request, db).categories()
    return PublicCategoryListResponse(categories=categories, **_envelope(request))


@router.get("/schools", response_model=SchoolListResponse)
@public_rate_limit
async def list_schools(request: Request, db: DbSession) -> SchoolListResponse:
    schools = await SchoolService(db).list_active()
    return SchoolListResponse(
        schools=[SchoolInfo.model_validate(s) for s in schools],
        detected_location=get_location(request),
    )


@router.get("/schools/{identifier}", response_model=SchoolResponse)
@public_rate_limit
async def get_school(request: Request, identifier: str, db: DbSession) -> SchoolResponse:
    """Active school by slug or three-letter country code."""
    try:
        school = await SchoolService(db).get_by_identifier(identifier)
    except SchoolNotFoundError:
        raise not_found("School not found", "SCHOOL_NOT_FOUND")
    return SchoolResponse(school=SchoolDetail.model_validate(school))


@router.get("/settings", response_model=PublicSettingsEnvelope)
@public_rate_limit
async def get_settings_public(request: Request, db: DbSession) -> PublicSettingsEnvelope:
    settings = await _service(request, db).settings()
    return PublicSettingsEnvelope(settings=settings, **_envelope(request))


@router.get("/menus/{location}", response_model=PublicMenusResponse)
@public_rate_limit
async def get_menus(request: Request, location: str, db: DbSession) -> PublicMenusResponse:
    """Active menus for a placement such as ``header`` or ``footer``."""
    menus = await _service(request, db).menus(location)
    return PublicMenusResponse(menus=menus, **_envelope(request))


@router.get("/search", response_model=SearchResponse)
@public_rate_limit
async def search(
    request: Request,
    db: DbSession,
    q: str | None = None,
    page: Page = 1,
    limit: Annotated[int, Query(ge=1, le=50)] = 10,
    content_type: str | None = None,
    category: str | None = None,
) -> SearchResponse:
    """Rank published content by title, excerpt and body matches.

    Raises:
        APIError: 400 INVALID_SEARCH_QUERY for queries under two characters.
    """
    try:
        term, results = await _service(request, db).search(
            q, content_type, category, page, limit
        )
    except InvalidSearchQueryError as e:
        raise bad_request(str(e), "INVALID_SEARCH_QUERY")

    return SearchResponse(
        results=results,
        query=term,
        pagination=SearchPagination(page=page, limit=limit, total=len(results)),
        **_envelope(request),
    )


@router.get("/stats", response_model=PublicStatsResponse)
@public_rate_limit
async def get_stats(request: Request, db: DbSession) -> PublicStatsResponse:
    stats = await _service(request, db).stats()
    return PublicStatsResponse(stats=stats, **_envelope(request))


@router.get("/location-tags", response_model=PublicLocationTagListResponse)
@public_rate_limit
async def list_location_tags(
    request: Request,
    db: DbSession,
    country: str | None = None,
) -> PublicLocationTagListResponse:
    """Active location tags, narrowed to a country when one is given or detected."""
    location = get_location(request)
    country = (country or (location.country if location else None) or "").upper() or None

    tags = await LocationTagService(db).public_list(country)
    return PublicLocationTagListResponse(location_tags=tags, **_envelope(request))
