# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Admin location tag endpoints.

Location tags are shared by every school. Any authenticated user can read
them; creating, changing and deleting them is reserved to super admins
and rate limited per operation.
"""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, Request, status

from school_cms.api.dependencies import AuthenticatedUser, DbSession, SuperAdminUser
from school_cms.api.errors import bad_request, conflict, not_found
from school_cms.api.middleware.rate_limit import (
    RATE_LIMIT_TAG_CREATE,
    RATE_LIMIT_TAG_DELETE,
    RATE_LIMIT_TAG_UPDATE,
    admin_rate_limit,
    limiter,
)
from school_cms.domains.location_tag.service import (
    CodeExistsError,
    LocationTagHasContentError,
    LocationTagNotFoundError,
    LocationTagService,
    NameExistsError,
    NoUpdateFieldsError,
)
from school_cms.models.common import Pagination, SuccessResponse
from school_cms.models.location_tag import (
    LocationTagCreateRequest,
    LocationTagEnvelope,
    LocationTagListResponse,
    LocationTagStatsResponse,
    LocationTagUpdateRequest,
    TaggedContentListResponse,
    ToggleRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _tag_not_found():
    return not_found("Location tag not found", "LOCATION_TAG_NOT_FOUND")


@router.get("", response_model=LocationTagListResponse)
@admin_rate_limit
async def list_location_tags(
    request: Request,
    db: DbSession,
    current_user: AuthenticatedUser,
    active_only: bool = False,
) -> LocationTagListResponse:
    tags = await LocationTagService(db).list_tags(active_only)
    return LocationTagListResponse(location_tags=tags)


@router.get("/stats", response_model=LocationTagStatsResponse)
@admin_rate_limit
async def location_tag_stats(
    request: Request,
    db: DbSession,
    current_user: AuthenticatedUser,
) -> LocationTagStatsResponse:
    """Content counts and views per active tag."""
    return LocationTagStatsResponse(stats=await LocationTagService(db).stats())


@router.get(
    "/{tag_id}",
    response_model=LocationTagEnvelope,
    response_model_exclude={"success"},
)
@admin_rate_limit
async def get_location_tag(
    request: Request,
    tag_id: UUID,
    db: DbSession,
    current_user: AuthenticatedUser,
) -> LocationTagEnvelope:
    try:
        tag = await LocationTagService(db).get(str(tag_id))
    except LocationTagNotFoundError:
        raise _tag_not_found()
    return LocationTagEnvelope(location_tag=tag)


@router.get("/{tag_id}/contents", response_model=TaggedContentListResponse)
@admin_rate_limit
async def location_tag_contents(
    request: Request,
    tag_id: UUID,
    db: DbSession,
    current_user: AuthenticatedUser,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
    tenant_id: UUID | None = None,
) -> TaggedContentListResponse:
    """Content linked to a tag.

    Regular users only see their own school's content; super admins see
    every school unless ``tenant_id`` narrows it.
    """
    if current_user.is_super_admin:
        scope = str(tenant_id) if tenant_id else None
    else:
        scope = current_user.tenant_id
    try:
        contents, total = await LocationTagService(db).contents(
            str(tag_id), scope, status_filter, page, limit
        )
    except LocationTagNotFoundError:
        raise _tag_not_found()
    return TaggedContentListResponse(
        contents=contents,
        pagination=Pagination.build(page, limit, total),
    )


@router.post("", response_model=LocationTagEnvelope, status_code=status.HTTP_201_CREATED)
@admin_rate_limit
@limiter.limit(RATE_LIMIT_TAG_CREATE)
async def create_location_tag(
    request: Request,
    data: LocationTagCreateRequest,
    db: DbSession,
    current_user: SuperAdminUser,
) -> LocationTagEnvelope:
    """Create a tag.

    Raises:
        APIError: 409 CODE_EXISTS or NAME_EXISTS.
    """
    try:
        tag = await LocationTagService(db).create(data, current_user.id)
    except CodeExistsError:
        raise conflict("Code already exists", "CODE_EXISTS")
    except NameExistsError:
        raise conflict("Name already exists", "NAME_EXISTS")
    return LocationTagEnvelope(success=True, location_tag=tag)


@router.put("/{tag_id}", response_model=LocationTagEnvelope)
@admin_rate_limit
@limiter.limit(RATE_LIMIT_TAG_UPDATE)
async def update_location_tag(
    request: Request,
    tag_id: UUID,
    data: LocationTagUpdateRequest,
    db: DbSession,
    current_user: SuperAdminUser,
) -> LocationTagEnvelope:
    try:
        tag = await LocationTagService(db).update(str(tag_id), data, current_user.id)
    except NoUpdateFieldsError:
        raise bad_request("No valid fields to update", "NO_UPDATE_FIELDS")
    except LocationTagNotFoundError:
        raise _tag_not_found()
    except CodeExistsError:
        raise conflict("Code already exists", "CODE_EXISTS")
    except NameExistsError:
        raise conflict("Name already exists", "NAME_EXISTS")
    return LocationTagEnvelope(success=True, location_tag=tag)


@router.patch("/{tag_id}/toggle", response_model=LocationTagEnvelope)
@admin_rate_limit
@limiter.limit(RATE_LIMIT_TAG_UPDATE)
async def toggle_location_tag(
    request: Request,
    tag_id: UUID,
    data: ToggleRequest,
    db: DbSession,
    current_user: SuperAdminUser,
) -> LocationTagEnvelope:
    """Activate or deactivate a tag."""
    try:
        tag = await LocationTagService(db).toggle(str(tag_id), data.active, current_user.id)
    except LocationTagNotFoundError:
        raise _tag_not_found()
    return LocationTagEnvelope(success=True, location_tag=tag)


@router.delete("/{tag_id}", response_model=SuccessResponse)
@admin_rate_limit
@limiter.limit(RATE_LIMIT_TAG_DELETE)
async def delete_location_tag(
    request: Request,
    tag_id: UUID,
    db: DbSession,
    current_user: SuperAdminUser,
) -> SuccessResponse:
    """Delete a tag that no content uses.

    Raises:
        APIError: 409 LOCATION_TAG_HAS_CONTENT with the linked content count.
    """
    try:
        await LocationTagService(db).delete(str(tag_id), current_user.id)
    except LocationTagNotFoundError:
        raise _tag_not_found()
    except LocationTagHasContentError as e:
        raise conflict(
            "Cannot delete location tag with associated content",
            "LOCATION_TAG_HAS_CONTENT",
            contentCount=e.content_count,
        )
    return SuccessResponse(message="Location tag deleted successfully")
