# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Admin content endpoints.

Every query is scoped to the effective tenant; writes need an editor,
admin or super admin.
"""

import logging
from typing import Annotated, Literal
from uuid import UUID

from fastapi import APIRouter, Query, Request, status

from school_cms.api.dependencies import AuthenticatedUser, DbSession, TenantId, WriterUser
from school_cms.api.errors import APIError, bad_request, conflict, not_found
from school_cms.api.middleware.rate_limit import admin_rate_limit
from school_cms.domains.content.service import (
    ContentNotFoundError,
    ContentService,
    InvalidSortFieldError,
    MissingDuplicateDataError,
    NoUpdateFieldsError,
    SlugExistsError,
    UnknownLocationTagError,
)
from school_cms.models.common import Pagination, SuccessResponse
from school_cms.models.content import (
    ContentCreateRequest,
    ContentEnvelope,
    ContentFilters,
    ContentListResponse,
    ContentLocationTagsResponse,
    ContentStatus,
    ContentType,
    ContentUpdateRequest,
    DuplicateRequest,
    LocationTagsAssignRequest,
    PublishRequest,
    RelatedContentResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _content_not_found() -> APIError:
    return not_found("Content not found", "CONTENT_NOT_FOUND")


def _slug_exists() -> APIError:
    return conflict("Slug already exists for this language", "SLUG_EXISTS")


@router.get("", response_model=ContentListResponse)
@admin_rate_limit
async def list_contents(
    request: Request,
    db: DbSession,
    current_user: AuthenticatedUser,
    tenant_id: TenantId,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    status_filter: Annotated[ContentStatus | None, Query(alias="status")] = None,
    category: str | None = None,
    content_type: ContentType | None = None,
    language: str | None = None,
    author_id: UUID | None = None,
    featured: bool | None = None,
    search: str | None = None,
    location_tag_id: Annotated[UUID | None, Query(alias="locationTagId")] = None,
    sort_by: str = "updated_at",
    sort_order: Annotated[Literal["asc", "desc", "ASC", "DESC"], Query()] = "desc",
) -> ContentListResponse:
    """List the tenant's content with filters, sorting and pagination."""
    filters = ContentFilters(
        status=status_filter,
        category=category,
        content_type=content_type,
        language=language,
        author_id=str(author_id) if author_id else None,
        featured=featured,
        search=search,
        location_tag_id=str(location_tag_id) if location_tag_id else None,
    )
    try:
        contents, total = await ContentService(db).list_contents(
            tenant_id, filters, page, limit, sort_by, sort_order.lower()
        )
    except InvalidSortFieldError as e:
        raise bad_request(str(e), "INVALID_SORT_FIELD")

    return ContentListResponse(contents=contents, pagination=Pagination.build(page, limit, total))


@router.get("/{content_id}", response_model=ContentEnvelope)
@admin_rate_limit
async def get_content(
    request: Request,
    content_id: UUID,
    db: DbSession,
    current_user: AuthenticatedUser,
    tenant_id: TenantId,
) -> ContentEnvelope:
    try:
        content = await ContentService(db).get(tenant_id, str(content_id))
    except ContentNotFoundError:
        raise _content_not_found()
    return ContentEnvelope(content=content)


@router.post("", response_model=ContentEnvelope, status_code=status.HTTP_201_CREATED)
@admin_rate_limit
async def create_content(
    request: Request,
    data: ContentCreateRequest,
    db: DbSession,
    current_user: WriterUser,
    tenant_id: TenantId,
) -> ContentEnvelope:
    """Create content authored by the caller.

    Raises:
        APIError: 409 SLUG_EXISTS.
    """
    try:
        content = await ContentService(db).create(tenant_id, current_user.id, data)
    except SlugExistsError:
        raise _slug_exists()
    return ContentEnvelope(content=content)


@router.put("/{content_id}", response_model=ContentEnvelope)
@admin_rate_limit
async def update_content(
    request: Request,
    content_id: UUID,
    data: ContentUpdateRequest,
    db: DbSession,
    current_user: WriterUser,
    tenant_id: TenantId,
) -> ContentEnvelope:
    try:
        content = await ContentService(db).update(tenant_id, str(content_id), data, current_user.id)
    except NoUpdateFieldsError:
        raise bad_request("No valid fields to update", "NO_UPDATE_FIELDS")
    except ContentNotFoundError:
        raise _content_not_found()
    except SlugExistsError:
        raise _slug_exists()
    return ContentEnvelope(content=content)


@router.delete("/{content_id}", response_model=SuccessResponse)
@admin_rate_limit
async def delete_content(
    request: Request,
    content_id: UUID,
    db: DbSession,
    current_user: WriterUser,
    tenant_id: TenantId,
) -> SuccessResponse:
    try:
        await ContentService(db).delete(tenant_id, str(content_id), current_user.id)
    except ContentNotFoundError:
        raise _content_not_found()
    return SuccessResponse(message="Content deleted successfully")


@router.api_route(
    "/{content_id}/publish",
    methods=["POST", "PATCH"],
    response_model=ContentEnvelope,
)
@admin_rate_limit
async def publish_content(
    request: Request,
    content_id: UUID,
    data: PublishRequest,
    db: DbSession,
    current_user: WriterUser,
    tenant_id: TenantId,
) -> ContentEnvelope:
    """Publish (``{"publish": true}``) or unpublish back to draft."""
    try:
        content = await ContentService(db).set_published(
            tenant_id, str(content_id), data.publish, current_user.id
        )
    except ContentNotFoundError:
        raise _content_not_found()
    return ContentEnvelope(content=content)


@router.post(
    "/{content_id}/duplicate",
    response_model=ContentEnvelope,
    status_code=status.HTTP_201_CREATED,
)
@admin_rate_limit
async def duplicate_content(
    request: Request,
    content_id: UUID,
    data: DuplicateRequest,
    db: DbSession,
    current_user: WriterUser,
    tenant_id: TenantId,
) -> ContentEnvelope:
    """Copy content as a new draft with a new title and slug."""
    try:
        content = await ContentService(db).duplicate(
            tenant_id, str(content_id), data.new_title, data.new_slug, current_user.id
        )
    except MissingDuplicateDataError:
        raise bad_request("New title and slug are required", "MISSING_DUPLICATE_DATA")
    except ContentNotFoundError:
        raise _content_not_found()
    except SlugExistsError:
        raise _slug_exists()
    return ContentEnvelope(content=content)


@router.get("/{content_id}/related", response_model=RelatedContentResponse)
@admin_rate_limit
async def related_contents(
    request: Request,
    content_id: UUID,
    db: DbSession,
    current_user: AuthenticatedUser,
    tenant_id: TenantId,
    limit: Annotated[int, Query(ge=1, le=20)] = 5,
) -> RelatedContentResponse:
    try:
        related = await ContentService(db).related(tenant_id, str(content_id), limit)
    except ContentNotFoundError:
        raise _content_not_found()
    return RelatedContentResponse(related_contents=related)


@router.put("/{content_id}/location-tags", response_model=ContentLocationTagsResponse)
@admin_rate_limit
async def set_location_tags(
    request: Request,
    content_id: UUID,
    data: LocationTagsAssignRequest,
    db: DbSession,
    current_user: WriterUser,
    tenant_id: TenantId,
) -> ContentLocationTagsResponse:
    """Replace the content's location tags."""
    try:
        tag_ids = await ContentService(db).set_location_tags(
            tenant_id, str(content_id), data.location_tag_ids, current_user.id
        )
    except ContentNotFoundError:
        raise _content_not_found()
    except UnknownLocationTagError as e:
        raise bad_request(
            "Unknown location tags",
            "LOCATION_TAG_NOT_FOUND",
            missing=e.missing,
        )
    return ContentLocationTagsResponse(content_id=str(content_id), location_tag_ids=tag_ids)
