# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Admin category endpoints."""

import logging
from uuid import UUID

from fastapi import APIRouter, Request, status

from school_cms.api.dependencies import AuthenticatedUser, DbSession, TenantId, WriterUser
from school_cms.api.errors import bad_request, conflict, not_found
from school_cms.api.middleware.rate_limit import admin_rate_limit
from school_cms.domains.category.service import (
    CategoryHasContentError,
    CategoryNotFoundError,
    CategoryService,
    CategorySlugExistsError,
    InvalidParentError,
    MissingRequiredFieldsError,
)
from school_cms.models.common import SuccessResponse
from school_cms.models.content import (
    CategoryCreateRequest,
    CategoryEnvelope,
    CategoryListResponse,
    CategoryUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=CategoryListResponse)
@admin_rate_limit
async def list_categories(
    request: Request,
    db: DbSession,
    current_user: AuthenticatedUser,
    tenant_id: TenantId,
) -> CategoryListResponse:
    categories = await CategoryService(db).list_categories(tenant_id)
    return CategoryListResponse(categories=categories)


@router.post("", response_model=CategoryEnvelope, status_code=status.HTTP_201_CREATED)
@admin_rate_limit
async def create_category(
    request: Request,
    data: CategoryCreateRequest,
    db: DbSession,
    current_user: WriterUser,
    tenant_id: TenantId,
) -> CategoryEnvelope:
    """Create a category.

    Raises:
        APIError: 400 MISSING_REQUIRED_FIELDS, 400 INVALID_PARENT or
            409 SLUG_EXISTS.
    """
    try:
        category = await CategoryService(db).create(tenant_id, data, current_user.id)
    except MissingRequiredFieldsError:
        raise bad_request("Name and slug are required", "MISSING_REQUIRED_FIELDS")
    except CategorySlugExistsError:
        raise conflict("Slug already exists", "SLUG_EXISTS")
    except InvalidParentError as e:
        raise bad_request(str(e), "INVALID_PARENT")
    return CategoryEnvelope(category=category)


@router.put("/{category_id}", response_model=CategoryEnvelope)
@admin_rate_limit
async def update_category(
    request: Request,
    category_id: UUID,
    data: CategoryUpdateRequest,
    db: DbSession,
    current_user: WriterUser,
    tenant_id: TenantId,
) -> CategoryEnvelope:
    try:
        category = await CategoryService(db).update(
            tenant_id, str(category_id), data, current_user.id
        )
    except CategoryNotFoundError:
        raise not_found("Category not found", "CATEGORY_NOT_FOUND")
    except CategorySlugExistsError:
        raise conflict("Slug already exists", "SLUG_EXISTS")
    except InvalidParentError as e:
        raise bad_request(str(e), "INVALID_PARENT")
    return CategoryEnvelope(category=category)


@router.delete("/{category_id}", response_model=SuccessResponse)
@admin_rate_limit
async def delete_category(
    request: Request,
    category_id: UUID,
    db: DbSession,
    current_user: WriterUser,
    tenant_id: TenantId,
) -> SuccessResponse:
    """Delete a category no content refers to.

    Raises:
        APIError: 404 CATEGORY_NOT_FOUND or 409 CATEGORY_HAS_CONTENT.
    """
    try:
        await CategoryService(db).delete(tenant_id, str(category_id), current_user.id)
    except CategoryNotFoundError:
        raise not_found("Category not found", "CATEGORY_NOT_FOUND")
    except CategoryHasContentError as e:
        raise conflict(
            "Cannot delete category with associated content",
            "CATEGORY_HAS_CONTENT",
            contentCount=e.content_count,
        )
    return SuccessResponse(message="Category deleted successfully")
