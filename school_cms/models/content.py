# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Content and category API models."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from school_cms.models.common import ORMModel, Pagination, UUIDStr

ContentStatus = Literal["draft", "published", "archived", "scheduled"]
ContentType = Literal["article", "page", "news", "event"]

SLUG_PATTERN = r"^[a-z0-9-]+$"

# Columns a list may be sorted by.
SORTABLE_FIELDS = (
    "updated_at",
    "created_at",
    "published_at",
    "title",
    "view_count",
    "status",
)


# =============================================================================
# CONTENT
# =============================================================================


class ContentCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=500)
    slug: str = Field(min_length=1, max_length=200, pattern=SLUG_PATTERN)
    excerpt: str | None = Field(default=None, max_length=1000)
    body: str
    category_id: UUIDStr | None = None
    featured_image_url: str | None = None
    meta_title: str | None = Field(default=None, max_length=255)
    meta_description: str | None = Field(default=None, max_length=500)
    status: ContentStatus = "draft"
    language: str = Field(default="pt-BR", max_length=10)
    content_type: ContentType = "article"
    is_featured: bool = False
    published_at: datetime | None = None
    expires_at: datetime | None = None
    scheduled_at: datetime | None = None
    seo_settings: dict[str, Any] = Field(default_factory=dict)
    custom_fields: dict[str, Any] = Field(default_factory=dict)


class ContentUpdateRequest(BaseModel):
    """Partial update; only fields present in the body are applied."""

    title: str | None = Field(default=None, min_length=1, max_length=500)
    slug: str | None = Field(default=None, min_length=1, max_length=200, pattern=SLUG_PATTERN)
    excerpt: str | None = Field(default=None, max_length=1000)
    body: str | None = None
    category_id: UUIDStr | None = None
    featured_image_url: str | None = None
    meta_title: str | None = Field(default=None, max_length=255)
    meta_description: str | None = Field(default=None, max_length=500)
    status: ContentStatus | None = None
    language: str | None = Field(default=None, max_length=10)
    content_type: ContentType | None = None
    is_featured: bool | None = None
    published_at: datetime | None = None
    expires_at: datetime | None = None
    scheduled_at: datetime | None = None
    seo_settings: dict[str, Any] | None = None
    custom_fields: dict[str, Any] | None = None


class PublishRequest(BaseModel):
    publish: bool = True


class DuplicateRequest(BaseModel):
    new_title: str | None = None
    new_slug: str | None = Field(default=None, pattern=SLUG_PATTERN)


class LocationTagsAssignRequest(BaseModel):
    location_tag_ids: list[UUIDStr] = Field(default_factory=list, alias="locationTagIds")

    model_config = {"populate_by_name": True}


class ContentFilters(BaseModel):
    """Filters accepted by the admin content list."""

    status: ContentStatus | None = None
    category: str | None = None
    content_type: ContentType | None = None
    language: str | None = None
    author_id: str | None = None
    featured: bool | None = None
    search: str | None = None
    location_tag_id: str | None = None


class ContentResponse(ORMModel):
    id: str
    tenant_id: str
    author_id: str | None = None
    category_id: str | None = None
    title: str
    slug: str
    excerpt: str | None = None
    body: str
    featured_image_url: str | None = None
    meta_title: str | None = None
    meta_description: str | None = None
    status: str
    language: str
    content_type: str
    is_featured: bool
    view_count: int = 0
    published_at: datetime | None = None
    expires_at: datetime | None = None
    scheduled_at: datetime | None = None
    seo_settings: dict[str, Any] = Field(default_factory=dict)
    custom_fields: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    category_name: str | None = None
    category_slug: str | None = None
    author_name: str | None = None
    author_email: str | None = None


class RelatedContent(ORMModel):
    id: str
    title: str
    slug: str
    excerpt: str | None = None
    featured_image_url: str | None = None
    content_type: str
    language: str
    published_at: datetime | None = None
    category_name: str | None = None


class ContentListResponse(BaseModel):
    contents: list[ContentResponse]
    pagination: Pagination


class RelatedContentResponse(BaseModel):
    related_contents: list[RelatedContent] = Field(serialization_alias="relatedContents")


class ContentEnvelope(BaseModel):
    success: bool = True
    content: ContentResponse


# =============================================================================
# CATEGORIES
# =============================================================================


class CategoryCreateRequest(BaseModel):
    """Name and slug are checked by the service so a missing one maps to
    MISSING_REQUIRED_FIELDS rather than a generic validation error."""

    name: str | None = Field(default=None, max_length=255)
    slug: str | None = Field(default=None, max_length=200, pattern=SLUG_PATTERN)
    description: str | None = None
    parent_id: UUIDStr | None = None
    sort_order: int = 0


class CategoryUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    slug: str | None = Field(default=None, min_length=1, max_length=200, pattern=SLUG_PATTERN)
    description: str | None = None
    parent_id: UUIDStr | None = None
    sort_order: int | None = None
    is_active: bool | None = None


class CategoryResponse(ORMModel):
    id: str
    tenant_id: str
    name: str
    slug: str
    description: str | None = None
    parent_id: str | None = None
    parent_name: str | None = None
    sort_order: int = 0
    is_active: bool = True
    content_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CategoryListResponse(BaseModel):
    categories: list[CategoryResponse]


class CategoryEnvelope(BaseModel):
    success: bool = True
    category: CategoryResponse


class ContentLocationTagsResponse(BaseModel):
    model_config = {"populate_by_name": True}

    success: bool = True
    content_id: str = Field(alias="contentId")
    location_tag_ids: list[str] = Field(alias="locationTagIds")
