# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Public storefront API models.

Every public response echoes the visitor ``location`` and the resolved
``targetSchool`` so the storefront can show which school it is browsing.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from school_cms.models.common import ORMModel, Pagination
from school_cms.models.navigation import MenuResponse


class LocationInfo(BaseModel):
    """Visitor location resolved from CDN headers."""

    country: str | None = None
    region: str | None = None
    city: str | None = None
    source: str = "header"


class SchoolInfo(ORMModel):
    id: str
    name: str
    slug: str
    country: str
    country_name: str | None = None
    timezone: str
    language: str
    currency: str
    domain: str | None = None


class SchoolDetail(SchoolInfo):
    status: str = "active"
    created_at: datetime | None = None
    updated_at: datetime | None = None


class _PublicEnvelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    location: LocationInfo | None = None
    target_school: SchoolInfo | None = Field(default=None, alias="targetSchool")


class PublicContentItem(ORMModel):
    id: str
    title: str
    slug: str
    excerpt: str | None = None
    featured_image_url: str | None = None
    content_type: str
    language: str
    is_featured: bool
    view_count: int = 0
    published_at: datetime | None = None
    category_name: str | None = None
    category_slug: str | None = None
    author_name: str | None = None
    school_name: str | None = None
    country: str | None = None
    school_language: str | None = None


class PublicContentDetail(ORMModel):
    id: str
    tenant_id: str
    title: str
    slug: str
    excerpt: str | None = None
    body: str
    featured_image_url: str | None = None
    meta_title: str | None = None
    meta_description: str | None = None
    language: str
    content_type: str
    is_featured: bool
    view_count: int
    published_at: datetime | None = None
    seo_settings: dict[str, Any] = Field(default_factory=dict)
    custom_fields: dict[str, Any] = Field(default_factory=dict)
    category_name: str | None = None
    category_slug: str | None = None
    author_name: str | None = None
    author_avatar: str | None = None
    school_name: str | None = None
    country: str | None = None
    timezone: str | None = None


class PublicCategory(ORMModel):
    id: str
    name: str
    slug: str
    description: str | None = None
    parent_id: str | None = None
    sort_order: int = 0
    content_count: int = 0


class SearchResult(ORMModel):
    id: str
    title: str
    slug: str
    excerpt: str | None = None
    featured_image_url: str | None = None
    content_type: str
    published_at: datetime | None = None
    category_name: str | None = None
    category_slug: str | None = None
    school_name: str | None = None
    relevance: int = 0


class SearchPagination(BaseModel):
    page: int
    limit: int
    total: int


class PublicStats(BaseModel):
    school_name: str | None = None
    country: str | None = None
    total_contents: int = 0
    published_contents: int = 0
    total_categories: int = 0
    featured_contents: int = 0
    total_views: int = 0


class PublicLocationTag(ORMModel):
    id: str
    name: str
    code: str
    country: str | None = None
    description: str | None = None
    color: str
    icon: str | None = None


# =============================================================================
# RESPONSES
# =============================================================================


class PublicContentListResponse(_PublicEnvelope):
    contents: list[PublicContentItem]
    pagination: Pagination


class PublicContentResponse(BaseModel):
    content: PublicContentDetail


class PublicCategoryListResponse(_PublicEnvelope):
    categories: list[PublicCategory]


class SchoolListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    schools: list[SchoolInfo]
    detected_location: LocationInfo | None = Field(default=None, alias="detectedLocation")


class SchoolResponse(BaseModel):
    school: SchoolDetail


class PublicSettingsEnvelope(_PublicEnvelope):
    settings: dict[str, Any]


class PublicMenusResponse(_PublicEnvelope):
    menus: list[MenuResponse]


class SearchResponse(_PublicEnvelope):
    results: list[SearchResult]
    query: str
    pagination: SearchPagination


class PublicStatsResponse(_PublicEnvelope):
    stats: PublicStats


class PublicLocationTagListResponse(_PublicEnvelope):
    location_tags: list[PublicLocationTag] = Field(alias="locationTags")
