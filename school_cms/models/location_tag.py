# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Location tag API models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from school_cms.models.common import ORMModel, Pagination

CODE_PATTERN = r"^[A-Z0-9_]+$"
COUNTRY_PATTERN = r"^[A-Z]{3}$"
COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"
DEFAULT_COLOR = "#3B82F6"


def _blank_to_none(value: str | None) -> str | None:
    if isinstance(value, str) and value == "":
        return None
    return value


class LocationTagCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    code: str = Field(min_length=1, max_length=10, pattern=CODE_PATTERN)
    country: str | None = Field(default=None, pattern=COUNTRY_PATTERN)
    description: str | None = Field(default=None, max_length=500)
    color: str = Field(default=DEFAULT_COLOR, pattern=COLOR_PATTERN)
    icon: str | None = Field(default=None, max_length=50)
    sort_order: int = Field(default=0, ge=0)

    _normalize_blanks = field_validator("description", "icon", mode="before")(_blank_to_none)


class LocationTagUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    code: str | None = Field(default=None, min_length=1, max_length=10, pattern=CODE_PATTERN)
    country: str | None = Field(default=None, pattern=COUNTRY_PATTERN)
    description: str | None = Field(default=None, max_length=500)
    color: str | None = Field(default=None, pattern=COLOR_PATTERN)
    icon: str | None = Field(default=None, max_length=50)
    sort_order: int | None = Field(default=None, ge=0)

    _normalize_blanks = field_validator("description", "icon", mode="before")(_blank_to_none)


class ToggleRequest(BaseModel):
    active: bool


class LocationTagResponse(ORMModel):
    id: str
    name: str
    code: str
    country: str | None = None
    description: str | None = None
    color: str = DEFAULT_COLOR
    icon: str | None = None
    sort_order: int = 0
    is_active: bool = True
    content_count: int = 0
    published_content_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


class LocationTagStats(ORMModel):
    id: str
    name: str
    code: str
    country: str | None = None
    color: str
    total_contents: int = 0
    published_contents: int = 0
    draft_contents: int = 0
    featured_contents: int = 0
    total_views: int = 0
    last_content_published: datetime | None = None


class TaggedContent(ORMModel):
    id: str
    title: str
    slug: str
    excerpt: str | None = None
    status: str
    content_type: str
    language: str
    is_featured: bool
    view_count: int = 0
    published_at: datetime | None = None
    created_at: datetime | None = None
    category_name: str | None = None
    author_name: str | None = None


class _CamelEnvelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class LocationTagListResponse(_CamelEnvelope):
    location_tags: list[LocationTagResponse] = Field(alias="locationTags")


class LocationTagEnvelope(_CamelEnvelope):
    success: bool | None = None
    location_tag: LocationTagResponse = Field(alias="locationTag")


class LocationTagStatsResponse(BaseModel):
    stats: list[LocationTagStats]


class TaggedContentListResponse(BaseModel):
    contents: list[TaggedContent]
    pagination: Pagination
