# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Admin dashboard API models."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from school_cms.models.common import ORMModel

DashboardPeriod = Literal["24h", "7d", "30d"]


class DashboardCounts(BaseModel):
    total_contents: int = 0
    published_contents: int = 0
    draft_contents: int = 0
    total_categories: int = 0
    total_media_files: int = 0
    total_views: int = 0


class RecentContent(ORMModel):
    id: str
    title: str
    status: str
    content_type: str
    created_at: datetime
    author_name: str | None = None


class TopContent(ORMModel):
    id: str
    title: str
    view_count: int
    published_at: datetime | None = None
    category_name: str | None = None


class DashboardStatsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    period: str
    stats: DashboardCounts
    recent_contents: list[RecentContent] = Field(alias="recentContents")
    top_contents: list[TopContent] = Field(alias="topContents")
