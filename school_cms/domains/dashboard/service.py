# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Admin dashboard statistics."""

import logging
from datetime import timedelta

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from school_cms.domains.content.service import author_name_column
from school_cms.infrastructure.database.models import (
    CmsUser,
    Content,
    ContentCategory,
    MediaFile,
)
from school_cms.models.dashboard import (
    DashboardCounts,
    DashboardStatsResponse,
    RecentContent,
    TopContent,
)
from school_cms.utils.datetime import utc_now

logger = logging.getLogger(__name__)

PERIODS = {
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}
DEFAULT_PERIOD = "7d"
LIST_SIZE = 10


class DashboardService:
    """Aggregates tenant activity for the admin dashboard."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def stats(self, tenant_id: str, period: str = DEFAULT_PERIOD) -> DashboardStatsResponse:
        """Counts, recent content and most viewed content of a tenant.

        Args:
            tenant_id: Effective tenant.
            period: ``24h``, ``7d`` or ``30d``; anything else means ``7d``.
                Only the recent content list is limited to the period.

        Returns:
            Dashboard statistics echoing the period used.
        """
        if period not in PERIODS:
            period = DEFAULT_PERIOD
        since = utc_now() - PERIODS[period]

        counts = await self._counts(tenant_id)

        recent_stmt = (
            select(
                Content.id,
                Content.title,
                Content.status,
                Content.content_type,
                Content.created_at,
                author_name_column(),
            )
            .outerjoin(CmsUser, CmsUser.id == Content.author_id)
            .where(Content.tenant_id == tenant_id, Content.created_at > since)
            .order_by(Content.created_at.desc())
            .limit(LIST_SIZE)
        )
        recent = (await self._db.execute(recent_stmt)).all()

        top_stmt = (
            select(
                Content.id,
                Content.title,
                Content.view_count,
                Content.published_at,
                ContentCategory.name.label("category_name"),
            )
            .outerjoin(ContentCategory, ContentCategory.id == Content.category_id)
            .where(
                Content.tenant_id == tenant_id,
                Content.status == "published",
                Content.view_count > 0,
            )
            .order_by(Content.view_count.desc())
            .limit(LIST_SIZE)
        )
        top = (await self._db.execute(top_stmt)).all()

        return DashboardStatsResponse(
            period=period,
            stats=counts,
            recent_contents=[RecentContent.model_validate(r._mapping) for r in recent],
            top_contents=[TopContent.model_validate(r._mapping) for r in top],
        )

    async def _counts(self, tenant_id: str) -> DashboardCounts:
        categories = (
            select(func.count())
            .select_from(ContentCategory)
            .where(ContentCategory.tenant_id == tenant_id)
            .scalar_subquery()
        )
        media = (
            select(func.count())
            .select_from(MediaFile)
            .where(MediaFile.tenant_id == tenant_id, MediaFile.is_active.is_(True))
            .scalar_subquery()
        )
        stmt = select(
            func.count(Content.id).label("total_contents"),
            func.count(case((Content.status == "published", Content.id))).label(
                "published_contents"
            ),
            func.count(case((Content.status == "draft", Content.id))).label("draft_contents"),
            categories.label("total_categories"),
            media.label("total_media_files"),
            func.coalesce(func.sum(Content.view_count), 0).label("total_views"),
        ).where(Content.tenant_id == tenant_id)

        row = (await self._db.execute(stmt)).one()
        return DashboardCounts.model_validate(dict(row._mapping))
