# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Public storefront content service.

Serves published, unexpired content to anonymous visitors. Every query is
scoped to the target school resolved from the visitor's country, or to all
active schools when no school was resolved.

Example:
    >>> school = await SchoolService(db).find_for_country("BRA")
    >>> service = PublicContentService(db, school)
    >>> items, total = await service.list_contents(PublicContentFilters(featured=True))
"""

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import case, exists, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from school_cms.domains.content.service import (
    ContentNotFoundError,
    author_name_column,
    published_and_live,
)
from school_cms.domains.navigation.service import NavigationService
from school_cms.domains.site_setting.service import SiteSettingService
from school_cms.infrastructure.database.models import (
    CmsUser,
    Content,
    ContentCategory,
    School,
    content_location_tags,
)
from school_cms.models.common import page_offset
from school_cms.models.navigation import MenuResponse
from school_cms.models.public import (
    PublicCategory,
    PublicContentDetail,
    PublicContentItem,
    PublicStats,
    SearchResult,
)

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2


class PublicServiceError(Exception):
    """Base exception for public service errors."""

    pass


class InvalidSearchQueryError(PublicServiceError):
    """Raised when a search query is shorter than two characters."""

    pass


@dataclass
class PublicContentFilters:
    """Optional filters of the public content listing."""

    category: str | None = None
    content_type: str | None = None
    language: str | None = None
    featured: bool = False
    search: str | None = None
    location_tag_id: str | None = None


class PublicContentService:
    """Read-only content access for the storefront.

    Attributes:
        _db: Async database session.
        _school: Target school, or None to serve every active school.
    """

    def __init__(self, db: AsyncSession, school: School | None = None) -> None:
        self._db = db
        self._school = school

    @property
    def school(self) -> School | None:
        return self._school

    async def list_contents(
        self,
        filters: PublicContentFilters,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[PublicContentItem], int]:
        """Published content, featured first then newest.

        Returns:
            Tuple of (items, total count).
        """
        conditions = [self._school_scope(), published_and_live()]
        if filters.category:
            conditions.append(ContentCategory.slug == filters.category)
        if filters.content_type:
            conditions.append(Content.content_type == filters.content_type)
        if filters.language:
            conditions.append(Content.language == filters.language)
        if filters.featured:
            conditions.append(Content.is_featured.is_(True))
        if filters.search:
            pattern = f"%{filters.search}%"
            conditions.append(or_(Content.title.ilike(pattern), Content.excerpt.ilike(pattern)))
        if filters.location_tag_id:
            conditions.append(
                exists().where(
                    content_location_tags.c.content_id == Content.id,
                    content_location_tags.c.location_tag_id == filters.location_tag_id,
                )
            )

        count_stmt = (
            select(func.count(Content.id))
            .join(School, School.id == Content.tenant_id)
            .outerjoin(ContentCategory, ContentCategory.id == Content.category_id)
            .where(*conditions)
        )
        total = (await self._db.execute(count_stmt)).scalar() or 0

        stmt = (
            select(
                Content.id,
                Content.title,
                Content.slug,
                Content.excerpt,
                Content.featured_image_url,
                Content.content_type,
                Content.language,
                Content.is_featured,
                Content.view_count,
                Content.published_at,
                ContentCategory.name.label("category_name"),
                ContentCategory.slug.label("category_slug"),
                author_name_column(),
                School.name.label("school_name"),
                School.country,
                School.language.label("school_language"),
            )
            .join(School, School.id == Content.tenant_id)
            .outerjoin(CmsUser, CmsUser.id == Content.author_id)
            .outerjoin(ContentCategory, ContentCategory.id == Content.category_id)
            .where(*conditions)
            .order_by(Content.is_featured.desc(), Content.published_at.desc())
            .limit(limit)
            .offset(page_offset(page, limit))
        )
        result = await self._db.execute(stmt)

        return [PublicContentItem.model_validate(row._mapping) for row in result.all()], total

    async def get_content_by_slug(
        self,
        slug: str,
        language: str | None = None,
    ) -> PublicContentDetail:
        """Fetch one published entry and count the view.

        Args:
            slug: Content slug.
            language: Content language; defaults to the target school's.

        Returns:
            The content with the incremented view count.

        Raises:
            ContentNotFoundError: If no published entry matches.
        """
        language = language or (self._school.language if self._school else None)

        stmt = (
            select(
                Content,
                ContentCategory.name.label("category_name"),
                ContentCategory.slug.label("category_slug"),
                author_name_column(),
                CmsUser.avatar_url.label("author_avatar"),
                School.name.label("school_name"),
                School.country,
                School.timezone,
            )
            .join(School, School.id == Content.tenant_id)
            .outerjoin(CmsUser, CmsUser.id == Content.author_id)
            .outerjoin(ContentCategory, ContentCategory.id == Content.category_id)
            .where(self._school_scope(), published_and_live(), Content.slug == slug)
            .limit(1)
        )
        if language:
            stmt = stmt.where(Content.language == language)

        row = (await self._db.execute(stmt)).first()
        if row is None:
            raise ContentNotFoundError("Content not found")

        content, *_ = row
        await self._db.execute(
            update(Content)
            .where(Content.id == content.id)
            .values(view_count=Content.view_count + 1)
            .execution_options(synchronize_session=False)
        )
        await self._db.commit()

        data: dict[str, Any] = {**content.to_dict(), **row._mapping}
        data["view_count"] = (content.view_count or 0) + 1
        return PublicContentDetail.model_validate(data)

    async def categories(self) -> list[PublicCategory]:
        """Active categories with their count of published content."""
        content_count = func.count(Content.id).label("content_count")
        stmt = (
            select(ContentCategory, content_count)
            .join(School, School.id == ContentCategory.tenant_id)
            .outerjoin(
                Content,
                (Content.category_id == ContentCategory.id) & published_and_live(),
            )
            .where(
                self._school_scope(ContentCategory.tenant_id),
                ContentCategory.is_active.is_(True),
            )
            .group_by(ContentCategory.id)
            .order_by(ContentCategory.sort_order, ContentCategory.name)
        )
        result = await self._db.execute(stmt)

        return [
            PublicCategory.model_validate({**category.to_dict(), "content_count": count})
            for category, count in result.all()
        ]

    async def settings(self) -> dict[str, Any]:
        """Public settings of the target school, empty without one."""
        if self._school is None:
            return {}
        return await SiteSettingService(self._db).public_settings(self._school.id)

    async def menus(self, location: str) -> list[MenuResponse]:
        """Active menus of the target school at location, empty without one."""
        if self._school is None:
            return []
        return await NavigationService(self._db).menus_for_location(self._school.id, location)

    async def search(
        self,
        query: str | None,
        content_type: str | None = None,
        category: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[str, list[SearchResult]]:
        """Rank published content by where the query matches.

        A title match scores 3, excerpt 2 and body 1.

        Returns:
            Tuple of (trimmed query, results).

        Raises:
            InvalidSearchQueryError: If the trimmed query is too short.
        """
        term = (query or "").strip()
        if len(term) < MIN_QUERY_LENGTH:
            raise InvalidSearchQueryError(
                f"Search query must be at least {MIN_QUERY_LENGTH} characters"
            )

        pattern = f"%{term}%"
        relevance = (
            case((Content.title.ilike(pattern), 3), else_=0)
            + case((Content.excerpt.ilike(pattern), 2), else_=0)
            + case((Content.body.ilike(pattern), 1), else_=0)
        ).label("relevance")

        stmt = (
            select(
                Content.id,
                Content.title,
                Content.slug,
                Content.excerpt,
                Content.featured_image_url,
                Content.content_type,
                Content.published_at,
                ContentCategory.name.label("category_name"),
                ContentCategory.slug.label("category_slug"),
                School.name.label("school_name"),
                relevance,
            )
            .join(School, School.id == Content.tenant_id)
            .outerjoin(ContentCategory, ContentCategory.id == Content.category_id)
            .where(
                self._school_scope(),
                published_and_live(),
                or_(
                    Content.title.ilike(pattern),
                    Content.excerpt.ilike(pattern),
                    Content.body.ilike(pattern),
                ),
            )
        )
        if content_type:
            stmt = stmt.where(Content.content_type == content_type)
        if category:
            stmt = stmt.where(ContentCategory.slug == category)

        stmt = (
            stmt.order_by(relevance.desc(), Content.published_at.desc())
            .limit(limit)
            .offset(page_offset(page, limit))
        )
        result = await self._db.execute(stmt)

        return term, [SearchResult.model_validate(row._mapping) for row in result.all()]

    async def stats(self) -> PublicStats:
        """Content totals of the target school, or of every active school."""
        categories = (
            select(func.count())
            .select_from(ContentCategory)
            .join(School, School.id == ContentCategory.tenant_id)
            .where(
                self._school_scope(ContentCategory.tenant_id),
                ContentCategory.is_active.is_(True),
            )
            .scalar_subquery()
        )
        stmt = (
            select(
                func.count(Content.id).label("total_contents"),
                func.count(case((Content.status == "published", Content.id))).label(
                    "published_contents"
                ),
                categories.label("total_categories"),
                func.count(case((Content.is_featured.is_(True), Content.id))).label(
                    "featured_contents"
                ),
                func.coalesce(func.sum(Content.view_count), 0).label("total_views"),
            )
            .join(School, School.id == Content.tenant_id)
            .where(self._school_scope())
        )
        row = (await self._db.execute(stmt)).one()

        return PublicStats.model_validate(
            {
                **row._mapping,
                "school_name": self._school.name if self._school else None,
                "country": self._school.country if self._school else None,
            }
        )

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    def _school_scope(self, tenant_column=Content.tenant_id):
        """Restrict rows to the target school, or to active schools without one.

        The fallback expects ``School`` to be joined on tenant_column.
        """
        if self._school is not None:
            return tenant_column == self._school.id
        return School.status == "active"
