# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Location tag service.

Location tags label content with a campus or region. They are global:
every school shares the same set, so audit entries carry no tenant.
Mutations are reserved to super admins at the API layer.

Example:
    >>> service = LocationTagService(db)
    >>> tags = await service.list_tags(active_only=True)
    >>> stats = await service.stats()
"""

import logging
from typing import Any

from sqlalchemy import case, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from school_cms.domains.audit.service import AuditService
from school_cms.domains.content.service import author_name_column
from school_cms.infrastructure.database.models import (
    CmsUser,
    Content,
    ContentCategory,
    LocationTag,
    content_location_tags,
)
from school_cms.models.common import page_offset
from school_cms.models.location_tag import (
    LocationTagCreateRequest,
    LocationTagResponse,
    LocationTagStats,
    LocationTagUpdateRequest,
    TaggedContent,
)
from school_cms.models.public import PublicLocationTag

logger = logging.getLogger(__name__)

_TABLE = "location_tags"
# Columns that may not be set to NULL through a partial update.
_NON_NULLABLE = {"name", "code", "color", "sort_order"}


class LocationTagServiceError(Exception):
    """Base exception for location tag errors."""

    pass


class LocationTagNotFoundError(LocationTagServiceError):
    """Raised when a location tag does not exist."""

    pass


class CodeExistsError(LocationTagServiceError):
    """Raised when another tag already uses the code."""

    pass


class NameExistsError(LocationTagServiceError):
    """Raised when another tag already uses the name."""

    pass


class NoUpdateFieldsError(LocationTagServiceError):
    """Raised when an update carries no fields."""

    pass


class LocationTagHasContentError(LocationTagServiceError):
    """Raised when deleting a tag that is still linked to content."""

    def __init__(self, content_count: int) -> None:
        super().__init__("Cannot delete location tag with associated content")
        self.content_count = content_count


class LocationTagService:
    """Service for managing location tags and their usage."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db
        self._audit = AuditService(db)

    async def list_tags(self, active_only: bool = False) -> list[LocationTagResponse]:
        """All tags with their linked and published content counts.

        Ordered by sort_order then name.
        """
        stmt = self._counted_query().order_by(LocationTag.sort_order, LocationTag.name)
        if active_only:
            stmt = stmt.where(LocationTag.is_active.is_(True))
        result = await self._db.execute(stmt)
        return [self._to_response(row) for row in result.all()]

    async def get(self, tag_id: str) -> LocationTagResponse:
        """Get one tag with its content counts.

        Raises:
            LocationTagNotFoundError: If not found.
        """
        result = await self._db.execute(self._counted_query().where(LocationTag.id == tag_id))
        row = result.first()
        if row is None:
            raise LocationTagNotFoundError("Location tag not found")
        return self._to_response(row)

    async def create(
        self,
        request: LocationTagCreateRequest,
        user_id: str,
    ) -> LocationTagResponse:
        """Create a location tag.

        Raises:
            CodeExistsError: If the code is taken.
            NameExistsError: If the name is taken.
        """
        await self._ensure_unique(code=request.code, name=request.name)

        tag = LocationTag(**request.model_dump())
        self._db.add(tag)
        await self._db.flush()

        await self._audit.record(
            "location_tag_created",
            _TABLE,
            user_id=user_id,
            record_id=tag.id,
            details={"locationTagId": tag.id, "name": tag.name, "code": tag.code},
        )
        await self._db.commit()

        logger.info("Created location tag %s (%s)", tag.code, tag.id)
        return LocationTagResponse.model_validate(tag)

    async def update(
        self,
        tag_id: str,
        request: LocationTagUpdateRequest,
        user_id: str,
    ) -> LocationTagResponse:
        """Apply the fields present in request.

        Raises:
            LocationTagNotFoundError: If not found.
            NoUpdateFieldsError: If request sets no field that can change.
            CodeExistsError: If the new code is taken.
            NameExistsError: If the new name is taken.
        """
        changes = {
            key: value
            for key, value in request.model_dump(exclude_unset=True).items()
            if value is not None or key not in _NON_NULLABLE
        }
        if not changes:
            raise NoUpdateFieldsError("No valid fields to update")

        tag = await self._get_model(tag_id)

        await self._ensure_unique(
            code=changes.get("code"),
            name=changes.get("name"),
            exclude_id=tag.id,
        )

        for key, value in changes.items():
            setattr(tag, key, value)

        await self._audit.record(
            "location_tag_updated",
            _TABLE,
            user_id=user_id,
            record_id=tag.id,
            details={"locationTagId": tag.id, "updatedFields": sorted(changes)},
        )
        await self._db.commit()

        return await self.get(tag.id)

    async def delete(self, tag_id: str, user_id: str) -> None:
        """Delete a tag that no content uses.

        Raises:
            LocationTagNotFoundError: If not found.
            LocationTagHasContentError: If content is still tagged with it.
        """
        tag = await self._get_model(tag_id)

        count_stmt = (
            select(func.count())
            .select_from(content_location_tags)
            .where(content_location_tags.c.location_tag_id == tag.id)
        )
        content_count = (await self._db.execute(count_stmt)).scalar() or 0
        if content_count > 0:
            raise LocationTagHasContentError(content_count)

        await self._db.execute(delete(LocationTag).where(LocationTag.id == tag.id))
        await self._audit.record(
            "location_tag_deleted",
            _TABLE,
            user_id=user_id,
            record_id=tag.id,
            details={"locationTagId": tag.id, "name": tag.name},
        )
        await self._db.commit()

        logger.info("Deleted location tag %s", tag.id)

    async def toggle(self, tag_id: str, active: bool, user_id: str) -> LocationTagResponse:
        """Activate or deactivate a tag.

        Raises:
            LocationTagNotFoundError: If not found.
        """
        tag = await self._get_model(tag_id)
        old_status = tag.is_active
        tag.is_active = active

        await self._audit.record(
            "location_tag_status_changed",
            _TABLE,
            user_id=user_id,
            record_id=tag.id,
            details={
                "locationTagId": tag.id,
                "name": tag.name,
                "oldStatus": old_status,
                "newStatus": active,
            },
        )
        await self._db.commit()

        return await self.get(tag.id)

    async def contents(
        self,
        tag_id: str,
        tenant_id: str | None = None,
        status: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[TaggedContent], int]:
        """Content linked to a tag, most recently updated first.

        Args:
            tag_id: Location tag.
            tenant_id: Restrict to one tenant, or None for all.
            status: Optional status filter.
            page: 1-based page.
            limit: Page size.

        Returns:
            Tuple of (contents, total count).
        """
        conditions = [content_location_tags.c.location_tag_id == tag_id]
        if tenant_id:
            conditions.append(Content.tenant_id == tenant_id)
        if status:
            conditions.append(Content.status == status)

        base = (
            select(Content.id)
            .join(content_location_tags, content_location_tags.c.content_id == Content.id)
            .where(*conditions)
        )
        count_stmt = select(func.count()).select_from(base.subquery())
        total = (await self._db.execute(count_stmt)).scalar() or 0

        stmt = (
            select(
                Content.id,
                Content.title,
                Content.slug,
                Content.excerpt,
                Content.status,
                Content.content_type,
                Content.language,
                Content.is_featured,
                Content.view_count,
                Content.published_at,
                Content.created_at,
                ContentCategory.name.label("category_name"),
                author_name_column(),
            )
            .join(content_location_tags, content_location_tags.c.content_id == Content.id)
            .outerjoin(ContentCategory, ContentCategory.id == Content.category_id)
            .outerjoin(CmsUser, CmsUser.id == Content.author_id)
            .where(*conditions)
            .order_by(Content.updated_at.desc())
            .limit(limit)
            .offset(page_offset(page, limit))
        )
        result = await self._db.execute(stmt)

        return [TaggedContent.model_validate(row._mapping) for row in result.all()], total

    async def stats(self) -> list[LocationTagStats]:
        """Usage statistics of active tags, most used first."""
        linked = content_location_tags.c.content_id
        stmt = (
            select(
                LocationTag.id,
                LocationTag.name,
                LocationTag.code,
                LocationTag.country,
                LocationTag.color,
                func.count(linked.distinct()).label("total_contents"),
                self._count_where(Content.status == "published").label("published_contents"),
                self._count_where(Content.status == "draft").label("draft_contents"),
                self._count_where(Content.is_featured.is_(True)).label("featured_contents"),
                func.coalesce(func.sum(Content.view_count), 0).label("total_views"),
                func.max(Content.published_at).label("last_content_published"),
            )
            .outerjoin(
                content_location_tags,
                content_location_tags.c.location_tag_id == LocationTag.id,
            )
            .outerjoin(Content, Content.id == linked)
            .where(LocationTag.is_active.is_(True))
            .group_by(LocationTag.id)
            .order_by(func.count(linked.distinct()).desc(), LocationTag.sort_order)
        )
        result = await self._db.execute(stmt)
        return [LocationTagStats.model_validate(row._mapping) for row in result.all()]

    async def public_list(self, country: str | None = None) -> list[PublicLocationTag]:
        """Active tags for the storefront.

        With a country, only tags of that country or without one are listed.
        """
        stmt = select(LocationTag).where(LocationTag.is_active.is_(True))
        if country:
            stmt = stmt.where(or_(LocationTag.country == country, LocationTag.country.is_(None)))
        stmt = stmt.order_by(LocationTag.sort_order, LocationTag.name)
        result = await self._db.execute(stmt)
        return [PublicLocationTag.model_validate(t) for t in result.scalars().all()]

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    @staticmethod
    def _count_where(condition: Any):
        return func.count(case((condition, content_location_tags.c.content_id)).distinct())

    def _counted_query(self):
        linked = content_location_tags.c.content_id
        return (
            select(
                LocationTag,
                func.count(linked.distinct()).label("content_count"),
                self._count_where(Content.status == "published").label("published_content_count"),
            )
            .outerjoin(
                content_location_tags,
                content_location_tags.c.location_tag_id == LocationTag.id,
            )
            .outerjoin(Content, Content.id == linked)
            .group_by(LocationTag.id)
        )

    @staticmethod
    def _to_response(row: Any) -> LocationTagResponse:
        tag, content_count, published_count = row
        return LocationTagResponse.model_validate(
            {
                **tag.to_dict(),
                "content_count": content_count,
                "published_content_count": published_count,
            }
        )

    async def _get_model(self, tag_id: str) -> LocationTag:
        result = await self._db.execute(select(LocationTag).where(LocationTag.id == tag_id))
        tag = result.scalar_one_or_none()
        if tag is None:
            raise LocationTagNotFoundError("Location tag not found")
        return tag

    async def _ensure_unique(
        self,
        code: str | None = None,
        name: str | None = None,
        exclude_id: str | None = None,
    ) -> None:
        checks = (
            (LocationTag.code, code, CodeExistsError, "Code"),
            (LocationTag.name, name, NameExistsError, "Name"),
        )
        for column, value, error, label in checks:
            if value is None:
                continue
            stmt = select(LocationTag.id).where(column == value)
            if exclude_id:
                stmt = stmt.where(LocationTag.id != exclude_id)
            if (await self._db.execute(stmt)).first() is not None:
                raise error(f"{label} already exists")
