# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Content service for tenant-scoped CMS content.

This module provides the ContentService that handles:
- Content CRUD with per-language slug uniqueness
- Publishing and unpublishing
- Duplication and related-content lookup
- Location tag assignment

Every query is filtered by the caller's effective tenant.

Example:
    >>> service = ContentService(db)
    >>> contents, total = await service.list_contents(tenant_id, ContentFilters(status="published"))
    >>> content = await service.create(tenant_id, author_id, create_request)
"""

import logging
from typing import Any

from sqlalchemy import and_, case, delete, exists, func, insert, literal, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from school_cms.domains.audit.service import AuditService
from school_cms.infrastructure.database.models import (
    CmsUser,
    Content,
    ContentCategory,
    LocationTag,
    content_location_tags,
    full_name_expr,
)
from school_cms.models.common import page_offset
from school_cms.models.content import (
    SORTABLE_FIELDS,
    ContentCreateRequest,
    ContentFilters,
    ContentResponse,
    ContentUpdateRequest,
    RelatedContent,
)
from school_cms.utils.datetime import utc_now

logger = logging.getLogger(__name__)

# Columns that may not be set to NULL through a partial update.
_NON_NULLABLE = {
    "title",
    "slug",
    "body",
    "status",
    "language",
    "content_type",
    "is_featured",
    "seo_settings",
    "custom_fields",
}


class ContentServiceError(Exception):
    """Base exception for content service errors."""

    pass


class ContentNotFoundError(ContentServiceError):
    """Raised when content does not exist in the tenant."""

    pass


class SlugExistsError(ContentServiceError):
    """Raised when the slug is taken for the tenant and language."""

    pass


class NoUpdateFieldsError(ContentServiceError):
    """Raised when an update carries no fields."""

    pass


class MissingDuplicateDataError(ContentServiceError):
    """Raised when a duplicate request lacks the new title or slug."""

    pass


class InvalidSortFieldError(ContentServiceError):
    """Raised when sort_by is not a sortable column."""

    pass


class UnknownLocationTagError(ContentServiceError):
    """Raised when assigning location tags that do not exist."""

    def __init__(self, missing: list[str]) -> None:
        super().__init__(f"Unknown location tags: {', '.join(missing)}")
        self.missing = missing


def author_name_column():
    return full_name_expr().label("author_name")


def published_and_live(now=None):
    """Clause for content visible to the public: published and not expired."""
    now = now or utc_now()
    return and_(
        Content.status == "published",
        or_(Content.expires_at.is_(None), Content.expires_at > now),
    )


class ContentService:
    """Service for managing tenant content.

    Attributes:
        _db: Async database session.
        _audit: Audit trail writer sharing the session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db
        self._audit = AuditService(db)

    async def list_contents(
        self,
        tenant_id: str,
        filters: ContentFilters | None = None,
        page: int = 1,
        limit: int = 20,
        sort_by: str = "updated_at",
        sort_order: str = "desc",
    ) -> tuple[list[ContentResponse], int]:
        """List tenant content with filtering and sorting.

        Args:
            tenant_id: Effective tenant.
            filters: Optional filters.
            page: 1-based page.
            limit: Page size.
            sort_by: One of SORTABLE_FIELDS.
            sort_order: ``asc`` or ``desc``.

        Returns:
            Tuple of (contents with category and author info, total count).

        Raises:
            InvalidSortFieldError: If sort_by is not sortable.
        """
        if sort_by not in SORTABLE_FIELDS:
            raise InvalidSortFieldError(f"Cannot sort by '{sort_by}'")

        filters = filters or ContentFilters()
        stmt = self._detail_query().where(Content.tenant_id == tenant_id)

        if filters.status:
            stmt = stmt.where(Content.status == filters.status)
        if filters.category:
            stmt = stmt.where(ContentCategory.slug == filters.category)
        if filters.content_type:
            stmt = stmt.where(Content.content_type == filters.content_type)
        if filters.language:
            stmt = stmt.where(Content.language == filters.language)
        if filters.author_id:
            stmt = stmt.where(Content.author_id == filters.author_id)
        if filters.featured:
            stmt = stmt.where(Content.is_featured.is_(True))
        if filters.search:
            pattern = f"%{filters.search}%"
            stmt = stmt.where(or_(Content.title.ilike(pattern), Content.excerpt.ilike(pattern)))
        if filters.location_tag_id:
            stmt = stmt.where(
                exists().where(
                    content_location_tags.c.content_id == Content.id,
                    content_location_tags.c.location_tag_id == filters.location_tag_id,
                )
            )

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await self._db.execute(count_stmt)).scalar() or 0

        column = getattr(Content, sort_by)
        order = column.asc() if sort_order.lower() == "asc" else column.desc()
        stmt = stmt.order_by(order).limit(limit).offset(page_offset(page, limit))

        result = await self._db.execute(stmt)
        return [self._to_response(row) for row in result.all()], total

    async def get(self, tenant_id: str, content_id: str) -> ContentResponse:
        """Get content with category and author info.

        Raises:
            ContentNotFoundError: If not found in the tenant.
        """
        stmt = self._detail_query().where(
            Content.id == content_id,
            Content.tenant_id == tenant_id,
        )
        result = await self._db.execute(stmt)
        row = result.first()
        if row is None:
            raise ContentNotFoundError(f"Content {content_id} not found")
        return self._to_response(row)

    async def create(
        self,
        tenant_id: str,
        author_id: str,
        request: ContentCreateRequest,
    ) -> ContentResponse:
        """Create content.

        Publishing on create without ``published_at`` stamps it with now.

        Raises:
            SlugExistsError: If the slug is taken for the language.
        """
        if await self._slug_taken(tenant_id, request.slug, request.language):
            raise SlugExistsError("Slug already exists for this language")

        data = request.model_dump()
        if data["status"] == "published" and data["published_at"] is None:
            data["published_at"] = utc_now()

        content = Content(tenant_id=tenant_id, author_id=author_id, **data)
        self._db.add(content)
        await self._db.flush()

        await self._audit.record(
            "content_created",
            "contents",
            user_id=author_id,
            tenant_id=tenant_id,
            record_id=content.id,
            details={"title": content.title, "status": content.status},
        )
        await self._db.commit()

        logger.info("Content created: %s (%s)", content.id, content.slug)
        return await self.get(tenant_id, content.id)

    async def update(
        self,
        tenant_id: str,
        content_id: str,
        request: ContentUpdateRequest,
        user_id: str,
    ) -> ContentResponse:
        """Apply the fields present in request.

        Raises:
            NoUpdateFieldsError: If request sets no field.
            ContentNotFoundError: If not found in the tenant.
            SlugExistsError: If the new slug/language pair is taken.
        """
        changes = {
            key: value
            for key, value in request.model_dump(exclude_unset=True).items()
            if value is not None or key not in _NON_NULLABLE
        }
        if not changes:
            raise NoUpdateFieldsError("No valid fields to update")

        content = await self._get_model(tenant_id, content_id)

        new_slug = changes.get("slug", content.slug)
        new_language = changes.get("language", content.language)
        if (new_slug, new_language) != (content.slug, content.language):
            if await self._slug_taken(tenant_id, new_slug, new_language, exclude_id=content.id):
                raise SlugExistsError("Slug already exists for this language")

        for key, value in changes.items():
            setattr(content, key, value)

        await self._audit.record(
            "content_updated",
            "contents",
            user_id=user_id,
            tenant_id=tenant_id,
            record_id=content.id,
            details={"updatedFields": sorted(changes)},
        )
        await self._db.commit()

        return await self.get(tenant_id, content_id)

    async def delete(self, tenant_id: str, content_id: str, user_id: str) -> None:
        """Hard-delete content.

        Raises:
            ContentNotFoundError: If not found in the tenant.
        """
        content = await self._get_model(tenant_id, content_id)
        title = content.title

        await self._db.delete(content)
        await self._audit.record(
            "content_deleted",
            "contents",
            user_id=user_id,
            tenant_id=tenant_id,
            record_id=content_id,
            details={"title": title},
        )
        await self._db.commit()

        logger.info("Content deleted: %s", content_id)

    async def set_published(
        self,
        tenant_id: str,
        content_id: str,
        publish: bool,
        user_id: str,
    ) -> ContentResponse:
        """Publish (status published, stamped now) or unpublish (draft)."""
        content = await self._get_model(tenant_id, content_id)
        old_status = content.status

        content.status = "published" if publish else "draft"
        content.published_at = utc_now() if publish else None

        await self._audit.record(
            "content_status_changed",
            "contents",
            user_id=user_id,
            tenant_id=tenant_id,
            record_id=content.id,
            details={
                "title": content.title,
                "oldStatus": old_status,
                "newStatus": content.status,
            },
        )
        await self._db.commit()

        return await self.get(tenant_id, content_id)

    async def duplicate(
        self,
        tenant_id: str,
        content_id: str,
        new_title: str | None,
        new_slug: str | None,
        user_id: str,
    ) -> ContentResponse:
        """Copy content as a new draft authored by user_id.

        Raises:
            MissingDuplicateDataError: If new_title or new_slug is empty.
            ContentNotFoundError: If the original is not found.
            SlugExistsError: If new_slug is taken for the original's language.
        """
        if not new_title or not new_slug:
            raise MissingDuplicateDataError("New title and slug are required")

        original = await self._get_model(tenant_id, content_id)

        if await self._slug_taken(tenant_id, new_slug, original.language):
            raise SlugExistsError("Slug already exists")

        copy = Content(
            tenant_id=tenant_id,
            author_id=user_id,
            category_id=original.category_id,
            title=new_title,
            slug=new_slug,
            excerpt=original.excerpt,
            body=original.body,
            featured_image_url=original.featured_image_url,
            meta_title=original.meta_title,
            meta_description=original.meta_description,
            status="draft",
            language=original.language,
            content_type=original.content_type,
            is_featured=False,
            seo_settings=dict(original.seo_settings or {}),
            custom_fields=dict(original.custom_fields or {}),
        )
        self._db.add(copy)
        await self._db.flush()

        await self._audit.record(
            "content_duplicated",
            "contents",
            user_id=user_id,
            tenant_id=tenant_id,
            record_id=copy.id,
            details={"originalId": content_id, "newTitle": new_title},
        )
        await self._db.commit()

        return await self.get(tenant_id, copy.id)

    async def related(
        self,
        tenant_id: str,
        content_id: str,
        limit: int = 5,
    ) -> list[RelatedContent]:
        """Published content sharing category, language or type.

        Scored category 3, language 2, type 1; ties go to the most
        recently published.

        Raises:
            ContentNotFoundError: If the reference content is not found.
        """
        original = await self._get_model(tenant_id, content_id)

        same_category = (
            Content.category_id == original.category_id
            if original.category_id
            else literal(False)
        )
        same_language = Content.language == original.language
        same_type = Content.content_type == original.content_type

        relevance = (
            case((same_category, 3), else_=0)
            + case((same_language, 2), else_=0)
            + case((same_type, 1), else_=0)
        ).label("relevance")

        stmt = (
            select(Content, ContentCategory.name.label("category_name"), relevance)
            .outerjoin(ContentCategory, ContentCategory.id == Content.category_id)
            .where(
                Content.tenant_id == tenant_id,
                Content.id != content_id,
                published_and_live(),
                or_(same_category, same_language, same_type),
            )
            .order_by(relevance.desc(), Content.published_at.desc())
            .limit(limit)
        )
        result = await self._db.execute(stmt)

        return [
            RelatedContent.model_validate({**content.to_dict(), "category_name": category_name})
            for content, category_name, _ in result.all()
        ]

    async def set_location_tags(
        self,
        tenant_id: str,
        content_id: str,
        tag_ids: list[str],
        user_id: str,
    ) -> list[str]:
        """Replace the location tags linked to content.

        Returns:
            The de-duplicated tag IDs now linked.

        Raises:
            ContentNotFoundError: If content is not found.
            UnknownLocationTagError: If any tag ID does not exist.
        """
        await self._get_model(tenant_id, content_id)

        unique_ids = list(dict.fromkeys(tag_ids))
        if unique_ids:
            result = await self._db.execute(
                select(LocationTag.id).where(LocationTag.id.in_(unique_ids))
            )
            found = {str(tag_id) for tag_id in result.scalars().all()}
            missing = [tag_id for tag_id in unique_ids if tag_id not in found]
            if missing:
                raise UnknownLocationTagError(missing)

        await self._db.execute(
            delete(content_location_tags).where(
                content_location_tags.c.content_id == content_id
            )
        )
        if unique_ids:
            await self._db.execute(
                insert(content_location_tags),
                [{"content_id": content_id, "location_tag_id": tag_id} for tag_id in unique_ids],
            )

        await self._audit.record(
            "content_location_tags_updated",
            "content_location_tags",
            user_id=user_id,
            tenant_id=tenant_id,
            record_id=content_id,
            details={"locationTagIds": unique_ids},
        )
        await self._db.commit()
        return unique_ids

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    @staticmethod
    def _detail_query():
        return (
            select(
                Content,
                ContentCategory.name.label("category_name"),
                ContentCategory.slug.label("category_slug"),
                author_name_column(),
                CmsUser.email.label("author_email"),
            )
            .outerjoin(ContentCategory, ContentCategory.id == Content.category_id)
            .outerjoin(CmsUser, CmsUser.id == Content.author_id)
        )

    @staticmethod
    def _to_response(row: Any) -> ContentResponse:
        content, category_name, category_slug, author_name, author_email = row
        return ContentResponse.model_validate(
            {
                **content.to_dict(),
                "category_name": category_name,
                "category_slug": category_slug,
                "author_name": author_name,
                "author_email": author_email,
            }
        )

    async def _get_model(self, tenant_id: str, content_id: str) -> Content:
        stmt = select(Content).where(Content.id == content_id, Content.tenant_id == tenant_id)
        result = await self._db.execute(stmt)
        content = result.scalar_one_or_none()
        if content is None:
            raise ContentNotFoundError(f"Content {content_id} not found")
        return content

    async def _slug_taken(
        self,
        tenant_id: str,
        slug: str,
        language: str,
        exclude_id: str | None = None,
    ) -> bool:
        stmt = select(Content.id).where(
            Content.tenant_id == tenant_id,
            Content.slug == slug,
            Content.language == language,
        )
        if exclude_id:
            stmt = stmt.where(Content.id != exclude_id)
        result = await self._db.execute(stmt.limit(1))
        return result.scalar_one_or_none() is not None
