# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Content category service.

Categories form an optional tree through ``parent_id`` and are unique by
slug within a tenant.
"""

import logging

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from school_cms.domains.audit.service import AuditService
from school_cms.infrastructure.database.models import Content, ContentCategory
from school_cms.models.content import (
    CategoryCreateRequest,
    CategoryResponse,
    CategoryUpdateRequest,
)

logger = logging.getLogger(__name__)

# Columns that may not be set to NULL through a partial update.
_NON_NULLABLE = {"name", "slug", "sort_order", "is_active"}


class CategoryServiceError(Exception):
    """Base exception for category service errors."""

    pass


class CategoryNotFoundError(CategoryServiceError):
    """Raised when a category does not exist in the tenant."""

    pass


class MissingRequiredFieldsError(CategoryServiceError):
    """Raised when name or slug is missing."""

    pass


class CategorySlugExistsError(CategoryServiceError):
    """Raised when the slug is already used in the tenant."""

    pass


class CategoryHasContentError(CategoryServiceError):
    """Raised when deleting a category still referenced by content."""

    def __init__(self, content_count: int) -> None:
        super().__init__(f"Category is used by {content_count} contents")
        self.content_count = content_count


class InvalidParentError(CategoryServiceError):
    """Raised when parent_id is unknown or would create a cycle."""

    pass


class CategoryService:
    """Service for managing content categories.

    Attributes:
        _db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db
        self._audit = AuditService(db)

    async def list_categories(self, tenant_id: str) -> list[CategoryResponse]:
        """List categories with parent name and published content count."""
        parent = aliased(ContentCategory)
        content_count = func.count(Content.id).label("content_count")

        stmt = (
            select(ContentCategory, parent.name.label("parent_name"), content_count)
            .outerjoin(parent, parent.id == ContentCategory.parent_id)
            .outerjoin(
                Content,
                and_(Content.category_id == ContentCategory.id, Content.status == "published"),
            )
            .where(ContentCategory.tenant_id == tenant_id)
            .group_by(ContentCategory.id, parent.name)
            .order_by(ContentCategory.sort_order.asc(), ContentCategory.name.asc())
        )
        result = await self._db.execute(stmt)

        return [
            CategoryResponse.model_validate(
                {**category.to_dict(), "parent_name": parent_name, "content_count": count}
            )
            for category, parent_name, count in result.all()
        ]

    async def create(
        self,
        tenant_id: str,
        request: CategoryCreateRequest,
        user_id: str,
    ) -> CategoryResponse:
        """Create a category.

        Raises:
            MissingRequiredFieldsError: If name or slug is empty.
            CategorySlugExistsError: If the slug is taken in the tenant.
            InvalidParentError: If parent_id is not a tenant category.
        """
        if not request.name or not request.slug:
            raise MissingRequiredFieldsError("Name and slug are required")

        if await self._slug_taken(tenant_id, request.slug):
            raise CategorySlugExistsError("Slug already exists")

        if request.parent_id:
            await self._get_model(tenant_id, request.parent_id, InvalidParentError)

        category = ContentCategory(
            tenant_id=tenant_id,
            name=request.name,
            slug=request.slug,
            description=request.description,
            parent_id=request.parent_id,
            sort_order=request.sort_order,
        )
        self._db.add(category)
        await self._db.flush()

        await self._audit.record(
            "category_created",
            "content_categories",
            user_id=user_id,
            tenant_id=tenant_id,
            record_id=category.id,
            details={"name": category.name},
        )
        await self._db.commit()

        return CategoryResponse.model_validate(category)

    async def update(
        self,
        tenant_id: str,
        category_id: str,
        request: CategoryUpdateRequest,
        user_id: str,
    ) -> CategoryResponse:
        """Update the fields present in request.

        Raises:
            CategoryNotFoundError: If the category is not in the tenant.
            CategorySlugExistsError: If the new slug is taken.
            InvalidParentError: If the parent is unknown or the category itself.
        """
        category = await self._get_model(tenant_id, category_id)
        changes = {
            key: value
            for key, value in request.model_dump(exclude_unset=True).items()
            if value is not None or key not in _NON_NULLABLE
        }

        new_slug = changes.get("slug")
        if new_slug and new_slug != category.slug:
            if await self._slug_taken(tenant_id, new_slug, exclude_id=category.id):
                raise CategorySlugExistsError("Slug already exists")

        parent_id = changes.get("parent_id")
        if parent_id:
            if parent_id == category.id:
                raise InvalidParentError("A category cannot be its own parent")
            await self._get_model(tenant_id, parent_id, InvalidParentError)

        for key, value in changes.items():
            setattr(category, key, value)

        await self._audit.record(
            "category_updated",
            "content_categories",
            user_id=user_id,
            tenant_id=tenant_id,
            record_id=category.id,
            details={"updatedFields": sorted(changes)},
        )
        await self._db.commit()

        return CategoryResponse.model_validate(category)

    async def delete(self, tenant_id: str, category_id: str, user_id: str) -> None:
        """Delete a category that no content references.

        Raises:
            CategoryNotFoundError: If the category is not in the tenant.
            CategoryHasContentError: If contents still reference it.
        """
        category = await self._get_model(tenant_id, category_id)

        count_stmt = select(func.count(Content.id)).where(Content.category_id == category_id)
        content_count = (await self._db.execute(count_stmt)).scalar() or 0
        if content_count:
            raise CategoryHasContentError(content_count)

        name = category.name
        await self._db.delete(category)
        await self._audit.record(
            "category_deleted",
            "content_categories",
            user_id=user_id,
            tenant_id=tenant_id,
            record_id=category_id,
            details={"name": name},
        )
        await self._db.commit()

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    async def _get_model(
        self,
        tenant_id: str,
        category_id: str,
        error: type[CategoryServiceError] = CategoryNotFoundError,
    ) -> ContentCategory:
        stmt = select(ContentCategory).where(
            ContentCategory.id == category_id,
            ContentCategory.tenant_id == tenant_id,
        )
        result = await self._db.execute(stmt)
        category = result.scalar_one_or_none()
        if category is None:
            raise error(f"Category {category_id} not found")
        return category

    async def _slug_taken(
        self,
        tenant_id: str,
        slug: str,
        exclude_id: str | None = None,
    ) -> bool:
        stmt = select(ContentCategory.id).where(
            ContentCategory.tenant_id == tenant_id,
            ContentCategory.slug == slug,
        )
        if exclude_id:
            stmt = stmt.where(ContentCategory.id != exclude_id)
        result = await self._db.execute(stmt.limit(1))
        return result.scalar_one_or_none() is not None
