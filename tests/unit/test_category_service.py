# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the category service."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from school_cms.domains.category.service import (
    CategoryHasContentError,
    CategoryNotFoundError,
    CategoryService,
    CategorySlugExistsError,
    InvalidParentError,
    MissingRequiredFieldsError,
)
from school_cms.models.content import CategoryCreateRequest, CategoryUpdateRequest

CATEGORY_ID = "3d8f2a10-6c4b-4e2a-9f1d-5b7c8e9a0f12"
MISSING_CATEGORY_ID = "9a0e4b7c-2d1f-4a3e-8b6c-1f2e3d4c5b6a"


def create_mock_result(value):
    """Create a mock result with scalar_one_or_none."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    result.scalar.return_value = value if isinstance(value, int) else 0
    return result


@pytest.fixture
def category_service(mock_db: AsyncMock) -> CategoryService:
    return CategoryService(mock_db)


@pytest.fixture
def sample_category() -> SimpleNamespace:
    return SimpleNamespace(
        id=CATEGORY_ID,
        tenant_id="tenant-1",
        name="News",
        slug="news",
        description=None,
        parent_id=None,
        sort_order=0,
        is_active=True,
        created_at=None,
        updated_at=None,
    )


class TestCategoryCreate:
    """Tests for category creation."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body", [{"slug": "news"}, {"name": "News"}, {"name": "", "slug": "x"}]
    )
    async def test_missing_name_or_slug(
        self,
        category_service: CategoryService,
        mock_db: AsyncMock,
        body: dict,
    ) -> None:
        with pytest.raises(MissingRequiredFieldsError):
            await category_service.create("tenant-1", CategoryCreateRequest(**body), "user-1")

        mock_db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_duplicate_slug(
        self,
        category_service: CategoryService,
        mock_db: AsyncMock,
    ) -> None:
        mock_db.execute.return_value = create_mock_result("existing-id")

        with pytest.raises(CategorySlugExistsError):
            await category_service.create(
                "tenant-1",
                CategoryCreateRequest(name="News", slug="news"),
                "user-1",
            )

    @pytest.mark.asyncio
    async def test_unknown_parent(
        self,
        category_service: CategoryService,
        mock_db: AsyncMock,
    ) -> None:
        mock_db.execute.side_effect = [create_mock_result(None), create_mock_result(None)]

        with pytest.raises(InvalidParentError):
            await category_service.create(
                "tenant-1",
                CategoryCreateRequest(name="Sports", slug="sports", parent_id=MISSING_CATEGORY_ID),
                "user-1",
            )

        mock_db.add.assert_not_called()


class TestCategoryUpdate:
    """Tests for category updates."""

    @pytest.mark.asyncio
    async def test_update_applies_fields(
        self,
        category_service: CategoryService,
        mock_db: AsyncMock,
        sample_category: SimpleNamespace,
    ) -> None:
        mock_db.execute.return_value = create_mock_result(sample_category)

        result = await category_service.update(
            "tenant-1",
            CATEGORY_ID,
            CategoryUpdateRequest(name="Latest News", sort_order=None),
            "user-1",
        )

        assert result.name == "Latest News"
        assert result.sort_order == 0
        audit = mock_db.add.call_args.args[0]
        assert audit.details == {"updatedFields": ["name"]}

    @pytest.mark.asyncio
    async def test_cannot_be_own_parent(
        self,
        category_service: CategoryService,
        mock_db: AsyncMock,
        sample_category: SimpleNamespace,
    ) -> None:
        mock_db.execute.return_value = create_mock_result(sample_category)

        with pytest.raises(InvalidParentError, match="own parent"):
            await category_service.update(
                "tenant-1",
                CATEGORY_ID,
                CategoryUpdateRequest(parent_id=CATEGORY_ID),
                "user-1",
            )

    @pytest.mark.asyncio
    async def test_unknown_category(
        self,
        category_service: CategoryService,
        mock_db: AsyncMock,
    ) -> None:
        mock_db.execute.return_value = create_mock_result(None)

        with pytest.raises(CategoryNotFoundError):
            await category_service.update(
                "tenant-1", MISSING_CATEGORY_ID, CategoryUpdateRequest(name="X"), "user-1"
            )


class TestCategoryDelete:
    """Tests for category deletion."""

    @pytest.mark.asyncio
    async def test_category_in_use_is_kept(
        self,
        category_service: CategoryService,
        mock_db: AsyncMock,
        sample_category: SimpleNamespace,
    ) -> None:
        mock_db.execute.side_effect = [create_mock_result(sample_category), create_mock_result(4)]

        with pytest.raises(CategoryHasContentError) as exc_info:
            await category_service.delete("tenant-1", CATEGORY_ID, "user-1")

        assert exc_info.value.content_count == 4
        mock_db.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_unused_category_is_deleted(
        self,
        category_service: CategoryService,
        mock_db: AsyncMock,
        sample_category: SimpleNamespace,
    ) -> None:
        mock_db.execute.side_effect = [create_mock_result(sample_category), create_mock_result(0)]

        await category_service.delete("tenant-1", CATEGORY_ID, "user-1")

        mock_db.delete.assert_awaited_once_with(sample_category)
        mock_db.commit.assert_awaited_once()
