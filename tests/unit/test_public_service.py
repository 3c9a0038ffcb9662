# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the storefront content service."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from school_cms.domains.content.service import ContentNotFoundError
from school_cms.domains.public.service import (
    InvalidSearchQueryError,
    PublicContentFilters,
    PublicContentService,
)

SCHOOL = SimpleNamespace(id="school-jp", name="Tokyo Campus", country="JPN", language="ja")


def create_mock_result(rows=None, scalar=None, first=None):
    result = MagicMock()
    result.all.return_value = rows or []
    result.scalar.return_value = scalar
    result.first.return_value = first
    return result


def mapping_row(**values) -> SimpleNamespace:
    return SimpleNamespace(_mapping=values)


class TestSearch:
    """Tests for PublicContentService.search."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", [None, "", "a", "  b  "])
    async def test_short_query_is_rejected(self, mock_db: AsyncMock, query) -> None:
        service = PublicContentService(mock_db, SCHOOL)

        with pytest.raises(InvalidSearchQueryError, match="at least 2 characters"):
            await service.search(query)

        mock_db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_results_keep_relevance_order(self, mock_db: AsyncMock) -> None:
        mock_db.execute.return_value = create_mock_result(
            rows=[
                mapping_row(
                    id="c-1",
                    title="Open house",
                    slug="open-house",
                    content_type="event",
                    school_name="Tokyo Campus",
                    relevance=3,
                ),
                mapping_row(
                    id="c-2",
                    title="News",
                    slug="news",
                    content_type="news",
                    excerpt="our open house",
                    relevance=2,
                ),
            ]
        )
        service = PublicContentService(mock_db, SCHOOL)

        term, results = await service.search("  open house ")

        assert term == "open house"
        assert [r.id for r in results] == ["c-1", "c-2"]
        assert results[0].relevance == 3
        assert results[1].school_name is None


class TestSchoollessFallbacks:
    """Without a target school, per-school data is empty."""

    @pytest.mark.asyncio
    async def test_settings_empty(self, mock_db: AsyncMock) -> None:
        assert await PublicContentService(mock_db).settings() == {}
        mock_db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_menus_empty(self, mock_db: AsyncMock) -> None:
        assert await PublicContentService(mock_db).menus("header") == []
        mock_db.execute.assert_not_called()


class TestContentBySlug:
    @pytest.mark.asyncio
    async def test_not_found(self, mock_db: AsyncMock) -> None:
        mock_db.execute.return_value = create_mock_result(first=None)

        with pytest.raises(ContentNotFoundError):
            await PublicContentService(mock_db, SCHOOL).get_content_by_slug("missing")

        mock_db.commit.assert_not_called()


class TestListContents:
    @pytest.mark.asyncio
    async def test_total_and_items(self, mock_db: AsyncMock) -> None:
        mock_db.execute.side_effect = [
            create_mock_result(scalar=1),
            create_mock_result(
                rows=[
                    mapping_row(
                        id="c-1",
                        title="Welcome",
                        slug="welcome",
                        content_type="page",
                        language="ja",
                        is_featured=True,
                        view_count=4,
                        school_name="Tokyo Campus",
                        country="JPN",
                    )
                ]
            ),
        ]
        filters = PublicContentFilters(featured=True, location_tag_id="tag-1")

        items, total = await PublicContentService(mock_db, SCHOOL).list_contents(filters)

        assert total == 1
        assert items[0].slug == "welcome"
        assert items[0].is_featured is True
