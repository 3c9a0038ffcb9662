# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for visitor country detection."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import DBAPIError
from starlette.requests import Request

from school_cms.api.middleware.country import (
    extract_location,
    normalize_country,
    validate_country_compatibility,
)
from school_cms.models.public import LocationInfo


def make_request(headers: dict[str, str] | None = None, method: str = "GET") -> Request:
    scope = {
        "type": "http",
        "method": method,
        "path": "/api/v1/public/contents",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": ("203.0.113.7", 5000),
    }
    return Request(scope)


class TestNormalizeCountry:
    @pytest.mark.parametrize(
        "code,expected",
        [
            ("BR", "BRA"),
            ("us", "USA"),
            ("JP", "JPN"),
            ("PE", "PER"),
            ("CO", "COL"),
            ("TH", "THA"),
            ("DE", "DE"),
            ("bra", "BRA"),
            (" jp ", "JPN"),
            (None, None),
            ("", None),
        ],
    )
    def test_normalize(self, code, expected) -> None:
        assert normalize_country(code) == expected


class TestExtractLocation:
    def test_cloudfront_wins(self) -> None:
        request = make_request(
            {
                "CloudFront-Viewer-Country": "JP",
                "CF-IPCountry": "US",
                "X-Country": "PER",
                "CloudFront-Viewer-Country-Region": "13",
                "CloudFront-Viewer-City": "Tokyo",
            }
        )

        location = extract_location(request)

        assert location.country == "JPN"
        assert location.source == "cloudfront"
        assert location.region == "13"
        assert location.city == "Tokyo"

    def test_cloudflare_before_explicit_header(self) -> None:
        location = extract_location(make_request({"CF-IPCountry": "US", "X-Country": "PER"}))

        assert location.country == "USA"
        assert location.source == "cloudflare"

    def test_explicit_header(self) -> None:
        location = extract_location(make_request({"X-Country": "th"}))

        assert location.country == "THA"
        assert location.source == "header"

    def test_no_headers(self) -> None:
        location = extract_location(make_request())

        assert location.country is None
        assert location.source == "header"


class TestCountryCompatibility:
    """Mismatches between detected country and school only log."""

    @pytest.mark.asyncio
    async def test_read_requests_are_skipped(self, mock_db: AsyncMock) -> None:
        request = make_request(method="GET")
        request.state.location = LocationInfo(country="JPN", source="header")

        await validate_country_compatibility(request, mock_db, "school-1")

        mock_db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_mismatch_is_logged(self, mock_db: AsyncMock) -> None:
        request = make_request(method="POST")
        request.state.location = LocationInfo(country="JPN", source="header")
        result = MagicMock()
        result.scalar_one_or_none.return_value = "BRA"
        mock_db.execute.return_value = result

        with patch("school_cms.api.middleware.country.logger") as logger:
            await validate_country_compatibility(request, mock_db, "school-1")

        logger.warning.assert_called_once()
        assert logger.warning.call_args.args[1:3] == ("JPN", "BRA")

    @pytest.mark.asyncio
    async def test_matching_country_is_silent(self, mock_db: AsyncMock) -> None:
        request = make_request(method="DELETE")
        request.state.location = SimpleNamespace(country="BRA")
        result = MagicMock()
        result.scalar_one_or_none.return_value = "BRA"
        mock_db.execute.return_value = result

        with patch("school_cms.api.middleware.country.logger") as logger:
            await validate_country_compatibility(request, mock_db, "school-1")

        logger.warning.assert_not_called()

    @pytest.mark.asyncio
    async def test_lookup_failure_does_not_block(self, mock_db: AsyncMock) -> None:
        request = make_request(method="PUT")
        request.state.location = LocationInfo(country="JPN", source="header")
        mock_db.execute.side_effect = DBAPIError("SELECT", {}, Exception("invalid input"))

        with patch("school_cms.api.middleware.country.logger") as logger:
            await validate_country_compatibility(request, mock_db, "school-1")

        logger.error.assert_called_once()
        logger.warning.assert_not_called()
