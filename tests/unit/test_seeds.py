# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for initial seed data."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from school_cms.core.config.settings import Settings
from school_cms.infrastructure.database.seeds import seed_initial_data


def create_mock_result(value=None):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


@pytest.fixture
def settings() -> Settings:
    return Settings()


class TestSeedInitialData:
    @pytest.mark.asyncio
    async def test_existing_data_is_left_alone(self, mock_db: AsyncMock, settings) -> None:
        mock_db.execute.return_value = create_mock_result(SimpleNamespace(id="school-br"))
        mock_db.scalar = AsyncMock(return_value=1)

        result = await seed_initial_data(mock_db, settings)

        assert result == {"school_id": "school-br", "super_admin_created": False}
        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_fresh_install(self, mock_db: AsyncMock, settings) -> None:
        mock_db.execute.return_value = create_mock_result(None)
        mock_db.scalar = AsyncMock(return_value=0)

        result = await seed_initial_data(mock_db, settings)

        school, admin = (call.args[0] for call in mock_db.add.call_args_list)
        assert school.country == settings.seed.default_country
        assert school.status == "active"
        assert admin.role == "super_admin"
        assert admin.email == settings.seed.admin_email.lower()
        assert admin.password_hash.startswith("$2b$")
        assert result["super_admin_created"] is True
