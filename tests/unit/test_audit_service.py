# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the audit service."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import UUID

import pytest

from school_cms.domains.audit.service import AuditService
from school_cms.infrastructure.database.models import AuditLog

USER_ID = "7c9e6679-7425-40de-944b-e07fc1f90ae7"


def make_log(operation: str = "content_updated", **overrides) -> AuditLog:
    values = {
        "id": "e1d2c3b4-a596-4788-9a0b-1c2d3e4f5a6b",
        "tenant_id": "550e8400-e29b-41d4-a716-446655440000",
        "user_id": USER_ID,
        "operation": operation,
        "table_name": "contents",
        "record_id": "content-1",
        "details": {"title": "Open day"},
        "ip_address": "10.0.0.1",
        "created_at": datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc),
    }
    values.update(overrides)
    return AuditLog(**values)


def queue_results(mock_db: AsyncMock, total, rows: list) -> None:
    count_result = MagicMock()
    count_result.scalar.return_value = total
    rows_result = MagicMock()
    rows_result.all.return_value = rows
    mock_db.execute = AsyncMock(side_effect=[count_result, rows_result])


class TestRecord:
    @pytest.mark.asyncio
    async def test_adds_entry_without_commit(
        self, mock_db: AsyncMock, sample_tenant_id: str
    ) -> None:
        with patch("school_cms.domains.audit.service.audit_event") as event:
            entry = await AuditService(mock_db).record(
                "content_created",
                "contents",
                user_id=UUID(USER_ID),
                tenant_id=sample_tenant_id,
                record_id="content-1",
                details={"title": "Open day"},
                ip_address="10.0.0.1",
            )

        mock_db.add.assert_called_once_with(entry)
        mock_db.commit.assert_not_called()
        assert entry.user_id == USER_ID
        assert entry.tenant_id == sample_tenant_id
        assert entry.details == {"title": "Open day"}
        event.assert_called_once_with(
            "content_created",
            "contents",
            user_id=USER_ID,
            tenant_id=sample_tenant_id,
            record_id="content-1",
            title="Open day",
        )

    @pytest.mark.asyncio
    async def test_global_entry(self, mock_db: AsyncMock) -> None:
        with patch("school_cms.domains.audit.service.audit_event"):
            entry = await AuditService(mock_db).record("location_tag_created", "location_tags")

        assert entry.user_id is None
        assert entry.tenant_id is None
        assert entry.record_id is None
        assert entry.details == {}


class TestListLogs:
    @pytest.mark.asyncio
    async def test_rows_carry_user(self, mock_db: AsyncMock, sample_tenant_id: str) -> None:
        queue_results(
            mock_db,
            2,
            [
                (make_log(), "Ana Silva", "ana@school.example"),
                (make_log("user_login", user_id=None, table_name="cms_users"), None, None),
            ],
        )

        logs, total = await AuditService(mock_db).list_logs(sample_tenant_id)

        assert total == 2
        assert logs[0].operation == "content_updated"
        assert logs[0].user_name == "Ana Silva"
        assert logs[0].user_email == "ana@school.example"
        assert logs[0].details == {"title": "Open day"}
        assert logs[1].user_name is None
        assert logs[1].table_name == "cms_users"

    @pytest.mark.asyncio
    async def test_filters(self, mock_db: AsyncMock, sample_tenant_id: str) -> None:
        queue_results(mock_db, 0, [])

        await AuditService(mock_db).list_logs(
            sample_tenant_id,
            operation="content_deleted",
            table_name="contents",
            user_id=USER_ID,
        )

        params = mock_db.execute.call_args_list[1].args[0].compile().params.values()
        for value in (sample_tenant_id, "content_deleted", "contents", USER_ID):
            assert value in params

    @pytest.mark.asyncio
    async def test_pagination(self, mock_db: AsyncMock, sample_tenant_id: str) -> None:
        queue_results(mock_db, 120, [])

        await AuditService(mock_db).list_logs(sample_tenant_id, page=3, limit=50)

        params = mock_db.execute.call_args_list[1].args[0].compile().params.values()
        assert 50 in params
        assert 100 in params

    @pytest.mark.asyncio
    async def test_missing_count(self, mock_db: AsyncMock, sample_tenant_id: str) -> None:
        queue_results(mock_db, None, [])

        logs, total = await AuditService(mock_db).list_logs(sample_tenant_id)

        assert logs == []
        assert total == 0
