# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Per-tenant site settings.

Values are stored as text and parsed back according to ``setting_type``:

- ``number``: float, or int when integral
- ``boolean``: ``"true"`` is True, anything else False
- ``json``: ``json.loads``
- ``text``: as stored

A value that cannot be parsed is returned as the raw text.
"""

import json
import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from school_cms.domains.audit.service import AuditService
from school_cms.infrastructure.database.models import SiteSetting
from school_cms.models.setting import SettingEntry, SettingResponse, SettingUpsertRequest
from school_cms.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class SiteSettingServiceError(Exception):
    """Base exception for site setting errors."""

    pass


class MissingValueError(SiteSettingServiceError):
    """Raised when an upsert carries no value."""

    pass


def parse_value(raw: str | None, setting_type: str) -> Any:
    """Parse a stored setting back into its typed value."""
    if raw is None:
        return None
    try:
        if setting_type == "number":
            number = float(raw)
            return int(number) if number.is_integer() else number
        if setting_type == "boolean":
            return raw == "true"
        if setting_type == "json":
            return json.loads(raw)
    except ValueError:
        logger.warning("Unparseable %s setting value: %r", setting_type, raw)
        return raw
    return raw


def serialize_value(value: Any, setting_type: str) -> str:
    """Convert a typed value into its stored text form."""
    if setting_type == "json":
        return json.dumps(value)
    if setting_type == "boolean":
        if isinstance(value, str):
            return "true" if value.lower() == "true" else "false"
        return "true" if value else "false"
    return str(value)


class SiteSettingService:
    """Service for reading and writing site settings."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db
        self._audit = AuditService(db)

    async def list_settings(self, tenant_id: str) -> dict[str, SettingEntry]:
        """All settings of a tenant keyed by setting_key."""
        stmt = (
            select(SiteSetting)
            .where(SiteSetting.tenant_id == tenant_id)
            .order_by(SiteSetting.setting_key)
        )
        result = await self._db.execute(stmt)

        return {
            s.setting_key: SettingEntry(
                value=parse_value(s.setting_value, s.setting_type),
                type=s.setting_type,
                description=s.description,
                is_public=s.is_public,
                updated_at=s.updated_at,
            )
            for s in result.scalars().all()
        }

    async def upsert(
        self,
        tenant_id: str,
        key: str,
        request: SettingUpsertRequest,
        user_id: str,
    ) -> SettingResponse:
        """Create or replace the setting ``key`` of a tenant.

        Args:
            tenant_id: Effective tenant.
            key: Setting key.
            request: Value, type, description and visibility.
            user_id: Acting user.

        Returns:
            The stored setting.

        Raises:
            MissingValueError: If no value was sent.
        """
        if not request.has_value:
            raise MissingValueError("Setting value is required")

        stored = serialize_value(request.value, request.type)
        now = utc_now()
        values = {
            "setting_value": stored,
            "setting_type": request.type,
            "description": request.description,
            "is_public": request.is_public,
            "updated_by": user_id,
            "updated_at": now,
        }

        stmt = (
            insert(SiteSetting)
            .values(tenant_id=tenant_id, setting_key=key, **values)
            .on_conflict_do_update(index_elements=["tenant_id", "setting_key"], set_=values)
            .returning(SiteSetting)
        )
        result = await self._db.execute(stmt)
        setting = result.scalar_one()

        await self._audit.record(
            "setting_updated",
            "site_settings",
            user_id=user_id,
            tenant_id=tenant_id,
            record_id=setting.id,
            details={
                "key": key,
                "value": "[JSON]" if request.type == "json" else stored,
                "type": request.type,
            },
        )
        await self._db.commit()

        logger.info("Setting %s updated for tenant %s", key, tenant_id)
        return SettingResponse.model_validate(setting)

    async def public_settings(self, tenant_id: str) -> dict[str, Any]:
        """Parsed values of a tenant's public settings."""
        stmt = select(
            SiteSetting.setting_key,
            SiteSetting.setting_value,
            SiteSetting.setting_type,
        ).where(
            SiteSetting.tenant_id == tenant_id,
            SiteSetting.is_public.is_(True),
        )
        result = await self._db.execute(stmt)
        return {key: parse_value(raw, kind) for key, raw, kind in result.all()}
