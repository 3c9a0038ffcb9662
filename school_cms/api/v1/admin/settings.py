# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Admin site settings endpoints.

Any authenticated user can read the tenant's settings; only admins can
change them.
"""

import logging

from fastapi import APIRouter, Request

from school_cms.api.dependencies import AdminUser, AuthenticatedUser, DbSession, TenantId
from school_cms.api.errors import bad_request
from school_cms.api.middleware.rate_limit import admin_rate_limit
from school_cms.domains.site_setting.service import MissingValueError, SiteSettingService
from school_cms.models.setting import SettingEnvelope, SettingsResponse, SettingUpsertRequest

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=SettingsResponse)
@admin_rate_limit
async def list_settings(
    request: Request,
    db: DbSession,
    current_user: AuthenticatedUser,
    tenant_id: TenantId,
) -> SettingsResponse:
    """All settings keyed by name, values parsed according to their type."""
    settings = await SiteSettingService(db).list_settings(tenant_id)
    return SettingsResponse(settings=settings)


@router.put("/{key}", response_model=SettingEnvelope)
@admin_rate_limit
async def upsert_setting(
    request: Request,
    key: str,
    data: SettingUpsertRequest,
    db: DbSession,
    current_user: AdminUser,
    tenant_id: TenantId,
) -> SettingEnvelope:
    try:
        setting = await SiteSettingService(db).upsert(tenant_id, key, data, current_user.id)
    except MissingValueError:
        raise bad_request("Setting value is required", "MISSING_VALUE")
    return SettingEnvelope(setting=setting)
