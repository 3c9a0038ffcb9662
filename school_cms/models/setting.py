# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Site setting API models."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from school_cms.models.common import ORMModel

SettingType = Literal["text", "number", "boolean", "json"]


class SettingUpsertRequest(BaseModel):
    """Body of PUT /settings/{key}.

    ``value`` is left optional here so a missing value maps to
    MISSING_VALUE instead of a generic validation error.
    """

    model_config = ConfigDict(extra="ignore")

    value: Any = None
    type: SettingType = "text"
    description: str | None = None
    is_public: bool = False

    @property
    def has_value(self) -> bool:
        return "value" in self.model_fields_set and self.value is not None


class SettingEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    value: Any
    type: str
    description: str | None = None
    is_public: bool = Field(alias="isPublic")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")


class SettingResponse(ORMModel):
    id: str
    tenant_id: str
    setting_key: str
    setting_value: str | None = None
    setting_type: str
    description: str | None = None
    is_public: bool
    updated_by: str | None = None
    updated_at: datetime | None = None


class SettingsResponse(BaseModel):
    settings: dict[str, SettingEntry]


class SettingEnvelope(BaseModel):
    success: bool = True
    setting: SettingResponse
