# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Media library API models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from school_cms.models.common import ORMModel, Pagination


class MediaFileResponse(ORMModel):
    id: str
    tenant_id: str
    uploaded_by: str | None = None
    uploaded_by_name: str | None = None
    filename: str
    original_filename: str
    file_path: str
    file_url: str
    mime_type: str
    file_size: int
    width: int | None = None
    height: int | None = None
    alt_text: str | None = None
    caption: str | None = None
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


class MediaListResponse(BaseModel):
    files: list[MediaFileResponse]
    pagination: Pagination


class UploadError(BaseModel):
    filename: str
    error: str


class UploadSummary(BaseModel):
    total: int
    successful: int
    failed: int


class UploadResponse(BaseModel):
    success: bool = True
    uploaded: list[MediaFileResponse]
    errors: list[UploadError]
    summary: UploadSummary


class PresignedUploadRequest(BaseModel):
    """fileName and contentType are checked by the router so a missing one
    maps to MISSING_REQUIRED_FIELDS."""

    model_config = ConfigDict(populate_by_name=True)

    file_name: str | None = Field(default=None, alias="fileName")
    content_type: str | None = Field(default=None, alias="contentType")


class PresignedUploadResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    upload_url: str = Field(alias="uploadUrl")
    s3_key: str = Field(alias="s3Key")
    expires_in: int = Field(alias="expiresIn")
