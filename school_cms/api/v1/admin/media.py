# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Admin media endpoints.

Uploads arrive as multipart ``files`` (up to 10 per request) and go to
S3; browsers may also upload directly with a presigned URL.
"""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, File, Query, Request, UploadFile, status

from school_cms.api.dependencies import (
    AuthenticatedUser,
    DbSession,
    Storage,
    TenantId,
    WriterUser,
)
from school_cms.api.errors import APIError, bad_request, not_found
from school_cms.api.middleware.rate_limit import admin_rate_limit
from school_cms.core.config import get_settings
from school_cms.domains.media.service import (
    FileTypeNotAllowedError,
    MediaNotFoundError,
    MediaService,
    NoFilesError,
    TooManyFilesError,
)
from school_cms.infrastructure.storage.s3 import StorageError
from school_cms.models.common import Pagination, SuccessResponse
from school_cms.models.media import (
    MediaListResponse,
    PresignedUploadRequest,
    PresignedUploadResponse,
    UploadResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _service(db: DbSession, storage: Storage) -> MediaService:
    return MediaService(db, storage, get_settings().storage)


@router.get("", response_model=MediaListResponse)
@admin_rate_limit
async def list_media(
    request: Request,
    db: DbSession,
    storage: Storage,
    current_user: AuthenticatedUser,
    tenant_id: TenantId,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    type: str | None = None,
    search: str | None = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
) -> MediaListResponse:
    """Active media files; ``type`` filters by mime prefix such as ``image``."""
    files, total = await _service(db, storage).list_files(
        tenant_id, page, limit, type, search, sort_by, sort_order
    )
    return MediaListResponse(files=files, pagination=Pagination.build(page, limit, total))


@router.post("/upload", response_model=UploadResponse)
@admin_rate_limit
async def upload_media(
    request: Request,
    db: DbSession,
    storage: Storage,
    current_user: WriterUser,
    tenant_id: TenantId,
    files: Annotated[list[UploadFile] | None, File()] = None,
) -> UploadResponse:
    """Upload files; per-file failures are reported in ``errors``.

    Raises:
        APIError: 400 NO_FILES or 400 TOO_MANY_FILES.
    """
    service = _service(db, storage)
    try:
        incoming = await service.receive(files or [])
        return await service.upload_many(tenant_id, current_user.id, incoming)
    except NoFilesError:
        raise bad_request("No files provided", "NO_FILES")
    except TooManyFilesError as e:
        raise bad_request(str(e), "TOO_MANY_FILES")


@router.post("/presigned-upload", response_model=PresignedUploadResponse)
@admin_rate_limit
async def presigned_upload(
    request: Request,
    data: PresignedUploadRequest,
    db: DbSession,
    storage: Storage,
    current_user: WriterUser,
    tenant_id: TenantId,
) -> PresignedUploadResponse:
    """Presigned PUT URL valid for five minutes."""
    if not data.file_name or not data.content_type:
        raise bad_request("fileName and contentType are required", "MISSING_REQUIRED_FIELDS")

    try:
        return await _service(db, storage).presigned_upload(
            tenant_id, data.file_name, data.content_type
        )
    except FileTypeNotAllowedError as e:
        raise bad_request(str(e), "FILE_TYPE_NOT_ALLOWED")
    except StorageError as e:
        logger.error("Presigned URL generation failed: %s", e)
        raise APIError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to generate upload URL",
            "PRESIGNED_URL_ERROR",
        )


@router.delete("/{media_id}", response_model=SuccessResponse)
@admin_rate_limit
async def delete_media(
    request: Request,
    media_id: UUID,
    db: DbSession,
    storage: Storage,
    current_user: WriterUser,
    tenant_id: TenantId,
) -> SuccessResponse:
    try:
        await _service(db, storage).delete(tenant_id, str(media_id), current_user.id)
    except MediaNotFoundError:
        raise not_found("Media file not found", "MEDIA_NOT_FOUND")
    except StorageError as e:
        logger.error("Media delete failed: %s", e)
        raise APIError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to delete media file",
            "DELETE_MEDIA_ERROR",
        )
    return SuccessResponse(message="Media file deleted successfully")
