# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Media library service.

Files are stored in S3 under tenant-prefixed keys and recorded in
``media_files``. Deleting soft-deletes the row and removes the object; the
row change is only committed once the object is gone.

Example:
    >>> service = MediaService(db, get_storage(settings.storage), settings.storage)
    >>> result = await service.upload_many(tenant_id, user_id, files)
    >>> result.summary.successful
    2
"""

import logging
import os
from typing import NamedTuple, Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from school_cms.core.config.settings import StorageSettings
from school_cms.domains.audit.service import AuditService
from school_cms.infrastructure.database.models import CmsUser, MediaFile, full_name_expr
from school_cms.infrastructure.storage.s3 import S3Storage, StorageError, build_object_key
from school_cms.models.common import page_offset
from school_cms.models.media import (
    MediaFileResponse,
    PresignedUploadResponse,
    UploadError,
    UploadResponse,
    UploadSummary,
)

logger = logging.getLogger(__name__)

UPLOAD_FOLDER = "uploads"
DIRECT_UPLOAD_FOLDER = "direct-uploads"

SORTABLE_FIELDS = ("created_at", "updated_at", "original_filename", "file_size", "mime_type")


class MediaServiceError(Exception):
    """Base exception for media service errors."""

    pass


class MediaNotFoundError(MediaServiceError):
    """Raised when an active media file is not found."""

    pass


class NoFilesError(MediaServiceError):
    """Raised when an upload contains no files."""

    pass


class TooManyFilesError(MediaServiceError):
    """Raised when an upload exceeds the per-request file limit."""

    pass


class FileTypeNotAllowedError(MediaServiceError):
    """Raised when a MIME type is not in the allow list."""

    pass


class FileTooLargeError(MediaServiceError):
    """Raised when a file exceeds the size limit."""

    pass


class IncomingFile(NamedTuple):
    """A file received from the client.

    ``declared_size`` is set instead of ``data`` for a body that was not
    read because the client declared it over the size limit.
    """

    filename: str
    content_type: str
    data: bytes
    declared_size: int | None = None

    @property
    def size(self) -> int:
        if self.declared_size is not None:
            return self.declared_size
        return len(self.data)


class MediaService:
    """Service for uploading and managing media files.

    Attributes:
        _db: Async database session.
        _storage: Object storage wrapper.
        _settings: Upload limits and allowed types.
    """

    def __init__(
        self,
        db: AsyncSession,
        storage: S3Storage,
        settings: StorageSettings,
    ) -> None:
        self._db = db
        self._storage = storage
        self._settings = settings
        self._audit = AuditService(db)

    async def list_files(
        self,
        tenant_id: str,
        page: int = 1,
        limit: int = 20,
        mime_type: str | None = None,
        search: str | None = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> tuple[list[MediaFileResponse], int]:
        """List active files of a tenant.

        Args:
            mime_type: MIME prefix filter, e.g. ``image`` or ``image/png``.
            search: Matches original filename or alt text.

        Returns:
            Tuple of (files with uploader name, total count).
        """
        stmt = select(MediaFile).where(
            MediaFile.tenant_id == tenant_id,
            MediaFile.is_active.is_(True),
        )
        if mime_type:
            stmt = stmt.where(MediaFile.mime_type.like(f"{mime_type}%"))
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                or_(MediaFile.original_filename.ilike(pattern), MediaFile.alt_text.ilike(pattern))
            )

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await self._db.execute(count_stmt)).scalar() or 0

        if sort_by not in SORTABLE_FIELDS:
            sort_by = "created_at"
        column = getattr(MediaFile, sort_by)
        order = column.asc() if sort_order.lower() == "asc" else column.desc()

        uploader = full_name_expr().label("uploaded_by_name")
        stmt = (
            stmt.add_columns(uploader)
            .outerjoin(CmsUser, CmsUser.id == MediaFile.uploaded_by)
            .order_by(order)
            .limit(limit)
            .offset(page_offset(page, limit))
        )
        result = await self._db.execute(stmt)

        files = [
            MediaFileResponse.model_validate({**media.to_dict(), "uploaded_by_name": name})
            for media, name in result.all()
        ]
        return files, total

    def check_batch(self, count: int) -> None:
        """Check the number of files in one upload request.

        Raises:
            NoFilesError: If count is zero.
            TooManyFilesError: If count is over max_files.
        """
        if not count:
            raise NoFilesError("No files provided")
        if count > self._settings.max_files:
            raise TooManyFilesError(f"At most {self._settings.max_files} files per upload")

    async def receive(self, uploads: Sequence[UploadFile]) -> list[IncomingFile]:
        """Read multipart uploads without buffering more than the limits allow.

        The file count is checked before anything is read. A body declared
        over max_file_size is skipped; others are read up to one byte past
        the limit so validate_file can still reject them.

        Raises:
            NoFilesError: If uploads is empty.
            TooManyFilesError: If more than max_files are sent.
        """
        self.check_batch(len(uploads))
        limit = self._settings.max_file_size

        received: list[IncomingFile] = []
        for upload in uploads:
            filename = upload.filename or "upload"
            content_type = upload.content_type or "application/octet-stream"
            if upload.size is not None and upload.size > limit:
                received.append(IncomingFile(filename, content_type, b"", upload.size))
                continue
            received.append(IncomingFile(filename, content_type, await upload.read(limit + 1)))
        return received

    def validate_file(self, file: IncomingFile) -> None:
        """Check type and size limits.

        Raises:
            FileTypeNotAllowedError: If the MIME type is not allowed.
            FileTooLargeError: If the file is larger than max_file_size.
        """
        if file.content_type not in self._settings.allowed_types_list:
            raise FileTypeNotAllowedError(f"File type {file.content_type} not allowed")
        if file.size > self._settings.max_file_size:
            raise FileTooLargeError(
                f"File exceeds maximum size of {self._settings.max_file_size} bytes"
            )

    async def upload_one(
        self,
        tenant_id: str,
        user_id: str,
        file: IncomingFile,
        folder: str = UPLOAD_FOLDER,
    ) -> MediaFileResponse:
        """Validate, store and record a single file.

        Raises:
            FileTypeNotAllowedError: If the type is not allowed.
            FileTooLargeError: If the file is too large.
            StorageError: If the object store rejects the upload.
            SQLAlchemyError: If the row cannot be written; the stored object
                is removed again.
        """
        self.validate_file(file)

        key = build_object_key(tenant_id, folder, file.filename)
        url = await self._storage.upload(key, file.data, file.content_type, file.filename)

        media = MediaFile(
            tenant_id=tenant_id,
            uploaded_by=user_id,
            filename=os.path.basename(key),
            original_filename=file.filename,
            file_path=key,
            file_url=url,
            mime_type=file.content_type,
            file_size=file.size,
        )
        try:
            self._db.add(media)
            await self._db.flush()

            await self._audit.record(
                "file_uploaded",
                "media_files",
                user_id=user_id,
                tenant_id=tenant_id,
                record_id=media.id,
                details={
                    "filename": file.filename,
                    "size": file.size,
                    "mimeType": file.content_type,
                    "s3Key": key,
                },
            )
            await self._db.commit()
        except SQLAlchemyError:
            await self._discard_object(key)
            raise

        return MediaFileResponse.model_validate(media)

    async def upload_many(
        self,
        tenant_id: str,
        user_id: str,
        files: list[IncomingFile],
        folder: str = UPLOAD_FOLDER,
    ) -> UploadResponse:
        """Upload several files, collecting per-file failures.

        Raises:
            NoFilesError: If files is empty.
            TooManyFilesError: If more than max_files are sent.
        """
        self.check_batch(len(files))

        uploaded: list[MediaFileResponse] = []
        errors: list[UploadError] = []

        for file in files:
            try:
                uploaded.append(await self.upload_one(tenant_id, user_id, file, folder))
            except (MediaServiceError, StorageError) as e:
                logger.warning("Upload of %s failed: %s", file.filename, e)
                errors.append(UploadError(filename=file.filename, error=str(e)))

        return UploadResponse(
            uploaded=uploaded,
            errors=errors,
            summary=UploadSummary(
                total=len(files),
                successful=len(uploaded),
                failed=len(errors),
            ),
        )

    async def presigned_upload(
        self,
        tenant_id: str,
        file_name: str,
        content_type: str,
    ) -> PresignedUploadResponse:
        """Issue a presigned PUT URL for a direct browser upload.

        Raises:
            FileTypeNotAllowedError: If content_type is not allowed.
            StorageError: If signing fails.
        """
        if content_type not in self._settings.allowed_types_list:
            raise FileTypeNotAllowedError(f"File type {content_type} not allowed")

        key = build_object_key(tenant_id, DIRECT_UPLOAD_FOLDER, file_name)
        expires_in = self._settings.presign_upload_expiry
        url = await self._storage.presigned_upload_url(key, content_type, expires_in)

        return PresignedUploadResponse(upload_url=url, s3_key=key, expires_in=expires_in)

    async def delete(self, tenant_id: str, media_id: str, user_id: str) -> None:
        """Soft-delete the row and delete the object.

        The row change is flushed first and rolled back if the object
        cannot be deleted.

        Raises:
            MediaNotFoundError: If no active file has this ID in the tenant.
            StorageError: If the object cannot be deleted.
        """
        stmt = select(MediaFile).where(
            MediaFile.id == media_id,
            MediaFile.tenant_id == tenant_id,
            MediaFile.is_active.is_(True),
        )
        result = await self._db.execute(stmt)
        media = result.scalar_one_or_none()
        if media is None:
            raise MediaNotFoundError("Media file not found")

        media.is_active = False
        await self._audit.record(
            "file_deleted",
            "media_files",
            user_id=user_id,
            tenant_id=tenant_id,
            record_id=media.id,
            details={"filename": media.original_filename, "s3Key": media.file_path},
        )
        await self._db.flush()

        try:
            await self._storage.delete(media.file_path)
        except StorageError:
            await self._db.rollback()
            raise
        await self._db.commit()

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    async def _discard_object(self, key: str) -> None:
        """Remove an object whose row could not be recorded."""
        try:
            await self._storage.delete(key)
        except StorageError as e:
            logger.error("Orphaned object %s left in storage: %s", key, e)
