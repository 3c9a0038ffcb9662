# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the media library service."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import SQLAlchemyError

from school_cms.core.config.settings import StorageSettings
from school_cms.domains.media.service import (
    FileTooLargeError,
    FileTypeNotAllowedError,
    IncomingFile,
    MediaNotFoundError,
    MediaService,
    NoFilesError,
    TooManyFilesError,
)
from school_cms.infrastructure.storage.s3 import StorageError

TENANT_ID = "550e8400-e29b-41d4-a716-446655440000"


def create_mock_result(value=None):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


@pytest.fixture
def storage_settings() -> StorageSettings:
    return StorageSettings(max_file_size=1024, max_files=3)


@pytest.fixture
def storage() -> MagicMock:
    storage = MagicMock()
    storage.upload = AsyncMock(return_value="https://cdn.school.test/photo.png")
    storage.delete = AsyncMock()
    storage.presigned_upload_url = AsyncMock(return_value="https://signed.example/put")
    return storage


@pytest.fixture
def media_service(
    mock_db: AsyncMock,
    storage: MagicMock,
    storage_settings: StorageSettings,
) -> MediaService:
    counter = iter(range(1, 100))

    async def assign_defaults() -> None:
        # Emulate server defaults for the row added last
        media = mock_db.add.call_args.args[0]
        media.id = f"media-{next(counter)}"
        media.is_active = True

    mock_db.flush.side_effect = assign_defaults
    return MediaService(mock_db, storage, storage_settings)


def png(name: str = "photo.png", size: int = 10) -> IncomingFile:
    return IncomingFile(filename=name, content_type="image/png", data=b"x" * size)


class TestValidateFile:
    """Tests for type and size checks."""

    def test_allowed_file_passes(self, media_service: MediaService) -> None:
        media_service.validate_file(png())

    def test_disallowed_type(self, media_service: MediaService) -> None:
        file = IncomingFile("run.exe", "application/x-msdownload", b"MZ")

        with pytest.raises(FileTypeNotAllowedError, match="application/x-msdownload"):
            media_service.validate_file(file)

    def test_too_large(self, media_service: MediaService) -> None:
        with pytest.raises(FileTooLargeError, match="1024 bytes"):
            media_service.validate_file(png(size=1025))

    def test_size_at_limit_passes(self, media_service: MediaService) -> None:
        media_service.validate_file(png(size=1024))


class TestUpload:
    """Tests for single and multi-file uploads."""

    @pytest.mark.asyncio
    async def test_upload_one_stores_under_tenant_prefix(
        self,
        media_service: MediaService,
        storage: MagicMock,
        mock_db: AsyncMock,
    ) -> None:
        result = await media_service.upload_one(TENANT_ID, "user-1", png("Foto Escola.PNG"))

        key = storage.upload.call_args.args[0]
        assert key.startswith(f"{TENANT_ID}/uploads/")
        assert key.endswith(".png")
        assert result.id == "media-1"
        assert result.original_filename == "Foto Escola.PNG"
        assert result.file_url == "https://cdn.school.test/photo.png"
        assert result.file_size == 10
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_no_files(self, media_service: MediaService) -> None:
        with pytest.raises(NoFilesError):
            await media_service.upload_many(TENANT_ID, "user-1", [])

    @pytest.mark.asyncio
    async def test_too_many_files(
        self,
        media_service: MediaService,
        storage: MagicMock,
    ) -> None:
        with pytest.raises(TooManyFilesError, match="3"):
            await media_service.upload_many(TENANT_ID, "user-1", [png()] * 4)

        storage.upload.assert_not_called()

    @pytest.mark.asyncio
    async def test_failures_are_collected_per_file(
        self,
        media_service: MediaService,
        storage: MagicMock,
    ) -> None:
        storage.upload.side_effect = [
            "https://cdn.school.test/a.png",
            StorageError("Upload failed: denied"),
        ]
        files = [png("a.png"), png("b.png"), png("c.png", size=4096)]

        result = await media_service.upload_many(TENANT_ID, "user-1", files)

        assert result.summary.total == 3
        assert result.summary.successful == 1
        assert result.summary.failed == 2
        assert [e.filename for e in result.errors] == ["b.png", "c.png"]
        assert "denied" in result.errors[0].error
        # The oversized file never reached storage
        assert storage.upload.await_count == 2


class TestPresignedUpload:
    """Tests for direct browser uploads."""

    @pytest.mark.asyncio
    async def test_presigned_upload(
        self,
        media_service: MediaService,
        storage: MagicMock,
    ) -> None:
        result = await media_service.presigned_upload(TENANT_ID, "clip.mp4", "video/mp4")

        assert result.upload_url == "https://signed.example/put"
        assert result.s3_key.startswith(f"{TENANT_ID}/direct-uploads/")
        assert result.expires_in == 300
        storage.presigned_upload_url.assert_awaited_once_with(result.s3_key, "video/mp4", 300)

    @pytest.mark.asyncio
    async def test_presigned_upload_rejects_type(
        self,
        media_service: MediaService,
        storage: MagicMock,
    ) -> None:
        with pytest.raises(FileTypeNotAllowedError):
            await media_service.presigned_upload(TENANT_ID, "x.zip", "application/zip")

        storage.presigned_upload_url.assert_not_called()


class TestDelete:
    """Tests for MediaService.delete."""

    @pytest.mark.asyncio
    async def test_unknown_file(
        self,
        media_service: MediaService,
        mock_db: AsyncMock,
        storage: MagicMock,
    ) -> None:
        mock_db.execute.return_value = create_mock_result(None)

        with pytest.raises(MediaNotFoundError):
            await media_service.delete(TENANT_ID, "media-404", "user-1")

        storage.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_removes_object_and_soft_deletes(
        self,
        media_service: MediaService,
        mock_db: AsyncMock,
        storage: MagicMock,
    ) -> None:
        media = SimpleNamespace(
            id="media-1",
            file_path=f"{TENANT_ID}/uploads/2025/01/photo-1-abc.png",
            original_filename="photo.png",
            is_active=True,
        )
        mock_db.execute.return_value = create_mock_result(media)

        await media_service.delete(TENANT_ID, "media-1", "user-1")

        storage.delete.assert_awaited_once_with(media.file_path)
        assert media.is_active is False
        mock_db.delete.assert_not_called()
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_storage_failure_rolls_back_row(
        self,
        media_service: MediaService,
        mock_db: AsyncMock,
        storage: MagicMock,
    ) -> None:
        media = SimpleNamespace(
            id="media-1",
            file_path="k",
            original_filename="photo.png",
            is_active=True,
        )
        mock_db.execute.return_value = create_mock_result(media)
        storage.delete.side_effect = StorageError("Delete failed", key="k")

        with pytest.raises(StorageError):
            await media_service.delete(TENANT_ID, "media-1", "user-1")

        mock_db.rollback.assert_awaited_once()
        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_row_is_written_before_object_is_removed(
        self,
        media_service: MediaService,
        mock_db: AsyncMock,
        storage: MagicMock,
    ) -> None:
        media = SimpleNamespace(id="media-1", file_path="k", original_filename="a.png")
        mock_db.execute.return_value = create_mock_result(media)
        order: list[str] = []
        mock_db.flush.side_effect = lambda: order.append("flush")
        storage.delete.side_effect = lambda key: order.append("delete")

        await media_service.delete(TENANT_ID, "media-1", "user-1")

        assert order == ["flush", "delete"]
        mock_db.commit.assert_awaited_once()


class TestUploadCompensation:
    """Tests for objects stored before their row fails to write."""

    @pytest.mark.asyncio
    async def test_failed_row_write_removes_object(
        self,
        media_service: MediaService,
        mock_db: AsyncMock,
        storage: MagicMock,
    ) -> None:
        mock_db.flush.side_effect = SQLAlchemyError("insert failed")

        with pytest.raises(SQLAlchemyError):
            await media_service.upload_one(TENANT_ID, "user-1", png())

        key = storage.upload.call_args.args[0]
        storage.delete.assert_awaited_once_with(key)
        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_cleanup_failure_keeps_original_error(
        self,
        media_service: MediaService,
        mock_db: AsyncMock,
        storage: MagicMock,
    ) -> None:
        mock_db.commit.side_effect = SQLAlchemyError("commit failed")
        storage.delete.side_effect = StorageError("Delete failed", key="k")

        with pytest.raises(SQLAlchemyError, match="commit failed"):
            await media_service.upload_one(TENANT_ID, "user-1", png())


def upload(
    name: str | None = "photo.png",
    content_type: str | None = "image/png",
    size: int | None = 10,
    data: bytes = b"x" * 10,
) -> SimpleNamespace:
    return SimpleNamespace(
        filename=name,
        content_type=content_type,
        size=size,
        read=AsyncMock(return_value=data),
    )


class TestReceive:
    """Tests for reading multipart uploads within the limits."""

    @pytest.mark.asyncio
    async def test_count_is_checked_before_reading(self, media_service: MediaService) -> None:
        uploads = [upload() for _ in range(4)]

        with pytest.raises(TooManyFilesError):
            await media_service.receive(uploads)

        for item in uploads:
            item.read.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_uploads(self, media_service: MediaService) -> None:
        with pytest.raises(NoFilesError):
            await media_service.receive([])

    @pytest.mark.asyncio
    async def test_declared_oversize_is_not_read(self, media_service: MediaService) -> None:
        big = upload(size=5000)

        [received] = await media_service.receive([big])

        big.read.assert_not_called()
        assert received.data == b""
        assert received.size == 5000
        with pytest.raises(FileTooLargeError):
            media_service.validate_file(received)

    @pytest.mark.asyncio
    async def test_read_is_bounded(self, media_service: MediaService) -> None:
        unknown = upload(size=None, data=b"x" * 1025)

        [received] = await media_service.receive([unknown])

        unknown.read.assert_awaited_once_with(1025)
        with pytest.raises(FileTooLargeError):
            media_service.validate_file(received)

    @pytest.mark.asyncio
    async def test_defaults_for_missing_metadata(self, media_service: MediaService) -> None:
        [received] = await media_service.receive([upload(name=None, content_type=None)])

        assert received.filename == "upload"
        assert received.content_type == "application/octet-stream"
        assert received.size == 10
