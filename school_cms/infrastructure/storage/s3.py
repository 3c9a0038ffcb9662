# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""S3 media storage.

Objects are laid out per tenant and month:

    {tenant_id}/{folder}/{YYYY}/{MM}/{basename}-{epoch_ms}-{uuid8}{ext}

boto3 is blocking, so every network call runs in a worker thread via
asyncio.to_thread.

Example:
    storage = get_storage(settings.storage)
    key = build_object_key(tenant_id, "media", "Foto Escola.JPG")
    url = await storage.upload(key, data, "image/jpeg", "Foto Escola.JPG")
"""

import asyncio
import logging
import os
import re
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from school_cms.utils.datetime import epoch_millis, utc_now

if TYPE_CHECKING:
    from school_cms.core.config.settings import StorageSettings

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-z0-9]+")


class StorageError(Exception):
    """Raised when an object storage operation fails.

    Attributes:
        message: Human-readable error description.
        key: Object key involved, when known.
    """

    def __init__(self, message: str, key: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.key = key


def _safe_basename(filename: str) -> str:
    base, _ = os.path.splitext(os.path.basename(filename))
    cleaned = _UNSAFE_CHARS.sub("-", base.lower()).strip("-")
    return cleaned or "file"


def build_object_key(
    tenant_id: str,
    folder: str,
    filename: str,
    now: Optional[datetime] = None,
) -> str:
    """Build a unique object key for an uploaded file.

    Args:
        tenant_id: Owning school.
        folder: Logical folder (e.g. ``media``).
        filename: Original client filename; only its extension is kept as-is.
        now: Timestamp used for the date prefix and suffix (default: now).

    Returns:
        Object key, unique per call.
    """
    now = now or utc_now()
    _, ext = os.path.splitext(filename)
    suffix = f"{epoch_millis(now)}-{uuid.uuid4().hex[:8]}"
    return (
        f"{tenant_id}/{folder}/{now:%Y}/{now:%m}/"
        f"{_safe_basename(filename)}-{suffix}{ext.lower()}"
    )


class S3Storage:
    """Thin async wrapper around a boto3 S3 client.

    Attributes:
        bucket: Target bucket.
        region: Bucket region, used to build public URLs.
        cloudfront_domain: CDN domain that takes precedence for public URLs.
    """

    def __init__(self, settings: "StorageSettings", client: Any = None) -> None:
        self.bucket = settings.bucket
        self.region = settings.region
        self.cloudfront_domain = settings.cloudfront_domain
        self._endpoint_url = settings.endpoint_url
        self._client = client

    @property
    def client(self) -> Any:
        """Lazily created boto3 client."""
        if self._client is None:
            self._client = boto3.client(
                "s3",
                region_name=self.region,
                endpoint_url=self._endpoint_url,
            )
        return self._client

    def public_url(self, key: str) -> str:
        """URL under which an uploaded object is served."""
        if self.cloudfront_domain:
            return f"https://{self.cloudfront_domain}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    async def upload(
        self,
        key: str,
        data: bytes,
        content_type: str,
        original_name: str,
    ) -> str:
        """Store an object and return its public URL.

        Raises:
            StorageError: If S3 rejects the upload.
        """
        metadata = {
            # S3 metadata must be ASCII
            "originalName": original_name.encode("ascii", "ignore").decode("ascii"),
            "uploadedAt": utc_now().isoformat(),
        }
        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                Metadata=metadata,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 upload failed for %s: %s", key, e)
            raise StorageError(f"Upload failed: {e}", key=key) from e

        logger.info("Uploaded %s (%d bytes)", key, len(data))
        return self.public_url(key)

    async def delete(self, key: str) -> None:
        """Delete an object.

        Raises:
            StorageError: If S3 rejects the deletion.
        """
        try:
            await asyncio.to_thread(self.client.delete_object, Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 delete failed for %s: %s", key, e)
            raise StorageError(f"Delete failed: {e}", key=key) from e

        logger.info("Deleted %s", key)

    async def presigned_upload_url(self, key: str, content_type: str, expires_in: int) -> str:
        """Presigned PUT URL that lets a browser upload directly."""
        try:
            return await asyncio.to_thread(
                self.client.generate_presigned_url,
                "put_object",
                Params={"Bucket": self.bucket, "Key": key, "ContentType": content_type},
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Could not presign upload: {e}", key=key) from e

    async def presigned_download_url(self, key: str, expires_in: int) -> str:
        """Presigned GET URL for a private object."""
        try:
            return await asyncio.to_thread(
                self.client.generate_presigned_url,
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Could not presign download: {e}", key=key) from e


_storage: Optional[S3Storage] = None


def get_storage(settings: "StorageSettings") -> S3Storage:
    """Get the process-wide S3Storage instance."""
    global _storage
    if _storage is None:
        _storage = S3Storage(settings)
    return _storage


def reset_storage() -> None:
    """Drop the cached instance (tests, settings reload)."""
    global _storage
    _storage = None
