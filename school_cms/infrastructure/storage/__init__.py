# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Object storage for media files."""

from school_cms.infrastructure.storage.s3 import (
    S3Storage,
    StorageError,
    build_object_key,
    get_storage,
    reset_storage,
)

__all__ = [
    "S3Storage",
    "StorageError",
    "build_object_key",
    "get_storage",
    "reset_storage",
]
