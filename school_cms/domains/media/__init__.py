# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Media library domain."""

from school_cms.domains.media.service import (
    FileTooLargeError,
    FileTypeNotAllowedError,
    IncomingFile,
    MediaNotFoundError,
    MediaService,
    MediaServiceError,
    NoFilesError,
    TooManyFilesError,
)

__all__ = [
    "FileTooLargeError",
    "FileTypeNotAllowedError",
    "IncomingFile",
    "MediaNotFoundError",
    "MediaService",
    "MediaServiceError",
    "NoFilesError",
    "TooManyFilesError",
]
