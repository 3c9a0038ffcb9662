# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Content domain."""

from school_cms.domains.content.service import (
    ContentNotFoundError,
    ContentService,
    ContentServiceError,
    InvalidSortFieldError,
    MissingDuplicateDataError,
    NoUpdateFieldsError,
    SlugExistsError,
    UnknownLocationTagError,
)

__all__ = [
    "ContentNotFoundError",
    "ContentService",
    "ContentServiceError",
    "InvalidSortFieldError",
    "MissingDuplicateDataError",
    "NoUpdateFieldsError",
    "SlugExistsError",
    "UnknownLocationTagError",
]
