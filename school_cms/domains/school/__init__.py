# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School (tenant) domain."""

from school_cms.domains.school.service import (
    DEFAULT_COUNTRY,
    SchoolNotFoundError,
    SchoolService,
    SchoolServiceError,
)

__all__ = [
    "DEFAULT_COUNTRY",
    "SchoolNotFoundError",
    "SchoolService",
    "SchoolServiceError",
]
