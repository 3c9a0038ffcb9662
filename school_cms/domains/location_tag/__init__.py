# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Location tag domain."""

from school_cms.domains.location_tag.service import (
    CodeExistsError,
    LocationTagHasContentError,
    LocationTagNotFoundError,
    LocationTagService,
    LocationTagServiceError,
    NameExistsError,
    NoUpdateFieldsError,
)

__all__ = [
    "CodeExistsError",
    "LocationTagHasContentError",
    "LocationTagNotFoundError",
    "LocationTagService",
    "LocationTagServiceError",
    "NameExistsError",
    "NoUpdateFieldsError",
]
