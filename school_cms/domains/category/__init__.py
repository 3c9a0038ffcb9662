# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Content category domain."""

from school_cms.domains.category.service import (
    CategoryHasContentError,
    CategoryNotFoundError,
    CategoryService,
    CategoryServiceError,
    CategorySlugExistsError,
    InvalidParentError,
    MissingRequiredFieldsError,
)

__all__ = [
    "CategoryHasContentError",
    "CategoryNotFoundError",
    "CategoryService",
    "CategoryServiceError",
    "CategorySlugExistsError",
    "InvalidParentError",
    "MissingRequiredFieldsError",
]
