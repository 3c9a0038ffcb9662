# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Public storefront domain."""

from school_cms.domains.public.service import (
    InvalidSearchQueryError,
    PublicContentFilters,
    PublicContentService,
    PublicServiceError,
)

__all__ = [
    "InvalidSearchQueryError",
    "PublicContentFilters",
    "PublicContentService",
    "PublicServiceError",
]
