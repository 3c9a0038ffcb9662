# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Site settings domain."""

from school_cms.domains.site_setting.service import (
    MissingValueError,
    SiteSettingService,
    SiteSettingServiceError,
    parse_value,
    serialize_value,
)

__all__ = [
    "MissingValueError",
    "SiteSettingService",
    "SiteSettingServiceError",
    "parse_value",
    "serialize_value",
]
