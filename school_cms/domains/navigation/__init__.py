# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Navigation menu domain."""

from school_cms.domains.navigation.service import (
    InvalidMenuItemError,
    MenuItemNotFoundError,
    MenuNotFoundError,
    NavigationService,
    NavigationServiceError,
    build_tree,
)

__all__ = [
    "InvalidMenuItemError",
    "MenuItemNotFoundError",
    "MenuNotFoundError",
    "NavigationService",
    "NavigationServiceError",
    "build_tree",
]
