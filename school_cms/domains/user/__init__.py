# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""CMS user management domain."""

from school_cms.domains.user.service import (
    RoleNotAllowedError,
    SelfDeactivationError,
    UserExistsError,
    UserNotFoundError,
    UserService,
    UserServiceError,
)

__all__ = [
    "RoleNotAllowedError",
    "SelfDeactivationError",
    "UserExistsError",
    "UserNotFoundError",
    "UserService",
    "UserServiceError",
]
