# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy ORM models.

Importing this package registers every table on ``Base.metadata``.
"""

from school_cms.infrastructure.database.models.audit import AuditLog
from school_cms.infrastructure.database.models.base import Base
from school_cms.infrastructure.database.models.content import (
    CONTENT_STATUSES,
    CONTENT_TYPES,
    Content,
    ContentCategory,
)
from school_cms.infrastructure.database.models.location_tag import (
    LocationTag,
    content_location_tags,
)
from school_cms.infrastructure.database.models.media import MediaFile
from school_cms.infrastructure.database.models.navigation import (
    NavigationMenu,
    NavigationMenuItem,
)
from school_cms.infrastructure.database.models.school import School
from school_cms.infrastructure.database.models.setting import SETTING_TYPES, SiteSetting
from school_cms.infrastructure.database.models.user import (
    USER_ROLES,
    CmsUser,
    UserSession,
    full_name_expr,
)

__all__ = [
    "Base",
    "School",
    "CmsUser",
    "UserSession",
    "USER_ROLES",
    "full_name_expr",
    "ContentCategory",
    "Content",
    "CONTENT_STATUSES",
    "CONTENT_TYPES",
    "LocationTag",
    "content_location_tags",
    "MediaFile",
    "NavigationMenu",
    "NavigationMenuItem",
    "SiteSetting",
    "SETTING_TYPES",
    "AuditLog",
]
