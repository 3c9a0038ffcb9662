# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure for PostgreSQL connections.

All schools share a single database and tenant-owned rows carry a
``tenant_id`` column.

Example:
    from school_cms.infrastructure.database import get_session

    async with get_session() as session:
        result = await session.execute(select(School))
"""

from school_cms.infrastructure.database.connection import (
    DatabaseError,
    check_database_connection,
    close_database,
    get_engine,
    get_pool_status,
    get_session,
    get_sessionmaker,
    init_database,
)

__all__ = [
    "DatabaseError",
    "check_database_connection",
    "close_database",
    "get_engine",
    "get_pool_status",
    "get_session",
    "get_sessionmaker",
    "init_database",
]
