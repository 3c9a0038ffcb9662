# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for School CMS.

Columns are TIMESTAMPTZ and every datetime the application builds is
timezone-aware UTC. Object keys use epoch milliseconds and error bodies
use ISO 8601 strings.

Usage:
------
    from school_cms.utils.datetime import utc_now

    created_at = mapped_column(DateTime(timezone=True), default=utc_now)
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Convert dt to aware UTC; naive values are taken to be UTC already."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def epoch_millis(dt: datetime | None = None) -> int:
    """Milliseconds since the Unix epoch for dt (default: now)."""
    moment = ensure_utc(dt) if dt is not None else utc_now()
    return int(moment.timestamp() * 1000)


def format_iso(dt: datetime | None) -> str | None:
    """ISO 8601 text for dt, or None.

    Example:
        >>> format_iso(datetime(2025, 3, 1, 12, 0))
        '2025-03-01T12:00:00+00:00'
    """
    if dt is None:
        return None
    return ensure_utc(dt).isoformat()
