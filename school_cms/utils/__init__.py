# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Utility functions and helpers for School CMS.

This package contains cross-cutting utilities:
- logging: Structured logging with structlog
- datetime: Timezone-aware datetime operations
"""

from school_cms.utils.datetime import ensure_utc, epoch_millis, format_iso, utc_now
from school_cms.utils.logging import (
    audit_event,
    bind_context,
    clear_context,
    performance_event,
    security_event,
    setup_logging,
)

__all__ = [
    # Logging
    "setup_logging",
    "bind_context",
    "clear_context",
    "audit_event",
    "security_event",
    "performance_event",
    # Datetime
    "utc_now",
    "ensure_utc",
    "epoch_millis",
    "format_iso",
]
