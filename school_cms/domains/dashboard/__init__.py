# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Admin dashboard domain."""

from school_cms.domains.dashboard.service import PERIODS, DashboardService

__all__ = ["DashboardService", "PERIODS"]
