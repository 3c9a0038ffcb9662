# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database seed package: the fallback school and the bootstrap super admin."""

from school_cms.infrastructure.database.seeds.initial import seed_initial_data

__all__ = ["seed_initial_data"]
