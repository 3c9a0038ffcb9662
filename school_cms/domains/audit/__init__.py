# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Audit trail domain."""

from school_cms.domains.audit.service import AuditService

__all__ = ["AuditService"]
