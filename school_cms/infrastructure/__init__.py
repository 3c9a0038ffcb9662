# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Infrastructure adapters: PostgreSQL, S3 storage, Secrets Manager and the
maintenance scheduler."""
