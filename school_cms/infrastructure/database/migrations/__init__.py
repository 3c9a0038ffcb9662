# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database migrations package.

Revisions live in ``versions/`` and can be applied either with the alembic
CLI (``alembic upgrade head``) or programmatically at startup through
``runner.run_migrations``.
"""
