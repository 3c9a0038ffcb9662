# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services.

Each subpackage owns the SQL for one area of the CMS and raises typed
exceptions that the API layer maps to HTTP errors.
"""
