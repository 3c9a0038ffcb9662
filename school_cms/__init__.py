"""School CMS Backend.

Multi-tenant content management for a network of schools: authentication,
content publishing, media storage, country-based tenant resolution and
audit logging.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
