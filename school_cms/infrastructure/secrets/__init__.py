# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Credential loading from AWS Secrets Manager."""

from school_cms.infrastructure.secrets.manager import (
    SecretsError,
    SecretsManagerClient,
    apply_secrets,
    resolve_database_settings,
    resolve_jwt_secret,
)

__all__ = [
    "SecretsError",
    "SecretsManagerClient",
    "apply_secrets",
    "resolve_database_settings",
    "resolve_jwt_secret",
]
