# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""AWS Secrets Manager integration.

In production the database credentials and JWT secret are not read from
the environment but from two JSON secrets:

- database secret: ``host``, ``port``, ``dbname``, ``username``, ``password``
- JWT secret: ``jwt_secret``

apply_secrets() overlays them on the cached Settings at startup.
"""

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import SecretStr

if TYPE_CHECKING:
    from school_cms.core.config.settings import DatabaseSettings, Settings

logger = logging.getLogger(__name__)


class SecretsError(Exception):
    """Raised when a secret cannot be fetched or decoded.

    Attributes:
        secret_name: Name of the secret that failed.
    """

    def __init__(self, message: str, secret_name: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.secret_name = secret_name


class SecretsManagerClient:
    """Reads JSON secrets with a boto3 ``secretsmanager`` client."""

    def __init__(self, region: str, client: Any = None) -> None:
        self._region = region
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = boto3.client("secretsmanager", region_name=self._region)
        return self._client

    def get_json(self, secret_name: str) -> dict[str, Any]:
        """Fetch a secret and decode its SecretString as JSON.

        Raises:
            SecretsError: If the secret is missing, unreadable or not JSON.
        """
        try:
            response = self.client.get_secret_value(SecretId=secret_name)
        except (BotoCoreError, ClientError) as e:
            raise SecretsError(f"Failed to read secret {secret_name}: {e}", secret_name) from e

        raw = response.get("SecretString")
        if raw is None:
            raise SecretsError(f"Secret {secret_name} has no SecretString", secret_name)

        try:
            value = json.loads(raw)
        except json.JSONDecodeError as e:
            raise SecretsError(f"Secret {secret_name} is not valid JSON", secret_name) from e

        if not isinstance(value, dict):
            raise SecretsError(f"Secret {secret_name} must be a JSON object", secret_name)
        return value


def resolve_database_settings(
    current: "DatabaseSettings",
    client: SecretsManagerClient,
    secret_name: str,
) -> "DatabaseSettings":
    """Return a copy of current with credentials taken from the secret."""
    secret = client.get_json(secret_name)
    update: dict[str, Any] = {}
    if "host" in secret:
        update["host"] = secret["host"]
    if "port" in secret:
        update["port"] = int(secret["port"])
    if "dbname" in secret:
        update["name"] = secret["dbname"]
    if "username" in secret:
        update["user"] = secret["username"]
    if "password" in secret:
        update["password"] = SecretStr(secret["password"])
    return current.model_copy(update=update)


def resolve_jwt_secret(client: SecretsManagerClient, secret_name: str) -> SecretStr:
    """Read the ``jwt_secret`` key of the JWT secret.

    Raises:
        SecretsError: If the key is missing or empty.
    """
    secret = client.get_json(secret_name)
    value = secret.get("jwt_secret")
    if not value:
        raise SecretsError(f"Secret {secret_name} has no jwt_secret", secret_name)
    return SecretStr(value)


async def apply_secrets(settings: "Settings", client: SecretsManagerClient | None = None) -> bool:
    """Overlay Secrets Manager values on settings in place.

    Args:
        settings: The application settings (normally the cached instance).
        client: Optional pre-built client.

    Returns:
        True if secrets were applied, False if Secrets Manager is disabled.

    Raises:
        SecretsError: If a secret cannot be read.
    """
    if not settings.use_secrets_manager:
        return False

    client = client or SecretsManagerClient(settings.secrets.region)

    settings.database = await asyncio.to_thread(
        resolve_database_settings,
        settings.database,
        client,
        settings.secrets.db_secret_name,
    )
    jwt_secret = await asyncio.to_thread(
        resolve_jwt_secret, client, settings.secrets.jwt_secret_name
    )
    settings.jwt = settings.jwt.model_copy(update={"secret_key": jwt_secret})

    logger.info(
        "Loaded credentials from Secrets Manager (%s, %s)",
        settings.secrets.db_secret_name,
        settings.secrets.jwt_secret_name,
    )
    return True
