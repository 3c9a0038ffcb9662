# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

Settings are loaded from environment variables (or a ``.env`` file) with
sensible defaults for local development. In production the database
credentials and JWT secret can be overlaid from AWS Secrets Manager, see
``school_cms.infrastructure.secrets``.

Example:
    >>> from school_cms.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.jwt.issuer)
    'school-cms'
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_JWT_SECRET = "change-this-in-production"


class DatabaseSettings(BaseSettings):
    """PostgreSQL configuration.

    Attributes:
        user: PostgreSQL username.
        password: PostgreSQL password.
        host: Database host address.
        port: Database port number.
        name: Database name.
        pool_size: Connection pool size.
        max_overflow: Maximum overflow connections.
        slow_query_ms: Statements slower than this are logged as warnings.
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        extra="ignore",
    )

    user: str = "cms"
    password: SecretStr = SecretStr("cms_password")
    host: str = "localhost"
    port: int = 5432
    name: str = "school_cms"
    pool_size: int = 20
    max_overflow: int = 10
    pool_recycle: int = 1800
    slow_query_ms: int = 1000

    @property
    def url(self) -> str:
        """Build the async database URL from components."""
        pwd = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{pwd}@{self.host}:{self.port}/{self.name}"

    @property
    def sync_url(self) -> str:
        """Build the sync database URL for migrations."""
        pwd = self.password.get_secret_value()
        return f"postgresql://{self.user}:{pwd}@{self.host}:{self.port}/{self.name}"


class RedisSettings(BaseSettings):
    """Redis configuration used for rate limit storage.

    Attributes:
        host: Redis server host.
        port: Redis server port.
        password: Redis password (empty for none).
        database: Redis database number.
    """

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        extra="ignore",
    )

    host: str = "localhost"
    port: int = 6379
    password: SecretStr = SecretStr("")
    database: int = 0

    @property
    def url(self) -> str:
        """Build the Redis connection URL."""
        pwd = self.password.get_secret_value()
        if pwd:
            return f"redis://:{pwd}@{self.host}:{self.port}/{self.database}"
        return f"redis://{self.host}:{self.port}/{self.database}"


class JWTSettings(BaseSettings):
    """JWT authentication configuration.

    Attributes:
        secret_key: Secret key for signing tokens.
        algorithm: JWT signing algorithm.
        issuer: Value of the ``iss`` claim.
        audience: Value of the ``aud`` claim.
        access_token_expire_minutes: Access token lifetime (24 hours).
        refresh_token_expire_days: Refresh token and session lifetime.
        refresh_cookie_name: Name of the httpOnly refresh cookie.
    """

    model_config = SettingsConfigDict(
        env_prefix="JWT_",
        extra="ignore",
    )

    secret_key: SecretStr = SecretStr(DEFAULT_JWT_SECRET)
    algorithm: str = "HS256"
    issuer: str = "school-cms"
    audience: str = "cms-users"
    access_token_expire_minutes: int = Field(
        default=1440,
        validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )
    refresh_token_expire_days: int = Field(
        default=7,
        validation_alias="REFRESH_TOKEN_EXPIRE_DAYS",
    )
    refresh_cookie_name: str = "refreshToken"


class RateLimitSettings(BaseSettings):
    """Rate limiting configuration.

    Limits use the slowapi/limits string syntax (``"10/15minutes"``).
    """

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        extra="ignore",
    )

    enabled: bool = True
    auth: str = "10/15minutes"
    public: str = "1000/15minutes"
    admin: str = "500/15minutes"
    global_production: str = "1000/15minutes"
    global_default: str = "5000/15minutes"


class CORSSettings(BaseSettings):
    """CORS configuration for API.

    Attributes:
        origins: Comma-separated list of allowed origins.
        allow_credentials: Whether to allow credentials.
        allow_methods: Allowed HTTP methods.
        allow_headers: Allowed HTTP headers.
    """

    model_config = SettingsConfigDict(
        env_prefix="CORS_",
        extra="ignore",
    )

    origins: str = "http://localhost:3000,http://localhost:5173"
    allow_credentials: bool = True
    allow_methods: list[str] = ["*"]
    allow_headers: list[str] = ["*"]

    @property
    def origins_list(self) -> list[str]:
        """Parse origins string into a list."""
        return [origin.strip() for origin in self.origins.split(",") if origin.strip()]


class StorageSettings(BaseSettings):
    """S3 media storage configuration.

    Attributes:
        bucket: Bucket that receives uploads.
        region: AWS region of the bucket.
        cloudfront_domain: Optional CDN domain used for public URLs.
        endpoint_url: Optional S3-compatible endpoint (MinIO, LocalStack).
        allowed_file_types: Comma-separated list of accepted MIME types.
        max_file_size: Maximum size of a single upload in bytes.
        max_files: Maximum number of files in one multi-upload.
    """

    model_config = SettingsConfigDict(
        env_prefix="S3_",
        extra="ignore",
    )

    bucket: str = "school-cms-media"
    region: str = "us-east-1"
    cloudfront_domain: str | None = None
    endpoint_url: str | None = None
    allowed_file_types: str = (
        "image/jpeg,image/png,image/gif,image/webp,image/svg+xml,"
        "application/pdf,video/mp4"
    )
    max_file_size: int = 10485760
    max_files: int = 10
    presign_upload_expiry: int = 300
    presign_download_expiry: int = 3600

    @property
    def allowed_types_list(self) -> list[str]:
        """Parse the allowed MIME types string into a list."""
        return [t.strip() for t in self.allowed_file_types.split(",") if t.strip()]


class SecretsSettings(BaseSettings):
    """AWS Secrets Manager configuration.

    When enabled (default in production), the database credentials and the
    JWT secret are read from the named secrets at startup.
    """

    model_config = SettingsConfigDict(
        env_prefix="SECRETS_",
        extra="ignore",
    )

    enabled: bool | None = None
    region: str = "us-east-1"
    db_secret_name: str = "school-cms/database"
    jwt_secret_name: str = "school-cms/jwt"


class SchedulerSettings(BaseSettings):
    """Periodic maintenance job configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SCHEDULER_",
        extra="ignore",
    )

    enabled: bool = True
    session_cleanup_interval_minutes: int = 60


class SeedSettings(BaseSettings):
    """Initial data created on first startup.

    Attributes:
        admin_email: Email of the bootstrap super admin.
        admin_password: Password of the bootstrap super admin.
        default_country: Country of the fallback school.
    """

    model_config = SettingsConfigDict(
        env_prefix="SEED_",
        extra="ignore",
    )

    enabled: bool = True
    admin_email: str = "admin@school-cms.local"
    admin_password: SecretStr = SecretStr("admin123456")
    default_school_name: str = "Cruzeiro Academy Brasil"
    default_school_slug: str = "brasil"
    default_country: str = "BRA"


class APISettings(BaseSettings):
    """API server configuration.

    Attributes:
        host: Host to bind to.
        port: Port to listen on.
        workers: Number of worker processes.
        reload: Whether to enable auto-reload.
    """

    model_config = SettingsConfigDict(
        env_prefix="API_",
        extra="ignore",
    )

    host: str = "0.0.0.0"
    port: int = 3001
    workers: int = 2
    reload: bool = False


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        app_name: Name reported by the root and info endpoints.
        environment: Current environment.
        debug: Enable debug mode.
        log_level: Logging level.
        database: PostgreSQL settings.
        redis: Redis settings.
        jwt: JWT authentication settings.
        rate_limit: Rate limiting settings.
        cors: CORS settings.
        storage: S3 media storage settings.
        secrets: Secrets Manager settings.
        scheduler: Maintenance scheduler settings.
        seed: Bootstrap data settings.
        api: API server settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: str = "School CMS API"
    environment: Literal["development", "staging", "production", "test"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    # Subsettings - loaded with their own env prefixes
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    jwt: JWTSettings = Field(default_factory=JWTSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    secrets: SecretsSettings = Field(default_factory=SecretsSettings)
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)
    seed: SeedSettings = Field(default_factory=SeedSettings)
    api: APISettings = Field(default_factory=APISettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        The JWT secret may still be the default when it will be loaded from
        Secrets Manager.

        Raises:
            ValueError: If running in production with insecure defaults.
        """
        if self.environment == "production" and not self.use_secrets_manager:
            if self.jwt.secret_key.get_secret_value() == DEFAULT_JWT_SECRET:
                raise ValueError(
                    "JWT secret key must be changed from default in production. "
                    "Set JWT_SECRET_KEY environment variable."
                )
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def use_secrets_manager(self) -> bool:
        """Whether credentials should be read from Secrets Manager."""
        if self.secrets.enabled is not None:
            return self.secrets.enabled
        return self.environment == "production"

    @property
    def global_rate_limit(self) -> str:
        """Default per-client limit applied to every route."""
        if self.is_production:
            return self.rate_limit.global_production
        return self.rate_limit.global_default


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call clear_settings_cache() if you need to reload settings.

    Returns:
        Cached Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Useful for testing or dynamic configuration updates.
    """
    get_settings.cache_clear()
