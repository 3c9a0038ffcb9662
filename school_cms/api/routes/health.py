# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Health check endpoints.

This module provides health, readiness, liveness and info endpoints for
the API. ``/ready`` answers 503 until the database and its critical
tables are reachable; Redis is reported but not required.
"""

import logging
import platform
import sys
import time
from datetime import datetime, timezone
from typing import Any

import redis.asyncio as aioredis
from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from school_cms import __version__
from school_cms.core.config import get_settings
from school_cms.infrastructure.database.connection import DatabaseError, get_engine

logger = logging.getLogger(__name__)

router = APIRouter()

# Track server start time for uptime calculation
_server_start_time = time.time()

CRITICAL_TABLES = ("schools", "cms_users", "contents")


class ComponentHealth(BaseModel):
    """Individual component health status."""
    status: str = Field(description="Component status")
    latency_ms: float | None = Field(None, description="Response latency in ms")
    message: str | None = Field(None, description="Additional status message")


class ComponentsHealth(BaseModel):
    """All components health status."""
    database: ComponentHealth | None = None
    redis: ComponentHealth | None = None


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(description="Overall health status")
    timestamp: datetime = Field(description="Current server timestamp")
    version: str = Field(description="API version")
    environment: str = Field(description="Deployment environment")
    uptime_seconds: int = Field(description="Server uptime in seconds")
    components: ComponentsHealth = Field(default_factory=ComponentsHealth)


class ReadinessResponse(BaseModel):
    """Readiness check response model."""
    ready: bool = Field(description="Whether the service is ready")
    checks: dict[str, Any] = Field(description="Individual check results")


class LivenessResponse(BaseModel):
    status: str = "alive"
    uptime: int = Field(description="Server uptime in seconds")


def uptime_seconds() -> int:
    return int(time.time() - _server_start_time)


async def check_database() -> ComponentHealth:
    """Check PostgreSQL database connection."""
    try:
        engine = get_engine()
        start = time.time()

        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

        latency = (time.time() - start) * 1000
        return ComponentHealth(status="healthy", latency_ms=round(latency, 2))
    except (DatabaseError, SQLAlchemyError, OSError) as e:
        logger.error("Database health check failed: %s", e)
        return ComponentHealth(status="unhealthy", message=str(e))


async def check_tables() -> ComponentHealth:
    """Check that the critical tables exist and can be read."""
    try:
        engine = get_engine()
        async with engine.connect() as conn:
            for table in CRITICAL_TABLES:
                await conn.execute(text(f"SELECT 1 FROM {table} LIMIT 1"))
        return ComponentHealth(status="healthy")
    except (DatabaseError, SQLAlchemyError, OSError) as e:
        logger.error("Table check failed: %s", e)
        return ComponentHealth(status="unhealthy", message=str(e))


async def check_redis() -> ComponentHealth:
    """Check Redis connection."""
    settings = get_settings()
    start = time.time()
    client = aioredis.from_url(settings.redis.url, socket_connect_timeout=2)
    try:
        await client.ping()
        latency = (time.time() - start) * 1000
        return ComponentHealth(status="healthy", latency_ms=round(latency, 2))
    except (RedisError, OSError) as e:
        logger.warning("Redis health check failed: %s", e)
        return ComponentHealth(status="unhealthy", message=str(e))
    finally:
        await client.aclose()


def check_configuration() -> ComponentHealth:
    """Check that the settings needed to serve requests are present."""
    settings = get_settings()
    missing = []
    if not settings.jwt.secret_key.get_secret_value():
        missing.append("jwt.secret_key")
    if not settings.database.host:
        missing.append("database.host")
    if not settings.storage.bucket:
        missing.append("storage.bucket")

    if missing:
        return ComponentHealth(status="unhealthy", message=f"Missing: {', '.join(missing)}")
    return ComponentHealth(status="healthy")


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check if the API is healthy with component details.

    Returns:
        HealthResponse with detailed status.
    """
    settings = get_settings()

    db_health = await check_database()
    redis_health = await check_redis()

    if db_health.status != "healthy":
        overall_status = "unhealthy"
    elif redis_health.status != "healthy":
        overall_status = "degraded"
    else:
        overall_status = "healthy"

    return HealthResponse(
        status=overall_status,
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        environment=settings.environment,
        uptime_seconds=uptime_seconds(),
        components=ComponentsHealth(database=db_health, redis=redis_health),
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"model": ReadinessResponse}},
)
async def readiness_check() -> JSONResponse:
    """Check if the API is ready to accept traffic.

    Returns:
        ReadinessResponse with individual check results, 503 when a
        critical check fails.
    """
    checks: dict[str, Any] = {}
    all_ready = True

    db_health = await check_database()
    checks["database"] = {"status": db_health.status, "latency_ms": db_health.latency_ms}
    if db_health.status != "healthy":
        all_ready = False

    if all_ready:
        tables = await check_tables()
        checks["tables"] = {"status": tables.status, "message": tables.message}
        if tables.status != "healthy":
            all_ready = False

    config = check_configuration()
    checks["configuration"] = {"status": config.status, "message": config.message}
    if config.status != "healthy":
        all_ready = False

    # Redis only backs rate limiting; not critical
    redis_health = await check_redis()
    checks["redis"] = {
        "status": redis_health.status,
        "latency_ms": redis_health.latency_ms,
        "critical": False,
    }

    body = ReadinessResponse(ready=all_ready, checks=checks)
    return JSONResponse(
        status_code=200 if all_ready else 503,
        content=body.model_dump(mode="json"),
    )


@router.get("/live", response_model=LivenessResponse)
async def liveness_check() -> LivenessResponse:
    return LivenessResponse(uptime=uptime_seconds())


@router.get("/info")
async def info() -> dict[str, Any]:
    """Application, runtime and environment information."""
    settings = get_settings()
    return {
        "app": {"name": settings.app_name, "version": __version__},
        "runtime": {
            "python": sys.version.split()[0],
            "implementation": platform.python_implementation(),
            "platform": platform.platform(),
            "uptime": uptime_seconds(),
        },
        "environment": {
            "name": settings.environment,
            "debug": settings.debug,
            "secretsManager": settings.use_secrets_manager,
            "scheduler": settings.scheduler.enabled,
        },
    }
