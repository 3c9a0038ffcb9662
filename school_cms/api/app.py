# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI Application Factory.

This module provides the main application factory for the School CMS API.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
from slowapi.middleware import SlowAPIMiddleware

from school_cms import __version__
from school_cms.api.errors import register_exception_handlers
from school_cms.api.middleware.auth import AuthMiddleware
from school_cms.api.middleware.country import CountryMiddleware
from school_cms.api.middleware.rate_limit import limiter
from school_cms.api.middleware.request_context import RequestContextMiddleware
from school_cms.api.routes import health, metrics
from school_cms.api.v1 import router as v1_router
from school_cms.core.config import get_settings
from school_cms.infrastructure.database.connection import (
    check_database_connection,
    close_database,
    get_session,
    init_database,
)
from school_cms.infrastructure.database.migrations.runner import run_migrations
from school_cms.infrastructure.database.seeds import seed_initial_data
from school_cms.infrastructure.scheduler import start_scheduler, stop_scheduler
from school_cms.infrastructure.secrets import apply_secrets
from school_cms.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events for the application.
    Initializes and cleans up:
    - Secrets Manager credentials
    - Database connections and schema
    - Bootstrap data
    - APScheduler for session cleanup

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings = get_settings()
    setup_logging(settings)
    logger.info(
        "Starting School CMS API",
        extra={"environment": settings.environment, "debug": settings.debug},
    )

    # =========================================================================
    # Startup
    # =========================================================================

    # Credentials must be in place before the engine is created
    if settings.use_secrets_manager:
        try:
            await apply_secrets(settings)
        except Exception as e:
            logger.error("Failed to load secrets: %s", str(e))
            raise

    try:
        await init_database(settings)
        if await check_database_connection():
            logger.info("Database connection initialized")
        else:
            logger.warning("Database initialized but not reachable")
    except Exception as e:
        logger.warning("Failed to initialize database connection: %s", str(e))

    try:
        applied = await run_migrations(settings.database.url)
        if applied:
            logger.info("Applied %d migrations", len(applied))
    except Exception as e:
        logger.warning("Failed to run migrations: %s", str(e))

    if settings.seed.enabled:
        try:
            async with get_session() as session:
                seeded = await seed_initial_data(session, settings)
            logger.info("Initial data checked: %s", seeded)
        except Exception as e:
            logger.warning("Failed to seed initial data: %s", str(e))

    if settings.scheduler.enabled:
        try:
            await start_scheduler(settings)
            logger.info("Scheduler started")
        except Exception as e:
            logger.warning("Failed to start scheduler: %s", str(e))

    yield

    # =========================================================================
    # Shutdown
    # =========================================================================

    try:
        await stop_scheduler()
        logger.info("Scheduler stopped")
    except Exception as e:
        logger.warning("Error stopping scheduler: %s", str(e))

    try:
        await close_database()
        logger.info("Database connection closed")
    except Exception as e:
        logger.warning("Error closing database connection: %s", str(e))

    logger.info("Shutting down School CMS API")


def endpoint_index(app: FastAPI) -> dict[str, list[str]]:
    """Group API routes by their first tag as ``"METHOD /path"`` strings."""
    index: dict[str, list[str]] = {}
    for route in app.routes:
        if not isinstance(route, APIRoute) or not route.include_in_schema:
            continue
        group = str(route.tags[0]) if route.tags else "General"
        for method in sorted(route.methods):
            index.setdefault(group, []).append(f"{method} {route.path}")
    return index


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    This factory function creates a new FastAPI instance with all
    middleware, routes, and configurations applied.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Multi-tenant content management API for international schools",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        # Disable automatic redirects from /path to /path/
        # This prevents 307 redirects that lose Authorization headers
        redirect_slashes=False,
    )

    # =========================================================================
    # State
    # =========================================================================
    app.state.limiter = limiter

    # =========================================================================
    # Exception handlers
    # =========================================================================
    register_exception_handlers(app)

    # =========================================================================
    # Middleware (order matters - last added is first executed)
    # =========================================================================

    # Global limit for routes without a group limit
    app.add_middleware(SlowAPIMiddleware)

    # Auth middleware - validates JWT tokens
    app.add_middleware(AuthMiddleware)

    # Country middleware - resolves visitor country and target school
    app.add_middleware(CountryMiddleware, get_db=get_session)

    # Request context - correlation ID, request logging and metrics
    app.add_middleware(RequestContextMiddleware)

    # CORS middleware (should be last to execute first)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins_list,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
    )

    # =========================================================================
    # Routes
    # =========================================================================
    app.include_router(health.router, tags=["Health"])
    app.include_router(metrics.router, tags=["Metrics"])
    app.include_router(v1_router)

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> dict[str, Any]:
        return {
            "name": settings.app_name,
            "version": __version__,
            "environment": settings.environment,
            "documentation": "/api/v1/docs",
            "health": "/health",
        }

    @app.get("/api/v1/docs", include_in_schema=False)
    async def api_docs(request: Request) -> dict[str, Any]:
        return {
            "name": settings.app_name,
            "version": __version__,
            "endpoints": endpoint_index(app),
        }

    return app
