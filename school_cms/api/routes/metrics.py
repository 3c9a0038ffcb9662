# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Prometheus metrics endpoint.

Exposes application metrics in Prometheus format for scraping. Request
counters are recorded by the request context middleware; the database
pool gauges are refreshed on every scrape.
"""

import logging

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, Gauge, generate_latest

from school_cms.infrastructure.database.connection import get_pool_status

logger = logging.getLogger(__name__)

router = APIRouter()

DB_POOL = Gauge(
    "cms_db_pool_connections",
    "Database connection pool state",
    ["state"],
)


def update_pool_gauges() -> None:
    for state, value in get_pool_status().items():
        DB_POOL.labels(state).set(value)


@router.get(
    "/metrics",
    summary="Prometheus metrics",
    description="Get application metrics in Prometheus format.",
    responses={
        200: {
            "description": "Prometheus metrics",
            "content": {"text/plain": {}},
        },
    },
)
async def get_metrics() -> Response:
    """Get Prometheus metrics.

    Returns metrics collected by the application including:
    - HTTP request counts and latency by method, route and status
    - HTTP error counts
    - Database pool connections by state

    Returns:
        Response with Prometheus format metrics.
    """
    update_pool_gauges()
    return Response(content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)
