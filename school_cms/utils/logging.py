# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Structured logging configuration using structlog.

Logs are formatted as JSON outside development and as colored console
output in development. Besides the context helpers this module exposes
the three event channels used across the CMS:

- audit_event: who changed what (also persisted by AuditService)
- security_event: access violations and suspicious requests
- performance_event: slow operations

Example:
    >>> import structlog
    >>> from school_cms.utils.logging import setup_logging
    >>> from school_cms.core.config import get_settings
    >>> setup_logging(get_settings())
    >>> logger = structlog.get_logger(__name__)
    >>> logger.info("User logged in", user_id="123", ip="192.168.1.1")
"""

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import Processor

if TYPE_CHECKING:
    from school_cms.core.config.settings import Settings

SLOW_OPERATION_MS = 1000

_event_logger = structlog.get_logger("school_cms.events")


def setup_logging(settings: "Settings") -> None:
    """Configure structured logging for the application.

    Sets up structlog with appropriate processors based on environment:
    - Development: Colored console output with pretty formatting
    - Otherwise: JSON output for log aggregation

    Args:
        settings: Application settings containing log_level and debug flag.
    """
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.is_development:
        processors: list[Processor] = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    # Set third-party loggers to WARNING to reduce noise
    for logger_name in [
        "uvicorn.access",
        "sqlalchemy",
        "sqlalchemy.engine",
        "asyncio",
        "botocore",
        "boto3",
        "urllib3",
        "apscheduler",
    ]:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    logging.getLogger("school_cms").setLevel(log_level)


def bind_context(**kwargs: object) -> None:
    """Bind context variables to all subsequent log calls in this context.

    Used by the request middleware for correlation_id, tenant_id and user_id.

    Example:
        >>> bind_context(correlation_id="cms-abc123", user_id="user-456")
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables.

    Should be called at the end of request processing to prevent
    context leakage between requests.
    """
    structlog.contextvars.clear_contextvars()


def audit_event(
    action: str,
    resource: str,
    user_id: str | None = None,
    tenant_id: str | None = None,
    **details: Any,
) -> None:
    """Emit an audit log event.

    Args:
        action: What happened, e.g. ``content_created``.
        resource: Affected table, e.g. ``contents``.
        user_id: Acting user.
        tenant_id: Tenant the change belongs to.
        **details: Extra structured fields.
    """
    _event_logger.info(
        "audit",
        context="audit",
        action=action,
        resource=resource,
        user_id=user_id,
        tenant_id=tenant_id,
        details=details,
    )


def security_event(
    event: str,
    user_id: str | None = None,
    ip: str | None = None,
    **details: Any,
) -> None:
    """Emit a security warning such as a tenant access violation."""
    _event_logger.warning(
        "security",
        context="security",
        security_event=event,
        user_id=user_id,
        ip=ip,
        details=details,
    )


def performance_event(operation: str, duration_ms: float, **metadata: Any) -> None:
    """Emit a timing event, escalated to WARNING for slow operations."""
    log = _event_logger.warning if duration_ms > SLOW_OPERATION_MS else _event_logger.info
    log(
        "performance",
        context="performance",
        operation=operation,
        duration_ms=round(duration_ms, 2),
        **metadata,
    )
