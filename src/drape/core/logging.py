"""
drape logging - structured logging for the facade and its hooks.

Manifesto:
    Query instrumentation is only useful if its output can be searched.
    This module configures structlog once per process so that the facade's
    own events (``database_connected``, ``transaction_started``) and the
    built-in ``LoggingHook`` emit the same structured shape:

    - **Structured:** key/value events, JSON in production
    - **Correlated:** ``bind_context(request_id=...)`` flows into every line
    - **Flexible:** colored console output for development

Architecture:
    ::

        configure_logging(level="INFO", json_format=True, service="orders")
            │
            ▼
        structlog processor chain:
          1. TimeStamper (ISO)
          2. merge_contextvars
          3. add_log_level / add_logger_name
          4. add_service_metadata
          5. JSONRenderer (or ConsoleRenderer for a tty)

        logger = get_logger(__name__)
        logger.info("query_completed", operation="fetch_one", duration_ms=1.2)

Examples:
    >>> from drape.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", json_format=False, service="orders")
    >>> logger = get_logger(__name__)
    >>> logger.debug("query_completed", operation="execute")

Guardrails:
    - Service name stored globally (set once at startup)
    - Auto-detects JSON vs console based on TTY
    - ECS-compatible field names (``@timestamp``, ``log.level``) in JSON mode

Tags:
    logging, structlog, observability, json-logging, drape

Doc-Types:
    - API Reference
    - Observability Guide
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# Store service name for metadata
_SERVICE_NAME = "drape"


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add service-level metadata to all logs."""
    event_dict.setdefault("service.name", _SERVICE_NAME)
    return event_dict


def _elasticsearch_compatible(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Make field names Elasticsearch/ECS compatible."""
    if "timestamp" in event_dict:
        event_dict["@timestamp"] = event_dict.pop("timestamp")
    if "level" in event_dict:
        event_dict["log.level"] = event_dict.pop("level")
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "drape",
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console, None for auto (JSON if not tty)
        service: Service name to include in logs
        add_timestamp: Include ISO timestamp in logs
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    if json_format is None:
        json_format = not sys.stdout.isatty()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_metadata,
    ]

    if add_timestamp:
        shared_processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        shared_processors.append(_elasticsearch_compatible)
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: Processor = structlog.processors.JSONRenderer(default=str)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper()),
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structlog logger (usually ``get_logger(__name__)``)."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context to include in all subsequent logs on this task/thread.

    Example:
        bind_context(request_id=ctx.request_id)
        logger.info("handler_started")
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove specific keys from logging context."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Clear all bound context."""
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Context manager for scoped logging context.

    Example:
        with LogContext(request_id=ctx.request_id):
            db.execute(ctx, "DELETE FROM sessions WHERE expired = 1")
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs

    def __enter__(self) -> LogContext:
        bind_context(**self._context)
        return self

    def __exit__(self, *args) -> None:
        unbind_context(*self._context.keys())


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
]
