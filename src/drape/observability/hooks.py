"""Built-in query hooks: structured logging and metrics.

Both are plain callables matching ``QueryHook`` and can be registered on any
``Database``::

    db.register_hook(LoggingHook(slow_query_ms=250))
    db.register_hook(MetricsHook(registry))

Neither raises: they only read the envelope and emit.
"""

from __future__ import annotations

from typing import Any

from drape.core.context import QueryContext
from drape.core.errors import DrapeError, is_no_rows
from drape.core.hooks import QueryDetails
from drape.core.logging import get_logger

from .metrics import MetricsRegistry, get_metrics_registry


def outcome_status(error: BaseException | None) -> str:
    """Short status label for an outcome: ``ok``, ``no_rows`` or ``error``."""
    if error is None:
        return "ok"
    if is_no_rows(error):
        return "no_rows"
    return "error"


class LoggingHook:
    """
    Logs every query through structlog.

    - success: ``query_completed`` at debug
    - ``NoRowsError``: ``query_no_rows`` at debug (a normal outcome)
    - any other failure: ``query_failed`` at warning, with the error type
    - slower than ``slow_query_ms``: an extra ``slow_query`` warning

    ``include_params=False`` logs only the parameter count.
    ``QueryContext.values`` are logged under ``context``.
    """

    def __init__(
        self,
        logger: Any = None,
        *,
        slow_query_ms: float | None = 500.0,
        include_params: bool = True,
    ):
        self._logger = logger or get_logger("drape.queries")
        self._slow_query_ms = slow_query_ms
        self._include_params = include_params

    def __call__(self, ctx: QueryContext, details: QueryDetails, error: BaseException | None) -> None:
        fields = details.to_dict(include_params=self._include_params)
        if ctx.values:
            fields["context"] = dict(ctx.values)

        status = outcome_status(error)
        if status == "ok":
            self._logger.debug("query_completed", **fields)
        elif status == "no_rows":
            self._logger.debug("query_no_rows", **fields)
        else:
            if isinstance(error, DrapeError):
                fields["error"] = error.to_dict()
            else:
                fields["error"] = {"error_type": type(error).__name__, "message": str(error)}
            self._logger.warning("query_failed", **fields)

        duration_ms = details.duration_ms
        if self._slow_query_ms is not None and duration_ms is not None and duration_ms >= self._slow_query_ms:
            self._logger.warning("slow_query", threshold_ms=self._slow_query_ms, **fields)


class MetricsHook:
    """Counts queries and records their latency.

    Metrics:
        ``drape_queries_total{operation, status}``
        ``drape_query_duration_seconds{operation}``
    """

    def __init__(self, registry: MetricsRegistry | None = None):
        reg = registry or get_metrics_registry()
        self.queries = reg.counter(
            "drape_queries_total",
            "Total query-shaped calls",
            ["operation", "status"],
        )
        self.duration = reg.histogram(
            "drape_query_duration_seconds",
            "Query duration in seconds",
            ["operation"],
        )

    def __call__(self, ctx: QueryContext, details: QueryDetails, error: BaseException | None) -> None:
        operation = details.operation.value
        self.queries.labels(operation=operation, status=outcome_status(error)).inc()
        if details.duration is not None:
            self.duration.labels(operation=operation).observe(details.duration)


__all__ = [
    "LoggingHook",
    "MetricsHook",
    "outcome_status",
]
