"""Observability hooks for drape.

- ``hooks``: ``LoggingHook`` (structlog) and ``MetricsHook``
- ``metrics``: thread-safe Counter / Histogram / MetricsRegistry with
  Prometheus text export
"""

from drape.observability.hooks import LoggingHook, MetricsHook, outcome_status
from drape.observability.metrics import (
    Counter,
    Histogram,
    MetricsRegistry,
    get_metrics_registry,
)

__all__ = [
    "LoggingHook",
    "MetricsHook",
    "outcome_status",
    "Counter",
    "Histogram",
    "MetricsRegistry",
    "get_metrics_registry",
]
