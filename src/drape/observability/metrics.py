"""Prometheus-style metrics for query instrumentation.

In-process, thread-safe counters and histograms that ``MetricsHook`` feeds
and that an application can expose however it likes (Prometheus text,
JSON, a custom exporter).

Metric types:
- Counter: Monotonically increasing value
- Histogram: Distribution of values

Example:
    >>> from drape.observability.metrics import MetricsRegistry
    >>>
    >>> registry = MetricsRegistry()
    >>> queries = registry.counter("queries_total", labels=["operation"])
    >>> queries.labels(operation="fetch_one").inc()
    >>> registry.histogram("query_duration_seconds").observe(0.012)
    >>> print(registry.export_prometheus())
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Labels:
    """Hashable, ordered label set."""

    items: tuple[tuple[str, str], ...] = ()

    @classmethod
    def from_dict(cls, d: dict[str, str] | None) -> Labels:
        if not d:
            return cls()
        return cls(tuple(sorted((k, str(v)) for k, v in d.items())))

    def to_dict(self) -> dict[str, str]:
        return dict(self.items)


class Metric(ABC):
    """Base class for metrics."""

    def __init__(self, name: str, description: str = "", labels: list[str] | None = None):
        self.name = name
        self.description = description
        self._label_names = tuple(labels or ())
        self._lock = threading.Lock()

    def _labels(self, kwargs: dict[str, str]) -> Labels:
        unknown = set(kwargs) - set(self._label_names)
        if unknown:
            raise ValueError(f"unknown labels for {self.name}: {', '.join(sorted(unknown))}")
        return Labels.from_dict(kwargs)

    @property
    @abstractmethod
    def kind(self) -> str: ...

    @abstractmethod
    def collect(self) -> list[dict[str, Any]]:
        """Collect metric values."""
        ...


class Counter(Metric):
    """A monotonically increasing counter.

    Use for:
    - Queries executed
    - Failures by kind
    """

    kind = "counter"

    def __init__(self, name: str, description: str = "", labels: list[str] | None = None):
        super().__init__(name, description, labels)
        self._values: dict[Labels, float] = {}

    def labels(self, **kwargs: str) -> CounterChild:
        """Get counter with specific labels."""
        return CounterChild(self, self._labels(kwargs))

    def inc(self, value: float = 1.0) -> None:
        """Increment counter (no labels)."""
        self.labels().inc(value)

    def _inc(self, labels: Labels, value: float) -> None:
        if value < 0:
            raise ValueError("counters can only increase")
        with self._lock:
            self._values[labels] = self._values.get(labels, 0.0) + value

    def _get(self, labels: Labels) -> float:
        with self._lock:
            return self._values.get(labels, 0.0)

    def collect(self) -> list[dict[str, Any]]:
        with self._lock:
            return [
                {"name": self.name, "type": self.kind, "labels": labels.to_dict(), "value": value}
                for labels, value in self._values.items()
            ]


class CounterChild:
    """Counter with fixed labels."""

    def __init__(self, counter: Counter, labels: Labels):
        self._counter = counter
        self._labels = labels

    def inc(self, value: float = 1.0) -> None:
        self._counter._inc(self._labels, value)

    @property
    def value(self) -> float:
        return self._counter._get(self._labels)


class Histogram(Metric):
    """A distribution of values (query latency)."""

    kind = "histogram"

    DEFAULT_BUCKETS = (
        0.001,
        0.005,
        0.01,
        0.025,
        0.05,
        0.1,
        0.25,
        0.5,
        1.0,
        2.5,
        5.0,
        10.0,
        float("inf"),
    )

    def __init__(
        self,
        name: str,
        description: str = "",
        labels: list[str] | None = None,
        buckets: tuple[float, ...] | None = None,
    ):
        super().__init__(name, description, labels)
        self._buckets = tuple(sorted(buckets or self.DEFAULT_BUCKETS))
        if self._buckets[-1] != float("inf"):
            self._buckets += (float("inf"),)
        self._data: dict[Labels, dict[str, Any]] = {}

    def labels(self, **kwargs: str) -> HistogramChild:
        """Get histogram with specific labels."""
        return HistogramChild(self, self._labels(kwargs))

    def observe(self, value: float) -> None:
        """Record an observation (no labels)."""
        self.labels().observe(value)

    def _empty(self) -> dict[str, Any]:
        return {"buckets": dict.fromkeys(self._buckets, 0), "sum": 0.0, "count": 0}

    def _observe(self, labels: Labels, value: float) -> None:
        with self._lock:
            data = self._data.setdefault(labels, self._empty())
            data["sum"] += value
            data["count"] += 1
            for bucket in self._buckets:
                if value <= bucket:
                    data["buckets"][bucket] += 1

    def _get(self, labels: Labels) -> dict[str, Any]:
        with self._lock:
            data = self._data.get(labels)
            if data is None:
                return self._empty()
            return {"buckets": dict(data["buckets"]), "sum": data["sum"], "count": data["count"]}

    def collect(self) -> list[dict[str, Any]]:
        with self._lock:
            return [
                {
                    "name": self.name,
                    "type": self.kind,
                    "labels": labels.to_dict(),
                    "buckets": dict(data["buckets"]),
                    "sum": data["sum"],
                    "count": data["count"],
                }
                for labels, data in self._data.items()
            ]


class HistogramChild:
    """Histogram with fixed labels."""

    def __init__(self, histogram: Histogram, labels: Labels):
        self._histogram = histogram
        self._labels = labels

    def observe(self, value: float) -> None:
        self._histogram._observe(self._labels, value)

    @property
    def data(self) -> dict[str, Any]:
        return self._histogram._get(self._labels)


class MetricsRegistry:
    """Registry of metrics for collection and export."""

    def __init__(self):
        self._metrics: dict[str, Metric] = {}
        self._lock = threading.Lock()

    def _get_or_create(self, name: str, kind: type[Metric], factory: Any) -> Any:
        with self._lock:
            metric = self._metrics.get(name)
            if metric is None:
                metric = self._metrics[name] = factory()
            elif not isinstance(metric, kind):
                raise ValueError(f"metric {name!r} already registered as {metric.kind}")
            return metric

    def counter(self, name: str, description: str = "", labels: list[str] | None = None) -> Counter:
        """Get or create a counter."""
        return self._get_or_create(name, Counter, lambda: Counter(name, description, labels))

    def histogram(
        self,
        name: str,
        description: str = "",
        labels: list[str] | None = None,
        buckets: tuple[float, ...] | None = None,
    ) -> Histogram:
        """Get or create a histogram."""
        return self._get_or_create(name, Histogram, lambda: Histogram(name, description, labels, buckets))

    def collect(self) -> list[dict[str, Any]]:
        """Collect all metrics."""
        with self._lock:
            metrics = list(self._metrics.values())
        results = []
        for metric in metrics:
            results.extend(metric.collect())
        return results

    def export_prometheus(self) -> str:
        """Export metrics in Prometheus text format."""
        lines = []

        for data in self.collect():
            name = data["name"]
            labels = data.get("labels", {})
            label_str = ",".join(f'{k}="{v}"' for k, v in labels.items())

            if data["type"] == "counter":
                lines.append(f"{name}{{{label_str}}} {data['value']}" if label_str else f"{name} {data['value']}")

            elif data["type"] == "histogram":
                for bucket, count in data["buckets"].items():
                    le = "+Inf" if bucket == float("inf") else repr(bucket)
                    bucket_labels = f'{label_str},le="{le}"' if label_str else f'le="{le}"'
                    lines.append(f"{name}_bucket{{{bucket_labels}}} {count}")
                suffix = f"{{{label_str}}}" if label_str else ""
                lines.append(f"{name}_sum{suffix} {data['sum']}")
                lines.append(f"{name}_count{suffix} {data['count']}")

        return "\n".join(lines)


# Global registry
_default_registry = MetricsRegistry()


def get_metrics_registry() -> MetricsRegistry:
    """Get the default metrics registry."""
    return _default_registry


__all__ = [
    "Labels",
    "Metric",
    "Counter",
    "CounterChild",
    "Histogram",
    "HistogramChild",
    "MetricsRegistry",
    "get_metrics_registry",
]
