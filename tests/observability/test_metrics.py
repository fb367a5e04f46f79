"""Tests for ``drape.observability.metrics``."""

from __future__ import annotations

import threading

import pytest

from drape.observability.metrics import Counter, Histogram, MetricsRegistry, get_metrics_registry


class TestCounter:
    def test_inc(self):
        counter = Counter("queries_total")
        counter.inc()
        counter.inc(2)
        assert counter.labels().value == 3.0

    def test_labels(self):
        counter = Counter("queries_total", labels=["operation"])
        counter.labels(operation="execute").inc()
        counter.labels(operation="fetch_one").inc(5)
        assert counter.labels(operation="execute").value == 1.0
        assert counter.labels(operation="fetch_one").value == 5.0

    def test_unknown_label(self):
        counter = Counter("queries_total", labels=["operation"])
        with pytest.raises(ValueError, match="unknown labels"):
            counter.labels(table="users")

    def test_negative_increment(self):
        with pytest.raises(ValueError):
            Counter("queries_total").inc(-1)

    def test_thread_safety(self):
        counter = Counter("queries_total")

        def bump():
            for _ in range(1000):
                counter.inc()

        threads = [threading.Thread(target=bump) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert counter.labels().value == 8000.0


class TestHistogram:
    def test_observe(self):
        hist = Histogram("latency", buckets=(0.1, 1.0))
        hist.observe(0.05)
        hist.observe(0.5)
        hist.observe(5.0)

        data = hist.labels().data
        assert data["count"] == 3
        assert data["sum"] == pytest.approx(5.55)
        assert data["buckets"] == {0.1: 1, 1.0: 2, float("inf"): 3}

    def test_default_buckets_end_with_inf(self):
        assert Histogram("latency").labels().data["buckets"][float("inf")] == 0

    def test_empty_child(self):
        hist = Histogram("latency", labels=["operation"])
        assert hist.labels(operation="execute").data["count"] == 0


class TestMetricsRegistry:
    def test_get_or_create(self):
        registry = MetricsRegistry()
        assert registry.counter("a") is registry.counter("a")
        assert registry.histogram("b") is registry.histogram("b")

    def test_type_conflict(self):
        registry = MetricsRegistry()
        registry.counter("a")
        with pytest.raises(ValueError, match="already registered as counter"):
            registry.histogram("a")

    def test_collect(self):
        registry = MetricsRegistry()
        registry.counter("a", labels=["x"]).labels(x="1").inc()
        collected = registry.collect()
        assert collected == [{"name": "a", "type": "counter", "labels": {"x": "1"}, "value": 1.0}]

    def test_export_prometheus(self):
        registry = MetricsRegistry()
        registry.counter("queries_total", labels=["operation"]).labels(operation="execute").inc()
        registry.histogram("latency", buckets=(0.5,)).observe(0.2)

        text = registry.export_prometheus()

        assert 'queries_total{operation="execute"} 1.0' in text
        assert 'latency_bucket{le="0.5"} 1' in text
        assert 'latency_bucket{le="+Inf"} 1' in text
        assert "latency_sum 0.2" in text
        assert "latency_count 1" in text

    def test_global_registry(self):
        assert get_metrics_registry() is get_metrics_registry()
