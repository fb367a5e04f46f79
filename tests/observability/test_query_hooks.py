"""Tests for ``drape.observability.hooks`` - LoggingHook and MetricsHook."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
import structlog
from structlog.testing import capture_logs

from drape import NoRowsError, Operation, QueryDetails, QueryError, connect, new_context
from drape.observability import LoggingHook, MetricsHook, MetricsRegistry, outcome_status
from drape.scan import ScalarScanner


@pytest.fixture(autouse=True)
def _reset(clean_structlog):
    yield


def details(duration: float = 0.002, params=(1,)) -> QueryDetails:
    return QueryDetails(
        start_time=datetime(2026, 1, 1, tzinfo=UTC),
        operation=Operation.FETCH_ONE,
        query="SELECT * FROM users WHERE id = ?",
        params=tuple(params),
        duration=duration,
        request_id="req-1",
    )


class TestOutcomeStatus:
    def test_statuses(self):
        assert outcome_status(None) == "ok"
        assert outcome_status(NoRowsError()) == "no_rows"
        assert outcome_status(QueryError("x")) == "error"
        assert outcome_status(RuntimeError("x")) == "error"


class TestLoggingHook:
    def test_success_logged_at_debug(self):
        with capture_logs() as logs:
            LoggingHook(structlog.get_logger())(new_context(), details(), None)

        (entry,) = logs
        assert entry["event"] == "query_completed"
        assert entry["log_level"] == "debug"
        assert entry["operation"] == "fetch_one"
        assert entry["params"] == [1]
        assert entry["duration_ms"] == 2.0
        assert entry["request_id"] == "req-1"

    def test_no_rows_is_not_a_failure(self):
        with capture_logs() as logs:
            LoggingHook(structlog.get_logger())(new_context(), details(), NoRowsError())
        assert [e["event"] for e in logs] == ["query_no_rows"]
        assert logs[0]["log_level"] == "debug"

    def test_failure_logged_at_warning(self):
        error = QueryError("execute failed").with_context(driver="sqlite3")
        with capture_logs() as logs:
            LoggingHook(structlog.get_logger())(new_context(), details(), error)

        (entry,) = logs
        assert entry["event"] == "query_failed"
        assert entry["log_level"] == "warning"
        assert entry["error"]["error_type"] == "QueryError"
        assert entry["error"]["context"] == {"driver": "sqlite3"}

    def test_foreign_exception(self):
        with capture_logs() as logs:
            LoggingHook(structlog.get_logger())(new_context(), details(), RuntimeError("hook bug"))
        assert logs[0]["error"] == {"error_type": "RuntimeError", "message": "hook bug"}

    def test_slow_query(self):
        with capture_logs() as logs:
            LoggingHook(structlog.get_logger(), slow_query_ms=100)(new_context(), details(duration=0.25), None)
        assert [e["event"] for e in logs] == ["query_completed", "slow_query"]
        assert logs[1]["threshold_ms"] == 100
        assert logs[1]["log_level"] == "warning"

    def test_slow_query_disabled(self):
        with capture_logs() as logs:
            LoggingHook(structlog.get_logger(), slow_query_ms=None)(new_context(), details(duration=60), None)
        assert [e["event"] for e in logs] == ["query_completed"]

    def test_redacted_params(self):
        with capture_logs() as logs:
            LoggingHook(structlog.get_logger(), include_params=False)(
                new_context(), details(params=("secret", 2)), None
            )
        assert "params" not in logs[0]
        assert logs[0]["param_count"] == 2

    def test_context_values(self):
        with capture_logs() as logs:
            LoggingHook(structlog.get_logger())(new_context(tenant="acme"), details(), None)
        assert logs[0]["context"] == {"tenant": "acme"}

    def test_on_database(self, seeded_db):
        with capture_logs() as logs:
            seeded_db.register_hook(LoggingHook(structlog.get_logger()))
            seeded_db.fetch_one(new_context(), ScalarScanner(), "SELECT count(*) FROM users")
            with pytest.raises(QueryError):
                seeded_db.execute(new_context(), "DELETE FROM missing")

        events = [e["event"] for e in logs if e["event"].startswith("query_")]
        assert events == ["query_completed", "query_failed"]


class TestMetricsHook:
    def test_counts_by_operation_and_status(self):
        registry = MetricsRegistry()
        hook = MetricsHook(registry)

        hook(new_context(), details(), None)
        hook(new_context(), details(), NoRowsError())
        hook(new_context(), details(), NoRowsError())

        assert hook.queries.labels(operation="fetch_one", status="ok").value == 1.0
        assert hook.queries.labels(operation="fetch_one", status="no_rows").value == 2.0
        assert hook.duration.labels(operation="fetch_one").data["count"] == 3

    def test_on_database(self):
        registry = MetricsRegistry()
        hook = MetricsHook(registry)
        with connect("sqlite3", ":memory:", hooks=[hook]) as db:
            db.execute(None, "CREATE TABLE t (x INTEGER)")
            db.execute(None, "INSERT INTO t VALUES (1)")
            with pytest.raises(NoRowsError):
                db.fetch_one(None, ScalarScanner(), "SELECT x FROM t WHERE x = 2")

        assert hook.queries.labels(operation="execute", status="ok").value == 2.0
        assert hook.queries.labels(operation="fetch_one", status="no_rows").value == 1.0
        assert 'drape_queries_total{operation="execute",status="ok"} 2.0' in registry.export_prometheus()

    def test_shares_metrics_within_registry(self):
        registry = MetricsRegistry()
        assert MetricsHook(registry).queries is MetricsHook(registry).queries
