"""Tests for ``drape.core.logging`` - structlog configuration helpers."""

from __future__ import annotations

import json
import logging

import pytest
import structlog

from drape.core.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)


@pytest.fixture(autouse=True)
def _reset(clean_structlog):
    yield


def records_for(caplog, name: str) -> list[logging.LogRecord]:
    return [r for r in caplog.records if r.name == name]


class TestConfigureLogging:
    def test_json_output(self, caplog):
        caplog.set_level(logging.INFO)
        configure_logging(level="INFO", json_format=True, service="orders")

        get_logger("drape.test").info("database_connected", driver="sqlite3")

        (record,) = records_for(caplog, "drape.test")
        event = json.loads(record.getMessage())
        assert event["event"] == "database_connected"
        assert event["driver"] == "sqlite3"
        assert event["service.name"] == "orders"
        assert event["log.level"] == "info"
        assert event["logger"] == "drape.test"
        assert "@timestamp" in event

    def test_level_filters(self, caplog):
        caplog.set_level(logging.DEBUG)
        configure_logging(level="WARNING", json_format=True)

        get_logger("drape.test").info("hidden")
        get_logger("drape.test").warning("shown")

        messages = [r.getMessage() for r in records_for(caplog, "drape.test")]
        assert len(messages) == 1
        assert "shown" in messages[0]

    def test_bound_context_is_merged(self, caplog):
        caplog.set_level(logging.INFO)
        configure_logging(level="INFO", json_format=True, add_timestamp=False)

        with LogContext(request_id="req-1"):
            get_logger("drape.test").info("inside")

        (record,) = records_for(caplog, "drape.test")
        event = json.loads(record.getMessage())
        assert event["request_id"] == "req-1"
        assert "@timestamp" not in event

    def test_console_renderer(self):
        configure_logging(level="INFO", json_format=False)
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)


class TestContextBinding:
    def test_bind_unbind_clear(self):
        bind_context(request_id="req-1", tenant="acme")
        assert structlog.contextvars.get_contextvars() == {"request_id": "req-1", "tenant": "acme"}

        unbind_context("tenant")
        assert structlog.contextvars.get_contextvars() == {"request_id": "req-1"}

        clear_context()
        assert structlog.contextvars.get_contextvars() == {}

    def test_log_context_is_scoped(self):
        with LogContext(tenant="acme"):
            assert structlog.contextvars.get_contextvars()["tenant"] == "acme"
        assert "tenant" not in structlog.contextvars.get_contextvars()
