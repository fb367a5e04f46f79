"""Tests for ``drape.core.settings`` and ``connect_from_settings``."""

from __future__ import annotations

import pytest
import structlog
from pydantic import ValidationError

from drape import DrapeSettings, connect_from_settings
from drape.observability import LoggingHook, MetricsHook


class TestDrapeSettings:
    def test_defaults(self, monkeypatch):
        for key in ("DRAPE_DRIVER", "DRAPE_DSN", "DRAPE_LOG_LEVEL"):
            monkeypatch.delenv(key, raising=False)
        settings = DrapeSettings(_env_file=None)
        assert settings.driver == "sqlite3"
        assert settings.dsn == ":memory:"
        assert settings.driver_options == {}
        assert settings.log_level == "INFO"
        assert settings.log_queries is True
        assert settings.slow_query_ms == 500.0
        assert settings.collect_metrics is False

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("DRAPE_DRIVER", " Postgres ")
        monkeypatch.setenv("DRAPE_DSN", "postgresql://localhost/app")
        monkeypatch.setenv("DRAPE_DRIVER_OPTIONS", '{"connect_timeout": 3}')
        monkeypatch.setenv("DRAPE_LOG_LEVEL", "debug")
        monkeypatch.setenv("DRAPE_COLLECT_METRICS", "true")

        settings = DrapeSettings(_env_file=None)

        assert settings.driver == "postgres"
        assert settings.dsn == "postgresql://localhost/app"
        assert settings.driver_options == {"connect_timeout": 3}
        assert settings.log_level == "DEBUG"
        assert settings.collect_metrics is True

    def test_env_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("DRAPE_DSN", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("DRAPE_DSN=app.db\nUNRELATED=1\n")
        assert DrapeSettings(_env_file=env_file).dsn == "app.db"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            DrapeSettings(log_level="LOUD", _env_file=None)

    def test_negative_slow_query_threshold(self):
        with pytest.raises(ValidationError):
            DrapeSettings(slow_query_ms=-1, _env_file=None)


class TestConnectFromSettings:
    def test_installs_configured_hooks(self):
        settings = DrapeSettings(log_queries=True, collect_metrics=True, _env_file=None)
        with connect_from_settings(settings) as db:
            hooks = list(db.hooks)
        assert isinstance(hooks[0], LoggingHook)
        assert isinstance(hooks[1], MetricsHook)

    def test_no_hooks(self):
        settings = DrapeSettings(log_queries=False, _env_file=None)
        with connect_from_settings(settings) as db:
            assert len(db.hooks) == 0

    def test_driver_options_are_passed(self):
        settings = DrapeSettings(log_queries=False, driver_options={"timeout": 1.0}, _env_file=None)
        with connect_from_settings(settings) as db:
            assert db.driver.options["timeout"] == 1.0

    def test_setup_logging(self, clean_structlog):
        settings = DrapeSettings(log_queries=False, log_level="error", log_json=True, _env_file=None)
        with connect_from_settings(settings, setup_logging=True):
            config = structlog.get_config()
        assert isinstance(config["processors"][-1], structlog.processors.JSONRenderer)
