"""Environment-driven settings for drape.

Process wiring (which driver, which DSN, which built-in hooks) is read from
``DRAPE_*`` environment variables or a ``.env`` file so applications can call
``connect_from_settings()`` without plumbing configuration by hand.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.

    - **Pydantic validation:** Type-checked at startup, not at first query
    - **Environment-driven:** ``DRAPE_DRIVER``, ``DRAPE_DSN``, ...
    - **Sensible defaults:** in-memory SQLite, query logging on

Examples:
    >>> import os
    >>> os.environ["DRAPE_DRIVER"] = "sqlite3"
    >>> os.environ["DRAPE_DSN"] = "app.db"
    >>> settings = DrapeSettings()
    >>> settings.slow_query_ms
    500.0

Tags:
    settings, configuration, pydantic, environment, drape

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DrapeSettings(BaseSettings):
    """Settings for ``connect_from_settings()``.

    Fields
    ──────
    driver          : Driver identifier (see ``drape.core.drivers``)
    dsn             : Connection string for that driver
    driver_options  : Extra keyword options for the driver (JSON in env)
    log_level       : Structlog log level
    log_json        : JSON log output (None = auto-detect from TTY)
    log_queries     : Install ``LoggingHook``
    slow_query_ms   : ``LoggingHook`` slow-query threshold
    redact_params   : Keep query parameters out of logs
    collect_metrics : Install ``MetricsHook``
    """

    model_config = SettingsConfigDict(
        env_prefix="DRAPE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Connection ───────────────────────────────────────────────
    driver: str = "sqlite3"
    dsn: str = ":memory:"
    driver_options: dict[str, Any] = Field(default_factory=dict)

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool | None = None
    log_queries: bool = True
    slow_query_ms: float = Field(default=500.0, ge=0)
    redact_params: bool = False
    collect_metrics: bool = False

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"invalid log level: {value!r}")
        return level

    @field_validator("driver")
    @classmethod
    def _normalize_driver(cls, value: str) -> str:
        return value.strip().lower()


__all__ = [
    "DrapeSettings",
]
