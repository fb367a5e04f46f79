"""SQLAlchemy-backed driver.

Accepts any SQLAlchemy URL as the DSN (``sqlite:///app.db``,
``postgresql+psycopg2://...``, ``mysql+pymysql://...``) and hands the facade
a pooled DB-API connection from ``Engine.raw_connection()``. The engine is
created with ``isolation_level="AUTOCOMMIT"`` so connection-level statements
commit immediately; transactions are delimited with explicit SQL.

Requires the ``sqlalchemy`` extra::

    pip install drape[sqlalchemy]
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from drape.core.errors import ConfigError, InvalidConfigError, TransactionError
from drape.core.protocols import DBAPIConnection

from .base import Driver
from .types import TransactionOptions

_NEXT_TRANSACTION_DIALECTS = frozenset({"mysql", "mariadb"})


class SQLAlchemyDriver(Driver):
    """Driver delegating connection management to a SQLAlchemy ``Engine``."""

    name = "sqlalchemy"

    def __init__(self, *, pool_size: int | None = None, echo: bool = False, **kwargs: Any):
        if pool_size is not None and pool_size < 1:
            raise InvalidConfigError("pool_size", pool_size, "pool_size must be >= 1")
        super().__init__(pool_size=pool_size, echo=echo, **kwargs)
        self._pool_size = pool_size
        self._echo = echo
        self._kwargs = kwargs
        self._engine: Any = None

    @property
    def engine(self) -> Any:
        return self._engine

    def open(self, dsn: str) -> DBAPIConnection:
        try:
            from sqlalchemy import create_engine
        except ImportError:
            raise ConfigError(
                "sqlalchemy is required for the sqlalchemy driver. Install with: pip install drape[sqlalchemy]"
            ) from None

        kwargs = dict(self._kwargs)
        if self._pool_size is not None and not dsn.startswith("sqlite"):
            kwargs["pool_size"] = self._pool_size
        if dsn.startswith("sqlite"):
            kwargs.setdefault("connect_args", {"check_same_thread": False})

        self._engine = create_engine(dsn, echo=self._echo, isolation_level="AUTOCOMMIT", **kwargs)
        self.error_types = (self._engine.dialect.loaded_dbapi.Error,)
        try:
            return self._engine.raw_connection()
        except Exception:
            self._engine.dispose()
            self._engine = None
            raise

    def close(self, raw: DBAPIConnection) -> None:
        try:
            raw.close()
        finally:
            if self._engine is not None:
                self._engine.dispose()
                self._engine = None

    @property
    def _dialect(self) -> str | None:
        return None if self._engine is None else self._engine.dialect.name

    @property
    def _is_sqlite(self) -> bool:
        return self._dialect == "sqlite"

    def begin(self, raw: DBAPIConnection, options: TransactionOptions) -> None:
        if self._is_sqlite and (options.isolation is not None or options.read_only):
            raise TransactionError("sqlite via sqlalchemy supports only default transaction options")

        if self._dialect in _NEXT_TRANSACTION_DIALECTS:
            # SET TRANSACTION is rejected inside a transaction here; it applies to the next one.
            if options.isolation is not None:
                self._run(raw, f"SET TRANSACTION ISOLATION LEVEL {options.isolation.value}")
            self._run(raw, "START TRANSACTION READ ONLY" if options.read_only else "START TRANSACTION")
            return

        self._run(raw, "BEGIN")
        try:
            if options.isolation is not None:
                self._run(raw, f"SET TRANSACTION ISOLATION LEVEL {options.isolation.value}")
            if options.read_only:
                self._run(raw, "SET TRANSACTION READ ONLY")
        except BaseException:
            self._run(raw, "ROLLBACK")
            raise

    # AUTOCOMMIT makes DB-API commit()/rollback() no-ops on some drivers.
    def commit(self, raw: DBAPIConnection) -> None:
        self._run(raw, "COMMIT")

    def rollback(self, raw: DBAPIConnection) -> None:
        self._run(raw, "ROLLBACK")

    def interrupter(self, raw: DBAPIConnection) -> Callable[[], None] | None:
        dbapi_conn = getattr(raw, "dbapi_connection", None)
        for attr in ("interrupt", "cancel"):
            fn = getattr(dbapi_conn, attr, None)
            if callable(fn):
                return fn
        return None


__all__ = [
    "SQLAlchemyDriver",
]
