"""PostgreSQL driver (psycopg2)."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from drape.core.errors import ConfigError, InvalidConfigError
from drape.core.protocols import DBAPIConnection

from .base import Driver
from .types import TransactionOptions


class PostgreSQLDriver(Driver):
    """
    PostgreSQL driver.

    Uses psycopg2, imported at ``open()`` time so the dependency is only
    needed when PostgreSQL is actually used. Connection-level statements run
    with ``autocommit`` on; ``begin()`` switches it off and applies the
    requested isolation level / read-only flag through ``set_session``.
    ``connection.cancel()`` aborts a running statement, so cancellation and
    deadlines are honoured server-side.
    """

    name = "postgresql"

    def __init__(self, *, connect_timeout: int = 10, **kwargs: Any):
        if connect_timeout < 0:
            raise InvalidConfigError("connect_timeout", connect_timeout, "connect_timeout must be >= 0")
        super().__init__(connect_timeout=connect_timeout, **kwargs)
        self._connect_timeout = connect_timeout
        self._kwargs = kwargs

    def open(self, dsn: str) -> DBAPIConnection:
        try:
            import psycopg2
        except ImportError:
            raise ConfigError(
                "psycopg2 is required for PostgreSQL. Install with: pip install drape[postgresql]"
            ) from None

        self.error_types = (psycopg2.Error,)
        conn = psycopg2.connect(dsn, connect_timeout=self._connect_timeout, **self._kwargs)
        conn.autocommit = True
        return conn

    def begin(self, raw: DBAPIConnection, options: TransactionOptions) -> None:
        raw.set_session(  # type: ignore[attr-defined]
            isolation_level=options.isolation.value if options.isolation else "DEFAULT",
            readonly=options.read_only,
            autocommit=False,
        )

    def end(self, raw: DBAPIConnection) -> None:
        raw.set_session(isolation_level="DEFAULT", readonly="DEFAULT", autocommit=True)  # type: ignore[attr-defined]

    def interrupter(self, raw: DBAPIConnection) -> Callable[[], None] | None:
        return raw.cancel  # type: ignore[attr-defined]


__all__ = [
    "PostgreSQLDriver",
]
