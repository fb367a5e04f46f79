"""SQLite driver."""

from __future__ import annotations

import sqlite3
from collections.abc import Callable
from typing import Any

from drape.core.errors import InvalidConfigError, TransactionError
from drape.core.protocols import DBAPIConnection

from .base import Driver
from .types import IsolationLevel, TransactionOptions


class SQLiteDriver(Driver):
    """
    SQLite driver.

    Uses the built-in sqlite3 module. Suitable for:
    - Development and testing
    - Embedded, single-process applications

    The connection is opened with ``isolation_level=None`` so statements run
    in autocommit mode until ``begin()`` issues an explicit ``BEGIN``.
    SQLite transactions are always serializable; ``SERIALIZABLE`` maps to
    ``BEGIN IMMEDIATE`` (write lock taken up front). Other isolation levels
    are rejected.
    """

    name = "sqlite3"
    error_types = (sqlite3.Error,)

    def __init__(self, *, timeout: float = 5.0, foreign_keys: bool = True, **kwargs: Any):
        if timeout < 0:
            raise InvalidConfigError("timeout", timeout, "sqlite3 busy timeout must be >= 0")
        super().__init__(timeout=timeout, foreign_keys=foreign_keys, **kwargs)
        self._timeout = timeout
        self._foreign_keys = foreign_keys
        self._kwargs = kwargs
        self._read_only = False

    def open(self, dsn: str) -> DBAPIConnection:
        path = dsn or ":memory:"
        uri = path.startswith("file:")
        conn = sqlite3.connect(
            path,
            timeout=self._timeout,
            isolation_level=None,
            check_same_thread=False,
            uri=uri,
            **self._kwargs,
        )
        if self._foreign_keys:
            conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def begin(self, raw: DBAPIConnection, options: TransactionOptions) -> None:
        match options.isolation:
            case None:
                statement = "BEGIN"
            case IsolationLevel.SERIALIZABLE:
                statement = "BEGIN IMMEDIATE"
            case level:
                raise TransactionError(f"sqlite3 does not support isolation level {level.value}")

        # Pragmas belong to whichever transaction is open; leave them alone.
        if raw.in_transaction:  # type: ignore[attr-defined]
            raise TransactionError("sqlite3 connection already has an open transaction")

        if options.read_only:
            self._run(raw, "PRAGMA query_only = ON")
            self._read_only = True
        try:
            self._run(raw, statement)
        except sqlite3.Error:
            if options.read_only:
                self.end(raw)
            raise

    def end(self, raw: DBAPIConnection) -> None:
        if self._read_only:
            self._read_only = False
            self._run(raw, "PRAGMA query_only = OFF")

    def interrupter(self, raw: DBAPIConnection) -> Callable[[], None] | None:
        return raw.interrupt  # type: ignore[attr-defined]


__all__ = [
    "SQLiteDriver",
]
