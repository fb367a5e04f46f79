"""Database driver base class.

Manifesto:
    The facade owns instrumentation, not I/O. Everything vendor-specific
    (how to open, how to start a transaction with a given isolation level,
    how to abort a running statement, which exceptions are "driver errors")
    lives behind this small abstract base so ``Database`` and
    ``Transaction`` never name a concrete DB-API module.

Features:
    - Abstract ``open()`` and ``begin()``
    - Default ``ping()``, ``commit()``, ``rollback()``, ``end()``, ``close()``
    - ``guard()``: binds a ``QueryContext`` to a statement so cancellation and
      deadlines interrupt it, when the driver can interrupt
    - ``is_driver_error()`` for QueryError wrapping

Tags:
    drape, database, driver, abstract-base, dbapi

Doc-Types:
    api-reference
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

from drape.core.context import QueryContext
from drape.core.errors import QueryTimeoutError
from drape.core.protocols import DBAPIConnection

from .types import TransactionOptions


class Driver(ABC):
    """
    Abstract base class for database drivers.

    One driver instance serves one ``Database``; drivers may keep per-connection
    state (an engine, the imported DB-API module, transaction flags).
    """

    name: str = "driver"
    error_types: tuple[type[BaseException], ...] = ()

    def __init__(self, **options: Any):
        self._options = options

    @property
    def options(self) -> dict[str, Any]:
        return dict(self._options)

    # -- lifecycle ---------------------------------------------------------

    @abstractmethod
    def open(self, dsn: str) -> DBAPIConnection:
        """Open a DB-API connection in connection-level (autocommit) mode."""
        ...

    def ping(self, raw: DBAPIConnection) -> None:
        """Round-trip health check."""
        cursor = raw.cursor()
        try:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        finally:
            cursor.close()

    def close(self, raw: DBAPIConnection) -> None:
        raw.close()

    # -- transactions ------------------------------------------------------

    @abstractmethod
    def begin(self, raw: DBAPIConnection, options: TransactionOptions) -> None:
        """Start a transaction on ``raw``."""
        ...

    def commit(self, raw: DBAPIConnection) -> None:
        raw.commit()

    def rollback(self, raw: DBAPIConnection) -> None:
        raw.rollback()

    def end(self, raw: DBAPIConnection) -> None:
        """Restore connection-level mode after commit or rollback."""
        return None

    # -- errors and cancellation ------------------------------------------

    def is_driver_error(self, exc: BaseException) -> bool:
        return bool(self.error_types) and isinstance(exc, self.error_types)

    def interrupter(self, raw: DBAPIConnection) -> Callable[[], None] | None:
        """Callable aborting the statement running on ``raw``, if supported."""
        return None

    @contextmanager
    def guard(self, raw: DBAPIConnection, ctx: QueryContext) -> Iterator[None]:
        """Run a statement under ``ctx``: fail fast if done, interrupt on cancel/deadline."""
        ctx.check()
        interrupt = self.interrupter(raw)
        if interrupt is None:
            yield
            return

        deadline_hit = threading.Event()

        def on_deadline() -> None:
            deadline_hit.set()
            interrupt()

        unregister = ctx.on_cancel(interrupt)
        timer: threading.Timer | None = None
        remaining = ctx.remaining()
        if remaining is not None:
            timer = threading.Timer(remaining, on_deadline)
            timer.daemon = True
            timer.start()
        try:
            yield
        except Exception as exc:
            # The timer may wake a hair before the deadline reads as passed.
            if deadline_hit.is_set() and not ctx.cancelled and self.is_driver_error(exc):
                raise QueryTimeoutError().with_context(request_id=ctx.request_id) from exc
            raise
        finally:
            if timer is not None:
                timer.cancel()
            unregister()

    def _run(self, raw: DBAPIConnection, sql: str) -> None:
        cursor = raw.cursor()
        try:
            cursor.execute(sql)
        finally:
            cursor.close()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


__all__ = [
    "Driver",
]
