"""
Shared query engine behind ``Database`` and ``Transaction``.

Both facades expose the same three query-shaped operations and the same
instrumentation contract; only the bound handle and the "is it still
usable?" rule differ. ``BaseQuerier`` implements the operations once and
each facade supplies its state.

Manifesto:
    One envelope for three shapes. ``fetch_one``, ``fetch_many`` and
    ``execute`` all go through ``_instrument()``:

    1. build the envelope (start time, operation, query, params)
    2. run the driver work and any row consumption under the context
    3. record the duration
    4. fire every hook currently registered, with the final outcome
    5. return, or re-raise the outcome

    Hooks observe the *true* final outcome: ``NoRowsError``, scan failures,
    cancellation and driver errors alike.

Architecture:
    ::

        fetch_one / fetch_many / execute
                  │
                  ▼
        _instrument(ctx, operation, query, params, work)
          ├── QueryDetails.started(...)
          ├── _call(): lock ─► driver.guard(ctx) ─► work()
          │        driver error ─► QueryError | context error
          │        scanner error ─► raised unchanged
          └── finally: hooks.fire(ctx, details.finished(duration), error)

Guardrails:
    ❌ DON'T: Fire hooks inside the connection lock
    ✅ DO: Release the lock first; hooks may be slow

    ❌ DON'T: Snapshot the registry at transaction start
    ✅ DO: Read it at fire time (``HookRegistry.fire`` snapshots per call)

Tags:
    facade, instrumentation, hooks, envelope, drape

Doc-Types:
    - Architecture Decision Record
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

from .context import QueryContext, background
from .drivers.base import Driver
from .errors import DrapeError, NoRowsError, QueryError
from .hooks import HookRegistry, Operation, QueryDetails
from .protocols import DBAPIConnection, DBAPICursor, ScanMany, ScanOne
from .rows import Row, Rows

T = TypeVar("T")


@dataclass(frozen=True)
class ExecResult:
    """Result descriptor of ``execute``, taken from the driver's cursor unchanged.

    ``rows_affected`` is ``-1`` when the driver cannot tell (PEP 249).
    """

    rows_affected: int
    last_row_id: Any = None


class _ScannerFailed(Exception):
    """Carries a scanner's own exception past driver-error mapping."""

    def __init__(self, error: Exception):
        super().__init__(error)
        self.error = error


def _consume(consume: Callable[[Row], None], row: Row) -> None:
    try:
        consume(row)
    except Exception as exc:
        raise _ScannerFailed(exc) from exc


class BaseQuerier:
    """fetch_one / fetch_many / execute with hook instrumentation."""

    _in_transaction = False

    def __init__(
        self,
        driver: Driver,
        raw: DBAPIConnection,
        hooks: HookRegistry,
        lock: threading.RLock,
    ):
        self._driver = driver
        self._raw = raw
        self._hooks = hooks
        self._lock = lock

    @property
    def hooks(self) -> HookRegistry:
        """The hook registry consulted after every query-shaped call."""
        return self._hooks

    @property
    def driver(self) -> Driver:
        return self._driver

    def _ensure_usable(self) -> None:
        """Raise if this facade can no longer run statements."""
        return None

    # -- query-shaped operations ------------------------------------------

    def fetch_one(self, ctx: QueryContext | None, dest: ScanOne, query: str, *params: Any) -> None:
        """Run ``query`` and scan its first row into ``dest``.

        Raises ``NoRowsError`` when the query produces no rows. Rows after the
        first are discarded.
        """

        def work(ctx: QueryContext) -> None:
            with self._open_rows(query, params) as rows:
                row = rows.next()
                if row is None:
                    raise NoRowsError()
                _consume(dest.scan_row, row)

        self._instrument(ctx, Operation.FETCH_ONE, query, params, work)

    def fetch_many(self, ctx: QueryContext | None, dest: ScanMany, query: str, *params: Any) -> None:
        """Run ``query`` and append every row, in order, into ``dest``.

        Stops at the first row ``dest`` fails to consume.
        """

        def work(ctx: QueryContext) -> None:
            with self._open_rows(query, params) as rows:
                for row in rows:
                    ctx.check()
                    _consume(dest.scan_append_row, row)

        self._instrument(ctx, Operation.FETCH_MANY, query, params, work)

    def execute(self, ctx: QueryContext | None, query: str, *params: Any) -> ExecResult:
        """Run a statement that returns no rows."""

        def work(ctx: QueryContext) -> ExecResult:
            cursor = self._raw.cursor()
            try:
                self._execute(cursor, query, params)
                return ExecResult(
                    rows_affected=cursor.rowcount,
                    last_row_id=getattr(cursor, "lastrowid", None),
                )
            finally:
                cursor.close()

        return self._instrument(ctx, Operation.EXECUTE, query, params, work)

    # -- internals ---------------------------------------------------------

    @staticmethod
    def _execute(cursor: DBAPICursor, query: str, params: Sequence[Any]) -> None:
        if params:
            cursor.execute(query, tuple(params))
        else:
            cursor.execute(query)

    def _open_rows(self, query: str, params: Sequence[Any]) -> Rows:
        cursor = self._raw.cursor()
        try:
            self._execute(cursor, query, params)
        except BaseException:
            cursor.close()
            raise
        return Rows(cursor)

    def _instrument(
        self,
        ctx: QueryContext | None,
        operation: Operation,
        query: str,
        params: Sequence[Any],
        work: Callable[[QueryContext], T],
    ) -> T:
        ctx = ctx or background()
        details = QueryDetails.started(
            operation,
            query,
            params,
            in_transaction=self._in_transaction,
            request_id=ctx.request_id,
        )
        start = time.perf_counter()
        error: BaseException | None = None
        try:
            return self._call(ctx, operation, query, work)
        except BaseException as exc:
            error = exc
            raise
        finally:
            self._hooks.fire(ctx, details.finished(time.perf_counter() - start), error)

    def _call(
        self,
        ctx: QueryContext,
        operation: Operation,
        query: str,
        work: Callable[[QueryContext], T],
    ) -> T:
        self._ensure_usable()
        with self._lock:
            try:
                with self._driver.guard(self._raw, ctx):
                    return work(ctx)
            except _ScannerFailed as failed:
                scan_error = failed.error
            except DrapeError:
                raise
            except Exception as exc:
                if not self._driver.is_driver_error(exc):
                    raise
                ctx_error = ctx.error()
                if ctx_error is not None:
                    raise ctx_error.with_context(operation=operation.value) from exc
                raise QueryError(f"{operation.value} failed: {exc}", cause=exc).with_context(
                    driver=self._driver.name,
                    operation=operation.value,
                    query=query,
                    request_id=ctx.request_id,
                ) from exc
        # Scanner exceptions are the outcome as-is, same instance, no wrapping.
        raise scan_error


__all__ = [
    "BaseQuerier",
    "ExecResult",
]
