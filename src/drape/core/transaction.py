"""Transaction facade.

A ``Transaction`` runs ``fetch_one`` / ``fetch_many`` / ``execute`` inside
one database transaction with exactly the same envelope and hook semantics
as ``Database``. It does not own hooks: it holds a reference to the
registry of the ``Database`` that began it, so hooks registered after
``begin()`` still fire for its later queries.

``commit()`` and ``rollback()`` never fire hooks. After either one, or
after the owning ``Database`` is closed, the transaction is finished and
every further call raises ``TransactionClosedError``.

Usage::

    with db.begin(ctx) as tx:
        tx.execute(ctx, "UPDATE accounts SET balance = balance - ? WHERE id = ?", 10, 1)
        tx.execute(ctx, "UPDATE accounts SET balance = balance + ? WHERE id = ?", 10, 2)
    # committed here; rolled back if the block raised

Not safe for concurrent use by several callers at once.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import TYPE_CHECKING

from .context import QueryContext, background
from .drivers.base import Driver
from .errors import TransactionClosedError, TransactionError
from .hooks import HookRegistry
from .logging import get_logger
from .protocols import DBAPIConnection
from .querier import BaseQuerier

if TYPE_CHECKING:
    from .drivers.types import TransactionOptions

logger = get_logger(__name__)


class Transaction(BaseQuerier):
    """One in-flight transaction on a ``Database``'s connection."""

    _in_transaction = True

    def __init__(
        self,
        driver: Driver,
        raw: DBAPIConnection,
        hooks: HookRegistry,
        lock: threading.RLock,
        options: TransactionOptions,
    ):
        super().__init__(driver, raw, hooks, lock)
        self._options = options
        self._closed = False

    @property
    def options(self) -> TransactionOptions:
        return self._options

    @property
    def closed(self) -> bool:
        """True once ``commit()`` or ``rollback()`` has been called."""
        return self._closed

    def _ensure_usable(self) -> None:
        if self._closed:
            raise TransactionClosedError()

    def commit(self, ctx: QueryContext | None = None) -> None:
        """Commit. The transaction is finished afterwards, even if the commit fails."""
        self._finish(ctx, "commit", self._driver.commit)

    def rollback(self, ctx: QueryContext | None = None) -> None:
        """Roll back. The transaction is finished afterwards, even if the rollback fails."""
        self._finish(ctx, "rollback", self._driver.rollback)

    def _finish(
        self,
        ctx: QueryContext | None,
        action: str,
        finish: Callable[[DBAPIConnection], None],
    ) -> None:
        ctx = ctx or background()
        with self._lock:
            self._ensure_usable()
            self._closed = True
            try:
                try:
                    finish(self._raw)
                finally:
                    self._driver.end(self._raw)
            except Exception as exc:
                if not self._driver.is_driver_error(exc):
                    raise
                raise TransactionError(f"{action} failed: {exc}", cause=exc).with_context(
                    driver=self._driver.name,
                    request_id=ctx.request_id,
                ) from exc
        logger.debug(f"transaction_{action}", driver=self._driver.name, request_id=ctx.request_id)

    def _abandon(self) -> None:
        """Mark finished without touching the connection; its owner is closing it."""
        with self._lock:
            self._closed = True

    def __enter__(self) -> Transaction:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._closed:
            return
        if exc_type is None:
            self.commit()
        else:
            self.rollback()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"Transaction(driver={self._driver.name!r}, {state})"


__all__ = [
    "Transaction",
]
