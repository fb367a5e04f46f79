"""
Canonical protocol definitions for drape.

This module is the single source of truth for the structural contracts the
facade depends on or exposes. Everything here is a ``Protocol``: callers
satisfy them by shape, never by inheritance.

Manifesto:
    The facade never inspects row contents and never names a concrete
    driver. It depends on narrow behaviours only:

    - **Row scanning:** "consume one row" and "consume and append one row"
    - **Hooks:** "observe a finished call"
    - **DB-API:** the handful of PEP 249 members actually used

Architecture:
    ::

        protocols.py (YOU ARE HERE)
        ├── ScanOne          : consume exactly one row (fetch_one)
        ├── ScanMany         : consume + append one row, repeatedly (fetch_many)
        ├── QueryHook        : (ctx, details, error) -> None
        ├── DBAPICursor      : PEP 249 cursor subset
        ├── DBAPIConnection  : PEP 249 connection subset
        ├── Querier          : fetch_one / fetch_many / execute
        ├── DB               : Querier + begin / register_hook / close
        └── TX               : Querier + commit / rollback

Guardrails:
    ❌ DON'T: Type facade arguments with concrete scanner classes
    ✅ DO: Accept ``ScanOne`` / ``ScanMany`` and let callers bring their own

    ❌ DON'T: Add implementation logic to protocol classes
    ✅ DO: Keep protocols pure contracts; implementations live in core

Tags:
    protocol, scanner, hook, dbapi, contracts, drape

Doc-Types:
    - API Reference
    - Architecture Decision Record
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .context import QueryContext
    from .database import ExecResult
    from .drivers.types import TransactionOptions
    from .hooks import HookRegistry, QueryDetails
    from .rows import Row
    from .transaction import Transaction


# ---------------------------------------------------------------------------
# Row scanning
# ---------------------------------------------------------------------------


@runtime_checkable
class ScanOne(Protocol):
    """Destination that consumes exactly one row (used by ``fetch_one``)."""

    def scan_row(self, row: Row) -> None:
        """Populate the destination from ``row``. Raise on incompatible data."""
        ...


@runtime_checkable
class ScanMany(Protocol):
    """Destination that consumes one row at a time, appending (used by ``fetch_many``)."""

    def scan_append_row(self, row: Row) -> None:
        """Append ``row`` to the destination. Raise on incompatible data."""
        ...


# ---------------------------------------------------------------------------
# Hooks
# ---------------------------------------------------------------------------


class QueryHook(Protocol):
    """Observer invoked after every query-shaped call.

    Must not raise and must not block indefinitely.
    """

    def __call__(
        self,
        ctx: QueryContext,
        details: QueryDetails,
        error: BaseException | None,
    ) -> None: ...


# ---------------------------------------------------------------------------
# PEP 249 subset
# ---------------------------------------------------------------------------


@runtime_checkable
class DBAPICursor(Protocol):
    """The parts of a PEP 249 cursor the facade uses."""

    @property
    def description(self) -> Sequence[Sequence[Any]] | None: ...

    @property
    def rowcount(self) -> int: ...

    def execute(self, operation: str, parameters: Sequence[Any] = ...) -> Any: ...

    def fetchone(self) -> Sequence[Any] | None: ...

    def close(self) -> None: ...


@runtime_checkable
class DBAPIConnection(Protocol):
    """The parts of a PEP 249 connection the facade uses."""

    def cursor(self) -> DBAPICursor: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def close(self) -> None: ...


# ---------------------------------------------------------------------------
# Facades
# ---------------------------------------------------------------------------


class Querier(Protocol):
    """Query surface shared by ``Database`` and ``Transaction``."""

    def fetch_one(self, ctx: QueryContext | None, dest: ScanOne, query: str, *params: Any) -> None: ...

    def fetch_many(self, ctx: QueryContext | None, dest: ScanMany, query: str, *params: Any) -> None: ...

    def execute(self, ctx: QueryContext | None, query: str, *params: Any) -> ExecResult: ...


class DB(Querier, Protocol):
    """Connection-scoped facade."""

    @property
    def hooks(self) -> HookRegistry: ...

    def begin(self, ctx: QueryContext | None = None, options: TransactionOptions | None = None) -> Transaction: ...

    def register_hook(self, hook: QueryHook) -> QueryHook: ...

    def close(self) -> None: ...


class TX(Querier, Protocol):
    """Transaction-scoped facade."""

    def commit(self, ctx: QueryContext | None = None) -> None: ...

    def rollback(self, ctx: QueryContext | None = None) -> None: ...


__all__ = [
    "ScanOne",
    "ScanMany",
    "QueryHook",
    "DBAPICursor",
    "DBAPIConnection",
    "Querier",
    "DB",
    "TX",
]
