"""
Query envelope and hook registry.

A hook is any callable ``hook(ctx, details, error)``. After every
query-shaped call (``fetch_one``, ``fetch_many``, ``execute``) the facade
builds one completed ``QueryDetails`` envelope and passes it, together with
the final outcome, to each hook in the registry.

Manifesto:
    Instrumentation must see failures as reliably as successes. The
    registry therefore fires for every call, whatever the outcome, and the
    envelope is finished (duration recorded) before the first hook runs.

    - **Append-only:** hooks are registered, never removed
    - **Shared by reference:** a ``Database`` and every ``Transaction`` it
      begins hold the *same* registry object, so hooks registered after
      ``begin()`` still see the transaction's later queries
    - **Snapshot per call:** each firing iterates a copy taken under the
      lock; concurrent ``register()`` never corrupts or duplicates a firing
    - **Synchronous:** hooks run in-line on the caller's thread

Architecture:
    ::

        Database ──owns──► HookRegistry ◄──references── Transaction
                              │
                              ▼  fire(ctx, details, error)
                   ┌──────────┬──────────┬──────────┐
                   │  hook 1  │  hook 2  │  hook N  │   registration order
                   └──────────┴──────────┴──────────┘

Guardrails:
    ❌ DON'T: Raise from a hook (it is a programmer error; it propagates and
       later hooks are skipped)
    ✅ DO: Keep hooks side-effect only: log, count, trace

    ❌ DON'T: Block in a hook; the triggering call waits for it
    ✅ DO: Hand slow work to a queue owned by the hook

Tags:
    hooks, observer, instrumentation, envelope, drape

Doc-Types:
    - API Reference
    - Observability Guide
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .context import QueryContext
    from .protocols import QueryHook


class Operation(str, Enum):
    """Logical operation recorded in the envelope."""

    FETCH_ONE = "fetch_one"
    FETCH_MANY = "fetch_many"
    EXECUTE = "execute"


@dataclass(frozen=True)
class QueryDetails:
    """
    Immutable per-call envelope passed to hooks.

    Attributes:
        start_time: When the call started (aware UTC datetime)
        operation: Which facade method ran
        query: Query text, verbatim
        params: Positional parameters, in order
        duration: Seconds from call start to completion, ``None`` until finished
        in_transaction: Whether the call ran on a Transaction facade
        request_id: ``QueryContext.request_id`` of the call
    """

    start_time: datetime
    operation: Operation
    query: str
    params: tuple[Any, ...] = ()
    duration: float | None = None
    in_transaction: bool = False
    request_id: str | None = None

    @classmethod
    def started(
        cls,
        operation: Operation,
        query: str,
        params: Sequence[Any],
        *,
        in_transaction: bool = False,
        request_id: str | None = None,
    ) -> QueryDetails:
        """Open an envelope stamped with the current time."""
        return cls(
            start_time=datetime.now(UTC),
            operation=operation,
            query=query,
            params=tuple(params),
            in_transaction=in_transaction,
            request_id=request_id,
        )

    def finished(self, duration: float) -> QueryDetails:
        """Completed copy carrying ``duration``."""
        return replace(self, duration=duration)

    @property
    def duration_ms(self) -> float | None:
        return None if self.duration is None else self.duration * 1000.0

    def to_dict(self, *, include_params: bool = True) -> dict[str, Any]:
        """Convert to a dictionary for structured logging."""
        result: dict[str, Any] = {
            "operation": self.operation.value,
            "query": self.query,
            "start_time": self.start_time.isoformat(),
            "in_transaction": self.in_transaction,
        }
        if include_params:
            result["params"] = list(self.params)
        else:
            result["param_count"] = len(self.params)
        if self.duration is not None:
            result["duration_ms"] = round(self.duration * 1000.0, 3)
        if self.request_id is not None:
            result["request_id"] = self.request_id
        return result


class HookRegistry:
    """Ordered, append-only, thread-safe collection of query hooks."""

    def __init__(self, hooks: Iterable[QueryHook] = ()) -> None:
        self._lock = threading.Lock()
        self._hooks: list[QueryHook] = []
        for hook in hooks:
            self.register(hook)

    def register(self, hook: QueryHook) -> QueryHook:
        """Append ``hook``; returns it so the method can be used as a decorator."""
        if not callable(hook):
            raise TypeError(f"hook must be callable, got {type(hook).__name__}")
        with self._lock:
            self._hooks.append(hook)
        return hook

    def snapshot(self) -> tuple[QueryHook, ...]:
        """Hooks registered at this instant, in registration order."""
        with self._lock:
            return tuple(self._hooks)

    def fire(
        self,
        ctx: QueryContext,
        details: QueryDetails,
        error: BaseException | None,
    ) -> None:
        """Invoke every currently registered hook exactly once, in order."""
        for hook in self.snapshot():
            hook(ctx, details, error)

    def __len__(self) -> int:
        with self._lock:
            return len(self._hooks)

    def __iter__(self) -> Iterator[QueryHook]:
        return iter(self.snapshot())

    def __repr__(self) -> str:
        return f"HookRegistry(hooks={len(self)})"


__all__ = [
    "Operation",
    "QueryDetails",
    "HookRegistry",
]
