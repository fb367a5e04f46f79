"""
Query context: request identity, deadline and cancellation for one call.

Every facade operation takes a ``QueryContext`` as its first argument and
hands the same object to each hook. The context carries:

- ``request_id`` so hooks can correlate log lines and metrics
- an optional monotonic ``deadline``
- cooperative cancellation shared between a context and its children
- free-form ``values`` (tenant, user, route, ...) for hooks to read

Manifesto:
    - **Explicit:** the context is passed, not looked up from globals
    - **Immutable:** ``with_timeout()`` / ``with_values()`` / ``child()``
      return new contexts
    - **Prompt abort:** drivers register interrupt callbacks so that
      ``cancel()`` aborts a statement that is already running

Architecture:
    ::

        new_context(timeout=5)          ← root, owns a cancel state
            │
            ├── .child()                ← new request_id, same cancel state
            │                              parent_request_id = root id
            └── .with_timeout(1)        ← same request_id, earlier deadline

        cancel() ──► state.cancelled = True ──► interrupt callbacks run

Examples:
    >>> ctx = new_context(timeout=2.5, tenant="acme")
    >>> ctx.values["tenant"]
    'acme'
    >>> ctx.done
    False
    >>> ctx.cancel()
    >>> ctx.check()
    Traceback (most recent call last):
    ...
    QueryCancelledError: query context cancelled

Tags:
    context, cancellation, deadline, tracing, drape

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import threading
import time
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .errors import QueryCancelledError, QueryTimeoutError


class _CancelState:
    """Cancellation flag and interrupt callbacks shared by related contexts."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cancelled = False
        self._callbacks: dict[int, Callable[[], None]] = {}
        self._next_token = 0

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            callbacks = list(self._callbacks.values())
            self._callbacks.clear()
        for callback in callbacks:
            callback()

    def add(self, callback: Callable[[], None]) -> Callable[[], None]:
        with self._lock:
            if not self._cancelled:
                token = self._next_token
                self._next_token += 1
                self._callbacks[token] = callback

                def remove() -> None:
                    with self._lock:
                        self._callbacks.pop(token, None)

                return remove
        # Already cancelled: interrupt immediately.
        callback()
        return lambda: None


@dataclass(frozen=True)
class QueryContext:
    """
    Per-call context handed to the facade and to every hook.

    Attributes:
        request_id: Unique ID for this call chain (UUID string)
        deadline: ``time.monotonic()`` value after which the call times out
        values: Read-only caller values, visible to hooks
        parent_request_id: ``request_id`` of the context this one derives from
    """

    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    deadline: float | None = None
    values: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    parent_request_id: str | None = None
    _state: _CancelState = field(default_factory=_CancelState, repr=False, compare=False)

    # -- derivation --------------------------------------------------------

    def with_timeout(self, seconds: float) -> QueryContext:
        """Copy with a deadline ``seconds`` from now (never later than the current one)."""
        deadline = time.monotonic() + seconds
        if self.deadline is not None:
            deadline = min(deadline, self.deadline)
        return QueryContext(
            request_id=self.request_id,
            deadline=deadline,
            values=self.values,
            parent_request_id=self.parent_request_id,
            _state=self._state,
        )

    def with_values(self, **values: Any) -> QueryContext:
        """Copy with ``values`` merged over the current ones."""
        merged = {**self.values, **values}
        return QueryContext(
            request_id=self.request_id,
            deadline=self.deadline,
            values=MappingProxyType(merged),
            parent_request_id=self.parent_request_id,
            _state=self._state,
        )

    def child(self) -> QueryContext:
        """New request id linked to this one; shares deadline and cancellation."""
        return QueryContext(
            deadline=self.deadline,
            values=self.values,
            parent_request_id=self.request_id,
            _state=self._state,
        )

    # -- state -------------------------------------------------------------

    @property
    def cancelled(self) -> bool:
        return self._state.cancelled

    @property
    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    @property
    def done(self) -> bool:
        return self.cancelled or self.expired

    def remaining(self) -> float | None:
        """Seconds until the deadline, ``None`` when there is none."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def cancel(self) -> None:
        """Cancel this context and every context derived from the same root."""
        self._state.cancel()

    def on_cancel(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register an interrupt callback; returns a function that unregisters it.

        If the context is already cancelled the callback runs immediately.
        """
        return self._state.add(callback)

    def error(self) -> QueryCancelledError | QueryTimeoutError | None:
        """The error describing why the context is done, or ``None``."""
        if self.cancelled:
            return QueryCancelledError().with_context(request_id=self.request_id)
        if self.expired:
            return QueryTimeoutError().with_context(request_id=self.request_id)
        return None

    def check(self) -> None:
        """Raise if the context is cancelled or past its deadline."""
        err = self.error()
        if err is not None:
            raise err


def new_context(timeout: float | None = None, **values: Any) -> QueryContext:
    """Create a root context, optionally with a timeout and caller values."""
    ctx = QueryContext(values=MappingProxyType(dict(values)))
    if timeout is not None:
        ctx = ctx.with_timeout(timeout)
    return ctx


def background() -> QueryContext:
    """A context with no deadline and no values, used when the caller passes ``None``."""
    return QueryContext()


__all__ = [
    "QueryContext",
    "new_context",
    "background",
]
