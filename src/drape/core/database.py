"""
Connection facade - ``connect()`` and ``Database``.

``Database`` wraps one live DB-API connection and owns the ``HookRegistry``.
It exposes ``fetch_one``, ``fetch_many``, ``execute`` and ``begin``; every
query-shaped call fires every registered hook exactly once, in registration
order, whether it succeeded or failed.

Manifesto:
    Calling code should issue queries and transactions unchanged while
    logging, metrics, tracing or auditing is layered on by registering
    hooks in one place:

    - **Uniform:** one envelope for fetch-one, fetch-many and execute
    - **Shared:** transactions see the connection's registry by reference
    - **Honest:** hooks get the true final outcome, failures included
    - **Transparent:** no retries, no recovery, errors surface as raised

Architecture:
    ::

        connect("sqlite3", "app.db", hooks=[LoggingHook()])
            │  get_driver() ─► open() ─► ping()
            ▼
        ┌──────────────────────────── Database ─────────────────────────┐
        │  driver   raw DB-API connection   RLock   HookRegistry (owned)│
        ├───────────────────────────────────────────────────────────────┤
        │  fetch_one / fetch_many / execute   (BaseQuerier)             │
        │  begin(ctx, options) ──────────────► Transaction ──┐          │
        │  register_hook(hook)                               │ same     │
        │  ping / close                                      │ registry │
        └────────────────────────────────────────────────────┴──────────┘

Examples:
    >>> db = connect("sqlite3", ":memory:")
    >>> db.register_hook(lambda ctx, details, err: print(details.operation, err))
    >>> db.execute(None, "CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT)")
    Operation.EXECUTE None
    >>> users = DictListScanner()
    >>> db.fetch_many(new_context(timeout=2), users, "SELECT * FROM users")

Guardrails:
    ❌ DON'T: Share one ``Transaction`` between threads
    ✅ DO: Begin one transaction per unit of work

    ❌ DON'T: Match ``str(exc)`` to detect "not found"
    ✅ DO: ``except NoRowsError``

Tags:
    facade, database, connection, hooks, instrumentation, drape

Doc-Types:
    - API Reference
    - Getting Started
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from .context import QueryContext, background
from .drivers.base import Driver
from .drivers.registry import get_driver
from .drivers.types import TransactionOptions
from .errors import DatabaseConnectionError, DrapeError, TransactionError
from .hooks import HookRegistry
from .logging import configure_logging, get_logger
from .protocols import DBAPIConnection, QueryHook
from .querier import BaseQuerier, ExecResult
from .transaction import Transaction

if TYPE_CHECKING:
    from .settings import DrapeSettings

logger = get_logger(__name__)


class Database(BaseQuerier):
    """Connection-scoped facade. Create with :func:`connect`."""

    def __init__(
        self,
        driver: Driver,
        raw: DBAPIConnection,
        hooks: Iterable[QueryHook] = (),
    ):
        super().__init__(driver, raw, HookRegistry(hooks), threading.RLock())
        self._closed = False
        self._transaction: Transaction | None = None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def raw(self) -> DBAPIConnection:
        """The underlying DB-API connection (e.g. for driver-specific pragmas)."""
        return self._raw

    def _ensure_usable(self) -> None:
        if self._closed:
            raise DatabaseConnectionError("database connection is closed", retryable=False)

    def register_hook(self, hook: QueryHook) -> QueryHook:
        """Append ``hook`` to the registry; usable as a decorator.

        No uniqueness check; hooks cannot be removed.
        """
        return self._hooks.register(hook)

    def begin(
        self,
        ctx: QueryContext | None = None,
        options: TransactionOptions | None = None,
    ) -> Transaction:
        """Start a transaction on this connection.

        The returned ``Transaction`` references this database's hook registry.
        """
        ctx = ctx or background()
        options = options or TransactionOptions()
        self._ensure_usable()
        with self._lock:
            ctx.check()
            try:
                self._driver.begin(self._raw, options)
            except DrapeError:
                raise
            except Exception as exc:
                if not self._driver.is_driver_error(exc):
                    raise
                raise TransactionError(f"begin failed: {exc}", cause=exc).with_context(
                    driver=self._driver.name,
                    request_id=ctx.request_id,
                ) from exc
            tx = self._transaction = Transaction(self._driver, self._raw, self._hooks, self._lock, options)
        logger.debug(
            "transaction_started",
            driver=self._driver.name,
            isolation=options.isolation.value if options.isolation else None,
            read_only=options.read_only,
            request_id=ctx.request_id,
        )
        return tx

    def ping(self, ctx: QueryContext | None = None) -> None:
        """Round-trip liveness check; raises ``DatabaseConnectionError``."""
        ctx = ctx or background()
        self._ensure_usable()
        with self._lock:
            try:
                with self._driver.guard(self._raw, ctx):
                    self._driver.ping(self._raw)
            except DrapeError:
                raise
            except Exception as exc:
                raise DatabaseConnectionError(f"ping failed: {exc}", cause=exc).with_context(
                    driver=self._driver.name,
                ) from exc

    def close(self) -> None:
        """Close the underlying connection. Safe to call more than once.

        A transaction still open on the connection is finished without a
        commit; the server discards its work and later calls on it raise
        ``TransactionClosedError``.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            abandoned = self._transaction is not None and not self._transaction.closed
            if abandoned:
                self._transaction._abandon()
            self._transaction = None
            self._driver.close(self._raw)
        if abandoned:
            logger.warning("transaction_abandoned", driver=self._driver.name)
        logger.debug("database_closed", driver=self._driver.name)

    def __enter__(self) -> Database:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"Database(driver={self._driver.name!r}, hooks={len(self._hooks)}, {state})"


def connect(
    driver: str,
    dsn: str,
    *,
    hooks: Iterable[QueryHook] = (),
    **options: Any,
) -> Database:
    """Open a connection, verify it is alive, and wrap it in a ``Database``.

    Args:
        driver: Driver identifier (``"sqlite3"``, ``"postgres"``, ``"sqlalchemy"``, ...)
        dsn: Connection string understood by that driver
        hooks: Hooks to register up front, in order
        **options: Driver options (``timeout=``, ``connect_timeout=``, ``pool_size=``...)

    Raises:
        TypeError: a hook is not callable
        UnknownDriverError: ``driver`` is not registered
        InvalidConfigError: a driver option is out of range
        ConfigError: the driver's DB-API module is not installed
        DatabaseConnectionError: opening or the liveness check failed
    """
    # Reject non-callable hooks before a connection exists to leak.
    registered = HookRegistry(hooks).snapshot()
    drv = get_driver(driver, **options)

    try:
        raw = drv.open(dsn)
    except DrapeError:
        raise
    except Exception as exc:
        raise DatabaseConnectionError(f"Failed to connect with {driver}: {exc}", cause=exc).with_context(
            driver=driver,
        ) from exc

    try:
        drv.ping(raw)
    except Exception as exc:
        drv.close(raw)
        raise DatabaseConnectionError(f"Liveness check failed for {driver}: {exc}", cause=exc).with_context(
            driver=driver,
        ) from exc

    db = Database(drv, raw, registered)
    logger.info("database_connected", driver=drv.name, hooks=len(db.hooks))
    return db


def connect_from_settings(settings: DrapeSettings | None = None, *, setup_logging: bool = False) -> Database:
    """Connect using ``DrapeSettings`` (environment / ``.env``) and install the configured hooks.

    With ``setup_logging=True`` structlog is configured from ``log_level`` and
    ``log_json`` first; leave it off when the application configures logging itself.
    """
    from drape.observability.hooks import LoggingHook, MetricsHook

    from .settings import DrapeSettings

    settings = settings or DrapeSettings()
    if setup_logging:
        configure_logging(level=settings.log_level, json_format=settings.log_json)
    hooks: list[QueryHook] = []
    if settings.log_queries:
        hooks.append(
            LoggingHook(
                slow_query_ms=settings.slow_query_ms,
                include_params=not settings.redact_params,
            )
        )
    if settings.collect_metrics:
        hooks.append(MetricsHook())
    return connect(settings.driver, settings.dsn, hooks=hooks, **settings.driver_options)


__all__ = [
    "Database",
    "ExecResult",
    "connect",
    "connect_from_settings",
]
