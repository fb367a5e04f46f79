"""drape core -- the instrumented query facade.

Manifesto:
    Calling code issues queries and transactions through one small surface
    (``fetch_one``, ``fetch_many``, ``execute``, ``begin``) while
    observability is layered on by registering hooks once, on the
    connection. Transactions share that hook registry by reference.

    - **Sync primitives:** blocking DB-API calls, honouring the caller's
      ``QueryContext`` for cancellation and deadlines
    - **Protocol-first:** scanners, hooks and DB-API objects are protocols
    - **Import-guarded extras:** psycopg2 and SQLAlchemy loaded lazily

Architecture::

    Layer 1 -- Types & Errors
        errors.py          Typed error taxonomy (NoRowsError, QueryError, ...)
        protocols.py       ScanOne, ScanMany, QueryHook, DB-API subset
        context.py         QueryContext (request id, deadline, cancellation)
        hooks.py           QueryDetails envelope + HookRegistry
        rows.py            Row / Rows cursor wrapper

    Layer 2 -- Drivers
        drivers/           Driver ABC, SQLite / PostgreSQL / SQLAlchemy, registry

    Layer 3 -- Facades
        querier.py         Shared instrumented fetch_one / fetch_many / execute
        database.py        Database + connect() / connect_from_settings()
        transaction.py     Transaction (commit / rollback, no hooks)

    Layer 4 -- Ambient
        logging.py         structlog configuration
        settings.py        DrapeSettings (pydantic-settings)

Tags:
    drape, core, facade, hooks, instrumentation

Doc-Types:
    package-overview, architecture-map, module-index
"""

from drape.core.context import QueryContext, background, new_context
from drape.core.database import Database, connect, connect_from_settings
from drape.core.drivers import (
    Driver,
    IsolationLevel,
    TransactionOptions,
    get_driver,
    register_driver,
)
from drape.core.errors import (
    ConfigError,
    DatabaseConnectionError,
    DatabaseError,
    DrapeError,
    InvalidConfigError,
    NoRowsError,
    QueryCancelledError,
    QueryError,
    QueryTimeoutError,
    ScanError,
    TransactionClosedError,
    TransactionError,
    UnknownDriverError,
    is_no_rows,
)
from drape.core.hooks import HookRegistry, Operation, QueryDetails
from drape.core.logging import configure_logging, get_logger
from drape.core.protocols import QueryHook, ScanMany, ScanOne
from drape.core.querier import ExecResult
from drape.core.rows import Row, Rows
from drape.core.settings import DrapeSettings
from drape.core.transaction import Transaction

__all__ = [
    # Facades
    "Database",
    "Transaction",
    "ExecResult",
    "connect",
    "connect_from_settings",
    # Context
    "QueryContext",
    "new_context",
    "background",
    # Hooks
    "HookRegistry",
    "Operation",
    "QueryDetails",
    "QueryHook",
    # Scanning
    "ScanOne",
    "ScanMany",
    "Row",
    "Rows",
    # Drivers
    "Driver",
    "IsolationLevel",
    "TransactionOptions",
    "get_driver",
    "register_driver",
    # Errors
    "DrapeError",
    "ConfigError",
    "UnknownDriverError",
    "InvalidConfigError",
    "DatabaseConnectionError",
    "DatabaseError",
    "QueryError",
    "NoRowsError",
    "ScanError",
    "TransactionError",
    "TransactionClosedError",
    "QueryCancelledError",
    "QueryTimeoutError",
    "is_no_rows",
    # Ambient
    "configure_logging",
    "get_logger",
    "DrapeSettings",
]
