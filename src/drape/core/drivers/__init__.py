"""Database drivers -- the seam between the facade and DB-API modules.

Manifesto:
    The facade is driver-agnostic. Each driver knows how to open a PEP 249
    connection, start and finish a transaction with the requested options,
    interrupt a running statement, and recognise its own exceptions.

    Each driver is **import-guarded** where its DB-API module is optional:
    the module is only required at ``open()`` time. Install the extra::

        pip install drape[postgresql]   # psycopg2-binary
        pip install drape[sqlalchemy]   # SQLAlchemy URLs

Architecture::

    Driver (base.py)               Abstract base: open/ping/begin/commit/...
        |-- SQLiteDriver           stdlib sqlite3 (always available)
        |-- PostgreSQLDriver       psycopg2 (optional)
        |-- SQLAlchemyDriver       any SQLAlchemy URL (optional)

    DriverRegistry (registry.py)   Singleton: identifier -> driver class
    TransactionOptions (types.py)  Isolation level + read-only flag

Modules
-------
base            Abstract Driver base class
types           IsolationLevel enum + TransactionOptions
registry        DriverRegistry singleton + get_driver() factory
sqlite          SQLite driver (stdlib)
postgresql      PostgreSQL driver (requires psycopg2)
sqlalchemy      SQLAlchemy engine driver (requires sqlalchemy)

Guardrails:
    ❌ Importing optional drivers at module scope
    ✅ Import-guarded at ``open()`` time with clear ``ConfigError``
    ❌ ``driver = SQLiteDriver()`` in application code
    ✅ ``db = connect("sqlite3", "app.db")``

Tags:
    drape, database, drivers, import-guarded, registry-pattern

Doc-Types:
    package-overview, module-index
"""

from .base import Driver
from .postgresql import PostgreSQLDriver
from .registry import DriverRegistry, driver_registry, get_driver, register_driver
from .sqlalchemy import SQLAlchemyDriver
from .sqlite import SQLiteDriver
from .types import IsolationLevel, TransactionOptions

__all__ = [
    # Types
    "IsolationLevel",
    "TransactionOptions",
    # Base class
    "Driver",
    # Implementations
    "SQLiteDriver",
    "PostgreSQLDriver",
    "SQLAlchemyDriver",
    # Registry
    "DriverRegistry",
    "driver_registry",
    "get_driver",
    "register_driver",
]
