"""Driver registry and factory.

Manifesto:
    Callers name a driver by identifier (``"sqlite3"``, ``"postgres"``,
    ``"sqlalchemy"``), never by class. The registry maps identifiers to
    driver classes and ``get_driver()`` builds a fresh instance per
    connection.

Features:
    - ``DriverRegistry`` singleton with pre-registered defaults and aliases
    - ``register_driver()`` for custom / third-party drivers
    - ``get_driver()`` factory: identifier + options → driver instance

Tags:
    drape, database, registry, factory, singleton

Doc-Types:
    api-reference
"""

from __future__ import annotations

import threading
from typing import Any

from drape.core.errors import UnknownDriverError

from .base import Driver
from .postgresql import PostgreSQLDriver
from .sqlalchemy import SQLAlchemyDriver
from .sqlite import SQLiteDriver


class DriverRegistry:
    """
    Registry of driver classes keyed by identifier.

    Pre-registered drivers:
    - ``sqlite3`` / ``sqlite``: :class:`SQLiteDriver`
    - ``postgresql`` / ``postgres`` / ``psycopg2``: :class:`PostgreSQLDriver`
    - ``sqlalchemy``: :class:`SQLAlchemyDriver`
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._factories: dict[str, type[Driver]] = {}
        self._register_defaults()

    def _register_defaults(self) -> None:
        self._factories["sqlite3"] = SQLiteDriver
        self._factories["sqlite"] = SQLiteDriver  # Alias
        self._factories["postgresql"] = PostgreSQLDriver
        self._factories["postgres"] = PostgreSQLDriver  # Alias
        self._factories["psycopg2"] = PostgreSQLDriver  # Alias
        self._factories["sqlalchemy"] = SQLAlchemyDriver

    def register(self, name: str, driver_class: type[Driver]) -> None:
        """Register a driver class under ``name`` (replaces any existing entry)."""
        with self._lock:
            self._factories[name.lower()] = driver_class

    def create(self, name: str, **options: Any) -> Driver:
        """Create a driver instance by identifier."""
        key = name.lower()
        with self._lock:
            factory = self._factories.get(key)
        if factory is None:
            raise UnknownDriverError(name, self.list_drivers())
        return factory(**options)

    def list_drivers(self) -> list[str]:
        """List registered driver identifiers."""
        with self._lock:
            return sorted(self._factories.keys())


# Global registry
driver_registry = DriverRegistry()


def get_driver(name: str, **options: Any) -> Driver:
    """
    Get a driver instance by identifier.

    Usage:
        driver = get_driver("sqlite3", timeout=2.0)
        driver = get_driver("sqlalchemy", pool_size=10)
    """
    return driver_registry.create(name, **options)


def register_driver(name: str, driver_class: type[Driver]) -> None:
    """Register a driver class in the global registry."""
    driver_registry.register(name, driver_class)


__all__ = [
    "DriverRegistry",
    "driver_registry",
    "get_driver",
    "register_driver",
]
