"""
Shared pytest fixtures and configuration for drape tests.

This module provides:
- An in-memory SQLite ``Database`` seeded with a small ``users`` table
- A recording hook that keeps every (ctx, details, error) it receives
- Recording / failing row scanners

Usage:
    Fixtures are auto-discovered by pytest::

        def test_something(db, recorder):
            db.register_hook(recorder)
            ...
"""

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Generator

import pytest
import structlog

# Ensure drape package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from drape import Database, QueryContext, QueryDetails, Row, connect


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)

        if "integration" in str(test_path):
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Fakes
# =============================================================================


@dataclass
class HookCall:
    ctx: QueryContext
    details: QueryDetails
    error: BaseException | None


class RecordingHook:
    """Hook that keeps every invocation, in order."""

    def __init__(self) -> None:
        self.calls: list[HookCall] = []

    def __call__(self, ctx: QueryContext, details: QueryDetails, error: BaseException | None) -> None:
        self.calls.append(HookCall(ctx, details, error))

    @property
    def last(self) -> HookCall:
        return self.calls[-1]

    def __len__(self) -> int:
        return len(self.calls)


class RecordingScanner:
    """ScanOne + ScanMany that keeps the rows it was given."""

    def __init__(self, fail_on: int | None = None, exc: BaseException | None = None) -> None:
        self.rows: list[Row] = []
        self.calls = 0
        self._fail_on = fail_on
        self._exc = exc or ValueError("cannot convert column")

    def _consume(self, row: Row) -> None:
        self.calls += 1
        if self._fail_on is not None and self.calls == self._fail_on:
            raise self._exc
        self.rows.append(row)

    def scan_row(self, row: Row) -> None:
        self._consume(row)

    def scan_append_row(self, row: Row) -> None:
        self._consume(row)


# =============================================================================
# Fixtures
# =============================================================================


USERS = [
    ("ada", 36),
    ("grace", 45),
    ("linus", 28),
]


@pytest.fixture
def db() -> Generator[Database, None, None]:
    """In-memory SQLite database with an empty ``users`` table."""
    database = connect("sqlite3", ":memory:")
    database.execute(None, "CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT NOT NULL, age INTEGER)")
    yield database
    database.close()


@pytest.fixture
def seeded_db(db: Database) -> Database:
    """``db`` with three users: ada (1), grace (2), linus (3)."""
    for name, age in USERS:
        db.execute(None, "INSERT INTO users (name, age) VALUES (?, ?)", name, age)
    return db


@pytest.fixture
def recorder() -> RecordingHook:
    return RecordingHook()


@pytest.fixture
def make_recorder():
    """Factory for additional recording hooks."""
    return RecordingHook


@pytest.fixture
def make_scanner():
    """Factory: ``make_scanner(fail_on=2, exc=...)``."""
    return RecordingScanner


@pytest.fixture
def clean_structlog() -> Generator[None, None, None]:
    """Reset structlog global config before and after a test."""
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
