"""Tests for ``drape.core.rows`` - Row and Rows."""

from __future__ import annotations

import sqlite3

import pytest

from drape import Row, Rows


class FakeCursor:
    def __init__(self, columns, rows):
        self.description = [(name, None, None, None, None, None, None) for name in columns]
        self._rows = list(rows)
        self.fetches = 0
        self.closed = False

    def fetchone(self):
        self.fetches += 1
        return self._rows.pop(0) if self._rows else None

    def close(self):
        self.closed = True


class TestRow:
    def test_positional_and_named_access(self):
        row = Row(("id", "name"), (1, "ada"))
        assert row[0] == 1
        assert row["name"] == "ada"
        assert row[-1] == "ada"
        assert len(row) == 2
        assert list(row) == [1, "ada"]

    def test_unknown_column(self):
        row = Row(("id",), (1,))
        with pytest.raises(KeyError, match="no column named 'email'"):
            row["email"]
        assert row.get("email", "n/a") == "n/a"

    def test_duplicate_columns_first_wins(self):
        row = Row(("id", "id"), (1, 2))
        assert row["id"] == 1

    def test_as_dict(self):
        assert Row(("id", "name"), (1, "ada")).as_dict() == {"id": 1, "name": "ada"}

    def test_equality_and_hash(self):
        a = Row(("id",), (1,))
        b = Row(["id"], [1])
        assert a == b
        assert hash(a) == hash(b)
        assert a != Row(("id",), (2,))

    def test_repr(self):
        assert repr(Row(("id",), (1,))) == "Row({'id': 1})"


class TestRows:
    def test_iterates_lazily(self):
        cursor = FakeCursor(["id"], [(1,), (2,), (3,)])
        rows = Rows(cursor)
        assert rows.columns == ("id",)

        first = rows.next()

        assert first["id"] == 1
        assert cursor.fetches == 1

    def test_iteration_until_exhausted(self):
        rows = Rows(FakeCursor(["id", "name"], [(1, "ada"), (2, "grace")]))
        assert [row.as_dict() for row in rows] == [
            {"id": 1, "name": "ada"},
            {"id": 2, "name": "grace"},
        ]
        assert rows.next() is None

    def test_close_is_idempotent(self):
        cursor = FakeCursor(["id"], [(1,)])
        with Rows(cursor) as rows:
            rows.close()
        assert cursor.closed is True
        assert rows.next() is None

    def test_statement_without_description(self):
        cursor = FakeCursor([], [])
        cursor.description = None
        assert Rows(cursor).columns == ()

    def test_over_sqlite_cursor(self):
        conn = sqlite3.connect(":memory:")
        cursor = conn.execute("SELECT 1 AS a, 'x' AS b")
        with Rows(cursor) as rows:
            assert [row.as_dict() for row in rows] == [{"a": 1, "b": "x"}]
        conn.close()
