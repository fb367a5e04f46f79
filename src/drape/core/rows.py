"""Result rows handed to scanners.

``Rows`` wraps a DB-API cursor and yields ``Row`` objects one at a time via
``fetchone()`` so a consumer that stops early never pulls the remaining rows.
``Row`` is a small immutable view with positional and by-name access.

Usage::

    with Rows(cursor) as rows:
        for row in rows:
            print(row["id"], row[1], row.as_dict())
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Any

from .protocols import DBAPICursor


class Row:
    """One result row: column names plus values."""

    __slots__ = ("_columns", "_values", "_index")

    def __init__(self, columns: Sequence[str], values: Sequence[Any]) -> None:
        self._columns = tuple(columns)
        self._values = tuple(values)
        self._index: dict[str, int] | None = None

    @property
    def columns(self) -> tuple[str, ...]:
        return self._columns

    @property
    def values(self) -> tuple[Any, ...]:
        return self._values

    def _position(self, name: str) -> int:
        if self._index is None:
            # First occurrence wins for duplicate column names.
            index: dict[str, int] = {}
            for pos, column in enumerate(self._columns):
                index.setdefault(column, pos)
            self._index = index
        try:
            return self._index[name]
        except KeyError:
            raise KeyError(f"no column named {name!r} (columns: {', '.join(self._columns)})") from None

    def __getitem__(self, key: int | str) -> Any:
        if isinstance(key, str):
            return self._values[self._position(key)]
        return self._values[key]

    def get(self, name: str, default: Any = None) -> Any:
        try:
            return self[name]
        except KeyError:
            return default

    def as_dict(self) -> dict[str, Any]:
        return dict(zip(self._columns, self._values, strict=False))

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Row):
            return self._columns == other._columns and self._values == other._values
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self._columns, self._values))

    def __repr__(self) -> str:
        return f"Row({self.as_dict()!r})"


class Rows:
    """Forward-only iterator of ``Row`` over a DB-API cursor."""

    def __init__(self, cursor: DBAPICursor) -> None:
        self._cursor = cursor
        description = cursor.description or ()
        self._columns = tuple(col[0] for col in description)
        self._closed = False

    @property
    def columns(self) -> tuple[str, ...]:
        return self._columns

    def next(self) -> Row | None:
        """Advance and return the next row, ``None`` when exhausted."""
        if self._closed:
            return None
        values = self._cursor.fetchone()
        if values is None:
            return None
        return Row(self._columns, values)

    def __iter__(self) -> Iterator[Row]:
        while (row := self.next()) is not None:
            yield row

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._cursor.close()

    def __enter__(self) -> Rows:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


__all__ = [
    "Row",
    "Rows",
]
