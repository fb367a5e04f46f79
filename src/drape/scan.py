"""Ready-made row scanners.

The facade treats scanning as an opaque capability: ``fetch_one`` needs a
``ScanOne`` (``scan_row``) and ``fetch_many`` a ``ScanMany``
(``scan_append_row``). These classes cover the common destinations so
callers only write a scanner when they need a custom shape.

=====================  =========================  ===========================
Destination            Single row (``ScanOne``)   Many rows (``ScanMany``)
=====================  =========================  ===========================
first column value     ``ScalarScanner``          ``ScalarListScanner``
``dict``               ``DictScanner``            ``DictListScanner``
pydantic model         ``ModelScanner``           ``ModelListScanner``
any callable           --                         ``RowCallbackScanner``
=====================  =========================  ===========================

Usage::

    class User(BaseModel):
        id: int
        name: str

    users = ModelListScanner(User)
    db.fetch_many(ctx, users, "SELECT id, name FROM users")
    users.items  # [User(id=1, name='ada'), ...]

Pydantic validation failures are raised as ``ScanError`` so they reach hooks
and callers with the rest of the taxonomy.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from drape.core.errors import ScanError
from drape.core.rows import Row

M = TypeVar("M", bound=BaseModel)


def _first_column(row: Row) -> Any:
    if len(row) == 0:
        raise ScanError("row has no columns")
    return row[0]


class ScalarScanner:
    """Keeps the first column of the row."""

    def __init__(self) -> None:
        self.value: Any = None

    def scan_row(self, row: Row) -> None:
        self.value = _first_column(row)


class ScalarListScanner:
    """Appends the first column of each row."""

    def __init__(self) -> None:
        self.values: list[Any] = []

    def scan_append_row(self, row: Row) -> None:
        self.values.append(_first_column(row))


class DictScanner:
    """Keeps the row as a ``dict`` keyed by column name."""

    def __init__(self) -> None:
        self.value: dict[str, Any] | None = None

    def scan_row(self, row: Row) -> None:
        self.value = row.as_dict()


class DictListScanner:
    """Appends each row as a ``dict``."""

    def __init__(self) -> None:
        self.items: list[dict[str, Any]] = []

    def scan_append_row(self, row: Row) -> None:
        self.items.append(row.as_dict())

    def __len__(self) -> int:
        return len(self.items)


def _validate(model: type[M], row: Row) -> M:
    try:
        return model.model_validate(row.as_dict())
    except PydanticValidationError as exc:
        raise ScanError(
            f"row does not match {model.__name__}: {exc.error_count()} validation error(s)",
            cause=exc,
        ) from exc


class ModelScanner(Generic[M]):
    """Validates the row into a pydantic model."""

    def __init__(self, model: type[M]) -> None:
        self.model = model
        self.value: M | None = None

    def scan_row(self, row: Row) -> None:
        self.value = _validate(self.model, row)


class ModelListScanner(Generic[M]):
    """Validates each row into a pydantic model and appends it."""

    def __init__(self, model: type[M]) -> None:
        self.model = model
        self.items: list[M] = []

    def scan_append_row(self, row: Row) -> None:
        self.items.append(_validate(self.model, row))

    def __len__(self) -> int:
        return len(self.items)


class RowCallbackScanner:
    """Adapts a plain callable to ``ScanMany``; streams rows without buffering."""

    def __init__(self, callback: Callable[[Row], None]) -> None:
        self._callback = callback
        self.count = 0

    def scan_append_row(self, row: Row) -> None:
        self._callback(row)
        self.count += 1


__all__ = [
    "ScalarScanner",
    "ScalarListScanner",
    "DictScanner",
    "DictListScanner",
    "ModelScanner",
    "ModelListScanner",
    "RowCallbackScanner",
]
