"""Driver-level types: transaction options and isolation levels."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class IsolationLevel(str, Enum):
    """Standard SQL isolation levels."""

    READ_UNCOMMITTED = "READ UNCOMMITTED"
    READ_COMMITTED = "READ COMMITTED"
    REPEATABLE_READ = "REPEATABLE READ"
    SERIALIZABLE = "SERIALIZABLE"


@dataclass(frozen=True)
class TransactionOptions:
    """
    Options for ``Database.begin()``.

    ``isolation=None`` means the driver's default level. Drivers raise
    ``TransactionError`` for levels they cannot honour rather than silently
    downgrading.
    """

    isolation: IsolationLevel | None = None
    read_only: bool = False


__all__ = [
    "IsolationLevel",
    "TransactionOptions",
]
