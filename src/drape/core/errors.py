"""
Structured error types for drape.

Every failure the facade surfaces is one of the types below. Callers branch
on the *type* (``isinstance``), never on the message, and hooks receive the
same exception instance the caller sees.

Manifesto:
    - **Typed taxonomy:** connect, query, no-rows, scan and transaction
      failures are distinct classes
    - **No recovery:** drape never retries; ``retryable`` is advisory
      metadata for the caller's own policy
    - **Chaining:** driver exceptions are kept as ``cause`` / ``__cause__``
    - **"Not found" is not a failure:** ``NoRowsError`` is a normal outcome
      of ``fetch_one`` and is kept apart from ``QueryError``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                         DrapeError                               │
        │  (category, retryable, context, cause)                          │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  ConfigError          DatabaseConnectionError   ContextError     │
        │  (CONFIG)             (CONNECTION, retryable)   (CONTEXT)        │
        │       │                                              │           │
        │  UnknownDriverError                       QueryCancelledError    │
        │  InvalidConfigError                       QueryTimeoutError      │
        │                                                                  │
        │  DatabaseError (DATABASE)                                        │
        │       │                                                          │
        │  QueryError   NoRowsError   ScanError   TransactionError         │
        │                                              │                   │
        │                                    TransactionClosedError        │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    >>> try:
    ...     db.fetch_one(ctx, dest, "SELECT * FROM users WHERE id = ?", 42)
    ... except NoRowsError:
    ...     user = None

    >>> err = QueryError("syntax error", cause=driver_exc)
    >>> err.to_dict()["category"]
    'DATABASE'

Guardrails:
    ❌ DON'T: ``if "no rows" in str(exc)``
    ✅ DO: ``except NoRowsError`` or ``is_no_rows(exc)``

    ❌ DON'T: Swallow the driver exception when wrapping
    ✅ DO: Pass it as ``cause=`` and ``raise ... from exc``

Tags:
    error-handling, exception-hierarchy, database, drape

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    CONNECTION = "CONNECTION"     # Open, ping, pool exhaustion
    DATABASE = "DATABASE"         # Query, scan, transaction failures
    CONTEXT = "CONTEXT"           # Cancellation, deadlines
    CONFIG = "CONFIG"             # Unknown driver, invalid settings
    INTERNAL = "INTERNAL"         # Bugs, unexpected state
    UNKNOWN = "UNKNOWN"           # Uncategorized errors


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Only the fields relevant to a failure are set; ``to_dict()`` drops the
    rest so log lines stay short.

    Attributes:
        driver: Driver identifier the facade was opened with
        operation: Logical operation (``fetch_one``, ``fetch_many``, ``execute``)
        query: Query text that failed
        request_id: ``QueryContext.request_id`` of the failing call
        metadata: Additional key-value pairs
    """

    driver: str | None = None
    operation: str | None = None
    query: str | None = None
    request_id: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["driver", "operation", "query", "request_id"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class DrapeError(Exception):
    """
    Base exception for all drape errors.

    Subclasses set ``default_category`` and ``default_retryable`` so that the
    common case needs only a message::

        raise QueryError(f"query failed: {exc}", cause=exc) from exc

    Attributes:
        message: Human readable message
        category: ErrorCategory for routing
        retryable: Advisory flag; drape itself never retries
        context: ErrorContext with structured metadata
        cause: The wrapped exception, if any
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> DrapeError:
        """
        Add context to this error (fluent API).

        Usage:
            raise QueryError("failed").with_context(driver="sqlite3", query=sql)
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = repr(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(DrapeError):
    """
    Configuration error.

    Never retryable - configuration must be fixed.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class UnknownDriverError(ConfigError):
    """No driver is registered under the requested identifier."""

    def __init__(self, name: str, available: list[str] | None = None):
        self.driver_name = name
        self.available = available or []
        message = f"Unknown database driver: {name!r}"
        if self.available:
            message += f" (available: {', '.join(self.available)})"
        super().__init__(message)


class InvalidConfigError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}")


# =============================================================================
# CONNECTION ERRORS
# =============================================================================


class DatabaseConnectionError(DrapeError):
    """Opening the connection or its liveness check failed."""

    default_category = ErrorCategory.CONNECTION
    default_retryable = True


# =============================================================================
# CONTEXT ERRORS
# =============================================================================


class ContextError(DrapeError):
    """The caller's QueryContext ended before the operation completed."""

    default_category = ErrorCategory.CONTEXT
    default_retryable = False


class QueryCancelledError(ContextError):
    """The QueryContext was cancelled."""

    def __init__(self, message: str = "query context cancelled", **kwargs: Any):
        super().__init__(message, **kwargs)


class QueryTimeoutError(ContextError):
    """The QueryContext deadline passed."""

    default_retryable = True

    def __init__(self, message: str = "query context deadline exceeded", **kwargs: Any):
        super().__init__(message, **kwargs)


# =============================================================================
# DATABASE ERRORS
# =============================================================================


class DatabaseError(DrapeError):
    """Query, scan or transaction error."""

    default_category = ErrorCategory.DATABASE
    default_retryable = False


class QueryError(DatabaseError):
    """The driver rejected or failed a query/execute call."""

    pass


class NoRowsError(DatabaseError):
    """``fetch_one`` matched no rows.

    A normal outcome in most callers; distinguishable from ``QueryError`` by
    type.
    """

    def __init__(self, message: str = "no rows in result set", **kwargs: Any):
        super().__init__(message, **kwargs)


class ScanError(DatabaseError):
    """A row scanner failed to consume a row."""

    pass


class TransactionError(DatabaseError):
    """Begin, commit or rollback failed at the driver level."""

    pass


class TransactionClosedError(TransactionError):
    """The transaction was already committed or rolled back."""

    def __init__(self, message: str = "transaction has already been committed or rolled back", **kwargs: Any):
        super().__init__(message, **kwargs)


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_no_rows(error: BaseException | None) -> bool:
    """Check whether an outcome is the distinguished "no rows" result."""
    return isinstance(error, NoRowsError)


def is_retryable(error: BaseException) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, DrapeError):
        return error.retryable
    return isinstance(error, (ConnectionError, TimeoutError))


def categorize_error(error: BaseException) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, DrapeError):
        return error.category
    if isinstance(error, (ConnectionError, OSError)):
        return ErrorCategory.CONNECTION
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "DrapeError",
    # Config
    "ConfigError",
    "UnknownDriverError",
    "InvalidConfigError",
    # Connection
    "DatabaseConnectionError",
    # Context
    "ContextError",
    "QueryCancelledError",
    "QueryTimeoutError",
    # Database
    "DatabaseError",
    "QueryError",
    "NoRowsError",
    "ScanError",
    "TransactionError",
    "TransactionClosedError",
    # Utilities
    "is_no_rows",
    "is_retryable",
    "categorize_error",
]
