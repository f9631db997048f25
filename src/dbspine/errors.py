"""
Structured error types for dbspine.

Every failure that crosses the facade boundary is one of the types below.
Configuration problems are raised before any I/O; engine failures wrap the
engine's own diagnostic message and numeric code without altering them.

Manifesto:
    - **Typed Error Hierarchy:** Config, database and validation errors are distinct
    - **Explicit Retry Semantics:** Each error knows if it's retryable
    - **Rich Context:** Errors carry driver/table/statement for logging
    - **Error Chaining:** The engine exception is always kept as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                       DbSpineError                              │
        │  (category, retryable, code, context, cause)                    │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                 │
        │  ConfigError          DatabaseError          ValidationError    │
        │  (CONFIG)             (DATABASE)             (VALIDATION)       │
        │       │                    │                                    │
        │  MissingConfigError   DatabaseConnectionError                   │
        │  InvalidConfigError   QueryError                                │
        │                          └── IntegrityError                     │
        └─────────────────────────────────────────────────────────────────┘

Guardrails:
    ❌ DON'T: Swallow the engine exception
    ✅ DO: Pass it as cause= so message and code survive

    ❌ DON'T: Put passwords into ErrorContext
    ✅ DO: Record driver, table and statement only

Usage:
    from dbspine.errors import DatabaseError

    try:
        db.query("UPDATE users SET name = ? WHERE id = ?", ["Ada", 1])
    except DatabaseError as e:
        log.error("update_failed", **e.to_dict())
"""


from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Self

# Long statements are cut in error payloads so a bulk INSERT does not flood logs
_STATEMENT_PREVIEW = 200


class ErrorCategory(str, Enum):
    """Where an error came from, for routing and dashboards."""

    DATABASE = "DATABASE"         # engine rejected a connection, statement or reflection
    CONFIG = "CONFIG"             # driver selection, missing parameters
    VALIDATION = "VALIDATION"     # unusable structured input
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Where in the facade an error happened.

    Attributes:
        driver: Driver kind the facade was opened with
        table: Table the operation targeted, if any
        statement: SQL text that failed, if any
        metadata: Anything else worth logging
    """

    driver: str | None = None
    table: str | None = None
    statement: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data = {k: v for k, v in asdict(self).items() if k != "metadata" and v is not None}
        statement = data.get("statement")
        if statement and len(statement) > _STATEMENT_PREVIEW:
            data["statement"] = statement[:_STATEMENT_PREVIEW] + "..."
        data.update(self.metadata)
        return data


class DbSpineError(Exception):
    """
    Base exception for all dbspine errors.

    Subclasses set ``default_category`` and ``default_retryable``; callers
    may override either per instance. ``code`` holds the engine's native
    error code when there is one.

    Examples:
        >>> error = DbSpineError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.retryable
        False
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        code: int | str | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = self.default_retryable if retryable is None else retryable
        self.code = code
        self.context = context or ErrorContext()
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> Self:
        """
        Attach context and return the same error, for ``raise ... .with_context()``.

        ``driver``, ``table`` and ``statement`` fill the matching
        :class:`ErrorContext` fields; other keys go to ``metadata``. ``None``
        values are ignored so callers can pass optional context unconditionally.
        """
        known = {"driver", "table", "statement"}
        for key, value in kwargs.items():
            if value is None:
                continue
            if key in known:
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Serializable form, suitable as structlog keyword arguments."""
        result: dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        if self.code is not None:
            result["code"] = self.code
        if context := self.context.to_dict():
            result["context"] = context
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(DbSpineError):
    """Bad driver or parameters; raised before any engine is touched. Never retryable."""

    default_category = ErrorCategory.CONFIG


class MissingConfigError(ConfigError):
    """A parameter the chosen driver needs was not given."""

    def __init__(self, key: str, message: str | None = None):
        self.key = key
        super().__init__(message or f"Missing required configuration: {key}")


class InvalidConfigError(ConfigError):
    """A parameter was given but cannot be used."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}")


# =============================================================================
# DATABASE ERRORS
# =============================================================================


class DatabaseError(DbSpineError):
    """The engine failed; ``message`` and ``code`` are the engine's own."""

    default_category = ErrorCategory.DATABASE


class DatabaseConnectionError(DatabaseError):
    """Connection parameters rejected (bad credentials, unreachable host, bad path)."""

    default_retryable = True


class QueryError(DatabaseError):
    """A statement or a schema metadata call failed."""


class IntegrityError(QueryError):
    """Constraint violation: duplicate key, foreign key, NOT NULL."""


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(DbSpineError):
    """Structured input (rows, criteria, parameters) that cannot become a statement."""

    default_category = ErrorCategory.VALIDATION

    def __init__(self, message: str, *, field: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.field = field

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        return result


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: BaseException) -> bool:
    """True for dbspine errors flagged retryable and for OS-level connection failures."""
    if isinstance(error, DbSpineError):
        return error.retryable
    return isinstance(error, (ConnectionError, TimeoutError))


def categorize_error(error: BaseException) -> ErrorCategory:
    """Map any exception onto an :class:`ErrorCategory`."""
    match error:
        case DbSpineError():
            return error.category
        case ConnectionError() | TimeoutError():
            return ErrorCategory.DATABASE
        case LookupError() | ImportError():
            return ErrorCategory.CONFIG
        case TypeError() | ValueError():
            return ErrorCategory.VALIDATION
        case _:
            return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "DbSpineError",
    "ConfigError",
    "MissingConfigError",
    "InvalidConfigError",
    "DatabaseError",
    "DatabaseConnectionError",
    "QueryError",
    "IntegrityError",
    "ValidationError",
    "is_retryable",
    "categorize_error",
]
