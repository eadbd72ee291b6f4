"""
Structured error types for mms.

Every failure the core can report is a subclass of :class:`MmsError`.
Errors carry a category, a retry hint, structured context, and the
underlying cause, so the ops layer can turn them into result codes and
the API into problem documents without string matching.

Manifesto:
    - **Typed hierarchy:** validation, lookup, materialization, conflict
      and transaction failures are distinct types, never a bare Exception
    - **Actionable:** a MaterializationError names every missing attribute,
      a TransactionFailure carries the statements that were about to run
    - **Chained:** the driver exception is kept as ``cause``

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                          MmsError                             │
        │        (category, retryable, context, cause)                  │
        ├──────────────────────────────────────────────────────────────┤
        │  ValidationError        NotFoundError      MaterializationError│
        │  (VALIDATION, errors)   (NOT_FOUND)        (SCHEMA, missing)   │
        │                                                                │
        │  ConflictError          TransactionFailure                     │
        │  (DATABASE, detail)     (DATABASE, statements, executed)       │
        │       │                                                        │
        │  ApplyLockedError                                              │
        └──────────────────────────────────────────────────────────────┘

Examples:
    >>> err = MaterializationError(["serial_no"], type_key="machine")
    >>> err.missing
    ['serial_no']
    >>> err.to_dict()["category"]
    'SCHEMA'

Tags:
    error-handling, exception-hierarchy, mms-core
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories used for routing and reporting."""

    VALIDATION = "VALIDATION"  # Malformed input, type mismatch
    NOT_FOUND = "NOT_FOUND"  # Unknown tenant, type, table or row
    SCHEMA = "SCHEMA"  # Declared but not materialized
    DATABASE = "DATABASE"  # Constraint violations, failed transactions
    INTERNAL = "INTERNAL"  # Bugs, unexpected state


@dataclass
class ErrorContext:
    """Structured metadata attached to an error.

    Attributes:
        tenant_id: Tenant the failing call was scoped to.
        type_key: Logical type key, when the call targeted one.
        table: Physical table name, when one was resolved.
        row_id: Primary key of the targeted row.
        metadata: Any further key/value pairs.
    """

    tenant_id: int | None = None
    type_key: str | None = None
    table: str | None = None
    row_id: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result: dict[str, Any] = {}
        for key in ("tenant_id", "type_key", "table", "row_id"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class MmsError(Exception):
    """Base exception for all mms errors.

    Subclasses set ``default_category`` and ``default_retryable``.  The
    ``code`` class attribute is the machine-readable identifier the ops
    layer reports (``NOT_FOUND``, ``CONFLICT``, ...).
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False
    code: str = "INTERNAL"

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> MmsError:
        """Add context to this error (fluent API).

        Usage:
            raise NotFoundError("Unknown type").with_context(
                tenant_id=7, type_key="machine"
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def details(self) -> dict[str, Any]:
        """Extra payload surfaced to callers alongside the message."""
        return {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        result.update(self.details())
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# VALIDATION / LOOKUP
# =============================================================================


@dataclass(frozen=True, slots=True)
class FieldError:
    """A single validation problem, addressed by a dotted path."""

    field: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


class ValidationError(MmsError):
    """Malformed structure, missing required field, or type mismatch.

    Raised before any persistence or DDL happens.
    """

    default_category = ErrorCategory.VALIDATION
    code = "VALIDATION_FAILED"

    def __init__(
        self,
        message: str,
        *,
        errors: list[FieldError] | None = None,
        field: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.errors: list[FieldError] = list(errors or [])
        if field is not None and not self.errors:
            self.errors.append(FieldError(field=field, message=message))

    @property
    def fields(self) -> list[str]:
        return [e.field for e in self.errors]

    def details(self) -> dict[str, Any]:
        if not self.errors:
            return {}
        return {"errors": [e.to_dict() for e in self.errors]}


class NotFoundError(MmsError):
    """Unknown tenant, unknown type key, unresolved table, or missing row."""

    default_category = ErrorCategory.NOT_FOUND
    code = "NOT_FOUND"


class MaterializationError(MmsError):
    """Declared attributes have no physical column yet.

    The declaration is fine; the physical schema is stale.  Re-running the
    schema apply resolves it.
    """

    default_category = ErrorCategory.SCHEMA
    code = "NOT_MATERIALIZED"

    def __init__(self, missing: list[str], *, type_key: str | None = None, **kwargs: Any):
        self.missing = list(missing)
        message = (
            f"Attributes not materialized: {', '.join(self.missing)}. "
            "Run schema apply for this tenant."
        )
        super().__init__(message, **kwargs)
        if type_key is not None:
            self.context.type_key = type_key

    def details(self) -> dict[str, Any]:
        return {"missing": list(self.missing)}


# =============================================================================
# DATABASE
# =============================================================================


class ConflictError(MmsError):
    """A constraint violation or a competing writer.

    ``detail`` carries the database's own message, uninterpreted.
    """

    default_category = ErrorCategory.DATABASE
    code = "CONFLICT"

    def __init__(self, message: str, *, detail: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.detail = detail

    def details(self) -> dict[str, Any]:
        return {"detail": self.detail} if self.detail else {}


class ApplyLockedError(ConflictError):
    """Another schema apply holds the tenant's lock."""

    default_retryable = True
    code = "LOCKED"


class TransactionFailure(MmsError):
    """A multi-statement operation failed and was rolled back.

    ``statements`` is the full list that was about to run; ``executed`` the
    prefix that had been sent before the failure.  Neither is guaranteed to
    be applied.
    """

    default_category = ErrorCategory.DATABASE
    code = "TRANSACTION_FAILED"

    def __init__(
        self,
        message: str,
        *,
        statements: list[str] | None = None,
        executed: list[str] | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.statements = list(statements or [])
        self.executed = list(executed or [])

    def details(self) -> dict[str, Any]:
        return {"statements": list(self.statements), "executed": list(self.executed)}


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "MmsError",
    "FieldError",
    "ValidationError",
    "NotFoundError",
    "MaterializationError",
    "ConflictError",
    "ApplyLockedError",
    "TransactionFailure",
]
