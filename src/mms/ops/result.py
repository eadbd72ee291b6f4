"""
Operation result envelope.

Every operation returns an :class:`OperationResult` instead of raising.
Success carries the payload plus non-fatal *warnings* (planner notes,
missing metadata tables); failure carries an :class:`OperationError`
whose ``code`` the API maps to an HTTP status and the CLI prints.

Core components raise :class:`~mms.core.errors.MmsError`; ops convert it
with :func:`fail_from_error` so the code, category and details (field
errors, missing attributes, statements that would have run) survive.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from mms.core.errors import ErrorCategory, MmsError

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class OperationError:
    """Why an operation failed.

    Attributes:
        code: ``VALIDATION_FAILED``, ``NOT_FOUND``, ``NOT_MATERIALIZED``,
            ``CONFLICT``, ``LOCKED``, ``TRANSACTION_FAILED`` or ``INTERNAL``.
        message: Human-readable description.
        category: Category of the originating core error, if any.
        details: ``errors``, ``missing``, ``detail``, ``statements`` and
            ``context`` as the core error supplied them.
        retryable: Whether retrying unchanged may succeed (a busy apply lock).
    """

    code: str
    message: str
    category: ErrorCategory | None = None
    details: dict[str, Any] = field(default_factory=dict)
    retryable: bool = False


@dataclass
class OperationResult(Generic[T]):
    """Envelope returned by every operation function.

    Build with :meth:`ok` and :meth:`fail`.
    """

    success: bool
    data: T | None = None
    error: OperationError | None = None
    warnings: list[str] = field(default_factory=list)
    elapsed_ms: float = 0.0

    @classmethod
    def ok(
        cls,
        data: T,
        *,
        warnings: list[str] | None = None,
        elapsed_ms: float = 0.0,
    ) -> OperationResult[T]:
        return cls(success=True, data=data, warnings=warnings or [], elapsed_ms=elapsed_ms)

    @classmethod
    def fail(
        cls,
        code: str,
        message: str,
        *,
        category: ErrorCategory | None = None,
        details: dict[str, Any] | None = None,
        retryable: bool = False,
        elapsed_ms: float = 0.0,
    ) -> OperationResult[T]:
        return cls(
            success=False,
            error=OperationError(
                code=code,
                message=message,
                category=category,
                details=details or {},
                retryable=retryable,
            ),
            elapsed_ms=elapsed_ms,
        )


@dataclass
class PagedResult(OperationResult[list[T]]):
    """One page of rows or versions, newest first.

    ``limit`` is the effective (clamped) limit, not the requested one.
    """

    total: int = 0
    limit: int = 0
    offset: int = 0
    has_more: bool = False

    @classmethod
    def from_items(
        cls,
        items: list[T],
        total: int,
        *,
        limit: int,
        offset: int = 0,
        elapsed_ms: float = 0.0,
    ) -> PagedResult[T]:
        return cls(
            success=True,
            data=items,
            total=total,
            limit=limit,
            offset=offset,
            has_more=(offset + len(items)) < total,
            elapsed_ms=elapsed_ms,
        )


def fail_from_error(
    exc: MmsError,
    *,
    elapsed_ms: float = 0.0,
    result_cls: type[OperationResult[Any]] = OperationResult,
) -> OperationResult[Any]:
    """Failed result carrying a core error's code, category and details."""
    details = exc.details()
    context = exc.context.to_dict()
    if context:
        details = {**details, "context": context}
    return result_cls.fail(
        exc.code,
        exc.message,
        category=exc.category,
        details=details,
        retryable=exc.retryable,
        elapsed_ms=elapsed_ms,
    )


class _Timer:
    __slots__ = ("_start",)

    def __init__(self) -> None:
        self._start = time.perf_counter()

    @property
    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self._start) * 1000


def start_timer() -> _Timer:
    """Stopwatch for ``elapsed_ms``."""
    return _Timer()
