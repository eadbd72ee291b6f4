"""
Common API schemas: shared envelopes and RFC 7807 errors.

Every endpoint returns either :class:`SuccessResponse` (200/201)
or :class:`ProblemDetail` (4xx/5xx).  Paged endpoints embed
:class:`PageMeta` alongside the item list.

Response Envelope Conventions:
    - All 2xx responses use ``SuccessResponse[T]`` or ``PagedResponse[T]``
    - All 4xx/5xx responses use ``ProblemDetail`` (RFC 7807)
    - ``elapsed_ms`` tracks server-side processing time
    - ``warnings`` carries planner notes and other non-fatal issues

Doc-Types: API_REFERENCE
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


# ── RFC 7807 Problem Detail ─────────────────────────────────────────────


class ErrorDetail(BaseModel):
    """Field-level error detail.

    UI Hints:
        Display field errors next to the matching form input.
    """

    code: str = Field(default="INVALID", description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    field: str | None = Field(default=None, description="Dotted field path if error is field-specific")


class ProblemDetail(BaseModel):
    """RFC 7807 «Problem Details for HTTP APIs».

    Error Codes:
        - ``VALIDATION_FAILED`` (422): Malformed structure or payload
        - ``UNAUTHORIZED`` (401): Missing or wrong ``X-API-Key``
        - ``NOT_FOUND`` (404): Unknown tenant, type, table or row
        - ``NOT_MATERIALIZED`` (422): Declared attributes lack columns; apply the schema
        - ``CONFLICT`` (409): Constraint violation (duplicate name, referenced row)
        - ``LOCKED`` (423): A schema apply for the tenant is in progress
        - ``TRANSACTION_FAILED`` (500): Apply rolled back; ``context.statements`` lists the plan
        - ``INTERNAL`` (500): Unexpected server error

    Example:
        {
            "type": "about:blank",
            "title": "Attributes not materialized: serial. Run schema apply for this tenant.",
            "status": 422,
            "code": "NOT_MATERIALIZED",
            "instance": "/api/v1/tenants/7/data/machine",
            "errors": [],
            "context": {"missing": ["serial"], "type_key": "machine"}
        }
    """

    type: str = Field(default="about:blank", description="Error type URI (usually 'about:blank')")
    title: str = Field(description="Short human-readable error summary")
    status: int = Field(description="HTTP status code")
    detail: str = Field(default="", description="Human-readable explanation of the error")
    instance: str = Field(default="", description="URI of the failing request")
    code: str | None = Field(default=None, description="Machine-readable error code")
    errors: list[ErrorDetail] = Field(
        default_factory=list,
        description="List of field-level error details",
    )
    context: dict[str, Any] = Field(
        default_factory=dict,
        description="Structured context (missing attributes, statements, tenant, type)",
    )


# ── Success Envelopes ────────────────────────────────────────────────────


class PageMeta(BaseModel):
    """Pagination metadata for list responses."""

    total: int = Field(description="Total items across all pages")
    limit: int = Field(description="Items per page (effective, after clamping)")
    offset: int = Field(description="Current offset (0-based)")
    has_more: bool = Field(description="True if more pages exist after current")

    @classmethod
    def from_result(cls, total: int, limit: int, offset: int) -> PageMeta:
        return cls(total=total, limit=limit, offset=offset, has_more=(offset + limit) < total)


class SuccessResponse(BaseModel, Generic[T]):
    """Standard success envelope for single-item responses."""

    data: T = Field(description="Response payload (type varies by endpoint)")
    elapsed_ms: float = Field(default=0.0, description="Server-side processing time in milliseconds")
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-fatal warnings to display to users",
    )


class PagedResponse(BaseModel, Generic[T]):
    """Paged success envelope for list responses."""

    data: list[T] = Field(description="List of items for this page")
    page: PageMeta = Field(description="Pagination metadata")
    elapsed_ms: float = Field(default=0.0, description="Server-side processing time in milliseconds")
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-fatal warnings to display to users",
    )
