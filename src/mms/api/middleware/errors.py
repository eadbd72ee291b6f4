"""
Problem Details (RFC 7807) rendering for the HTTP surface.

Failed operations and the API-key gate both answer with a ``ProblemDetail``
body whose ``code`` is the machine-readable error code the CLI prints too.
Anything that escapes a route is logged with its traceback and answered
with ``INTERNAL``; the message is shown only when ``MMS_DEBUG`` is on.
"""

from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from mms.api.schemas.common import ErrorDetail, ProblemDetail
from mms.core.logging import get_logger

logger = get_logger(__name__)

#: HTTP status per error code.  Unknown codes are server errors.
STATUS_BY_CODE: dict[str, int] = {
    "VALIDATION_FAILED": 422,
    "NOT_MATERIALIZED": 422,
    "UNAUTHORIZED": 401,
    "NOT_FOUND": 404,
    "CONFLICT": 409,
    "LOCKED": 423,
}


def status_for_code(code: str) -> int:
    return STATUS_BY_CODE.get(code, 500)


def problem_response(
    *,
    status: int,
    title: str,
    code: str,
    detail: str = "",
    instance: str = "",
    errors: list[dict[str, Any]] | None = None,
    context: dict[str, Any] | None = None,
) -> JSONResponse:
    body = ProblemDetail(
        title=title,
        status=status,
        detail=detail,
        instance=instance,
        code=code,
        errors=[ErrorDetail(**e) for e in errors or ()],
        context=context or {},
    )
    return JSONResponse(status_code=status, content=body.model_dump())


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("request_failed", method=request.method, path=request.url.path)
    debug = request.app.state.settings.debug
    return problem_response(
        status=500,
        title="Internal Server Error",
        code="INTERNAL",
        detail=str(exc) if debug else "An unexpected error occurred.",
        instance=request.url.path,
    )
