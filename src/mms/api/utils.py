"""
Shared API router utilities.

- ``_dc()``: convert a dataclass or dict to a plain dict
- ``_handle_error()``: convert a failed OperationResult to a ``problem_response``

Tags:
    mms, api, utils, shared, dataclass-conversion

Doc-Types: API_INFRASTRUCTURE
"""

from __future__ import annotations

from dataclasses import asdict
from datetime import date, datetime
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from mms.api.middleware.errors import problem_response, status_for_code


def _dc(obj: Any) -> dict[str, Any]:
    """Convert a dataclass (or dict) to a plain dict.

    Datetimes are rendered as ISO strings so they fit the str-typed
    response schemas.  Returns an empty dict for anything else.
    """
    if hasattr(obj, "__dataclass_fields__"):
        raw = asdict(obj)
    elif isinstance(obj, dict):
        raw = dict(obj)
    else:
        return {}
    return {k: v.isoformat() if isinstance(v, datetime | date) else v for k, v in raw.items()}


def _handle_error(result: Any, request: Request | None = None) -> JSONResponse:
    """Convert a failed ``OperationResult`` into a Problem Details response.

    Field errors become ``errors``; everything else the error carried
    (missing attributes, statements, tenant/type context) becomes ``context``.
    """
    error = result.error
    code = error.code if error else "INTERNAL"
    details = dict(error.details) if error else {}

    field_errors = [
        {"code": code, "message": e.get("message", ""), "field": e.get("field")}
        for e in details.pop("errors", [])
    ]
    context = {**details.pop("context", {}), **details}

    return problem_response(
        status=status_for_code(code),
        title=error.message if error else "Operation failed",
        instance=request.url.path if request is not None else "",
        code=code,
        errors=field_errors,
        context=context,
    )
