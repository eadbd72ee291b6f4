"""
Health router: liveness and readiness checks.

GET /health
GET /health/ready

Tags:
    mms, api, health, liveness, readiness

Doc-Types:
    api-reference
"""

from __future__ import annotations

import time
from datetime import UTC, datetime
from typing import Literal

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from mms import __version__
from mms.api.deps import OpContext
from mms.ops.database import check_database_health

router = APIRouter(prefix="/health")

_START_TIME = time.monotonic()


class HealthResponse(BaseModel):
    status: Literal["healthy", "unhealthy"]
    service: str = "mms-core"
    version: str = __version__
    uptime_s: float = 0.0
    timestamp: str = ""
    checks: dict[str, str] = {}


def _response(status: Literal["healthy", "unhealthy"], checks: dict[str, str]) -> HealthResponse:
    return HealthResponse(
        status=status,
        uptime_s=round(time.monotonic() - _START_TIME, 1),
        timestamp=datetime.now(UTC).isoformat(),
        checks=checks,
    )


@router.get("", response_model=HealthResponse)
def liveness() -> HealthResponse:
    """Liveness: always 200 while the process serves requests."""
    return _response("healthy", {})


@router.get("/ready", response_model=HealthResponse)
def readiness(ctx: OpContext) -> JSONResponse:
    """Readiness: 503 when the database is unreachable or uninitialised."""
    result = check_database_health(ctx)
    ready = result.success and result.data is not None and not result.data.missing_tables
    if ready:
        checks = {"database": "ok"}
    elif result.success and result.data is not None:
        checks = {"database": f"missing tables: {', '.join(result.data.missing_tables)}"}
    else:
        checks = {"database": result.error.message if result.error else "unavailable"}
    body = _response("healthy" if ready else "unhealthy", checks)
    return JSONResponse(content=body.model_dump(), status_code=200 if ready else 503)
