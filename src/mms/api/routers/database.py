"""
Database router: metadata schema init and health.

POST /database/init
GET  /database/health

Tags:
    mms, api, database, admin

Doc-Types:
    api-reference
"""

from __future__ import annotations

from fastapi import APIRouter, Query

from mms.api.deps import OpContext
from mms.api.schemas.common import SuccessResponse
from mms.api.schemas.domains import DatabaseHealthSchema, DatabaseInitSchema
from mms.api.utils import _dc, _handle_error
from mms.ops.database import check_database_health, initialize_database

router = APIRouter(prefix="/database")


@router.post("/init", response_model=SuccessResponse[DatabaseInitSchema])
def init_database(ctx: OpContext, dry_run: bool = Query(False)):
    """Create the engine's metadata tables.  Idempotent."""
    ctx.dry_run = dry_run
    result = initialize_database(ctx)
    if not result.success:
        return _handle_error(result)
    return SuccessResponse(
        data=DatabaseInitSchema(**_dc(result.data)),
        elapsed_ms=result.elapsed_ms,
        warnings=result.warnings,
    )


@router.get("/health", response_model=SuccessResponse[DatabaseHealthSchema])
def database_health(ctx: OpContext):
    """Check database connectivity and report missing metadata tables.

    Example:
        GET /api/v1/database/health

        Response:
        {
            "data": {
                "connected": true,
                "backend": "sqlite",
                "table_count": 5,
                "latency_ms": 0.4,
                "missing_tables": []
            }
        }
    """
    result = check_database_health(ctx)
    if not result.success:
        return _handle_error(result)
    return SuccessResponse(
        data=DatabaseHealthSchema(**_dc(result.data)),
        elapsed_ms=result.elapsed_ms,
        warnings=result.warnings,
    )
