"""
Schema router: preview, apply and audit a tenant's physical schema.

GET  /tenants/{tenant_id}/schema/plan
POST /tenants/{tenant_id}/schema/apply
GET  /tenants/{tenant_id}/schema/versions

Manifesto:
    Apply is the only path by which tables change.  A concurrent apply
    for the same tenant gets ``423``; a failed statement rolls back the
    whole plan and answers ``500`` with the statements in
    ``context.statements``.

Tags:
    mms, api, schema, ddl, versions

Doc-Types:
    api-reference
"""

from __future__ import annotations

from fastapi import APIRouter, Query, Request

from mms.api.deps import OpContext
from mms.api.schemas.common import PagedResponse, PageMeta, SuccessResponse
from mms.api.schemas.domains import (
    ApplySchemaBody,
    SchemaApplySchema,
    SchemaPlanSchema,
    SchemaVersionSchema,
)
from mms.api.utils import _dc, _handle_error
from mms.ops.requests import ApplySchemaRequest, ListSchemaVersionsRequest
from mms.ops.schema import apply_schema, list_schema_versions, preview_schema

router = APIRouter(prefix="/tenants/{tenant_id}/schema")


@router.get("/plan", response_model=SuccessResponse[SchemaPlanSchema])
def plan_schema(ctx: OpContext, tenant_id: int, request: Request):
    """Statements an apply would run now.  Nothing is executed."""
    result = preview_schema(ctx, tenant_id)
    if not result.success:
        return _handle_error(result, request)
    return SuccessResponse(
        data=SchemaPlanSchema(**_dc(result.data)),
        elapsed_ms=result.elapsed_ms,
        warnings=result.warnings,
    )


@router.post("/apply", response_model=SuccessResponse[SchemaApplySchema])
def apply_tenant_schema(
    ctx: OpContext,
    tenant_id: int,
    request: Request,
    body: ApplySchemaBody | None = None,
):
    """Bring the tenant's tables up to its saved structure.

    Example:
        POST /api/v1/tenants/7/schema/apply
        {"breaking": false}

        Response:
        {
            "data": {
                "tenant_id": 7,
                "version": 1,
                "executed_statements": ["CREATE TABLE \\"t7_line\\" (...)", "..."],
                "notes": [],
                "breaking": false,
                "dry_run": false
            }
        }
    """
    body = body or ApplySchemaBody()
    ctx.dry_run = body.dry_run
    result = apply_schema(ctx, ApplySchemaRequest(tenant_id=tenant_id, breaking=body.breaking))
    if not result.success:
        return _handle_error(result, request)
    return SuccessResponse(
        data=SchemaApplySchema(**_dc(result.data)),
        elapsed_ms=result.elapsed_ms,
        warnings=result.warnings,
    )


@router.get("/versions", response_model=PagedResponse[SchemaVersionSchema])
def schema_versions(
    ctx: OpContext,
    tenant_id: int,
    request: Request,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
):
    result = list_schema_versions(
        ctx, ListSchemaVersionsRequest(tenant_id=tenant_id, limit=limit, offset=offset)
    )
    if not result.success:
        return _handle_error(result, request)
    return PagedResponse(
        data=[SchemaVersionSchema(**_dc(v)) for v in result.data or []],
        page=PageMeta.from_result(result.total, result.limit, result.offset),
        elapsed_ms=result.elapsed_ms,
    )
