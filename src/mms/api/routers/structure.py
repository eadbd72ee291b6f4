"""
Structure router: read and replace a tenant's structure document.

GET /tenants/{tenant_id}/structure
PUT /tenants/{tenant_id}/structure

The PUT body is the document itself (``{"nodeTypes": [...], "rules": [...],
"tree": {...}}``) or the same wrapped as ``{"structure": {...}}``.  Saving
does not touch the physical schema; apply it separately.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Query, Request

from mms.api.deps import OpContext
from mms.api.schemas.common import SuccessResponse
from mms.api.schemas.domains import StructureSchema
from mms.api.utils import _dc, _handle_error
from mms.ops.requests import SaveStructureRequest
from mms.ops.structure import get_structure, save_structure

router = APIRouter(prefix="/tenants/{tenant_id}/structure")


@router.get("", response_model=SuccessResponse[StructureSchema])
def show_structure(ctx: OpContext, tenant_id: int, request: Request):
    """Current structure; version ``0`` means the built-in default is served."""
    result = get_structure(ctx, tenant_id)
    if not result.success:
        return _handle_error(result, request)
    return SuccessResponse(data=StructureSchema(**_dc(result.data)), elapsed_ms=result.elapsed_ms)


@router.put("", response_model=SuccessResponse[StructureSchema])
def put_structure(
    ctx: OpContext,
    tenant_id: int,
    request: Request,
    document: dict[str, Any] = Body(...),
    dry_run: bool = Query(False, description="Validate without saving"),
):
    """Validate and save a structure.  Every problem is reported at once (``422``)."""
    ctx.dry_run = dry_run
    result = save_structure(ctx, SaveStructureRequest(tenant_id=tenant_id, structure=document))
    if not result.success:
        return _handle_error(result, request)
    return SuccessResponse(data=StructureSchema(**_dc(result.data)), elapsed_ms=result.elapsed_ms)
