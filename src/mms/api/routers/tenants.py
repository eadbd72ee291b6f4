"""
Tenants router: register and look up tenants.

POST /tenants
GET  /tenants/{tenant_id}
"""

from __future__ import annotations

from fastapi import APIRouter, Request

from mms.api.deps import OpContext
from mms.api.schemas.common import SuccessResponse
from mms.api.schemas.domains import RegisterTenantBody, TenantSchema
from mms.api.utils import _dc, _handle_error
from mms.ops.requests import RegisterTenantRequest
from mms.ops.tenants import get_tenant, register_tenant

router = APIRouter(prefix="/tenants")


@router.post("", response_model=SuccessResponse[TenantSchema], status_code=201)
def create_tenant(ctx: OpContext, body: RegisterTenantBody, request: Request):
    """Register a tenant.  Names are unique; a duplicate is ``409``."""
    result = register_tenant(ctx, RegisterTenantRequest(name=body.name))
    if not result.success:
        return _handle_error(result, request)
    return SuccessResponse(data=TenantSchema(**_dc(result.data)), elapsed_ms=result.elapsed_ms)


@router.get("/{tenant_id}", response_model=SuccessResponse[TenantSchema])
def show_tenant(ctx: OpContext, tenant_id: int, request: Request):
    result = get_tenant(ctx, tenant_id)
    if not result.success:
        return _handle_error(result, request)
    return SuccessResponse(data=TenantSchema(**_dc(result.data)), elapsed_ms=result.elapsed_ms)
