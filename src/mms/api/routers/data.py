"""
Data router: generic CRUD over a tenant's synthesized tables.

GET    /tenants/{tenant_id}/data/{type_key}
POST   /tenants/{tenant_id}/data/{type_key}
GET    /tenants/{tenant_id}/data/{type_key}/{row_id}
PUT    /tenants/{tenant_id}/data/{type_key}/{row_id}
DELETE /tenants/{tenant_id}/data/{type_key}/{row_id}

Rows travel as plain JSON objects keyed by column name.  Attribute keys in
a payload may be given bare (``serial``) or with the ``attr_`` prefix form
posts use.  Listing accepts ``id`` and ``<parent>_id`` query filters.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Query, Request

from mms.api.deps import OpContext
from mms.api.schemas.common import PagedResponse, PageMeta, SuccessResponse
from mms.api.schemas.domains import DeletedRowSchema
from mms.api.utils import _dc, _handle_error
from mms.ops.data import create_data, delete_data, get_data, list_data, update_data
from mms.ops.requests import CreateDataRequest, ListDataRequest, UpdateDataRequest

router = APIRouter(prefix="/tenants/{tenant_id}/data/{type_key}")

_PAGING_PARAMS = frozenset({"limit", "offset", "api_key"})


@router.get("", response_model=PagedResponse[dict[str, Any]])
def list_rows(
    ctx: OpContext,
    tenant_id: int,
    type_key: str,
    request: Request,
    limit: int | None = Query(None, ge=1),
    offset: int = Query(0, ge=0),
):
    """Newest-first page of rows.  ``limit`` is clamped to the configured maximum."""
    filters = {k: v for k, v in request.query_params.items() if k not in _PAGING_PARAMS}
    result = list_data(
        ctx,
        ListDataRequest(
            tenant_id=tenant_id, type_key=type_key, filters=filters, limit=limit, offset=offset
        ),
    )
    if not result.success:
        return _handle_error(result, request)
    return PagedResponse(
        data=[_dc(row) for row in result.data or []],
        page=PageMeta.from_result(result.total, result.limit, result.offset),
        elapsed_ms=result.elapsed_ms,
    )


@router.post("", response_model=SuccessResponse[dict[str, Any]], status_code=201)
def create_row(
    ctx: OpContext,
    tenant_id: int,
    type_key: str,
    request: Request,
    payload: dict[str, Any] = Body(...),
):
    result = create_data(
        ctx, CreateDataRequest(tenant_id=tenant_id, type_key=type_key, payload=payload)
    )
    if not result.success:
        return _handle_error(result, request)
    return SuccessResponse(data=_dc(result.data), elapsed_ms=result.elapsed_ms)


@router.get("/{row_id}", response_model=SuccessResponse[dict[str, Any]])
def show_row(ctx: OpContext, tenant_id: int, type_key: str, row_id: int, request: Request):
    result = get_data(ctx, tenant_id, type_key, row_id)
    if not result.success:
        return _handle_error(result, request)
    return SuccessResponse(data=_dc(result.data), elapsed_ms=result.elapsed_ms)


@router.put("/{row_id}", response_model=SuccessResponse[dict[str, Any]])
def update_row(
    ctx: OpContext,
    tenant_id: int,
    type_key: str,
    row_id: int,
    request: Request,
    payload: dict[str, Any] = Body(...),
):
    """Partial update.  An explicit ``null`` parent detaches the row when allowed."""
    result = update_data(
        ctx,
        UpdateDataRequest(tenant_id=tenant_id, type_key=type_key, row_id=row_id, payload=payload),
    )
    if not result.success:
        return _handle_error(result, request)
    return SuccessResponse(data=_dc(result.data), elapsed_ms=result.elapsed_ms)


@router.delete("/{row_id}", response_model=SuccessResponse[DeletedRowSchema])
def delete_row(ctx: OpContext, tenant_id: int, type_key: str, row_id: int, request: Request):
    """Delete a row.  A row still referenced by children answers ``409``."""
    result = delete_data(ctx, tenant_id, type_key, row_id)
    if not result.success:
        return _handle_error(result, request)
    return SuccessResponse(data=DeletedRowSchema(**_dc(result.data)), elapsed_ms=result.elapsed_ms)
