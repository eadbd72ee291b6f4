"""
Data operations: generic CRUD over a tenant's synthesized tables.

Each function is a thin wrapper around
:class:`~mms.core.data_access.DynamicDataAccess`; rows are returned as
plain dicts keyed by physical column name.
"""

from __future__ import annotations

from typing import Any

from mms.core.data_access import DynamicDataAccess
from mms.core.errors import MmsError
from mms.core.logging import get_logger
from mms.ops.context import OperationContext
from mms.ops.requests import CreateDataRequest, ListDataRequest, UpdateDataRequest
from mms.ops.responses import DeletedRow
from mms.ops.result import OperationResult, PagedResult, fail_from_error, start_timer
from mms.ops.tenants import require_tenant

logger = get_logger(__name__)

Row = dict[str, Any]


def _dal(ctx: OperationContext) -> DynamicDataAccess:
    settings = ctx.engine_settings
    return DynamicDataAccess(
        ctx.conn,
        catalog=ctx.catalog,
        default_limit=settings.default_list_limit,
        max_limit=settings.max_list_limit,
    )


def _clamp(ctx: OperationContext, limit: int | None) -> int:
    settings = ctx.engine_settings
    limit = settings.default_list_limit if limit is None else limit
    return max(1, min(int(limit), settings.max_list_limit))


def list_data(ctx: OperationContext, request: ListDataRequest) -> PagedResult[Row]:
    """Newest-first page of rows of one type."""
    timer = start_timer()
    limit = _clamp(ctx, request.limit)
    offset = max(0, request.offset)
    try:
        require_tenant(ctx, request.tenant_id)
        items, total = _dal(ctx).list(
            request.tenant_id,
            request.type_key,
            filters=request.filters,
            limit=limit,
            offset=offset,
        )
        return PagedResult.from_items(
            items, total=total, limit=limit, offset=offset, elapsed_ms=timer.elapsed_ms
        )
    except MmsError as exc:
        return fail_from_error(exc, elapsed_ms=timer.elapsed_ms, result_cls=PagedResult)
    except Exception as exc:
        logger.exception("op_failed", error=str(exc))
        return PagedResult.fail(
            "INTERNAL", f"Failed to list {request.type_key}: {exc}", elapsed_ms=timer.elapsed_ms
        )


def create_data(ctx: OperationContext, request: CreateDataRequest) -> OperationResult[Row]:
    timer = start_timer()
    try:
        require_tenant(ctx, request.tenant_id)
        row = _dal(ctx).create(
            request.tenant_id, request.type_key, request.payload, user_id=ctx.user_id
        )
        return OperationResult.ok(row, elapsed_ms=timer.elapsed_ms)
    except MmsError as exc:
        return fail_from_error(exc, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        ctx.conn.rollback()
        logger.exception("op_failed", error=str(exc))
        return OperationResult.fail(
            "INTERNAL", f"Failed to create {request.type_key}: {exc}", elapsed_ms=timer.elapsed_ms
        )


def get_data(
    ctx: OperationContext,
    tenant_id: int,
    type_key: str,
    row_id: int,
) -> OperationResult[Row]:
    timer = start_timer()
    try:
        require_tenant(ctx, tenant_id)
        return OperationResult.ok(
            _dal(ctx).get(tenant_id, type_key, row_id), elapsed_ms=timer.elapsed_ms
        )
    except MmsError as exc:
        return fail_from_error(exc, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        logger.exception("op_failed", error=str(exc))
        return OperationResult.fail(
            "INTERNAL", f"Failed to load {type_key} {row_id}: {exc}", elapsed_ms=timer.elapsed_ms
        )


def update_data(ctx: OperationContext, request: UpdateDataRequest) -> OperationResult[Row]:
    timer = start_timer()
    try:
        require_tenant(ctx, request.tenant_id)
        row = _dal(ctx).update(
            request.tenant_id,
            request.type_key,
            request.row_id,
            request.payload,
            user_id=ctx.user_id,
        )
        return OperationResult.ok(row, elapsed_ms=timer.elapsed_ms)
    except MmsError as exc:
        return fail_from_error(exc, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        ctx.conn.rollback()
        logger.exception("op_failed", error=str(exc))
        return OperationResult.fail(
            "INTERNAL",
            f"Failed to update {request.type_key} {request.row_id}: {exc}",
            elapsed_ms=timer.elapsed_ms,
        )


def delete_data(
    ctx: OperationContext,
    tenant_id: int,
    type_key: str,
    row_id: int,
) -> OperationResult[DeletedRow]:
    """Delete one row.  Referenced rows fail with ``CONFLICT``."""
    timer = start_timer()
    try:
        require_tenant(ctx, tenant_id)
        result = _dal(ctx).delete(tenant_id, type_key, row_id)
        return OperationResult.ok(
            DeletedRow(id=int(result["id"]), deleted=bool(result["deleted"])),
            elapsed_ms=timer.elapsed_ms,
        )
    except MmsError as exc:
        return fail_from_error(exc, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        ctx.conn.rollback()
        logger.exception("op_failed", error=str(exc))
        return OperationResult.fail(
            "INTERNAL", f"Failed to delete {type_key} {row_id}: {exc}", elapsed_ms=timer.elapsed_ms
        )
