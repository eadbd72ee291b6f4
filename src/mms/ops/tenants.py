"""
Tenant operations.

Only registration and lookup: enough for the rest of the ops layer to
tell an unknown tenant from one that simply has no data yet.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.exc import IntegrityError

from mms.core.errors import ConflictError, MmsError, NotFoundError, ValidationError
from mms.core.logging import get_logger
from mms.core.repositories import TenantRepository
from mms.ops.context import OperationContext
from mms.ops.requests import RegisterTenantRequest
from mms.ops.responses import TenantSummary
from mms.ops.result import OperationResult, fail_from_error, start_timer

logger = get_logger(__name__)


def require_tenant(ctx: OperationContext, tenant_id: int) -> dict[str, Any]:
    """Return the tenant row or raise :class:`NotFoundError`."""
    row = TenantRepository(ctx.conn).get(tenant_id)
    if row is None:
        raise NotFoundError(f"Tenant {tenant_id} not found").with_context(tenant_id=tenant_id)
    return row


def register_tenant(
    ctx: OperationContext,
    request: RegisterTenantRequest,
) -> OperationResult[TenantSummary]:
    """Register a tenant by unique name."""
    timer = start_timer()
    name = (request.name or "").strip()

    try:
        if not name:
            raise ValidationError("Tenant name is required", field="name")
        if ctx.dry_run:
            return OperationResult.ok(TenantSummary(id=0, name=name), elapsed_ms=timer.elapsed_ms)

        repo = TenantRepository(ctx.conn)
        try:
            tenant_id = repo.create(name)
        except IntegrityError as exc:
            ctx.conn.rollback()
            raise ConflictError(f"Tenant '{name}' already exists", detail=str(exc.orig)) from exc
        repo.commit()

        row = repo.get(tenant_id) if tenant_id is not None else repo.get_by_name(name)
        logger.info("tenant_registered", tenant_id=row["id"], name=name)
        return OperationResult.ok(_row_to_tenant(row), elapsed_ms=timer.elapsed_ms)
    except MmsError as exc:
        return fail_from_error(exc, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        logger.exception("op_failed", error=str(exc))
        return OperationResult.fail(
            "INTERNAL", f"Failed to register tenant: {exc}", elapsed_ms=timer.elapsed_ms
        )


def get_tenant(ctx: OperationContext, tenant_id: int) -> OperationResult[TenantSummary]:
    timer = start_timer()
    try:
        return OperationResult.ok(
            _row_to_tenant(require_tenant(ctx, tenant_id)), elapsed_ms=timer.elapsed_ms
        )
    except MmsError as exc:
        return fail_from_error(exc, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        logger.exception("op_failed", error=str(exc))
        return OperationResult.fail(
            "INTERNAL", f"Failed to load tenant: {exc}", elapsed_ms=timer.elapsed_ms
        )


def _row_to_tenant(row: dict[str, Any]) -> TenantSummary:
    return TenantSummary(id=int(row["id"]), name=row["name"], created_at=row.get("created_at"))
