"""
Schema operations: preview, apply and audit a tenant's physical schema.

``apply_schema`` runs resolver → planner → applier under the tenant's
apply lock.  A second apply of an unchanged structure executes nothing but
still records a version row.
"""

from __future__ import annotations

from typing import Any

from mms.core.applier import SchemaApplier
from mms.core.errors import MmsError, ValidationError
from mms.core.logging import get_logger
from mms.core.repositories import SchemaVersionRepository, StructureRepository
from mms.core.structure import Structure, parse_structure
from mms.ops.context import OperationContext
from mms.ops.requests import ApplySchemaRequest, ListSchemaVersionsRequest
from mms.ops.responses import SchemaApplyResult, SchemaPlanPreview, SchemaVersionSummary
from mms.ops.result import OperationResult, PagedResult, fail_from_error, start_timer
from mms.ops.tenants import require_tenant

logger = get_logger(__name__)


def _saved_structure(ctx: OperationContext, tenant_id: int) -> Structure:
    row = StructureRepository(ctx.conn).get(tenant_id)
    if row is None:
        raise ValidationError(
            f"No structure saved for tenant {tenant_id}; save one before applying",
            field="structure",
        )
    return parse_structure(row["structure"])


def _applier(ctx: OperationContext) -> SchemaApplier:
    return SchemaApplier(
        ctx.conn,
        catalog=ctx.catalog,
        lock_ttl_seconds=ctx.engine_settings.apply_lock_ttl_seconds,
    )


def preview_schema(ctx: OperationContext, tenant_id: int) -> OperationResult[SchemaPlanPreview]:
    """The plan an apply would execute right now.  Executes nothing."""
    timer = start_timer()
    try:
        require_tenant(ctx, tenant_id)
        plan = _applier(ctx).plan(tenant_id, _saved_structure(ctx, tenant_id))
        return OperationResult.ok(
            SchemaPlanPreview(
                tenant_id=tenant_id,
                statements=list(plan.statements),
                registry_updates=dict(plan.registry_updates),
                notes=list(plan.notes),
            ),
            warnings=list(plan.notes),
            elapsed_ms=timer.elapsed_ms,
        )
    except MmsError as exc:
        return fail_from_error(exc, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        logger.exception("op_failed", error=str(exc))
        return OperationResult.fail(
            "INTERNAL", f"Failed to plan schema: {exc}", elapsed_ms=timer.elapsed_ms
        )


def apply_schema(
    ctx: OperationContext,
    request: ApplySchemaRequest,
) -> OperationResult[SchemaApplyResult]:
    """Bring the tenant's tables up to its saved structure.

    With ``dry_run`` this behaves like :func:`preview_schema` and reports
    version ``0``.
    """
    timer = start_timer()
    tenant_id = request.tenant_id
    try:
        require_tenant(ctx, tenant_id)
        structure = _saved_structure(ctx, tenant_id)
        applier = _applier(ctx)

        if ctx.dry_run:
            plan = applier.plan(tenant_id, structure)
            return OperationResult.ok(
                SchemaApplyResult(
                    tenant_id=tenant_id,
                    version=0,
                    executed_statements=list(plan.statements),
                    notes=list(plan.notes),
                    breaking=request.breaking,
                    dry_run=True,
                ),
                warnings=list(plan.notes),
                elapsed_ms=timer.elapsed_ms,
            )

        applied = applier.apply_structure(
            tenant_id, structure, breaking=request.breaking, applied_by=ctx.user_id
        )
        return OperationResult.ok(
            SchemaApplyResult(
                tenant_id=tenant_id,
                version=applied.version,
                executed_statements=list(applied.statements),
                notes=list(applied.notes),
                breaking=applied.breaking,
            ),
            warnings=list(applied.notes),
            elapsed_ms=timer.elapsed_ms,
        )
    except MmsError as exc:
        return fail_from_error(exc, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        logger.exception("op_failed", error=str(exc))
        return OperationResult.fail(
            "INTERNAL", f"Failed to apply schema: {exc}", elapsed_ms=timer.elapsed_ms
        )


def list_schema_versions(
    ctx: OperationContext,
    request: ListSchemaVersionsRequest,
) -> PagedResult[SchemaVersionSummary]:
    """Apply history of a tenant, newest first."""
    timer = start_timer()
    try:
        require_tenant(ctx, request.tenant_id)
        rows, total = SchemaVersionRepository(ctx.conn).list_versions(
            request.tenant_id, limit=request.limit, offset=request.offset
        )
        return PagedResult.from_items(
            [_row_to_version(r) for r in rows],
            total=total,
            limit=request.limit,
            offset=request.offset,
            elapsed_ms=timer.elapsed_ms,
        )
    except MmsError as exc:
        return fail_from_error(exc, elapsed_ms=timer.elapsed_ms, result_cls=PagedResult)
    except Exception as exc:
        logger.exception("op_failed", error=str(exc))
        return PagedResult.fail(
            "INTERNAL", f"Failed to list schema versions: {exc}", elapsed_ms=timer.elapsed_ms
        )


def _row_to_version(row: dict[str, Any]) -> SchemaVersionSummary:
    summary = row.get("summary") or {}
    return SchemaVersionSummary(
        tenant_id=int(row["tenant_id"]),
        version=int(row["version"]),
        breaking=bool(row["breaking"]),
        statements=list(summary.get("statements", [])),
        notes=list(row.get("notes") or []),
        applied_by=row.get("applied_by"),
        created_at=row.get("created_at"),
    )
