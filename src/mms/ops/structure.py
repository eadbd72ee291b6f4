"""
Structure operations: read and save a tenant's declarative structure.

``get_structure`` never fails for a registered tenant: without a saved
document it serves the built-in default at version ``0``.  ``save_structure``
validates the whole document first and reports every problem at once.
"""

from __future__ import annotations

from mms.core.errors import MmsError
from mms.core.logging import get_logger
from mms.core.repositories import StructureRepository
from mms.core.structure import default_structure, parse_structure
from mms.ops.context import OperationContext
from mms.ops.requests import SaveStructureRequest
from mms.ops.responses import StructureDocument
from mms.ops.result import OperationResult, fail_from_error, start_timer
from mms.ops.tenants import require_tenant

logger = get_logger(__name__)


def get_structure(ctx: OperationContext, tenant_id: int) -> OperationResult[StructureDocument]:
    """Current structure and version of a tenant."""
    timer = start_timer()
    try:
        require_tenant(ctx, tenant_id)
        row = StructureRepository(ctx.conn).get(tenant_id)
        if row is None:
            doc = StructureDocument(
                tenant_id=tenant_id, version=0, structure=default_structure().to_dict()
            )
        else:
            doc = StructureDocument(
                tenant_id=tenant_id, version=int(row["version"]), structure=row["structure"]
            )
        return OperationResult.ok(doc, elapsed_ms=timer.elapsed_ms)
    except MmsError as exc:
        return fail_from_error(exc, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        logger.exception("op_failed", error=str(exc))
        return OperationResult.fail(
            "INTERNAL", f"Failed to load structure: {exc}", elapsed_ms=timer.elapsed_ms
        )


def save_structure(
    ctx: OperationContext,
    request: SaveStructureRequest,
) -> OperationResult[StructureDocument]:
    """Validate and persist a structure, bumping its version.

    With ``dry_run`` the document is validated and echoed back unsaved.
    """
    timer = start_timer()
    try:
        require_tenant(ctx, request.tenant_id)
        structure = parse_structure(request.structure)
        document = structure.to_dict()

        if ctx.dry_run:
            return OperationResult.ok(
                StructureDocument(tenant_id=request.tenant_id, version=0, structure=document),
                elapsed_ms=timer.elapsed_ms,
            )

        repo = StructureRepository(ctx.conn)
        version = repo.save(request.tenant_id, document, user_id=ctx.user_id)
        repo.commit()
        logger.info(
            "structure_saved",
            tenant_id=request.tenant_id,
            version=version,
            node_types=len(structure.node_types),
        )
        return OperationResult.ok(
            StructureDocument(tenant_id=request.tenant_id, version=version, structure=document),
            elapsed_ms=timer.elapsed_ms,
        )
    except MmsError as exc:
        return fail_from_error(exc, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        ctx.conn.rollback()
        logger.exception("op_failed", error=str(exc))
        return OperationResult.fail(
            "INTERNAL", f"Failed to save structure: {exc}", elapsed_ms=timer.elapsed_ms
        )
