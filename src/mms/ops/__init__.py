"""
Operations layer: transport-agnostic business operations for mms.

The ops package wraps the core (structure store, schema planner/applier,
dynamic data access) with consistent patterns:

- All functions accept ``OperationContext`` as first argument
- All functions return ``OperationResult[T]`` (never raise)
- All functions are transport-agnostic (no HTTP, no CLI knowledge)
- Mutating functions honour ``dry_run`` where a preview makes sense

Usage::

    from mms.ops import OperationContext
    from mms.ops.schema import apply_schema
    from mms.ops.requests import ApplySchemaRequest

    ctx = OperationContext(conn=conn, user_id=42)
    result = apply_schema(ctx, ApplySchemaRequest(tenant_id=7))
    assert result.success
"""

from mms.ops.context import OperationContext
from mms.ops.result import OperationError, OperationResult, PagedResult

__all__ = [
    "OperationContext",
    "OperationError",
    "OperationResult",
    "PagedResult",
]
