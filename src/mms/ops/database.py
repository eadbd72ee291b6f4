"""
Database operations.

Thin wrappers around :func:`mms.core.connection.init_metadata_schema` for
creating the engine's metadata tables, plus a connectivity check.
"""

from __future__ import annotations

import time

from mms.core.connection import init_metadata_schema
from mms.core.introspection import SchemaInspector
from mms.core.logging import get_logger
from mms.core.orm.tables import METADATA_TABLES
from mms.ops.context import OperationContext
from mms.ops.responses import DatabaseHealth, DatabaseInitResult
from mms.ops.result import OperationResult, start_timer

logger = get_logger(__name__)


def initialize_database(ctx: OperationContext) -> OperationResult[DatabaseInitResult]:
    """Create the metadata tables (idempotent)."""
    timer = start_timer()

    if ctx.dry_run:
        return OperationResult.ok(
            DatabaseInitResult(tables_created=sorted(METADATA_TABLES), dry_run=True),
            elapsed_ms=timer.elapsed_ms,
        )

    try:
        tables = init_metadata_schema(ctx.conn)
        logger.info("database_initialized", tables=len(tables))
        return OperationResult.ok(
            DatabaseInitResult(tables_created=tables),
            elapsed_ms=timer.elapsed_ms,
        )
    except Exception as exc:
        logger.exception("op_failed", error=str(exc))
        return OperationResult.fail(
            "INTERNAL",
            f"Failed to create tables: {exc}",
            elapsed_ms=timer.elapsed_ms,
        )


def check_database_health(ctx: OperationContext) -> OperationResult[DatabaseHealth]:
    """Check database connectivity and metadata table status."""
    timer = start_timer()

    try:
        start = time.perf_counter()
        ctx.conn.execute("SELECT 1")
        ctx.conn.fetchone()
        latency = (time.perf_counter() - start) * 1000

        inspector = SchemaInspector(ctx.conn)
        missing = [t for t in METADATA_TABLES if not inspector.table_exists(t)]
        backend = getattr(ctx.conn, "dialect_name", "unknown")

        warnings = [f"Missing metadata tables: {', '.join(missing)}"] if missing else []
        return OperationResult.ok(
            DatabaseHealth(
                connected=True,
                backend=backend,
                table_count=len(METADATA_TABLES) - len(missing),
                latency_ms=round(latency, 2),
                missing_tables=missing,
            ),
            warnings=warnings,
            elapsed_ms=timer.elapsed_ms,
        )
    except Exception as exc:
        logger.exception("op_failed", error=str(exc))
        return OperationResult.ok(
            DatabaseHealth(connected=False, backend="unknown"),
            warnings=[f"Health check error: {exc}"],
            elapsed_ms=timer.elapsed_ms,
        )
