"""
Schema applier: execute a DDL plan as one audited transaction.

Manifesto:
    A plan is applied completely or not at all.  Statements run in plan
    order inside a single transaction, then the table registry and the
    schema version history are written in that same transaction.  Any
    failure rolls everything back and hands the caller the statements
    that would have run.  Nothing is retried here.

    Planning and applying happen while the tenant's apply lock is held,
    so two applies cannot race between "column missing?" and "add column".

Architecture::

    SchemaApplier.apply_structure(tenant, structure)
        │
        ├─ TenantApplyLock.held(tenant)           (ApplyLockedError if busy)
        │     ├─ SchemaPlanner.plan()             (live catalog, registry)
        │     └─ SchemaApplier.apply(plan)
        │           ├─ execute statements          ─┐
        │           ├─ registry upserts             │ one transaction
        │           ├─ version = max + 1            │ rollback → TransactionFailure
        │           └─ INSERT tenant_schema_versions┘
        └─ TableCatalog.invalidate(tenant)

Caveat:
    Several engines commit DDL implicitly, so a failed apply can leave
    part of the plan in place.  Re-running the apply is safe because the
    planner only emits what is still missing.

Tags:
    schema, applier, transaction, audit, mms-core
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from mms.core.catalog import TableCatalog
from mms.core.dialect import Dialect
from mms.core.errors import TransactionFailure
from mms.core.locks import TenantApplyLock
from mms.core.logging import get_logger
from mms.core.planner import DDLPlan, SchemaPlanner
from mms.core.repositories import SchemaVersionRepository, TableRegistryRepository
from mms.core.repository import dialect_for
from mms.core.structure import Structure

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ApplyResult:
    """Outcome of a successful apply."""

    tenant_id: int
    version: int
    statements: tuple[str, ...] = ()
    notes: tuple[str, ...] = ()
    registry: dict[str, str] = field(default_factory=dict)
    breaking: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "tenantId": self.tenant_id,
            "version": self.version,
            "executedStatements": list(self.statements),
            "notes": list(self.notes),
            "registry": dict(self.registry),
            "breaking": self.breaking,
        }


class SchemaApplier:
    """Apply DDL plans for one connection.

    Parameters:
        conn: Connection whose transaction the apply runs in.
        dialect: SQL dialect.  Derived from the connection when omitted.
        catalog: Catalog to invalidate after a successful apply.
        lock_ttl_seconds: Expiry of the tenant's apply lock.
    """

    def __init__(
        self,
        conn: Any,
        dialect: Dialect | None = None,
        *,
        catalog: TableCatalog | None = None,
        lock_ttl_seconds: int = 300,
    ) -> None:
        self.conn = conn
        self.dialect = dialect or dialect_for(conn)
        self.catalog = catalog
        self.lock_ttl_seconds = lock_ttl_seconds

    def plan(self, tenant_id: int, structure: Structure) -> DDLPlan:
        """Compute, without executing, the plan for *structure*."""
        registry = TableRegistryRepository(self.conn, self.dialect).mapping(tenant_id)
        return SchemaPlanner(self.conn, self.dialect).plan(tenant_id, structure, registry=registry)

    def apply_structure(
        self,
        tenant_id: int,
        structure: Structure,
        *,
        breaking: bool = False,
        applied_by: int | None = None,
    ) -> ApplyResult:
        """Plan and apply under the tenant's lock.

        Raises:
            ApplyLockedError: another apply for the tenant is running.
            TransactionFailure: a statement failed; everything was rolled back.
        """
        lock = TenantApplyLock(self.conn, self.dialect, ttl_seconds=self.lock_ttl_seconds)
        with lock.held(tenant_id):
            plan = self.plan(tenant_id, structure)
            return self.apply(tenant_id, plan, breaking=breaking, applied_by=applied_by)

    def apply(
        self,
        tenant_id: int,
        plan: DDLPlan,
        *,
        breaking: bool = False,
        applied_by: int | None = None,
    ) -> ApplyResult:
        """Execute *plan* and record it.  Callers should hold the tenant lock."""
        executed: list[str] = []
        try:
            for sql in plan.statements:
                self.conn.execute(sql)
                executed.append(sql)

            registry = TableRegistryRepository(self.conn, self.dialect)
            for type_key, table in plan.registry_updates.items():
                registry.upsert(tenant_id, type_key, table)

            versions = SchemaVersionRepository(self.conn, self.dialect)
            version = versions.max_version(tenant_id) + 1
            versions.append(
                tenant_id,
                version,
                breaking=breaking,
                summary=plan.to_dict(),
                notes=plan.notes,
                applied_by=applied_by,
            )
            self.conn.commit()
        except Exception as exc:
            self.conn.rollback()
            logger.error(
                "schema_apply_failed",
                tenant_id=tenant_id,
                executed=len(executed),
                planned=len(plan.statements),
                error=str(exc),
            )
            raise TransactionFailure(
                f"Schema apply failed: {exc}",
                statements=plan.statements,
                executed=executed,
                cause=exc,
            ).with_context(tenant_id=tenant_id) from exc

        if self.catalog is not None:
            self.catalog.invalidate(tenant_id)

        logger.info(
            "schema_applied",
            tenant_id=tenant_id,
            version=version,
            statements=len(executed),
            breaking=breaking,
        )
        return ApplyResult(
            tenant_id=tenant_id,
            version=version,
            statements=tuple(executed),
            notes=tuple(plan.notes),
            registry=dict(plan.registry_updates),
            breaking=breaking,
        )


__all__ = ["ApplyResult", "SchemaApplier"]
