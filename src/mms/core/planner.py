"""
Schema planner: structure + live catalog → ordered DDL plan.

Manifesto:
    The physical schema of a tenant is derived, never hand-written.  The
    planner looks at what the structure *uses*, asks the live catalog what
    already exists, and emits only the statements that are missing.  Run it
    against a migrated tenant and the plan is empty.

    - **Additive only:** columns are added or relaxed, never dropped or narrowed
    - **Introspect before acting:** every statement is guarded by a catalog check
    - **Pure output:** planning executes nothing, it returns a ``DDLPlan``

Architecture::

    Structure ──► resolve_relationships() ──► used types, child→parent
                                                   │
                                                   ▼
    SchemaInspector (live catalog) ──────► SchemaPlanner.plan()
                                                   │
                                                   ▼
                        DDLPlan{statements, registry_updates, notes}

Per used type, in first-appearance order (parents first):

1. ``CREATE TABLE IF NOT EXISTS`` with the fixed columns.
2. Single parent: nullable ``<parent>_id``, index, foreign key.
   Ambiguous parent: a note, nothing else.
3. One column per attribute.
4. Unique ``(<parent>_id, name)`` or ``(name)`` when a ``name`` attribute exists.

Examples:
    >>> plan = SchemaPlanner(conn).plan(7, structure)
    >>> plan.statements[0]
    'CREATE TABLE IF NOT EXISTS "t7_line" (...)'

Tags:
    schema, planner, ddl, idempotent, mms-core
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from mms.core.dialect import Dialect
from mms.core.identifiers import (
    foreign_key_name,
    index_name,
    parent_column,
    table_name,
    unique_name,
)
from mms.core.introspection import SchemaInspector
from mms.core.logging import get_logger
from mms.core.relationships import Relationships, resolve_relationships
from mms.core.repository import dialect_for
from mms.core.structure import Structure, TypeDefinition

logger = get_logger(__name__)

#: Columns every synthesized table is created with.
FIXED_COLUMNS: tuple[str, ...] = ("id", "created_by", "updated_by", "created_at", "updated_at")


@dataclass
class DDLPlan:
    """Ordered statements plus the registry entries and notes they imply."""

    statements: list[str] = field(default_factory=list)
    registry_updates: dict[str, str] = field(default_factory=dict)
    notes: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.statements

    def to_dict(self) -> dict[str, Any]:
        return {
            "statements": list(self.statements),
            "registryUpdates": dict(self.registry_updates),
            "notes": list(self.notes),
        }


class _PlannedCatalog:
    """Live catalog overlaid with what the plan has already scheduled."""

    def __init__(self, inspector: SchemaInspector) -> None:
        self.live = inspector
        self._new_tables: set[str] = set()
        self._new_columns: dict[str, set[str]] = {}
        self._new_names: set[tuple[str, str]] = set()
        self._columns: dict[str, set[str]] = {}

    def table_exists(self, table: str) -> bool:
        return table in self._new_tables or self.live.table_exists(table)

    def add_table(self, table: str) -> None:
        self._new_tables.add(table)
        self._columns[table] = set(FIXED_COLUMNS)

    def has_column(self, table: str, column: str) -> bool:
        if table not in self._columns:
            self._columns[table] = self.live.column_names(table)
        return column in self._columns[table] or column in self._new_columns.get(table, set())

    def add_column(self, table: str, column: str) -> None:
        self._new_columns.setdefault(table, set()).add(column)

    def is_new_column(self, table: str, column: str) -> bool:
        return table in self._new_tables or column in self._new_columns.get(table, set())

    def scheduled(self, table: str, name: str) -> bool:
        return (table, name) in self._new_names

    def schedule(self, table: str, name: str) -> None:
        self._new_names.add((table, name))


class SchemaPlanner:
    """Compute the DDL needed to bring a tenant's tables up to a structure.

    Parameters:
        conn: Connection exposing ``inspector()``; only read from.
        dialect: DDL dialect.  Derived from the connection when omitted.
    """

    def __init__(self, conn: Any, dialect: Dialect | None = None) -> None:
        self.conn = conn
        self.dialect = dialect or dialect_for(conn)

    def plan(
        self,
        tenant_id: int,
        structure: Structure,
        *,
        registry: Mapping[str, str] | None = None,
        relationships: Relationships | None = None,
    ) -> DDLPlan:
        rels = relationships or resolve_relationships(structure)
        run = _PlanRun(
            tenant_id=tenant_id,
            structure=structure,
            rels=rels,
            registry=dict(registry or {}),
            dialect=self.dialect,
            catalog=_PlannedCatalog(SchemaInspector(self.conn)),
        )
        for type_key in rels.used_types:
            run.ensure_type(type_key)
        run.note_orphaned_registry()

        logger.info(
            "schema_plan_computed",
            tenant_id=tenant_id,
            statements=len(run.plan.statements),
            types=len(run.plan.registry_updates),
            notes=len(run.plan.notes),
        )
        return run.plan


@dataclass
class _PlanRun:
    tenant_id: int
    structure: Structure
    rels: Relationships
    registry: dict[str, str]
    dialect: Dialect
    catalog: _PlannedCatalog
    plan: DDLPlan = field(default_factory=DDLPlan)
    _visited: set[str] = field(default_factory=set)

    def table_for(self, type_key: str) -> str:
        return self.registry.get(type_key) or table_name(self.tenant_id, type_key)

    def emit(self, sql: str) -> None:
        self.plan.statements.append(sql)

    def note_orphaned_registry(self) -> None:
        """Note registry entries whose type is no longer declared.  Tables are never dropped."""
        for type_key, table in sorted(self.registry.items()):
            if self.structure.get_type(type_key) is None:
                self.plan.notes.append(
                    f"Type '{type_key}' is no longer declared; table '{table}' is kept."
                )

    # -- steps -------------------------------------------------------------

    def ensure_table(self, type_key: str) -> str:
        table = self.table_for(type_key)
        if not self.catalog.table_exists(table):
            self.emit(self.dialect.create_table(table))
            self.catalog.add_table(table)
        self.plan.registry_updates.setdefault(type_key, table)
        return table

    def ensure_type(self, type_key: str) -> None:
        if type_key in self._visited:
            return
        self._visited.add(type_key)

        definition = self.structure.get_type(type_key)
        if definition is None:
            self.plan.notes.append(f"Type '{type_key}' is used in the tree but not declared; skipped.")
            return

        parent = self.rels.parent_of(type_key)
        if parent is not None and parent != type_key and self.rels.is_used(parent):
            self.ensure_type(parent)

        table = self.ensure_table(type_key)

        parent_col: str | None = None
        if type_key in self.rels.ambiguous:
            self.plan.notes.append(
                f"Type '{type_key}' has multiple parents; FK not generated. Consider a join table."
            )
        elif parent is not None and parent != type_key:
            parent_col = self.ensure_parent(table, parent)

        self.ensure_attributes(table, definition)
        self.ensure_unique_name(table, definition, parent_col)

    def ensure_parent(self, table: str, parent: str) -> str:
        parent_table = self.ensure_table(parent)

        d, cat = self.dialect, self.catalog
        column = parent_column(parent)

        if not cat.has_column(table, column):
            self.emit(d.add_parent_column(table, column, parent_table))
            cat.add_column(table, column)
        elif not cat.is_new_column(table, column) and not cat.live.column_is_nullable(table, column):
            relax = d.relax_nullable(table, column)
            if relax is None:
                self.plan.notes.append(
                    f"Column {table}.{column} is NOT NULL and cannot be relaxed on {d.name}."
                )
            else:
                self.emit(relax)

        idx = index_name(table, column)
        if not cat.scheduled(table, idx) and (
            cat.is_new_column(table, column) or not cat.live.index_exists(table, idx, [column])
        ):
            self.emit(d.create_index(table, idx, [column]))
            cat.schedule(table, idx)

        fk = foreign_key_name(table, column)
        inline = d.inline_foreign_keys and cat.is_new_column(table, column)
        if not inline and not cat.scheduled(table, fk):
            exists = not cat.is_new_column(table, column) and cat.live.foreign_key_exists(
                table, fk, column, parent_table
            )
            if not exists:
                sql = d.add_foreign_key(table, fk, column, parent_table)
                if sql is None:
                    self.plan.notes.append(
                        f"Foreign key {fk} cannot be added to existing column on {d.name}."
                    )
                else:
                    self.emit(sql)
                    cat.schedule(table, fk)
        return column

    def ensure_attributes(self, table: str, definition: TypeDefinition) -> None:
        for attr in definition.attributes:
            if self.catalog.has_column(table, attr.column):
                continue
            self.emit(self.dialect.add_column(table, attr))
            self.catalog.add_column(table, attr.column)

    def ensure_unique_name(
        self,
        table: str,
        definition: TypeDefinition,
        parent_col: str | None,
    ) -> None:
        name_attr = definition.attribute("name")
        if name_attr is None:
            return
        columns = [parent_col, name_attr.column] if parent_col else [name_attr.column]
        uq = unique_name(table, columns)
        cat = self.catalog
        if cat.scheduled(table, uq):
            return
        fresh = any(cat.is_new_column(table, c) for c in columns)
        if fresh or not cat.live.unique_exists(table, uq, columns):
            self.emit(self.dialect.add_unique(table, uq, columns))
            cat.schedule(table, uq)


__all__ = ["DDLPlan", "FIXED_COLUMNS", "SchemaPlanner"]
