"""Live catalog introspection.

Thin read-only wrapper over SQLAlchemy's ``Inspector`` answering the
questions the planner and the data access layer ask about a physical
table: does it exist, which columns does it have, is a column nullable,
and is an index / foreign key / unique constraint already in place.

Equivalence checks look at *shape* (same columns, same referenced table)
as well as the conventional name, so constraints created by hand or by an
older naming scheme are not duplicated.

Tags:
    introspection, catalog, sqlalchemy, mms-core
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy.engine import Inspector


@dataclass(frozen=True, slots=True)
class ColumnDescriptor:
    """One physical column as reported by the database."""

    name: str
    type: str
    nullable: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "type": self.type, "nullable": self.nullable}


class SchemaInspector:
    """Catalog questions against one connection.

    ``conn`` must expose ``inspector()`` (see
    :class:`~mms.core.orm.session.SAConnectionBridge`).  A fresh SQLAlchemy
    inspector is taken per instance; create a new ``SchemaInspector``
    after executing DDL to observe it.
    """

    def __init__(self, conn: Any) -> None:
        self._inspector: Inspector = conn.inspector()

    def table_exists(self, table: str) -> bool:
        return self._inspector.has_table(table)

    def columns(self, table: str) -> list[ColumnDescriptor]:
        if not self.table_exists(table):
            return []
        return [
            ColumnDescriptor(
                name=col["name"],
                type=str(col["type"]),
                nullable=bool(col.get("nullable", True)),
            )
            for col in self._inspector.get_columns(table)
        ]

    def column_names(self, table: str) -> set[str]:
        return {c.name for c in self.columns(table)}

    def column_is_nullable(self, table: str, column: str) -> bool:
        for col in self.columns(table):
            if col.name == column:
                return col.nullable
        return True

    def index_exists(self, table: str, name: str, columns: list[str]) -> bool:
        """True when an index named *name* or one over exactly *columns* exists."""
        if not self.table_exists(table):
            return False
        for idx in self._inspector.get_indexes(table):
            if idx.get("name") == name or list(idx.get("column_names") or []) == list(columns):
                return True
        return False

    def foreign_key_exists(self, table: str, name: str, column: str, parent_table: str) -> bool:
        if not self.table_exists(table):
            return False
        for fk in self._inspector.get_foreign_keys(table):
            if fk.get("name") == name:
                return True
            if fk.get("constrained_columns") == [column] and fk.get("referred_table") == parent_table:
                return True
        return False

    def unique_exists(self, table: str, name: str, columns: list[str]) -> bool:
        """True when a unique constraint or unique index covers exactly *columns*."""
        if not self.table_exists(table):
            return False
        wanted = set(columns)
        for uq in self._inspector.get_unique_constraints(table):
            if uq.get("name") == name or set(uq.get("column_names") or []) == wanted:
                return True
        for idx in self._inspector.get_indexes(table):
            if not idx.get("unique"):
                continue
            if idx.get("name") == name or set(idx.get("column_names") or []) == wanted:
                return True
        return False


__all__ = ["ColumnDescriptor", "SchemaInspector"]
