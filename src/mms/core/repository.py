"""Base repository with dialect-aware database access.

Provides :class:`BaseRepository`: a base class that pairs a
:class:`~mms.core.protocols.Connection` with a :class:`~mms.core.dialect.Dialect`
so that repositories write portable SQL without referencing a driver.

Architecture::

    ┌────────────────────────────────────────────────────────────────────┐
    │                       BaseRepository                               │
    │                                                                    │
    │   conn: Connection        ← protocol from mms.core.protocols       │
    │   dialect: Dialect        ← from mms.core.dialect                  │
    │                                                                    │
    │   execute(sql, params)     → cursor                                │
    │   query(sql, params)       → list[dict]                            │
    │   query_one(sql, params)   → dict | None                           │
    │   scalar(sql, params)      → Any                                   │
    │   insert(table, data)      → new id                                │
    └────────────────────────────────────────────────────────────────────┘

Parameters are passed as mappings and bound by name (``:tenant_id``).

Usage:
    >>> class TenantRepository(BaseRepository):
    ...     def get(self, tenant_id: int):
    ...         return self.query_one(
    ...             "SELECT * FROM tenants WHERE id = :id", {"id": tenant_id}
    ...         )

Tags:
    repository, database, abstraction, portability
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from mms.core.dialect import Dialect, get_dialect
from mms.core.protocols import Connection


def dialect_for(conn: Connection) -> Dialect:
    """Pick the dialect matching *conn* (SQLite when it cannot tell)."""
    name = getattr(conn, "dialect_name", None) or "sqlite"
    return get_dialect(name)


class BaseRepository:
    """Dialect-aware base class for data-access repositories.

    Parameters:
        conn: Any object satisfying the :class:`Connection` protocol.
        dialect: SQL dialect to use.  Derived from the connection when omitted.
    """

    def __init__(self, conn: Connection, dialect: Dialect | None = None) -> None:
        self.conn = conn
        self.dialect: Dialect = dialect or dialect_for(conn)

    # -- Query helpers -----------------------------------------------------

    def execute(self, sql: str, params: Mapping[str, Any] | None = None) -> Any:
        """Execute a statement and return the raw cursor/result."""
        return self.conn.execute(sql, params)

    def query(self, sql: str, params: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        """Execute a SELECT and return rows as dicts keyed by column name."""
        cursor = self.conn.execute(sql, params)
        rows = cursor.fetchall()
        if not rows:
            return []
        columns = [desc[0] for desc in cursor.description]
        return [dict(zip(columns, row, strict=False)) for row in rows]

    def query_one(self, sql: str, params: Mapping[str, Any] | None = None) -> dict[str, Any] | None:
        """Execute a SELECT and return the first row as a dict (or None)."""
        results = self.query(sql, params)
        return results[0] if results else None

    def scalar(self, sql: str, params: Mapping[str, Any] | None = None) -> Any:
        """Execute a SELECT and return the first column of the first row."""
        row = self.conn.execute(sql, params).fetchone()
        return row[0] if row else None

    # -- Insert helpers ----------------------------------------------------

    def insert(self, table: str, data: Mapping[str, Any]) -> int | None:
        """Insert a single row from a mapping and return its generated ``id``.

        Column names are quoted by the dialect and values bound by name.
        """
        columns = list(data.keys())
        binds = {f"v{i}": data[c] for i, c in enumerate(columns)}
        cols_sql = ", ".join(self.dialect.quote(c) for c in columns)
        vals_sql = ", ".join(f":v{i}" for i in range(len(columns)))
        sql = f"INSERT INTO {self.dialect.quote(table)} ({cols_sql}) VALUES ({vals_sql})"
        if self.dialect.returning_id:
            row = self.conn.execute(sql + f" RETURNING {self.dialect.quote('id')}", binds).fetchone()
            return int(row[0]) if row else None
        cursor = self.conn.execute(sql, binds)
        rowid = getattr(cursor, "lastrowid", None)
        return int(rowid) if rowid is not None else None

    def commit(self) -> None:
        """Commit the current transaction."""
        self.conn.commit()


__all__ = [
    "BaseRepository",
    "dialect_for",
]
