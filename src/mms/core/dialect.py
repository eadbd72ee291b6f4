"""SQL dialect abstraction for the schema planner and data access layer.

Provides a ``Dialect`` protocol and concrete implementations for every
supported backend.  The planner asks the dialect for DDL fragments
(physical column types, ``ALTER TABLE`` forms, constraint syntax) and the
repositories ask it for DML helpers (upsert, insert-or-ignore), so no
backend-specific SQL lives in domain code.

Manifesto:
    A tenant's schema must synthesize identically on SQLite (tests, small
    installs), PostgreSQL and MySQL.  Where a backend cannot express an
    operation (SQLite cannot add a constraint to an existing table), the
    dialect says so by returning ``None`` and the planner records a note
    instead of failing.

    - **One interface:** Dialect protocol for all SQL generation
    - **Zero coupling:** Domain code never imports database drivers
    - **Named parameters:** DML uses ``:name`` binds, executed via SQLAlchemy ``text()``

Architecture::

    ┌──────────────────────────────────────────────────────────────────┐
    │                  SchemaPlanner / repositories                     │
    │   d.create_table(t)   d.add_column(t, attr)   d.upsert(...)      │
    └──────────────────────────────────────────────────────────────────┘
                                  │
                                  ▼
    ┌────────────────────┐ ┌────────────────────┐ ┌────────────────────┐
    │ SQLite             │ │ PostgreSQL         │ │ MySQL              │
    │ "ident"            │ │ "ident"            │ │ `ident`            │
    │ inline FK on ADD   │ │ ADD CONSTRAINT     │ │ ADD CONSTRAINT     │
    │ UNIQUE INDEX       │ │ UNIQUE             │ │ UNIQUE             │
    │ CHECK (c IN ...)   │ │ CHECK (c IN ...)   │ │ ENUM(...)          │
    └────────────────────┘ └────────────────────┘ └────────────────────┘

Examples:
    >>> from mms.core.dialect import get_dialect
    >>> d = get_dialect("sqlite")
    >>> d.quote("order")
    '"order"'
    >>> d.relax_nullable("t1_machine", "line_id") is None
    True

Tags:
    dialect, sql, ddl, portability, database, mms-core
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from mms.core.structure import AttributeDefinition, AttributeType

_FK_ACTIONS = "ON DELETE RESTRICT ON UPDATE CASCADE"


def sql_literal(value: str) -> str:
    """Quote *value* as a SQL string literal."""
    return "'" + str(value).replace("'", "''") + "'"


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract.

    DDL methods return complete statements.  A ``None`` return means the
    backend cannot perform the operation in place.
    """

    @property
    def name(self) -> str:
        """Dialect name as reported by SQLAlchemy (``'sqlite'``, ...)."""
        ...

    @property
    def inline_foreign_keys(self) -> bool:
        """True when FKs can only be declared on the ``ADD COLUMN`` itself."""
        ...

    @property
    def returning_id(self) -> bool:
        """True when inserts should use ``RETURNING id`` instead of lastrowid."""
        ...

    # -- Identifiers / expressions -----------------------------------------

    def quote(self, ident: str) -> str:
        """Quote an identifier."""
        ...

    def now(self) -> str:
        """SQL expression for the current timestamp."""
        ...

    # -- DDL ---------------------------------------------------------------

    def auto_increment(self) -> str:
        """Full column type of an auto-incrementing integer primary key."""
        ...

    def timestamp_default_now(self) -> str:
        """``DEFAULT`` clause for an audit timestamp column."""
        ...

    def column_definition(self, attr: AttributeDefinition) -> str:
        """Column definition (name, type, nullability, default, check)."""
        ...

    def create_table(self, table: str) -> str:
        """``CREATE TABLE IF NOT EXISTS`` with id and audit columns only."""
        ...

    def add_column(self, table: str, attr: AttributeDefinition) -> str:
        ...

    def add_parent_column(self, table: str, column: str, parent_table: str) -> str:
        """Add the nullable integer parent reference column."""
        ...

    def add_foreign_key(self, table: str, name: str, column: str, parent_table: str) -> str | None:
        ...

    def create_index(self, table: str, name: str, columns: list[str]) -> str:
        ...

    def add_unique(self, table: str, name: str, columns: list[str]) -> str:
        ...

    def relax_nullable(self, table: str, column: str) -> str | None:
        ...

    # -- DML ---------------------------------------------------------------

    def upsert(
        self, table: str, columns: list[str], key_columns: list[str], *, touch: str | None = None
    ) -> str:
        """``INSERT … ON CONFLICT (keys) DO UPDATE`` with ``:column`` binds.

        *touch* names a timestamp column set to :meth:`now` when the row is updated.
        """
        ...

    def insert_or_ignore(self, table: str, columns: list[str]) -> str:
        """Insert with ``:column`` binds that silently skips duplicates."""
        ...


# =========================================================================
# Shared DDL pieces
# =========================================================================


def _zero_default(attr: AttributeDefinition, boolean_false: str) -> str:
    """Literal that satisfies ``NOT NULL`` (and any enum check) on existing rows."""
    kind = attr.type
    if kind in (AttributeType.INTEGER, AttributeType.NUMBER):
        return "0"
    if kind is AttributeType.BOOLEAN:
        return boolean_false
    if kind is AttributeType.DATE:
        return sql_literal("1970-01-01 00:00:00")
    if kind is AttributeType.JSON:
        return sql_literal("{}")
    if kind is AttributeType.ENUM and attr.values:
        return sql_literal(attr.values[0])
    return sql_literal("")


def _check_enum(quoted_column: str, attr: AttributeDefinition) -> str:
    if attr.type is not AttributeType.ENUM or not attr.values:
        return ""
    literals = ", ".join(sql_literal(v) for v in attr.values)
    return f" CHECK ({quoted_column} IN ({literals}))"


def _columns(d: Dialect, columns: list[str]) -> str:
    return ", ".join(d.quote(c) for c in columns)


# =========================================================================
# Concrete Dialect Implementations
# =========================================================================


class SQLiteDialect:
    """SQLite dialect: ``"ident"`` quoting, inline FKs, unique indexes."""

    @property
    def name(self) -> str:
        return "sqlite"

    @property
    def inline_foreign_keys(self) -> bool:
        return True

    @property
    def returning_id(self) -> bool:
        return False

    def quote(self, ident: str) -> str:
        return '"' + ident.replace('"', '""') + '"'

    def now(self) -> str:
        return "datetime('now')"

    # -- DDL ---------------------------------------------------------------

    def auto_increment(self) -> str:
        return "INTEGER PRIMARY KEY AUTOINCREMENT"

    def timestamp_default_now(self) -> str:
        return "DEFAULT (datetime('now'))"

    def _type(self, attr: AttributeDefinition) -> str:
        return {
            AttributeType.STRING: "VARCHAR(255)",
            AttributeType.INTEGER: "INTEGER",
            AttributeType.NUMBER: "NUMERIC(18,4)",
            AttributeType.BOOLEAN: "BOOLEAN",
            AttributeType.DATE: "TIMESTAMP",
            AttributeType.JSON: "JSON",
            AttributeType.ENUM: "VARCHAR(255)",
        }[attr.type]

    def column_definition(self, attr: AttributeDefinition) -> str:
        col = self.quote(attr.column)
        sql = f"{col} {self._type(attr)}"
        if attr.required:
            # SQLite refuses NOT NULL without a non-null default on ALTER.
            sql += f" NOT NULL DEFAULT {_zero_default(attr, '0')}"
        return sql + _check_enum(col, attr)

    def create_table(self, table: str) -> str:
        ts = self.timestamp_default_now()
        return (
            f"CREATE TABLE IF NOT EXISTS {self.quote(table)} ("
            f"{self.quote('id')} {self.auto_increment()}, "
            f"{self.quote('created_by')} INTEGER, "
            f"{self.quote('updated_by')} INTEGER, "
            f"{self.quote('created_at')} TIMESTAMP NOT NULL {ts}, "
            f"{self.quote('updated_at')} TIMESTAMP NOT NULL {ts})"
        )

    def add_column(self, table: str, attr: AttributeDefinition) -> str:
        return f"ALTER TABLE {self.quote(table)} ADD COLUMN {self.column_definition(attr)}"

    def add_parent_column(self, table: str, column: str, parent_table: str) -> str:
        return (
            f"ALTER TABLE {self.quote(table)} ADD COLUMN {self.quote(column)} INTEGER "
            f"REFERENCES {self.quote(parent_table)} ({self.quote('id')}) {_FK_ACTIONS}"
        )

    def add_foreign_key(self, table: str, name: str, column: str, parent_table: str) -> str | None:
        return None

    def create_index(self, table: str, name: str, columns: list[str]) -> str:
        return (
            f"CREATE INDEX IF NOT EXISTS {self.quote(name)} "
            f"ON {self.quote(table)} ({_columns(self, columns)})"
        )

    def add_unique(self, table: str, name: str, columns: list[str]) -> str:
        return (
            f"CREATE UNIQUE INDEX IF NOT EXISTS {self.quote(name)} "
            f"ON {self.quote(table)} ({_columns(self, columns)})"
        )

    def relax_nullable(self, table: str, column: str) -> str | None:
        return None

    # -- DML ---------------------------------------------------------------

    def upsert(
        self, table: str, columns: list[str], key_columns: list[str], *, touch: str | None = None
    ) -> str:
        cols = ", ".join(columns)
        binds = ", ".join(f":{c}" for c in columns)
        keys = ", ".join(key_columns)
        updates = ", ".join(f"{c} = excluded.{c}" for c in columns if c not in key_columns)
        if touch:
            updates += f", {touch} = {self.now()}"
        return (
            f"INSERT INTO {table} ({cols}) VALUES ({binds}) "
            f"ON CONFLICT ({keys}) DO UPDATE SET {updates}"
        )

    def insert_or_ignore(self, table: str, columns: list[str]) -> str:
        cols = ", ".join(columns)
        binds = ", ".join(f":{c}" for c in columns)
        return f"INSERT OR IGNORE INTO {table} ({cols}) VALUES ({binds})"


class PostgreSQLDialect:
    """PostgreSQL dialect: ``SERIAL`` keys, ``ALTER TABLE … ADD CONSTRAINT``."""

    @property
    def name(self) -> str:
        return "postgresql"

    @property
    def inline_foreign_keys(self) -> bool:
        return False

    @property
    def returning_id(self) -> bool:
        return True

    def quote(self, ident: str) -> str:
        return '"' + ident.replace('"', '""') + '"'

    def now(self) -> str:
        return "NOW()"

    def auto_increment(self) -> str:
        return "SERIAL PRIMARY KEY"

    def timestamp_default_now(self) -> str:
        return "DEFAULT NOW()"

    def _type(self, attr: AttributeDefinition) -> str:
        return {
            AttributeType.STRING: "VARCHAR(255)",
            AttributeType.INTEGER: "INTEGER",
            AttributeType.NUMBER: "NUMERIC(18,4)",
            AttributeType.BOOLEAN: "BOOLEAN",
            AttributeType.DATE: "TIMESTAMP",
            AttributeType.JSON: "JSONB",
            AttributeType.ENUM: "VARCHAR(255)",
        }[attr.type]

    def column_definition(self, attr: AttributeDefinition) -> str:
        col = self.quote(attr.column)
        sql = f"{col} {self._type(attr)}"
        if attr.required:
            sql += f" NOT NULL DEFAULT {_zero_default(attr, 'FALSE')}"
        return sql + _check_enum(col, attr)

    def create_table(self, table: str) -> str:
        ts = self.timestamp_default_now()
        return (
            f"CREATE TABLE IF NOT EXISTS {self.quote(table)} ("
            f"{self.quote('id')} {self.auto_increment()}, "
            f"{self.quote('created_by')} INTEGER, "
            f"{self.quote('updated_by')} INTEGER, "
            f"{self.quote('created_at')} TIMESTAMP NOT NULL {ts}, "
            f"{self.quote('updated_at')} TIMESTAMP NOT NULL {ts})"
        )

    def add_column(self, table: str, attr: AttributeDefinition) -> str:
        return f"ALTER TABLE {self.quote(table)} ADD COLUMN {self.column_definition(attr)}"

    def add_parent_column(self, table: str, column: str, parent_table: str) -> str:
        return f"ALTER TABLE {self.quote(table)} ADD COLUMN {self.quote(column)} INTEGER NULL"

    def add_foreign_key(self, table: str, name: str, column: str, parent_table: str) -> str | None:
        return (
            f"ALTER TABLE {self.quote(table)} ADD CONSTRAINT {self.quote(name)} "
            f"FOREIGN KEY ({self.quote(column)}) "
            f"REFERENCES {self.quote(parent_table)} ({self.quote('id')}) {_FK_ACTIONS}"
        )

    def create_index(self, table: str, name: str, columns: list[str]) -> str:
        return (
            f"CREATE INDEX IF NOT EXISTS {self.quote(name)} "
            f"ON {self.quote(table)} ({_columns(self, columns)})"
        )

    def add_unique(self, table: str, name: str, columns: list[str]) -> str:
        return (
            f"ALTER TABLE {self.quote(table)} ADD CONSTRAINT {self.quote(name)} "
            f"UNIQUE ({_columns(self, columns)})"
        )

    def relax_nullable(self, table: str, column: str) -> str | None:
        return f"ALTER TABLE {self.quote(table)} ALTER COLUMN {self.quote(column)} DROP NOT NULL"

    def upsert(
        self, table: str, columns: list[str], key_columns: list[str], *, touch: str | None = None
    ) -> str:
        cols = ", ".join(columns)
        binds = ", ".join(f":{c}" for c in columns)
        keys = ", ".join(key_columns)
        updates = ", ".join(f"{c} = EXCLUDED.{c}" for c in columns if c not in key_columns)
        if touch:
            updates += f", {touch} = {self.now()}"
        return (
            f"INSERT INTO {table} ({cols}) VALUES ({binds}) "
            f"ON CONFLICT ({keys}) DO UPDATE SET {updates}"
        )

    def insert_or_ignore(self, table: str, columns: list[str]) -> str:
        cols = ", ".join(columns)
        binds = ", ".join(f":{c}" for c in columns)
        return f"INSERT INTO {table} ({cols}) VALUES ({binds}) ON CONFLICT DO NOTHING"


class MySQLDialect:
    """MySQL / MariaDB dialect: backtick quoting, native ``ENUM``."""

    @property
    def name(self) -> str:
        return "mysql"

    @property
    def inline_foreign_keys(self) -> bool:
        return False

    @property
    def returning_id(self) -> bool:
        return False

    def quote(self, ident: str) -> str:
        return "`" + ident.replace("`", "``") + "`"

    def now(self) -> str:
        return "NOW()"

    def auto_increment(self) -> str:
        return "INT AUTO_INCREMENT PRIMARY KEY"

    def timestamp_default_now(self) -> str:
        return "DEFAULT CURRENT_TIMESTAMP"

    def _type(self, attr: AttributeDefinition) -> str:
        if attr.type is AttributeType.ENUM:
            if not attr.values:
                return "VARCHAR(255)"
            return "ENUM(" + ", ".join(sql_literal(v) for v in attr.values) + ")"
        return {
            AttributeType.STRING: "VARCHAR(255)",
            AttributeType.INTEGER: "INT",
            AttributeType.NUMBER: "DECIMAL(18,4)",
            AttributeType.BOOLEAN: "TINYINT(1)",
            AttributeType.DATE: "DATETIME",
            AttributeType.JSON: "JSON",
        }[attr.type]

    def column_definition(self, attr: AttributeDefinition) -> str:
        # MySQL back-fills implicit defaults for NOT NULL columns on ALTER.
        null = "NOT NULL" if attr.required else "NULL"
        return f"{self.quote(attr.column)} {self._type(attr)} {null}"

    def create_table(self, table: str) -> str:
        ts = self.timestamp_default_now()
        return (
            f"CREATE TABLE IF NOT EXISTS {self.quote(table)} ("
            f"{self.quote('id')} {self.auto_increment()}, "
            f"{self.quote('created_by')} INT NULL, "
            f"{self.quote('updated_by')} INT NULL, "
            f"{self.quote('created_at')} DATETIME NOT NULL {ts}, "
            f"{self.quote('updated_at')} DATETIME NOT NULL {ts} ON UPDATE CURRENT_TIMESTAMP"
            ") ENGINE=InnoDB"
        )

    def add_column(self, table: str, attr: AttributeDefinition) -> str:
        return f"ALTER TABLE {self.quote(table)} ADD COLUMN {self.column_definition(attr)}"

    def add_parent_column(self, table: str, column: str, parent_table: str) -> str:
        return f"ALTER TABLE {self.quote(table)} ADD COLUMN {self.quote(column)} INT NULL"

    def add_foreign_key(self, table: str, name: str, column: str, parent_table: str) -> str | None:
        return (
            f"ALTER TABLE {self.quote(table)} ADD CONSTRAINT {self.quote(name)} "
            f"FOREIGN KEY ({self.quote(column)}) "
            f"REFERENCES {self.quote(parent_table)} ({self.quote('id')}) {_FK_ACTIONS}"
        )

    def create_index(self, table: str, name: str, columns: list[str]) -> str:
        return f"CREATE INDEX {self.quote(name)} ON {self.quote(table)} ({_columns(self, columns)})"

    def add_unique(self, table: str, name: str, columns: list[str]) -> str:
        return (
            f"ALTER TABLE {self.quote(table)} ADD CONSTRAINT {self.quote(name)} "
            f"UNIQUE ({_columns(self, columns)})"
        )

    def relax_nullable(self, table: str, column: str) -> str | None:
        return f"ALTER TABLE {self.quote(table)} MODIFY {self.quote(column)} INT NULL"

    def upsert(
        self, table: str, columns: list[str], key_columns: list[str], *, touch: str | None = None
    ) -> str:
        cols = ", ".join(columns)
        binds = ", ".join(f":{c}" for c in columns)
        updates = ", ".join(f"{c} = VALUES({c})" for c in columns if c not in key_columns)
        if touch:
            updates += f", {touch} = {self.now()}"
        return f"INSERT INTO {table} ({cols}) VALUES ({binds}) ON DUPLICATE KEY UPDATE {updates}"

    def insert_or_ignore(self, table: str, columns: list[str]) -> str:
        cols = ", ".join(columns)
        binds = ", ".join(f":{c}" for c in columns)
        return f"INSERT IGNORE INTO {table} ({cols}) VALUES ({binds})"


# =========================================================================
# Registry / Factory
# =========================================================================

_DIALECTS: dict[str, Dialect] = {
    "sqlite": SQLiteDialect(),
    "postgresql": PostgreSQLDialect(),
    "postgres": PostgreSQLDialect(),  # alias
    "mysql": MySQLDialect(),
    "mariadb": MySQLDialect(),  # alias
}


def get_dialect(db_type: str) -> Dialect:
    """Get a dialect by database type name.

    Raises:
        ValueError: If ``db_type`` is not recognised.
    """
    key = db_type.lower()
    if key not in _DIALECTS:
        raise ValueError(
            f"Unknown dialect '{db_type}'. "
            f"Supported: {sorted(set(_DIALECTS) - {'postgres', 'mariadb'})}"
        )
    return _DIALECTS[key]


__all__ = [
    "Dialect",
    "SQLiteDialect",
    "PostgreSQLDialect",
    "MySQLDialect",
    "get_dialect",
    "sql_literal",
]
