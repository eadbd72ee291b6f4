"""
Dynamic data access: CRUD over synthesized tenant tables.

Manifesto:
    No tenant's columns are known at import time.  Every call is driven
    by three things only: the tenant's saved structure, the table catalog
    (registry + live introspection) and the caller's payload.  A declared
    attribute that has no physical column yet is a *materialization*
    problem, reported by name, never a generic SQL error.

Architecture::

    list/create/get/update/delete(tenant, type_key, ...)
        │
        ├─ StructureRepository.get() → parse_structure()   (declared shape)
        ├─ resolve_relationships()                         (parent column)
        ├─ TableCatalog.resolve()                          (physical shape)
        ├─ coerce_value() per attribute                    (write path)
        └─ decode_row()                                    (read path)

Rules:
    - Payload keys may be the attribute key or ``attr_<key>``.
    - Required attributes must be present on create.
    - Every supplied or required attribute must have a column, otherwise
      :class:`MaterializationError` names all of them (after one forced
      catalog refresh).
    - A single-parent type that never appears at the top of the tree
      needs a positive integer ``<parent>_id``.
    - Constraint violations become :class:`ConflictError` carrying the
      database's message.

Tags:
    data-access, crud, dynamic-schema, mms-core
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from mms.core.catalog import ResolvedTable, TableCatalog
from mms.core.coercion import INTEGER_MAX, coerce_value, decode_row
from mms.core.dialect import Dialect
from mms.core.errors import (
    ConflictError,
    FieldError,
    MaterializationError,
    NotFoundError,
    TransactionFailure,
    ValidationError,
)
from mms.core.identifiers import parent_column
from mms.core.logging import get_logger
from mms.core.relationships import Relationships, resolve_relationships
from mms.core.repositories import StructureRepository
from mms.core.repository import BaseRepository
from mms.core.structure import (
    AttributeDefinition,
    Structure,
    TypeDefinition,
    is_blank,
    parse_structure,
)

logger = get_logger(__name__)

ATTR_PREFIX = "attr_"


def normalize_payload(definition: TypeDefinition, payload: Mapping[str, Any]) -> dict[str, Any]:
    """Pick the payload values addressed to *definition*'s attributes.

    Keys are matched directly or with the ``attr_`` prefix; the direct key
    wins when both are present.  Unknown keys are ignored.
    """
    values: dict[str, Any] = {}
    for attr in definition.attributes:
        if attr.key in payload:
            values[attr.key] = payload[attr.key]
        elif f"{ATTR_PREFIX}{attr.key}" in payload:
            values[attr.key] = payload[f"{ATTR_PREFIX}{attr.key}"]
    return values


def positive_int(value: Any) -> int | None:
    """``value`` as a positive integer, or ``None`` if it is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str) and value.strip().isdecimal() and len(value.strip()) <= 19:
        value = int(value.strip())
    if isinstance(value, int) and 0 < value <= INTEGER_MAX:
        return value
    return None


class _TypeContext:
    """Everything a call needs to know about one type of one tenant."""

    __slots__ = ("tenant_id", "structure", "definition", "rels", "parent_col")

    def __init__(self, tenant_id: int, structure: Structure, definition: TypeDefinition) -> None:
        self.tenant_id = tenant_id
        self.structure = structure
        self.definition = definition
        self.rels: Relationships = resolve_relationships(structure)
        parent = self.rels.parent_of(definition.key)
        self.parent_col = parent_column(parent) if parent and parent != definition.key else None

    @property
    def parent_required(self) -> bool:
        return self.parent_col is not None and self.rels.parent_required(self.definition.key)


class DynamicDataAccess(BaseRepository):
    """Generic CRUD for one connection.

    Parameters:
        conn: Connection the calls run on; writes are committed here.
        catalog: Shared table catalog.  A non-caching one is used if omitted.
        dialect: SQL dialect.  Derived from the connection when omitted.
        default_limit: Page size when ``list`` is called without a limit.
        max_limit: Upper clamp for ``list`` page size.
    """

    def __init__(
        self,
        conn: Any,
        *,
        catalog: TableCatalog | None = None,
        dialect: Dialect | None = None,
        default_limit: int = 100,
        max_limit: int = 500,
    ) -> None:
        super().__init__(conn, dialect)
        self.catalog = catalog or TableCatalog(ttl_seconds=0)
        self.default_limit = default_limit
        self.max_limit = max_limit

    # -- context -----------------------------------------------------------

    def _structure(self, tenant_id: int) -> Structure | None:
        row = StructureRepository(self.conn, self.dialect).get(tenant_id)
        if row is None:
            return None
        return parse_structure(row["structure"])

    def _context(self, tenant_id: int, type_key: str, structure: Structure | None = None) -> _TypeContext:
        structure = structure or self._structure(tenant_id)
        if structure is None:
            raise NotFoundError(
                f"No structure saved for tenant {tenant_id}"
            ).with_context(tenant_id=tenant_id, type_key=type_key)
        definition = structure.get_type(type_key)
        if definition is None:
            raise NotFoundError(
                f"Unknown type '{type_key}'"
            ).with_context(tenant_id=tenant_id, type_key=type_key)
        return _TypeContext(tenant_id, structure, definition)

    def _table(self, ctx: _TypeContext, *, refresh: bool = False) -> ResolvedTable:
        return self.catalog.resolve(self.conn, ctx.tenant_id, ctx.definition.key, refresh=refresh)

    def _fetch(self, table: ResolvedTable, row_id: int) -> dict[str, Any] | None:
        return self.query_one(
            f"SELECT * FROM {self.dialect.quote(table.name)} WHERE {self.dialect.quote('id')} = :id",
            {"id": row_id},
        )

    def _materialized(
        self,
        ctx: _TypeContext,
        table: ResolvedTable,
        needed: list[AttributeDefinition],
        extra_columns: list[str],
    ) -> ResolvedTable:
        """Return a table that has every needed column, refreshing once."""

        def missing(t: ResolvedTable) -> list[str]:
            gone = [a.key for a in needed if not t.has_column(a.column)]
            gone += [c for c in extra_columns if not t.has_column(c)]
            return gone

        if not missing(table):
            return table
        table = self._table(ctx, refresh=True)
        gone = missing(table)
        if gone:
            raise MaterializationError(gone, type_key=ctx.definition.key).with_context(
                tenant_id=ctx.tenant_id, table=table.name
            )
        return table

    def _parent_value(self, ctx: _TypeContext, payload: Mapping[str, Any], *, creating: bool) -> tuple[bool, int | None]:
        """``(present, id)`` for the parent column of the payload."""
        col = ctx.parent_col
        if col is None:
            return False, None
        supplied = col in payload
        raw = payload.get(col)
        if is_blank(raw):
            if ctx.parent_required and (creating or supplied):
                raise ValidationError(f"Missing or invalid {col}", field=col)
            # An explicit null on update detaches the row.
            return supplied and not creating, None
        parent_id = positive_int(raw)
        if parent_id is None:
            raise ValidationError(f"Missing or invalid {col}", field=col)
        return True, parent_id

    def _write(self, sql: str, params: Mapping[str, Any], ctx: _TypeContext, table: ResolvedTable) -> Any:
        try:
            return self.conn.execute(sql, params)
        except IntegrityError as exc:
            self.conn.rollback()
            detail = str(getattr(exc, "orig", exc))
            logger.info("row_conflict", tenant_id=ctx.tenant_id, table=table.name, detail=detail)
            raise ConflictError(
                f"Constraint violation on {ctx.definition.key}", detail=detail, cause=exc
            ).with_context(tenant_id=ctx.tenant_id, type_key=ctx.definition.key, table=table.name) from exc
        except SQLAlchemyError as exc:
            self.conn.rollback()
            raise TransactionFailure(
                f"Write to {table.name} failed: {exc}", statements=[sql], cause=exc
            ).with_context(tenant_id=ctx.tenant_id, table=table.name) from exc

    # -- operations --------------------------------------------------------

    def list(
        self,
        tenant_id: int,
        type_key: str,
        *,
        filters: Mapping[str, Any] | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> tuple[list[dict[str, Any]], int]:
        """Newest-first page of rows.  Returns ``(rows, total)``.

        A tenant without a saved structure has no rows.
        """
        structure = self._structure(tenant_id)
        if structure is None:
            return [], 0
        ctx = self._context(tenant_id, type_key, structure)
        table = self._table(ctx)
        filters = filters or {}
        q = self.dialect.quote

        clauses: list[str] = []
        params: dict[str, Any] = {}
        filter_columns = ["id"]
        if ctx.parent_col and table.has_column(ctx.parent_col):
            filter_columns.append(ctx.parent_col)
        for i, col in enumerate(filter_columns):
            raw = filters.get(col)
            if is_blank(raw):
                continue
            value = positive_int(raw)
            if value is None:
                raise ValidationError(f"Filter {col} must be a positive integer", field=col)
            clauses.append(f"{q(col)} = :f{i}")
            params[f"f{i}"] = value

        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        limit = self.default_limit if limit is None else limit
        limit = max(1, min(int(limit), self.max_limit))
        offset = max(0, int(offset))

        total = self.scalar(f"SELECT COUNT(*) FROM {q(table.name)}{where}", params) or 0
        rows = self.query(
            f"SELECT * FROM {q(table.name)}{where} ORDER BY {q('id')} DESC "
            "LIMIT :limit OFFSET :offset",
            {**params, "limit": limit, "offset": offset},
        )
        items = [decode_row(r, ctx.definition.attributes) for r in rows]
        return items, int(total)

    def get(self, tenant_id: int, type_key: str, row_id: int) -> dict[str, Any]:
        ctx = self._context(tenant_id, type_key)
        table = self._table(ctx)
        row = self._fetch(table, row_id)
        if row is None:
            raise NotFoundError(f"{type_key} {row_id} not found").with_context(
                tenant_id=tenant_id, type_key=type_key, row_id=row_id
            )
        return decode_row(row, ctx.definition.attributes)

    def create(
        self,
        tenant_id: int,
        type_key: str,
        payload: Mapping[str, Any],
        *,
        user_id: int | None = None,
    ) -> dict[str, Any]:
        """Insert a row and return it as stored."""
        ctx = self._context(tenant_id, type_key)
        table = self._table(ctx)
        values = normalize_payload(ctx.definition, payload)

        absent = [
            FieldError(field=a.key, message=f"'{a.key}' is required")
            for a in ctx.definition.attributes
            if a.required and is_blank(values.get(a.key))
        ]
        if absent:
            raise ValidationError(
                f"Missing required attributes: {', '.join(e.field for e in absent)}",
                errors=absent,
            )

        has_parent, parent_id = self._parent_value(ctx, payload, creating=True)
        needed = [a for a in ctx.definition.attributes if a.key in values or a.required]
        extra = [ctx.parent_col] if has_parent and ctx.parent_col else []
        table = self._materialized(ctx, table, needed, extra)

        row: dict[str, Any] = {}
        for attr in ctx.definition.attributes:
            if attr.key in values:
                row[attr.column] = coerce_value(attr, values[attr.key])
        if has_parent and ctx.parent_col:
            row[ctx.parent_col] = parent_id
        if user_id is not None:
            for col in ("created_by", "updated_by"):
                if table.has_column(col):
                    row[col] = user_id

        q = self.dialect.quote
        columns = list(row)
        binds = {f"v{i}": row[c] for i, c in enumerate(columns)}
        if columns:
            sql = (
                f"INSERT INTO {q(table.name)} ({', '.join(q(c) for c in columns)}) "
                f"VALUES ({', '.join(f':v{i}' for i in range(len(columns)))})"
            )
        elif self.dialect.name == "mysql":
            sql = f"INSERT INTO {q(table.name)} () VALUES ()"
        else:
            sql = f"INSERT INTO {q(table.name)} DEFAULT VALUES"
        if self.dialect.returning_id:
            sql += f" RETURNING {q('id')}"
            fetched = self._write(sql, binds, ctx, table).fetchone()
            new_id = int(fetched[0])
        else:
            new_id = int(self._write(sql, binds, ctx, table).lastrowid)
        self.commit()

        logger.info("row_created", tenant_id=tenant_id, type_key=type_key, row_id=new_id)
        created = self._fetch(table, new_id) or {"id": new_id, **row}
        return decode_row(created, ctx.definition.attributes)

    def update(
        self,
        tenant_id: int,
        type_key: str,
        row_id: int,
        payload: Mapping[str, Any],
        *,
        user_id: int | None = None,
    ) -> dict[str, Any]:
        """Apply the payload's attributes to an existing row and return it."""
        ctx = self._context(tenant_id, type_key)
        table = self._table(ctx)
        if self._fetch(table, row_id) is None:
            raise NotFoundError(f"{type_key} {row_id} not found").with_context(
                tenant_id=tenant_id, type_key=type_key, row_id=row_id
            )

        values = normalize_payload(ctx.definition, payload)
        has_parent, parent_id = self._parent_value(ctx, payload, creating=False)
        if not values and not has_parent:
            raise ValidationError("No updatable fields")

        needed = [a for a in ctx.definition.attributes if a.key in values]
        extra = [ctx.parent_col] if has_parent and ctx.parent_col else []
        table = self._materialized(ctx, table, needed, extra)

        changes: dict[str, Any] = {}
        for attr in needed:
            changes[attr.column] = coerce_value(attr, values[attr.key])
        if has_parent and ctx.parent_col:
            changes[ctx.parent_col] = parent_id
        if user_id is not None and table.has_column("updated_by"):
            changes["updated_by"] = user_id

        q = self.dialect.quote
        assignments = [f"{q(c)} = :v{i}" for i, c in enumerate(changes)]
        if table.has_column("updated_at"):
            assignments.append(f"{q('updated_at')} = {self.dialect.now()}")
        binds = {f"v{i}": v for i, v in enumerate(changes.values())}
        binds["row_id"] = row_id
        sql = f"UPDATE {q(table.name)} SET {', '.join(assignments)} WHERE {q('id')} = :row_id"
        self._write(sql, binds, ctx, table)
        self.commit()

        logger.info("row_updated", tenant_id=tenant_id, type_key=type_key, row_id=row_id)
        return self.get(tenant_id, type_key, row_id)

    def delete(self, tenant_id: int, type_key: str, row_id: int) -> dict[str, Any]:
        """Delete by primary key.  Returns ``{"deleted": True, "id": row_id}``."""
        ctx = self._context(tenant_id, type_key)
        table = self._table(ctx)
        if self._fetch(table, row_id) is None:
            raise NotFoundError(f"{type_key} {row_id} not found").with_context(
                tenant_id=tenant_id, type_key=type_key, row_id=row_id
            )
        q = self.dialect.quote
        self._write(f"DELETE FROM {q(table.name)} WHERE {q('id')} = :id", {"id": row_id}, ctx, table)
        self.commit()

        logger.info("row_deleted", tenant_id=tenant_id, type_key=type_key, row_id=row_id)
        return {"deleted": True, "id": row_id}


__all__ = ["ATTR_PREFIX", "DynamicDataAccess", "normalize_payload", "positive_int"]
