"""Metadata table definitions: tenants, structures, registry, versions, locks.

These tables are the engine's own state.  Synthesized per-tenant tables
(``t<tenant>_<type>``) live next to them in the same database but are
created by the schema applier, not by this metadata.

Tags:
    mms-core, orm, sqlalchemy, tables

Doc-Types:
    api-reference, data-model
"""

from __future__ import annotations

import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from mms.core.orm.base import MmsBase, TimestampMixin

_NOW = func.current_timestamp()


class TenantTable(MmsBase):
    __tablename__ = "tenants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime, nullable=False, server_default=_NOW
    )


class StructureTable(TimestampMixin, MmsBase):
    """One declarative structure document per tenant."""

    __tablename__ = "tenant_structures"

    tenant_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tenants.id", ondelete="CASCADE"), primary_key=True
    )
    structure_json: Mapped[str] = mapped_column(Text, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_by: Mapped[int | None] = mapped_column(Integer)
    updated_by: Mapped[int | None] = mapped_column(Integer)


class TableRegistryTable(MmsBase):
    """Logical type key → physical table name, per tenant."""

    __tablename__ = "tenant_table_registry"
    __table_args__ = (
        UniqueConstraint("tenant_id", "type_key", name="uq_tenant_table_registry_type"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )
    type_key: Mapped[str] = mapped_column(String(128), nullable=False)
    table_name: Mapped[str] = mapped_column(String(128), nullable=False)
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime, nullable=False, server_default=_NOW
    )


class SchemaVersionTable(MmsBase):
    """Append-only audit trail of schema applies."""

    __tablename__ = "tenant_schema_versions"
    __table_args__ = (
        UniqueConstraint("tenant_id", "version", name="uq_tenant_schema_versions_version"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    breaking: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    summary_json: Mapped[str] = mapped_column(Text, nullable=False)
    notes_json: Mapped[str | None] = mapped_column(Text)
    applied_by: Mapped[int | None] = mapped_column(Integer)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime, nullable=False, server_default=_NOW
    )


class SchemaLockTable(MmsBase):
    """Advisory lock serializing schema applies per tenant."""

    __tablename__ = "tenant_schema_locks"

    tenant_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    locked_by: Mapped[str] = mapped_column(String(64), nullable=False)
    locked_at: Mapped[str] = mapped_column(String(40), nullable=False)
    expires_at: Mapped[str] = mapped_column(String(40), nullable=False)


METADATA_TABLES: tuple[str, ...] = (
    TenantTable.__tablename__,
    StructureTable.__tablename__,
    TableRegistryTable.__tablename__,
    SchemaVersionTable.__tablename__,
    SchemaLockTable.__tablename__,
)

__all__ = [
    "TenantTable",
    "StructureTable",
    "TableRegistryTable",
    "SchemaVersionTable",
    "SchemaLockTable",
    "METADATA_TABLES",
]
