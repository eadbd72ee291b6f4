"""
Typed response objects for operations.

Each dataclass represents the *output* of a single operation beyond the
generic :class:`OperationResult` envelope.  Responses carry only domain
data: no HTTP status codes, no CLI formatting.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

# ------------------------------------------------------------------ #
# Database responses
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class DatabaseInitResult:
    """Result payload for :func:`mms.ops.database.initialize_database`."""

    tables_created: list[str]
    dry_run: bool = False


@dataclass(frozen=True, slots=True)
class DatabaseHealth:
    """Database health for :func:`mms.ops.database.check_database_health`."""

    connected: bool
    backend: str = "unknown"  # "sqlite", "postgresql", "mysql"
    table_count: int = 0
    latency_ms: float = 0.0
    missing_tables: list[str] = field(default_factory=list)


# ------------------------------------------------------------------ #
# Tenant responses
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class TenantSummary:
    """A registered tenant."""

    id: int
    name: str
    created_at: datetime | str | None = None


# ------------------------------------------------------------------ #
# Structure responses
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class StructureDocument:
    """Result payload of Get/SaveStructure.  Version ``0`` means "default"."""

    tenant_id: int
    version: int
    structure: dict[str, Any]


# ------------------------------------------------------------------ #
# Schema responses
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class SchemaPlanPreview:
    """Result payload for :func:`mms.ops.schema.preview_schema`."""

    tenant_id: int
    statements: list[str]
    registry_updates: dict[str, str]
    notes: list[str]


@dataclass(frozen=True, slots=True)
class SchemaApplyResult:
    """Result payload for :func:`mms.ops.schema.apply_schema`."""

    tenant_id: int
    version: int
    executed_statements: list[str]
    notes: list[str]
    breaking: bool = False
    dry_run: bool = False


@dataclass(frozen=True, slots=True)
class SchemaVersionSummary:
    """One row of the schema version history."""

    tenant_id: int
    version: int
    breaking: bool
    statements: list[str]
    notes: list[str]
    applied_by: int | None = None
    created_at: datetime | str | None = None


# ------------------------------------------------------------------ #
# Data responses
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class DeletedRow:
    """Result payload for :func:`mms.ops.data.delete_data`."""

    id: int
    deleted: bool = True
