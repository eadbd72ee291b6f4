"""
Domain schemas for the mms API.

Request bodies are validated here; response payloads mirror the ops
layer's response dataclasses.  Dynamic rows have no schema of their own
and travel as plain JSON objects.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

# ── Requests ─────────────────────────────────────────────────────────────


class RegisterTenantBody(BaseModel):
    name: str = Field(description="Unique tenant name")


class ApplySchemaBody(BaseModel):
    """Body for ``POST /tenants/{id}/schema/apply``."""

    breaking: bool = Field(
        default=False,
        description="Recorded in the version history; does not change what is executed",
    )
    dry_run: bool = Field(default=False, description="Return the plan without executing it")


# ── Responses ────────────────────────────────────────────────────────────


class DatabaseInitSchema(BaseModel):
    tables_created: list[str] = Field(default_factory=list)
    dry_run: bool = False


class DatabaseHealthSchema(BaseModel):
    connected: bool
    backend: str = "unknown"
    table_count: int = 0
    latency_ms: float = 0.0
    missing_tables: list[str] = Field(default_factory=list)


class TenantSchema(BaseModel):
    id: int
    name: str
    created_at: str | None = None


class StructureSchema(BaseModel):
    """A tenant's structure document; version ``0`` is the built-in default."""

    tenant_id: int
    version: int
    structure: dict[str, Any]


class SchemaPlanSchema(BaseModel):
    tenant_id: int
    statements: list[str] = Field(default_factory=list)
    registry_updates: dict[str, str] = Field(default_factory=dict)
    notes: list[str] = Field(default_factory=list)


class SchemaApplySchema(BaseModel):
    tenant_id: int
    version: int
    executed_statements: list[str] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)
    breaking: bool = False
    dry_run: bool = False


class SchemaVersionSchema(BaseModel):
    tenant_id: int
    version: int
    breaking: bool = False
    statements: list[str] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)
    applied_by: int | None = None
    created_at: str | None = None


class DeletedRowSchema(BaseModel):
    id: int
    deleted: bool = True
