"""
Typed request objects for operations.

Each dataclass represents the *input* contract for a single operation
function.  Requests carry only transport-agnostic data: no raw HTTP
bodies, no Typer params.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# ------------------------------------------------------------------ #
# Tenants
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class RegisterTenantRequest:
    """Request for :func:`mms.ops.tenants.register_tenant`."""

    name: str = ""


# ------------------------------------------------------------------ #
# Structure
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class SaveStructureRequest:
    """Request for :func:`mms.ops.structure.save_structure`.

    ``structure`` may be the bare document or wrapped as ``{"structure": {...}}``.
    """

    tenant_id: int = 0
    structure: dict[str, Any] = field(default_factory=dict)


# ------------------------------------------------------------------ #
# Schema
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class ApplySchemaRequest:
    """Request for :func:`mms.ops.schema.apply_schema`.

    ``breaking`` is recorded in the version history only.
    """

    tenant_id: int = 0
    breaking: bool = False


@dataclass(frozen=True, slots=True)
class ListSchemaVersionsRequest:
    """Request for :func:`mms.ops.schema.list_schema_versions`."""

    tenant_id: int = 0
    limit: int = 50
    offset: int = 0


# ------------------------------------------------------------------ #
# Data
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class ListDataRequest:
    """Request for :func:`mms.ops.data.list_data`.

    ``filters`` may hold ``id`` and the type's ``<parent>_id``.
    """

    tenant_id: int = 0
    type_key: str = ""
    filters: dict[str, Any] = field(default_factory=dict)
    limit: int | None = None
    offset: int = 0


@dataclass(frozen=True, slots=True)
class CreateDataRequest:
    """Request for :func:`mms.ops.data.create_data`."""

    tenant_id: int = 0
    type_key: str = ""
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class UpdateDataRequest:
    """Request for :func:`mms.ops.data.update_data`."""

    tenant_id: int = 0
    type_key: str = ""
    row_id: int = 0
    payload: dict[str, Any] = field(default_factory=dict)
