"""Physical naming rules for synthesized tables.

Every physical name the planner emits is derived here, so the planner,
the applier and the data access layer always agree on what a type key or
attribute key is called in the database.

>>> sanitize_ident("Serial No.")
'serial_no'
>>> sanitize_ident("3phase")
'f_3phase'
>>> table_name(7, "Sub-Line")
't7_sub_line'
"""

from __future__ import annotations

import re

_INVALID = re.compile(r"[^a-z0-9_]")


def sanitize_ident(raw: str) -> str:
    """Turn an arbitrary key into a safe lower-case SQL identifier.

    Characters outside ``[a-z0-9_]`` become ``_``; surrounding underscores
    are stripped; an empty or digit-leading result gets an ``f_`` prefix.
    """
    ident = _INVALID.sub("_", str(raw).lower()).strip("_")
    if not ident or ident[0].isdigit():
        ident = f"f_{ident}"
    return ident


def table_name(tenant_id: int, type_key: str) -> str:
    """Convention table name ``t<tenant>_<type>``."""
    return f"t{int(tenant_id)}_{sanitize_ident(type_key)}"


def parent_column(parent_key: str) -> str:
    """Name of the column referencing a parent type's ``id``."""
    return f"{sanitize_ident(parent_key)}_id"


def index_name(table: str, column: str) -> str:
    return f"idx_{table}_{column}"


def foreign_key_name(table: str, column: str) -> str:
    return f"fk_{table}_{column}"


def unique_name(table: str, columns: list[str] | tuple[str, ...]) -> str:
    return f"uq_{table}_{'_'.join(columns)}"


__all__ = [
    "sanitize_ident",
    "table_name",
    "parent_column",
    "index_name",
    "foreign_key_name",
    "unique_name",
]
