"""SQLAlchemy 2.0 layer for mms.

Modules
-------
base        MmsBase (declarative base) + TimestampMixin
session     Engine factory, MmsSession, SAConnectionBridge
tables      Mapped classes for the engine's own metadata tables

Tags:
    mms-core, orm, sqlalchemy, declarative
"""

from __future__ import annotations

from mms.core.orm.base import MmsBase, TimestampMixin
from mms.core.orm.session import (
    MmsSession,
    SAConnectionBridge,
    create_mms_engine,
    get_engine,
)
from mms.core.orm.tables import (
    SchemaLockTable,
    SchemaVersionTable,
    StructureTable,
    TableRegistryTable,
    TenantTable,
)

__all__ = [
    "MmsBase",
    "TimestampMixin",
    "create_mms_engine",
    "get_engine",
    "MmsSession",
    "SAConnectionBridge",
    "TenantTable",
    "StructureTable",
    "TableRegistryTable",
    "SchemaVersionTable",
    "SchemaLockTable",
]
