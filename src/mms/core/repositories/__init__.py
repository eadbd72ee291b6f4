"""Repositories for the mms metadata tables.

Each repository class extends :class:`BaseRepository` and provides
typed, dialect-aware access to one metadata aggregate.  Operations in
``mms.ops`` and the schema applier use these instead of inline SQL.

Architecture::

    ┌────────────────────────────────────────────────────────────────┐
    │  mms.ops.*  /  mms.core.applier  /  mms.core.data_access      │
    └────────────────────────────┬───────────────────────────────────┘
                                 │ uses
                                 ▼
    ┌────────────────────────────────────────────────────────────────┐
    │  mms.core.repositories  (this package)                        │
    │                                                               │
    │  tenants.py    : TenantRepository                             │
    │  structures.py : StructureRepository                          │
    │  registry.py   : TableRegistryRepository                      │
    │  versions.py   : SchemaVersionRepository                      │
    └────────────────────────────────────────────────────────────────┘

Tags:
    repository, sql, metadata, mms-core
"""

from mms.core.repositories.registry import TableRegistryRepository
from mms.core.repositories.structures import StructureRepository
from mms.core.repositories.tenants import TenantRepository
from mms.core.repositories.versions import SchemaVersionRepository

__all__ = [
    "TenantRepository",
    "StructureRepository",
    "TableRegistryRepository",
    "SchemaVersionRepository",
]
