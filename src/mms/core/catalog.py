"""
Table catalog: type key → physical table, with cached column shapes.

Manifesto:
    The data access layer has no compiled knowledge of any tenant's
    columns.  It asks the catalog.  Asking the live database on every
    request is correct but wasteful, so resolved tables are cached per
    ``(tenant, type key)`` with a TTL and dropped for the whole tenant as
    soon as a schema apply succeeds.

    - **Bounded:** LRU eviction past ``max_size``
    - **Fresh after apply:** ``invalidate(tenant_id)`` on every successful apply
    - **Self-healing:** callers can force one ``refresh=True`` before failing

Architecture:
    ::

        DynamicDataAccess ── resolve(conn, tenant, type) ──► TableCatalog
                                                               │ miss
                                                               ▼
                                        TableRegistryRepository.lookup()
                                        └─ fallback: t<tenant>_<type>
                                                               │
                                                               ▼
                                        SchemaInspector.columns(table)

Examples:
    >>> catalog = TableCatalog(ttl_seconds=300)
    >>> table = catalog.resolve(conn, 7, "machine")
    >>> table.name, table.has_column("line_id")
    ('t7_machine', True)
    >>> catalog.invalidate(7)
    1

Guardrails:
    ❌ DON'T: Share one catalog between unrelated databases
    ✅ DO: Keep one catalog per application (``app.state.catalog``)

Tags:
    catalog, cache, ttl, lru, introspection, mms-core
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any

from mms.core.errors import NotFoundError
from mms.core.identifiers import table_name
from mms.core.introspection import ColumnDescriptor, SchemaInspector
from mms.core.logging import get_logger
from mms.core.repositories import TableRegistryRepository

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ResolvedTable:
    """A type key's physical table and its columns at resolution time."""

    type_key: str
    name: str
    columns: tuple[ColumnDescriptor, ...] = ()

    @property
    def column_names(self) -> frozenset[str]:
        return frozenset(c.name for c in self.columns)

    def has_column(self, name: str) -> bool:
        return name in self.column_names

    def to_dict(self) -> dict[str, Any]:
        return {
            "type_key": self.type_key,
            "name": self.name,
            "columns": [c.to_dict() for c in self.columns],
        }


class TableCatalog:
    """Bounded LRU cache of :class:`ResolvedTable` with TTL expiry.

    Thread-safe; one instance is shared by every request of an app.

    Attributes:
        max_size: Maximum number of cached tables before LRU eviction.
        ttl_seconds: Lifetime of an entry (``0`` disables caching).
    """

    def __init__(self, *, max_size: int = 1024, ttl_seconds: int = 300) -> None:
        self._store: dict[str, tuple[ResolvedTable, float | None]] = {}
        self._access_order: list[str] = []
        self._lock = threading.Lock()
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def _key(tenant_id: int, type_key: str) -> str:
        return f"{int(tenant_id)}:{type_key}"

    # -- cache primitives --------------------------------------------------

    def get(self, tenant_id: int, type_key: str) -> ResolvedTable | None:
        key = self._key(tenant_id, type_key)
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at is not None and time.time() > expires_at:
                self._drop(key)
                return None
            self._touch(key)
            return value

    def put(self, tenant_id: int, table: ResolvedTable) -> None:
        if self.ttl_seconds <= 0:
            return
        key = self._key(tenant_id, table.type_key)
        expires_at = time.time() + self.ttl_seconds
        with self._lock:
            if key not in self._store and len(self._store) >= self.max_size and self._access_order:
                self._drop(self._access_order[0])
            self._store[key] = (table, expires_at)
            self._touch(key)

    def invalidate(self, tenant_id: int) -> int:
        """Forget every cached table of a tenant.  Returns how many were dropped."""
        prefix = f"{int(tenant_id)}:"
        with self._lock:
            doomed = [k for k in self._store if k.startswith(prefix)]
            for key in doomed:
                self._drop(key)
        if doomed:
            logger.debug("catalog_invalidated", tenant_id=tenant_id, entries=len(doomed))
        return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
            self._access_order.clear()

    def size(self) -> int:
        return len(self._store)

    def _touch(self, key: str) -> None:
        if key in self._access_order:
            self._access_order.remove(key)
        self._access_order.append(key)

    def _drop(self, key: str) -> None:
        self._store.pop(key, None)
        if key in self._access_order:
            self._access_order.remove(key)

    # -- resolution --------------------------------------------------------

    def resolve(
        self,
        conn: Any,
        tenant_id: int,
        type_key: str,
        *,
        refresh: bool = False,
    ) -> ResolvedTable:
        """Resolve a type key to its physical table.

        Registry entry first, then the ``t<tenant>_<type>`` convention; the
        chosen table must exist in the live catalog.

        Raises:
            NotFoundError: no physical table exists for the type.
        """
        if not refresh:
            cached = self.get(tenant_id, type_key)
            if cached is not None:
                return cached

        inspector = SchemaInspector(conn)
        candidates = [
            TableRegistryRepository(conn).lookup(tenant_id, type_key),
            table_name(tenant_id, type_key),
        ]
        for candidate in candidates:
            if candidate and inspector.table_exists(candidate):
                resolved = ResolvedTable(
                    type_key=type_key,
                    name=candidate,
                    columns=tuple(inspector.columns(candidate)),
                )
                self.put(tenant_id, resolved)
                return resolved

        raise NotFoundError(
            f"Table not found for type '{type_key}'. Apply the schema for this tenant."
        ).with_context(tenant_id=tenant_id, type_key=type_key)


__all__ = ["ResolvedTable", "TableCatalog"]
