"""Tests for mms.core.catalog: resolution, TTL and LRU behaviour."""

from __future__ import annotations

import time

import pytest

from mms.core.catalog import ResolvedTable, TableCatalog
from mms.core.errors import NotFoundError
from mms.core.introspection import ColumnDescriptor
from tests._support.structures import plant_structure, save_and_apply


def table(type_key: str) -> ResolvedTable:
    return ResolvedTable(type_key=type_key, name=f"t1_{type_key}", columns=(ColumnDescriptor("id", "INTEGER"),))


class TestCachePrimitives:
    def test_put_get(self):
        catalog = TableCatalog(ttl_seconds=60)
        catalog.put(1, table("line"))
        assert catalog.get(1, "line").name == "t1_line"
        assert catalog.get(2, "line") is None

    def test_zero_ttl_disables_caching(self):
        catalog = TableCatalog(ttl_seconds=0)
        catalog.put(1, table("line"))
        assert catalog.size() == 0

    def test_expiry(self, monkeypatch):
        catalog = TableCatalog(ttl_seconds=10)
        catalog.put(1, table("line"))
        now = time.time()
        monkeypatch.setattr("mms.core.catalog.time.time", lambda: now + 11)
        assert catalog.get(1, "line") is None
        assert catalog.size() == 0

    def test_lru_eviction(self):
        catalog = TableCatalog(max_size=2, ttl_seconds=60)
        catalog.put(1, table("a"))
        catalog.put(1, table("b"))
        catalog.get(1, "a")
        catalog.put(1, table("c"))
        assert catalog.get(1, "b") is None
        assert catalog.get(1, "a") is not None
        assert catalog.get(1, "c") is not None

    def test_invalidate_is_per_tenant(self):
        catalog = TableCatalog(ttl_seconds=60)
        catalog.put(1, table("a"))
        catalog.put(1, table("b"))
        catalog.put(11, table("a"))
        assert catalog.invalidate(1) == 2
        assert catalog.get(11, "a") is not None
        catalog.clear()
        assert catalog.size() == 0


class TestResolve:
    def test_missing_table(self, conn, tenant_id):
        with pytest.raises(NotFoundError) as exc_info:
            TableCatalog().resolve(conn, tenant_id, "machine")
        assert exc_info.value.context.type_key == "machine"
        assert "Apply the schema" in exc_info.value.message

    def test_registry_lookup_with_columns(self, conn, tenant_id):
        save_and_apply(conn, tenant_id, plant_structure())
        resolved = TableCatalog().resolve(conn, tenant_id, "machine")
        assert resolved.name == f"t{tenant_id}_machine"
        assert resolved.has_column("line_id")
        assert resolved.has_column("status")
        assert resolved.to_dict()["type_key"] == "machine"

    def test_convention_fallback(self, conn, tenant_id):
        conn.execute(f'CREATE TABLE "t{tenant_id}_unit" ("id" INTEGER PRIMARY KEY)')
        conn.commit()
        assert TableCatalog().resolve(conn, tenant_id, "unit").name == f"t{tenant_id}_unit"

    def test_cached_until_refresh(self, conn, tenant_id):
        save_and_apply(conn, tenant_id, plant_structure())
        catalog = TableCatalog(ttl_seconds=300)
        first = catalog.resolve(conn, tenant_id, "line")
        conn.execute(f'ALTER TABLE "t{tenant_id}_line" ADD COLUMN "extra" TEXT')
        conn.commit()
        assert catalog.resolve(conn, tenant_id, "line") is first
        assert catalog.resolve(conn, tenant_id, "line", refresh=True).has_column("extra")
