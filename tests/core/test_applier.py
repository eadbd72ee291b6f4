"""Tests for mms.core.applier: transactional apply, registry and versions."""

from __future__ import annotations

import pytest

from mms.core.applier import SchemaApplier
from mms.core.catalog import TableCatalog
from mms.core.dialect import SQLiteDialect
from mms.core.errors import ApplyLockedError, TransactionFailure
from mms.core.introspection import SchemaInspector
from mms.core.planner import DDLPlan
from mms.core.repositories import SchemaVersionRepository, TableRegistryRepository
from mms.core.structure import parse_structure
from tests._support.structures import plant_structure, save_and_apply, with_attribute


class TestApplyStructure:
    def test_first_apply_creates_tables(self, conn, tenant_id):
        result = save_and_apply(conn, tenant_id, plant_structure(), applied_by=9)
        t = f"t{tenant_id}"

        assert result.version == 1
        assert len(result.statements) == 14
        inspector = SchemaInspector(conn)
        assert inspector.table_exists(f"{t}_line")
        assert {"id", "line_id", "name", "serial", "power", "status"} <= inspector.column_names(f"{t}_machine")
        assert TableRegistryRepository(conn).mapping(tenant_id) == {
            "line": f"{t}_line",
            "machine": f"{t}_machine",
        }

    def test_versions_increment_even_when_nothing_changes(self, conn, tenant_id):
        save_and_apply(conn, tenant_id, plant_structure())
        second = save_and_apply(conn, tenant_id, plant_structure(), breaking=True)

        assert second.version == 2
        assert second.statements == ()
        rows, total = SchemaVersionRepository(conn).list_versions(tenant_id)
        assert total == 2
        assert [r["version"] for r in rows] == [2, 1]
        assert rows[0]["breaking"] is True
        assert rows[0]["summary"]["statements"] == []
        assert len(rows[1]["summary"]["statements"]) == 14

    def test_to_dict(self, conn, tenant_id):
        d = save_and_apply(conn, tenant_id, plant_structure()).to_dict()
        assert d["tenantId"] == tenant_id
        assert d["version"] == 1
        assert len(d["executedStatements"]) == 14
        assert d["breaking"] is False

    def test_lock_is_released_after_apply(self, conn, tenant_id):
        save_and_apply(conn, tenant_id, plant_structure())
        count = conn.execute("SELECT COUNT(*) FROM tenant_schema_locks").fetchone()[0]
        assert count == 0


class TestRollback:
    def test_failed_statement_rolls_back_everything(self, conn, tenant_id):
        d = SQLiteDialect()
        good = d.create_table(f"t{tenant_id}_line")
        bad = 'ALTER TABLE "no_such_table" ADD COLUMN "x" INTEGER'
        plan = DDLPlan(statements=[good, bad], registry_updates={"line": f"t{tenant_id}_line"})

        with pytest.raises(TransactionFailure) as exc_info:
            SchemaApplier(conn).apply(tenant_id, plan)

        err = exc_info.value
        assert err.statements == [good, bad]
        assert err.executed == [good]
        assert err.context.tenant_id == tenant_id
        assert not SchemaInspector(conn).table_exists(f"t{tenant_id}_line")
        assert TableRegistryRepository(conn).mapping(tenant_id) == {}
        assert SchemaVersionRepository(conn).max_version(tenant_id) == 0

    def test_locked_tenant_is_refused(self, conn, tenant_id):
        conn.execute(
            "INSERT INTO tenant_schema_locks (tenant_id, locked_by, locked_at, expires_at) "
            "VALUES (:t, 'other', '2000-01-01T00:00:00+00:00', '9999-01-01T00:00:00+00:00')",
            {"t": tenant_id},
        )
        conn.commit()
        with pytest.raises(ApplyLockedError):
            SchemaApplier(conn).apply_structure(tenant_id, parse_structure(plant_structure()))
        assert SchemaVersionRepository(conn).max_version(tenant_id) == 0


class TestCatalogInvalidation:
    def test_apply_drops_cached_tables(self, conn, tenant_id):
        catalog = TableCatalog(ttl_seconds=300)
        save_and_apply(conn, tenant_id, plant_structure())
        before = catalog.resolve(conn, tenant_id, "line")
        assert not before.has_column("location")

        doc = with_attribute(plant_structure(), "line", {"key": "location"})
        SchemaApplier(conn, catalog=catalog).apply_structure(tenant_id, parse_structure(doc))

        assert catalog.size() == 0
        assert catalog.resolve(conn, tenant_id, "line").has_column("location")
