"""Tests for the metadata repositories."""

from __future__ import annotations

from mms.core.repositories import (
    SchemaVersionRepository,
    StructureRepository,
    TableRegistryRepository,
    TenantRepository,
)


class TestTenantRepository:
    def test_create_and_lookup(self, conn):
        repo = TenantRepository(conn)
        tid = repo.create("globex")
        conn.commit()
        assert repo.get(tid)["name"] == "globex"
        assert repo.get_by_name("globex")["id"] == tid
        assert repo.exists(tid)
        assert not repo.exists(tid + 1)

    def test_list(self, conn):
        repo = TenantRepository(conn)
        for name in ("a", "b", "c"):
            repo.create(name)
        conn.commit()
        rows, total = repo.list_tenants(limit=2, offset=1)
        assert total == 3
        assert [r["name"] for r in rows] == ["b", "c"]


class TestStructureRepository:
    def test_versions_count_saves(self, conn, tenant_id):
        repo = StructureRepository(conn)
        assert repo.get(tenant_id) is None
        assert repo.save(tenant_id, {"nodeTypes": []}, user_id=3) == 1
        assert repo.save(tenant_id, {"nodeTypes": [{"key": "line"}]}) == 2
        conn.commit()
        row = repo.get(tenant_id)
        assert row["version"] == 2
        assert row["structure"] == {"nodeTypes": [{"key": "line"}]}
        assert row["created_by"] == 3


class TestTableRegistryRepository:
    def test_upsert_repoints(self, conn, tenant_id):
        repo = TableRegistryRepository(conn)
        repo.upsert(tenant_id, "line", "t_old")
        repo.upsert(tenant_id, "line", "t_new")
        repo.upsert(tenant_id, "machine", "t_machine")
        conn.commit()
        assert repo.lookup(tenant_id, "line") == "t_new"
        assert repo.lookup(tenant_id, "unit") is None
        assert repo.mapping(tenant_id) == {"line": "t_new", "machine": "t_machine"}

    def test_upsert_refreshes_updated_at(self, conn, tenant_id):
        repo = TableRegistryRepository(conn)
        repo.upsert(tenant_id, "line", "t_old")
        conn.execute(
            "UPDATE tenant_table_registry SET updated_at = '2000-01-01 00:00:00' "
            "WHERE tenant_id = :tenant_id",
            {"tenant_id": tenant_id},
        )
        repo.upsert(tenant_id, "line", "t_new")
        conn.commit()
        stamped = conn.execute(
            "SELECT updated_at FROM tenant_table_registry WHERE tenant_id = :tenant_id",
            {"tenant_id": tenant_id},
        ).fetchone()[0]
        assert not str(stamped).startswith("2000-01-01")


class TestSchemaVersionRepository:
    def test_append_and_list(self, conn, tenant_id):
        repo = SchemaVersionRepository(conn)
        assert repo.max_version(tenant_id) == 0
        repo.append(tenant_id, 1, breaking=False, summary={"statements": ["A"]}, notes=[])
        repo.append(tenant_id, 2, breaking=True, summary={"statements": []}, notes=["n"], applied_by=4)
        conn.commit()
        assert repo.max_version(tenant_id) == 2
        rows, total = repo.list_versions(tenant_id, limit=1)
        assert total == 2
        assert rows[0]["version"] == 2
        assert rows[0]["notes"] == ["n"]
        assert rows[0]["applied_by"] == 4
