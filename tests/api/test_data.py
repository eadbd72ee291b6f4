"""Tests for the generic data endpoints."""

from __future__ import annotations

from tests._support.structures import plant_structure, with_attribute
from tests.api.conftest import API, data_url


def create(client, tenant_id, type_key, **payload):
    return client.post(data_url(tenant_id, type_key), json=payload)


class TestDataCrud:
    def test_full_cycle(self, client, applied):
        line = create(client, applied, "line", name="Assembly")
        assert line.status_code == 201, line.text
        line_id = line.json()["data"]["id"]

        machine = client.post(
            data_url(applied, "machine"),
            json={"name": "Press", "line_id": line_id, "attr_power": "11.5", "specs": {"rpm": 900}},
            headers={"X-User-Id": "3"},
        )
        assert machine.status_code == 201, machine.text
        row = machine.json()["data"]
        assert row["power"] == 11.5
        assert row["specs"] == {"rpm": 900}
        assert row["created_by"] == 3

        updated = client.put(data_url(applied, "machine", row["id"]), json={"status": "stopped"})
        assert updated.status_code == 200
        assert updated.json()["data"]["status"] == "stopped"

        fetched = client.get(data_url(applied, "machine", row["id"])).json()["data"]
        assert fetched["status"] == "stopped"

        page = client.get(data_url(applied, "machine"), params={"line_id": line_id}).json()
        assert page["page"]["total"] == 1
        assert page["data"][0]["id"] == row["id"]

        deleted = client.delete(data_url(applied, "machine", row["id"]))
        assert deleted.json()["data"] == {"id": row["id"], "deleted": True}
        assert client.get(data_url(applied, "machine", row["id"])).status_code == 404

    def test_list_paging(self, client, applied):
        for i in range(3):
            create(client, applied, "line", name=f"L{i}")
        page = client.get(data_url(applied, "line"), params={"limit": 2, "offset": 0}).json()
        assert [r["name"] for r in page["data"]] == ["L2", "L1"]
        assert page["page"]["has_more"] is True


class TestDataErrors:
    def test_missing_parent_is_422(self, client, applied):
        resp = create(client, applied, "machine", name="Orphan")
        assert resp.status_code == 422
        assert resp.json()["errors"][0]["field"] == "line_id"

    def test_not_materialized_is_422_with_missing(self, client, applied):
        doc = with_attribute(plant_structure(), "line", {"key": "location"})
        client.put(f"{API}/tenants/{applied}/structure", json=doc)

        resp = create(client, applied, "line", name="L", location="Hall 1")
        assert resp.status_code == 422
        body = resp.json()
        assert body["code"] == "NOT_MATERIALIZED"
        assert body["context"]["missing"] == ["location"]
        assert body["context"]["type_key"] == "line"

        client.post(f"{API}/tenants/{applied}/schema/apply")
        assert create(client, applied, "line", name="L", location="Hall 1").status_code == 201

    def test_duplicate_is_409(self, client, applied):
        create(client, applied, "line", name="Dup")
        resp = create(client, applied, "line", name="Dup")
        assert resp.status_code == 409
        assert "detail" in resp.json()["context"]

    def test_referenced_delete_is_409(self, client, applied):
        line_id = create(client, applied, "line", name="L").json()["data"]["id"]
        create(client, applied, "machine", name="M", line_id=line_id)
        assert client.delete(data_url(applied, "line", line_id)).status_code == 409

    def test_unknown_type_is_404(self, client, applied):
        assert client.get(data_url(applied, "robot")).status_code == 404

    def test_bad_filter_is_422(self, client, applied):
        resp = client.get(data_url(applied, "machine"), params={"line_id": "abc"})
        assert resp.status_code == 422

    def test_empty_update_is_422(self, client, applied):
        line_id = create(client, applied, "line", name="L").json()["data"]["id"]
        assert client.put(data_url(applied, "line", line_id), json={}).status_code == 422
