"""Tests for the tenant and structure endpoints."""

from __future__ import annotations

from tests._support.structures import plant_structure
from tests.api.conftest import API


class TestTenants:
    def test_register_and_show(self, client, tenant):
        resp = client.get(f"{API}/tenants/{tenant}")
        assert resp.status_code == 200
        assert resp.json()["data"]["name"] == "acme"

    def test_duplicate_is_409(self, client, tenant):
        resp = client.post(f"{API}/tenants", json={"name": "acme"})
        assert resp.status_code == 409
        assert resp.json()["code"] == "CONFLICT"

    def test_blank_name_is_422(self, client):
        resp = client.post(f"{API}/tenants", json={"name": ""})
        assert resp.status_code == 422

    def test_unknown_is_404_problem(self, client):
        resp = client.get(f"{API}/tenants/999")
        assert resp.status_code == 404
        body = resp.json()
        assert body["code"] == "NOT_FOUND"
        assert body["instance"] == f"{API}/tenants/999"
        assert body["context"] == {"tenant_id": 999}


class TestStructure:
    def test_default_then_saved(self, client, tenant):
        url = f"{API}/tenants/{tenant}/structure"
        default = client.get(url).json()["data"]
        assert default["version"] == 0
        assert len(default["structure"]["nodeTypes"]) == 6

        saved = client.put(url, json={"structure": plant_structure()}, headers={"X-User-Id": "5"})
        assert saved.status_code == 200
        assert saved.json()["data"]["version"] == 1
        assert client.get(url).json()["data"]["structure"]["rules"] == [
            {"parent": "line", "child": "machine"}
        ]

    def test_dry_run_does_not_save(self, client, tenant):
        url = f"{API}/tenants/{tenant}/structure"
        resp = client.put(url, params={"dry_run": True}, json=plant_structure())
        assert resp.status_code == 200
        assert client.get(url).json()["data"]["version"] == 0

    def test_invalid_lists_field_errors(self, client, tenant):
        doc = plant_structure()
        doc["nodeTypes"].append({"key": "line"})
        doc["tree"]["children"][0]["children"][0]["attrs"]["power"] = "high"
        resp = client.put(f"{API}/tenants/{tenant}/structure", json=doc)

        assert resp.status_code == 422
        body = resp.json()
        assert body["code"] == "VALIDATION_FAILED"
        assert [e["field"] for e in body["errors"]] == [
            "nodeTypes[3].key",
            "root.children[0].children[0].attrs.power",
        ]
