"""Tests for the API-key middleware."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from mms.api.app import create_app
from mms.api.middleware.auth import open_paths
from tests.api.conftest import API


@pytest.fixture()
def secured(settings):
    settings.api_key = "s3cret"
    with TestClient(create_app(settings=settings)) as c:
        yield c


class TestAuth:
    def test_missing_key_is_401(self, secured):
        resp = secured.post(f"{API}/tenants", json={"name": "x"})
        assert resp.status_code == 401
        body = resp.json()
        assert body["title"] == "Unauthorized"
        assert body["code"] == "UNAUTHORIZED"
        assert body["instance"] == f"{API}/tenants"

    def test_wrong_key_is_401(self, secured):
        resp = secured.post(f"{API}/tenants", json={"name": "x"}, headers={"X-API-Key": "nope"})
        assert resp.status_code == 401

    def test_key_only_accepted_in_header(self, secured):
        assert secured.post(f"{API}/tenants", json={"name": "x"}, headers={"X-API-Key": "s3cret"}).status_code == 201
        resp = secured.get(f"{API}/tenants/1", params={"api_key": "s3cret"})
        assert resp.status_code == 401
        assert resp.json()["code"] == "UNAUTHORIZED"

    def test_health_bypasses_auth(self, secured):
        assert secured.get(f"{API}/health").status_code == 200
        assert secured.get(f"{API}/health/ready").status_code == 200
        assert secured.get(f"{API}/openapi.json").status_code == 200

    def test_type_named_health_is_gated(self, secured):
        assert secured.get(f"{API}/tenants/1/data/health").status_code == 401
        assert secured.get(f"{API}/tenants/1/data/health/7").status_code == 401

    def test_open_when_no_key_configured(self, client):
        assert client.post(f"{API}/tenants", json={"name": "x"}).status_code == 201


class TestOpenPaths:
    def test_prefixed(self):
        assert open_paths("/api/v1/") == {
            "/api/v1/health",
            "/api/v1/health/ready",
            "/api/v1/docs",
            "/api/v1/redoc",
            "/api/v1/openapi.json",
        }
