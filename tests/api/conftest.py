"""Fixtures for API tests: a TestClient over a fresh SQLite file."""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

import pytest
from fastapi.testclient import TestClient

from mms.api.app import create_app
from mms.api.settings import MmsAPISettings
from tests._support.structures import plant_structure

API = "/api/v1"


@pytest.fixture()
def settings(db_url: str, tmp_path) -> MmsAPISettings:
    return MmsAPISettings(database_url=db_url, data_dir=tmp_path, catalog_ttl_seconds=300)


@pytest.fixture()
def client(settings: MmsAPISettings) -> Generator[TestClient, None, None]:
    # The context manager runs the lifespan, which creates the metadata tables.
    with TestClient(create_app(settings=settings)) as c:
        yield c


@pytest.fixture()
def tenant(client: TestClient) -> int:
    resp = client.post(f"{API}/tenants", json={"name": "acme"})
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]["id"]


@pytest.fixture()
def applied(client: TestClient, tenant: int) -> int:
    """Tenant with the plant structure saved and applied."""
    assert client.put(f"{API}/tenants/{tenant}/structure", json=plant_structure()).status_code == 200
    assert client.post(f"{API}/tenants/{tenant}/schema/apply").status_code == 200
    return tenant


def data_url(tenant_id: int, type_key: str, row_id: Any = None) -> str:
    url = f"{API}/tenants/{tenant_id}/data/{type_key}"
    return url if row_id is None else f"{url}/{row_id}"
