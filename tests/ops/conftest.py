"""Fixtures for operation tests."""

from __future__ import annotations

import pytest

from tests._support.structures import plant_structure, save


@pytest.fixture()
def plant(conn, tenant_id) -> int:
    """Save (but do not apply) the plant structure.  Returns its version."""
    return save(conn, tenant_id, plant_structure())
