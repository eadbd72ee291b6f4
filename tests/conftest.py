"""
Shared pytest fixtures for mms tests.

Every test that touches a database gets its own file-backed SQLite under
``tmp_path`` with the metadata tables already created.
"""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

import pytest
import structlog

from mms.core.catalog import TableCatalog
from mms.core.connection import create_connection
from mms.ops.context import OperationContext
from tests._support.structures import register


@pytest.fixture(autouse=True)
def _reset_structlog() -> Generator[None, None, None]:
    """CLI runs reconfigure structlog; restore defaults after each test."""
    yield
    structlog.reset_defaults()


@pytest.fixture()
def db_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'mms.db'}"


@pytest.fixture()
def conn(db_url: str) -> Generator[Any, None, None]:
    """Connection with the metadata tables in place."""
    connection, _info = create_connection(db_url, init_schema=True)
    yield connection
    connection.close()


@pytest.fixture()
def tenant_id(conn: Any) -> int:
    return register(conn, "acme")


@pytest.fixture()
def ctx(conn: Any) -> OperationContext:
    """OperationContext on the test database with a non-caching catalog."""
    return OperationContext(conn=conn, caller="test", catalog=TableCatalog(ttl_seconds=0))


@pytest.fixture()
def dry_ctx(conn: Any) -> OperationContext:
    return OperationContext(
        conn=conn, caller="test", dry_run=True, catalog=TableCatalog(ttl_seconds=0)
    )
