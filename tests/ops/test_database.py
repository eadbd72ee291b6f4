"""Tests for mms.ops.database."""

from __future__ import annotations

from mms.core.catalog import TableCatalog
from mms.core.connection import create_connection
from mms.core.orm.tables import METADATA_TABLES
from mms.ops.context import OperationContext
from mms.ops.database import check_database_health, initialize_database


class TestInitializeDatabase:
    def test_creates_tables_idempotently(self, tmp_path):
        conn, _ = create_connection(f"sqlite:///{tmp_path / 'fresh.db'}")
        ctx = OperationContext(conn=conn, catalog=TableCatalog(ttl_seconds=0))
        try:
            before = check_database_health(ctx)
            assert set(before.data.missing_tables) == set(METADATA_TABLES)
            assert before.warnings

            for _ in range(2):
                result = initialize_database(ctx)
                assert result.success
                assert result.data.tables_created == sorted(METADATA_TABLES)

            after = check_database_health(ctx)
            assert after.data.missing_tables == []
            assert after.data.table_count == len(METADATA_TABLES)
        finally:
            conn.close()

    def test_dry_run(self, dry_ctx):
        result = initialize_database(dry_ctx)
        assert result.data.dry_run is True


class TestHealth:
    def test_connected(self, ctx):
        health = check_database_health(ctx).data
        assert health.connected is True
        assert health.backend == "sqlite"
        assert health.latency_ms >= 0
