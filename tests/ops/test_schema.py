"""Tests for mms.ops.schema: preview, apply and version history."""

from __future__ import annotations

from mms.ops.requests import ApplySchemaRequest, ListSchemaVersionsRequest
from mms.ops.schema import apply_schema, list_schema_versions, preview_schema
from tests._support.structures import LINE, MACHINE, PROJECT, node, save


class TestApplySchema:
    def test_requires_saved_structure(self, ctx, tenant_id):
        result = apply_schema(ctx, ApplySchemaRequest(tenant_id=tenant_id))
        assert result.error.code == "VALIDATION_FAILED"
        assert "save one" in result.error.message

    def test_apply_then_noop_apply(self, ctx, tenant_id, plant):
        first = apply_schema(ctx, ApplySchemaRequest(tenant_id=tenant_id))
        assert first.success, first.error
        assert first.data.version == 1
        assert len(first.data.executed_statements) == 14

        second = apply_schema(ctx, ApplySchemaRequest(tenant_id=tenant_id, breaking=True))
        assert second.data.version == 2
        assert second.data.executed_statements == []
        assert second.data.breaking is True

    def test_dry_run_executes_nothing(self, dry_ctx, tenant_id, plant):
        result = apply_schema(dry_ctx, ApplySchemaRequest(tenant_id=tenant_id))
        assert result.data.dry_run is True
        assert result.data.version == 0
        assert len(result.data.executed_statements) == 14
        again = preview_schema(dry_ctx, tenant_id)
        assert len(again.data.statements) == 14

    def test_notes_become_warnings(self, ctx, tenant_id):
        save(
            ctx.conn,
            tenant_id,
            {
                "nodeTypes": [LINE, MACHINE, PROJECT],
                "tree": node(
                    "root",
                    "root",
                    [
                        node("l", "line", [node("m1", "machine", name="A")], name="L"),
                        node("p", "project", [node("m2", "machine", name="B")], name="P"),
                    ],
                ),
            },
        )
        result = apply_schema(ctx, ApplySchemaRequest(tenant_id=tenant_id))
        assert result.success
        assert result.warnings == result.data.notes
        assert any("multiple parents" in w for w in result.warnings)

    def test_locked(self, ctx, tenant_id, plant):
        ctx.conn.execute(
            "INSERT INTO tenant_schema_locks (tenant_id, locked_by, locked_at, expires_at) "
            "VALUES (:t, 'elsewhere', '2000-01-01T00:00:00+00:00', '9999-01-01T00:00:00+00:00')",
            {"t": tenant_id},
        )
        ctx.conn.commit()
        result = apply_schema(ctx, ApplySchemaRequest(tenant_id=tenant_id))
        assert result.error.code == "LOCKED"
        assert result.error.retryable is True

    def test_unknown_tenant(self, ctx):
        assert apply_schema(ctx, ApplySchemaRequest(tenant_id=404)).error.code == "NOT_FOUND"


class TestPreviewSchema:
    def test_preview_shows_registry(self, ctx, tenant_id, plant):
        result = preview_schema(ctx, tenant_id)
        assert result.data.registry_updates == {
            "line": f"t{tenant_id}_line",
            "machine": f"t{tenant_id}_machine",
        }
        apply_schema(ctx, ApplySchemaRequest(tenant_id=tenant_id))
        assert preview_schema(ctx, tenant_id).data.statements == []


class TestListSchemaVersions:
    def test_newest_first(self, ctx, tenant_id, plant):
        ctx.user_id = 7
        for _ in range(3):
            apply_schema(ctx, ApplySchemaRequest(tenant_id=tenant_id))

        page = list_schema_versions(ctx, ListSchemaVersionsRequest(tenant_id=tenant_id, limit=2))
        assert page.total == 3
        assert page.has_more is True
        assert [v.version for v in page.data] == [3, 2]
        assert page.data[0].applied_by == 7

        last = list_schema_versions(ctx, ListSchemaVersionsRequest(tenant_id=tenant_id, limit=2, offset=2))
        assert [v.version for v in last.data] == [1]
        assert len(last.data[0].statements) == 14

    def test_unknown_tenant(self, ctx):
        page = list_schema_versions(ctx, ListSchemaVersionsRequest(tenant_id=404))
        assert not page.success
        assert page.error.code == "NOT_FOUND"
