"""
CLI: ``mms schema``: plan, apply and audit a tenant's physical schema.
"""

from __future__ import annotations

import typer

from mms.cli.utils import make_context, output_paged, output_result
from mms.ops.requests import ApplySchemaRequest, ListSchemaVersionsRequest
from mms.ops.schema import apply_schema, list_schema_versions, preview_schema

app = typer.Typer(no_args_is_help=True)


@app.command()
def plan(
    tenant_id: int = typer.Argument(..., help="Tenant id"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show the DDL an apply would run.  Executes nothing."""
    ctx, conn = make_context(database)
    try:
        result = preview_schema(ctx, tenant_id)
    finally:
        conn.close()
    output_result(result, as_json=json_out, title="Schema Plan")


@app.command()
def apply(
    tenant_id: int = typer.Argument(..., help="Tenant id"),
    database: str | None = typer.Option(None, "--database", "-d"),
    breaking: bool = typer.Option(False, "--breaking", help="Flag the version as breaking"),
    user: int | None = typer.Option(None, "--user", help="Acting user id"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Plan only"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Apply the saved structure to the database."""
    ctx, conn = make_context(database, dry_run=dry_run, user_id=user)
    try:
        result = apply_schema(ctx, ApplySchemaRequest(tenant_id=tenant_id, breaking=breaking))
    finally:
        conn.close()
    output_result(result, as_json=json_out, title="Schema Apply")


@app.command()
def versions(
    tenant_id: int = typer.Argument(..., help="Tenant id"),
    database: str | None = typer.Option(None, "--database", "-d"),
    limit: int = typer.Option(50, "--limit", "-n"),
    offset: int = typer.Option(0, "--offset"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List applied schema versions, newest first."""
    ctx, conn = make_context(database)
    try:
        result = list_schema_versions(
            ctx, ListSchemaVersionsRequest(tenant_id=tenant_id, limit=limit, offset=offset)
        )
    finally:
        conn.close()
    output_paged(result, as_json=json_out, title="Schema Versions")
