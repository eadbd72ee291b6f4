"""
CLI: ``mms tenant``: register and show tenants.
"""

from __future__ import annotations

import typer

from mms.cli.utils import make_context, output_result
from mms.ops.requests import RegisterTenantRequest
from mms.ops.tenants import get_tenant, register_tenant

app = typer.Typer(no_args_is_help=True)


@app.command()
def add(
    name: str = typer.Argument(..., help="Unique tenant name"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Register a tenant."""
    ctx, conn = make_context(database)
    try:
        result = register_tenant(ctx, RegisterTenantRequest(name=name))
    finally:
        conn.close()
    output_result(result, as_json=json_out, title="Tenant")


@app.command()
def show(
    tenant_id: int = typer.Argument(..., help="Tenant id"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show one tenant."""
    ctx, conn = make_context(database)
    try:
        result = get_tenant(ctx, tenant_id)
    finally:
        conn.close()
    output_result(result, as_json=json_out, title="Tenant")
