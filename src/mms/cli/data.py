"""
CLI: ``mms data``: CRUD over a tenant's synthesized tables.

Payload values come from ``--payload '{"name": "L1"}'`` and/or repeated
``--set key=value`` options; the engine coerces strings to the declared
attribute types.
"""

from __future__ import annotations

import typer

from mms.cli.utils import make_context, output_paged, output_result, parse_pairs, parse_payload
from mms.ops.data import create_data, delete_data, get_data, list_data, update_data
from mms.ops.requests import CreateDataRequest, ListDataRequest, UpdateDataRequest

app = typer.Typer(no_args_is_help=True)


@app.command("list")
def list_rows(
    tenant_id: int = typer.Argument(..., help="Tenant id"),
    type_key: str = typer.Argument(..., help="Node type key"),
    filters: list[str] = typer.Option(None, "--filter", "-f", help="id=N or <parent>_id=N"),
    limit: int | None = typer.Option(None, "--limit", "-n"),
    offset: int = typer.Option(0, "--offset"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List rows, newest first."""
    ctx, conn = make_context(database)
    try:
        result = list_data(
            ctx,
            ListDataRequest(
                tenant_id=tenant_id,
                type_key=type_key,
                filters=parse_pairs(filters, option="--filter"),
                limit=limit,
                offset=offset,
            ),
        )
    finally:
        conn.close()
    output_paged(result, as_json=json_out, title=type_key)


@app.command()
def create(
    tenant_id: int = typer.Argument(..., help="Tenant id"),
    type_key: str = typer.Argument(..., help="Node type key"),
    payload: str | None = typer.Option(None, "--payload", "-p", help="JSON object"),
    values: list[str] = typer.Option(None, "--set", "-s", help="key=value"),
    user: int | None = typer.Option(None, "--user", help="Acting user id"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Create a row."""
    body = parse_payload(payload, values)
    ctx, conn = make_context(database, user_id=user)
    try:
        result = create_data(
            ctx, CreateDataRequest(tenant_id=tenant_id, type_key=type_key, payload=body)
        )
    finally:
        conn.close()
    output_result(result, as_json=json_out, title=f"Created {type_key}")


@app.command()
def get(
    tenant_id: int = typer.Argument(..., help="Tenant id"),
    type_key: str = typer.Argument(..., help="Node type key"),
    row_id: int = typer.Argument(..., help="Row id"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show one row."""
    ctx, conn = make_context(database)
    try:
        result = get_data(ctx, tenant_id, type_key, row_id)
    finally:
        conn.close()
    output_result(result, as_json=json_out, title=f"{type_key} {row_id}")


@app.command()
def update(
    tenant_id: int = typer.Argument(..., help="Tenant id"),
    type_key: str = typer.Argument(..., help="Node type key"),
    row_id: int = typer.Argument(..., help="Row id"),
    payload: str | None = typer.Option(None, "--payload", "-p", help="JSON object"),
    values: list[str] = typer.Option(None, "--set", "-s", help="key=value"),
    user: int | None = typer.Option(None, "--user", help="Acting user id"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Update fields of a row.  Use --payload '{"line_id": null}' to detach."""
    body = parse_payload(payload, values)
    ctx, conn = make_context(database, user_id=user)
    try:
        result = update_data(
            ctx,
            UpdateDataRequest(tenant_id=tenant_id, type_key=type_key, row_id=row_id, payload=body),
        )
    finally:
        conn.close()
    output_result(result, as_json=json_out, title=f"Updated {type_key}")


@app.command()
def delete(
    tenant_id: int = typer.Argument(..., help="Tenant id"),
    type_key: str = typer.Argument(..., help="Node type key"),
    row_id: int = typer.Argument(..., help="Row id"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Delete a row."""
    ctx, conn = make_context(database)
    try:
        result = delete_data(ctx, tenant_id, type_key, row_id)
    finally:
        conn.close()
    output_result(result, as_json=json_out, title="Deleted")
