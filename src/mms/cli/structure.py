"""
CLI: ``mms structure``: show and save structure documents.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import typer

from mms.cli.utils import console, make_context, output_result
from mms.ops.requests import SaveStructureRequest
from mms.ops.structure import get_structure, save_structure

app = typer.Typer(no_args_is_help=True)


@app.command()
def show(
    tenant_id: int = typer.Argument(..., help="Tenant id"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show a tenant's structure (version 0 is the built-in default)."""
    ctx, conn = make_context(database)
    try:
        result = get_structure(ctx, tenant_id)
    finally:
        conn.close()
    if result.success and not json_out:
        console.print(f"[bold]Structure[/bold] tenant={tenant_id} version={result.data.version}")
        console.print_json(json.dumps(result.data.structure))
        return
    output_result(result, as_json=json_out, title="Structure")


@app.command()
def save(
    tenant_id: int = typer.Argument(..., help="Tenant id"),
    source: str = typer.Argument(..., help="Path to a structure JSON file, or '-' for stdin"),
    database: str | None = typer.Option(None, "--database", "-d"),
    user: int | None = typer.Option(None, "--user", help="Acting user id for audit columns"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Validate without saving"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Validate and save a structure document."""
    text = sys.stdin.read() if source == "-" else Path(source).read_text(encoding="utf-8")
    try:
        document = json.loads(text)
    except ValueError as exc:
        raise typer.BadParameter(f"invalid JSON: {exc}", param_hint="SOURCE") from exc
    if not isinstance(document, dict):
        raise typer.BadParameter("structure must be a JSON object", param_hint="SOURCE")

    ctx, conn = make_context(database, dry_run=dry_run, user_id=user)
    try:
        result = save_structure(ctx, SaveStructureRequest(tenant_id=tenant_id, structure=document))
    finally:
        conn.close()
    if result.success and not json_out:
        verb = "Validated" if dry_run else "Saved"
        console.print(f"[green]{verb}[/green] structure for tenant {tenant_id}, version {result.data.version}")
        return
    output_result(result, as_json=json_out, title="Structure")
