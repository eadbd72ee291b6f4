"""
CLI: ``mms db``: database management commands.
"""

from __future__ import annotations

import typer

from mms.cli.utils import make_context, output_result
from mms.ops.database import check_database_health, initialize_database

app = typer.Typer(no_args_is_help=True)


@app.command()
def init(
    database: str | None = typer.Option(None, "--database", "-d", help="Database URL or path"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview without changes"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Create the engine's metadata tables."""
    ctx, conn = make_context(database, dry_run=dry_run)
    try:
        result = initialize_database(ctx)
    finally:
        conn.close()
    output_result(result, as_json=json_out, title="Database Init")


@app.command()
def health(
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Check database connectivity and metadata tables."""
    ctx, conn = make_context(database)
    try:
        result = check_database_health(ctx)
    finally:
        conn.close()
    output_result(result, as_json=json_out, title="Database Health")
