"""
Root Typer application for the mms CLI.

Every command opens its own connection (``--database/-d``, falling back to
``MMS_DATABASE_URL``) and renders an ops-layer result with rich, or as
JSON with ``--json``.
"""

from __future__ import annotations

import sys

import typer
from typer import Typer

from mms import __version__
from mms.core.logging import configure_logging

app = Typer(
    name="mms",
    help="mms: multi-tenant maintenance management schema engine.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"mms-core {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str = typer.Option("WARNING", "--log-level", help="Structlog level for CLI runs."),
) -> None:
    """mms CLI: tenants, structures, schema applies and data."""
    configure_logging(
        level=log_level,
        json_format=False,
        service="mms-cli",
        stream=sys.stderr,
        cache_loggers=False,
    )


# ── Sub-command registration ─────────────────────────────────────────────

from mms.cli.data import app as data_app  # noqa: E402
from mms.cli.db import app as db_app  # noqa: E402
from mms.cli.schema import app as schema_app  # noqa: E402
from mms.cli.serve import serve  # noqa: E402
from mms.cli.structure import app as structure_app  # noqa: E402
from mms.cli.tenant import app as tenant_app  # noqa: E402

app.add_typer(db_app, name="db", help="Database operations.")
app.add_typer(tenant_app, name="tenant", help="Tenant registry.")
app.add_typer(structure_app, name="structure", help="Tenant structure documents.")
app.add_typer(schema_app, name="schema", help="Plan, apply and audit physical schemas.")
app.add_typer(data_app, name="data", help="CRUD over synthesized tables.")
app.command("serve", help="Start the API server.")(serve)
