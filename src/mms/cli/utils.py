"""
CLI utility helpers: output formatting and connection management.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from mms.core.catalog import TableCatalog
from mms.core.connection import create_connection
from mms.core.settings import EngineSettings
from mms.ops.context import OperationContext
from mms.ops.result import OperationResult, PagedResult

console = Console()
err_console = Console(stderr=True)


# ── Connection helper ────────────────────────────────────────────────────


def get_connection(database: str | None = None, settings: EngineSettings | None = None) -> Any:
    """Open a database connection.  Defaults to ``MMS_DATABASE_URL``."""
    settings = settings or EngineSettings()
    conn, _info = create_connection(
        database or settings.database_url,
        data_dir=settings.data_dir,
    )
    return conn


def make_context(
    database: str | None = None,
    *,
    dry_run: bool = False,
    user_id: int | None = None,
) -> tuple[OperationContext, Any]:
    """Create an ``OperationContext`` + connection pair for CLI commands.

    A CLI process is short-lived, so the catalog never caches.
    """
    settings = EngineSettings()
    conn = get_connection(database, settings)
    ctx = OperationContext(
        conn=conn,
        caller="cli",
        dry_run=dry_run,
        user_id=user_id,
        catalog=TableCatalog(ttl_seconds=0),
        settings=settings,
    )
    return ctx, conn


def parse_pairs(pairs: list[str] | None, *, option: str) -> dict[str, str]:
    """Turn repeated ``key=value`` options into a dict."""
    out: dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"expected key=value, got {pair!r}", param_hint=option)
        out[key.strip()] = value
    return out


def parse_payload(raw: str | None, pairs: list[str] | None) -> dict[str, Any]:
    """Merge a ``--payload`` JSON object with ``--set key=value`` pairs."""
    payload: dict[str, Any] = {}
    if raw:
        try:
            loaded = json.loads(raw)
        except ValueError as exc:
            raise typer.BadParameter(f"invalid JSON: {exc}", param_hint="--payload") from exc
        if not isinstance(loaded, dict):
            raise typer.BadParameter("must be a JSON object", param_hint="--payload")
        payload.update(loaded)
    payload.update(parse_pairs(pairs, option="--set"))
    return payload


# ── Output helpers ───────────────────────────────────────────────────────


def _to_dict(obj: Any) -> dict[str, Any]:
    """Convert dataclass / pydantic model / dict to plain dict."""
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    if hasattr(obj, "__dataclass_fields__"):
        return asdict(obj)
    if isinstance(obj, dict):
        return obj
    return {"value": str(obj)}


def _fail(result: OperationResult) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    code = err.code if err else "ERROR"
    err_console.print(f"[bold red]Error[/bold red] ({code}): {msg}")
    if err is not None:
        for item in err.details.get("errors", []):
            err_console.print(f"  [yellow]{item.get('field')}[/yellow]: {item.get('message')}")
        if err.details.get("missing"):
            err_console.print(f"  missing: {', '.join(err.details['missing'])}")
    raise typer.Exit(code=1)


def output_result(
    result: OperationResult,
    *,
    as_json: bool = False,
    title: str = "",
) -> None:
    """Render an ``OperationResult`` to the terminal."""
    if not result.success:
        _fail(result)

    data = result.data

    if as_json:
        payload = _to_dict(data) if not isinstance(data, list | tuple) else [_to_dict(d) for d in data]
        console.print_json(json.dumps(payload, default=str))
        return

    if isinstance(data, list):
        if not data:
            console.print("[dim]No items.[/dim]")
            return
        _print_table(data, title=title)
    else:
        _print_dict(_to_dict(data), title=title)

    for warning in result.warnings:
        console.print(f"[yellow]note:[/yellow] {warning}")


def output_paged(
    result: PagedResult,
    *,
    as_json: bool = False,
    title: str = "",
) -> None:
    """Render a ``PagedResult`` to the terminal with pagination info."""
    if not result.success:
        _fail(result)

    items = result.data or []

    if as_json:
        payload = {
            "items": [_to_dict(d) for d in items],
            "total": result.total,
            "limit": result.limit,
            "offset": result.offset,
            "has_more": result.has_more,
        }
        console.print_json(json.dumps(payload, default=str))
        return

    if not items:
        console.print("[dim]No items.[/dim]")
        return

    _print_table(items, title=title)
    console.print(
        f"\n[dim]Showing {len(items)} of {result.total}"
        f" (offset {result.offset})[/dim]"
    )


# ── Private helpers ──────────────────────────────────────────────────────


def _print_table(items: list, *, title: str = "") -> None:
    """Render a list of dataclasses/dicts as a Rich table."""
    first = _to_dict(items[0])
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in first:
        table.add_column(col, overflow="fold")
    for item in items:
        d = _to_dict(item)
        table.add_row(*(str(d.get(col, "")) for col in first))
    console.print(table)


def _print_dict(data: dict[str, Any], *, title: str = "") -> None:
    """Render a single dict as key-value pairs."""
    if title:
        console.print(f"[bold]{title}[/bold]")
    for k, v in data.items():
        if isinstance(v, list) and v and all(isinstance(s, str) for s in v):
            console.print(f"  [cyan]{k}[/cyan]:")
            for line in v:
                console.print(f"    {line}", markup=False, highlight=False)
        else:
            console.print(f"  [cyan]{k}[/cyan]: {v}", highlight=False)
