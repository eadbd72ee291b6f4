"""
CLI: ``mms serve``: start the API server.
"""

from __future__ import annotations

import typer
import uvicorn

from mms.cli.utils import console
from mms.core.settings import EngineSettings


def serve(
    host: str | None = typer.Option(None, "--host", "-h", help="Bind address (default MMS_HOST)"),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port (default MMS_PORT)"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on changes"),
    workers: int = typer.Option(1, "--workers", "-w", help="Number of workers"),
    log_level: str = typer.Option("info", "--log-level"),
) -> None:
    """Start the mms REST API server."""
    settings = EngineSettings()
    host = host or settings.host
    port = port or settings.port

    console.print(f"[bold green]Starting mms API[/bold green] on {host}:{port}")
    uvicorn.run(
        "mms.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        workers=workers,
        log_level=log_level,
    )
