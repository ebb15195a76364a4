"""
HTTP server command.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
import uvicorn
from rich.console import Console

from ghexport.api import create_app
from ghexport.cli.shared import configure_logging, load_config_or_exit

console = Console()


def serve(
    host: Optional[str] = typer.Option(
        None,
        "--host",
        help="Bind address (default from config)",
    ),
    port: Optional[int] = typer.Option(
        None,
        "--port",
        "-p",
        min=1,
        max=65535,
        help="Bind port (default from config)",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to app.yaml",
    ),
) -> None:
    """Run the export HTTP API."""
    config = load_config_or_exit(config_path)
    configure_logging(config)

    bind_host = host or config.server.host
    bind_port = port or config.server.port

    console.print(f"[bold]Serving export API on[/bold] [cyan]http://{bind_host}:{bind_port}[/cyan]")
    uvicorn.run(
        create_app(config),
        host=bind_host,
        port=bind_port,
        log_level=config.logging.level.lower(),
    )
