"""
Configuration inspection commands.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.syntax import Syntax

from ghexport.cli.shared import load_config_or_exit
from ghexport.core.config import validate_config_file
from ghexport.core.config.loader import resolve_config_path

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="Inspect configuration",
    no_args_is_help=True,
)


@app.command("show")
def show_config(
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to app.yaml",
    ),
) -> None:
    """Print the effective configuration (token masked)."""
    path = resolve_config_path(config_path)
    config = load_config_or_exit(path)

    source = str(path) if path.exists() else "defaults + environment"
    console.print(f"[bold]Configuration[/bold] [dim]({source})[/dim]")
    console.print()
    rendered = yaml.safe_dump(config.masked(), sort_keys=False, default_flow_style=False)
    console.print(Syntax(rendered, "yaml", theme="ansi_dark", background_color="default"))


@app.command("validate")
def validate_config(
    config_path: Optional[Path] = typer.Argument(
        None,
        help="Path to app.yaml (default: $GHEXPORT_CONFIG or configs/app.yaml)",
    ),
) -> None:
    """Validate a configuration file."""
    path = resolve_config_path(config_path)
    errors = validate_config_file(path)

    if errors:
        err_console.print(f"[red]Invalid configuration:[/red] {path}")
        for error in errors:
            err_console.print(f"  - {error}")
        raise typer.Exit(1)

    console.print(f"[green]OK[/green] {path}")
