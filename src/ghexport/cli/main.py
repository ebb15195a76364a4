"""
ghexport CLI - Main entry point.

Exports GitHub issues and pull requests to JSON files, either as a
one-shot command or through the HTTP API.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.traceback import install as install_rich_traceback

from ghexport import __app_name__, __version__
from ghexport.core.config.loader import DEFAULT_CONFIG_PATH

# Load environment variables from .env (if present)
load_dotenv()

install_rich_traceback(show_locals=False, width=120)

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name=__app_name__,
    help="Export GitHub issues and pull requests to JSON",
    rich_markup_mode="rich",
    no_args_is_help=True,
    pretty_exceptions_show_locals=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold cyan]{__app_name__}[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """ghexport - GitHub issues and pull requests exporter."""
    pass


# =============================================================================
# Import and register subcommand modules
# =============================================================================

from .commands import config, export, serve  # noqa: E402

app.add_typer(export.app, name="export", help="Run exports")
app.add_typer(config.app, name="config", help="Inspect configuration")
app.command("serve")(serve.serve)


# =============================================================================
# Init Command
# =============================================================================


DEFAULT_APP_CONFIG = """\
# ghexport configuration
# Values of the form ${VAR:-default} are read from the environment (or .env).

github:
  api_url: https://api.github.com/graphql
  token: ${GITHUB_TOKEN:-}
  timeout_seconds: 30
  max_retries: 3
  repository:
    owner: ${REPO_OWNER:-}
    name: ${REPO_NAME:-}

export:
  directory: ${EXPORT_DIR:-./exports}
  files:
    issues: issues.json
    pull_requests: pull-requests.json
  batch_size: 100
  pagination:
    enabled: true
    max_items: 1000
  page_delay_ms: 100
  order_field: UPDATED_AT
  order_direction: DESC

logging:
  level: INFO
  file: logs/ghexport.log
  json_format: true
  rich_console: true

server:
  host: 127.0.0.1
  port: 8080
"""


@app.command()
def init(
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite existing configuration",
    ),
) -> None:
    """Create a default configuration file and the export directory."""
    config_path = DEFAULT_CONFIG_PATH
    created = []

    if config_path.exists() and not force:
        console.print(f"[yellow]{config_path} already exists[/yellow] (use --force to overwrite)")
    else:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(DEFAULT_APP_CONFIG, encoding="utf-8")
        created.append(f"  - [cyan]{config_path}[/cyan] - Application configuration")

    for directory in (Path("exports"), Path("logs")):
        if not directory.exists():
            directory.mkdir(parents=True, exist_ok=True)
            created.append(f"  - [cyan]{directory}/[/cyan]")

    console.print()
    console.print(Panel.fit(
        "[bold green]OK - ghexport initialized[/bold green]\n\n"
        + ("Created:\n" + "\n".join(created) + "\n\n" if created else "")
        + "Next steps:\n"
        "  1. Set [yellow]GITHUB_TOKEN[/yellow], [yellow]REPO_OWNER[/yellow] and "
        "[yellow]REPO_NAME[/yellow] (or edit the config)\n"
        "  2. Run an export: [yellow]ghexport export run[/yellow]\n"
        "  3. Or start the API: [yellow]ghexport serve[/yellow]",
        title="[bold]Initialization Complete[/bold]",
        border_style="green",
    ))


# =============================================================================
# Entry Point
# =============================================================================


def run() -> None:
    """Run the CLI application."""
    app()


if __name__ == "__main__":
    run()
