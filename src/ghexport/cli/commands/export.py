"""
Export commands for running one-shot exports from the terminal.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ghexport.cli.shared import configure_logging, load_config_or_exit
from ghexport.core.config import MAX_BATCH_SIZE, AppConfig, ResourceKind
from ghexport.core.orchestrator import (
    ExportCoordinator,
    ExportDirectoryError,
    ExportOperation,
    ExportState,
)

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="Run exports",
    no_args_is_help=True,
)


class ExportKind(str, Enum):
    ALL = "all"
    ISSUES = "issues"
    PULL_REQUESTS = "pull-requests"


def apply_overrides(
    config: AppConfig,
    max_items: Optional[int] = None,
    batch_size: Optional[int] = None,
    timeout: Optional[float] = None,
) -> AppConfig:
    """Return a copy of `config` with command-line overrides applied."""
    export = config.export
    if max_items is not None:
        pagination = export.pagination.model_copy(update={"max_items": max_items})
        export = export.model_copy(update={"pagination": pagination})
    if batch_size is not None:
        export = export.model_copy(update={"batch_size": batch_size})
    if timeout is not None:
        export = export.model_copy(update={"run_timeout_seconds": timeout})
    return config.model_copy(update={"export": export})


@app.command("run")
def run_export(
    kind: ExportKind = typer.Option(
        ExportKind.ALL,
        "--kind",
        "-k",
        case_sensitive=False,
        help="What to export",
    ),
    max_items: Optional[int] = typer.Option(
        None,
        "--max-items",
        "-n",
        min=1,
        help="Maximum items to fetch per kind",
    ),
    batch_size: Optional[int] = typer.Option(
        None,
        "--batch-size",
        "-b",
        min=1,
        max=MAX_BATCH_SIZE,
        help="Items requested per GraphQL call",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        "-t",
        min=0.1,
        help="Stop paging after this many seconds and keep partial results",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to app.yaml",
    ),
) -> None:
    """Export issues and/or pull requests to JSON files.

    Examples:
        ghexport export run
        ghexport export run --kind issues --max-items 200
        ghexport export run -k pull-requests -b 50
    """
    config = apply_overrides(load_config_or_exit(config_path), max_items, batch_size, timeout)
    configure_logging(config)

    try:
        coordinator = ExportCoordinator.from_config(config)
    except ValueError as e:
        err_console.print(f"[red]{e}[/red]")
        err_console.print("[dim]Set GITHUB_TOKEN, REPO_OWNER and REPO_NAME or edit configs/app.yaml[/dim]")
        raise typer.Exit(1)

    console.print()
    console.print(
        f"[bold]Exporting {kind.value} from[/bold] "
        f"[cyan]{config.github.repository.slug}[/cyan]"
    )
    console.print()

    with coordinator:
        try:
            if kind is ExportKind.ALL:
                export_ids = list(coordinator.start_combined_export().values())
            elif kind is ExportKind.ISSUES:
                export_ids = [coordinator.start_export(ResourceKind.ISSUES)]
            else:
                export_ids = [coordinator.start_export(ResourceKind.PULL_REQUESTS)]
        except ExportDirectoryError as e:
            err_console.print(f"[red]{e}:[/red] {config.export.directory}")
            raise typer.Exit(1)

        try:
            with console.status("Exporting..."):
                coordinator.wait_until_idle()
        except KeyboardInterrupt:
            console.print("[yellow]Interrupted - keeping what was fetched so far[/yellow]")
            coordinator.shutdown()

        operations = [coordinator.registry.get(export_id) for export_id in export_ids]

    _print_results(operations)

    if any(op.status is not ExportState.COMPLETED for op in operations):
        raise typer.Exit(1)


def _print_results(operations: list[ExportOperation]) -> None:
    table = Table(title="Export Results", show_header=True, header_style="bold magenta")
    table.add_column("Export", style="cyan")
    table.add_column("Status", justify="center")
    table.add_column("Items", justify="right")
    table.add_column("File / Error")
    table.add_column("Duration", justify="right")

    for op in operations:
        if op.status is ExportState.COMPLETED:
            status = "[green]completed[/green]"
            detail = op.file_path or ""
        elif op.status is ExportState.FAILED:
            status = "[red]failed[/red]"
            detail = f"[red]{escape(op.error_message or '')}[/red]"
        else:
            status = "[yellow]in progress[/yellow]"
            detail = ""

        duration = op.duration_seconds
        table.add_row(
            op.id,
            status,
            str(op.item_count) if op.item_count is not None else "-",
            detail,
            f"{duration:.1f}s" if duration is not None else "-",
        )

    console.print(table)
