"""
Logging for ghexport.

Two sinks hang off the package logger `ghexport`:
- a Rich console handler for the terminal, prefixed with the export id
- an optional file handler writing one JSON object per line

Export runs log through a ContextualLogger so every record carries the
operation id and resource kind it belongs to.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

import orjson
from rich.markup import escape

if TYPE_CHECKING:
    from rich.console import Console

ROOT_LOGGER = "ghexport"

# Attributes copied from log records into JSON lines when present
CONTEXT_FIELDS = ("export_id", "kind")

LEVEL_STYLES = {
    logging.DEBUG: "dim",
    logging.WARNING: "yellow",
    logging.ERROR: "red",
    logging.CRITICAL: "bold red",
}

# Third-party loggers that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore")

PLAIN_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with export context when available."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict[str, Any] = {
            "timestamp": created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return orjson.dumps(payload, default=str).decode("utf-8")


class RichConsoleHandler(logging.Handler):
    """Writes records to a Rich console, coloured by level."""

    def __init__(self, console: "Console | None" = None, level: int = logging.INFO):
        super().__init__(level)
        if console is None:
            from rich.console import Console
            console = Console(stderr=True)
        self.console = console

    def emit(self, record: logging.LogRecord) -> None:
        try:
            style = LEVEL_STYLES.get(record.levelno, "default")
            text = f"[{style}]{escape(self.format(record))}[/{style}]"

            export_id = getattr(record, "export_id", None)
            if export_id:
                text = f"[cyan]{escape(f'[{export_id}]')}[/cyan] {text}"

            self.console.print(text, markup=True, highlight=False)
            if record.exc_info:
                self.console.print_exception()
        except Exception:
            self.handleError(record)


def _console_handler(rich_console: bool, level: int) -> logging.Handler:
    handler: logging.Handler
    if rich_console:
        handler = RichConsoleHandler(level=level)
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT))
    handler.setLevel(level)
    return handler


def _file_handler(log_file: Path | str, json_format: bool) -> logging.Handler:
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def setup_logging(
    level: str = "INFO",
    log_file: Path | str | None = None,
    json_format: bool = True,
    rich_console: bool = True,
) -> logging.Logger:
    """Configure the `ghexport` logger.

    Calling it again replaces the previous handlers.

    Args:
        level: Console log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Also write every record (DEBUG and up) to this file
        json_format: Use JSON lines in the log file
        rich_console: Use Rich for console output

    Returns:
        The `ghexport` logger
    """
    numeric_level = getattr(logging, level.upper())
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(logging.DEBUG if log_file else numeric_level)

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    root.addHandler(_console_handler(rich_console, numeric_level))
    if log_file:
        root.addHandler(_file_handler(log_file, json_format))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    return root


def get_logger(name: str | None = None) -> logging.Logger:
    """Return `ghexport.<name>`, or the package logger when no name is given."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)


class ContextualLogger(logging.LoggerAdapter):
    """Adapter that stamps export context onto every record."""

    def __init__(self, logger: logging.Logger, **context: Any):
        super().__init__(logger, {k: v for k, v in context.items() if v is not None})

    @property
    def export_id(self) -> str | None:
        return self.extra.get("export_id")

    @property
    def kind(self) -> str | None:
        return self.extra.get("kind")

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs

    def bind(self, **context: Any) -> "ContextualLogger":
        """Copy of this adapter with extra context merged in."""
        return ContextualLogger(self.logger, **{**self.extra, **context})


def get_contextual_logger(
    name: str | None = None,
    export_id: str | None = None,
    kind: str | None = None,
) -> ContextualLogger:
    """Logger for one export run.

    Args:
        name: Logger name under `ghexport.`
        export_id: Operation id
        kind: Resource kind value (`issues` / `pull_requests`)
    """
    return ContextualLogger(get_logger(name), export_id=export_id, kind=kind)
