"""
JSON file export.

Serializes fetched records to a pretty-printed JSON array, one file per
resource kind, under the configured export directory.
"""

from __future__ import annotations

import contextlib
import logging
from pathlib import Path
from typing import Protocol, Sequence

import orjson
from pydantic import BaseModel

from ghexport.core.config.models import ExportConfig, ResourceKind

logger = logging.getLogger(__name__)

JSON_OPTIONS = orjson.OPT_INDENT_2 | orjson.OPT_NAIVE_UTC | orjson.OPT_UTC_Z


class ExportWriteError(Exception):
    """Writing an export file failed."""

    def __init__(self, message: str, path: Path | None = None):
        super().__init__(message)
        self.path = path


class RecordWriter(Protocol):
    """Anything that can persist one kind's records."""

    def ensure_export_directory(self) -> bool: ...

    def write(self, kind: ResourceKind, records: Sequence[BaseModel]) -> Path | None: ...


def serialize_records(records: Sequence[BaseModel]) -> bytes:
    """Render records as an indented JSON array, preserving order."""
    return orjson.dumps(
        [record.model_dump(by_alias=True) for record in records],
        option=JSON_OPTIONS,
        default=str,
    )


class JsonExporter:
    """Writes export files with orjson.

    Usage:
        exporter = JsonExporter(config.export)
        path = exporter.write(ResourceKind.ISSUES, issues)
    """

    def __init__(self, config: ExportConfig):
        self.config = config

    @property
    def directory(self) -> Path:
        return Path(self.config.directory)

    def ensure_export_directory(self) -> bool:
        """Create the export directory if needed.

        Returns:
            True if the directory exists afterwards
        """
        directory = self.directory
        if directory.is_dir():
            return True
        try:
            logger.info("Creating export directory: %s", directory)
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Failed to create export directory %s: %s", directory, e)
            return False
        return True

    def path_for(self, kind: ResourceKind) -> Path:
        return self.config.file_path(kind)

    def write(self, kind: ResourceKind, records: Sequence[BaseModel]) -> Path:
        """Write `records` to the file configured for `kind`.

        Raises:
            ExportWriteError: If serialization or the file write fails
        """
        path = self.path_for(kind)
        logger.info("Exporting %d %s to %s", len(records), kind.label, path)

        try:
            payload = serialize_records(records)
        except orjson.JSONEncodeError as e:
            raise ExportWriteError(f"Failed to serialize {kind.label}: {e}", path) from e

        # A failed write leaves any previous file untouched
        partial = path.with_name(f".{path.name}.partial")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            partial.write_bytes(payload)
            partial.replace(path)
        except OSError as e:
            logger.error("Failed to export data to %s: %s", path, e)
            with contextlib.suppress(OSError):
                partial.unlink()
            raise ExportWriteError(str(e), path) from e

        logger.info("Successfully exported data to %s", path)
        return path
