"""
Export operation tracking.

Every admitted export gets an ExportOperation that is registered once and
kept for the life of the process. Operations move from in_progress to
exactly one terminal state.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from ghexport.core.config.models import ResourceKind


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExportState(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class OperationNotFoundError(LookupError):
    """No operation is registered under the given id."""

    def __init__(self, operation_id: str):
        super().__init__(f"Export operation not found: {operation_id}")
        self.operation_id = operation_id


@dataclass
class ExportOperation:
    """State of one export run."""

    id: str
    kind: ResourceKind
    start_time: datetime = field(default_factory=_utcnow)
    status: ExportState = ExportState.IN_PROGRESS
    end_time: datetime | None = None
    item_count: int | None = None
    file_path: str | None = None
    error_message: str | None = None

    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    @property
    def is_terminal(self) -> bool:
        return self.status is not ExportState.IN_PROGRESS

    @property
    def duration_seconds(self) -> float | None:
        if self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return None

    def complete(self, item_count: int, file_path: str) -> bool:
        """Mark as completed.

        Returns:
            False if the operation had already finished
        """
        with self._lock:
            if self.is_terminal:
                return False
            self.item_count = item_count
            self.file_path = file_path
            self.end_time = _utcnow()
            self.status = ExportState.COMPLETED
            return True

    def fail(self, message: str) -> bool:
        """Mark as failed.

        Returns:
            False if the operation had already finished
        """
        with self._lock:
            if self.is_terminal:
                return False
            self.error_message = message
            self.end_time = _utcnow()
            self.status = ExportState.FAILED
            return True

    def to_dict(self) -> dict[str, Any]:
        """Status payload; optional fields appear only once set."""
        with self._lock:
            data: dict[str, Any] = {
                "id": self.id,
                "kind": self.kind.value,
                "status": self.status.value,
                "start_time": self.start_time.isoformat(),
            }
            if self.end_time is not None:
                data["end_time"] = self.end_time.isoformat()
                data["duration_seconds"] = self.duration_seconds
            if self.item_count is not None:
                data["item_count"] = self.item_count
            if self.file_path is not None:
                data["file_path"] = self.file_path
            if self.error_message is not None:
                data["error_message"] = self.error_message
            return data


class StatusRegistry:
    """Thread-safe, process-lifetime table of export operations."""

    def __init__(self) -> None:
        self._operations: dict[str, ExportOperation] = {}
        self._lock = threading.Lock()

    def register(self, operation: ExportOperation) -> None:
        with self._lock:
            if operation.id in self._operations:
                raise ValueError(f"Duplicate export operation id: {operation.id}")
            self._operations[operation.id] = operation

    def get(self, operation_id: str) -> ExportOperation:
        """Look up an operation.

        Raises:
            OperationNotFoundError: If the id was never registered
        """
        with self._lock:
            operation = self._operations.get(operation_id)
        if operation is None:
            raise OperationNotFoundError(operation_id)
        return operation

    def list_all(self) -> dict[str, ExportOperation]:
        """Snapshot of every registered operation, in registration order."""
        with self._lock:
            return dict(self._operations)

    def in_progress(self) -> list[ExportOperation]:
        return [op for op in self.list_all().values() if not op.is_terminal]

    def __contains__(self, operation_id: object) -> bool:
        with self._lock:
            return operation_id in self._operations

    def __len__(self) -> int:
        with self._lock:
            return len(self._operations)
