"""Orchestrator - admission, run coordination, status tracking."""

from .coordinator import (
    ExportConflictError,
    ExportCoordinator,
    ExportDirectoryError,
    new_operation_id,
)
from .gate import AdmissionGate
from .status import ExportOperation, ExportState, OperationNotFoundError, StatusRegistry

__all__ = [
    "AdmissionGate",
    "ExportConflictError",
    "ExportCoordinator",
    "ExportDirectoryError",
    "ExportOperation",
    "ExportState",
    "OperationNotFoundError",
    "StatusRegistry",
    "new_operation_id",
]
