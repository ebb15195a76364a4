"""FastAPI server exposing export operations and their status."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ghexport import __version__
from ghexport.core.config import AppConfig, ResourceKind, load_app_config
from ghexport.core.orchestrator import (
    ExportConflictError,
    ExportCoordinator,
    ExportDirectoryError,
    OperationNotFoundError,
)

logger = logging.getLogger(__name__)


class ExportStarted(BaseModel):
    message: str
    export_id: str


class CombinedExportStarted(BaseModel):
    message: str
    issues_export_id: str
    pull_requests_export_id: str


class ExportStatusList(BaseModel):
    export_in_progress: bool
    exports: dict[str, dict[str, Any]]


def create_app(
    config: AppConfig | None = None,
    coordinator: ExportCoordinator | None = None,
) -> FastAPI:
    """Build the API.

    Args:
        config: Application config (loaded from disk if not provided)
        coordinator: Pre-built coordinator; built from config in the lifespan otherwise
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = False
        if getattr(app.state, "coordinator", None) is None:
            app.state.coordinator = ExportCoordinator.from_config(config or load_app_config())
            owned = True
        logger.info("Export API ready")
        try:
            yield
        finally:
            if owned:
                app.state.coordinator.shutdown()

    app = FastAPI(
        title="GitHub Data Exporter",
        description="Export GitHub issues and pull requests to JSON files",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.coordinator = coordinator

    @app.exception_handler(ExportConflictError)
    async def conflict_handler(request: Request, exc: ExportConflictError):
        return JSONResponse(status_code=409, content={"error": "Export already in progress"})

    @app.exception_handler(ExportDirectoryError)
    async def directory_handler(request: Request, exc: ExportDirectoryError):
        return JSONResponse(status_code=500, content={"error": "Failed to create export directory"})

    @app.exception_handler(OperationNotFoundError)
    async def not_found_handler(request: Request, exc: OperationNotFoundError):
        return JSONResponse(status_code=404, content={"error": str(exc)})

    def get_coordinator(request: Request) -> ExportCoordinator:
        return request.app.state.coordinator

    @app.get("/health")
    async def health(request: Request):
        coordinator = get_coordinator(request)
        return {
            "status": "ok",
            "version": __version__,
            "export_in_progress": coordinator.export_in_progress,
            "active_exports": [op.id for op in coordinator.registry.in_progress()],
        }

    @app.post("/api/export", status_code=202, response_model=CombinedExportStarted)
    def export_all(request: Request):
        ids = get_coordinator(request).start_combined_export()
        return CombinedExportStarted(
            message="Export started",
            issues_export_id=ids[ResourceKind.ISSUES],
            pull_requests_export_id=ids[ResourceKind.PULL_REQUESTS],
        )

    @app.post("/api/export/issues", status_code=202, response_model=ExportStarted)
    def export_issues(request: Request):
        export_id = get_coordinator(request).start_export(ResourceKind.ISSUES)
        return ExportStarted(message="Issues export started", export_id=export_id)

    @app.post("/api/export/pull-requests", status_code=202, response_model=ExportStarted)
    def export_pull_requests(request: Request):
        export_id = get_coordinator(request).start_export(ResourceKind.PULL_REQUESTS)
        return ExportStarted(message="Pull requests export started", export_id=export_id)

    @app.get("/api/export/status/{export_id}")
    async def export_status(export_id: str, request: Request):
        return get_coordinator(request).registry.get(export_id).to_dict()

    @app.get("/api/export/status", response_model=ExportStatusList)
    async def all_export_statuses(request: Request):
        coordinator = get_coordinator(request)
        operations = coordinator.registry.list_all()
        return ExportStatusList(
            export_in_progress=coordinator.export_in_progress,
            exports={op_id: op.to_dict() for op_id, op in operations.items()},
        )

    return app
