"""Shared fixtures: fake collaborators, coordinators, clean environment."""

from __future__ import annotations

import pytest

from ghexport.core.config import ResourceKind
from ghexport.core.fetch import FetchEngine, FetchRequest, PagePacer
from ghexport.core.orchestrator import ExportCoordinator

from tests.fakes import FakeExecutor, FakeWriter

ENV_VARS = ("GHEXPORT_CONFIG", "GITHUB_TOKEN", "REPO_OWNER", "REPO_NAME", "EXPORT_DIR")


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_coordinator():
    """Factory for coordinators wired to fakes; all are shut down afterwards."""
    created: list[ExportCoordinator] = []

    def factory(
        executor: FakeExecutor | None = None,
        writer: FakeWriter | None = None,
        *,
        max_items: int = 1000,
        batch_size: int = 100,
        delay_ms: int = 0,
        run_timeout: float | None = None,
    ) -> ExportCoordinator:
        def request_factory(kind: ResourceKind) -> FetchRequest:
            return FetchRequest(
                kind=kind,
                owner="octo",
                repo="demo",
                batch_size=batch_size,
                max_items=max_items,
            )

        coordinator = ExportCoordinator(
            FetchEngine(executor or FakeExecutor(), PagePacer(delay_ms=delay_ms)),
            writer or FakeWriter(),
            request_factory,
            run_timeout=run_timeout,
        )
        created.append(coordinator)
        return coordinator

    yield factory

    for coordinator in created:
        coordinator.shutdown(timeout=5)

