"""Tests for export admission and run bodies."""

from __future__ import annotations

import json
import re
import threading

import pytest

from ghexport.core.config import AppConfig, ResourceKind
from ghexport.core.export import ExportWriteError
from ghexport.core.orchestrator import (
    ExportConflictError,
    ExportCoordinator,
    ExportDirectoryError,
    ExportState,
    new_operation_id,
)

from tests.fakes import FakeExecutor, FakeWriter, make_issue_node, make_pr_node, wait_for


def _issues(count: int) -> list[dict]:
    return [make_issue_node(n) for n in range(1, count + 1)]


def _prs(count: int) -> list[dict]:
    return [make_pr_node(n) for n in range(1, count + 1)]


class TestOperationIds:
    def test_issue_id_format(self):
        assert re.fullmatch(r"issues-\d{13}-[0-9a-f]{6}", new_operation_id(ResourceKind.ISSUES))

    def test_pull_request_id_format(self):
        assert re.fullmatch(r"prs-\d{13}-[0-9a-f]{6}", new_operation_id(ResourceKind.PULL_REQUESTS))

    def test_ids_are_unique_within_a_millisecond(self):
        ids = {new_operation_id(ResourceKind.ISSUES) for _ in range(200)}
        assert len(ids) == 200


class TestSingleExport:
    def test_completed(self, make_coordinator):
        writer = FakeWriter()
        coordinator = make_coordinator(FakeExecutor(issues=_issues(30)), writer)

        export_id = coordinator.start_export(ResourceKind.ISSUES)
        assert export_id.startswith("issues-")
        assert coordinator.wait_until_idle(timeout=5)

        op = coordinator.registry.get(export_id)
        assert op.status is ExportState.COMPLETED
        assert op.item_count == 30
        assert op.file_path.endswith("issues.json")
        assert [r.number for r in writer.written[ResourceKind.ISSUES]] == list(range(1, 31))
        assert coordinator.export_in_progress is False

    def test_pull_request_export(self, make_coordinator):
        coordinator = make_coordinator(FakeExecutor(pull_requests=_prs(5)))

        export_id = coordinator.start_export(ResourceKind.PULL_REQUESTS)
        coordinator.wait_until_idle(timeout=5)

        assert export_id.startswith("prs-")
        assert coordinator.registry.get(export_id).item_count == 5

    def test_cap_applies(self, make_coordinator):
        executor = FakeExecutor(issues=_issues(1000))
        coordinator = make_coordinator(executor, max_items=250)

        export_id = coordinator.start_export(ResourceKind.ISSUES)
        coordinator.wait_until_idle(timeout=5)

        assert executor.page_sizes() == [100, 100, 50]
        assert coordinator.registry.get(export_id).item_count == 250

    def test_no_issues_found(self, make_coordinator):
        coordinator = make_coordinator(FakeExecutor())

        export_id = coordinator.start_export(ResourceKind.ISSUES)
        coordinator.wait_until_idle(timeout=5)

        op = coordinator.registry.get(export_id)
        assert op.status is ExportState.FAILED
        assert op.error_message == "No issues found to export"

    def test_no_pull_requests_found(self, make_coordinator):
        coordinator = make_coordinator(FakeExecutor())

        export_id = coordinator.start_export(ResourceKind.PULL_REQUESTS)
        coordinator.wait_until_idle(timeout=5)

        assert coordinator.registry.get(export_id).error_message == "No pull requests found to export"

    def test_fetch_error_on_first_page_is_no_records(self, make_coordinator):
        coordinator = make_coordinator(FakeExecutor(issues=_issues(10), fail_after_pages=0))

        export_id = coordinator.start_export(ResourceKind.ISSUES)
        coordinator.wait_until_idle(timeout=5)

        assert coordinator.registry.get(export_id).error_message == "No issues found to export"

    def test_partial_fetch_is_persisted(self, make_coordinator):
        writer = FakeWriter()
        coordinator = make_coordinator(
            FakeExecutor(issues=_issues(500), fail_after_pages=2), writer, batch_size=50
        )

        export_id = coordinator.start_export(ResourceKind.ISSUES)
        coordinator.wait_until_idle(timeout=5)

        op = coordinator.registry.get(export_id)
        assert op.status is ExportState.COMPLETED
        assert op.item_count == 100
        assert len(writer.written[ResourceKind.ISSUES]) == 100

    def test_writer_returns_no_location(self, make_coordinator):
        coordinator = make_coordinator(
            FakeExecutor(pull_requests=_prs(3)), FakeWriter(return_none=True)
        )

        export_id = coordinator.start_export(ResourceKind.PULL_REQUESTS)
        coordinator.wait_until_idle(timeout=5)

        op = coordinator.registry.get(export_id)
        assert op.status is ExportState.FAILED
        assert op.error_message == "Failed to write pull requests to file"

    def test_persistence_fault_records_message(self, make_coordinator):
        coordinator = make_coordinator(
            FakeExecutor(issues=_issues(40)),
            FakeWriter(error=ExportWriteError("No space left on device")),
        )

        export_id = coordinator.start_export(ResourceKind.ISSUES)
        coordinator.wait_until_idle(timeout=5)

        op = coordinator.registry.get(export_id)
        assert op.status is ExportState.FAILED
        assert op.error_message == "No space left on device"
        assert op.item_count is None
        assert op.file_path is None

    def test_unexpected_fault_is_caught_and_gate_released(self, make_coordinator):
        coordinator = make_coordinator(
            FakeExecutor(issues=_issues(10), fail_after_pages=0, error=RuntimeError("kaboom"))
        )

        export_id = coordinator.start_export(ResourceKind.ISSUES)
        assert coordinator.wait_until_idle(timeout=5)

        op = coordinator.registry.get(export_id)
        assert op.status is ExportState.FAILED
        assert op.error_message == "kaboom"
        assert coordinator.gate.is_held is False


class TestAdmission:
    def test_second_start_conflicts(self, make_coordinator):
        hold = threading.Event()
        executor = FakeExecutor(issues=_issues(5), hold=hold)
        coordinator = make_coordinator(executor)

        first = coordinator.start_export(ResourceKind.ISSUES)
        with pytest.raises(ExportConflictError):
            coordinator.start_export(ResourceKind.PULL_REQUESTS)
        with pytest.raises(ExportConflictError):
            coordinator.start_combined_export()

        assert list(coordinator.registry.list_all()) == [first]
        assert coordinator.gate.holder == first

        hold.set()
        assert coordinator.wait_until_idle(timeout=5)
        assert coordinator.registry.get(first).status is ExportState.COMPLETED

    def test_start_after_completion_is_admitted(self, make_coordinator):
        coordinator = make_coordinator(FakeExecutor(issues=_issues(2)))

        first = coordinator.start_export(ResourceKind.ISSUES)
        coordinator.wait_until_idle(timeout=5)
        second = coordinator.start_export(ResourceKind.ISSUES)
        coordinator.wait_until_idle(timeout=5)

        assert first != second
        assert len(coordinator.registry) == 2

    def test_directory_failure_registers_nothing(self, make_coordinator):
        coordinator = make_coordinator(FakeExecutor(issues=_issues(2)), FakeWriter(directory_ok=False))

        with pytest.raises(ExportDirectoryError):
            coordinator.start_export(ResourceKind.ISSUES)

        assert len(coordinator.registry) == 0
        assert coordinator.gate.is_held is False

    def test_combined_export(self, make_coordinator):
        writer = FakeWriter()
        coordinator = make_coordinator(FakeExecutor(issues=_issues(7), pull_requests=_prs(4)), writer)

        ids = coordinator.start_combined_export()
        assert set(ids) == {ResourceKind.ISSUES, ResourceKind.PULL_REQUESTS}
        assert coordinator.wait_until_idle(timeout=5)

        assert coordinator.registry.get(ids[ResourceKind.ISSUES]).item_count == 7
        assert coordinator.registry.get(ids[ResourceKind.PULL_REQUESTS]).item_count == 4
        assert len(writer.written[ResourceKind.PULL_REQUESTS]) == 4

    def test_combined_export_holds_gate_until_both_finish(self, make_coordinator):
        hold = threading.Event()
        executor = FakeExecutor(issues=_issues(3), pull_requests=_prs(3), hold=hold)
        coordinator = make_coordinator(executor)

        ids = coordinator.start_combined_export()
        assert wait_for(lambda: len(executor.calls) == 2)
        assert coordinator.export_in_progress is True
        assert coordinator.gate.holder == f"{ids[ResourceKind.ISSUES]}, {ids[ResourceKind.PULL_REQUESTS]}"

        hold.set()
        assert coordinator.wait_until_idle(timeout=5)
        for export_id in ids.values():
            assert coordinator.registry.get(export_id).status is ExportState.COMPLETED

    def test_one_failed_half_does_not_affect_the_other(self, make_coordinator):
        coordinator = make_coordinator(FakeExecutor(issues=_issues(3)))

        ids = coordinator.start_combined_export()
        coordinator.wait_until_idle(timeout=5)

        assert coordinator.registry.get(ids[ResourceKind.ISSUES]).status is ExportState.COMPLETED
        prs = coordinator.registry.get(ids[ResourceKind.PULL_REQUESTS])
        assert prs.error_message == "No pull requests found to export"


class TestShutdown:
    def test_shutdown_keeps_partial_results(self, make_coordinator):
        executor = FakeExecutor(issues=_issues(500))
        coordinator = make_coordinator(executor, delay_ms=10_000)

        export_id = coordinator.start_export(ResourceKind.ISSUES)
        assert wait_for(lambda: coordinator.engine.pacer.stats()["pauses"] >= 1)
        coordinator.shutdown(timeout=5)

        op = coordinator.registry.get(export_id)
        assert op.status is ExportState.COMPLETED
        assert op.item_count == 100
        assert executor.closed is True

    def test_run_timeout_cancels_paging(self, make_coordinator):
        coordinator = make_coordinator(
            FakeExecutor(issues=_issues(500)), delay_ms=10_000, run_timeout=0.2
        )

        export_id = coordinator.start_export(ResourceKind.ISSUES)
        assert coordinator.wait_until_idle(timeout=5)

        assert coordinator.registry.get(export_id).item_count == 100

    def test_start_after_shutdown(self, make_coordinator):
        coordinator = make_coordinator(FakeExecutor(issues=_issues(1)))
        coordinator.start_export(ResourceKind.ISSUES)
        coordinator.wait_until_idle(timeout=5)
        coordinator.shutdown()

        with pytest.raises(RuntimeError):
            coordinator.start_export(ResourceKind.ISSUES)

    def test_shutdown_is_idempotent(self, make_coordinator):
        coordinator = make_coordinator()
        coordinator.shutdown()
        coordinator.shutdown()


class TestFromConfig:
    def test_requires_credentials(self, tmp_path):
        config = AppConfig.model_validate({"export": {"directory": str(tmp_path)}})
        with pytest.raises(ValueError, match="github.token"):
            ExportCoordinator.from_config(config)

    def test_writes_real_files(self, tmp_path):
        config = AppConfig.model_validate({
            "github": {"repository": {"owner": "octo", "name": "demo"}},
            "export": {"directory": str(tmp_path / "out"), "page_delay_ms": 0, "batch_size": 2},
        })
        executor = FakeExecutor(issues=_issues(5), pull_requests=_prs(3))

        with ExportCoordinator.from_config(config, executor=executor) as coordinator:
            ids = coordinator.start_combined_export()
            assert coordinator.wait_until_idle(timeout=5)

        issues_file = tmp_path / "out" / "issues.json"
        prs_file = tmp_path / "out" / "pull-requests.json"
        assert coordinator.registry.get(ids[ResourceKind.ISSUES]).file_path == str(issues_file)
        assert [i["number"] for i in json.loads(issues_file.read_text())] == [1, 2, 3, 4, 5]
        assert [p["id"] for p in json.loads(prs_file.read_text())] == ["PR_1", "PR_2", "PR_3"]
        assert max(executor.page_sizes()) == 2
