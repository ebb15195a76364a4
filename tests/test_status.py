"""Tests for export operations and the status registry."""

from __future__ import annotations

import threading

import pytest

from ghexport.core.config import ResourceKind
from ghexport.core.orchestrator import (
    ExportOperation,
    ExportState,
    OperationNotFoundError,
    StatusRegistry,
)


def _make_operation(op_id: str = "issues-1-abc123", kind: ResourceKind = ResourceKind.ISSUES):
    return ExportOperation(id=op_id, kind=kind)


class TestExportOperation:
    def test_starts_in_progress(self):
        op = _make_operation()
        assert op.status is ExportState.IN_PROGRESS
        assert op.end_time is None
        assert op.duration_seconds is None

    def test_complete(self):
        op = _make_operation()
        assert op.complete(42, "exports/issues.json") is True

        assert op.status is ExportState.COMPLETED
        assert op.item_count == 42
        assert op.file_path == "exports/issues.json"
        assert op.end_time is not None
        assert op.duration_seconds >= 0

    def test_fail(self):
        op = _make_operation()
        assert op.fail("No issues found to export") is True

        assert op.status is ExportState.FAILED
        assert op.error_message == "No issues found to export"
        assert op.item_count is None

    def test_transitions_at_most_once(self):
        op = _make_operation()
        op.fail("first")

        assert op.complete(1, "x.json") is False
        assert op.fail("second") is False
        assert op.status is ExportState.FAILED
        assert op.error_message == "first"
        assert op.file_path is None

    def test_concurrent_transitions_have_one_winner(self):
        op = _make_operation()
        barrier = threading.Barrier(8)
        outcomes: list[bool] = []
        lock = threading.Lock()

        def worker(i: int) -> None:
            barrier.wait()
            won = op.complete(i, f"{i}.json") if i % 2 else op.fail(f"error {i}")
            with lock:
                outcomes.append(won)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert outcomes.count(True) == 1
        payload = op.to_dict()
        assert ("item_count" in payload) != ("error_message" in payload)

    def test_payload_in_progress_has_only_base_fields(self):
        payload = _make_operation().to_dict()
        assert set(payload) == {"id", "kind", "status", "start_time"}
        assert payload["status"] == "in_progress"
        assert payload["kind"] == "issues"

    def test_payload_completed(self):
        op = _make_operation("prs-1-abc123", ResourceKind.PULL_REQUESTS)
        op.complete(3, "exports/pull-requests.json")
        payload = op.to_dict()

        assert payload["kind"] == "pull_requests"
        assert payload["status"] == "completed"
        assert payload["item_count"] == 3
        assert payload["file_path"] == "exports/pull-requests.json"
        assert "end_time" in payload
        assert "duration_seconds" in payload
        assert "error_message" not in payload

    def test_payload_failed(self):
        op = _make_operation()
        op.fail("disk full")
        payload = op.to_dict()

        assert payload["status"] == "failed"
        assert payload["error_message"] == "disk full"
        assert "item_count" not in payload
        assert "file_path" not in payload


class TestStatusRegistry:
    def test_get_registered(self):
        registry = StatusRegistry()
        op = _make_operation()
        registry.register(op)

        assert registry.get(op.id) is op
        assert op.id in registry
        assert len(registry) == 1

    def test_get_unknown(self):
        registry = StatusRegistry()
        with pytest.raises(OperationNotFoundError) as exc_info:
            registry.get("issues-0-missing")
        assert exc_info.value.operation_id == "issues-0-missing"

    def test_duplicate_id_rejected(self):
        registry = StatusRegistry()
        registry.register(_make_operation())
        with pytest.raises(ValueError):
            registry.register(_make_operation())

    def test_list_all_is_a_snapshot(self):
        registry = StatusRegistry()
        registry.register(_make_operation("a"))
        snapshot = registry.list_all()
        snapshot.pop("a")
        registry.register(_make_operation("b"))

        assert "a" in registry
        assert list(registry.list_all()) == ["a", "b"]
        assert snapshot == {}

    def test_terminal_operations_are_kept(self):
        registry = StatusRegistry()
        done = _make_operation("done")
        running = _make_operation("running")
        registry.register(done)
        registry.register(running)
        done.complete(1, "x.json")

        assert registry.get("done").status is ExportState.COMPLETED
        assert registry.in_progress() == [running]

    def test_concurrent_registration(self):
        registry = StatusRegistry()

        def worker(start: int) -> None:
            for i in range(start, start + 100):
                registry.register(_make_operation(f"op-{i}"))

        threads = [threading.Thread(target=worker, args=(n * 100,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(registry) == 400
        assert all(f"op-{i}" in registry for i in range(400))
