"""
Export coordinator.

Admits export requests synchronously and runs them on a dedicated worker
thread's event loop: fetch -> persist -> record the outcome.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
import time
import uuid
from functools import partial
from typing import Callable, Iterable

from ghexport.core.client.base import QueryExecutor
from ghexport.core.config.models import AppConfig, ResourceKind
from ghexport.core.export.writer import JsonExporter, RecordWriter
from ghexport.core.fetch.engine import FetchEngine, FetchRequest
from ghexport.core.fetch.throttling import PagePacer
from ghexport.core.logging import get_contextual_logger

from .gate import AdmissionGate
from .status import ExportOperation, StatusRegistry

logger = logging.getLogger(__name__)

RequestFactory = Callable[[ResourceKind], FetchRequest]


class ExportConflictError(Exception):
    """Another export already holds the admission gate."""

    def __init__(self, message: str = "Export already in progress"):
        super().__init__(message)


class ExportDirectoryError(Exception):
    """The export directory could not be created."""


def new_operation_id(kind: ResourceKind) -> str:
    """`issues-<epoch ms>-<hex>` or `prs-<epoch ms>-<hex>`."""
    return f"{kind.id_prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


class _Admission:
    """Bookkeeping for one accepted request."""

    def __init__(self, operations: list[ExportOperation]):
        self.operations = operations
        self.cancel = asyncio.Event()
        self.future: concurrent.futures.Future | None = None

    @property
    def ids(self) -> dict[ResourceKind, str]:
        return {op.kind: op.id for op in self.operations}


class ExportCoordinator:
    """Coordinates export runs.

    All run bodies share one worker thread's event loop. The two halves of a
    combined export are concurrent tasks on that loop: they overlap while
    waiting on the network or the inter-page pause, and file writes go
    through `asyncio.to_thread`, so neither half blocks the other.

    Usage:
        coordinator = ExportCoordinator.from_config(config)
        export_id = coordinator.start_export(ResourceKind.ISSUES)
        coordinator.wait_until_idle()
        coordinator.registry.get(export_id).status
        coordinator.shutdown()
    """

    def __init__(
        self,
        engine: FetchEngine,
        writer: RecordWriter,
        request_factory: RequestFactory,
        *,
        registry: StatusRegistry | None = None,
        gate: AdmissionGate | None = None,
        run_timeout: float | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            engine: Fetch engine shared by all runs
            writer: Persists fetched records
            request_factory: Builds the FetchRequest for a kind
            registry: Status registry (created if not provided)
            gate: Admission gate (created if not provided)
            run_timeout: Cancel paging after this many seconds per admission
        """
        self.engine = engine
        self.writer = writer
        self.request_factory = request_factory
        self.registry = registry or StatusRegistry()
        self.gate = gate or AdmissionGate()
        self.run_timeout = run_timeout

        self._lock = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._admissions: set[_Admission] = set()
        self._closed = False

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        executor: QueryExecutor | None = None,
    ) -> "ExportCoordinator":
        """Build a coordinator wired to the GitHub GraphQL API.

        Raises:
            ValueError: If no executor is given and credentials are missing
        """
        if executor is None:
            from ghexport.core.client.graphql import GraphQLExecutor

            config.require_credentials()
            executor = GraphQLExecutor(
                token=config.github.token,
                api_url=config.github.api_url,
                timeout=config.github.timeout_seconds,
                max_retries=config.github.max_retries,
                user_agent=config.github.user_agent,
            )

        engine = FetchEngine(executor, PagePacer(delay_ms=config.export.page_delay_ms))
        return cls(
            engine,
            JsonExporter(config.export),
            partial(FetchRequest.from_config, config=config),
            run_timeout=config.export.run_timeout_seconds,
        )

    # ------------------------------------------------------------------
    # Admission
    # ------------------------------------------------------------------

    @property
    def export_in_progress(self) -> bool:
        return self.gate.is_held

    def start_export(self, kind: ResourceKind) -> str:
        """Admit a single-kind export and return its operation id.

        Raises:
            ExportConflictError: If another export is running
            ExportDirectoryError: If the export directory cannot be created
        """
        return self._admit((kind,))[kind]

    def start_combined_export(self) -> dict[ResourceKind, str]:
        """Admit an issues + pull requests export under one gate acquisition."""
        return self._admit((ResourceKind.ISSUES, ResourceKind.PULL_REQUESTS))

    def _admit(self, kinds: Iterable[ResourceKind]) -> dict[ResourceKind, str]:
        loop = self._ensure_loop()
        operations = [ExportOperation(id=new_operation_id(k), kind=k) for k in kinds]

        if not self.gate.try_acquire(holder=", ".join(op.id for op in operations)):
            logger.warning("Export rejected: %s is still in progress", self.gate.holder)
            raise ExportConflictError()

        admission: _Admission | None = None
        try:
            if not self.writer.ensure_export_directory():
                raise ExportDirectoryError("Could not create export directory")

            admission = _Admission(operations)
            for operation in admission.operations:
                self.registry.register(operation)
                logger.info("Registered %s export %s", operation.kind.label, operation.id)

            with self._lock:
                self._admissions.add(admission)
            admission.future = asyncio.run_coroutine_threadsafe(self._run_admission(admission), loop)
        except BaseException as e:
            if admission is not None:
                with self._lock:
                    self._admissions.discard(admission)
                for operation in admission.operations:
                    operation.fail(str(e) or type(e).__name__)
            self.gate.release()
            raise

        return admission.ids

    # ------------------------------------------------------------------
    # Run bodies (worker loop)
    # ------------------------------------------------------------------

    async def _run_admission(self, admission: _Admission) -> None:
        timer: asyncio.TimerHandle | None = None
        if self.run_timeout:
            timer = asyncio.get_running_loop().call_later(self.run_timeout, admission.cancel.set)
        try:
            await asyncio.gather(*(self._run_operation(op, admission.cancel) for op in admission.operations))
        finally:
            if timer is not None:
                timer.cancel()
            with self._lock:
                self._admissions.discard(admission)
            self.gate.release()
            logger.debug("Admission gate released for %s", ", ".join(admission.ids.values()))

    async def _run_operation(self, operation: ExportOperation, cancel: asyncio.Event) -> None:
        log = get_contextual_logger("export", export_id=operation.id, kind=operation.kind.value)
        label = operation.kind.label

        try:
            log.info("Starting %s export", label)
            request = self.request_factory(operation.kind)
            result = await self.engine.fetch(request, cancel=cancel, log=log)

            if result.partial:
                log.warning(
                    "Paging stopped early (%s) after %d %s",
                    result.stop_reason.value, result.fetched, label,
                )

            if not result.records:
                log.warning("No %s found to export", label)
                operation.fail(f"No {label} found to export")
                return

            path = await asyncio.to_thread(self.writer.write, operation.kind, list(result.records))
            if path is None:
                log.error("Failed to write %s to file", label)
                operation.fail(f"Failed to write {label} to file")
                return

            operation.complete(result.fetched, str(path))
            log.info("%s export completed: %d items written to %s", label.capitalize(), result.fetched, path)

        except Exception as e:
            log.exception("Error during %s export", label)
            operation.fail(str(e) or type(e).__name__)

    # ------------------------------------------------------------------
    # Worker loop lifecycle
    # ------------------------------------------------------------------

    def _ensure_loop(self) -> asyncio.AbstractEventLoop:
        with self._lock:
            if self._closed:
                raise RuntimeError("Export coordinator has been shut down")
            if self._loop is None:
                loop = asyncio.new_event_loop()
                started = threading.Event()
                thread = threading.Thread(
                    target=self._run_loop,
                    args=(loop, started),
                    name="ghexport-worker",
                    daemon=True,
                )
                thread.start()
                started.wait()
                self._loop = loop
                self._thread = thread
            return self._loop

    @staticmethod
    def _run_loop(loop: asyncio.AbstractEventLoop, started: threading.Event) -> None:
        asyncio.set_event_loop(loop)
        loop.call_soon(started.set)
        try:
            loop.run_forever()
        finally:
            loop.close()

    def wait_until_idle(self, timeout: float | None = None) -> bool:
        """Block until no export holds the gate. Returns False on timeout."""
        return self.gate.wait_released(timeout)

    def shutdown(self, timeout: float = 10.0) -> None:
        """Cancel in-flight fetches, let run bodies record partial results, stop the loop."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            loop, thread = self._loop, self._thread
            admissions = list(self._admissions)

        if loop is None:
            return

        if admissions:
            logger.info("Cancelling %d in-flight export(s)", len(admissions))
        for admission in admissions:
            loop.call_soon_threadsafe(admission.cancel.set)
        for admission in admissions:
            if admission.future is None:
                continue
            try:
                admission.future.result(timeout=timeout)
            except (concurrent.futures.TimeoutError, concurrent.futures.CancelledError):
                logger.warning("Export %s did not finish before shutdown", ", ".join(admission.ids.values()))
                admission.future.cancel()

        try:
            asyncio.run_coroutine_threadsafe(self.engine.executor.close(), loop).result(timeout=timeout)
        except Exception as e:
            logger.warning("Error closing query executor: %s", e)

        loop.call_soon_threadsafe(loop.stop)
        if thread is not None:
            thread.join(timeout=timeout)
        logger.info("Export coordinator stopped")

    def __enter__(self) -> "ExportCoordinator":
        return self

    def __exit__(self, *exc: object) -> None:
        self.shutdown()
