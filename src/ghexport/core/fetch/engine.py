"""
Cursor-driven fetch engine.

Pages through one GitHub connection until the item cap is reached, the
source is exhausted, the executor fails, or cancellation is requested.
Whatever was accumulated up to that point is returned; a failed page is
never an error for the caller.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from ghexport.core.client.base import QueryError, QueryExecutor
from ghexport.core.client.queries import build_variables, template_for
from ghexport.core.config.models import (
    MAX_BATCH_SIZE,
    OrderDirection,
    OrderField,
    ResourceKind,
)
from ghexport.core.logging import ContextualLogger, get_contextual_logger
from ghexport.core.records import Record, parse_record

from .throttling import FetchCancelled, PagePacer, race_cancel

if TYPE_CHECKING:
    from ghexport.core.config.models import AppConfig


class StopReason(str, Enum):
    """Why the paging loop ended."""

    EXHAUSTED = "exhausted"
    CAP = "cap"
    ERROR = "error"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class FetchRequest:
    """Parameters for one fetch run."""

    kind: ResourceKind
    owner: str
    repo: str
    batch_size: int = MAX_BATCH_SIZE
    max_items: int = 1000
    order_field: OrderField = OrderField.UPDATED_AT
    order_direction: OrderDirection = OrderDirection.DESC

    def __post_init__(self) -> None:
        if not 1 <= self.batch_size <= MAX_BATCH_SIZE:
            raise ValueError(f"batch_size must be between 1 and {MAX_BATCH_SIZE}")
        if self.max_items < 1:
            raise ValueError("max_items must be positive")

    @property
    def states(self) -> tuple[str, ...]:
        return template_for(self.kind).states

    @classmethod
    def from_config(cls, kind: ResourceKind, config: AppConfig) -> "FetchRequest":
        export = config.export
        return cls(
            kind=kind,
            owner=config.github.repository.owner,
            repo=config.github.repository.name,
            batch_size=export.batch_size,
            max_items=export.item_cap,
            order_field=export.order_field,
            order_direction=export.order_direction,
        )


@dataclass(frozen=True)
class FetchResult:
    """Records accumulated by one fetch run, in server order."""

    kind: ResourceKind
    records: tuple[Record, ...]
    cap_reached: bool
    stop_reason: StopReason
    pages_requested: int = 0
    skipped: int = 0
    error: str | None = None

    @property
    def fetched(self) -> int:
        return len(self.records)

    @property
    def partial(self) -> bool:
        """True when paging stopped on an error or cancellation."""
        return self.stop_reason in (StopReason.ERROR, StopReason.CANCELLED)

    def __len__(self) -> int:
        return len(self.records)


class FetchEngine:
    """Drives cursor pagination against a QueryExecutor.

    Usage:
        engine = FetchEngine(executor, PagePacer(delay_ms=100))
        result = await engine.fetch(request)
    """

    def __init__(self, executor: QueryExecutor, pacer: PagePacer | None = None) -> None:
        self.executor = executor
        self.pacer = pacer or PagePacer()

    async def fetch(
        self,
        request: FetchRequest,
        cancel: asyncio.Event | None = None,
        log: ContextualLogger | None = None,
    ) -> FetchResult:
        """Fetch up to `request.max_items` records.

        Args:
            request: What to fetch and how much
            cancel: Event that stops paging when set
            log: Logger carrying export context

        Returns:
            FetchResult; never raises for executor failures or cancellation
        """
        log = log or get_contextual_logger("fetch", kind=request.kind.value)
        template = template_for(request.kind)
        label = request.kind.label
        cap = request.max_items

        records: list[Record] = []
        cursor: str | None = None
        has_next = True
        pages = 0
        skipped = 0
        error: str | None = None
        stop = StopReason.CAP

        log.info("Fetching %s for repository %s/%s", label, request.owner, request.repo)

        while len(records) < cap:
            page_size = min(request.batch_size, cap - len(records))
            variables = build_variables(
                owner=request.owner,
                name=request.repo,
                first=page_size,
                after=cursor,
                states=template.states,
                order_field=request.order_field,
                order_direction=request.order_direction,
            )

            pages += 1
            try:
                page = await race_cancel(self.executor.execute(template, variables), cancel)
            except FetchCancelled:
                log.warning("Fetch of %s cancelled at cursor %s", label, cursor)
                stop = StopReason.CANCELLED
                break
            except QueryError as e:
                log.error("Error fetching %s at cursor %s: %s", label, cursor, e)
                error = str(e)
                stop = StopReason.ERROR
                break

            if page.is_empty:
                stop = StopReason.EXHAUSTED
                break

            remaining = cap - len(records)
            for raw in page.records[:remaining]:
                try:
                    records.append(parse_record(request.kind, raw))
                except Exception as e:
                    skipped += 1
                    log.warning("Skipping malformed %s record: %s", request.kind.value, _describe(raw, e))

            has_next = page.has_next_page
            cursor = page.end_cursor

            log.info(
                "Fetched %d %s, total: %d, hasNextPage: %s",
                len(page.records), label, len(records), has_next,
            )

            if not has_next:
                stop = StopReason.EXHAUSTED
                break
            if cursor is None:
                error = "hasNextPage without endCursor"
                log.error("Cannot continue fetching %s: %s", label, error)
                stop = StopReason.ERROR
                break
            if len(records) >= cap:
                stop = StopReason.CAP
                break

            if not await self.pacer.wait(cancel):
                log.warning("Fetch of %s cancelled between pages", label)
                stop = StopReason.CANCELLED
                break

        log.info("Completed fetching %s. Total %s fetched: %d", label, label, len(records))

        return FetchResult(
            kind=request.kind,
            records=tuple(records),
            cap_reached=stop is StopReason.CAP,
            stop_reason=stop,
            pages_requested=pages,
            skipped=skipped,
            error=error,
        )


def _describe(raw: Any, error: Exception) -> str:
    record_id = raw.get("id") if isinstance(raw, dict) else None
    first_line = str(error).splitlines()[0] if str(error) else type(error).__name__
    return f"id={record_id} ({first_line})"
