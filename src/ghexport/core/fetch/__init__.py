"""Fetch utilities - pagination engine, pacing, retries."""

from .engine import FetchEngine, FetchRequest, FetchResult, StopReason
from .retries import RetryConfig, retry_async
from .throttling import FetchCancelled, PagePacer, race_cancel

__all__ = [
    "FetchEngine",
    "FetchRequest",
    "FetchResult",
    "StopReason",
    "PagePacer",
    "FetchCancelled",
    "race_cancel",
    "RetryConfig",
    "retry_async",
]
