"""
Request pacing and cancellation helpers.

Provides a fixed inter-page pause that keeps paging under the remote rate
limit, and a way to race any awaitable against a cancellation event so both
suspension points of a fetch can be interrupted.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import Awaitable, TypeVar

T = TypeVar("T")


class FetchCancelled(Exception):
    """Cancellation was requested while waiting."""


class PagePacer:
    """Fixed delay between consecutive page requests.

    Usage:
        pacer = PagePacer(delay_ms=100)
        if not await pacer.wait(cancel_event):
            ...  # cancelled during the pause
    """

    def __init__(self, delay_ms: int = 100):
        """Initialize pacer.

        Args:
            delay_ms: Pause length in milliseconds (0 disables pausing)
        """
        self.delay_ms = delay_ms
        self._pauses = 0

    @property
    def delay_seconds(self) -> float:
        return self.delay_ms / 1000.0

    async def wait(self, cancel: asyncio.Event | None = None) -> bool:
        """Pause before the next page.

        Returns:
            True if the full pause elapsed, False if cancellation arrived first
        """
        if cancel is not None and cancel.is_set():
            return False

        self._pauses += 1

        if cancel is None:
            await asyncio.sleep(self.delay_seconds)
            return True

        try:
            await asyncio.wait_for(cancel.wait(), timeout=self.delay_seconds)
        except asyncio.TimeoutError:
            return True
        return False

    def stats(self) -> dict[str, float | int]:
        return {"delay_ms": self.delay_ms, "pauses": self._pauses}


async def race_cancel(aw: Awaitable[T], cancel: asyncio.Event | None) -> T:
    """Await `aw` unless `cancel` is set first.

    Raises:
        FetchCancelled: If the event fired before `aw` finished; `aw` is cancelled
    """
    if cancel is None:
        return await aw
    if cancel.is_set():
        if asyncio.iscoroutine(aw):
            aw.close()
        raise FetchCancelled("cancelled before request")

    task = asyncio.ensure_future(aw)
    waiter = asyncio.ensure_future(cancel.wait())
    try:
        done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        waiter.cancel()

    if task in done:
        return task.result()

    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task
    raise FetchCancelled("cancelled during request")
