"""
Admission gate for overlap protection.
"""

from __future__ import annotations

import threading


class AdmissionGate:
    """Single in-process flag allowing one top-level export at a time.

    Rejected callers are never queued.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._held = False
        self._holder: str | None = None

    def try_acquire(self, holder: str | None = None) -> bool:
        """Acquire the gate. Returns True if acquired, False if already held."""
        with self._cond:
            if self._held:
                return False
            self._held = True
            self._holder = holder
            return True

    def release(self) -> None:
        """Release the gate regardless of who holds it."""
        with self._cond:
            self._held = False
            self._holder = None
            self._cond.notify_all()

    @property
    def is_held(self) -> bool:
        with self._cond:
            return self._held

    @property
    def holder(self) -> str | None:
        with self._cond:
            return self._holder

    def wait_released(self, timeout: float | None = None) -> bool:
        """Block until the gate is free. Returns False on timeout."""
        with self._cond:
            return self._cond.wait_for(lambda: not self._held, timeout=timeout)
