"""
Single-flight gate: at most one batch runs at a time.

A non-blocking ``Lock.acquire`` is the test-and-set, so two callers racing
from different threads or tasks cannot both observe "not running".
"""

from __future__ import annotations

import threading


class SingleFlightGate:
    def __init__(self) -> None:
        self._flag = threading.Lock()

    def try_acquire(self) -> bool:
        """Take the gate. Returns False (state unchanged) if already held."""
        return self._flag.acquire(blocking=False)

    def release(self) -> None:
        """
        Reset to not-running. No-op when the gate is not held.

        Only the holder that won ``try_acquire`` may call this. The
        orchestrator keeps its gate private and releases it solely when its
        own batch task finishes, or when scheduling that task fails.
        """
        if self._flag.locked():
            self._flag.release()

    @property
    def is_running(self) -> bool:
        return self._flag.locked()
