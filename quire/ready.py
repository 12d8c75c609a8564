"""One-shot readiness latch.

Server-side counterpart of ``executeWhenReady`` in the starter site's
``assets/js/_utils.js``: a callback runs now if the gate has already fired,
otherwise exactly once when it fires.
"""

from __future__ import annotations

import threading
from collections.abc import Callable


class ReadyGate:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._fired = False
        self._pending: list[Callable[[], object]] = []

    @property
    def is_ready(self) -> bool:
        with self._lock:
            return self._fired

    def execute_when_ready(self, callback: Callable[[], object]) -> None:
        with self._lock:
            if not self._fired:
                self._pending.append(callback)
                return
        callback()

    def fire(self) -> None:
        """Mark the gate ready and flush registered callbacks. Idempotent."""
        with self._lock:
            if self._fired:
                return
            self._fired = True
            pending, self._pending = self._pending, []
        for callback in pending:
            callback()
