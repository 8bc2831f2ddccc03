from __future__ import annotations

import threading
from contextlib import contextmanager

from solver.errors import AllocationRunInProgressError


class RunLock:
    """Process-level, non-blocking guard around allocation runs."""

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def locked(self) -> bool:
        return self._lock.locked()

    @contextmanager
    def hold(self):
        if not self._lock.acquire(blocking=False):
            raise AllocationRunInProgressError()
        try:
            yield
        finally:
            self._lock.release()

    def ensure_idle(self) -> None:
        if self._lock.locked():
            raise AllocationRunInProgressError()


allocation_run_lock = RunLock()
