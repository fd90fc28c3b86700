"""Periodic task runner built on worker threads and a cancellation event."""

from __future__ import annotations

import threading
from enum import StrEnum
from typing import Callable

from loguru import logger


class OverlapPolicy(StrEnum):
    """What to do when a tick fires while the previous run is still going."""

    SKIP = "skip"
    ALLOW = "allow"


class PeriodicTask:
    """
    Run *func* every *interval* seconds until :meth:`cancel` is called.

    The first run happens one interval after :meth:`start`. Cancelling only
    prevents future runs; a run in progress is never interrupted. Exceptions
    raised by *func* are logged and the task keeps ticking.
    """

    def __init__(
        self,
        name: str,
        interval: float,
        func: Callable[[], object],
        overlap: OverlapPolicy = OverlapPolicy.SKIP,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"Interval must be positive, got {interval}")
        self.name = name
        self.interval = interval
        self._func = func
        self._overlap = OverlapPolicy(overlap)
        self._cancelled = threading.Event()
        self._running = threading.Lock()
        self._thread: threading.Thread | None = None

    @property
    def is_active(self) -> bool:
        return self._thread is not None and not self._cancelled.is_set()

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._loop, name=f"{self.name}-ticker", daemon=True)
        self._thread.start()
        logger.debug(f"Scheduled '{self.name}' every {self.interval}s")

    def cancel(self) -> None:
        self._cancelled.set()

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def _loop(self) -> None:
        target = self.run_once if self._overlap == OverlapPolicy.ALLOW else self._run_exclusive
        while not self._cancelled.wait(self.interval):
            threading.Thread(target=target, name=f"{self.name}-run", daemon=True).start()

    def _run_exclusive(self) -> None:
        if not self._running.acquire(blocking=False):
            logger.warning(f"Skipping '{self.name}': previous run still in progress")
            return
        try:
            self.run_once()
        finally:
            self._running.release()

    def run_once(self) -> None:
        """Invoke the task body once, logging any exception it raises."""
        try:
            self._func()
        except Exception:
            logger.exception(f"Scheduled task '{self.name}' failed")
