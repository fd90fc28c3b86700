"""Backup service: owns the capture/cleanup schedules and the backup catalog."""

from __future__ import annotations

import threading
from enum import StrEnum
from typing import TYPE_CHECKING

from loguru import logger

from savekeeper.core.capture import CaptureResult, capture
from savekeeper.core.catalog import load_catalog
from savekeeper.core.filesystem import LocalFileSystem
from savekeeper.core.retention import CleanupResult, consolidate
from savekeeper.core.scheduler import OverlapPolicy, PeriodicTask
from savekeeper.models.backup_entry import BackupEntry, BackupLayout

if TYPE_CHECKING:
    from savekeeper.config import Config

CAPTURE_INTERVAL = 600
CLEANUP_INTERVAL = 60 * 60


class ServiceState(StrEnum):
    STOPPED = "stopped"
    RUNNING = "running"


class BackupService:
    """
    Periodic save-game backup engine.

    Every ``capture_interval`` seconds the live saves are copied into the
    incremental root; every ``cleanup_interval`` seconds past days are
    consolidated into the daily tier. The in-memory catalog is a cache and is
    rebuilt from disk whenever an authoritative view is needed.
    """

    def __init__(
        self,
        layout: BackupLayout,
        fs: LocalFileSystem | None = None,
        capture_interval: float = CAPTURE_INTERVAL,
        cleanup_interval: float = CLEANUP_INTERVAL,
        overlap: OverlapPolicy = OverlapPolicy.SKIP,
    ) -> None:
        self._layout = layout
        self._fs = fs or LocalFileSystem()
        self._capture_interval = capture_interval
        self._cleanup_interval = cleanup_interval
        self._overlap = overlap
        self._catalog: list[BackupEntry] = []
        self._lock = threading.Lock()
        self._tasks: list[PeriodicTask] = []
        self._state = ServiceState.STOPPED

    @classmethod
    def from_config(cls, config: Config) -> BackupService:
        return cls(
            BackupLayout.from_config(config),
            capture_interval=config.capture_interval,
            cleanup_interval=config.cleanup_interval,
            overlap=config.overlap_policy,
        )

    @property
    def layout(self) -> BackupLayout:
        return self._layout

    @property
    def state(self) -> ServiceState:
        return self._state

    @property
    def catalog(self) -> tuple[BackupEntry, ...]:
        with self._lock:
            return tuple(self._catalog)

    # ── Lifecycle ──

    def init(self) -> None:
        """Create the storage directories, load the catalog and start both schedules."""
        if self._state == ServiceState.RUNNING:
            logger.warning("Backup service is already running")
            return

        logger.info("Init backup...")
        self._fs.ensure_dir(self._layout.daily_dir)
        self._fs.ensure_dir(self._layout.restore_dir)
        self._reload()

        self._tasks = [
            PeriodicTask("capture", self._capture_interval, self.capture, self._overlap),
            PeriodicTask("cleanup", self._cleanup_interval, self.cleanup, self._overlap),
        ]
        for task in self._tasks:
            task.start()

        self._state = ServiceState.RUNNING
        logger.info(
            f"Backup is now running (capture every {self._capture_interval}s, "
            f"cleanup every {self._cleanup_interval}s)"
        )

    def stop(self) -> None:
        """Cancel both schedules. Safe to call when already stopped."""
        if self._state == ServiceState.STOPPED:
            return
        for task in self._tasks:
            task.cancel()
        self._tasks = []
        self._state = ServiceState.STOPPED
        logger.info("Backup stopped")

    # ── Operations ──

    def capture(self) -> CaptureResult:
        """Run one incremental capture cycle."""
        with self._lock:
            catalog = list(self._catalog)
        result = capture(self._layout, catalog, self._fs)
        with self._lock:
            # Append rather than replace: a cleanup may have reloaded meanwhile
            self._catalog = [*self._catalog, *result.captured]
        return result

    def cleanup(self) -> CleanupResult:
        """Consolidate past-day incremental backups into the daily tier."""
        result = consolidate(self._layout, self._fs)
        with self._lock:
            self._catalog = result.catalog
        return result

    def get_latest(self, name: str) -> BackupEntry | None:
        """
        Reload the catalog and return its newest entry.

        The newest entry is taken from the whole catalog, whatever *name* is;
        the per-name match is only logged.
        """
        catalog = self._reload()
        matching = [entry for entry in catalog if entry.name == name]
        if matching:
            logger.debug(f"Latest backup named '{name}': {matching[-1].path}")
        return catalog[-1] if catalog else None

    def _reload(self) -> list[BackupEntry]:
        catalog = load_catalog(self._layout, self._fs)
        with self._lock:
            self._catalog = catalog
        return catalog
