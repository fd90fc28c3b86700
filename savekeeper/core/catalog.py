"""Catalog loader: rebuild the backup inventory from the two storage tiers."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from savekeeper.core.naming import decode_filename
from savekeeper.models.backup_entry import BackupEntry, BackupKind

if TYPE_CHECKING:
    from savekeeper.core.filesystem import LocalFileSystem
    from savekeeper.models.backup_entry import BackupLayout


def _entry_from_file(directory: Path, filename: str, kind: BackupKind, extension: str) -> BackupEntry:
    name, timestamp = decode_filename(filename, extension)
    return BackupEntry(
        name=name,
        path=str(directory / filename),
        timestamp=timestamp,
        kind=kind,
    )


def load_catalog(layout: BackupLayout, fs: LocalFileSystem) -> list[BackupEntry]:
    """
    Scan the daily and incremental directories and return all entries,
    ascending by timestamp string.

    Raises ``FilesystemError`` if either directory cannot be listed.
    """
    logger.debug(f"Loading backups from {layout.backup_root} and {layout.daily_dir}")

    daily = [
        _entry_from_file(layout.daily_dir, f, BackupKind.DAILY, layout.save_extension)
        for f in fs.list_dir(layout.daily_dir)
    ]

    incremental = [
        _entry_from_file(layout.backup_root, f, BackupKind.INCREMENTAL, layout.save_extension)
        for f in fs.list_dir(layout.backup_root)
        if not fs.is_dir(layout.backup_root / f)
    ]

    entries = sorted([*daily, *incremental], key=lambda e: e.timestamp)
    logger.debug(f"Loaded {len(daily)} daily and {len(incremental)} incremental backup(s)")
    return entries
