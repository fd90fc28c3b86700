"""Retention consolidator: fold past-day incremental backups into the daily tier.

The current day keeps every incremental snapshot. Each past day keeps two:
the lower-median snapshot and the latest one, copied into the daily
directory under their bare timestamp. All past-day incremental files are
then removed.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from savekeeper.core.catalog import load_catalog
from savekeeper.core.filesystem import FilesystemError
from savekeeper.core.naming import day_key
from savekeeper.models.backup_entry import BackupEntry, BackupKind

if TYPE_CHECKING:
    from savekeeper.core.filesystem import LocalFileSystem
    from savekeeper.models.backup_entry import BackupLayout


@dataclass
class CleanupPlan:
    """Entries to promote into the daily tier and entries to purge."""

    promote: list[BackupEntry] = field(default_factory=list)
    purge: list[BackupEntry] = field(default_factory=list)
    unclassified: list[BackupEntry] = field(default_factory=list)


@dataclass
class CleanupResult:
    """Result of one consolidation run."""

    promoted: list[BackupEntry] = field(default_factory=list)
    purged: list[BackupEntry] = field(default_factory=list)
    skipped: int = 0
    catalog: list[BackupEntry] = field(default_factory=list)


def select_representatives(group: list[BackupEntry]) -> list[BackupEntry]:
    """Lower-median and latest entry of one day, without duplicates."""
    ordered = sorted(group, key=lambda e: e.timestamp)
    if not ordered:
        return []
    mid = ordered[(len(ordered) - 1) // 2]
    latest = ordered[-1]
    return [mid] if mid is latest else [mid, latest]


def plan_cleanup(entries: list[BackupEntry], today: date) -> CleanupPlan:
    """Partition incremental entries by day and pick what to promote/purge."""
    plan = CleanupPlan()
    groups: dict[date, list[BackupEntry]] = defaultdict(list)

    for entry in entries:
        if entry.kind != BackupKind.INCREMENTAL:
            continue
        key = day_key(entry.timestamp)
        if key is None:
            plan.unclassified.append(entry)
            continue
        groups[key].append(entry)

    groups.pop(today, None)

    # Keyed by path so an entry selected twice is promoted once
    promote: dict[str, BackupEntry] = {}
    for key in sorted(groups):
        group = groups[key]
        for entry in select_representatives(group):
            promote.setdefault(entry.path, entry)
        plan.purge.extend(group)

    plan.promote = list(promote.values())
    return plan


def consolidate(
    layout: BackupLayout,
    fs: LocalFileSystem,
    today: date | None = None,
) -> CleanupResult:
    """
    Run one consolidation pass against the on-disk state.

    Only the initial catalog reload may raise ``FilesystemError``; per-entry
    copy and delete failures are logged and counted in ``skipped``.
    """
    logger.info("Running backup cleanup...")
    today = today or date.today()

    entries = load_catalog(layout, fs)
    plan = plan_cleanup(entries, today)
    result = CleanupResult()

    for entry in plan.unclassified:
        logger.debug(f"Leaving backup with unreadable timestamp in place: {entry.path}")

    logger.info(f"{len(plan.promote)} backup(s) will be copied to {layout.daily_dir}")
    for entry in plan.promote:
        destination = layout.daily_dir / entry.timestamp
        try:
            fs.copy_file(Path(entry.path), destination)
        except FilesystemError as e:
            logger.warning(f"Failed to promote {entry.path}: {e}")
            result.skipped += 1
            continue
        logger.debug(f"Promoted {entry.path} -> {destination}")
        result.promoted.append(entry)

    # Every promotion has been attempted; purge the whole past-day set
    logger.info(f"{len(plan.purge)} incremental backup(s) will be removed")
    for entry in plan.purge:
        try:
            fs.remove_file(Path(entry.path))
        except FilesystemError as e:
            logger.warning(f"Failed to remove {entry.path}: {e}")
            result.skipped += 1
            continue
        logger.debug(f"Removed {entry.path}")
        result.purged.append(entry)

    try:
        result.catalog = load_catalog(layout, fs)
    except FilesystemError as e:
        logger.error(f"Failed to reload backups after cleanup: {e}")
        result.catalog = entries

    logger.info(
        f"Cleanup finished: {len(result.promoted)} promoted, "
        f"{len(result.purged)} removed, {result.skipped} skipped"
    )
    return result
