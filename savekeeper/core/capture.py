"""Incremental capturer: copy live save files into the backup root."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

from loguru import logger

from savekeeper.core.filesystem import FilesystemError
from savekeeper.core.naming import base_name, format_timestamp
from savekeeper.models.backup_entry import BackupEntry, BackupKind

if TYPE_CHECKING:
    from savekeeper.core.filesystem import LocalFileSystem
    from savekeeper.models.backup_entry import BackupLayout


@dataclass
class CaptureResult:
    """Result of one capture cycle."""

    catalog: list[BackupEntry] = field(default_factory=list)
    captured: list[BackupEntry] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def capture(
    layout: BackupLayout,
    catalog: list[BackupEntry],
    fs: LocalFileSystem,
    now: datetime | None = None,
) -> CaptureResult:
    """
    Copy every save file into the incremental root.

    Returns the catalog extended with one entry per copied file; the input
    list is left unchanged. A file that fails to copy is skipped. Raises
    ``FilesystemError`` only if the save directory cannot be listed.
    """
    timestamp = format_timestamp(now)
    result = CaptureResult(catalog=list(catalog))

    for filename in fs.list_dir(layout.save_dir):
        source = layout.save_dir / filename
        if fs.is_dir(source) or not filename.endswith(layout.save_extension):
            continue

        destination = layout.backup_root / filename
        logger.debug(f"Creating incremental backup of {filename}...")
        try:
            fs.copy_file(source, destination)
        except FilesystemError as e:
            logger.warning(f"Skipping incremental backup of {filename}: {e}")
            result.skipped.append(filename)
            continue

        entry = BackupEntry(
            name=base_name(filename),
            path=str(destination),
            timestamp=timestamp,
            kind=BackupKind.INCREMENTAL,
        )
        result.captured.append(entry)
        result.catalog.append(entry)

    logger.info(
        f"Incremental backup at {timestamp}: {len(result.captured)} captured, "
        f"{len(result.skipped)} skipped"
    )
    return result
