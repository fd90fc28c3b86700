"""Backup catalog models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from savekeeper.config import Config


class BackupKind(StrEnum):
    """Storage tier of a backup."""

    INCREMENTAL = "incremental"
    DAILY = "daily"


@dataclass
class BackupEntry:
    """One stored snapshot file, reconstructed from its filename."""

    name: str  # Save-game identifier (segment before "$")
    path: str
    timestamp: str  # Ordering / day-grouping key, not unique
    kind: BackupKind = BackupKind.INCREMENTAL


@dataclass
class BackupLayout:
    """Resolved directory layout of the backup area."""

    save_dir: Path
    backup_root: Path
    daily_dir: Path
    restore_dir: Path
    save_extension: str = ".savegame"

    @classmethod
    def from_root(
        cls, save_dir: Path, backup_root: Path, save_extension: str = ".savegame"
    ) -> BackupLayout:
        return cls(
            save_dir=save_dir,
            backup_root=backup_root,
            daily_dir=backup_root / "daily",
            restore_dir=backup_root / "restore",
            save_extension=save_extension,
        )

    @classmethod
    def from_config(cls, config: Config) -> BackupLayout:
        backup_root = config.backup_root
        return cls(
            save_dir=config.save_dir,
            backup_root=backup_root,
            daily_dir=config.daily_dir or backup_root / "daily",
            restore_dir=config.restore_dir or backup_root / "restore",
            save_extension=config.save_extension,
        )
