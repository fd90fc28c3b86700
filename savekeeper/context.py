"""Application context: service container for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass

from savekeeper.config import Config, get_config
from savekeeper.core.backup import BackupService
from savekeeper.logger import setup_logger


@dataclass
class AppContext:
    """Central service container handed to the process entry point."""

    config: Config
    backup_service: BackupService


def create_context(config: Config | None = None) -> AppContext:
    """Wire logging and the backup service and return an AppContext."""
    config = config or get_config()

    # Logger
    setup_logger(config.log_dir, config.log_level)

    # Core services
    backup_service = BackupService.from_config(config)

    return AppContext(config=config, backup_service=backup_service)
