"""Process entry point: wires services and runs the backup schedules until signalled."""

from __future__ import annotations

import signal
import sys
import threading

from loguru import logger

from savekeeper.context import create_context
from savekeeper.core.filesystem import FilesystemError


def main() -> int:
    """Run the backup service until SIGINT/SIGTERM."""
    ctx = create_context()
    service = ctx.backup_service

    try:
        service.init()
    except FilesystemError as e:
        logger.error(f"Backup service failed to start: {e}")
        return 1

    shutdown = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: shutdown.set())
    signal.signal(signal.SIGTERM, lambda *_: shutdown.set())

    shutdown.wait()
    service.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
