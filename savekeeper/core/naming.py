"""Backup filename codec: ``<name>$<timestamp>.savegame``.

Filenames are the only place backup metadata lives, so encoding and decoding
go through this module instead of ad hoc string splitting.
"""

from __future__ import annotations

from datetime import date, datetime

from loguru import logger

DELIMITER = "$"
SAVE_EXTENSION = ".savegame"

# Timestamp form written by the game server into save filenames
_GAME_TIMESTAMP_FORMAT = "%Y.%m.%d-%H.%M.%S"


def encode_filename(name: str, timestamp: str, extension: str = SAVE_EXTENSION) -> str:
    """Build a backup filename that :func:`decode_filename` maps back to ``(name, timestamp)``."""
    if DELIMITER in name or DELIMITER in timestamp:
        raise ValueError(f"Backup name and timestamp must not contain '{DELIMITER}': {name!r}, {timestamp!r}")
    return f"{name}{DELIMITER}{timestamp}{extension}"


def decode_filename(filename: str, extension: str = SAVE_EXTENSION) -> tuple[str, str]:
    """
    Split a backup filename into ``(name, timestamp)``.

    A missing timestamp segment decodes to ``""``. The extension is stripped
    from the timestamp when present; a missing extension is not an error.
    """
    parts = filename.split(DELIMITER)
    name = parts[0]
    timestamp = parts[1] if len(parts) > 1 else ""
    if len(parts) > 2:
        logger.debug(f"Ignoring extra '{DELIMITER}' segments in {filename}")
    if extension and timestamp.endswith(extension):
        timestamp = timestamp[: -len(extension)]
    return name, timestamp


def base_name(filename: str) -> str:
    """Save-game identifier of a filename (everything before the delimiter)."""
    return filename.split(DELIMITER, 1)[0]


def format_timestamp(moment: datetime | None = None) -> str:
    """Local-time ISO-8601 timestamp with UTC offset, second precision."""
    moment = moment or datetime.now()
    return moment.astimezone().isoformat(timespec="seconds")


def parse_timestamp(text: str) -> datetime | None:
    """Parse an ISO-8601 or game-server timestamp; ``None`` if unparseable."""
    if not text:
        return None
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.strptime(text, _GAME_TIMESTAMP_FORMAT)
    except ValueError:
        return None


def day_key(text: str) -> date | None:
    """Calendar day (local time) a timestamp belongs to."""
    moment = parse_timestamp(text)
    if moment is None:
        return None
    if moment.tzinfo is not None:
        moment = moment.astimezone()
    return moment.date()
