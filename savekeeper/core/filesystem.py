"""Filesystem access used by the backup engine.

Every operation converts ``OSError`` into :class:`FilesystemError` so callers
only have to deal with one error kind.
"""

from __future__ import annotations

import shutil
from pathlib import Path


class FilesystemError(Exception):
    """A directory could not be read/created, or a file could not be copied/removed."""

    def __init__(self, message: str, path: str | Path | None = None) -> None:
        super().__init__(message)
        self.path = str(path) if path is not None else None


class LocalFileSystem:
    """Thin wrapper over ``pathlib``/``shutil`` with overwrite-on-copy semantics."""

    def list_dir(self, path: Path) -> list[str]:
        """Return entry names directly under *path*, sorted by name."""
        try:
            return sorted(child.name for child in Path(path).iterdir())
        except OSError as e:
            raise FilesystemError(f"Cannot list directory {path}: {e}", path) from e

    def is_dir(self, path: Path) -> bool:
        return Path(path).is_dir()

    def copy_file(self, source: Path, destination: Path) -> None:
        try:
            shutil.copyfile(source, destination)
        except OSError as e:
            raise FilesystemError(f"Cannot copy {source} to {destination}: {e}", source) from e

    def remove_file(self, path: Path) -> None:
        try:
            Path(path).unlink()
        except OSError as e:
            raise FilesystemError(f"Cannot remove {path}: {e}", path) from e

    def ensure_dir(self, path: Path) -> None:
        try:
            Path(path).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(f"Cannot create directory {path}: {e}", path) from e
