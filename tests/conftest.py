"""Shared fixtures: a temporary backup layout and file helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from savekeeper.core.filesystem import FilesystemError, LocalFileSystem
from savekeeper.models.backup_entry import BackupLayout


class FlakyFileSystem(LocalFileSystem):
    """LocalFileSystem that fails copy/remove for selected file names."""

    def __init__(self, fail_copy: set[str] | None = None, fail_remove: set[str] | None = None) -> None:
        self.fail_copy = fail_copy or set()
        self.fail_remove = fail_remove or set()

    def copy_file(self, source: Path, destination: Path) -> None:
        if Path(source).name in self.fail_copy:
            raise FilesystemError(f"simulated copy failure: {source}", source)
        super().copy_file(source, destination)

    def remove_file(self, path: Path) -> None:
        if Path(path).name in self.fail_remove:
            raise FilesystemError(f"simulated remove failure: {path}", path)
        super().remove_file(path)


@pytest.fixture
def layout(tmp_path: Path) -> BackupLayout:
    """A backup layout under tmp_path with all directories created."""
    result = BackupLayout.from_root(tmp_path / "saves", tmp_path / "backup")
    for d in (result.save_dir, result.backup_root, result.daily_dir, result.restore_dir):
        d.mkdir(parents=True, exist_ok=True)
    return result


@pytest.fixture
def fs() -> LocalFileSystem:
    return LocalFileSystem()


def write_file(directory: Path, filename: str, content: bytes | None = None) -> Path:
    path = directory / filename
    path.write_bytes(content if content is not None else filename.encode())
    return path
