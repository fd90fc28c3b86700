"""Service configuration, JSON-based, with file locking and batch update support."""

from __future__ import annotations

import json
import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from loguru import logger

from savekeeper.core.scheduler import OverlapPolicy

_instance: "Config | None" = None

# Default config directory, overridable through the environment
_DEFAULT_CONFIG_DIR = Path(os.environ.get("SAVEKEEPER_HOME", Path.home() / ".savekeeper"))


def get_config() -> Config:
    """Module-level factory, single global Config instance."""
    global _instance
    if _instance is None:
        _instance = Config()
    return _instance


def reset_config() -> None:
    """Reset the global config instance (for testing)."""
    global _instance
    _instance = None


class Config:
    """JSON-based service configuration with file locking."""

    _DEFAULTS: dict[str, Any] = {
        # Storage
        "save_dir": "/astroneer/Astro/Saved/SaveGames",
        "backup_root": "/backup",
        "daily_dir": "",
        "restore_dir": "",
        "save_extension": ".savegame",
        # Schedules (seconds)
        "capture_interval": 600,
        "cleanup_interval": 3600,
        "overlap_policy": "skip",
        # Logging
        "log_dir": "",
        "log_level": "INFO",
    }

    def __init__(self, config_dir: Path | None = None) -> None:
        self._data: dict[str, Any] = {}
        self._dir = config_dir or _DEFAULT_CONFIG_DIR
        self._path = self._dir / "config.json"
        self._lock = threading.Lock()
        self._defer_save = False
        self._load()

    def _load(self) -> None:
        """Load config from disk, merging with defaults."""
        self._data = json.loads(json.dumps(self._DEFAULTS))  # deep copy defaults
        if self._path.exists():
            try:
                with open(self._path, encoding="utf-8") as f:
                    user_data = json.load(f)
                self._deep_merge(self._data, user_data)
            except (json.JSONDecodeError, OSError) as e:
                logger.warning(f"Failed to load config, using defaults: {e}")

    def _deep_merge(self, base: dict, override: dict) -> None:
        """Recursively merge override into base."""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def _save(self) -> None:
        """Persist config to disk with file locking."""
        if self._defer_save:
            return
        with self._lock:
            self._dir.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(".tmp")
            try:
                with open(tmp_path, "w", encoding="utf-8") as f:
                    json.dump(self._data, f, ensure_ascii=False, indent=2)
                tmp_path.replace(self._path)
            except OSError as e:
                logger.error(f"Failed to save config: {e}")
                if tmp_path.exists():
                    tmp_path.unlink(missing_ok=True)

    @contextmanager
    def batch_update(self) -> Iterator[None]:
        """Context manager for batching multiple config changes into a single write."""
        self._defer_save = True
        try:
            yield
        finally:
            self._defer_save = False
            self._save()

    # ── Generic access ──

    def get(self, key: str, default: Any = None) -> Any:
        """Get a config value by dot-separated key path."""
        parts = key.split(".")
        node = self._data
        for part in parts:
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node

    def set(self, key: str, value: Any) -> None:
        """Set a config value by dot-separated key path."""
        parts = key.split(".")
        node = self._data
        for part in parts[:-1]:
            if part not in node or not isinstance(node[part], dict):
                node[part] = {}
            node = node[part]
        node[parts[-1]] = value
        self._save()

    def _interval(self, key: str) -> float:
        default = self._DEFAULTS[key]
        try:
            value = float(self._data.get(key, default))
        except (TypeError, ValueError):
            value = 0
        if value <= 0:
            logger.warning(f"Invalid {key} {self._data.get(key)!r}, using {default}s")
            return float(default)
        return value

    # ── Typed properties ──

    @property
    def config_dir(self) -> Path:
        return self._dir

    @property
    def save_dir(self) -> Path:
        return Path(self._data.get("save_dir", self._DEFAULTS["save_dir"]))

    @save_dir.setter
    def save_dir(self, value: Path) -> None:
        self.set("save_dir", str(value))

    @property
    def backup_root(self) -> Path:
        return Path(self._data.get("backup_root", self._DEFAULTS["backup_root"]))

    @backup_root.setter
    def backup_root(self, value: Path) -> None:
        self.set("backup_root", str(value))

    @property
    def daily_dir(self) -> Path | None:
        raw = self._data.get("daily_dir", "")
        return Path(raw) if raw else None

    @property
    def restore_dir(self) -> Path | None:
        raw = self._data.get("restore_dir", "")
        return Path(raw) if raw else None

    @property
    def save_extension(self) -> str:
        return self._data.get("save_extension", ".savegame")

    @property
    def capture_interval(self) -> float:
        return self._interval("capture_interval")

    @capture_interval.setter
    def capture_interval(self, value: float) -> None:
        self.set("capture_interval", value)

    @property
    def cleanup_interval(self) -> float:
        return self._interval("cleanup_interval")

    @cleanup_interval.setter
    def cleanup_interval(self, value: float) -> None:
        self.set("cleanup_interval", value)

    @property
    def overlap_policy(self) -> OverlapPolicy:
        raw = self._data.get("overlap_policy", "skip")
        try:
            return OverlapPolicy(raw)
        except ValueError:
            logger.warning(f"Unknown overlap_policy {raw!r}, using 'skip'")
            return OverlapPolicy.SKIP

    @property
    def log_dir(self) -> Path | None:
        raw = self._data.get("log_dir", "")
        return Path(raw) if raw else None

    @property
    def log_level(self) -> str:
        return str(self._data.get("log_level", "INFO")).upper()
