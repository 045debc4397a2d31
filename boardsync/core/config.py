"""
FILE: boardsync/core/config.py
PURPOSE: Runtime configuration loaded from YAML
EXPORTS:
  - Config (dataclass)
  - data_dir() -> Path
DEPENDENCIES:
  - yaml (PyYAML)
  - pathlib, os (stdlib)
NOTES:
  - Config lives at <data dir>/config.yaml; a missing file means defaults
  - BOARDSYNC_HOME overrides the data directory (default ~/.boardsync)
  - Unknown keys and values of the wrong type are ignored with a warning
"""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import yaml

from .constants import (
    DEFAULT_COMMIT_RETRIES,
    DEFAULT_COMMIT_TIMEOUT,
    DEFAULT_POINTER_DISTANCE,
    DEFAULT_TOUCH_DELAY,
    DEFAULT_TOUCH_TOLERANCE,
)

logger = logging.getLogger(__name__)

HOME_ENV = "BOARDSYNC_HOME"
CONFIG_FILENAME = "config.yaml"
DB_FILENAME = "boardsync.db"


def data_dir() -> Path:
    """Directory holding the database and config file."""
    override = os.environ.get(HOME_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".boardsync"


@dataclass
class Config:
    """Runtime configuration for the board engine."""

    # Storage
    db_path: str = ""

    # Commits
    commit_timeout: float = DEFAULT_COMMIT_TIMEOUT
    commit_retries: int = DEFAULT_COMMIT_RETRIES

    # Drag activation
    pointer_distance: float = DEFAULT_POINTER_DISTANCE
    touch_delay: float = DEFAULT_TOUCH_DELAY
    touch_tolerance: float = DEFAULT_TOUCH_TOLERANCE

    def resolve_paths(self) -> "Config":
        """Expand ~ and fill in the default database path."""
        if not self.db_path:
            self.db_path = str(data_dir() / DB_FILENAME)
        self.db_path = str(Path(self.db_path).expanduser())
        return self

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Config":
        """Load config from YAML file, falling back to defaults."""
        cfg_path = Path(path) if path else data_dir() / CONFIG_FILENAME
        if not cfg_path.exists():
            return cls().resolve_paths()

        with open(cfg_path, "r") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            logger.warning("Config file %s is not a mapping, using defaults", cfg_path)
            return cls().resolve_paths()

        types = {f.name: f.type for f in fields(cls)}
        unknown = set(data) - set(types)
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(sorted(map(str, unknown))))

        values = {}
        for key, value in data.items():
            if key not in types:
                continue
            try:
                values[key] = _coerce(value, types[key])
            except (TypeError, ValueError):
                logger.warning("Ignoring invalid value for %s: %r", key, value)
        return cls(**values).resolve_paths()


def _coerce(value, kind):
    """Convert a YAML value to a field's type; bools are never numbers."""
    kind = {"str": str, "int": int, "float": float}.get(kind, kind)
    if value is None or isinstance(value, bool):
        raise TypeError(value)
    if kind is str:
        if not isinstance(value, str):
            raise TypeError(value)
        return value
    if kind is int and isinstance(value, float) and not value.is_integer():
        raise ValueError(value)
    return kind(value)
