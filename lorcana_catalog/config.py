"""YAML configuration loader and validation."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config.yaml")
DATA_PATH_ENV = "DATA_PATH"


@dataclass
class StorageConfig:
    """Where the documents and snapshots live."""

    data_dir: str = "./data"
    backup_dir: Optional[str] = None  # default: <data_dir>/backups
    export_dir: Optional[str] = None  # default: <data_dir>/exports

    @property
    def backups(self) -> Path:
        return Path(self.backup_dir) if self.backup_dir else Path(self.data_dir) / "backups"

    @property
    def exports(self) -> Path:
        return Path(self.export_dir) if self.export_dir else Path(self.data_dir) / "exports"


@dataclass
class SnapshotConfig:
    """Export and backup file settings."""

    version: str = "1.0.0"
    export_prefix: str = "lorcana-export"
    backup_prefix: str = "backup"


@dataclass
class AppConfig:
    """Top-level application configuration."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    snapshot: SnapshotConfig = field(default_factory=SnapshotConfig)


def load_config(path: Optional[Path] = None, data_dir: Optional[str] = None) -> AppConfig:
    """Load configuration from a YAML file, falling back to defaults.

    Precedence for the data directory: ``data_dir`` argument, then the
    DATA_PATH environment variable, then the file, then the default.
    """
    config_path = path or DEFAULT_CONFIG_PATH
    if not config_path.exists():
        logger.info("No config file at %s, using defaults", config_path)
        config = AppConfig()
    else:
        logger.info("Loading config from %s", config_path)
        with open(config_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
        config = _parse_config(raw) if raw else AppConfig()

    env_dir = os.environ.get(DATA_PATH_ENV)
    if data_dir:
        config.storage.data_dir = data_dir
    elif env_dir:
        config.storage.data_dir = env_dir

    _validate_config(config)
    return config


def _parse_config(raw: Dict[str, Any]) -> AppConfig:
    """Parse raw YAML dict into AppConfig."""
    if not isinstance(raw, dict):
        raise ValueError("Config error: top level must be a mapping")
    config = AppConfig()

    if "storage" in raw:
        st = raw["storage"] or {}
        config.storage = StorageConfig(
            data_dir=str(st.get("data_dir", config.storage.data_dir)),
            backup_dir=st.get("backup_dir"),
            export_dir=st.get("export_dir"),
        )

    if "snapshot" in raw:
        sn = raw["snapshot"] or {}
        config.snapshot = SnapshotConfig(
            version=str(sn.get("version", config.snapshot.version)),
            export_prefix=sn.get("export_prefix", config.snapshot.export_prefix),
            backup_prefix=sn.get("backup_prefix", config.snapshot.backup_prefix),
        )

    return config


def _validate_config(config: AppConfig) -> None:
    """Validate config and raise on errors."""
    if not config.storage.data_dir:
        raise ValueError("Config error: storage.data_dir must not be empty")

    for name in ("export_prefix", "backup_prefix"):
        value = getattr(config.snapshot, name)
        if not value or "/" in value or "\\" in value:
            raise ValueError(f"Config error: snapshot.{name} must be a plain file name prefix, got {value!r}")

    if not config.snapshot.version:
        raise ValueError("Config error: snapshot.version must not be empty")

    logger.info(
        "Config validated: data -> %s, backups -> %s, exports -> %s",
        config.storage.data_dir,
        config.storage.backups,
        config.storage.exports,
    )
