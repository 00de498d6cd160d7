"""Tests for configuration loading."""

from pathlib import Path

import pytest
import yaml

from lorcana_catalog.config import AppConfig, SnapshotConfig, _parse_config, _validate_config, load_config


@pytest.fixture(autouse=True)
def no_data_path(monkeypatch):
    monkeypatch.delenv("DATA_PATH", raising=False)


def test_default_config():
    config = AppConfig()
    assert config.storage.data_dir == "./data"
    assert config.storage.backups == Path("./data") / "backups"
    assert config.storage.exports == Path("./data") / "exports"
    assert config.snapshot.version == "1.0.0"
    assert config.snapshot.export_prefix == "lorcana-export"


def test_parse_config():
    raw = {
        "storage": {"data_dir": "/srv/lorcana", "backup_dir": "/backups"},
        "snapshot": {"version": "1.1.0", "backup_prefix": "nightly"},
    }
    config = _parse_config(raw)
    assert config.storage.data_dir == "/srv/lorcana"
    assert config.storage.backups == Path("/backups")
    assert config.storage.exports == Path("/srv/lorcana") / "exports"
    assert config.snapshot.version == "1.1.0"
    assert config.snapshot.backup_prefix == "nightly"
    assert config.snapshot.export_prefix == "lorcana-export"


def test_parse_config_rejects_non_mapping():
    with pytest.raises(ValueError, match="mapping"):
        _parse_config(["storage"])


def test_validate_config_bad_prefix():
    config = AppConfig(snapshot=SnapshotConfig(backup_prefix="../escape"))
    with pytest.raises(ValueError, match="backup_prefix"):
        _validate_config(config)


def test_validate_config_empty_version():
    config = AppConfig(snapshot=SnapshotConfig(version=""))
    with pytest.raises(ValueError, match="version"):
        _validate_config(config)


def test_load_config_missing_file(tmp_path):
    config = load_config(tmp_path / "nonexistent.yaml")
    assert config.storage.data_dir == "./data"


def test_load_config_empty_file(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("")
    assert load_config(config_path).storage.data_dir == "./data"


def test_load_config_from_file(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.dump({"storage": {"data_dir": str(tmp_path / "d")}}))
    config = load_config(config_path)
    assert config.storage.data_dir == str(tmp_path / "d")


def test_data_path_env_overrides_file(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.dump({"storage": {"data_dir": "from-file"}}))
    monkeypatch.setenv("DATA_PATH", "from-env")
    assert load_config(config_path).storage.data_dir == "from-env"


def test_explicit_data_dir_wins(tmp_path, monkeypatch):
    monkeypatch.setenv("DATA_PATH", "from-env")
    config = load_config(tmp_path / "missing.yaml", data_dir="from-cli")
    assert config.storage.data_dir == "from-cli"
