import json
from pathlib import Path

import pytest

from bridgeconf.audit import AuditLogger
from bridgeconf.backups import BackupStore
from bridgeconf.models import PluginAlias, StoreSettings
from bridgeconf.plugins import StaticPluginDirectory
from bridgeconf.store import ConfigStore
from bridgeconf.editor import PluginBlockEditor


def make_settings(tmp_path: Path, host_version: str = "1.8.0") -> StoreSettings:
    storage = tmp_path / "storage"
    storage.mkdir(exist_ok=True)
    return StoreSettings(
        storage_path=storage,
        config_path=storage / "config.json",
        backup_path=storage / "backups" / "config-backups",
        plugins_path=storage / "node_modules",
        host_version=host_version,
    )

@pytest.fixture
def settings(tmp_path: Path) -> StoreSettings:
    return make_settings(tmp_path)

@pytest.fixture
def logger(settings: StoreSettings) -> AuditLogger:
    return AuditLogger(settings.storage_path / "bridgeconf.jsonl")

@pytest.fixture
def backups(settings: StoreSettings, logger: AuditLogger) -> BackupStore:
    store = BackupStore(settings, logger)
    store.ensure_backup_path()
    return store

@pytest.fixture
def store(settings: StoreSettings, backups: BackupStore, logger: AuditLogger) -> ConfigStore:
    return ConfigStore(settings, backups, logger)

@pytest.fixture
def valid_config() -> dict:
    return {
        "bridge": {
            "name": "Homebridge 1A2B",
            "username": "0E:11:22:33:1A:2B",
            "port": 51826,
            "pin": "031-45-154",
        },
        "accessories": [],
        "platforms": [
            {"platform": "config", "name": "Config", "port": 8581},
        ],
    }

@pytest.fixture
def write_config(settings: StoreSettings):
    def _write(doc: dict) -> None:
        settings.config_path.write_text(json.dumps(doc, indent=4), encoding="utf-8")
    return _write

@pytest.fixture
def plugins() -> StaticPluginDirectory:
    return StaticPluginDirectory({
        "homebridge-hue": PluginAlias(plugin_alias="Hue", plugin_type="platform"),
        "homebridge-dummy": PluginAlias(plugin_alias="DummySwitch", plugin_type="accessory"),
        "homebridge-broken": PluginAlias(plugin_alias=None, plugin_type="platform"),
    })

@pytest.fixture
def editor(store: ConfigStore, plugins: StaticPluginDirectory) -> PluginBlockEditor:
    return PluginBlockEditor(store, plugins)

def read_events(settings: StoreSettings) -> list:
    log_file = settings.storage_path / "bridgeconf.jsonl"
    if not log_file.exists():
        return []
    return [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines() if line.strip()]
