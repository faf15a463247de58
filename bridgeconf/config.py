"""
Settings resolution for bridgeconf.
"""
import os
from pathlib import Path
from typing import Optional

from .models import StoreSettings

APP_NAME = "bridgeconf"
CONFIG_FILENAME = "config.json"

def get_storage_dir() -> Path:
    """Returns the bridge storage directory holding config.json."""
    storage = os.getenv("BRIDGECONF_STORAGE_PATH")
    if storage:
        return Path(storage).expanduser()
    return Path.home() / ".homebridge"

def load_settings(storage_path: Optional[Path] = None, host_version: Optional[str] = None) -> StoreSettings:
    """Build StoreSettings from explicit arguments, then environment, then defaults."""
    storage_dir = Path(storage_path) if storage_path else get_storage_dir()

    config_path = os.getenv("BRIDGECONF_CONFIG_PATH")
    plugins_path = os.getenv("BRIDGECONF_PLUGINS_PATH")

    return StoreSettings(
        storage_path=storage_dir,
        config_path=Path(config_path) if config_path else storage_dir / CONFIG_FILENAME,
        backup_path=storage_dir / "backups" / "config-backups",
        plugins_path=Path(plugins_path) if plugins_path else storage_dir / "node_modules",
        host_version=host_version or os.getenv("BRIDGECONF_HOST_VERSION", "0.0.0"),
    )

def get_log_path(settings: StoreSettings) -> Path:
    """Return the path of the JSON-Lines operation log."""
    return settings.storage_path / f"{APP_NAME}.jsonl"
