"""
Pydantic v2 data models for bridgeconf.
"""
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from packaging.version import InvalidVersion, Version
from pydantic import BaseModel, ConfigDict, Field, field_validator


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)

class StoreSettings(FrozenModel):
    storage_path: Path
    config_path: Path
    backup_path: Path
    plugins_path: Path
    host_version: str = "0.0.0"
    ui_plugin_name: str = "homebridge-config-ui-x"
    ui_platform: str = "config"  # value of the "platform" field on the UI's own block

    @field_validator("host_version")
    @classmethod
    def validate_host_version(cls, v: str) -> str:
        try:
            Version(v)
        except InvalidVersion as e:
            raise ValueError(f"Host version '{v}' is not a valid version") from e
        return v

    @property
    def child_bridge_env_allowed(self) -> bool:
        """Hosts older than 1.8.0 reject the env map on a child bridge."""
        return Version(self.host_version) >= Version("1.8.0")

class BackupRecord(FrozenModel):
    id: str = Field(..., pattern=r"^\d{9,15}$")
    timestamp: datetime
    filename: str

    @property
    def millis(self) -> int:
        return int(self.id)

class PluginAlias(FrozenModel):
    plugin_alias: Optional[str] = None
    plugin_type: Literal["accessory", "platform"] = "platform"

    @property
    def array_key(self) -> str:
        return "accessories" if self.plugin_type == "accessory" else "platforms"

class ConfigContext(FrozenModel):
    """Read-only view of the running configuration, replaced after every write."""
    bridge: Dict[str, Any] = Field(default_factory=dict)
    ui: Dict[str, Any] = Field(default_factory=dict)
    disabled_plugins: List[str] = Field(default_factory=list)
    loaded_at: datetime

class DoctorCheck(FrozenModel):
    name: str
    status: Literal["pass", "warn", "fail"]
    detail: str
