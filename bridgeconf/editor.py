"""
Per-plugin edits of the config document.

A plugin's blocks live in ``accessories`` or ``platforms`` and are matched by
their discriminator field (``accessory``/``platform``) holding either the bare
alias or ``<pluginName>.<alias>``. All request validation happens before the
document is touched, and every change goes through ConfigStore.write.
"""
import copy
from typing import Any, Dict, List, Optional

from .audit import AuditLogger
from .errors import InvalidRequestError
from .models import PluginAlias
from .plugins import PluginDirectory
from .store import ConfigStore

Block = Dict[str, Any]

def block_matches(block: Any, plugin_name: str, plugin: PluginAlias) -> bool:
    if not isinstance(block, dict):
        return False
    value = block.get(plugin.plugin_type)
    return value == plugin.plugin_alias or value == f"{plugin_name}.{plugin.plugin_alias}"

def clean_child_bridge(block: Block, env_allowed: bool) -> None:
    """Drop blank settings from a block's _bridge section in place."""
    bridge = block.get("_bridge")
    if not isinstance(bridge, dict):
        return

    for key in list(bridge.keys()):
        value = bridge[key]
        if key == "env":
            if not env_allowed or not isinstance(value, dict):
                del bridge[key]
                continue
            for env_key in list(value.keys()):
                env_value = value[env_key]
                if not isinstance(env_value, str) or env_value.strip() == "":
                    del value[env_key]
            if not value:
                del bridge[key]
        elif value is None or (isinstance(value, str) and value.strip() == ""):
            del bridge[key]


class PluginBlockEditor:
    def __init__(self, store: ConfigStore, plugins: PluginDirectory, logger: Optional[AuditLogger] = None):
        self.store = store
        self.plugins = plugins
        self.logger = logger or store.logger

    @property
    def settings(self):
        return self.store.settings

    def _resolve(self, plugin_name: str) -> PluginAlias:
        plugin = self.plugins.resolve_alias(plugin_name)
        if not plugin.plugin_alias:
            raise InvalidRequestError("Plugin alias could not be determined.")
        return plugin

    def get_blocks_for_plugin(self, plugin_name: str) -> List[Block]:
        """Return the plugin's blocks in document order."""
        plugin = self._resolve(plugin_name)
        config = self.store.read()
        return [b for b in config[plugin.array_key] if block_matches(b, plugin_name, plugin)]

    def replace_blocks_for_plugin(self, plugin_name: str, blocks: Any) -> List[Block]:
        """
        Replace every block of the plugin with ``blocks``.

        The new blocks take the position of the first block removed, so a
        plugin keeps its place among its siblings. When the plugin had no
        blocks they are appended.
        """
        plugin = self._resolve(plugin_name)

        if not isinstance(blocks, list):
            raise InvalidRequestError("Plugin Config must be an array.")
        for block in blocks:
            if not isinstance(block, dict):
                raise InvalidRequestError("Plugin config must be an array of objects.")

        new_blocks = copy.deepcopy(blocks)
        env_allowed = self.settings.child_bridge_env_allowed
        for block in new_blocks:
            block[plugin.plugin_type] = plugin.plugin_alias
            clean_child_bridge(block, env_allowed)

        config = self.store.read()
        kept: List[Any] = []
        position: Optional[int] = None
        for block in config[plugin.array_key]:
            if block_matches(block, plugin_name, plugin):
                if position is None:
                    position = len(kept)
                continue
            kept.append(block)

        if position is not None:
            kept[position:position] = new_blocks
        else:
            kept.extend(new_blocks)
        config[plugin.array_key] = kept

        self.store.write(config)
        self.logger.log("plugin_config_replaced", plugin=plugin_name, blocks=len(new_blocks))
        return new_blocks

    def remove_plugin_config(self, plugin_name: str) -> List[str]:
        """Uninstall cleanup: drop all of the plugin's blocks and re-enable it."""
        self.replace_blocks_for_plugin(plugin_name, [])
        return self.enable_plugin(plugin_name)

    def set_ui_property(self, property_name: str, value: Any) -> Block:
        """Set (or with an empty value, delete) one property on the UI's own platform block."""
        if property_name == "platform":
            raise InvalidRequestError("Cannot update the platform property.")

        config = self.store.read()
        ui_block = next(
            (b for b in config["platforms"] if isinstance(b, dict) and b.get("platform") == self.settings.ui_platform),
            None,
        )
        if ui_block is None:
            raise InvalidRequestError(f"No '{self.settings.ui_platform}' platform block in config.json.")

        if value is None or value == "":
            ui_block.pop(property_name, None)
        else:
            ui_block[property_name] = value

        self.store.write(config)
        return ui_block

    def disable_plugin(self, plugin_name: str) -> List[str]:
        if plugin_name == self.settings.ui_plugin_name:
            raise InvalidRequestError("Disabling this plugin is not allowed.")

        config = self.store.read()
        if not isinstance(config.get("disabledPlugins"), list):
            config["disabledPlugins"] = []
        config["disabledPlugins"].append(plugin_name)

        saved = self.store.write(config)
        self.logger.log("plugin_disabled", plugin=plugin_name)
        return saved["disabledPlugins"]

    def enable_plugin(self, plugin_name: str) -> List[str]:
        config = self.store.read()
        disabled = config.get("disabledPlugins")
        if not isinstance(disabled, list):
            disabled = []

        if plugin_name not in disabled:
            return disabled

        disabled.remove(plugin_name)
        config["disabledPlugins"] = disabled
        saved = self.store.write(config)
        self.logger.log("plugin_enabled", plugin=plugin_name)
        return saved["disabledPlugins"]
