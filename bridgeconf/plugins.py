"""
Plugin directory: resolves the alias and block type a plugin registers under.
"""
import json
from pathlib import Path
from typing import Dict, Protocol

from .errors import InvalidRequestError, PluginNotFoundError
from .models import PluginAlias
from .utils import validate_path

SCHEMA_FILENAME = "config.schema.json"


class PluginDirectory(Protocol):
    """Anything that can tell the editor which alias a plugin uses."""

    def resolve_alias(self, plugin_name: str) -> PluginAlias:
        ...


class SchemaPluginDirectory:
    """Reads pluginAlias/pluginType from each installed plugin's config.schema.json."""

    def __init__(self, plugins_path: Path):
        self.plugins_path = Path(plugins_path)

    def resolve_alias(self, plugin_name: str) -> PluginAlias:
        try:
            plugin_dir = validate_path(self.plugins_path / plugin_name, self.plugins_path)
        except InvalidRequestError as e:
            raise PluginNotFoundError(f"Plugin '{plugin_name}' is not installed.") from e
        if not plugin_dir.is_dir():
            raise PluginNotFoundError(f"Plugin '{plugin_name}' is not installed.")

        schema_path = plugin_dir / SCHEMA_FILENAME
        if not schema_path.is_file():
            # installed but does not ship a schema; the editor will refuse it
            return PluginAlias()

        try:
            schema = json.loads(schema_path.read_text(encoding="utf-8-sig"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise PluginNotFoundError(f"Failed to read {schema_path}: {e}") from e
        if not isinstance(schema, dict):
            raise PluginNotFoundError(f"{schema_path} is not a JSON object")

        plugin_type = schema.get("pluginType")
        return PluginAlias(
            plugin_alias=schema.get("pluginAlias") or None,
            plugin_type=plugin_type if plugin_type in ("accessory", "platform") else "platform",
        )


class StaticPluginDirectory:
    """In-memory directory, used where plugins are known up front."""

    def __init__(self, aliases: Dict[str, PluginAlias]):
        self.aliases = dict(aliases)

    def resolve_alias(self, plugin_name: str) -> PluginAlias:
        try:
            return self.aliases[plugin_name]
        except KeyError:
            raise PluginNotFoundError(f"Plugin '{plugin_name}' is not installed.") from None
