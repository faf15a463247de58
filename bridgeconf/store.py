"""
Config store: the only component that reads or replaces config.json.

A write normalizes the incoming document, moves the current file into the
backup directory, writes the new file and then swaps the in-memory
ConfigContext. The store does no locking; callers must not issue
concurrent writes.
"""
import json
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from .audit import AuditLogger
from .backups import BackupStore
from .errors import ConfigReadError, ConfigWriteError, InvalidRequestError
from .models import ConfigContext, StoreSettings
from .normalizer import normalize, normalize_for_read

Subscriber = Callable[[ConfigContext], None]

def build_context(config: Dict[str, Any], ui_platform: str) -> ConfigContext:
    """Derive a ConfigContext from a deep copy of a normalized document."""
    config = json.loads(json.dumps(config))
    bridge = config.get("bridge") if isinstance(config.get("bridge"), dict) else {}
    platforms = config.get("platforms") if isinstance(config.get("platforms"), list) else []
    ui = next(
        (block for block in platforms if isinstance(block, dict) and block.get("platform") == ui_platform),
        {},
    )
    disabled = config.get("disabledPlugins") if isinstance(config.get("disabledPlugins"), list) else []
    return ConfigContext(
        bridge=bridge,
        ui=ui,
        disabled_plugins=[p for p in disabled if isinstance(p, str)],
        loaded_at=datetime.now(),
    )


class ConfigStore:
    def __init__(self, settings: StoreSettings, backups: BackupStore, logger: AuditLogger):
        self.settings = settings
        self.backups = backups
        self.logger = logger
        self._context: Optional[ConfigContext] = None
        self._subscribers: List[Subscriber] = []

    @property
    def config_path(self):
        return self.settings.config_path

    # -- reads ----------------------------------------------------------------

    def read_raw(self) -> bytes:
        """The live document exactly as stored."""
        try:
            return self.config_path.read_bytes()
        except OSError as e:
            raise ConfigReadError(f"Could not read {self.config_path}: {e}") from e

    def read(self) -> Dict[str, Any]:
        """Parse the live document with structural coercions only."""
        try:
            raw = json.loads(self.read_raw().decode("utf-8-sig"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ConfigReadError(f"{self.config_path} is not valid JSON: {e}") from e
        return normalize_for_read(raw)

    def _read_persisted(self) -> Dict[str, Any]:
        """Best-effort read of the current file for username/pin reuse."""
        try:
            return self.read()
        except ConfigReadError:
            return {}

    @property
    def context(self) -> ConfigContext:
        """Current runtime view; loaded from disk the first time it is needed."""
        if self._context is None:
            self._context = build_context(self._read_persisted(), self.settings.ui_platform)
        return self._context

    def subscribe(self, callback: Subscriber) -> None:
        """Register a callback invoked with the new ConfigContext after each write."""
        self._subscribers.append(callback)

    # -- writes ---------------------------------------------------------------

    def _backup_current(self) -> None:
        target = None
        try:
            target = self.backups.new_backup_path()
            self.config_path.rename(target)
        except FileNotFoundError:
            # first run: nothing to back up yet
            self.backups.ensure_backup_path()
        except OSError as e:
            self.logger.warning(
                "config_backup_failed",
                target=str(target),
                error=str(e),
                message=f"Could not create a backup of the config.json file to "
                        f"{self.backups.backup_path} as {e}.",
            )

    def write(self, doc: Any) -> Dict[str, Any]:
        """Normalize, back up the current file, persist, and publish a new context."""
        config = normalize(doc, previous=self._read_persisted())
        try:
            payload = json.dumps(config, indent=4, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise InvalidRequestError(f"Config is not JSON serializable: {e}") from e

        self._backup_current()

        try:
            self.config_path.write_text(payload + "\n", encoding="utf-8")
        except OSError as e:
            raise ConfigWriteError(f"Could not write {self.config_path}: {e}") from e

        self.logger.log("config_saved", path=str(self.config_path))

        self._context = build_context(config, self.settings.ui_platform)
        for callback in list(self._subscribers):
            try:
                callback(self._context)
            except Exception as e:
                self.logger.warning("subscriber_failed", subscriber=repr(callback), error=str(e))

        return config

    def restore_backup(self, backup_id: str) -> Dict[str, Any]:
        """Write a backup back as the live document; the current file is backed up first."""
        content = self.backups.get_backup(backup_id)
        try:
            doc = json.loads(content.decode("utf-8-sig"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise InvalidRequestError(f"Backup {backup_id} is not valid JSON: {e}") from e
        return self.write(doc)

    # -- external-caller surface ---------------------------------------------

    def read_config(self) -> Dict[str, Any]:
        return self.read()

    def write_config(self, doc: Any) -> Dict[str, Any]:
        return self.write(doc)

    def list_backups(self):
        return self.backups.list_backups()

    def get_backup(self, backup_id: str) -> bytes:
        return self.backups.get_backup(backup_id)

    def delete_all_backups(self) -> int:
        return self.backups.delete_all_backups()
