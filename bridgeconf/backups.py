"""
Backup store for config.json snapshots.

Every backup is a plain copy of a previous config.json named
``config.json.<epoch-millis>``; the directory listing is the only index.
"""
import re
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from .audit import AuditLogger
from .errors import BackupNotFoundError, InvalidRequestError
from .models import BackupRecord, StoreSettings
from .utils import calendar_days_between, epoch_millis, from_epoch_millis, validate_path

BACKUP_PREFIX = "config.json."
BACKUP_NAME_PATTERN = re.compile(r"^config\.json\.(\d{9,15})$")
RETENTION_DAYS = 60

def parse_backup_name(filename: str) -> Optional[BackupRecord]:
    """Turn a backup filename into a record, or None if it is not one."""
    match = BACKUP_NAME_PATTERN.match(filename)
    if not match:
        return None
    backup_id = match.group(1)
    return BackupRecord(id=backup_id, timestamp=from_epoch_millis(int(backup_id)), filename=filename)

def scan_backup_names(directory: Path) -> List[BackupRecord]:
    """List backup-shaped files in a directory, newest first by numeric timestamp."""
    records = []
    for entry in directory.iterdir():
        if not entry.is_file():
            continue
        record = parse_backup_name(entry.name)
        if record is not None:
            records.append(record)
    records.sort(key=lambda r: r.millis, reverse=True)
    return records


class BackupStore:
    """Owns the contents of the config backup directory."""

    def __init__(self, settings: StoreSettings, logger: AuditLogger):
        self.settings = settings
        self.logger = logger
        self.backup_path = settings.backup_path
        self.degraded = False

    def ensure_backup_path(self) -> Path:
        """Create the backup directory, falling back to the storage directory on failure."""
        try:
            self.backup_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.logger.error(
                "backup_dir_degraded",
                path=str(self.backup_path),
                fallback=str(self.settings.storage_path),
                message=f"Could not create directory for config backups {self.backup_path} as {e}. "
                        f"Config backups will continue to use {self.settings.storage_path}.",
            )
            self.backup_path = self.settings.storage_path
            self.degraded = True
        return self.backup_path

    def new_backup_path(self, millis: Optional[int] = None) -> Path:
        """Path for a backup taken now (or at the given epoch-millis), never an existing one."""
        millis = millis if millis is not None else epoch_millis()
        while (self.backup_path / f"{BACKUP_PREFIX}{millis}").exists():
            millis += 1
        return self.backup_path / f"{BACKUP_PREFIX}{millis}"

    def backup_path_for(self, backup_id: str) -> Path:
        if not BACKUP_NAME_PATTERN.match(f"{BACKUP_PREFIX}{backup_id}"):
            raise BackupNotFoundError(f"Backup {backup_id} Not Found")
        try:
            return validate_path(self.backup_path / f"{BACKUP_PREFIX}{backup_id}", self.backup_path)
        except InvalidRequestError as e:
            raise BackupNotFoundError(f"Backup {backup_id} Not Found") from e

    def list_backups(self) -> List[BackupRecord]:
        """All backups, newest first."""
        if not self.backup_path.is_dir():
            return []
        return scan_backup_names(self.backup_path)

    def get_backup(self, backup_id: str) -> bytes:
        """Raw bytes of one backup."""
        path = self.backup_path_for(str(backup_id))
        if not path.is_file():
            raise BackupNotFoundError(f"Backup {backup_id} Not Found")
        return path.read_bytes()

    def delete_all_backups(self) -> int:
        """Best-effort removal of every backup. Returns how many were removed."""
        removed = 0
        for record in self.list_backups():
            try:
                (self.backup_path / record.filename).unlink()
                removed += 1
            except OSError as e:
                self.logger.warning("backup_delete_failed", file=record.filename, error=str(e))
        self.logger.log("backups_deleted", count=removed)
        return removed

    def prune_older_than(self, days: int = RETENTION_DAYS, now: Optional[datetime] = None) -> int:
        """Delete backups at least ``days`` calendar days old. Never raises."""
        now = now or datetime.now()
        removed = 0
        try:
            for record in self.list_backups():
                if calendar_days_between(record.timestamp, now) < days:
                    continue
                try:
                    (self.backup_path / record.filename).unlink()
                    removed += 1
                except FileNotFoundError:
                    continue
                except OSError as e:
                    self.logger.warning("backup_delete_failed", file=record.filename, error=str(e))
        except Exception as e:
            self.logger.warning(
                "backup_prune_failed",
                error=str(e),
                message=f"Failed to cleanup old config.json backup files as {e}",
            )
            return removed
        self.logger.log("backups_pruned", days=days, count=removed)
        return removed
