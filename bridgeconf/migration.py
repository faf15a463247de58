"""
Start-up helpers: one-time relocation of legacy backups and store wiring.

Older installs kept config.json.<millis> files next to config.json. They are
moved into the managed backup directory once; only the newest 100 survive.
"""
import shutil
from typing import Optional, Tuple

from .audit import AuditLogger
from .backups import BackupStore, scan_backup_names
from .config import get_log_path
from .models import StoreSettings
from .store import ConfigStore

MIGRATION_KEEP = 100

def migrate_legacy_backups(backups: BackupStore, keep: int = MIGRATION_KEEP) -> Tuple[int, int]:
    """Move the newest ``keep`` legacy backups, delete the rest. Returns (moved, deleted)."""
    logger = backups.logger
    storage_path = backups.settings.storage_path

    if backups.backup_path.resolve() == storage_path.resolve():
        logger.log("migration_skipped", message="Skipping migration of existing config.json backups...")
        return 0, 0

    moved = deleted = 0
    try:
        legacy = scan_backup_names(storage_path)
        for record in legacy[:keep]:
            target = backups.backup_path / record.filename
            if target.exists():
                target.unlink()
            shutil.move(str(storage_path / record.filename), str(target))
            moved += 1
        for record in legacy[keep:]:
            (storage_path / record.filename).unlink(missing_ok=True)
            deleted += 1
    except Exception as e:
        logger.warning(
            "migration_failed",
            moved=moved,
            deleted=deleted,
            error=str(e),
            message=f"Migrating config.json backups to new location failed as {e}.",
        )
        return moved, deleted

    if moved or deleted:
        logger.log("migration_done", moved=moved, deleted=deleted)
    return moved, deleted

def start_up(settings: StoreSettings, logger: Optional[AuditLogger] = None) -> ConfigStore:
    """Prepare the backup directory, migrate legacy backups and return a ready store."""
    logger = logger or AuditLogger(get_log_path(settings))
    backups = BackupStore(settings, logger)
    backups.ensure_backup_path()
    migrate_legacy_backups(backups)
    return ConfigStore(settings, backups, logger)
