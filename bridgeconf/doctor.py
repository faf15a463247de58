"""
Diagnostic checks for a bridge storage directory.
"""
import importlib
import json
import os
import shutil
from typing import List

from .backups import scan_backup_names
from .models import DoctorCheck, StoreSettings
from .normalizer import is_valid_pin, is_valid_port, is_valid_username


def run_diagnostics(settings: StoreSettings) -> List[DoctorCheck]:
    """Execute the health checks synchronously."""
    checks: List[DoctorCheck] = []

    # 1. Storage directory
    storage = settings.storage_path
    if not storage.is_dir():
        checks.append(DoctorCheck(name="1. Storage Directory", status="fail", detail=f"{storage} does not exist"))
    elif not os.access(storage, os.W_OK):
        checks.append(DoctorCheck(name="1. Storage Directory", status="fail", detail=f"{storage} is not writable"))
    else:
        checks.append(DoctorCheck(name="1. Storage Directory", status="pass", detail=str(storage)))

    # 2. config.json parses & 3. bridge section
    config = None
    try:
        config = json.loads(settings.config_path.read_text(encoding="utf-8-sig"))
        checks.append(DoctorCheck(name="2. config.json", status="pass", detail=str(settings.config_path)))
    except FileNotFoundError:
        checks.append(DoctorCheck(name="2. config.json", status="warn", detail="Not created yet"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        checks.append(DoctorCheck(name="2. config.json", status="fail", detail=str(e)))

    if isinstance(config, dict):
        bridge = config.get("bridge") if isinstance(config.get("bridge"), dict) else {}
        problems = []
        if not is_valid_port(bridge.get("port")):
            problems.append("port")
        if not is_valid_username(bridge.get("username")):
            problems.append("username")
        if not is_valid_pin(bridge.get("pin")):
            problems.append("pin")
        if not isinstance(bridge.get("name"), str) or not bridge.get("name"):
            problems.append("name")
        if problems:
            checks.append(DoctorCheck(name="3. Bridge Settings", status="warn",
                                      detail=f"Will be repaired on next save: {', '.join(problems)}"))
        else:
            checks.append(DoctorCheck(name="3. Bridge Settings", status="pass", detail=f"{bridge['name']} on port {bridge['port']}"))
    elif config is not None:
        checks.append(DoctorCheck(name="3. Bridge Settings", status="fail", detail="config.json is not a JSON object"))

    # 4. Backup directory & 5. backup inventory
    backup_path = settings.backup_path
    if backup_path.is_dir():
        checks.append(DoctorCheck(name="4. Backup Directory", status="pass", detail=str(backup_path)))
        try:
            backups = scan_backup_names(backup_path)
            if backups:
                newest = backups[0].timestamp.strftime("%Y-%m-%d %H:%M:%S")
                checks.append(DoctorCheck(name="5. Backups", status="pass", detail=f"{len(backups)} kept, newest {newest}"))
            else:
                checks.append(DoctorCheck(name="5. Backups", status="pass", detail="None yet"))
        except OSError as e:
            checks.append(DoctorCheck(name="5. Backups", status="fail", detail=str(e)))
    else:
        checks.append(DoctorCheck(name="4. Backup Directory", status="warn",
                                  detail=f"{backup_path} missing; created on next start"))

    try:
        legacy = scan_backup_names(storage) if storage.is_dir() else []
    except OSError:
        legacy = []
    if legacy:
        checks.append(DoctorCheck(name="6. Legacy Backups", status="warn",
                                  detail=f"{len(legacy)} awaiting migration in {storage}"))
    else:
        checks.append(DoctorCheck(name="6. Legacy Backups", status="pass", detail="None"))

    # 7. Disk space
    try:
        total, used, free = shutil.disk_usage(storage if storage.is_dir() else storage.parent)
        free_mb = free // (2**20)
        status = "pass" if free_mb > 50 else "warn"
        checks.append(DoctorCheck(name="7. Disk Space", status=status, detail=f"{free_mb} MB free"))
    except OSError as e:
        checks.append(DoctorCheck(name="7. Disk Space", status="fail", detail=str(e)))

    # 8. Dependencies
    missing = []
    for module in ("apscheduler", "packaging", "pydantic", "rich", "typer"):
        try:
            importlib.import_module(module)
        except ImportError:
            missing.append(module)
    if missing:
        checks.append(DoctorCheck(name="8. Dependencies", status="fail", detail=f"Missing: {', '.join(missing)}"))
    else:
        checks.append(DoctorCheck(name="8. Dependencies", status="pass", detail="All core requirements met"))

    return checks
