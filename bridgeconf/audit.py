"""
Structured JSON-Lines operation logging.
"""
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

SECRET_KEYS = ("pin", "password", "token", "secret")


class AuditLogger:
    """Writes structured JSONL events without secret values."""
    def __init__(self, log_file: Path, on_warning: Optional[Callable[[str], None]] = None):
        self.log_file = Path(log_file)
        self.on_warning = on_warning

    def log(self, event_type: str, level: str = "info", **kwargs: Any) -> None:
        """Append one event; never raises."""
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "event": event_type,
            "details": kwargs
        }

        for key in SECRET_KEYS:
            if key in entry["details"]:
                entry["details"][key] = "*****"

        line = json.dumps(entry, default=str)
        try:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            with self.log_file.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError as e:
            sys.stderr.write(f"[bridgeconf] Failed to write log: {e}\n")
            try:
                fallback = self.log_file.with_name("bridgeconf_fallback.log")
                with fallback.open("a", encoding="utf-8") as f:
                    f.write(line + "\n")
            except OSError:
                sys.stderr.write(line + "\n")

        if level in ("warning", "error") and self.on_warning is not None:
            self.on_warning(kwargs.get("message") or event_type)

    def warning(self, event_type: str, **kwargs: Any) -> None:
        self.log(event_type, level="warning", **kwargs)

    def error(self, event_type: str, **kwargs: Any) -> None:
        self.log(event_type, level="error", **kwargs)

def read_events(log_file: Path, last_n: int = 50) -> List[Dict[str, Any]]:
    """Retrieve the last N events from the log, skipping corrupt lines."""
    if not log_file.exists():
        return []

    try:
        with log_file.open("r", encoding="utf-8") as f:
            lines = f.readlines()
    except OSError:
        return []

    parsed = []
    for line in lines[-last_n:]:
        if not line.strip():
            continue
        try:
            parsed.append(json.loads(line))
        except json.JSONDecodeError:
            continue
    return parsed
