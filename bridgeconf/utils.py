"""
Core utilities for bridgeconf.
"""
import time
from datetime import datetime
from pathlib import Path

from .errors import InvalidRequestError


def epoch_millis() -> int:
    """Current wall-clock time as integer milliseconds since the epoch."""
    return time.time_ns() // 1_000_000

def from_epoch_millis(millis: int) -> datetime:
    """Local-time datetime for an epoch-millis value, clamped to datetime.max."""
    try:
        return datetime.fromtimestamp(millis / 1000)
    except (OverflowError, OSError, ValueError):
        return datetime.max

def calendar_days_between(earlier: datetime, later: datetime) -> int:
    """Number of calendar-day boundaries crossed going from earlier to later."""
    return (later.date() - earlier.date()).days

def validate_path(path: str | Path, base_dir: str | Path) -> Path:
    """
    Resolve a path and ensure it falls strictly under the base_dir to prevent directory traversal.
    """
    resolved_path = Path(path).resolve()
    resolved_base = Path(base_dir).resolve()

    if resolved_path != resolved_base and resolved_base not in resolved_path.parents:
        raise InvalidRequestError(f"Path '{path}' escapes base directory '{base_dir}'.")
    return resolved_path

def human_size(nbytes: int) -> str:
    """Convert bytes to a human-readable string (e.g. 1.2 KiB)."""
    if nbytes == 0:
        return "0 B"
    suffixes = ["B", "KiB", "MiB", "GiB", "TiB"]
    size = float(nbytes)
    i = 0
    while size >= 1024 and i < len(suffixes) - 1:
        size /= 1024.0
        i += 1
    if i == 0:
        return f"{int(size)} {suffixes[i]}"
    return f"{size:.1f} {suffixes[i]}"
