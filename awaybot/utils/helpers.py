"""Small helpers shared across awaybot modules."""

from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo


def ensure_dir(path: Path) -> Path:
    """Ensure a directory exists, creating parents as needed."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_path() -> Path:
    """Get the awaybot data directory (~/.awaybot)."""
    return ensure_dir(Path.home() / ".awaybot")


def local_now(timezone: str = "") -> datetime:
    """
    Current wall-clock time.

    Args:
        timezone: IANA zone name. Empty means the host's local zone.
    """
    if timezone:
        return datetime.now(ZoneInfo(timezone))
    return datetime.now().astimezone()


def truncate(text: str, limit: int) -> str:
    """Cut text to at most `limit` characters."""
    return text[:limit]
