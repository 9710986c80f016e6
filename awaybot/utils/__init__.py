"""Utility helpers."""

from awaybot.utils.helpers import ensure_dir, get_data_path, local_now, truncate

__all__ = ["ensure_dir", "get_data_path", "local_now", "truncate"]
