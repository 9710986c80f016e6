"""
Persistent state for awaybot.

Provides:
- A key-value store interface for state slices
- File-backed implementation (JSON and plain-text files)
- Append-only transcript and dated report files
"""

from awaybot.storage.store import (
    KeyValueStore,
    FileStore,
    MemoryKeyValueStore,
    StateKey,
)

__all__ = [
    "KeyValueStore",
    "FileStore",
    "MemoryKeyValueStore",
    "StateKey",
]
