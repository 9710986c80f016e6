"""
Key-value persistence for responder state.

Each state slice (conversation history, stats, categories, schedule, VIP
list, away message) lives under its own key. The file-backed store maps
every key to one file in the workspace:

- conversation_history.json, bot_stats.json, categorized_messages.json,
  schedule.json: JSON documents
- vip_contacts.txt: one substring per line
- away_message.txt: free text

Persistence failures never propagate. A missing or corrupt file yields the
caller's default, and a failed write leaves the in-memory state as the
source of truth until the next successful save.
"""

import copy
import json
from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from loguru import logger

from awaybot.utils.helpers import ensure_dir


class StateKey(str, Enum):
    """Known state slices."""
    CONVERSATION_HISTORY = "conversation_history"
    STATS = "bot_stats"
    CATEGORIES = "categorized_messages"
    SCHEDULE = "schedule"
    VIP_CONTACTS = "vip_contacts"
    AWAY_MESSAGE = "away_message"


# key -> (filename, codec)
FILE_LAYOUT: dict[StateKey, tuple[str, str]] = {
    StateKey.CONVERSATION_HISTORY: ("conversation_history.json", "json"),
    StateKey.STATS: ("bot_stats.json", "json"),
    StateKey.CATEGORIES: ("categorized_messages.json", "json"),
    StateKey.SCHEDULE: ("schedule.json", "json"),
    StateKey.VIP_CONTACTS: ("vip_contacts.txt", "lines"),
    StateKey.AWAY_MESSAGE: ("away_message.txt", "text"),
}

TRANSCRIPT_FILE = "messages_log.txt"


class KeyValueStore(ABC):
    """
    Abstract store for state slices.

    Implementations must never raise from load/save; errors are logged and
    reported through the return value instead.
    """

    @abstractmethod
    def load(self, key: StateKey, default: Any = None) -> Any:
        """Load the value for a key, or `default` when absent or unreadable."""
        pass

    @abstractmethod
    def save(self, key: StateKey, value: Any) -> bool:
        """Persist a value. Returns True on success."""
        pass

    def append_transcript(self, sender: str, text: str, when: datetime) -> bool:
        """Append one line to the raw message transcript."""
        return True

    def write_report(self, name: str, text: str) -> Path | None:
        """Write a named plain-text report."""
        return None


class MemoryKeyValueStore(KeyValueStore):
    """In-process store, used when no workspace is available."""

    def __init__(self):
        self._data: dict[StateKey, Any] = {}
        self.transcript: list[str] = []
        self.reports: dict[str, str] = {}

    def load(self, key: StateKey, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def save(self, key: StateKey, value: Any) -> bool:
        self._data[key] = copy.deepcopy(value)
        return True

    def append_transcript(self, sender: str, text: str, when: datetime) -> bool:
        self.transcript.append(format_transcript_line(sender, text, when))
        return True

    def write_report(self, name: str, text: str) -> Path | None:
        self.reports[name] = text
        return None


class FileStore(KeyValueStore):
    """
    Flat-file store rooted at a workspace directory.

    Storage structure:
    - <workspace>/<slice file>   - one file per StateKey (see FILE_LAYOUT)
    - <workspace>/messages_log.txt - append-only transcript
    - <workspace>/<report name>  - dated daily summaries
    """

    def __init__(self, workspace: Path):
        self.workspace = ensure_dir(workspace)
        self.transcript_file = self.workspace / TRANSCRIPT_FILE

    def path_for(self, key: StateKey) -> Path:
        """Get the backing file for a key."""
        filename, _ = FILE_LAYOUT[key]
        return self.workspace / filename

    def load(self, key: StateKey, default: Any = None) -> Any:
        path = self.path_for(key)
        _, codec = FILE_LAYOUT[key]

        if not path.exists():
            return default

        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning(f"Error reading {path.name}: {e}")
            return default

        if codec == "json":
            try:
                return json.loads(raw)
            except json.JSONDecodeError as e:
                logger.warning(f"Corrupt state in {path.name}, using defaults: {e}")
                return default

        if codec == "lines":
            return [line.strip() for line in raw.splitlines() if line.strip()]

        text = raw.strip()
        return text or default

    def save(self, key: StateKey, value: Any) -> bool:
        path = self.path_for(key)
        _, codec = FILE_LAYOUT[key]

        try:
            if codec == "json":
                payload = json.dumps(value, indent=2, ensure_ascii=False)
            elif codec == "lines":
                payload = "".join(f"{line}\n" for line in value)
            else:
                payload = value or ""
            path.write_text(payload, encoding="utf-8")
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Error saving {path.name}: {e}")
            return False

    def delete(self, key: StateKey) -> None:
        """Remove the backing file for a key, if present."""
        path = self.path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"Error removing {path.name}: {e}")

    def append_transcript(self, sender: str, text: str, when: datetime) -> bool:
        try:
            with open(self.transcript_file, "a", encoding="utf-8") as f:
                f.write(format_transcript_line(sender, text, when))
            return True
        except OSError as e:
            logger.error(f"Error logging message: {e}")
            return False

    def write_report(self, name: str, text: str) -> Path | None:
        path = self.workspace / name
        try:
            path.write_text(text, encoding="utf-8")
            return path
        except OSError as e:
            logger.error(f"Error saving report {name}: {e}")
            return None


def format_transcript_line(sender: str, text: str, when: datetime) -> str:
    """Format one transcript entry: `[timestamp] sender: text`."""
    stamp = when.strftime("%d/%m/%Y, %I:%M:%S %p").lower()
    return f"[{stamp}] {sender}: {text}\n"
