"""
Keyword-based message categorization.

Every accepted message is filed under one of four categories. Keyword sets
are checked in a fixed order (urgent, then meeting, then work) and the
first hit wins.
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from enum import Enum
from typing import Any

from loguru import logger

from awaybot.storage.store import KeyValueStore, StateKey


class Category(str, Enum):
    """Message categories."""
    WORK = "work"
    PERSONAL = "personal"
    SPAM = "spam"
    UNKNOWN = "unknown"


# Checked in order; first matching topic wins
TOPIC_KEYWORDS: dict[str, tuple[str, ...]] = {
    "urgent": ("urgent", "emergency", "important"),
    "meeting": ("meeting", "call", "schedule"),
    "work": ("project", "work", "deadline"),
}

WORK_TOPICS = frozenset({"work", "meeting"})

# Privacy-preserving WhatsApp ids look like 1234567890@lid
ANONYMISED_ID_MARKER = "@lid"


def detect_keyword(text: str) -> str | None:
    """
    Find the first topic whose keywords appear in the text.

    Matching is a case-insensitive substring test.

    Returns:
        Topic name ("urgent", "meeting", "work") or None.
    """
    lowered = text.lower()
    for topic, words in TOPIC_KEYWORDS.items():
        if any(word in lowered for word in words):
            return topic
    return None


class VipList:
    """Trusted sender substrings."""

    def __init__(self, store: KeyValueStore):
        self.store = store
        self.entries: list[str] = []
        self.reload()

    def reload(self) -> None:
        """Re-read VIP contacts from the store."""
        entries = self.store.load(StateKey.VIP_CONTACTS, [])
        self.entries = [e for e in entries if isinstance(e, str) and e]
        if self.entries:
            logger.debug(f"Loaded {len(self.entries)} VIP contacts")

    def matches(self, sender_id: str) -> bool:
        """A sender is VIP when any entry is a substring of its id."""
        return any(vip in sender_id for vip in self.entries)

    def add(self, entry: str) -> bool:
        """Add an entry and persist. Returns False if already present."""
        entry = entry.strip()
        if not entry or entry in self.entries:
            return False
        self.entries.append(entry)
        self.store.save(StateKey.VIP_CONTACTS, self.entries)
        return True

    def remove(self, entry: str) -> bool:
        """Remove an entry and persist. Returns False if not present."""
        if entry not in self.entries:
            return False
        self.entries.remove(entry)
        self.store.save(StateKey.VIP_CONTACTS, self.entries)
        return True


@dataclass
class CategorizedMessage:
    """One entry in a category log."""
    timestamp: str
    sender: str
    message: str
    keyword: str | None
    category: Category

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted entry shape (category is the map key)."""
        data = asdict(self)
        del data["category"]
        return data


class Categorizer:
    """
    Assigns categories and keeps a bounded log per category.

    Rules, first match wins:
    1. keyword topic is work or meeting -> work
    2. sender is VIP -> personal
    3. anonymised sender id -> unknown
    4. otherwise -> unknown
    """

    def __init__(self, store: KeyValueStore, vip: VipList, limit: int = 100):
        self.store = store
        self.vip = vip
        self.limit = limit
        self.log: dict[str, list[dict[str, Any]]] = self._load()

    def _load(self) -> dict[str, list[dict[str, Any]]]:
        empty = {c.value: [] for c in Category}
        data = self.store.load(StateKey.CATEGORIES, empty)
        if not isinstance(data, dict):
            logger.warning("Categorized messages have unexpected shape, starting empty")
            return empty

        for category in Category:
            entries = data.get(category.value)
            if not isinstance(entries, list):
                data[category.value] = []
                continue
            kept = [e for e in entries if isinstance(e, dict)]
            if len(kept) != len(entries):
                logger.warning(
                    f"Dropped {len(entries) - len(kept)} malformed {category.value} entries"
                )
            data[category.value] = kept
        return data

    def category_for(self, sender_id: str, keyword: str | None) -> Category:
        """Apply the category rules."""
        if keyword in WORK_TOPICS:
            return Category.WORK
        if self.vip.matches(sender_id):
            return Category.PERSONAL
        if ANONYMISED_ID_MARKER in sender_id:
            return Category.UNKNOWN
        return Category.UNKNOWN

    def classify(self, sender_id: str, message: str, now: datetime) -> CategorizedMessage:
        """
        Categorize a message, append it to its category log, and persist.

        Args:
            sender_id: Message originator.
            message: Message text.
            now: Arrival time.

        Returns:
            The recorded entry.
        """
        keyword = detect_keyword(message)
        category = self.category_for(sender_id, keyword)
        entry = CategorizedMessage(
            timestamp=now.isoformat(),
            sender=sender_id,
            message=message,
            keyword=keyword,
            category=category,
        )

        entries = self.log[category.value]
        entries.append(entry.to_dict())
        if len(entries) > self.limit:
            self.log[category.value] = entries[-self.limit:]

        self.store.save(StateKey.CATEGORIES, self.log)
        logger.debug(f"Categorized message from {sender_id} as {category.value} (keyword={keyword})")
        return entry

    def recent(self, category: Category, count: int = 5) -> list[dict[str, Any]]:
        """Get the most recent entries of a category, oldest first."""
        if count <= 0:
            return []
        return list(self.log.get(category.value, [])[-count:])

    def counts(self) -> dict[str, int]:
        """Get entry counts per category."""
        return {name: len(entries) for name, entries in self.log.items()}
