"""
Running message statistics.

Persisted as bot_stats.json with the keys totalMessages, startDate and
lastMessage.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from loguru import logger

from awaybot.storage.store import KeyValueStore, StateKey


@dataclass
class MessageStats:
    """Message counters."""
    total_messages: int = 0
    start_date: str = ""
    last_message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted shape."""
        data: dict[str, Any] = {
            "totalMessages": self.total_messages,
            "startDate": self.start_date,
        }
        if self.last_message is not None:
            data["lastMessage"] = self.last_message
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MessageStats":
        """Create from the persisted shape."""
        total = data.get("totalMessages", 0)
        if not isinstance(total, int) or total < 0:
            raise ValueError(f"invalid totalMessages: {total!r}")
        return cls(
            total_messages=total,
            start_date=str(data.get("startDate", "")),
            last_message=data.get("lastMessage"),
        )


class StatsTracker:
    """Counts accepted messages and persists after every update."""

    def __init__(self, store: KeyValueStore, now: datetime | None = None):
        self.store = store
        self.stats = self._load(now or datetime.now().astimezone())

    def _load(self, now: datetime) -> MessageStats:
        data = self.store.load(StateKey.STATS)
        if data is None:
            return MessageStats(start_date=now.isoformat())

        try:
            if not isinstance(data, dict):
                raise ValueError("expected an object")
            stats = MessageStats.from_dict(data)
        except ValueError as e:
            logger.warning(f"Error loading stats, starting fresh: {e}")
            return MessageStats(start_date=now.isoformat())

        if not stats.start_date:
            stats.start_date = now.isoformat()
        return stats

    @property
    def total_messages(self) -> int:
        return self.stats.total_messages

    def record(self, now: datetime) -> MessageStats:
        """
        Count one accepted message.

        Args:
            now: Arrival time of the message.

        Returns:
            The updated statistics.
        """
        self.stats.total_messages += 1
        self.stats.last_message = now.isoformat()
        self.store.save(StateKey.STATS, self.stats.to_dict())
        return self.stats
