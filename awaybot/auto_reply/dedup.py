"""
Deduplication guard for inbound messages.

The transport may redeliver the same event (echo or retry). The guard keeps
a bounded window of recently seen message ids so each id is processed at
most once within that window.
"""

from typing import Any


class DedupGuard:
    """
    Bounded set of processed message ids.

    When the set grows past `capacity`, the `evict` earliest-inserted ids are
    dropped. Eviction follows insertion order, never access order.
    """

    def __init__(self, capacity: int = 100, evict: int = 50):
        self.capacity = capacity
        self.evict = evict
        # dict keeps insertion order
        self._seen: dict[str, None] = {}
        self._duplicates = 0

    def already_processed(self, message_id: str) -> bool:
        """Check whether a message id was seen in the current window."""
        if message_id in self._seen:
            self._duplicates += 1
            return True
        return False

    def mark_processed(self, message_id: str) -> None:
        """Record a message id, evicting the oldest ids when over capacity."""
        self._seen[message_id] = None

        if len(self._seen) > self.capacity:
            for old_id in list(self._seen)[: self.evict]:
                del self._seen[old_id]

    def __len__(self) -> int:
        return len(self._seen)

    def __contains__(self, message_id: str) -> bool:
        return message_id in self._seen

    def get_stats(self) -> dict[str, Any]:
        """Get guard statistics."""
        return {
            "tracked_ids": len(self._seen),
            "duplicates_skipped": self._duplicates,
        }
