"""
Per-sender rate limiting for the away responder.

Each sender gets a fixed window (default 10 seconds) with a message budget
(default 10). A window is reset lazily the first time the sender is seen at
or after its reset time.
"""

import time
from dataclasses import dataclass
from typing import Any

from loguru import logger


@dataclass
class RateWindow:
    """Budget counter for one sender."""
    count: int
    reset_at: float


@dataclass(frozen=True)
class RateDecision:
    """Result of an admission check."""
    allowed: bool
    count: int
    reset_at: float


class RateLimiter:
    """
    Fixed-window message budget keyed by sender.

    Denied messages are not counted, so a flood does not extend the window.
    """

    def __init__(self, max_messages: int = 10, window_seconds: float = 10.0):
        self.max_messages = max_messages
        self.window_seconds = window_seconds

        # sender_id -> window
        self._windows: dict[str, RateWindow] = {}
        self._total_denied = 0

    def admit(self, sender_id: str, now: float | None = None) -> RateDecision:
        """
        Check and consume one unit of a sender's budget.

        Args:
            sender_id: Sender to check.
            now: Current time in seconds (defaults to time.time()).

        Returns:
            RateDecision with `allowed` set when the message may proceed.
        """
        now = time.time() if now is None else now
        window = self._windows.get(sender_id)

        # Boundary is inclusive: arriving exactly at reset_at starts fresh
        if window is None or now >= window.reset_at:
            window = RateWindow(count=0, reset_at=now + self.window_seconds)
            self._windows[sender_id] = window

        if window.count >= self.max_messages:
            self._total_denied += 1
            logger.debug(
                f"Rate limit exceeded for {sender_id}: "
                f"{self.max_messages} messages in {self.window_seconds:g}s"
            )
            return RateDecision(allowed=False, count=window.count, reset_at=window.reset_at)

        window.count += 1
        return RateDecision(allowed=True, count=window.count, reset_at=window.reset_at)

    def window_for(self, sender_id: str) -> RateWindow | None:
        """Get the current window for a sender, if any."""
        return self._windows.get(sender_id)

    def clear_sender(self, sender_id: str) -> None:
        """Clear rate limit for a sender."""
        self._windows.pop(sender_id, None)

    def get_stats(self) -> dict[str, Any]:
        """Get limiter statistics."""
        return {
            "tracked_senders": len(self._windows),
            "total_denied": self._total_denied,
        }
