"""Active-hours schedule for auto replies."""

from dataclasses import dataclass
from typing import Any

from loguru import logger

from awaybot.storage.store import KeyValueStore, StateKey


@dataclass
class Schedule:
    """
    Hours during which auto replies are sent.

    Disabled means always active. With start > end the window wraps past
    midnight (e.g. 21 -> 9 covers the night).
    """
    enabled: bool = False
    start_hour: int = 9
    end_hour: int = 21

    def is_active(self, hour: int) -> bool:
        """Check whether auto replies are on at a local hour."""
        if not self.enabled:
            return True
        if self.start_hour <= self.end_hour:
            return self.start_hour <= hour < self.end_hour
        return hour >= self.start_hour or hour < self.end_hour

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted shape."""
        return {
            "enabled": self.enabled,
            "startHour": self.start_hour,
            "endHour": self.end_hour,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Schedule":
        """Create from the persisted shape, validating hour ranges."""
        schedule = cls(
            enabled=bool(data.get("enabled", False)),
            start_hour=int(data.get("startHour", 9)),
            end_hour=int(data.get("endHour", 21)),
        )
        for hour in (schedule.start_hour, schedule.end_hour):
            if not 0 <= hour <= 23:
                raise ValueError(f"hour out of range: {hour}")
        return schedule

    @classmethod
    def load(cls, store: KeyValueStore) -> "Schedule":
        """Load from the store; malformed data yields a disabled schedule."""
        data = store.load(StateKey.SCHEDULE)
        if data is None:
            return cls()
        try:
            if not isinstance(data, dict):
                raise ValueError("expected an object")
            return cls.from_dict(data)
        except (TypeError, ValueError) as e:
            logger.warning(f"Error loading schedule, auto reply stays always on: {e}")
            return cls()

    def save(self, store: KeyValueStore) -> bool:
        """Persist the schedule."""
        return store.save(StateKey.SCHEDULE, self.to_dict())
