"""Bounded conversation history per sender."""

from dataclasses import dataclass, asdict
from typing import Any, Literal

from loguru import logger

from awaybot.storage.store import KeyValueStore, StateKey

Role = Literal["user", "assistant"]


@dataclass
class ConversationTurn:
    """One role-tagged utterance."""
    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        """Convert to the message shape used by the generation provider."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ConversationTurn":
        """Create from dictionary; only user and assistant turns are accepted."""
        role = data["role"]
        if role not in ("user", "assistant"):
            raise ValueError(f"unsupported role: {role!r}")
        return cls(role=role, content=str(data.get("content", "")))


class ConversationMemory:
    """
    Ordered turn log keyed by sender.

    Every append trims the sender's log to the most recent `limit` turns,
    dropping the oldest first. Callers flush once per handled message.
    """

    def __init__(self, store: KeyValueStore, limit: int = 20):
        self.store = store
        self.limit = limit
        self._history: dict[str, list[ConversationTurn]] = {}
        self._load()

    def _load(self) -> None:
        """Load history from the store, skipping malformed entries."""
        data = self.store.load(StateKey.CONVERSATION_HISTORY, {})
        if not isinstance(data, dict):
            logger.warning("Conversation history has unexpected shape, starting empty")
            return

        for sender, turns in data.items():
            try:
                loaded = [ConversationTurn.from_dict(t) for t in turns]
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed history for {sender}: {e}")
                continue
            self._history[sender] = loaded[-self.limit:]

        if self._history:
            logger.info(f"Loaded conversation history for {len(self._history)} senders")

    def _append(self, sender_id: str, role: Role, content: str) -> None:
        turns = self._history.setdefault(sender_id, [])
        turns.append(ConversationTurn(role=role, content=content))
        if len(turns) > self.limit:
            self._history[sender_id] = turns[-self.limit:]

    def append_user(self, sender_id: str, content: str) -> None:
        """Record an inbound message."""
        self._append(sender_id, "user", content)

    def append_assistant(self, sender_id: str, content: str) -> None:
        """Record a reply sent on the owner's behalf."""
        self._append(sender_id, "assistant", content)

    def history_for(self, sender_id: str) -> list[ConversationTurn]:
        """Get a copy of a sender's retained turns, oldest first."""
        return list(self._history.get(sender_id, []))

    def as_messages(self, sender_id: str) -> list[dict[str, str]]:
        """Get a sender's turns as role/content dicts."""
        return [turn.to_dict() for turn in self._history.get(sender_id, [])]

    def clear(self, sender_id: str) -> None:
        """Forget a sender's conversation."""
        self._history.pop(sender_id, None)

    def senders(self) -> list[str]:
        """List senders with retained history."""
        return list(self._history)

    def flush(self) -> bool:
        """Persist all history."""
        data = {
            sender: [turn.to_dict() for turn in turns]
            for sender, turns in self._history.items()
        }
        return self.store.save(StateKey.CONVERSATION_HISTORY, data)
