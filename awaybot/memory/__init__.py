"""
Per-sender conversation memory.

Keeps a bounded, ordered log of role-tagged turns for each sender and
mirrors it to the persistent store.
"""

from awaybot.memory.conversation import ConversationMemory, ConversationTurn

__all__ = ["ConversationMemory", "ConversationTurn"]
