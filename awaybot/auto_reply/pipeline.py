"""
Message pipeline for the away responder.

Flow for each inbound private message:
1. Drop group, own, and status-broadcast messages
2. Drop messages outside the active-hours schedule
3. Deduplicate by message id
4. Append to the raw transcript
5. Rate limit per sender (silent drop)
6. Count the message in stats
7. Record the user turn and categorize it
8. Select and render a reply (with human-like delay)
9. Record the reply, flush history, and deliver it

Failures from step 4 on are caught here; one apology is attempted and a
failed apology is only logged.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable

from loguru import logger

from awaybot.auto_reply.dedup import DedupGuard
from awaybot.auto_reply.rate_limit import RateLimiter
from awaybot.auto_reply.schedule import Schedule
from awaybot.auto_reply.selector import ReplyKind, ReplySelector
from awaybot.channels.base import InboundMessage, ReplyFn
from awaybot.config.schema import ResponderConfig
from awaybot.memory.conversation import ConversationMemory
from awaybot.storage.store import KeyValueStore
from awaybot.tracking.categorizer import Categorizer, VipList
from awaybot.tracking.stats import StatsTracker
from awaybot.utils.helpers import local_now


class HandleOutcome(str, Enum):
    """What the pipeline did with a message."""
    IGNORED = "ignored"
    OUT_OF_SCHEDULE = "out_of_schedule"
    DUPLICATE = "duplicate"
    RATE_LIMITED = "rate_limited"
    REPLIED = "replied"
    FAILED = "failed"


@dataclass
class AwaySession:
    """
    All responder state, built once at startup.

    Holds every per-sender map and persisted slice so nothing lives in
    module globals.
    """
    store: KeyValueStore
    dedup: DedupGuard
    limiter: RateLimiter
    memory: ConversationMemory
    stats: StatsTracker
    vip: VipList
    categorizer: Categorizer
    schedule: Schedule

    @classmethod
    def from_store(
        cls,
        store: KeyValueStore,
        config: ResponderConfig | None = None,
    ) -> "AwaySession":
        """Load every state slice from the store."""
        config = config or ResponderConfig()
        vip = VipList(store)
        return cls(
            store=store,
            dedup=DedupGuard(config.dedup_capacity, config.dedup_evict),
            limiter=RateLimiter(
                config.rate_limit.max_messages,
                config.rate_limit.window_seconds,
            ),
            memory=ConversationMemory(store, limit=config.history_limit),
            stats=StatsTracker(store),
            vip=vip,
            categorizer=Categorizer(store, vip, limit=config.category_limit),
            schedule=Schedule.load(store),
        )


class AwayResponder:
    """Runs the per-message pipeline."""

    def __init__(
        self,
        session: AwaySession,
        selector: ReplySelector,
        config: ResponderConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.session = session
        self.selector = selector
        self.config = config or ResponderConfig()
        self._clock = clock or (lambda: local_now(self.config.timezone))

        # Same-sender messages are handled one at a time
        self._sender_locks: dict[str, asyncio.Lock] = {}

        self._outcomes: dict[HandleOutcome, int] = {o: 0 for o in HandleOutcome}
        self._replies_by_kind: dict[ReplyKind, int] = {k: 0 for k in ReplyKind}

    def _lock_for(self, sender_id: str) -> asyncio.Lock:
        lock = self._sender_locks.get(sender_id)
        if lock is None:
            lock = asyncio.Lock()
            self._sender_locks[sender_id] = lock
        return lock

    def _done(self, outcome: HandleOutcome) -> HandleOutcome:
        self._outcomes[outcome] += 1
        return outcome

    async def handle(self, message: InboundMessage, reply: ReplyFn) -> HandleOutcome:
        """
        Process one inbound message.

        Args:
            message: The inbound message.
            reply: Sends text back to the message's chat.

        Returns:
            The pipeline outcome.
        """
        if not message.is_private:
            return self._done(HandleOutcome.IGNORED)

        session = self.session
        now = self._clock()
        sender = message.sender

        if not session.schedule.is_active(now.hour):
            logger.debug(f"Outside active hours, not replying to {sender}")
            return self._done(HandleOutcome.OUT_OF_SCHEDULE)

        if session.dedup.already_processed(message.id):
            logger.info(f"[DUPLICATE] Skipping already processed message: {message.id}")
            return self._done(HandleOutcome.DUPLICATE)
        session.dedup.mark_processed(message.id)

        logger.info(f"[PRIVATE] {sender}: {message.content}")

        try:
            session.store.append_transcript(sender, message.content, now)

            admission = session.limiter.admit(sender, now.timestamp())
            if not admission.allowed:
                logger.info(
                    f"[RATE LIMIT] {sender} exceeded {session.limiter.max_messages} messages "
                    f"in {session.limiter.window_seconds:g} seconds. Ignoring."
                )
                return self._done(HandleOutcome.RATE_LIMITED)

            session.stats.record(now)

            async with self._lock_for(sender):
                try:
                    session.memory.append_user(sender, message.content)
                    session.categorizer.classify(sender, message.content, now)

                    decision, reply_text = await self.selector.reply(sender, message.content, now)

                    session.memory.append_assistant(sender, reply_text)
                finally:
                    session.memory.flush()

                logger.info(f"[BOT REPLY] {reply_text}")
                await reply(reply_text)

            self._replies_by_kind[decision.kind] += 1
            return self._done(HandleOutcome.REPLIED)

        except Exception as e:
            logger.exception(f"Error handling message from {sender}: {e}")
            try:
                await reply(self.config.error_reply)
            except Exception as reply_err:
                logger.error(f"Failed to send error message: {reply_err}")
            return self._done(HandleOutcome.FAILED)

    def get_stats(self) -> dict[str, Any]:
        """Get pipeline statistics."""
        return {
            "outcomes": {o.value: n for o, n in self._outcomes.items()},
            "replies": {k.value: n for k, n in self._replies_by_kind.items()},
            "total_messages": self.session.stats.total_messages,
            "dedup": self.session.dedup.get_stats(),
            "rate_limit": self.session.limiter.get_stats(),
        }
