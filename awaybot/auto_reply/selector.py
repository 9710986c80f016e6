"""
Reply selection for the away responder.

Branches are evaluated in strict priority order and the first match wins:
1. CustomAway - an operator-configured away message, sent verbatim
2. Greeting   - a short canned line for "hi"/"hello"-style openers
3. Generated  - persona prompt + conversation history sent to the LLM

Every branch waits a randomized, human-like delay before the reply is
handed back for recording and delivery.
"""

import asyncio
import random
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable

from loguru import logger

from awaybot.auto_reply.persona import build_system_prompt
from awaybot.config.schema import ProviderConfig, ResponderConfig
from awaybot.memory.conversation import ConversationMemory
from awaybot.providers.base import LLMProvider
from awaybot.storage.store import KeyValueStore, StateKey

GREETINGS = ("hello", "hi", "hey", "hii", "helo", "hola", "namaste")

EMOJI_MORNING = "🌅"
EMOJI_AFTERNOON = "☀️"
EMOJI_EVENING = "🌆"
EMOJI_NIGHT = "🌙"


def time_emoji(hour: int) -> str:
    """Pick the time-of-day emoji for a local hour (0-23)."""
    if 6 <= hour < 12:
        return EMOJI_MORNING
    if 12 <= hour < 18:
        return EMOJI_AFTERNOON
    if 18 <= hour < 22:
        return EMOJI_EVENING
    return EMOJI_NIGHT


def is_greeting(text: str) -> bool:
    """
    Check whether a message is a bare greeting.

    "hello" and "hello there" match; "hellothere" does not.
    """
    lowered = text.strip().lower()
    return any(
        lowered == word or lowered.startswith(word + " ")
        for word in GREETINGS
    )


class ReplyKind(str, Enum):
    """Which branch produced a reply."""
    CUSTOM_AWAY = "custom_away"
    GREETING = "greeting"
    GENERATED = "generated"


@dataclass(frozen=True)
class ReplyDecision:
    """
    Outcome of branch selection.

    For CUSTOM_AWAY and GREETING `text` is the final reply. For GENERATED
    `messages` holds the request to send to the provider.
    """
    kind: ReplyKind
    emoji: str
    text: str | None = None
    messages: list[dict[str, Any]] = field(default_factory=list)


SleepFn = Callable[[float], Awaitable[Any]]


class ReplySelector:
    """Chooses and renders the reply for one inbound message."""

    def __init__(
        self,
        store: KeyValueStore,
        memory: ConversationMemory,
        provider: LLMProvider,
        config: ResponderConfig | None = None,
        provider_config: ProviderConfig | None = None,
        sleep: SleepFn = asyncio.sleep,
        rng: random.Random | None = None,
    ):
        self.store = store
        self.memory = memory
        self.provider = provider
        self.config = config or ResponderConfig()
        self.provider_config = provider_config or ProviderConfig()
        self._sleep = sleep
        self._rng = rng or random.Random()

    def custom_away_message(self) -> str | None:
        """Read the away message; re-read every time so edits apply live."""
        message = self.store.load(StateKey.AWAY_MESSAGE)
        if isinstance(message, str) and message.strip():
            return message.strip()
        return None

    def decide(self, sender_id: str, text: str, now: datetime) -> ReplyDecision:
        """
        Select the reply branch for a message.

        The sender's latest user turn must already be in memory, since the
        generated branch sends the full retained history.
        """
        emoji = time_emoji(now.hour)

        custom = self.custom_away_message()
        if custom:
            return ReplyDecision(
                kind=ReplyKind.CUSTOM_AWAY,
                emoji=emoji,
                text=f"{emoji} {custom}",
            )

        if is_greeting(text):
            return ReplyDecision(
                kind=ReplyKind.GREETING,
                emoji=emoji,
                text=f"{emoji} {self.config.greeting_reply}",
            )

        system_prompt = build_system_prompt(
            owner=self.config.owner_name,
            bot=self.config.bot_name,
            emoji=emoji,
            owner_description=self.config.owner_description,
        )
        messages = [{"role": "system", "content": system_prompt}]
        messages.extend(self.memory.as_messages(sender_id))
        return ReplyDecision(kind=ReplyKind.GENERATED, emoji=emoji, messages=messages)

    async def render(self, decision: ReplyDecision) -> str:
        """Resolve a decision to reply text, calling the provider if needed."""
        if decision.kind is not ReplyKind.GENERATED:
            return decision.text or ""

        response = await self.provider.chat(
            messages=decision.messages,
            model=self.provider_config.model,
            max_tokens=self.provider_config.max_tokens,
            temperature=self.provider_config.temperature,
        )
        return response.content or self.config.fallback_reply

    async def human_delay(self) -> float:
        """Wait a uniformly random pause within the configured bounds."""
        delay = self._rng.uniform(
            self.config.min_delay_seconds,
            self.config.max_delay_seconds,
        )
        await self._sleep(delay)
        return delay

    async def reply(self, sender_id: str, text: str, now: datetime) -> tuple[ReplyDecision, str]:
        """
        Decide, render, and wait before handing back the reply.

        Returns:
            The decision taken and the final reply text.
        """
        decision = self.decide(sender_id, text, now)
        reply_text = await self.render(decision)

        if decision.kind is ReplyKind.CUSTOM_AWAY:
            logger.info(f"[CUSTOM AWAY MESSAGE] {reply_text}")
        elif decision.kind is ReplyKind.GREETING:
            logger.info(f"[GREETING DETECTED] Responding with: {reply_text}")

        await self.human_delay()
        return decision, reply_text
