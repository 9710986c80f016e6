"""
Tests for reply selection.

Tests:
- Time-of-day emoji buckets
- Greeting detection
- Branch priority (custom away > greeting > generated)
- Generated request shape and fallback text
- Delay applied on every branch
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from awaybot.auto_reply.selector import (
    ReplyKind,
    ReplySelector,
    is_greeting,
    time_emoji,
)
from awaybot.memory.conversation import ConversationMemory
from awaybot.providers.base import LLMResponse
from awaybot.storage.store import StateKey


@pytest.fixture
def memory(store):
    return ConversationMemory(store)


@pytest.fixture
def sleep():
    return AsyncMock()


@pytest.fixture
def selector(store, memory, provider, responder_config, provider_config, sleep):
    return ReplySelector(
        store=store,
        memory=memory,
        provider=provider,
        config=responder_config,
        provider_config=provider_config,
        sleep=sleep,
    )


class TestTimeEmoji:

    @pytest.mark.parametrize("hour,emoji", [
        (6, "🌅"), (11, "🌅"),
        (12, "☀️"), (17, "☀️"),
        (18, "🌆"), (21, "🌆"),
        (22, "🌙"), (0, "🌙"), (5, "🌙"),
    ])
    def test_buckets(self, hour, emoji):
        assert time_emoji(hour) == emoji


class TestIsGreeting:

    @pytest.mark.parametrize("text", ["Hello", "Hello there", "  hi  ", "NAMASTE ji", "hola"])
    def test_matches(self, text):
        assert is_greeting(text)

    @pytest.mark.parametrize("text", ["Hellothere", "hiya", "say hello", "", "hey!"])
    def test_does_not_match(self, text):
        assert not is_greeting(text)


class TestReplySelector:

    def test_custom_away_wins(self, selector, store, afternoon):
        store.save(StateKey.AWAY_MESSAGE, "Busy now")
        decision = selector.decide("a", "hello", afternoon)

        assert decision.kind is ReplyKind.CUSTOM_AWAY
        assert decision.text == "☀️ Busy now"

    def test_greeting(self, selector, afternoon):
        decision = selector.decide("a", "Hey there", afternoon)
        assert decision.kind is ReplyKind.GREETING
        assert decision.text == "☀️ Kya kaam hai?"

    def test_generated_request_has_persona_and_history(self, selector, memory, afternoon):
        memory.append_user("a", "are you free?")
        memory.append_assistant("a", "☀️ Sunny will reply soon.")
        memory.append_user("a", "when?")

        decision = selector.decide("a", "when?", afternoon)

        assert decision.kind is ReplyKind.GENERATED
        system, *history = decision.messages
        assert system["role"] == "system"
        assert "You are Zero, an auto-reply bot for Sunny" in system["content"]
        assert '"☀️"' in system["content"]
        assert history == [
            {"role": "user", "content": "are you free?"},
            {"role": "assistant", "content": "☀️ Sunny will reply soon."},
            {"role": "user", "content": "when?"},
        ]

    @pytest.mark.asyncio
    async def test_custom_away_makes_no_generation_call(self, selector, store, provider, afternoon):
        store.save(StateKey.AWAY_MESSAGE, "Busy now")
        decision, text = await selector.reply("a", "what is the deadline?", afternoon)

        assert text == "☀️ Busy now"
        provider.chat.assert_not_called()

    @pytest.mark.asyncio
    async def test_generated_uses_fixed_sampling(self, selector, memory, provider, afternoon):
        memory.append_user("a", "project update?")
        decision, text = await selector.reply("a", "project update?", afternoon)

        assert text == "Got your message! Sunny will reply soon."
        kwargs = provider.chat.call_args.kwargs
        assert kwargs["model"] == "groq/llama-3.3-70b-versatile"
        assert kwargs["temperature"] == 0.7
        assert kwargs["max_tokens"] == 500

    @pytest.mark.asyncio
    async def test_empty_generation_uses_fallback(self, selector, memory, provider, afternoon):
        provider.chat.return_value = LLMResponse(content=None)
        memory.append_user("a", "status?")
        _, text = await selector.reply("a", "status?", afternoon)
        assert text == "Sorry, I could not generate a response."

    @pytest.mark.asyncio
    async def test_generation_errors_propagate(self, selector, memory, provider, afternoon):
        provider.chat.side_effect = RuntimeError("boom")
        memory.append_user("a", "status?")
        with pytest.raises(RuntimeError):
            await selector.reply("a", "status?", afternoon)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("setup,text", [
        ("custom", "anything"),
        ("none", "hello"),
        ("none", "tell me more"),
    ])
    async def test_every_branch_waits(self, selector, store, memory, sleep, afternoon, setup, text):
        if setup == "custom":
            store.save(StateKey.AWAY_MESSAGE, "Busy")
        memory.append_user("a", text)

        await selector.reply("a", text, afternoon)
        sleep.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_delay_within_bounds(self, store, memory, provider):
        from awaybot.config.schema import ResponderConfig

        sleep = AsyncMock()
        selector = ReplySelector(
            store, memory, provider,
            config=ResponderConfig(min_delay_seconds=1.0, max_delay_seconds=3.0),
            sleep=sleep,
        )
        for _ in range(20):
            delay = await selector.human_delay()
            assert 1.0 <= delay <= 3.0

    def test_night_emoji(self, selector):
        night = datetime(2026, 10, 19, 23, 0, tzinfo=timezone.utc)
        assert selector.decide("a", "hi", night).text == "🌙 Kya kaam hai?"
