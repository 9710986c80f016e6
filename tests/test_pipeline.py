"""
Tests for the away responder pipeline.

Tests:
- Filtering of group, own, and broadcast messages
- Deduplication and rate limiting
- Reply branches end to end
- Failure handling and fallback delivery
- Same-sender ordering under concurrency
"""

import asyncio
import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest

from awaybot.auto_reply.pipeline import AwayResponder, AwaySession, HandleOutcome
from awaybot.auto_reply.schedule import Schedule
from awaybot.auto_reply.selector import ReplySelector
from awaybot.channels.base import InboundMessage
from awaybot.storage.store import StateKey

SENDER = "919812345678@c.us"


def make_message(msg_id: str, content: str = "tell me more", sender: str = SENDER, **kwargs) -> InboundMessage:
    return InboundMessage(id=msg_id, sender=sender, chat_id=sender, content=content, **kwargs)


@pytest.fixture
def session(store, responder_config):
    return AwaySession.from_store(store, responder_config)


@pytest.fixture
def responder(session, store, provider, responder_config, provider_config, afternoon):
    selector = ReplySelector(
        store=store,
        memory=session.memory,
        provider=provider,
        config=responder_config,
        provider_config=provider_config,
        sleep=asyncio.sleep,
    )
    return AwayResponder(session, selector, responder_config, clock=lambda: afternoon)


@pytest.fixture
def reply():
    return AsyncMock()


class TestFiltering:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("message", [
        make_message("g1", is_group=True),
        make_message("o1", from_me=True),
        make_message("b1", sender="status@broadcast"),
    ])
    async def test_ignored_without_state_change(self, responder, session, reply, message):
        outcome = await responder.handle(message, reply)

        assert outcome is HandleOutcome.IGNORED
        reply.assert_not_called()
        assert len(session.dedup) == 0
        assert session.stats.total_messages == 0

    @pytest.mark.asyncio
    async def test_outside_schedule_is_ignored(self, responder, session, reply):
        # Fixed clock is 14:30, outside 20:00-06:00
        session.schedule = Schedule(enabled=True, start_hour=20, end_hour=6)
        outcome = await responder.handle(make_message("m1"), reply)

        assert outcome is HandleOutcome.OUT_OF_SCHEDULE
        reply.assert_not_called()
        assert session.stats.total_messages == 0


class TestPipeline:

    @pytest.mark.asyncio
    async def test_generated_reply_flow(self, responder, session, reply, workspace):
        outcome = await responder.handle(make_message("m1", "are you around?"), reply)

        assert outcome is HandleOutcome.REPLIED
        reply.assert_awaited_once_with("Got your message! Sunny will reply soon.")
        assert session.stats.total_messages == 1
        assert session.memory.as_messages(SENDER) == [
            {"role": "user", "content": "are you around?"},
            {"role": "assistant", "content": "Got your message! Sunny will reply soon."},
        ]

        persisted = json.loads((workspace / "conversation_history.json").read_text())
        assert len(persisted[SENDER]) == 2
        assert "are you around?" in (workspace / "messages_log.txt").read_text()

    @pytest.mark.asyncio
    async def test_duplicate_processed_once(self, responder, session, reply):
        first = await responder.handle(make_message("m1"), reply)
        second = await responder.handle(make_message("m1"), reply)

        assert first is HandleOutcome.REPLIED
        assert second is HandleOutcome.DUPLICATE
        assert reply.await_count == 1
        assert session.stats.total_messages == 1

    @pytest.mark.asyncio
    async def test_custom_away_message(self, responder, store, provider, reply):
        store.save(StateKey.AWAY_MESSAGE, "Busy now")
        await responder.handle(make_message("m1", "urgent!! project deadline"), reply)

        reply.assert_awaited_once_with("☀️ Busy now")
        provider.chat.assert_not_called()

    @pytest.mark.asyncio
    async def test_greeting(self, responder, provider, reply):
        await responder.handle(make_message("m1", "Hello"), reply)
        reply.assert_awaited_once_with("☀️ Kya kaam hai?")
        provider.chat.assert_not_called()

    @pytest.mark.asyncio
    async def test_eleventh_message_in_window_is_dropped(self, responder, session, reply):
        outcomes = [
            await responder.handle(make_message(f"m{i}", f"msg {i}"), reply)
            for i in range(11)
        ]

        assert outcomes[:10] == [HandleOutcome.REPLIED] * 10
        assert outcomes[10] is HandleOutcome.RATE_LIMITED
        assert reply.await_count == 10
        assert session.stats.total_messages == 10
        history = session.memory.history_for(SENDER)
        assert len(history) == 20
        assert history[-2].content == "msg 9"

    @pytest.mark.asyncio
    async def test_message_is_categorized(self, responder, session, reply):
        await responder.handle(make_message("m1", "meeting at 4?"), reply)
        assert session.categorizer.counts()["work"] == 1


class TestFailures:

    @pytest.mark.asyncio
    async def test_generation_failure_sends_apology(self, responder, session, provider, reply, workspace):
        provider.chat.side_effect = RuntimeError("provider down")
        outcome = await responder.handle(make_message("m1", "status?"), reply)

        assert outcome is HandleOutcome.FAILED
        reply.assert_awaited_once_with("Sorry, I encountered an error. Please try again.")

        # The user turn is still persisted
        persisted = json.loads((workspace / "conversation_history.json").read_text())
        assert persisted[SENDER] == [{"role": "user", "content": "status?"}]

    @pytest.mark.asyncio
    async def test_failed_apology_is_swallowed(self, responder):
        reply = AsyncMock(side_effect=ConnectionError("bridge gone"))
        outcome = await responder.handle(make_message("m1"), reply)

        assert outcome is HandleOutcome.FAILED
        assert reply.await_count == 2

    @pytest.mark.asyncio
    async def test_transcript_failure_is_not_fatal(self, responder, session, reply, workspace):
        (workspace / "messages_log.txt").mkdir()
        outcome = await responder.handle(make_message("m1"), reply)

        assert outcome is HandleOutcome.REPLIED
        reply.assert_awaited_once()
        assert session.stats.total_messages == 1

    @pytest.mark.asyncio
    async def test_failure_logged_with_traceback(self, responder, provider, reply):
        provider.chat.side_effect = RuntimeError("provider down")
        with patch("awaybot.auto_reply.pipeline.logger") as log:
            await responder.handle(make_message("m1", "status?"), reply)

        log.exception.assert_called_once()

    @pytest.mark.asyncio
    async def test_persistence_failure_does_not_block_reply(self, responder, reply, workspace):
        (workspace / "conversation_history.json").mkdir()
        outcome = await responder.handle(make_message("m1"), reply)

        assert outcome is HandleOutcome.REPLIED
        reply.assert_awaited_once()


class TestConcurrency:

    @pytest.mark.asyncio
    async def test_same_sender_turns_stay_paired(self, responder, session, reply):
        await asyncio.gather(
            responder.handle(make_message("m1", "first"), reply),
            responder.handle(make_message("m2", "second"), reply),
        )

        roles = [t.role for t in session.memory.history_for(SENDER)]
        assert roles == ["user", "assistant", "user", "assistant"]

    @pytest.mark.asyncio
    async def test_stats(self, responder, reply):
        await responder.handle(make_message("m1"), reply)
        await responder.handle(make_message("m1"), reply)

        stats = responder.get_stats()
        assert stats["outcomes"]["replied"] == 1
        assert stats["outcomes"]["duplicate"] == 1
        assert stats["replies"]["generated"] == 1
