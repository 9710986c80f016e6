"""Tests for the WhatsApp bridge channel (no network)."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from awaybot.channels.whatsapp import WhatsAppChannel, parse_bridge_message
from awaybot.config.schema import WhatsAppConfig


class TestParseBridgeMessage:

    def test_private_message(self):
        message = parse_bridge_message({
            "type": "message",
            "id": "ABC",
            "sender": "9198@c.us",
            "content": "hi",
        })
        assert message.id == "ABC"
        assert message.chat_id == "9198@c.us"
        assert message.is_private

    def test_group_detected_from_id(self):
        message = parse_bridge_message({"id": "X", "sender": "123-456@g.us", "content": "hi"})
        assert message.is_group
        assert not message.is_private

    def test_status_broadcast(self):
        message = parse_bridge_message({"id": "X", "sender": "status@broadcast", "content": "story"})
        assert not message.is_private

    def test_own_message(self):
        message = parse_bridge_message({"id": "X", "sender": "9198@c.us", "content": "hi", "fromMe": True})
        assert not message.is_private

    def test_incomplete_frame(self):
        assert parse_bridge_message({"content": "hi"}) is None


class TestWhatsAppChannel:

    @pytest.mark.asyncio
    async def test_message_frame_schedules_handler(self):
        handler = AsyncMock()
        channel = WhatsAppChannel(WhatsAppConfig(), handler)

        channel._process_frame({"type": "message", "id": "ABC", "sender": "9198@c.us", "content": "hi"})
        await asyncio.sleep(0)

        handler.assert_awaited_once()
        message, reply = handler.await_args.args
        assert message.content == "hi"
        assert callable(reply)

    @pytest.mark.asyncio
    async def test_reply_sends_bridge_frame(self):
        handler = AsyncMock()
        channel = WhatsAppChannel(WhatsAppConfig(), handler)
        channel._ws = MagicMock(closed=False, send_json=AsyncMock())

        channel._process_frame({"type": "message", "id": "ABC", "sender": "9198@c.us", "content": "hi"})
        await asyncio.sleep(0)
        _, reply = handler.await_args.args
        await reply("🌙 Kya kaam hai?")

        channel._ws.send_json.assert_awaited_once_with({
            "type": "send",
            "to": "9198@c.us",
            "text": "🌙 Kya kaam hai?",
            "replyTo": "ABC",
        })

    @pytest.mark.asyncio
    async def test_send_without_connection_raises(self):
        channel = WhatsAppChannel(WhatsAppConfig(), AsyncMock())
        with pytest.raises(ConnectionError):
            await channel.send("9198@c.us", "hi")

    def test_non_message_frames_do_not_dispatch(self):
        handler = AsyncMock()
        channel = WhatsAppChannel(WhatsAppConfig(), handler)

        channel._process_frame({"type": "qr", "qr": "2@abc"})
        channel._process_frame({"type": "status", "status": "connected"})
        channel._process_frame({"type": "error", "error": "oops"})

        handler.assert_not_called()
