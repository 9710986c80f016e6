"""
WhatsApp channel for awaybot.

Talks to a WhatsApp Web bridge process over a WebSocket. The bridge owns
pairing and session management; this side only exchanges JSON frames:

Inbound:
- {"type": "message", "id", "sender", "chatId", "content", "fromMe", "isGroup"}
- {"type": "qr", "qr"}          pairing code to scan
- {"type": "status", "status"}  connection state changes
- {"type": "error", "error"}

Outbound:
- {"type": "send", "to", "text", "replyTo"}
"""

import asyncio
import json
from typing import Any

import aiohttp
from loguru import logger

from awaybot.channels.base import BROADCAST_SENDER, BaseChannel, InboundMessage, MessageHandler
from awaybot.config.schema import WhatsAppConfig


def parse_bridge_message(data: dict[str, Any]) -> InboundMessage | None:
    """Convert a bridge `message` frame to an InboundMessage."""
    sender = data.get("sender") or data.get("from") or ""
    message_id = data.get("id") or ""
    if not sender or not message_id:
        return None

    return InboundMessage(
        id=str(message_id),
        sender=sender,
        chat_id=data.get("chatId") or sender,
        content=data.get("content") or "",
        from_me=bool(data.get("fromMe", False)),
        is_group=bool(data.get("isGroup", False)) or sender.endswith("@g.us"),
        is_broadcast=sender == BROADCAST_SENDER,
        channel="whatsapp",
        metadata={"timestamp": data.get("timestamp")},
    )


class WhatsAppChannel(BaseChannel):
    """
    WhatsApp channel backed by a WebSocket bridge.

    Reconnects with exponential backoff (1s doubling up to the configured
    maximum) whenever the bridge connection drops.
    """

    name = "whatsapp"

    def __init__(self, config: WhatsAppConfig, handler: MessageHandler):
        super().__init__(handler)
        self.config = config
        self.bridge_url = config.bridge_url

        self._session: aiohttp.ClientSession | None = None
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._connected = False
        self._reconnect_delay = 1.0

    async def start(self) -> None:
        """Connect to the bridge and process frames until stopped."""
        logger.info(f"Connecting to WhatsApp bridge at {self.bridge_url}")
        self._running = True

        while self._running:
            try:
                await self._connect()
                self._reconnect_delay = 1.0
                await self._listen()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.warning(f"WhatsApp bridge connection error: {e}")

            self._connected = False
            if self._running:
                logger.info(f"Reconnecting in {self._reconnect_delay:.0f}s...")
                await asyncio.sleep(self._reconnect_delay)
                self._reconnect_delay = min(
                    self._reconnect_delay * 2,
                    self.config.reconnect_max_seconds,
                )

        await self._close()

    async def _connect(self) -> None:
        if self._session is None:
            self._session = aiohttp.ClientSession()
        self._ws = await self._session.ws_connect(self.bridge_url, heartbeat=30.0)
        self._connected = True
        logger.info("Connected to WhatsApp bridge")

    async def _listen(self) -> None:
        assert self._ws is not None
        async for msg in self._ws:
            if msg.type == aiohttp.WSMsgType.TEXT:
                try:
                    data = json.loads(msg.data)
                except json.JSONDecodeError:
                    logger.warning(f"Invalid JSON from bridge: {msg.data[:100]}")
                    continue
                self._process_frame(data)
            elif msg.type in (aiohttp.WSMsgType.CLOSED, aiohttp.WSMsgType.ERROR):
                break

    def _process_frame(self, data: dict[str, Any]) -> None:
        """Dispatch one bridge frame."""
        frame_type = data.get("type")

        if frame_type == "message":
            message = parse_bridge_message(data)
            if message is None:
                logger.debug(f"Ignoring incomplete message frame: {data}")
                return
            self._handle_message(message)

        elif frame_type == "qr":
            logger.info(f"QR RECEIVED {data.get('qr', '')}")
            logger.info("Scan the QR code shown by the bridge to link this device")

        elif frame_type == "status":
            status = data.get("status")
            logger.info(f"WhatsApp status: {status}")
            if status == "connected":
                logger.info("Client is ready!")

        elif frame_type == "error":
            logger.error(f"WhatsApp bridge error: {data.get('error')}")

    async def send(self, chat_id: str, content: str, reply_to: str | None = None) -> None:
        """Send a message through the bridge."""
        if self._ws is None or self._ws.closed:
            raise ConnectionError("WhatsApp bridge not connected")

        payload: dict[str, Any] = {"type": "send", "to": chat_id, "text": content}
        if reply_to:
            payload["replyTo"] = reply_to
        await self._ws.send_json(payload)

    async def stop(self) -> None:
        """Stop the channel."""
        logger.info("Stopping WhatsApp channel")
        self._running = False
        await self._close()

    async def _close(self) -> None:
        self._connected = False
        if self._ws is not None and not self._ws.closed:
            await self._ws.close()
        self._ws = None
        if self._session is not None:
            await self._session.close()
            self._session = None

    @property
    def is_connected(self) -> bool:
        return self._connected
