"""Base channel interface for chat platforms."""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from loguru import logger

BROADCAST_SENDER = "status@broadcast"


@dataclass
class InboundMessage:
    """A message received from a chat channel."""
    id: str
    sender: str
    chat_id: str
    content: str
    from_me: bool = False
    is_group: bool = False
    is_broadcast: bool = False
    channel: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def is_private(self) -> bool:
        """True for one-to-one messages from someone else."""
        return not (
            self.is_group
            or self.from_me
            or self.is_broadcast
            or self.sender == BROADCAST_SENDER
        )


# Sends text back to the chat the message came from
ReplyFn = Callable[[str], Awaitable[Any]]

MessageHandler = Callable[[InboundMessage, ReplyFn], Awaitable[Any]]


class BaseChannel(ABC):
    """
    Abstract base class for chat channel implementations.

    Each inbound message is handed to the handler as its own task, so a slow
    reply to one sender never blocks another.
    """

    name: str = "base"

    def __init__(self, handler: MessageHandler):
        self.handler = handler
        self._running = False
        self._tasks: set[asyncio.Task] = set()

    @abstractmethod
    async def start(self) -> None:
        """Connect and start listening for messages."""
        pass

    @abstractmethod
    async def stop(self) -> None:
        """Stop the channel and release resources."""
        pass

    @abstractmethod
    async def send(self, chat_id: str, content: str, reply_to: str | None = None) -> None:
        """
        Send a message through this channel.

        Args:
            chat_id: Destination chat.
            content: Message text.
            reply_to: Optional id of the message being answered.
        """
        pass

    def _handle_message(self, message: InboundMessage) -> asyncio.Task:
        """Schedule the handler for an inbound message."""
        async def reply(text: str) -> None:
            await self.send(message.chat_id, text, reply_to=message.id)

        task = asyncio.create_task(self.handler(message, reply))
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"{self.name} handler failed: {task.exception()}")

    @property
    def is_running(self) -> bool:
        """Check if the channel is running."""
        return self._running
