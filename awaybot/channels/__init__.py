"""Chat channels module."""

from awaybot.channels.base import BaseChannel, InboundMessage, MessageHandler, ReplyFn
from awaybot.channels.whatsapp import WhatsAppChannel

__all__ = ["BaseChannel", "InboundMessage", "MessageHandler", "ReplyFn", "WhatsAppChannel"]
