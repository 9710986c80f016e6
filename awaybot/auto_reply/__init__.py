"""
Auto-reply system for awaybot.

Provides the away-responder pipeline:
- Deduplication of redelivered messages
- Per-sender rate limiting
- Reply selection (custom away message, greeting, generated)
- Active-hours schedule
"""

from awaybot.auto_reply.dedup import DedupGuard
from awaybot.auto_reply.rate_limit import RateLimiter, RateDecision, RateWindow
from awaybot.auto_reply.schedule import Schedule
from awaybot.auto_reply.selector import (
    ReplyDecision,
    ReplyKind,
    ReplySelector,
    is_greeting,
    time_emoji,
)
from awaybot.auto_reply.pipeline import AwayResponder, AwaySession, HandleOutcome

__all__ = [
    # Guards
    "DedupGuard",
    "RateLimiter",
    "RateDecision",
    "RateWindow",
    "Schedule",
    # Selection
    "ReplyDecision",
    "ReplyKind",
    "ReplySelector",
    "is_greeting",
    "time_emoji",
    # Pipeline
    "AwayResponder",
    "AwaySession",
    "HandleOutcome",
]
