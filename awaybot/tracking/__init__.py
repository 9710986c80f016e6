"""
Message tracking for awaybot.

Tracks:
- Running message statistics
- Keyword-based categorization
- VIP contacts
"""

from awaybot.tracking.stats import MessageStats, StatsTracker
from awaybot.tracking.categorizer import (
    Category,
    CategorizedMessage,
    Categorizer,
    VipList,
    detect_keyword,
)

__all__ = [
    "MessageStats",
    "StatsTracker",
    "Category",
    "CategorizedMessage",
    "Categorizer",
    "VipList",
    "detect_keyword",
]
