"""
Scheduled background work for awaybot.

Currently the end-of-day summary report.
"""

from awaybot.proactive.summary import DailySummaryService, build_daily_summary

__all__ = ["DailySummaryService", "build_daily_summary"]
