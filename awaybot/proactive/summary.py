"""
Daily summary reports.

The service computes the next run instant from a cron expression
(default 23:59 local time), sleeps until then, and writes
daily_summary_YYYY-MM-DD.txt into the workspace. At most one report is
written per calendar day.
"""

import asyncio
from datetime import date, datetime
from pathlib import Path
from typing import Any, Awaitable, Callable

from croniter import croniter
from loguru import logger

from awaybot.storage.store import KeyValueStore
from awaybot.tracking.categorizer import Categorizer, Category
from awaybot.tracking.stats import StatsTracker
from awaybot.utils.helpers import local_now, truncate

PREVIEW_LENGTH = 50
RECENT_PER_CATEGORY = 5


def summary_filename(day: date) -> str:
    """Name of the report file for a day."""
    return f"daily_summary_{day.isoformat()}.txt"


def build_daily_summary(
    day: date,
    total_messages: int,
    categories: dict[str, list[dict[str, Any]]],
) -> str:
    """
    Render the plain-text daily report.

    Args:
        day: Report date.
        total_messages: Running message total.
        categories: Category log (category name -> entries).

    Returns:
        Report text.
    """
    work = categories.get(Category.WORK.value, [])
    personal = categories.get(Category.PERSONAL.value, [])
    unknown = categories.get(Category.UNKNOWN.value, [])

    lines = [
        f"Daily Summary - {day.isoformat()}",
        "=================================",
        f"Total Messages: {total_messages}",
        f"Work Messages: {len(work)}",
        f"Personal Messages: {len(personal)}",
        f"Unknown Messages: {len(unknown)}",
        "",
        "Recent Messages:",
    ]

    for label, entries in (("WORK", work), ("PERSONAL", personal)):
        for entry in entries[-RECENT_PER_CATEGORY:]:
            preview = truncate(str(entry.get("message", "")), PREVIEW_LENGTH)
            lines.append(f"- [{label}] {entry.get('sender', '')}: {preview}...")

    return "\n".join(lines) + "\n"


class DailySummaryService:
    """
    Writes the end-of-day summary on a cron schedule.

    The next run is computed explicitly instead of polling, so clock changes
    cannot cause a missed or doubled report for a day.
    """

    def __init__(
        self,
        store: KeyValueStore,
        stats: StatsTracker,
        categorizer: Categorizer,
        cron_expr: str = "59 23 * * *",
        timezone: str = "",
        clock: Callable[[], datetime] | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if not croniter.is_valid(cron_expr):
            raise ValueError(f"Invalid cron expression: {cron_expr}")

        self.store = store
        self.stats = stats
        self.categorizer = categorizer
        self.cron_expr = cron_expr
        self._clock = clock or (lambda: local_now(timezone))
        self._sleep = sleep

        self._running = False
        self._task: asyncio.Task | None = None
        self._last_report_date: date | None = None

    def next_run(self, after: datetime) -> datetime:
        """Get the next scheduled instant strictly after `after`."""
        return croniter(self.cron_expr, after).get_next(datetime)

    def write_summary(self, day: date) -> Path | None:
        """
        Write the report for a day unless one was already written.

        Returns:
            Path to the report, or None if skipped or the write failed.
        """
        if self._last_report_date == day:
            logger.debug(f"Daily summary for {day} already written")
            return None

        text = build_daily_summary(day, self.stats.total_messages, self.categorizer.log)
        path = self.store.write_report(summary_filename(day), text)
        self._last_report_date = day

        if path:
            logger.info(f"📊 Daily summary saved: {path}")
        return path

    async def start(self) -> None:
        """Start the summary loop in the background."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info(f"Daily summary scheduled ({self.cron_expr})")

    def stop(self) -> None:
        """Stop the summary loop."""
        self._running = False
        if self._task:
            self._task.cancel()
            self._task = None

    async def _run_loop(self) -> None:
        while self._running:
            now = self._clock()
            run_at = self.next_run(now)
            delay = max(0.0, (run_at - now).total_seconds())
            logger.debug(f"Next daily summary at {run_at.isoformat()}")

            try:
                await self._sleep(delay)
            except asyncio.CancelledError:
                break

            if not self._running:
                break

            try:
                self.write_summary(run_at.date())
            except Exception as e:
                logger.error(f"Daily summary failed: {e}")
