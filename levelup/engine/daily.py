"""
levelup.engine.daily — Service Clock & Daily Quota Tracker
===========================================================

"Today" is the calendar date in the service's configured timezone, not
the server's local date and not UTC (unless configured so).  Comment and
post XP are capped per day; the counters reset the first time a player
triggers an event on a new day.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

if TYPE_CHECKING:
    from levelup.database.models import UserProgress

logger = logging.getLogger(__name__)

DAILY_COMMENT_XP_CAP = 40
DAILY_POST_XP_CAP = 50


class ServiceClock:
    """Clock source for "current date in the service timezone".

    Tests pass a fixed ``now`` callable to pin the date.
    """

    def __init__(self, timezone: str = "UTC", now=None) -> None:
        self.tz = ZoneInfo(timezone)
        self._now = now

    def now(self) -> datetime:
        if self._now is not None:
            return self._now().astimezone(self.tz)
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()


def needs_daily_reset(reset_date: date | None, today: date) -> bool:
    """True when the quota counters belong to a day other than *today*."""
    return reset_date != today


def reset_daily_quota(progress: UserProgress, today: date) -> bool:
    """Zero the per-day XP counters if the day changed.

    Returns True if a reset happened.  Idempotent within a day.
    """
    if not needs_daily_reset(progress.daily_reset_date, today):
        return False
    logger.debug(
        "Daily quota reset for %s (%s → %s)",
        progress.user_id, progress.daily_reset_date, today,
    )
    progress.daily_comment_xp = 0
    progress.daily_post_xp = 0
    progress.daily_reset_date = today
    return True
