"""
tests/test_daily_and_streak.py — Daily Quota & Streak Tests
============================================================
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from unittest.mock import MagicMock

from levelup.engine.daily import ServiceClock, needs_daily_reset, reset_daily_quota
from levelup.engine.streak import StreakState, advance_streak

D = date(2026, 3, 10)


class TestServiceClock:
    def test_today_uses_configured_timezone(self):
        # 20:00 UTC on the 10th is already the 11th in Seoul
        moment = datetime(2026, 3, 10, 20, 0, tzinfo=timezone.utc)
        assert ServiceClock("UTC", now=lambda: moment).today() == date(2026, 3, 10)
        assert ServiceClock("Asia/Seoul", now=lambda: moment).today() == date(2026, 3, 11)

    def test_default_clock_returns_a_date(self):
        assert isinstance(ServiceClock().today(), date)


class TestDailyReset:
    def _progress(self, reset_date):
        p = MagicMock()
        p.user_id = "u1"
        p.daily_comment_xp = 30
        p.daily_post_xp = 40
        p.daily_reset_date = reset_date
        return p

    def test_needs_reset(self):
        assert needs_daily_reset(None, D)
        assert needs_daily_reset(date(2026, 3, 9), D)
        assert not needs_daily_reset(D, D)

    def test_new_day_zeroes_counters(self):
        p = self._progress(date(2026, 3, 9))
        assert reset_daily_quota(p, D) is True
        assert p.daily_comment_xp == 0
        assert p.daily_post_xp == 0
        assert p.daily_reset_date == D

    def test_same_day_is_noop(self):
        p = self._progress(D)
        assert reset_daily_quota(p, D) is False
        assert p.daily_comment_xp == 30
        assert p.daily_post_xp == 40

    def test_idempotent_within_a_day(self):
        p = self._progress(date(2026, 3, 9))
        reset_daily_quota(p, D)
        p.daily_comment_xp = 4
        assert reset_daily_quota(p, D) is False
        assert p.daily_comment_xp == 4


class TestAdvanceStreak:
    def test_first_participation(self):
        state = advance_streak(StreakState(), D)
        assert state == StreakState(current=1, best=1, last_date=D)

    def test_consecutive_day_extends(self):
        state = advance_streak(StreakState(4, 4, date(2026, 3, 9)), D)
        assert state == StreakState(current=5, best=5, last_date=D)

    def test_gap_resets_to_one_but_keeps_best(self):
        state = advance_streak(StreakState(6, 9, date(2026, 3, 7)), D)
        assert state == StreakState(current=1, best=9, last_date=D)

    def test_same_day_unchanged(self):
        state = advance_streak(StreakState(3, 5, D), D)
        assert state == StreakState(current=3, best=5, last_date=D)

    def test_future_last_date_treated_as_same_day(self):
        future = date(2026, 3, 12)
        state = advance_streak(StreakState(2, 2, future), D)
        assert state.current == 2
        assert state.last_date == future

    def test_best_never_below_current(self):
        state = StreakState()
        day = date(2026, 1, 1)
        for offset in range(10):
            state = advance_streak(state, date.fromordinal(day.toordinal() + offset))
            assert state.best >= state.current
        assert state.current == 10
