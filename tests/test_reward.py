"""
tests/test_reward.py — Reward Calculator Tests
===============================================

Pure function tests for calculate_reward() and counter_deltas().
"""

from __future__ import annotations

import pytest

from levelup.engine.events import (
    Comment,
    DailyParticipate,
    Post,
    SolveFail,
    SolveSuccess,
    UnknownEvent,
)
from levelup.engine.reward import Reward, calculate_reward, counter_deltas


class TestCalculateReward:
    def test_daily_participate(self):
        assert calculate_reward(DailyParticipate()) == Reward(15, 10)

    def test_solve_fail(self):
        assert calculate_reward(SolveFail()) == Reward(10, 0)

    def test_solve_success_base(self):
        assert calculate_reward(SolveSuccess()) == Reward(30, 20)

    def test_solve_success_used_hint_gets_no_bonus(self):
        assert calculate_reward(SolveSuccess(used_hint=True)) == Reward(30, 20)

    @pytest.mark.parametrize(
        ("used_hint", "question_count", "xp"),
        [
            (False, 3, 90),     # 30 + 20 + 40
            (False, 4, 65),     # 30 + 20 + 15
            (False, 10, 65),
            (False, 11, 50),    # 30 + 20
            (True, 0, 70),      # 30 + 40
            (None, 7, 45),      # 30 + 15
        ],
    )
    def test_solve_success_bonuses(self, used_hint, question_count, xp):
        event = SolveSuccess(used_hint=used_hint, question_count=question_count)
        assert calculate_reward(event) == Reward(xp, 20)

    def test_unknown_event_rewards_nothing(self):
        reward = calculate_reward(UnknownEvent("nohint_solve_bonus"))
        assert reward.is_empty


class TestDailyCaps:
    def test_comment_under_cap(self):
        assert calculate_reward(Comment(), daily_comment_xp=0).xp == 2

    def test_comment_partial_at_cap_edge(self):
        assert calculate_reward(Comment(), daily_comment_xp=39).xp == 1

    def test_comment_at_cap(self):
        assert calculate_reward(Comment(), daily_comment_xp=40).is_empty

    def test_post_partial_at_cap_edge(self):
        assert calculate_reward(Post(), daily_post_xp=45).xp == 5

    def test_post_at_cap(self):
        assert calculate_reward(Post(), daily_post_xp=50).is_empty

    def test_over_cap_never_negative(self):
        assert calculate_reward(Post(), daily_post_xp=70).xp == 0


class TestCounterDeltas:
    def test_daily(self):
        event = DailyParticipate()
        assert counter_deltas(event, calculate_reward(event)) == {
            "total_participations": 1,
        }

    def test_solve_success_with_both_bonuses(self):
        event = SolveSuccess(used_hint=False, question_count=2)
        assert counter_deltas(event, calculate_reward(event)) == {
            "total_solves": 1,
            "nohint_solves": 1,
            "under3q_solves": 1,
        }

    def test_solve_success_undeclared_fields(self):
        event = SolveSuccess()
        assert counter_deltas(event, calculate_reward(event)) == {"total_solves": 1}

    def test_comment_tracks_awarded_xp(self):
        event = Comment()
        reward = calculate_reward(event, daily_comment_xp=39)
        assert counter_deltas(event, reward) == {
            "total_comments": 1,
            "daily_comment_xp": 1,
        }

    def test_solve_fail_has_no_counters(self):
        event = SolveFail()
        assert counter_deltas(event, calculate_reward(event)) == {}
