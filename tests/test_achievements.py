"""
tests/test_achievements.py — Unit Tests for the Achievement & Title Registries
===============================================================================

Tests the handler-registry condition evaluation with AchievementContext,
the split between cached counters and ground-truth counts, and title
unlock rules.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from levelup.database.models import AchievementCondition, TitleUnlockType
from levelup.engine.achievements import (
    CONDITION_HANDLERS,
    AchievementContext,
    GroundTruthCounts,
    ProgressCounters,
    check_achievements,
)
from levelup.engine.titles import check_titles


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _ach(id: int, condition_type: str, condition_value: int | None) -> MagicMock:
    """Create a mock Achievement row."""
    a = MagicMock()
    a.id = id
    a.condition_type = condition_type
    a.condition_value = condition_value
    a.name = f"achievement_{id}"
    return a


def _title(id: int, unlock_type: str, unlock_value: int | None) -> MagicMock:
    t = MagicMock()
    t.id = id
    t.unlock_type = unlock_type
    t.unlock_value = unlock_value
    return t


def _ctx(ground_truth: GroundTruthCounts | None = None, **progress) -> AchievementContext:
    return AchievementContext(
        progress=ProgressCounters(**progress),
        ground_truth=ground_truth or GroundTruthCounts(),
    )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------
def test_every_condition_has_a_handler():
    assert set(CONDITION_HANDLERS) == {c.value for c in AchievementCondition}


# ---------------------------------------------------------------------------
# check_achievements
# ---------------------------------------------------------------------------
class TestCheckAchievements:
    @pytest.mark.parametrize(
        ("condition", "progress", "ground_truth"),
        [
            (AchievementCondition.STREAK_GTE, {"current_streak": 3}, None),
            (AchievementCondition.DAILY_PARTICIPATION_COUNT_GTE,
             {"total_participations": 3}, None),
            (AchievementCondition.NOHINT_SOLVE_COUNT_GTE, {"nohint_solves": 3}, None),
            (AchievementCondition.UNDER3Q_SOLVE_COUNT_GTE, {"under3q_solves": 3}, None),
            (AchievementCondition.LEVEL_GTE, {"level": 3}, None),
            (AchievementCondition.SOLVE_COUNT_GTE, {}, GroundTruthCounts(solves=3)),
            (AchievementCondition.TOTAL_COMMENTS_GTE, {}, GroundTruthCounts(comments=3)),
            (AchievementCondition.TOTAL_POSTS_GTE, {}, GroundTruthCounts(posts=3)),
        ],
    )
    def test_threshold_inclusive(self, condition, progress, ground_truth):
        ctx = _ctx(ground_truth, **progress)
        assert check_achievements([_ach(1, condition, 3)], ctx, set())
        assert not check_achievements([_ach(1, condition, 4)], ctx, set())

    def test_solve_count_ignores_cached_counters(self):
        """solve_count_gte reads ground truth, never the progress cache."""
        ctx = _ctx(GroundTruthCounts(solves=0), nohint_solves=50, under3q_solves=50)
        assert check_achievements(
            [_ach(1, AchievementCondition.SOLVE_COUNT_GTE, 1)], ctx, set(),
        ) == []

    def test_already_earned_skipped(self):
        ctx = _ctx(level=10)
        defs = [_ach(1, AchievementCondition.LEVEL_GTE, 5)]
        assert check_achievements(defs, ctx, {1}) == []

    def test_unknown_condition_skipped(self, caplog):
        ctx = _ctx(level=10)
        defs = [_ach(1, "karma_gte", 1), _ach(2, AchievementCondition.LEVEL_GTE, 5)]
        result = check_achievements(defs, ctx, set())
        assert [a.id for a in result] == [2]
        assert "karma_gte" in caplog.text

    def test_missing_condition_value_skipped(self):
        ctx = _ctx(level=10)
        assert check_achievements(
            [_ach(1, AchievementCondition.LEVEL_GTE, None)], ctx, set(),
        ) == []

    def test_preserves_catalog_order(self):
        ctx = _ctx(level=10, current_streak=10)
        defs = [
            _ach(5, AchievementCondition.STREAK_GTE, 1),
            _ach(2, AchievementCondition.LEVEL_GTE, 1),
        ]
        assert [a.id for a in check_achievements(defs, ctx, set())] == [5, 2]


# ---------------------------------------------------------------------------
# check_titles
# ---------------------------------------------------------------------------
class TestCheckTitles:
    def test_level_and_streak(self):
        progress = ProgressCounters(level=5, current_streak=7)
        defs = [
            _title(1, TitleUnlockType.LEVEL, 5),
            _title(2, TitleUnlockType.LEVEL, 6),
            _title(3, TitleUnlockType.STREAK, 7),
        ]
        assert [t.id for t in check_titles(defs, progress, set())] == [1, 3]

    def test_solve_count_variants(self):
        progress = ProgressCounters(nohint_solves=10, under3q_solves=4)
        defs = [
            _title(1, TitleUnlockType.NOHINT_SOLVE_COUNT, 10),
            _title(2, TitleUnlockType.UNDER3Q_SOLVE_COUNT, 5),
        ]
        assert [t.id for t in check_titles(defs, progress, set())] == [1]

    def test_achievement_and_manual_never_auto_unlock(self):
        progress = ProgressCounters(level=99, current_streak=99)
        defs = [
            _title(1, TitleUnlockType.ACHIEVEMENT, None),
            _title(2, TitleUnlockType.MANUAL, None),
        ]
        assert check_titles(defs, progress, set()) == []

    def test_owned_titles_skipped(self):
        progress = ProgressCounters(level=5)
        defs = [_title(1, TitleUnlockType.LEVEL, 2)]
        assert check_titles(defs, progress, {1}) == []
