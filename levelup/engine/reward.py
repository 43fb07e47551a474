"""
levelup.engine.reward — Reward Calculation
===========================================

Pure calculation: maps a typed event plus the player's (already
quota-reset) daily counters to an XP/points award.  No DB I/O.

Reward table::

    daily_participate   15 xp, 10 points
    solve_success       30 xp, 20 points
                        +20 xp  no hint used
                        +40 xp  solved in ≤ 3 questions
                        +15 xp  solved in ≤ 10 questions
    solve_fail          10 xp
    comment              2 xp   (max 40 xp / day)
    post                10 xp   (max 50 xp / day)
    anything else        nothing
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from levelup.engine.daily import DAILY_COMMENT_XP_CAP, DAILY_POST_XP_CAP
from levelup.engine.events import (
    Comment,
    DailyParticipate,
    Post,
    ProgressEvent,
    SolveFail,
    SolveSuccess,
)

logger = logging.getLogger(__name__)

__all__ = [
    "Reward",
    "calculate_reward",
    "counter_deltas",
]

DAILY_PARTICIPATE_XP = 15
DAILY_PARTICIPATE_POINTS = 10

SOLVE_BASE_XP = 30
SOLVE_POINTS = 20
NO_HINT_BONUS_XP = 20
UNDER_3Q_BONUS_XP = 40
UNDER_10Q_BONUS_XP = 15

SOLVE_FAIL_XP = 10

COMMENT_XP = 2
POST_XP = 10


# ---------------------------------------------------------------------------
# Reward — output of the calculator
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class Reward:
    xp: int = 0
    points: int = 0

    @property
    def is_empty(self) -> bool:
        return self.xp == 0 and self.points == 0


def _solve_success_xp(event: SolveSuccess) -> int:
    xp = SOLVE_BASE_XP
    if event.used_hint is False:
        xp += NO_HINT_BONUS_XP
    if event.question_count is not None:
        if event.question_count <= 3:
            xp += UNDER_3Q_BONUS_XP
        elif event.question_count <= 10:
            xp += UNDER_10Q_BONUS_XP
    return xp


def calculate_reward(
    event: ProgressEvent,
    *,
    daily_comment_xp: int = 0,
    daily_post_xp: int = 0,
) -> Reward:
    """Compute the award for *event*.

    This is a PURE function.  ``daily_comment_xp`` / ``daily_post_xp``
    are today's already-earned amounts, used to enforce the daily caps.
    """
    if isinstance(event, DailyParticipate):
        return Reward(DAILY_PARTICIPATE_XP, DAILY_PARTICIPATE_POINTS)
    if isinstance(event, SolveSuccess):
        return Reward(_solve_success_xp(event), SOLVE_POINTS)
    if isinstance(event, SolveFail):
        return Reward(SOLVE_FAIL_XP, 0)
    if isinstance(event, Comment):
        remaining = max(0, DAILY_COMMENT_XP_CAP - daily_comment_xp)
        return Reward(min(COMMENT_XP, remaining), 0)
    if isinstance(event, Post):
        remaining = max(0, DAILY_POST_XP_CAP - daily_post_xp)
        return Reward(min(POST_XP, remaining), 0)
    logger.debug("No reward rule for event type %r", event.event_type)
    return Reward()


def counter_deltas(event: ProgressEvent, reward: Reward) -> dict[str, int]:
    """UserProgress column → increment for a rewarded *event*."""
    if isinstance(event, DailyParticipate):
        return {"total_participations": 1}
    if isinstance(event, SolveSuccess):
        deltas = {"total_solves": 1}
        if event.used_hint is False:
            deltas["nohint_solves"] = 1
        if event.question_count is not None and event.question_count <= 3:
            deltas["under3q_solves"] = 1
        return deltas
    if isinstance(event, Comment):
        return {"total_comments": 1, "daily_comment_xp": reward.xp}
    if isinstance(event, Post):
        return {"total_posts": 1, "daily_post_xp": reward.xp}
    return {}
