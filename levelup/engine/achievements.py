"""
levelup.engine.achievements — Achievement Condition Registry
=============================================================

Handler-registry implementation of achievement condition evaluation.
Each :class:`AchievementCondition` maps to a pure handler that receives
the catalog's ``condition_value`` and an :class:`AchievementContext`.

Two separate read paths:

* ``ctx.progress`` — counters cached on ``user_progress`` (streak,
  participations, no-hint / ≤3-question solves, level).
* ``ctx.ground_truth`` — counts taken from the tables that own the data
  (solves, comments, posts).  The cached counters for those can drift,
  so achievements never read them.

This module is pure calculation — no database I/O.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from levelup.database.models import AchievementCondition

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Context — passed to every condition handler
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class ProgressCounters:
    """Snapshot of the bookkeeping counters on ``user_progress``."""

    level: int = 1
    current_streak: int = 0
    total_participations: int = 0
    nohint_solves: int = 0
    under3q_solves: int = 0


@dataclass(frozen=True, slots=True)
class GroundTruthCounts:
    """Counts from the owning collections (authoritative)."""

    solves: int = 0
    comments: int = 0
    posts: int = 0


@dataclass(frozen=True, slots=True)
class AchievementContext:
    progress: ProgressCounters = ProgressCounters()
    ground_truth: GroundTruthCounts = GroundTruthCounts()


# ---------------------------------------------------------------------------
# Condition handlers — pure functions (value, ctx) → bool
# ---------------------------------------------------------------------------
def _streak_gte(value: int, ctx: AchievementContext) -> bool:
    return ctx.progress.current_streak >= value


def _participations_gte(value: int, ctx: AchievementContext) -> bool:
    return ctx.progress.total_participations >= value


def _nohint_solves_gte(value: int, ctx: AchievementContext) -> bool:
    return ctx.progress.nohint_solves >= value


def _under3q_solves_gte(value: int, ctx: AchievementContext) -> bool:
    return ctx.progress.under3q_solves >= value


def _level_gte(value: int, ctx: AchievementContext) -> bool:
    return ctx.progress.level >= value


def _solve_count_gte(value: int, ctx: AchievementContext) -> bool:
    """Authoritative: counts rows in ``user_problem_solves``."""
    return ctx.ground_truth.solves >= value


def _comments_gte(value: int, ctx: AchievementContext) -> bool:
    """Authoritative: counts rows in ``problem_comments``."""
    return ctx.ground_truth.comments >= value


def _posts_gte(value: int, ctx: AchievementContext) -> bool:
    """Authoritative: counts rows in ``posts``."""
    return ctx.ground_truth.posts >= value


# ---------------------------------------------------------------------------
# Handler registry
# ---------------------------------------------------------------------------
CONDITION_HANDLERS: dict[str, Callable[[int, AchievementContext], bool]] = {
    AchievementCondition.STREAK_GTE: _streak_gte,
    AchievementCondition.DAILY_PARTICIPATION_COUNT_GTE: _participations_gte,
    AchievementCondition.SOLVE_COUNT_GTE: _solve_count_gte,
    AchievementCondition.NOHINT_SOLVE_COUNT_GTE: _nohint_solves_gte,
    AchievementCondition.UNDER3Q_SOLVE_COUNT_GTE: _under3q_solves_gte,
    AchievementCondition.LEVEL_GTE: _level_gte,
    AchievementCondition.TOTAL_COMMENTS_GTE: _comments_gte,
    AchievementCondition.TOTAL_POSTS_GTE: _posts_gte,
}

# Conditions that need the ground-truth counts; callers can skip the
# count queries when no pending achievement uses one of these.
GROUND_TRUTH_CONDITIONS: frozenset[str] = frozenset({
    AchievementCondition.SOLVE_COUNT_GTE,
    AchievementCondition.TOTAL_COMMENTS_GTE,
    AchievementCondition.TOTAL_POSTS_GTE,
})


# ---------------------------------------------------------------------------
# Main check function
# ---------------------------------------------------------------------------
def check_achievements(
    definitions: Iterable[Any],
    ctx: AchievementContext,
    already_earned: set[int],
) -> list[Any]:
    """Return the definitions whose condition *ctx* now satisfies.

    Parameters
    ----------
    definitions : Achievement catalog rows (anything with ``id``,
        ``condition_type``, ``condition_value``).
    ctx : AchievementContext with the player's current state.
    already_earned : Achievement IDs the player already has.
    """
    newly_earned: list[Any] = []

    for definition in definitions:
        if definition.id in already_earned:
            continue

        handler = CONDITION_HANDLERS.get(definition.condition_type)
        if handler is None:
            logger.warning(
                "Unknown achievement condition %r (id=%d) — skipped",
                definition.condition_type, definition.id,
            )
            continue

        if definition.condition_value is None:
            continue

        if handler(definition.condition_value, ctx):
            newly_earned.append(definition)

    return newly_earned
