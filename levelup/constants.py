"""
levelup.constants — Shared Constants & the Level Curve
=======================================================

Single source of truth for the leveling formula.  Import from here
instead of duplicating it in services, routes, or tests.
"""

from __future__ import annotations

from levelup.exceptions import InvariantViolation

# ---------------------------------------------------------------------------
# Rarity tiers (achievement & title catalogs)
# ---------------------------------------------------------------------------
RARITIES: tuple[str, ...] = ("common", "rare", "epic", "legendary")

# Hard cap on level_of() iterations.  Reaching it means the XP value is
# far outside anything the reward tables can produce.
MAX_LEVEL_ITERATIONS = 1000


# ---------------------------------------------------------------------------
# Leveling formula — THE single canonical implementation
# ---------------------------------------------------------------------------
def required_xp(level: int) -> int:
    """XP needed to advance **from** *level* to ``level + 1``.

    ::

        required = 100 * level
    """
    return 100 * level


def level_of(xp: int) -> int:
    """Level reached with *xp* accumulated experience.

    Walks the curve from level 1: level 1 → 2 costs 100 XP, 2 → 3 costs
    200 XP (300 total), 3 → 4 costs 300 XP (600 total), and so on.

    Raises
    ------
    InvariantViolation
        If the walk exceeds :data:`MAX_LEVEL_ITERATIONS` steps.
    """
    level = 1
    accumulated = 0
    for _ in range(MAX_LEVEL_ITERATIONS):
        step = required_xp(level)
        if accumulated + step > xp:
            return level
        accumulated += step
        level += 1
    raise InvariantViolation(
        f"level_of({xp}) exceeded {MAX_LEVEL_ITERATIONS} iterations",
        operation="level_of",
    )


def cumulative_xp_for_level(level: int) -> int:
    """Total XP needed to reach *level* from zero: ``100 * (1 + … + (level - 1))``."""
    if level <= 1:
        return 0
    return 100 * (level - 1) * level // 2


def xp_to_next_level(xp: int) -> int:
    """XP still missing before *xp* reaches the next level."""
    return cumulative_xp_for_level(level_of(xp) + 1) - xp
