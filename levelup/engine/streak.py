"""
levelup.engine.streak — Consecutive-Day Streak Tracker
=======================================================

Pure state machine over ``(last_participation_date, current, best)``,
advanced only by ``daily_participate`` events.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True, slots=True)
class StreakState:
    current: int = 0
    best: int = 0
    last_date: date | None = None


def advance_streak(state: StreakState, today: date) -> StreakState:
    """Return the streak after a participation on *today*.

    * no prior date   → 1
    * gap of 1 day    → current + 1
    * gap > 1 day     → 1 (streak broken)
    * same day        → unchanged

    A last date in the future (clock moved backwards) counts as same day.
    """
    if state.last_date is None:
        current = 1
    else:
        gap = (today - state.last_date).days
        if gap == 1:
            current = state.current + 1
        elif gap > 1:
            current = 1
        else:
            current = state.current

    return StreakState(
        current=current,
        best=max(state.best, current),
        last_date=today if state.last_date is None else max(today, state.last_date),
    )
