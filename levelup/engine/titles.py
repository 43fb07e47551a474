"""
levelup.engine.titles — Title Unlock Registry
==============================================

Same shape as :mod:`levelup.engine.achievements`, for titles.  Only
``level``, ``streak`` and the two solve-count variants are evaluated
automatically; ``achievement`` titles arrive through an achievement's
``reward_title_id`` and ``manual`` titles through an admin grant.

Pure calculation — no database I/O.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

from levelup.database.models import TitleUnlockType
from levelup.engine.achievements import ProgressCounters

UNLOCK_HANDLERS: dict[str, Callable[[int, ProgressCounters], bool]] = {
    TitleUnlockType.LEVEL: lambda value, p: p.level >= value,
    TitleUnlockType.STREAK: lambda value, p: p.current_streak >= value,
    TitleUnlockType.NOHINT_SOLVE_COUNT: lambda value, p: p.nohint_solves >= value,
    TitleUnlockType.UNDER3Q_SOLVE_COUNT: lambda value, p: p.under3q_solves >= value,
    # ACHIEVEMENT and MANUAL are never auto-unlocked
}


def check_titles(
    definitions: Iterable[Any],
    progress: ProgressCounters,
    already_owned: set[int],
) -> list[Any]:
    """Return the title definitions *progress* now qualifies for."""
    unlocked: list[Any] = []
    for title in definitions:
        if title.id in already_owned:
            continue
        handler = UNLOCK_HANDLERS.get(title.unlock_type)
        if handler is None:
            continue
        if handler(title.unlock_value or 0, progress):
            unlocked.append(title)
    return unlocked
