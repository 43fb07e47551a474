"""
levelup.services.progress_service — Progression Orchestrator
=============================================================

Single entry point for gameplay events: :func:`apply_event` sequences
the daily quota reset, reward calculation, counter/streak updates, the
XP ledger, and the achievement/title unlock cascade for one player in
one transaction.

Concurrency:
  * an in-process per-user lock (:class:`UserLockRegistry`) is held for
    the whole call, and the progress row is read ``FOR UPDATE``;
  * unlock inserts go through a SAVEPOINT and treat ``IntegrityError`` on
    the composite primary key as "already unlocked" — the reward for a
    conflicting unlock is never applied.

Failures: any SQLAlchemy error rolls the whole call back and is reported
as ``EventResult(success=False)``.  A missing progress row raises
:class:`ProgressNotFound`.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from levelup.config import DEFAULT_MAX_UNLOCK_PASSES
from levelup.constants import level_of, xp_to_next_level
from levelup.database.models import (
    Achievement,
    CommunityPost,
    GameUser,
    ProblemComment,
    ProblemSolve,
    Title,
    UserAchievement,
    UserProgress,
    UserTitle,
    XPEvent,
)
from levelup.engine.achievements import (
    GROUND_TRUTH_CONDITIONS,
    AchievementContext,
    GroundTruthCounts,
    ProgressCounters,
    check_achievements,
)
from levelup.engine.daily import ServiceClock, reset_daily_quota
from levelup.engine.events import DailyParticipate, ProgressEvent
from levelup.engine.locks import UserLockRegistry, get_default_registry
from levelup.engine.reward import calculate_reward, counter_deltas
from levelup.engine.streak import StreakState, advance_streak
from levelup.engine.titles import check_titles
from levelup.exceptions import (
    InvariantViolation,
    ProgressNotFound,
    StoreWriteFailure,
)

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result types (detached snapshots, safe to use after the session closes)
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class UnlockedAchievement:
    id: int
    name: str
    description: str
    rarity: str
    condition_type: str
    condition_value: int
    reward_xp: int
    reward_points: int
    reward_title_id: int | None
    icon: str | None

    @classmethod
    def from_row(cls, row: Achievement) -> UnlockedAchievement:
        return cls(
            id=row.id,
            name=row.name,
            description=row.description,
            rarity=row.rarity,
            condition_type=row.condition_type,
            condition_value=row.condition_value,
            reward_xp=row.reward_xp or 0,
            reward_points=row.reward_points or 0,
            reward_title_id=row.reward_title_id,
            icon=row.icon,
        )


@dataclass(frozen=True, slots=True)
class UnlockedTitle:
    id: int
    name: str
    description: str | None
    rarity: str
    unlock_type: str
    unlock_value: int | None
    icon: str | None

    @classmethod
    def from_row(cls, row: Title) -> UnlockedTitle:
        return cls(
            id=row.id,
            name=row.name,
            description=row.description,
            rarity=row.rarity,
            unlock_type=row.unlock_type,
            unlock_value=row.unlock_value,
            icon=row.icon,
        )


@dataclass
class EventResult:
    """Outcome of :func:`apply_event`."""

    success: bool
    new_level: int = 1
    gained_xp: int = 0
    gained_points: int = 0
    leveled_up: bool = False
    unlocked_titles: list[UnlockedTitle] = field(default_factory=list)
    unlocked_achievements: list[UnlockedAchievement] = field(default_factory=list)
    error: str | None = None

    @classmethod
    def failure(cls, error: str) -> EventResult:
        return cls(success=False, error=error)

    def to_dict(self) -> dict[str, Any]:
        """Wire shape consumed by the game UI."""
        out: dict[str, Any] = {
            "success": self.success,
            "newLevel": self.new_level,
            "gainedXP": self.gained_xp,
            "gainedPoints": self.gained_points,
            "leveledUp": self.leveled_up,
            "unlockedTitles": [asdict(t) for t in self.unlocked_titles],
            "unlockedAchievements": [asdict(a) for a in self.unlocked_achievements],
        }
        if self.error is not None:
            out["error"] = self.error
        return out


# ---------------------------------------------------------------------------
# Users & progress rows
# ---------------------------------------------------------------------------
def create_progress(session: Session, user_id: str, today: date) -> UserProgress:
    """Insert the initial progress row (level 1, 0 XP, 0 points)."""
    progress = UserProgress(
        user_id=user_id,
        level=1,
        xp=0,
        points=0,
        current_streak=0,
        best_streak=0,
        total_participations=0,
        total_solves=0,
        nohint_solves=0,
        under3q_solves=0,
        total_comments=0,
        total_posts=0,
        daily_comment_xp=0,
        daily_post_xp=0,
        daily_reset_date=today,
    )
    session.add(progress)
    session.flush()
    return progress


def _get_or_create_user(
    engine: Engine,
    *,
    column,
    value: str,
    nickname: str,
    clock: ServiceClock | None,
    **identity: str,
) -> GameUser:
    clock = clock or ServiceClock()
    with Session(engine, expire_on_commit=False) as session:
        user = session.scalar(select(GameUser).where(column == value))
        if user is None:
            user = GameUser(nickname=nickname, **identity)
            try:
                with session.begin_nested():   # SAVEPOINT
                    session.add(user)
                    session.flush()
                    create_progress(session, user.id, clock.today())
            except IntegrityError:
                # Another request created the same identity first.
                user = session.scalar(select(GameUser).where(column == value))
                if user is None:
                    raise
            else:
                logger.info("Created game user %s (%s)", user.id, nickname)
        session.commit()
        session.expunge(user)
        return user


def get_or_create_user_by_guest_id(
    engine: Engine,
    guest_id: str,
    nickname: str | None = None,
    *,
    clock: ServiceClock | None = None,
) -> GameUser:
    """Fetch or create the player for an anonymous browser *guest_id*."""
    return _get_or_create_user(
        engine,
        column=GameUser.guest_id,
        value=guest_id,
        nickname=nickname or f"guest{guest_id[:6]}",
        clock=clock,
        guest_id=guest_id,
    )


def get_or_create_user_by_auth_id(
    engine: Engine,
    auth_user_id: str,
    nickname: str | None = None,
    *,
    clock: ServiceClock | None = None,
) -> GameUser:
    """Fetch or create the player for an authenticated account."""
    return _get_or_create_user(
        engine,
        column=GameUser.auth_user_id,
        value=auth_user_id,
        nickname=nickname or f"user{auth_user_id[:8]}",
        clock=clock,
        auth_user_id=auth_user_id,
    )


def _load_progress_for_update(session: Session, user_id: str) -> UserProgress:
    progress = session.scalar(
        select(UserProgress).where(UserProgress.user_id == user_id).with_for_update()
    )
    if progress is None:
        raise ProgressNotFound(user_id, operation="apply_event")
    return progress


# ---------------------------------------------------------------------------
# Read paths
# ---------------------------------------------------------------------------
def get_earned_achievement_ids(session: Session, user_id: str) -> set[int]:
    rows = session.scalars(
        select(UserAchievement.achievement_id).where(UserAchievement.user_id == user_id)
    ).all()
    return set(rows)


def get_owned_title_ids(session: Session, user_id: str) -> set[int]:
    rows = session.scalars(
        select(UserTitle.title_id).where(UserTitle.user_id == user_id)
    ).all()
    return set(rows)


def get_ground_truth_counts(session: Session, user_id: str) -> GroundTruthCounts:
    """Count the player's solves, comments and posts in their owning tables.

    Those tables are keyed by the account id; guests have no rows there.
    """
    auth_user_id = session.scalar(
        select(GameUser.auth_user_id).where(GameUser.id == user_id)
    )
    if not auth_user_id:
        return GroundTruthCounts()

    def _count(model) -> int:
        return session.scalar(
            select(func.count()).select_from(model).where(model.user_id == auth_user_id)
        ) or 0

    return GroundTruthCounts(
        solves=_count(ProblemSolve),
        comments=_count(ProblemComment),
        posts=_count(CommunityPost),
    )


def _progress_counters(progress: UserProgress) -> ProgressCounters:
    return ProgressCounters(
        level=progress.level,
        current_streak=progress.current_streak,
        total_participations=progress.total_participations,
        nohint_solves=progress.nohint_solves,
        under3q_solves=progress.under3q_solves,
    )


# ---------------------------------------------------------------------------
# Idempotent unlock ledger
# ---------------------------------------------------------------------------
def _insert_once(session: Session, row: UserAchievement | UserTitle) -> bool:
    """Insert an unlock row; False if the (user, item) pair already exists."""
    try:
        with session.begin_nested():   # SAVEPOINT
            session.add(row)
            session.flush()
    except IntegrityError:
        # Duplicate unlock: the SAVEPOINT was rolled back, outer txn is alive.
        logger.debug("Duplicate unlock ignored: %r", row)
        return False
    return True


def evaluate_achievements(
    session: Session, progress: UserProgress
) -> tuple[list[Achievement], list[Title]]:
    """Unlock every achievement *progress* now satisfies.

    Applies the summed bonus XP/points in one update, recomputes the
    level, and grants reward titles.  Returns ``(achievements, titles)``
    actually inserted by this call.
    """
    earned = get_earned_achievement_ids(session, progress.user_id)
    pending = [
        a for a in session.scalars(select(Achievement).order_by(Achievement.id)).all()
        if a.id not in earned
    ]
    if not pending:
        return [], []

    if any(a.condition_type in GROUND_TRUTH_CONDITIONS for a in pending):
        ground_truth = get_ground_truth_counts(session, progress.user_id)
    else:
        ground_truth = GroundTruthCounts()

    ctx = AchievementContext(
        progress=_progress_counters(progress), ground_truth=ground_truth,
    )
    unlocked = [
        a for a in check_achievements(pending, ctx, earned)
        if _insert_once(session, UserAchievement(
            user_id=progress.user_id, achievement_id=a.id,
        ))
    ]
    if not unlocked:
        return [], []

    bonus_xp = sum(a.reward_xp or 0 for a in unlocked)
    bonus_points = sum(a.reward_points or 0 for a in unlocked)
    if bonus_xp or bonus_points:
        progress.xp += bonus_xp
        progress.points += bonus_points
        progress.level = level_of(progress.xp)

    titles: list[Title] = []
    for achievement in unlocked:
        logger.info(
            "Achievement unlocked: %s (id=%d) for user %s",
            achievement.name, achievement.id, progress.user_id,
        )
        if achievement.reward_title_id is None:
            continue
        if _insert_once(session, UserTitle(
            user_id=progress.user_id, title_id=achievement.reward_title_id,
        )):
            title = session.get(Title, achievement.reward_title_id)
            if title is not None:
                titles.append(title)

    session.flush()
    return unlocked, titles


def evaluate_titles(session: Session, progress: UserProgress) -> list[Title]:
    """Unlock every auto-unlockable title *progress* now qualifies for."""
    owned = get_owned_title_ids(session, progress.user_id)
    catalog = session.scalars(select(Title).order_by(Title.id)).all()
    unlocked = [
        t for t in check_titles(catalog, _progress_counters(progress), owned)
        if _insert_once(session, UserTitle(user_id=progress.user_id, title_id=t.id))
    ]
    for title in unlocked:
        logger.info(
            "Title unlocked: %s (id=%d) for user %s",
            title.name, title.id, progress.user_id,
        )
    return unlocked


def run_unlock_passes(
    session: Session, progress: UserProgress, max_passes: int
) -> tuple[list[Achievement], list[Title]]:
    """Evaluate achievements then titles until a pass unlocks nothing.

    Achievement bonus XP can level the player up, which can satisfy a
    ``level_gte`` achievement or a level title on the next pass.

    *max_passes* bounds the passes that may unlock something; one more
    pass is always allowed to confirm nothing is left.

    Raises
    ------
    InvariantViolation
        If the pass after *max_passes* unlocking passes still unlocks.
    """
    all_achievements: list[Achievement] = []
    all_titles: list[Title] = []
    for _ in range(max_passes + 1):
        achievements, reward_titles = evaluate_achievements(session, progress)
        titles = evaluate_titles(session, progress)
        all_achievements.extend(achievements)
        all_titles.extend(reward_titles)
        all_titles.extend(titles)
        if not achievements and not reward_titles and not titles:
            return all_achievements, all_titles
    raise InvariantViolation(
        f"Unlock evaluation did not settle within {max_passes} passes",
        user_id=progress.user_id,
        operation="run_unlock_passes",
    )


# ---------------------------------------------------------------------------
# apply_event
# ---------------------------------------------------------------------------
def _apply_event_locked(
    session: Session,
    user_id: str,
    event: ProgressEvent,
    today: date,
    max_unlock_passes: int,
) -> EventResult:
    progress = _load_progress_for_update(session, user_id)
    start_level = progress.level

    # 1. Daily quota reset (before any reward is computed)
    reset_daily_quota(progress, today)

    # 2. Reward
    reward = calculate_reward(
        event,
        daily_comment_xp=progress.daily_comment_xp,
        daily_post_xp=progress.daily_post_xp,
    )
    if reward.is_empty:
        logger.debug("Zero reward for %s on %s — no-op", event.event_type, user_id)
        return EventResult(success=True, new_level=progress.level)

    # 3. XP / level / points / counters
    progress.xp += reward.xp
    progress.level = level_of(progress.xp)
    progress.points += reward.points
    for column, delta in counter_deltas(event, reward).items():
        setattr(progress, column, getattr(progress, column) + delta)

    # Event XP alone decides the level-up flag; bonus XP does not.
    leveled_up = progress.level > start_level
    if leveled_up:
        logger.info(
            "Level up: user %s %d → %d", user_id, start_level, progress.level,
        )

    # 4. Streak (daily participation only)
    if isinstance(event, DailyParticipate):
        streak = advance_streak(
            StreakState(
                current=progress.current_streak,
                best=progress.best_streak,
                last_date=progress.last_participation_date,
            ),
            today,
        )
        progress.current_streak = streak.current
        progress.best_streak = streak.best
        progress.last_participation_date = streak.last_date

    # 5. Ledger
    session.add(XPEvent(
        user_id=user_id,
        event_type=event.event_type,
        xp_gained=reward.xp,
        points_gained=reward.points,
        metadata_=event.to_metadata(),
    ))
    session.flush()

    # 6. Unlock cascade
    achievements, titles = run_unlock_passes(session, progress, max_unlock_passes)

    return EventResult(
        success=True,
        new_level=progress.level,
        gained_xp=reward.xp + sum(a.reward_xp or 0 for a in achievements),
        gained_points=reward.points + sum(a.reward_points or 0 for a in achievements),
        leveled_up=leveled_up,
        unlocked_titles=[UnlockedTitle.from_row(t) for t in titles],
        unlocked_achievements=[UnlockedAchievement.from_row(a) for a in achievements],
    )


def _apply_in_transaction(
    engine: Engine,
    user_id: str,
    event: ProgressEvent,
    today: date,
    max_unlock_passes: int,
) -> EventResult:
    """One transaction around the event; store errors become StoreWriteFailure."""
    try:
        with Session(engine) as session, session.begin():
            return _apply_event_locked(
                session, user_id, event, today, max_unlock_passes,
            )
    except SQLAlchemyError as exc:
        raise StoreWriteFailure(
            f"Failed to save progress: {exc.__class__.__name__}: {exc}",
            user_id=user_id,
            operation="apply_event",
        ) from exc


def apply_event(
    engine: Engine,
    user_id: str,
    event: ProgressEvent,
    *,
    clock: ServiceClock | None = None,
    locks: UserLockRegistry | None = None,
    max_unlock_passes: int = DEFAULT_MAX_UNLOCK_PASSES,
) -> EventResult:
    """Apply one gameplay *event* to *user_id*'s progress.

    Returns an :class:`EventResult`; ``success=False`` means nothing was
    persisted and the caller may retry the whole call.  Its ``error`` is
    the generic user-facing message; the details go to the log.

    Raises
    ------
    ProgressNotFound
        If the player has no progress row.
    """
    clock = clock or ServiceClock()
    locks = locks or get_default_registry()

    with locks.hold(user_id):
        try:
            return _apply_in_transaction(
                engine, user_id, event, clock.today(), max_unlock_passes,
            )
        except (StoreWriteFailure, InvariantViolation) as exc:
            logger.exception(
                "apply_event failed for user %s in %s: %s",
                user_id, exc.operation, exc.message,
            )
            return EventResult.failure(exc.user_message)


# ---------------------------------------------------------------------------
# Progress summary & title selection
# ---------------------------------------------------------------------------
@dataclass
class ProgressSummary:
    user_id: str
    level: int
    xp: int
    xp_to_next_level: int
    points: int
    current_streak: int
    best_streak: int
    last_participation_date: date | None
    selected_title_id: int | None
    titles: list[UnlockedTitle] = field(default_factory=list)
    achievements: list[UnlockedAchievement] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "level": self.level,
            "xp": self.xp,
            "xpToNextLevel": self.xp_to_next_level,
            "points": self.points,
            "currentStreak": self.current_streak,
            "bestStreak": self.best_streak,
            "lastParticipationDate": (
                self.last_participation_date.isoformat()
                if self.last_participation_date else None
            ),
            "selectedTitleId": self.selected_title_id,
            "titles": [asdict(t) for t in self.titles],
            "achievements": [asdict(a) for a in self.achievements],
        }


def get_progress_summary(engine: Engine, user_id: str) -> ProgressSummary:
    """Read-only snapshot of a player's progress, titles and achievements."""
    with Session(engine) as session:
        progress = session.get(UserProgress, user_id)
        if progress is None:
            raise ProgressNotFound(user_id, operation="get_progress_summary")

        titles = session.scalars(
            select(Title)
            .join(UserTitle, UserTitle.title_id == Title.id)
            .where(UserTitle.user_id == user_id)
            .order_by(UserTitle.unlocked_at, Title.id)
        ).all()
        achievements = session.scalars(
            select(Achievement)
            .join(UserAchievement, UserAchievement.achievement_id == Achievement.id)
            .where(UserAchievement.user_id == user_id)
            .order_by(UserAchievement.completed_at, Achievement.id)
        ).all()

        return ProgressSummary(
            user_id=user_id,
            level=progress.level,
            xp=progress.xp,
            xp_to_next_level=xp_to_next_level(progress.xp),
            points=progress.points,
            current_streak=progress.current_streak,
            best_streak=progress.best_streak,
            last_participation_date=progress.last_participation_date,
            selected_title_id=progress.selected_title_id,
            titles=[UnlockedTitle.from_row(t) for t in titles],
            achievements=[UnlockedAchievement.from_row(a) for a in achievements],
        )


def select_title(
    engine: Engine, user_id: str, title_id: int | None
) -> tuple[bool, str]:
    """Set the title a player displays (``None`` clears it).

    Returns (success, message).  Only owned titles can be selected.
    """
    with Session(engine) as session:
        progress = session.get(UserProgress, user_id)
        if progress is None:
            raise ProgressNotFound(user_id, operation="select_title")

        if title_id is not None and session.get(UserTitle, (user_id, title_id)) is None:
            return False, "Title not owned."

        progress.selected_title_id = title_id
        session.commit()
        return True, "Title selected." if title_id is not None else "Title cleared."


# ---------------------------------------------------------------------------
# Administrative grants
# ---------------------------------------------------------------------------
def grant_title(
    engine: Engine,
    *,
    user_id: str,
    title_id: int,
    admin_id: int,
) -> tuple[bool, str]:
    """Grant a title directly (the only path for ``manual`` titles).

    Returns (success, message).
    """
    with Session(engine) as session:
        if session.get(UserProgress, user_id) is None:
            raise ProgressNotFound(user_id, operation="grant_title")

        title = session.get(Title, title_id)
        if title is None:
            return False, "Title not found."

        if not _insert_once(session, UserTitle(
            user_id=user_id, title_id=title_id, granted_by=admin_id,
        )):
            return False, "User already owns this title."

        session.commit()
        logger.info(
            "Title %s (id=%d) granted to %s by admin %d",
            title.name, title.id, user_id, admin_id,
        )
        return True, f"Title '{title.name}' granted."


def grant_achievement(
    engine: Engine,
    *,
    user_id: str,
    achievement_id: int,
    admin_id: int,
    max_unlock_passes: int = DEFAULT_MAX_UNLOCK_PASSES,
) -> tuple[bool, str]:
    """Grant an achievement directly, applying its rewards and title.

    The bonus XP can unlock level titles and achievements; the same
    unlock cascade as :func:`apply_event` runs before the commit.

    Returns (success, message).
    """
    with Session(engine) as session:
        progress = session.get(UserProgress, user_id)
        if progress is None:
            raise ProgressNotFound(user_id, operation="grant_achievement")

        achievement = session.get(Achievement, achievement_id)
        if achievement is None:
            return False, "Achievement not found."

        if not _insert_once(session, UserAchievement(
            user_id=user_id, achievement_id=achievement_id, granted_by=admin_id,
        )):
            return False, "User has already earned this achievement."

        progress.xp += achievement.reward_xp or 0
        progress.points += achievement.reward_points or 0
        progress.level = level_of(progress.xp)
        if achievement.reward_title_id is not None:
            _insert_once(session, UserTitle(
                user_id=user_id,
                title_id=achievement.reward_title_id,
                granted_by=admin_id,
            ))

        session.add(XPEvent(
            user_id=user_id,
            event_type="admin_grant_achievement",
            xp_gained=achievement.reward_xp or 0,
            points_gained=achievement.reward_points or 0,
            metadata_={"achievement_id": achievement.id, "admin_id": admin_id},
        ))
        session.flush()

        cascaded, _ = run_unlock_passes(session, progress, max_unlock_passes)
        session.commit()
        if cascaded:
            logger.info(
                "Admin grant of %s cascaded into %d more achievements for %s",
                achievement.name, len(cascaded), user_id,
            )
        return True, f"Achievement '{achievement.name}' granted."
