"""
levelup.database.models — SQLAlchemy 2.0 Data Models
=====================================================

Tables owned by the progression engine:
- game_users         — Player identities (guest or authenticated)
- user_progress      — One mutable progress row per player
- achievements       — Static achievement catalog with typed conditions
- titles             — Static title catalog with typed unlock rules
- user_achievements  — Idempotent unlock ledger (composite PK)
- user_titles        — Idempotent title ledger (composite PK)
- xp_events          — Append-only reward audit trail

Tables owned by other parts of the platform, read here for counts only:
- user_problem_solves, problem_comments, posts
"""

from __future__ import annotations

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import (
    BigInteger,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all LevelUp ORM models."""


def _new_uuid() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class EventType(enum.StrEnum):
    """Gameplay events that flow through apply_event."""
    DAILY_PARTICIPATE = "daily_participate"
    SOLVE_SUCCESS = "solve_success"
    SOLVE_FAIL = "solve_fail"
    COMMENT = "comment"
    POST = "post"


class AchievementCondition(enum.StrEnum):
    """Condition evaluated against a player's progress for an achievement."""
    STREAK_GTE = "streak_gte"
    DAILY_PARTICIPATION_COUNT_GTE = "daily_participation_count_gte"
    SOLVE_COUNT_GTE = "solve_count_gte"
    NOHINT_SOLVE_COUNT_GTE = "nohint_solve_count_gte"
    UNDER3Q_SOLVE_COUNT_GTE = "under3q_solve_count_gte"
    LEVEL_GTE = "level_gte"
    TOTAL_COMMENTS_GTE = "total_comments_gte"
    TOTAL_POSTS_GTE = "total_posts_gte"


class TitleUnlockType(enum.StrEnum):
    """How a title is unlocked."""
    LEVEL = "level"
    STREAK = "streak"
    NOHINT_SOLVE_COUNT = "nohint_solve_count"    # "Perfectionist"
    UNDER3Q_SOLVE_COUNT = "under3q_solve_count"  # "Genius Detective"
    ACHIEVEMENT = "achievement"  # granted via Achievement.reward_title_id
    MANUAL = "manual"            # granted by an admin


# ---------------------------------------------------------------------------
# GameUser — one row per player identity
# ---------------------------------------------------------------------------
class GameUser(Base):
    __tablename__ = "game_users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_uuid)
    nickname: Mapped[str] = mapped_column(String(100), nullable=False)
    guest_id: Mapped[str | None] = mapped_column(String(100), unique=True, default=None)
    auth_user_id: Mapped[str | None] = mapped_column(
        String(36), unique=True, default=None
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    progress: Mapped[UserProgress | None] = relationship(
        back_populates="user", uselist=False, cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<GameUser id={self.id} nickname={self.nickname!r}>"


# ---------------------------------------------------------------------------
# UserProgress — level / xp / points / streak / counters
# ---------------------------------------------------------------------------
class UserProgress(Base):
    __tablename__ = "user_progress"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("game_users.id", ondelete="CASCADE"), primary_key=True
    )
    level: Mapped[int] = mapped_column(Integer, default=1)
    xp: Mapped[int] = mapped_column(Integer, default=0)
    points: Mapped[int] = mapped_column(Integer, default=0)

    current_streak: Mapped[int] = mapped_column(Integer, default=0)
    best_streak: Mapped[int] = mapped_column(Integer, default=0)
    last_participation_date: Mapped[date | None] = mapped_column(Date, default=None)

    selected_title_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("titles.id", ondelete="SET NULL"), nullable=True
    )

    # Lifetime counters (best-effort caches of the ground-truth tables)
    total_participations: Mapped[int] = mapped_column(Integer, default=0)
    total_solves: Mapped[int] = mapped_column(Integer, default=0)
    nohint_solves: Mapped[int] = mapped_column(Integer, default=0)
    under3q_solves: Mapped[int] = mapped_column(Integer, default=0)
    total_comments: Mapped[int] = mapped_column(Integer, default=0)
    total_posts: Mapped[int] = mapped_column(Integer, default=0)

    # Daily quotas
    daily_comment_xp: Mapped[int] = mapped_column(Integer, default=0)
    daily_post_xp: Mapped[int] = mapped_column(Integer, default=0)
    daily_reset_date: Mapped[date | None] = mapped_column(Date, default=None)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    user: Mapped[GameUser] = relationship(back_populates="progress")

    __table_args__ = (
        Index("ix_user_progress_xp_desc", "xp"),
    )

    def __repr__(self) -> str:
        return f"<UserProgress user={self.user_id} lvl={self.level} xp={self.xp}>"


# ---------------------------------------------------------------------------
# Title — cosmetic unlockable labels
# ---------------------------------------------------------------------------
class Title(Base):
    __tablename__ = "titles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    rarity: Mapped[str] = mapped_column(String(20), nullable=False, default="common")
    unlock_type: Mapped[str] = mapped_column(
        String(30), nullable=False, default=TitleUnlockType.MANUAL.value
    )
    unlock_value: Mapped[int | None] = mapped_column(Integer, nullable=True)
    icon: Mapped[str | None] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<Title id={self.id} name={self.name!r} unlock={self.unlock_type}>"


# ---------------------------------------------------------------------------
# Achievement — one-time milestones with bonus rewards
# ---------------------------------------------------------------------------
class Achievement(Base):
    __tablename__ = "achievements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    rarity: Mapped[str] = mapped_column(String(20), nullable=False, default="common")
    condition_type: Mapped[str] = mapped_column(String(50), nullable=False)
    condition_value: Mapped[int] = mapped_column(Integer, nullable=False)
    reward_xp: Mapped[int] = mapped_column(Integer, default=0)
    reward_points: Mapped[int] = mapped_column(Integer, default=0)
    reward_title_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("titles.id", ondelete="SET NULL"), nullable=True
    )
    icon: Mapped[str | None] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    reward_title: Mapped[Title | None] = relationship()

    def __repr__(self) -> str:
        return f"<Achievement id={self.id} name={self.name!r}>"


# ---------------------------------------------------------------------------
# UserAchievement / UserTitle — idempotent unlock ledgers
# ---------------------------------------------------------------------------
class UserAchievement(Base):
    __tablename__ = "user_achievements"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("game_users.id", ondelete="CASCADE"), primary_key=True
    )
    achievement_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("achievements.id", ondelete="CASCADE"), primary_key=True
    )
    completed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    granted_by: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    achievement: Mapped[Achievement] = relationship()

    def __repr__(self) -> str:
        return f"<UserAchievement user={self.user_id} achievement={self.achievement_id}>"


class UserTitle(Base):
    __tablename__ = "user_titles"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("game_users.id", ondelete="CASCADE"), primary_key=True
    )
    title_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("titles.id", ondelete="CASCADE"), primary_key=True
    )
    unlocked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    granted_by: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    title: Mapped[Title] = relationship()

    def __repr__(self) -> str:
        return f"<UserTitle user={self.user_id} title={self.title_id}>"


# ---------------------------------------------------------------------------
# XPEvent — append-only reward journal
# ---------------------------------------------------------------------------
class XPEvent(Base):
    __tablename__ = "xp_events"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("game_users.id", ondelete="CASCADE"), nullable=False
    )
    event_type: Mapped[str] = mapped_column(String(50), nullable=False)
    xp_gained: Mapped[int] = mapped_column(Integer, default=0)
    points_gained: Mapped[int] = mapped_column(Integer, default=0)
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSONB, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_xp_events_user_time", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<XPEvent id={self.id} user={self.user_id} type={self.event_type}>"


# ---------------------------------------------------------------------------
# Ground-truth collections (owned elsewhere; counted, never written here)
# ---------------------------------------------------------------------------
class ProblemSolve(Base):
    __tablename__ = "user_problem_solves"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    problem_id: Mapped[str] = mapped_column(String(36), nullable=False)
    solved_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id", "problem_id", name="uq_problem_solves_user_problem"),
        Index("ix_problem_solves_user", "user_id"),
    )


class ProblemComment(Base):
    __tablename__ = "problem_comments"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    problem_id: Mapped[str] = mapped_column(String(36), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_problem_comments_user", "user_id"),
    )


class CommunityPost(Base):
    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_posts_user", "user_id"),
    )
