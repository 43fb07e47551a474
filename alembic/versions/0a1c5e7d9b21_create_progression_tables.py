"""Create progression tables

Revision ID: 0a1c5e7d9b21
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0a1c5e7d9b21"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )


def upgrade() -> None:
    """Create users, progress, catalogs, unlock ledgers and the XP journal."""
    op.create_table(
        "game_users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("nickname", sa.String(100), nullable=False),
        sa.Column("guest_id", sa.String(100), unique=True),
        sa.Column("auth_user_id", sa.String(36), unique=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )

    op.create_table(
        "titles",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("description", sa.Text()),
        sa.Column("rarity", sa.String(20), nullable=False, server_default="common"),
        sa.Column("unlock_type", sa.String(30), nullable=False, server_default="manual"),
        sa.Column("unlock_value", sa.Integer()),
        sa.Column("icon", sa.String(50)),
        _timestamp("created_at"),
    )

    op.create_table(
        "achievements",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("rarity", sa.String(20), nullable=False, server_default="common"),
        sa.Column("condition_type", sa.String(50), nullable=False),
        sa.Column("condition_value", sa.Integer(), nullable=False),
        sa.Column("reward_xp", sa.Integer(), server_default="0"),
        sa.Column("reward_points", sa.Integer(), server_default="0"),
        sa.Column(
            "reward_title_id",
            sa.Integer(),
            sa.ForeignKey("titles.id", ondelete="SET NULL"),
        ),
        sa.Column("icon", sa.String(50)),
        _timestamp("created_at"),
    )

    op.create_table(
        "user_progress",
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("game_users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("level", sa.Integer(), server_default="1"),
        sa.Column("xp", sa.Integer(), server_default="0"),
        sa.Column("points", sa.Integer(), server_default="0"),
        sa.Column("current_streak", sa.Integer(), server_default="0"),
        sa.Column("best_streak", sa.Integer(), server_default="0"),
        sa.Column("last_participation_date", sa.Date()),
        sa.Column(
            "selected_title_id",
            sa.Integer(),
            sa.ForeignKey("titles.id", ondelete="SET NULL"),
        ),
        sa.Column("total_participations", sa.Integer(), server_default="0"),
        sa.Column("total_solves", sa.Integer(), server_default="0"),
        sa.Column("nohint_solves", sa.Integer(), server_default="0"),
        sa.Column("under3q_solves", sa.Integer(), server_default="0"),
        sa.Column("total_comments", sa.Integer(), server_default="0"),
        sa.Column("total_posts", sa.Integer(), server_default="0"),
        sa.Column("daily_comment_xp", sa.Integer(), server_default="0"),
        sa.Column("daily_post_xp", sa.Integer(), server_default="0"),
        sa.Column("daily_reset_date", sa.Date()),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_user_progress_xp_desc", "user_progress", ["xp"])

    op.create_table(
        "user_achievements",
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("game_users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "achievement_id",
            sa.Integer(),
            sa.ForeignKey("achievements.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        _timestamp("completed_at"),
        sa.Column("granted_by", sa.BigInteger()),
    )

    op.create_table(
        "user_titles",
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("game_users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "title_id",
            sa.Integer(),
            sa.ForeignKey("titles.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        _timestamp("unlocked_at"),
        sa.Column("granted_by", sa.BigInteger()),
    )

    op.create_table(
        "xp_events",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("game_users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("event_type", sa.String(50), nullable=False),
        sa.Column("xp_gained", sa.Integer(), server_default="0"),
        sa.Column("points_gained", sa.Integer(), server_default="0"),
        sa.Column("metadata", postgresql.JSONB()),
        _timestamp("created_at"),
    )
    op.create_index("ix_xp_events_user_time", "xp_events", ["user_id", "created_at"])


def downgrade() -> None:
    """Drop every progression table."""
    op.drop_index("ix_xp_events_user_time", table_name="xp_events")
    op.drop_table("xp_events")
    op.drop_table("user_titles")
    op.drop_table("user_achievements")
    op.drop_index("ix_user_progress_xp_desc", table_name="user_progress")
    op.drop_table("user_progress")
    op.drop_table("achievements")
    op.drop_table("titles")
    op.drop_table("game_users")
