"""Alembic environment — wired to LevelUp models and DATABASE_URL.

Only the tables the progression engine owns are migrated here.  The
ground-truth tables (solves, comments, posts) are read for counts but
their schema belongs to the rest of the platform.
"""

from __future__ import annotations

import os
from logging.config import fileConfig

from dotenv import load_dotenv
from sqlalchemy import engine_from_config, pool

from alembic import context

load_dotenv()

config = context.config

database_url = os.getenv("DATABASE_URL")
if database_url:
    config.set_main_option("sqlalchemy.url", database_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

from levelup.database.models import (  # noqa: E402
    Base,
    CommunityPost,
    ProblemComment,
    ProblemSolve,
)

target_metadata = Base.metadata

EXTERNAL_TABLES = frozenset({
    ProblemSolve.__tablename__,
    ProblemComment.__tablename__,
    CommunityPost.__tablename__,
})


def include_object(obj, name, type_, reflected, compare_to) -> bool:
    """Skip tables (and their indexes) owned outside this service."""
    if type_ == "table":
        return name not in EXTERNAL_TABLES
    table = getattr(obj, "table", None)
    if table is not None:
        return table.name not in EXTERNAL_TABLES
    return True


def run_migrations_offline() -> None:
    """Emit SQL to stdout without a live connection."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        include_object=include_object,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply migrations against DATABASE_URL."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            include_object=include_object,
            compare_type=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
