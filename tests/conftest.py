"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest
from sqlalchemy import Engine, create_engine, event

# ---------------------------------------------------------------------------
# Make JSONB columns work in SQLite for testing.
# SQLite doesn't support JSONB natively, but SQLAlchemy's JSON type works.
# We register a custom type compiler so SQLite renders JSONB as TEXT.
# ---------------------------------------------------------------------------
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from levelup.database.models import Achievement, GameUser, Title
from levelup.engine.daily import ServiceClock
from levelup.engine.locks import UserLockRegistry
from levelup.services.progress_service import create_progress

_jsonb_sqlite_registered = False


def _register_jsonb_sqlite_compat():
    """Register SQLite compilation for PG JSONB type (idempotent).

    Also maps BigInteger → INTEGER so autoincrement works on SQLite.
    """
    global _jsonb_sqlite_registered
    if _jsonb_sqlite_registered:
        return
    from sqlalchemy import BigInteger
    from sqlalchemy.ext.compiler import compiles

    @compiles(PG_JSONB, "sqlite")
    def _compile_jsonb_as_text(type_, compiler, **kw):
        return "TEXT"

    @compiles(BigInteger, "sqlite")
    def _compile_bigint_as_integer(type_, compiler, **kw):
        return "INTEGER"

    _jsonb_sqlite_registered = True


_register_jsonb_sqlite_compat()

TODAY = date(2026, 3, 10)


def _sqlite_engine(url: str, **kwargs) -> Engine:
    """SQLite engine with all LevelUp tables.

    pysqlite's implicit transaction handling is disabled so SAVEPOINTs work.
    """
    from levelup.database.models import Base

    engine = create_engine(
        url,
        echo=False,
        connect_args={"check_same_thread": False, "timeout": 30},
        **kwargs,
    )

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def db_engine() -> Engine:
    """In-memory SQLite engine.

    Uses StaticPool so all threads share the same in-memory database
    (required by ``asyncio.to_thread`` used in ``run_db``).
    """
    return _sqlite_engine("sqlite://", poolclass=StaticPool)


@pytest.fixture
def file_engine(tmp_path) -> Engine:
    """File-backed SQLite engine with a real connection pool.

    Each thread gets its own connection, so concurrent callers actually
    contend for the same rows.
    """
    engine = _sqlite_engine(f"sqlite:///{tmp_path / 'levelup.db'}")
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a transactional session that rolls back after each test."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


@pytest.fixture
def clock() -> ServiceClock:
    """Clock pinned to noon UTC on :data:`TODAY`."""
    return fixed_clock(TODAY)


def fixed_clock(day: date, tz: str = "UTC") -> ServiceClock:
    """A ServiceClock whose ``today()`` is always *day*."""
    moment = datetime(day.year, day.month, day.day, 12, 0, tzinfo=timezone.utc)
    return ServiceClock(tz, now=lambda: moment)


@pytest.fixture
def locks() -> UserLockRegistry:
    return UserLockRegistry()


def make_user(
    engine: Engine,
    *,
    auth_user_id: str | None = None,
    guest_id: str | None = None,
    today: date = TODAY,
    **progress_fields,
) -> str:
    """Insert a GameUser + initial progress row and return the user id.

    Extra keyword arguments override columns on the progress row.
    """
    with Session(engine) as session:
        user = GameUser(
            nickname="tester",
            auth_user_id=auth_user_id,
            guest_id=guest_id,
        )
        session.add(user)
        session.flush()
        progress = create_progress(session, user.id, today)
        for column, value in progress_fields.items():
            setattr(progress, column, value)
        session.commit()
        return user.id


def add_title(engine: Engine, name: str, unlock_type: str, unlock_value=None) -> int:
    with Session(engine) as session:
        title = Title(name=name, unlock_type=unlock_type, unlock_value=unlock_value)
        session.add(title)
        session.commit()
        return title.id


def add_achievement(
    engine: Engine,
    name: str,
    condition_type: str,
    condition_value: int,
    *,
    reward_xp: int = 0,
    reward_points: int = 0,
    reward_title_id: int | None = None,
) -> int:
    with Session(engine) as session:
        achievement = Achievement(
            name=name,
            description=name,
            condition_type=condition_type,
            condition_value=condition_value,
            reward_xp=reward_xp,
            reward_points=reward_points,
            reward_title_id=reward_title_id,
        )
        session.add(achievement)
        session.commit()
        return achievement.id
