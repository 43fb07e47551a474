"""
LevelUp — Player Progression Engine
=====================================
Turns gameplay events (daily check-in, puzzle solves, comments, posts)
into XP, levels, points, streaks, and cascading achievement/title
unlocks for the trivia & deduction game platform.

Package layout::

    levelup/
    ├── __main__.py        # ``python -m levelup`` — bootstrap + uvicorn
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Level curve (THE canonical formula)
    ├── exceptions.py      # ProgressionError hierarchy
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   └── models.py      # All ORM models
    ├── engine/
    │   ├── events.py      # Tagged-union event payloads
    │   ├── daily.py       # Service clock + daily quota reset
    │   ├── streak.py      # Consecutive-day streak state machine
    │   ├── reward.py      # Reward tables + counter deltas
    │   ├── achievements.py # Achievement condition registry
    │   ├── titles.py      # Title condition registry
    │   └── locks.py       # Per-user lock registry
    ├── services/
    │   ├── progress_service.py  # apply_event orchestrator + unlock ledger
    │   └── seed.py              # Achievement / title catalog seeder
    ├── seeds/             # YAML catalogs
    └── api/
        ├── main.py        # FastAPI app
        ├── deps.py        # Dependency injection
        └── routes/        # Progress endpoints
"""

__version__ = "0.1.0"
