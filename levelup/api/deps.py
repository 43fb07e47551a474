"""
levelup.api.deps — FastAPI dependency injection
=================================================
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy import Engine

from levelup.config import LevelUpConfig, load_config
from levelup.database.engine import create_db_engine
from levelup.engine.daily import ServiceClock
from levelup.engine.locks import UserLockRegistry, get_default_registry


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_config() -> LevelUpConfig:
    return load_config()


def get_clock(cfg: Annotated[LevelUpConfig, Depends(get_config)]) -> ServiceClock:
    return ServiceClock(cfg.timezone)


def get_locks() -> UserLockRegistry:
    return get_default_registry()
