"""
levelup.services.seed — Catalog Seed Service
=============================================

Seeds the default title and achievement catalogs from the YAML fixture
files in ``levelup/seeds/``.  Idempotent: rows are matched by ``name``
and existing rows are never overwritten, so admin edits survive restarts.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from levelup.constants import RARITIES
from levelup.database.engine import get_session
from levelup.database.models import (
    Achievement,
    AchievementCondition,
    Title,
    TitleUnlockType,
)

logger = logging.getLogger(__name__)

_SEEDS_DIR = Path(__file__).resolve().parent.parent / "seeds"


def _load_yaml(filename: str, seeds_dir: Path | None = None) -> Any:
    """Load a YAML file from the seeds directory."""
    path = (seeds_dir or _SEEDS_DIR) / filename
    if not path.exists():
        logger.warning("Seed file not found: %s", path)
        return []
    with open(path, encoding="utf-8") as fh:
        return yaml.safe_load(fh) or []


def _seed_titles(session: Session, items: list[dict]) -> int:
    existing = set(session.scalars(select(Title.name)).all())
    count = 0
    for item in items:
        if item["name"] in existing:
            continue
        unlock_type = TitleUnlockType(item.get("unlock_type", TitleUnlockType.MANUAL))
        rarity = item.get("rarity", "common")
        if rarity not in RARITIES:
            raise ValueError(f"Unknown rarity {rarity!r} for title {item['name']!r}")
        session.add(Title(
            name=item["name"],
            description=item.get("description"),
            rarity=rarity,
            unlock_type=unlock_type.value,
            unlock_value=item.get("unlock_value"),
            icon=item.get("icon"),
        ))
        count += 1
    session.flush()
    return count


def _seed_achievements(session: Session, items: list[dict]) -> int:
    existing = set(session.scalars(select(Achievement.name)).all())
    title_ids = {t.name: t.id for t in session.scalars(select(Title)).all()}
    count = 0
    for item in items:
        if item["name"] in existing:
            continue
        condition = AchievementCondition(item["condition_type"])
        rarity = item.get("rarity", "common")
        if rarity not in RARITIES:
            raise ValueError(f"Unknown rarity {rarity!r} for achievement {item['name']!r}")
        reward_title_id = None
        if item.get("reward_title"):
            reward_title_id = title_ids.get(item["reward_title"])
            if reward_title_id is None:
                raise ValueError(
                    f"Achievement {item['name']!r} rewards unknown title "
                    f"{item['reward_title']!r}"
                )
        session.add(Achievement(
            name=item["name"],
            description=item.get("description", ""),
            rarity=rarity,
            condition_type=condition.value,
            condition_value=int(item["condition_value"]),
            reward_xp=int(item.get("reward_xp", 0)),
            reward_points=int(item.get("reward_points", 0)),
            reward_title_id=reward_title_id,
            icon=item.get("icon"),
        ))
        count += 1
    return count


def seed_catalog(engine: Engine, seeds_dir: Path | None = None) -> tuple[int, int]:
    """Insert missing catalog rows.  Returns ``(titles, achievements)`` inserted.

    Titles go first so achievements can resolve ``reward_title`` by name.
    """
    with get_session(engine) as session:
        titles = _seed_titles(session, _load_yaml("titles.yaml", seeds_dir))
        achievements = _seed_achievements(
            session, _load_yaml("achievements.yaml", seeds_dir),
        )

    if titles or achievements:
        logger.info("Seeded %d titles and %d achievements.", titles, achievements)
    else:
        logger.info("Catalog already seeded — skipping.")
    return titles, achievements
