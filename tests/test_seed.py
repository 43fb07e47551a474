"""
tests/test_seed.py — Catalog Seeding Tests
===========================================
"""

from __future__ import annotations

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session

from levelup.database.models import Achievement, Title
from levelup.services.seed import seed_catalog


class TestSeedCatalog:
    def test_default_catalog(self, db_engine):
        titles, achievements = seed_catalog(db_engine)
        assert titles > 0
        assert achievements > 0

        with Session(db_engine) as session:
            centurion = session.scalar(
                select(Achievement).where(Achievement.name == "Hundred Solves")
            )
            assert centurion.reward_title.name == "Centurion"

    def test_idempotent(self, db_engine):
        seed_catalog(db_engine)
        assert seed_catalog(db_engine) == (0, 0)

    def test_existing_rows_not_overwritten(self, db_engine):
        seed_catalog(db_engine)
        with Session(db_engine) as session:
            title = session.scalar(select(Title).where(Title.name == "Founder"))
            title.description = "edited"
            session.commit()

        seed_catalog(db_engine)
        with Session(db_engine) as session:
            title = session.scalar(select(Title).where(Title.name == "Founder"))
            assert title.description == "edited"

    def test_unknown_reward_title(self, db_engine, tmp_path):
        (tmp_path / "titles.yaml").write_text("[]\n", encoding="utf-8")
        (tmp_path / "achievements.yaml").write_text(
            "- name: Orphan\n"
            "  condition_type: level_gte\n"
            "  condition_value: 2\n"
            "  reward_title: Nobody\n",
            encoding="utf-8",
        )
        with pytest.raises(ValueError):
            seed_catalog(db_engine, seeds_dir=tmp_path)

    def test_missing_files_seed_nothing(self, db_engine, tmp_path):
        assert seed_catalog(db_engine, seeds_dir=tmp_path) == (0, 0)

    def test_unknown_achievement_rarity(self, db_engine, tmp_path):
        (tmp_path / "titles.yaml").write_text("[]\n", encoding="utf-8")
        (tmp_path / "achievements.yaml").write_text(
            "- name: Shiny\n"
            "  condition_type: level_gte\n"
            "  condition_value: 2\n"
            "  rarity: mythic\n",
            encoding="utf-8",
        )
        with pytest.raises(ValueError, match="mythic"):
            seed_catalog(db_engine, seeds_dir=tmp_path)

        with Session(db_engine) as session:
            assert session.scalar(select(Achievement).where(Achievement.name == "Shiny")) is None
