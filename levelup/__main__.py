"""
levelup.__main__ — Entry point for ``python -m levelup``
=========================================================

Wiring:
1. Load .env (secrets).
2. Load config.yaml (soft settings).
3. Create the SQLAlchemy engine and ensure tables exist.
4. Seed the default title and achievement catalogs (idempotent).
5. Serve the FastAPI app with uvicorn (blocking).

Run with::

    python -m levelup
"""

from __future__ import annotations

import logging
import sys

import uvicorn
from dotenv import load_dotenv

from levelup.config import load_config
from levelup.database.engine import create_db_engine, init_db
from levelup.services.seed import seed_catalog

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("levelup")


def main() -> None:
    """Bootstrap the database and run the LevelUp API."""

    # 1. Environment variables (secrets).
    load_dotenv()

    # 2. Soft configuration.
    try:
        cfg = load_config()
    except (FileNotFoundError, KeyError, ValueError) as exc:
        logger.critical("Invalid configuration: %s", exc)
        sys.exit(1)
    logger.info("Config loaded — Service: %s (tz=%s)", cfg.service_name, cfg.timezone)

    # 3. Database.
    try:
        engine = create_db_engine()
    except RuntimeError as exc:
        logger.critical("%s", exc)
        sys.exit(1)
    init_db(engine)

    # 4. Catalog.
    seed_catalog(engine)

    # 5. Serve.
    logger.info("Starting LevelUp API on port %d…", cfg.api_port)
    uvicorn.run("levelup.api.main:app", host="0.0.0.0", port=cfg.api_port)


if __name__ == "__main__":
    main()
