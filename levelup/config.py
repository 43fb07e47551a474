"""
levelup.config — YAML Configuration Loader
===========================================

Reads ``config.yaml`` for service settings (timezone used for daily
resets and streaks, API port, unlock pass bound).  Secrets such as
``DATABASE_URL`` come from the environment (``.env``), never from YAML.
The reward tables themselves are fixed in :mod:`levelup.engine.reward`
and are not configurable.

Usage::

    from levelup.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.timezone)          # "Asia/Seoul"
    print(cfg.max_unlock_passes) # 5
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

DEFAULT_TIMEZONE = "UTC"
DEFAULT_MAX_UNLOCK_PASSES = 5


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class LevelUpConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    service_name: str

    # Calendar used for "today" in daily quotas and streaks
    timezone: str = DEFAULT_TIMEZONE

    # API
    api_port: int = 8000

    # Bound on achievement/title evaluation passes per event
    max_unlock_passes: int = DEFAULT_MAX_UNLOCK_PASSES


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path | None = None) -> LevelUpConfig:
    """Read *path* and return a :class:`LevelUpConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.  Defaults to
        ``$LEVELUP_CONFIG`` or ``config.yaml`` in the working directory.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    ValueError
        If ``timezone`` is not a known IANA zone or
        ``max_unlock_passes`` is below 1.
    """
    if path is None:
        path = os.getenv("LEVELUP_CONFIG", "config.yaml")
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    timezone = raw.get("timezone") or DEFAULT_TIMEZONE
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone in config: {timezone!r}") from exc

    max_passes = int(raw.get("max_unlock_passes", DEFAULT_MAX_UNLOCK_PASSES))
    if max_passes < 1:
        raise ValueError("max_unlock_passes must be at least 1")

    return LevelUpConfig(
        service_name=raw["service_name"],
        timezone=timezone,
        api_port=int(raw.get("api_port", 8000)),
        max_unlock_passes=max_passes,
    )
