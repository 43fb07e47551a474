"""
tests/test_config.py — YAML Configuration Loader Tests
=======================================================
"""

from __future__ import annotations

import pytest

from levelup.config import DEFAULT_MAX_UNLOCK_PASSES, load_config


def _write(tmp_path, text: str):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadConfig:
    def test_full_config(self, tmp_path):
        cfg = load_config(_write(tmp_path, (
            "service_name: Turtle Soup\n"
            "timezone: Asia/Seoul\n"
            "api_port: 9000\n"
            "max_unlock_passes: 3\n"
        )))
        assert cfg.service_name == "Turtle Soup"
        assert cfg.timezone == "Asia/Seoul"
        assert cfg.api_port == 9000
        assert cfg.max_unlock_passes == 3

    def test_defaults(self, tmp_path):
        cfg = load_config(_write(tmp_path, "service_name: x\n"))
        assert cfg.timezone == "UTC"
        assert cfg.api_port == 8000
        assert cfg.max_unlock_passes == DEFAULT_MAX_UNLOCK_PASSES

    def test_env_path(self, tmp_path, monkeypatch):
        path = _write(tmp_path, "service_name: from-env\n")
        monkeypatch.setenv("LEVELUP_CONFIG", str(path))
        assert load_config().service_name == "from-env"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_missing_service_name(self, tmp_path):
        with pytest.raises(KeyError):
            load_config(_write(tmp_path, "timezone: UTC\n"))

    def test_bad_timezone(self, tmp_path):
        with pytest.raises(ValueError):
            load_config(_write(tmp_path, "service_name: x\ntimezone: Mars/Olympus\n"))

    def test_zero_passes_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            load_config(_write(tmp_path, "service_name: x\nmax_unlock_passes: 0\n"))

    def test_config_is_frozen(self, tmp_path):
        cfg = load_config(_write(tmp_path, "service_name: x\n"))
        with pytest.raises(AttributeError):
            cfg.timezone = "UTC"
