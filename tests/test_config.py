"""Tests for environment-driven configuration."""

import sys
import os
import importlib

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import config


def _reload(monkeypatch: pytest.MonkeyPatch, **env: str):
    for name in ("BOT_TOKEN", "WEBHOOK_SECRET", "REQUEST_TIMEOUT", "ENABLE_RATE_LIMIT", "ADMIN_USERS", "API_URL"):
        monkeypatch.delenv(name, raising=False)
    for name, value in env.items():
        monkeypatch.setenv(name, value)
    return importlib.reload(config)


class TestParseIdList:
    @pytest.mark.parametrize("raw,expected", [
        (None, []),
        ("", []),
        ("755764114", [755764114]),
        (" 1, 2 ,,3 ", [1, 2, 3]),
        ("1,abc,2", [1, 2]),
    ])
    def test_parse(self, raw, expected) -> None:
        assert config._parse_id_list(raw) == expected


class TestEnvironment:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        cfg = _reload(monkeypatch)
        assert cfg.API_URL == "https://api.telegram.org"
        assert cfg.WEBHOOK_PATH == "/webhook"
        assert cfg.REQUEST_TIMEOUT == 30
        assert cfg.ENABLE_RATE_LIMIT is True
        assert cfg.ADMIN_USERS == []

    def test_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        cfg = _reload(
            monkeypatch,
            BOT_TOKEN="123:abc",
            API_URL="http://localhost:8081/",
            REQUEST_TIMEOUT="45",
            ENABLE_RATE_LIMIT="no",
            ADMIN_USERS="1,2",
        )
        assert cfg.BOT_TOKEN == "123:abc"
        assert cfg.API_URL == "http://localhost:8081"
        assert cfg.REQUEST_TIMEOUT == 45
        assert cfg.ENABLE_RATE_LIMIT is False
        assert cfg.ADMIN_USERS == [1, 2]

    def test_bad_integer_falls_back(self, monkeypatch: pytest.MonkeyPatch) -> None:
        assert _reload(monkeypatch, REQUEST_TIMEOUT="soon").REQUEST_TIMEOUT == 30

    def test_empty_secret_is_none(self, monkeypatch: pytest.MonkeyPatch) -> None:
        assert _reload(monkeypatch, WEBHOOK_SECRET="").WEBHOOK_SECRET is None
