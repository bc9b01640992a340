"""Tests for pivotal_bridge.core.config."""

from __future__ import annotations

import pytest

from pivotal_bridge.core.config import Settings


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PIVOTAL_TRACKER_API_URL", raising=False)
    monkeypatch.delenv("MEMBER_CACHE_TTL", raising=False)
    config = Settings(_env_file=None)
    assert config.pivotal_tracker_api_url == "https://www.pivotaltracker.com/services/v5"
    assert config.pivotal_tracker_web_url == "https://www.pivotaltracker.com"
    assert config.member_cache_ttl == 86400
    assert config.member_cache_not_found is True


def test_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PIVOTAL_TRACKER_TOKEN", "env-token")
    monkeypatch.setenv("PIVOTAL_TRACKER_ACCOUNT_ID", "555")
    monkeypatch.setenv("MEMBER_CACHE_TTL", "60")
    monkeypatch.setenv("MEMBER_CACHE_NOT_FOUND", "false")
    config = Settings(_env_file=None)
    assert config.pivotal_tracker_token == "env-token"
    assert config.pivotal_tracker_account_id == "555"
    assert config.member_cache_ttl == 60
    assert config.member_cache_not_found is False
