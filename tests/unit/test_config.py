"""Tests for settings loading."""

from __future__ import annotations

import os

import pytest

from cidgraph.config import CidGraphSettings, get_settings
from cidgraph.core.exceptions import NoGatewayConfiguredError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch):
    """Drop any CIDGRAPH_* variables from the outer environment."""
    for key in list(os.environ):
        if key.startswith("CIDGRAPH_"):
            monkeypatch.delenv(key)


class TestDefaults:
    """Tests for default values."""

    def test_retry_defaults(self):
        settings = CidGraphSettings(_env_file=None)
        assert settings.cycle_delay == 1.5
        assert settings.limited_max_attempts == 3
        assert settings.limited_base_delay == 1.0
        assert settings.max_validation_failures is None

    def test_submission_defaults(self):
        settings = CidGraphSettings(_env_file=None)
        assert settings.accepted_label == "County"
        assert settings.allowed_submitters == []
        assert settings.redis_url is None
        assert settings.log_level is None


class TestGatewayEndpoints:
    """Tests for the ordered gateway list."""

    def test_none_configured(self):
        with pytest.raises(NoGatewayConfiguredError):
            CidGraphSettings(_env_file=None).gateway_endpoints()

    def test_single_url(self):
        settings = CidGraphSettings(_env_file=None, gateway_url="https://gw.test/ipfs/", gateway_token="t")
        (endpoint,) = settings.gateway_endpoints()
        assert endpoint.base_url == "https://gw.test/ipfs"
        assert endpoint.token == "t"

    def test_list_then_single_url(self, monkeypatch: pytest.MonkeyPatch):
        """Listed gateways should come before the single-URL gateway."""
        monkeypatch.setenv(
            "CIDGRAPH_GATEWAYS",
            '[{"base_url": "https://primary.test/ipfs", "token": "p"}, {"base_url": "https://backup.test/ipfs"}]',
        )
        monkeypatch.setenv("CIDGRAPH_GATEWAY_URL", "https://last.test/ipfs")

        endpoints = CidGraphSettings(_env_file=None).gateway_endpoints()

        assert [e.base_url for e in endpoints] == [
            "https://primary.test/ipfs",
            "https://backup.test/ipfs",
            "https://last.test/ipfs",
        ]
        assert endpoints[0].token == "p"
        assert endpoints[1].token is None


class TestEnvironment:
    """Tests for environment overrides."""

    def test_prefixed_variables(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("CIDGRAPH_CYCLE_DELAY", "0.25")
        monkeypatch.setenv("CIDGRAPH_ALLOWED_SUBMITTERS", '["0xabc", "0xdef"]')
        monkeypatch.setenv("CIDGRAPH_REDIS_URL", "redis://localhost:6379/15")

        settings = CidGraphSettings(_env_file=None)

        assert settings.cycle_delay == 0.25
        assert settings.allowed_submitters == ["0xabc", "0xdef"]
        assert str(settings.redis_url).startswith("redis://localhost:6379")

    def test_invalid_attempts_rejected(self):
        with pytest.raises(ValueError):
            CidGraphSettings(_env_file=None, limited_max_attempts=0)


class TestGetSettings:
    """Tests for the cached settings getter."""

    @pytest.fixture(autouse=True)
    def fresh_cache(self):
        get_settings.cache_clear()
        yield
        get_settings.cache_clear()

    def test_cached(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("CIDGRAPH_GATEWAY_URL", "https://env.test/ipfs")

        settings = get_settings()

        assert settings is get_settings()
        assert settings.gateway_url == "https://env.test/ipfs"

    def test_cache_clear_rereads_environment(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("CIDGRAPH_ACCEPTED_LABEL", "Seed")
        assert get_settings().accepted_label == "Seed"

        monkeypatch.setenv("CIDGRAPH_ACCEPTED_LABEL", "County")
        assert get_settings().accepted_label == "Seed"

        get_settings.cache_clear()
        assert get_settings().accepted_label == "County"
