"""Shared fixtures for Pushover adapter tests."""

from __future__ import annotations

import pytest

from pushstate.config.pushover import PushoverConfig, default_pushover_resilience


@pytest.fixture
def pushover_config() -> PushoverConfig:
    return PushoverConfig(
        api_token="aAppToken",
        resilience=default_pushover_resilience("https://api.example.test/1"),
    )
