"""Pushover configuration values."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .env import optional_env_float, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_PUSHOVER_BASE_URL = "https://api.pushover.net/1"
PUSHOVER_TIMEOUT_SECONDS = 15.0
DEFAULT_OPERATION_TIMEOUT_SECONDS = 60.0


@dataclass(frozen=True, slots=True)
class PushoverConfig:
    """Holds the application credential and transport settings."""

    api_token: str
    resilience: ResilienceConfig
    operation_timeout_seconds: float = DEFAULT_OPERATION_TIMEOUT_SECONDS

    def __repr__(self) -> str:
        return (
            f"PushoverConfig(api_token='***', resilience={self.resilience!r}, "
            f"operation_timeout_seconds={self.operation_timeout_seconds!r})"
        )


def default_pushover_resilience(base_url: str = DEFAULT_PUSHOVER_BASE_URL) -> ResilienceConfig:
    # Only reads are retried: a re-sent POST to messages.json is a second notification.
    return ResilienceConfig(
        name="pushover",
        base_url=base_url.rstrip("/"),
        timeout_seconds=PUSHOVER_TIMEOUT_SECONDS,
        retry=RetryPolicy(total=3, allowed_methods=frozenset({"GET"})),
        ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
    )


def get_pushover_config(*, resilience: ResilienceConfig | None = None) -> PushoverConfig:
    values = require_env_vars(("PUSHOVER_API_TOKEN",))
    base_url = os.getenv("PUSHOVER_BASE_URL") or DEFAULT_PUSHOVER_BASE_URL
    return PushoverConfig(
        api_token=values["PUSHOVER_API_TOKEN"],
        resilience=resilience or default_pushover_resilience(base_url),
        operation_timeout_seconds=optional_env_float(
            "PUSHSTATE_OPERATION_TIMEOUT", DEFAULT_OPERATION_TIMEOUT_SECONDS
        ),
    )
