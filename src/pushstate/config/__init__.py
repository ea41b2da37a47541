"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_float, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .pushover import (
    DEFAULT_PUSHOVER_BASE_URL,
    PushoverConfig,
    default_pushover_resilience,
    get_pushover_config,
)
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "DEFAULT_PUSHOVER_BASE_URL",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "PushoverConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "configure_logging",
    "default_pushover_resilience",
    "get_database_config",
    "get_pushover_config",
    "get_storage_config",
    "optional_env_float",
    "require_env_var",
    "require_env_vars",
]
