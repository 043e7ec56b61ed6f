"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_positive_int_env, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .roblox import (
    API_KEY_ENV_VAR,
    DEFAULT_RATE_LIMITS,
    ROBLOX_API_BASE_URL,
    RobloxConfig,
    build_category_resilience,
    get_roblox_config,
)
from .storage import (
    DEFAULT_CONFIG_FILENAME,
    DEFAULT_LOCK_FILENAME,
    StorageConfig,
    get_storage_config,
)

__all__ = [
    "API_KEY_ENV_VAR",
    "DEFAULT_CONFIG_FILENAME",
    "DEFAULT_LOCK_FILENAME",
    "DEFAULT_RATE_LIMITS",
    "ROBLOX_API_BASE_URL",
    "ConfigurationError",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "RobloxConfig",
    "StorageConfig",
    "build_category_resilience",
    "configure_logging",
    "get_roblox_config",
    "get_storage_config",
    "optional_positive_int_env",
    "require_env_var",
    "require_env_vars",
]
