"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .search import SearchConfig, apply_env_overrides, load_search_config, parse_search_config
from .sources import BusinessSourceConfig, SheetMode, SheetSourceConfig
from .storage import StorageConfig, get_storage_config

__all__ = [
    "BusinessSourceConfig",
    "CacheConfig",
    "ConfigurationError",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "SearchConfig",
    "SheetMode",
    "SheetSourceConfig",
    "StorageConfig",
    "apply_env_overrides",
    "get_storage_config",
    "load_search_config",
    "optional_env_var",
    "parse_search_config",
    "require_env_vars",
]
