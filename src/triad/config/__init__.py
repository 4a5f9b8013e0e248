"""
Configuration management.

Configuration file parsing, environment overrides and typed section views.
"""

from triad.config.loader import Config, load_config
from triad.config.resolver import apply_env_overrides, resolve_config
from triad.config.settings import (
    KafkaSettings,
    MigrationSettings,
    MongoSettings,
    RedisSettings,
    ServerSettings,
)

__all__ = [
    "load_config",
    "Config",
    "resolve_config",
    "apply_env_overrides",
    "ServerSettings",
    "MongoSettings",
    "RedisSettings",
    "KafkaSettings",
    "MigrationSettings",
]
