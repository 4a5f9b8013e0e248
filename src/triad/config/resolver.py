"""
Configuration resolution and environment variable substitution.

Resolves ``${VAR_NAME}`` and ``{env}`` placeholders and applies the
well-known environment variable overrides.
"""

import os
import re
from collections.abc import Mapping
from typing import Any

# Environment variable -> (dotted config path, converter)
ENV_OVERRIDES: dict[str, tuple[str, Any]] = {
    "APP_ENV": ("server.environment", str),
    "HOST": ("server.host", str),
    "PORT": ("server.port", str),
    "MONGODB_URI": ("mongodb.uri", str),
    "REDIS_URL": ("redis.url", str),
    "KAFKA_BROKERS": ("kafka.brokers", lambda v: [b.strip() for b in v.split(",") if b.strip()]),
    "KAFKA_CLIENT_ID": ("kafka.client_id", str),
    "KAFKA_LOG_TOPIC": ("kafka.log_topic", str),
    "KAFKA_CONNECT_RETRIES": ("kafka.connect_retries", str),
    "KAFKA_CONNECT_DELAY_MS": ("kafka.connect_delay_ms", str),
    "LOG_LEVEL": ("logging.level", str),
}


def resolve_config(
    config_data: dict[str, Any], env: str = "development", environ: Mapping[str, str] | None = None
) -> dict[str, Any]:
    """
    Resolve configuration with environment variable substitution.

    Args:
        config_data: Configuration dictionary
        env: Current environment name
        environ: Values for ``${VAR}`` placeholders (default: ``os.environ``)

    Returns:
        Resolved configuration
    """
    return _resolve_value(config_data, env, os.environ if environ is None else environ)


def _resolve_value(value: Any, env: str, environ: Mapping[str, str]) -> Any:
    """Recursively resolve values in configuration."""
    if isinstance(value, dict):
        return {k: _resolve_value(v, env, environ) for k, v in value.items()}
    elif isinstance(value, list):
        return [_resolve_value(item, env, environ) for item in value]
    elif isinstance(value, str):
        result = re.sub(r"\${([^}]+)}", lambda m: environ.get(m.group(1), m.group(0)), value)
        return result.replace("{env}", env)
    else:
        return value


def apply_env_overrides(config_data: dict[str, Any], environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """
    Overlay well-known environment variables onto the config, in place.

    Empty variables are ignored. Numeric values stay strings here and are
    converted by the typed settings views.
    """
    environ = os.environ if environ is None else environ
    for var, (path, convert) in ENV_OVERRIDES.items():
        raw = environ.get(var)
        if not raw:
            continue
        _set_path(config_data, path, convert(raw))
    return config_data


def _set_path(data: dict[str, Any], path: str, value: Any) -> None:
    keys = path.split(".")
    node = data
    for key in keys[:-1]:
        child = node.get(key)
        if not isinstance(child, dict):
            child = {}
            node[key] = child
        node = child
    node[keys[-1]] = value
