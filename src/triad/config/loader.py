"""
Configuration file loading.

Layers built-in defaults, ``config.yaml``, ``config.{env}.yaml`` and
environment variables into one Config.
"""

import copy
import os
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any

import yaml

from triad.config.resolver import apply_env_overrides, resolve_config
from triad.exceptions import ConfigurationError

DEFAULTS: dict[str, Any] = {
    "server": {
        "environment": "development",
        "host": "0.0.0.0",
        "port": 3000,
    },
    "mongodb": {
        "uri": "mongodb://localhost:27017/myapp",
        "default_database": "myapp",
    },
    "redis": {
        "url": "redis://localhost:6379",
    },
    "kafka": {
        "brokers": ["localhost:9093"],
        "client_id": "triad",
        "log_topic": "server-logs",
        "connect_retries": 5,
        "connect_delay_ms": 2000,
        # Passed straight to AIOKafkaProducer (the client's own retry knobs live here)
        "producer": {},
    },
    "logging": {
        "level": "INFO",
        "console_type": "rich",
    },
    "migrations": {
        "dir": "migrations",
        "changelog_collection": "changelog",
    },
}


class Config:
    """Triad configuration container with dict-like access."""

    def __init__(self, data: dict[str, Any]):
        self.data = data

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation."""
        value: Any = self.data
        for k in key.split("."):
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default
        return value

    def __getitem__(self, key: str) -> Any:
        """Dict-like access: config['key'] or config['nested.key']."""
        if "." in key:
            value = self.get(key)
            if value is None:
                raise KeyError(f"Config key '{key}' not found")
            return value
        if key in self.data:
            value = self.data[key]
            if isinstance(value, dict):
                return Config(value)
            return value
        raise KeyError(f"Config key '{key}' not found")

    def __contains__(self, key: str) -> bool:
        value: Any = self.data
        for k in key.split("."):
            if not isinstance(value, dict) or k not in value:
                return False
            value = value[k]
        return True

    def __iter__(self) -> Iterator[str]:
        return iter(self.data)

    def keys(self):
        return self.data.keys()

    def items(self):
        return self.data.items()

    @property
    def environment(self) -> str:
        return str(self.get("server.environment", "development"))

    def validate(self) -> None:
        """Validate configuration structure and content.

        Raises:
            ConfigurationError: listing every problem found
        """
        from triad.config.settings import KafkaSettings, ServerSettings

        errors = []
        for section in ("server", "mongodb", "redis", "kafka"):
            value = self.data.get(section)
            if value is not None and not isinstance(value, dict):
                errors.append(f"Configuration '{section}' must be a mapping, got {type(value).__name__}")
        if errors:
            raise ConfigurationError("\n".join(errors))

        for view in (ServerSettings, KafkaSettings):
            try:
                view.from_config(self)
            except ConfigurationError as e:
                errors.append(e.message)
        if errors:
            raise ConfigurationError("\n".join(errors))


def load_config(
    project_path: Path | None = None,
    env: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> Config:
    """
    Load Triad configuration.

    Both YAML files are optional; a deployment configured purely through
    environment variables gets the defaults plus its overrides.

    Args:
        project_path: Path to project root (default: current directory)
        env: Environment name (development, staging, production). Falls back
            to ``APP_ENV``.
        environ: Environment mapping (default: ``os.environ``)

    Returns:
        Config instance with merged configuration
    """
    environ = os.environ if environ is None else environ
    if project_path is None:
        project_path = Path.cwd()
    env = env or environ.get("APP_ENV") or None

    config_data = copy.deepcopy(DEFAULTS)

    base_config_path = project_path / "config.yaml"
    if base_config_path.is_file():
        _merge_dict(config_data, _read_yaml(base_config_path))

    if env:
        env_config_path = project_path / f"config.{env}.yaml"
        if env_config_path.is_file():
            _merge_dict(config_data, _read_yaml(env_config_path))

    apply_env_overrides(config_data, environ)
    if env:
        config_data["server"]["environment"] = env

    env_name = env or str(config_data["server"].get("environment") or "development")
    return Config(resolve_config(config_data, env_name, environ))


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        if mark is not None:
            raise ConfigurationError(
                f"Error parsing {path.name} at line {mark.line + 1}, column {mark.column + 1}:\n"
                f"  {e}\n"
                f"  File: {path}\n"
                f"  Suggestion: Check YAML syntax, ensure proper indentation and quotes",
                details={"file": str(path)},
            ) from e
        raise ConfigurationError(f"Error parsing {path.name}: {e}", details={"file": str(path)}) from e
    except PermissionError as e:
        raise ConfigurationError(
            f"Permission denied reading {path.name}: {path}\n  Suggestion: Check file permissions",
            details={"file": str(path)},
        ) from e

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration must be a mapping, got {type(data).__name__}",
            details={"file": str(path)},
        )
    return data


def _merge_dict(base: dict, override: dict):
    """Recursively merge override into base."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _merge_dict(base[key], value)
        else:
            base[key] = value
