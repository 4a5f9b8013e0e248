"""
Typed views over a loaded Config.

Each view validates and converts one section, raising ConfigurationError
with the offending key.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from triad.config.loader import Config
from triad.core.retry.policy import RetryPolicy
from triad.exceptions import ConfigurationError


def _as_int(value: Any, key: str) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"'{key}' must be an integer, got {value!r}", details={"key": key})
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"'{key}' must be an integer, got {value!r}", details={"key": key}) from None


@dataclass(frozen=True)
class ServerSettings:
    environment: str = "development"
    host: str = "0.0.0.0"
    port: int = 3000

    @classmethod
    def from_config(cls, config: Config) -> ServerSettings:
        port = _as_int(config.get("server.port", 3000), "server.port")
        if not 0 < port < 65536:
            raise ConfigurationError(f"'server.port' must be between 1 and 65535, got {port}", details={"key": "server.port"})
        return cls(
            environment=str(config.get("server.environment", "development")),
            host=str(config.get("server.host", "0.0.0.0")),
            port=port,
        )


@dataclass(frozen=True)
class MongoSettings:
    uri: str = "mongodb://localhost:27017/myapp"
    default_database: str = "myapp"

    @classmethod
    def from_config(cls, config: Config) -> MongoSettings:
        return cls(
            uri=str(config.get("mongodb.uri", cls.uri)),
            default_database=str(config.get("mongodb.default_database", cls.default_database)),
        )


@dataclass(frozen=True)
class RedisSettings:
    url: str = "redis://localhost:6379"

    @classmethod
    def from_config(cls, config: Config) -> RedisSettings:
        return cls(url=str(config.get("redis.url", cls.url)))


@dataclass(frozen=True)
class KafkaSettings:
    brokers: tuple[str, ...] = ("localhost:9093",)
    client_id: str = "triad"
    log_topic: str = "server-logs"
    connect_retries: int = 5
    connect_delay_ms: int = 2000
    producer_options: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_config(cls, config: Config) -> KafkaSettings:
        brokers = config.get("kafka.brokers", list(cls.brokers))
        if isinstance(brokers, str):
            brokers = [b.strip() for b in brokers.split(",") if b.strip()]
        if not brokers:
            raise ConfigurationError("'kafka.brokers' must list at least one broker", details={"key": "kafka.brokers"})

        settings = cls(
            brokers=tuple(str(b) for b in brokers),
            client_id=str(config.get("kafka.client_id", cls.client_id)),
            log_topic=str(config.get("kafka.log_topic", cls.log_topic)),
            connect_retries=_as_int(config.get("kafka.connect_retries", 5), "kafka.connect_retries"),
            connect_delay_ms=_as_int(config.get("kafka.connect_delay_ms", 2000), "kafka.connect_delay_ms"),
            producer_options=dict(config.get("kafka.producer", {}) or {}),
        )
        # Fail fast on an invalid policy
        settings.retry_policy()
        return settings

    @property
    def bootstrap_servers(self) -> str:
        return ",".join(self.brokers)

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(max_retries=self.connect_retries, delay_ms=self.connect_delay_ms)


@dataclass(frozen=True)
class MigrationSettings:
    dir: str = "migrations"
    changelog_collection: str = "changelog"

    @classmethod
    def from_config(cls, config: Config) -> MigrationSettings:
        return cls(
            dir=str(config.get("migrations.dir", cls.dir)),
            changelog_collection=str(config.get("migrations.changelog_collection", cls.changelog_collection)),
        )
