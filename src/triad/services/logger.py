"""
Application log publisher.

Log records are published as JSON to a Kafka topic. Connecting goes through
the connection retrier; when every attempt fails the publisher keeps working
and writes records to the local ``triad.applog`` logger instead.

Example:
    publisher = LogPublisher(KafkaSettings.from_config(config))
    await publisher.connect()
    await publisher.info("Cache hit", {"key": "user:1"})
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal, Protocol

from aiokafka import AIOKafkaProducer

from triad.config.settings import KafkaSettings
from triad.core.retry import (
    Connected,
    ConnectionRetrier,
    ConnectionState,
    ConnectOutcome,
    RetryPolicy,
)
from triad.core.retry.connector import Reporter, Sleeper
from triad.utils.logging import get_logger

logger = get_logger("triad.services.logger")

LogLevel = Literal["info", "warn", "error", "debug"]

_STD_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class LogMessage:
    """One application log record."""

    level: LogLevel
    message: str
    timestamp: str = field(default_factory=utc_timestamp)
    metadata: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "level": self.level,
            "message": self.message,
            "timestamp": self.timestamp,
        }
        if self.metadata is not None:
            data["metadata"] = self.metadata
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


class LogSink(Protocol):
    async def send(self, record: LogMessage) -> None: ...


class ConsoleLogSink:
    """Writes records to a local logger."""

    def __init__(self, logger_name: str = "triad.applog") -> None:
        self._logger = get_logger(logger_name)

    async def send(self, record: LogMessage) -> None:
        suffix = f" {json.dumps(record.metadata, default=str)}" if record.metadata else ""
        self._logger.log(
            _STD_LEVELS.get(record.level, logging.INFO),
            f"[{record.level.upper()}] {record.message}{suffix}",
        )


class KafkaLogSink:
    """Publishes records to a Kafka topic, keyed by level."""

    def __init__(self, producer: Any, topic: str) -> None:
        self.producer = producer
        self.topic = topic

    async def send(self, record: LogMessage) -> None:
        await self.producer.send_and_wait(
            self.topic,
            key=record.level.encode("utf-8"),
            value=record.to_json().encode("utf-8"),
        )


class LogPublisher:
    """
    Kafka-backed application logger with a console fallback.

    Args:
        settings: Kafka settings (brokers, topic, connect retry policy)
        producer_factory: Builds an unstarted producer (default: AIOKafkaProducer)
        reporter: Receives a ConnectionAttempt after every connect attempt
        sleep: Coroutine used for the delay between connect attempts
    """

    def __init__(
        self,
        settings: KafkaSettings | None = None,
        *,
        producer_factory: Callable[[], Any] | None = None,
        reporter: Reporter | None = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.settings = settings or KafkaSettings()
        self._producer_factory = producer_factory or self._build_producer
        self._retrier: ConnectionRetrier[Any] = ConnectionRetrier(
            self.settings.retry_policy(),
            name="Kafka",
            reporter=reporter,
            sleep=sleep,
        )
        self._fallback = ConsoleLogSink()
        self._sink: LogSink = self._fallback
        self._outcome: ConnectOutcome[Any] | None = None

    def _build_producer(self) -> AIOKafkaProducer:
        # producer_options carries the client's own retry settings (retry_backoff_ms, ...)
        return AIOKafkaProducer(
            bootstrap_servers=self.settings.bootstrap_servers,
            client_id=self.settings.client_id,
            **self.settings.producer_options,
        )

    async def _start_producer(self) -> Any:
        producer = self._producer_factory()
        try:
            await producer.start()
        except Exception:
            try:
                await producer.stop()
            except Exception as stop_error:
                logger.debug(f"Ignoring error while stopping failed producer: {stop_error}")
            raise
        return producer

    async def connect(self, max_retries: int | None = None, delay_ms: int | None = None) -> ConnectOutcome[Any]:
        """
        Connect the producer, retrying per the configured policy.

        Never raises on connection failure; a Fallback outcome switches the
        publisher to the console sink. ``max_retries``/``delay_ms`` override
        the configured policy for this call only.
        """
        policy = self._retrier.policy
        if max_retries is not None or delay_ms is not None:
            policy = RetryPolicy(
                max_retries=policy.max_retries if max_retries is None else max_retries,
                delay_ms=policy.delay_ms if delay_ms is None else delay_ms,
            )

        outcome = await self._retrier.connect(self._start_producer, policy=policy)
        self._use(outcome)
        return outcome

    def _use(self, outcome: ConnectOutcome[Any]) -> None:
        self._outcome = outcome
        if isinstance(outcome, Connected):
            self._sink = KafkaLogSink(outcome.handle, self.settings.log_topic)
        else:
            self._sink = self._fallback

    async def disconnect(self) -> None:
        """Stop the producer and fall back to the console sink."""
        outcome = self._outcome
        self._outcome = None
        self._sink = self._fallback
        self._retrier.state = ConnectionState.DISCONNECTED
        if isinstance(outcome, Connected):
            await outcome.handle.stop()
            logger.info("Disconnected from Kafka")

    async def _send_log(self, record: LogMessage) -> None:
        sink = self._sink
        try:
            await sink.send(record)
        except Exception as e:
            if sink is self._fallback:
                raise
            logger.error(f"Failed to send log to Kafka: {e}")
            await self._fallback.send(record)

    async def log(self, level: LogLevel, message: str, metadata: dict[str, Any] | None = None) -> None:
        await self._send_log(LogMessage(level=level, message=message, metadata=metadata))

    async def info(self, message: str, metadata: dict[str, Any] | None = None) -> None:
        await self.log("info", message, metadata)

    async def warn(self, message: str, metadata: dict[str, Any] | None = None) -> None:
        await self.log("warn", message, metadata)

    async def error(self, message: str, metadata: dict[str, Any] | None = None) -> None:
        await self.log("error", message, metadata)

    async def debug(self, message: str, metadata: dict[str, Any] | None = None) -> None:
        await self.log("debug", message, metadata)

    @property
    def state(self) -> ConnectionState:
        return self._retrier.state

    @property
    def policy(self) -> RetryPolicy:
        return self._retrier.policy

    def get_connection_status(self) -> bool:
        return self.state is ConnectionState.CONNECTED
