"""
Kafka log viewer.

Tails the application log topic and pretty-prints each record.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import datetime
from typing import Any

from aiokafka import AIOKafkaConsumer
from rich.console import Console
from rich.text import Text

from triad.config.settings import KafkaSettings
from triad.utils.logging import get_logger

logger = get_logger("triad.services.log_viewer")

VIEWER_CLIENT_ID = "log-viewer"
VIEWER_GROUP_ID = "log-viewer-group"

LEVEL_STYLES = {
    "info": "cyan",
    "warn": "yellow",
    "error": "red",
    "debug": "bright_black",
}


def parse_log_record(raw: bytes | str) -> dict[str, Any]:
    """
    Decode a published log record.

    Raises:
        ValueError: if the payload is not a JSON object with level and message
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    record = json.loads(raw)
    if not isinstance(record, dict) or "level" not in record or "message" not in record:
        raise ValueError("log record must be an object with 'level' and 'message'")
    return record


def _local_time(timestamp: Any) -> str:
    try:
        parsed = datetime.fromisoformat(str(timestamp).replace("Z", "+00:00"))
    except ValueError:
        return str(timestamp)
    return parsed.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def render_log_record(record: dict[str, Any]) -> Text:
    """Render a record as ``[LEVEL] local-time - message`` plus indented metadata."""
    level = str(record["level"])
    text = Text()
    text.append(f"[{level.upper()}]", style=LEVEL_STYLES.get(level, ""))
    text.append(f" {_local_time(record.get('timestamp'))} - {record['message']}")

    metadata = record.get("metadata")
    if metadata:
        pretty = json.dumps(metadata, indent=2, default=str)
        text.append("\n")
        text.append("\n".join(f"  {line}" for line in pretty.splitlines()), style="bright_black")
    return text


class LogViewer:
    """
    Consumes the log topic and prints records to a rich Console.

    Args:
        settings: Kafka settings (brokers and log topic)
        from_beginning: Start from the earliest retained record
        console: Output console
        consumer_factory: Builds an unstarted consumer (default: AIOKafkaConsumer)
    """

    def __init__(
        self,
        settings: KafkaSettings,
        *,
        from_beginning: bool = False,
        console: Console | None = None,
        consumer_factory: Callable[..., Any] | None = None,
    ) -> None:
        self.settings = settings
        self.from_beginning = from_beginning
        self.console = console or Console()
        self._consumer_factory = consumer_factory or AIOKafkaConsumer
        self._consumer: Any = None

    def handle(self, raw: bytes | str | None) -> bool:
        """Print one payload. Returns False when it was skipped."""
        if not raw:
            return False
        try:
            record = parse_log_record(raw)
        except ValueError as e:
            self.console.print(f"[red]Failed to parse log message:[/red] {e}")
            return False
        self.console.print(render_log_record(record))
        self.console.print()
        return True

    async def run(self) -> None:
        """Consume until cancelled."""
        self._consumer = self._consumer_factory(
            self.settings.log_topic,
            bootstrap_servers=self.settings.bootstrap_servers,
            client_id=VIEWER_CLIENT_ID,
            group_id=VIEWER_GROUP_ID,
            auto_offset_reset="earliest" if self.from_beginning else "latest",
        )
        try:
            await self._consumer.start()
            self.console.print("[bold]Kafka Log Viewer Started[/bold]")
            self.console.print(f"Listening to topic: [bold]{self.settings.log_topic}[/bold]\n")
            async for message in self._consumer:
                self.handle(message.value)
        finally:
            await self.stop()

    async def stop(self) -> None:
        if self._consumer is not None:
            consumer, self._consumer = self._consumer, None
            await consumer.stop()
            logger.info("Log viewer stopped")
