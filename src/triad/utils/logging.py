"""
Process logging for Triad.

Everything under the ``triad`` logger goes to the console (rich or plain)
and optionally to a file. Application log records published to Kafka are
a separate stream, see ``triad.services.logger``.
"""

import logging
import sys
import traceback
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "triad"

LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class FileFormatter(logging.Formatter):
    """``timestamp [LEVEL] logger: message``, one record per line plus traceback."""

    def __init__(self) -> None:
        super().__init__(fmt="%(asctime)s [%(levelname)-8s] %(name)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S")

    def formatException(self, ei) -> str:
        return "".join(traceback.format_exception(*ei)).rstrip("\n")


class ConsoleFormatter(logging.Formatter):
    """Plain console format; errors also show ``file:line``."""

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        where = ""
        if record.levelno >= logging.ERROR and record.pathname:
            where = f"{Path(record.pathname).name}:{record.lineno} - "
        return f"{record.levelname}: {self.formatTime(record)} - {where}{record.getMessage()}"


def _parse_level(level: str | int) -> int:
    """Level name or number to a logging constant; unknown names give INFO."""
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        return LEVEL_MAP.get(level.upper(), logging.INFO)
    return logging.INFO


def _console_handler(level: int, use_rich: bool, console: Console | None, format_string: str | None) -> logging.Handler:
    if use_rich:
        return RichHandler(
            level=level,
            console=console or Console(stderr=True),
            show_path=False,
            markup=False,
            rich_tracebacks=True,
            log_time_format="[%X]",
            omit_repeated_times=False,
        )
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(format_string) if format_string else ConsoleFormatter())
    return handler


def _file_handler(log_file: Path, file_mode: str) -> logging.Handler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, mode=file_mode)
    # The logger's level filters; the file keeps whatever gets through
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(FileFormatter())
    return handler


def setup_logging(
    level: str | int = logging.INFO,
    log_file: str | Path | None = None,
    format_string: str | None = None,
    file_mode: str = "a",
    console: Console | None = None,
    console_enabled: bool = True,
    use_rich: bool = True,
) -> logging.Logger:
    """
    Configure the ``triad`` logger. Safe to call again; previous handlers are closed.

    Args:
        level: Level name (DEBUG, INFO, ...) or number
        log_file: Also write to this file
        format_string: Format for the plain console handler
        file_mode: 'a' to append to log_file, 'w' to truncate it
        console: Rich Console to render to (default: stderr)
        console_enabled: Attach a console handler at all
        use_rich: Render the console with RichHandler instead of plain text

    Returns:
        The configured logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    level_int = _parse_level(level)
    logger.setLevel(level_int)

    if console_enabled:
        logger.addHandler(_console_handler(level_int, use_rich, console, format_string))
    if log_file:
        logger.addHandler(_file_handler(Path(log_file), file_mode))

    logger.propagate = True
    return logger


def setup_logging_from_config(config: Any, project_dir: Path | None = None) -> logging.Logger:
    """
    Configure logging from the ``logging`` config section.

    Keys: ``level``, ``file`` (relative paths resolve against project_dir),
    ``file_mode``, ``format``, ``console_enabled``, ``console_type``
    ("rich" or "plain").
    """
    data = getattr(config, "data", config) or {}
    section = data.get("logging") or {}

    log_file = section.get("file")
    if log_file and project_dir and not Path(log_file).is_absolute():
        log_file = project_dir / log_file

    return setup_logging(
        level=section.get("level", logging.INFO),
        log_file=log_file,
        format_string=section.get("format"),
        file_mode=section.get("file_mode", "a"),
        console_enabled=section.get("console_enabled", True),
        use_rich=section.get("console_type", "rich") == "rich",
    )


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """Logger for a ``triad.*`` module."""
    logger = logging.getLogger(name)
    # Child loggers reach the handlers attached to "triad"
    logger.propagate = True
    return logger
