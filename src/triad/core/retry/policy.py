"""
Connection retry policy and the types a connect sequence produces.

The policy is a bounded retry with a flat delay: no exponential growth and
no jitter, so the timing of a sequence is fully determined by
``max_retries`` and ``delay_ms``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

from triad.exceptions import ConfigurationError

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Configuration for establishing a connection to an unreliable service.

    Examples:
        >>> policy = RetryPolicy(max_retries=5, delay_ms=2000)
        >>> policy.delay_seconds
        2.0

        >>> RetryPolicy(max_retries=0)
        Traceback (most recent call last):
        ...
        triad.exceptions.ConfigurationError: max_retries must be >= 1, got 0
    """

    # Total number of attempts, including the first one
    max_retries: int = 5

    # Flat wait between a failed attempt and the next one
    delay_ms: int = 2000

    def __post_init__(self) -> None:
        if isinstance(self.max_retries, bool) or not isinstance(self.max_retries, int):
            raise ConfigurationError(
                f"max_retries must be an integer, got {self.max_retries!r}",
                details={"max_retries": self.max_retries},
            )
        if isinstance(self.delay_ms, bool) or not isinstance(self.delay_ms, int):
            raise ConfigurationError(
                f"delay_ms must be an integer, got {self.delay_ms!r}",
                details={"delay_ms": self.delay_ms},
            )
        if self.max_retries < 1:
            raise ConfigurationError(
                f"max_retries must be >= 1, got {self.max_retries}",
                details={"max_retries": self.max_retries},
            )
        if self.delay_ms < 0:
            raise ConfigurationError(
                f"delay_ms must be >= 0, got {self.delay_ms}",
                details={"delay_ms": self.delay_ms},
            )

    @property
    def delay_seconds(self) -> float:
        return self.delay_ms / 1000.0

    def should_delay(self, attempt: int) -> bool:
        """Whether a failed ``attempt`` (1-indexed) is followed by a delay."""
        return attempt < self.max_retries


class ConnectionState(str, Enum):
    """Lifecycle of a connection owned by a retrier."""

    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    DEGRADED_FALLBACK = "degraded_fallback"


class AttemptOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class ConnectionAttempt:
    """Report of a single attempt, handed to the reporting callback."""

    attempt: int
    max_retries: int
    outcome: AttemptOutcome
    error: BaseException | None = None

    @property
    def is_last(self) -> bool:
        return self.attempt == self.max_retries

    def to_dict(self) -> dict:
        return {
            "attempt": self.attempt,
            "max_retries": self.max_retries,
            "outcome": self.outcome.value,
            "error": None if self.error is None else f"{type(self.error).__name__}: {self.error}",
        }


@dataclass(frozen=True)
class Connected(Generic[T]):
    """A live handle, obtained after ``attempts`` tries."""

    handle: T
    attempts: int

    @property
    def state(self) -> ConnectionState:
        return ConnectionState.CONNECTED


@dataclass(frozen=True)
class Fallback:
    """Every attempt failed; dependents must use their fallback path."""

    attempts: int
    last_error: BaseException | None = None

    @property
    def state(self) -> ConnectionState:
        return ConnectionState.DEGRADED_FALLBACK


ConnectOutcome = Union[Connected[T], Fallback]
