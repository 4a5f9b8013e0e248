"""
Connection retrier: runs a connect sequence under a RetryPolicy.

Exhaustion is a normal outcome here, not an exception. The caller gets a
``Connected`` or a ``Fallback`` back and picks its behavior from that.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

from triad.core.retry.policy import (
    AttemptOutcome,
    Connected,
    ConnectionAttempt,
    ConnectionState,
    ConnectOutcome,
    Fallback,
    RetryPolicy,
)
from triad.exceptions import ConnectSequenceInProgressError
from triad.utils.logging import get_logger

logger = get_logger("triad.retry")

T = TypeVar("T")

Reporter = Callable[[ConnectionAttempt], None]
Sleeper = Callable[[float], Awaitable[object]]


class ConnectionRetrier(Generic[T]):
    """
    Establishes a connection with bounded retries and a flat delay.

    Owns the ConnectionState of one dependency. Every call to ``connect``
    starts a fresh sequence from ``DISCONNECTED``; nothing is remembered
    from a previous exhaustion.

    Examples:
        >>> retrier = ConnectionRetrier(RetryPolicy(max_retries=5, delay_ms=2000), name="kafka")
        >>> outcome = await retrier.connect(start_producer)
        >>> if isinstance(outcome, Connected):
        ...     producer = outcome.handle

    Args:
        policy: Retry policy (default: 5 attempts, 2000ms apart)
        name: Name of the dependency, used in logs
        reporter: Called with a ConnectionAttempt after every attempt
        sleep: Coroutine used for the inter-attempt delay
    """

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        *,
        name: str = "service",
        reporter: Reporter | None = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.policy = policy or RetryPolicy()
        self.name = name
        self.reporter = reporter
        self._sleep = sleep
        self.state = ConnectionState.DISCONNECTED
        self.attempts: list[ConnectionAttempt] = []
        self._in_flight = False

    async def connect(
        self,
        establish: Callable[[], Awaitable[T]],
        policy: RetryPolicy | None = None,
    ) -> ConnectOutcome[T]:
        """
        Run one connect sequence.

        Args:
            establish: Idempotent coroutine function returning a live handle
            policy: Policy for this sequence only (default: ``self.policy``)

        Returns:
            Connected(handle) on the first successful attempt, Fallback once
            every attempt has failed

        Raises:
            ConnectSequenceInProgressError: if a sequence is already running
        """
        if self._in_flight:
            raise ConnectSequenceInProgressError(self.name)

        self._in_flight = True
        self.state = ConnectionState.DISCONNECTED
        self.attempts = []
        try:
            return await self._run(establish, policy or self.policy)
        finally:
            self._in_flight = False

    async def _run(self, establish: Callable[[], Awaitable[T]], policy: RetryPolicy) -> ConnectOutcome[T]:
        # The policy is fixed for the whole sequence
        max_retries = policy.max_retries
        last_error: Exception | None = None
        attempt = 0

        while attempt < max_retries:
            attempt += 1
            try:
                handle = await establish()
            except Exception as e:
                last_error = e
                self._report(ConnectionAttempt(attempt, max_retries, AttemptOutcome.FAILED, e))
                logger.warning(f"{self.name} connection attempt {attempt}/{max_retries} failed: {e}")

                if not policy.should_delay(attempt):
                    break
                await self._sleep(policy.delay_seconds)
                continue

            self._report(ConnectionAttempt(attempt, max_retries, AttemptOutcome.SUCCEEDED))
            self.state = ConnectionState.CONNECTED
            logger.info(f"Connected to {self.name} (attempt {attempt}/{max_retries})")
            return Connected(handle=handle, attempts=attempt)

        self.state = ConnectionState.DEGRADED_FALLBACK
        logger.error(f"{self.name} connection failed after {attempt} attempts: {last_error}")
        logger.warning(f"Continuing without {self.name}; dependent operations use their fallback")
        return Fallback(attempts=attempt, last_error=last_error)

    def _report(self, attempt: ConnectionAttempt) -> None:
        self.attempts.append(attempt)
        if self.reporter is None:
            return
        try:
            self.reporter(attempt)
        except Exception:
            # A broken reporter never changes the outcome of a sequence
            logger.exception(f"Connection reporter for {self.name} raised on attempt {attempt.attempt}")


async def connect_with_retry(
    establish: Callable[[], Awaitable[T]],
    max_retries: int,
    delay_ms: int,
    *,
    name: str = "service",
    reporter: Reporter | None = None,
    sleep: Sleeper = asyncio.sleep,
) -> ConnectOutcome[T]:
    """
    One-shot form of ConnectionRetrier.connect.

    The policy is validated before any attempt, so an invalid
    ``max_retries``/``delay_ms`` raises ConfigurationError and ``establish``
    is never called.
    """
    policy = RetryPolicy(max_retries=max_retries, delay_ms=delay_ms)
    retrier: ConnectionRetrier[T] = ConnectionRetrier(policy, name=name, reporter=reporter, sleep=sleep)
    return await retrier.connect(establish)
