"""
Tests for the connection retry framework.

Covers RetryPolicy validation, the retrier's attempt/delay accounting,
the Connected/Fallback outcomes and the reporting callback.
"""

import asyncio
import time

import pytest

from triad.core.retry import (
    AttemptOutcome,
    Connected,
    ConnectionAttempt,
    ConnectionRetrier,
    ConnectionState,
    Fallback,
    RetryPolicy,
    connect_with_retry,
)
from triad.exceptions import ConfigurationError, ConnectSequenceInProgressError


class FlakyService:
    """Fails the first ``failures`` calls (all of them when None), then returns a handle."""

    def __init__(self, failures=None, handle="connection", events=None):
        self.failures = failures
        self.handle = handle
        self.calls = 0
        self.events = events if events is not None else []

    async def __call__(self):
        self.calls += 1
        if self.failures is None or self.calls <= self.failures:
            self.events.append(("fail", self.calls))
            raise ConnectionError(f"attempt {self.calls} refused")
        self.events.append(("ok", self.calls))
        return self.handle


class RecordingSleep:
    """Records requested delays without waiting."""

    def __init__(self, events=None):
        self.delays = []
        self.events = events if events is not None else []

    async def __call__(self, seconds):
        self.delays.append(seconds)
        self.events.append(("sleep", seconds))


class TestRetryPolicy:
    """Tests for RetryPolicy configuration."""

    def test_default_values(self):
        policy = RetryPolicy()
        assert policy.max_retries == 5
        assert policy.delay_ms == 2000
        assert policy.delay_seconds == 2.0

    def test_custom_values(self):
        policy = RetryPolicy(max_retries=3, delay_ms=100)
        assert policy.max_retries == 3
        assert policy.delay_seconds == pytest.approx(0.1)

    def test_zero_delay_allowed(self):
        assert RetryPolicy(max_retries=1, delay_ms=0).delay_seconds == 0.0

    def test_validation_max_retries(self):
        with pytest.raises(ConfigurationError, match="max_retries must be >= 1"):
            RetryPolicy(max_retries=0)

    def test_validation_negative_delay(self):
        with pytest.raises(ConfigurationError, match="delay_ms must be >= 0"):
            RetryPolicy(delay_ms=-1)

    def test_validation_rejects_non_integers(self):
        with pytest.raises(ConfigurationError, match="max_retries must be an integer"):
            RetryPolicy(max_retries=2.5)
        with pytest.raises(ConfigurationError, match="delay_ms must be an integer"):
            RetryPolicy(delay_ms="100")
        with pytest.raises(ConfigurationError):
            RetryPolicy(max_retries=True)

    def test_policy_is_immutable(self):
        policy = RetryPolicy()
        with pytest.raises(AttributeError):
            policy.max_retries = 10

    def test_should_delay_only_between_attempts(self):
        policy = RetryPolicy(max_retries=3, delay_ms=10)
        assert policy.should_delay(1) is True
        assert policy.should_delay(2) is True
        assert policy.should_delay(3) is False


class TestConnectionRetrier:
    """Tests for the connect sequence."""

    @pytest.mark.asyncio
    async def test_success_first_attempt(self):
        service = FlakyService(failures=0)
        sleep = RecordingSleep()
        retrier = ConnectionRetrier(RetryPolicy(max_retries=5, delay_ms=50), sleep=sleep)

        outcome = await retrier.connect(service)

        assert outcome == Connected(handle="connection", attempts=1)
        assert service.calls == 1
        assert sleep.delays == []
        assert retrier.state is ConnectionState.CONNECTED

    @pytest.mark.parametrize("succeed_on", [1, 2, 3, 4])
    @pytest.mark.asyncio
    async def test_success_on_attempt_i_makes_exactly_i_attempts(self, succeed_on):
        service = FlakyService(failures=succeed_on - 1)
        sleep = RecordingSleep()
        retrier = ConnectionRetrier(RetryPolicy(max_retries=4, delay_ms=25), sleep=sleep)

        outcome = await retrier.connect(service)

        assert isinstance(outcome, Connected)
        assert outcome.attempts == succeed_on
        assert service.calls == succeed_on
        assert sleep.delays == [0.025] * (succeed_on - 1)

    @pytest.mark.asyncio
    async def test_always_failing_degrades_to_fallback(self):
        service = FlakyService(failures=None)
        sleep = RecordingSleep()
        retrier = ConnectionRetrier(RetryPolicy(max_retries=5, delay_ms=100), sleep=sleep)

        outcome = await retrier.connect(service)

        assert isinstance(outcome, Fallback)
        assert outcome.attempts == 5
        assert isinstance(outcome.last_error, ConnectionError)
        assert str(outcome.last_error) == "attempt 5 refused"
        assert service.calls == 5
        assert sleep.delays == [0.1] * 4
        assert retrier.state is ConnectionState.DEGRADED_FALLBACK
        assert outcome.state is ConnectionState.DEGRADED_FALLBACK

    @pytest.mark.asyncio
    async def test_delay_never_follows_success_or_last_failure(self):
        events = []
        sleep = RecordingSleep(events)

        retrier = ConnectionRetrier(RetryPolicy(max_retries=3, delay_ms=10), sleep=sleep)
        await retrier.connect(FlakyService(failures=1, events=events))
        assert events == [("fail", 1), ("sleep", 0.01), ("ok", 2)]

        events.clear()
        await retrier.connect(FlakyService(failures=None, events=events))
        assert events == [("fail", 1), ("sleep", 0.01), ("fail", 2), ("sleep", 0.01), ("fail", 3)]

    @pytest.mark.asyncio
    async def test_single_attempt_policy_never_sleeps(self):
        sleep = RecordingSleep()
        retrier = ConnectionRetrier(RetryPolicy(max_retries=1, delay_ms=1000), sleep=sleep)

        outcome = await retrier.connect(FlakyService(failures=None))

        assert isinstance(outcome, Fallback)
        assert outcome.attempts == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_fails_twice_then_connects_with_real_delay(self):
        """maxRetries=3, delayMs=100: three attempts, two 100ms waits."""
        service = FlakyService(failures=2, handle="broker")
        retrier = ConnectionRetrier(RetryPolicy(max_retries=3, delay_ms=100))

        started = time.monotonic()
        outcome = await retrier.connect(service)
        elapsed = time.monotonic() - started

        assert outcome == Connected(handle="broker", attempts=3)
        assert service.calls == 3
        assert elapsed >= 0.2

    @pytest.mark.asyncio
    async def test_delay_yields_to_event_loop(self):
        ticks = 0

        async def ticker():
            nonlocal ticks
            while True:
                ticks += 1
                await asyncio.sleep(0.005)

        task = asyncio.create_task(ticker())
        try:
            retrier = ConnectionRetrier(RetryPolicy(max_retries=2, delay_ms=50))
            await retrier.connect(FlakyService(failures=1))
        finally:
            task.cancel()
        assert ticks > 1

    @pytest.mark.asyncio
    async def test_restart_after_fallback_runs_fresh_sequence(self):
        sleep = RecordingSleep()
        retrier = ConnectionRetrier(RetryPolicy(max_retries=3, delay_ms=10), sleep=sleep)

        first = await retrier.connect(FlakyService(failures=None))
        assert isinstance(first, Fallback)
        assert len(retrier.attempts) == 3

        service = FlakyService(failures=2)
        second = await retrier.connect(service)

        assert second == Connected(handle="connection", attempts=3)
        assert service.calls == 3
        assert [a.attempt for a in retrier.attempts] == [1, 2, 3]
        assert retrier.state is ConnectionState.CONNECTED

    @pytest.mark.asyncio
    async def test_non_connection_errors_are_retried(self):
        calls = 0

        async def establish():
            nonlocal calls
            calls += 1
            if calls == 1:
                raise TimeoutError("handshake timed out")
            return "ok"

        outcome = await ConnectionRetrier(RetryPolicy(max_retries=2, delay_ms=0)).connect(establish)
        assert outcome == Connected(handle="ok", attempts=2)

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self):
        async def establish():
            raise asyncio.CancelledError()

        retrier = ConnectionRetrier(RetryPolicy(max_retries=3, delay_ms=0))
        with pytest.raises(asyncio.CancelledError):
            await retrier.connect(establish)

    @pytest.mark.asyncio
    async def test_concurrent_sequence_is_rejected(self):
        gate = asyncio.Event()

        async def slow_establish():
            await gate.wait()
            return "conn"

        retrier = ConnectionRetrier(RetryPolicy(max_retries=1, delay_ms=0), name="kafka")
        first = asyncio.create_task(retrier.connect(slow_establish))
        await asyncio.sleep(0)

        with pytest.raises(ConnectSequenceInProgressError, match="kafka"):
            await retrier.connect(slow_establish)

        gate.set()
        assert isinstance(await first, Connected)

        # Guard is released once the sequence completes
        assert isinstance(await retrier.connect(slow_establish), Connected)

    @pytest.mark.asyncio
    async def test_per_call_policy_leaves_configured_policy(self):
        sleep = RecordingSleep()
        configured = RetryPolicy(max_retries=5, delay_ms=100)
        retrier = ConnectionRetrier(configured, sleep=sleep)

        outcome = await retrier.connect(FlakyService(failures=None), policy=RetryPolicy(max_retries=2, delay_ms=10))

        assert outcome.attempts == 2
        assert sleep.delays == [0.01]
        assert retrier.policy is configured

    @pytest.mark.asyncio
    async def test_policy_swapped_mid_sequence_is_ignored(self):
        gate = asyncio.Event()
        service = FlakyService(failures=None)

        async def gated_sleep(seconds):
            await gate.wait()

        retrier = ConnectionRetrier(RetryPolicy(max_retries=4, delay_ms=10), sleep=gated_sleep)
        task = asyncio.create_task(retrier.connect(service))
        while service.calls == 0:
            await asyncio.sleep(0)

        retrier.policy = RetryPolicy(max_retries=1, delay_ms=10)
        gate.set()
        outcome = await task

        assert isinstance(outcome, Fallback)
        assert outcome.attempts == service.calls == 4


class TestReporting:
    """Tests for the per-attempt reporting callback."""

    @pytest.mark.asyncio
    async def test_reporter_receives_every_attempt(self):
        reports = []
        retrier = ConnectionRetrier(
            RetryPolicy(max_retries=3, delay_ms=0),
            reporter=reports.append,
            sleep=RecordingSleep(),
        )

        await retrier.connect(FlakyService(failures=2))

        assert [(r.attempt, r.max_retries, r.outcome) for r in reports] == [
            (1, 3, AttemptOutcome.FAILED),
            (2, 3, AttemptOutcome.FAILED),
            (3, 3, AttemptOutcome.SUCCEEDED),
        ]
        assert isinstance(reports[0].error, ConnectionError)
        assert reports[2].error is None
        assert reports[2].is_last

    @pytest.mark.asyncio
    async def test_failing_reporter_does_not_change_outcome(self):
        def broken_reporter(attempt):
            raise RuntimeError("sink unavailable")

        sleep = RecordingSleep()
        retrier = ConnectionRetrier(
            RetryPolicy(max_retries=3, delay_ms=5),
            reporter=broken_reporter,
            sleep=sleep,
        )

        outcome = await retrier.connect(FlakyService(failures=1))

        assert outcome == Connected(handle="connection", attempts=2)
        assert sleep.delays == [0.005]

    def test_attempt_to_dict(self):
        attempt = ConnectionAttempt(2, 5, AttemptOutcome.FAILED, ConnectionError("refused"))
        assert attempt.to_dict() == {
            "attempt": 2,
            "max_retries": 5,
            "outcome": "failed",
            "error": "ConnectionError: refused",
        }

    @pytest.mark.asyncio
    async def test_attempts_are_logged(self, caplog):
        caplog.set_level("DEBUG", logger="triad.retry")
        retrier = ConnectionRetrier(RetryPolicy(max_retries=2, delay_ms=0), name="Kafka", sleep=RecordingSleep())

        await retrier.connect(FlakyService(failures=None))

        messages = [r.getMessage() for r in caplog.records if r.name == "triad.retry"]
        assert any("Kafka connection attempt 1/2 failed" in m for m in messages)
        assert any("Kafka connection attempt 2/2 failed" in m for m in messages)
        assert any("Continuing without Kafka" in m for m in messages)


class TestConnectWithRetry:
    """Tests for the one-shot helper."""

    @pytest.mark.asyncio
    async def test_always_failing_five_attempts_four_delays(self):
        service = FlakyService(failures=None)
        sleep = RecordingSleep()

        outcome = await connect_with_retry(service, max_retries=5, delay_ms=100, sleep=sleep)

        assert isinstance(outcome, Fallback)
        assert service.calls == 5
        assert sleep.delays == [0.1, 0.1, 0.1, 0.1]

    @pytest.mark.asyncio
    async def test_zero_retries_fails_before_any_attempt(self):
        service = FlakyService(failures=0)

        with pytest.raises(ConfigurationError):
            await connect_with_retry(service, max_retries=0, delay_ms=100)

        assert service.calls == 0

    @pytest.mark.asyncio
    async def test_negative_delay_fails_before_any_attempt(self):
        service = FlakyService(failures=0)

        with pytest.raises(ConfigurationError):
            await connect_with_retry(service, max_retries=3, delay_ms=-5)

        assert service.calls == 0

    @pytest.mark.asyncio
    async def test_returns_handle(self):
        handle = object()
        outcome = await connect_with_retry(FlakyService(failures=0, handle=handle), 2, 0)
        assert isinstance(outcome, Connected)
        assert outcome.handle is handle
