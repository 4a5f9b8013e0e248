"""
Retry framework for connecting to backing services at startup.

Bounded retries with a flat delay, degrading to a fallback outcome instead
of raising when every attempt fails.
"""

from triad.core.retry.connector import ConnectionRetrier, connect_with_retry
from triad.core.retry.policy import (
    AttemptOutcome,
    Connected,
    ConnectionAttempt,
    ConnectionState,
    ConnectOutcome,
    Fallback,
    RetryPolicy,
)

__all__ = [
    # Policy
    "RetryPolicy",
    "ConnectionState",
    "ConnectionAttempt",
    "AttemptOutcome",
    # Outcomes
    "Connected",
    "Fallback",
    "ConnectOutcome",
    # Retrier
    "ConnectionRetrier",
    "connect_with_retry",
]
