"""
Triad - HTTP service backed by MongoDB, Redis and Kafka.
"""

__version__ = "0.1.0"

from triad.config import Config, load_config
from triad.core.retry import (
    Connected,
    ConnectionRetrier,
    ConnectionState,
    Fallback,
    RetryPolicy,
    connect_with_retry,
)
from triad.exceptions import (
    ConfigurationError,
    ConnectSequenceInProgressError,
    InitializationError,
    MigrationError,
    RetryError,
    ServiceNotConnectedError,
    TriadConnectionError,
    TriadError,
)
from triad.utils.logging import get_logger, setup_logging, setup_logging_from_config

__all__ = [
    "__version__",
    # Config
    "Config",
    "load_config",
    # Retry
    "RetryPolicy",
    "ConnectionRetrier",
    "ConnectionState",
    "Connected",
    "Fallback",
    "connect_with_retry",
    # Logging
    "get_logger",
    "setup_logging",
    "setup_logging_from_config",
    # Exceptions
    "TriadError",
    "ConfigurationError",
    "TriadConnectionError",
    "ServiceNotConnectedError",
    "InitializationError",
    "RetryError",
    "ConnectSequenceInProgressError",
    "MigrationError",
]
