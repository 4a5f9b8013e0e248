"""
Triad exception hierarchy.

All domain-specific exceptions inherit from TriadError, making it easy
to catch any service error with a single base class while still allowing
fine-grained handling when needed.

Hierarchy::

    TriadError
    ├── ConfigurationError          - config loading, parsing, validation
    ├── ConnectionError_            - backing service connection failures
    │   └── ServiceNotConnectedError - client used before connect()
    ├── InitializationError         - service startup failures
    ├── RetryError                  - retry layer misuse
    │   └── ConnectSequenceInProgressError
    └── MigrationError              - malformed or failing migration
"""

from __future__ import annotations


class TriadError(Exception):
    """Base exception for all Triad errors."""

    def __init__(self, message: str, *, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


# --- Configuration -----------------------------------------------------------


class ConfigurationError(TriadError):
    """Raised when configuration loading, parsing, or validation fails."""


# --- Connections -------------------------------------------------------------


class ConnectionError_(TriadError):
    """Raised when a backing service connection cannot be established.

    Named with trailing underscore to avoid shadowing the builtin
    ``ConnectionError``; the public alias ``TriadConnectionError``
    is preferred for external use.
    """


TriadConnectionError = ConnectionError_


class ServiceNotConnectedError(ConnectionError_):
    """Raised when a backing client is used before ``connect()``."""

    def __init__(self, service: str) -> None:
        super().__init__(f"{service} not connected. Call connect() first.", details={"service": service})
        self.service = service


# --- Initialization ----------------------------------------------------------


class InitializationError(TriadError):
    """Raised during startup when a required backing service cannot be reached."""


# --- Retry -------------------------------------------------------------------


class RetryError(TriadError):
    """Raised when the retry layer is misused."""


class ConnectSequenceInProgressError(RetryError):
    """Raised when a second connect sequence starts on a busy retrier."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Connect sequence for '{name}' already in progress", details={"name": name})
        self.name = name


# --- Migrations --------------------------------------------------------------


class MigrationError(TriadError):
    """Raised when a migration module is malformed or fails to apply."""

    def __init__(self, migration_file: str, message: str) -> None:
        super().__init__(f"Migration '{migration_file}': {message}", details={"migration": migration_file})
        self.migration_file = migration_file
