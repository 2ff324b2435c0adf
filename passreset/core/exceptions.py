from __future__ import annotations

"""Structured exception hierarchy for passreset.

Only infrastructure failures travel as exceptions. Everything a user can
cause (bad email, wrong code, weak password, cooldown) is reported through
``RecoveryOutcome`` instead, so the classes below are the errors an
enclosing service is expected to retry, alert on, or translate into a
``503``-style response.

Each exception carries a machine-readable ``code`` next to its
human-readable ``message`` so that callers can branch without parsing text.
"""

from typing import Final

__all__: Final = [
    "RecoveryError",
    "InfrastructureError",
    "StoreUnavailableError",
    "DirectoryUnavailableError",
    "NotificationError",
    "ConfigurationError",
]


class RecoveryError(Exception):
    """Base exception class for all custom errors raised by passreset.

    Attributes:
        message (str): A human-readable error message, suitable for logging.
        code (str): A unique, machine-readable error code.
    """

    message: str
    code: str = "generic_error"

    def __init__(self, message: str, code: str = "generic_error"):
        self.message = message
        self.code = code
        Exception.__init__(self, self.message)

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Infrastructure errors (propagate to the enclosing service)
# ---------------------------------------------------------------------------


class InfrastructureError(RecoveryError):
    """Raised when a backing system the flow depends on cannot be reached.

    These errors are never mapped to a user-facing "wrong code" result: a
    cache outage and a mistyped code are different signals.
    """

    def __init__(self, message: str, code: str = "infrastructure_error"):
        super().__init__(message, code)


class StoreUnavailableError(InfrastructureError):
    """Raised when the token store or throttle backend is unreachable."""

    def __init__(
        self,
        message: str = "The recovery token store is unavailable.",
        code: str = "store_unavailable",
    ):
        super().__init__(message, code)


class DirectoryUnavailableError(InfrastructureError):
    """Raised by user directory implementations when lookups or updates fail."""

    def __init__(
        self,
        message: str = "The user directory is unavailable.",
        code: str = "directory_unavailable",
    ):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Collaborator errors that the flow absorbs
# ---------------------------------------------------------------------------


class NotificationError(RecoveryError):
    """Raised by notification gateways when a message cannot be dispatched.

    The recovery flow logs and swallows it; delivery is best effort.
    """

    def __init__(self, message: str, code: str = "notification_error"):
        super().__init__(message, code)


class ConfigurationError(RecoveryError):
    """Raised when settings cannot produce a usable flow."""

    def __init__(self, message: str, code: str = "configuration_error"):
        super().__init__(message, code)
