"""Hookwatch exception hierarchy.

All Hookwatch-specific exceptions inherit from HookwatchError.

A stale hook is NOT an exception: it is recorded as ``correct=False`` on the
hook record and surfaced through ``HookManager.incorrect_hooks()``.
"""

from __future__ import annotations


class HookwatchError(Exception):
    """Base exception for all Hookwatch errors."""


class ConfigError(HookwatchError):
    """Missing or invalid configuration (e.g., no API token)."""


class TransportFailure(HookwatchError):
    """Network or IO error while reaching the remote host.

    The underlying transport exception is chained as ``__cause__``.
    """

    def __init__(self, message: str, *, url: str | None = None) -> None:
        self.url = url
        super().__init__(message)


class RemoteRejection(HookwatchError):
    """The remote API answered but refused the operation.

    Attributes:
        status: HTTP status code returned by the remote.
        reason: Reason text (remote ``message`` field or reason phrase).
    """

    def __init__(self, status: int, reason: str = "") -> None:
        self.status = status
        self.reason = reason
        msg = f"Remote rejected request: HTTP {status}"
        if reason:
            msg += f" - {reason}"
        super().__init__(msg)


class AccessDenied(HookwatchError):
    """The acting user or credential lacks permission for the operation.

    Kept separate from RemoteRejection so callers can branch on it
    (for instance to ask for re-authorization).
    """

    def __init__(self, reason: str = "", *, status: int | None = None) -> None:
        self.reason = reason
        self.status = status
        super().__init__(f"Access denied: {reason}" if reason else "Access denied")


class StoreConflictError(HookwatchError):
    """Raised when an atomic update keeps losing its compare-and-swap."""

    def __init__(self, key: str, attempts: int) -> None:
        self.key = key
        self.attempts = attempts
        super().__init__(
            f"Could not update hook record {key} after {attempts} attempts"
        )
