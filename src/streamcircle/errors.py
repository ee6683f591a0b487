"""Failure variants shared by the relay, webhook adapter and HTTP routes."""

from __future__ import annotations


class RelayError(Exception):
    """Base class for failures scoped to a single operation."""

    reason = "error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.reason)
        self.message = message or self.reason


class AuthorizationFailure(RelayError):
    """Unknown room or stream key, or a wrong capability token."""

    reason = "unauthorized"


class ValidationFailure(RelayError):
    """Malformed handshake or chat payload."""

    reason = "invalid payload"


class NotFoundFailure(RelayError):
    """Referenced room does not exist."""

    reason = "not found"


class PersistenceFailure(RelayError):
    """The store was unavailable during a lookup, write or history read."""

    reason = "persistence failure"
