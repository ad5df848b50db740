"""Custom exception hierarchy for actionbroker."""

from __future__ import annotations

import enum


class ErrorKind(str, enum.Enum):
    INVALID_INPUT = "invalid_input"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    PERSISTENCE = "persistence"


class BrokerError(Exception):
    """Base exception for all actionbroker errors."""

    kind: ErrorKind = ErrorKind.INVALID_INPUT


class InvalidInputError(BrokerError):
    """Raised when a payload field is missing, malformed or not allowed."""

    kind = ErrorKind.INVALID_INPUT


class AuthorizationError(BrokerError):
    """Raised when the actor's current role does not pass a role gate."""

    kind = ErrorKind.UNAUTHORIZED


class NotFoundError(BrokerError):
    """Raised when a well-formed reference points at nothing."""

    kind = ErrorKind.NOT_FOUND


class ConflictError(BrokerError):
    """Raised when a write would collide with existing state."""

    kind = ErrorKind.CONFLICT


class StalePendingError(ConflictError):
    """Raised when updating a pending record that is no longer pending."""

    def __init__(self, message: str, pending_id: str = "") -> None:
        super().__init__(message)
        self.pending_id = pending_id


class PersistenceError(BrokerError):
    """Raised when the underlying storage fails."""

    kind = ErrorKind.PERSISTENCE
