"""Domain exceptions, mapped to HTTP responses in middleware.error_handler."""

from __future__ import annotations


class EcoTrackError(Exception):
    """Base class for every error the engine raises on purpose."""


class ValidationError(EcoTrackError, ValueError):
    """Bad caller input: unknown category or sub-category, bad value, bad date.

    Never retried; the same input always fails the same way.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


class NotFoundError(EcoTrackError, LookupError):
    """Referenced record does not exist or belongs to another user."""


class ConflictError(EcoTrackError):
    """Concurrent write lost the race (duplicate goal row, stale version stamp)."""


class AlreadyClaimedError(EcoTrackError):
    """Reward for the previous month was already claimed."""
