"""Domain error taxonomy shared by the auth, store, and routing layers.

Every error carries the human-readable message that the request router hands
back to callers verbatim, so messages must never contain credentials or
internal identifiers that were not supplied by the caller.
"""

from __future__ import annotations

__all__ = [
    "BookerError",
    "CatalogError",
    "Conflict",
    "InvalidInput",
    "NotFound",
    "NotSupported",
    "StoreUnavailable",
    "Unauthorized",
]


class BookerError(Exception):
    """Base class for every failure surfaced by the favorites core."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class InvalidInput(BookerError, ValueError):
    """A required field was missing or malformed."""


class Unauthorized(BookerError, PermissionError):
    """The caller is not logged in or presented the wrong credential."""


class NotFound(BookerError, LookupError):
    """The referenced user or book is absent from the store."""


class Conflict(BookerError):
    """The store rejected a write because of a uniqueness violation."""


class StoreUnavailable(BookerError):
    """The persistent store could not be reached."""


class NotSupported(BookerError):
    """The method/action pair is not one the router recognises."""


class CatalogError(BookerError):
    """The catalog provider failed, timed out, or answered with a non-200 status."""
