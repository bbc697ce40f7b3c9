"""Exception hierarchy shared by the import pipeline."""
from __future__ import annotations

from ..providers.base import ProviderError

__all__ = [
    "CinevaultError",
    "CsvReadError",
    "InvalidTransitionError",
    "MissingTitleError",
    "ProviderError",
    "ProviderUnavailableError",
    "SessionNotFoundError",
    "UnmatchedItemNotFoundError",
]


class CinevaultError(RuntimeError):
    """Base class for pipeline errors surfaced by services and stores."""


class MissingTitleError(CinevaultError):
    """Raised when a CSV row has no title after column mapping."""

    def __init__(self) -> None:
        super().__init__("No title provided")


class CsvReadError(CinevaultError):
    """Raised when an uploaded CSV file cannot be read."""


class ProviderUnavailableError(ProviderError):
    """Raised when the primary catalog provider cannot return details for a candidate."""


class SessionNotFoundError(CinevaultError):
    """Raised when an import session identifier is unknown."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Import session {session_id} not found")
        self.session_id = session_id


class InvalidTransitionError(CinevaultError):
    """Raised when a session status change would move backwards in its lifecycle."""

    def __init__(self, session_id: str, current: str, target: str) -> None:
        super().__init__(
            f"Import session {session_id} cannot move from {current} to {target}"
        )
        self.session_id = session_id
        self.current = current
        self.target = target


class UnmatchedItemNotFoundError(CinevaultError):
    """Raised when an unmatched item was already resolved or ignored."""

    def __init__(self, session_id: str, title: str) -> None:
        super().__init__(f"Unmatched item {title!r} not found in import {session_id}")
        self.session_id = session_id
        self.title = title
