# designflow/services/result.py
"""
Error types and the Result wrapper returned by every tracker and login action.

Backend failures never propagate out of the services layer as exceptions; they come back as
`Result.failure(...)` so the page can show them and let the user retry.
"""
from dataclasses import dataclass
from typing import Any, Optional


class OutletTrackerError(Exception):
    """Base for every user-visible failure."""


class ValidationError(OutletTrackerError):
    """Input was rejected before any backend call was made."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class LoadError(OutletTrackerError):
    """The outlet list could not be fetched."""


class WriteError(OutletTrackerError):
    """A create, update or delete was rejected or never reached the backend."""


class AuthenticationError(OutletTrackerError):
    """Sign-in failed. The message is the auth server's, unchanged."""


@dataclass(frozen=True)
class Result:
    value: Any = None
    error: Optional[OutletTrackerError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value=None) -> "Result":
        return cls(value=value)

    @classmethod
    def failure(cls, error: OutletTrackerError) -> "Result":
        return cls(error=error)
