"""Typed failures and the Result wrapper used across the sync layer.

Nothing in the sync layer raises to report an expected failure. Transport
and controller operations return a ``Result`` whose ``error`` is one of the
``SyncError`` subclasses below.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class SyncError:
    """Base class for all sync failures."""

    detail: str = ""

    @property
    def kind(self) -> str:
        """Short name of the failure, e.g. ``"NetworkError"``."""
        return type(self).__name__

    def describe(self) -> str:
        """Human-readable message suitable for display."""
        return self.detail or self.kind


@dataclass(frozen=True)
class NetworkError(SyncError):
    """Remote unreachable, connection aborted or request timed out."""

    def describe(self) -> str:
        if self.detail:
            return f"Network error: {self.detail}"
        return "Network error"


@dataclass(frozen=True)
class ServerError(SyncError):
    """Remote answered with a non-success HTTP status."""

    status: int = 0

    def describe(self) -> str:
        if self.detail:
            return f"Server error {self.status}: {self.detail}"
        return f"Server error {self.status}"


@dataclass(frozen=True)
class DecodeError(SyncError):
    """Payload could not be decoded into the expected shape."""

    def describe(self) -> str:
        if self.detail:
            return f"Malformed response: {self.detail}"
        return "Malformed response"


@dataclass(frozen=True)
class ValidationError(SyncError):
    """Write rejected by the remote with a domain-specific reason."""

    message: str = ""
    status: int = 400

    def describe(self) -> str:
        return self.message or f"Rejected with status {self.status}"


@dataclass(frozen=True)
class BusyError(SyncError):
    """A write was requested while another one is still being sent."""

    def describe(self) -> str:
        return self.detail or "Another event is still being submitted"


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a sync operation: either a value or an error."""

    value: T | None = None
    error: SyncError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: SyncError) -> "Result[T]":
        return cls(error=error)
