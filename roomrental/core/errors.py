"""
Domain error kinds and the Result type returned by the service layer.

Services never raise for expected rejections (unknown room, conflicting
dates, missing permission). They return a Result carrying either the value
or a DomainError; the API layer maps the error kind to an HTTP status.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    ROOM_UNAVAILABLE = "ROOM_UNAVAILABLE"
    GUEST_LIMIT_EXCEEDED = "GUEST_LIMIT_EXCEEDED"
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"
    DATE_CONFLICT = "DATE_CONFLICT"
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    REVIEW_NOT_ALLOWED = "REVIEW_NOT_ALLOWED"
    DUPLICATE_REVIEW = "DUPLICATE_REVIEW"
    FORBIDDEN_ROLE = "FORBIDDEN_ROLE"
    STORAGE_ERROR = "STORAGE_ERROR"


@dataclass(frozen=True)
class DomainError:
    kind: ErrorKind
    message: str


@dataclass(frozen=True)
class Result(Generic[T]):
    value: Optional[T] = None
    error: Optional[DomainError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "Result[T]":
        return cls(error=DomainError(kind=kind, message=message))


class StorageError(Exception):
    """Persistence failure not covered by a domain error kind."""


class OverlapViolation(StorageError):
    """The storage layer rejected an active booking that overlaps another."""


class DuplicateViolation(StorageError):
    """A uniqueness constraint (e.g. one review per user and room) was hit."""


class RoomLockTimeout(Exception):
    """Gave up waiting for the per-room booking lock."""
