"""
Result types returned by repositories and forms.

Every mutation yields exactly one Outcome carrying a message meant to be
shown to the user verbatim and a severity the UI renders it with. Reads
produce a ReadResult internally so a storage fault stays distinguishable
from a legitimate miss.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class Severity(str, Enum):
    INFORMATION = "information"
    WARNING = "warning"
    ERROR = "error"


class OutcomeStatus(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    REJECTED = "rejected"


class Reason(str, Enum):
    DUPLICATE_KEY = "duplicate_key"
    DUPLICATE_NATURAL_KEY = "duplicate_natural_key"
    NOT_FOUND = "not_found"
    REFERENCED = "referenced"
    PERSISTENCE_FAILURE = "persistence_failure"
    STORAGE_ERROR = "storage_error"
    UNRESOLVED_REFERENCE = "unresolved_reference"
    INVALID_NUMBER = "invalid_number"
    INVALID_DATE = "invalid_date"
    INVALID_INPUT = "invalid_input"


STORAGE_ERROR_MESSAGE = "Database error occurred. Please try again."


@dataclass(frozen=True)
class Outcome:
    status: OutcomeStatus
    message: str
    severity: Severity = Severity.INFORMATION
    reason: Reason | None = None

    @property
    def ok(self) -> bool:
        return self.status != OutcomeStatus.REJECTED

    def as_pair(self) -> tuple[str, Severity]:
        return self.message, self.severity

    @classmethod
    def created(cls, message: str) -> Outcome:
        return cls(OutcomeStatus.CREATED, message)

    @classmethod
    def updated(cls, message: str) -> Outcome:
        return cls(OutcomeStatus.UPDATED, message)

    @classmethod
    def deleted(cls, message: str) -> Outcome:
        return cls(OutcomeStatus.DELETED, message)

    @classmethod
    def rejected(
        cls,
        message: str,
        reason: Reason,
        severity: Severity = Severity.ERROR,
    ) -> Outcome:
        return cls(OutcomeStatus.REJECTED, message, severity, reason)


@dataclass(frozen=True)
class ReadResult(Generic[T]):
    """A read that either produced a value (possibly None) or failed."""

    value: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def found(self) -> bool:
        return self.ok and self.value is not None

    def unwrap(self) -> T | None:
        if self.error is not None:
            raise self.error
        return self.value
