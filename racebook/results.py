"""
Repository operation results.

Every mutating repository call returns a RepoResult so callers can tell a
missing record from bad input from a store failure, while still being able
to treat the result as a plain boolean.

Usage:
    from racebook.results import RepoResult, Outcome

    result = repo.add_horse({"name": "Star"})
    if result:
        print(f"Added {result.record_id}")
    elif result.outcome == Outcome.VALIDATION_FAILED:
        print(f"Rejected: {result.message}")
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class Outcome(Enum):
    """Outcome of a repository operation."""

    OK = "ok"
    NOT_FOUND = "not_found"  # race/horse id absent
    VALIDATION_FAILED = "validation_failed"  # duplicate name, malformed input
    STORAGE_FAILURE = "storage_failure"  # serialization or store read/write


# User-friendly messages for each outcome
OUTCOME_MESSAGES = {
    Outcome.OK: "Operation completed",
    Outcome.NOT_FOUND: "Record not found",
    Outcome.VALIDATION_FAILED: "Input was rejected",
    Outcome.STORAGE_FAILURE: "Could not read or write stored data",
}


@dataclass
class RepoResult:
    """
    Result of a repository mutation.

    Truthiness follows `ok`.
    """

    ok: bool
    outcome: Outcome
    message: str
    record_id: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)
    details: dict = field(default_factory=dict)

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(
        cls,
        record_id: Optional[str] = None,
        message: Optional[str] = None,
        **details,
    ) -> "RepoResult":
        """Create a successful result."""
        return cls(
            ok=True,
            outcome=Outcome.OK,
            message=message or OUTCOME_MESSAGES[Outcome.OK],
            record_id=record_id,
            details=details,
        )

    @classmethod
    def not_found(cls, record_id: Optional[str], kind: str = "race", **details) -> "RepoResult":
        """Create result when the target record doesn't exist."""
        return cls(
            ok=False,
            outcome=Outcome.NOT_FOUND,
            message=f"{kind.capitalize()} not found: {record_id}",
            record_id=record_id,
            details=details,
        )

    @classmethod
    def validation_failed(
        cls,
        reason: str,
        record_id: Optional[str] = None,
        **details,
    ) -> "RepoResult":
        """Create result for rejected input (duplicate name, bad shape)."""
        return cls(
            ok=False,
            outcome=Outcome.VALIDATION_FAILED,
            message=reason,
            record_id=record_id,
            details=details,
        )

    @classmethod
    def storage_failure(
        cls,
        error: str,
        record_id: Optional[str] = None,
        **details,
    ) -> "RepoResult":
        """Create result for store read/write or serialization errors."""
        return cls(
            ok=False,
            outcome=Outcome.STORAGE_FAILURE,
            message=f"Storage error: {error}",
            record_id=record_id,
            details={"error": error, **details},
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "ok": self.ok,
            "outcome": self.outcome.value,
            "message": self.message,
            "record_id": self.record_id,
            "timestamp": self.timestamp.isoformat(),
            "details": self.details,
        }
