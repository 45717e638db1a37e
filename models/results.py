"""
Result models returned by queue and directory operations.

Rejections that are part of normal use (wrong source state, token not
ready, duplicate username) are reported through these objects rather than
raised, so routes can turn them into messages without try/except.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, Optional, Tuple

from models.job import Job, JobStatus


class Outcome(Enum):
    """
    How an operation ended.

    Every outcome other than OK leaves state untouched.
    """

    OK = "ok"
    """The operation applied."""

    NOT_FOUND = "not_found"
    """No job, token or account matched."""

    NOT_READY = "not_ready"
    """The token matched a job that is not waiting for collection yet."""

    INVALID_CODE = "invalid_code"
    """A scanned string was not a queue token payload."""

    CONFLICT = "conflict"
    """The request contradicts current state (wrong source status, duplicate name...)."""

    INVALID = "invalid"
    """The request itself was malformed (empty credentials...)."""


@dataclass(frozen=True)
class StatusChange:
    """One job moving from one status to the next."""

    job_id: int
    token: str
    previous: JobStatus
    current: JobStatus

    @property
    def became_ready(self) -> bool:
        return self.previous is not JobStatus.READY and self.current is JobStatus.READY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job_id": self.job_id,
            "token": self.token,
            "previous": self.previous.value,
            "current": self.current.value,
        }


@dataclass(frozen=True)
class JobOperationResult:
    """
    Result of a status transition, token resolution or payment update.

    Use the factory classmethods rather than the constructor.
    """

    outcome: Outcome
    message: str
    job: Optional[Job] = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.OK

    @classmethod
    def success(cls, job: Job, message: str) -> "JobOperationResult":
        return cls(Outcome.OK, message, job)

    @classmethod
    def not_found(cls, message: str) -> "JobOperationResult":
        return cls(Outcome.NOT_FOUND, message)

    @classmethod
    def not_ready(cls, job: Job) -> "JobOperationResult":
        return cls(
            Outcome.NOT_READY,
            f"Job {job.token} is not ready. Status: {job.status.value}",
            job,
        )

    @classmethod
    def invalid_code(cls) -> "JobOperationResult":
        return cls(Outcome.INVALID_CODE, "Invalid QR Code.")

    @classmethod
    def conflict(cls, message: str, job: Optional[Job] = None) -> "JobOperationResult":
        return cls(Outcome.CONFLICT, message, job)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "message": self.message,
            "job": self.job.to_public_dict() if self.job else None,
        }


@dataclass(frozen=True)
class AccountResult:
    """Result of an admin directory mutation."""

    outcome: Outcome
    message: str

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.OK

    @classmethod
    def success(cls, message: str) -> "AccountResult":
        return cls(Outcome.OK, message)

    @classmethod
    def conflict(cls, message: str) -> "AccountResult":
        return cls(Outcome.CONFLICT, message)

    @classmethod
    def not_found(cls, message: str) -> "AccountResult":
        return cls(Outcome.NOT_FOUND, message)

    @classmethod
    def invalid(cls, message: str) -> "AccountResult":
        return cls(Outcome.INVALID, message)

    def to_dict(self) -> Dict[str, Any]:
        return {"outcome": self.outcome.value, "message": self.message}


@dataclass(frozen=True)
class TickResult:
    """
    What one autonomous progress step did.

    An empty `changes` tuple means the tick was a no-op: nothing was
    persisted, published or notified.
    """

    changes: Tuple[StatusChange, ...] = ()
    jobs: Tuple[Job, ...] = ()

    @property
    def changed(self) -> bool:
        return bool(self.changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "changed": self.changed,
            "changes": [c.to_dict() for c in self.changes],
        }


@dataclass(frozen=True)
class QueueEvent:
    """
    Published to subscribers after every successful engine mutation.

    kind is one of: 'loaded', 'submitted', 'priority', 'transition',
    'paid', 'tick', 'rates', 'notifications'.
    """

    kind: str
    jobs: Tuple[Job, ...]
    changes: Tuple[StatusChange, ...] = field(default_factory=tuple)
