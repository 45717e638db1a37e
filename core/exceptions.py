"""
Custom exceptions for PrintQueue.

Exception Hierarchy:
    PrintQueueError (base)
    ├── ValidationError       - Malformed operator/customer input
    ├── JobNotFoundError      - Unknown job id
    ├── NotAuthorizedError    - Operator-only operation without a session
    ├── NoPrintableFileError  - Job has no document handle to print
    └── PersistenceError      - Store could not be read or written

Usage:
    Conflicts inside the queue (wrong source state, duplicate username,
    deleting the admin account) are NOT exceptions; they come back as result
    objects from models.results so callers can render the reason.
    The exceptions here are for callers that asked for something impossible.
"""

from typing import Optional, Dict, Any


class PrintQueueError(Exception):
    """
    Base exception for all PrintQueue errors.

    All custom exceptions inherit from this class, allowing callers to catch
    all application-specific errors with a single except clause if needed.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional context for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(PrintQueueError):
    """
    Input failed validation.

    Raised for values the engine cannot degrade to a safe default, such as a
    negative page rate or a duplex multiplier above 1.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, details)
        self.field = field


class JobNotFoundError(PrintQueueError):
    """No job with the given id exists in the queue."""

    def __init__(self, job_id: int):
        super().__init__(f"Job {job_id} not found", {"job_id": job_id})
        self.job_id = job_id


class NotAuthorizedError(PrintQueueError):
    """
    An operator-only operation was attempted without an active session.

    Customer-facing mode is unauthenticated; rates, transitions, payments,
    walk-in orders and the account directory all require a logged-in operator.
    """

    def __init__(self, operation: str):
        message = f"Operator login required for '{operation}'"
        details = {
            "operation": operation,
            "resolution": "Log in with an operator account"
        }
        super().__init__(message, details)
        self.operation = operation


class NoPrintableFileError(PrintQueueError):
    """
    The job carries no document handle.

    Walk-in orders never have one, and uploaded files are not carried across
    a restart.
    """

    def __init__(self, job_id: int, token: str = ""):
        message = (
            "This job has no printable file. It might be a walk-in order "
            "or from a previous session."
        )
        super().__init__(message, {"job_id": job_id, "token": token})
        self.job_id = job_id
        self.token = token


class PersistenceError(PrintQueueError):
    """
    The key-value store failed.

    The engine logs this and keeps going: in-memory state stays authoritative
    for the running process.
    """

    def __init__(self, key: str, reason: str):
        super().__init__(f"Persistence failed for slot '{key}': {reason}", {"key": key})
        self.key = key
        self.reason = reason
