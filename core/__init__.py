"""
Core module for PrintQueue.

Contains fundamental infrastructure components:
- exceptions: Custom exception hierarchy
"""

from .exceptions import (
    PrintQueueError,
    ValidationError,
    JobNotFoundError,
    NotAuthorizedError,
    NoPrintableFileError,
    PersistenceError,
)

__all__ = [
    "PrintQueueError",
    "ValidationError",
    "JobNotFoundError",
    "NotAuthorizedError",
    "NoPrintableFileError",
    "PersistenceError",
]
