"""
Data models for PrintQueue.

This module contains immutable dataclasses for:
- Job: A print job and its enums (status, payment, priority, options)
- RateTable / NotificationPreferences: Operator-controlled settings
- AdminAccount / Session: Operator directory records
- Results: Outcome objects returned by engine and directory operations

Jobs are frozen so that any tuple of jobs the engine publishes is a
consistent snapshot that readers on other threads can keep.
"""

from .job import (
    Job,
    JobRequest,
    JobStatus,
    PaymentStatus,
    Priority,
    PrintOptions,
    ColorMode,
    Sides,
)
from .settings import RateTable, NotificationPreferences
from .account import AdminAccount, Session
from .results import (
    Outcome,
    StatusChange,
    JobOperationResult,
    AccountResult,
    TickResult,
    QueueEvent,
)

__all__ = [
    # Job models
    "Job",
    "JobRequest",
    "JobStatus",
    "PaymentStatus",
    "Priority",
    "PrintOptions",
    "ColorMode",
    "Sides",
    # Settings
    "RateTable",
    "NotificationPreferences",
    # Accounts
    "AdminAccount",
    "Session",
    # Results
    "Outcome",
    "StatusChange",
    "JobOperationResult",
    "AccountResult",
    "TickResult",
    "QueueEvent",
]
