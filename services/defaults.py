"""
Built-in data set used when a persistence slot is missing or unreadable.

Five demo jobs in varied states, the standard rate card, the default
notification settings and the single 'admin' operator.
"""

from __future__ import annotations

from typing import List

from models.account import AdminAccount, ADMIN_USERNAME
from models.job import Job, JobStatus, PaymentStatus
from models.settings import NotificationPreferences, RateTable


def default_jobs() -> List[Job]:
    return [
        Job(
            id=1, file_name="thermo_notes.pdf", page_count=45, is_walk_in=False,
            token="PS-123", cost=22.5, status=JobStatus.PRINTING,
            payment_status=PaymentStatus.PAID,
            customer_name="Riya Sharma", payer_reference="riya.s@okicici",
        ),
        Job(
            id=2, file_name="urgent_assignment.pdf", page_count=10, is_walk_in=False,
            token="PS-126", cost=12.5, is_expedited=True, status=JobStatus.QUEUED,
            payment_status=PaymentStatus.PAID,
            customer_name="Arjun Verma", payer_reference="arjun.verma@ybl",
        ),
        Job(
            id=3, file_name="lab_report_final.docx", page_count=12, is_walk_in=False,
            token="PS-124", cost=6.0, status=JobStatus.QUEUED,
            payment_status=PaymentStatus.UNPAID,
            customer_name="Priya Patel",
        ),
        Job(
            id=4, file_name="presentation.ppt", page_count=30, is_walk_in=False,
            token="PS-125", cost=60.0, status=JobStatus.QUEUED,
            payment_status=PaymentStatus.PAID,
            customer_name="Sameer Khan", payer_reference="sameer.khan@okhdfc",
        ),
        Job(
            id=5, file_name="essay_draft.docx", page_count=5, is_walk_in=False,
            token="PS-121", cost=2.5, status=JobStatus.COLLECTED,
            payment_status=PaymentStatus.PAID,
            customer_name="Anjali Singh", payer_reference="anjali.s@paytm",
        ),
    ]


def default_rates() -> RateTable:
    return RateTable()


def default_notification_preferences() -> NotificationPreferences:
    return NotificationPreferences()


def default_accounts(admin_secret: str = "admin") -> List[AdminAccount]:
    return [AdminAccount(username=ADMIN_USERNAME, credential_secret=admin_secret)]
