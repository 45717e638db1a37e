"""
Shared fixtures for the PrintQueue test suite.
"""

import json
import random

import pytest

from models.job import Job, JobStatus, PaymentStatus, Priority
from services.admin_directory import AdminDirectory
from services.notifier import RecordingNotifier
from services.queue_engine import QueueEngine
from services.storage import MemoryStore, QUEUE_KEY


FIXED_NOW = 1_700_000_000.0


@pytest.fixture
def make_job():
    """Factory for Job objects with sensible defaults."""

    def _make(
        job_id,
        status=JobStatus.QUEUED,
        priority=Priority.NORMAL,
        is_expedited=False,
        is_walk_in=False,
        token=None,
        payment_status=PaymentStatus.UNPAID,
        cost=1.0,
        document_handle=None,
    ):
        prefix = "FO" if is_walk_in else "PS"
        return Job(
            id=job_id,
            file_name=f"job_{job_id}.pdf",
            page_count=2,
            is_walk_in=is_walk_in,
            token=token or f"{prefix}-{100 + job_id}",
            cost=cost,
            is_expedited=is_expedited,
            priority=priority,
            status=status,
            payment_status=payment_status,
            document_handle=document_handle,
        )

    return _make


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def directory(store):
    """Directory with the default admin, already logged in."""
    directory = AdminDirectory(store)
    directory.load()
    directory.login("admin", "admin")
    return directory


@pytest.fixture
def engine(store, notifier, directory):
    """Engine seeded with the built-in demo jobs."""
    engine = QueueEngine(
        store,
        notifier=notifier,
        directory=directory,
        rng=random.Random(42),
        clock=lambda: FIXED_NOW,
    )
    engine.load()
    return engine


@pytest.fixture
def engine_with(notifier, directory):
    """Factory for an engine loaded with a given list of jobs."""

    def _build(jobs, rng=None, **kwargs):
        queue_store = MemoryStore({QUEUE_KEY: json.dumps([job.to_dict() for job in jobs])})
        engine = QueueEngine(
            queue_store,
            notifier=notifier,
            directory=directory,
            rng=rng or random.Random(7),
            clock=lambda: FIXED_NOW,
            **kwargs,
        )
        engine.load()
        return engine

    return _build
