"""Queue ordering policy.

Jobs are ordered by priority (High first), then expedited before regular,
then by id (first submitted, first served). The whole collection is kept in
this order; jobs that already left Queued keep their place for listings but
are never picked as the next job to print.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from models.job import Job, JobStatus


def sort_key(job: Job) -> Tuple[int, bool, int]:
    return (int(job.priority), not job.is_expedited, job.id)


def sort_jobs(jobs: Iterable[Job]) -> List[Job]:
    return sorted(jobs, key=sort_key)


def queued_jobs(jobs: Iterable[Job]) -> List[Job]:
    """The Queued subsequence, in serving order."""
    return sort_jobs(job for job in jobs if job.status is JobStatus.QUEUED)


def next_to_print(jobs: Iterable[Job]) -> Optional[Job]:
    waiting = queued_jobs(jobs)
    return waiting[0] if waiting else None


def is_sorted(jobs: List[Job]) -> bool:
    keys = [sort_key(job) for job in jobs]
    return keys == sorted(keys)
