"""
Job lifecycle rules.

    Queued -> Printing -> Ready -> Collected

Transitions move exactly one step forward; nothing skips and nothing goes
back. This module only decides what should change. Applying the changes,
persisting them and notifying about them is the queue engine's job.

Autonomous progress (plan_tick):
    1. The job on the printer is finished and becomes Ready.
    2. The printer is then free, so the head of the Queued jobs starts.
    3. When more than `threshold` walk-in jobs were already waiting at the
       counter, staff sweep the oldest one away with probability
       `probability`. Online jobs are only collected by an operator or a
       token scan.
"""

from __future__ import annotations

import random
from typing import Dict, List, Optional, Sequence

from models.job import Job, JobStatus
from models.results import StatusChange
from modules.ordering import next_to_print


NEXT_STATUS: Dict[JobStatus, Optional[JobStatus]] = {
    JobStatus.QUEUED: JobStatus.PRINTING,
    JobStatus.PRINTING: JobStatus.READY,
    JobStatus.READY: JobStatus.COLLECTED,
    JobStatus.COLLECTED: None,
}

TERMINAL_STATUSES = frozenset({JobStatus.COLLECTED})

DEFAULT_AUTO_COLLECT_PROBABILITY = 0.5
DEFAULT_AUTO_COLLECT_THRESHOLD = 2


def next_status(status: JobStatus) -> Optional[JobStatus]:
    """The only status a job in `status` may move to, or None if terminal."""
    return NEXT_STATUS[status]


def previous_status(status: JobStatus) -> Optional[JobStatus]:
    for source, target in NEXT_STATUS.items():
        if target is status:
            return source
    return None


def can_transition(current: JobStatus, target: JobStatus) -> bool:
    return NEXT_STATUS[current] is target


def is_terminal(status: JobStatus) -> bool:
    return status in TERMINAL_STATUSES


def plan_tick(
    jobs: Sequence[Job],
    rng: random.Random,
    probability: float = DEFAULT_AUTO_COLLECT_PROBABILITY,
    threshold: int = DEFAULT_AUTO_COLLECT_THRESHOLD,
) -> List[StatusChange]:
    """
    Decide which jobs one progress step moves.

    Args:
        jobs: Current collection (any order)
        rng: Randomness source for the auto-collect draw
        probability: Chance that an eligible walk-in job is collected
        threshold: Walk-in jobs waiting must exceed this before any sweep

    Returns:
        Status changes to apply, empty when the tick is a no-op. Each job
        appears at most once.
    """
    changes: List[StatusChange] = []

    printing = [job for job in jobs if job.status is JobStatus.PRINTING]
    for job in printing:
        changes.append(_step(job))

    # Every printing job was just finished, so the printer is free
    head = next_to_print(jobs)
    if head is not None:
        changes.append(_step(head))

    # Counted before this tick's own Printing -> Ready moves
    waiting_walk_ins = sorted(
        (job for job in jobs if job.status is JobStatus.READY and job.is_walk_in),
        key=lambda job: job.id,
    )
    if len(waiting_walk_ins) > threshold and rng.random() < probability:
        changes.append(_step(waiting_walk_ins[0]))

    return changes


def _step(job: Job) -> StatusChange:
    target = NEXT_STATUS[job.status]
    if target is None:
        raise ValueError(f"Job {job.token} is already {job.status.value}")
    return StatusChange(job_id=job.id, token=job.token, previous=job.status, current=target)
