"""
Unit tests for the job lifecycle and the progress tick plan.
"""

from unittest.mock import Mock

import pytest

from models.job import JobStatus, Priority
from modules import state_machine


# Fixtures

@pytest.fixture
def lucky_rng():
    """rng whose auto-collect draw always succeeds."""
    rng = Mock()
    rng.random.return_value = 0.1
    return rng


@pytest.fixture
def unlucky_rng():
    rng = Mock()
    rng.random.return_value = 0.9
    return rng


# Tests for Transitions

class TestTransitions:

    def test_forward_chain(self):
        assert state_machine.next_status(JobStatus.QUEUED) is JobStatus.PRINTING
        assert state_machine.next_status(JobStatus.PRINTING) is JobStatus.READY
        assert state_machine.next_status(JobStatus.READY) is JobStatus.COLLECTED
        assert state_machine.next_status(JobStatus.COLLECTED) is None

    def test_previous_status(self):
        assert state_machine.previous_status(JobStatus.READY) is JobStatus.PRINTING
        assert state_machine.previous_status(JobStatus.QUEUED) is None

    @pytest.mark.parametrize("current,target", [
        (JobStatus.QUEUED, JobStatus.READY),
        (JobStatus.QUEUED, JobStatus.COLLECTED),
        (JobStatus.READY, JobStatus.PRINTING),
        (JobStatus.COLLECTED, JobStatus.QUEUED),
        (JobStatus.PRINTING, JobStatus.PRINTING),
    ])
    def test_rejects_skips_and_reversals(self, current, target):
        assert not state_machine.can_transition(current, target)

    def test_collected_is_terminal(self):
        assert state_machine.is_terminal(JobStatus.COLLECTED)
        assert not state_machine.is_terminal(JobStatus.READY)


# Tests for the Tick Plan

class TestPlanTick:

    def test_finishes_printing_and_starts_next(self, make_job, unlucky_rng):
        x = make_job(1, status=JobStatus.PRINTING)
        y = make_job(2)

        changes = state_machine.plan_tick([x, y], unlucky_rng)

        moves = {(c.job_id, c.previous, c.current) for c in changes}
        assert moves == {
            (1, JobStatus.PRINTING, JobStatus.READY),
            (2, JobStatus.QUEUED, JobStatus.PRINTING),
        }

    def test_starts_highest_priority(self, make_job, unlucky_rng):
        jobs = [make_job(1, priority=Priority.LOW), make_job(2, priority=Priority.HIGH)]

        changes = state_machine.plan_tick(jobs, unlucky_rng)

        assert len(changes) == 1
        assert changes[0].job_id == 2
        assert changes[0].current is JobStatus.PRINTING

    def test_empty_queue_is_noop(self, unlucky_rng):
        assert state_machine.plan_tick([], unlucky_rng) == []

    def test_collected_jobs_never_move(self, make_job, lucky_rng):
        jobs = [make_job(i, status=JobStatus.COLLECTED, is_walk_in=True) for i in range(1, 5)]

        assert state_machine.plan_tick(jobs, lucky_rng) == []

    def test_sweeps_oldest_walk_in_over_threshold(self, make_job, lucky_rng):
        jobs = [
            make_job(3, status=JobStatus.READY, is_walk_in=True),
            make_job(1, status=JobStatus.READY, is_walk_in=True),
            make_job(2, status=JobStatus.READY, is_walk_in=True),
        ]

        changes = state_machine.plan_tick(jobs, lucky_rng)

        assert len(changes) == 1
        assert changes[0].job_id == 1
        assert changes[0].current is JobStatus.COLLECTED

    def test_no_sweep_at_threshold(self, make_job, lucky_rng):
        jobs = [
            make_job(1, status=JobStatus.READY, is_walk_in=True),
            make_job(2, status=JobStatus.READY, is_walk_in=True),
        ]

        assert state_machine.plan_tick(jobs, lucky_rng) == []

    def test_no_sweep_when_draw_fails(self, make_job, unlucky_rng):
        jobs = [make_job(i, status=JobStatus.READY, is_walk_in=True) for i in range(1, 5)]

        assert state_machine.plan_tick(jobs, unlucky_rng) == []

    def test_online_ready_jobs_not_counted(self, make_job, lucky_rng):
        jobs = [
            make_job(1, status=JobStatus.READY, is_walk_in=True),
            make_job(2, status=JobStatus.READY, is_walk_in=True),
            make_job(3, status=JobStatus.READY),
            make_job(4, status=JobStatus.READY),
        ]

        assert state_machine.plan_tick(jobs, lucky_rng) == []

    def test_job_finishing_this_tick_not_counted(self, make_job, lucky_rng):
        jobs = [
            make_job(1, status=JobStatus.READY, is_walk_in=True),
            make_job(2, status=JobStatus.READY, is_walk_in=True),
            make_job(3, status=JobStatus.PRINTING, is_walk_in=True),
        ]

        changes = state_machine.plan_tick(jobs, lucky_rng)

        assert [(c.job_id, c.current) for c in changes] == [(3, JobStatus.READY)]

    def test_each_job_moves_at_most_once(self, make_job, lucky_rng):
        jobs = [
            make_job(1, status=JobStatus.PRINTING, is_walk_in=True),
            make_job(2, is_walk_in=True),
            make_job(3, status=JobStatus.READY, is_walk_in=True),
            make_job(4, status=JobStatus.READY, is_walk_in=True),
            make_job(5, status=JobStatus.READY, is_walk_in=True),
        ]

        changes = state_machine.plan_tick(jobs, lucky_rng)
        ids = [c.job_id for c in changes]

        assert len(ids) == len(set(ids)) == 3
        assert sum(1 for c in changes if c.current is JobStatus.PRINTING) == 1
