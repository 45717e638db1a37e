"""
Queue engine: the single owner of the print queue.

The engine owns the job collection, the rate table and the notification
preferences for the lifetime of the process. Every change goes through one
of its public methods, and every public mutation runs under one lock, so job
reordering and the multi-job progress tick can never interleave.

STATE MODEL:
    - Jobs are frozen dataclasses; the collection is a tuple that is
      replaced (never edited) on every mutation
    - Reads return the current tuple without locking: whatever a reader
      holds is a consistent snapshot
    - After a successful mutation the engine persists the changed slot,
      publishes a QueueEvent to subscribers and hands notifications to the
      notifier (outside the lock)

COLLABORATORS (constructor injection):
    store      - KeyValueStore for the queue, rates and preferences slots
    notifier   - receives (title, body) pairs; failures are logged
    directory  - AdminDirectory gating operator-only operations
    rng        - random.Random for tokens and the auto-collect draw

Usage:
    engine = QueueEngine(store, notifier=LogNotifier(), directory=directory)
    engine.load()

    job = engine.submit_online(options, file_name="notes.pdf")
    engine.tick()                          # timer or refresh button
    engine.scan("PrintSmart-Token:PS-482") # operator at the counter
"""

from __future__ import annotations

import json
import random
import threading
import time
from dataclasses import replace
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from core.exceptions import (
    JobNotFoundError,
    NoPrintableFileError,
    ValidationError,
)
from models.job import (
    Job,
    JobRequest,
    JobStatus,
    PaymentStatus,
    Priority,
    PrintOptions,
    ColorMode,
    Sides,
    WALK_IN_FILE_NAME,
    WALK_IN_CUSTOMER_NAME,
)
from models.results import (
    JobOperationResult,
    QueueEvent,
    StatusChange,
    TickResult,
)
from models.settings import NotificationPreferences, RateTable
from modules import ordering, pricing, state_machine, tokens
from services.defaults import (
    default_jobs,
    default_notification_preferences,
    default_rates,
)
from services.notifier import Notifier
from services.storage import (
    KeyValueStore,
    QUEUE_KEY,
    RATES_KEY,
    NOTIFICATION_SETTINGS_KEY,
)
from logging_config import get_logger, get_job_logger


# Module logger
logger = get_logger(__name__)

QueueListener = Callable[[QueueEvent], None]

LIVE_FILTERS = ("all", "queued", "printing")
PAYMENT_FILTERS = ("all", "paid", "unpaid")


class QueueEngine:
    """
    Owns the print queue and enforces its invariants.

    Invariants:
        - job ids and tokens are unique over the whole collection
        - the collection is always sorted by the ordering policy
        - statuses only move one step forward; Collected never changes
        - no mutation is ever partially applied
    """

    def __init__(
        self,
        store: KeyValueStore,
        notifier: Optional[Notifier] = None,
        directory=None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.time,
        auto_collect_probability: float = state_machine.DEFAULT_AUTO_COLLECT_PROBABILITY,
        auto_collect_threshold: int = state_machine.DEFAULT_AUTO_COLLECT_THRESHOLD,
        token_namespace: str = tokens.DEFAULT_NAMESPACE,
    ):
        """
        Initialize an empty engine. Call load() before serving requests.

        Args:
            store: Persistence collaborator
            notifier: Notification collaborator (None disables notifications)
            directory: Object with require_operator(operation); None leaves
                every operation open (used by unit tests of the queue rules)
            rng: Randomness source; seed it for reproducible runs
            clock: Returns seconds since the epoch, used for job ids
            auto_collect_probability: Chance per tick of sweeping a walk-in job
            auto_collect_threshold: Ready walk-in jobs needed before a sweep
            token_namespace: Prefix QR payloads must carry
        """
        self._store = store
        self._notifier = notifier or Notifier()
        self._directory = directory
        self._rng = rng or random.Random()
        self._clock = clock
        self._auto_collect_probability = auto_collect_probability
        self._auto_collect_threshold = auto_collect_threshold
        self._token_namespace = token_namespace

        self._jobs: Tuple[Job, ...] = ()
        self._rates: RateTable = default_rates()
        self._preferences: NotificationPreferences = default_notification_preferences()
        self._last_id = 0

        self._lock = threading.RLock()
        self._listeners: List[QueueListener] = []

        logger.info("QueueEngine initialized")

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def load(self) -> None:
        """
        Read state from the store.

        Each slot that is missing or cannot be parsed is replaced by the
        built-in default and written back; a bad slot never stops startup.
        """
        rates = self._load_slot(RATES_KEY, RateTable.from_dict)
        preferences = self._load_slot(NOTIFICATION_SETTINGS_KEY, NotificationPreferences.from_dict)
        jobs = self._load_slot(QUEUE_KEY, _jobs_from_list)

        with self._lock:
            if rates is None:
                rates = default_rates()
                self._save(RATES_KEY, rates.to_dict())
            if preferences is None:
                preferences = default_notification_preferences()
                self._save(NOTIFICATION_SETTINGS_KEY, preferences.to_dict())
            if not jobs:
                logger.info("Seeding queue with default jobs")
                jobs = default_jobs()

            self._rates = rates
            self._preferences = preferences
            self._jobs = tuple(ordering.sort_jobs(jobs))
            self._last_id = max(job.id for job in self._jobs)
            self._save_queue()
            self._publish("loaded")

        logger.info(f"Queue loaded with {len(self._jobs)} jobs")

    def subscribe(self, listener: QueueListener) -> Callable[[], None]:
        """
        Register a listener for QueueEvents.

        Listeners run right after each successful mutation, under the engine
        lock, so they must be quick and must not block on other threads.

        Returns:
            A function that removes the listener again
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    # =========================================================================
    # READS
    # =========================================================================

    @property
    def jobs(self) -> Tuple[Job, ...]:
        """Current collection in queue order (a snapshot)."""
        return self._jobs

    def snapshot(self) -> Tuple[Job, ...]:
        return self._jobs

    @property
    def rates(self) -> RateTable:
        return self._rates

    @property
    def notification_preferences(self) -> NotificationPreferences:
        return self._preferences

    def find_job(self, job_id: int) -> Optional[Job]:
        for job in self._jobs:
            if job.id == job_id:
                return job
        return None

    def get_job(self, job_id: int) -> Job:
        """
        Raises:
            JobNotFoundError: If no job has this id
        """
        job = self.find_job(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def find_by_token(self, token: str) -> Optional[Job]:
        token = (token or "").strip()
        for job in self._jobs:
            if job.token == token:
                return job
        return None

    def next_to_print(self) -> Optional[Job]:
        return ordering.next_to_print(self._jobs)

    def live_queue(self, status_filter: str = "all") -> List[Job]:
        """Jobs still in production or at the counter ('all', 'queued', 'printing')."""
        if status_filter not in LIVE_FILTERS:
            raise ValidationError(f"Unknown queue filter '{status_filter}'", "filter")
        live = [job for job in self._jobs if job.status is not JobStatus.COLLECTED]
        if status_filter == "queued":
            return [job for job in live if job.status is JobStatus.QUEUED]
        if status_filter == "printing":
            return [job for job in live if job.status is JobStatus.PRINTING]
        return live

    def completed_jobs(self) -> List[Job]:
        return [job for job in self._jobs if job.status is JobStatus.COLLECTED]

    def payments(self, payment_filter: str = "all") -> List[Job]:
        if payment_filter not in PAYMENT_FILTERS:
            raise ValidationError(f"Unknown payment filter '{payment_filter}'", "filter")
        if payment_filter == "paid":
            return [job for job in self._jobs if job.is_paid]
        if payment_filter == "unpaid":
            return [job for job in self._jobs if not job.is_paid]
        return list(self._jobs)

    def customer_queue(self, own_job_id: Optional[int] = None) -> List[Job]:
        """What a customer sees: every uncollected job, plus their own job always."""
        return [
            job for job in self._jobs
            if job.status is not JobStatus.COLLECTED or job.id == own_job_id
        ]

    def estimated_wait_minutes(self) -> int:
        return pricing.estimated_wait_minutes(self._jobs)

    def dashboard_stats(self) -> Dict[str, float]:
        jobs = self._jobs
        stats = {
            "total_jobs": len(jobs),
            "total_earnings": sum(job.cost for job in jobs),
            "unpaid_jobs": sum(1 for job in jobs if not job.is_paid),
        }
        for status in JobStatus:
            stats[status.value.lower()] = sum(1 for job in jobs if job.status is status)
        return stats

    def quote(self, options: PrintOptions) -> pricing.PriceQuote:
        """Price an order with the current rates, without submitting it."""
        return pricing.quote_options(options, self._rates)

    def qr_payload(self, job: Job) -> str:
        return tokens.qr_payload(job.token, self._token_namespace)

    def printable_document(self, job_id: int) -> str:
        """
        Document handle for the print-dispatch collaborator.

        Raises:
            NotAuthorizedError: If no operator is logged in
            JobNotFoundError: If no job has this id
            NoPrintableFileError: If the job has no uploaded document
        """
        self._authorize("print_document")
        job = self.get_job(job_id)
        if not job.document_handle:
            raise NoPrintableFileError(job.id, job.token)
        return job.document_handle

    # =========================================================================
    # SUBMISSION
    # =========================================================================

    def submit(self, request: JobRequest, is_walk_in: bool) -> Job:
        """
        Add a job to the queue.

        Allocates the id and a unique token, prices the job with the current
        rates, inserts it with Normal priority and re-sorts the queue.

        Raises:
            NotAuthorizedError: For walk-in jobs without an operator session
            ValidationError: If the page count or copy count is not positive
        """
        if is_walk_in:
            self._authorize("submit_walk_in")

        options = request.options
        if options.total_pages <= 0:
            raise ValidationError("The document must have at least one page.", "total_pages")
        if options.copies <= 0:
            raise ValidationError("At least one copy is required.", "copies")

        file_name = (request.file_name or "").strip()
        if not file_name:
            raise ValidationError("A file name is required.", "file_name")

        with self._lock:
            job = Job(
                id=self._allocate_id(),
                file_name=file_name,
                page_count=options.total_pages,
                is_walk_in=is_walk_in,
                token=tokens.generate_token(
                    is_walk_in, {j.token for j in self._jobs}, self._rng
                ),
                cost=pricing.quote_options(options, self._rates).total,
                is_expedited=options.is_expedited,
                priority=Priority.NORMAL,
                status=JobStatus.QUEUED,
                payment_status=request.payment_status,
                customer_name=request.customer_name,
                payer_reference=request.payer_reference,
                document_handle=request.document_handle,
            )
            self._jobs = tuple(ordering.sort_jobs(self._jobs + (job,)))
            self._save_queue()
            self._publish("submitted")
            preferences = self._preferences

        get_job_logger(job.token).info(
            f"Submitted {'walk-in' if is_walk_in else 'online'} job {job.id} "
            f"({job.page_count} pages, cost {pricing.format_currency(job.cost)})"
        )

        if preferences.notify_new_job:
            self._notify(*_new_job_message(job))

        return job

    def submit_online(
        self,
        options: PrintOptions,
        file_name: str,
        customer_name: Optional[str] = None,
        payer_reference: Optional[str] = None,
        document_handle: Optional[str] = None,
        paid: bool = False,
    ) -> Job:
        request = JobRequest(
            file_name=file_name,
            options=options,
            payment_status=PaymentStatus.PAID if paid else PaymentStatus.UNPAID,
            customer_name=customer_name,
            payer_reference=payer_reference,
            document_handle=document_handle,
        )
        return self.submit(request, is_walk_in=False)

    def submit_walk_in(
        self,
        pages: int,
        color_mode: ColorMode = ColorMode.BW,
        sides: Sides = Sides.SINGLE,
        copies: int = 1,
        expedited: bool = False,
        customer_name: str = WALK_IN_CUSTOMER_NAME,
    ) -> Job:
        """Counter order: no document, priced over all entered pages, unpaid."""
        options = PrintOptions(
            pages="all",
            total_pages=pages,
            color_mode=color_mode,
            sides=sides,
            copies=copies,
            is_expedited=expedited,
        )
        request = JobRequest(
            file_name=WALK_IN_FILE_NAME,
            options=options,
            payment_status=PaymentStatus.UNPAID,
            customer_name=customer_name,
        )
        return self.submit(request, is_walk_in=True)

    # =========================================================================
    # OPERATOR COMMANDS
    # =========================================================================

    def set_priority(self, job_id: int, priority: Priority) -> JobOperationResult:
        """Change a Queued job's priority and re-sort. Any other job is left alone."""
        self._authorize("set_priority")
        priority = Priority(priority)

        with self._lock:
            job = self.find_job(job_id)
            if job is None:
                return JobOperationResult.not_found("Job not found.")
            if job.status is not JobStatus.QUEUED:
                return JobOperationResult.conflict(
                    f"Priority of job {job.token} cannot change while {job.status.value}.", job
                )
            if job.priority is priority:
                return JobOperationResult.success(job, "Priority unchanged.")

            updated = replace(job, priority=priority)
            self._replace_jobs({job.id: updated})
            self._save_queue()
            self._publish("priority")

        get_job_logger(job.token).info(f"Priority set to {priority.name}")
        return JobOperationResult.success(updated, f"Job {job.token} priority set to {priority.name.title()}.")

    def transition(self, job_id: int, target: JobStatus) -> JobOperationResult:
        """Move a job exactly one step forward, on operator command."""
        self._authorize("transition")
        target = JobStatus(target)

        with self._lock:
            job = self.find_job(job_id)
            if job is None:
                return JobOperationResult.not_found("Job not found.")
            if not state_machine.can_transition(job.status, target):
                return JobOperationResult.conflict(
                    f"Job {job.token} is {job.status.value} and cannot move to {target.value}.",
                    job,
                )
            if target is JobStatus.PRINTING:
                busy = next(
                    (j for j in self._jobs if j.status is JobStatus.PRINTING), None
                )
                if busy is not None:
                    return JobOperationResult.conflict(
                        f"Job {busy.token} is already printing.", job
                    )
            change = StatusChange(job.id, job.token, job.status, target)
            updated = self._apply_changes([change], "transition")[0]
            preferences = self._preferences

        self._notify_ready([change], [updated], preferences)
        return JobOperationResult.success(updated, f"Job {job.token} moved to {target.value}.")

    def resolve_token(self, token: str) -> JobOperationResult:
        """
        Collect a job by its token, as the counter scanner does.

        Only a Ready job is collected. An already collected job reports
        not-found, never not-ready.
        """
        self._authorize("resolve_token")

        with self._lock:
            job = self.find_by_token(token)
            if job is None:
                return JobOperationResult.not_found("Invalid Token. Job not found.")
            if job.status is JobStatus.COLLECTED:
                return JobOperationResult.not_found(f"Job {job.token} has already been collected.")
            if job.status is not JobStatus.READY:
                return JobOperationResult.not_ready(job)

            change = StatusChange(job.id, job.token, job.status, JobStatus.COLLECTED)
            updated = self._apply_changes([change], "transition")[0]

        return JobOperationResult.success(updated, f"Success! Job {job.token} marked as collected.")

    def scan(self, decoded_text: str) -> JobOperationResult:
        """Resolve a decoded QR string of the form '<namespace>:<token>'."""
        self._authorize("scan")
        token = tokens.parse_qr_payload(decoded_text, self._token_namespace)
        if token is None:
            logger.info("Rejected scan of a foreign code")
            return JobOperationResult.invalid_code()
        return self.resolve_token(token)

    def mark_paid(self, job_id: int, payer_reference: Optional[str] = None) -> JobOperationResult:
        """Record payment. Paying twice is harmless and changes nothing."""
        self._authorize("mark_paid")

        with self._lock:
            job = self.find_job(job_id)
            if job is None:
                return JobOperationResult.not_found("Job not found.")
            if job.is_paid:
                return JobOperationResult.success(job, f"Job {job.token} is already paid.")

            updated = replace(
                job,
                payment_status=PaymentStatus.PAID,
                payer_reference=payer_reference or job.payer_reference,
            )
            self._replace_jobs({job.id: updated})
            self._save_queue()
            self._publish("paid")

        get_job_logger(job.token).info("Marked as paid")
        return JobOperationResult.success(updated, f"Job {job.token} marked as paid.")

    def update_rates(self, rates: RateTable) -> RateTable:
        """Replace the rate table. Costs of existing jobs do not change."""
        self._authorize("update_rates")
        if not isinstance(rates, RateTable):
            raise ValidationError("Rates must be a RateTable", "rates")

        payload = rates.to_dict()

        with self._lock:
            self._rates = rates
            self._save(RATES_KEY, payload)
            self._publish("rates")

        logger.info(
            f"Rates updated: bw={rates.bw_page_rate} color={rates.color_page_rate} "
            f"discount={rates.discount_percent}% surcharge={rates.surcharge_percent}%"
        )
        return rates

    def update_notification_preferences(
        self, preferences: NotificationPreferences
    ) -> NotificationPreferences:
        self._authorize("update_notification_preferences")
        if not isinstance(preferences, NotificationPreferences):
            raise ValidationError("Preferences must be NotificationPreferences", "preferences")

        with self._lock:
            self._preferences = preferences
            self._save(NOTIFICATION_SETTINGS_KEY, preferences.to_dict())
            self._publish("notifications")

        logger.info(
            f"Notification preferences updated: new_job={preferences.notify_new_job} "
            f"job_ready={preferences.notify_job_ready}"
        )
        return preferences

    # =========================================================================
    # AUTONOMOUS PROGRESS
    # =========================================================================

    def tick(self) -> TickResult:
        """
        Run one progress step (timer or refresh request).

        A tick that changes nothing does not persist, publish or notify.
        """
        with self._lock:
            changes = state_machine.plan_tick(
                self._jobs,
                self._rng,
                probability=self._auto_collect_probability,
                threshold=self._auto_collect_threshold,
            )
            if not changes:
                return TickResult(changes=(), jobs=self._jobs)

            updated = self._apply_changes(changes, "tick")
            jobs = self._jobs
            preferences = self._preferences

        logger.info(
            "Tick applied: " + ", ".join(
                f"{c.token} {c.previous.value}->{c.current.value}" for c in changes
            )
        )
        self._notify_ready(changes, updated, preferences)
        return TickResult(changes=tuple(changes), jobs=jobs)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _authorize(self, operation: str) -> None:
        if self._directory is not None:
            self._directory.require_operator(operation)

    def _allocate_id(self) -> int:
        job_id = max(int(self._clock() * 1000), self._last_id + 1)
        self._last_id = job_id
        return job_id

    def _replace_jobs(self, updates: Dict[int, Job]) -> None:
        self._jobs = tuple(
            ordering.sort_jobs(updates.get(job.id, job) for job in self._jobs)
        )

    def _apply_changes(self, changes: Sequence[StatusChange], kind: str) -> List[Job]:
        """
        Apply status changes as one unit. Caller holds the lock.

        Every change is validated against the state machine before anything
        is replaced.
        """
        updates: Dict[int, Job] = {}
        for change in changes:
            job = self.find_job(change.job_id)
            if job is None or job.status is not change.previous:
                raise ValueError(f"Stale status change for job {change.token}")
            if not state_machine.can_transition(change.previous, change.current):
                raise ValueError(
                    f"Illegal transition {change.previous.value} -> {change.current.value}"
                )
            updates[job.id] = replace(job, status=change.current)

        self._replace_jobs(updates)
        self._save_queue()
        self._publish(kind, tuple(changes))

        for change in changes:
            get_job_logger(change.token).info(
                f"Status {change.previous.value} -> {change.current.value}"
            )
        return [updates[change.job_id] for change in changes]

    def _publish(self, kind: str, changes: Tuple[StatusChange, ...] = ()) -> None:
        event = QueueEvent(kind=kind, jobs=self._jobs, changes=changes)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Queue listener failed on '{kind}' event: {e}", exc_info=True)

    def _notify_ready(
        self,
        changes: Iterable[StatusChange],
        updated: Iterable[Job],
        preferences: NotificationPreferences,
    ) -> None:
        if not preferences.notify_job_ready:
            return
        by_id = {job.id: job for job in updated}
        for change in changes:
            if change.became_ready:
                job = by_id[change.job_id]
                self._notify(
                    "Job Ready!",
                    f"Job {job.token} ({job.file_name}) is ready for collection.",
                )

    def _notify(self, title: str, body: str) -> None:
        try:
            self._notifier.notify(title, body)
        except Exception as e:
            logger.warning(f"Notification '{title}' not delivered: {e}")

    def _save_queue(self) -> None:
        self._save(QUEUE_KEY, [job.to_dict() for job in self._jobs])

    def _save(self, key: str, payload) -> None:
        try:
            self._store.set(key, json.dumps(payload))
        except Exception as e:
            logger.error(f"Could not persist '{key}', keeping in-memory state: {e}")

    def _load_slot(self, key: str, parse):
        blob = self._store.get(key)
        if blob is None:
            logger.info(f"No stored value for '{key}', using default")
            return None
        try:
            return parse(json.loads(blob))
        except (ValueError, KeyError, TypeError, ValidationError) as e:
            logger.error(f"Failed to parse '{key}' from store, resetting to default: {e}")
            return None


def _jobs_from_list(data) -> List[Job]:
    if not isinstance(data, list):
        raise ValueError("Stored queue is not a list")
    jobs = [Job.from_dict(item) for item in data]

    if len({job.id for job in jobs}) != len(jobs):
        raise ValueError("Stored queue has duplicate job ids")
    if len({job.token for job in jobs}) != len(jobs):
        raise ValueError("Stored queue has duplicate tokens")
    return jobs


def _new_job_message(job: Job) -> Tuple[str, str]:
    requester = job.customer_name or ("Walk-in Customer" if job.is_walk_in else "a customer")
    if job.is_walk_in:
        return "New Walk-in Order!", f"Job {job.token} for {requester} added to the queue."
    return (
        "New Online Order!",
        f'Job {job.token} for "{job.file_name}" from {requester} added to the queue.',
    )
