"""Job records, their lifecycle, and the in-memory job table.

A :class:`Job` is immutable.  Every change goes through :func:`advance`,
which checks the transition and returns a new record.  The job table
itself lives on a :class:`JobRegistry` thread.  Callers talk to it only
through messages and block until it replies, so no lock is ever shared
between the worker and the status readers.

Lifecycle::

    queued ──> processing ──> completed
                   │  ↺ (progress updates, retries)
                   └────────> failed
"""

import logging
import queue
import threading
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Callable, Literal

from paraphraser.errors import (
    ConfigurationError,
    InvalidTransitionError,
    JobNotFoundError,
)
from paraphraser.models import StyleConfig

logger = logging.getLogger(__name__)

JobStatus = Literal["queued", "processing", "completed", "failed"]

TERMINAL_STATUSES = frozenset({"completed", "failed"})

TRANSITIONS: dict[str, frozenset[str]] = {
    "queued": frozenset({"processing"}),
    "processing": frozenset({"processing", "completed", "failed"}),
    "completed": frozenset(),
    "failed": frozenset(),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Job:
    """Snapshot of one paraphrasing job."""

    job_id: str
    document_id: str
    status: JobStatus
    progress: int
    config: StyleConfig
    output_location: str | None = None
    error_message: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


def new_job(
    job_id: str,
    document_id: str,
    config: StyleConfig,
    now: datetime | None = None,
) -> Job:
    """Create the ``queued`` record for a fresh submission."""
    now = now or _utcnow()
    return Job(
        job_id=job_id,
        document_id=document_id,
        status="queued",
        progress=0,
        config=config,
        created_at=now,
        updated_at=now,
    )


def advance(
    job: Job,
    status: JobStatus,
    progress: int | None = None,
    output_location: str | None = None,
    error_message: str | None = None,
    now: datetime | None = None,
) -> Job:
    """Return *job* moved to *status*.

    Parameters
    ----------
    job : Job
        Current record.
    status : JobStatus
        Target status; must be allowed by :data:`TRANSITIONS`.
    progress : int | None
        New progress (0-99 while processing).  Lower values than the
        current one are ignored so progress never moves backwards.
    output_location : str | None
        Where the output was written; only kept on ``completed``.
    error_message : str | None
        Required for ``failed``; rejected for any other status.
    now : datetime | None
        Timestamp for ``updated_at``; defaults to the current UTC time.

    Raises
    ------
    InvalidTransitionError
        For a transition the lifecycle does not allow, a missing failure
        message, or a failure message on a non-failed status.
    """
    if status not in TRANSITIONS.get(job.status, frozenset()):
        raise InvalidTransitionError(
            f"Job {job.job_id}: cannot move from {job.status} to {status}",
            {"job_id": job.job_id, "from": job.status, "to": status},
        )

    if status == "failed" and not error_message:
        raise InvalidTransitionError(
            f"Job {job.job_id}: a failed job needs an error message",
            {"job_id": job.job_id},
        )
    if status != "failed" and error_message:
        raise InvalidTransitionError(
            f"Job {job.job_id}: error message given for status {status}",
            {"job_id": job.job_id, "to": status},
        )

    if status == "completed":
        new_progress = 100
    else:
        # 100 is reserved for completion
        requested = job.progress if progress is None else min(int(progress), 99)
        new_progress = max(job.progress, requested)

    return replace(
        job,
        status=status,
        progress=new_progress,
        output_location=output_location if status == "completed" else None,
        error_message=error_message if status == "failed" else None,
        updated_at=now or _utcnow(),
    )


# ── Job registry (message-passing owner of the job table) ──────────


@dataclass
class _Request:
    action: str
    args: tuple
    reply: queue.Queue


class JobRegistry:
    """Thread that owns the job table.

    Every public method posts a request to the registry's inbox and
    waits for the answer.  Exceptions raised while handling a request
    are sent back and re-raised in the caller's thread.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self._clock = clock
        self._jobs: dict[str, Job] = {}
        self._by_document: dict[str, str] = {}
        self._inbox: queue.Queue = queue.Queue()
        self._thread = threading.Thread(
            target=self._serve, name="job-registry", daemon=True
        )
        self._thread.start()

    # ── Public API ──────────────────────────────────────────────────

    def create(self, job_id: str, document_id: str, config: StyleConfig) -> Job:
        """Register a new ``queued`` job for *document_id*.

        Raises
        ------
        ConfigurationError
            If the document already has a queued or processing job.
        """
        return self._call("create", job_id, document_id, config)

    def update(
        self,
        job_id: str,
        status: JobStatus,
        progress: int | None = None,
        output_location: str | None = None,
        error_message: str | None = None,
    ) -> Job:
        """Apply :func:`advance` to the stored job and keep the result."""
        return self._call("update", job_id, status, progress, output_location, error_message)

    def get(self, job_id: str) -> Job:
        """Return the job, or raise :class:`JobNotFoundError`."""
        return self._call("get", job_id)

    def find_by_document(self, document_id: str) -> Job | None:
        return self._call("find_by_document", document_id)

    def close(self, timeout: float | None = 5.0) -> None:
        """Stop the registry thread."""
        if self._thread.is_alive():
            self._inbox.put(None)  # sentinel
            self._thread.join(timeout)

    # ── Registry thread ─────────────────────────────────────────────

    def _call(self, action: str, *args: Any) -> Any:
        if not self._thread.is_alive():
            raise RuntimeError("Job registry is closed")
        reply: queue.Queue = queue.Queue(maxsize=1)
        self._inbox.put(_Request(action, args, reply))
        ok, value = reply.get()
        if not ok:
            raise value
        return value

    def _serve(self) -> None:
        handlers = {
            "create": self._create,
            "update": self._update,
            "get": self._get,
            "find_by_document": self._find_by_document,
        }
        while True:
            request = self._inbox.get()
            if request is None:
                break
            try:
                result = handlers[request.action](*request.args)
            except Exception as exc:
                request.reply.put((False, exc))
            else:
                request.reply.put((True, result))
        logger.debug("Job registry stopped")

    def _create(self, job_id: str, document_id: str, config: StyleConfig) -> Job:
        if job_id in self._jobs:
            raise ConfigurationError(
                f"Job id {job_id} is already registered", {"job_id": job_id}
            )
        existing = self._find_by_document(document_id)
        if existing is not None and not existing.is_terminal:
            raise ConfigurationError(
                f"Document {document_id} already has an active job "
                f"({existing.job_id}, {existing.status})",
                {"document_id": document_id, "job_id": existing.job_id},
            )
        job = new_job(job_id, document_id, config, now=self._clock())
        self._jobs[job_id] = job
        # Earlier terminal jobs stay readable by id; the document points at the newest
        self._by_document[document_id] = job_id
        logger.info(f"Job {job_id} queued for document {document_id}")
        return job

    def _update(
        self,
        job_id: str,
        status: JobStatus,
        progress: int | None,
        output_location: str | None,
        error_message: str | None,
    ) -> Job:
        job = advance(
            self._get(job_id),
            status,
            progress=progress,
            output_location=output_location,
            error_message=error_message,
            now=self._clock(),
        )
        self._jobs[job_id] = job
        return job

    def _get(self, job_id: str) -> Job:
        try:
            return self._jobs[job_id]
        except KeyError:
            raise JobNotFoundError(f"Job not found: {job_id}", {"job_id": job_id}) from None

    def _find_by_document(self, document_id: str) -> Job | None:
        job_id = self._by_document.get(document_id)
        return self._jobs.get(job_id) if job_id else None
