"""Background worker that runs paraphrasing jobs one at a time.

Submitted :class:`~paraphraser.models.JobPayload` messages go onto a
``queue.Queue`` that a single daemon thread drains.  Each job gets up
to ``max_attempts`` attempts.  Between attempts the thread sleeps for
an exponential backoff (``retry_backoff * 2 ** (attempt - 1)``) and
the next attempt starts again from extraction.  Configuration errors
are not retried.  The job stays ``processing`` while retries remain
and is marked ``failed`` only after the last attempt.
"""

import logging
import queue
import threading
import time
from collections.abc import Callable

from paraphraser.config import CFG
from paraphraser.errors import ParaphraserError
from paraphraser.models import JobPayload
from paraphraser.pipeline.jobs import JobRegistry
from paraphraser.pipeline.orchestrator import PipelineOrchestrator

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = int(CFG.get("max_attempts", 3))
DEFAULT_RETRY_BACKOFF_SECONDS = int(CFG.get("retry_backoff_ms", 5000)) / 1000.0


def backoff_delay(attempt: int, base_seconds: float) -> float:
    """Wait before retrying after failed attempt number *attempt* (1-based)."""
    return base_seconds * 2 ** (attempt - 1)


class ParaphraseWorker:
    """Single-flight job runner.

    Parameters
    ----------
    registry : JobRegistry
        Where job status and progress are recorded.
    orchestrator : PipelineOrchestrator
        Runs one attempt of a job.
    max_attempts : int
        Total attempts per job, including the first.
    retry_backoff_seconds : float
        Base delay of the exponential backoff.
    sleep : callable
        Injected for tests.
    """

    def __init__(
        self,
        registry: JobRegistry,
        orchestrator: PipelineOrchestrator,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_backoff_seconds: float = DEFAULT_RETRY_BACKOFF_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.registry = registry
        self.orchestrator = orchestrator
        self.max_attempts = max(1, max_attempts)
        self.retry_backoff_seconds = retry_backoff_seconds
        self._sleep = sleep
        self._queue: queue.Queue = queue.Queue()
        self._thread: threading.Thread | None = None

    # ── Lifecycle ───────────────────────────────────────────────────

    def start(self) -> "ParaphraseWorker":
        if self._thread is None or not self._thread.is_alive():
            self._thread = threading.Thread(
                target=self._drain, name="paraphrase-worker", daemon=True
            )
            self._thread.start()
            logger.info("Paraphrase worker started")
        return self

    def submit(self, payload: JobPayload) -> None:
        """Queue *payload*; its job must already be registered."""
        self._queue.put(payload)

    def wait_idle(self) -> None:
        """Block until every submitted job has finished."""
        self._queue.join()

    def close(self, timeout: float | None = None) -> None:
        """Finish the queued jobs, then stop the worker thread."""
        if self._thread is not None and self._thread.is_alive():
            self._queue.put(None)  # sentinel
            self._thread.join(timeout)
        self._thread = None

    # ── Worker thread ───────────────────────────────────────────────

    def _drain(self) -> None:
        while True:
            payload = self._queue.get()
            try:
                if payload is None:
                    break
                self.run_job(payload)
            except Exception:
                logger.exception(f"Job {payload.job_id}: could not record job outcome")
            finally:
                self._queue.task_done()
        logger.info("Paraphrase worker stopped")

    def run_job(self, payload: JobPayload) -> None:
        """Run *payload* with retries and record the outcome on its job."""
        job_id = payload.job_id
        self.registry.update(job_id, "processing", progress=0)

        def on_progress(progress: int) -> None:
            self.registry.update(job_id, "processing", progress=progress)

        for attempt in range(1, self.max_attempts + 1):
            try:
                path = self.orchestrator.process(payload, on_progress=on_progress)
            except ParaphraserError as exc:
                retry = exc.retryable and attempt < self.max_attempts
                logger.error(
                    f"Job {job_id}: attempt {attempt}/{self.max_attempts} failed: {exc}"
                )
                message = exc.message
            except Exception as exc:
                retry = attempt < self.max_attempts
                logger.exception(
                    f"Job {job_id}: attempt {attempt}/{self.max_attempts} "
                    f"raised an unexpected error"
                )
                message = str(exc) or type(exc).__name__
            else:
                self.registry.update(job_id, "completed", output_location=path)
                logger.info(f"Job {job_id} completed: {path}")
                return

            if not retry:
                self.registry.update(job_id, "failed", error_message=message)
                logger.error(f"Job {job_id} failed: {message}")
                return

            delay = backoff_delay(attempt, self.retry_backoff_seconds)
            logger.info(f"Job {job_id}: retrying in {delay:.1f}s")
            self._sleep(delay)
