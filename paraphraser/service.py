"""Submission, status and download facade over the job pipeline.

Usage::

    from paraphraser.service import ParaphraseService

    service = ParaphraseService.from_config()
    ticket = service.submit("report-42", "report.pdf", "pdf", {"tone": "formal"})
    status = service.get_status(ticket["jobId"])
    filename, content = service.get_output("report-42", "pdf")
"""

import logging
import uuid
from typing import Any

from paraphraser.config import CFG
from paraphraser.errors import ConfigurationError
from paraphraser.generation.invoker import invoke
from paraphraser.models import FILE_TYPES, Chunk, JobPayload, StyleConfig
from paraphraser.pipeline.jobs import JobRegistry
from paraphraser.pipeline.orchestrator import PipelineOrchestrator
from paraphraser.pipeline.storage import read_output
from paraphraser.pipeline.worker import ParaphraseWorker

logger = logging.getLogger(__name__)

CONNECTION_TEST_TEXT = "This is a test."


class ParaphraseService:
    """Front door for submitting documents and collecting results."""

    def __init__(
        self,
        orchestrator: PipelineOrchestrator,
        registry: JobRegistry | None = None,
        worker: ParaphraseWorker | None = None,
    ):
        self.orchestrator = orchestrator
        self.registry = registry or JobRegistry()
        self.worker = worker or ParaphraseWorker(self.registry, orchestrator)
        self.worker.start()

    @classmethod
    def from_config(cls, cfg: dict | None = None, provider=None) -> "ParaphraseService":
        cfg = cfg if cfg is not None else CFG
        orchestrator = PipelineOrchestrator.from_config(cfg, provider=provider)
        registry = JobRegistry()
        worker = ParaphraseWorker(
            registry,
            orchestrator,
            max_attempts=int(cfg.get("max_attempts", 3)),
            retry_backoff_seconds=int(cfg.get("retry_backoff_ms", 5000)) / 1000.0,
        )
        return cls(orchestrator, registry=registry, worker=worker)

    def submit(
        self,
        document_id: str,
        file_path: str,
        file_type: str,
        config: StyleConfig | dict[str, Any] | None = None,
    ) -> dict[str, str]:
        """Register a job for *document_id* and queue it.

        Returns
        -------
        dict
            ``{"jobId": ..., "status": "queued"}``

        Raises
        ------
        ConfigurationError
            If a required field is missing, the file type is unsupported,
            the style config is invalid, or the document already has an
            active job.
        """
        missing = [
            name
            for name, value in (
                ("documentId", document_id),
                ("filePath", file_path),
                ("fileType", file_type),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(
                f"Missing required fields: {', '.join(missing)}", {"missing": missing}
            )

        file_type = file_type.lower().lstrip(".")
        if file_type not in FILE_TYPES:
            raise ConfigurationError(
                f"Unsupported file type: {file_type}", {"file_type": file_type}
            )

        if not isinstance(config, StyleConfig):
            config = StyleConfig.from_dict(config)

        job_id = str(uuid.uuid4())
        self.registry.create(job_id, document_id, config)
        self.worker.submit(
            JobPayload(
                job_id=job_id,
                document_id=document_id,
                file_path=file_path,
                file_type=file_type,
                config=config,
            )
        )
        logger.info(f"Submitted job {job_id} for document {document_id}")
        return {"jobId": job_id, "status": "queued"}

    def get_status(self, job_id: str) -> dict[str, Any]:
        """Return the job's status view; raises ``JobNotFoundError``."""
        job = self.registry.get(job_id)
        status: dict[str, Any] = {
            "jobId": job.job_id,
            "status": job.status,
            "progress": job.progress,
        }
        if job.output_location:
            status["outputPath"] = job.output_location
        if job.error_message:
            status["error"] = job.error_message
        if job.updated_at:
            status["updatedAt"] = job.updated_at.isoformat()
        return status

    def get_output(self, document_id: str, file_type: str = "txt") -> tuple[str, bytes]:
        """Return ``(filename, content)``; raises ``OutputNotFoundError``."""
        return read_output(document_id, file_type, self.orchestrator.output_dir)

    def check_connection(self) -> bool:
        """Send one short sentence through the provider."""
        chunk = Chunk(
            index=0,
            start_offset=0,
            end_offset=len(CONNECTION_TEST_TEXT),
            text=CONNECTION_TEST_TEXT,
            total_chunks=1,
        )
        try:
            invoke(chunk, StyleConfig(), self.orchestrator.provider)
        except Exception as exc:
            logger.error(f"Connection test failed: {exc}")
            return False
        return True

    def wait_idle(self) -> None:
        self.worker.wait_idle()

    def close(self) -> None:
        self.worker.close()
        self.registry.close()
