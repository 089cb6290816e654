"""Run one document through extract → segment → rewrite → reconstruct → save.

The orchestrator owns no job state.  It reports progress through a
callback at fixed checkpoints and lets every error propagate; the
worker decides what a failure means for the job.

Progress checkpoints::

    10                       text extracted
    20                       document segmented
    20 + round(70 * k / n)   after chunk k of n has been rewritten
"""

import logging
import time
from collections.abc import Callable

from paraphraser.config import CFG
from paraphraser.errors import ExtractionError
from paraphraser.generation.invoker import transform_chunks
from paraphraser.generation.provider import LangChainProvider, TextTransformProvider
from paraphraser.generation.rate_limit import TokenBucketRateLimiter, rate_limit_from_config
from paraphraser.generation.reconstructor import reconstruct
from paraphraser.ingestion.loaders import extract_text
from paraphraser.ingestion.segmenter import segment, validate_chunking
from paraphraser.models import ExtractedDocument, JobPayload, RewrittenChunk, StyleConfig
from paraphraser.pipeline.session_log import LOGS_DIR, ChunkLog, log_job_session
from paraphraser.pipeline.storage import DEFAULT_OUTPUT_DIR, save_output

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]

EXTRACTED_PROGRESS = 10
SEGMENTED_PROGRESS = 20
TRANSFORM_SPAN = 70


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero (for value >= 0)."""
    return int(value + 0.5)


def progress_for(completed: int, total: int) -> int:
    """Progress after *completed* of *total* chunks have been rewritten."""
    if total <= 0:
        return SEGMENTED_PROGRESS
    return SEGMENTED_PROGRESS + round_half_up(TRANSFORM_SPAN * completed / total)


class PipelineOrchestrator:
    """Turn a source document into its paraphrased counterpart.

    Parameters
    ----------
    provider : TextTransformProvider
        Default rewriting backend; :meth:`run` can override it per call.
    max_chunk_size, overlap_size : int
        Segmenter parameters, validated here.
    rate_limiter : TokenBucketRateLimiter | None
        Shared pacing for provider calls.
    extractor : callable
        ``extractor(file_path, file_type) -> ExtractedDocument``.
    output_dir, logs_dir : str
        Where outputs and session logs are written.
    log_sessions : bool
        Write a session log for every successful job.

    Raises
    ------
    ConfigurationError
        If the chunking parameters are unusable.
    """

    def __init__(
        self,
        provider: TextTransformProvider,
        max_chunk_size: int = 4000,
        overlap_size: int = 200,
        rate_limiter: TokenBucketRateLimiter | None = None,
        extractor: Callable[[str, str], ExtractedDocument] = extract_text,
        output_dir: str = DEFAULT_OUTPUT_DIR,
        logs_dir: str = LOGS_DIR,
        log_sessions: bool = True,
    ):
        validate_chunking(max_chunk_size, overlap_size)
        self.provider = provider
        self.max_chunk_size = max_chunk_size
        self.overlap_size = overlap_size
        self.rate_limiter = rate_limiter
        self.extractor = extractor
        self.output_dir = output_dir
        self.logs_dir = logs_dir
        self.log_sessions = log_sessions

    @classmethod
    def from_config(
        cls,
        cfg: dict | None = None,
        provider: TextTransformProvider | None = None,
    ) -> "PipelineOrchestrator":
        """Build an orchestrator from config.txt settings."""
        cfg = cfg if cfg is not None else CFG
        if provider is None:
            provider = LangChainProvider(
                provider=str(cfg.get("llm_provider", "ollama")),
                model=str(cfg.get("llm_model", "llama3.2:3b")),
            )
        return cls(
            provider=provider,
            max_chunk_size=int(cfg.get("max_chunk_size", 4000)),
            overlap_size=int(cfg.get("chunk_overlap", 200)),
            rate_limiter=TokenBucketRateLimiter(rate_limit_from_config(cfg)),
            output_dir=str(cfg.get("output_dir", DEFAULT_OUTPUT_DIR)),
            logs_dir=str(cfg.get("logs_dir", LOGS_DIR)),
            log_sessions=bool(cfg.get("log_job_sessions", True)),
        )

    # ── Core pipeline ───────────────────────────────────────────────

    def run(
        self,
        document_text: str,
        config: StyleConfig,
        provider: TextTransformProvider | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> str:
        """Segment, rewrite and reconstruct *document_text*."""
        text, _ = self._run(document_text, config, provider, on_progress)
        return text

    def _run(
        self,
        document_text: str,
        config: StyleConfig,
        provider: TextTransformProvider | None,
        on_progress: ProgressCallback | None,
    ) -> tuple[str, list[RewrittenChunk]]:
        report = on_progress or (lambda _progress: None)

        chunks = segment(document_text, self.max_chunk_size, self.overlap_size)
        report(SEGMENTED_PROGRESS)

        rewritten = transform_chunks(
            chunks,
            config,
            provider or self.provider,
            rate_limiter=self.rate_limiter,
            on_chunk=lambda done, total: report(progress_for(done, total)),
        )
        return reconstruct(rewritten), rewritten

    def process(self, payload: JobPayload, on_progress: ProgressCallback | None = None) -> str:
        """Run one job attempt end to end and return the output path.

        Raises
        ------
        ExtractionError
            If the document cannot be read or contains no text.
        ProviderError
            If any chunk fails to rewrite.
        PersistenceError
            If the output cannot be saved.
        """
        report = on_progress or (lambda _progress: None)
        t0 = time.time()
        logger.info(
            f"Job {payload.job_id}: processing {payload.file_path} ({payload.file_type})"
        )

        document = self.extractor(payload.file_path, payload.file_type)
        if not document.text.strip():
            raise ExtractionError(
                f"No text could be extracted from {payload.file_path}",
                {"document_id": payload.document_id, "file_type": payload.file_type},
            )
        logger.info(
            f"Job {payload.job_id}: extracted {document.word_count:,} words"
        )
        report(EXTRACTED_PROGRESS)

        text, rewritten = self._run(document.text, payload.config, None, report)

        path = save_output(payload.document_id, payload.file_type, text, self.output_dir)
        elapsed = time.time() - t0

        if self.log_sessions:
            # Session log failures are warnings only
            try:
                log_job_session(
                    job_id=payload.job_id,
                    document_id=payload.document_id,
                    file_path=payload.file_path,
                    file_type=payload.file_type,
                    config=payload.config,
                    provider=getattr(self.provider, "provider", type(self.provider).__name__),
                    model=getattr(self.provider, "model", ""),
                    chunks=[ChunkLog.from_rewritten(c) for c in rewritten],
                    output_path=path,
                    elapsed_seconds=elapsed,
                    logs_dir=self.logs_dir,
                )
            except OSError as exc:
                logger.warning(f"Job {payload.job_id}: could not write session log: {exc}")

        logger.info(f"Job {payload.job_id}: done in {elapsed:.1f}s → {path}")
        return path
