"""Write one timestamped log file per paraphrasing job in logs/.

Each file records:

* Active config.txt settings
* Job id, document id, source file and type
* Style settings, provider and model
* Per-chunk input/output sizes and the rewritten text
* Output file path and timing

Files are named ``YYYYMMDD_HHMMSS_<job_id>_paraphrase.log`` so they
sort chronologically and never collide between jobs.
"""

import logging
import os
from dataclasses import dataclass
from datetime import datetime

from paraphraser.config import CFG, config_as_text
from paraphraser.models import RewrittenChunk, StyleConfig

logger = logging.getLogger(__name__)

LOGS_DIR = str(CFG.get("logs_dir", "logs"))


@dataclass
class ChunkLog:
    """One chunk's worth of rewrite data for logging."""

    index: int
    source_chars: int
    rewritten_chars: int
    rewritten_text: str

    @classmethod
    def from_rewritten(cls, chunk: RewrittenChunk) -> "ChunkLog":
        return cls(
            index=chunk.index,
            source_chars=len(chunk.original_text),
            rewritten_chars=len(chunk.rewritten_text),
            rewritten_text=chunk.rewritten_text,
        )


def log_job_session(
    *,
    job_id: str,
    document_id: str,
    file_path: str,
    file_type: str,
    config: StyleConfig,
    provider: str,
    model: str,
    chunks: list[ChunkLog] | None = None,
    output_path: str | None = None,
    elapsed_seconds: float | None = None,
    logs_dir: str = LOGS_DIR,
) -> str:
    """Write a complete paraphrasing session to a log file.

    Parameters
    ----------
    job_id, document_id : str
        Identifiers of the job and the document it rewrote.
    file_path, file_type : str
        Source document and its type.
    config : StyleConfig
        Style settings the job ran with.
    provider, model : str
        Rewriting provider and model name.
    chunks : list[ChunkLog] | None
        Per-chunk input/output records.
    output_path : str | None
        Where the reconstructed document was saved.
    elapsed_seconds : float | None
        Wall-clock time for the whole attempt.
    logs_dir : str
        Directory for log files.

    Returns
    -------
    str
        Path to the log file.
    """
    os.makedirs(logs_dir, exist_ok=True)

    now = datetime.now()
    filename = f"{now.strftime('%Y%m%d_%H%M%S')}_{job_id}_paraphrase.log"
    filepath = os.path.join(logs_dir, filename)

    separator = "─" * 72
    total = len(chunks) if chunks else 0

    with open(filepath, "w", encoding="utf-8") as fh:
        # ── Config ──────────────────────────────────────────────────
        fh.write("CONFIG\n")
        fh.write(f"{separator}\n")
        fh.write(f"{config_as_text()}\n")
        fh.write(f"{separator}\n\n")

        # ── Job parameters ──────────────────────────────────────────
        fh.write("PARAPHRASE SESSION\n")
        fh.write(f"{separator}\n")
        fh.write(f"Timestamp:    {now.isoformat()}\n")
        fh.write(f"Job:          {job_id}\n")
        fh.write(f"Document:     {document_id}\n")
        fh.write(f"Source:       {file_path} ({file_type})\n")
        fh.write(f"Provider:     {provider}\n")
        fh.write(f"Model:        {config.model or model}\n")
        fh.write(f"Tone:         {config.tone}\n")
        fh.write(f"Formality:    {config.formality}\n")
        fh.write(f"Creativity:   {config.creativity}\n")
        fh.write(f"Structure:    {'preserve' if config.preserve_structure else 'flexible'}\n")
        if output_path:
            fh.write(f"Output:       {output_path}\n")
        if elapsed_seconds is not None:
            mins, secs = divmod(int(elapsed_seconds), 60)
            fh.write(f"Elapsed:      {elapsed_seconds:.1f}s ({mins:02d}:{secs:02d})\n")
        fh.write(f"Chunks:       {total}\n")
        fh.write(f"{separator}\n\n")

        # ── Per-chunk details ───────────────────────────────────────
        for i, chunk in enumerate(chunks or [], 1):
            fh.write(f"[{i}/{total}] chunk {chunk.index}\n")
            fh.write(f"  Source chars:    {chunk.source_chars:,}\n")
            fh.write(f"  Rewritten chars: {chunk.rewritten_chars:,}\n")
            fh.write(f"  Rewritten text:\n{chunk.rewritten_text}\n")
            fh.write(f"\n{separator}\n\n")

    logger.info(f"Paraphrase session logged to {filepath}")
    return filepath
