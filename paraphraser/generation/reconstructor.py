"""Join rewritten chunks back into one document.

Consecutive chunks share some trailing context (see
:mod:`paraphraser.ingestion.segmenter`).  If the provider reproduced
that context at the start of the next chunk, it is dropped here so the
joined document does not repeat itself.  The matching is a plain prefix
test against the last few sentences of the previous rewritten chunk.
When the provider paraphrased the overlap differently nothing matches
and the chunk is appended unchanged.
"""

import logging
from collections import Counter
from collections.abc import Iterable

from paraphraser.ingestion.segmenter import split_sentences
from paraphraser.models import RewrittenChunk

logger = logging.getLogger(__name__)

# How many trailing sentences of the previous chunk are tried as overlap
OVERLAP_SENTENCES = 3
SEAM = "\n\n"


def overlap_candidates(previous: str, max_sentences: int = OVERLAP_SENTENCES) -> list[str]:
    """Trailing sentence runs of *previous*, longest first, each trimmed."""
    sentences = [s for s in split_sentences(previous.rstrip()) if s.strip()]
    tail = sentences[-max_sentences:]
    candidates = []
    for i in range(len(tail)):
        suffix = "".join(tail[i:]).strip()
        if suffix:
            candidates.append(suffix)
    return candidates


def remove_overlap(previous: str, current: str) -> str:
    """Drop a repeated run of *previous*'s last sentences from *current*."""
    stripped = current.lstrip()
    for suffix in overlap_candidates(previous):
        if stripped.startswith(suffix):
            logger.debug(f"Removed {len(suffix)} chars of repeated overlap")
            return stripped[len(suffix):].lstrip()
    return current


def _ordered(rewritten_chunks: Iterable[RewrittenChunk]) -> list[RewrittenChunk]:
    ordered = sorted(rewritten_chunks, key=lambda c: c.index)
    indices = [c.index for c in ordered]
    if indices != list(range(len(ordered))):
        counts = Counter(indices)
        duplicates = sorted(i for i, n in counts.items() if n > 1)
        missing = sorted(set(range(len(ordered))) - set(indices))
        raise ValueError(
            f"Incomplete chunk set: duplicate indices {duplicates}, "
            f"missing indices {missing}"
        )
    return ordered


def reconstruct(rewritten_chunks: Iterable[RewrittenChunk]) -> str:
    """Join *rewritten_chunks* in index order into the final document.

    Parameters
    ----------
    rewritten_chunks : Iterable[RewrittenChunk]
        Exactly one entry for every index ``0 .. n-1``, in any order.

    Returns
    -------
    str
        Segments separated by exactly one blank line, trimmed.  Blank
        lines inside a segment are kept as the provider wrote them.

    Raises
    ------
    ValueError
        If an index is duplicated or missing.
    """
    ordered = _ordered(rewritten_chunks)
    if not ordered:
        return ""

    segments = [ordered[0].rewritten_text.strip()]
    for previous, current in zip(ordered, ordered[1:]):
        segments.append(remove_overlap(previous.rewritten_text, current.rewritten_text).strip())

    document = SEAM.join(s for s in segments if s)
    logger.info(f"Reconstructed {len(ordered)} chunk(s) into {len(document):,} chars")
    return document.strip()
