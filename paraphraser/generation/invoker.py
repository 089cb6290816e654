"""Send chunks to the rewriting provider, one at a time, in order.

:func:`invoke` rewrites a single chunk.  :func:`transform_chunks` drives
it over a whole document on the caller's thread, paces calls through
the shared rate limiter, and turns any failure into a
:class:`~paraphraser.errors.ProviderError` that names the chunk.
"""

import logging
import time
from collections.abc import Callable, Sequence

from paraphraser.errors import ProviderError
from paraphraser.generation.provider import TextTransformProvider
from paraphraser.generation.rate_limit import TokenBucketRateLimiter
from paraphraser.generation.style import build_style_directive
from paraphraser.models import Chunk, RewrittenChunk, StyleConfig

logger = logging.getLogger(__name__)


def invoke(
    chunk: Chunk,
    config: StyleConfig,
    provider: TextTransformProvider,
) -> RewrittenChunk:
    """Rewrite one chunk under *config*.

    Raises
    ------
    ProviderError
        If the provider raises, or returns an empty result.
    """
    directive = build_style_directive(config, len(chunk.text))
    try:
        rewritten = provider.transform(chunk.text, directive)
    except ProviderError:
        raise
    except Exception as exc:
        raise ProviderError(f"Failed to paraphrase text: {exc}") from exc

    if not rewritten or not rewritten.strip():
        raise ProviderError("Provider returned an empty result")

    return RewrittenChunk(
        index=chunk.index,
        original_text=chunk.text,
        rewritten_text=rewritten.strip(),
    )


def transform_chunks(
    chunks: Sequence[Chunk],
    config: StyleConfig,
    provider: TextTransformProvider,
    rate_limiter: TokenBucketRateLimiter | None = None,
    on_chunk: Callable[[int, int], None] | None = None,
) -> list[RewrittenChunk]:
    """Rewrite every chunk strictly in index order.

    Parameters
    ----------
    chunks : Sequence[Chunk]
        Output of :func:`~paraphraser.ingestion.segmenter.segment`.
    config : StyleConfig
        Forwarded unchanged to every call.
    provider : TextTransformProvider
        The rewriting backend.
    rate_limiter : TokenBucketRateLimiter | None
        Acquired before each call; ``None`` means no pacing.
    on_chunk : callable, optional
        ``on_chunk(completed, total)`` after each chunk finishes.

    Returns
    -------
    list[RewrittenChunk]
        One entry per chunk, in order.

    Raises
    ------
    ProviderError
        On the first failing chunk.  The message reads
        ``"Failed at chunk k/n: ..."`` and no later chunk is attempted.
    """
    ordered = sorted(chunks, key=lambda c: c.index)
    total = len(ordered)
    results: list[RewrittenChunk] = []

    logger.info(f"Processing document in {total} chunk(s)")
    t0 = time.time()

    for number, chunk in enumerate(ordered, 1):
        if rate_limiter is not None:
            rate_limiter.acquire()

        logger.info(f"  [{number}/{total}] rewriting {len(chunk.text):,} chars")
        try:
            results.append(invoke(chunk, config, provider))
        except ProviderError as exc:
            logger.error(f"Error processing chunk {number}/{total}: {exc}")
            raise ProviderError(
                f"Failed at chunk {number}/{total}: {exc}",
                chunk_number=number,
                total_chunks=total,
                details=exc.details,
            ) from exc

        if on_chunk is not None:
            on_chunk(number, total)

    logger.info(f"Rewrote {total} chunk(s) in {time.time() - t0:.1f}s")
    return results
