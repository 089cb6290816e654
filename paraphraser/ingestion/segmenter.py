"""Split document text into bounded-size chunks with trailing context.

Paragraphs (blank-line separated) are packed into a running buffer
until the next one would push it past ``max_chunk_size``.  The buffer
is then emitted as a :class:`~paraphraser.models.Chunk` and the next
buffer starts with the tail of the emitted text, cut to whole
sentences, so the provider sees some context across the split.
Paragraphs that are too large on their own are packed sentence by
sentence with the same rules.

Usage::

    from paraphraser.ingestion.segmenter import segment
    chunks = segment(text, max_chunk_size=4000, overlap_size=200)
"""

import dataclasses
import logging
import re

from paraphraser.errors import ConfigurationError
from paraphraser.models import Chunk

logger = logging.getLogger(__name__)

PARAGRAPH_BREAK_RE = re.compile(r"\n[ \t]*\n\s*")

# A sentence ends at one or more terminators followed by whitespace.
# "3.14" and "e.g.x" are not boundaries.
SENTENCE_END_RE = re.compile(r"[.!?]+\s+")

PARAGRAPH_SEPARATOR = "\n\n"


def validate_chunking(max_chunk_size: int, overlap_size: int) -> None:
    """Raise :class:`ConfigurationError` for unusable size parameters."""
    if max_chunk_size <= 0:
        raise ConfigurationError(
            f"max_chunk_size must be positive, got {max_chunk_size}",
            {"max_chunk_size": max_chunk_size},
        )
    if overlap_size < 0:
        raise ConfigurationError(
            f"overlap_size must not be negative, got {overlap_size}",
            {"overlap_size": overlap_size},
        )
    if overlap_size >= max_chunk_size:
        raise ConfigurationError(
            f"overlap_size ({overlap_size}) must be smaller than "
            f"max_chunk_size ({max_chunk_size})",
            {"max_chunk_size": max_chunk_size, "overlap_size": overlap_size},
        )


def split_sentences(text: str) -> list[str]:
    """Split *text* into sentences, each keeping its trailing whitespace.

    ``"".join(split_sentences(text)) == text`` always holds; text after
    the last terminator becomes the final sentence.
    """
    sentences: list[str] = []
    start = 0
    for match in SENTENCE_END_RE.finditer(text):
        sentences.append(text[start:match.end()])
        start = match.end()
    if start < len(text):
        sentences.append(text[start:])
    return sentences


def overlap_tail(text: str, overlap_size: int) -> str:
    """Return the trailing context carried into the next chunk.

    The longest run of whole trailing sentences that fits in
    *overlap_size* characters, or the last *overlap_size* characters
    when not even the final sentence fits.
    """
    if overlap_size <= 0 or not text:
        return ""

    result = ""
    for sentence in reversed(split_sentences(text)):
        candidate = sentence + result
        if len(candidate) > overlap_size:
            break
        result = candidate

    return result or text[-overlap_size:]


def _split_paragraphs(text: str) -> list[tuple[int, int, str]]:
    """Return ``(start, end, paragraph)`` for each non-blank paragraph."""
    paragraphs = []
    start = 0
    for match in PARAGRAPH_BREAK_RE.finditer(text):
        paragraphs.append((start, match.start(), text[start:match.start()]))
        start = match.end()
    paragraphs.append((start, len(text), text[start:]))
    return [(s, e, p) for s, e, p in paragraphs if p.strip()]


class _Buffer:
    """Running chunk buffer that remembers where its text came from."""

    def __init__(self, overlap_size: int):
        self.overlap_size = overlap_size
        self.text = ""
        self.start = 0
        self.end = 0
        self.emitted: list[tuple[int, int, str]] = []

    def append(self, piece: str, start: int, end: int, separator: str) -> None:
        if not self.text:
            self.start = start
            self.text = piece
        else:
            self.text = f"{self.text}{separator}{piece}"
        self.end = end

    def emit_and_seed(self, strip_tail: bool) -> None:
        """Emit the buffer and restart it from the overlap tail."""
        self.emitted.append((self.start, self.end, self.text))
        tail = overlap_tail(self.text, self.overlap_size)
        tail = tail.strip() if strip_tail else tail.lstrip()
        self.start = max(self.start, self.end - len(tail))
        self.text = tail

    def flush(self) -> None:
        if self.text.strip():
            self.emitted.append((self.start, self.end, self.text))
        self.text = ""


def segment(text: str, max_chunk_size: int, overlap_size: int) -> list[Chunk]:
    """Split *text* into ordered chunks of roughly ``max_chunk_size`` chars.

    Parameters
    ----------
    text : str
        Raw document text.
    max_chunk_size : int
        Character budget per chunk.  A chunk only exceeds it when the
        carried overlap plus one paragraph (or sentence) cannot fit,
        or when a single sentence is longer than the budget.
    overlap_size : int
        Maximum characters of trailing context copied from each chunk
        into the next.  Must be smaller than ``max_chunk_size``.

    Returns
    -------
    list[Chunk]
        Chunks in index order, each with ``total_chunks`` set.  Empty
        input gives an empty list; input that already fits gives a
        single chunk equal to the input.

    Raises
    ------
    ConfigurationError
        If the size parameters are unusable.
    """
    validate_chunking(max_chunk_size, overlap_size)

    if not text.strip():
        return []

    if len(text) <= max_chunk_size:
        return [Chunk(index=0, start_offset=0, end_offset=len(text), text=text, total_chunks=1)]

    buffer = _Buffer(overlap_size)

    for para_start, para_end, paragraph in _split_paragraphs(text):
        if len(paragraph) > max_chunk_size:
            _pack_sentences(buffer, paragraph, para_start, max_chunk_size)
            continue

        candidate_len = len(buffer.text) + len(PARAGRAPH_SEPARATOR) + len(paragraph)
        if buffer.text and candidate_len > max_chunk_size:
            buffer.emit_and_seed(strip_tail=True)
        buffer.append(paragraph, para_start, para_end, PARAGRAPH_SEPARATOR)

    buffer.flush()

    # Second pass: every chunk learns the final count
    drafts = [
        Chunk(index=i, start_offset=start, end_offset=end, text=chunk_text)
        for i, (start, end, chunk_text) in enumerate(buffer.emitted)
    ]
    chunks = [dataclasses.replace(c, total_chunks=len(drafts)) for c in drafts]

    logger.info(
        f"Segmented {len(text):,} chars into {len(chunks)} chunk(s) "
        f"(max={max_chunk_size}, overlap={overlap_size})"
    )
    return chunks


def _pack_sentences(buffer: _Buffer, paragraph: str, para_start: int, max_chunk_size: int) -> None:
    """Pack an oversized paragraph into *buffer* one sentence at a time."""
    offset = para_start
    for i, sentence in enumerate(split_sentences(paragraph)):
        sentence_end = offset + len(sentence)
        # The first sentence opens a new paragraph; later ones continue it
        separator = PARAGRAPH_SEPARATOR if i == 0 else ""
        if buffer.text and len(buffer.text) + len(separator) + len(sentence) > max_chunk_size:
            buffer.emit_and_seed(strip_tail=(i == 0))
            if i > 0 and buffer.text and not buffer.text[-1].isspace():
                separator = " "
        buffer.append(sentence, offset, sentence_end, separator)
        offset = sentence_end
