"""Tests for paraphraser/ingestion/segmenter.py.

Run with:
    pytest tests/test_segmenter.py -v
"""

import os
import sys
import unittest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from paraphraser.errors import ConfigurationError
from paraphraser.ingestion.segmenter import (
    overlap_tail,
    segment,
    split_sentences,
    validate_chunking,
)


# ── Helpers ─────────────────────────────────────────────────────────


def _paragraph(tag: str, n_sentences: int) -> str:
    """``n`` sentences of 27 chars each, space separated (28n - 1 chars)."""
    return " ".join(f"{tag} sentence {i:03d} is here." for i in range(n_sentences))


ALPHA = _paragraph("Alpha", 21)
BRAVO = _paragraph("Bravo", 21)
DELTA = _paragraph("Delta", 21)
THREE_PARAGRAPHS = "\n\n".join([ALPHA, BRAVO, DELTA])


# ── Parameter validation ────────────────────────────────────────────


class TestValidateChunking(unittest.TestCase):
    def test_rejects_non_positive_max(self):
        with self.assertRaises(ConfigurationError):
            validate_chunking(0, 0)

    def test_rejects_negative_overlap(self):
        with self.assertRaises(ConfigurationError):
            validate_chunking(100, -1)

    def test_rejects_overlap_equal_to_max(self):
        with self.assertRaises(ConfigurationError):
            validate_chunking(100, 100)

    def test_segment_validates_even_for_empty_text(self):
        with self.assertRaises(ConfigurationError):
            segment("", 100, 200)

    def test_accepts_zero_overlap(self):
        validate_chunking(100, 0)


# ── Sentence helpers ────────────────────────────────────────────────


class TestSplitSentences(unittest.TestCase):
    def test_is_lossless(self):
        text = "First one.  Second one!\nThird one? trailing words"
        self.assertEqual("".join(split_sentences(text)), text)

    def test_keeps_trailing_whitespace(self):
        self.assertEqual(split_sentences("A b. C d."), ["A b. ", "C d."])

    def test_decimal_point_is_not_a_boundary(self):
        self.assertEqual(split_sentences("Pi is 3.14 roughly. Next"), ["Pi is 3.14 roughly. ", "Next"])


class TestOverlapTail(unittest.TestCase):
    def test_whole_trailing_sentences(self):
        text = "One two three. Four five. Six."
        # "Four five. Six." is 15 chars; adding the first sentence would not fit
        self.assertEqual(overlap_tail(text, 20), "Four five. Six.")

    def test_falls_back_to_last_characters(self):
        text = "A single very long sentence without an early stop."
        self.assertEqual(overlap_tail(text, 10), text[-10:])

    def test_zero_overlap_is_empty(self):
        self.assertEqual(overlap_tail("Some text.", 0), "")


# ── segment ─────────────────────────────────────────────────────────


class TestSegmentSmallInputs(unittest.TestCase):
    def test_empty_text(self):
        self.assertEqual(segment("", 1000, 100), [])

    def test_whitespace_only(self):
        self.assertEqual(segment("  \n\n\t ", 1000, 100), [])

    def test_short_text_is_single_chunk(self):
        text = "Hello world.\n\nSecond paragraph."
        chunks = segment(text, 1000, 100)
        self.assertEqual(len(chunks), 1)
        chunk = chunks[0]
        self.assertEqual(chunk.text, text)
        self.assertEqual(chunk.index, 0)
        self.assertEqual(chunk.total_chunks, 1)
        self.assertEqual((chunk.start_offset, chunk.end_offset), (0, len(text)))

    def test_text_exactly_max_size_is_single_chunk(self):
        text = "x" * 500
        self.assertEqual(len(segment(text, 500, 50)), 1)

    def test_oversized_single_sentence_is_emitted_whole(self):
        text = "x" * 1500
        chunks = segment(text, 1000, 100)
        self.assertEqual(len(chunks), 1)
        self.assertEqual(chunks[0].text, text)


class TestSegmentParagraphs(unittest.TestCase):
    """Three ~600-char paragraphs with max 1000 and overlap 100."""

    def setUp(self):
        self.chunks = segment(THREE_PARAGRAPHS, 1000, 100)
        self.tail = overlap_tail(ALPHA, 100)

    def test_one_chunk_per_paragraph(self):
        self.assertEqual(len(self.chunks), 3)
        self.assertEqual([c.index for c in self.chunks], [0, 1, 2])
        self.assertTrue(all(c.total_chunks == 3 for c in self.chunks))

    def test_first_chunk_is_first_paragraph(self):
        self.assertEqual(self.chunks[0].text, ALPHA)

    def test_tail_is_whole_sentences(self):
        self.assertEqual(
            self.tail,
            "Alpha sentence 018 is here. Alpha sentence 019 is here. "
            "Alpha sentence 020 is here.",
        )

    def test_next_chunk_starts_with_overlap(self):
        self.assertEqual(self.chunks[1].text, f"{self.tail}\n\n{BRAVO}")
        self.assertTrue(self.chunks[2].text.startswith(overlap_tail(BRAVO, 100)))
        self.assertTrue(self.chunks[2].text.endswith(DELTA))

    def test_offsets_point_into_source(self):
        second = self.chunks[1]
        self.assertEqual(second.start_offset, len(ALPHA) - len(self.tail))
        self.assertEqual(second.end_offset, len(ALPHA) + 2 + len(BRAVO))
        self.assertEqual(
            THREE_PARAGRAPHS[second.start_offset:len(ALPHA)], self.tail
        )

    def test_small_paragraphs_are_packed_together(self):
        paragraphs = [_paragraph(tag, 5) for tag in ("Alpha", "Bravo", "Delta", "Gamma")]
        text = "\n\n".join(paragraphs)  # 4 x 139 + 6 = 562 chars
        chunks = segment(text, 300, 40)
        self.assertEqual(len(chunks), 3)
        self.assertEqual(chunks[0].text, "\n\n".join(paragraphs[:2]))

    def test_zero_overlap_has_no_carry(self):
        chunks = segment(THREE_PARAGRAPHS, 1000, 0)
        self.assertEqual([c.text for c in chunks], [ALPHA, BRAVO, DELTA])

    def test_is_deterministic(self):
        self.assertEqual(segment(THREE_PARAGRAPHS, 1000, 100), self.chunks)


class TestSegmentOversizedParagraph(unittest.TestCase):
    """A paragraph longer than the budget is packed sentence by sentence."""

    def setUp(self):
        self.text = _paragraph("Alpha", 60)  # 1679 chars
        self.chunks = segment(self.text, 500, 60)

    def test_chunks_respect_budget(self):
        self.assertGreater(len(self.chunks), 3)
        for chunk in self.chunks:
            self.assertLessEqual(len(chunk.text), 500)
            self.assertTrue(chunk.text.strip())

    def test_every_sentence_is_kept(self):
        joined = "".join(c.text for c in self.chunks)
        for i in range(60):
            self.assertIn(f"Alpha sentence {i:03d} is here.", joined)

    def test_consecutive_chunks_overlap(self):
        for previous, current in zip(self.chunks, self.chunks[1:]):
            tail = overlap_tail(previous.text, 60).strip()
            self.assertTrue(tail)
            self.assertTrue(current.text.startswith(tail))

    def test_total_chunks_backfilled(self):
        n = len(self.chunks)
        self.assertEqual([c.index for c in self.chunks], list(range(n)))
        self.assertTrue(all(c.total_chunks == n for c in self.chunks))


if __name__ == "__main__":
    unittest.main()
