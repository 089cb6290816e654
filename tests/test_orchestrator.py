"""Tests for paraphraser/pipeline/orchestrator.py.

Extraction and the provider are faked; outputs and session logs go to
a temp directory.
"""

import os
import sys
import tempfile
import unittest
from unittest.mock import MagicMock

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from paraphraser.errors import ConfigurationError, ExtractionError, ProviderError
from paraphraser.models import ExtractedDocument, JobPayload, StyleConfig
from paraphraser.pipeline.orchestrator import (
    PipelineOrchestrator,
    progress_for,
    round_half_up,
)


# ── Helpers ─────────────────────────────────────────────────────────


def _paragraph(tag: str, n_sentences: int = 21) -> str:
    return " ".join(f"{tag} sentence {i:03d} is here." for i in range(n_sentences))


DOCUMENT = "\n\n".join(_paragraph(tag) for tag in ("Alpha", "Bravo", "Delta"))


def _extractor(text: str):
    def extract(file_path, file_type):
        return ExtractedDocument(text=text, word_count=len(text.split()))

    return extract


def _echo_provider() -> MagicMock:
    """Provider that returns its input unchanged."""
    provider = MagicMock()
    provider.transform.side_effect = lambda text, directive: text
    return provider


class TestProgressMath(unittest.TestCase):
    def test_round_half_up(self):
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(2.49), 2)

    def test_progress_for(self):
        self.assertEqual(progress_for(1, 3), 43)
        self.assertEqual(progress_for(2, 3), 67)
        self.assertEqual(progress_for(3, 3), 90)
        # 70 / 28 = 2.5 rounds up, not to even
        self.assertEqual(progress_for(1, 28), 23)


class TestRun(unittest.TestCase):
    def setUp(self):
        self.provider = _echo_provider()
        self.orchestrator = PipelineOrchestrator(
            self.provider, max_chunk_size=1000, overlap_size=100, log_sessions=False
        )

    def test_rejects_bad_chunking(self):
        with self.assertRaises(ConfigurationError):
            PipelineOrchestrator(self.provider, max_chunk_size=100, overlap_size=100)

    def test_echo_provider_reconstructs_document(self):
        """With an identity provider the overlap is removed exactly."""
        result = self.orchestrator.run(DOCUMENT, StyleConfig())
        self.assertEqual(result, DOCUMENT)
        self.assertEqual(self.provider.transform.call_count, 3)

    def test_short_document_is_one_call(self):
        text = "Paragraph one. More text here.\n\nParagraph two follows on."
        self.provider.transform.side_effect = lambda t, d: "\n  Rewritten version.\n\n"
        result = self.orchestrator.run(text, StyleConfig())
        self.assertEqual(result, "Rewritten version.")
        self.assertEqual(self.provider.transform.call_args.args[0], text)

    def test_progress_checkpoints(self):
        seen = []
        self.orchestrator.run(DOCUMENT, StyleConfig(), on_progress=seen.append)
        self.assertEqual(seen, [20, 43, 67, 90])

    def test_provider_override(self):
        other = MagicMock()
        other.transform.side_effect = lambda text, directive: "Short."
        result = self.orchestrator.run("Tiny doc.", StyleConfig(), provider=other)
        self.assertEqual(result, "Short.")
        self.provider.transform.assert_not_called()

    def test_provider_error_propagates(self):
        self.provider.transform.side_effect = ProviderError("quota exceeded")
        with self.assertRaises(ProviderError) as ctx:
            self.orchestrator.run(DOCUMENT, StyleConfig())
        self.assertTrue(ctx.exception.message.startswith("Failed at chunk 1/3"))


class TestProcess(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.output_dir = os.path.join(self._tmp.name, "processed")
        self.logs_dir = os.path.join(self._tmp.name, "logs")
        self.provider = _echo_provider()
        self.payload = JobPayload(
            job_id="job-1",
            document_id="doc-1",
            file_path="uploads/doc-1.txt",
            file_type="txt",
            config=StyleConfig(),
        )

    def _orchestrator(self, text: str, **kwargs) -> PipelineOrchestrator:
        return PipelineOrchestrator(
            self.provider,
            max_chunk_size=1000,
            overlap_size=100,
            extractor=_extractor(text),
            output_dir=self.output_dir,
            logs_dir=self.logs_dir,
            **kwargs,
        )

    def test_saves_output_and_reports_progress(self):
        seen = []
        path = self._orchestrator(DOCUMENT).process(self.payload, on_progress=seen.append)
        self.assertEqual(path, os.path.join(self.output_dir, "doc-1_paraphrased.txt"))
        with open(path, encoding="utf-8") as fh:
            self.assertEqual(fh.read(), DOCUMENT)
        self.assertEqual(seen, [10, 20, 43, 67, 90])

    def test_writes_session_log(self):
        self._orchestrator("A short document.").process(self.payload)
        logs = os.listdir(self.logs_dir)
        self.assertEqual(len(logs), 1)
        self.assertTrue(logs[0].endswith("_job-1_paraphrase.log"))

    def test_session_log_failure_does_not_fail_job(self):
        # A regular file where the logs directory should be
        with open(self.logs_dir, "w", encoding="utf-8") as fh:
            fh.write("")
        with self.assertLogs("paraphraser.pipeline.orchestrator", level="WARNING") as logs:
            path = self._orchestrator(DOCUMENT).process(self.payload)
        self.assertIn("could not write session log", logs.output[0])
        with open(path, encoding="utf-8") as fh:
            self.assertEqual(fh.read(), DOCUMENT)
        self.assertEqual(self.provider.transform.call_count, 3)

    def test_session_log_can_be_disabled(self):
        self._orchestrator("A short document.", log_sessions=False).process(self.payload)
        self.assertFalse(os.path.exists(self.logs_dir))

    def test_empty_document_is_extraction_error(self):
        with self.assertRaises(ExtractionError):
            self._orchestrator("  \n\n ").process(self.payload)
        self.provider.transform.assert_not_called()

    def test_nothing_saved_on_failure(self):
        self.provider.transform.side_effect = ProviderError("down")
        with self.assertRaises(ProviderError):
            self._orchestrator(DOCUMENT).process(self.payload)
        self.assertFalse(os.path.exists(self.output_dir))

    def test_from_config(self):
        orchestrator = PipelineOrchestrator.from_config(
            {
                "max_chunk_size": 800,
                "chunk_overlap": 80,
                "request_interval_ms": 0,
                "rate_limit_burst": 1,
                "output_dir": self.output_dir,
                "logs_dir": self.logs_dir,
                "log_job_sessions": False,
            },
            provider=self.provider,
        )
        self.assertEqual((orchestrator.max_chunk_size, orchestrator.overlap_size), (800, 80))
        self.assertFalse(orchestrator.rate_limiter.enabled)
        self.assertFalse(orchestrator.log_sessions)


if __name__ == "__main__":
    unittest.main()
