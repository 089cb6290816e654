"""Exception hierarchy for the paraphrasing pipeline.

Every failure the pipeline can report derives from
:class:`ParaphraserError`, so the worker can record a single message
on the job and let the retry policy decide what happens next.

* :class:`ConfigurationError` – bad chunking or style parameters
* :class:`ExtractionError`    – unreadable or unsupported source document
* :class:`ProviderError`      – rewriting call failed or came back empty
* :class:`PersistenceError`   – the reconstructed output could not be written
"""

from typing import Any


class ParaphraserError(Exception):
    """Base exception for the paraphraser.

    Attributes:
        message: Human-readable error message
        code: Stable error code
        details: Additional structured context
    """

    code = "PARAPHRASER_ERROR"
    retryable = True

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(ParaphraserError):
    """Invalid chunking, style or submission parameters."""

    code = "CONFIGURATION_ERROR"
    retryable = False


class ExtractionError(ParaphraserError):
    """The source document could not be read or is unsupported."""

    code = "EXTRACTION_ERROR"


class ProviderError(ParaphraserError):
    """The rewriting provider failed or returned no content."""

    code = "PROVIDER_ERROR"

    def __init__(
        self,
        message: str,
        chunk_number: int | None = None,
        total_chunks: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = dict(details or {})
        if chunk_number is not None:
            details["chunk_number"] = chunk_number
        if total_chunks is not None:
            details["total_chunks"] = total_chunks
        self.chunk_number = chunk_number
        self.total_chunks = total_chunks
        super().__init__(message, details)


class PersistenceError(ParaphraserError):
    """The reconstructed document could not be saved."""

    code = "PERSISTENCE_ERROR"


class InvalidTransitionError(ParaphraserError):
    """A job was moved to a status its current status does not allow."""

    code = "INVALID_TRANSITION"
    retryable = False


class NotFoundError(ParaphraserError):
    """A requested job or artifact does not exist."""

    code = "NOT_FOUND"
    retryable = False


class JobNotFoundError(NotFoundError):
    code = "JOB_NOT_FOUND"


class OutputNotFoundError(NotFoundError):
    code = "OUTPUT_NOT_FOUND"
