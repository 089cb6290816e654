"""Data types shared by the segmenter, invoker, reconstructor and worker."""

from dataclasses import dataclass, asdict
from typing import Any, Literal

from paraphraser.errors import ConfigurationError

Tone = Literal["neutral", "formal", "casual"]
Formality = Literal["high", "medium", "low"]
Creativity = Literal["conservative", "moderate", "creative"]
FileType = Literal["pdf", "docx", "txt"]

TONES: tuple[str, ...] = ("neutral", "formal", "casual")
FORMALITIES: tuple[str, ...] = ("high", "medium", "low")
CREATIVITIES: tuple[str, ...] = ("conservative", "moderate", "creative")
FILE_TYPES: tuple[str, ...] = ("pdf", "docx", "txt")


@dataclass(frozen=True)
class Chunk:
    """One ordered, bounded-size slice of the source text."""

    index: int          # 0-based position; the only ordering that matters
    start_offset: int   # informational offsets into the source text
    end_offset: int
    text: str
    total_chunks: int = 0  # backfilled once segmentation is complete


@dataclass(frozen=True)
class RewrittenChunk:
    """Provider output for the chunk with the same ``index``."""

    index: int
    original_text: str
    rewritten_text: str


@dataclass(frozen=True)
class StyleConfig:
    """Caller-supplied style settings, forwarded unchanged to every chunk."""

    tone: Tone = "neutral"
    formality: Formality = "medium"
    creativity: Creativity = "moderate"
    preserve_structure: bool = True
    model: str | None = None

    def __post_init__(self) -> None:
        for field_name, value, allowed in (
            ("tone", self.tone, TONES),
            ("formality", self.formality, FORMALITIES),
            ("creativity", self.creativity, CREATIVITIES),
        ):
            if value not in allowed:
                raise ConfigurationError(
                    f"Invalid {field_name} {value!r}; expected one of {', '.join(allowed)}",
                    {"field": field_name, "value": value},
                )

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "StyleConfig":
        """Build a config from the submission payload.

        Accepts both the snake_case field names and the camelCase wire
        names (``preserveStructure`` / ``modelIdentifier``, and the older
        ``preserveFormatting`` / ``model``).  Missing or empty values
        fall back to the defaults.
        """
        data = data or {}

        preserve = data.get("preserve_structure")
        if preserve is None:
            preserve = data.get("preserveStructure", data.get("preserveFormatting"))

        model = data.get("model") or data.get("modelIdentifier") or None

        return cls(
            tone=data.get("tone") or "neutral",
            formality=data.get("formality") or "medium",
            creativity=data.get("creativity") or "moderate",
            preserve_structure=preserve is not False,
            model=model,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ExtractedDocument:
    """Plain text pulled out of a pdf/docx/txt file."""

    text: str
    word_count: int
    page_count: int | None = None


@dataclass(frozen=True)
class JobPayload:
    """Queue message handed to the worker for one job attempt."""

    job_id: str
    document_id: str
    file_path: str
    file_type: str
    config: StyleConfig
