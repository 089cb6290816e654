"""Map a :class:`StyleConfig` onto provider-facing instructions.

Each config field maps deterministically onto a fragment of the system
prompt (tone, formality, structure) or onto the sampling temperature
(creativity).  The fragments are part of the service's observable
behaviour and must not be reworded casually.
"""

import textwrap
from dataclasses import dataclass

from paraphraser.models import StyleConfig

# ── Instruction fragments ───────────────────────────────────────────

TONE_INSTRUCTIONS: dict[str, str] = {
    "formal": "Using a formal, professional tone suitable for academic or business contexts",
    "casual": "Using a casual, conversational tone that is easy to read",
    "neutral": "Using a neutral, balanced tone",
}

FORMALITY_INSTRUCTIONS: dict[str, str] = {
    "high": "Employing sophisticated vocabulary and complex sentence structures",
    "low": "Using simple, straightforward language accessible to all readers",
    "medium": "Balancing clarity with appropriate vocabulary",
}

PRESERVE_STRUCTURE_INSTRUCTION = (
    "Keeping the original document structure: preserve paragraph breaks, "
    "lists, formatting cues"
)
REORGANIZE_INSTRUCTION = (
    "Treating structure as flexible: you may reorganize for clarity, maintain meaning"
)

CREATIVITY_TEMPERATURES: dict[str, float] = {
    "conservative": 0.3,
    "moderate": 0.6,
    "creative": 0.9,
}

# Leave room for paraphrastic expansion without runaway cost
MAX_OUTPUT_TOKENS = 8000
OUTPUT_EXPANSION_FACTOR = 2

SYSTEM_PROMPT_TEMPLATE = textwrap.dedent("""\
    You are an expert document paraphraser. Your task is to rewrite text while:
    - Maintaining the original meaning and key information
    - {tone}
    - {formality}
    - {structure}
    - Using clear, natural language
    - Avoiding plagiarism by thoroughly rephrasing
    - NOT adding information that wasn't in the original text
    - NOT removing important details

    Output ONLY the paraphrased text, without any preamble or explanation.""")

USER_PROMPT_TEMPLATE = "Please paraphrase the following text:\n\n{text}"


@dataclass(frozen=True)
class StyleDirective:
    """Everything the provider needs besides the text itself."""

    system_prompt: str
    temperature: float
    max_tokens: int
    model: str | None = None


def tone_instruction(tone: str) -> str:
    return TONE_INSTRUCTIONS.get(tone, TONE_INSTRUCTIONS["neutral"])


def formality_instruction(formality: str) -> str:
    return FORMALITY_INSTRUCTIONS.get(formality, FORMALITY_INSTRUCTIONS["medium"])


def structure_instruction(preserve_structure: bool) -> str:
    return PRESERVE_STRUCTURE_INSTRUCTION if preserve_structure else REORGANIZE_INSTRUCTION


def temperature_for(creativity: str) -> float:
    """Creativity level → sampling temperature (moderate by default)."""
    return CREATIVITY_TEMPERATURES.get(creativity, CREATIVITY_TEMPERATURES["moderate"])


def output_token_limit(text_length: int) -> int:
    """Twice the input length, capped at :data:`MAX_OUTPUT_TOKENS`."""
    return max(1, min(text_length * OUTPUT_EXPANSION_FACTOR, MAX_OUTPUT_TOKENS))


def build_system_prompt(config: StyleConfig) -> str:
    return SYSTEM_PROMPT_TEMPLATE.format(
        tone=tone_instruction(config.tone),
        formality=formality_instruction(config.formality),
        structure=structure_instruction(config.preserve_structure),
    )


def build_style_directive(config: StyleConfig, text_length: int) -> StyleDirective:
    """Build the directive for one chunk of *text_length* characters."""
    return StyleDirective(
        system_prompt=build_system_prompt(config),
        temperature=temperature_for(config.creativity),
        max_tokens=output_token_limit(text_length),
        model=config.model,
    )
