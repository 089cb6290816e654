"""The text-rewriting provider seen by the pipeline.

The pipeline only knows :class:`TextTransformProvider`, which has a
single operation: ``transform(text, directive) -> text``.  It raises
:class:`~paraphraser.errors.ProviderError` on any failure.
:class:`LangChainProvider` is the production backend, built on
:func:`~paraphraser.generation.llm.get_llm`.  Tests pass a mock instead.
"""

import logging
from typing import Callable, Protocol

from langchain_core.prompts import ChatPromptTemplate

from paraphraser.errors import ProviderError
from paraphraser.generation.llm import DEFAULT_MODEL, DEFAULT_PROVIDER, get_llm
from paraphraser.generation.style import USER_PROMPT_TEMPLATE, StyleDirective

logger = logging.getLogger(__name__)

# ── Chat prompt template (LangChain) ───────────────────────────────
PARAPHRASE_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", "{system_prompt}"),
        ("human", USER_PROMPT_TEMPLATE),
    ]
)


class TextTransformProvider(Protocol):
    """Anything that can rewrite one piece of text under a directive."""

    def transform(self, text: str, directive: StyleDirective) -> str:
        ...


def message_text(response) -> str:
    """Return the stripped text of a chat-model response.

    Accepts an AIMessage, a bare string, or ``None``.  Anthropic
    models can answer with a list of content blocks, which are joined
    line by line.
    """
    if hasattr(response, "content"):
        content = response.content
        if isinstance(content, list):
            content = "\n".join(
                block.get("text", str(block))
                if isinstance(block, dict)
                else str(block)
                for block in content
            )
        return (content or "").strip()
    if response is None:
        return ""
    return str(response).strip()


class LangChainProvider:
    """Rewrite text through a LangChain chat model.

    A fresh chat model is created per call because the output-token cap
    depends on the length of each chunk.
    """

    def __init__(
        self,
        provider: str = DEFAULT_PROVIDER,
        model: str = DEFAULT_MODEL,
        llm_factory: Callable = get_llm,
    ):
        self.provider = provider
        self.model = model
        self._llm_factory = llm_factory

    def transform(self, text: str, directive: StyleDirective) -> str:
        model = directive.model or self.model
        try:
            llm = self._llm_factory(
                model=model,
                temperature=directive.temperature,
                provider=self.provider,
                max_tokens=directive.max_tokens,
            )
            messages = PARAPHRASE_PROMPT.format_messages(
                system_prompt=directive.system_prompt,
                text=text,
            )
            response = llm.invoke(messages)
        except Exception as exc:
            logger.error(f"{self.provider} API error: {exc}")
            raise ProviderError(
                f"Failed to paraphrase text: {exc}",
                details={"provider": self.provider, "model": model},
            ) from exc

        rewritten = message_text(response)
        if not rewritten:
            raise ProviderError(
                f"No response from {self.provider} API",
                details={"provider": self.provider, "model": model},
            )
        return rewritten
