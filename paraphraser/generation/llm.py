"""LangChain chat-model factory for the rewriting provider.

Supported providers (set ``llm_provider`` in config.txt):

* **ollama** — local Ollama server (default, no API key needed)
* **openai** — OpenAI API (requires ``OPENAI_API_KEY`` in .env)
* **openrouter** — OpenRouter's OpenAI-compatible endpoint
  (requires ``OPENROUTER_API_KEY``)
* **anthropic** — Anthropic API (requires ``ANTHROPIC_API_KEY``)
* **google** — Google Gemini API (requires ``GOOGLE_API_KEY``)

API keys are loaded from a ``.env`` file at the project root via
python-dotenv (see ``.env.example``).

Usage (programmatic)::

    from paraphraser.generation.llm import get_llm
    llm = get_llm(provider="openrouter", model="anthropic/claude-3.5-sonnet",
                  temperature=0.6, max_tokens=4000)
"""

import logging
import os

from langchain_ollama import ChatOllama

from paraphraser.config import CFG

logger = logging.getLogger(__name__)

# ── Defaults (read from config.txt, fall back to built-in) ──────────
DEFAULT_PROVIDER: str = str(CFG.get("llm_provider", "ollama"))
DEFAULT_MODEL: str = str(CFG.get("llm_model", "llama3.2:3b"))
DEFAULT_TEMPERATURE = 0.6

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
OPENROUTER_HEADERS = {
    "HTTP-Referer": "https://doc-paraphraser-service",
    "X-Title": "Document Paraphraser Service",
}

# ── Provider → default model mapping ───────────────────────────────
PROVIDER_DEFAULTS: dict[str, str] = {
    "ollama": "llama3.2:3b",
    "openai": "gpt-4o-mini",
    "openrouter": "anthropic/claude-3.5-sonnet",
    "anthropic": "claude-sonnet-4-20250514",
    "google": "gemini-2.0-flash",
}


def get_llm(
    model: str = DEFAULT_MODEL,
    temperature: float = DEFAULT_TEMPERATURE,
    provider: str = DEFAULT_PROVIDER,
    max_tokens: int | None = None,
):
    """Create a LangChain chat model for the given provider.

    Parameters
    ----------
    model : str
        Model name/tag for the chosen provider.
    temperature : float
        Sampling temperature (lower = more deterministic).
    provider : str
        One of ``"ollama"``, ``"openai"``, ``"openrouter"``,
        ``"anthropic"``, ``"google"``.
    max_tokens : int | None
        Cap on generated tokens, mapped to each provider's own
        parameter name.  ``None`` leaves the provider default.

    Returns
    -------
    BaseChatModel
        A LangChain chat model instance.

    Raises
    ------
    ValueError
        If *provider* is not recognised.
    ImportError
        If the required provider package is not installed.
    """
    provider = provider.lower().strip()
    logger.info(
        f"Initialising LLM: provider={provider}, model={model}, "
        f"temp={temperature}, max_tokens={max_tokens}"
    )

    if provider == "ollama":
        if max_tokens is None:
            return ChatOllama(model=model, temperature=temperature)
        return ChatOllama(model=model, temperature=temperature, num_predict=max_tokens)

    if provider in ("openai", "openrouter"):
        try:
            from langchain_openai import ChatOpenAI
        except ImportError:
            raise ImportError(
                f"langchain-openai is required for the {provider} provider.\n"
                "  Run: uv add langchain-openai"
            )
        kwargs = {"model": model, "temperature": temperature}
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens
        if provider == "openrouter":
            kwargs["base_url"] = OPENROUTER_BASE_URL
            kwargs["api_key"] = os.getenv("OPENROUTER_API_KEY")
            kwargs["default_headers"] = OPENROUTER_HEADERS
        return ChatOpenAI(**kwargs)

    if provider == "anthropic":
        try:
            from langchain_anthropic import ChatAnthropic
        except ImportError:
            raise ImportError(
                "langchain-anthropic is required for the anthropic provider.\n"
                "  Run: uv add langchain-anthropic"
            )
        if max_tokens is None:
            return ChatAnthropic(model=model, temperature=temperature)
        return ChatAnthropic(model=model, temperature=temperature, max_tokens=max_tokens)

    if provider == "google":
        try:
            from langchain_google_genai import ChatGoogleGenerativeAI
        except ImportError:
            raise ImportError(
                "langchain-google-genai is required for the google provider.\n"
                "  Run: uv add langchain-google-genai"
            )
        if max_tokens is None:
            return ChatGoogleGenerativeAI(model=model, temperature=temperature)
        return ChatGoogleGenerativeAI(
            model=model, temperature=temperature, max_output_tokens=max_tokens
        )

    raise ValueError(
        f"Unknown llm_provider '{provider}'. Supported: {', '.join(PROVIDER_DEFAULTS)}"
    )
