"""Load paraphraser settings from config.txt.

Reads a simple ``key = value`` text file from the project root.
Blank lines and lines starting with ``#`` are ignored.
Integer-looking values are cast to ``int`` automatically.

Usage::

    from paraphraser.config import CFG

    max_chunk_size = CFG["max_chunk_size"]  # int
    provider       = CFG["llm_provider"]    # str

If config.txt is missing, sensible defaults are used so the rest of
the pipeline still works.
"""

import logging
import os

from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

logger = logging.getLogger(__name__)

# ── Load .env (API keys, OLLAMA_HOST, etc.) ─────────────────────────
load_dotenv()  # reads .env from project root, if present

_console = Console()

# ── Defaults ────────────────────────────────────────────────────────
DEFAULTS: dict[str, str | int | bool] = {
    "max_chunk_size": 4000,
    "chunk_overlap": 200,
    "llm_provider": "ollama",
    "llm_model": "llama3.2:3b",
    "request_interval_ms": 1000,
    "rate_limit_burst": 1,
    "max_attempts": 3,
    "retry_backoff_ms": 5000,
    "output_dir": os.path.join("uploads", "processed"),
    "logs_dir": "logs",
    "log_job_sessions": True,
}

CONFIG_PATH = os.path.join(os.path.dirname(__file__), os.pardir, "config.txt")


# Values recognised as boolean true / false (case-insensitive).
_BOOL_TRUE = frozenset({"true", "yes", "on"})
_BOOL_FALSE = frozenset({"false", "no", "off"})


def load_config(path: str = CONFIG_PATH) -> dict[str, str | int | bool]:
    """Parse *path* and return a merged dict of defaults + overrides.

    File format (one pair per line)::

        # comment
        max_chunk_size = 6000
        llm_provider = openrouter  # or ollama, openai, anthropic, google
        log_job_sessions = true

    Boolean values are recognised as true/yes/on and false/no/off
    (case-insensitive).  ``0`` and ``1`` stay integers so that
    numeric settings such as ``request_interval_ms = 0`` keep their
    type.

    Returns
    -------
    dict[str, str | int | bool]
        Merged configuration.  Keys not present in the file keep
        their default values.
    """
    cfg: dict[str, str | int | bool] = dict(DEFAULTS)

    resolved = os.path.normpath(path)
    if not os.path.isfile(resolved):
        logger.warning(
            f"Config file not found at {resolved} — using defaults"
        )
        return cfg

    with open(resolved, encoding="utf-8") as fh:
        for lineno, raw_line in enumerate(fh, start=1):
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                logger.warning(
                    f"config.txt:{lineno}: skipping malformed line: {line!r}"
                )
                continue
            key, value = line.split("=", 1)
            key = key.strip()
            value = value.split(" #", 1)[0].strip()

            if value.lower() in _BOOL_TRUE:
                cfg[key] = True
                continue
            if value.lower() in _BOOL_FALSE:
                cfg[key] = False
                continue

            # Auto-cast purely numeric values to int
            if value.isdigit():
                value = int(value)

            cfg[key] = value

    logger.info(f"Loaded config from {resolved}: {cfg}")
    return cfg


# Module-level singleton — imported everywhere as ``from paraphraser.config import CFG``
CFG: dict[str, str | int | bool] = load_config()


def print_config(cfg: dict[str, str | int | bool] | None = None) -> None:
    """Pretty-print the active configuration using a rich table."""
    cfg = cfg if cfg is not None else CFG
    table = Table(
        title="config.txt",
        title_style="bold yellow",
        border_style="yellow",
        show_header=True,
        header_style="bold",
        padding=(0, 2),
    )
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="white bold")
    for key, value in cfg.items():
        table.add_row(str(key), str(value))
    _console.print(table)


def config_as_text(cfg: dict[str, str | int | bool] | None = None) -> str:
    """Return the active configuration as a plain-text block for log files."""
    cfg = cfg if cfg is not None else CFG
    lines = [f"{k} = {v}" for k, v in cfg.items()]
    return "\n".join(lines)
