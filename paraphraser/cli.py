"""Paraphrase a document from the command line.

Usage::

    uv run paraphraser report.pdf --tone formal --creativity conservative
    uv run paraphraser notes.txt --provider openrouter --show-config
"""

import argparse
import logging
import os
import sys
import time

from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from paraphraser.config import CFG, print_config
from paraphraser.errors import ParaphraserError
from paraphraser.models import CREATIVITIES, FORMALITIES, TONES, StyleConfig
from paraphraser.service import ParaphraseService

logger = logging.getLogger(__name__)

console = Console()

POLL_INTERVAL_SECONDS = 0.5


def print_banner() -> None:
    console.print(
        Panel.fit(
            "[bold deep_sky_blue1]Document Paraphraser[/bold deep_sky_blue1]\n"
            "chunk → rewrite → reconstruct",
            border_style="grey39",
        )
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Rewrite a pdf, docx or txt document in a chosen style",
    )
    parser.add_argument("filepath", help="Path to the document to paraphrase")
    parser.add_argument(
        "--document-id",
        default=None,
        help="Document identifier (default: file name without extension)",
    )
    parser.add_argument("--tone", choices=TONES, default="neutral")
    parser.add_argument("--formality", choices=FORMALITIES, default="medium")
    parser.add_argument("--creativity", choices=CREATIVITIES, default="moderate")
    parser.add_argument(
        "--no-preserve-structure",
        action="store_true",
        help="Allow the model to reorganise paragraphs and lists",
    )
    parser.add_argument(
        "--model",
        default=None,
        help="Model name (default: config.txt)",
    )
    parser.add_argument(
        "--provider",
        default=None,
        help="LLM provider (default: config.txt)",
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        help="Output directory (default: config.txt)",
    )
    parser.add_argument(
        "--show-config",
        action="store_true",
        help="Print the active config.txt settings before running",
    )
    return parser


def _settings(args: argparse.Namespace) -> dict:
    cfg = dict(CFG)
    if args.provider:
        cfg["llm_provider"] = args.provider
    if args.output_dir:
        cfg["output_dir"] = args.output_dir
    return cfg


def main(argv: list[str] | None = None) -> int:
    """Parse CLI arguments, run one job and report the result."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s  %(levelname)-8s  %(message)s",
        datefmt="%H:%M:%S",
    )

    args = build_parser().parse_args(argv)

    print_banner()
    cfg = _settings(args)
    if args.show_config:
        print_config(cfg)

    file_type = os.path.splitext(args.filepath)[1].lower().lstrip(".")
    document_id = args.document_id or os.path.splitext(os.path.basename(args.filepath))[0]

    try:
        style = StyleConfig(
            tone=args.tone,
            formality=args.formality,
            creativity=args.creativity,
            preserve_structure=not args.no_preserve_structure,
            model=args.model,
        )
        service = ParaphraseService.from_config(cfg)
    except ParaphraserError as exc:
        console.print(f"[bold red]✗ {exc.message}[/bold red]")
        return 1

    try:
        ticket = service.submit(document_id, args.filepath, file_type, style)
        status = _follow(service, ticket["jobId"])
    except ParaphraserError as exc:
        console.print(f"[bold red]✗ {exc.message}[/bold red]")
        return 1
    finally:
        service.close()

    if status["status"] == "completed":
        console.print(f"\n✅ Written to: {status['outputPath']}")
        return 0

    console.print(f"[bold red]✗ Job failed: {status.get('error', 'unknown error')}[/bold red]")
    return 1


def _follow(service: ParaphraseService, job_id: str) -> dict:
    """Poll the job and drive a progress bar until it finishes."""
    progress_layout = [
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        TimeElapsedColumn(),
    ]
    with Progress(*progress_layout, console=console) as progress:
        task_id = progress.add_task("Queued...", total=100)
        while True:
            status = service.get_status(job_id)
            progress.update(
                task_id,
                completed=status["progress"],
                description=status["status"].capitalize(),
            )
            if status["status"] in ("completed", "failed"):
                return status
            time.sleep(POLL_INTERVAL_SECONDS)


if __name__ == "__main__":
    sys.exit(main())
