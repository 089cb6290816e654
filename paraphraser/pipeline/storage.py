"""Persist and read back paraphrased documents.

Outputs are written as UTF-8 text under ``output_dir`` (``uploads/processed``
by default) and named ``<document_id>_paraphrased.<file_type>``.  The
extension mirrors the source type so the download keeps a familiar
name; the content is always the plain reconstructed text.
"""

import logging
import os
import tempfile

from paraphraser.config import CFG
from paraphraser.errors import ConfigurationError, OutputNotFoundError, PersistenceError

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = str(CFG.get("output_dir", os.path.join("uploads", "processed")))


def output_filename(document_id: str, file_type: str) -> str:
    """``<document_id>_paraphrased.<file_type>``."""
    if not document_id or os.sep in document_id or (os.altsep and os.altsep in document_id):
        raise ConfigurationError(
            f"Invalid document id: {document_id!r}", {"document_id": document_id}
        )
    extension = file_type.lower().lstrip(".") or "txt"
    return f"{document_id}_paraphrased.{extension}"


def output_path(document_id: str, file_type: str, output_dir: str = DEFAULT_OUTPUT_DIR) -> str:
    return os.path.join(output_dir, output_filename(document_id, file_type))


def save_output(
    document_id: str,
    file_type: str,
    text: str,
    output_dir: str = DEFAULT_OUTPUT_DIR,
) -> str:
    """Write *text* and return the path it was saved to.

    The text goes to a temporary file in *output_dir* first and is
    renamed into place, so a failed write never leaves a partial output.

    Raises
    ------
    PersistenceError
        If the directory or file cannot be written.
    """
    path = output_path(document_id, file_type, output_dir)
    tmp_path = None
    try:
        os.makedirs(output_dir, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=output_dir,
            prefix=f".{os.path.basename(path)}.",
            suffix=".tmp",
            delete=False,
        ) as fh:
            tmp_path = fh.name
            fh.write(text)
        os.replace(tmp_path, path)
    except OSError as exc:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise PersistenceError(
            f"Failed to save output for document {document_id}: {exc}",
            {"document_id": document_id, "path": path},
        ) from exc

    logger.info(f"Saved {len(text):,} chars → {path}")
    return path


def read_output(
    document_id: str,
    file_type: str = "txt",
    output_dir: str = DEFAULT_OUTPUT_DIR,
) -> tuple[str, bytes]:
    """Return ``(filename, content)`` for a finished document.

    Raises
    ------
    OutputNotFoundError
        If no output exists for *document_id* and *file_type*.
    """
    filename = output_filename(document_id, file_type)
    path = os.path.join(output_dir, filename)
    if not os.path.isfile(path):
        raise OutputNotFoundError(
            f"Paraphrased document not found: {filename}",
            {"document_id": document_id, "path": path},
        )
    with open(path, "rb") as fh:
        return filename, fh.read()
