"""Text extraction for submitted documents.

Supports PDF, Word (.docx) and plain text.  PDF and Word files go
through LangChain Community loaders; plain text goes through
:class:`RobustTextLoader`, which tolerates legacy encodings.  Every
loader returns LangChain Document objects, which
:func:`extract_text` flattens into one :class:`ExtractedDocument`.

extract_text() is the entry point used by the pipeline orchestrator.
"""

import codecs
import logging
import os

# langchain-community provides pre-built file readers for common formats
from langchain_community.document_loaders import (
    PyPDFLoader,
    UnstructuredWordDocumentLoader,
)
from langchain_core.documents import Document

from paraphraser.errors import ExtractionError
from paraphraser.models import ExtractedDocument

logger = logging.getLogger(__name__)


def _decode_text_bytes(data: bytes, default_encoding: str = "utf-8") -> tuple[str, str]:
    """Decode raw text-file bytes.

    Strategy:
    1) Honor BOMs when present (utf-8-sig/utf-16/utf-32)
    2) Try strict UTF-8
    3) Fall back to common legacy encodings (cp1252, latin-1)

    Returns (text, encoding_used).
    """
    # UTF-32 LE starts with the UTF-16 LE BOM, so check it first
    if data.startswith(codecs.BOM_UTF32_LE) or data.startswith(codecs.BOM_UTF32_BE):
        return data.decode("utf-32"), "utf-32"
    if data.startswith(codecs.BOM_UTF8):
        return data.decode("utf-8-sig"), "utf-8-sig"
    if data.startswith(codecs.BOM_UTF16_LE) or data.startswith(codecs.BOM_UTF16_BE):
        return data.decode("utf-16"), "utf-16"

    try:
        return data.decode(default_encoding), default_encoding
    except UnicodeDecodeError:
        pass

    for enc in ("cp1252", "latin-1"):
        try:
            return data.decode(enc), enc
        except UnicodeDecodeError:
            continue

    return data.decode(default_encoding, errors="replace"), f"{default_encoding}-replace"


class RobustTextLoader:
    """Plain-text loader tolerant to non-UTF8 source files.

    Mirrors LangChain's TextLoader (1 document per file), but never
    crashes on cp1252 / latin-1 input.
    """

    def __init__(self, file_path: str):
        self.file_path = file_path

    def load(self) -> list[Document]:
        with open(self.file_path, "rb") as f:
            data = f.read()

        text, encoding_used = _decode_text_bytes(data)
        return [
            Document(
                page_content=text,
                metadata={"source": self.file_path, "encoding": encoding_used},
            )
        ]


# Map file types to their loader class
LOADER_MAP = {
    "pdf": PyPDFLoader,  # 1 document per page
    "docx": UnstructuredWordDocumentLoader,  # 1 document per file
    "txt": RobustTextLoader,  # 1 document per file
}


def count_words(text: str) -> int:
    return len(text.split())


def extract_text(file_path: str, file_type: str) -> ExtractedDocument:
    """Load *file_path* and return its plain text.

    Parameters
    ----------
    file_path : str
        Path to the uploaded document.
    file_type : str
        One of ``"pdf"``, ``"docx"``, ``"txt"`` (case-insensitive, a
        leading dot is tolerated).

    Returns
    -------
    ExtractedDocument
        Text with pages joined by blank lines, its word count, and
        the page count for PDFs.

    Raises
    ------
    ExtractionError
        If the type is unsupported, the file is missing, or the
        loader fails to read it.
    """
    kind = file_type.lower().lstrip(".")
    document_loader = LOADER_MAP.get(kind)

    if document_loader is None:
        raise ExtractionError(
            f"Unsupported file type: {file_type}",
            {"file_path": file_path, "file_type": file_type},
        )

    if not os.path.isfile(file_path):
        raise ExtractionError(
            f"Document not found: {file_path}",
            {"file_path": file_path, "file_type": kind},
        )

    logger.info(f"Extracting {file_path} with {document_loader.__name__}")
    try:
        docs = document_loader(file_path).load()
    except Exception as exc:
        raise ExtractionError(
            f"Failed to read {os.path.basename(file_path)}: {exc}",
            {"file_path": file_path, "file_type": kind},
        ) from exc

    text = "\n\n".join(doc.page_content for doc in docs)
    page_count = len(docs) if kind == "pdf" else None

    extracted = ExtractedDocument(
        text=text,
        word_count=count_words(text),
        page_count=page_count,
    )
    logger.info(
        f"Extracted {extracted.word_count:,} words "
        f"({len(text):,} chars) from {file_path}"
    )
    return extracted
