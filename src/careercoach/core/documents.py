from __future__ import annotations

import io
import logging
import zipfile
from collections.abc import Callable

import docx
from docx.opc.exceptions import PackageNotFoundError
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from careercoach.errors import ParseError

logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT_MIME = "text/plain"

DocumentExtractor = Callable[[bytes, str], str]


def extract_text_from_pdf(blob: bytes) -> str:
    reader = PdfReader(io.BytesIO(blob))
    parts = []
    for page in reader.pages:
        parts.append(page.extract_text() or "")
    return "\n".join(parts).strip()


def extract_text_from_docx(blob: bytes) -> str:
    document = docx.Document(io.BytesIO(blob))
    return "\n".join(p.text for p in document.paragraphs).strip()


def extract_text_from_txt(blob: bytes) -> str:
    return blob.decode("utf-8", errors="ignore").strip()


_EXTRACTORS: dict[str, Callable[[bytes], str]] = {
    PDF_MIME: extract_text_from_pdf,
    DOCX_MIME: extract_text_from_docx,
    TEXT_MIME: extract_text_from_txt,
}


def extract_text(blob: bytes, mime_type: str) -> str:
    """Extract plain text from an uploaded resume.

    Raises ``ParseError`` for unsupported MIME types, unreadable files and
    files that yield no text.
    """
    base_type = mime_type.split(";", 1)[0].strip().lower()
    extractor = _EXTRACTORS.get(base_type)
    if extractor is None:
        raise ParseError(f"unsupported file format '{mime_type}'", user_message="Unsupported file format")

    try:
        text = extractor(blob)
    except (PdfReadError, PackageNotFoundError, zipfile.BadZipFile, ValueError, KeyError, OSError) as exc:
        logger.warning("Failed to extract text mime=%s: %s", base_type, exc)
        raise ParseError(f"failed to read {base_type} document: {exc}") from exc

    if not text.strip():
        raise ParseError("document contains no extractable text")
    return text
