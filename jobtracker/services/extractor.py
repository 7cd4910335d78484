"""
Plain-text extraction for uploaded resumes (.txt, .md, .pdf).
"""

import io
import logging

from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError

from jobtracker.errors import ValidationError

logger = logging.getLogger(__name__)

TEXT_EXTENSIONS = (".txt", ".md")


def _extract_pdf_text(pdf_bytes: bytes) -> str:
    """Extract plain text from PDF bytes using PyPDF2."""
    try:
        reader = PdfReader(io.BytesIO(pdf_bytes))
        pages = [page.extract_text() or "" for page in reader.pages]
    except (PdfReadError, ValueError, OSError) as exc:
        logger.warning("PDF parse error: %s", exc)
        raise ValidationError("Failed to parse PDF file")
    return "\n\n".join(pages)


def extract_text(filename: str, data: bytes) -> str:
    name = (filename or "").lower()
    if name.endswith(TEXT_EXTENSIONS):
        text = data.decode("utf-8", errors="ignore")
    elif name.endswith(".pdf"):
        text = _extract_pdf_text(data)
    else:
        raise ValidationError("Supported formats: .txt, .md, .pdf")

    if not text.strip():
        raise ValidationError("Could not extract text from file")
    return text
