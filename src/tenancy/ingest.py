"""
PDF text extraction for uploaded tenancy agreements.
"""

import io
import logging
from pathlib import Path
from typing import Union

import pdfplumber

from .exceptions import ParseError

logger = logging.getLogger(__name__)

PAGE_BREAK = "\f"  # keep page boundaries in the text


def pdf_bytes_to_text(data: bytes) -> str:
    """
    Extract the text of every page of a PDF, joined with form-feed page breaks.

    Args:
        data: Raw PDF bytes

    Returns:
        Document text (empty if the PDF has no text layer)

    Raises:
        ParseError: If the bytes cannot be read as a PDF
    """
    if not data:
        raise ParseError("Uploaded document is empty")

    pages = []
    try:
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            for page in pdf.pages:
                text = page.extract_text() or ""  # avoid None
                pages.append(text.strip())
    except Exception as e:
        raise ParseError(f"Could not read PDF: {e}") from e

    logger.info("Extracted text from %d PDF page(s)", len(pages))
    return PAGE_BREAK.join(pages)


def read_document(path: Union[str, Path]) -> str:
    """Read a document from disk: PDFs through pdfplumber, anything else as UTF-8 text."""
    path = Path(path)
    if path.suffix.lower() == ".pdf":
        return pdf_bytes_to_text(path.read_bytes())
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(f"'{path.name}' is not UTF-8 text") from e
