"""Text extraction for uploaded PDF documents.

The upload handler hands the raw bytes of the user's file to
:func:`extract_text_from_pdf`, which runs every page through ``pypdf`` and
returns the concatenated plain text.  Whitespace is normalised so the text
can be embedded in language model prompts without wasting context.
"""
from __future__ import annotations

import io
import logging
import re
import unicodedata

from pypdf import PdfReader
from pypdf.errors import PyPdfError

LOGGER = logging.getLogger(__name__)


class PDFExtractionError(RuntimeError):
    """Raised when a PDF document cannot be read."""


_PDF_TEXT_REPLACEMENTS = {
    ord("\u00A0"): " ",  # non-breaking space
    ord("\u2007"): " ",  # figure space
    ord("\u202F"): " ",  # narrow no-break space
    ord("\u200B"): "",  # zero-width space
    ord("\ufeff"): "",  # BOM
}

_TRAILING_SPACE_PATTERN = re.compile(r"[ \t]+\n")
_BLANK_LINES_PATTERN = re.compile(r"\n{3,}")


def _normalise_text(text: str) -> str:
    """Return ``text`` with stray control spacing collapsed."""

    normalized = unicodedata.normalize("NFC", text or "")
    normalized = normalized.translate(_PDF_TEXT_REPLACEMENTS)
    normalized = normalized.replace("\r\n", "\n").replace("\r", "\n")
    normalized = _TRAILING_SPACE_PATTERN.sub("\n", normalized)
    return _BLANK_LINES_PATTERN.sub("\n\n", normalized).strip()


def extract_text_from_pdf(data: bytes) -> str:
    """Return the plain text contained in the PDF ``data``."""

    if not data:
        raise PDFExtractionError("The PDF file is empty.")

    try:
        reader = PdfReader(io.BytesIO(data))
        if reader.is_encrypted:
            reader.decrypt("")
        pages = [page.extract_text() or "" for page in reader.pages]
    except (PyPdfError, ValueError, KeyError, TypeError, OSError) as exc:
        LOGGER.warning("PDF text extraction failed: %s", exc)
        raise PDFExtractionError("Unable to read the PDF file.") from exc

    LOGGER.info("Extracted text from %d PDF page(s).", len(pages))
    return _normalise_text("\n".join(pages))


__all__ = ["PDFExtractionError", "extract_text_from_pdf"]
