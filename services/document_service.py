"""
services/document_service.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Responsible for validating uploaded PDFs and extracting their text.

Pages are read in document order through :class:`PageTextStream`, a lazy
sequence that the extractor consumes eagerly up to the page ceiling.
Extraction is all-or-nothing: a document either gets its full (page-capped)
text or a :class:`~core.errors.ParseError` and no text at all.
"""

import io
import logging
import re
from typing import Iterator

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from core.config import MAX_PAGES, MAX_UPLOAD_BYTES
from core.errors import ParseError, TooLarge, UnsupportedFormat
from models.domain import Document, ExtractionResult

logger = logging.getLogger(__name__)

ACCEPTED_CONTENT_TYPE = "application/pdf"
PAGE_SEPARATOR = "\n"

_WHITESPACE = re.compile(r"\s+")

# pypdf surfaces malformed input as its own errors but also as plain
# ValueError / KeyError / TypeError from deep inside the object parser.
_PARSE_FAILURES = (PyPdfError, ValueError, KeyError, TypeError, IndexError)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------
def validate_upload(
    content_type: str | None, size: int, max_bytes: int = MAX_UPLOAD_BYTES
) -> None:
    """
    Reject uploads that are not PDFs or that exceed *max_bytes*.

    Raises
    ------
    UnsupportedFormat
        The declared MIME type is not ``application/pdf``.
    TooLarge
        *size* is above *max_bytes*.
    """
    declared = (content_type or "").split(";", 1)[0].strip().lower()
    if declared != ACCEPTED_CONTENT_TYPE:
        raise UnsupportedFormat(
            "Only PDF files are supported",
            f"declared content type: {content_type or 'none'}",
        )
    if size > max_bytes:
        raise TooLarge(
            "File too large",
            f"{size} bytes exceeds the {max_bytes}-byte limit",
        )


# ---------------------------------------------------------------------------
# Page stream
# ---------------------------------------------------------------------------
def _clean_page_text(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


class PageTextStream:
    """
    Lazy, finite, restartable sequence of page texts.

    Each call to ``iter()`` opens a fresh reader over the same bytes, so the
    stream can be consumed more than once.  At most *max_pages* pages are
    yielded, in document order.  ``total_pages`` is recorded from the reader
    opened by the most recent iteration and is ``None`` before the first.
    """

    def __init__(self, data: bytes, max_pages: int = MAX_PAGES) -> None:
        self._data = data
        self._max_pages = max_pages
        self.total_pages: int | None = None

    def _reader(self) -> PdfReader:
        return PdfReader(io.BytesIO(self._data))

    def __iter__(self) -> Iterator[str]:
        reader = self._reader()
        self.total_pages = len(reader.pages)
        limit = min(self.total_pages, self._max_pages)
        for index in range(limit):
            yield _clean_page_text(reader.pages[index].extract_text() or "")


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------
def extract_text(data: bytes, max_pages: int = MAX_PAGES) -> ExtractionResult:
    """
    Extract text from the first *max_pages* pages of a PDF.

    Parameters
    ----------
    data:
        Raw PDF bytes.
    max_pages:
        Page ceiling; later pages are ignored.

    Returns
    -------
    ExtractionResult
        The page texts joined with :data:`PAGE_SEPARATOR`, plus how many pages
        were read and how many the document has.

    Raises
    ------
    ParseError
        If pypdf cannot read the document or any page within the ceiling.
    """
    try:
        stream = PageTextStream(data, max_pages=max_pages)
        pages = list(stream)
        total_pages = stream.total_pages
    except _PARSE_FAILURES as exc:
        logger.warning("PDF parsing failed: %s", exc)
        raise ParseError("Could not read the PDF", str(exc)) from exc

    text = PAGE_SEPARATOR.join(pages)
    logger.info(
        "Extracted %d characters from %d/%d page(s)",
        len(text), len(pages), total_pages,
    )
    return ExtractionResult(text=text, pages_processed=len(pages), total_pages=total_pages)


def extract_document(document: Document, max_pages: int = MAX_PAGES) -> Document:
    """Fill in *document*'s text exactly once; already-extracted documents are returned as is."""
    if document.extracted:
        return document

    result = extract_text(document.data, max_pages=max_pages)
    document.text = result.text
    document.page_count = result.total_pages
    document.pages_processed = result.pages_processed
    return document


def load_document(
    data: bytes,
    content_type: str | None,
    filename: str,
    max_bytes: int | None = None,
    max_pages: int | None = None,
) -> Document:
    """
    Validate an upload and return a fully extracted :class:`Document`.

    Limits default to the configured ``MAX_UPLOAD_BYTES`` / ``MAX_PAGES``.
    """
    if max_bytes is None:
        max_bytes = MAX_UPLOAD_BYTES
    if max_pages is None:
        max_pages = MAX_PAGES
    validate_upload(content_type, len(data), max_bytes=max_bytes)
    document = Document(filename=filename, content_type=ACCEPTED_CONTENT_TYPE, data=data)
    return extract_document(document, max_pages=max_pages)
