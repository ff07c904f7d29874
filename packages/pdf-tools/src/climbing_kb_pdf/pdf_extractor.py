"""PDF text extraction with PyMuPDF and a pypdf fallback.

Extracts per-page text from raw PDF bytes. PyMuPDF is tried first; when it
yields nothing or implausibly little text, pypdf is tried instead. Neither
method raises on a broken PDF: failures come back as warnings on an empty
result so the pipeline can still record a (possibly empty) chapter.
"""

import io
import math
from dataclasses import dataclass, field
from typing import Callable, Optional

import fitz  # PyMuPDF
import structlog
from pypdf import PdfReader

from climbing_kb_common import get_logger

logger = get_logger(__name__)

MIN_TEXT_CHARS = 100
CHARS_PER_PAGE = 3000


@dataclass
class RawExtraction:
    """Text pulled from a PDF before reconstruction.

    Attributes:
        text: Page texts joined by newlines
        page_text_map: 1-indexed page number -> page text
        total_pages: Page count (estimated when no page structure exists)
        method: Extraction method that produced the text
        warnings: Non-fatal problems encountered along the way
    """

    text: str = ""
    page_text_map: dict[int, str] = field(default_factory=dict)
    total_pages: int = 1
    method: str = "none"
    warnings: list[str] = field(default_factory=list)


def _clean_page_text(text: str) -> str:
    # Null bytes break JSON consumers downstream
    text = text.replace("\x00", "")
    return "\n".join(line.strip() for line in text.split("\n") if line.strip())


def estimate_page_count(text: str, chars_per_page: int = CHARS_PER_PAGE) -> int:
    """Estimate pages from text length, never less than 1."""
    return max(1, math.ceil(len(text) / chars_per_page))


def _assemble(
    pages: dict[int, str], method: str, warnings: list[str], chars_per_page: int
) -> RawExtraction:
    ordered = [pages[num] for num in sorted(pages)]
    text = "\n".join(ordered).strip()
    total_pages = len(pages) if pages else estimate_page_count(text, chars_per_page)
    return RawExtraction(
        text=text,
        page_text_map=dict(sorted(pages.items())),
        total_pages=total_pages,
        method=method,
        warnings=warnings,
    )


def extract_with_pymupdf(
    pdf_bytes: bytes, chars_per_page: int = CHARS_PER_PAGE
) -> RawExtraction:
    """Extract page text with PyMuPDF.

    Args:
        pdf_bytes: Raw PDF content
        chars_per_page: Used to estimate pages if none can be read

    Returns:
        RawExtraction; empty with a warning if the PDF cannot be parsed
    """
    warnings: list[str] = []
    pages: dict[int, str] = {}

    try:
        doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    except Exception as e:
        warnings.append(f"pymupdf: failed to open PDF: {e}")
        return _assemble(pages, "pymupdf", warnings, chars_per_page)

    try:
        if doc.is_encrypted:
            warnings.append("pymupdf: PDF is encrypted")
            return _assemble(pages, "pymupdf", warnings, chars_per_page)

        if doc.page_count == 0:
            warnings.append("pymupdf: PDF has no pages")

        for page_index in range(len(doc)):
            try:
                pages[page_index + 1] = _clean_page_text(doc[page_index].get_text())
            except Exception as e:
                warnings.append(f"pymupdf: page {page_index + 1} unreadable: {e}")
                pages[page_index + 1] = ""
    finally:
        doc.close()

    return _assemble(pages, "pymupdf", warnings, chars_per_page)


def extract_with_pypdf(
    pdf_bytes: bytes, chars_per_page: int = CHARS_PER_PAGE
) -> RawExtraction:
    """Extract page text with pypdf.

    Args:
        pdf_bytes: Raw PDF content
        chars_per_page: Used to estimate pages if none can be read

    Returns:
        RawExtraction; empty with a warning if the PDF cannot be parsed
    """
    warnings: list[str] = []
    pages: dict[int, str] = {}

    try:
        reader = PdfReader(io.BytesIO(pdf_bytes))
        page_objects = list(reader.pages)
    except Exception as e:
        warnings.append(f"pypdf: failed to read PDF: {e}")
        return _assemble(pages, "pypdf", warnings, chars_per_page)

    for page_index, page in enumerate(page_objects):
        try:
            pages[page_index + 1] = _clean_page_text(page.extract_text() or "")
        except Exception as e:
            warnings.append(f"pypdf: page {page_index + 1} unreadable: {e}")
            pages[page_index + 1] = ""

    return _assemble(pages, "pypdf", warnings, chars_per_page)


ExtractionMethod = Callable[[bytes, int], RawExtraction]


def extract_text(
    pdf_bytes: bytes,
    min_text_chars: int = MIN_TEXT_CHARS,
    chars_per_page: int = CHARS_PER_PAGE,
    log: Optional[structlog.stdlib.BoundLogger] = None,
    primary: ExtractionMethod = extract_with_pymupdf,
    secondary: ExtractionMethod = extract_with_pypdf,
) -> RawExtraction:
    """Extract text, falling back to the secondary method on thin results.

    The secondary result replaces the primary one only when it recovered
    more text. Warnings from both attempts are kept.

    Args:
        pdf_bytes: Raw PDF content
        min_text_chars: Primary results shorter than this trigger fallback
        chars_per_page: Page estimate constant when no pages are reported
        log: Logger to report through (default: module logger)
        primary: First extraction method
        secondary: Fallback extraction method

    Returns:
        RawExtraction from whichever method won

    Example:
        >>> raw = extract_text(Path("anchors.pdf").read_bytes())
        >>> print(raw.method, raw.total_pages, len(raw.text))
    """
    log = log or logger

    result = primary(pdf_bytes, chars_per_page)
    log.debug("primary_extraction", method=result.method, chars=len(result.text))

    if len(result.text) >= min_text_chars:
        for warning in result.warnings:
            log.warning("extraction_warning", detail=warning)
        return result

    log.info(
        "extraction_fallback",
        primary=result.method,
        chars=len(result.text),
        threshold=min_text_chars,
    )
    fallback = secondary(pdf_bytes, chars_per_page)

    warnings = result.warnings + fallback.warnings
    chosen = fallback if len(fallback.text) > len(result.text) else result
    chosen.warnings = warnings

    for warning in warnings:
        log.warning("extraction_warning", detail=warning)

    return chosen
