"""PDF extraction and chunking for climbing-kb system.

This package provides:
- PDF text extraction (PyMuPDF with a pypdf fallback)
- Rule-based reconstruction of fragmented text
- Page-aware fixed-size chunking with topic and heading detection
- Page rendering to JPEG
- Citation formatting for book chapters
"""

__version__ = "1.0.0"

from climbing_kb_pdf.pdf_extractor import (
    RawExtraction,
    estimate_page_count,
    extract_text,
    extract_with_pymupdf,
    extract_with_pypdf,
)

from climbing_kb_pdf.reconstructor import (
    RULES,
    Rule,
    apply_rules,
    reconstruct_text,
)

from climbing_kb_pdf.chunker import (
    CharPageIndex,
    chunk_text,
    detect_section_heading,
    extract_page_references,
    extract_topics,
)

from climbing_kb_pdf.search_index import (
    build_search_index,
    tokenize,
)

from climbing_kb_pdf.page_renderer import render_page_images

from climbing_kb_pdf.citations import (
    BOOK_METADATA,
    full_citation,
    get_book_metadata,
    get_chapter_title,
    inline_citation,
    page_citation,
    page_ref,
    short_citation,
)

from climbing_kb_pdf.dispatcher import ChapterExtractor

__all__ = [
    # Extraction
    "RawExtraction",
    "estimate_page_count",
    "extract_text",
    "extract_with_pymupdf",
    "extract_with_pypdf",
    # Reconstruction
    "RULES",
    "Rule",
    "apply_rules",
    "reconstruct_text",
    # Chunking
    "CharPageIndex",
    "chunk_text",
    "detect_section_heading",
    "extract_page_references",
    "extract_topics",
    # Indexing
    "build_search_index",
    "tokenize",
    # Rendering
    "render_page_images",
    # Citations
    "BOOK_METADATA",
    "full_citation",
    "get_book_metadata",
    "get_chapter_title",
    "inline_citation",
    "page_citation",
    "page_ref",
    "short_citation",
    # Pipeline
    "ChapterExtractor",
]
