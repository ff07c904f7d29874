"""Shared test fixtures for climbing-kb repository.

Provides:
- PDF generation with PyMuPDF (no binary fixtures checked in)
- A temporary chapter library (books dir + cache dir) with settings
- ExtractedContent builders for search tests that skip PDF parsing
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

import fitz  # PyMuPDF
import pytest

from climbing_kb_common import Settings, get_settings
from climbing_kb_contracts import Chunk, ExtractedContent


def build_pdf(pages: list[str]) -> bytes:
    """Build a PDF with one page per string (newlines start new lines)."""
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), text, fontsize=11)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def make_pdf() -> Callable[[list[str]], bytes]:
    """Factory for in-memory PDFs.

    Usage:
        def test_extract(make_pdf):
            data = make_pdf(["Page one text", "Page two text"])
    """
    return build_pdf


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Make every test see freshly loaded settings."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at an empty library under tmp_path."""
    books_dir = tmp_path / "Books"
    books_dir.mkdir()
    return Settings(
        books_dir=books_dir,
        cache_dir=tmp_path / "extracted_content",
        min_text_chars=20,
    )


@pytest.fixture
def add_chapter(settings: Settings) -> Callable[..., Path]:
    """Factory that writes a chapter PDF (and optional sidecar) into the library.

    Usage:
        def test_list(add_chapter):
            add_chapter("Climbing_Anchors", "01_Anchors.pdf", ["SERENE anchors ..."],
                        metadata={"title": "Anchors", "keywords": ["anchor"]})
    """

    def _add(
        book: str,
        filename: str,
        pages: list[str],
        metadata: Optional[dict] = None,
    ) -> Path:
        book_dir = settings.books_dir / book
        book_dir.mkdir(parents=True, exist_ok=True)
        pdf_path = book_dir / filename
        pdf_path.write_bytes(build_pdf(pages))
        if metadata is not None:
            pdf_path.with_suffix(".json").write_text(json.dumps(metadata))
        return pdf_path

    return _add


def build_content(
    texts: list[str],
    book: str = "Climbing_Anchors",
    chapter: str = "01_Anchors.pdf",
    topics: Optional[list[list[str]]] = None,
    pages_per_chunk: int = 1,
) -> ExtractedContent:
    """Build an ExtractedContent whose chunks hold the given texts in order."""
    chunks = []
    offset = 0
    for index, text in enumerate(texts):
        first_page = index * pages_per_chunk + 1
        chunks.append(
            Chunk(
                id=index,
                text=text,
                start_char=offset,
                end_char=offset + len(text),
                start_page=first_page,
                end_page=first_page + pages_per_chunk - 1,
                topics=topics[index] if topics else [],
            )
        )
        offset += len(text)

    return ExtractedContent(
        chapter_id=chapter,
        book=book,
        extracted_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
        full_text="".join(texts),
        total_pages=max(1, len(texts) * pages_per_chunk),
        chunks=chunks,
        extraction_method="pymupdf",
    )


@pytest.fixture
def make_content() -> Callable[..., ExtractedContent]:
    """Factory for ExtractedContent records without touching PDFs.

    Usage:
        def test_score(make_content):
            content = make_content(["belay text", "rope text"], topics=[["belay"], ["rope"]])
    """
    return build_content
