"""Chapter extraction pipeline.

Provides:
- ChapterExtractor: PDF file -> ExtractedContent
- PyMuPDF -> pypdf text fallback, reconstruction, chunking and indexing
- Optional page rendering to JPEG

Persistence is the caller's concern; the extractor only builds records.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from climbing_kb_common import (
    ChapterNotFoundError,
    ExtractionError,
    Settings,
    get_logger,
    get_settings,
)
from climbing_kb_contracts import ChapterRef, ExtractedContent, PageImage

from climbing_kb_pdf.chunker import chunk_text
from climbing_kb_pdf.page_renderer import render_page_images
from climbing_kb_pdf.pdf_extractor import extract_text
from climbing_kb_pdf.reconstructor import reconstruct_text
from climbing_kb_pdf.search_index import build_search_index

logger = get_logger(__name__)


class ChapterExtractor:
    """Turns one chapter PDF into a complete ExtractedContent record.

    Pipeline:
    1. Read PDF bytes (missing file -> ChapterNotFoundError)
    2. Extract page text with PyMuPDF, falling back to pypdf
    3. Reconstruct fragmented text per page; the chapter text joins the pages
    4. Render page images (when enabled)
    5. Chunk with page ranges, topics, headings and images
    6. Build the word index

    Example:
        >>> extractor = ChapterExtractor()
        >>> ref = ChapterRef(book="Climbing_Anchors", chapter="01_Anchors.pdf")
        >>> content = extractor.extract(Path("Books/Climbing_Anchors/01_Anchors.pdf"), ref)
        >>> print(content.total_pages, len(content.chunks))
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def _render(
        self, pdf_bytes: bytes, ref: ChapterRef
    ) -> tuple[list[PageImage], list[str]]:
        if not self.settings.render_page_images:
            return [], []
        return render_page_images(
            pdf_bytes,
            ref,
            self.settings.images_dir,
            quality=self.settings.image_quality,
            max_width=self.settings.image_max_width,
            max_height=self.settings.image_max_height,
        )

    def extract(self, pdf_path: Path, ref: ChapterRef) -> ExtractedContent:
        """Extract a chapter.

        Args:
            pdf_path: Location of the chapter PDF
            ref: Chapter identity recorded in the result

        Returns:
            ExtractedContent; an unparseable PDF yields an empty record
            whose ``warnings`` explain why

        Raises:
            ChapterNotFoundError: If the PDF file does not exist
            ExtractionError: If the PDF file cannot be read
        """
        log = logger.bind(chapter=str(ref))

        try:
            pdf_bytes = Path(pdf_path).read_bytes()
        except FileNotFoundError as e:
            raise ChapterNotFoundError(f"PDF not found: {pdf_path}") from e
        except OSError as e:
            raise ExtractionError(f"Cannot read {pdf_path}: {e}") from e

        log.info("extraction_started", size_bytes=len(pdf_bytes))

        raw = extract_text(
            pdf_bytes,
            min_text_chars=self.settings.min_text_chars,
            chars_per_page=self.settings.chars_per_page,
            log=log,
        )

        page_text_map = {
            page_num: reconstruct_text(text)
            for page_num, text in raw.page_text_map.items()
        }
        if page_text_map:
            full_text = "\n".join(page_text_map.values())
        else:
            full_text = reconstruct_text(raw.text)

        page_images, render_warnings = self._render(pdf_bytes, ref)

        chunks = chunk_text(
            full_text,
            page_text_map,
            raw.total_pages,
            chunk_size=self.settings.chunk_size,
            page_images=page_images,
            max_images_per_chunk=self.settings.max_images_per_chunk,
        )

        content = ExtractedContent(
            chapter_id=ref.chapter,
            book=ref.book,
            extracted_at=datetime.now(timezone.utc),
            full_text=full_text,
            total_pages=raw.total_pages,
            page_text_map=page_text_map,
            chunks=chunks,
            search_index=build_search_index(chunks),
            page_images=page_images,
            extraction_method=raw.method,
            warnings=raw.warnings + render_warnings,
        )

        log.info(
            "extraction_completed",
            method=content.extraction_method,
            pages=content.total_pages,
            chars=len(full_text),
            chunks=len(chunks),
            images=len(page_images),
            warnings=len(content.warnings),
        )

        return content
