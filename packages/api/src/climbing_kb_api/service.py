"""Shared service layer for climbing-kb.

This module provides the operations exposed to callers (the CLI, or any
other transport): list, extract, search, section, text and visual lookup.
Every operation returns an OperationResult. User-facing failures (missing
chapter, chapter not extracted, bad arguments) come back as error results
instead of exceptions.
"""

from __future__ import annotations

import functools
import math
from typing import Any, Callable, Optional

from climbing_kb_common import ClimbingKBError, Settings, get_logger, get_settings
from climbing_kb_contracts import (
    ChapterRef,
    Chunk,
    ContextLevel,
    ExtractedContent,
    OperationResult,
    PageReference,
)
from climbing_kb_pdf import (
    ChapterExtractor,
    detect_section_heading,
    full_citation,
    get_book_metadata,
    get_chapter_title,
    inline_citation,
    page_citation,
    tokenize,
)
from climbing_kb_storage import (
    ChapterCatalog,
    ContentStore,
    QueryEngine,
    chunk_for_page,
    context_snippet,
    section_chunks,
    visual_matches,
)

logger = get_logger(__name__)

MAX_VISUAL_IMAGES = 5
SEARCH_IMAGES_PER_MATCH = 2
SEARCH_REFERENCES_PER_MATCH = 3
IMAGE_CONTEXT_CHARS = 200


def format_bytes(size: int) -> str:
    """Human-readable size.

    Example:
        >>> format_bytes(1536)
        '1.5 KB'
    """
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB"]
    value = float(size)
    exponent = 0
    while value >= 1024 and exponent < len(units) - 1:
        value /= 1024
        exponent += 1
    return f"{round(value, 2):g} {units[exponent]}"


def parse_context_level(value: str | ContextLevel | None) -> ContextLevel:
    """Parse a context level, defaulting to DETAILED for unknown values."""
    if isinstance(value, ContextLevel):
        return value
    try:
        return ContextLevel((value or "").lower())
    except ValueError:
        return ContextLevel.DETAILED


def _operation(description: str) -> Callable:
    """Convert errors raised by an operation into error results.

    Args:
        description: Prefix for the error message, e.g. "Error searching content"
    """

    def decorator(func: Callable[..., OperationResult]) -> Callable[..., OperationResult]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> OperationResult:
            try:
                return func(*args, **kwargs)
            except (ClimbingKBError, ValueError) as e:
                logger.warning("operation_failed", operation=func.__name__, error=str(e))
                return OperationResult.error(f"{description}: {e}")
            except Exception as e:
                logger.exception("operation_crashed", operation=func.__name__)
                return OperationResult.error(f"{description}: {e}")

        return wrapper

    return decorator


def _references(
    ref: ChapterRef, chunk: Chunk, references: list[PageReference]
) -> list[dict[str, Any]]:
    return [
        {
            "term": reference.term,
            "citation": page_citation(
                ref.book, ref.chapter, chunk.section_heading, chunk.start_page, chunk.end_page
            ),
            "page_range": reference.page_range,
            "context": reference.context.strip(),
        }
        for reference in references
    ]


def _not_extracted(ref: ChapterRef) -> OperationResult:
    return OperationResult.error(
        f'Chapter "{ref.chapter}" from book "{ref.book}" not extracted. '
        "Use extract_chapter first.",
        book=ref.book,
        chapter=ref.chapter,
    )


class ChapterService:
    """Operations over the chapter library.

    Example:
        >>> service = ChapterService()
        >>> result = service.search_content("anchor equalization", max_results=2)
        >>> if not result.is_error:
        ...     print(result.data["results"][0]["chapter_title"])
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        catalog: Optional[ChapterCatalog] = None,
        store: Optional[ContentStore] = None,
        extractor: Optional[ChapterExtractor] = None,
    ):
        self.settings = settings or get_settings()
        self.catalog = catalog or ChapterCatalog(self.settings.books_dir)
        self.store = store or ContentStore(self.settings.cache_dir)
        self.extractor = extractor or ChapterExtractor(self.settings)
        self.engine = QueryEngine(
            self.catalog, self.store, metadata_boost=self.settings.metadata_boost
        )

    def _extract_and_save(self, ref: ChapterRef) -> ExtractedContent:
        pdf_path = self.catalog.resolve(ref)
        content = self.extractor.extract(pdf_path, ref)
        self.store.save(ref, content)
        return content

    def _extraction_status(self, ref: ChapterRef) -> dict[str, Any]:
        # An unreadable cache entry marks only this chapter, not the listing
        try:
            content = self.store.load(ref)
        except ClimbingKBError as e:
            logger.error("list_chapter_failed", chapter=str(ref), error=str(e))
            return {"extracted": False, "error": str(e)}

        if content is None:
            return {
                "extracted": False,
                "message": "Use extract_chapter or get_chapter_text to process this chapter",
            }
        return {
            "extracted": True,
            "extracted_at": content.extracted_at.isoformat(),
            "total_pages": content.total_pages,
            "text_length": format_bytes(len(content.full_text)),
            "chunk_count": len(content.chunks),
            "image_count": len(content.page_images),
        }

    def _summary(self, ref: ChapterRef, content: ExtractedContent) -> dict[str, Any]:
        return {
            "book": ref.book,
            "book_title": get_book_metadata(ref.book).title,
            "chapter": ref.chapter,
            "chapter_title": get_chapter_title(ref.chapter),
            "citation": full_citation(ref.book, ref.chapter),
            "extracted_at": content.extracted_at.isoformat(),
            "total_pages": content.total_pages,
            "text_length": format_bytes(len(content.full_text)),
            "chunk_count": len(content.chunks),
            "image_count": len(content.page_images),
            "topics": content.topics,
            "extraction_method": content.extraction_method,
            "warnings": content.warnings,
        }

    @_operation("Error listing books and chapters")
    def list_chapters(self) -> OperationResult:
        """List every chapter with its metadata and extraction status."""
        chapters = []
        for entry in self.catalog.list_chapters():
            chapters.append(
                {
                    "book": entry.ref.book,
                    "book_title": get_book_metadata(entry.ref.book).title,
                    "filename": entry.ref.chapter,
                    "title": entry.title,
                    "description": entry.metadata.description,
                    "keywords": entry.metadata.keywords,
                    "extraction": self._extraction_status(entry.ref),
                }
            )

        book_count = len({chapter["book"] for chapter in chapters})
        return OperationResult(
            message=(
                f"CLIMBING RESOURCE BOOKS ({book_count} books, "
                f"{len(chapters)} total chapters)"
            ),
            data={
                "book_count": book_count,
                "chapter_count": len(chapters),
                "chapters": chapters,
            },
        )

    @_operation("Error extracting chapter content")
    def extract_chapter(
        self, book: str, chapter: str, force_reextract: bool = False
    ) -> OperationResult:
        """Extract a chapter into the cache.

        Does nothing (and reports the existing record) when the chapter is
        already cached, unless ``force_reextract`` is set.
        """
        ref = ChapterRef(book=book, chapter=chapter)

        if not force_reextract:
            cached = self.store.load(ref)
            if cached is not None:
                return OperationResult(
                    message=(
                        f"Content already extracted for {ref}. "
                        "Use force_reextract=True to re-process this chapter."
                    ),
                    data={**self._summary(ref, cached), "already_extracted": True},
                )

        content = self._extract_and_save(ref)
        return OperationResult(
            message=f"Extraction completed for {ref}",
            data={**self._summary(ref, content), "already_extracted": False},
        )

    @_operation("Error searching content")
    def search_content(
        self, query: str, max_results: int = 3, include_images: bool = False
    ) -> OperationResult:
        """Ranked keyword search across extracted chapters.

        Args:
            query: Free-text query
            max_results: Chapters to return (clamped to 1..5)
            include_images: Attach up to two page images per match

        Returns:
            OperationResult whose data holds ``results``: one entry per
            chapter with its best matches, citations and snippets. No
            matches is not an error.
        """
        results = self.engine.search(query, max_results=max_results)
        words = tokenize(query)

        if not results:
            return OperationResult(
                message=(
                    f'No content found for "{query}". Make sure chapters are '
                    "extracted first using extract_chapter, or try broader terms."
                ),
                data={"query": query, "results": []},
            )

        payload = []
        for result in results:
            ref = result.ref
            matches = []
            for match in result.matches:
                item: dict[str, Any] = {
                    "chunk_id": match.id,
                    "score": match.score,
                    "citation": page_citation(
                        ref.book,
                        ref.chapter,
                        match.section_heading,
                        match.start_page,
                        match.end_page,
                    ),
                    "inline_citation": inline_citation(
                        ref.book, ref.chapter, match.section_heading
                    ),
                    "section_heading": match.section_heading,
                    "start_page": match.start_page,
                    "end_page": match.end_page,
                    "topics": match.topics,
                    "snippet": context_snippet(
                        match.text, words, self.settings.context_window
                    ),
                    "page_references": _references(
                        ref, match, match.page_references[:SEARCH_REFERENCES_PER_MATCH]
                    ),
                }
                if include_images:
                    item["images"] = [
                        image.model_dump()
                        for image in match.images[:SEARCH_IMAGES_PER_MATCH]
                    ]
                matches.append(item)

            payload.append(
                {
                    "book": ref.book,
                    "book_title": get_book_metadata(ref.book).title,
                    "chapter": ref.chapter,
                    "chapter_title": get_chapter_title(ref.chapter),
                    "best_score": result.best_score,
                    "metadata_score": result.metadata_score,
                    "matches": matches,
                }
            )

        book_count = len({item["book"] for item in payload})
        return OperationResult(
            message=(
                f'SEARCH RESULTS for "{query}" ({len(payload)} chapters found '
                f"across {book_count} books)"
            ),
            data={"query": query, "results": payload},
        )

    @_operation("Error getting chapter section")
    def get_chapter_section(
        self,
        book: str,
        chapter: str,
        topic: str,
        context_level: str | ContextLevel = ContextLevel.DETAILED,
    ) -> OperationResult:
        """Chunks of an extracted chapter relevant to a topic.

        brief returns 1 chunk, detailed 2, comprehensive 3 (unknown levels
        behave as detailed). Chunks are taken in document order. The chapter
        must already be extracted.
        """
        ref = ChapterRef(book=book, chapter=chapter)
        level = parse_context_level(context_level)

        content = self.store.load(ref)
        if content is None:
            return _not_extracted(ref)

        chunks = section_chunks(content, topic, level.max_chunks)
        if not chunks:
            return OperationResult(
                message=(
                    f'No content found for "{topic}" in {ref.chapter}. '
                    f"Available topics in this chapter: {', '.join(content.topics)}"
                ),
                data={"topic": topic, "sections": [], "available_topics": content.topics},
            )

        sections = [
            {
                "chunk_id": chunk.id,
                "citation": page_citation(
                    ref.book, ref.chapter, chunk.section_heading, chunk.start_page, chunk.end_page
                ),
                "section_heading": chunk.section_heading,
                "start_page": chunk.start_page,
                "end_page": chunk.end_page,
                "topics": chunk.topics,
                "text": chunk.text,
                "page_references": _references(ref, chunk, chunk.page_references),
                "image_pages": [image.page for image in chunk.images],
            }
            for chunk in chunks
        ]

        return OperationResult(
            message=(
                f'SECTION CONTENT: "{topic}" from {get_book_metadata(ref.book).title} '
                f"- {get_chapter_title(ref.chapter)}"
            ),
            data={
                "book": ref.book,
                "chapter": ref.chapter,
                "topic": topic,
                "context_level": level.value,
                "sections": sections,
            },
        )

    @_operation("Error getting chapter text")
    def get_chapter_text(
        self,
        book: str,
        chapter: str,
        start_chars: int = 0,
        length: int = 1000,
        force_reextract: bool = False,
    ) -> OperationResult:
        """A slice of a chapter's reconstructed text.

        Extracts the chapter first when it is not cached (or when forced).
        Page numbers for the slice are estimated proportionally from its
        character offsets.
        """
        ref = ChapterRef(book=book, chapter=chapter)
        if start_chars < 0 or length < 0:
            raise ValueError("start_chars and length must be non-negative")

        content = None if force_reextract else self.store.load(ref)
        if content is None:
            logger.info("auto_extracting", chapter=str(ref), forced=force_reextract)
            content = self._extract_and_save(ref)

        if not content.full_text:
            return OperationResult.error(
                f'No text content available for "{ref.chapter}".',
                book=ref.book,
                chapter=ref.chapter,
                warnings=content.warnings,
            )

        text_length = len(content.full_text)
        start = min(start_chars, text_length)
        end = min(start + length, text_length)
        text = content.full_text[start:end]

        start_page = math.ceil(start / text_length * content.total_pages) or 1
        end_page = math.ceil(end / text_length * content.total_pages) or content.total_pages
        end_page = max(end_page, start_page)
        heading = detect_section_heading(text)

        return OperationResult(
            message=(
                f"CHAPTER CONTENT from {get_book_metadata(ref.book).title} "
                f"- {get_chapter_title(ref.chapter)}"
            ),
            data={
                "book": ref.book,
                "chapter": ref.chapter,
                "citation": page_citation(ref.book, ref.chapter, heading, start_page, end_page),
                "section_heading": heading,
                "start_chars": start,
                "end_chars": end,
                "text_length": text_length,
                "start_page": start_page,
                "end_page": end_page,
                "total_pages": content.total_pages,
                "extracted_at": content.extracted_at.isoformat(),
                "text": text,
                "remaining_chars": text_length - end,
                "next_start_chars": end if end < text_length else None,
            },
        )

    @_operation("Error getting visual content")
    def get_visual_content(
        self,
        book: str,
        chapter: str,
        page_numbers: Optional[list[int]] = None,
        topic_context: Optional[str] = None,
    ) -> OperationResult:
        """Rendered page images of an extracted chapter.

        Filters by explicit page numbers and/or pages whose chunks match
        ``topic_context``; returns at most five images with a short text
        context each.
        """
        ref = ChapterRef(book=book, chapter=chapter)

        content = self.store.load(ref)
        if content is None:
            return _not_extracted(ref)

        if not content.page_images and not self.settings.render_page_images:
            return OperationResult.error(
                f"No page images for {ref}: page rendering is disabled. Set "
                "CLIMBING_KB_RENDER_PAGE_IMAGES=true and re-extract the chapter.",
                book=ref.book,
                chapter=ref.chapter,
            )

        images = visual_matches(content, page_numbers, topic_context)
        if not images:
            return OperationResult(
                message=f"No images found matching the criteria in {ref.chapter}.",
                data={"images": [], "found": 0},
            )

        payload = []
        for image in images[:MAX_VISUAL_IMAGES]:
            item: dict[str, Any] = {
                "page": image.page,
                "source_path": image.source_path,
                "size": format_bytes(image.size_bytes),
                "encoded_bytes": image.encoded_bytes,
            }
            chunk = chunk_for_page(content, image.page)
            if chunk is not None:
                item["text_context"] = chunk.text[:IMAGE_CONTEXT_CHARS] + "..."
                item["topics"] = chunk.topics
            payload.append(item)

        return OperationResult(
            message=f"VISUAL CONTENT from {ref} ({len(images)} images found)",
            data={
                "book": ref.book,
                "chapter": ref.chapter,
                "topic_context": topic_context,
                "requested_pages": page_numbers,
                "found": len(images),
                "images": payload,
            },
        )
