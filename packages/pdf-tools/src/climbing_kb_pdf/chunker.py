"""Page-aware fixed-size text chunker.

Splits reconstructed chapter text into fixed-size character chunks that
partition the text exactly (no gaps, no overlap). Each chunk is annotated
with its page range, detected climbing topics, an optional section
heading, topic page references and (when rendered) page images.
"""

import bisect
import re
from dataclasses import dataclass
from typing import Optional, Sequence

from climbing_kb_common import get_logger
from climbing_kb_contracts import Chunk, PageImage, PageReference

from climbing_kb_pdf.citations import page_ref
from climbing_kb_pdf.vocabulary import CLIMBING_TERMS, SECTION_NAMES

logger = get_logger(__name__)

CHUNK_SIZE = 150_000
MAX_IMAGES_PER_CHUNK = 3
REFERENCE_CONTEXT_CHARS = 50
MAX_REFERENCES_PER_TERM = 5


@dataclass(frozen=True)
class HeadingPattern:
    """A named heading detector. Group 1 captures the heading text."""

    name: str
    pattern: re.Pattern


HEADING_PATTERNS: tuple[HeadingPattern, ...] = (
    HeadingPattern("all_caps", re.compile(r"^([A-Z][A-Z &-]{5,}) *$", re.M)),
    HeadingPattern("title_case", re.compile(r"^([A-Z][a-zA-Z &-]{10,}) *$", re.M)),
    HeadingPattern(
        "numbered", re.compile(r"^(\d+\. *[A-Z][a-zA-Z &-]{5,}) *$", re.M)
    ),
    HeadingPattern(
        "domain_keyword",
        re.compile(
            r"^((?:BASIC|ADVANCED|SAFETY|EQUIPMENT|TECHNIQUE) +[A-Z]+) *$", re.M
        ),
    ),
)


class CharPageIndex:
    """Maps character offsets in the full text to 1-indexed page numbers.

    Built by walking page texts in page order; each page owns
    ``len(page_text) + 1`` consecutive positions (the +1 is the newline
    that joined pages). Offsets past the walk are unmapped.

    The walk is O(number of pages); lookups are a binary search.
    """

    def __init__(self, page_text_map: dict[int, str], text_length: int):
        self._ends: list[int] = []
        self._pages: list[int] = []

        position = 0
        for page_num in sorted(page_text_map):
            if position >= text_length:
                break
            position = min(position + len(page_text_map[page_num]) + 1, text_length)
            self._ends.append(position)
            self._pages.append(page_num)

    def page_at(self, offset: int, default: int) -> int:
        """Return the page holding ``offset``, or ``default`` if unmapped."""
        index = bisect.bisect_right(self._ends, offset)
        if index >= len(self._pages):
            return default
        return self._pages[index]


def detect_section_heading(text: str) -> Optional[str]:
    """Detect a section heading in chunk text.

    Tries each pattern in HEADING_PATTERNS and returns the first match,
    then falls back to the known section-name vocabulary.

    Args:
        text: Chunk text

    Returns:
        Heading text, or None if nothing recognizable was found

    Example:
        >>> detect_section_heading("intro\\nBELAY DEVICES\\nbody")
        'BELAY DEVICES'
    """
    for heading in HEADING_PATTERNS:
        match = heading.pattern.search(text)
        if match:
            return match.group(1).strip()

    lower = text.lower()
    for section in SECTION_NAMES:
        if section in lower:
            return " ".join(word.capitalize() for word in section.split())

    return None


def extract_topics(text: str) -> list[str]:
    """Return vocabulary terms present in the text.

    Matching is case-insensitive substring search; the result keeps
    vocabulary order and has no duplicates.
    """
    lower = text.lower()
    return [term for term in CLIMBING_TERMS if term.lower() in lower]


def extract_page_references(
    text: str,
    topics: Sequence[str],
    start_page: int,
    end_page: int,
    max_per_term: int = MAX_REFERENCES_PER_TERM,
) -> list[PageReference]:
    """Locate topic occurrences with a short surrounding context."""
    page_range = page_ref(start_page, end_page)
    references = []

    for term in topics:
        pattern = re.compile(re.escape(term), re.IGNORECASE)
        for count, match in enumerate(pattern.finditer(text)):
            if count >= max_per_term:
                break
            start = max(0, match.start() - REFERENCE_CONTEXT_CHARS)
            end = match.start() + REFERENCE_CONTEXT_CHARS
            references.append(
                PageReference(term=term, context=text[start:end], page_range=page_range)
            )

    return references


def chunk_text(
    full_text: str,
    page_text_map: dict[int, str],
    total_pages: int,
    chunk_size: int = CHUNK_SIZE,
    page_images: Optional[Sequence[PageImage]] = None,
    max_images_per_chunk: int = MAX_IMAGES_PER_CHUNK,
) -> list[Chunk]:
    """Split text into page-mapped fixed-size chunks.

    Args:
        full_text: Reconstructed chapter text
        page_text_map: Page number -> page text, used for page mapping
        total_pages: Page count; end pages past the mapped text use it
        chunk_size: Characters per chunk (last chunk may be shorter)
        page_images: Rendered pages to attach by page range
        max_images_per_chunk: Cap on attached images per chunk

    Returns:
        Chunks in order; concatenating their text reproduces full_text

    Example:
        >>> chunks = chunk_text("a" * 250, {1: "a" * 250}, 1, chunk_size=100)
        >>> [(c.start_char, c.end_char) for c in chunks]
        [(0, 100), (100, 200), (200, 250)]
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    text_length = len(full_text)
    page_index = CharPageIndex(page_text_map, text_length)
    images = list(page_images or [])
    # Unmapped offsets fall on the last page, or page 1 without page structure
    first_default = total_pages if page_text_map else 1
    chunks: list[Chunk] = []

    for start in range(0, text_length, chunk_size):
        end = min(start + chunk_size, text_length)
        text = full_text[start:end]

        start_page = page_index.page_at(start, default=first_default)
        end_page = max(page_index.page_at(end - 1, default=total_pages), start_page)

        topics = extract_topics(text)
        chunk_images = [
            image for image in images if start_page <= image.page <= end_page
        ][:max_images_per_chunk]

        chunks.append(
            Chunk(
                id=len(chunks),
                text=text,
                start_char=start,
                end_char=end,
                start_page=start_page,
                end_page=end_page,
                topics=topics,
                section_heading=detect_section_heading(text),
                images=chunk_images,
                page_references=extract_page_references(
                    text, topics, start_page, end_page
                ),
            )
        )

    logger.debug(
        "text_chunked", chars=text_length, chunks=len(chunks), chunk_size=chunk_size
    )

    return chunks
