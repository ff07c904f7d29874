"""Keyword search over cached chapter chunks.

Provides:
- Chunk relevance filtering and term-frequency scoring
- Sidecar metadata boosting
- Ranked multi-chapter search
- Context snippets, section selection and page-image selection

Score semantics (per chunk, higher = better):
- 10 per occurrence of each query word in the chunk text
- 20 per chunk topic equal to a query word
- plus the chapter's metadata score when boosting is enabled:
  +50 keyword match, +30 title match, +20 description match, per word

Queries scan chunk text directly; the persisted word index is not
consulted.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from climbing_kb_common import ClimbingKBError, SearchError, get_logger
from climbing_kb_contracts import (
    ChapterMetadata,
    ChapterRef,
    Chunk,
    ExtractedContent,
    PageImage,
    ScoredMatch,
)
from climbing_kb_pdf.search_index import tokenize

from climbing_kb_storage.catalog import ChapterCatalog, ChapterEntry
from climbing_kb_storage.content_store import ContentStore

logger = get_logger(__name__)

WORD_SCORE = 10
TOPIC_SCORE = 20
KEYWORD_BOOST = 50
TITLE_BOOST = 30
DESCRIPTION_BOOST = 20

MATCHES_PER_CHAPTER = 2
MIN_RESULTS = 1
MAX_RESULTS = 5
CONTEXT_WINDOW = 500


@dataclass
class ChapterResult:
    """Search hit for one chapter.

    Attributes:
        entry: Catalog entry (identity, sidecar metadata)
        content: Cached extraction record
        matches: Top-scoring chunks, best first
        metadata_score: Boost contributed by sidecar metadata
    """

    entry: ChapterEntry
    content: ExtractedContent
    matches: list[ScoredMatch] = field(default_factory=list)
    metadata_score: float = 0.0

    @property
    def ref(self) -> ChapterRef:
        return self.entry.ref

    @property
    def best_score(self) -> float:
        if not self.matches:
            return self.metadata_score
        return self.matches[0].score


def chunk_matches(chunk: Chunk, words: Sequence[str]) -> bool:
    """True if any word occurs in the chunk text or equals one of its topics."""
    text = chunk.text.lower()
    if any(word in text for word in words):
        return True
    return any(topic.lower() in words for topic in chunk.topics)


def score_chunk(chunk: Chunk, words: Sequence[str], seed: float = 0.0) -> float:
    """Term-frequency plus topic score for one chunk.

    Example:
        >>> score_chunk(chunk, ["anchor"])  # "anchor" twice, topic "anchor"
        40.0
    """
    text = chunk.text.lower()
    score = float(seed)
    for word in words:
        score += WORD_SCORE * len(re.findall(re.escape(word), text))
    for topic in chunk.topics:
        if topic.lower() in words:
            score += TOPIC_SCORE
    return score


def metadata_score(metadata: ChapterMetadata, words: Sequence[str]) -> float:
    """Relevance of a chapter's sidecar metadata to the query words."""
    keywords = [keyword.lower() for keyword in metadata.keywords]
    title = (metadata.title or "").lower()
    description = metadata.description.lower()

    score = 0.0
    for word in words:
        if any(word == keyword or word in keyword for keyword in keywords):
            score += KEYWORD_BOOST
        if word in title:
            score += TITLE_BOOST
        if word in description:
            score += DESCRIPTION_BOOST
    return score


def relevant_chunks(content: ExtractedContent, words: Sequence[str]) -> list[Chunk]:
    """Chunks matching any of the words, in document order."""
    if not words:
        return []
    return [chunk for chunk in content.chunks if chunk_matches(chunk, words)]


def clamp_max_results(max_results: int) -> int:
    return max(MIN_RESULTS, min(MAX_RESULTS, max_results))


def score_chapter(
    entry: ChapterEntry,
    content: ExtractedContent,
    words: Sequence[str],
    use_metadata: bool = True,
) -> Optional[ChapterResult]:
    """Score one chapter against the query words.

    Returns:
        ChapterResult with the top chunks, or None if the chapter does not
        qualify (no matching chunk and no metadata score)
    """
    boost = 0.0
    if use_metadata and entry.has_sidecar:
        boost = metadata_score(entry.metadata, words)

    candidates = relevant_chunks(content, words)
    if not candidates:
        if boost <= 0:
            return None
        # Metadata-only hit: show the opening of the chapter
        candidates = content.chunks[:MATCHES_PER_CHAPTER]

    scored = [
        ScoredMatch(**chunk.model_dump(), score=score_chunk(chunk, words, seed=boost))
        for chunk in candidates
    ]
    scored.sort(key=lambda match: match.score, reverse=True)

    return ChapterResult(
        entry=entry,
        content=content,
        matches=scored[:MATCHES_PER_CHAPTER],
        metadata_score=boost,
    )


def context_snippet(text: str, words: Sequence[str], window: int = CONTEXT_WINDOW) -> str:
    """Window of text around the earliest query-word occurrence.

    The window is centred on the first occurrence (by position) of any
    word, clipped to the text, and marked with ``...`` where clipped. When
    no word occurs the leading window is returned.

    Example:
        >>> context_snippet("a" * 1000 + "belay" + "b" * 1000, ["belay"], 10)
        '...aaaaabelay...'
    """
    lower = text.lower()
    positions = [pos for pos in (lower.find(word) for word in words) if pos != -1]

    if not positions:
        return text[:window] + ("..." if len(text) > window else "")

    first = min(positions)
    start = max(0, first - window // 2)
    end = min(len(text), first + window // 2)
    return (
        ("..." if start > 0 else "")
        + text[start:end]
        + ("..." if end < len(text) else "")
    )


def section_chunks(
    content: ExtractedContent, topic: str, max_chunks: int
) -> list[Chunk]:
    """First ``max_chunks`` chunks relevant to a topic.

    Selection keeps document order rather than ranking by score, so a
    brief lookup returns the earliest relevant passage.
    """
    return relevant_chunks(content, tokenize(topic))[:max_chunks]


def visual_matches(
    content: ExtractedContent,
    pages: Optional[Iterable[int]] = None,
    topic: Optional[str] = None,
) -> list[PageImage]:
    """Page images filtered by explicit pages and/or topic relevance.

    Both filters apply when both are given. A topic keeps images whose
    page lies inside a chunk relevant to that topic.
    """
    images = list(content.page_images)

    if pages:
        wanted = set(pages)
        images = [image for image in images if image.page in wanted]

    if topic:
        chunks = relevant_chunks(content, tokenize(topic))
        images = [
            image
            for image in images
            if any(c.start_page <= image.page <= c.end_page for c in chunks)
        ]

    return images


def chunk_for_page(content: ExtractedContent, page: int) -> Optional[Chunk]:
    """First chunk whose page range contains ``page``."""
    for chunk in content.chunks:
        if chunk.start_page <= page <= chunk.end_page:
            return chunk
    return None


class QueryEngine:
    """Ranked search across every cached chapter in the library.

    Example:
        >>> engine = QueryEngine(ChapterCatalog(books), ContentStore(cache))
        >>> for result in engine.search("belay anchor", max_results=3):
        ...     print(result.ref, result.best_score)
    """

    def __init__(
        self,
        catalog: ChapterCatalog,
        store: ContentStore,
        metadata_boost: bool = True,
    ):
        self.catalog = catalog
        self.store = store
        self.metadata_boost = metadata_boost

    def search(self, query: str, max_results: int = 3) -> list[ChapterResult]:
        """Search cached chapters.

        Args:
            query: Free-text query
            max_results: Chapters to return, clamped to 1..5

        Returns:
            Chapter results sorted by best chunk score (descending, stable).
            Empty when the query has no usable words or nothing matches.

        Raises:
            SearchError: If the library cannot be listed
        """
        words = tokenize(query)
        if not words:
            logger.info("search_empty_query", query=query)
            return []

        try:
            entries = self.catalog.list_chapters()
        except OSError as e:
            raise SearchError(f"Cannot list chapters in {self.catalog.books_dir}: {e}") from e

        results: list[ChapterResult] = []
        searched = 0

        for entry in entries:
            try:
                content = self.store.load(entry.ref)
                if content is None:
                    continue
                searched += 1
                result = score_chapter(entry, content, words, self.metadata_boost)
            except ClimbingKBError as e:
                logger.error("search_chapter_failed", chapter=str(entry.ref), error=str(e))
                continue
            if result is not None:
                results.append(result)

        results.sort(key=lambda r: r.best_score, reverse=True)
        limit = clamp_max_results(max_results)

        logger.info(
            "search_completed",
            query=query,
            chapters_searched=searched,
            chapters_matched=len(results),
            returned=min(limit, len(results)),
        )

        return results[:limit]
