"""Climbing KB Storage - extraction cache, chapter catalog and search.

Version: 1.0.0

This package provides:
- ContentStore (per-chapter JSON cache with atomic writes)
- ChapterCatalog (books directory, chapter PDFs, sidecar metadata)
- QueryEngine (keyword search with topic and metadata scoring)
"""

from climbing_kb_storage.catalog import ChapterCatalog, ChapterEntry
from climbing_kb_storage.content_store import CacheLookup, CacheStatus, ContentStore
from climbing_kb_storage.query_engine import (
    ChapterResult,
    QueryEngine,
    chunk_for_page,
    chunk_matches,
    clamp_max_results,
    context_snippet,
    metadata_score,
    relevant_chunks,
    score_chapter,
    score_chunk,
    section_chunks,
    visual_matches,
)

__version__ = "1.0.0"

__all__ = [
    # Cache
    "ContentStore",
    "CacheLookup",
    "CacheStatus",
    # Catalog
    "ChapterCatalog",
    "ChapterEntry",
    # Search
    "QueryEngine",
    "ChapterResult",
    "chunk_for_page",
    "chunk_matches",
    "clamp_max_results",
    "context_snippet",
    "metadata_score",
    "relevant_chunks",
    "score_chapter",
    "score_chunk",
    "section_chunks",
    "visual_matches",
]
