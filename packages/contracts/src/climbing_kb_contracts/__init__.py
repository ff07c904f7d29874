"""Shared data contracts for climbing-kb packages."""

from climbing_kb_contracts.models import (
    BookMetadata,
    ChapterMetadata,
    ChapterRef,
    Chunk,
    ContextLevel,
    ExtractedContent,
    OperationResult,
    PageImage,
    PageReference,
    ScoredMatch,
)

__all__ = [
    "BookMetadata",
    "ChapterMetadata",
    "ChapterRef",
    "Chunk",
    "ContextLevel",
    "ExtractedContent",
    "OperationResult",
    "PageImage",
    "PageReference",
    "ScoredMatch",
]
