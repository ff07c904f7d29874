"""Pydantic models for climbing-kb system.

These schemas define the contract between all packages. ExtractedContent
is also the on-disk cache format (one JSON document per chapter).
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class ContextLevel(str, Enum):
    """How much surrounding content a section lookup returns."""

    BRIEF = "brief"
    DETAILED = "detailed"
    COMPREHENSIVE = "comprehensive"

    @property
    def max_chunks(self) -> int:
        return {"brief": 1, "detailed": 2, "comprehensive": 3}[self.value]


class ChapterRef(BaseModel):
    """Identity of one chapter: a PDF file inside a book directory."""

    book: str = Field(..., min_length=1)
    chapter: str = Field(..., min_length=1, description="PDF filename")

    @field_validator("book", "chapter")
    @classmethod
    def validate_plain_name(cls, v: str) -> str:
        """Reject path separators so refs cannot escape the library."""
        if "/" in v or "\\" in v or v in {".", ".."}:
            raise ValueError(f"must be a plain file or directory name: {v!r}")
        return v

    @property
    def stem(self) -> str:
        """Chapter filename without its .pdf extension."""
        if self.chapter.lower().endswith(".pdf"):
            return self.chapter[:-4]
        return self.chapter

    def __str__(self) -> str:
        return f"{self.book}/{self.chapter}"


class PageImage(BaseModel):
    """Rendered page bitmap owned by one chapter's ExtractedContent."""

    page: int = Field(..., ge=1)
    encoded_bytes: str = Field(..., description="Base64-encoded JPEG")
    size_bytes: int = Field(..., ge=0)
    source_path: str


class PageReference(BaseModel):
    """One topic occurrence inside a chunk with its page range."""

    term: str
    context: str
    page_range: str


class Chunk(BaseModel):
    """Contiguous slice of a chapter's reconstructed text.

    ``id`` is the 0-based emission order and the only valid chunk reference.
    """

    id: int = Field(..., ge=0)
    text: str
    start_char: int = Field(..., ge=0)
    end_char: int = Field(..., ge=0)
    start_page: int = Field(..., ge=1)
    end_page: int = Field(..., ge=1)
    topics: list[str] = Field(default_factory=list)
    section_heading: Optional[str] = None
    images: list[PageImage] = Field(default_factory=list)
    page_references: list[PageReference] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_ranges(self) -> "Chunk":
        """Ensure char and page ranges are ordered."""
        if self.end_char < self.start_char:
            raise ValueError("end_char must be >= start_char")
        if self.end_page < self.start_page:
            raise ValueError("end_page must be >= start_page")
        return self

    @property
    def page_range(self) -> str:
        if self.start_page == self.end_page:
            return f"p. {self.start_page}"
        return f"pp. {self.start_page}-{self.end_page}"


class ScoredMatch(Chunk):
    """Chunk with a per-query relevance score. Never persisted."""

    score: float = 0.0


class ExtractedContent(BaseModel):
    """Complete extraction record for one chapter.

    Created by extraction, replaced wholesale on re-extraction.
    """

    chapter_id: str
    book: str
    extracted_at: datetime
    full_text: str
    total_pages: int = Field(..., ge=1)
    page_text_map: dict[int, str] = Field(default_factory=dict)
    chunks: list[Chunk] = Field(default_factory=list)
    search_index: dict[str, list[int]] = Field(default_factory=dict)
    page_images: list[PageImage] = Field(default_factory=list)
    extraction_method: str = "none"
    warnings: list[str] = Field(default_factory=list)

    @property
    def topics(self) -> list[str]:
        """Distinct chunk topics in first-seen order."""
        seen: dict[str, None] = {}
        for chunk in self.chunks:
            for topic in chunk.topics:
                seen.setdefault(topic, None)
        return list(seen)


class ChapterMetadata(BaseModel):
    """Sidecar metadata for a chapter (``<chapter-stem>.json``)."""

    title: Optional[str] = None
    description: str = "No description available"
    keywords: list[str] = Field(default_factory=list)


class BookMetadata(BaseModel):
    """Bibliographic record for a book, used only for citations."""

    title: str
    authors: list[str] = Field(default_factory=lambda: ["Unknown"])
    edition: Optional[str] = None
    publisher: Optional[str] = None
    year: Optional[int] = None


class OperationResult(BaseModel):
    """Structured result of a service operation.

    User-facing failures are reported with ``is_error=True`` and a readable
    message rather than raised.
    """

    is_error: bool = False
    message: str
    data: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def error(cls, message: str, **data: Any) -> "OperationResult":
        return cls(is_error=True, message=message, data=data)
