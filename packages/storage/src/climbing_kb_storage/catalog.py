"""ChapterCatalog - discovery of books, chapter PDFs and sidecar metadata.

The library is a directory of book directories, each holding chapter PDFs
and optional ``<chapter-stem>.json`` sidecar files:

    Books/
      Climbing_Anchors/
        01_Anchors.pdf
        01_Anchors.json      {"title": ..., "description": ..., "keywords": [...]}
"""

import json
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError

from climbing_kb_common import ChapterNotFoundError, get_logger
from climbing_kb_contracts import ChapterMetadata, ChapterRef

logger = get_logger(__name__)


@dataclass
class ChapterEntry:
    """A chapter PDF found in the library.

    Attributes:
        ref: Chapter identity
        pdf_path: Location of the PDF
        metadata: Sidecar metadata (defaults when no sidecar exists)
        has_sidecar: Whether a valid sidecar file was read
    """

    ref: ChapterRef
    pdf_path: Path
    metadata: ChapterMetadata
    has_sidecar: bool = False

    @property
    def title(self) -> str:
        return self.metadata.title or self.ref.chapter


class ChapterCatalog:
    """Read-only view over the books directory."""

    def __init__(self, books_dir: Path):
        self.books_dir = Path(books_dir)

    def list_books(self) -> list[str]:
        """Book directory names, sorted. A missing library has no books."""
        if not self.books_dir.is_dir():
            logger.warning("books_dir_missing", path=str(self.books_dir))
            return []
        return sorted(p.name for p in self.books_dir.iterdir() if p.is_dir())

    def _chapter_files(self, book: str) -> list[Path]:
        book_dir = self.books_dir / book
        if not book_dir.is_dir():
            return []
        return sorted(
            p for p in book_dir.iterdir() if p.is_file() and p.suffix.lower() == ".pdf"
        )

    def read_metadata(self, pdf_path: Path) -> tuple[ChapterMetadata, bool]:
        """Read a chapter's sidecar file.

        Returns:
            Tuple of (metadata, found). A missing or invalid sidecar yields
            defaults and ``found=False``.
        """
        sidecar = pdf_path.with_suffix(".json")
        try:
            data = json.loads(sidecar.read_text(encoding="utf-8"))
            return ChapterMetadata.model_validate(data), True
        except FileNotFoundError:
            return ChapterMetadata(), False
        except (OSError, ValueError, ValidationError) as e:
            logger.warning("sidecar_invalid", path=str(sidecar), error=str(e))
            return ChapterMetadata(), False

    def list_chapters(self, book: str | None = None) -> list[ChapterEntry]:
        """All chapters, optionally limited to one book.

        Ordered by book name, then filename.
        """
        books = [book] if book is not None else self.list_books()
        entries = []
        for book_name in books:
            for pdf_path in self._chapter_files(book_name):
                metadata, found = self.read_metadata(pdf_path)
                entries.append(
                    ChapterEntry(
                        ref=ChapterRef(book=book_name, chapter=pdf_path.name),
                        pdf_path=pdf_path,
                        metadata=metadata,
                        has_sidecar=found,
                    )
                )
        return entries

    def resolve(self, ref: ChapterRef) -> Path:
        """Path of a chapter's PDF.

        Raises:
            ChapterNotFoundError: If the PDF does not exist
        """
        pdf_path = self.books_dir / ref.book / ref.chapter
        if not pdf_path.is_file():
            raise ChapterNotFoundError(
                f'Chapter "{ref.chapter}" not found in book "{ref.book}"'
            )
        return pdf_path

    def get(self, ref: ChapterRef) -> ChapterEntry:
        """Catalog entry for a chapter (raises ChapterNotFoundError)."""
        pdf_path = self.resolve(ref)
        metadata, found = self.read_metadata(pdf_path)
        return ChapterEntry(ref=ref, pdf_path=pdf_path, metadata=metadata, has_sidecar=found)
