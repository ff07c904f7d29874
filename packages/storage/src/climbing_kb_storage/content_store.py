"""ContentStore - on-disk cache of extracted chapters.

Provides:
- Save an ExtractedContent record (atomic whole-file replace)
- Look up a record with an explicit HIT / MISSING / CORRUPT status
- Load a record, treating corrupt entries as cache misses

Layout: ``<cache_dir>/<book>/<chapter-stem>.json``, one JSON document per
chapter. Records are never partially updated.
"""

import os
import tempfile
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from climbing_kb_common import CacheCorruptError, StorageError, get_logger
from climbing_kb_contracts import ChapterRef, ExtractedContent

logger = get_logger(__name__)


class CacheStatus(str, Enum):
    """Outcome of a cache lookup."""

    HIT = "hit"
    MISSING = "missing"
    CORRUPT = "corrupt"


@dataclass
class CacheLookup:
    """Cache lookup result.

    Attributes:
        status: HIT, MISSING or CORRUPT
        content: The record on HIT, otherwise None
    """

    status: CacheStatus
    content: Optional[ExtractedContent] = None


class ContentStore:
    """File-backed storage for ExtractedContent records.

    Writes go to a temporary file in the target directory and are renamed
    into place, so readers see either the old record or the new one. Writes
    to the same chapter are serialized with a per-chapter lock.

    Example:
        >>> store = ContentStore(Path("extracted_content"))
        >>> store.save(ref, content)
        >>> store.load(ref).total_pages
        12
    """

    def __init__(self, cache_dir: Path):
        self.cache_dir = Path(cache_dir)
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def path_for(self, ref: ChapterRef) -> Path:
        """Cache file location for a chapter."""
        return self.cache_dir / ref.book / f"{ref.stem}.json"

    def _lock_for(self, ref: ChapterRef) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(str(ref), threading.Lock())

    def save(self, ref: ChapterRef, content: ExtractedContent) -> Path:
        """Persist a record, replacing any previous one.

        Args:
            ref: Chapter identity
            content: Complete extraction record

        Returns:
            Path of the written cache file

        Raises:
            StorageError: If the record cannot be written
        """
        path = self.path_for(ref)
        payload = content.model_dump_json()

        with self._lock_for(ref):
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(
                    dir=path.parent, prefix=f".{ref.stem}.", suffix=".tmp"
                )
                try:
                    with os.fdopen(fd, "w", encoding="utf-8") as f:
                        f.write(payload)
                    os.replace(tmp_name, path)
                except BaseException:
                    Path(tmp_name).unlink(missing_ok=True)
                    raise
            except OSError as e:
                logger.error("cache_write_failed", chapter=str(ref), error=str(e))
                raise StorageError(f"Failed to cache {ref}: {e}") from e

        logger.info(
            "cache_written",
            chapter=str(ref),
            path=str(path),
            size_bytes=len(payload),
        )
        return path

    def _read(self, path: Path) -> ExtractedContent:
        try:
            return ExtractedContent.model_validate_json(path.read_bytes())
        except (ValidationError, ValueError, UnicodeDecodeError) as e:
            raise CacheCorruptError(f"Unreadable cache record {path}: {e}") from e

    def lookup(self, ref: ChapterRef) -> CacheLookup:
        """Look up a chapter's record without raising for bad entries.

        Raises:
            StorageError: On I/O failures other than a missing file
        """
        path = self.path_for(ref)
        try:
            return CacheLookup(status=CacheStatus.HIT, content=self._read(path))
        except FileNotFoundError:
            return CacheLookup(status=CacheStatus.MISSING)
        except CacheCorruptError as e:
            logger.warning("cache_corrupt", chapter=str(ref), error=str(e))
            return CacheLookup(status=CacheStatus.CORRUPT)
        except OSError as e:
            raise StorageError(f"Failed to read cache for {ref}: {e}") from e

    def load(self, ref: ChapterRef) -> Optional[ExtractedContent]:
        """Return the cached record, or None if missing or corrupt."""
        return self.lookup(ref).content

    def exists(self, ref: ChapterRef) -> bool:
        return self.load(ref) is not None
