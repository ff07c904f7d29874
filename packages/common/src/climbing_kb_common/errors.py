"""Custom error types for climbing-kb system.

All errors follow the "fail fast" principle with explicit messages.
The service layer converts them into error results for the caller.
"""


class ClimbingKBError(Exception):
    """Base exception for all climbing-kb errors."""

    pass


class IngestionError(ClimbingKBError):
    """Error during chapter extraction pipeline."""

    pass


class ChapterNotFoundError(IngestionError):
    """Referenced chapter PDF does not exist."""

    pass


class ExtractionError(IngestionError):
    """Error reading or processing a chapter PDF."""

    pass


class StorageError(ClimbingKBError):
    """Error reading or writing the extraction cache."""

    pass


class CacheCorruptError(StorageError):
    """Cached record exists but cannot be parsed."""

    pass


class SearchError(ClimbingKBError):
    """Error during search operations."""

    pass
