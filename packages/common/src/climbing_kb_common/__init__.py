"""Climbing KB Common - Shared utilities.

Version: 1.0.0

This package provides:
- Settings (pydantic-settings)
- Structured logging (structlog)
- Custom error types
"""

from climbing_kb_common.config import Settings, get_settings
from climbing_kb_common.errors import (
    CacheCorruptError,
    ChapterNotFoundError,
    ClimbingKBError,
    ExtractionError,
    IngestionError,
    SearchError,
    StorageError,
)
from climbing_kb_common.logging_config import configure_logging, get_logger

__version__ = "1.0.0"

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Logging
    "configure_logging",
    "get_logger",
    # Errors
    "ClimbingKBError",
    "IngestionError",
    "ChapterNotFoundError",
    "ExtractionError",
    "StorageError",
    "CacheCorruptError",
    "SearchError",
]
