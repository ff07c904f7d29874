"""Climbing-KB service operations.

Transport-independent operations over the chapter library; the CLI is one
caller.
"""

from climbing_kb_api.service import ChapterService, format_bytes, parse_context_level

__all__ = ["ChapterService", "format_bytes", "parse_context_level"]
