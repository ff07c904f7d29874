"""Tests for output formatters."""

import json

from climbing_kb_cli.formatters import (
    format_chapters_text,
    format_result_json,
    format_search_text,
    format_section_text,
    format_text_slice,
    format_visual_text,
)
from climbing_kb_contracts import OperationResult


def _reference():
    return {
        "term": "anchor",
        "citation": "Climbing Anchors - Chapter 3: Anchors (p. 2)",
        "page_range": "p. 2",
        "context": "build the anchor",
    }


class TestJsonFormatter:
    """Tests for JSON output."""

    def test_round_trips_result(self):
        """JSON output holds the whole result."""
        result = OperationResult(message="ok", data={"count": 2})

        payload = json.loads(format_result_json(result))

        assert payload == {"is_error": False, "message": "ok", "data": {"count": 2}}

    def test_error_result(self):
        """Errors serialize with is_error set."""
        payload = json.loads(format_result_json(OperationResult.error("nope")))

        assert payload["is_error"] is True
        assert payload["message"] == "nope"


class TestTextFormatters:
    """Tests for human-readable output."""

    def test_error_is_message(self):
        """Every text formatter prints just the message for errors."""
        error = OperationResult.error("Chapter not extracted")
        for formatter in (
            format_chapters_text,
            format_search_text,
            format_section_text,
            format_text_slice,
            format_visual_text,
        ):
            assert formatter(error) == "Chapter not extracted"

    def test_chapters_grouped_by_book(self):
        """Chapters are grouped under their book with status."""
        result = OperationResult(
            message="CLIMBING RESOURCE BOOKS (1 books, 2 total chapters)",
            data={
                "chapters": [
                    {
                        "book": "Climbing_Anchors",
                        "book_title": "Climbing Anchors",
                        "filename": "01_Anchors.pdf",
                        "title": "Anchors",
                        "keywords": ["anchor"],
                        "extraction": {
                            "extracted": True,
                            "total_pages": 4,
                            "text_length": "1.5 KB",
                            "chunk_count": 1,
                        },
                    },
                    {
                        "book": "Climbing_Anchors",
                        "book_title": "Climbing Anchors",
                        "filename": "02_Cams.pdf",
                        "title": "02_Cams.pdf",
                        "keywords": [],
                        "extraction": {"extracted": False},
                    },
                ]
            },
        )

        output = format_chapters_text(result)

        assert output.count("# Climbing Anchors (Climbing_Anchors)") == 1
        assert "01_Anchors.pdf: Anchors [extracted 4 pages, 1.5 KB, 1 chunks]" in output
        assert "02_Cams.pdf: 02_Cams.pdf [not extracted]" in output
        assert "keywords: anchor" in output

    def test_unreadable_chapter_status(self):
        """A chapter whose cache could not be read shows the reason."""
        result = OperationResult(
            message="CLIMBING RESOURCE BOOKS (1 books, 1 total chapters)",
            data={
                "chapters": [
                    {
                        "book": "Climbing_Anchors",
                        "book_title": "Climbing Anchors",
                        "filename": "01_Anchors.pdf",
                        "title": "Anchors",
                        "keywords": [],
                        "extraction": {"extracted": False, "error": "Permission denied"},
                    }
                ]
            },
        )

        output = format_chapters_text(result)

        assert "01_Anchors.pdf: Anchors [cache unreadable: Permission denied]" in output

    def test_search_results(self):
        """Search output numbers chapters and matches."""
        result = OperationResult(
            message='SEARCH RESULTS for "anchor" (1 chapters found across 1 books)',
            data={
                "results": [
                    {
                        "book_title": "Climbing Anchors",
                        "chapter_title": "Chapter 3: Anchors",
                        "matches": [
                            {
                                "score": 30.0,
                                "citation": "Climbing Anchors - Chapter 3: Anchors (p. 2)",
                                "topics": ["anchor"],
                                "snippet": "build the anchor",
                                "page_references": [_reference()],
                            }
                        ],
                    }
                ]
            },
        )

        output = format_search_text(result)

        assert "1. BOOK: Climbing Anchors" in output
        assert "RESULT 1 (Relevance Score: 30):" in output
        assert "DETAILED REFERENCES:" in output
        assert 'Context: "build the anchor"' in output

    def test_text_slice_continuation(self):
        """Slices that stop early show where to continue."""
        result = OperationResult(
            message="CHAPTER CONTENT from Climbing Anchors - Chapter 3: Anchors",
            data={
                "citation": "Climbing Anchors - Chapter 3: Anchors (p. 1)",
                "start_chars": 0,
                "end_chars": 10,
                "text_length": 46,
                "total_pages": 1,
                "extracted_at": "2024-05-01T00:00:00+00:00",
                "text": "SERENE anc",
                "remaining_chars": 36,
                "next_start_chars": 10,
            },
        )

        output = format_text_slice(result)

        assert "POSITION: Characters 0-10 of 46 total" in output
        assert "[Content continues for 36 more characters...]" in output
        assert output.endswith("[To see more content, use start_chars=10]")

    def test_visual_without_image_data(self):
        """Visual output lists files, never base64 payloads."""
        result = OperationResult(
            message="VISUAL CONTENT from Climbing_Anchors/01_Anchors.pdf (1 images found)",
            data={
                "topic_context": "belay",
                "requested_pages": [2],
                "images": [
                    {
                        "page": 2,
                        "source_path": "images/Climbing_Anchors/01_Anchors/page-2.jpg",
                        "size": "12 KB",
                        "encoded_bytes": "QUJD",
                        "text_context": "Belay the leader...",
                        "topics": ["belay"],
                    }
                ],
            },
        )

        output = format_visual_text(result)

        assert "=== PAGE 2 ===" in output
        assert "REQUESTED PAGES: 2" in output
        assert "QUJD" not in output
