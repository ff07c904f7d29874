"""Tests for CLI commands."""

import json

BOOK = "Climbing_Anchors"
CHAPTER = "01_Anchors.pdf"
SENTENCE = "SERENE anchors use equalization and redundancy."


class TestListCommand:
    """Tests for the list command."""

    def test_list_empty(self, invoke):
        """An empty library lists no chapters."""
        result = invoke("list")

        assert result.exit_code == 0
        assert "CLIMBING RESOURCE BOOKS (0 books, 0 total chapters)" in result.stdout

    def test_list_json(self, invoke, add_chapter):
        """JSON output is the full operation result."""
        add_chapter(BOOK, CHAPTER, [SENTENCE])

        result = invoke("list", "--format", "json")

        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["is_error"] is False
        assert payload["data"]["chapters"][0]["filename"] == CHAPTER


class TestExtractCommand:
    """Tests for the extract command."""

    def test_extract(self, invoke, add_chapter):
        """Extraction prints a summary with the citation."""
        add_chapter(BOOK, CHAPTER, [SENTENCE])

        result = invoke("extract", BOOK, CHAPTER)

        assert result.exit_code == 0
        assert "Extraction completed" in result.stdout
        assert "Chapter: Chapter 1: Anchors" in result.stdout
        assert "Topics Identified: anchor, SERENE, equalization" in result.stdout

    def test_extract_missing_exits_nonzero(self, invoke):
        """Errors print the message and exit with status 1."""
        result = invoke("extract", BOOK, "99_Nothing.pdf")

        assert result.exit_code == 1
        assert "not found" in result.stdout


class TestSearchCommand:
    """Tests for the search command."""

    def test_search_after_extract(self, invoke, add_chapter):
        """Search reports citations for extracted chapters."""
        add_chapter(BOOK, CHAPTER, [SENTENCE])
        invoke("extract", BOOK, CHAPTER)

        result = invoke("search", "anchor", "-n", "2")

        assert result.exit_code == 0
        assert "SEARCH RESULTS" in result.stdout
        assert "CITATION: Climbing Anchors - Chapter 1: Anchors (p. 1)" in result.stdout

    def test_search_no_results(self, invoke):
        """No results is a normal exit."""
        result = invoke("search", "glacier")

        assert result.exit_code == 0
        assert 'No content found for "glacier"' in result.stdout


class TestSectionAndTextCommands:
    """Tests for section and text commands."""

    def test_section_requires_extraction(self, invoke, add_chapter):
        """Section lookups on unextracted chapters fail."""
        add_chapter(BOOK, CHAPTER, [SENTENCE])

        result = invoke("section", BOOK, CHAPTER, "belay", "--level", "brief")

        assert result.exit_code == 1
        assert "not extracted" in result.stdout

    def test_text_auto_extracts(self, invoke, add_chapter):
        """The text command extracts on demand and shows continuation."""
        add_chapter(BOOK, CHAPTER, [SENTENCE])

        result = invoke("text", BOOK, CHAPTER, "--length", "10")

        assert result.exit_code == 0
        assert "SERENE anc" in result.stdout
        assert "[To see more content, use start_chars=10]" in result.stdout

    def test_visual_disabled(self, invoke, add_chapter):
        """Visual lookups fail when nothing was rendered."""
        add_chapter(BOOK, CHAPTER, [SENTENCE])
        invoke("extract", BOOK, CHAPTER)

        result = invoke("visual", BOOK, CHAPTER, "--page", "1")

        assert result.exit_code == 1
        assert "page rendering is disabled" in result.stdout
