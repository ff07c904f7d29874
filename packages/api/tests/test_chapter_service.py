"""Tests for the service operations behind the CLI."""

import pytest

from climbing_kb_api import ChapterService, format_bytes, parse_context_level
from climbing_kb_common import Settings
from climbing_kb_contracts import ChapterRef, ContextLevel

BOOK = "Climbing_Anchors"
CHAPTER = "01_Anchors.pdf"
SENTENCE = "SERENE anchors use equalization and redundancy."


@pytest.fixture
def service(settings):
    return ChapterService(settings)


@pytest.fixture
def anchors_chapter(add_chapter):
    return add_chapter(BOOK, CHAPTER, [SENTENCE])


class TestFormatting:
    """Helpers shared by operations."""

    @pytest.mark.parametrize(
        "size,expected",
        [(0, "0 Bytes"), (512, "512 Bytes"), (1024, "1 KB"), (1536, "1.5 KB"), (1048576, "1 MB")],
    )
    def test_format_bytes(self, size, expected):
        """Sizes render with binary units."""
        assert format_bytes(size) == expected

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("brief", ContextLevel.BRIEF),
            ("COMPREHENSIVE", ContextLevel.COMPREHENSIVE),
            ("everything", ContextLevel.DETAILED),
            (None, ContextLevel.DETAILED),
            (ContextLevel.BRIEF, ContextLevel.BRIEF),
        ],
    )
    def test_parse_context_level(self, value, expected):
        """Unknown levels fall back to detailed."""
        assert parse_context_level(value) == expected


class TestListChapters:
    """Library listing with extraction status."""

    def test_statuses(self, service, add_chapter, anchors_chapter):
        """Extracted and pending chapters are both listed."""
        add_chapter(BOOK, "02_Cams.pdf", ["Cams expand in cracks."], metadata={"title": "Cams", "keywords": ["cam"]})
        service.extract_chapter(BOOK, CHAPTER)

        result = service.list_chapters()

        assert not result.is_error
        assert result.message == "CLIMBING RESOURCE BOOKS (1 books, 2 total chapters)"
        first, second = result.data["chapters"]
        assert first["extraction"]["extracted"] is True
        assert first["extraction"]["total_pages"] == 1
        assert second["extraction"]["extracted"] is False
        assert second["title"] == "Cams"
        assert second["keywords"] == ["cam"]
        assert first["book_title"] == "Climbing Anchors"

    def test_unreadable_cache_marks_only_that_chapter(self, service, add_chapter, anchors_chapter):
        """A cache entry that cannot be read does not fail the whole listing."""
        add_chapter(BOOK, "02_Cams.pdf", ["Cams expand in cracks."])
        service.extract_chapter(BOOK, CHAPTER)
        service.store.path_for(ChapterRef(book=BOOK, chapter="02_Cams.pdf")).mkdir(parents=True)

        result = service.list_chapters()

        assert not result.is_error
        first, second = result.data["chapters"]
        assert first["extraction"]["extracted"] is True
        assert second["extraction"]["extracted"] is False
        assert "02_Cams" in second["extraction"]["error"]

    def test_empty_library(self, service):
        """An empty library is not an error."""
        result = service.list_chapters()

        assert not result.is_error
        assert result.data["chapters"] == []


class TestExtractChapter:
    """Extraction into the cache."""

    def test_extracts_and_caches(self, service, anchors_chapter):
        """First extraction writes the cache."""
        result = service.extract_chapter(BOOK, CHAPTER)

        assert not result.is_error
        assert result.message == f"Extraction completed for {BOOK}/{CHAPTER}"
        assert result.data["already_extracted"] is False
        assert result.data["chapter_title"] == "Chapter 1: Anchors"
        assert result.data["topics"] == ["anchor", "SERENE", "equalization"]
        assert service.store.exists(ChapterRef(book=BOOK, chapter=CHAPTER))

    def test_cached_is_noop(self, service, anchors_chapter):
        """A second extraction reports the cached record."""
        first = service.extract_chapter(BOOK, CHAPTER)
        second = service.extract_chapter(BOOK, CHAPTER)

        assert second.data["already_extracted"] is True
        assert second.message.startswith("Content already extracted")
        assert second.data["extracted_at"] == first.data["extracted_at"]

    def test_cached_without_pdf(self, service, anchors_chapter):
        """A cached chapter is reported even after its PDF is removed."""
        service.extract_chapter(BOOK, CHAPTER)
        anchors_chapter.unlink()

        result = service.extract_chapter(BOOK, CHAPTER)

        assert not result.is_error
        assert result.data["already_extracted"] is True

    def test_force_reextracts(self, service, anchors_chapter):
        """force_reextract replaces the cached record."""
        service.extract_chapter(BOOK, CHAPTER)

        result = service.extract_chapter(BOOK, CHAPTER, force_reextract=True)

        assert result.data["already_extracted"] is False

    def test_missing_pdf(self, service):
        """Unknown chapters are error results, not exceptions."""
        result = service.extract_chapter(BOOK, "99_Nothing.pdf")

        assert result.is_error
        assert result.message == (
            'Error extracting chapter content: Chapter "99_Nothing.pdf" not found in book "Climbing_Anchors"'
        )

    def test_invalid_ref(self, service):
        """Path-like names are rejected as error results."""
        result = service.extract_chapter("../etc", CHAPTER)

        assert result.is_error

    def test_unexpected_failure(self, settings, anchors_chapter):
        """Unexpected exceptions are reported, not raised."""

        class BrokenExtractor:
            def extract(self, pdf_path, ref):
                raise RuntimeError("boom")

        service = ChapterService(settings, extractor=BrokenExtractor())

        result = service.extract_chapter(BOOK, CHAPTER)

        assert result.is_error
        assert result.message == "Error extracting chapter content: boom"


class TestSearchContent:
    """Ranked search results."""

    def test_no_results_is_not_error(self, service):
        """Nothing extracted: a helpful message, not an error."""
        result = service.search_content("anchor")

        assert not result.is_error
        assert result.message.startswith('No content found for "anchor"')
        assert result.data["results"] == []

    def test_results(self, service, anchors_chapter):
        """Matches carry scores, citations and snippets."""
        service.extract_chapter(BOOK, CHAPTER)

        result = service.search_content("anchor", max_results=2)

        assert result.message == 'SEARCH RESULTS for "anchor" (1 chapters found across 1 books)'
        (chapter,) = result.data["results"]
        (match,) = chapter["matches"]
        assert match["score"] == 30.0
        assert match["citation"] == "Climbing Anchors - Chapter 1: Anchors (p. 1)"
        assert match["inline_citation"] == '(Long and Gaines 2013, "Chapter 1: Anchors")'
        assert "anchor" in match["snippet"]
        assert "images" not in match
        assert len(match["page_references"]) <= 3

    def test_include_images_key(self, service, anchors_chapter):
        """include_images adds an image list to each match."""
        service.extract_chapter(BOOK, CHAPTER)

        (chapter,) = service.search_content("anchor", include_images=True).data["results"]

        assert chapter["matches"][0]["images"] == []

    @pytest.mark.parametrize("word", ["chain", "terrain"])
    def test_ordinary_words_are_searchable(self, service, add_chapter, word):
        """Everyday words survive extraction intact and can be found."""
        add_chapter(
            BOOK,
            CHAPTER,
            ["Clip the chain at the top of the route. Approach terrain is steep."],
        )
        service.extract_chapter(BOOK, CHAPTER)

        result = service.search_content(word)

        assert not result.is_error
        (chapter,) = result.data["results"]
        assert word in chapter["matches"][0]["snippet"]


class TestGetChapterSection:
    """Topic lookups inside one chapter."""

    def test_not_extracted(self, service, anchors_chapter):
        """Section lookups never extract; the caller is told to extract first."""
        result = service.get_chapter_section(BOOK, CHAPTER, "belay")

        assert result.is_error
        assert result.message == (
            f'Chapter "{CHAPTER}" from book "{BOOK}" not extracted. Use extract_chapter first.'
        )
        assert not service.store.exists(ChapterRef(book=BOOK, chapter=CHAPTER))

    def test_section(self, service, anchors_chapter):
        """Relevant chunks are returned with citations."""
        service.extract_chapter(BOOK, CHAPTER)

        result = service.get_chapter_section(BOOK, CHAPTER, "equalization", context_level="brief")

        assert not result.is_error
        assert result.data["context_level"] == "brief"
        (section,) = result.data["sections"]
        assert section["citation"] == "Climbing Anchors - Chapter 1: Anchors (p. 1)"
        assert "equalization" in section["text"]

    def test_unknown_topic_lists_available(self, service, anchors_chapter):
        """No match lists the chapter's topics."""
        service.extract_chapter(BOOK, CHAPTER)

        result = service.get_chapter_section(BOOK, CHAPTER, "glacier")

        assert not result.is_error
        assert result.message.endswith("Available topics in this chapter: anchor, SERENE, equalization")


class TestGetChapterText:
    """Sliced chapter text with auto-extraction."""

    def test_auto_extracts(self, service, anchors_chapter):
        """Reading text extracts the chapter when needed."""
        result = service.get_chapter_text(BOOK, CHAPTER, start_chars=0, length=10)

        assert not result.is_error
        assert result.data["text"] == "SERENE anc"
        assert result.data["text_length"] == 46
        assert result.data["remaining_chars"] == 36
        assert result.data["next_start_chars"] == 10
        assert result.data["start_page"] == 1
        assert service.store.exists(ChapterRef(book=BOOK, chapter=CHAPTER))

    def test_final_slice(self, service, anchors_chapter):
        """The last slice has no continuation."""
        result = service.get_chapter_text(BOOK, CHAPTER, start_chars=40, length=100)

        assert result.data["text"] == "dancy."
        assert result.data["remaining_chars"] == 0
        assert result.data["next_start_chars"] is None

    def test_start_past_end(self, service, anchors_chapter):
        """Starting beyond the text gives an empty slice."""
        result = service.get_chapter_text(BOOK, CHAPTER, start_chars=500)

        assert not result.is_error
        assert result.data["text"] == ""

    def test_negative_arguments(self, service, anchors_chapter):
        """Negative offsets are error results."""
        assert service.get_chapter_text(BOOK, CHAPTER, start_chars=-1).is_error

    def test_blank_chapter(self, service, add_chapter):
        """A chapter without text is an error result."""
        add_chapter(BOOK, "02_Blank.pdf", [""])

        result = service.get_chapter_text(BOOK, "02_Blank.pdf")

        assert result.is_error
        assert result.message == 'No text content available for "02_Blank.pdf".'

    def test_missing_chapter(self, service):
        """Unknown chapters are error results."""
        assert service.get_chapter_text(BOOK, "99_Nothing.pdf").is_error


class TestGetVisualContent:
    """Page images of extracted chapters."""

    def test_rendering_disabled(self, service, anchors_chapter):
        """Without rendered pages the caller is told how to enable them."""
        service.extract_chapter(BOOK, CHAPTER)

        result = service.get_visual_content(BOOK, CHAPTER)

        assert result.is_error
        assert "page rendering is disabled" in result.message

    def test_not_extracted(self, service, anchors_chapter):
        """Visual lookups require extraction."""
        assert service.get_visual_content(BOOK, CHAPTER).is_error

    def test_rendered_pages(self, tmp_path, add_chapter):
        """Rendered pages come back with text context."""
        settings = Settings(
            books_dir=tmp_path / "Books",
            cache_dir=tmp_path / "extracted_content",
            min_text_chars=20,
            render_page_images=True,
        )
        add_chapter(BOOK, CHAPTER, [SENTENCE, "Belay the leader from a solid anchor."])
        service = ChapterService(settings)
        service.extract_chapter(BOOK, CHAPTER)

        result = service.get_visual_content(BOOK, CHAPTER, page_numbers=[2])

        assert not result.is_error
        (image,) = result.data["images"]
        assert image["page"] == 2
        assert image["text_context"].endswith("...")
        assert image["encoded_bytes"]

    def test_no_matching_pages(self, tmp_path, add_chapter):
        """Filters that match nothing are not an error."""
        settings = Settings(
            books_dir=tmp_path / "Books",
            cache_dir=tmp_path / "extracted_content",
            min_text_chars=20,
            render_page_images=True,
        )
        add_chapter(BOOK, CHAPTER, [SENTENCE])
        service = ChapterService(settings)
        service.extract_chapter(BOOK, CHAPTER)

        result = service.get_visual_content(BOOK, CHAPTER, page_numbers=[7])

        assert not result.is_error
        assert result.data["found"] == 0
