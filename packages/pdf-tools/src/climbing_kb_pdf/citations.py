"""Citation formatting for book chapters.

Generates citations in three registers:
1. Full bibliographic: Long, John, and Bob Gaines. "Chapter 3: Anchors." In ...
2. Inline parenthetical: (Long and Gaines 2013, "Chapter 3: Anchors")
3. Short: Climbing Anchors - Chapter 3: Anchors > Equalization

Book metadata comes from a fixed table keyed by book directory name and
chapter titles are derived from the PDF filename. Everything here is
presentation only and deterministic.
"""

import re
from dataclasses import dataclass
from typing import Callable, Optional

from climbing_kb_contracts import BookMetadata

BOOK_METADATA: dict[str, BookMetadata] = {
    "Mountaineering_Freedom_of_the_Hills": BookMetadata(
        title="Mountaineering: The Freedom of the Hills",
        authors=["The Mountaineers"],
        edition="9th",
        publisher="Mountaineers Books",
        year=2017,
    ),
    "Climbing_Anchors": BookMetadata(
        title="Climbing Anchors",
        authors=["John Long", "Bob Gaines"],
        edition="3rd",
        publisher="Falcon Guides",
        year=2013,
    ),
    "Rock_Climbing_Mastering_Basic_Skills": BookMetadata(
        title="Rock Climbing: Mastering Basic Skills",
        authors=["Craig Luebben"],
        publisher="Mountaineers Books",
        year=2004,
    ),
    "Self-Rescue": BookMetadata(
        title="Self-Rescue",
        authors=["David Fasulo"],
        edition="2nd",
        publisher="Falcon Guides",
        year=2011,
    ),
}


@dataclass(frozen=True)
class TitleMatcher:
    """Filename pattern and the function that turns a match into a title."""

    pattern: re.Pattern
    render: Callable[[re.Match], str]


def _numbered(match: re.Match) -> str:
    return f"Chapter {int(match.group(1))}: {match.group(2).strip()}"


def _numbered_underscored(match: re.Match) -> str:
    title = match.group(2).replace("_", " ").strip()
    return f"Chapter {int(match.group(1))}: {title}"


def _literal(title: str) -> Callable[[re.Match], str]:
    return lambda _match: title


def _literal_matcher(needle: str, title: str) -> TitleMatcher:
    # Spaces in the needle also match underscores, hyphens or nothing
    loose = r"[\s_-]*".join(re.escape(word) for word in needle.split())
    return TitleMatcher(re.compile(loose, re.IGNORECASE), _literal(title))


# Tried in order; the first match wins.
TITLE_MATCHERS: tuple[TitleMatcher, ...] = (
    TitleMatcher(
        re.compile(r"Ch\d+_Chapter\s*(\d+)\.\s*(.+)\.pdf$", re.IGNORECASE), _numbered
    ),
    TitleMatcher(
        re.compile(r"^Chapter\s*(\d+)\.\s*(.+)\.pdf$", re.IGNORECASE), _numbered
    ),
    _literal_matcher("front matter", "Front Matter"),
    _literal_matcher("glossary", "Glossary"),
    _literal_matcher("index", "Index"),
    _literal_matcher("appendix", "Appendix"),
    _literal_matcher("introduction", "Introduction"),
    TitleMatcher(
        re.compile(r"^(\d+)[_\-. ]+(.+)\.pdf$", re.IGNORECASE), _numbered_underscored
    ),
)


def get_book_metadata(book_id: str) -> BookMetadata:
    """Look up book metadata, falling back to a stub built from the id.

    Example:
        >>> get_book_metadata("Big_Wall_Climbing").title
        'Big Wall Climbing'
    """
    metadata = BOOK_METADATA.get(book_id)
    if metadata is not None:
        return metadata
    return BookMetadata(title=book_id.replace("_", " "))


def get_chapter_title(chapter_filename: str) -> str:
    """Derive a readable chapter title from its PDF filename.

    Example:
        >>> get_chapter_title("Ch07_Chapter 7. Belaying.pdf")
        'Chapter 7: Belaying'
    """
    for matcher in TITLE_MATCHERS:
        match = matcher.pattern.search(chapter_filename)
        if match:
            return matcher.render(match)
    return re.sub(r"\.pdf$", "", chapter_filename, flags=re.IGNORECASE)


def page_ref(start_page: int, end_page: int) -> str:
    """Format a page range: ``p. 4`` or ``pp. 4-6``."""
    if start_page == end_page:
        return f"p. {start_page}"
    return f"pp. {start_page}-{end_page}"


def _join_names(names: list[str]) -> str:
    if len(names) == 1:
        return names[0]
    if len(names) == 2:
        return f"{names[0]} and {names[1]}"
    return ", ".join(names[:-1]) + f", and {names[-1]}"


def _surname(author: str) -> str:
    # Corporate authors ("The Mountaineers") are cited whole
    if author.startswith("The "):
        return author
    return author.split()[-1]


def full_citation(
    book_id: str, chapter_filename: str, section_heading: Optional[str] = None
) -> str:
    """Full bibliographic citation.

    Args:
        book_id: Book directory name
        chapter_filename: Chapter PDF filename
        section_heading: Optional section inside the chapter

    Returns:
        Citation string, e.g.
        ``John Long and Bob Gaines. "Chapter 3: Anchors." In Climbing
        Anchors, 3rd ed. Falcon Guides, 2013.``
    """
    book = get_book_metadata(book_id)
    chapter = get_chapter_title(chapter_filename)
    if section_heading:
        chapter = f"{chapter}: {section_heading}"

    authors = _join_names(book.authors).rstrip(".")
    citation = f'{authors}. "{chapter}." In {book.title}'
    if book.edition:
        citation += f", {book.edition} ed"
    citation += "."

    imprint = ", ".join(
        str(part) for part in (book.publisher, book.year) if part is not None
    )
    if imprint:
        citation += f" {imprint}."

    return citation


def inline_citation(
    book_id: str, chapter_filename: str, section_heading: Optional[str] = None
) -> str:
    """Parenthetical citation, e.g. ``(Long and Gaines 2013, "Chapter 3: Anchors")``."""
    book = get_book_metadata(book_id)
    surnames = [_surname(author) for author in book.authors]

    if len(surnames) >= 3:
        who = f"{surnames[0]} et al."
    else:
        who = " and ".join(surnames)

    year = book.year if book.year is not None else "n.d."
    citation = f'({who} {year}, "{get_chapter_title(chapter_filename)}"'
    if section_heading:
        citation += f", {section_heading}"
    return citation + ")"


def short_citation(
    book_id: str, chapter_filename: str, section_heading: Optional[str] = None
) -> str:
    """Short citation, e.g. ``Climbing Anchors - Chapter 3: Anchors > Cams``."""
    citation = f"{get_book_metadata(book_id).title} - {get_chapter_title(chapter_filename)}"
    if section_heading:
        citation += f" > {section_heading}"
    return citation


def page_citation(
    book_id: str,
    chapter_filename: str,
    section_heading: Optional[str],
    start_page: int,
    end_page: int,
) -> str:
    """Short citation followed by its page range in parentheses."""
    short = short_citation(book_id, chapter_filename, section_heading)
    return f"{short} ({page_ref(start_page, end_page)})"
