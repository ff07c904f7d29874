"""Output formatters for CLI results.

Provides two output formats:
- text: Human-readable report with citations and page references
- json: The full OperationResult, machine-parseable

Text formatters read the ``data`` payload built by the service layer.
Error results render as their message in either format's text form.
"""

import json
from typing import Any

from climbing_kb_contracts import OperationResult


def format_result_json(result: OperationResult) -> str:
    """Format any operation result as a JSON string."""
    return json.dumps(result.model_dump(mode="json"), indent=2)


def _format_references(references: list[dict[str, Any]], indent: str) -> list[str]:
    if not references:
        return []
    lines = [f"{indent}DETAILED REFERENCES:"]
    for reference in references:
        lines.append(f"{indent}  - {reference['term']}: {reference['citation']}")
        lines.append(f'{indent}    Context: "{reference["context"]}"')
    return lines


def format_chapters_text(result: OperationResult) -> str:
    """Format a chapter listing grouped by book."""
    if result.is_error:
        return result.message

    lines = [result.message, ""]
    current_book = None
    for chapter in result.data.get("chapters", []):
        if chapter["book"] != current_book:
            current_book = chapter["book"]
            lines.append(f"# {chapter['book_title']} ({current_book})")

        extraction = chapter["extraction"]
        if extraction["extracted"]:
            status = (
                f"extracted {extraction['total_pages']} pages, "
                f"{extraction['text_length']}, {extraction['chunk_count']} chunks"
            )
        elif "error" in extraction:
            status = f"cache unreadable: {extraction['error']}"
        else:
            status = "not extracted"

        lines.append(f"  - {chapter['filename']}: {chapter['title']} [{status}]")
        if chapter["keywords"]:
            lines.append(f"      keywords: {', '.join(chapter['keywords'])}")

    return "\n".join(lines)


def format_extraction_text(result: OperationResult) -> str:
    """Format an extraction summary."""
    if result.is_error:
        return result.message

    data = result.data
    lines = [
        result.message,
        "",
        f"- Book: {data['book_title']}",
        f"- Chapter: {data['chapter_title']}",
        f"- Extracted: {data['extracted_at']}",
        f"- Total Pages: {data['total_pages']}",
        f"- Text Length: {data['text_length']}",
        f"- Text Chunks: {data['chunk_count']}",
        f"- Images: {data['image_count']}",
        f"- Method: {data['extraction_method']}",
        f"- Topics Identified: {', '.join(data['topics']) or 'none'}",
        f"- Citation: {data['citation']}",
    ]
    for warning in data.get("warnings", []):
        lines.append(f"- Warning: {warning}")
    return "\n".join(lines)


def format_search_text(result: OperationResult) -> str:
    """Format ranked search results.

    Example output:
        1. BOOK: Climbing Anchors
           CHAPTER: Chapter 3: Anchors

           RESULT 1 (Relevance Score: 30):
           CITATION: Climbing Anchors - Chapter 3: Anchors (p. 2)
    """
    if result.is_error or not result.data.get("results"):
        return result.message

    lines = [result.message, ""]
    for index, chapter in enumerate(result.data["results"], start=1):
        lines.append(f"{index}. BOOK: {chapter['book_title']}")
        lines.append(f"   CHAPTER: {chapter['chapter_title']}")
        lines.append("")

        for match_index, match in enumerate(chapter["matches"], start=1):
            lines.append(
                f"   RESULT {match_index} (Relevance Score: {match['score']:g}):"
            )
            lines.append(f"   CITATION: {match['citation']}")
            lines.append(f"   TOPICS: {', '.join(match['topics'])}")
            lines.append(f'   CONTENT: "{match["snippet"]}"')
            lines.extend(_format_references(match["page_references"], "   "))
            for image in match.get("images", []):
                lines.append(f"   IMAGE: page {image['page']} ({image['source_path']})")
            lines.append("")

    return "\n".join(lines).rstrip()


def format_section_text(result: OperationResult) -> str:
    """Format the chunks returned for a section lookup."""
    if result.is_error or not result.data.get("sections"):
        return result.message

    lines = [result.message, f"CONTEXT LEVEL: {result.data['context_level']}", ""]
    for index, section in enumerate(result.data["sections"], start=1):
        lines.append(f"=== CONTENT {index} ===")
        lines.append(f"CITATION: {section['citation']}")
        lines.append(f"TOPICS: {', '.join(section['topics'])}")
        lines.append("")
        lines.append(section["text"])
        lines.append("")
        lines.extend(_format_references(section["page_references"], ""))

    return "\n".join(lines).rstrip()


def format_text_slice(result: OperationResult) -> str:
    """Format a chapter text slice with its position and continuation hint."""
    if result.is_error:
        return result.message

    data = result.data
    lines = [
        result.message,
        f"CITATION: {data['citation']}",
        (
            f"POSITION: Characters {data['start_chars']}-{data['end_chars']} "
            f"of {data['text_length']} total"
        ),
        f"TOTAL PAGES: {data['total_pages']}",
        f"EXTRACTED: {data['extracted_at']}",
        "",
        "CONTENT:",
        data["text"],
    ]
    if data["next_start_chars"] is not None:
        lines.append("")
        lines.append(f"[Content continues for {data['remaining_chars']} more characters...]")
        lines.append(f"[To see more content, use start_chars={data['next_start_chars']}]")

    return "\n".join(lines)


def format_visual_text(result: OperationResult) -> str:
    """Format page images (paths and context, not image data)."""
    if result.is_error or not result.data.get("images"):
        return result.message

    data = result.data
    lines = [result.message]
    if data.get("topic_context"):
        lines.append(f"TOPIC CONTEXT: {data['topic_context']}")
    if data.get("requested_pages"):
        lines.append(
            f"REQUESTED PAGES: {', '.join(str(p) for p in data['requested_pages'])}"
        )
    lines.append("")

    for image in data["images"]:
        lines.append(f"=== PAGE {image['page']} ===")
        lines.append(f"FILE: {image['source_path']}")
        lines.append(f"SIZE: {image['size']}")
        if "text_context" in image:
            lines.append(f'TEXT CONTEXT: "{image["text_context"]}"')
            lines.append(f"TOPICS: {', '.join(image['topics'])}")
        lines.append("")

    return "\n".join(lines).rstrip()
