"""Climbing KB CLI - Main entry point.

Provides the `climbing-kb` command-line interface.

Usage:
    climbing-kb list
    climbing-kb extract Climbing_Anchors "Ch03_Chapter 3. Anchors.pdf"
    climbing-kb search "anchor equalization" --max-results 3 --format json
    climbing-kb section Climbing_Anchors "Ch03_Chapter 3. Anchors.pdf" belay --level brief
"""

from enum import Enum
from pathlib import Path
from typing import Callable, Optional

import typer

from climbing_kb_api import ChapterService
from climbing_kb_common import configure_logging, get_settings
from climbing_kb_contracts import ContextLevel, OperationResult

from climbing_kb_cli.formatters import (
    format_chapters_text,
    format_extraction_text,
    format_result_json,
    format_search_text,
    format_section_text,
    format_text_slice,
    format_visual_text,
)


class OutputFormat(str, Enum):
    """Output format options."""

    text = "text"
    json = "json"


# Create the Typer app
app = typer.Typer(
    name="climbing-kb",
    help="Search and read climbing book chapters extracted from PDFs.",
    add_completion=False,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    books_dir: Optional[Path] = typer.Option(
        None, "--books-dir", help="Directory of book folders (overrides settings)"
    ),
    cache_dir: Optional[Path] = typer.Option(
        None, "--cache-dir", help="Extraction cache directory (overrides settings)"
    ),
    render_images: Optional[bool] = typer.Option(
        None,
        "--render-images/--no-render-images",
        help="Render page images during extraction",
    ),
):
    """Configure settings and logging shared by all commands."""
    settings = get_settings()
    overrides = {
        key: value
        for key, value in {
            "books_dir": books_dir,
            "cache_dir": cache_dir,
            "render_page_images": render_images,
        }.items()
        if value is not None
    }
    # Keep page images beside an overridden cache unless images_dir was set
    if cache_dir is not None and settings.images_dir == settings.cache_dir / "images":
        overrides["images_dir"] = cache_dir / "images"
    if overrides:
        settings = settings.model_copy(update=overrides)

    configure_logging(settings.log_level, json_output=settings.log_format == "json")
    ctx.obj = ChapterService(settings)


def _emit(
    result: OperationResult,
    format: OutputFormat,
    text_formatter: Callable[[OperationResult], str],
) -> None:
    if format == OutputFormat.json:
        typer.echo(format_result_json(result))
    else:
        typer.echo(text_formatter(result))

    if result.is_error:
        raise typer.Exit(code=1)


FORMAT_OPTION = typer.Option(
    OutputFormat.text, "--format", "-f", help="Output format: text or json"
)


@app.command(name="list")
def list_command(ctx: typer.Context, format: OutputFormat = FORMAT_OPTION):
    """List books and chapters with extraction status."""
    _emit(ctx.obj.list_chapters(), format, format_chapters_text)


@app.command()
def extract(
    ctx: typer.Context,
    book: str = typer.Argument(..., help="Book directory name"),
    chapter: str = typer.Argument(..., help="Chapter PDF filename"),
    force: bool = typer.Option(
        False, "--force", help="Re-extract even if the chapter is cached"
    ),
    format: OutputFormat = FORMAT_OPTION,
):
    """Extract a chapter PDF into the cache."""
    result = ctx.obj.extract_chapter(book, chapter, force_reextract=force)
    _emit(result, format, format_extraction_text)


@app.command()
def search(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Search terms"),
    max_results: int = typer.Option(
        3, "--max-results", "-n", help="Chapters to return (1-5)"
    ),
    include_images: bool = typer.Option(
        False, "--images", help="Include page images attached to matches"
    ),
    format: OutputFormat = FORMAT_OPTION,
):
    """Search extracted chapters."""
    result = ctx.obj.search_content(
        query, max_results=max_results, include_images=include_images
    )
    _emit(result, format, format_search_text)


@app.command()
def section(
    ctx: typer.Context,
    book: str = typer.Argument(..., help="Book directory name"),
    chapter: str = typer.Argument(..., help="Chapter PDF filename"),
    topic: str = typer.Argument(..., help="Topic to look up"),
    level: ContextLevel = typer.Option(
        ContextLevel.DETAILED, "--level", "-l", help="brief, detailed or comprehensive"
    ),
    format: OutputFormat = FORMAT_OPTION,
):
    """Show the chunks of a chapter relevant to a topic."""
    result = ctx.obj.get_chapter_section(book, chapter, topic, context_level=level)
    _emit(result, format, format_section_text)


@app.command()
def text(
    ctx: typer.Context,
    book: str = typer.Argument(..., help="Book directory name"),
    chapter: str = typer.Argument(..., help="Chapter PDF filename"),
    start: int = typer.Option(0, "--start", "-s", min=0, help="Start character"),
    length: int = typer.Option(1000, "--length", min=0, help="Characters to show"),
    force: bool = typer.Option(False, "--force", help="Re-extract before reading"),
    format: OutputFormat = FORMAT_OPTION,
):
    """Read a slice of a chapter's text (extracting it if needed)."""
    result = ctx.obj.get_chapter_text(
        book, chapter, start_chars=start, length=length, force_reextract=force
    )
    _emit(result, format, format_text_slice)


@app.command()
def visual(
    ctx: typer.Context,
    book: str = typer.Argument(..., help="Book directory name"),
    chapter: str = typer.Argument(..., help="Chapter PDF filename"),
    pages: Optional[list[int]] = typer.Option(
        None, "--page", "-p", help="Page number (repeatable)"
    ),
    topic: Optional[str] = typer.Option(
        None, "--topic", "-t", help="Only pages relevant to this topic"
    ),
    format: OutputFormat = FORMAT_OPTION,
):
    """Show rendered page images of an extracted chapter."""
    result = ctx.obj.get_visual_content(
        book, chapter, page_numbers=pages or None, topic_context=topic
    )
    _emit(result, format, format_visual_text)


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
