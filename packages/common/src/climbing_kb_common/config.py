"""Configuration management using Pydantic BaseSettings.

Loads configuration from environment variables (prefix ``CLIMBING_KB_``)
with defaults suited to running from a checkout. Override via environment
variables or a .env file.

Usage:
    from climbing_kb_common.config import get_settings

    settings = get_settings()
    print(settings.books_dir)
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment.

    Attributes:
        books_dir: Directory holding one sub-directory of chapter PDFs per book
        cache_dir: Directory for extracted chapter records
        images_dir: Directory for rendered page images (default: cache_dir/images)
        chunk_size: Characters per chunk
        context_window: Width of search result snippets in characters
        min_text_chars: Below this the primary extractor result is rejected
        chars_per_page: Page estimate used when no page structure is available
        max_images_per_chunk: Cap on images attached to one chunk
        render_page_images: Rasterize pages during extraction
        image_quality: JPEG quality for rendered pages
        image_max_width: Max rendered page width in pixels
        image_max_height: Max rendered page height in pixels
        metadata_boost: Seed chunk scores from chapter sidecar metadata
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Log format (json or console)
    """

    model_config = SettingsConfigDict(
        env_prefix="CLIMBING_KB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Library layout
    books_dir: Path = Field(
        default=Path("Books"),
        description="Directory containing book directories of chapter PDFs",
    )
    cache_dir: Path = Field(
        default=Path("extracted_content"),
        description="Directory for cached extraction records",
    )
    images_dir: Optional[Path] = Field(
        default=None,
        description="Directory for rendered page images",
    )

    # Extraction
    chunk_size: int = Field(default=150_000, gt=0)
    context_window: int = Field(default=500, gt=0)
    min_text_chars: int = Field(default=100, ge=0)
    chars_per_page: int = Field(default=3000, gt=0)

    # Page images
    render_page_images: bool = Field(
        default=False,
        description="Rasterize every page to JPEG during extraction",
    )
    max_images_per_chunk: int = Field(default=3, ge=0)
    image_quality: int = Field(default=85, ge=1, le=95)
    image_max_width: int = Field(default=1200, gt=0)
    image_max_height: int = Field(default=1600, gt=0)

    # Search
    metadata_boost: bool = Field(
        default=True,
        description="Seed chunk scores with sidecar metadata relevance",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="console", description="json or console")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return upper

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        valid_formats = {"json", "console"}
        lower = v.lower()
        if lower not in valid_formats:
            raise ValueError(f"log_format must be one of {valid_formats}")
        return lower

    @model_validator(mode="after")
    def default_images_dir(self) -> "Settings":
        """Place page images under the cache directory unless overridden."""
        if self.images_dir is None:
            self.images_dir = self.cache_dir / "images"
        return self


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance.

    Settings are loaded once and cached for the lifetime of the process.
    Call get_settings.cache_clear() to reload.
    """
    return Settings()
