"""Page rasterization to compressed JPEG images.

Each page is rendered with PyMuPDF, shrunk with Pillow to fit the
configured bounds (never enlarged) and saved as a JPEG next to the other
pages of its chapter:

    <images_dir>/<book>/<chapter-stem>/page-<N>.jpg
"""

import base64
import io
from pathlib import Path

import fitz  # PyMuPDF
from PIL import Image

from climbing_kb_common import get_logger
from climbing_kb_contracts import ChapterRef, PageImage

logger = get_logger(__name__)

RENDER_DPI = 200
JPEG_QUALITY = 85
MAX_WIDTH = 1200
MAX_HEIGHT = 1600


def _compress_page(png_bytes: bytes, quality: int, max_size: tuple[int, int]) -> bytes:
    with Image.open(io.BytesIO(png_bytes)) as image:
        rgb = image.convert("RGB")
        rgb.thumbnail(max_size)
        buffer = io.BytesIO()
        rgb.save(buffer, format="JPEG", quality=quality, optimize=True)
    return buffer.getvalue()


def page_image_dir(images_dir: Path, ref: ChapterRef) -> Path:
    return images_dir / ref.book / ref.stem


def render_page_images(
    pdf_bytes: bytes,
    ref: ChapterRef,
    images_dir: Path,
    quality: int = JPEG_QUALITY,
    max_width: int = MAX_WIDTH,
    max_height: int = MAX_HEIGHT,
    dpi: int = RENDER_DPI,
) -> tuple[list[PageImage], list[str]]:
    """Render every page of a PDF to JPEG.

    Args:
        pdf_bytes: Raw PDF content
        ref: Chapter the pages belong to (determines the output directory)
        images_dir: Root directory for rendered pages
        quality: JPEG quality (1-100)
        max_width: Bounding width; larger pages are scaled down
        max_height: Bounding height; larger pages are scaled down
        dpi: Rasterization resolution

    Returns:
        Tuple of (rendered page images in page order, warnings). A page that
        fails to render is skipped and reported as a warning.

    Example:
        >>> images, warnings = render_page_images(data, ref, Path("images"))
        >>> images[0].source_path
        'images/Climbing_Anchors/01_Anchors/page-1.jpg'
    """
    images: list[PageImage] = []
    warnings: list[str] = []

    try:
        doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    except Exception as e:
        warnings.append(f"render: failed to open PDF: {e}")
        return images, warnings

    output_dir = page_image_dir(images_dir, ref)

    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        if doc.page_count == 0:
            warnings.append("render: PDF has no pages")

        for page_index in range(doc.page_count):
            page_num = page_index + 1
            try:
                pixmap = doc.load_page(page_index).get_pixmap(dpi=dpi)
                jpeg = _compress_page(
                    pixmap.tobytes("png"), quality, (max_width, max_height)
                )
                path = output_dir / f"page-{page_num}.jpg"
                path.write_bytes(jpeg)
            except Exception as e:
                warnings.append(f"render: page {page_num} skipped: {e}")
                continue

            images.append(
                PageImage(
                    page=page_num,
                    encoded_bytes=base64.b64encode(jpeg).decode("ascii"),
                    size_bytes=len(jpeg),
                    source_path=str(path),
                )
            )
    finally:
        doc.close()

    logger.info(
        "pages_rendered",
        chapter=str(ref),
        rendered=len(images),
        skipped=len(warnings),
    )

    return images, warnings
