"""Production PDF export.

This module handles:
- Sizing a single PDF page to the cover sheet in points
- Embedding a rendered surface as one full-bleed image with ReportLab
"""

import io
import logging
from pathlib import Path

from reportlab.lib.pagesizes import landscape, portrait
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from cover_engine.config import EXPORT_JPEG_QUALITY
from cover_engine.coordinates import mm_to_pt
from cover_engine.rendering import RasterSurface
from cover_engine.validation import Dimensions

logger = logging.getLogger(__name__)


def page_size_pt(dimensions: Dimensions) -> tuple[float, float]:
    """PDF page size for a cover sheet.

    Args:
        dimensions: Cover sheet dimensions

    Returns:
        Tuple of (width_pt, height_pt), landscape if wider than tall
    """
    size = (mm_to_pt(dimensions.cover_width), mm_to_pt(dimensions.cover_height))
    return landscape(size) if size[0] > size[1] else portrait(size)


def export_pdf(surface: RasterSurface, dimensions: Dimensions) -> bytes:
    """Generate a single-page print PDF from a rendered surface.

    Args:
        surface: Surface rendered with guides off at export resolution
        dimensions: Cover sheet dimensions the surface was rendered for

    Returns:
        PDF document bytes

    Note:
        - The page is exactly cover_width x cover_height millimeters
        - The surface is stretched over the whole page; the sub-pixel slack
          from rounding the surface size up is absorbed here
    """
    width_pt, height_pt = page_size_pt(dimensions)

    # Encode once as JPEG; ReportLab embeds JPEG data without re-encoding
    encoded = io.BytesIO()
    surface.image.save(encoded, "JPEG", quality=EXPORT_JPEG_QUALITY)
    encoded.seek(0)

    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=(width_pt, height_pt))
    c.setTitle("Book cover")
    c.drawImage(
        ImageReader(encoded),
        0,
        0,
        width=width_pt,
        height=height_pt,
        preserveAspectRatio=False,
    )
    c.showPage()
    c.save()

    pdf_bytes = buffer.getvalue()
    logger.info(
        f"Exported {dimensions.cover_width:.1f}x{dimensions.cover_height:.1f}mm cover "
        f"({surface.size_px[0]}x{surface.size_px[1]}px, {len(pdf_bytes)} bytes)"
    )
    return pdf_bytes


def write_pdf(pdf_bytes: bytes, output_path: str) -> Path:
    """Write exported PDF bytes to disk, creating parent directories."""
    output_path_obj = Path(output_path)
    output_path_obj.parent.mkdir(parents=True, exist_ok=True)
    output_path_obj.write_bytes(pdf_bytes)
    return output_path_obj
