"""Unit conversion and PDF rasterization utilities.

This module handles:
- DPI conversions (millimeters → pixels, DPI → pixels per millimeter)
- Point conversions (millimeters ↔ PDF points)
- Surface sizing for a cover sheet at a given resolution
- Single-page PDF rasterization using PyMuPDF
"""

import math

import fitz  # type: ignore[import-untyped]  # PyMuPDF lacks type stubs
from PIL import Image

from cover_engine.config import MM_PER_INCH, MM_TO_PT


def mm_to_px(mm: float, dpi: float) -> float:
    """Convert a sheet measurement to device pixels at a print or screen resolution.

    Args:
        mm: Length on the cover sheet in millimeters
        dpi: Target resolution in dots per inch

    Returns:
        Length in (fractional) pixels
    """
    return (mm / MM_PER_INCH) * dpi


def dpi_to_px_per_mm(dpi: float) -> float:
    """Device pixels per millimeter at the given resolution."""
    return mm_to_px(1.0, dpi)


def mm_to_pt(mm: float) -> float:
    """Convert millimeters to PDF points (1mm = 2.83465pt)."""
    return mm * MM_TO_PT


def pt_to_mm(pt: float) -> float:
    """Convert PDF points to millimeters."""
    return pt / MM_TO_PT


def surface_size_px(width_mm: float, height_mm: float, px_per_mm: float) -> tuple[int, int]:
    """Pixel size of a surface covering a sheet.

    Args:
        width_mm: Sheet width in millimeters
        height_mm: Sheet height in millimeters
        px_per_mm: Device pixels per millimeter

    Returns:
        Tuple of (width_px, height_px), rounded up so the sheet is fully covered
    """
    return math.ceil(width_mm * px_per_mm), math.ceil(height_mm * px_per_mm)


def rasterize_pdf_page(page: "fitz.Page", zoom: float) -> Image.Image:
    """Rasterize a single PDF page to an RGB Pillow image.

    Args:
        page: Open PyMuPDF page
        zoom: Scale relative to the page's native 72 DPI

    Returns:
        RGB image of the rendered page

    Note:
        Pages are vector content; rendering once above native resolution
        avoids blur when the panel is later scaled up for export.
    """
    mat = fitz.Matrix(zoom, zoom)
    pix = page.get_pixmap(matrix=mat, alpha=False)
    return Image.frombytes("RGB", (pix.width, pix.height), pix.samples)
