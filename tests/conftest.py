"""Shared fixtures: synthetic artwork generated on the fly.

Bitmaps are drawn with Pillow and multi-page PDFs with ReportLab, so tests
never depend on binary files checked into the repository.
"""

import io
from collections.abc import Callable

import pytest
from PIL import Image
from reportlab.pdfgen import canvas

from cover_engine.sources import UploadedFile
from cover_engine.validation import BookSpecification

RED = (255, 0, 0)
GREEN = (0, 255, 0)
BLUE = (0, 0, 255)


def make_image_bytes(
    color: tuple[int, ...] = RED,
    size: tuple[int, int] = (300, 400),
    fmt: str = "PNG",
    mode: str = "RGB",
) -> bytes:
    """Encode a solid-color image."""
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, fmt)
    return buffer.getvalue()


def make_pdf_bytes(
    colors: list[tuple[int, int, int]],
    page_size_pt: tuple[float, float] = (200, 300),
) -> bytes:
    """Build a PDF with one solid-color page per entry in colors."""
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=page_size_pt)
    for r, g, b in colors:
        c.setFillColorRGB(r / 255, g / 255, b / 255)
        c.rect(0, 0, page_size_pt[0], page_size_pt[1], fill=1, stroke=0)
        c.showPage()
    c.save()
    return buffer.getvalue()


@pytest.fixture
def image_file() -> Callable[..., UploadedFile]:
    """Factory for uploaded bitmap files."""

    def factory(
        color: tuple[int, ...] = RED,
        size: tuple[int, int] = (300, 400),
        mode: str = "RGB",
        name: str = "artwork.png",
    ) -> UploadedFile:
        return UploadedFile(name=name, content_type="image/png", data=make_image_bytes(color, size, mode=mode))

    return factory


@pytest.fixture
def pdf_file() -> Callable[..., UploadedFile]:
    """Factory for uploaded PDF files."""

    def factory(
        colors: list[tuple[int, int, int]],
        page_size_pt: tuple[float, float] = (200, 300),
        name: str = "cover.pdf",
    ) -> UploadedFile:
        return UploadedFile(
            name=name, content_type="application/pdf", data=make_pdf_bytes(colors, page_size_pt)
        )

    return factory


@pytest.fixture
def hardcover_a4() -> BookSpecification:
    """Hardcover A4, 100 pages of 135g art matt (0.058mm caliper)."""
    return BookSpecification(
        binding_type="hardcover", format="A4", paper_type="135g_art_matt", page_count=100
    )


@pytest.fixture
def softcover_a5() -> BookSpecification:
    """Softcover A5, 40 pages of 80g offset (0.055mm caliper)."""
    return BookSpecification(
        binding_type="softcover", format="A5", paper_type="80g_offset", page_count=40
    )
