"""Uploaded artwork normalization.

This module handles:
- Describing uploaded files (bitmap images or PDFs) independent of the host
- Selecting the PDF page for a panel (back/spine/front page order)
- Decoding bitmaps with Pillow and rasterizing PDF pages with PyMuPDF
- Scoped release of document handles and decoded bitmaps

Loading is asynchronous with explicit suspension points after the document
is opened and after the page is rasterized, so several panels can load
cooperatively on one event loop.
"""

import asyncio
import io
import logging
import mimetypes
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType

import fitz  # type: ignore[import-untyped]  # PyMuPDF lacks type stubs
from PIL import Image, UnidentifiedImageError

from cover_engine.config import PANEL_KINDS, PDF_PAGE_ORDER, PDF_RASTER_ZOOM
from cover_engine.coordinates import rasterize_pdf_page
from cover_engine.errors import (
    PageIndexOutOfRangeError,
    SourceDecodeError,
    UnsupportedSourceTypeError,
)
from cover_engine.validation import PanelKind

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"


@dataclass(frozen=True)
class UploadedFile:
    """An uploaded artwork file as handed over by the host."""

    name: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def is_pdf(self) -> bool:
        return self.content_type == PDF_CONTENT_TYPE

    @property
    def is_image(self) -> bool:
        return self.content_type.startswith("image/")

    @classmethod
    def from_path(cls, path: str | Path) -> "UploadedFile":
        """Read a file from disk, guessing its MIME type from the name.

        Raises:
            FileNotFoundError: If the file does not exist
        """
        path_obj = Path(path)
        if not path_obj.exists():
            raise FileNotFoundError(f"Artwork not found: {path}")
        content_type, _ = mimetypes.guess_type(path_obj.name)
        return cls(
            name=path_obj.name,
            content_type=content_type or "application/octet-stream",
            data=path_obj.read_bytes(),
        )


@dataclass(frozen=True)
class CoverFiles:
    """Artwork uploaded for one cover.

    Either per-panel files, or one combined PDF whose pages are ordered
    back, spine, front. Per-panel files take precedence over the combined PDF.
    """

    back: UploadedFile | None = None
    spine: UploadedFile | None = None
    front: UploadedFile | None = None
    combined: UploadedFile | None = None


def resolve_panel_files(files: CoverFiles) -> dict[PanelKind, UploadedFile]:
    """Map each panel kind to the file its artwork comes from.

    Args:
        files: Uploaded files for the cover

    Returns:
        Dict with an entry for every panel that has artwork
    """
    resolved: dict[PanelKind, UploadedFile] = {}
    for kind in PANEL_KINDS:
        uploaded = getattr(files, kind) or files.combined
        if uploaded is not None:
            resolved[kind] = uploaded
    return resolved


class LoadedSource:
    """Drawable raster for one panel.

    Use as a context manager; the decoded bitmap is released on exit and
    must not be used after one render cycle.
    """

    def __init__(self, panel_kind: PanelKind, image: Image.Image, file_name: str) -> None:
        self.panel_kind = panel_kind
        self.file_name = file_name
        self._image: Image.Image | None = image
        self.natural_size: tuple[int, int] = image.size

    @property
    def image(self) -> Image.Image:
        if self._image is None:
            raise RuntimeError(f"{self.panel_kind} source was already released")
        return self._image

    @property
    def released(self) -> bool:
        return self._image is None

    def release(self) -> None:
        """Free the decoded bitmap. Safe to call more than once."""
        if self._image is not None:
            self._image.close()
            self._image = None

    def __enter__(self) -> "LoadedSource":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()


@contextmanager
def _open_pdf(uploaded: UploadedFile, panel_kind: PanelKind) -> Iterator["fitz.Document"]:
    """Open a PDF from memory and guarantee the document handle is closed."""
    try:
        doc = fitz.open(stream=uploaded.data, filetype="pdf")
    except Exception as e:
        raise SourceDecodeError(panel_kind, uploaded.name, uploaded.size, str(e)) from e
    try:
        yield doc
    finally:
        doc.close()


def _decode_bitmap(uploaded: UploadedFile, panel_kind: PanelKind) -> Image.Image:
    """Decode bitmap bytes into a fully loaded RGB or RGBA image."""
    try:
        with Image.open(io.BytesIO(uploaded.data)) as img:
            img.load()
            mode = "RGBA" if "A" in img.getbands() or "transparency" in img.info else "RGB"
            return img.convert(mode)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise SourceDecodeError(panel_kind, uploaded.name, uploaded.size, str(e)) from e


async def _rasterize_pdf(
    uploaded: UploadedFile, panel_kind: PanelKind, page_index: int, zoom: float
) -> Image.Image:
    """Rasterize the requested 1-indexed page of an uploaded PDF."""
    with _open_pdf(uploaded, panel_kind) as doc:
        page_count = len(doc)
        logger.debug(f"{uploaded.name} has {page_count} pages; using page {page_index} for {panel_kind}")
        if page_count == 0:
            raise SourceDecodeError(panel_kind, uploaded.name, uploaded.size, "document has no pages")
        if not 1 <= page_index <= page_count:
            raise PageIndexOutOfRangeError(panel_kind, page_index, page_count)

        await asyncio.sleep(0)

        try:
            image = rasterize_pdf_page(doc[page_index - 1], zoom)
        except Exception as e:
            raise SourceDecodeError(panel_kind, uploaded.name, uploaded.size, str(e)) from e

    try:
        await asyncio.sleep(0)
    except asyncio.CancelledError:
        image.close()
        raise
    return image


async def load_source(
    uploaded: UploadedFile,
    panel_kind: PanelKind,
    page_index: int | None = None,
    zoom: float = PDF_RASTER_ZOOM,
) -> LoadedSource:
    """Turn an uploaded file into a drawable raster for one panel.

    Args:
        uploaded: Uploaded bitmap or PDF
        panel_kind: Panel the artwork is for ("back", "spine" or "front")
        page_index: 1-indexed PDF page; defaults to PDF_PAGE_ORDER[panel_kind]
        zoom: PDF supersampling factor relative to 72 DPI

    Returns:
        LoadedSource holding the decoded image and its natural pixel size

    Raises:
        PageIndexOutOfRangeError: If the PDF has fewer pages than requested
        UnsupportedSourceTypeError: If the file is neither an image nor a PDF
        SourceDecodeError: If the bytes cannot be decoded
    """
    if uploaded.is_pdf:
        index = page_index if page_index is not None else PDF_PAGE_ORDER[panel_kind]
        image = await _rasterize_pdf(uploaded, panel_kind, index, zoom)
    elif uploaded.is_image:
        image = _decode_bitmap(uploaded, panel_kind)
    else:
        raise UnsupportedSourceTypeError(panel_kind, uploaded.content_type)

    source = LoadedSource(panel_kind, image, uploaded.name)
    logger.debug(
        f"Loaded {panel_kind} from {uploaded.name}: {source.natural_size[0]}x{source.natural_size[1]}px"
    )
    return source
