"""Error taxonomy for the cover engine.

Geometry computation cannot fail by construction, so every error here comes
from input resolution, source decoding, or surface allocation:

- InvalidFormatInputError: custom format without dimensions (strict mode only)
- SourceError subclasses: per-panel failures, never fatal to sibling panels
- CanvasContextUnavailableError: no surface to draw on, fatal to the render
"""


class CoverEngineError(Exception):
    """Base class for all cover engine errors."""


class InvalidFormatInputError(CoverEngineError):
    """Custom trim format requested without width/height."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(f"Custom format is missing: {', '.join(missing)}")


class SourceError(CoverEngineError):
    """A panel's artwork could not be turned into a drawable."""

    def __init__(self, panel_kind: str, message: str) -> None:
        self.panel_kind = panel_kind
        super().__init__(f"{panel_kind} cover: {message}")


class PageIndexOutOfRangeError(SourceError):
    """Requested PDF page does not exist in the uploaded document."""

    def __init__(self, panel_kind: str, page_index: int, page_count: int) -> None:
        self.page_index = page_index
        self.page_count = page_count
        super().__init__(
            panel_kind,
            f"PDF only has {page_count} pages, but page {page_index} was requested",
        )


class UnsupportedSourceTypeError(SourceError):
    """Uploaded file is neither a bitmap image nor a PDF."""

    def __init__(self, panel_kind: str, content_type: str) -> None:
        self.content_type = content_type
        super().__init__(
            panel_kind,
            f"Unsupported file type '{content_type}'. Please upload an image or PDF file.",
        )


class SourceDecodeError(SourceError):
    """Bitmap or PDF bytes could not be decoded."""

    def __init__(self, panel_kind: str, file_name: str, file_size: int, cause: str) -> None:
        self.file_name = file_name
        self.file_size = file_size
        super().__init__(
            panel_kind,
            f"failed to decode '{file_name}' ({file_size} bytes): {cause}",
        )


class CanvasContextUnavailableError(CoverEngineError):
    """Raster surface could not be allocated."""
