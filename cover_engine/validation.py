"""Data models using Pydantic.

This module defines:
- BookSpecification, the immutable input of every computation
- Derived geometry models (Dimensions, BleedMeasurement, PanelRect, CoverPanel)
- Range checks mirroring the host form's validation
"""

from typing import Literal

from PIL import Image
from pydantic import BaseModel, ConfigDict, Field

from cover_engine.config import (
    MAX_COVER_SCALE,
    MAX_PAGE_COUNT,
    MIN_COVER_SCALE,
    MIN_PAGE_COUNT,
)

BindingType = Literal["hardcover", "softcover"]
PanelKind = Literal["back", "spine", "front"]
FormatName = Literal[
    "A4",
    "A5",
    "A6",
    "A4_landscape",
    "A5_landscape",
    "17x24",
    "15.5x22",
    "21x21",
    "21x28",
    "13x19",
    "custom",
]
PaperType = Literal[
    "80g_recycling",
    "80g_offset",
    "100g_offset",
    "120g_offset",
    "160g_offset",
    "80g_volume_1_5",
    "90g_volume_1_8",
    "100g_art_matt",
    "100g_art_gloss",
    "135g_art_matt",
    "135g_art_gloss",
    "170g_art_matt",
    "170g_art_gloss",
]


class CustomFormat(BaseModel):
    """Explicit trim size for the custom format (millimeters)."""

    model_config = ConfigDict(frozen=True)

    width: float | None = Field(default=None, description="Trim width in millimeters")
    height: float | None = Field(default=None, description="Trim height in millimeters")


class BookSpecification(BaseModel):
    """Physical specification of a book.

    Note:
        Only types are enforced. Page count (20-800) and scale factors
        (1.0-1.2) are validated by the host; out-of-range values still
        compute, see check_specification().
    """

    model_config = ConfigDict(frozen=True)

    binding_type: BindingType
    format: FormatName
    paper_type: PaperType
    page_count: int = Field(description="Number of interior pages")
    custom_format: CustomFormat | None = Field(
        default=None, description="Trim size used when format is 'custom'"
    )
    scale_front: float = Field(default=1.0, description="Front panel zoom factor")
    scale_back: float = Field(default=1.0, description="Back panel zoom factor")

    @property
    def is_hardcover(self) -> bool:
        return self.binding_type == "hardcover"


class Dimensions(BaseModel):
    """Derived cover sheet geometry in millimeters."""

    model_config = ConfigDict(frozen=True)

    spine_width: float
    cover_width: float
    cover_height: float


class BleedMeasurement(BaseModel):
    """Bleed margin applied symmetrically on each axis (millimeters)."""

    model_config = ConfigDict(frozen=True)

    horizontal: float
    vertical: float


class PanelRect(BaseModel):
    """Panel rectangle in sheet coordinates (top-left origin, millimeters)."""

    model_config = ConfigDict(frozen=True)

    kind: PanelKind
    x: float
    y: float
    width: float
    height: float
    scale: float = 1.0

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


class CoverPanel(PanelRect):
    """A placed panel together with the image drawn into it."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    image: Image.Image = Field(exclude=True)

    @property
    def id(self) -> str:
        """Stable identity, equal to the panel kind."""
        return self.kind

    def geometry(self) -> PanelRect:
        """Rectangle without the image reference."""
        return PanelRect(
            kind=self.kind, x=self.x, y=self.y, width=self.width, height=self.height, scale=self.scale
        )


class SpineGuides(BaseModel):
    """Spine edge positions used for the separator guide lines."""

    model_config = ConfigDict(frozen=True)

    left_x: float
    right_x: float
    spine_width: float
    sheet_height: float


class BleedStatus(BaseModel):
    """Whether each outer bleed strip carries printed content."""

    top: bool = False
    bottom: bool = False
    left: bool = False
    right: bool = False

    def missing_edges(self) -> list[str]:
        """Names of the edges whose bleed area is blank."""
        return [edge for edge in ("top", "bottom", "left", "right") if not getattr(self, edge)]


def check_specification(spec: BookSpecification) -> list[str]:
    """Check a specification against the ranges the host form enforces.

    Args:
        spec: Book specification to check

    Returns:
        List of human-readable issues, empty if the specification is in range

    Note:
        The engine never rejects out-of-range input; this is for hosts that
        want to show the issue before rendering.
    """
    issues: list[str] = []

    if not MIN_PAGE_COUNT <= spec.page_count <= MAX_PAGE_COUNT:
        issues.append(
            f"Page count must be {MIN_PAGE_COUNT}-{MAX_PAGE_COUNT}, got {spec.page_count}"
        )

    for name, value in (("front", spec.scale_front), ("back", spec.scale_back)):
        if not MIN_COVER_SCALE <= value <= MAX_COVER_SCALE:
            issues.append(
                f"{name.capitalize()} scale must be {MIN_COVER_SCALE}-{MAX_COVER_SCALE}, got {value}"
            )

    if spec.format == "custom":
        custom = spec.custom_format or CustomFormat()
        if not custom.width:
            issues.append("Custom format requires a width")
        if not custom.height:
            issues.append("Custom format requires a height")

    return issues
