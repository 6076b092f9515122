"""Cover sheet dimension calculation.

This module handles:
- Trim size resolution from the format table (with the custom-format fallback)
- Spine width from page count and paper caliper
- Overall cover sheet size per binding type
- Bleed margins, derived from the same wrap allowance constants

All functions are pure: identical input always yields identical output.
"""

import logging

from cover_engine.config import (
    CUSTOM_FORMAT_FALLBACK_MM,
    FORMAT_DIMENSIONS,
    FORMAT_MULTIPLIERS,
    HARDCOVER_HINGE_MM,
    HARDCOVER_WRAP_HEIGHT_MM,
    HARDCOVER_WRAP_WIDTH_MM,
    PAPER_CALIPER_MM,
    SOFTCOVER_BLEED_MM,
)
from cover_engine.errors import InvalidFormatInputError
from cover_engine.validation import BleedMeasurement, BookSpecification, CustomFormat, Dimensions

logger = logging.getLogger(__name__)


def wrap_allowance(is_hardcover: bool) -> tuple[float, float]:
    """Extra sheet material added to the flat trim layout.

    Args:
        is_hardcover: True for hardcover binding

    Returns:
        Tuple of (horizontal_mm, vertical_mm) summed over both edges of each axis
    """
    if is_hardcover:
        return HARDCOVER_WRAP_WIDTH_MM, HARDCOVER_WRAP_HEIGHT_MM
    return 2 * SOFTCOVER_BLEED_MM, 2 * SOFTCOVER_BLEED_MM


def bleed_for(is_hardcover: bool) -> BleedMeasurement:
    """Bleed margin applied on each edge of each axis.

    Args:
        is_hardcover: True for hardcover binding

    Returns:
        BleedMeasurement in millimeters: hardcover 14.5/13, softcover 3/3

    Note:
        Bleed is exactly half the wrap allowance because it is applied on
        both edges. Change the allowance constants, never these values.
    """
    horizontal, vertical = wrap_allowance(is_hardcover)
    return BleedMeasurement(horizontal=horizontal / 2, vertical=vertical / 2)


def resolve_trim_size(spec: BookSpecification, strict: bool = False) -> tuple[float, float]:
    """Resolve the trim width and height of a book.

    Args:
        spec: Book specification
        strict: Raise instead of falling back when custom dimensions are missing

    Returns:
        Tuple of (width_mm, height_mm)

    Raises:
        InvalidFormatInputError: If strict and the custom format lacks width/height

    Note:
        Missing custom fields default to A4 (210 x 297mm), one field at a time.
    """
    if spec.format != "custom":
        format_dims = FORMAT_DIMENSIONS[spec.format]
        return format_dims["width"], format_dims["height"]

    custom = spec.custom_format or CustomFormat()
    missing = [name for name in ("width", "height") if not getattr(custom, name)]
    if missing:
        if strict:
            raise InvalidFormatInputError(missing)
        logger.warning(
            f"Custom format missing {', '.join(missing)}; falling back to "
            f"{CUSTOM_FORMAT_FALLBACK_MM['width']}x{CUSTOM_FORMAT_FALLBACK_MM['height']}mm"
        )

    width = custom.width or CUSTOM_FORMAT_FALLBACK_MM["width"]
    height = custom.height or CUSTOM_FORMAT_FALLBACK_MM["height"]
    return width, height


def compute_spine_width(page_count: int, paper_type: str, is_hardcover: bool) -> float:
    """Spine width in millimeters.

    Hardcover adds the hinge/board material absorbed into the spine block.
    """
    spine_width = page_count * PAPER_CALIPER_MM[paper_type]
    if is_hardcover:
        spine_width += HARDCOVER_HINGE_MM
    return spine_width


def compute_dimensions(spec: BookSpecification) -> Dimensions:
    """Compute the overall cover sheet geometry.

    Args:
        spec: Book specification

    Returns:
        Dimensions with spine_width, cover_width, cover_height in millimeters

    Note:
        cover_width = 2 * trim_width + spine_width + horizontal allowance
        cover_height = trim_height + vertical allowance
        (hardcover 29/26mm, softcover 6/6mm)
    """
    trim_width, trim_height = resolve_trim_size(spec)
    spine_width = compute_spine_width(spec.page_count, spec.paper_type, spec.is_hardcover)
    horizontal, vertical = wrap_allowance(spec.is_hardcover)

    dimensions = Dimensions(
        spine_width=spine_width,
        cover_width=2 * trim_width + spine_width + horizontal,
        cover_height=trim_height + vertical,
    )
    logger.debug(
        f"{spec.binding_type} {spec.format} {spec.page_count}p: spine={dimensions.spine_width:.2f}mm, "
        f"cover={dimensions.cover_width:.2f}x{dimensions.cover_height:.2f}mm"
    )
    return dimensions


def format_multiplier(format_name: str) -> float:
    """Price multiplier of a trim format.

    Raises:
        KeyError: If the format is unknown
    """
    if format_name not in FORMAT_MULTIPLIERS:
        raise KeyError(f"Unknown format: {format_name}")
    return FORMAT_MULTIPLIERS[format_name]
