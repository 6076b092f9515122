"""Raster rendering of a placed cover.

This module handles:
- Allocating raster surfaces sized for a cover sheet at a given resolution
- Drawing the background and panel images with Pillow
- Drawing the non-printing preview guides (labels, trim lines, spine
  separators, center crosshairs)
- Checking whether the outer bleed strips carry content

Rendering is a pure drawing step: every rectangle comes from the layout
module and is only converted from millimeters to pixels here.
"""

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field

from PIL import Image, ImageColor, ImageDraw, ImageFont

from cover_engine.config import (
    BLEED_CHECK_MM,
    GUIDE_COLOR,
    GUIDE_DASH_MM,
    GUIDE_HEIGHT_LABEL_INSET_MM,
    GUIDE_LABEL_SIZE_MM,
    GUIDE_SPINE_LABEL_OFFSET_MM,
)
from cover_engine.coordinates import surface_size_px
from cover_engine.errors import CanvasContextUnavailableError
from cover_engine.validation import BleedStatus, CoverPanel, Dimensions, PanelRect, SpineGuides

logger = logging.getLogger(__name__)


@dataclass
class RasterSurface:
    """Pixel buffer plus its resolution in device pixels per millimeter."""

    image: Image.Image
    px_per_mm: float
    closed: bool = field(default=False, init=False)

    @property
    def size_px(self) -> tuple[int, int]:
        return self.image.size

    def to_px(self, mm: float) -> int:
        return round(mm * self.px_per_mm)

    def close(self) -> None:
        """Free the pixel buffer. Safe to call more than once."""
        if not self.closed:
            self.image.close()
            self.closed = True


def create_surface(dimensions: Dimensions, px_per_mm: float) -> RasterSurface:
    """Allocate an RGB surface covering the whole cover sheet.

    Args:
        dimensions: Cover sheet dimensions
        px_per_mm: Device pixels per millimeter

    Returns:
        RasterSurface of ceil(cover_width * px_per_mm) x ceil(cover_height * px_per_mm)

    Raises:
        CanvasContextUnavailableError: If the size is not drawable or cannot be allocated
    """
    width_px, height_px = surface_size_px(dimensions.cover_width, dimensions.cover_height, px_per_mm)
    if width_px <= 0 or height_px <= 0:
        raise CanvasContextUnavailableError(f"Cannot create a {width_px}x{height_px}px surface")

    try:
        image = Image.new("RGB", (width_px, height_px))
    except (MemoryError, ValueError) as e:
        raise CanvasContextUnavailableError(
            f"Failed to allocate {width_px}x{height_px}px surface: {e}"
        ) from e

    logger.debug(f"Created {width_px}x{height_px}px surface at {px_per_mm:.3f}px/mm")
    return RasterSurface(image=image, px_per_mm=px_per_mm)


def _pixel_box(surface: RasterSurface, rect: PanelRect) -> tuple[int, int, int, int]:
    """Round panel edges to pixels; adjacent panels share the same edge pixel."""
    return (
        surface.to_px(rect.x),
        surface.to_px(rect.y),
        surface.to_px(rect.right),
        surface.to_px(rect.bottom),
    )


def _draw_panel_image(surface: RasterSurface, panel: CoverPanel) -> None:
    """Stretch the panel image to exactly fill its rectangle."""
    left, top, right, bottom = _pixel_box(surface, panel)
    width_px = right - left
    height_px = bottom - top
    if width_px <= 0 or height_px <= 0:
        logger.debug(f"Skipping {panel.kind}: {width_px}x{height_px}px after rounding")
        return

    resized = panel.image.resize((width_px, height_px), Image.Resampling.LANCZOS)
    try:
        mask = resized if resized.mode == "RGBA" else None
        surface.image.paste(resized, (left, top), mask)
    finally:
        resized.close()


def _label_font(surface: RasterSurface) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    size = max(1, surface.to_px(GUIDE_LABEL_SIZE_MM))
    return ImageFont.load_default(size=size)


def _draw_label(
    surface: RasterSurface,
    text: str,
    x_mm: float,
    y_mm: float,
    rotate: bool = False,
) -> None:
    """Draw a label centered on (x_mm, y_mm), optionally rotated 90° counter-clockwise."""
    font = _label_font(surface)
    center = (surface.to_px(x_mm), surface.to_px(y_mm))

    if not rotate:
        ImageDraw.Draw(surface.image).text(center, text, fill=GUIDE_COLOR, font=font, anchor="mm")
        return

    left, top, right, bottom = font.getbbox(text)
    label = Image.new("RGBA", (max(1, right - left), max(1, bottom - top)), (0, 0, 0, 0))
    ImageDraw.Draw(label).text((-left, -top), text, fill=GUIDE_COLOR, font=font)
    rotated = label.rotate(90, expand=True)
    surface.image.paste(
        rotated,
        (center[0] - rotated.width // 2, center[1] - rotated.height // 2),
        rotated,
    )
    label.close()
    rotated.close()


def _dashed_line(
    draw: ImageDraw.ImageDraw,
    start: tuple[int, int],
    end: tuple[int, int],
    dash_px: int,
    fill: str,
) -> None:
    """Draw a horizontal or vertical dashed line with equal dash and gap."""
    x0, y0 = start
    x1, y1 = end
    length = max(abs(x1 - x0), abs(y1 - y0))
    if length == 0:
        return
    step_x = (x1 - x0) / length
    step_y = (y1 - y0) / length
    dash_px = max(1, dash_px)
    for offset in range(0, length, 2 * dash_px):
        seg_end = min(offset + dash_px, length)
        draw.line(
            [
                (round(x0 + step_x * offset), round(y0 + step_y * offset)),
                (round(x0 + step_x * seg_end), round(y0 + step_y * seg_end)),
            ],
            fill=fill,
            width=1,
        )


def _draw_guides(surface: RasterSurface, rect: PanelRect, spine: SpineGuides | None) -> None:
    """Draw the preview overlay for one panel."""
    draw = ImageDraw.Draw(surface.image)
    left, top, right, bottom = _pixel_box(surface, rect)
    center_x_mm = rect.x + rect.width / 2
    center_y_mm = rect.y + rect.height / 2

    # Measurements
    _draw_label(surface, f"{round(rect.width)}mm", center_x_mm, center_y_mm)
    if rect.kind == "back":
        _draw_label(
            surface,
            f"{round(rect.height)}mm",
            rect.x + GUIDE_HEIGHT_LABEL_INSET_MM,
            center_y_mm,
            rotate=True,
        )

    # Trim lines
    draw.rectangle([left, top, max(left, right - 1), max(top, bottom - 1)], outline=GUIDE_COLOR, width=1)

    # Spine separators
    if rect.kind != "spine" and spine is not None:
        sheet_bottom = surface.to_px(spine.sheet_height)
        for edge_mm in (spine.left_x, spine.right_x):
            edge_px = surface.to_px(edge_mm)
            draw.line([(edge_px, 0), (edge_px, sheet_bottom)], fill=GUIDE_COLOR, width=1)
        if rect.kind == "front":
            _draw_label(
                surface,
                f"{round(spine.spine_width)}mm",
                (spine.left_x + spine.right_x) / 2,
                rect.y + GUIDE_SPINE_LABEL_OFFSET_MM,
            )

    # Center crosshair
    dash_px = surface.to_px(GUIDE_DASH_MM)
    center_x = surface.to_px(center_x_mm)
    center_y = surface.to_px(center_y_mm)
    _dashed_line(draw, (center_x, top), (center_x, bottom), dash_px, GUIDE_COLOR)
    _dashed_line(draw, (left, center_y), (right, center_y), dash_px, GUIDE_COLOR)


def render(
    surface: RasterSurface,
    background: str,
    panels: Iterable[CoverPanel],
    guides: bool = False,
    spine_guides: SpineGuides | None = None,
    empty_panels: Iterable[PanelRect] = (),
) -> RasterSurface:
    """Draw a placed cover onto a surface.

    Args:
        surface: Target surface, fully overwritten
        background: Background color (any Pillow color string, e.g. "#ffffff")
        panels: Placed panels with images; 0-3 entries
        guides: Draw the non-printing preview overlay. Never set for export.
        spine_guides: Spine edge positions for the separator lines
        empty_panels: Rectangles of panels whose artwork failed to load;
            only their guides are drawn

    Returns:
        The same surface, for chaining

    Raises:
        ValueError: If the background color cannot be parsed
    """
    fill = ImageColor.getrgb(background)[:3]
    surface.image.paste(fill, (0, 0, *surface.image.size))

    panels = list(panels)
    for panel in panels:
        _draw_panel_image(surface, panel)

    if guides:
        for rect in [*panels, *empty_panels]:
            _draw_guides(surface, rect, spine_guides)

    logger.debug(f"Rendered {len(panels)} panels (guides={'on' if guides else 'off'})")
    return surface


def _has_content(image: Image.Image, box: tuple[int, int, int, int]) -> bool:
    """True if any pixel in the box is not pure white."""
    with image.crop(box) as strip:
        return any(low < 255 for low, _ in strip.getextrema())


def check_bleed_coverage(surface: RasterSurface, bleed_mm: float = BLEED_CHECK_MM) -> BleedStatus:
    """Check whether the outer bleed strips of a rendered cover carry content.

    Args:
        surface: Rendered surface (guides off)
        bleed_mm: Strip width to inspect along each edge

    Returns:
        BleedStatus with True for every edge whose strip is not blank white

    Note:
        A white background with artwork that stops short of the sheet edge
        leaves white borders after trimming.
    """
    width, height = surface.image.size
    bleed_px = min(math.ceil(bleed_mm * surface.px_per_mm), width, height)
    if bleed_px <= 0:
        return BleedStatus()

    return BleedStatus(
        top=_has_content(surface.image, (0, 0, width, bleed_px)),
        bottom=_has_content(surface.image, (0, height - bleed_px, width, height)),
        left=_has_content(surface.image, (0, 0, bleed_px, height)),
        right=_has_content(surface.image, (width - bleed_px, 0, width, height)),
    )
