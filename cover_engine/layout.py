"""Panel placement within the cover sheet.

This module handles:
- Splitting the safe area into back | spine | front slots
- Applying the front/back zoom factors while keeping the spine edge flush
- Emitting CoverPanels only for panels that have artwork
- Spine guide positions for the preview overlay
"""

import logging
from collections.abc import Mapping

from PIL import Image

from cover_engine.config import PANEL_KINDS
from cover_engine.validation import (
    BleedMeasurement,
    CoverPanel,
    Dimensions,
    PanelKind,
    PanelRect,
    SpineGuides,
)

logger = logging.getLogger(__name__)


def _safe_area(dimensions: Dimensions, bleed: BleedMeasurement) -> tuple[float, float, float]:
    """Return (safe_width, safe_height, side_width) in millimeters."""
    safe_width = dimensions.cover_width - 2 * bleed.horizontal
    safe_height = dimensions.cover_height - 2 * bleed.vertical
    side_width = (safe_width - dimensions.spine_width) / 2
    return safe_width, safe_height, side_width


def compute_panel_rects(
    dimensions: Dimensions,
    bleed: BleedMeasurement,
    scale_front: float = 1.0,
    scale_back: float = 1.0,
) -> dict[PanelKind, PanelRect]:
    """Compute the rectangle of every cover panel.

    Args:
        dimensions: Cover sheet dimensions
        bleed: Bleed margins for the binding type
        scale_front: Zoom factor of the front panel
        scale_back: Zoom factor of the back panel

    Returns:
        Dict with "back", "spine" and "front" rectangles in sheet millimeters

    Note:
        - The spine is never scaled and never moves with the zoom factors
        - A scaled back panel grows leftwards, its right edge stays on the spine
        - A scaled front panel grows rightwards, its left edge stays on the spine
        - Scaled panels grow equally up and down around the nominal slot
        - Scaling only changes what is drawn, never the printed trim geometry
    """
    _, safe_height, side_width = _safe_area(dimensions, bleed)
    spine_x = bleed.horizontal + side_width

    back_width = side_width * scale_back
    back_height = safe_height * scale_back
    front_width = side_width * scale_front
    front_height = safe_height * scale_front

    return {
        "back": PanelRect(
            kind="back",
            x=spine_x - back_width,
            y=bleed.vertical - (back_height - safe_height) / 2,
            width=back_width,
            height=back_height,
            scale=scale_back,
        ),
        "spine": PanelRect(
            kind="spine",
            x=spine_x,
            y=bleed.vertical,
            width=dimensions.spine_width,
            height=safe_height,
        ),
        "front": PanelRect(
            kind="front",
            x=spine_x + dimensions.spine_width,
            y=bleed.vertical - (front_height - safe_height) / 2,
            width=front_width,
            height=front_height,
            scale=scale_front,
        ),
    }


def place_panels(
    dimensions: Dimensions,
    bleed: BleedMeasurement,
    scale_front: float,
    scale_back: float,
    sources: Mapping[str, Image.Image | None],
) -> dict[PanelKind, CoverPanel]:
    """Place the panels that have artwork.

    Args:
        dimensions: Cover sheet dimensions
        bleed: Bleed margins for the binding type
        scale_front: Zoom factor of the front panel
        scale_back: Zoom factor of the back panel
        sources: Drawable image per panel kind; missing or None means no artwork

    Returns:
        Dict of CoverPanels in back, spine, front order, holding 0-3 entries
    """
    rects = compute_panel_rects(dimensions, bleed, scale_front, scale_back)

    panels: dict[PanelKind, CoverPanel] = {}
    for kind in PANEL_KINDS:
        image = sources.get(kind)
        if image is None:
            continue
        rect = rects[kind]
        panels[kind] = CoverPanel(**rect.model_dump(), image=image)
        logger.debug(
            f"Placed {kind}: x={rect.x:.2f} y={rect.y:.2f} w={rect.width:.2f} h={rect.height:.2f}mm"
        )

    return panels


def spine_guides(dimensions: Dimensions, bleed: BleedMeasurement) -> SpineGuides:
    """Positions of the spine's left and right edges across the full sheet."""
    _, _, side_width = _safe_area(dimensions, bleed)
    left_x = bleed.horizontal + side_width
    return SpineGuides(
        left_x=left_x,
        right_x=left_x + dimensions.spine_width,
        spine_width=dimensions.spine_width,
        sheet_height=dimensions.cover_height,
    )
