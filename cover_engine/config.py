"""Centralized configuration constants for the cover engine."""

# Resolution settings
PREVIEW_DPI = 96  # Interactive preview on desktop screens
PREVIEW_DPI_CONSTRAINED = 72  # Preview on phones/tablets
EXPORT_DPI = 300  # Production raster resolution
PDF_RASTER_ZOOM = 2.0  # Supersampling applied to PDF artwork pages

# Unit conversion
MM_PER_INCH = 25.4
MM_TO_PT = 2.83465  # 1mm in PDF points

# Physical-process constants (confirm with the print vendor before changing)
HARDCOVER_WRAP_WIDTH_MM = 29.0  # Board turn-in left + right plus hinge gap
HARDCOVER_WRAP_HEIGHT_MM = 26.0  # Board turn-in top + bottom
HARDCOVER_HINGE_MM = 6.0  # Board material absorbed into the spine block
SOFTCOVER_BLEED_MM = 3.0  # Flat trim bleed per edge

# Nominal input ranges, enforced by the host form
MIN_PAGE_COUNT = 20
MAX_PAGE_COUNT = 800
MIN_COVER_SCALE = 1.0
MAX_COVER_SCALE = 1.2

# Fallback trim size for custom formats without explicit dimensions (A4)
CUSTOM_FORMAT_FALLBACK_MM = {"width": 210.0, "height": 297.0}

# Trim formats
FORMAT_DIMENSIONS = {
    "A4": {"width": 210.0, "height": 297.0},
    "A5": {"width": 148.0, "height": 210.0},
    "A6": {"width": 105.0, "height": 148.0},
    "A4_landscape": {"width": 297.0, "height": 210.0},
    "A5_landscape": {"width": 210.0, "height": 148.0},
    "17x24": {"width": 170.0, "height": 240.0},
    "15.5x22": {"width": 155.0, "height": 220.0},
    "21x21": {"width": 210.0, "height": 210.0},
    "21x28": {"width": 210.0, "height": 280.0},
    "13x19": {"width": 130.0, "height": 190.0},
}

# Paper stock caliper (mm per sheet)
PAPER_CALIPER_MM = {
    "80g_recycling": 0.05,
    "80g_offset": 0.055,
    "100g_offset": 0.065,
    "120g_offset": 0.08,
    "160g_offset": 0.098,
    "80g_volume_1_5": 0.061,
    "90g_volume_1_8": 0.0783,
    "100g_art_matt": 0.042,
    "100g_art_gloss": 0.036,
    "135g_art_matt": 0.058,
    "135g_art_gloss": 0.052,
    "170g_art_matt": 0.07,
    "170g_art_gloss": 0.064,
}

# Price multipliers per trim format
FORMAT_MULTIPLIERS = {
    "A4": 1.2,
    "A5": 1.0,
    "A6": 0.8,
    "A4_landscape": 1.2,
    "A5_landscape": 1.0,
    "17x24": 1.1,
    "15.5x22": 1.0,
    "21x21": 1.1,
    "21x28": 1.15,
    "13x19": 0.9,
    "custom": 1.3,
}

# Page order of a combined cover PDF. Compatibility-critical: production files
# are always back/spine/front and nothing in the file marks it.
PDF_PAGE_ORDER = {
    "back": 1,
    "spine": 2,
    "front": 3,
}
PANEL_KINDS = ("back", "spine", "front")

# Rendering defaults
DEFAULT_BACKGROUND = "#ffffff"
GUIDE_COLOR = "#2563eb"
GUIDE_LABEL_SIZE_MM = 2.0
GUIDE_DASH_MM = 4.0
GUIDE_HEIGHT_LABEL_INSET_MM = 12.0
GUIDE_SPINE_LABEL_OFFSET_MM = 20.0
BLEED_CHECK_MM = 3.0
EXPORT_JPEG_QUALITY = 95
