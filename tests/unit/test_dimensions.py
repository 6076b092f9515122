"""Unit tests for cover_engine/dimensions.py."""

import logging
from itertools import product

import pytest

from cover_engine.config import FORMAT_DIMENSIONS, PAPER_CALIPER_MM
from cover_engine.dimensions import (
    bleed_for,
    compute_dimensions,
    compute_spine_width,
    format_multiplier,
    resolve_trim_size,
    wrap_allowance,
)
from cover_engine.errors import InvalidFormatInputError
from cover_engine.validation import BookSpecification, CustomFormat


class TestScenarios:
    """Worked examples from the print vendor's sheet."""

    def test_hardcover_a4_100_pages(self, hardcover_a4: BookSpecification) -> None:
        """Hardcover A4, 100 pages at 0.058mm: 11.8mm spine, 460.8 x 323mm sheet."""
        dims = compute_dimensions(hardcover_a4)
        assert dims.spine_width == pytest.approx(11.8)
        assert dims.cover_width == pytest.approx(460.8)
        assert dims.cover_height == 323.0

    def test_softcover_a5_40_pages(self, softcover_a5: BookSpecification) -> None:
        """Softcover A5, 40 pages at 0.055mm: 2.2mm spine, 304.2 x 216mm sheet."""
        dims = compute_dimensions(softcover_a5)
        assert dims.spine_width == pytest.approx(2.2)
        assert dims.cover_width == pytest.approx(304.2)
        assert dims.cover_height == 216.0


class TestInvariants:
    """Sheet size relations that must hold exactly."""

    @pytest.mark.parametrize(
        "binding,format_name,page_count",
        list(product(["hardcover", "softcover"], FORMAT_DIMENSIONS, [20, 100, 333, 800])),
    )
    def test_cover_size_matches_allowance(self, binding: str, format_name: str, page_count: int) -> None:
        """Width and height equal trim + spine + allowance with exact equality."""
        spec = BookSpecification(
            binding_type=binding, format=format_name, paper_type="90g_volume_1_8", page_count=page_count
        )
        dims = compute_dimensions(spec)
        trim = FORMAT_DIMENSIONS[format_name]
        horizontal, vertical = (29.0, 26.0) if binding == "hardcover" else (6.0, 6.0)

        assert dims.cover_width == 2 * trim["width"] + dims.spine_width + horizontal
        assert dims.cover_height == trim["height"] + vertical

    def test_deterministic(self, hardcover_a4: BookSpecification) -> None:
        """Repeated calls give bit-identical results."""
        assert compute_dimensions(hardcover_a4) == compute_dimensions(hardcover_a4)

    @pytest.mark.parametrize("paper_type", list(PAPER_CALIPER_MM))
    def test_spine_width_per_paper(self, paper_type: str) -> None:
        """Softcover spine is page count times caliper; hardcover adds 6mm."""
        soft = compute_spine_width(200, paper_type, is_hardcover=False)
        hard = compute_spine_width(200, paper_type, is_hardcover=True)
        assert soft == 200 * PAPER_CALIPER_MM[paper_type]
        assert hard == pytest.approx(soft + 6)

    def test_out_of_range_page_count_does_not_crash(self) -> None:
        """Out-of-range input computes nonsense instead of failing."""
        spec = BookSpecification(
            binding_type="softcover", format="A6", paper_type="80g_offset", page_count=-50
        )
        dims = compute_dimensions(spec)
        assert dims.spine_width < 0
        assert dims.cover_width == 2 * 105.0 + dims.spine_width + 6.0


class TestBleed:
    """Tests for bleed_for()."""

    def test_hardcover_bleed(self) -> None:
        bleed = bleed_for(True)
        assert (bleed.horizontal, bleed.vertical) == (14.5, 13.0)

    def test_softcover_bleed(self) -> None:
        bleed = bleed_for(False)
        assert (bleed.horizontal, bleed.vertical) == (3.0, 3.0)

    @pytest.mark.parametrize("is_hardcover", [True, False])
    def test_bleed_is_half_the_allowance(self, is_hardcover: bool) -> None:
        """Bleed on both edges adds up to the wrap allowance."""
        bleed = bleed_for(is_hardcover)
        assert (2 * bleed.horizontal, 2 * bleed.vertical) == wrap_allowance(is_hardcover)


class TestTrimResolution:
    """Tests for resolve_trim_size()."""

    def test_named_format(self) -> None:
        spec = BookSpecification(
            binding_type="softcover", format="21x28", paper_type="80g_offset", page_count=40
        )
        assert resolve_trim_size(spec) == (210.0, 280.0)

    def test_custom_format(self) -> None:
        spec = BookSpecification(
            binding_type="softcover",
            format="custom",
            paper_type="80g_offset",
            page_count=40,
            custom_format=CustomFormat(width=180, height=250),
        )
        assert resolve_trim_size(spec) == (180.0, 250.0)

    def test_custom_without_dimensions_falls_back_to_a4(self, caplog: pytest.LogCaptureFixture) -> None:
        """Missing custom dimensions resolve to exactly 210 x 297mm with a warning."""
        spec = BookSpecification(
            binding_type="softcover", format="custom", paper_type="80g_offset", page_count=40
        )
        with caplog.at_level(logging.WARNING, logger="cover_engine.dimensions"):
            assert resolve_trim_size(spec) == (210.0, 297.0)
        assert "falling back" in caplog.text

        dims = compute_dimensions(spec)
        assert dims.cover_height == 297.0 + 6.0

    def test_custom_partial_fallback(self) -> None:
        """Only the missing field falls back."""
        spec = BookSpecification(
            binding_type="hardcover",
            format="custom",
            paper_type="80g_offset",
            page_count=40,
            custom_format=CustomFormat(width=200),
        )
        assert resolve_trim_size(spec) == (200.0, 297.0)

    def test_strict_mode_raises(self) -> None:
        spec = BookSpecification(
            binding_type="softcover",
            format="custom",
            paper_type="80g_offset",
            page_count=40,
            custom_format=CustomFormat(height=250),
        )
        with pytest.raises(InvalidFormatInputError, match="width") as exc_info:
            resolve_trim_size(spec, strict=True)
        assert exc_info.value.missing == ["width"]


class TestFormatMultiplier:
    """Tests for format_multiplier()."""

    def test_known_formats(self) -> None:
        assert format_multiplier("A4") == 1.2
        assert format_multiplier("13x19") == 0.9
        assert format_multiplier("custom") == 1.3

    def test_unknown_format_raises(self) -> None:
        with pytest.raises(KeyError, match="Unknown format"):
            format_multiplier("B5")
