"""Unit tests for cover_engine/session.py."""

import asyncio
from collections.abc import Callable

import fitz  # type: ignore[import-untyped]  # PyMuPDF
import pytest
from PIL import Image

from cover_engine.config import PREVIEW_DPI, PREVIEW_DPI_CONSTRAINED
from cover_engine.coordinates import pt_to_mm
from cover_engine.errors import PageIndexOutOfRangeError, SourceDecodeError
from cover_engine.sources import CoverFiles, LoadedSource, UploadedFile
from cover_engine.session import CoverSession, load_panels
from cover_engine.validation import BookSpecification

RED = (255, 0, 0)
GREEN = (0, 255, 0)
BLUE = (0, 0, 255)


@pytest.fixture
def release_counter(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    """Record every LoadedSource.release() call by panel kind."""
    calls: list[str] = []
    original = LoadedSource.release

    def counting_release(self: LoadedSource) -> None:
        calls.append(self.panel_kind)
        original(self)

    monkeypatch.setattr(LoadedSource, "release", counting_release)
    return calls


@pytest.fixture
def three_panels(image_file: Callable[..., UploadedFile]) -> CoverFiles:
    return CoverFiles(
        back=image_file(RED, name="back.png"),
        spine=image_file(GREEN, (40, 400), name="spine.png"),
        front=image_file(BLUE, name="front.png"),
    )


class TestLoadPanels:
    """Tests for load_panels()."""

    def test_no_files(self) -> None:
        assert asyncio.run(load_panels(CoverFiles())) == ({}, {})

    def test_single_page_combined_pdf(self, pdf_file: Callable[..., UploadedFile]) -> None:
        """A one-page combined PDF only has a back cover."""
        loaded, failures = asyncio.run(load_panels(CoverFiles(combined=pdf_file([RED]))))
        try:
            assert list(loaded) == ["back"]
            assert set(failures) == {"spine", "front"}
            assert all(isinstance(error, PageIndexOutOfRangeError) for error in failures.values())
        finally:
            for source in loaded.values():
                source.release()


class TestRefresh:
    """Tests for CoverSession.refresh()."""

    def test_full_refresh(self, hardcover_a4: BookSpecification, three_panels: CoverFiles) -> None:
        session = CoverSession()
        result = asyncio.run(session.refresh(hardcover_a4, three_panels))

        assert result is not None
        assert result.generation == 1
        assert list(result.panels) == ["back", "spine", "front"]
        assert result.failures == {}
        assert result.dimensions.cover_width == pytest.approx(460.8)
        assert session.current is result
        result.surface.close()

    def test_replaced_preview_surface_is_closed(
        self, hardcover_a4: BookSpecification, three_panels: CoverFiles
    ) -> None:
        session = CoverSession(preview_dpi=20)
        first = asyncio.run(session.refresh(hardcover_a4, three_panels))
        second = asyncio.run(session.refresh(hardcover_a4, three_panels))

        assert first is not None and second is not None
        assert first.surface.closed is True
        assert second.surface.closed is False
        assert session.current is second

    def test_sources_released_after_drawing(
        self, hardcover_a4: BookSpecification, three_panels: CoverFiles, release_counter: list[str]
    ) -> None:
        result = asyncio.run(CoverSession().refresh(hardcover_a4, three_panels))
        assert result is not None
        assert sorted(release_counter) == ["back", "front", "spine"]

    def test_partial_failure(
        self, softcover_a5: BookSpecification, pdf_file: Callable[..., UploadedFile]
    ) -> None:
        """Failed panels are reported, the remaining panels still draw."""
        result = asyncio.run(CoverSession().refresh(softcover_a5, CoverFiles(combined=pdf_file([RED]))))

        assert result is not None
        assert list(result.panels) == ["back"]
        assert set(result.failures) == {"spine", "front"}
        assert "only has 1 pages" in str(result.failures["front"])

    def test_oversized_panel_does_not_abort_siblings(
        self,
        hardcover_a4: BookSpecification,
        image_file: Callable[..., UploadedFile],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """An image past Pillow's pixel limit fails alone; the other panels still draw."""
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 10_000)
        files = CoverFiles(
            back=image_file(RED, (50, 50), name="back.png"),
            front=image_file(BLUE, (400, 400), name="front.png"),
        )

        result = asyncio.run(CoverSession().refresh(hardcover_a4, files))

        assert result is not None
        assert list(result.panels) == ["back"]
        assert isinstance(result.failures["front"], SourceDecodeError)

    def test_no_artwork(self, softcover_a5: BookSpecification) -> None:
        result = asyncio.run(CoverSession().refresh(softcover_a5, CoverFiles()))
        assert result is not None
        assert result.panels == {}

    def test_superseded_request_is_discarded(
        self, hardcover_a4: BookSpecification, three_panels: CoverFiles, release_counter: list[str]
    ) -> None:
        """A newer request wins; the older one releases its sources and returns None."""
        session = CoverSession()

        async def scenario():  # type: ignore[no-untyped-def]
            first = asyncio.create_task(session.refresh(hardcover_a4, three_panels))
            await asyncio.sleep(0)
            second = await session.refresh(hardcover_a4, three_panels)
            return await first, second

        first, second = asyncio.run(scenario())

        assert first is None
        assert second is not None
        assert second.generation == 2
        assert session.current is second
        assert len(release_counter) == 6

    def test_cancel_invalidates_in_flight_request(
        self, hardcover_a4: BookSpecification, three_panels: CoverFiles
    ) -> None:
        session = CoverSession()

        async def scenario():  # type: ignore[no-untyped-def]
            pending = asyncio.create_task(session.refresh(hardcover_a4, three_panels))
            await asyncio.sleep(0)
            session.cancel()
            return await pending

        assert asyncio.run(scenario()) is None
        assert session.current is None

    def test_task_cancellation_propagates(
        self,
        hardcover_a4: BookSpecification,
        pdf_file: Callable[..., UploadedFile],
        release_counter: list[str],
    ) -> None:
        session = CoverSession()
        files = CoverFiles(combined=pdf_file([RED, GREEN, BLUE]))

        async def scenario() -> None:
            pending = asyncio.create_task(session.refresh(hardcover_a4, files))
            await asyncio.sleep(0)
            pending.cancel()
            await pending

        with pytest.raises(asyncio.CancelledError):
            asyncio.run(scenario())
        assert session.current is None
        assert len(release_counter) <= 3


class TestSessionDefaults:
    """Device-class defaults."""

    def test_desktop(self) -> None:
        session = CoverSession()
        assert session.preview_dpi == PREVIEW_DPI
        assert session.show_guides is True

    def test_constrained_device(self) -> None:
        session = CoverSession(constrained_device=True)
        assert session.preview_dpi == PREVIEW_DPI_CONSTRAINED
        assert session.show_guides is False

    def test_explicit_dpi(self) -> None:
        assert CoverSession(preview_dpi=150, constrained_device=True).preview_dpi == 150


class TestExport:
    """Tests for CoverSession.export()."""

    def test_pdf_page_matches_sheet(self, hardcover_a4: BookSpecification, three_panels: CoverFiles) -> None:
        result = asyncio.run(CoverSession(export_dpi=30).export(hardcover_a4, three_panels))

        doc = fitz.open(stream=result.pdf, filetype="pdf")
        try:
            assert len(doc) == 1
            rect = doc[0].rect
            assert pt_to_mm(rect.width) == pytest.approx(result.dimensions.cover_width, abs=0.01)
            assert pt_to_mm(rect.height) == pytest.approx(result.dimensions.cover_height, abs=0.01)
        finally:
            doc.close()

    def test_white_background_leaves_bleed_empty(
        self, hardcover_a4: BookSpecification, three_panels: CoverFiles
    ) -> None:
        """Hardcover artwork stops at the wrap allowance, so a white sheet edge shows."""
        result = asyncio.run(CoverSession(export_dpi=30).export(hardcover_a4, three_panels))
        assert result.bleed_status.missing_edges() == ["top", "bottom", "left", "right"]

    def test_colored_background_fills_bleed(
        self, hardcover_a4: BookSpecification, three_panels: CoverFiles
    ) -> None:
        session = CoverSession(background="#102030", export_dpi=30)
        result = asyncio.run(session.export(hardcover_a4, three_panels))
        assert result.bleed_status.missing_edges() == []

    def test_export_does_not_touch_preview_generation(
        self, softcover_a5: BookSpecification, three_panels: CoverFiles
    ) -> None:
        session = CoverSession(export_dpi=30)
        asyncio.run(session.export(softcover_a5, three_panels))
        assert session.generation == 0
        assert session.current is None
