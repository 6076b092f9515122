"""Request-versioned render session.

This module handles:
- Running the full pipeline: specification → dimensions → panel loads →
  placement → drawing → (export) PDF
- Loading all panels of one request concurrently and waiting for every one
  of them before drawing a frame
- Discarding results of requests superseded by a newer one
- Releasing decoded sources on success, failure, supersession and cancellation
"""

import asyncio
import logging
from contextlib import ExitStack
from dataclasses import dataclass, field

from cover_engine.config import (
    DEFAULT_BACKGROUND,
    EXPORT_DPI,
    PREVIEW_DPI,
    PREVIEW_DPI_CONSTRAINED,
)
from cover_engine.coordinates import dpi_to_px_per_mm
from cover_engine.dimensions import bleed_for, compute_dimensions
from cover_engine.errors import SourceError
from cover_engine.export import export_pdf
from cover_engine.layout import compute_panel_rects, place_panels, spine_guides
from cover_engine.rendering import RasterSurface, check_bleed_coverage, create_surface, render
from cover_engine.sources import CoverFiles, LoadedSource, load_source, resolve_panel_files
from cover_engine.validation import (
    BleedMeasurement,
    BleedStatus,
    BookSpecification,
    Dimensions,
    PanelKind,
    PanelRect,
)

logger = logging.getLogger(__name__)


@dataclass
class RenderResult:
    """One consistent frame: geometry, drawn surface and per-panel failures."""

    generation: int
    dimensions: Dimensions
    bleed: BleedMeasurement
    panels: dict[PanelKind, PanelRect]
    surface: RasterSurface
    failures: dict[PanelKind, SourceError] = field(default_factory=dict)


@dataclass
class ExportResult:
    """Production PDF plus the diagnostics gathered while exporting it."""

    pdf: bytes
    dimensions: Dimensions
    bleed_status: BleedStatus
    failures: dict[PanelKind, SourceError] = field(default_factory=dict)


def _release_finished(tasks: dict[PanelKind, "asyncio.Task[LoadedSource]"]) -> None:
    """Release sources of tasks that completed successfully."""
    for task in tasks.values():
        if task.done() and not task.cancelled() and task.exception() is None:
            task.result().release()


async def load_panels(
    files: CoverFiles,
) -> tuple[dict[PanelKind, LoadedSource], dict[PanelKind, SourceError]]:
    """Load every panel that has artwork, concurrently.

    Args:
        files: Uploaded files for the cover

    Returns:
        Tuple of (loaded sources, per-panel failures). Panels without
        artwork appear in neither.

    Raises:
        asyncio.CancelledError: If cancelled; every decoded source is released first

    Note:
        The caller owns the returned sources and must release them.
    """
    tasks = {
        kind: asyncio.create_task(load_source(uploaded, kind))
        for kind, uploaded in resolve_panel_files(files).items()
    }
    if not tasks:
        return {}, {}

    try:
        await asyncio.wait(tasks.values())
    except asyncio.CancelledError:
        for task in tasks.values():
            task.cancel()
        await asyncio.gather(*tasks.values(), return_exceptions=True)
        _release_finished(tasks)
        raise

    loaded: dict[PanelKind, LoadedSource] = {}
    failures: dict[PanelKind, SourceError] = {}
    for kind, task in tasks.items():
        if task.cancelled():
            _release_finished(tasks)
            raise asyncio.CancelledError(f"Loading {kind} cover was cancelled")
        error = task.exception()
        if error is None:
            loaded[kind] = task.result()
        elif isinstance(error, SourceError):
            logger.warning(f"Failed to load {kind} cover: {error}")
            failures[kind] = error
        else:
            _release_finished(tasks)
            raise error

    return loaded, failures


class CoverSession:
    """Renders previews and exports for a changing cover configuration.

    Every refresh() takes a new generation number. When a refresh finishes
    loading after a newer one has started, its results are released and
    dropped, so a slow load can never paint over a newer configuration.

    The session owns the surface of `current`; it is closed when a newer
    refresh replaces it.
    """

    def __init__(
        self,
        background: str = DEFAULT_BACKGROUND,
        preview_dpi: float | None = None,
        export_dpi: float = EXPORT_DPI,
        constrained_device: bool = False,
    ) -> None:
        """Initialize the session.

        Args:
            background: Background color behind and between the panels
            preview_dpi: Preview resolution; defaults by device class
            export_dpi: Production resolution
            constrained_device: Phone/tablet host; lowers the preview
                resolution and skips the guide overlay
        """
        self.background = background
        self.preview_dpi = preview_dpi or (PREVIEW_DPI_CONSTRAINED if constrained_device else PREVIEW_DPI)
        self.export_dpi = export_dpi
        self.show_guides = not constrained_device
        self.current: RenderResult | None = None
        self._generation = 0

    @property
    def generation(self) -> int:
        """Most recently requested generation."""
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def cancel(self) -> None:
        """Invalidate every in-flight refresh (teardown or input change)."""
        self._generation += 1
        logger.debug(f"Cancelled requests up to generation {self._generation}")

    def _draw(
        self,
        spec: BookSpecification,
        dimensions: Dimensions,
        bleed: BleedMeasurement,
        loaded: dict[PanelKind, LoadedSource],
        failures: dict[PanelKind, SourceError],
        dpi: float,
        guides: bool,
    ) -> tuple[RasterSurface, dict[PanelKind, PanelRect]]:
        panels = place_panels(
            dimensions,
            bleed,
            spec.scale_front,
            spec.scale_back,
            {kind: source.image for kind, source in loaded.items()},
        )
        rects = compute_panel_rects(dimensions, bleed, spec.scale_front, spec.scale_back)

        surface = create_surface(dimensions, dpi_to_px_per_mm(dpi))
        render(
            surface,
            self.background,
            panels.values(),
            guides=guides,
            spine_guides=spine_guides(dimensions, bleed),
            empty_panels=[rects[kind] for kind in failures],
        )
        return surface, {kind: panel.geometry() for kind, panel in panels.items()}

    async def refresh(self, spec: BookSpecification, files: CoverFiles) -> RenderResult | None:
        """Render the interactive preview for a configuration.

        Args:
            spec: Book specification
            files: Uploaded artwork

        Returns:
            RenderResult, or None if a newer request superseded this one

        Raises:
            CanvasContextUnavailableError: If the preview surface cannot be allocated
        """
        self._generation += 1
        generation = self._generation

        dimensions = compute_dimensions(spec)
        bleed = bleed_for(spec.is_hardcover)
        loaded, failures = await load_panels(files)

        with ExitStack() as stack:
            for source in loaded.values():
                stack.enter_context(source)

            if not self.is_current(generation):
                logger.debug(f"Discarding generation {generation}; generation {self._generation} is newer")
                return None

            surface, panels = self._draw(
                spec, dimensions, bleed, loaded, failures, self.preview_dpi, self.show_guides
            )

        result = RenderResult(
            generation=generation,
            dimensions=dimensions,
            bleed=bleed,
            panels=panels,
            surface=surface,
            failures=failures,
        )
        previous, self.current = self.current, result
        if previous is not None:
            previous.surface.close()
        logger.info(
            f"Preview {generation}: {len(panels)} panels, {len(failures)} failed, "
            f"{surface.size_px[0]}x{surface.size_px[1]}px"
        )
        return result

    async def export(self, spec: BookSpecification, files: CoverFiles) -> ExportResult:
        """Render at export resolution without guides and build the print PDF.

        Args:
            spec: Book specification
            files: Uploaded artwork

        Returns:
            ExportResult with the PDF bytes, bleed coverage and per-panel failures

        Raises:
            CanvasContextUnavailableError: If the export surface cannot be allocated

        Note:
            Export does not take a preview generation; a host tearing down
            cancels the awaiting task instead.
        """
        dimensions = compute_dimensions(spec)
        bleed = bleed_for(spec.is_hardcover)
        loaded, failures = await load_panels(files)

        with ExitStack() as stack:
            for source in loaded.values():
                stack.enter_context(source)
            surface, _ = self._draw(spec, dimensions, bleed, loaded, failures, self.export_dpi, guides=False)

        try:
            bleed_status = check_bleed_coverage(surface)
            pdf = export_pdf(surface, dimensions)
        finally:
            surface.close()

        missing = bleed_status.missing_edges()
        if missing:
            logger.warning(f"Bleed area not filled on: {', '.join(missing)}")

        return ExportResult(pdf=pdf, dimensions=dimensions, bleed_status=bleed_status, failures=failures)
