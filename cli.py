"""Command-line interface for the book cover engine.

Usage:
    # Geometry only
    python cli.py dimensions --binding=hardcover --format=A4 --paper=135g_art_matt --pages=100

    # Preview with guides
    python cli.py preview out/preview.png --binding=softcover --format=A5 --pages=40 \
        --front=front.jpg --spine=spine.png --back=back.jpg

    # Production PDF from one combined back/spine/front PDF
    python cli.py export out/cover.pdf --format=A4 --pages=100 --combined=cover.pdf
"""

import asyncio
import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click
from pydantic import ValidationError

from cover_engine.config import (
    DEFAULT_BACKGROUND,
    EXPORT_DPI,
    FORMAT_DIMENSIONS,
    PAPER_CALIPER_MM,
)
from cover_engine.dimensions import bleed_for, compute_dimensions, format_multiplier
from cover_engine.errors import CoverEngineError
from cover_engine.export import write_pdf
from cover_engine.layout import compute_panel_rects
from cover_engine.session import CoverSession
from cover_engine.sources import CoverFiles, UploadedFile
from cover_engine.validation import BookSpecification, CustomFormat, check_specification

# Configure root logger
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


def specification_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the book specification options shared by every command."""
    options = [
        click.option("--binding", default="hardcover", type=click.Choice(["hardcover", "softcover"]), help="Binding type"),
        click.option("--format", "format_name", default="A4", type=click.Choice([*FORMAT_DIMENSIONS, "custom"]), help="Trim format"),
        click.option("--custom-width", type=float, default=None, help="Trim width in mm (custom format)"),
        click.option("--custom-height", type=float, default=None, help="Trim height in mm (custom format)"),
        click.option("--paper", default="80g_offset", type=click.Choice(list(PAPER_CALIPER_MM)), help="Paper stock"),
        click.option("--pages", default=100, type=int, help="Interior page count"),
        click.option("--scale-front", default=1.0, type=float, help="Front panel zoom (1.0-1.2)"),
        click.option("--scale-back", default=1.0, type=float, help="Back panel zoom (1.0-1.2)"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def artwork_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach artwork and rendering options for the preview/export commands."""
    options = [
        click.option("--front", type=click.Path(exists=True, dir_okay=False), help="Front cover image or PDF"),
        click.option("--spine", type=click.Path(exists=True, dir_okay=False), help="Spine image or PDF"),
        click.option("--back", type=click.Path(exists=True, dir_okay=False), help="Back cover image or PDF"),
        click.option("--combined", type=click.Path(exists=True, dir_okay=False), help="3-page PDF ordered back, spine, front"),
        click.option("--background", default=DEFAULT_BACKGROUND, help="Background color"),
        click.option("--log-file", type=click.Path(dir_okay=False), default=None, help="Also write DEBUG logs here"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def build_specification(
    binding: str,
    format_name: str,
    custom_width: float | None,
    custom_height: float | None,
    paper: str,
    pages: int,
    scale_front: float,
    scale_back: float,
) -> BookSpecification:
    """Build a BookSpecification from CLI options, warning about out-of-range values."""
    custom = None
    if format_name == "custom":
        custom = CustomFormat(width=custom_width, height=custom_height)
    try:
        spec = BookSpecification(
            binding_type=binding,
            format=format_name,
            paper_type=paper,
            page_count=pages,
            custom_format=custom,
            scale_front=scale_front,
            scale_back=scale_back,
        )
    except ValidationError as e:
        raise click.ClickException(f"Invalid specification: {e}") from e

    for issue in check_specification(spec):
        click.echo(f"  ⚠ {issue}", err=True)
    return spec


def build_files(front: str | None, spine: str | None, back: str | None, combined: str | None) -> CoverFiles:
    """Read artwork files from disk."""
    def read(path: str | None) -> UploadedFile | None:
        return UploadedFile.from_path(path) if path else None

    return CoverFiles(front=read(front), spine=read(spine), back=read(back), combined=read(combined))


def attach_log_file(log_file: str | None) -> None:
    if not log_file:
        return
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    logging.getLogger().addHandler(file_handler)
    logging.getLogger("cover_engine").setLevel(logging.DEBUG)


def report_failures(failures: dict[str, CoverEngineError]) -> None:
    for kind, error in failures.items():
        click.echo(f"  ⚠ {kind}: {error}", err=True)


@click.group()
def cli() -> None:
    """Book Cover Engine - print-ready cover geometry and export."""
    pass


@cli.command()
@specification_options
def dimensions(**options: Any) -> None:
    """Print the cover sheet geometry for a book specification."""
    spec = build_specification(**options)
    dims = compute_dimensions(spec)
    bleed = bleed_for(spec.is_hardcover)
    rects = compute_panel_rects(dims, bleed, spec.scale_front, spec.scale_back)

    click.echo(f"📐 {spec.binding_type} {spec.format}, {spec.page_count} pages on {spec.paper_type}")
    click.echo(f"  Spine width:  {dims.spine_width:.2f}mm")
    click.echo(f"  Cover sheet:  {dims.cover_width:.2f} x {dims.cover_height:.2f}mm")
    click.echo(f"  Bleed:        {bleed.horizontal}mm horizontal, {bleed.vertical}mm vertical")
    for kind, rect in rects.items():
        click.echo(
            f"  {kind:<6} x={rect.x:8.2f}  y={rect.y:7.2f}  w={rect.width:7.2f}  h={rect.height:7.2f}mm"
        )
    click.echo(f"  Price multiplier: {format_multiplier(spec.format)}")


@cli.command()
@click.argument("output_path", type=click.Path(dir_okay=False))
@specification_options
@artwork_options
@click.option("--dpi", default=None, type=float, help="Preview resolution (default 96, 72 constrained)")
@click.option("--constrained", is_flag=True, help="Render as on a phone/tablet (lower DPI, no guides)")
def preview(
    output_path: str,
    front: str | None,
    spine: str | None,
    back: str | None,
    combined: str | None,
    background: str,
    log_file: str | None,
    dpi: float | None,
    constrained: bool,
    **options: Any,
) -> None:
    """Render a preview PNG with measurement guides."""
    attach_log_file(log_file)
    spec = build_specification(**options)
    files = build_files(front, spine, back, combined)

    click.echo("🖼️  Rendering preview...")
    session = CoverSession(background=background, preview_dpi=dpi, constrained_device=constrained)
    try:
        result = asyncio.run(session.refresh(spec, files))
    except (CoverEngineError, ValueError) as e:
        raise click.ClickException(str(e)) from e
    if result is None:
        raise click.ClickException("Preview was superseded")

    report_failures(result.failures)

    output_path_obj = Path(output_path)
    output_path_obj.parent.mkdir(parents=True, exist_ok=True)
    result.surface.image.save(output_path_obj)
    result.surface.close()

    click.echo(f"✓ {len(result.panels)} panels drawn, {len(result.failures)} failed")
    click.echo(f"📁 Preview saved to: {output_path_obj}")


@cli.command()
@click.argument("output_path", type=click.Path(dir_okay=False))
@specification_options
@artwork_options
@click.option("--dpi", default=EXPORT_DPI, type=float, help="Export resolution")
def export(
    output_path: str,
    front: str | None,
    spine: str | None,
    back: str | None,
    combined: str | None,
    background: str,
    log_file: str | None,
    dpi: float,
    **options: Any,
) -> None:
    """Export the print-ready single-page cover PDF."""
    attach_log_file(log_file)
    spec = build_specification(**options)
    files = build_files(front, spine, back, combined)

    click.echo(f"🖨️  Exporting cover at {dpi:g} DPI...")
    session = CoverSession(background=background, export_dpi=dpi)
    try:
        result = asyncio.run(session.export(spec, files))
    except (CoverEngineError, ValueError) as e:
        raise click.ClickException(str(e)) from e

    report_failures(result.failures)
    missing = result.bleed_status.missing_edges()
    if missing:
        click.echo(f"  ⚠ Bleed area not filled: {', '.join(missing)}", err=True)

    path = write_pdf(result.pdf, output_path)
    click.echo(
        f"✓ {result.dimensions.cover_width:.1f} x {result.dimensions.cover_height:.1f}mm cover"
    )
    click.echo(f"📁 PDF saved to: {path}")


if __name__ == "__main__":
    cli()
