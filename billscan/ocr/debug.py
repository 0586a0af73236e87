"""
OCR Debug Utilities

Functions for saving annotated debug images and dumping glyph grids.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from PIL import Image, ImageDraw, ImageFont

from .binarize import load_image
from .grid import PixelGrid
from .result import ScanReport

logger = logging.getLogger(__name__)


# Debug settings
DEBUG_DIR = Path("./debug")
MAX_DEBUG_IMAGES = 10

# Distance thresholds for coloring
CLOSE_MATCH = 0.01
FAIR_MATCH = 0.1


def render_grid(grid: PixelGrid, ink: str = ".", background: str = "*") -> str:
    """
    Render a grid as text, one line per pixel row.

    Args:
        grid: Grid to render
        ink: Character for ink pixels
        background: Character for background pixels
    """
    lines = [f"{grid.height} {grid.width}"]
    for row in grid.ink_mask:
        lines.append("".join(ink if cell else background for cell in row))
    return "\n".join(lines)


def get_distance_color(distance: float) -> str:
    """Color name for a glyph match distance."""
    if distance <= CLOSE_MATCH:
        return "green"
    elif distance <= FAIR_MATCH:
        return "orange"
    else:
        return "red"


def save_debug_image(
    image: Union[Image.Image, str, Path],
    report: Optional[ScanReport],
    path: Union[str, Path],
) -> None:
    """
    Save an annotated debug image showing bands and glyph matches.

    Annotations include:
    - Band boundary boxes
    - Glyph boxes colored by match distance
    - Matched labels above each glyph
    - Record summary

    Args:
        image: Original image (PIL image or file path)
        report: Scan result (can be None)
        path: Output file path
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if not isinstance(image, Image.Image):
        image = load_image(image)

    # Create a copy to draw on
    debug_img = image.convert("RGB")
    draw = ImageDraw.Draw(debug_img)

    # Try to load a font, fall back to default
    try:
        font = ImageFont.truetype("arial.ttf", 12)
    except OSError:
        font = ImageFont.load_default()

    if report:
        for readout in report.bands:
            band = readout.band
            draw.rectangle([0, band.top, debug_img.width - 1, band.bottom], outline="blue", width=1)

            top, left = readout.origin
            for glyph in readout.glyphs:
                color = get_distance_color(glyph.distance)
                x0, x1 = left + glyph.box.left, left + glyph.box.right
                draw.rectangle([x0, band.top, x1, band.bottom], outline=color, width=1)
                draw.text((x0, max(0, band.top - 14)), glyph.label or "?", fill=color, font=font)

        record = report.record
        date = f"{record.timestamp:%Y-%m-%d}" if record.timestamp else "None"
        summary = f"Bands: {len(report.bands)}, Amount: {record.amount_cents}, Date: {date}, " \
                  f"Time: {report.processing_time_ms:.1f}ms"
        draw.text((10, 10), summary, fill="blue", font=font)

    debug_img.save(path, "PNG")
    logger.debug(f"Debug image saved: {path}")

    # Cleanup old debug images
    _cleanup_debug_images(path.parent)


def _cleanup_debug_images(debug_dir: Path = DEBUG_DIR) -> None:
    """Remove old debug images, keeping only the most recent MAX_DEBUG_IMAGES."""
    if not debug_dir.exists():
        return

    # Get all debug images sorted by modification time
    debug_files = sorted(
        debug_dir.glob("debug_*.png"),
        key=lambda p: p.stat().st_mtime,
        reverse=True
    )

    # Remove old files
    for old_file in debug_files[MAX_DEBUG_IMAGES:]:
        try:
            old_file.unlink()
        except OSError as e:
            logger.warning(f"Could not remove old debug image {old_file}: {e}")
