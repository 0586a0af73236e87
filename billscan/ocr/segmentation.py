"""
Segmenter

Finds text bands (row runs) and glyph boxes (column runs) in a PixelGrid
and tightens regions to their real ink extent.

Both scans use the same blank-run rule: a row or column is blank when
every pixel of it inside the current bounding box is background. A run
of blank lines longer than the gap threshold closes the current ink run;
shorter blank runs are bridged.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import cv2
import numpy as np

from .grid import PixelGrid
from .result import GlyphBox, Rect, TextBand

logger = logging.getLogger(__name__)


# Noise filter: a boundary pixel must belong to an 8-connected ink
# component with at least this many pixels.
MIN_COMPONENT_PIXELS = 10

# Background border added around every tightened region
GLYPH_PADDING = 2


@dataclass(frozen=True)
class SegmentationProfile:
    """
    Run detection parameters.

    Attributes:
        gap: Fewest blank pixels that separate two ink runs
        min_extent: Shortest ink run that is reported
    """
    gap: int
    min_extent: int


# Text lines: more than 10 blank rows split bands, bands must be more than
# 10 rows tall
BAND_PROFILE = SegmentationProfile(gap=11, min_extent=11)

# Glyphs inside an amount/date band: any blank column splits
GLYPH_PROFILE = SegmentationProfile(gap=1, min_extent=1)

# Free-text region mode: glyphs split on more than 10 blank columns
WIDE_GLYPH_PROFILE = SegmentationProfile(gap=11, min_extent=1)


def find_runs(blank: np.ndarray, profile: SegmentationProfile) -> List[Tuple[int, int]]:
    """
    Find inclusive (start, end) ink runs in a blank/non-blank profile.

    Args:
        blank: 1D boolean array, True where the row/column is blank
        profile: Gap and minimum extent to apply

    Returns:
        Runs in scan order
    """
    runs: List[Tuple[int, int]] = []
    start: Optional[int] = None
    last_ink = -1

    for i, is_blank in enumerate(blank):
        if is_blank:
            if start is not None and i - last_ink >= profile.gap:
                runs.append((start, last_ink))
                start = None
            continue
        if start is None:
            start = i
        last_ink = i

    # A run touching the far edge is closed there
    if start is not None:
        runs.append((start, last_ink))

    return [(s, e) for s, e in runs if e - s + 1 >= profile.min_extent]


def find_bands(grid: PixelGrid, profile: SegmentationProfile = BAND_PROFILE) -> List[TextBand]:
    """Scan rows top-to-bottom and return one TextBand per line of ink."""
    if grid.is_empty:
        return []
    blank_rows = ~grid.ink_mask.any(axis=1)
    return [TextBand(top, bottom) for top, bottom in find_runs(blank_rows, profile)]


def find_glyph_boxes(grid: PixelGrid, profile: SegmentationProfile = GLYPH_PROFILE) -> List[GlyphBox]:
    """Scan columns left-to-right and return one GlyphBox per candidate glyph."""
    if grid.is_empty:
        return []
    blank_cols = ~grid.ink_mask.any(axis=0)
    return [GlyphBox(left, right) for left, right in find_runs(blank_cols, profile)]


def valid_ink_mask(region: np.ndarray) -> np.ndarray:
    """
    Ink pixels that belong to a component of at least MIN_COMPONENT_PIXELS.

    Args:
        region: uint8 array with ink == 0

    Returns:
        Boolean mask of the same shape
    """
    ink = (region == 0).astype(np.uint8)
    if not ink.any():
        return ink.astype(bool)

    _, labels, stats, _ = cv2.connectedComponentsWithStats(ink, connectivity=8)
    areas = stats[:, cv2.CC_STAT_AREA]
    keep = areas >= MIN_COMPONENT_PIXELS
    keep[0] = False  # label 0 is background
    return keep[labels]


def ink_bounds(
    grid: PixelGrid,
    top: int = 0,
    left: int = 0,
    bottom: Optional[int] = None,
    right: Optional[int] = None,
) -> Optional[Rect]:
    """
    Tightest rectangle around the valid ink of a region, in grid coordinates.

    Returns:
        The inclusive bounds, or None when the region holds no valid ink
        or lies outside the grid
    """
    if grid.is_empty:
        return None

    bottom = grid.height - 1 if bottom is None else bottom
    right = grid.width - 1 if right is None else right
    rect = Rect(top, left, bottom, right).clamped(grid.height, grid.width)
    if rect.top > rect.bottom or rect.left > rect.right:
        return None
    region = grid.crop(rect.top, rect.left, rect.bottom, rect.right).pixels

    valid = valid_ink_mask(region)
    rows = np.flatnonzero(valid.any(axis=1))
    cols = np.flatnonzero(valid.any(axis=0))
    if rows.size == 0 or cols.size == 0:
        return None

    top, left = rect.top, rect.left
    return Rect(top + int(rows[0]), left + int(cols[0]), top + int(rows[-1]), left + int(cols[-1]))


def tighten(
    grid: PixelGrid,
    top: int = 0,
    left: int = 0,
    bottom: Optional[int] = None,
    right: Optional[int] = None,
) -> PixelGrid:
    """
    Clip a region to its real ink extent and pad it with a fixed border.

    Each boundary (top, bottom, left, right) is the outermost row/column
    holding an ink pixel from a component of at least MIN_COMPONENT_PIXELS
    pixels, so isolated specks cannot stretch the box. Specks that fall
    inside the final box are kept.

    Args:
        grid: Source grid (not modified)
        top, left, bottom, right: Inclusive region, defaults to the whole grid

    Returns:
        The tightened region plus a GLYPH_PADDING background border, or
        an empty grid when the region holds no valid ink or is degenerate
    """
    bounds = ink_bounds(grid, top, left, bottom, right)
    if bounds is None:
        return PixelGrid.empty()
    return grid.crop(bounds.top, bounds.left, bounds.bottom, bounds.right).padded(GLYPH_PADDING)


def split_glyphs(
    band: PixelGrid,
    profile: SegmentationProfile = GLYPH_PROFILE,
) -> List[Tuple[GlyphBox, PixelGrid]]:
    """
    Cut a (tightened) band into tightened glyph grids.

    Boxes whose tightened grid comes back empty are dropped silently.

    Returns:
        (box, glyph grid) pairs in left-to-right order
    """
    glyphs = []
    for box in find_glyph_boxes(band, profile):
        glyph = tighten(band, 0, box.left, band.height - 1, box.right)
        if glyph.is_empty:
            logger.debug(f"Skipping degenerate glyph at columns {box.left}-{box.right}")
            continue
        glyphs.append((box, glyph))
    return glyphs
