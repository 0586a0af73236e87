"""
Tests for band/glyph segmentation and bounding-box tightening.

Usage:
    pytest tests/test_segmentation.py
"""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from billscan.ocr import (
    BAND_PROFILE,
    GLYPH_PADDING,
    GLYPH_PROFILE,
    WIDE_GLYPH_PROFILE,
    DegenerateRegion,
    GlyphBox,
    PixelGrid,
    SegmentationProfile,
    TextBand,
    find_bands,
    find_glyph_boxes,
    tighten,
)
from billscan.ocr.segmentation import find_runs, ink_bounds, split_glyphs


def blocks_grid(gap: int, block_width: int = 6, height: int = 12) -> PixelGrid:
    """Two solid ink blocks side by side separated by `gap` blank columns."""
    width = 3 + block_width + gap + block_width + 3
    pixels = np.full((height, width), 255, dtype=np.uint8)
    pixels[2:height - 2, 3:3 + block_width] = 0
    start = 3 + block_width + gap
    pixels[2:height - 2, start:start + block_width] = 0
    return PixelGrid(pixels)


def test_find_runs_gap_and_extent():
    blank = np.array([c == "." for c in "..##.#...####..#"])

    assert find_runs(blank, SegmentationProfile(gap=1, min_extent=1)) == [(2, 3), (5, 5), (9, 12), (15, 15)]
    # Single blank columns are bridged with gap=2
    assert find_runs(blank, SegmentationProfile(gap=2, min_extent=1)) == [(2, 5), (9, 12), (15, 15)]
    assert find_runs(blank, SegmentationProfile(gap=1, min_extent=3)) == [(9, 12)]


def test_wide_profile_splits_on_eleven_pixel_gap():
    boxes = find_glyph_boxes(blocks_grid(gap=11), WIDE_GLYPH_PROFILE)
    assert boxes == [GlyphBox(3, 8), GlyphBox(20, 25)]


def test_wide_profile_merges_eight_pixel_gap():
    boxes = find_glyph_boxes(blocks_grid(gap=8), WIDE_GLYPH_PROFILE)
    assert boxes == [GlyphBox(3, 22)]


def test_wide_profile_needs_more_than_ten_blank_columns():
    assert find_glyph_boxes(blocks_grid(gap=10), WIDE_GLYPH_PROFILE) == [GlyphBox(3, 24)]
    assert find_glyph_boxes(blocks_grid(gap=11), WIDE_GLYPH_PROFILE) == [GlyphBox(3, 8), GlyphBox(20, 25)]


def test_band_glyph_profile_splits_on_single_column():
    assert len(find_glyph_boxes(blocks_grid(gap=1), GLYPH_PROFILE)) == 2
    assert len(find_glyph_boxes(blocks_grid(gap=8), GLYPH_PROFILE)) == 2


def test_find_bands():
    pixels = np.full((100, 40), 255, dtype=np.uint8)
    pixels[5:20, 5:30] = 0      # line 1, 15 rows
    pixels[40:60, 5:30] = 0     # line 2, 20 rows
    pixels[80:84, 5:10] = 0     # 4-row speck, too short for a band

    bands = find_bands(PixelGrid(pixels))

    assert bands == [TextBand(5, 19), TextBand(40, 59)]
    assert bands[1].height == 20


def lines_grid(gap: int, height: int = 15) -> PixelGrid:
    """Two text lines of `height` rows separated by `gap` blank rows."""
    pixels = np.full((5 + 2 * height + gap + 5, 40), 255, dtype=np.uint8)
    pixels[5:5 + height, 5:30] = 0
    second = 5 + height + gap
    pixels[second:second + height, 5:30] = 0
    return PixelGrid(pixels)


def test_bands_need_more_than_ten_blank_rows():
    assert find_bands(lines_grid(gap=10)) == [TextBand(5, 44)]
    assert find_bands(lines_grid(gap=11)) == [TextBand(5, 19), TextBand(31, 45)]


def test_bands_must_be_more_than_ten_rows_tall():
    assert find_bands(lines_grid(gap=20, height=10)) == []
    assert find_bands(lines_grid(gap=20, height=11)) == [TextBand(5, 15), TextBand(36, 46)]


def test_find_bands_bridges_short_blank_runs():
    pixels = np.full((60, 20), 255, dtype=np.uint8)
    pixels[5:15, 2:10] = 0
    pixels[20:30, 2:10] = 0     # 5 blank rows in between: same band

    assert find_bands(PixelGrid(pixels), BAND_PROFILE) == [TextBand(5, 29)]


def test_tighten_pads_ink_extent():
    pixels = np.full((20, 30), 255, dtype=np.uint8)
    pixels[6:10, 11:16] = 0

    glyph = tighten(PixelGrid(pixels))

    assert (glyph.height, glyph.width) == (4 + 2 * GLYPH_PADDING, 5 + 2 * GLYPH_PADDING)
    assert glyph.ink_count() == 20
    # Border is background on all four sides
    mask = glyph.ink_mask
    assert not mask[:GLYPH_PADDING].any() and not mask[-GLYPH_PADDING:].any()
    assert not mask[:, :GLYPH_PADDING].any() and not mask[:, -GLYPH_PADDING:].any()


def test_tighten_is_fixed_point():
    pixels = np.full((30, 30), 255, dtype=np.uint8)
    pixels[5:20, 8:12] = 0
    pixels[18:20, 8:22] = 0
    once = tighten(PixelGrid(pixels))

    assert tighten(once) == once


def test_tighten_ignores_specks():
    pixels = np.full((40, 40), 255, dtype=np.uint8)
    pixels[10:20, 10:15] = 0    # real glyph, 50 pixels
    pixels[1:3, 35:37] = 0      # 4-pixel speck far away
    pixels[38, 2] = 0           # single pixel

    grid = PixelGrid(pixels)

    assert ink_bounds(grid).top == 10
    assert ink_bounds(grid).right == 14
    glyph = tighten(grid)
    assert (glyph.height, glyph.width) == (10 + 2 * GLYPH_PADDING, 5 + 2 * GLYPH_PADDING)


def test_speck_of_nine_pixels_is_noise_ten_is_not():
    pixels = np.full((10, 10), 255, dtype=np.uint8)
    pixels[2:5, 2:5] = 0        # 9 connected pixels
    assert tighten(PixelGrid(pixels)).is_empty

    pixels[5, 2] = 0            # diagonal/edge neighbour makes 10
    assert not tighten(PixelGrid(pixels)).is_empty


def test_tighten_empty_region():
    grid = PixelGrid.blank(10, 10)

    empty = tighten(grid)

    assert empty.is_empty
    assert (empty.height, empty.width) == (0, 0)
    assert tighten(empty).is_empty


def test_tighten_sub_region_does_not_modify_source():
    pixels = np.full((10, 20), 255, dtype=np.uint8)
    pixels[2:8, 2:6] = 0
    pixels[2:8, 12:16] = 0
    grid = PixelGrid(pixels)
    before = grid.pixels.copy()

    right = tighten(grid, 0, 10, 9, 19)

    assert right.ink_count() == 24
    assert np.array_equal(grid.pixels, before)


def test_tighten_degenerate_region_is_empty():
    pixels = np.full((10, 10), 255, dtype=np.uint8)
    pixels[2:8, 2:8] = 0
    grid = PixelGrid(pixels)

    assert tighten(grid, 5, 5, 2, 2).is_empty
    assert tighten(grid, 20, 20, 30, 30).is_empty
    assert ink_bounds(grid, -5, -5, -1, -1) is None
    # Plain cropping still refuses an empty rectangle
    with pytest.raises(DegenerateRegion):
        grid.crop(5, 5, 2, 2)


def test_split_glyphs_skips_noise_columns():
    pixels = np.full((16, 30), 255, dtype=np.uint8)
    pixels[2:14, 2:6] = 0       # glyph
    pixels[7, 10] = 0           # speck in its own column run
    pixels[2:14, 14:18] = 0     # glyph

    glyphs = split_glyphs(PixelGrid(pixels), GLYPH_PROFILE)

    assert [box for box, _ in glyphs] == [GlyphBox(2, 5), GlyphBox(14, 17)]
    assert all(g.ink_count() == 48 for _, g in glyphs)
