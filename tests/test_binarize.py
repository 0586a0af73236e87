"""
Tests for the binarizer and PixelGrid basics.

Usage:
    pytest tests/test_binarize.py
"""

import sys
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from billscan.ocr import DecodeFailure, DegenerateRegion, PixelGrid, binarize


def test_channel_threshold():
    """A pixel is ink only if every channel is <= 128."""
    rgb = np.array([[
        [0, 0, 0],
        [128, 128, 128],
        [129, 0, 0],
        [0, 200, 0],
        [255, 255, 255],
        [20, 40, 100],
    ]], dtype=np.uint8)

    grid = binarize(rgb)

    assert grid.height == 1 and grid.width == 6
    assert [grid.is_ink(0, c) for c in range(6)] == [True, True, False, False, False, True]


def test_binarize_keeps_dimensions():
    rgb = np.full((13, 21, 3), 255, dtype=np.uint8)
    rgb[4:6, 7:9] = 0

    grid = binarize(rgb)

    assert (grid.height, grid.width) == (13, 21)
    assert grid.ink_count() == 4


def test_binarize_binary_grid_is_noop():
    grid = PixelGrid.from_rows([
        "..##..",
        ".####.",
        "......",
    ])

    assert binarize(grid) == grid
    assert binarize(grid.to_rgb()) == grid


def test_binarize_accepts_pil_and_grayscale():
    gray = np.full((5, 5), 250, dtype=np.uint8)
    gray[2, 2] = 10

    from_array = binarize(gray)
    from_pil = binarize(Image.fromarray(gray))
    from_rgba = binarize(Image.fromarray(gray).convert("RGBA"))

    assert from_array == from_pil == from_rgba
    assert from_array.ink_count() == 1


def test_transparent_pixels_are_background(tmp_path):
    rgba = np.zeros((10, 10, 4), dtype=np.uint8)
    rgba[3:5, 3:5, 3] = 255     # opaque black square, the rest fully transparent

    assert binarize(rgba).ink_count() == 4
    assert binarize(Image.fromarray(rgba)).ink_count() == 4

    path = tmp_path / "overlay.png"
    Image.fromarray(rgba).save(path)
    assert binarize(path).ink_count() == 4


def test_boolean_mask_marks_ink():
    mask = np.zeros((5, 5), dtype=bool)
    mask[2, 2] = True

    grid = PixelGrid(mask)

    assert grid.ink_count() == 1
    assert grid.is_ink(2, 2)
    assert grid == PixelGrid.from_rows([".....", ".....", "..#..", ".....", "....."])


def test_binarize_file_path(tmp_path):
    rgb = np.full((8, 8, 3), 255, dtype=np.uint8)
    rgb[1:3, 1:3] = 0
    path = tmp_path / "shot.png"
    Image.fromarray(rgb).save(path)

    assert binarize(path).ink_count() == 4
    assert binarize(str(path)).ink_count() == 4


def test_decode_failure(tmp_path):
    bad = tmp_path / "broken.png"
    bad.write_bytes(b"not an image")

    with pytest.raises(DecodeFailure):
        binarize(bad)
    with pytest.raises(DecodeFailure):
        binarize(tmp_path / "missing.png")


def test_crop_copies_and_validates():
    grid = PixelGrid.from_rows([
        "#...",
        ".#..",
        "..#.",
    ])

    part = grid.crop(0, 0, 1, 1)
    assert part == PixelGrid.from_rows(["#.", ".#"])

    # Clamped to the grid
    assert grid.crop(-5, -5, 10, 10) == grid

    with pytest.raises(DegenerateRegion):
        grid.crop(2, 3, 1, 3)
    with pytest.raises(IndexError):
        grid.is_ink(3, 0)


def test_grid_is_read_only():
    grid = PixelGrid.from_rows(["#."])
    with pytest.raises(ValueError):
        grid.pixels[0, 0] = 255
