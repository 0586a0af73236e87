"""
Pixel Grid

Binary image container used by every pipeline stage.
"""

from dataclasses import dataclass
from typing import Iterable

import numpy as np

from .errors import DegenerateRegion


INK = 0
BACKGROUND = 255


@dataclass(frozen=True)
class PixelGrid:
    """
    Rectangular grid of ink (0) / background (255) pixels.

    The underlying array is owned by the grid; crops and pads always
    produce a new grid instead of a view onto this one. A boolean array
    is taken as an ink mask (True = ink).
    """
    pixels: np.ndarray

    def __post_init__(self):
        pixels = np.asarray(self.pixels)
        if pixels.dtype == bool:
            pixels = np.where(pixels, INK, BACKGROUND)
        pixels = pixels.astype(np.uint8, copy=False)
        if pixels.ndim != 2:
            raise ValueError(f"PixelGrid needs a 2D array, got shape {pixels.shape}")
        pixels = np.where(pixels == INK, INK, BACKGROUND).astype(np.uint8)
        pixels.setflags(write=False)
        object.__setattr__(self, "pixels", pixels)

    @classmethod
    def empty(cls) -> "PixelGrid":
        """The zero-size grid returned for degenerate regions."""
        return cls(np.zeros((0, 0), dtype=np.uint8))

    @classmethod
    def blank(cls, height: int, width: int) -> "PixelGrid":
        return cls(np.full((height, width), BACKGROUND, dtype=np.uint8))

    @classmethod
    def from_rows(cls, rows: Iterable[str], ink: str = "#") -> "PixelGrid":
        """
        Build a grid from text rows, e.g. [".#.", "###"].

        Args:
            rows: Equal-length strings, one per pixel row
            ink: Character marking an ink pixel; anything else is background
        """
        rows = list(rows)
        widths = {len(r) for r in rows}
        if len(widths) > 1:
            raise ValueError(f"Rows have different widths: {sorted(widths)}")
        data = [[INK if ch == ink else BACKGROUND for ch in row] for row in rows]
        if not data:
            return cls.empty()
        return cls(np.array(data, dtype=np.uint8))

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def is_empty(self) -> bool:
        return self.pixels.size == 0

    @property
    def ink_mask(self) -> np.ndarray:
        return self.pixels == INK

    def ink_count(self) -> int:
        return int(np.count_nonzero(self.ink_mask))

    def contains(self, row: int, col: int) -> bool:
        return 0 <= row < self.height and 0 <= col < self.width

    def is_ink(self, row: int, col: int) -> bool:
        if not self.contains(row, col):
            raise IndexError(f"({row}, {col}) outside {self.height}x{self.width} grid")
        return bool(self.pixels[row, col] == INK)

    def crop(self, top: int, left: int, bottom: int, right: int) -> "PixelGrid":
        """
        Copy out the inclusive rectangle [top, bottom] x [left, right].

        The rectangle is clamped to the grid first.

        Raises:
            DegenerateRegion: if nothing is left after clamping
        """
        top, left = max(0, top), max(0, left)
        bottom, right = min(bottom, self.height - 1), min(right, self.width - 1)
        if top > bottom or left > right:
            raise DegenerateRegion(
                f"Empty region ({top}, {left}, {bottom}, {right}) in {self.height}x{self.width} grid"
            )
        return PixelGrid(self.pixels[top:bottom + 1, left:right + 1].copy())

    def padded(self, border: int) -> "PixelGrid":
        """Surround the grid with a background border of the given width."""
        return PixelGrid(np.pad(self.pixels, border, mode="constant", constant_values=BACKGROUND))

    def to_rgb(self) -> np.ndarray:
        """Render as an H x W x 3 uint8 image."""
        return np.repeat(self.pixels[:, :, None], 3, axis=2)

    def __eq__(self, other) -> bool:
        if not isinstance(other, PixelGrid):
            return NotImplemented
        return self.pixels.shape == other.pixels.shape and bool(np.array_equal(self.pixels, other.pixels))

    def __hash__(self) -> int:
        return hash((self.pixels.shape, self.pixels.tobytes()))

    def __repr__(self) -> str:
        return f"PixelGrid({self.height}x{self.width}, ink={self.ink_count()})"
