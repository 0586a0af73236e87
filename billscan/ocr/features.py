"""
Feature Extractor

Reduces a glyph PixelGrid to a fixed 40-element shape descriptor made of
three ink histograms:

    [0:10)   row bands,    bucket = row // (h // 5 + 1)
    [10:20)  column bands, bucket = col // (w // 5 + 1)
    [20:40)  cells,        cell = (row // (h // 3 + 1)) * 4 + col // (w // 4 + 1)

Each group is L1-normalized on its own. A group with (practically) no ink
is filled with EMPTY_SENTINEL so an empty glyph lands far away from every
real template instead of dividing by zero.
"""

import numpy as np

from .grid import PixelGrid


ROW_BUCKETS = 10
COL_BUCKETS = 10
CELL_BUCKETS = 20
FEATURE_LENGTH = ROW_BUCKETS + COL_BUCKETS + CELL_BUCKETS

EMPTY_SENTINEL = 10000.0
MIN_GROUP_MASS = 0.1


def _normalize(counts: np.ndarray) -> np.ndarray:
    total = float(counts.sum())
    if total < MIN_GROUP_MASS:
        return np.full(counts.shape, EMPTY_SENTINEL, dtype=np.float64)
    return counts.astype(np.float64) / total


def extract_features(grid: PixelGrid) -> np.ndarray:
    """
    Compute the feature vector of a glyph grid.

    Args:
        grid: Tightened glyph grid (may be empty)

    Returns:
        Read-only float64 array of length FEATURE_LENGTH
    """
    h, w = grid.height, grid.width
    rows, cols = np.nonzero(grid.ink_mask)

    row_idx = np.minimum(rows // (h // 5 + 1), ROW_BUCKETS - 1)
    col_idx = np.minimum(cols // (w // 5 + 1), COL_BUCKETS - 1)
    cell_idx = np.minimum((rows // (h // 3 + 1)) * 4 + cols // (w // 4 + 1), CELL_BUCKETS - 1)

    features = np.concatenate([
        _normalize(np.bincount(row_idx, minlength=ROW_BUCKETS)),
        _normalize(np.bincount(col_idx, minlength=COL_BUCKETS)),
        _normalize(np.bincount(cell_idx, minlength=CELL_BUCKETS)),
    ])
    features.setflags(write=False)
    return features


def squared_distance(a: np.ndarray, b: np.ndarray) -> float:
    """Sum of squared differences; ranking-equivalent to Euclidean distance."""
    diff = np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64)
    return float(np.dot(diff, diff))
