#!/usr/bin/env python3
"""
Template extraction tool for OCR calibration.

Cuts glyphs out of a screenshot whose amount/date bands are readable,
asks for their labels and saves them into the template library.

Usage:
    python extract_templates.py <image_path> [template_dir]

The script will:
1. Find the text bands and split them into tightened glyphs
2. Cluster similar glyphs (feature vectors) so each shape is labelled once
3. Display each cluster and ask for its label
4. Save one template per cluster as <stem>_<n>.png

Keys: 0-9, '+', '-', ':' or '.' to label, 's' to skip, 'q' to quit.

Examples:
    python extract_templates.py debug/debug_20251211.png file/charlib
"""

import sys
from pathlib import Path

import cv2
import numpy as np

sys.path.insert(0, str(Path(__file__).parent.parent))

from billscan.ocr import binarize, extract_features, find_bands, tighten
from billscan.ocr.segmentation import GLYPH_PROFILE, split_glyphs
from billscan.ocr.templates import LABEL_STEMS


TEMPLATE_DIR = Path("./file/charlib")
PREVIEW_SIZE = 120


def extract_glyphs(image_path: str) -> list:
    """
    Extract every tightened glyph grid from an image.

    Returns list of (glyph_grid, (band_index, glyph_index)) tuples.
    """
    grid = binarize(image_path)
    bands = find_bands(grid)
    print(f"Found {len(bands)} bands")

    glyphs = []
    for band_idx, band in enumerate(bands):
        band_grid = tighten(grid, band.top, 0, band.bottom, grid.width - 1)
        if band_grid.is_empty:
            continue
        for glyph_idx, (_, glyph) in enumerate(split_glyphs(band_grid, GLYPH_PROFILE)):
            glyphs.append((glyph, (band_idx, glyph_idx)))

    return glyphs


def _preview(glyph) -> np.ndarray:
    """Scale a glyph up for display, keeping its aspect ratio."""
    scale = max(1, PREVIEW_SIZE // max(glyph.height, glyph.width))
    return cv2.resize(glyph.pixels, (glyph.width * scale, glyph.height * scale),
                      interpolation=cv2.INTER_NEAREST)


def _read_label(prompt: str):
    """Wait for a label key. Returns a label, 's' for skip or 'q' for quit."""
    print(prompt, end="", flush=True)
    while True:
        key = cv2.waitKey(0) & 0xFF
        ch = chr(key)
        if ch in ("q", "s"):
            print("quit" if ch == "q" else "skipped")
            return ch
        if ch in LABEL_STEMS:
            print(ch)
            return ch
        print("\n  Invalid key. Enter 0-9, + - : ., 's' or 'q': ", end="", flush=True)


def cluster_glyphs(glyphs: list) -> dict:
    """
    Group glyphs with similar feature vectors.

    Returns dict mapping cluster id -> list of glyph indices, ordered so the
    glyph closest to the cluster centre comes first.
    """
    from sklearn.cluster import KMeans

    X = np.vstack([extract_features(glyph) for glyph, _ in glyphs])

    # 14 labels, some with more than one stylistic variant
    n_clusters = min(20, len(glyphs))
    kmeans = KMeans(n_clusters=n_clusters, random_state=42, n_init=10)
    labels = kmeans.fit_predict(X)

    clusters = {}
    for cluster_id in range(n_clusters):
        members = np.where(labels == cluster_id)[0]
        if members.size == 0:
            continue
        distances = np.linalg.norm(X[members] - kmeans.cluster_centers_[cluster_id], axis=1)
        clusters[cluster_id] = [int(i) for i in members[np.argsort(distances)]]

    print(f"Found {len(clusters)} distinct glyph shapes")
    return clusters


def label_glyphs(glyphs: list, groups: list) -> list:
    """
    Interactively label one representative per group.

    Returns list of (label, glyph_grid).
    """
    labelled = []

    cv2.namedWindow("Glyph", cv2.WINDOW_NORMAL)
    for n, members in enumerate(groups):
        glyph, pos = glyphs[members[0]]
        cv2.imshow("Glyph", _preview(glyph))

        answer = _read_label(
            f"Glyph {n + 1}/{len(groups)} at {pos} ({len(members)} samples) - label: "
        )
        if answer == "q":
            break
        if answer == "s":
            continue
        labelled.append((answer, glyph))

    cv2.destroyAllWindows()
    return labelled


def save_templates(labelled: list, template_dir: Path) -> None:
    """Save labelled glyphs as <stem>_<n>.png, never overwriting existing files."""
    template_dir.mkdir(parents=True, exist_ok=True)

    for label, glyph in labelled:
        stem = LABEL_STEMS[label]
        n = 0
        while (template_dir / f"{stem}_{n}.png").exists():
            n += 1
        path = template_dir / f"{stem}_{n}.png"
        cv2.imwrite(str(path), glyph.pixels)
        print(f"Saved: {path}")


def main():
    if len(sys.argv) < 2:
        print("Usage: python extract_templates.py <image_path> [template_dir]")
        return 1

    image_path = sys.argv[1]
    template_dir = Path(sys.argv[2]) if len(sys.argv) > 2 else TEMPLATE_DIR
    print(f"Using image: {image_path}")

    glyphs = extract_glyphs(image_path)
    if not glyphs:
        print("ERROR: No glyphs found")
        return 1
    print(f"Extracted {len(glyphs)} glyphs")

    try:
        groups = list(cluster_glyphs(glyphs).values())
    except ImportError:
        print("sklearn not installed, labelling every glyph")
        groups = [[i] for i in range(len(glyphs))]

    labelled = label_glyphs(glyphs, groups)
    if labelled:
        save_templates(labelled, template_dir)
        print(f"\nTemplates saved to {template_dir}/")
    else:
        print("\nNo samples collected")

    return 0


if __name__ == "__main__":
    sys.exit(main())
