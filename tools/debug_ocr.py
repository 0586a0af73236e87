"""
Diagnostic script to analyze glyph matching on a screenshot.
Prints every band's glyphs as text with their best labels and distances,
to understand misread characters.

Usage:
    python debug_ocr.py <image_path> [template_dir]
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from billscan.ocr import binarize, find_bands, load_image, render_grid, tighten
from billscan.ocr.matcher import match_glyph
from billscan.ocr.segmentation import GLYPH_PROFILE, split_glyphs
from billscan.ocr.templates import load_library

TEMPLATE_DIR = Path("./file/charlib")


def analyze_image(image_path: str, template_dir: Path):
    """Analyze an image and report the match for every glyph."""
    print(f"\n{'='*60}")
    print(f"Analyzing: {image_path}")
    print(f"{'='*60}")

    library = load_library(template_dir)
    print(f"Templates: {len(library)} ({''.join(library.labels)})")

    img = load_image(image_path)
    grid = binarize(img)
    print(f"Image: {grid.height}x{grid.width}, ink pixels: {grid.ink_count()}")

    bands = find_bands(grid)
    print(f"Found {len(bands)} bands")

    for band_idx, band in enumerate(bands):
        band_grid = tighten(grid, band.top, 0, band.bottom, grid.width - 1)
        print(f"\nBand {band_idx}: rows {band.top}-{band.bottom}")
        if band_grid.is_empty:
            print("  (noise only)")
            continue

        text = ""
        for box, glyph in split_glyphs(band_grid, GLYPH_PROFILE):
            match = match_glyph(glyph, library)
            text += match.label or "?"
            source = match.template.source if match.template else None
            print(f"  cols {box.left}-{box.right}: {match.label!r} distance={match.distance:.5f} ({source})")
            print("    " + render_grid(glyph).replace("\n", "\n    "))
        print(f"  => {text!r}")


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python debug_ocr.py <image_path> [template_dir]")
        sys.exit(1)
    analyze_image(sys.argv[1], Path(sys.argv[2]) if len(sys.argv) > 2 else TEMPLATE_DIR)
