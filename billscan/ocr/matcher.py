"""
Nearest-Neighbour Matcher

Classifies a glyph by the template with the smallest squared feature
distance. The library is tiny (tens of templates), so this is a plain
scan over a stacked feature matrix.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .features import extract_features
from .grid import PixelGrid
from .templates import GlyphTemplate, TemplateLibrary


@dataclass(frozen=True)
class Match:
    """Best template for one candidate glyph."""
    label: Optional[str]
    distance: float
    template: Optional[GlyphTemplate] = None


NO_MATCH = Match(label=None, distance=float("inf"))


def match_features(features: np.ndarray, library: TemplateLibrary) -> Match:
    """
    Find the closest template to a precomputed feature vector.

    Templates are compared in the library's canonical order (labels
    sorted, variants in load order); only a strictly smaller distance
    replaces the current best, so exact ties go to the first template seen.
    """
    if len(library) == 0:
        return NO_MATCH

    diff = library.feature_matrix - features
    distances = np.einsum("ij,ij->i", diff, diff)
    # argmin returns the first index of the minimum
    best = int(np.argmin(distances))
    template = library.templates[best]
    return Match(label=template.label, distance=float(distances[best]), template=template)


def match_glyph(glyph: PixelGrid, library: TemplateLibrary) -> Match:
    """Compute the glyph's features once and match them against the library."""
    return match_features(extract_features(glyph), library)
