"""
Template Store

Reference glyph library used by the matcher.

A directory holds one labelled glyph image per file. The filename stem
selects the label through STEM_LABELS; anything after an underscore is a
variant tag, so ``8.png``, ``8_bold.png`` and ``sub/8.png`` all become
templates for "8". Each image goes through the same binarize + tighten
steps as a live glyph.

The store publishes immutable TemplateLibrary snapshots. A reload builds
a complete new library first and swaps it in under a lock, so a
recognition pass holding the old snapshot is never affected.
"""

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

import numpy as np

from .binarize import ImageInput, binarize
from .errors import DecodeFailure, TemplateLoadError
from .features import FEATURE_LENGTH, extract_features
from .grid import PixelGrid
from .segmentation import tighten

logger = logging.getLogger(__name__)


STEM_LABELS: Dict[str, str] = {
    "0": "0",
    "1": "1",
    "2": "2",
    "3": "3",
    "4": "4",
    "5": "5",
    "6": "6",
    "7": "7",
    "8": "8",
    "9": "9",
    "plus": "+",
    "minus": "-",
    "colon": ":",
    "point": ".",
}

# Stem used when saving a template for a label
LABEL_STEMS: Dict[str, str] = {label: stem for stem, label in STEM_LABELS.items()}

IMAGE_SUFFIXES = {".png", ".bmp", ".jpg", ".jpeg", ".gif", ".tif", ".tiff"}


def label_for_path(path: Path) -> Optional[str]:
    """Map a template file name to its label, or None if it is not a template."""
    stem = path.name.split(".")[0]
    key = stem.split("_")[0].lower()
    return STEM_LABELS.get(key)


@dataclass(frozen=True, eq=False)
class GlyphTemplate:
    """A tightened reference glyph and the character it represents."""
    label: str
    grid: PixelGrid
    features: np.ndarray
    source: Optional[Path] = None

    @classmethod
    def from_image(cls, label: str, image: ImageInput, source: Optional[Path] = None) -> Optional["GlyphTemplate"]:
        """Binarize and tighten a reference image; None if it holds no glyph."""
        grid = tighten(binarize(image))
        if grid.is_empty:
            return None
        return cls(label=label, grid=grid, features=extract_features(grid), source=source)


class TemplateLibrary:
    """
    Immutable snapshot of the templates, in canonical order.

    Labels are sorted; variants of one label keep the order they were
    added in. ``feature_matrix`` stacks every template's features row by
    row in that same order.
    """

    def __init__(self, templates: Iterable[GlyphTemplate] = ()):
        by_label: Dict[str, List[GlyphTemplate]] = {}
        for template in templates:
            by_label.setdefault(template.label, []).append(template)

        self._by_label: Dict[str, Tuple[GlyphTemplate, ...]] = {
            label: tuple(by_label[label]) for label in sorted(by_label)
        }
        self.templates: Tuple[GlyphTemplate, ...] = tuple(
            t for label in self._by_label for t in self._by_label[label]
        )
        if self.templates:
            matrix = np.vstack([t.features for t in self.templates])
        else:
            matrix = np.zeros((0, FEATURE_LENGTH), dtype=np.float64)
        matrix.setflags(write=False)
        self.feature_matrix = matrix

    def __len__(self) -> int:
        return len(self.templates)

    @property
    def labels(self) -> List[str]:
        return list(self._by_label)

    def variants(self, label: str) -> Tuple[GlyphTemplate, ...]:
        return self._by_label.get(label, ())

    def entries(self) -> List[Tuple[str, Optional[Path]]]:
        """(label, source file) for every template, in canonical order."""
        return [(t.label, t.source) for t in self.templates]


def load_library(template_dir: Union[str, Path]) -> TemplateLibrary:
    """
    Build a library from every labelled image under a directory.

    Raises:
        TemplateLoadError: if the directory is missing, a template image
            cannot be decoded, or no usable template is found
    """
    template_dir = Path(template_dir)
    if not template_dir.is_dir():
        raise TemplateLoadError(f"Template directory not found: {template_dir}")

    templates: List[GlyphTemplate] = []
    for path in sorted(p for p in template_dir.rglob("*") if p.is_file()):
        if path.suffix.lower() not in IMAGE_SUFFIXES:
            continue
        label = label_for_path(path)
        if label is None:
            logger.debug(f"Ignoring {path}: no label for this file name")
            continue
        try:
            template = GlyphTemplate.from_image(label, path, source=path)
        except DecodeFailure as e:
            raise TemplateLoadError(str(e)) from e
        if template is None:
            logger.warning(f"Template {path} has no valid ink, skipped")
            continue
        templates.append(template)

    if not templates:
        raise TemplateLoadError(f"No usable templates in {template_dir}")

    library = TemplateLibrary(templates)
    logger.info(f"Loaded {len(library)} templates for {len(library.labels)} labels from {template_dir}")
    return library


def library_from_images(pairs: Iterable[Tuple[str, ImageInput]]) -> TemplateLibrary:
    """
    Build a library from in-memory (label, image) pairs.

    Raises:
        TemplateLoadError: if a label is outside the template alphabet or
            no pair yields a usable glyph
    """
    known = set(STEM_LABELS.values())
    templates = []
    for label, image in pairs:
        if label not in known:
            raise TemplateLoadError(f"Unknown template label: {label!r}")
        template = GlyphTemplate.from_image(label, image)
        if template is None:
            logger.warning(f"Template image for {label!r} has no valid ink, skipped")
            continue
        templates.append(template)

    if not templates:
        raise TemplateLoadError("No usable templates given")
    return TemplateLibrary(templates)


class TemplateStore:
    """
    Owns the current TemplateLibrary and swaps it atomically on reload.

    Readers call snapshot() once per recognition pass and use that
    library for the whole pass.
    """

    def __init__(self, template_dir: Optional[Union[str, Path]] = None,
                 library: Optional[TemplateLibrary] = None):
        self._template_dir = Path(template_dir) if template_dir is not None else None
        self._library = library if library is not None else TemplateLibrary()
        self._lock = threading.Lock()

    @classmethod
    def from_images(cls, pairs: Iterable[Tuple[str, ImageInput]]) -> "TemplateStore":
        return cls(library=library_from_images(pairs))

    @property
    def template_dir(self) -> Optional[Path]:
        return self._template_dir

    def snapshot(self) -> TemplateLibrary:
        with self._lock:
            return self._library

    def is_loaded(self) -> bool:
        return len(self.snapshot()) > 0

    def reload(self, template_dir: Optional[Union[str, Path]] = None) -> TemplateLibrary:
        """
        Rebuild the library from disk and publish it.

        Args:
            template_dir: Directory to load; defaults to the last one used

        Returns:
            The newly published library

        Raises:
            TemplateLoadError: on failure; the previous library stays active
        """
        directory = Path(template_dir) if template_dir is not None else self._template_dir
        if directory is None:
            raise TemplateLoadError("No template directory configured")

        library = load_library(directory)
        with self._lock:
            self._library = library
            self._template_dir = directory
        return library

    def replace(self, library: TemplateLibrary) -> None:
        """Publish an already built library."""
        with self._lock:
            self._library = library
