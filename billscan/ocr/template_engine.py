"""
Template Matching OCR Engine

OCR implementation that reads amounts and dates from payment screenshots
by nearest-neighbour matching of glyph feature histograms.

Pipeline:
    binarize -> find bands -> tighten band -> split glyphs -> tighten glyph
    -> extract features -> match against the template library
    -> interpret band strings
"""

import logging
import time
from datetime import tzinfo
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .base import OCREngine
from .binarize import ImageInput, binarize
from .errors import PatternNotFound
from .fields import FieldCollector, resolve_timezone
from .grid import PixelGrid
from .layouts import FIELD_SEPARATOR, LayoutProfile, build_layouts
from .matcher import match_glyph
from .result import (
    ExtractedRecord,
    GlyphMatch,
    Rect,
    RecognizedString,
    ScanReport,
    TextBand,
)
from .segmentation import (
    GLYPH_PADDING,
    GLYPH_PROFILE,
    WIDE_GLYPH_PROFILE,
    SegmentationProfile,
    find_bands,
    ink_bounds,
    split_glyphs,
)
from .templates import TemplateLibrary, TemplateStore

logger = logging.getLogger(__name__)


DEFAULT_TEMPLATE_DIR = Path("./file/charlib")


class TemplateOCREngine(OCREngine):
    """
    OCR engine using feature-histogram template matching.

    The engine owns (or shares) a TemplateStore. Every recognition call
    takes one library snapshot and uses it for the whole image, so a
    concurrent reload_templates() never mixes two libraries in one pass.
    """

    def __init__(self, template_dir: Optional[Path] = None, store: Optional[TemplateStore] = None):
        """
        Initialize the template OCR engine.

        Args:
            template_dir: Optional path to the glyph template library.
                         If None, uses ./file/charlib.
            store: Optional shared TemplateStore; loaded lazily from
                   template_dir when it is still empty.
        """
        self._template_dir = Path(template_dir) if template_dir is not None else None
        self._store = store if store is not None else TemplateStore(self._template_dir or DEFAULT_TEMPLATE_DIR)
        self._tz: tzinfo = resolve_timezone(None)
        self._layouts: List[LayoutProfile] = build_layouts()
        self._max_match_distance: Optional[float] = None

    @property
    def name(self) -> str:
        return "template"

    @property
    def store(self) -> TemplateStore:
        return self._store

    @property
    def layouts(self) -> List[LayoutProfile]:
        return list(self._layouts)

    def configure(self, **kwargs) -> None:
        """
        Configure engine parameters.

        Args:
            template_dir: Path to the glyph template library (reloaded lazily)
            timezone: IANA zone name or tzinfo for parsed dates
            layouts: Extra layout profiles in settings form
            max_match_distance: Glyphs whose best distance is larger are dropped
        """
        if "template_dir" in kwargs:
            self._template_dir = Path(kwargs["template_dir"])
            self._store = TemplateStore(self._template_dir)
        if "timezone" in kwargs:
            self._tz = resolve_timezone(kwargs["timezone"])
        if "layouts" in kwargs:
            self._layouts = build_layouts(kwargs["layouts"] or ())
        if "max_match_distance" in kwargs:
            value = kwargs["max_match_distance"]
            self._max_match_distance = float(value) if value is not None else None

    def reload_templates(self, template_dir: Optional[Union[str, Path]] = None) -> None:
        directory = template_dir if template_dir is not None else self._store.template_dir
        self._store.reload(directory)

    def _library(self) -> TemplateLibrary:
        """Current library snapshot, loading it from disk on first use."""
        if not self._store.is_loaded():
            self._store.reload()
        return self._store.snapshot()

    def _read_glyphs(
        self,
        grid: PixelGrid,
        library: TemplateLibrary,
        profile: SegmentationProfile,
    ) -> List[GlyphMatch]:
        """Split a tightened grid into glyphs and match each one."""
        matches = []
        for box, glyph in split_glyphs(grid, profile):
            match = match_glyph(glyph, library)
            label = match.label
            if self._max_match_distance is not None and match.distance > self._max_match_distance:
                logger.debug(f"Dropping glyph {match.label!r} at {box.left}-{box.right}: distance {match.distance:.4f}")
                label = None
            matches.append(GlyphMatch(box=box, label=label, distance=match.distance))
        return matches

    def _read_band(self, grid: PixelGrid, band: TextBand, library: TemplateLibrary) -> Optional[RecognizedString]:
        bounds = ink_bounds(grid, band.top, 0, band.bottom, grid.width - 1)
        if bounds is None:
            return None
        band_grid = grid.crop(bounds.top, bounds.left, bounds.bottom, bounds.right).padded(GLYPH_PADDING)
        return RecognizedString(
            band=band,
            glyphs=self._read_glyphs(band_grid, library, GLYPH_PROFILE),
            origin=(bounds.top - GLYPH_PADDING, bounds.left - GLYPH_PADDING),
        )

    def scan(self, image: ImageInput) -> ScanReport:
        """
        Read bands top to bottom until both an amount and a date are found.

        Unlike recognize_band() this never raises PatternNotFound; the
        returned record may be partial.

        Raises:
            DecodeFailure: if the image cannot be read
            TemplateLoadError: if the template library cannot be loaded
        """
        start_time = time.perf_counter()

        library = self._library()
        grid = binarize(image)
        collector = FieldCollector(self._tz)
        bands: List[RecognizedString] = []

        for band in find_bands(grid):
            readout = self._read_band(grid, band, library)
            if readout is None:
                logger.debug(f"Band rows {band.top}-{band.bottom} holds only noise")
                continue
            bands.append(readout)
            logger.debug(f"Band rows {band.top}-{band.bottom}: {readout.text!r}")
            collector.feed(readout.text)
            if collector.complete:
                break

        return ScanReport(
            bands=bands,
            record=collector.record,
            processing_time_ms=(time.perf_counter() - start_time) * 1000,
            image_size=(grid.height, grid.width),
        )

    def recognize_band(self, image: ImageInput) -> ExtractedRecord:
        report = self.scan(image)
        if not report.record.is_complete:
            texts = [b.text for b in report.bands]
            logger.info(f"No amount and date found in {len(texts)} bands: {texts}")
            raise PatternNotFound(record=report.record)
        logger.info(
            f"Read amount {report.record.amount_cents} cents, date {report.record.timestamp:%Y-%m-%d} "
            f"in {report.processing_time_ms:.1f}ms"
        )
        return report.record

    def _read_region(self, grid: PixelGrid, rect: Rect, library: TemplateLibrary) -> str:
        bounds = ink_bounds(grid, rect.top, rect.left, rect.bottom, rect.right)
        if bounds is None:
            logger.debug(f"Region {rect} holds no ink inside the image")
            return ""
        region = grid.crop(bounds.top, bounds.left, bounds.bottom, bounds.right).padded(GLYPH_PADDING)
        glyphs = self._read_glyphs(region, library, WIDE_GLYPH_PROFILE)
        return "".join(g.label for g in glyphs if g.label is not None)

    def recognize_region(self, image: ImageInput, rect: Rect) -> str:
        return self._read_region(binarize(image), rect, self._library())

    def describe_layouts(self, image: ImageInput, layout_id: Optional[int] = None) -> str:
        """
        Read every region of the known layouts from one screenshot.

        Args:
            image: Screenshot to read
            layout_id: Only report this layout; None reports all of them

        Returns:
            One ``"<id> | <field>   <field>"`` line per layout
        """
        grid = binarize(image)
        library = self._library()
        layouts: Iterable[LayoutProfile] = self._layouts
        if layout_id is not None:
            layouts = [layout for layout in self._layouts if layout.layout_id == layout_id]
            if not layouts:
                raise ValueError(f"Unknown layout id: {layout_id}")

        lines = []
        for layout in layouts:
            fields = [self._read_region(grid, region.rect, library) + region.suffix for region in layout.regions]
            lines.append(f"{layout.layout_id} | " + FIELD_SEPARATOR.join(fields))
        return "\n".join(lines)
