"""
OCR Module for billscan

Template-matching OCR for payment screenshots: reads the signed amount
and the date of a transaction, or free text inside known layout regions.

Usage:
    from billscan.ocr import create_engine

    # Create an OCR engine (template matching)
    engine = create_engine(template_dir="./file/charlib")

    # Amount + date mode
    record = engine.recognize_band("screenshot.png")
    record.amount_cents   # e.g. -999
    record.timestamp      # midnight of the transaction day

    # Free-text region mode
    text = engine.recognize_region("screenshot.png", Rect(370, 200, 500, 500))
"""

# Public API - Result types
from .result import (
    TextBand,
    GlyphBox,
    Rect,
    GlyphMatch,
    RecognizedString,
    ExtractedRecord,
    ScanReport,
)

# Public API - Errors
from .errors import (
    OCRError,
    DecodeFailure,
    DegenerateRegion,
    TemplateLoadError,
    PatternNotFound,
)

# Public API - Base class for custom engines
from .base import OCREngine

# Public API - Factory functions
from .factory import (
    create_engine,
    register_engine,
    available_engines,
)

# Public API - Template engine and its stages
from .template_engine import TemplateOCREngine, DEFAULT_TEMPLATE_DIR
from .grid import PixelGrid
from .binarize import binarize, load_image
from .segmentation import (
    SegmentationProfile,
    BAND_PROFILE,
    GLYPH_PROFILE,
    WIDE_GLYPH_PROFILE,
    MIN_COMPONENT_PIXELS,
    GLYPH_PADDING,
    find_bands,
    find_glyph_boxes,
    tighten,
)
from .features import FEATURE_LENGTH, EMPTY_SENTINEL, extract_features, squared_distance
from .templates import GlyphTemplate, TemplateLibrary, TemplateStore, STEM_LABELS
from .matcher import Match, match_glyph
from .fields import parse_amount, parse_timestamp, interpret, FieldCollector
from .layouts import LayoutProfile, RegionSpec, DEFAULT_LAYOUTS

# Debug utilities
from .debug import DEBUG_DIR, save_debug_image, render_grid

__all__ = [
    # Result types
    "TextBand",
    "GlyphBox",
    "Rect",
    "GlyphMatch",
    "RecognizedString",
    "ExtractedRecord",
    "ScanReport",
    # Errors
    "OCRError",
    "DecodeFailure",
    "DegenerateRegion",
    "TemplateLoadError",
    "PatternNotFound",
    # Base class
    "OCREngine",
    # Factory
    "create_engine",
    "register_engine",
    "available_engines",
    # Engines
    "TemplateOCREngine",
    "DEFAULT_TEMPLATE_DIR",
    # Stages
    "PixelGrid",
    "binarize",
    "load_image",
    "SegmentationProfile",
    "BAND_PROFILE",
    "GLYPH_PROFILE",
    "WIDE_GLYPH_PROFILE",
    "MIN_COMPONENT_PIXELS",
    "GLYPH_PADDING",
    "find_bands",
    "find_glyph_boxes",
    "tighten",
    "FEATURE_LENGTH",
    "EMPTY_SENTINEL",
    "extract_features",
    "squared_distance",
    "GlyphTemplate",
    "TemplateLibrary",
    "TemplateStore",
    "STEM_LABELS",
    "Match",
    "match_glyph",
    "parse_amount",
    "parse_timestamp",
    "interpret",
    "FieldCollector",
    "LayoutProfile",
    "RegionSpec",
    "DEFAULT_LAYOUTS",
    # Debug
    "DEBUG_DIR",
    "save_debug_image",
    "render_grid",
]
