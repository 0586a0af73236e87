"""
OCR Result Dataclasses

Shared data structures for segmentation and recognition results.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class TextBand:
    """Inclusive pixel-row interval holding one line of glyphs."""
    top: int
    bottom: int

    @property
    def height(self) -> int:
        return self.bottom - self.top + 1


@dataclass(frozen=True)
class GlyphBox:
    """Inclusive pixel-column interval of one candidate glyph, before tightening."""
    left: int
    right: int

    @property
    def width(self) -> int:
        return self.right - self.left + 1


@dataclass(frozen=True)
class Rect:
    """Inclusive pixel rectangle (top, left, bottom, right)."""
    top: int
    left: int
    bottom: int
    right: int

    def clamped(self, height: int, width: int) -> "Rect":
        return Rect(
            top=max(0, self.top),
            left=max(0, self.left),
            bottom=min(self.bottom, height - 1),
            right=min(self.right, width - 1),
        )


@dataclass
class GlyphMatch:
    """Per-glyph match result."""
    box: GlyphBox
    label: Optional[str]   # None when the template library is empty
    distance: float        # Squared feature distance to the best template


@dataclass
class RecognizedString:
    """
    Matched labels of one band, left to right.

    Glyph boxes are columns of the tightened band grid; ``origin`` is the
    (row, col) image position of that grid's top-left pixel.
    """
    band: TextBand
    glyphs: List[GlyphMatch] = field(default_factory=list)
    origin: Tuple[int, int] = (0, 0)

    @property
    def text(self) -> str:
        return "".join(g.label for g in self.glyphs if g.label is not None)


@dataclass
class ExtractedRecord:
    """Amount and/or timestamp read from one image."""
    amount_cents: Optional[int] = None
    timestamp: Optional[datetime] = None

    @property
    def is_complete(self) -> bool:
        return self.amount_cents is not None and self.timestamp is not None

    @property
    def amount(self) -> Optional[float]:
        """Amount in currency units, for display."""
        if self.amount_cents is None:
            return None
        return self.amount_cents / 100


@dataclass
class ScanReport:
    """Everything read from one image in band mode."""
    bands: List[RecognizedString]
    record: ExtractedRecord
    processing_time_ms: float
    image_size: Tuple[int, int] = (0, 0)  # (height, width) of the binarized image
