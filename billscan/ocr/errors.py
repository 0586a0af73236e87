"""
OCR Errors

Exception hierarchy shared by the recognition pipeline.
"""

from typing import Optional


class OCRError(Exception):
    """Base class for all recognition errors."""


class DecodeFailure(OCRError):
    """The input image could not be read or decoded."""


class DegenerateRegion(OCRError, ValueError):
    """A crop rectangle is empty or inverted after clamping."""


class TemplateLoadError(OCRError):
    """The template library could not be (re)built."""


class PatternNotFound(OCRError):
    """
    No band yielded both an amount and a timestamp.

    Attributes:
        record: The partial record gathered before giving up (may be None)
    """

    def __init__(self, message: str = "amount and timestamp not found", record: Optional[object] = None):
        super().__init__(message)
        self.record = record
