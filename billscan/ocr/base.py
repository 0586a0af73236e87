"""
OCR Engine Base Interface

Abstract base class defining the OCR engine contract.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from .binarize import ImageInput
from .result import ExtractedRecord, Rect


class OCREngine(ABC):
    """
    Abstract base class for OCR engines.

    All OCR implementations must inherit from this class and implement
    the amount/date extraction and free-text region modes.
    """

    @abstractmethod
    def recognize_band(self, image: ImageInput) -> ExtractedRecord:
        """
        Read the amount and the date from a screenshot.

        Args:
            image: Image path, PIL image, RGB array or PixelGrid

        Returns:
            ExtractedRecord with both amount_cents and timestamp set

        Raises:
            DecodeFailure: if the image cannot be read
            PatternNotFound: if no amount and timestamp were both found
        """
        pass

    @abstractmethod
    def recognize_region(self, image: ImageInput, rect: Rect) -> str:
        """
        Read the free text inside one rectangle of a screenshot.

        Returns:
            Recognized string, empty when the region holds no glyph
        """
        pass

    @abstractmethod
    def reload_templates(self, template_dir: Optional[Union[str, Path]] = None) -> None:
        """
        Rebuild the template library, atomically for concurrent readers.

        Raises:
            TemplateLoadError: if the library cannot be built
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """
        Engine identifier.

        Returns:
            String name identifying this engine type (e.g., "template")
        """
        pass

    def process(self, image: ImageInput) -> ExtractedRecord:
        """Default processing mode: amount and date extraction."""
        return self.recognize_band(image)

    def configure(self, **kwargs) -> None:
        """
        Configure engine parameters.

        Override in subclasses to support runtime configuration.
        Default implementation does nothing.

        Args:
            **kwargs: Engine-specific configuration options
        """
        pass
