"""
OCR Engine Factory

Factory for creating OCR engine instances.
"""

import importlib
from pathlib import Path
from typing import Dict, List, Type, Union

from .base import OCREngine


# Registry of available engines: "module.Class" paths or registered classes
_ENGINE_REGISTRY: Dict[str, Union[str, Type[OCREngine]]] = {
    "template": "template_engine.TemplateOCREngine",
}

# Cache for loaded engine classes
_ENGINE_CACHE: Dict[str, Type[OCREngine]] = {}


def _load_engine_class(engine_type: str) -> Type[OCREngine]:
    """Lazily load an engine class by type."""
    if engine_type in _ENGINE_CACHE:
        return _ENGINE_CACHE[engine_type]

    entry = _ENGINE_REGISTRY[engine_type]
    if isinstance(entry, str):
        module_name, class_name = entry.rsplit(".", 1)
        module = importlib.import_module(f".{module_name}", package=__package__)
        engine_class = getattr(module, class_name)
    else:
        engine_class = entry

    _ENGINE_CACHE[engine_type] = engine_class
    return engine_class


def create_engine(engine_type: str = "template", **config) -> OCREngine:
    """
    Create an OCR engine by type.

    Args:
        engine_type: Engine type identifier. Available types:
            - "template" (default): feature-histogram template matching
        **config: Engine-specific configuration options:
            For "template":
                - template_dir: Path to the glyph template library
                - store: Shared TemplateStore (overrides template_dir)
                - timezone: Civil time zone for dates
                - layouts: Layout profiles for region reports
                - max_match_distance: Reject glyphs matched worse than this

    Returns:
        Configured OCREngine instance

    Raises:
        ValueError: If engine_type is not recognized

    Example:
        engine = create_engine("template", template_dir="./file/charlib")
        record = engine.recognize_band("screenshot.png")
        print(record.amount_cents, record.timestamp)
    """
    if engine_type not in _ENGINE_REGISTRY:
        raise ValueError(f"Unknown engine type: {engine_type}. Available: {', '.join(available_engines())}")

    engine_class = _load_engine_class(engine_type)

    # Extract constructor args
    template_dir = config.pop("template_dir", None)
    if template_dir is not None:
        template_dir = Path(template_dir)
    store = config.pop("store", None)
    engine = engine_class(template_dir=template_dir, store=store)

    # Apply remaining config
    if config:
        engine.configure(**config)

    return engine


def register_engine(name: str, engine_class: type) -> None:
    """
    Register a custom OCR engine type.

    The class is constructed with ``template_dir`` and ``store`` keyword
    arguments, like the built-in template engine.

    Args:
        name: Engine type identifier
        engine_class: OCREngine subclass
    """
    if not issubclass(engine_class, OCREngine):
        raise TypeError(f"{engine_class} must be a subclass of OCREngine")
    _ENGINE_REGISTRY[name] = engine_class
    _ENGINE_CACHE.pop(name, None)


def available_engines() -> List[str]:
    """Registered engine type names, sorted."""
    return sorted(_ENGINE_REGISTRY)
