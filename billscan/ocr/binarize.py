"""
Binarizer

Turns a decoded colour image into an ink/background PixelGrid.

The threshold is a hard two-level cut per channel, not anti-aliased:
a pixel is ink only if red, green and blue are all <= 128. This is
intentionally brittle and only works for high-contrast rendered text
over a light background (the screenshots this project reads).
"""

import logging
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from .errors import DecodeFailure
from .grid import PixelGrid, INK, BACKGROUND

logger = logging.getLogger(__name__)

# Per-channel cut: strictly greater is "light"
CHANNEL_THRESHOLD = 128

ImageInput = Union[str, Path, Image.Image, np.ndarray, PixelGrid]


def _flatten(image: Image.Image) -> Image.Image:
    """RGB version of an image, transparent areas composited onto white."""
    if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        white = Image.new("RGBA", rgba.size, (255, 255, 255, 255))
        return Image.alpha_composite(white, rgba).convert("RGB")
    if image.mode != "RGB":
        return image.convert("RGB")
    return image


def load_image(path: Union[str, Path]) -> Image.Image:
    """
    Decode an image file into an RGB PIL image.

    Transparent pixels come out white.

    Raises:
        DecodeFailure: if the file is missing or not a readable image
    """
    try:
        with Image.open(path) as img:
            img.load()
            return _flatten(img).copy()
    except (UnidentifiedImageError, OSError) as e:
        raise DecodeFailure(f"Cannot decode image {path}: {e}") from e


def _to_array(image: Union[Image.Image, np.ndarray]) -> np.ndarray:
    if isinstance(image, Image.Image):
        return np.asarray(_flatten(image))

    arr = np.asarray(image)
    if arr.ndim == 2:
        return np.repeat(arr[:, :, None], 3, axis=2)
    if arr.ndim == 3 and arr.shape[2] == 4:
        # Composite onto white so transparent pixels are background
        alpha = arr[:, :, 3:].astype(np.float32) / 255.0
        rgb = arr[:, :, :3] * alpha + 255.0 * (1.0 - alpha)
        return np.rint(rgb).astype(np.uint8)
    if arr.ndim == 3 and arr.shape[2] == 3:
        return arr
    raise DecodeFailure(f"Unsupported image array shape {arr.shape}")


def binarize(image: ImageInput) -> PixelGrid:
    """
    Classify every pixel of an image as ink or background.

    Args:
        image: File path, PIL image, numpy array (H x W, H x W x 3/4,
               RGB channel order) or an existing PixelGrid

    Returns:
        PixelGrid with the image's exact dimensions

    Raises:
        DecodeFailure: if a path cannot be decoded
    """
    if isinstance(image, PixelGrid):
        return PixelGrid(image.pixels.copy())
    if isinstance(image, (str, Path)):
        image = load_image(image)

    rgb = _to_array(image)
    light = rgb > CHANNEL_THRESHOLD
    ink = ~light.any(axis=2)
    pixels = np.where(ink, INK, BACKGROUND).astype(np.uint8)
    logger.debug(f"Binarized {pixels.shape[0]}x{pixels.shape[1]} image, {int(ink.sum())} ink pixels")
    return PixelGrid(pixels)
