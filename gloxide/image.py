"""Loading images from disk as 8-bit RGBA pixel arrays."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray
from PIL import Image

RGBA_CHANNELS = 4


class ImageLoadError(Exception):
    """An image file could not be opened or decoded."""


def _empty_pixels() -> NDArray[np.uint8]:
    return np.zeros((0, 0, RGBA_CHANNELS), dtype=np.uint8)


@dataclass
class ImageData:
    """Decoded image; pixels are indexed as [row, column, channel]."""

    width: int = 0
    height: int = 0
    channels: int = 0
    pixels: NDArray[np.uint8] = field(default_factory=_empty_pixels)


def load_image_rgba8(path: str | os.PathLike[str]) -> ImageData:
    """Decode an image file, converting it to RGBA with 8 bits per channel."""
    try:
        with Image.open(path) as image:
            rgba = image.convert("RGBA")
            rgba.load()
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise ImageLoadError(f"Failed to load image '{os.fspath(path)}': {exc}") from exc

    pixels = np.array(rgba, dtype=np.uint8).reshape(rgba.height, rgba.width, RGBA_CHANNELS)
    return ImageData(width=rgba.width, height=rgba.height, channels=RGBA_CHANNELS, pixels=pixels)