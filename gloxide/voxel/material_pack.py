"""Block material textures: one RGBA layer per material, from files or placeholders."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np
from numpy.typing import NDArray

from gloxide.image import ImageData, ImageLoadError, load_image_rgba8

_log = logging.getLogger(__name__)

LAYER_RESOLUTION = 16
LAYER_COUNT = 6
MANIFEST_NAME = "pack.txt"

LAYER_KEYS = ("air", "stone", "slab", "grass", "water", "glass")
DEFAULT_FILES = ("air.png", "stone.png", "slab.png", "grass.png", "water.png", "glass.png")

Color = tuple[int, int, int]


def fill_checker(resolution: int, color_a: Color, color_b: Color, checker_size: int) -> NDArray[np.uint8]:
    """Opaque checkerboard of the given size; the top-left square uses color_a."""
    if resolution < 0:
        raise ValueError(f"resolution must not be negative: {resolution}")
    if checker_size <= 0:
        raise ValueError(f"checker size must be positive: {checker_size}")
    cells = np.arange(resolution) // checker_size
    use_a = (cells[:, np.newaxis] + cells[np.newaxis, :]) % 2 == 0
    pixels = np.full((resolution, resolution, 4), 255, dtype=np.uint8)
    pixels[..., :3] = np.where(
        use_a[..., np.newaxis],
        np.array(color_a, dtype=np.uint8),
        np.array(color_b, dtype=np.uint8),
    )
    return pixels


@dataclass(frozen=True)
class LayerFallback:
    """Checkerboard drawn for a layer that has no usable texture file."""

    a: Color = (0, 0, 0)
    b: Color = (0, 0, 0)
    checker_size: int = 4

    def render(self, resolution: int) -> NDArray[np.uint8]:
        return fill_checker(resolution, self.a, self.b, self.checker_size)


FALLBACKS = (
    LayerFallback((0, 0, 0), (0, 0, 0), 4),
    LayerFallback((110, 110, 115), (95, 95, 100), 4),
    LayerFallback((135, 185, 95), (120, 165, 85), 4),
    LayerFallback((165, 225, 95), (130, 205, 80), 2),
    LayerFallback((95, 160, 210), (70, 130, 190), 2),
    LayerFallback((165, 195, 215), (145, 175, 200), 2),
)


def _empty_layers() -> NDArray[np.uint8]:
    return np.zeros((0, 0, 0, 4), dtype=np.uint8)


@dataclass
class MaterialPack:
    """Texture array indexed as [layer, row, column, channel]."""

    albedo_array: NDArray[np.uint8] = field(default_factory=_empty_layers)
    layer_count: int = 0
    layer_resolution: int = 0
    loaded_from_file: tuple[bool, ...] = ()


def parse_manifest(path: str | os.PathLike[str]) -> dict[str, str]:
    """Read key = value lines; blank lines, '#' comments and incomplete entries are skipped.

    A manifest that cannot be read gives an empty mapping.
    """
    manifest: dict[str, str] = {}
    try:
        with open(path, encoding="utf-8") as handle:
            lines = handle.readlines()
    except (OSError, UnicodeDecodeError):
        return manifest

    for raw_line in lines:
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, equals, value = line.partition("=")
        if not equals:
            continue
        key, value = key.strip(), value.strip()
        if key and value:
            manifest[key] = value
    return manifest


def resize_nearest(image: ImageData, resolution: int) -> NDArray[np.uint8]:
    """Square nearest-neighbour resample of an RGBA image."""
    if image.width <= 0 or image.height <= 0:
        raise ValueError("cannot resize an empty image")
    if image.width == resolution and image.height == resolution:
        return image.pixels.copy()
    steps = np.arange(resolution)
    source_x = steps * image.width // resolution
    source_y = steps * image.height // resolution
    return image.pixels[np.ix_(source_y, source_x)].astype(np.uint8)


def create_placeholder_material_pack() -> MaterialPack:
    """Pack made of the built-in checkerboards only."""
    layers = np.stack([fallback.render(LAYER_RESOLUTION) for fallback in FALLBACKS])
    return MaterialPack(
        albedo_array=layers,
        layer_count=LAYER_COUNT,
        layer_resolution=LAYER_RESOLUTION,
        loaded_from_file=(False,) * LAYER_COUNT,
    )


def _try_load(path: Path) -> ImageData | None:
    if not path.exists():
        return None
    try:
        return load_image_rgba8(path)
    except ImageLoadError as exc:
        _log.error("%s", exc)
        return None


def create_material_pack_from_directory(directory_path: str | os.PathLike[str] | None) -> MaterialPack:
    """Load each layer from the directory, named by pack.txt or by default; fall back per layer."""
    if directory_path is None or os.fspath(directory_path) == "":
        return create_placeholder_material_pack()

    base = Path(directory_path)
    manifest = parse_manifest(base / MANIFEST_NAME)

    layers = []
    loaded = []
    for key, default_file, fallback in zip(LAYER_KEYS, DEFAULT_FILES, FALLBACKS):
        image = _try_load(base / manifest.get(key, default_file))
        usable = image is not None and image.width > 0 and image.height > 0 and image.channels == 4
        if usable:
            layers.append(resize_nearest(image, LAYER_RESOLUTION))
        else:
            layers.append(fallback.render(LAYER_RESOLUTION))
        loaded.append(usable)

    if any(loaded):
        _log.info("Loaded resource pack textures from '%s'", base)
    else:
        _log.warning("No valid textures found in '%s'; using placeholders", base)

    return MaterialPack(
        albedo_array=np.stack(layers),
        layer_count=LAYER_COUNT,
        layer_resolution=LAYER_RESOLUTION,
        loaded_from_file=tuple(loaded),
    )