"""Block identifiers and their rendering traits."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

BlockId = int
MaterialId = int

AIR_BLOCK_ID: BlockId = 0
STONE_BLOCK_ID: BlockId = 1
GLASS_BLOCK_ID: BlockId = 2
WATER_BLOCK_ID: BlockId = 3
SLAB_BLOCK_ID: BlockId = 4
GRASS_BLOCK_ID: BlockId = 5

MAX_BLOCK_ID: BlockId = 0xFFFF
DEFAULT_MATERIAL_ID: MaterialId = 0


class RenderLayer(Enum):
    OPAQUE = "opaque"
    CUTOUT = "cutout"
    TRANSLUCENT = "translucent"


class BlockShape(Enum):
    FULL_CUBE = "full_cube"
    SLAB = "slab"
    CROSS = "cross"
    LIQUID = "liquid"


@dataclass(frozen=True)
class BlockTraits:
    """How a block behaves for collision and meshing."""

    empty: bool = False
    collision_solid: bool = False
    render_layer: RenderLayer = RenderLayer.OPAQUE
    shape: BlockShape = BlockShape.FULL_CUBE


_MATERIAL_LAYERS: dict[BlockId, float] = {
    AIR_BLOCK_ID: 0.0,
    STONE_BLOCK_ID: 1.0,
    SLAB_BLOCK_ID: 2.0,
    GRASS_BLOCK_ID: 3.0,
    WATER_BLOCK_ID: 4.0,
    GLASS_BLOCK_ID: 5.0,
}
_DEFAULT_MATERIAL_LAYER = 1.0

_DEFAULT_TRAITS = BlockTraits(
    empty=False, collision_solid=True, render_layer=RenderLayer.OPAQUE, shape=BlockShape.FULL_CUBE
)

_TRAITS: dict[BlockId, BlockTraits] = {
    AIR_BLOCK_ID: BlockTraits(
        empty=True, collision_solid=False, render_layer=RenderLayer.OPAQUE, shape=BlockShape.FULL_CUBE
    ),
    STONE_BLOCK_ID: _DEFAULT_TRAITS,
    GLASS_BLOCK_ID: BlockTraits(
        empty=False, collision_solid=True, render_layer=RenderLayer.TRANSLUCENT, shape=BlockShape.FULL_CUBE
    ),
    WATER_BLOCK_ID: BlockTraits(
        empty=False, collision_solid=False, render_layer=RenderLayer.TRANSLUCENT, shape=BlockShape.LIQUID
    ),
    SLAB_BLOCK_ID: BlockTraits(
        empty=False, collision_solid=True, render_layer=RenderLayer.OPAQUE, shape=BlockShape.SLAB
    ),
    GRASS_BLOCK_ID: BlockTraits(
        empty=False, collision_solid=False, render_layer=RenderLayer.CUTOUT, shape=BlockShape.CROSS
    ),
}


def block_material_layer(block_id: BlockId) -> float:
    """Texture array layer used for a block; unknown blocks use the stone layer."""
    return _MATERIAL_LAYERS.get(block_id, _DEFAULT_MATERIAL_LAYER)


def is_full_cube(shape: BlockShape) -> bool:
    return shape is BlockShape.FULL_CUBE


def block_traits(block_id: BlockId) -> BlockTraits:
    """Traits of a block; unknown blocks behave as solid opaque cubes."""
    return _TRAITS.get(block_id, _DEFAULT_TRAITS)