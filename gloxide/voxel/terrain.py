"""Deterministic height-field terrain generation."""

from __future__ import annotations

import numpy as np

from gloxide.voxel.blocks import AIR_BLOCK_ID, GLASS_BLOCK_ID, STONE_BLOCK_ID
from gloxide.voxel.coords import CHUNK_EXTENT, ChunkKey
from gloxide.voxel.world import Chunk

_U32 = 0xFFFFFFFF
_BASE_HEIGHT = 8
_SURFACE_DEPTH = 2


def hash_mix(value: int) -> int:
    """Avalanche a 32-bit integer."""
    value &= _U32
    value ^= value >> 16
    value = (value * 0x7FEB352D) & _U32
    value ^= value >> 15
    value = (value * 0x846CA68B) & _U32
    value ^= value >> 16
    return value


class TerrainGenerator:
    """Fills chunks with a noisy height field: stone capped by glass."""

    def __init__(self, seed: int = 0) -> None:
        self.seed = seed

    @property
    def seed(self) -> int:
        return self._seed

    @seed.setter
    def seed(self, value: int) -> None:
        self._seed = value & _U32

    def sample_height(self, world_x: int, world_z: int) -> int:
        """Terrain surface height of the column at (world_x, world_z)."""
        x = world_x & _U32
        z = world_z & _U32
        mixed = hash_mix(self._seed ^ ((x * 0x9E3779B9) & _U32) ^ ((z * 0x85EBCA6B) & _U32))
        return _BASE_HEIGHT + (mixed & 0x0F)

    def populate_chunk(self, key: ChunkKey, chunk: Chunk) -> None:
        """Overwrite the chunk's blocks with terrain and mark its mesh dirty."""
        base_x = key.x * CHUNK_EXTENT
        base_z = key.z * CHUNK_EXTENT
        heights = np.array(
            [
                [self.sample_height(base_x + local_x, base_z + local_z) for local_x in range(CHUNK_EXTENT)]
                for local_z in range(CHUNK_EXTENT)
            ],
            dtype=np.int64,
        )[:, np.newaxis, :]
        world_y = (key.y * CHUNK_EXTENT + np.arange(CHUNK_EXTENT, dtype=np.int64))[np.newaxis, :, np.newaxis]

        surface = np.where(world_y >= heights - _SURFACE_DEPTH, GLASS_BLOCK_ID, STONE_BLOCK_ID)
        blocks = np.where(world_y <= heights, surface, AIR_BLOCK_ID).astype(np.uint16)

        # Axis order (z, y, x) flattens to the chunk's x-fastest layout.
        chunk.replace_blocks(blocks.reshape(-1))
        chunk.mark_dirty_mesh()