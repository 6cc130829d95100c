"""Chunk storage and the sparse world of loaded chunks."""

from __future__ import annotations

from enum import Enum

import numpy as np
from numpy.typing import ArrayLike, NDArray

from gloxide.voxel.blocks import AIR_BLOCK_ID, MAX_BLOCK_ID, BlockId
from gloxide.voxel.coords import (
    CHUNK_VOLUME,
    ChunkKey,
    LocalVoxelCoord,
    WorldVoxelCoord,
    face_neighbors,
    flatten_local_coord,
    is_local_coord_in_bounds,
    world_to_chunk_key,
    world_to_local_coord,
)


def _block_index(coord: LocalVoxelCoord) -> int:
    if not is_local_coord_in_bounds(coord):
        raise IndexError(f"local coordinate out of chunk bounds: {tuple(coord)}")
    return flatten_local_coord(coord)


class Chunk:
    """A cube of block ids with a flag telling whether its mesh is stale."""

    __slots__ = ("_blocks", "_dirty_mesh")

    def __init__(self) -> None:
        self._blocks: NDArray[np.uint16] = np.full(CHUNK_VOLUME, AIR_BLOCK_ID, dtype=np.uint16)
        self._dirty_mesh = True

    @property
    def blocks(self) -> NDArray[np.uint16]:
        """Read-only view of the flat block array, x varying fastest."""
        view = self._blocks.view()
        view.flags.writeable = False
        return view

    @property
    def dirty_mesh(self) -> bool:
        return self._dirty_mesh

    def get(self, coord: LocalVoxelCoord) -> BlockId:
        return int(self._blocks[_block_index(coord)])

    def set(self, coord: LocalVoxelCoord, block_id: BlockId) -> bool:
        """Store a block; returns whether anything changed."""
        if not 0 <= block_id <= MAX_BLOCK_ID:
            raise ValueError(f"block id out of range: {block_id}")
        index = _block_index(coord)
        if self._blocks[index] == block_id:
            return False
        self._blocks[index] = block_id
        self._dirty_mesh = True
        return True

    def replace_blocks(self, blocks: ArrayLike) -> bool:
        """Overwrite every block at once; returns whether anything changed."""
        incoming = np.asarray(blocks)
        if incoming.size != CHUNK_VOLUME:
            raise ValueError(f"expected {CHUNK_VOLUME} blocks, got {incoming.size}")
        incoming = incoming.reshape(CHUNK_VOLUME)
        if incoming.min() < 0 or incoming.max() > MAX_BLOCK_ID:
            raise ValueError("block ids out of range")
        if np.array_equal(incoming, self._blocks):
            return False
        self._blocks[:] = incoming
        self._dirty_mesh = True
        return True

    def clear_dirty_mesh(self) -> None:
        self._dirty_mesh = False

    def mark_dirty_mesh(self) -> None:
        self._dirty_mesh = True


class SetBlockResult(Enum):
    MISSING_CHUNK = "missing_chunk"
    UNCHANGED = "unchanged"
    UPDATED = "updated"


class World:
    """Sparse collection of loaded chunks addressed by chunk key."""

    def __init__(self) -> None:
        self._chunks: dict[ChunkKey, Chunk] = {}

    def has_chunk(self, key: ChunkKey) -> bool:
        return key in self._chunks

    def active_chunk_count(self) -> int:
        return len(self._chunks)

    def chunk_keys(self) -> list[ChunkKey]:
        return list(self._chunks)

    def clear(self) -> None:
        self._chunks.clear()

    def ensure_chunk(self, key: ChunkKey) -> Chunk:
        """Return the chunk at key, creating an empty dirty one if absent."""
        chunk = self._chunks.get(key)
        if chunk is None:
            chunk = Chunk()
            chunk.mark_dirty_mesh()
            self._chunks[key] = chunk
        return chunk

    def erase_chunk(self, key: ChunkKey) -> bool:
        return self._chunks.pop(key, None) is not None

    def find_chunk(self, key: ChunkKey) -> Chunk | None:
        return self._chunks.get(key)

    def try_get_block(self, coord: WorldVoxelCoord) -> BlockId | None:
        chunk = self._chunks.get(world_to_chunk_key(coord))
        if chunk is None:
            return None
        return chunk.get(world_to_local_coord(coord))

    def get_block_or(self, coord: WorldVoxelCoord, fallback: BlockId) -> BlockId:
        block_id = self.try_get_block(coord)
        return fallback if block_id is None else block_id

    def set_block(self, coord: WorldVoxelCoord, block_id: BlockId) -> SetBlockResult:
        chunk = self._chunks.get(world_to_chunk_key(coord))
        if chunk is None:
            return SetBlockResult.MISSING_CHUNK
        if not chunk.set(world_to_local_coord(coord), block_id):
            return SetBlockResult.UNCHANGED
        return SetBlockResult.UPDATED

    def neighbor_blocks(self, coord: WorldVoxelCoord) -> tuple[BlockId | None, ...]:
        """Blocks of the six face neighbours, None where no chunk is loaded."""
        return tuple(self.try_get_block(neighbor) for neighbor in face_neighbors(coord))