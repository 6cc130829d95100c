"""Chunk and voxel coordinate types and the conversions between them."""

from __future__ import annotations

from typing import NamedTuple

CHUNK_EXTENT = 32
CHUNK_AREA = CHUNK_EXTENT * CHUNK_EXTENT
CHUNK_VOLUME = CHUNK_AREA * CHUNK_EXTENT


class ChunkKey(NamedTuple):
    """Integer position of a chunk in chunk units."""

    x: int = 0
    y: int = 0
    z: int = 0


class LocalVoxelCoord(NamedTuple):
    """Voxel position inside a chunk, each axis in [0, CHUNK_EXTENT)."""

    x: int = 0
    y: int = 0
    z: int = 0


class WorldVoxelCoord(NamedTuple):
    """Absolute voxel position in the world."""

    x: int = 0
    y: int = 0
    z: int = 0


def _truncated_remainder(value: int, divisor: int) -> int:
    remainder = abs(value) % abs(divisor)
    return -remainder if value < 0 else remainder


def floor_div(value: int, divisor: int) -> int:
    """Divide rounding towards negative infinity."""
    return value // divisor


def positive_mod(value: int, divisor: int) -> int:
    """Remainder of truncating division, shifted up by the divisor when negative."""
    remainder = _truncated_remainder(value, divisor)
    if remainder < 0:
        return remainder + divisor
    return remainder


def is_local_coord_in_bounds(coord: LocalVoxelCoord) -> bool:
    """True when every axis of the coordinate lies inside one chunk."""
    return all(0 <= axis < CHUNK_EXTENT for axis in coord)


def flatten_local_coord(coord: LocalVoxelCoord) -> int:
    """Index of a local coordinate in a chunk's flat block array (x fastest)."""
    return coord.x + coord.y * CHUNK_EXTENT + coord.z * CHUNK_AREA


def world_to_chunk_key(coord: WorldVoxelCoord) -> ChunkKey:
    """Key of the chunk that holds the given world voxel."""
    return ChunkKey(
        floor_div(coord.x, CHUNK_EXTENT),
        floor_div(coord.y, CHUNK_EXTENT),
        floor_div(coord.z, CHUNK_EXTENT),
    )


def world_to_local_coord(coord: WorldVoxelCoord) -> LocalVoxelCoord:
    """Position of a world voxel inside its chunk."""
    return LocalVoxelCoord(
        positive_mod(coord.x, CHUNK_EXTENT),
        positive_mod(coord.y, CHUNK_EXTENT),
        positive_mod(coord.z, CHUNK_EXTENT),
    )


def chunk_and_local_to_world(chunk_key: ChunkKey, local_coord: LocalVoxelCoord) -> WorldVoxelCoord:
    """World voxel position from a chunk key and a local coordinate."""
    return WorldVoxelCoord(
        chunk_key.x * CHUNK_EXTENT + local_coord.x,
        chunk_key.y * CHUNK_EXTENT + local_coord.y,
        chunk_key.z * CHUNK_EXTENT + local_coord.z,
    )


def face_neighbors(coord: WorldVoxelCoord) -> tuple[WorldVoxelCoord, ...]:
    """The six face-adjacent voxels in the order +x, -x, +y, -y, +z, -z."""
    x, y, z = coord
    return (
        WorldVoxelCoord(x + 1, y, z),
        WorldVoxelCoord(x - 1, y, z),
        WorldVoxelCoord(x, y + 1, z),
        WorldVoxelCoord(x, y - 1, z),
        WorldVoxelCoord(x, y, z + 1),
        WorldVoxelCoord(x, y, z - 1),
    )