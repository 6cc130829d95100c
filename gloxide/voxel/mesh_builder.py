"""Turning a chunk's blocks into per-render-layer triangle meshes."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import NamedTuple

import numpy as np
from numpy.typing import ArrayLike, NDArray

from gloxide.voxel.blocks import (
    AIR_BLOCK_ID,
    BlockId,
    BlockTraits,
    RenderLayer,
    block_material_layer,
    block_traits,
    is_full_cube,
)
from gloxide.voxel.coords import (
    CHUNK_AREA,
    CHUNK_EXTENT,
    CHUNK_VOLUME,
    ChunkKey,
    LocalVoxelCoord,
    flatten_local_coord,
)
from gloxide.voxel.world import Chunk

FACE_POS_X = 0
FACE_NEG_X = 1
FACE_POS_Y = 2
FACE_NEG_Y = 3
FACE_POS_Z = 4
FACE_NEG_Z = 5
FACE_COUNT = 6

FLOATS_PER_VERTEX = 6
"""Each vertex is position (3), texture coordinate (2) and material layer (1)."""

_NEIGHBOR_OFFSETS = ((1, 0, 0), (-1, 0, 0), (0, 1, 0), (0, -1, 0), (0, 0, 1), (0, 0, -1))

# Corner offsets of each face quad, counter-clockwise seen from outside.
_FACE_CORNERS = np.array(
    [
        [(1, 0, 0), (1, 1, 0), (1, 1, 1), (1, 0, 1)],
        [(0, 0, 1), (0, 1, 1), (0, 1, 0), (0, 0, 0)],
        [(0, 1, 0), (0, 1, 1), (1, 1, 1), (1, 1, 0)],
        [(0, 0, 1), (0, 0, 0), (1, 0, 0), (1, 0, 1)],
        [(1, 0, 1), (1, 1, 1), (0, 1, 1), (0, 0, 1)],
        [(0, 0, 0), (0, 1, 0), (1, 1, 0), (1, 0, 0)],
    ],
    dtype=np.float64,
)
_FACE_UVS = np.array([(0.0, 0.0), (0.0, 1.0), (1.0, 1.0), (1.0, 0.0)], dtype=np.float64)
_QUAD_INDICES = np.array([0, 1, 2, 2, 3, 0], dtype=np.int64)

# Block arrays are viewed as [z, y, x]; these pick the neighbour layer that touches each face.
_NEIGHBOR_LAYER = (
    np.s_[:, :, 0],
    np.s_[:, :, -1],
    np.s_[:, 0, :],
    np.s_[:, -1, :],
    np.s_[0, :, :],
    np.s_[-1, :, :],
)
# Border cells of a chunk padded by one voxel on every side, per face.
_PADDED_BORDER = (
    np.s_[1:-1, 1:-1, -1],
    np.s_[1:-1, 1:-1, 0],
    np.s_[1:-1, -1, 1:-1],
    np.s_[1:-1, 0, 1:-1],
    np.s_[-1, 1:-1, 1:-1],
    np.s_[0, 1:-1, 1:-1],
)
# Views of the padded array giving each voxel's neighbour across each face.
_PADDED_NEIGHBORS = (
    np.s_[1:-1, 1:-1, 2:],
    np.s_[1:-1, 1:-1, :-2],
    np.s_[1:-1, 2:, 1:-1],
    np.s_[1:-1, :-2, 1:-1],
    np.s_[2:, 1:-1, 1:-1],
    np.s_[:-2, 1:-1, 1:-1],
)

_LAYER_ORDER = (RenderLayer.OPAQUE, RenderLayer.CUTOUT, RenderLayer.TRANSLUCENT)


def _check_face(face_index: int) -> None:
    if not 0 <= face_index < FACE_COUNT:
        raise ValueError(f"face index out of range: {face_index}")


def _face_slice_index(u: int, v: int) -> int:
    return u + v * CHUNK_EXTENT


@dataclass
class SurfaceMesh:
    """Interleaved vertex data and triangle indices for one render layer."""

    vertices: list[float] = field(default_factory=list)
    indices: list[int] = field(default_factory=list)

    @property
    def vertex_count(self) -> int:
        return len(self.vertices) // FLOATS_PER_VERTEX

    @property
    def is_empty(self) -> bool:
        return not self.vertices or not self.indices

    def append_face(self, positions: ArrayLike, material_layer: float) -> None:
        """Append one quad given its four corner positions."""
        corners = np.asarray(positions, dtype=np.float64)
        if corners.shape != (4, 3):
            raise ValueError(f"a face needs four 3D corners, got shape {corners.shape}")
        self._append_quads(corners[np.newaxis], np.array([material_layer], dtype=np.float64))

    def append_voxel_face(
        self, material_layer: float, x: float, y: float, z: float, face_index: int
    ) -> None:
        """Append the given face of the unit voxel whose minimum corner is (x, y, z)."""
        _check_face(face_index)
        self.append_face(_FACE_CORNERS[face_index] + np.array((x, y, z), dtype=np.float64), material_layer)

    def _append_quads(self, corners: NDArray[np.float64], material_layers: NDArray[np.float64]) -> None:
        quad_count = corners.shape[0]
        if quad_count == 0:
            return
        uvs = np.broadcast_to(_FACE_UVS, (quad_count, 4, 2))
        layers = np.broadcast_to(material_layers[:, np.newaxis, np.newaxis], (quad_count, 4, 1))
        vertices = np.concatenate((corners, uvs, layers), axis=-1)
        bases = self.vertex_count + 4 * np.arange(quad_count, dtype=np.int64)
        indices = bases[:, np.newaxis] + _QUAD_INDICES
        self.vertices.extend(vertices.reshape(-1).tolist())
        self.indices.extend(indices.reshape(-1).tolist())


@dataclass
class ChunkMeshInfo:
    """Mesh of one chunk split by render layer, with face statistics."""

    key: ChunkKey = ChunkKey()
    solid_voxel_count: int = 0
    non_full_voxel_count: int = 0
    opaque_face_count: int = 0
    cutout_face_count: int = 0
    translucent_face_count: int = 0
    total_exposed_face_count: int = 0
    opaque_mesh: SurfaceMesh = field(default_factory=SurfaceMesh)
    cutout_mesh: SurfaceMesh = field(default_factory=SurfaceMesh)
    translucent_mesh: SurfaceMesh = field(default_factory=SurfaceMesh)

    def surface(self, layer: RenderLayer) -> SurfaceMesh:
        """The surface mesh that holds faces of the given layer."""
        if layer is RenderLayer.CUTOUT:
            return self.cutout_mesh
        if layer is RenderLayer.TRANSLUCENT:
            return self.translucent_mesh
        return self.opaque_mesh


def _default_blocks() -> NDArray[np.uint16]:
    return np.full(CHUNK_VOLUME, AIR_BLOCK_ID, dtype=np.uint16)


def _default_face_blocks() -> list[NDArray[np.uint16]]:
    return [np.full(CHUNK_AREA, AIR_BLOCK_ID, dtype=np.uint16) for _ in range(FACE_COUNT)]


@dataclass
class BuildRequest:
    """Snapshot of a chunk and the neighbour layers touching its six faces."""

    key: ChunkKey = ChunkKey()
    blocks: NDArray[np.uint16] = field(default_factory=_default_blocks)
    neighbor_face_present: list[bool] = field(default_factory=lambda: [False] * FACE_COUNT)
    neighbor_face_blocks: list[NDArray[np.uint16]] = field(default_factory=_default_face_blocks)

    def __post_init__(self) -> None:
        blocks = np.array(self.blocks, dtype=np.uint16).reshape(-1)
        if blocks.size != CHUNK_VOLUME:
            raise ValueError(f"expected {CHUNK_VOLUME} blocks, got {blocks.size}")
        self.blocks = blocks

        if len(self.neighbor_face_present) != FACE_COUNT or len(self.neighbor_face_blocks) != FACE_COUNT:
            raise ValueError(f"expected neighbour data for {FACE_COUNT} faces")
        self.neighbor_face_present = [bool(present) for present in self.neighbor_face_present]

        face_blocks = []
        for slice_blocks in self.neighbor_face_blocks:
            array = np.array(slice_blocks, dtype=np.uint16).reshape(-1)
            if array.size != CHUNK_AREA:
                raise ValueError(f"expected {CHUNK_AREA} blocks per face, got {array.size}")
            face_blocks.append(array)
        self.neighbor_face_blocks = face_blocks


class ChunkBounds(NamedTuple):
    """Axis-aligned box of a chunk in world units."""

    min_x: float
    min_y: float
    min_z: float
    max_x: float
    max_y: float
    max_z: float


def should_emit_face(
    current_block: BlockId,
    current_traits: BlockTraits,
    neighbor_block: BlockId,
    neighbor_traits: BlockTraits,
) -> bool:
    """Whether the face between a block and its neighbour is visible."""
    if neighbor_traits.empty:
        return True

    if not is_full_cube(current_traits.shape) or not is_full_cube(neighbor_traits.shape):
        return True

    if current_traits.render_layer is RenderLayer.TRANSLUCENT:
        return neighbor_traits.render_layer is RenderLayer.TRANSLUCENT and neighbor_block != current_block

    return not (neighbor_traits.render_layer is RenderLayer.OPAQUE and is_full_cube(neighbor_traits.shape))


def chunk_bounds(key: ChunkKey) -> ChunkBounds:
    """World-space box covered by a chunk."""
    extent = float(CHUNK_EXTENT)
    min_x, min_y, min_z = key.x * extent, key.y * extent, key.z * extent
    return ChunkBounds(min_x, min_y, min_z, min_x + extent, min_y + extent, min_z + extent)


def chunk_center(key: ChunkKey) -> tuple[float, float, float]:
    """World-space centre of a chunk."""
    extent = float(CHUNK_EXTENT)
    half = extent * 0.5
    return (key.x * extent + half, key.y * extent + half, key.z * extent + half)


def neighbor_chunk_key(key: ChunkKey, face_index: int) -> ChunkKey:
    """Key of the chunk across the given face."""
    _check_face(face_index)
    dx, dy, dz = _NEIGHBOR_OFFSETS[face_index]
    return ChunkKey(key.x + dx, key.y + dy, key.z + dz)


def fill_neighbor_face_slice(request: BuildRequest, face_index: int, neighbor_chunk: Chunk) -> None:
    """Copy the neighbour chunk's layer touching the given face into the request."""
    _check_face(face_index)
    neighbor_blocks = np.asarray(neighbor_chunk.blocks).reshape(CHUNK_EXTENT, CHUNK_EXTENT, CHUNK_EXTENT)
    request.neighbor_face_blocks[face_index] = neighbor_blocks[_NEIGHBOR_LAYER[face_index]].reshape(-1).copy()
    request.neighbor_face_present[face_index] = True


def sample_block(request: BuildRequest, x: int, y: int, z: int) -> BlockId:
    """Block at a local coordinate, reaching one voxel into neighbour faces; air elsewhere."""
    extent = CHUNK_EXTENT
    if 0 <= x < extent and 0 <= y < extent and 0 <= z < extent:
        return int(request.blocks[flatten_local_coord(LocalVoxelCoord(x, y, z))])

    candidates = (
        (FACE_POS_X, x == extent, y, z),
        (FACE_NEG_X, x == -1, y, z),
        (FACE_POS_Y, y == extent, x, z),
        (FACE_NEG_Y, y == -1, x, z),
        (FACE_POS_Z, z == extent, x, y),
        (FACE_NEG_Z, z == -1, x, y),
    )
    for face, on_face, u, v in candidates:
        if not on_face:
            continue
        if not request.neighbor_face_present[face] or not (0 <= u < extent and 0 <= v < extent):
            return AIR_BLOCK_ID
        return int(request.neighbor_face_blocks[face][_face_slice_index(u, v)])

    return AIR_BLOCK_ID


def build_chunk_mesh(request: BuildRequest) -> ChunkMeshInfo:
    """Emit the visible faces of every non-empty voxel, grouped by render layer.

    Voxels are visited with x varying fastest, then y, then z, and each voxel's
    faces in the order +x, -x, +y, -y, +z, -z.
    """
    extent = CHUNK_EXTENT
    info = ChunkMeshInfo(key=request.key)

    padded = np.full((extent + 2,) * 3, AIR_BLOCK_ID, dtype=np.uint16)
    padded[1:-1, 1:-1, 1:-1] = request.blocks.reshape(extent, extent, extent)
    for face, border in enumerate(_PADDED_BORDER):
        if request.neighbor_face_present[face]:
            padded[border] = request.neighbor_face_blocks[face].reshape(extent, extent)

    current = request.blocks.astype(np.int64)
    neighbors = np.stack([padded[view] for view in _PADDED_NEIGHBORS], axis=-1).reshape(
        CHUNK_VOLUME, FACE_COUNT
    ).astype(np.int64)

    block_ids = np.unique(current)
    traits_by_id = {int(block_id): block_traits(int(block_id)) for block_id in block_ids}
    slot = np.searchsorted(block_ids, current)
    empty = np.array([traits_by_id[int(b)].empty for b in block_ids], dtype=bool)[slot]

    solid = np.flatnonzero(~empty)
    if solid.size == 0:
        return info

    solid_ids = current[solid]
    solid_slot = slot[solid]
    full = np.array([is_full_cube(traits_by_id[int(b)].shape) for b in block_ids], dtype=bool)[solid_slot]
    layer_codes = np.array(
        [_LAYER_ORDER.index(traits_by_id[int(b)].render_layer) for b in block_ids], dtype=np.int64
    )[solid_slot]
    materials = np.array([block_material_layer(int(b)) for b in block_ids], dtype=np.float64)[solid_slot]

    info.solid_voxel_count = int(solid.size)
    info.non_full_voxel_count = int(np.count_nonzero(~full))

    pair_codes = (solid_ids[:, np.newaxis] << 16) | neighbors[solid]
    unique_pairs, inverse = np.unique(pair_codes, return_inverse=True)
    emits = np.fromiter(
        (
            should_emit_face(code >> 16, block_traits(code >> 16), code & 0xFFFF, block_traits(code & 0xFFFF))
            for code in unique_pairs.tolist()
        ),
        dtype=bool,
        count=unique_pairs.size,
    )
    visible = emits[inverse.reshape(-1)].reshape(solid.size, FACE_COUNT)

    local = np.stack((solid % extent, (solid // extent) % extent, solid // CHUNK_AREA), axis=-1)
    origin = np.array(request.key, dtype=np.int64) * extent
    voxel_world = (origin + local).astype(np.float64)

    face_counts: dict[RenderLayer, int] = {}
    for code, layer in enumerate(_LAYER_ORDER):
        rows, faces = np.nonzero(visible & (layer_codes == code)[:, np.newaxis])
        face_counts[layer] = int(rows.size)
        corners = voxel_world[rows][:, np.newaxis, :] + _FACE_CORNERS[faces]
        info.surface(layer)._append_quads(corners, materials[rows])

    info.opaque_face_count = face_counts[RenderLayer.OPAQUE]
    info.cutout_face_count = face_counts[RenderLayer.CUTOUT]
    info.translucent_face_count = face_counts[RenderLayer.TRANSLUCENT]
    info.total_exposed_face_count = sum(face_counts.values())
    return info


def _face_blocks_from(chunk_blocks: Sequence[int]) -> NDArray[np.uint16]:
    return np.asarray(chunk_blocks, dtype=np.uint16)