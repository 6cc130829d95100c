"""Background chunk meshing, mesh residency and visibility queries.

Dirty chunks are snapshotted into build requests and meshed on worker
threads. Finished meshes are committed under a per-frame budget and kept as
mesh handles, one per render layer, ready to be drawn.
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections import deque
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from gloxide.voxel.coords import ChunkKey, WorldVoxelCoord, world_to_chunk_key
from gloxide.voxel.mesh_builder import (
    FACE_COUNT,
    BuildRequest,
    ChunkMeshInfo,
    SurfaceMesh,
    build_chunk_mesh,
    chunk_bounds,
    chunk_center,
    fill_neighbor_face_slice,
    neighbor_chunk_key,
)
from gloxide.voxel.world import World

_log = logging.getLogger(__name__)

_handle_ids = itertools.count(1)


@dataclass
class MeshingConfig:
    workers: int = 1
    build_commit_budget_per_frame: int = 16
    upload_budget_per_frame: int = 16


def _empty_vertices() -> NDArray[np.float32]:
    return np.zeros(0, dtype=np.float32)


def _empty_indices() -> NDArray[np.uint32]:
    return np.zeros(0, dtype=np.uint32)


@dataclass
class MeshHandle:
    """A committed surface mesh; a handle id of 0 means nothing is held."""

    vao: int = 0
    index_count: int = 0
    vertices: NDArray[np.float32] = field(default_factory=_empty_vertices)
    indices: NDArray[np.uint32] = field(default_factory=_empty_indices)

    @classmethod
    def upload(cls, surface: SurfaceMesh) -> MeshHandle:
        """Commit a surface; an empty surface gives an empty handle."""
        if surface.is_empty:
            return cls()
        return cls(
            vao=next(_handle_ids),
            index_count=len(surface.indices),
            vertices=np.asarray(surface.vertices, dtype=np.float32),
            indices=np.asarray(surface.indices, dtype=np.uint32),
        )

    def destroy(self) -> None:
        self.vao = 0
        self.index_count = 0
        self.vertices = _empty_vertices()
        self.indices = _empty_indices()


@dataclass(frozen=True)
class DrawCommand:
    vao: int = 0
    index_count: int = 0
    sort_center_x: float = 0.0
    sort_center_y: float = 0.0
    sort_center_z: float = 0.0


@dataclass
class VisibleDrawLists:
    opaque: list[DrawCommand] = field(default_factory=list)
    cutout: list[DrawCommand] = field(default_factory=list)
    translucent: list[DrawCommand] = field(default_factory=list)


@dataclass
class RenderPassBuckets:
    opaque_chunks: list[ChunkKey] = field(default_factory=list)
    cutout_chunks: list[ChunkKey] = field(default_factory=list)
    translucent_chunks: list[ChunkKey] = field(default_factory=list)


@dataclass
class RenderPassStats:
    opaque_chunk_count: int = 0
    cutout_chunk_count: int = 0
    translucent_chunk_count: int = 0
    opaque_face_count: int = 0
    cutout_face_count: int = 0
    translucent_face_count: int = 0


@dataclass(frozen=True)
class UploadedMeshMeta:
    opaque_face_count: int = 0
    cutout_face_count: int = 0
    translucent_face_count: int = 0


@dataclass(frozen=True)
class FrustumPlane:
    """Plane nx*x + ny*y + nz*z + d = 0; the inside has a non-negative distance."""

    nx: float = 0.0
    ny: float = 0.0
    nz: float = 0.0
    d: float = 0.0


def _default_planes() -> tuple[FrustumPlane, ...]:
    return tuple(FrustumPlane() for _ in range(6))


@dataclass(frozen=True)
class VisibilityQuery:
    origin_world: WorldVoxelCoord = WorldVoxelCoord()
    enable_distance_cull: bool = True
    max_chunk_distance: int = 8
    enable_frustum_cull: bool = False
    frustum_planes: tuple[FrustumPlane, ...] = field(default_factory=_default_planes)


def is_chunk_visible(key: ChunkKey, query: VisibilityQuery) -> bool:
    """Whether a chunk passes the query's distance and frustum tests."""
    if query.enable_distance_cull:
        origin = world_to_chunk_key(query.origin_world)
        limit = query.max_chunk_distance
        if (
            abs(key.x - origin.x) > limit
            or abs(key.y - origin.y) > limit
            or abs(key.z - origin.z) > limit
        ):
            return False

    if not query.enable_frustum_cull:
        return True

    bounds = chunk_bounds(key)
    for plane in query.frustum_planes:
        px = bounds.max_x if plane.nx >= 0.0 else bounds.min_x
        py = bounds.max_y if plane.ny >= 0.0 else bounds.min_y
        pz = bounds.max_z if plane.nz >= 0.0 else bounds.min_z
        if plane.nx * px + plane.ny * py + plane.nz * pz + plane.d < 0.0:
            return False
    return True


@dataclass
class _ChunkGpuMesh:
    opaque: MeshHandle = field(default_factory=MeshHandle)
    cutout: MeshHandle = field(default_factory=MeshHandle)
    translucent: MeshHandle = field(default_factory=MeshHandle)

    def destroy(self) -> None:
        self.opaque.destroy()
        self.cutout.destroy()
        self.translucent.destroy()


class Controller:
    """Keeps chunk meshes in step with the world using background workers."""

    def __init__(self) -> None:
        self._config = MeshingConfig()
        self._initialized = False

        self._lock = threading.Lock()
        self._work_available = threading.Condition(self._lock)
        self._stopping = False
        self._workers: list[threading.Thread] = []

        self._build_queue: deque[BuildRequest] = deque()
        self._completed_queue: deque[ChunkMeshInfo] = deque()
        self._build_pending: set[ChunkKey] = set()

        self._upload_queue: deque[ChunkMeshInfo] = deque()
        self._upload_pending: set[ChunkKey] = set()
        self._uploaded_meta: dict[ChunkKey, UploadedMeshMeta] = {}
        self._gpu_meshes: dict[ChunkKey, _ChunkGpuMesh] = {}
        self._buckets = RenderPassBuckets()
        self._stats = RenderPassStats()

    @property
    def initialized(self) -> bool:
        return self._initialized

    def _reset_locked(self) -> None:
        self._build_queue.clear()
        self._completed_queue.clear()
        self._build_pending.clear()
        self._upload_queue.clear()
        self._upload_pending.clear()
        for gpu in self._gpu_meshes.values():
            gpu.destroy()
        self._uploaded_meta.clear()
        self._gpu_meshes.clear()
        self._buckets = RenderPassBuckets()
        self._stats = RenderPassStats()

    def initialize(self, config: MeshingConfig) -> None:
        self._config = config
        with self._lock:
            self._reset_locked()
            self._stopping = False
        self._initialized = True
        self._start_workers()

    def shutdown(self) -> None:
        self._stop_workers()
        with self._lock:
            self._reset_locked()
        self._initialized = False

    def update(self, world: World) -> None:
        """Queue dirty chunks, commit finished builds and upload meshes."""
        if not self._initialized:
            return
        self._enqueue_dirty_chunks(world)
        self._process_completed_builds()
        self._process_upload_queue()

    def queued_build_count(self) -> int:
        with self._lock:
            return len(self._build_queue) + len(self._completed_queue)

    def queued_upload_count(self) -> int:
        with self._lock:
            return len(self._upload_queue)

    def ready_mesh_count(self) -> int:
        with self._lock:
            return len(self._uploaded_meta)

    def render_pass_buckets(self) -> RenderPassBuckets:
        with self._lock:
            return RenderPassBuckets(
                list(self._buckets.opaque_chunks),
                list(self._buckets.cutout_chunks),
                list(self._buckets.translucent_chunks),
            )

    def render_pass_stats(self) -> RenderPassStats:
        with self._lock:
            stats = self._stats
            return RenderPassStats(
                stats.opaque_chunk_count,
                stats.cutout_chunk_count,
                stats.translucent_chunk_count,
                stats.opaque_face_count,
                stats.cutout_face_count,
                stats.translucent_face_count,
            )

    def visible_render_pass_buckets(self, query: VisibilityQuery) -> RenderPassBuckets:
        with self._lock:
            return RenderPassBuckets(
                [key for key in self._buckets.opaque_chunks if is_chunk_visible(key, query)],
                [key for key in self._buckets.cutout_chunks if is_chunk_visible(key, query)],
                [key for key in self._buckets.translucent_chunks if is_chunk_visible(key, query)],
            )

    def visible_draw_lists(self, query: VisibilityQuery) -> VisibleDrawLists:
        with self._lock:
            return VisibleDrawLists(
                self._draws_for(self._buckets.opaque_chunks, query, "opaque"),
                self._draws_for(self._buckets.cutout_chunks, query, "cutout"),
                self._draws_for(self._buckets.translucent_chunks, query, "translucent"),
            )

    def _draws_for(self, keys: list[ChunkKey], query: VisibilityQuery, layer: str) -> list[DrawCommand]:
        commands = []
        for key in keys:
            if not is_chunk_visible(key, query):
                continue
            gpu = self._gpu_meshes.get(key)
            if gpu is None:
                continue
            handle: MeshHandle = getattr(gpu, layer)
            if handle.vao == 0 or handle.index_count <= 0:
                continue
            cx, cy, cz = chunk_center(key)
            commands.append(DrawCommand(handle.vao, handle.index_count, cx, cy, cz))
        return commands

    def _enqueue_dirty_chunks(self, world: World) -> None:
        with self._lock:
            self._prune_unloaded_chunks_locked(world)

        keys = world.chunk_keys()

        for key in keys:
            chunk = world.find_chunk(key)
            if chunk is None or not chunk.dirty_mesh:
                continue
            for face in range(FACE_COUNT):
                neighbor = world.find_chunk(neighbor_chunk_key(key, face))
                if neighbor is not None:
                    neighbor.mark_dirty_mesh()

        with self._work_available:
            for key in keys:
                chunk = world.find_chunk(key)
                if (
                    chunk is None
                    or not chunk.dirty_mesh
                    or key in self._build_pending
                    or key in self._upload_pending
                ):
                    continue

                request = BuildRequest(key=key, blocks=chunk.blocks)
                for face in range(FACE_COUNT):
                    neighbor = world.find_chunk(neighbor_chunk_key(key, face))
                    if neighbor is not None:
                        fill_neighbor_face_slice(request, face, neighbor)

                self._build_queue.append(request)
                self._build_pending.add(key)
                chunk.clear_dirty_mesh()
            self._work_available.notify_all()

    def _process_completed_builds(self) -> None:
        with self._lock:
            count = min(self._config.build_commit_budget_per_frame, len(self._completed_queue))
            staged = [self._completed_queue.popleft() for _ in range(count)]

        if not staged:
            return

        with self._lock:
            for mesh in staged:
                self._build_pending.discard(mesh.key)
                if mesh.key in self._upload_pending:
                    for index, queued in enumerate(self._upload_queue):
                        if queued.key == mesh.key:
                            self._upload_queue[index] = mesh
                            break
                else:
                    self._upload_pending.add(mesh.key)
                    self._upload_queue.append(mesh)

    def _process_upload_queue(self) -> None:
        with self._lock:
            count = min(self._config.upload_budget_per_frame, len(self._upload_queue))
            for _ in range(count):
                mesh = self._upload_queue.popleft()
                self._upload_pending.discard(mesh.key)

                gpu = self._gpu_meshes.setdefault(mesh.key, _ChunkGpuMesh())
                gpu.destroy()
                gpu.opaque = MeshHandle.upload(mesh.opaque_mesh)
                gpu.cutout = MeshHandle.upload(mesh.cutout_mesh)
                gpu.translucent = MeshHandle.upload(mesh.translucent_mesh)

                self._uploaded_meta[mesh.key] = UploadedMeshMeta(
                    mesh.opaque_face_count, mesh.cutout_face_count, mesh.translucent_face_count
                )
            if count:
                self._rebuild_render_pass_buckets_locked()

    def _rebuild_render_pass_buckets_locked(self) -> None:
        buckets = RenderPassBuckets()
        stats = RenderPassStats()
        for key, meta in self._uploaded_meta.items():
            if meta.opaque_face_count > 0:
                buckets.opaque_chunks.append(key)
                stats.opaque_chunk_count += 1
                stats.opaque_face_count += meta.opaque_face_count
            if meta.cutout_face_count > 0:
                buckets.cutout_chunks.append(key)
                stats.cutout_chunk_count += 1
                stats.cutout_face_count += meta.cutout_face_count
            if meta.translucent_face_count > 0:
                buckets.translucent_chunks.append(key)
                stats.translucent_chunk_count += 1
                stats.translucent_face_count += meta.translucent_face_count
        self._buckets = buckets
        self._stats = stats

    def _prune_unloaded_chunks_locked(self, world: World) -> None:
        loaded = set(world.chunk_keys())
        removed = [key for key in self._uploaded_meta if key not in loaded]
        for key in removed:
            del self._uploaded_meta[key]
            gpu = self._gpu_meshes.pop(key, None)
            if gpu is not None:
                gpu.destroy()
            for queued in self._upload_queue:
                if queued.key == key:
                    self._upload_queue.remove(queued)
                    break
            self._upload_pending.discard(key)
        if removed:
            self._rebuild_render_pass_buckets_locked()

    def _start_workers(self) -> None:
        if self._workers:
            self._stop_workers()
        with self._lock:
            self._stopping = False

        for index in range(max(1, self._config.workers)):
            worker = threading.Thread(target=self._worker_main, name=f"meshing-{index}", daemon=True)
            worker.start()
            self._workers.append(worker)
        _log.info("Meshing workers started: %d", len(self._workers))

    def _stop_workers(self) -> None:
        with self._work_available:
            self._stopping = True
            self._build_queue.clear()
            self._build_pending.clear()
            self._upload_queue.clear()
            self._upload_pending.clear()
            self._completed_queue.clear()
            self._work_available.notify_all()

        for worker in self._workers:
            worker.join()
        self._workers.clear()

    def _worker_main(self) -> None:
        while True:
            with self._work_available:
                self._work_available.wait_for(lambda: self._stopping or bool(self._build_queue))
                if self._stopping and not self._build_queue:
                    return
                request = self._build_queue.popleft()

            mesh = build_chunk_mesh(request)

            with self._lock:
                if self._stopping:
                    continue
                self._completed_queue.append(mesh)