"""The voxel runtime: world, residency streaming and meshing driven together."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from gloxide.voxel.coords import WorldVoxelCoord
from gloxide.voxel.meshing import (
    Controller,
    MeshingConfig,
    RenderPassBuckets,
    VisibilityQuery,
    VisibleDrawLists,
)
from gloxide.voxel.residency import ResidencyController, StreamingConfig
from gloxide.voxel.world import World

_log = logging.getLogger(__name__)

_ORIGIN = WorldVoxelCoord(0, 0, 0)


@dataclass
class RuntimeConfig:
    streaming: StreamingConfig = field(default_factory=StreamingConfig)
    meshing: MeshingConfig = field(default_factory=MeshingConfig)


@dataclass(frozen=True)
class RuntimeDebugSnapshot:
    active_chunk_count: int = 0
    generation_queued_count: int = 0
    upload_queued_count: int = 0


def _default_config() -> RuntimeConfig:
    return RuntimeConfig(
        streaming=StreamingConfig(
            horizontal_radius_chunks=2,
            vertical_radius_chunks=1,
            generation_budget_per_frame=12,
            unload_budget_per_frame=12,
            generation_workers=2,
            seed=1337,
        ),
        meshing=MeshingConfig(
            workers=2,
            build_commit_budget_per_frame=24,
            upload_budget_per_frame=24,
        ),
    )


class Runtime:
    """Owns the world and keeps it streamed and meshed around the origin."""

    def __init__(self) -> None:
        self._initialized = False
        self._simulation_time_seconds = 0.0
        self._world = World()
        self._residency = ResidencyController()
        self._meshing = Controller()

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def simulation_time_seconds(self) -> float:
        return self._simulation_time_seconds

    @property
    def world(self) -> World:
        return self._world

    def initialize(self, config: RuntimeConfig | None = None) -> None:
        """Start streaming and meshing; the default configuration is used when none is given."""
        if self._initialized:
            return
        if config is None:
            config = _default_config()

        self._world.clear()
        self._residency.initialize(config.streaming)
        self._meshing.initialize(config.meshing)
        self._residency.set_focus_world(_ORIGIN)
        self._residency.update(self._world)
        self._meshing.update(self._world)

        self._simulation_time_seconds = 0.0
        self._initialized = True
        _log.info(
            "Voxel runtime initialized (active chunks: %d, generation queued: %d, upload queued: %d)",
            self._world.active_chunk_count(),
            self._residency.queued_generation_count(),
            self._meshing.queued_upload_count(),
        )

    def shutdown(self) -> None:
        if not self._initialized:
            return
        self._meshing.shutdown()
        self._residency.shutdown()
        self._world.clear()
        self._initialized = False
        self._simulation_time_seconds = 0.0
        _log.info("Voxel runtime shutdown")

    def update_fixed(self, step_seconds: float) -> None:
        if not self._initialized:
            return
        self._simulation_time_seconds += float(step_seconds)

    def update_frame(self, delta_seconds: float) -> None:
        if not self._initialized:
            return
        self._residency.set_focus_world(_ORIGIN)
        self._residency.update(self._world)
        self._meshing.update(self._world)

    def debug_mark_all_chunks_dirty_mesh(self) -> None:
        if not self._initialized:
            return
        keys = self._world.chunk_keys()
        for key in keys:
            chunk = self._world.find_chunk(key)
            if chunk is not None:
                chunk.mark_dirty_mesh()
        _log.info("Voxel runtime debug remesh requested for %d chunks", len(keys))

    def debug_regenerate_loaded_chunks(self) -> None:
        if not self._initialized:
            return
        chunk_count = self._world.active_chunk_count()
        self._residency.regenerate_loaded_chunks(self._world)
        _log.info("Voxel runtime debug regenerate+remesh requested for %d chunks", chunk_count)

    def visible_render_pass_buckets(self, query: VisibilityQuery) -> RenderPassBuckets:
        return self._meshing.visible_render_pass_buckets(query)

    def visible_draw_lists(self, query: VisibilityQuery) -> VisibleDrawLists:
        return self._meshing.visible_draw_lists(query)

    def debug_snapshot(self) -> RuntimeDebugSnapshot:
        return RuntimeDebugSnapshot(
            active_chunk_count=self._world.active_chunk_count(),
            generation_queued_count=self._residency.queued_generation_count(),
            upload_queued_count=self._meshing.queued_upload_count(),
        )