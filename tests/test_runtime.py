import time

import pytest

from gloxide.voxel.blocks import AIR_BLOCK_ID, STONE_BLOCK_ID
from gloxide.voxel.coords import ChunkKey, WorldVoxelCoord
from gloxide.voxel.meshing import MeshingConfig, VisibilityQuery
from gloxide.voxel.residency import StreamingConfig
from gloxide.voxel.runtime import Runtime, RuntimeConfig, RuntimeDebugSnapshot
from gloxide.voxel.world import SetBlockResult

CHUNK_COUNT = 9


def _config():
    return RuntimeConfig(
        streaming=StreamingConfig(
            horizontal_radius_chunks=1,
            vertical_radius_chunks=0,
            generation_budget_per_frame=16,
            unload_budget_per_frame=16,
            generation_workers=2,
            seed=7,
        ),
        meshing=MeshingConfig(workers=2, build_commit_budget_per_frame=32, upload_budget_per_frame=32),
    )


def _drain(runtime, timeout=60.0):
    query = VisibilityQuery(enable_distance_cull=False)
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        runtime.update_frame(1.0 / 60.0)
        snapshot = runtime.debug_snapshot()
        buckets = runtime.visible_render_pass_buckets(query)
        if (
            snapshot.active_chunk_count == CHUNK_COUNT
            and snapshot.generation_queued_count == 0
            and snapshot.upload_queued_count == 0
            and len(set(buckets.opaque_chunks)) == CHUNK_COUNT
        ):
            return True
        time.sleep(0.002)
    return False


@pytest.fixture
def runtime():
    instance = Runtime()
    yield instance
    instance.shutdown()


@pytest.fixture
def drained(runtime):
    runtime.initialize(_config())
    assert _drain(runtime)
    return runtime


def test_uninitialized_runtime_is_inert(runtime):
    runtime.update_frame(0.1)
    runtime.update_fixed(0.5)
    assert runtime.initialized is False
    assert runtime.simulation_time_seconds == 0.0
    assert runtime.debug_snapshot() == RuntimeDebugSnapshot()


def test_update_fixed_accumulates_simulation_time(runtime):
    runtime.initialize(_config())
    runtime.update_fixed(0.5)
    runtime.update_fixed(0.25)
    assert runtime.simulation_time_seconds == pytest.approx(0.75)


def test_second_initialize_is_ignored(runtime):
    runtime.initialize(_config())
    runtime.update_fixed(0.5)
    runtime.initialize(_config())
    assert runtime.simulation_time_seconds == pytest.approx(0.5)
    assert runtime.initialized is True


def test_pipeline_loads_and_meshes_every_chunk(drained):
    snapshot = drained.debug_snapshot()
    assert snapshot.active_chunk_count == CHUNK_COUNT
    draws = drained.visible_draw_lists(VisibilityQuery(enable_distance_cull=False))
    assert len(draws.opaque) == CHUNK_COUNT
    assert all(command.index_count > 0 for command in draws.opaque)
    assert len({command.vao for command in draws.opaque}) == CHUNK_COUNT


def test_distance_cull_keeps_only_nearby_chunks(drained):
    query = VisibilityQuery(origin_world=WorldVoxelCoord(0, 0, 0), max_chunk_distance=0)
    buckets = drained.visible_render_pass_buckets(query)
    assert buckets.opaque_chunks == [ChunkKey(0, 0, 0)]


def test_debug_mark_all_chunks_dirty(drained):
    for key in drained.world.chunk_keys():
        drained.world.find_chunk(key).clear_dirty_mesh()
    drained.debug_mark_all_chunks_dirty_mesh()
    assert all(drained.world.find_chunk(key).dirty_mesh for key in drained.world.chunk_keys())


def test_debug_regenerate_restores_edited_blocks(drained):
    coord = WorldVoxelCoord(0, 0, 0)
    assert drained.world.set_block(coord, AIR_BLOCK_ID) is SetBlockResult.UPDATED
    drained.debug_regenerate_loaded_chunks()
    assert drained.world.try_get_block(coord) == STONE_BLOCK_ID


def test_shutdown_clears_everything(drained):
    drained.update_fixed(1.0)
    drained.shutdown()
    assert drained.initialized is False
    assert drained.simulation_time_seconds == 0.0
    assert drained.debug_snapshot() == RuntimeDebugSnapshot()