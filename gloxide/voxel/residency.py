"""Chunk residency: keeps the chunks around a focus point loaded.

Chunks inside the focus range are generated on worker threads and committed
to the world under a per-frame budget. Chunks that leave the range are queued
and unloaded under their own budget.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass, field

from gloxide.voxel.coords import ChunkKey, WorldVoxelCoord, world_to_chunk_key
from gloxide.voxel.terrain import TerrainGenerator
from gloxide.voxel.world import Chunk, World

_log = logging.getLogger(__name__)


@dataclass
class StreamingConfig:
    horizontal_radius_chunks: int = 4
    vertical_radius_chunks: int = 2
    generation_budget_per_frame: int = 8
    unload_budget_per_frame: int = 8
    generation_workers: int = 1
    seed: int = 1


@dataclass
class _GeneratedChunk:
    key: ChunkKey
    chunk: Chunk = field(default_factory=Chunk)


class ResidencyController:
    """Streams terrain chunks in and out of a world around a focus point."""

    def __init__(self) -> None:
        self._config = StreamingConfig()
        self._generator = TerrainGenerator()
        self._initialized = False

        self._focus_world = WorldVoxelCoord()
        self._focus_chunk = ChunkKey()

        self._desired_chunks: list[ChunkKey] = []
        self._desired_set: set[ChunkKey] = set()

        self._lock = threading.Lock()
        self._work_available = threading.Condition(self._lock)
        self._stopping = False
        self._workers: list[threading.Thread] = []

        self._generation_queue: deque[ChunkKey] = deque()
        self._generation_pending: set[ChunkKey] = set()
        self._generated_queue: deque[_GeneratedChunk] = deque()

        self._unload_queue: deque[ChunkKey] = deque()
        self._unload_queued: set[ChunkKey] = set()

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def focus_chunk(self) -> ChunkKey:
        return self._focus_chunk

    def initialize(self, config: StreamingConfig) -> None:
        self._config = config
        self._generator.seed = config.seed

        self._desired_chunks.clear()
        self._desired_set.clear()

        with self._lock:
            self._generation_queue.clear()
            self._generation_pending.clear()
            self._generated_queue.clear()
            self._stopping = False

        self._unload_queue.clear()
        self._unload_queued.clear()

        self._focus_world = WorldVoxelCoord()
        self._focus_chunk = world_to_chunk_key(self._focus_world)
        self._initialized = True
        self._start_workers()

    def shutdown(self) -> None:
        self._stop_workers()

        self._desired_chunks.clear()
        self._desired_set.clear()

        with self._lock:
            self._generation_queue.clear()
            self._generation_pending.clear()
            self._generated_queue.clear()

        self._unload_queue.clear()
        self._unload_queued.clear()
        self._initialized = False

    def set_focus_world(self, focus_coord: WorldVoxelCoord) -> None:
        self._focus_world = focus_coord
        self._focus_chunk = world_to_chunk_key(focus_coord)

    def update(self, world: World) -> None:
        """Queue missing and stale chunks, then commit and unload within budget."""
        if not self._initialized:
            return
        self._rebuild_desired_set()
        self._enqueue_generation_jobs(world)
        self._enqueue_unload_jobs(world)
        self._process_generated_chunks(world)
        self._process_unload_jobs(world)

    def regenerate_loaded_chunks(self, world: World) -> None:
        """Regenerate the terrain of every loaded chunk in place."""
        if not self._initialized:
            return
        for key in world.chunk_keys():
            chunk = world.find_chunk(key)
            if chunk is None:
                continue
            self._generator.populate_chunk(key, chunk)
            chunk.mark_dirty_mesh()

    def queued_generation_count(self) -> int:
        with self._lock:
            return len(self._generation_queue) + len(self._generated_queue)

    def queued_unload_count(self) -> int:
        return len(self._unload_queue)

    def is_within_focus_range(self, key: ChunkKey) -> bool:
        horizontal = self._config.horizontal_radius_chunks
        return (
            abs(key.x - self._focus_chunk.x) <= horizontal
            and abs(key.y - self._focus_chunk.y) <= self._config.vertical_radius_chunks
            and abs(key.z - self._focus_chunk.z) <= horizontal
        )

    def _rebuild_desired_set(self) -> None:
        focus = self._focus_chunk
        horizontal = self._config.horizontal_radius_chunks
        vertical = self._config.vertical_radius_chunks
        self._desired_chunks = [
            ChunkKey(x, y, z)
            for z in range(focus.z - horizontal, focus.z + horizontal + 1)
            for y in range(focus.y - vertical, focus.y + vertical + 1)
            for x in range(focus.x - horizontal, focus.x + horizontal + 1)
        ]
        self._desired_set = set(self._desired_chunks)

    def _enqueue_generation_jobs(self, world: World) -> None:
        with self._work_available:
            for key in self._desired_chunks:
                if world.has_chunk(key) or key in self._generation_pending:
                    continue
                self._generation_queue.append(key)
                self._generation_pending.add(key)
            self._work_available.notify_all()

    def _enqueue_unload_jobs(self, world: World) -> None:
        for key in world.chunk_keys():
            if self.is_within_focus_range(key) or key in self._unload_queued:
                continue
            self._unload_queue.append(key)
            self._unload_queued.add(key)

    def _process_generated_chunks(self, world: World) -> None:
        with self._lock:
            count = min(self._config.generation_budget_per_frame, len(self._generated_queue))
            pending = [self._generated_queue.popleft() for _ in range(count)]

        for generated in pending:
            with self._lock:
                self._generation_pending.discard(generated.key)
                should_commit = generated.key in self._desired_set
            if not should_commit:
                continue
            target = world.ensure_chunk(generated.key)
            target.replace_blocks(generated.chunk.blocks)
            target.mark_dirty_mesh()

    def _process_unload_jobs(self, world: World) -> None:
        count = min(self._config.unload_budget_per_frame, len(self._unload_queue))
        for _ in range(count):
            key = self._unload_queue.popleft()
            self._unload_queued.discard(key)
            if not self.is_within_focus_range(key):
                world.erase_chunk(key)

    def _start_workers(self) -> None:
        if self._workers:
            self._stop_workers()
        with self._lock:
            self._stopping = False

        for index in range(max(1, self._config.generation_workers)):
            worker = threading.Thread(target=self._worker_main, name=f"generation-{index}", daemon=True)
            worker.start()
            self._workers.append(worker)
        _log.info("Streaming generation workers started: %d", len(self._workers))

    def _stop_workers(self) -> None:
        with self._work_available:
            self._stopping = True
            self._generation_queue.clear()
            self._generation_pending.clear()
            self._work_available.notify_all()

        for worker in self._workers:
            worker.join()
        self._workers.clear()

    def _worker_main(self) -> None:
        while True:
            with self._work_available:
                self._work_available.wait_for(lambda: self._stopping or bool(self._generation_queue))
                if self._stopping and not self._generation_queue:
                    return
                key = self._generation_queue.popleft()

            generated = _GeneratedChunk(key=key)
            self._generator.populate_chunk(key, generated.chunk)

            with self._lock:
                if self._stopping:
                    continue
                self._generated_queue.append(generated)