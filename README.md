# gloxide

A chunked voxel world you can drive from Python. The world is split into
32×32×32 chunks; terrain is generated around a focus point, loaded chunks are
turned into face meshes split by render layer (opaque, cutout, translucent),
and those meshes can be queried for visibility by distance or by frustum.

Everything runs without a window or a GPU. Committed meshes are kept as NumPy
arrays behind integer handles, draw ordering is described as plain data
(sorted render passes), and material textures are arrays of RGBA layers, so all
of it can be inspected, tested or handed to whichever graphics layer you use.

Install with `pip install .`; the test suite needs the `test` extra
(`pip install .[test]`) and runs with `pytest`.

## Modules

- `gloxide.voxel.coords` — `ChunkKey`, `LocalVoxelCoord`, `WorldVoxelCoord`
  and the conversions between them: `world_to_chunk_key`,
  `world_to_local_coord`, `chunk_and_local_to_world`, `flatten_local_coord`,
  `face_neighbors`, `floor_div`, `positive_mod`.
- `gloxide.voxel.blocks` — block ids (`AIR_BLOCK_ID`, `STONE_BLOCK_ID`,
  `GLASS_BLOCK_ID`, `WATER_BLOCK_ID`, `SLAB_BLOCK_ID`, `GRASS_BLOCK_ID`),
  `block_traits`, `block_material_layer`, `RenderLayer`, `BlockShape`.
  Unknown ids behave as solid opaque cubes.
- `gloxide.voxel.world` — `Chunk` (a flat `uint16` block array with a dirty-mesh
  flag) and `World`, a sparse map of loaded chunks with `try_get_block`,
  `get_block_or`, `set_block` (returning a `SetBlockResult`) and
  `neighbor_blocks`.
- `gloxide.voxel.terrain` — `TerrainGenerator`, a seeded, deterministic
  height-field generator, and `hash_mix`.
- `gloxide.voxel.mesh_builder` — `BuildRequest`, `build_chunk_mesh` and
  `ChunkMeshInfo`; only faces that can be seen are emitted, taking the touching
  layers of neighbour chunks into account.
- `gloxide.voxel.meshing` — the meshing `Controller` with background build
  threads, per-frame commit and upload budgets, render-pass buckets and
  `VisibilityQuery`/`is_chunk_visible`.
- `gloxide.voxel.residency` — `ResidencyController`, which generates the
  chunks around a focus point on background threads and unloads the rest.
- `gloxide.voxel.runtime` — `Runtime`, tying world, streaming and meshing
  together.
- `gloxide.voxel.camera` — `FlyCamera` plus `perspective` and `look_at`
  matrix helpers.
- `gloxide.voxel.render` — draw sorting (`sort_opaque_front_to_back`,
  `sort_translucent_back_to_front`), `frame_stats` and `build_frame_passes`.
- `gloxide.voxel.material_pack` — material packs read from a directory with a
  `pack.txt` manifest, with checkerboard fallbacks per layer.
- `gloxide.image` — `load_image_rgba8`, which decodes an image file into an
  `ImageData` with RGBA pixels or raises `ImageLoadError`.
- `gloxide.states` — a small state machine: `State`, `StateTransition`,
  `StateRegistry`, `AppContext`, `StateManager`.
- `gloxide.benchmark` — `run_benchmark`, `format_results` and `print_results`.
- `gloxide.logs` — logging setup with a console or a no-op backend.

## Generating terrain

```python
from gloxide.voxel.coords import ChunkKey, WorldVoxelCoord
from gloxide.voxel.terrain import TerrainGenerator
from gloxide.voxel.world import World

world = World()
generator = TerrainGenerator(1337)

key = ChunkKey(0, 0, 0)
chunk = world.ensure_chunk(key)
generator.populate_chunk(key, chunk)

print(world.try_get_block(WorldVoxelCoord(0, 0, 0)))   # 1: stone
print(world.try_get_block(WorldVoxelCoord(0, 31, 0)))  # 0: air
print(world.try_get_block(WorldVoxelCoord(0, 0, 64)))  # None: chunk not loaded
```

The terrain height of each column lies between 8 and 23. The top three blocks
of a column are glass, everything below is stone, everything above is air. The
same seed always gives the same world.

## Meshing a single chunk

```python
from gloxide.voxel.mesh_builder import BuildRequest, build_chunk_mesh

mesh = build_chunk_mesh(BuildRequest(key=key, blocks=chunk.blocks))
print(mesh.solid_voxel_count, mesh.opaque_face_count, mesh.translucent_face_count)
print(mesh.opaque_mesh.vertex_count, len(mesh.opaque_mesh.indices))
```

Each vertex is six floats: position, texture coordinate and material layer.
Each visible face is a quad of four vertices and six indices. Where a
neighbour face has not been filled in with `fill_neighbor_face_slice`, the
voxels beyond the chunk border count as air.

## Running the pipeline

`Runtime` streams chunks in around the world origin and meshes them in the
background. Call `update_frame` once per frame; queued work drains over a few
frames according to the configured budgets. `initialize()` without an argument
uses a radius of two chunks horizontally and one vertically with seed 1337;
pass a `RuntimeConfig` to choose other settings.

```python
from gloxide.voxel.coords import WorldVoxelCoord
from gloxide.voxel.meshing import VisibilityQuery
from gloxide.voxel.runtime import Runtime

runtime = Runtime()
runtime.initialize()

for _ in range(120):
    runtime.update_frame(1.0 / 60.0)

snapshot = runtime.debug_snapshot()
print(snapshot.active_chunk_count, snapshot.generation_queued_count)

draws = runtime.visible_draw_lists(
    VisibilityQuery(origin_world=WorldVoxelCoord(0, 32, 96), max_chunk_distance=8)
)
print(len(draws.opaque), len(draws.translucent))

runtime.shutdown()
```

The resulting draw lists can be ordered into passes with
`gloxide.voxel.render.build_frame_passes`, which sorts opaque draws front to
back and translucent draws back to front relative to the camera.

## Camera

```python
from gloxide.voxel.camera import FlyCamera

camera = FlyCamera()
camera.apply_look_delta(15.0, -5.0)   # pitch stays within ±89 degrees
camera.move_forward(10.0)
view_projection = camera.projection_matrix(1280, 720) @ camera.view_matrix()
print(camera.chunk_key(), camera.local_coord())
```

## Material packs

```python
from gloxide.voxel.material_pack import create_material_pack_from_directory

pack = create_material_pack_from_directory("resource_packs/default")
print(pack.albedo_array.shape)   # (6, 16, 16, 4)
print(pack.loaded_from_file)
```

The six layers are air, stone, slab, grass, water and glass. A `pack.txt` file
of `key = file` lines can name the image for each layer; otherwise
`stone.png` and so on are used. Images of another size are resampled to 16×16
by nearest neighbour, and a layer without a usable image gets a checkerboard.

## States

```python
from gloxide.states import AppContext, State, StateManager, StateTransition

class Countdown(State):
    def on_enter(self, context):
        self.frames = 3
    def on_exit(self, context):
        pass
    def update(self, context, delta_seconds):
        self.frames -= 1
        return StateTransition.quit() if self.frames == 0 else StateTransition.none()

context = AppContext()
manager = StateManager()
manager.initialize(context, Countdown)
while manager.update(context, 1.0 / 60.0):
    pass
```

Setting `context.pending_transition` switches or quits before the active
state's next update.

## Logging and timing

```python
import logging
from gloxide import logs
from gloxide.benchmark import print_results, run_benchmark

logs.init(logs.LoggingConfig(asynchronous=False, level=logging.INFO))
logs.log(logging.INFO, "hello")

runs = [run_benchmark("sum/range", 1000, lambda: sum(range(1000)))]
print_results(runs)

logs.shutdown()
```

`logs.init` also installs a `sys.excepthook` that logs uncaught exceptions with
their stack trace and dumps the buffer of recent records. `print_results`
writes a table with the total time in milliseconds and the average time per
iteration in microseconds; `format_results` returns the same table as a string.

## What this package does not do

- It opens no window and draws nothing. There is no OpenGL or other GPU code:
  `MeshHandle.upload` only keeps the mesh arrays under a new integer id, and
  render passes and material packs are data for a graphics layer you supply.
- There is no interactive program or command-line entry point, and no
  selector menu or concrete application states; `gloxide.states` provides
  only the machinery.
- `FlyCamera` has no keyboard or mouse handling; move it by calling its
  methods.
- `Runtime` always keeps the streaming focus at the world origin; to stream
  around another point, drive a `ResidencyController` directly with
  `set_focus_world`.