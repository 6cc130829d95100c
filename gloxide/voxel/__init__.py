"""Voxel world: coordinates, blocks, chunks, terrain, meshing, streaming, camera, render passes and material packs."""