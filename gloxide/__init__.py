"""Chunked voxel world simulation: terrain streaming, meshing, render data, states, logging and benchmarks."""

__version__ = "0.1.0"