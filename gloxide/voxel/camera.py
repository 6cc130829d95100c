"""A free-flying camera with yaw/pitch look controls and its matrices."""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np
from numpy.typing import NDArray

from gloxide.voxel.coords import (
    ChunkKey,
    LocalVoxelCoord,
    WorldVoxelCoord,
    world_to_chunk_key,
    world_to_local_coord,
)

DEFAULT_POSITION = (0.0, 38.0, 110.0)
DEFAULT_YAW_DEGREES = -90.0
DEFAULT_PITCH_DEGREES = -14.0
PITCH_LIMIT_DEGREES = 89.0

FIELD_OF_VIEW_Y = 0.95
NEAR_PLANE = 0.1
FAR_PLANE = 1200.0

_WORLD_UP = np.array((0.0, 1.0, 0.0))


def _normalize(vector: NDArray[np.float64]) -> NDArray[np.float64]:
    length = float(np.linalg.norm(vector))
    if length == 0.0:
        raise ValueError("cannot normalize a zero-length vector")
    return vector / length


def _vec3(values: Sequence[float] | NDArray[np.float64]) -> NDArray[np.float64]:
    vector = np.array(values, dtype=np.float64).reshape(-1)
    if vector.size != 3:
        raise ValueError(f"expected three components, got {vector.size}")
    return vector


def perspective(fov_y_radians: float, aspect: float, near: float, far: float) -> NDArray[np.float64]:
    """Right-handed perspective projection mapping depth to [-1, 1].

    The matrix acts on column vectors: clip = M @ (x, y, z, 1).
    """
    if aspect == 0.0:
        raise ValueError("aspect ratio must not be zero")
    if near == far:
        raise ValueError("near and far planes must differ")
    focal = 1.0 / math.tan(fov_y_radians / 2.0)
    matrix = np.zeros((4, 4))
    matrix[0, 0] = focal / aspect
    matrix[1, 1] = focal
    matrix[2, 2] = -(far + near) / (far - near)
    matrix[2, 3] = -(2.0 * far * near) / (far - near)
    matrix[3, 2] = -1.0
    return matrix


def look_at(
    eye: Sequence[float] | NDArray[np.float64],
    center: Sequence[float] | NDArray[np.float64],
    up: Sequence[float] | NDArray[np.float64],
) -> NDArray[np.float64]:
    """Right-handed view matrix looking from eye towards center."""
    eye_v = _vec3(eye)
    forward = _normalize(_vec3(center) - eye_v)
    side = _normalize(np.cross(forward, _vec3(up)))
    true_up = np.cross(side, forward)

    matrix = np.identity(4)
    matrix[0, :3] = side
    matrix[1, :3] = true_up
    matrix[2, :3] = -forward
    matrix[0, 3] = -float(side @ eye_v)
    matrix[1, 3] = -float(true_up @ eye_v)
    matrix[2, 3] = float(forward @ eye_v)
    return matrix


class FlyCamera:
    """Position plus yaw and pitch in degrees; pitch is kept within +-89."""

    def __init__(self) -> None:
        self._position = np.array(DEFAULT_POSITION, dtype=np.float64)
        self._yaw_degrees = DEFAULT_YAW_DEGREES
        self._pitch_degrees = DEFAULT_PITCH_DEGREES

    def reset_default_pose(self) -> None:
        self._position = np.array(DEFAULT_POSITION, dtype=np.float64)
        self._yaw_degrees = DEFAULT_YAW_DEGREES
        self._pitch_degrees = DEFAULT_PITCH_DEGREES

    @property
    def position(self) -> NDArray[np.float64]:
        return self._position.copy()

    @position.setter
    def position(self, value: Sequence[float] | NDArray[np.float64]) -> None:
        self._position = _vec3(value)

    @property
    def yaw_degrees(self) -> float:
        return self._yaw_degrees

    @property
    def pitch_degrees(self) -> float:
        return self._pitch_degrees

    def yaw_degrees_wrapped(self) -> float:
        """Yaw folded into the range (-180, 180]."""
        wrapped = math.fmod(self._yaw_degrees, 360.0)
        if wrapped <= -180.0:
            return wrapped + 360.0
        if wrapped > 180.0:
            return wrapped - 360.0
        return wrapped

    def apply_look_delta(self, delta_yaw_degrees: float, delta_pitch_degrees: float) -> None:
        self._yaw_degrees += delta_yaw_degrees
        pitch = self._pitch_degrees + delta_pitch_degrees
        self._pitch_degrees = min(max(pitch, -PITCH_LIMIT_DEGREES), PITCH_LIMIT_DEGREES)

    def forward(self) -> NDArray[np.float64]:
        yaw = math.radians(self._yaw_degrees)
        pitch = math.radians(self._pitch_degrees)
        return _normalize(
            np.array(
                (
                    math.cos(yaw) * math.cos(pitch),
                    math.sin(pitch),
                    math.sin(yaw) * math.cos(pitch),
                )
            )
        )

    def right(self) -> NDArray[np.float64]:
        return _normalize(np.cross(self.forward(), self.up()))

    def up(self) -> NDArray[np.float64]:
        return _WORLD_UP.copy()

    def view_matrix(self) -> NDArray[np.float64]:
        return look_at(self._position, self._position + self.forward(), self.up())

    def projection_matrix(self, framebuffer_width: int, framebuffer_height: int) -> NDArray[np.float64]:
        """Projection for a framebuffer; non-positive sizes are treated as one pixel."""
        safe_height = framebuffer_height if framebuffer_height > 0 else 1
        safe_width = framebuffer_width if framebuffer_width > 0 else 1
        return perspective(FIELD_OF_VIEW_Y, safe_width / safe_height, NEAR_PLANE, FAR_PLANE)

    def world_voxel_coord(self) -> WorldVoxelCoord:
        x, y, z = (math.floor(axis) for axis in self._position)
        return WorldVoxelCoord(x, y, z)

    def chunk_key(self) -> ChunkKey:
        return world_to_chunk_key(self.world_voxel_coord())

    def local_coord(self) -> LocalVoxelCoord:
        return world_to_local_coord(self.world_voxel_coord())

    def move_forward(self, amount: float) -> None:
        self._position = self._position + self.forward() * amount

    def move_right(self, amount: float) -> None:
        self._position = self._position + self.right() * amount

    def move_up(self, amount: float) -> None:
        self._position = self._position + self.up() * amount