"""Frame planning for voxel chunks: draw ordering and the three render passes."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from gloxide.voxel.blocks import RenderLayer
from gloxide.voxel.meshing import DrawCommand, VisibleDrawLists

CLEAR_COLOR = (0.03, 0.05, 0.08, 1.0)
FOG_COLOR = (0.03, 0.05, 0.08)
FOG_NEAR = 140.0
FOG_FAR = 700.0


def _identity() -> NDArray[np.float64]:
    return np.identity(4)


@dataclass
class RenderFrameInput:
    framebuffer_width: int = 0
    framebuffer_height: int = 0
    camera_world: tuple[float, float, float] = (0.0, 0.0, 0.0)
    view_projection: NDArray[np.float64] = field(default_factory=_identity)
    draw_lists: VisibleDrawLists = field(default_factory=VisibleDrawLists)


@dataclass(frozen=True)
class RenderFrameStats:
    opaque_draw_count: int = 0
    cutout_draw_count: int = 0
    translucent_draw_count: int = 0

    def total_draw_count(self) -> int:
        return self.opaque_draw_count + self.cutout_draw_count + self.translucent_draw_count


@dataclass(frozen=True)
class RenderPass:
    """One layer's draws in submission order with its blend and depth state."""

    layer: RenderLayer
    commands: tuple[DrawCommand, ...]
    blend: bool
    depth_write: bool
    alpha: float = 1.0


def frame_stats(draws: VisibleDrawLists) -> RenderFrameStats:
    return RenderFrameStats(len(draws.opaque), len(draws.cutout), len(draws.translucent))


def _distance_sq(command: DrawCommand, camera_world: Sequence[float]) -> float:
    cx, cy, cz = camera_world
    dx = command.sort_center_x - cx
    dy = command.sort_center_y - cy
    dz = command.sort_center_z - cz
    return dx * dx + dy * dy + dz * dz


def sort_opaque_front_to_back(
    commands: Iterable[DrawCommand], camera_world: Sequence[float]
) -> list[DrawCommand]:
    """Nearest chunk first, so early depth tests reject more fragments."""
    return sorted(commands, key=lambda command: _distance_sq(command, camera_world))


def sort_translucent_back_to_front(
    commands: Iterable[DrawCommand], camera_world: Sequence[float]
) -> list[DrawCommand]:
    """Farthest chunk first, as alpha blending requires."""
    return sorted(commands, key=lambda command: _distance_sq(command, camera_world), reverse=True)


def _drawable(commands: Iterable[DrawCommand]) -> tuple[DrawCommand, ...]:
    return tuple(command for command in commands if command.vao != 0 and command.index_count > 0)


def build_frame_passes(frame_input: RenderFrameInput) -> list[RenderPass]:
    """Opaque, cutout and translucent passes in the order they are drawn."""
    draws = frame_input.draw_lists
    camera = frame_input.camera_world
    return [
        RenderPass(
            layer=RenderLayer.OPAQUE,
            commands=_drawable(sort_opaque_front_to_back(draws.opaque, camera)),
            blend=False,
            depth_write=True,
        ),
        RenderPass(
            layer=RenderLayer.CUTOUT,
            commands=_drawable(draws.cutout),
            blend=False,
            depth_write=True,
        ),
        RenderPass(
            layer=RenderLayer.TRANSLUCENT,
            commands=_drawable(sort_translucent_back_to_front(draws.translucent, camera)),
            blend=True,
            depth_write=False,
        ),
    ]