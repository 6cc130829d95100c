import numpy as np

from gloxide.voxel.blocks import RenderLayer
from gloxide.voxel.meshing import DrawCommand, VisibleDrawLists
from gloxide.voxel.render import (
    RenderFrameInput,
    RenderFrameStats,
    build_frame_passes,
    frame_stats,
    sort_opaque_front_to_back,
    sort_translucent_back_to_front,
)


def command(vao, x, y=0.0, z=0.0, index_count=6):
    return DrawCommand(vao=vao, index_count=index_count, sort_center_x=x, sort_center_y=y, sort_center_z=z)


def distance(cmd, camera):
    return sum((a - b) ** 2 for a, b in zip((cmd.sort_center_x, cmd.sort_center_y, cmd.sort_center_z), camera))


COMMANDS = [command(1, 50.0), command(2, -5.0), command(3, 20.0, 10.0), command(4, 0.0, 0.0, -80.0)]
CAMERA = (0.0, 0.0, 0.0)


def test_opaque_sorted_nearest_first():
    ordered = sort_opaque_front_to_back(COMMANDS, CAMERA)
    distances = [distance(cmd, CAMERA) for cmd in ordered]
    assert distances == sorted(distances)
    assert sorted(c.vao for c in ordered) == [1, 2, 3, 4]


def test_translucent_sorted_farthest_first():
    ordered = sort_translucent_back_to_front(COMMANDS, CAMERA)
    distances = [distance(cmd, CAMERA) for cmd in ordered]
    assert distances == sorted(distances, reverse=True)
    assert ordered == list(reversed(sort_opaque_front_to_back(COMMANDS, CAMERA)))


def test_sorting_depends_on_camera():
    camera = (50.0, 0.0, 0.0)
    assert sort_opaque_front_to_back(COMMANDS, camera)[0].vao == 1


def test_sorting_does_not_modify_input():
    original = list(COMMANDS)
    sort_opaque_front_to_back(COMMANDS, CAMERA)
    sort_translucent_back_to_front(COMMANDS, CAMERA)
    assert COMMANDS == original


def test_frame_stats_counts_each_list():
    draws = VisibleDrawLists(opaque=COMMANDS[:3], cutout=COMMANDS[:1], translucent=[])
    stats = frame_stats(draws)
    assert stats == RenderFrameStats(3, 1, 0)
    assert stats.total_draw_count() == 4


def test_empty_stats_total():
    assert RenderFrameStats().total_draw_count() == 0


def test_frame_input_defaults():
    frame = RenderFrameInput()
    assert np.array_equal(frame.view_projection, np.identity(4))
    assert frame_stats(frame.draw_lists).total_draw_count() == 0


def test_build_frame_passes_order_and_state():
    draws = VisibleDrawLists(
        opaque=list(COMMANDS),
        cutout=[command(9, 3.0), command(8, 1.0)],
        translucent=list(COMMANDS),
    )
    passes = build_frame_passes(RenderFrameInput(camera_world=CAMERA, draw_lists=draws))
    assert [p.layer for p in passes] == [RenderLayer.OPAQUE, RenderLayer.CUTOUT, RenderLayer.TRANSLUCENT]
    opaque, cutout, translucent = passes
    assert list(opaque.commands) == sort_opaque_front_to_back(COMMANDS, CAMERA)
    assert [c.vao for c in cutout.commands] == [9, 8]
    assert list(translucent.commands) == sort_translucent_back_to_front(COMMANDS, CAMERA)
    assert not opaque.blend and opaque.depth_write
    assert not cutout.blend and cutout.depth_write
    assert translucent.blend and not translucent.depth_write
    assert all(p.alpha == 1.0 for p in passes)


def test_build_frame_passes_skips_undrawable_commands():
    draws = VisibleDrawLists(
        opaque=[command(0, 1.0), command(5, 2.0), command(6, 3.0, index_count=0)],
        cutout=[command(7, 1.0, index_count=-1)],
        translucent=[command(0, 4.0)],
    )
    passes = build_frame_passes(RenderFrameInput(draw_lists=draws))
    assert [c.vao for c in passes[0].commands] == [5]
    assert passes[1].commands == ()
    assert passes[2].commands == ()