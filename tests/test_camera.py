import math

import numpy as np
import pytest

from gloxide.voxel.camera import (
    DEFAULT_PITCH_DEGREES,
    DEFAULT_POSITION,
    DEFAULT_YAW_DEGREES,
    FAR_PLANE,
    NEAR_PLANE,
    PITCH_LIMIT_DEGREES,
    FlyCamera,
    look_at,
    perspective,
)
from gloxide.voxel.coords import chunk_and_local_to_world


def test_default_pose():
    camera = FlyCamera()
    assert tuple(camera.position) == DEFAULT_POSITION
    assert camera.yaw_degrees == DEFAULT_YAW_DEGREES
    assert camera.pitch_degrees == DEFAULT_PITCH_DEGREES


def test_reset_default_pose_restores_state():
    camera = FlyCamera()
    camera.apply_look_delta(33.0, 20.0)
    camera.position = (5.0, 6.0, 7.0)
    camera.reset_default_pose()
    assert tuple(camera.position) == DEFAULT_POSITION
    assert camera.yaw_degrees == DEFAULT_YAW_DEGREES
    assert camera.pitch_degrees == DEFAULT_PITCH_DEGREES


def test_position_is_a_copy():
    camera = FlyCamera()
    position = camera.position
    position[0] = 999.0
    assert camera.position[0] == DEFAULT_POSITION[0]


def test_position_rejects_wrong_length():
    camera = FlyCamera()
    with pytest.raises(ValueError):
        camera.position = (1.0, 2.0)
    assert tuple(camera.position) == DEFAULT_POSITION


@pytest.mark.parametrize("delta", [200.0, -500.0, 1000.0])
def test_pitch_is_clamped(delta):
    camera = FlyCamera()
    camera.apply_look_delta(0.0, delta)
    assert -PITCH_LIMIT_DEGREES <= camera.pitch_degrees <= PITCH_LIMIT_DEGREES
    assert abs(camera.pitch_degrees) == PITCH_LIMIT_DEGREES


@pytest.mark.parametrize("delta", [0.0, 90.0, 270.0, 360.0, 720.0, -450.0, 1234.5])
def test_wrapped_yaw_in_range_and_congruent(delta):
    camera = FlyCamera()
    camera.apply_look_delta(delta, 0.0)
    wrapped = camera.yaw_degrees_wrapped()
    assert -180.0 < wrapped <= 180.0
    turns = (camera.yaw_degrees - wrapped) / 360.0
    assert turns == pytest.approx(round(turns))


def test_full_turn_leaves_wrapped_yaw_unchanged():
    camera = FlyCamera()
    before = camera.yaw_degrees_wrapped()
    camera.apply_look_delta(360.0, 0.0)
    assert camera.yaw_degrees_wrapped() == pytest.approx(before)


def test_basis_is_orthonormal():
    camera = FlyCamera()
    camera.apply_look_delta(17.0, 31.0)
    forward, right, up = camera.forward(), camera.right(), camera.up()
    assert np.linalg.norm(forward) == pytest.approx(1.0)
    assert np.linalg.norm(right) == pytest.approx(1.0)
    assert float(forward @ right) == pytest.approx(0.0, abs=1e-12)
    assert float(up @ right) == pytest.approx(0.0, abs=1e-12)


def test_default_forward_looks_down_negative_z():
    camera = FlyCamera()
    forward = camera.forward()
    assert forward[0] == pytest.approx(0.0, abs=1e-12)
    assert forward[2] < 0.0
    assert forward[1] < 0.0
    assert camera.right() == pytest.approx(np.array((1.0, 0.0, 0.0)))


def test_view_matrix_puts_eye_at_origin_and_looks_down_minus_z():
    camera = FlyCamera()
    camera.apply_look_delta(42.0, -10.0)
    view = camera.view_matrix()
    eye = np.append(camera.position, 1.0)
    assert view @ eye == pytest.approx(np.array((0.0, 0.0, 0.0, 1.0)), abs=1e-9)
    ahead = np.append(camera.position + camera.forward(), 1.0)
    transformed = view @ ahead
    assert transformed[0] == pytest.approx(0.0, abs=1e-9)
    assert transformed[1] == pytest.approx(0.0, abs=1e-9)
    assert transformed[2] == pytest.approx(-1.0)


def test_look_at_rejects_coincident_points():
    with pytest.raises(ValueError):
        look_at((1.0, 2.0, 3.0), (1.0, 2.0, 3.0), (0.0, 1.0, 0.0))


def test_projection_maps_near_and_far_planes():
    camera = FlyCamera()
    projection = camera.projection_matrix(1280, 720)
    near = projection @ np.array((0.0, 0.0, -NEAR_PLANE, 1.0))
    far = projection @ np.array((0.0, 0.0, -FAR_PLANE, 1.0))
    assert near[2] / near[3] == pytest.approx(-1.0)
    assert far[2] / far[3] == pytest.approx(1.0)


def test_projection_aspect():
    camera = FlyCamera()
    projection = camera.projection_matrix(1280, 720)
    assert projection[0, 0] * (1280 / 720) == pytest.approx(projection[1, 1])


def test_projection_zero_height_treated_as_one():
    camera = FlyCamera()
    assert np.array_equal(camera.projection_matrix(800, 0), camera.projection_matrix(800, 1))


def test_perspective_rejects_degenerate_input():
    with pytest.raises(ValueError):
        perspective(1.0, 0.0, 0.1, 10.0)
    with pytest.raises(ValueError):
        perspective(1.0, 1.0, 5.0, 5.0)


def test_perspective_focal_length():
    matrix = perspective(math.pi / 2.0, 2.0, 1.0, 10.0)
    assert matrix[1, 1] == pytest.approx(1.0 / math.tan(math.pi / 4.0))
    assert matrix[0, 0] * 2.0 == pytest.approx(matrix[1, 1])
    assert matrix[3, 2] == -1.0


@pytest.mark.parametrize(
    "position", [(0.5, 0.5, 0.5), (-0.5, 31.9, 32.0), (-100.2, -33.0, 64.99), (0.0, 38.0, 110.0)]
)
def test_voxel_coordinates_are_consistent(position):
    camera = FlyCamera()
    camera.position = position
    voxel = camera.world_voxel_coord()
    assert tuple(voxel) == tuple(math.floor(axis) for axis in position)
    assert chunk_and_local_to_world(camera.chunk_key(), camera.local_coord()) == voxel


def test_moves_round_trip():
    camera = FlyCamera()
    camera.apply_look_delta(25.0, 12.0)
    start = camera.position
    camera.move_forward(7.5)
    camera.move_right(-3.0)
    camera.move_up(2.0)
    assert np.linalg.norm(camera.position - start) > 0.0
    camera.move_up(-2.0)
    camera.move_right(3.0)
    camera.move_forward(-7.5)
    assert camera.position == pytest.approx(start)


def test_move_up_changes_only_height():
    camera = FlyCamera()
    start = camera.position
    camera.move_up(4.0)
    assert camera.position == pytest.approx(start + np.array((0.0, 4.0, 0.0)))


def test_move_forward_follows_forward_vector():
    camera = FlyCamera()
    start = camera.position
    camera.move_forward(10.0)
    assert camera.position == pytest.approx(start + camera.forward() * 10.0)