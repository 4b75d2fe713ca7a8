from globeanchor.frames import ReferenceFrame
from globeanchor.matrices import identity, translation_matrix
from globeanchor.orientation import OrientationAdjustmentPolicy
from globeanchor.vectors import CartographicCoordinate
from pytest import approx, raises

import numpy as np


def _is_rotation(matrix: np.ndarray) -> bool:
    return bool(
        np.allclose(matrix.T @ matrix, np.eye(3), atol=1e-9)
        and abs(np.linalg.det(matrix) - 1) < 1e-9
    )


def test_local_frame_at_origin():
    frame = ReferenceFrame()
    policy = OrientationAdjustmentPolicy()
    result = policy.local_frame_at(frame, CartographicCoordinate(0, 0, 0))

    assert _is_rotation(result[:3, :3])
    assert np.allclose(result[:3, 0], [0, 1, 0], atol=1e-6)
    assert np.allclose(result[:3, 2], [0, 0, 1], atol=1e-6)
    assert np.allclose(result[:3, 3], [0, 0, 0], atol=1e-6)


def test_local_frame_near_the_south_pole():
    frame = ReferenceFrame()
    policy = OrientationAdjustmentPolicy()
    result = policy.local_frame_at(frame, CartographicCoordinate(10, -89.99995, 0))
    assert _is_rotation(result[:3, :3])


def test_adjust_follows_curvature():
    frame = ReferenceFrame()
    policy = OrientationAdjustmentPolicy()
    old_coord = CartographicCoordinate(0, 0, 0)
    new_coord = CartographicCoordinate(1, 0, 0)

    result = policy.adjust(frame, old_coord, new_coord, identity())

    # Up of the node tilts towards the east as it moves east along the equator
    up = result[:3, 2]
    assert up[0] == approx(np.sin(np.radians(1)), abs=1e-6)
    assert up[1] == approx(0, abs=1e-6)
    assert up[2] == approx(np.cos(np.radians(1)), abs=1e-6)
    assert _is_rotation(result[:3, :3])

    target = frame.transform_longitude_latitude_height_to_local(new_coord)
    assert np.allclose(result[:3, 3], target.as_array())


def test_adjust_keeps_scale():
    frame = ReferenceFrame()
    policy = OrientationAdjustmentPolicy()
    transform = identity()
    transform[:3, :3] *= 3

    result = policy.adjust(
        frame, CartographicCoordinate(0, 0, 0), CartographicCoordinate(0, 1, 0), transform
    )
    assert np.allclose(np.linalg.norm(result[:3, :3], axis=0), [3, 3, 3])


def test_adjust_without_old_position_replaces_translation_only():
    frame = ReferenceFrame()
    policy = OrientationAdjustmentPolicy()
    transform = translation_matrix([5, 5, 5])
    transform[:3, :3] = [[0, -1, 0], [1, 0, 0], [0, 0, 1]]

    result = policy.adjust(frame, None, CartographicCoordinate(0, 0, 10), transform)
    assert np.array_equal(result[:3, :3], transform[:3, :3])
    assert np.allclose(result[:3, 3], [0, 0, 10], atol=1e-6)


def test_invalid_deltas():
    with raises(ValueError):
        OrientationAdjustmentPolicy(height_delta=0)
    with raises(ValueError):
        OrientationAdjustmentPolicy(latitude_delta=-1)
