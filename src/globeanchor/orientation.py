"""Orientation adjustment for anchors that are moved across the globe."""

from __future__ import annotations

from typing import Optional

import numpy as np

from .frames import ReferenceFrame
from .matrices import Mat4, identity
from .vectors import CartographicCoordinate

__all__ = ("OrientationAdjustmentPolicy",)


class OrientationAdjustmentPolicy:
    """Policy that rotates an anchor when it is moved to a new globe
    position so that its "up" keeps pointing away from the center of the
    ellipsoid and its "forward" stays tangent to the surface.

    The local tangent basis at a position is approximated with finite
    differences: the reference frame is sampled at the position itself, at
    a point `height_delta` metres lower and at a point `latitude_delta`
    degrees away in latitude, and all three are converted to local world
    coordinates.
    """

    def __init__(self, height_delta: float = 100.0, latitude_delta: float = 1e-4):
        """Constructor.

        Parameters:
            height_delta: height difference of the lower probe, in metres
            latitude_delta: latitude difference of the shifted probe, in
                degrees
        """
        if height_delta <= 0 or latitude_delta <= 0:
            raise ValueError("probe deltas must be positive")
        self.height_delta = float(height_delta)
        self.latitude_delta = float(latitude_delta)

    def local_frame_at(
        self,
        frame: ReferenceFrame,
        coord: CartographicCoordinate,
        world_origin=None,
    ) -> Mat4:
        """Returns the local tangent frame at the given position, expressed
        in local world coordinates.

        The columns of the upper-left 3x3 block are the forward (north),
        right and up unit vectors; the translation is the position itself.
        """
        def to_local(lon: float, lat: float, height: float) -> np.ndarray:
            probe = CartographicCoordinate(lon=lon, lat=lat, height=height)
            return frame.transform_longitude_latitude_height_to_local(
                probe, world_origin
            ).as_array()

        target = to_local(coord.lon, coord.lat, coord.height)
        lower = to_local(coord.lon, coord.lat, coord.height - self.height_delta)

        if coord.lat - self.latitude_delta >= -90:
            shifted = to_local(coord.lon, coord.lat - self.latitude_delta, coord.height)
            forward = target - shifted
        else:
            shifted = to_local(coord.lon, coord.lat + self.latitude_delta, coord.height)
            forward = shifted - target

        up = _normalized(target - lower)
        forward = _normalized(forward - np.dot(forward, up) * up)
        right = np.cross(up, forward)

        result = identity()
        result[:3, 0] = forward
        result[:3, 1] = right
        result[:3, 2] = up
        result[:3, 3] = target
        return result

    def adjust(
        self,
        frame: ReferenceFrame,
        old_coord: Optional[CartographicCoordinate],
        new_coord: CartographicCoordinate,
        local_transform: Mat4,
        world_origin=None,
    ) -> Mat4:
        """Returns a new local transform for an anchor that moves from
        `old_coord` to `new_coord`.

        The rotation that takes the tangent basis at the old position to the
        tangent basis at the new one is applied to the rotation and scale of
        the local transform, and the translation is replaced with the new
        position. When the old position is unknown, only the translation is
        replaced.
        """
        new_frame = self.local_frame_at(frame, new_coord, world_origin)

        result = np.array(local_transform, dtype=np.float64)
        if old_coord is not None:
            old_frame = self.local_frame_at(frame, old_coord, world_origin)
            correction = new_frame[:3, :3] @ old_frame[:3, :3].T
            result[:3, :3] = correction @ result[:3, :3]

        result[:3, 3] = new_frame[:3, 3]
        return result


def _normalized(vector: np.ndarray) -> np.ndarray:
    length = np.linalg.norm(vector)
    if length == 0:
        raise ValueError("cannot derive a direction from coincident probes")
    return vector / length
