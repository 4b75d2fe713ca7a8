"""Reference ellipsoid and conversions between ECEF and geodetic
(longitude, latitude, height) coordinates.
"""

from __future__ import annotations

from math import atan2, copysign, cos, degrees, hypot, radians, sin, sqrt
from typing import Optional

import numpy as np

from .constants import WGS84
from .matrices import Mat4, identity
from .vectors import CartographicCoordinate, ECEFCoordinate, Vector3D

__all__ = (
    "Ellipsoid",
    "WGS84_ELLIPSOID",
    "ecef_to_longitude_latitude_height",
    "longitude_latitude_height_to_ecef",
)

#: Upper bound on the number of Newton steps when projecting a point onto
#: the ellipsoid; the iteration stops earlier when it cannot make progress
_MAX_ITERATIONS = 100


class Ellipsoid:
    """Rotational ellipsoid with given equatorial and polar radii that
    converts ECEF coordinates to geodetic coordinates and vice versa.
    """

    _a: float
    _b: float

    def __init__(self, radii: Optional[tuple[float, float]] = None):
        """Constructor.

        Parameters:
            radii: semi-major and semi-minor axis of the ellipsoid, in metres;
                the WGS84 axes are used when omitted
        """
        if radii is None:
            radii = WGS84.EQUATORIAL_RADIUS_IN_METERS, WGS84.POLAR_RADIUS_IN_METERS
        self._a, self._b = 0.0, 0.0
        self.radii = radii

    @property
    def radii(self) -> tuple[float, float]:
        """Semi-major (equatorial) and semi-minor (polar) axis, in metres."""
        return self._a, self._b

    @radii.setter
    def radii(self, value: tuple[float, float]) -> None:
        a, b = float(value[0]), float(value[1])
        if a <= 0 or b <= 0:
            raise ValueError("ellipsoid radii must be positive")
        if b > a:
            raise ValueError("polar radius must not exceed the equatorial radius")
        self._a, self._b = a, b
        self._update_derived_quantities()

    def _update_derived_quantities(self) -> None:
        a_sq, b_sq = self._a * self._a, self._b * self._b
        self._a_sq = a_sq
        self._b_sq = b_sq

        # First eccentricity squared
        self._e_sq = (a_sq - b_sq) / a_sq

    def _prime_vertical_radius(self, sin_lat: float) -> float:
        return self._a / sqrt(1 - self._e_sq * sin_lat * sin_lat)

    def to_ecef(self, coord: CartographicCoordinate) -> ECEFCoordinate:
        """Converts a geodetic coordinate to ECEF with the closed-form
        formula; defined for every longitude, latitude and height.
        """
        lon, lat = radians(coord.lon), radians(coord.lat)
        sin_lat, cos_lat = sin(lat), cos(lat)
        n = self._prime_vertical_radius(sin_lat)

        horizontal = (n + coord.height) * cos_lat
        return ECEFCoordinate(
            horizontal * cos(lon),
            horizontal * sin(lon),
            (n * (1 - self._e_sq) + coord.height) * sin_lat,
        )

    def to_cartographic(
        self, coord: Vector3D
    ) -> Optional[CartographicCoordinate]:
        """Converts an ECEF coordinate to a geodetic coordinate.

        The point is projected onto the ellipsoid along the surface normal by
        solving for the foot point in the meridian plane with a Newton
        iteration. The iteration approaches the root from below and is
        therefore monotonic, so it converges for every point, including
        points deep inside the ellipsoid where the surface normal through the
        point is not unique.

        Returns:
            the geodetic coordinate or ``None`` at the center of the
            ellipsoid, where the latitude is undefined
        """
        x, y, z = coord
        p = hypot(x, y)
        if p == 0 and z == 0:
            return None

        foot_p, foot_z = self._foot_point(p, abs(z))

        # Normal of the ellipse at the foot point
        lat = atan2(foot_z * self._a_sq, foot_p * self._b_sq)
        height = (p - foot_p) * cos(lat) + (abs(z) - foot_z) * sin(lat)

        return CartographicCoordinate(
            lon=degrees(atan2(y, x)), lat=copysign(degrees(lat), z), height=height
        )

    def _foot_point(self, p: float, z: float) -> tuple[float, float]:
        """Returns the point of the meridian ellipse closest to the given
        point in the first quadrant of the meridian plane.
        """
        a, b = self._a, self._b

        if p == 0:
            return 0.0, b

        if z == 0:
            # On the equatorial plane; inside the evolute the foot point is
            # off the equator
            limit = (self._a_sq - self._b_sq) / a
            if p < limit:
                foot_p = self._a_sq * p / (self._a_sq - self._b_sq)
                return foot_p, b * sqrt(max(0.0, 1 - (foot_p / a) ** 2))
            return a, 0.0

        # With k = (a^2 - b^2) / b^2, the foot point is (a^2 p / (b^2 (t + k)),
        # z / t) where t is the root of g(t) below. g is convex and decreasing
        # for t > 0 and g(z / b) >= 0, so Newton steps from there never
        # overshoot the root.
        r = self._a_sq / self._b_sq
        k = (self._a_sq - self._b_sq) / self._b_sq
        rzp = r * p / a
        zb = z / b

        t = zb
        for _ in range(_MAX_ITERATIONS):
            u = rzp / (t + k)
            v = zb / t
            g = u * u + v * v - 1
            if g <= 0:
                break

            slope = 2 * (u * u / (t + k) + v * v / t)
            refined = t + g / slope
            if refined <= t:
                break
            t = refined

        return r * p / (t + k), z / t

    def geodetic_surface_normal(self, coord: CartographicCoordinate) -> np.ndarray:
        """Returns the unit normal of the ellipsoid surface at the given
        geodetic coordinate.
        """
        lon, lat = radians(coord.lon), radians(coord.lat)
        return np.array(
            [cos(lat) * cos(lon), cos(lat) * sin(lon), sin(lat)], dtype=np.float64
        )

    def geodetic_surface_normal_at(self, coord: Vector3D) -> Optional[np.ndarray]:
        """Returns the unit normal of the ellipsoid surface passing through
        the given ECEF coordinate, or ``None`` at the center of the ellipsoid.
        """
        normal = np.array(
            [coord.x / self._a_sq, coord.y / self._a_sq, coord.z / self._b_sq],
            dtype=np.float64,
        )
        length = np.linalg.norm(normal)
        if length == 0:
            return None
        return normal / length

    def east_north_up_to_ecef(self, coord: Vector3D) -> Mat4:
        """Returns the matrix that transforms from the local East-North-Up
        tangent frame at the given ECEF position to ECEF.

        The columns of the matrix are the east, north and up unit vectors and
        the position itself. On the polar axis the east direction is chosen
        to be the +Y axis of the ECEF frame.
        """
        result = identity()
        result[:3, 3] = (coord.x, coord.y, coord.z)

        up = self.geodetic_surface_normal_at(coord)
        if up is None:
            return result

        if coord.x == 0 and coord.y == 0:
            east = np.array([0.0, 1.0, 0.0])
        else:
            east = np.array([-coord.y, coord.x, 0.0])
            east /= np.linalg.norm(east)

        north = np.cross(up, east)

        result[:3, 0] = east
        result[:3, 1] = north
        result[:3, 2] = up
        return result

    def __eq__(self, other) -> bool:
        if isinstance(other, Ellipsoid):
            return self.radii == other.radii
        else:
            return False

    def __hash__(self):
        return hash(self.radii)

    def __repr__(self) -> str:
        return "{0.__class__.__name__}(radii={0.radii!r})".format(self)


WGS84_ELLIPSOID = Ellipsoid()
"""The WGS84 ellipsoid."""


def longitude_latitude_height_to_ecef(
    coord: CartographicCoordinate, ellipsoid: Ellipsoid = WGS84_ELLIPSOID
) -> ECEFCoordinate:
    """Converts a geodetic coordinate to ECEF on the given ellipsoid."""
    return ellipsoid.to_ecef(coord)


def ecef_to_longitude_latitude_height(
    coord: Vector3D, ellipsoid: Ellipsoid = WGS84_ELLIPSOID
) -> Optional[CartographicCoordinate]:
    """Converts an ECEF coordinate to geodetic coordinates on the given
    ellipsoid. Returns ``None`` at the center of the ellipsoid.
    """
    return ellipsoid.to_cartographic(coord)
