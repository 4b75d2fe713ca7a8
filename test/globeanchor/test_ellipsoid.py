"""Unit tests for ``globeanchor.ellipsoid``."""

from globeanchor.constants import WGS84
from globeanchor.ellipsoid import (
    Ellipsoid,
    WGS84_ELLIPSOID,
    ecef_to_longitude_latitude_height,
    longitude_latitude_height_to_ecef,
)
from globeanchor.vectors import CartographicCoordinate, ECEFCoordinate
from pytest import mark, raises

import numpy as np
import unittest


class EllipsoidTest(unittest.TestCase):
    """Unit tests for the Ellipsoid_ class."""

    def test_ellipsoid_parameters(self):
        """Tests whether the ellipsoid parameters are taken from WGS84
        when no radii are given.
        """
        ellipsoid = Ellipsoid()
        self.assertAlmostEqual(
            (WGS84.EQUATORIAL_RADIUS_IN_METERS, WGS84.POLAR_RADIUS_IN_METERS),
            ellipsoid.radii,
        )
        self.assertEqual(WGS84_ELLIPSOID, ellipsoid)

    def test_custom_ellipsoid_parameters(self):
        """Tests whether custom ellipsoid parameters work."""
        ellipsoid = Ellipsoid((2, 2))
        self.assertEqual((2.0, 2.0), ellipsoid.radii)

    def test_invalid_ellipsoid_parameters(self):
        with self.assertRaises(ValueError):
            Ellipsoid((0, 2))
        with self.assertRaises(ValueError):
            Ellipsoid((6378137, -1))

    def test_to_ecef(self):
        """Tests whether the ``to_ecef()`` method works."""
        ellipsoid = Ellipsoid()

        # Calculations verified with:
        # http://www.oc.nps.edu/oc2902w/coord/llhxyz.htm
        coord = CartographicCoordinate(lon=17, lat=49, height=1000)
        ecef = ellipsoid.to_ecef(coord)
        self.assertAlmostEqual(4009873, ecef.x, places=0)
        self.assertAlmostEqual(1225941, ecef.y, places=0)
        self.assertAlmostEqual(4791313, ecef.z, places=0)

    def test_to_cartographic(self):
        """Tests whether the ``to_cartographic()`` method works."""
        ellipsoid = Ellipsoid()

        ecef = ECEFCoordinate(x=4009873, y=1225941, z=4791313)
        coord = ellipsoid.to_cartographic(ecef)
        self.assertAlmostEqual(49, coord.lat, places=5)
        self.assertAlmostEqual(17, coord.lon, places=5)
        self.assertAlmostEqual(1000, coord.height, places=0)

    def test_special_points(self):
        ellipsoid = Ellipsoid()

        ecef = ellipsoid.to_ecef(CartographicCoordinate(lon=0, lat=0, height=0))
        self.assertAlmostEqual(WGS84.EQUATORIAL_RADIUS_IN_METERS, ecef.x, places=6)
        self.assertAlmostEqual(0, ecef.y, places=6)
        self.assertAlmostEqual(0, ecef.z, places=6)

        ecef = ellipsoid.to_ecef(CartographicCoordinate(lon=0, lat=90, height=0))
        self.assertAlmostEqual(0, ecef.x, places=6)
        self.assertAlmostEqual(WGS84.POLAR_RADIUS_IN_METERS, ecef.z, places=6)

        coord = ellipsoid.to_cartographic(
            ECEFCoordinate(0, 0, WGS84.POLAR_RADIUS_IN_METERS + 100)
        )
        self.assertAlmostEqual(90, coord.lat, places=9)
        self.assertAlmostEqual(100, coord.height, places=6)

    def test_center_of_ellipsoid(self):
        ellipsoid = Ellipsoid()
        self.assertIsNone(ellipsoid.to_cartographic(ECEFCoordinate(0, 0, 0)))
        self.assertIsNone(ellipsoid.geodetic_surface_normal_at(ECEFCoordinate()))

    def test_surface_normals_agree(self):
        ellipsoid = Ellipsoid()
        coord = CartographicCoordinate(lon=-122.4, lat=37.8, height=250)
        from_cartographic = ellipsoid.geodetic_surface_normal(coord)
        from_ecef = ellipsoid.geodetic_surface_normal_at(ellipsoid.to_ecef(coord))
        self.assertTrue(np.allclose(from_cartographic, from_ecef, atol=1e-12))

    def test_east_north_up_at_equator(self):
        ellipsoid = Ellipsoid()
        ecef = ellipsoid.to_ecef(CartographicCoordinate(lon=0, lat=0, height=0))
        matrix = ellipsoid.east_north_up_to_ecef(ecef)

        self.assertTrue(np.allclose([0, 1, 0], matrix[:3, 0]))
        self.assertTrue(np.allclose([0, 0, 1], matrix[:3, 1]))
        self.assertTrue(np.allclose([1, 0, 0], matrix[:3, 2]))
        self.assertTrue(np.allclose(ecef.as_array(), matrix[:3, 3]))

    def test_east_north_up_on_the_pole(self):
        ellipsoid = Ellipsoid()
        ecef = ECEFCoordinate(0, 0, WGS84.POLAR_RADIUS_IN_METERS)
        matrix = ellipsoid.east_north_up_to_ecef(ecef)

        self.assertTrue(np.allclose([0, 1, 0], matrix[:3, 0]))
        self.assertTrue(np.allclose([0, 0, 1], matrix[:3, 2]))
        self.assertAlmostEqual(1.0, np.linalg.det(matrix[:3, :3]))

    def test_east_north_up_is_orthonormal(self):
        ellipsoid = Ellipsoid()
        ecef = ellipsoid.to_ecef(CartographicCoordinate(lon=139.7, lat=35.7))
        rotation = ellipsoid.east_north_up_to_ecef(ecef)[:3, :3]
        self.assertTrue(np.allclose(np.eye(3), rotation.T @ rotation))


@mark.parametrize(
    ("lon", "lat", "height"),
    [
        (0, 0, 0),
        (17, 49, 1000),
        (-122.4194, 37.7749, 15.5),
        (151.2093, -33.8688, -30),
        (179.999, 89.9999, 5000),
        (-45, -89.5, 12000),
        (90, 0.0001, 400000),
    ],
)
def test_round_trip(lon: float, lat: float, height: float):
    coord = CartographicCoordinate(lon=lon, lat=lat, height=height)
    result = ecef_to_longitude_latitude_height(longitude_latitude_height_to_ecef(coord))

    assert abs(result.lon - lon) < 1e-9
    assert abs(result.lat - lat) < 1e-9
    assert abs(result.height - height) < 1e-4


def test_radii_must_have_two_items():
    with raises((ValueError, IndexError)):
        Ellipsoid((6378137,))


def test_prolate_ellipsoid_is_rejected():
    with raises(ValueError):
        Ellipsoid((6356752, 6378137))


@mark.parametrize(
    "point",
    [
        (4009873.0, 1225941.0, 4791313.0),
        (-2706000.5, -4261000.25, 3885000.125),
        (6378137.0, 0.0, 0.001),
        (0.5, 0.0, 6356752.0),
        (30000.0, 20000.0, 10000.0),
        (1000.0, 0.0, 0.0),
        (0.0, 0.0, -5000.0),
        (1.0, 1.0, 1.0),
        (-12.5, 3000000.0, -1500000.0),
        (4.0e7, -3.0e7, 2.0e7),
        (1.0e9, 2.0e9, -3.0e9),
    ],
)
def test_round_trip_from_ecef(point):
    coord = ecef_to_longitude_latitude_height(ECEFCoordinate(*point))
    result = longitude_latitude_height_to_ecef(coord)

    assert -90 <= coord.lat <= 90
    assert np.allclose(result.as_array(), point, rtol=1e-9, atol=1e-6)


def test_round_trip_from_ecef_on_sphere():
    sphere = Ellipsoid((1000, 1000))
    for point in [(300, 400, 0), (10, -20, 30), (0, 0, 2000), (1200, 0, 0)]:
        coord = sphere.to_cartographic(ECEFCoordinate(*point))
        result = sphere.to_ecef(coord)
        assert np.allclose(result.as_array(), point, rtol=1e-9, atol=1e-9)
