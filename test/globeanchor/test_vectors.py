"""Unit tests for ``globeanchor.vectors``."""

from globeanchor.vectors import CartographicCoordinate, ECEFCoordinate, Vector3D

import numpy as np
import unittest


class JSONFormatTest(unittest.TestCase):
    """Unit tests for JSON conversion."""

    def test_vector3d_to_json_and_back(self):
        """Tests whether Vector3D instances can be converted into JSON and
        back.
        """
        vec = Vector3D(x=1, y=4, z=9)
        vec = Vector3D.from_json(vec.json)
        self.assertEqual(1, vec.x)
        self.assertEqual(4, vec.y)
        self.assertEqual(9, vec.z)

    def test_ecef_coordinate_json_is_in_millimetres(self):
        vec = ECEFCoordinate(x=1.2346, y=-2, z=3.0004)
        self.assertEqual([1235, -2000, 3000], vec.json)

        vec = ECEFCoordinate.from_json(vec.json)
        self.assertAlmostEqual(1.235, vec.x)
        self.assertAlmostEqual(-2, vec.y)
        self.assertAlmostEqual(3, vec.z)

    def test_cartographic_coordinate_to_json_and_back(self):
        coord = CartographicCoordinate(lon=17, lat=49, height=1000)
        self.assertEqual([17, 49, 1000], coord.json)

        coord = CartographicCoordinate.from_json(coord.json)
        self.assertEqual(17, coord.lon)
        self.assertEqual(49, coord.lat)
        self.assertEqual(1000, coord.height)

    def test_cartographic_coordinate_without_height(self):
        coord = CartographicCoordinate.from_json([17, 49])
        self.assertEqual(0, coord.height)


class Vector3DTest(unittest.TestCase):
    """Unit tests for the arithmetic of Vector3D_."""

    def test_arithmetic(self):
        a = Vector3D(1, 2, 3)
        b = Vector3D(4, 6, 8)
        self.assertEqual(Vector3D(5, 8, 11), a + b)
        self.assertEqual(Vector3D(3, 4, 5), b - a)
        self.assertEqual(Vector3D(-1, -2, -3), -a)
        self.assertEqual(Vector3D(2, 4, 6), a * 2)
        self.assertEqual(Vector3D(2, 3, 4), b / 2)

    def test_subclass_is_preserved(self):
        result = ECEFCoordinate(1, 2, 3) + Vector3D(1, 1, 1)
        self.assertIsInstance(result, ECEFCoordinate)

    def test_distance(self):
        self.assertAlmostEqual(5, Vector3D(0, 3, 0).distance(Vector3D(4, 0, 0)))

    def test_arrays(self):
        vec = ECEFCoordinate.from_array(np.array([1.5, 2.5, 3.5, 1.0]))
        self.assertEqual([1.5, 2.5, 3.5], list(vec))
        self.assertTrue(np.array_equal([1.5, 2.5, 3.5], vec.as_array()))

    def test_ecef_coordinate_iterates_in_metres(self):
        vec = ECEFCoordinate(4009873.1234, -1225941.5, 0.0004)
        x, y, z = vec
        self.assertEqual(4009873.1234, x)
        self.assertEqual(-1225941.5, y)
        self.assertEqual(0.0004, z)

    def test_ecef_coordinate_round_keeps_metres(self):
        vec = ECEFCoordinate(4009873.1234, -1225941.5678, 12.3456)
        vec.round(2)
        self.assertEqual(ECEFCoordinate(4009873.12, -1225941.57, 12.35), vec)

    def test_hash_uses_full_precision(self):
        a = ECEFCoordinate(1.0001, 2, 3)
        b = ECEFCoordinate(1.0002, 2, 3)
        self.assertEqual(hash(a), hash(ECEFCoordinate(1.0001, 2, 3)))
        self.assertNotEqual(a, b)
        self.assertEqual(2, len({a, b}))

    def test_copy_is_independent(self):
        vec = Vector3D(1, 2, 3)
        other = vec.copy()
        other.x = 7
        self.assertEqual(1, vec.x)

    def test_round(self):
        vec = Vector3D(1.23456, 2.34567, 3.45678)
        vec.round(2)
        self.assertEqual(Vector3D(1.23, 2.35, 3.46), vec)


class CartographicCoordinateTest(unittest.TestCase):
    def test_format(self):
        coord = CartographicCoordinate(lon=17.25, lat=-49.5, height=12.34)
        self.assertEqual("-49.5000000°, 17.2500000°, 12.3m", coord.format())

    def test_equality(self):
        self.assertEqual(
            CartographicCoordinate(1, 2, 3), CartographicCoordinate(1, 2, 3)
        )
        self.assertNotEqual(
            CartographicCoordinate(1, 2, 3), CartographicCoordinate(1, 2, 4)
        )
