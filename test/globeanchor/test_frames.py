"""Unit tests for ``globeanchor.frames``."""

from globeanchor.constants import WGS84
from globeanchor.frames import ReferenceFrame, ReferenceFrameSettings, normalize_axes
from globeanchor.scene import World
from globeanchor.vectors import CartographicCoordinate, ECEFCoordinate, Vector3D
from pytest import mark, raises

import numpy as np
import unittest


def _frame_at(lon: float, lat: float, height: float = 0.0, **kwds) -> ReferenceFrame:
    settings = ReferenceFrameSettings(
        origin_longitude=lon, origin_latitude=lat, origin_height=height, **kwds
    )
    return ReferenceFrame(settings)


class ReferenceFrameSettingsTest(unittest.TestCase):
    """Unit tests for the ReferenceFrameSettings_ class."""

    def test_defaults(self):
        settings = ReferenceFrameSettings()
        self.assertEqual(0, settings.origin_longitude)
        self.assertEqual(0, settings.origin_latitude)
        self.assertEqual(0, settings.origin_height)
        self.assertEqual(
            (WGS84.EQUATORIAL_RADIUS_IN_METERS, WGS84.POLAR_RADIUS_IN_METERS),
            settings.radii,
        )
        self.assertEqual("enu", settings.axes)
        self.assertEqual(1.0, settings.units_per_meter)

    def test_json(self):
        settings = ReferenceFrameSettings.from_json(
            {"origin": [17, 49, 100], "axes": "ESU", "unitsPerMeter": 100}
        )
        self.assertEqual(17, settings.origin_longitude)
        self.assertEqual(49, settings.origin_latitude)
        self.assertEqual(100, settings.origin_height)
        self.assertEqual("esu", settings.axes)
        self.assertEqual(100, settings.units_per_meter)

        restored = ReferenceFrameSettings.from_json(settings.json)
        self.assertEqual(settings, restored)

    def test_update_from_json_with_reset(self):
        settings = ReferenceFrameSettings.from_json({"origin": [17, 49]})
        settings.update_from_json({"axes": "nwu"}, reset=True)
        self.assertEqual(0, settings.origin_longitude)
        self.assertEqual("nwu", settings.axes)

    def test_invalid_json(self):
        with self.assertRaises(ValueError):
            ReferenceFrameSettings.from_json([])
        with self.assertRaises(ValueError):
            ReferenceFrameSettings.from_json({"origin": [17, 95]})
        with self.assertRaises(ValueError):
            ReferenceFrameSettings.from_json({"origin": "here"})
        with self.assertRaises(ValueError):
            ReferenceFrameSettings.from_json({"radii": [1, 0]})
        with self.assertRaises(ValueError):
            ReferenceFrameSettings.from_json({"radii": [6356752, 6378137]})
        with self.assertRaises(ValueError):
            ReferenceFrameSettings.from_json({"unitsPerMeter": 0})
        with self.assertRaises(ValueError):
            ReferenceFrameSettings.from_json({"axes": "een"})


@mark.parametrize("axes", ["enu", "ENU", "esu", "neu", "nwu", "ned", "wsd"])
def test_valid_axes(axes: str):
    assert normalize_axes(axes) == axes.lower()


@mark.parametrize("axes", ["", "en", "enuu", "eeu", "xyz", None])
def test_invalid_axes(axes):
    with raises(ValueError):
        normalize_axes(axes)


class ReferenceFrameTest(unittest.TestCase):
    """Unit tests for the ReferenceFrame_ class."""

    def test_origin_maps_to_zero(self):
        frame = _frame_at(17, 49, 100)
        local = frame.transform_longitude_latitude_height_to_local(frame.origin)
        self.assertTrue(np.allclose(local.as_array(), [0, 0, 0], atol=1e-6))

    def test_origin_ecef(self):
        frame = _frame_at(17, 49, 1000)
        self.assertAlmostEqual(4009873, frame.origin_ecef.x, places=0)
        self.assertAlmostEqual(1225941, frame.origin_ecef.y, places=0)
        self.assertAlmostEqual(4791313, frame.origin_ecef.z, places=0)

    def test_enu_axes(self):
        frame = _frame_at(17, 49)

        # Going up by 10 metres increases local Z
        up = CartographicCoordinate(lon=17, lat=49, height=10)
        local = frame.transform_longitude_latitude_height_to_local(up)
        self.assertTrue(np.allclose(local.as_array(), [0, 0, 10], atol=1e-6))

        # Going north increases local Y
        north = CartographicCoordinate(lon=17, lat=49.001, height=0)
        local = frame.transform_longitude_latitude_height_to_local(north)
        self.assertGreater(local.y, 100)
        self.assertLess(abs(local.x), 1e-3)

        # Going east increases local X
        east = CartographicCoordinate(lon=17.001, lat=49, height=0)
        local = frame.transform_longitude_latitude_height_to_local(east)
        self.assertGreater(local.x, 50)
        self.assertLess(abs(local.y), 1e-2)

    def test_esu_axes_and_scale(self):
        frame = _frame_at(17, 49, axes="esu", units_per_meter=100)
        north = CartographicCoordinate(lon=17, lat=49.001, height=0)
        up = CartographicCoordinate(lon=17, lat=49, height=1)

        local = frame.transform_longitude_latitude_height_to_local(north)
        self.assertLess(local.y, -10000)

        local = frame.transform_longitude_latitude_height_to_local(up)
        self.assertTrue(np.allclose(local.as_array(), [0, 0, 100], atol=1e-4))

    def test_matrices_are_inverses(self):
        world = World(origin_location=[1234.5, -250, 42])
        frame = ReferenceFrame(
            ReferenceFrameSettings(origin_longitude=-122.4, origin_latitude=37.8),
            world=world,
        )
        product = frame.get_local_to_globe_matrix() @ frame.get_globe_to_local_matrix()
        self.assertTrue(np.allclose(product, np.eye(4), atol=1e-6))

        product = frame.get_globe_to_local_matrix() @ frame.get_local_to_globe_matrix()
        self.assertTrue(np.allclose(product, np.eye(4), atol=1e-9))

    def test_world_origin_is_taken_into_account(self):
        world = World(origin_location=[100, 0, 0])
        frame = ReferenceFrame(world=world)

        # Relative coordinate zero is the absolute location of the origin
        ecef = frame.transform_local_to_ecef(Vector3D(0, 0, 0))
        expected = ReferenceFrame().transform_local_to_ecef(Vector3D(100, 0, 0))
        self.assertTrue(np.allclose(ecef.as_array(), expected.as_array(), atol=1e-6))

        # An explicit origin overrides the one of the world
        ecef = frame.transform_local_to_ecef(Vector3D(0, 0, 0), np.zeros(3))
        expected = ReferenceFrame().transform_local_to_ecef(Vector3D(0, 0, 0))
        self.assertTrue(np.allclose(ecef.as_array(), expected.as_array(), atol=1e-6))

    def test_local_round_trip(self):
        frame = _frame_at(151.2, -33.9, 20, axes="nwu")
        point = Vector3D(1500.25, -730.5, 42.125)
        coord = frame.transform_local_to_longitude_latitude_height(point)
        restored = frame.transform_longitude_latitude_height_to_local(coord)
        self.assertTrue(np.allclose(point.as_array(), restored.as_array(), atol=1e-6))

    def test_change_notification(self):
        frame = _frame_at(17, 49)
        events = []
        frame.changed.subscribe(events.append)

        frame.set_origin_longitude_latitude_height(
            CartographicCoordinate(lon=18, lat=47, height=0)
        )
        self.assertEqual([frame], events)
        self.assertEqual(18, frame.origin.lon)

        frame.set_axes("nwu")
        frame.set_units_per_meter(100)
        frame.set_ellipsoid((6378000, 6378000))
        self.assertEqual(4, len(events))
        self.assertEqual((6378000, 6378000), frame.ellipsoid.radii)

    def test_no_notification_when_nothing_changes(self):
        frame = _frame_at(17, 49)
        events = []
        frame.changed.subscribe(events.append)

        frame.set_origin_longitude_latitude_height(
            CartographicCoordinate(lon=17, lat=49, height=0)
        )
        frame.set_axes("ENU")
        frame.set_units_per_meter(1)
        frame.update_from_json({"origin": [17, 49, 0]})
        self.assertEqual([], events)

    def test_set_origin_ecef(self):
        frame = ReferenceFrame()
        frame.set_origin_ecef(ECEFCoordinate(4009873, 1225941, 4791313))
        self.assertAlmostEqual(49, frame.origin.lat, places=5)
        self.assertAlmostEqual(17, frame.origin.lon, places=5)
        self.assertAlmostEqual(1000, frame.origin.height, places=0)

        with self.assertRaises(ValueError):
            frame.set_origin_ecef(ECEFCoordinate(0, 0, 0))

    def test_invalid_units_per_meter(self):
        frame = ReferenceFrame()
        with self.assertRaises(ValueError):
            frame.set_units_per_meter(0)

    def test_settings_are_copied(self):
        settings = ReferenceFrameSettings(origin_longitude=17)
        frame = ReferenceFrame(settings)
        settings.origin_longitude = 18
        self.assertEqual(17, frame.origin.lon)

        copy = frame.settings
        copy.origin_longitude = 19
        self.assertEqual(17, frame.origin.lon)
