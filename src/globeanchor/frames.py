"""Reference frames that map between the globe (ECEF) and the local,
floating-origin world coordinate system of a host application.
"""

from __future__ import annotations

import logging

from dataclasses import dataclass, replace
from typing import Any, Optional, TYPE_CHECKING, Union

import numpy as np

from .constants import WGS84
from .ellipsoid import Ellipsoid
from .events import Signal
from .matrices import Mat4, affine_inverse, identity, transform_point, translation_matrix
from .vectors import CartographicCoordinate, ECEFCoordinate, Vector3D

if TYPE_CHECKING:
    from .scene import World

__all__ = ("ReferenceFrame", "ReferenceFrameSettings", "normalize_axes")

log = logging.getLogger(__name__)


_AXIS_DIRECTIONS: dict[str, tuple[float, float, float]] = {
    "e": (1.0, 0.0, 0.0),
    "w": (-1.0, 0.0, 0.0),
    "n": (0.0, 1.0, 0.0),
    "s": (0.0, -1.0, 0.0),
    "u": (0.0, 0.0, 1.0),
    "d": (0.0, 0.0, -1.0),
}

_AXIS_GROUPS = ("ew", "ns", "ud")


def normalize_axes(axes: str) -> str:
    """Returns the normalized name of an axis convention.

    An axis convention is a three-letter string that names the geographic
    direction of the local X, Y and Z axes, in this order; e.g. ``"enu"``
    means East-North-Up and ``"esu"`` means East-South-Up, the left-handed
    layout used by many game engines. Each of the east/west, north/south and
    up/down pairs must appear exactly once.

    Raises:
        ValueError: if the string is not a valid axis convention
    """
    normalized = None
    if isinstance(axes, str) and len(axes) == 3:
        axes = axes.lower()
        if all(
            sum(1 for letter in axes if letter in group) == 1 for group in _AXIS_GROUPS
        ):
            normalized = axes

    if not normalized:
        raise ValueError("unknown axis convention: {0!r}".format(axes))

    return normalized


@dataclass
class ReferenceFrameSettings:
    """Object holding the parameters that define a reference frame."""

    #: Longitude of the origin of the local world, in degrees
    origin_longitude: float = 0.0

    #: Latitude of the origin of the local world, in degrees
    origin_latitude: float = 0.0

    #: Height of the origin of the local world above the ellipsoid, in metres
    origin_height: float = 0.0

    #: Equatorial and polar radius of the ellipsoid, in metres
    radii: tuple[float, float] = (
        WGS84.EQUATORIAL_RADIUS_IN_METERS,
        WGS84.POLAR_RADIUS_IN_METERS,
    )

    #: Geographic direction of the local X, Y and Z axes
    axes: str = "enu"

    #: Number of local world units in one metre
    units_per_meter: float = 1.0

    @classmethod
    def from_json(cls, data):
        result = cls()
        result.update_from_json(data)
        return result

    @property
    def json(self) -> dict[str, Any]:
        return {
            "origin": [self.origin_longitude, self.origin_latitude, self.origin_height],
            "radii": list(self.radii),
            "axes": self.axes,
            "unitsPerMeter": self.units_per_meter,
        }

    @property
    def origin(self) -> CartographicCoordinate:
        """The origin of the local world as a cartographic coordinate."""
        return CartographicCoordinate(
            lon=self.origin_longitude,
            lat=self.origin_latitude,
            height=self.origin_height,
        )

    def reset_to_defaults(self) -> None:
        """Restores every field to its default value."""
        defaults = self.__class__()
        self.origin_longitude = defaults.origin_longitude
        self.origin_latitude = defaults.origin_latitude
        self.origin_height = defaults.origin_height
        self.radii = defaults.radii
        self.axes = defaults.axes
        self.units_per_meter = defaults.units_per_meter

    def update_from_json(self, data, *, reset: bool = False) -> None:
        """Updates an existing settings object from the given JSON
        representation.

        Parameters:
            data: the JSON object
            reset: whether to reset the settings to the defaults before
                applying the update

        Raises:
            ValueError: if the format of the JSON object is invalid
        """
        if not isinstance(data, dict):
            raise ValueError("reference frame settings object missing or invalid")

        if reset:
            self.reset_to_defaults()

        origin = data.get("origin")
        if origin is not None:
            if not isinstance(origin, (list, tuple)) or len(origin) not in (2, 3):
                raise ValueError("invalid origin")
            if not all(isinstance(value, (float, int)) for value in origin):
                raise ValueError("invalid origin")
            if abs(origin[1]) > 90:
                raise ValueError("origin latitude out of range")
            self.origin_longitude = float(origin[0])
            self.origin_latitude = float(origin[1])
            self.origin_height = float(origin[2]) if len(origin) > 2 else 0.0

        radii = data.get("radii")
        if radii is not None:
            if (
                not isinstance(radii, (list, tuple))
                or len(radii) != 2
                or not all(isinstance(value, (float, int)) for value in radii)
                or min(radii) <= 0
                or radii[1] > radii[0]
            ):
                raise ValueError("invalid ellipsoid radii")
            self.radii = float(radii[0]), float(radii[1])

        axes = data.get("axes")
        if axes is not None:
            self.axes = normalize_axes(axes)

        units_per_meter = data.get("unitsPerMeter")
        if units_per_meter is not None:
            if not isinstance(units_per_meter, (float, int)) or units_per_meter <= 0:
                raise ValueError("invalid number of units per metre")
            self.units_per_meter = float(units_per_meter)


class ReferenceFrame:
    """Mapping between the globe (ECEF) and the local world coordinate system
    of a host application.

    The local world is a Cartesian system whose origin sits at a given
    longitude, latitude and height, with its axes aligned to the local
    tangent plane according to an axis convention and scaled by a number of
    units per metre. The host may additionally shift the origin of the
    coordinates it works with (floating origin); the amount of the shift is
    read from the world the frame is associated with, so the matrices
    returned by `get_local_to_globe_matrix()` and
    `get_globe_to_local_matrix()` map between ECEF and these *relative*
    coordinates.

    Subscribers of the `changed` signal are notified synchronously whenever
    the origin, the ellipsoid, the axes or the scale of the frame changes.
    """

    changed: Signal
    """Signal that is emitted with the frame itself after any parameter of
    the frame has changed.
    """

    _settings: ReferenceFrameSettings
    _ellipsoid: Ellipsoid
    _world: Optional[World]

    def __init__(
        self,
        settings: Optional[ReferenceFrameSettings] = None,
        *,
        name: Optional[str] = None,
        world: Optional[World] = None,
    ):
        """Constructor.

        Parameters:
            settings: the parameters of the frame; ``None`` means to use the
                defaults. The settings object is copied.
            name: name of the frame, used in log messages
            world: the host world whose origin location is used to convert
                between absolute and relative world coordinates
        """
        self.name = name or "ReferenceFrame"
        self.changed = Signal(f"{self.name}.changed")

        settings = replace(settings) if settings is not None else ReferenceFrameSettings()
        settings.axes = normalize_axes(settings.axes)
        self._settings = settings
        self._ellipsoid = Ellipsoid(settings.radii)
        self._world = world

        self._recalculate()

    @property
    def axes(self) -> str:
        """The axis convention of the local world."""
        return self._settings.axes

    @property
    def ellipsoid(self) -> Ellipsoid:
        """The reference ellipsoid of the frame."""
        return self._ellipsoid

    @property
    def origin(self) -> CartographicCoordinate:
        """The origin of the local world as a cartographic coordinate."""
        return self._settings.origin

    @property
    def origin_ecef(self) -> ECEFCoordinate:
        """The origin of the local world in ECEF coordinates."""
        return ECEFCoordinate.from_array(self._enu_to_ecef[:3, 3])

    @property
    def settings(self) -> ReferenceFrameSettings:
        """A copy of the parameters of the frame."""
        return replace(self._settings)

    @property
    def units_per_meter(self) -> float:
        """The number of local world units in one metre."""
        return self._settings.units_per_meter

    @property
    def world(self) -> Optional[World]:
        """The host world whose origin location the frame uses."""
        return self._world

    @world.setter
    def world(self, value: Optional[World]) -> None:
        if self._world is not value:
            self._world = value
            self._notify()

    @property
    def world_origin(self) -> np.ndarray:
        """The current origin location of the host world, in absolute world
        units; zero if the frame is not associated with a world.
        """
        if self._world is None:
            return np.zeros(3)
        return self._world.origin_location

    @property
    def absolute_world_to_ecef_matrix(self) -> Mat4:
        """Matrix that transforms absolute world coordinates to ECEF."""
        return self._absolute_world_to_ecef.copy()

    @property
    def ecef_to_absolute_world_matrix(self) -> Mat4:
        """Matrix that transforms ECEF coordinates to absolute world
        coordinates.
        """
        return self._ecef_to_absolute_world.copy()

    def get_local_to_globe_matrix(self, world_origin=None) -> Mat4:
        """Returns the matrix that transforms relative (origin-shifted) world
        coordinates to ECEF.

        Parameters:
            world_origin: the origin location of the world to use instead of
                the one currently stored in the host world
        """
        origin = self.world_origin if world_origin is None else world_origin
        return self._absolute_world_to_ecef @ translation_matrix(origin)

    def get_globe_to_local_matrix(self, world_origin=None) -> Mat4:
        """Returns the matrix that transforms ECEF coordinates to relative
        (origin-shifted) world coordinates. This is the inverse of
        `get_local_to_globe_matrix()` for the same world origin.

        Parameters:
            world_origin: the origin location of the world to use instead of
                the one currently stored in the host world
        """
        origin = self.world_origin if world_origin is None else world_origin
        return translation_matrix(-np.asarray(origin, dtype=np.float64)) @ (
            self._ecef_to_absolute_world
        )

    def transform_longitude_latitude_height_to_ecef(
        self, coord: CartographicCoordinate
    ) -> ECEFCoordinate:
        """Converts a geodetic coordinate to ECEF on the ellipsoid of the
        frame.
        """
        return self._ellipsoid.to_ecef(coord)

    def transform_ecef_to_longitude_latitude_height(
        self, coord: Vector3D
    ) -> Optional[CartographicCoordinate]:
        """Converts an ECEF coordinate to a geodetic coordinate on the
        ellipsoid of the frame. Returns ``None`` at the center of the
        ellipsoid.
        """
        return self._ellipsoid.to_cartographic(coord)

    def transform_ecef_to_local(self, coord: Vector3D, world_origin=None) -> Vector3D:
        """Converts an ECEF coordinate to relative world coordinates."""
        matrix = self.get_globe_to_local_matrix(world_origin)
        return Vector3D.from_array(transform_point(matrix, coord))

    def transform_local_to_ecef(self, coord: Vector3D, world_origin=None) -> ECEFCoordinate:
        """Converts relative world coordinates to an ECEF coordinate."""
        matrix = self.get_local_to_globe_matrix(world_origin)
        return ECEFCoordinate.from_array(transform_point(matrix, coord))

    def transform_longitude_latitude_height_to_local(
        self, coord: CartographicCoordinate, world_origin=None
    ) -> Vector3D:
        """Converts a geodetic coordinate to relative world coordinates."""
        return self.transform_ecef_to_local(
            self.transform_longitude_latitude_height_to_ecef(coord), world_origin
        )

    def transform_local_to_longitude_latitude_height(
        self, coord: Vector3D, world_origin=None
    ) -> Optional[CartographicCoordinate]:
        """Converts relative world coordinates to a geodetic coordinate."""
        return self.transform_ecef_to_longitude_latitude_height(
            self.transform_local_to_ecef(coord, world_origin)
        )

    def set_axes(self, axes: str) -> None:
        """Sets the axis convention of the local world."""
        self.update_settings(replace(self._settings, axes=normalize_axes(axes)))

    def set_ellipsoid(self, ellipsoid: Union[Ellipsoid, tuple[float, float]]) -> None:
        """Sets the reference ellipsoid of the frame.

        Parameters:
            ellipsoid: the new ellipsoid or its equatorial and polar radii
        """
        radii = ellipsoid.radii if isinstance(ellipsoid, Ellipsoid) else ellipsoid
        self.update_settings(
            replace(self._settings, radii=(float(radii[0]), float(radii[1])))
        )

    def set_origin_ecef(self, coord: Vector3D) -> None:
        """Sets the origin of the local world from an ECEF coordinate.

        Raises:
            ValueError: if the coordinate is at the center of the ellipsoid
        """
        cartographic = self._ellipsoid.to_cartographic(coord)
        if cartographic is None:
            raise ValueError("origin cannot be at the center of the ellipsoid")
        self.set_origin_longitude_latitude_height(cartographic)

    def set_origin_longitude_latitude_height(
        self, coord: CartographicCoordinate
    ) -> None:
        """Sets the origin of the local world from a geodetic coordinate."""
        self.update_settings(
            replace(
                self._settings,
                origin_longitude=coord.lon,
                origin_latitude=coord.lat,
                origin_height=coord.height,
            )
        )

    def set_units_per_meter(self, value: float) -> None:
        """Sets the number of local world units in one metre."""
        if value <= 0:
            raise ValueError("number of units per metre must be positive")
        self.update_settings(replace(self._settings, units_per_meter=float(value)))

    def update_settings(self, settings: ReferenceFrameSettings) -> None:
        """Replaces all the parameters of the frame at once. Subscribers are
        notified once, and only if something has actually changed.
        """
        settings = replace(settings)
        settings.axes = normalize_axes(settings.axes)
        if settings == self._settings:
            return

        self._settings = settings
        if self._ellipsoid.radii != settings.radii:
            self._ellipsoid = Ellipsoid(settings.radii)

        self._recalculate()
        log.debug(f"{self.name} changed, new origin: {self.origin.format()}")
        self._notify()

    def update_from_json(self, data, *, reset: bool = False) -> None:
        """Updates the frame from the JSON representation of its settings."""
        settings = self.settings
        settings.update_from_json(data, reset=reset)
        self.update_settings(settings)

    def _notify(self) -> None:
        self.changed.emit(self)

    def _recalculate(self) -> None:
        """Recalculates the cached matrices of the frame."""
        origin_ecef = self._ellipsoid.to_ecef(self._settings.origin)
        self._enu_to_ecef = self._ellipsoid.east_north_up_to_ecef(origin_ecef)

        local_to_enu = identity()
        scale = 1.0 / self._settings.units_per_meter
        for index, letter in enumerate(self._settings.axes):
            local_to_enu[:3, index] = np.array(_AXIS_DIRECTIONS[letter]) * scale

        self._absolute_world_to_ecef = self._enu_to_ecef @ local_to_enu
        self._ecef_to_absolute_world = affine_inverse(self._absolute_world_to_ecef)

    def __repr__(self) -> str:
        return "<{0.__class__.__name__} {0.name!r} at {1}>".format(
            self, self.origin.format()
        )
