"""Positions in the ECEF and geodetic coordinate systems."""

from __future__ import annotations

from typing import Any, Iterator, TypeVar

import numpy as np

__all__ = (
    "CartographicCoordinate",
    "ECEFCoordinate",
    "Vector3D",
)

V = TypeVar("V", bound="Vector3D")


class Vector3D:
    """Mutable 3D vector backed by a NumPy array of three doubles.

    Arithmetic operators return an instance of the same class as the left
    operand so ECEF coordinates stay ECEF coordinates.
    """

    __slots__ = ("_data",)

    _data: np.ndarray

    @classmethod
    def from_json(cls, data):
        """Creates a vector from its JSON representation, a list of three
        numbers.
        """
        return cls(float(data[0]), float(data[1]), float(data[2]))

    @classmethod
    def from_array(cls, data):
        """Creates a vector from the first three items of a sequence or
        NumPy array.
        """
        # Positional arguments only; subclasses may rename the keywords
        return cls(float(data[0]), float(data[1]), float(data[2]))

    def __init__(self, x: float = 0.0, y: float = 0.0, z: float = 0.0):
        self._data = np.array([x, y, z], dtype=np.float64)

    def as_array(self) -> np.ndarray:
        """Returns a copy of the coordinates as a NumPy array."""
        return self._data.copy()

    def copy(self: V) -> V:
        """Returns an independent copy of the vector."""
        return self.__class__.from_array(self._data)

    def distance(self, other: Vector3D) -> float:
        """Returns the Euclidean distance between this vector and another
        one.
        """
        if not isinstance(other, Vector3D):
            raise TypeError(f"expected Vector3D, got {type(other)!r}")
        return float(np.linalg.norm(self._data - other._data))

    def round(self, precision: int) -> None:
        """Rounds all coordinates in-place to the given number of decimal
        digits.
        """
        self._data = np.array([round(value, precision) for value in self])

    @property
    def json(self) -> list[float]:
        """The JSON representation of the vector."""
        return [float(value) for value in self._data]

    @property
    def x(self) -> float:
        return float(self._data[0])

    @x.setter
    def x(self, value: float) -> None:
        self._data[0] = float(value)

    @property
    def y(self) -> float:
        return float(self._data[1])

    @y.setter
    def y(self, value: float) -> None:
        self._data[1] = float(value)

    @property
    def z(self) -> float:
        return float(self._data[2])

    @z.setter
    def z(self, value: float) -> None:
        self._data[2] = float(value)

    def _with_data(self: V, data: np.ndarray) -> V:
        return self.__class__.from_array(data)

    def __add__(self: V, other: Vector3D) -> V:
        return self._with_data(self._data + other._data)

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, Vector3D) and bool(
            np.array_equal(self._data, other._data)
        )

    def __hash__(self):
        return hash(tuple(self))

    def __iter__(self) -> Iterator[float]:
        return (float(value) for value in self._data)

    def __mul__(self: V, other: float) -> V:
        return self._with_data(self._data * other)

    def __neg__(self: V) -> V:
        return self._with_data(-self._data)

    def __sub__(self: V, other: Vector3D) -> V:
        return self._with_data(self._data - other._data)

    def __truediv__(self: V, other: float) -> V:
        return self._with_data(self._data / other)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(x={self.x!r}, y={self.y!r}, z={self.z!r})"


class ECEFCoordinate(Vector3D):
    """Position in the Earth-Centered, Earth-Fixed frame, in metres.

    The JSON representation uses integer millimetres.
    """

    __slots__ = ()

    @classmethod
    def from_json(cls, data):
        return cls(data[0] / 1000, data[1] / 1000, data[2] / 1000)

    @property
    def json(self) -> list[int]:
        return [int(round(value * 1000)) for value in self._data]


class CartographicCoordinate:
    """Geodetic position: longitude and latitude in degrees, height above
    the reference ellipsoid in metres.

    The height is ellipsoidal. It is not the height above mean sea level and
    may differ from that by tens of metres.
    """

    __slots__ = ("lon", "lat", "height")

    lon: float
    lat: float
    height: float

    @classmethod
    def from_json(cls, data):
        """Creates a coordinate from a ``[lon, lat]`` or ``[lon, lat, height]``
        list.
        """
        height = data[2] if len(data) > 2 and data[2] is not None else 0.0
        return cls(lon=data[0], lat=data[1], height=height)

    def __init__(self, lon: float = 0.0, lat: float = 0.0, height: float = 0.0):
        self.lon = float(lon)
        self.lat = float(lat)
        self.height = float(height)

    def copy(self) -> CartographicCoordinate:
        return self.__class__(lon=self.lon, lat=self.lat, height=self.height)

    def format(self) -> str:
        """Formats the coordinate as latitude, longitude and height."""
        return f"{self.lat:.7f}°, {self.lon:.7f}°, {self.height:.1f}m"

    @property
    def json(self) -> list[float]:
        return [self.lon, self.lat, self.height]

    def round(self, precision: int) -> None:
        """Rounds the longitude and the latitude in-place to the given number
        of decimal digits. The height is not rounded.
        """
        self.lon = round(self.lon, precision)
        self.lat = round(self.lat, precision)

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, CartographicCoordinate) and (
            self.lon,
            self.lat,
            self.height,
        ) == (other.lon, other.lat, other.height)

    def __hash__(self):
        return hash((self.lon, self.lat, self.height))

    def __iter__(self) -> Iterator[float]:
        return iter((self.lon, self.lat, self.height))

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(lon={self.lon!r}, lat={self.lat!r}, "
            f"height={self.height!r})"
        )
