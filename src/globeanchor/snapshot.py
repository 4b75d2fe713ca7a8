"""Persistent representation of the state of a globe anchor."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np

from bitstring import ConstBitStream, pack

from .errors import SnapshotFormatError
from .matrices import (
    Mat4,
    identity,
    is_affine,
    is_invertible,
    matrix_from_sequence,
    matrix_to_sequence,
)

__all__ = ("AnchorSnapshot", "FORMAT_VERSION", "LEGACY_FORMAT_VERSION")


LEGACY_FORMAT_VERSION = 1
"""Binary format version written before anchors had a validity flag. The
globe transform stored in this format is always considered valid.
"""

FORMAT_VERSION = 2
"""Current binary format version."""

#: Bit-level layout of the globe transform; 16 big-endian doubles in
#: column-major order
_MATRIX_FORMAT = ", ".join(["floatbe:64"] * 16)

_HEADER_LENGTH = 1
_MATRIX_LENGTH = 16 * 8


@dataclass(eq=False)
class AnchorSnapshot:
    """Saved state of a globe anchor: its globe transform and whether the
    transform is valid.

    The binary representation starts with a format version byte, followed
    by the 16 entries of the globe transform as big-endian IEEE-754 doubles
    in column-major order. Version 2 appends a single byte holding the
    validity flag; version 1 has no flag and is loaded as valid.
    """

    #: Transformation from the local space of the anchor to ECEF
    globe_transform: Mat4 = field(default_factory=identity)

    #: Whether the globe transform is authoritative
    is_valid: bool = False

    @classmethod
    def decode(cls, data: bytes):
        """Creates a snapshot from its binary representation.

        Raises:
            SnapshotFormatError: if the data cannot be decoded
        """
        data = bytes(data)
        if not data:
            raise SnapshotFormatError("Empty anchor snapshot")

        version = data[0]
        if version == LEGACY_FORMAT_VERSION:
            expected_length = _HEADER_LENGTH + _MATRIX_LENGTH
        elif version == FORMAT_VERSION:
            expected_length = _HEADER_LENGTH + _MATRIX_LENGTH + 1
        else:
            raise SnapshotFormatError(f"Unknown anchor snapshot version: {version}")

        if len(data) != expected_length:
            raise SnapshotFormatError(
                f"Anchor snapshot of version {version} must be {expected_length} "
                f"bytes long, got {len(data)}"
            )

        stream = ConstBitStream(bytes=data)
        stream.read("uint:8")
        values = stream.readlist(_MATRIX_FORMAT)
        is_valid = (
            bool(stream.read("uint:8")) if version >= FORMAT_VERSION else True
        )
        return cls._create(values, is_valid)

    @classmethod
    def from_json(cls, data):
        """Creates a snapshot from its JSON representation. Objects without
        an ``isValid`` key were saved before the validity flag existed and
        are loaded as valid.

        Raises:
            SnapshotFormatError: if the JSON object is invalid
        """
        if not isinstance(data, dict):
            raise SnapshotFormatError("Anchor snapshot object missing or invalid")

        values = data.get("globeTransform")
        if not isinstance(values, (list, tuple)) or len(values) != 16:
            raise SnapshotFormatError("Invalid globe transform in anchor snapshot")

        is_valid = data.get("isValid", True)
        if not isinstance(is_valid, bool):
            raise SnapshotFormatError("Invalid validity flag in anchor snapshot")

        return cls._create(values, is_valid)

    @classmethod
    def _create(cls, values, is_valid: bool):
        try:
            matrix = matrix_from_sequence(values)
        except (TypeError, ValueError) as ex:
            raise SnapshotFormatError(str(ex)) from None

        if is_valid and not is_affine(matrix):
            raise SnapshotFormatError(
                "Globe transform in anchor snapshot is not an affine transformation"
            )
        if is_valid and not is_invertible(matrix):
            raise SnapshotFormatError(
                "Globe transform in anchor snapshot cannot be inverted"
            )

        return cls(globe_transform=matrix, is_valid=is_valid)

    @property
    def json(self) -> dict[str, Any]:
        return {
            "globeTransform": matrix_to_sequence(self.globe_transform),
            "isValid": self.is_valid,
        }

    def encode(self, version: int = FORMAT_VERSION) -> bytes:
        """Encodes the snapshot into its binary representation.

        Parameters:
            version: the format version to use. The legacy format cannot
                represent invalid snapshots.
        """
        values = matrix_to_sequence(self.globe_transform)
        if version == FORMAT_VERSION:
            bits = pack(
                "uint:8, " + _MATRIX_FORMAT + ", uint:8",
                version,
                *values,
                1 if self.is_valid else 0,
            )
        elif version == LEGACY_FORMAT_VERSION:
            if not self.is_valid:
                raise ValueError("legacy snapshot format cannot store invalid state")
            bits = pack("uint:8, " + _MATRIX_FORMAT, version, *values)
        else:
            raise ValueError(f"unknown snapshot format version: {version}")
        return bits.tobytes()

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, AnchorSnapshot):
            return self.is_valid == other.is_valid and np.array_equal(
                self.globe_transform, other.globe_transform
            )
        else:
            return False
