from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from .vectors import CartographicCoordinate, ECEFCoordinate, Vector3D

if TYPE_CHECKING:
    from .anchor import GlobeAnchor
    from .matrices import Mat4


__all__ = (
    "describe_anchor",
    "format_cartographic_coordinate",
    "format_ecef_coordinate",
    "format_matrix",
)


def format_cartographic_coordinate(coord: CartographicCoordinate) -> str:
    """Formats a geodetic coordinate in a human-readable way."""
    return coord.format()


def format_ecef_coordinate(coord: Vector3D, *, precision: int = 3) -> str:
    """Formats an ECEF coordinate in a human-readable way.

    Args:
        coord: the coordinate to format
        precision: number of decimal digits to show

    Returns:
        the X, Y and Z coordinates in metres, separated by commas
    """
    return ", ".join(f"{value:.{precision}f}m" for value in coord)


def format_matrix(matrix: Mat4, *, precision: int = 6) -> str:
    """Formats a 4x4 matrix as four lines of aligned numbers, one line per
    row.
    """
    rows = [
        [f"{value:.{precision}f}" for value in row] for row in np.asarray(matrix)
    ]
    width = max(len(item) for row in rows for item in row)
    return "\n".join(" ".join(item.rjust(width) for item in row) for row in rows)


def describe_anchor(anchor: GlobeAnchor) -> str:
    """Returns a multi-line, human-readable description of the state of a
    globe anchor.
    """
    frame = anchor.resolved_reference_frame
    lines = [
        f"Anchor: {anchor.name}",
        f"State: {anchor.state.value}",
        f"Reference frame: {frame.name if frame is not None else '-'}",
    ]

    if anchor.is_valid:
        # Must not touch the last diagnostic of the anchor
        ecef = ECEFCoordinate(anchor.ecef_x, anchor.ecef_y, anchor.ecef_z)
        lines.append(f"ECEF: {format_ecef_coordinate(ecef)}")
        if frame is not None:
            coord = CartographicCoordinate(
                lon=anchor.longitude, lat=anchor.latitude, height=anchor.height
            )
            lines.append(f"Position: {format_cartographic_coordinate(coord)}")
        lines.append("Globe transform:")
        lines.append(format_matrix(anchor.globe_transform))

    return "\n".join(lines)
