"""Command line tools for converting coordinates between the globe and local
worlds and for inspecting saved anchor states.
"""

from __future__ import annotations

import click

from json import dumps, load
from typing import Optional

from .errors import SnapshotFormatError
from .formatting import (
    format_cartographic_coordinate,
    format_ecef_coordinate,
    format_matrix,
)
from .frames import ReferenceFrame, ReferenceFrameSettings
from .snapshot import AnchorSnapshot
from .vectors import CartographicCoordinate, ECEFCoordinate, Vector3D
from .version import __version__

__all__ = ("main",)

#: Context settings of commands that take coordinates as arguments; negative
#: numbers must not be mistaken for options
_NUMERIC_ARGS = {"ignore_unknown_options": True}

_format_option = click.option(
    "--format",
    default="text",
    type=click.Choice(["text", "json"]),
    help="the output format",
)


def _load_frame(path: Optional[str]) -> ReferenceFrame:
    if path is None:
        return ReferenceFrame(name="cli")

    try:
        with open(path) as fp:
            settings = ReferenceFrameSettings.from_json(load(fp))
    except ValueError as ex:
        raise click.ClickException(f"Invalid reference frame settings: {ex}") from None

    return ReferenceFrame(settings, name=path)


@click.group()
@click.version_option(__version__)
def main():
    """Converts coordinates between the globe and local worlds."""
    pass


@main.command("to-ecef", context_settings=_NUMERIC_ARGS)
@click.argument("lon", type=float)
@click.argument("lat", type=float)
@click.argument("height", type=float, default=0.0)
@click.option(
    "--frame",
    metavar="FILE",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="JSON file with the settings of the reference frame whose ellipsoid to use",
)
@_format_option
def to_ecef(
    lon: float, lat: float, height: float = 0.0, frame: Optional[str] = None, format: str = "text"
):
    """Converts a longitude, latitude (in degrees) and height (in metres) to
    ECEF coordinates.
    """
    if abs(lat) > 90:
        raise click.BadParameter("latitude must be between -90 and 90", param_hint="LAT")

    coord = CartographicCoordinate(lon=lon, lat=lat, height=height)
    ecef = _load_frame(frame).transform_longitude_latitude_height_to_ecef(coord)
    if format == "json":
        click.echo(dumps({"ecef": [ecef.x, ecef.y, ecef.z]}))
    else:
        click.echo(format_ecef_coordinate(ecef))


@main.command("to-llh", context_settings=_NUMERIC_ARGS)
@click.argument("x", type=float)
@click.argument("y", type=float)
@click.argument("z", type=float)
@click.option(
    "--frame",
    metavar="FILE",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="JSON file with the settings of the reference frame whose ellipsoid to use",
)
@_format_option
def to_llh(x: float, y: float, z: float, frame: Optional[str] = None, format: str = "text"):
    """Converts ECEF coordinates (in metres) to longitude, latitude and
    height.
    """
    coord = _load_frame(frame).transform_ecef_to_longitude_latitude_height(
        ECEFCoordinate(x, y, z)
    )
    if coord is None:
        raise click.ClickException(
            "Longitude, latitude and height are undefined at the center of the ellipsoid"
        )

    if format == "json":
        click.echo(dumps({"llh": coord.json}))
    else:
        click.echo(format_cartographic_coordinate(coord))


@main.command("locate", context_settings=_NUMERIC_ARGS)
@click.argument("x", type=float)
@click.argument("y", type=float)
@click.argument("z", type=float)
@click.option(
    "--frame",
    metavar="FILE",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="JSON file with the settings of the reference frame",
)
@_format_option
def locate(x: float, y: float, z: float, frame: Optional[str] = None, format: str = "text"):
    """Converts a point given in the coordinate system of a local world to
    ECEF coordinates and to longitude, latitude and height.
    """
    reference_frame = _load_frame(frame)
    point = Vector3D(x, y, z)
    ecef = reference_frame.transform_local_to_ecef(point)
    coord = reference_frame.transform_ecef_to_longitude_latitude_height(ecef)

    if format == "json":
        click.echo(
            dumps(
                {
                    "ecef": [ecef.x, ecef.y, ecef.z],
                    "llh": coord.json if coord is not None else None,
                }
            )
        )
    else:
        click.echo(f"ECEF: {format_ecef_coordinate(ecef)}")
        if coord is not None:
            click.echo(f"Position: {format_cartographic_coordinate(coord)}")


@main.command("inspect")
@click.argument("snapshot")
@_format_option
def inspect(snapshot: str, format: str = "text"):
    """Decodes a hex-encoded anchor snapshot and prints its contents."""
    try:
        data = bytes.fromhex(snapshot)
    except ValueError:
        raise click.BadParameter("not a valid hexadecimal string", param_hint="SNAPSHOT")

    try:
        decoded = AnchorSnapshot.decode(data)
    except SnapshotFormatError as ex:
        raise click.ClickException(str(ex)) from None

    if format == "json":
        click.echo(dumps(decoded.json))
        return

    click.echo(f"Format version: {data[0]}")
    click.echo(f"Valid: {'yes' if decoded.is_valid else 'no'}")
    click.echo("Globe transform:")
    click.echo(format_matrix(decoded.globe_transform))

    if decoded.is_valid:
        ecef = ECEFCoordinate.from_array(decoded.globe_transform[:3, 3])
        click.echo(f"ECEF: {format_ecef_coordinate(ecef)}")
        coord = ReferenceFrame().transform_ecef_to_longitude_latitude_height(ecef)
        if coord is not None:
            click.echo(f"Position: {format_cartographic_coordinate(coord)}")


if __name__ == "__main__":
    main()
