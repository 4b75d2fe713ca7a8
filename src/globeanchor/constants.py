"""Constants shared by the modules of the globe anchor package."""

__all__ = ("DEFAULT_REFERENCE_FRAME_TAG", "WGS84")


class WGS84:
    """Parameters of the WGS84 reference ellipsoid.

    Only the equatorial radius and the inverse flattening are defining
    parameters; everything else is derived from them.
    """

    EQUATORIAL_RADIUS_IN_METERS: float = 6378137.0
    INVERSE_FLATTENING: float = 298.257223563

    FLATTENING = 1 / INVERSE_FLATTENING
    POLAR_RADIUS_IN_METERS = EQUATORIAL_RADIUS_IN_METERS * (1 - FLATTENING)

    #: Square of the first eccentricity
    ECCENTRICITY_SQUARED = FLATTENING * (2 - FLATTENING)


DEFAULT_REFERENCE_FRAME_TAG = "World"
"""Registry tag of the reference frame that anchors use when they reference
neither a frame nor a dataset.
"""
