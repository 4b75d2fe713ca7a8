"""Error classes for the globe anchor package."""

__all__ = (
    "Error",
    "AnchorError",
    "ConfigurationError",
    "DegenerateTransformError",
    "MissingSceneNodeError",
    "NotYetResolvedError",
    "NotYetValidError",
    "SnapshotFormatError",
)


class Error(RuntimeError):
    """Base class for all exceptions that are thrown from the globe anchor
    package.
    """

    pass


class AnchorError(Error):
    """Superclass for recoverable failures of a globe anchor. Instances of
    these are usually not raised; the anchor logs them, stores them as its
    last diagnostic and falls back to a safe default.
    """

    pass


class NotYetResolvedError(AnchorError):
    """Error signalling that an operation needs a reference frame but the
    anchor has not resolved one yet.
    """

    pass


class NotYetValidError(AnchorError):
    """Error signalling that the globe position of an anchor was requested
    before it was derived from the local transform or set explicitly.
    """

    pass


class DegenerateTransformError(AnchorError):
    """Error signalling that a transform given to the anchor collapses space
    onto a plane, a line or a point and therefore cannot be inverted.
    """

    pass


class MissingSceneNodeError(AnchorError):
    """Error signalling that the anchor is not attached to a scene node."""

    pass


class ConfigurationError(Error):
    """Error thrown when no reference frame exists for an anchor and none
    can be created.
    """

    pass


class SnapshotFormatError(Error):
    """Error thrown when a persisted anchor state cannot be decoded."""

    pass
