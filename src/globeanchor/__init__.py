"""Main package for the globe anchor module."""

from .anchor import AnchorSettings, AnchorState, GlobeAnchor
from .errors import Error
from .frames import ReferenceFrame, ReferenceFrameSettings
from .version import __version__, __version_info__

__all__ = (
    "__version__",
    "__version_info__",
    "AnchorSettings",
    "AnchorState",
    "Error",
    "GlobeAnchor",
    "ReferenceFrame",
    "ReferenceFrameSettings",
)
