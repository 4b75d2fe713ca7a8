"""Version information for the package."""

__version_info__ = (0, 3, 0)
__version__ = ".".join("{0}".format(x) for x in __version_info__)
