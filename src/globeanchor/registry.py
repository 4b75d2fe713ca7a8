"""Registry of reference frames indexed by tags."""

from __future__ import annotations

import logging

from typing import Iterable, Optional, Union, TYPE_CHECKING

from .constants import DEFAULT_REFERENCE_FRAME_TAG
from .errors import ConfigurationError
from .frames import ReferenceFrame, ReferenceFrameSettings

if TYPE_CHECKING:
    from .scene import World

__all__ = ("ReferenceFrameRegistry",)

log = logging.getLogger(__name__)


class ReferenceFrameRegistry:
    """Registry that maps tags to reference frames so anchors that do not
    reference a frame directly can look one up.

    When a tag is requested that no frame is registered for, the registry
    either creates a new frame with the default settings and registers it
    under the tag, or raises a `ConfigurationError` if creation is disabled.
    """

    _frames_by_tag: dict[str, ReferenceFrame]

    def __init__(
        self,
        *,
        create_missing: bool = True,
        default_settings: Optional[ReferenceFrameSettings] = None,
        world: Optional[World] = None,
    ):
        """Constructor.

        Parameters:
            create_missing: whether to create frames for unknown tags
            default_settings: the settings of newly created frames
            world: the world that newly created frames will be associated with
        """
        self.create_missing = create_missing
        self.default_settings = default_settings or ReferenceFrameSettings()
        self.world = world
        self._frames_by_tag = {}

    def find(self, tag: str = DEFAULT_REFERENCE_FRAME_TAG) -> Optional[ReferenceFrame]:
        """Returns the frame registered with the given tag, or ``None``."""
        return self._frames_by_tag.get(tag)

    def get_or_create(self, tag: str = DEFAULT_REFERENCE_FRAME_TAG) -> ReferenceFrame:
        """Returns the frame registered with the given tag, creating it if
        needed and allowed.

        Raises:
            ConfigurationError: if there is no frame with the given tag and
                the registry is not allowed to create one
        """
        frame = self._frames_by_tag.get(tag)
        if frame is not None:
            return frame

        if not self.create_missing:
            raise ConfigurationError(f"No reference frame is registered with tag {tag!r}")

        frame = ReferenceFrame(self.default_settings, name=tag, world=self.world)
        self._frames_by_tag[tag] = frame
        log.info(f"Created default reference frame for tag {tag!r}")
        return frame

    def register(
        self, frame: ReferenceFrame, tags: Union[str, Iterable[str]] = DEFAULT_REFERENCE_FRAME_TAG
    ) -> None:
        """Registers a frame under one or more tags, replacing any frame
        previously registered with the same tag.
        """
        if isinstance(tags, str):
            tags = [tags]
        for tag in tags:
            self._frames_by_tag[tag] = frame

    def unregister(self, frame: ReferenceFrame) -> None:
        """Removes all the tags of the given frame from the registry."""
        tags = [tag for tag, value in self._frames_by_tag.items() if value is frame]
        for tag in tags:
            del self._frames_by_tag[tag]

    def __contains__(self, tag: str) -> bool:
        return tag in self._frames_by_tag

    def __len__(self) -> int:
        return len(self._frames_by_tag)
