"""Adapter that keeps globe anchors precise when the origin of the host
world is shifted.
"""

from __future__ import annotations

import logging

from typing import Optional, TYPE_CHECKING

import numpy as np

from .events import SubscriptionToken
from .matrices import Mat4

if TYPE_CHECKING:
    from .anchor import GlobeAnchor
    from .scene import World

__all__ = ("OriginRebaseAdapter", "shifted_origin_location")

log = logging.getLogger(__name__)


def shifted_origin_location(world: World, offset) -> np.ndarray:
    """Returns the origin location that the given world will have after it
    is shifted by the given offset.

    The world notifies its listeners before it stores the new origin, so
    the offset has to be subtracted from the current origin here.
    """
    return world.origin_location - np.asarray(offset, dtype=np.float64)


class OriginRebaseAdapter:
    """Listens to origin shifts of a world and recomputes the local transform
    of an anchor from its globe transform, using the origin that the world
    *will* have after the shift.

    The world notifies its listeners before it stores the new origin, and
    the scene node of the anchor has already been moved by the offset at
    that point, albeit imprecisely. Reading the origin from the reference
    frame here would yield the stale value, so the new origin is computed
    from the offset and passed to the anchor explicitly.
    """

    _anchor: GlobeAnchor
    _token: Optional[SubscriptionToken]
    _world: Optional[World]

    def __init__(self, anchor: GlobeAnchor):
        """Constructor.

        Parameters:
            anchor: the anchor to keep up-to-date
        """
        self._anchor = anchor
        self._token = None
        self._world = None

    @property
    def world(self) -> Optional[World]:
        """The world that the adapter is listening to."""
        return self._world

    def attach(self, world: World) -> None:
        """Starts listening to the origin shifts of the given world."""
        if self._world is world:
            return

        self.detach()
        self._world = world
        self._token = world.origin_shifting.subscribe(self.apply_world_offset)

    def detach(self) -> None:
        """Stops listening to the origin shifts of the current world."""
        if self._world is not None:
            self._world.origin_shifting.unsubscribe(self._token)
        self._world = None
        self._token = None

    def apply_world_offset(self, offset) -> Optional[Mat4]:
        """Handles an origin shift of the world by the given offset.

        Returns:
            the new local transform of the anchor or ``None`` if the anchor
            has no valid globe transform to derive it from
        """
        if self._world is None:
            log.warning(
                f"Origin rebase adapter of {self._anchor.name} is not listening "
                "to any world"
            )
            return None

        return self._anchor.update_local_transform_from_globe(
            world_origin=shifted_origin_location(self._world, offset)
        )
