"""Minimal scene graph of a host application: scene nodes with a local
transform and a world with a floating origin.
"""

from __future__ import annotations

import logging

from typing import Optional, Protocol

import numpy as np

from .events import Signal
from .matrices import Mat4, as_matrix, identity

__all__ = ("SceneNode", "SceneNodeLike", "World")

log = logging.getLogger(__name__)


class SceneNodeLike(Protocol):
    """Interface of scene nodes that a globe anchor can be
    attached to.
    """

    transform_changed: Signal

    @property
    def local_transform(self) -> Mat4: ...

    def set_local_transform(self, transform: Mat4, teleport: bool = False) -> None: ...


class SceneNode:
    """Scene node whose transform is given in the relative (origin-shifted)
    coordinate system of the world it belongs to.

    Every call to `set_local_transform()` emits `transform_changed` with the
    node and the teleport flag. Shifting the node during an origin rebase
    with `apply_world_offset()` does not emit anything.
    """

    transform_changed: Signal
    """Signal that is emitted with the node and the teleport flag when the
    transform of the node was set.
    """

    _transform: Mat4

    def __init__(
        self,
        transform: Optional[Mat4] = None,
        *,
        name: Optional[str] = None,
        world: Optional[World] = None,
    ):
        """Constructor.

        Parameters:
            transform: the initial transform of the node; ``None`` means the
                identity transform
            name: name of the node, used in log messages
            world: the world that the node belongs to, if any
        """
        self.name = name or "SceneNode"
        self.transform_changed = Signal(f"{self.name}.transform_changed")
        self._transform = as_matrix(transform) if transform is not None else identity()
        self.last_teleport: Optional[bool] = None

        self.world = None
        if world is not None:
            world.add_node(self)

    @property
    def local_transform(self) -> Mat4:
        """A copy of the current transform of the node."""
        return self._transform.copy()

    @property
    def location(self) -> np.ndarray:
        """The translation part of the current transform of the node."""
        return self._transform[:3, 3].copy()

    def apply_world_offset(self, offset) -> None:
        """Moves the node by the given offset without notifying anyone. Called
        by the world when its origin is shifted.
        """
        self._transform[:3, 3] += np.asarray(offset, dtype=np.float64)

    def set_local_transform(self, transform: Mat4, teleport: bool = False) -> None:
        """Sets the transform of the node and notifies the subscribers of
        `transform_changed`.

        Parameters:
            transform: the new transform
            teleport: whether the node should jump to the new transform
                immediately without affecting its velocity
        """
        self._transform = as_matrix(transform)
        self.last_teleport = bool(teleport)
        self.transform_changed.emit(self, teleport)

    def __repr__(self) -> str:
        return "<{0.__class__.__name__} {0.name!r}>".format(self)


class World:
    """Host world with a floating origin.

    Shifting the origin happens in a well-defined order: first all the scene
    nodes of the world are moved by the offset, then `origin_shifting` is
    emitted with the offset, and only then is the new origin location stored.
    Subscribers of `origin_shifting` therefore still see the *old* origin
    location in `origin_location`.
    """

    origin_shifting: Signal
    """Signal that is emitted with the offset being applied to the world
    before the origin location is updated.
    """

    _nodes: list[SceneNode]
    _origin_location: np.ndarray

    def __init__(self, origin_location=None, *, name: Optional[str] = None):
        """Constructor.

        Parameters:
            origin_location: the initial location of the origin, in absolute
                world units; ``None`` means the zero vector
            name: name of the world, used in log messages
        """
        self.name = name or "World"
        self.origin_shifting = Signal(f"{self.name}.origin_shifting")
        self._nodes = []
        self._origin_location = (
            np.array(origin_location, dtype=np.float64)
            if origin_location is not None
            else np.zeros(3)
        )

    @property
    def nodes(self) -> list[SceneNode]:
        """The scene nodes in the world."""
        return list(self._nodes)

    @property
    def origin_location(self) -> np.ndarray:
        """A copy of the current origin location of the world, in absolute
        world units.
        """
        return self._origin_location.copy()

    def add_node(self, node: SceneNode) -> None:
        """Adds a scene node to the world."""
        if node.world is not None and node.world is not self:
            node.world.remove_node(node)
        if node not in self._nodes:
            self._nodes.append(node)
        node.world = self

    def remove_node(self, node: SceneNode) -> None:
        """Removes a scene node from the world."""
        if node in self._nodes:
            self._nodes.remove(node)
            node.world = None

    def apply_world_offset(self, offset) -> None:
        """Shifts the world by the given offset. The new origin location will
        be the old one minus the offset.
        """
        offset = np.asarray(offset, dtype=np.float64)
        if offset.shape != (3,):
            raise ValueError(f"expected a 3D offset, got shape {offset.shape!r}")

        for node in self._nodes:
            node.apply_world_offset(offset)

        self.origin_shifting.emit(offset)

        self._origin_location = self._origin_location - offset
        log.debug(f"{self.name} origin moved to {self._origin_location.tolist()!r}")

    def set_origin_location(self, origin_location) -> None:
        """Moves the origin of the world to the given absolute location."""
        new_origin = np.asarray(origin_location, dtype=np.float64)
        self.apply_world_offset(self._origin_location - new_origin)

    def __repr__(self) -> str:
        return "<{0.__class__.__name__} {0.name!r}>".format(self)
