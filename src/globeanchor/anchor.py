"""Globe anchors that tie scene nodes to precise positions on the globe.

These are the changes that can happen to an anchor, how it learns about
them and what it does about them:

Local transform changed
    Detected through the ``transform_changed`` signal of the scene node, or
    reported directly with `GlobeAnchor.on_local_transform_changed()`.
    Updates the globe transform from the local transform.

Globe position changed
    Happens when `GlobeAnchor.move_to_ecef()` or a similar method is called.
    Updates the local transform from the new globe transform, optionally
    rotating the node to account for the curvature of the globe.

Reference frame changed
    Detected through the ``changed`` signal of the resolved reference frame,
    or when the placement of the parent dataset changes. Updates the local
    transform from the existing globe transform. Orientation adjustment is
    never applied because the globe position does not change.

Origin rebased
    Detected by an `OriginRebaseAdapter` listening to the world of the scene
    node. Updates the local transform from the existing globe transform using
    the new origin of the world. Orientation adjustment is never applied.
"""

from __future__ import annotations

import logging

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Optional, Union

import numpy as np

from .constants import DEFAULT_REFERENCE_FRAME_TAG
from .dataset import Dataset
from .errors import (
    AnchorError,
    ConfigurationError,
    DegenerateTransformError,
    MissingSceneNodeError,
    NotYetResolvedError,
    NotYetValidError,
)
from .events import SubscriptionToken
from .frames import ReferenceFrame
from .matrices import (
    Mat4,
    as_matrix,
    identity,
    is_invertible,
    translation_matrix,
    with_translation,
)
from .orientation import OrientationAdjustmentPolicy
from .rebase import OriginRebaseAdapter, shifted_origin_location
from .registry import ReferenceFrameRegistry
from .scene import SceneNodeLike
from .snapshot import AnchorSnapshot
from .vectors import CartographicCoordinate, ECEFCoordinate, Vector3D

__all__ = ("AnchorSettings", "AnchorState", "GlobeAnchor")

log = logging.getLogger(__name__)


class AnchorState(Enum):
    """States of a globe anchor."""

    #: No reference frame is bound to the anchor yet
    UNRESOLVED = "unresolved"

    #: A reference frame is bound but the globe transform is not known
    INVALID = "invalid"

    #: The globe transform is known and authoritative
    VALID = "valid"


@dataclass
class AnchorSettings:
    """Object holding the user-facing settings of a globe anchor."""

    #: Whether to rotate the scene node when the anchor is moved to a new
    #: globe position so it stays aligned with the surface of the globe
    adjust_orientation: bool = False

    #: Whether the scene node should jump to its new transform immediately
    #: without affecting its velocity when the anchor updates it
    teleport: bool = True

    #: Tag of the reference frame to look up when the anchor references
    #: neither a frame nor a dataset directly
    tag: str = DEFAULT_REFERENCE_FRAME_TAG

    @classmethod
    def from_json(cls, data):
        result = cls()
        result.update_from_json(data)
        return result

    @property
    def json(self) -> dict[str, Any]:
        return {
            "adjustOrientation": self.adjust_orientation,
            "teleport": self.teleport,
            "tag": self.tag,
        }

    def reset_to_defaults(self) -> None:
        """Restores every field to its default value."""
        self.adjust_orientation = False
        self.teleport = True
        self.tag = DEFAULT_REFERENCE_FRAME_TAG

    def update_from_json(self, data, *, reset: bool = False) -> None:
        """Updates an existing settings object from the given JSON
        representation.

        Parameters:
            data: the JSON object
            reset: whether to reset the settings to the defaults before
                applying the update

        Raises:
            ValueError: if the format of the JSON object is invalid
        """
        if not isinstance(data, dict):
            raise ValueError("anchor settings object missing or invalid")

        if reset:
            self.reset_to_defaults()

        adjust_orientation = data.get("adjustOrientation")
        if adjust_orientation is not None:
            if not isinstance(adjust_orientation, bool):
                raise ValueError("invalid orientation adjustment flag")
            self.adjust_orientation = adjust_orientation

        teleport = data.get("teleport")
        if teleport is not None:
            if not isinstance(teleport, bool):
                raise ValueError("invalid teleport flag")
            self.teleport = teleport

        tag = data.get("tag")
        if tag is not None:
            if not isinstance(tag, str) or not tag:
                raise ValueError("invalid reference frame tag")
            self.tag = tag


class GlobeAnchor:
    """Anchors a scene node to a precise position on the globe.

    The anchor owns a *globe transform*, a 4x4 affine matrix that maps the
    local space of the node to ECEF, together with a flag telling whether
    the globe transform is valid. While the flag is false, the transform of
    the scene node is the only source of truth. While it is true, the globe
    transform is authoritative and the transform of the node is derived from
    it whenever the reference frame, the parent placement or the origin of
    the world changes.

    Writes to the scene node made by the anchor itself are not treated as
    external edits, so pushing a derived transform to the node never
    updates the globe transform again.
    """

    _dataset: Optional[Dataset]
    _dataset_frame_token: Optional[SubscriptionToken]
    _dataset_token: Optional[SubscriptionToken]
    _frame_token: Optional[SubscriptionToken]
    _globe_transform: Mat4
    _node: Optional[SceneNodeLike]
    _node_token: Optional[SubscriptionToken]
    _reference_frame: Optional[ReferenceFrame]
    _registry: Optional[ReferenceFrameRegistry]
    _resolved_frame: Optional[ReferenceFrame]
    _settings: AnchorSettings

    last_diagnostic: Optional[AnchorError]
    """The recoverable error reported by the most recent operation that
    failed, if any.
    """

    def __init__(
        self,
        node: Optional[SceneNodeLike] = None,
        *,
        reference_frame: Optional[ReferenceFrame] = None,
        dataset: Optional[Dataset] = None,
        registry: Optional[ReferenceFrameRegistry] = None,
        settings: Optional[AnchorSettings] = None,
        orientation_policy: Optional[OrientationAdjustmentPolicy] = None,
        name: Optional[str] = None,
    ):
        """Constructor.

        Parameters:
            node: the scene node to anchor
            reference_frame: the reference frame to use. When both this and
                `dataset` are ``None``, the frame is looked up in the
                registry by the tag in the settings.
            dataset: the parent dataset of the anchor. Its placement is
                composed with the globe-to-world conversion and its reference
                frame takes precedence over `reference_frame`.
            registry: registry to look up reference frames by tag
            settings: the settings of the anchor; copied
            orientation_policy: policy to use when the orientation of the
                node needs to be adjusted after a move
            name: name of the anchor, used in log messages
        """
        self.name = name or getattr(node, "name", None) or "GlobeAnchor"

        self._node = node
        self._reference_frame = reference_frame
        self._dataset = dataset
        self._registry = registry
        self._settings = replace(settings) if settings is not None else AnchorSettings()
        self._orientation_policy = orientation_policy or OrientationAdjustmentPolicy()

        self._attached = False
        self._resolved_frame = None
        self._frame_token = None
        self._node_token = None
        self._dataset_token = None
        self._dataset_frame_token = None
        self._rebase_adapter = OriginRebaseAdapter(self)

        self._globe_transform = identity()
        self._is_valid = False
        self._updating_node = False

        self._ecef = ECEFCoordinate()
        self._cartographic = CartographicCoordinate()

        self.last_diagnostic = None

    ####################################################################
    # Properties

    @property
    def adjust_orientation(self) -> bool:
        """Whether the node is rotated to follow the curvature of the globe
        when the anchor is moved to a new globe position.
        """
        return self._settings.adjust_orientation

    @adjust_orientation.setter
    def adjust_orientation(self, value: bool) -> None:
        self._settings.adjust_orientation = bool(value)

    @property
    def dataset(self) -> Optional[Dataset]:
        """The parent dataset of the anchor."""
        return self._dataset

    @dataset.setter
    def dataset(self, value: Optional[Dataset]) -> None:
        if value is self._dataset:
            return

        self._unsubscribe_from_dataset()
        self._dataset = value
        self.invalidate_resolved_reference_frame()
        if self._attached:
            self._subscribe_to_dataset()
            self.resolve_reference_frame()

    @property
    def globe_transform(self) -> Mat4:
        """A copy of the globe transform of the anchor. Meaningless when the
        anchor is not valid.
        """
        return self._globe_transform.copy()

    @property
    def is_attached(self) -> bool:
        """Whether the anchor is attached to its scene node."""
        return self._attached

    @property
    def is_valid(self) -> bool:
        """Whether the globe transform of the anchor is authoritative."""
        return self._is_valid

    @property
    def node(self) -> Optional[SceneNodeLike]:
        """The scene node of the anchor."""
        return self._node

    @property
    def reference_frame(self) -> Optional[ReferenceFrame]:
        """The reference frame that the anchor references directly. Use
        `resolved_reference_frame` to get the frame that is actually used.
        """
        return self._reference_frame

    @reference_frame.setter
    def reference_frame(self, value: Optional[ReferenceFrame]) -> None:
        if value is self._reference_frame:
            return

        self._reference_frame = value
        self.invalidate_resolved_reference_frame()
        if self._attached:
            self.resolve_reference_frame()

    @property
    def resolved_reference_frame(self) -> Optional[ReferenceFrame]:
        """The reference frame that the anchor uses; ``None`` before it is
        resolved.
        """
        return self._resolved_frame

    @property
    def settings(self) -> AnchorSettings:
        """A copy of the settings of the anchor."""
        return replace(self._settings)

    @property
    def state(self) -> AnchorState:
        """The current state of the anchor."""
        if self._resolved_frame is None:
            return AnchorState.UNRESOLVED
        return AnchorState.VALID if self._is_valid else AnchorState.INVALID

    @property
    def tag(self) -> str:
        """The tag used to look up the reference frame in the registry."""
        return self._settings.tag

    @tag.setter
    def tag(self, value: str) -> None:
        if value == self._settings.tag:
            return

        self._settings.tag = value
        self.invalidate_resolved_reference_frame()
        if self._attached:
            self.resolve_reference_frame()

    @property
    def teleport(self) -> bool:
        """Whether the node jumps to the transforms pushed by the anchor."""
        return self._settings.teleport

    @teleport.setter
    def teleport(self, value: bool) -> None:
        self._settings.teleport = bool(value)

    ####################################################################
    # Cartographic mirror of the translation of the globe transform

    @property
    def ecef_x(self) -> float:
        """The ECEF X coordinate of the anchor, in metres."""
        return self._ecef.x

    @property
    def ecef_y(self) -> float:
        """The ECEF Y coordinate of the anchor, in metres."""
        return self._ecef.y

    @property
    def ecef_z(self) -> float:
        """The ECEF Z coordinate of the anchor, in metres."""
        return self._ecef.z

    @property
    def longitude(self) -> float:
        """The longitude of the anchor, in degrees."""
        return self._cartographic.lon

    @property
    def latitude(self) -> float:
        """The latitude of the anchor, in degrees."""
        return self._cartographic.lat

    @property
    def height(self) -> float:
        """The height of the anchor above the ellipsoid, in metres."""
        return self._cartographic.height

    ####################################################################
    # Lifecycle

    def attach(self) -> None:
        """Attaches the anchor to its scene node.

        Resolves the reference frame and subscribes to the changes of the
        frame, the scene node, the parent dataset and the world of the node.
        When the globe transform is valid (e.g. it was restored from a
        snapshot), the transform of the node is updated from it; otherwise
        the globe transform is derived from the current transform of the
        node.

        Raises:
            ConfigurationError: if no reference frame can be resolved
        """
        if self._attached:
            return

        if self._node is None:
            self._report(
                MissingSceneNodeError,
                f"Globe anchor {self.name} does not have a valid scene node",
            )
            return

        self.resolve_reference_frame()

        self._attached = True
        self._node_token = self._node.transform_changed.subscribe(
            self._on_node_transform_changed
        )
        self._subscribe_to_dataset()

        world = getattr(self._node, "world", None)
        if world is not None:
            self._rebase_adapter.attach(world)

        if not self._is_valid:
            self.on_local_transform_changed()

        log.debug(f"Globe anchor {self.name} attached in state {self.state.value}")

    def detach(self) -> None:
        """Detaches the anchor from its scene node and unsubscribes from all
        the objects that it listens to. The globe transform is kept so the
        anchor becomes valid again when it is re-attached.
        """
        if self._node is not None and self._node_token is not None:
            self._node.transform_changed.unsubscribe(self._node_token)
        self._node_token = None

        self._unsubscribe_from_dataset()
        self._rebase_adapter.detach()
        self.invalidate_resolved_reference_frame()
        self._attached = False

    def on_created(self) -> None:
        """Notifies the anchor that it was created as a copy of another
        anchor. The cached globe transform cannot be trusted in this case so
        it is invalidated.
        """
        self._is_valid = False

    def resolve_reference_frame(self, *, sync_node: bool = True) -> ReferenceFrame:
        """Returns the reference frame that the anchor should use, resolving
        and subscribing to it if needed.

        The frame of the parent dataset is used if there is one, then the
        directly referenced frame, then the frame registered in the registry
        with the tag of the anchor. The result is cached until
        `invalidate_resolved_reference_frame()` is called.

        Parameters:
            sync_node: whether to update the transform of the scene node from
                a valid globe transform when a frame is newly resolved. Moves
                turn this off because they push a new transform anyway.

        Raises:
            ConfigurationError: if no reference frame can be resolved
        """
        if self._resolved_frame is not None:
            return self._resolved_frame

        if self._dataset is not None and self._dataset.reference_frame is not None:
            frame = self._dataset.reference_frame
        elif self._reference_frame is not None:
            frame = self._reference_frame
        elif self._registry is not None:
            frame = self._registry.get_or_create(self._settings.tag)
        else:
            raise ConfigurationError(
                f"Globe anchor {self.name} has no reference frame and no registry "
                "to look one up"
            )

        self._resolved_frame = frame
        self._frame_token = frame.changed.subscribe(self.on_reference_frame_changed)
        log.debug(f"Globe anchor {self.name} resolved reference frame {frame.name}")

        if sync_node:
            self.on_reference_frame_changed()
        elif self._is_valid:
            self._update_mirror()
        return frame

    def invalidate_resolved_reference_frame(self) -> None:
        """Unsubscribes from the resolved reference frame and forgets it. The
        next call to `resolve_reference_frame()` resolves it again.
        """
        if self._resolved_frame is not None:
            self._resolved_frame.changed.unsubscribe(self._frame_token)
        self._resolved_frame = None
        self._frame_token = None

    ####################################################################
    # Queries

    def get_ecef(self) -> ECEFCoordinate:
        """Returns the position of the anchor in ECEF coordinates.

        Returns the zero vector and stores a `NotYetValidError` in
        `last_diagnostic` if the globe transform is not known yet.
        """
        self.last_diagnostic = None
        if not self._is_valid:
            self._report(
                NotYetValidError,
                f"Globe position of globe anchor {self.name} is invalid because "
                "the anchor is not yet attached",
            )
            return ECEFCoordinate()

        return ECEFCoordinate.from_array(self._globe_transform[:3, 3])

    get_globe_position = get_ecef

    def get_longitude_latitude_height(self) -> CartographicCoordinate:
        """Returns the longitude, latitude (in degrees) and height above the
        ellipsoid (in metres) of the anchor.

        Returns a zero coordinate and stores a diagnostic in `last_diagnostic`
        if the globe transform is not known yet or there is no reference frame
        to convert it with.
        """
        self.last_diagnostic = None
        if not self._is_valid:
            self._report(
                NotYetValidError,
                f"Globe position of globe anchor {self.name} is invalid because "
                "the anchor is not yet attached",
            )
            return CartographicCoordinate()

        if self._resolved_frame is None:
            self._report(
                NotYetResolvedError,
                f"Globe anchor {self.name} has no reference frame to compute its "
                "longitude, latitude and height with",
            )
            return CartographicCoordinate()

        return self._cartographic.copy()

    get_geodetic_position = get_longitude_latitude_height

    def describe(self) -> str:
        """Returns a human-readable, multi-line description of the state of
        the anchor for debugging purposes.
        """
        from .formatting import describe_anchor

        return describe_anchor(self)

    ####################################################################
    # Transitions

    def on_local_transform_changed(self, transform: Optional[Mat4] = None) -> None:
        """Notifies the anchor that the transform of its scene node was
        changed externally and updates the globe transform from it.

        Parameters:
            transform: the new transform of the node; ``None`` means to read
                it from the node
        """
        if self._updating_node:
            return

        if transform is None:
            if self._node is None:
                self._report(
                    MissingSceneNodeError,
                    f"Globe anchor {self.name} cannot update its globe transform "
                    "because it does not have a valid scene node",
                )
                return
            transform = self._node.local_transform
        else:
            transform = as_matrix(transform)

        if not is_invertible(transform):
            self._report(
                DegenerateTransformError,
                f"Globe anchor {self.name} ignored a local transform that cannot "
                "be inverted",
            )
            return

        if self._resolved_frame is None:
            self._report(
                NotYetResolvedError,
                f"Globe anchor {self.name} cannot update its globe transform "
                "because there is no resolved reference frame",
            )
            return

        globe_transform = self._local_to_globe(transform)
        if self._is_valid and np.array_equal(globe_transform, self._globe_transform):
            return

        self._globe_transform = globe_transform
        self._is_valid = True
        self._update_mirror()

    def on_reference_frame_changed(self, frame: Optional[ReferenceFrame] = None) -> None:
        """Notifies the anchor that its reference frame has changed. Updates
        the transform of the node from the existing globe transform if it is
        valid; does nothing otherwise.
        """
        if not self._is_valid:
            return

        self._update_mirror()
        self.update_local_transform_from_globe()

    def on_origin_rebase(self, offset) -> Optional[Mat4]:
        """Notifies the anchor that the origin of its world is being shifted
        by the given offset. Must be called before the world stores its new
        origin location; the new origin will be the old one minus the offset.

        Anchors that are attached receive origin shifts from their world
        automatically; this method is for hosts that report them directly.
        It does not subscribe to the world.

        Returns:
            the new local transform of the node, or ``None`` if it could not
            be computed
        """
        if self._rebase_adapter.world is not None:
            return self._rebase_adapter.apply_world_offset(offset)

        world = getattr(self._node, "world", None)
        if world is None:
            self._report(
                MissingSceneNodeError,
                f"Globe anchor {self.name} is not spawned in a world",
            )
            return None

        return self.update_local_transform_from_globe(
            world_origin=shifted_origin_location(world, offset)
        )

    def set_globe_position(self, position: Union[Vector3D, CartographicCoordinate]) -> None:
        """Moves the anchor to the given ECEF or geodetic position.

        Raises:
            ConfigurationError: if no reference frame can be resolved
        """
        if isinstance(position, CartographicCoordinate):
            self.move_to_longitude_latitude_height(position)
        elif isinstance(position, Vector3D):
            self.move_to_ecef(position)
        else:
            raise TypeError(f"expected an ECEF or geodetic position, got {position!r}")

    def move_to_ecef(self, position: Vector3D) -> None:
        """Moves the anchor to the given ECEF position, in metres.

        If orientation adjustment is enabled, the node is also rotated to
        account for the curvature of the globe.

        Raises:
            ConfigurationError: if no reference frame can be resolved
        """
        frame = self.resolve_reference_frame(sync_node=False)
        self._move_to(frame, ECEFCoordinate(position.x, position.y, position.z))

    def move_to_longitude_latitude_height(self, coord: CartographicCoordinate) -> None:
        """Moves the anchor to the given longitude, latitude (in degrees) and
        height above the ellipsoid (in metres).

        If orientation adjustment is enabled, the node is also rotated to
        account for the curvature of the globe.

        Raises:
            ConfigurationError: if no reference frame can be resolved
        """
        frame = self.resolve_reference_frame(sync_node=False)
        ecef = frame.transform_longitude_latitude_height_to_ecef(coord)
        self._move_to(frame, ecef)

    def update_local_transform_from_globe(self, world_origin=None) -> Optional[Mat4]:
        """Recomputes the transform of the scene node from the globe transform
        and pushes it to the node.

        Parameters:
            world_origin: the origin location of the world to use instead of
                the current one; used during origin rebasing when the world
                has not stored its new origin yet

        Returns:
            the new transform of the node, the current transform of the node
            if the globe transform is not valid, or ``None`` if there is no
            node
        """
        if self._node is None:
            self._report(
                MissingSceneNodeError,
                f"Globe anchor {self.name} does not have a valid scene node",
            )
            return None

        if not self._is_valid:
            self._report(
                NotYetValidError,
                f"Globe anchor {self.name} cannot update the transform of its scene "
                "node because the globe transform is not known",
            )
            return self._node.local_transform

        if self._resolved_frame is None:
            self._report(
                NotYetResolvedError,
                f"Globe anchor {self.name} cannot update the transform of its scene "
                "node because there is no resolved reference frame",
            )
            return self._node.local_transform

        transform = self._globe_to_local(self._globe_transform, world_origin)
        self._push_local_transform(transform)
        return transform

    ####################################################################
    # Persistence

    def serialize_state(self) -> AnchorSnapshot:
        """Returns the persistent state of the anchor."""
        return AnchorSnapshot(
            globe_transform=self._globe_transform.copy(), is_valid=self._is_valid
        )

    def deserialize_state(self, snapshot: Union[AnchorSnapshot, bytes, dict]) -> None:
        """Restores the persistent state of the anchor.

        Parameters:
            snapshot: the state to restore, either as a snapshot object or in
                its binary or JSON representation

        Raises:
            SnapshotFormatError: if the snapshot cannot be decoded
        """
        if isinstance(snapshot, (bytes, bytearray)):
            snapshot = AnchorSnapshot.decode(snapshot)
        elif isinstance(snapshot, dict):
            snapshot = AnchorSnapshot.from_json(snapshot)

        self._globe_transform = np.array(snapshot.globe_transform, dtype=np.float64)
        self._is_valid = bool(snapshot.is_valid)

        if self._is_valid:
            self._update_mirror()
            if self._resolved_frame is not None and self._node is not None:
                self.update_local_transform_from_globe()

    ####################################################################
    # Internal helpers

    def _current_world_origin(self) -> np.ndarray:
        world = getattr(self._node, "world", None)
        if world is not None:
            return world.origin_location
        elif self._resolved_frame is not None:
            return self._resolved_frame.world_origin
        else:
            return np.zeros(3)

    def _globe_to_local(self, globe_transform: Mat4, world_origin=None) -> Mat4:
        """Returns the local transform corresponding to the given globe
        transform: ``T(-origin) . P . E2A . globe`` where P is the placement
        of the parent dataset in the absolute world.
        """
        assert self._resolved_frame is not None
        frame = self._resolved_frame
        origin = self._current_world_origin() if world_origin is None else world_origin

        if self._dataset is None:
            return frame.get_globe_to_local_matrix(origin) @ globe_transform

        return (
            translation_matrix(-np.asarray(origin, dtype=np.float64))
            @ self._dataset.transform
            @ frame.ecef_to_absolute_world_matrix
            @ globe_transform
        )

    def _local_to_globe(self, local_transform: Mat4, world_origin=None) -> Mat4:
        """Returns the globe transform corresponding to the given local
        transform: ``A2E . P^-1 . T(origin) . local``, the exact inverse of
        `_globe_to_local()`.
        """
        assert self._resolved_frame is not None
        frame = self._resolved_frame
        origin = self._current_world_origin() if world_origin is None else world_origin

        if self._dataset is None:
            return frame.get_local_to_globe_matrix(origin) @ local_transform

        return (
            frame.absolute_world_to_ecef_matrix
            @ self._dataset.inverse_transform
            @ translation_matrix(origin)
            @ local_transform
        )

    def _move_to(self, frame: ReferenceFrame, ecef: ECEFCoordinate) -> None:
        if not self._is_valid:
            # We don't know the globe transform yet, so take its rotation and
            # scale from the current transform of the node
            if self._node is not None and is_invertible(self._node.local_transform):
                self._globe_transform = self._local_to_globe(self._node.local_transform)
            else:
                self._globe_transform = identity()

        new_transform = with_translation(self._globe_transform, ecef)
        if self._settings.adjust_orientation and self._is_valid:
            new_transform = self._adjust_orientation(frame, new_transform)

        self._globe_transform = new_transform
        self._is_valid = True
        self._update_mirror()

        if self._node is not None:
            self.update_local_transform_from_globe()

    def _adjust_orientation(self, frame: ReferenceFrame, new_transform: Mat4) -> Mat4:
        old_coord = frame.transform_ecef_to_longitude_latitude_height(
            ECEFCoordinate.from_array(self._globe_transform[:3, 3])
        )
        new_ecef = ECEFCoordinate.from_array(new_transform[:3, 3])
        new_coord = frame.transform_ecef_to_longitude_latitude_height(new_ecef)
        if old_coord is None or new_coord is None:
            log.warning(
                f"Cannot adjust the orientation of globe anchor {self.name} at the "
                "center of the ellipsoid"
            )
            return new_transform

        # The correction is computed in the world of the reference frame,
        # without the parent placement
        origin = self._current_world_origin()
        local_transform = frame.get_globe_to_local_matrix(origin) @ self._globe_transform
        adjusted = self._orientation_policy.adjust(
            frame, old_coord, new_coord, local_transform, origin
        )
        adjusted_globe = frame.get_local_to_globe_matrix(origin) @ adjusted
        return with_translation(adjusted_globe, new_ecef)

    def _on_dataset_reference_frame_changed(self, dataset: Dataset) -> None:
        self.invalidate_resolved_reference_frame()
        if self._attached:
            self.resolve_reference_frame()

    def _on_dataset_transform_changed(self, dataset: Dataset) -> None:
        if self._is_valid:
            self.update_local_transform_from_globe()

    def _on_node_transform_changed(self, node: SceneNodeLike, teleport: bool = False) -> None:
        if self._updating_node:
            return
        self.on_local_transform_changed(node.local_transform)

    def _push_local_transform(self, transform: Mat4) -> None:
        assert self._node is not None
        self._updating_node = True
        try:
            self._node.set_local_transform(transform, teleport=self._settings.teleport)
        finally:
            self._updating_node = False

    def _report(self, error_class: type[AnchorError], message: str) -> None:
        log.warning(message)
        self.last_diagnostic = error_class(message)

    def _subscribe_to_dataset(self) -> None:
        if self._dataset is not None and self._dataset_token is None:
            self._dataset_token = self._dataset.transform_changed.subscribe(
                self._on_dataset_transform_changed
            )
            self._dataset_frame_token = self._dataset.reference_frame_changed.subscribe(
                self._on_dataset_reference_frame_changed
            )

    def _unsubscribe_from_dataset(self) -> None:
        if self._dataset is not None and self._dataset_token is not None:
            self._dataset.transform_changed.unsubscribe(self._dataset_token)
            self._dataset.reference_frame_changed.unsubscribe(
                self._dataset_frame_token
            )
        self._dataset_token = None
        self._dataset_frame_token = None

    def _update_mirror(self) -> None:
        """Re-derives the ECEF and cartographic mirror of the translation of
        the globe transform.
        """
        self._ecef = ECEFCoordinate.from_array(self._globe_transform[:3, 3])
        if self._resolved_frame is None:
            return

        cartographic = self._resolved_frame.transform_ecef_to_longitude_latitude_height(
            self._ecef
        )
        if cartographic is None:
            log.warning(
                f"Globe anchor {self.name} is at the center of the ellipsoid; its "
                "longitude, latitude and height are undefined"
            )
            self._cartographic = CartographicCoordinate()
        else:
            self._cartographic = cartographic

    def __repr__(self) -> str:
        return "<{0.__class__.__name__} {0.name!r} ({1})>".format(
            self, self.state.value
        )
