"""Datasets that carry their own placement in the world and can act as the
parent of globe anchors.
"""

from __future__ import annotations

from typing import Optional, TYPE_CHECKING

from .events import Signal
from .matrices import Mat4, affine_inverse, as_matrix, identity

if TYPE_CHECKING:
    from .frames import ReferenceFrame

__all__ = ("Dataset",)


class Dataset:
    """A containing dataset (e.g. a tileset) with its own placement.

    The placement is a linear transform in the *absolute* world coordinate
    system that is composed on top of the globe-to-world conversion of every
    anchor parented to the dataset. Anchors re-read it on every
    recomputation. A dataset may also name the reference frame that anchors
    parented to it should use.
    """

    reference_frame_changed: Signal
    """Signal that is emitted with the dataset when its reference frame is
    replaced.
    """

    transform_changed: Signal
    """Signal that is emitted with the dataset when its placement changed."""

    _reference_frame: Optional[ReferenceFrame]
    _transform: Mat4

    def __init__(
        self,
        name: Optional[str] = None,
        *,
        reference_frame: Optional[ReferenceFrame] = None,
        transform: Optional[Mat4] = None,
    ):
        """Constructor.

        Parameters:
            name: name of the dataset
            reference_frame: the reference frame of the dataset, if any
            transform: the placement of the dataset; ``None`` means identity
        """
        self.name = name or "Dataset"
        self.reference_frame_changed = Signal(f"{self.name}.reference_frame_changed")
        self.transform_changed = Signal(f"{self.name}.transform_changed")
        self._reference_frame = reference_frame
        self._transform = as_matrix(transform) if transform is not None else identity()
        self._inverse = affine_inverse(self._transform)

    @property
    def reference_frame(self) -> Optional[ReferenceFrame]:
        """The reference frame that anchors parented to the dataset use."""
        return self._reference_frame

    @reference_frame.setter
    def reference_frame(self, value: Optional[ReferenceFrame]) -> None:
        if value is self._reference_frame:
            return

        self._reference_frame = value
        self.reference_frame_changed.emit(self)

    @property
    def transform(self) -> Mat4:
        """A copy of the placement of the dataset."""
        return self._transform.copy()

    @property
    def inverse_transform(self) -> Mat4:
        """A copy of the inverse of the placement of the dataset."""
        return self._inverse.copy()

    def set_transform(self, transform: Mat4) -> None:
        """Sets the placement of the dataset and notifies the subscribers of
        `transform_changed`.

        Raises:
            ValueError: if the transform is not invertible
        """
        transform = as_matrix(transform)
        inverse = affine_inverse(transform)
        self._transform, self._inverse = transform, inverse
        self.transform_changed.emit(self)

    def __repr__(self) -> str:
        return "<{0.__class__.__name__} {0.name!r}>".format(self)
