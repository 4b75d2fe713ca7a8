"""Helper functions for working with 4x4 affine transformation matrices.

Matrices are represented as NumPy arrays of shape ``(4, 4)`` with
``float64`` entries. They act on column vectors, so the translation of an
affine matrix lives in its last column and the last row is always
``[0, 0, 0, 1]``.

When a matrix has to be persisted, it is flattened into 16 doubles in
*column-major* order, i.e. ``m[0, 0], m[1, 0], m[2, 0], m[3, 0], m[0, 1],
...``. Use `matrix_to_sequence()` and `matrix_from_sequence()` for this; they
are the only functions that know about the layout.
"""

from __future__ import annotations

from typing import Iterable, Sequence, Union

import numpy as np

from .vectors import Vector3D

__all__ = (
    "Mat4",
    "affine_inverse",
    "as_matrix",
    "get_translation",
    "identity",
    "is_affine",
    "is_invertible",
    "matrix_from_sequence",
    "matrix_to_sequence",
    "transform_point",
    "translation_matrix",
    "with_translation",
)

Mat4 = np.ndarray
"""Type alias for 4x4 affine transformation matrices."""

VectorLike = Union[Vector3D, Sequence[float], np.ndarray]

#: Smallest absolute determinant of the upper-left 3x3 block that we still
#: consider invertible
_MIN_DETERMINANT = 1e-300


def _as_vector(value: VectorLike) -> np.ndarray:
    if isinstance(value, Vector3D):
        return value.as_array()
    result = np.asarray(value, dtype=np.float64)
    if result.shape != (3,):
        raise ValueError(f"expected a 3D vector, got shape {result.shape!r}")
    return result


def identity() -> Mat4:
    """Returns a new 4x4 identity matrix."""
    return np.eye(4, dtype=np.float64)


def translation_matrix(offset: VectorLike) -> Mat4:
    """Returns a matrix that translates points by the given offset."""
    result = identity()
    result[:3, 3] = _as_vector(offset)
    return result


def as_matrix(value) -> Mat4:
    """Converts the given value into a new 4x4 matrix of doubles.

    Parameters:
        value: a 4x4 array-like object

    Raises:
        ValueError: if the value does not have the right shape or it is not
            an affine transformation
    """
    result = np.array(value, dtype=np.float64)
    if result.shape != (4, 4):
        raise ValueError(f"expected a 4x4 matrix, got shape {result.shape!r}")
    if not is_affine(result):
        raise ValueError("matrix is not an affine transformation")
    return result


def is_affine(matrix: Mat4) -> bool:
    """Returns whether the given matrix has ``[0, 0, 0, 1]`` as its last row
    and all its entries are finite.
    """
    return bool(
        np.all(np.isfinite(matrix))
        and np.array_equal(matrix[3], [0.0, 0.0, 0.0, 1.0])
    )


def is_invertible(matrix: Mat4) -> bool:
    """Returns whether the upper-left 3x3 block of the given matrix is
    invertible.
    """
    return bool(abs(np.linalg.det(matrix[:3, :3])) >= _MIN_DETERMINANT)


def affine_inverse(matrix: Mat4) -> Mat4:
    """Returns the inverse of an affine transformation matrix.

    Raises:
        ValueError: if the upper-left 3x3 block of the matrix is singular
    """
    if not is_invertible(matrix):
        raise ValueError("matrix is not invertible")

    inverse_linear = np.linalg.inv(matrix[:3, :3])
    result = identity()
    result[:3, :3] = inverse_linear
    result[:3, 3] = -inverse_linear @ matrix[:3, 3]
    return result


def get_translation(matrix: Mat4) -> np.ndarray:
    """Returns a copy of the translation column of the given matrix."""
    return np.array(matrix[:3, 3], dtype=np.float64)


def with_translation(matrix: Mat4, translation: VectorLike) -> Mat4:
    """Returns a copy of the given matrix with its translation replaced."""
    result = np.array(matrix, dtype=np.float64)
    result[:3, 3] = _as_vector(translation)
    result[3] = (0.0, 0.0, 0.0, 1.0)
    return result


def transform_point(matrix: Mat4, point: VectorLike) -> np.ndarray:
    """Applies the given affine transformation to a point."""
    return matrix[:3, :3] @ _as_vector(point) + matrix[:3, 3]


def matrix_to_sequence(matrix: Mat4) -> list[float]:
    """Flattens the given matrix into 16 doubles in column-major order."""
    return [float(value) for value in np.asarray(matrix).flatten(order="F")]


def matrix_from_sequence(values: Iterable[float]) -> Mat4:
    """Creates a matrix from 16 doubles given in column-major order.

    Raises:
        ValueError: if the number of values is not 16
    """
    items = [float(value) for value in values]
    if len(items) != 16:
        raise ValueError(f"expected 16 values, got {len(items)}")
    return np.array(items, dtype=np.float64).reshape((4, 4), order="F")
