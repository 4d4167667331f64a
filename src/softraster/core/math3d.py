"""Vector and matrix utilities for the transform pipeline.

All geometry on the Python side is kept in float64 NumPy arrays:
points and normals are (N, 3) arrays, transforms are 4x4 homogeneous
matrices that act on column vectors (``p' = M @ p``).

Example:
    >>> import numpy as np
    >>> from softraster.core.math3d import make_scaling, make_translation, transform_points
    >>> model = make_translation(1.0, 0.0, 0.0) @ make_scaling(2.0, 2.0, 2.0)
    >>> transform_points(model, np.array([[1.0, 1.0, 0.0]]))
    array([[3., 2., 0.]])
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

import numpy as np
import numpy.typing as npt

logger = logging.getLogger(__name__)

# Type alias for 3-component inputs (tuples or arrays)
Vec3Like = Sequence[float] | npt.NDArray[np.floating]

# Determinant magnitude below which a linear map is treated as singular
SINGULAR_EPSILON = 1e-15


# =============================================================================
# Matrix Construction
# =============================================================================


def make_translation(tx: float, ty: float, tz: float) -> npt.NDArray[np.float64]:
    """Build a 4x4 translation matrix."""
    matrix = np.eye(4)
    matrix[:3, 3] = (tx, ty, tz)
    return matrix


def make_scaling(sx: float, sy: float, sz: float) -> npt.NDArray[np.float64]:
    """Build a 4x4 (possibly non-uniform) scaling matrix."""
    return np.diag([sx, sy, sz, 1.0])


def make_rotation(axis: Vec3Like, angle: float) -> npt.NDArray[np.float64]:
    """Build a 4x4 rotation matrix from an axis-angle pair.

    Uses Rodrigues' formula ``R = I + sin(a) K + (1 - cos(a)) K^2`` where K is
    the cross-product matrix of the unit axis.

    Args:
        axis: Rotation axis; it does not need to be normalized.
        angle: Rotation angle in radians (counter-clockwise about the axis).

    Returns:
        The homogeneous rotation matrix. A zero-length axis yields the identity.
    """
    axis_vec = np.asarray(axis, dtype=np.float64)
    norm = float(np.linalg.norm(axis_vec))
    if norm == 0.0:
        logger.debug("Zero-length rotation axis; using identity rotation")
        return np.eye(4)

    x, y, z = axis_vec / norm
    k = np.array(
        [
            [0.0, -z, y],
            [z, 0.0, -x],
            [-y, x, 0.0],
        ]
    )
    rotation = np.eye(4)
    rotation[:3, :3] = np.eye(3) + math.sin(angle) * k + (1.0 - math.cos(angle)) * (k @ k)
    return rotation


# =============================================================================
# Applying Transforms
# =============================================================================


def transform_points(
    matrix: npt.NDArray[np.float64],
    points: npt.ArrayLike,
) -> npt.NDArray[np.float64]:
    """Apply a homogeneous transform to points, followed by the divide by w.

    Args:
        matrix: 4x4 transform.
        points: (N, 3) array of points.

    Returns:
        (N, 3) transformed points. Points that land on w = 0 come back as
        non-finite values; later stages discard them.
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    homogeneous = np.hstack([pts, np.ones((pts.shape[0], 1))])
    transformed = homogeneous @ matrix.T
    with np.errstate(divide="ignore", invalid="ignore"):
        return transformed[:, :3] / transformed[:, 3:4]


def normal_matrix(matrix: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """Compute the matrix that maps normals under ``matrix``.

    This is the inverse-transpose of the upper-left 3x3 block, which keeps
    normals perpendicular to surfaces under non-uniform scaling.

    Returns:
        The 3x3 normal matrix, or the identity when the block is singular.
    """
    linear = matrix[:3, :3]
    det = float(np.linalg.det(linear))
    if abs(det) < SINGULAR_EPSILON:
        logger.warning("Singular transform for normals (det=%g); using identity", det)
        return np.eye(3)
    return np.linalg.inv(linear).T


def normalize_rows(vectors: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Normalize each row of an (N, 3) array; zero rows stay zero."""
    vecs = np.asarray(vectors, dtype=np.float64).reshape(-1, 3)
    lengths = np.linalg.norm(vecs, axis=1, keepdims=True)
    safe = np.where(lengths > 0.0, lengths, 1.0)
    return vecs / safe


def transform_normals(
    matrix: npt.NDArray[np.float64],
    normals: npt.ArrayLike,
) -> npt.NDArray[np.float64]:
    """Transform normals by the normal matrix of ``matrix`` and renormalize."""
    nrm = np.asarray(normals, dtype=np.float64).reshape(-1, 3)
    return normalize_rows(nrm @ normal_matrix(matrix).T)


def round_half_away(values: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Round to the nearest integer with halves away from zero (C ``lround``).

    ``np.rint`` rounds halves to even, which would shift pixel centers.
    """
    arr = np.asarray(values, dtype=np.float64)
    return np.sign(arr) * np.floor(np.abs(arr) + 0.5)
