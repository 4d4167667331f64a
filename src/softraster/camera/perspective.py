"""Perspective camera model: extrinsic and projection matrices.

The camera is placed in the world by a translation and an axis-angle
rotation, and looks down its local -z axis. Two matrices are derived once
per scene and reused for every object and light:

- inverse_extrinsic: world -> view (camera at the origin, looking down -z)
- projection: view -> clip space; after the homogeneous divide, points with
  x, y, z in [-1, 1] lie inside the view frustum

The frustum is given off-axis by its near/far distances and the left, right,
top and bottom extents of the near plane.

Example:
    >>> from softraster.camera.perspective import CameraParams, build_camera
    >>> params = CameraParams(
    ...     position=(0.0, 0.0, 5.0),
    ...     near=1.0, far=10.0,
    ...     left=-0.5, right=0.5, top=0.5, bottom=-0.5,
    ... )
    >>> camera = build_camera(params)
    >>> camera.projection[3, 2]
    -1.0
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from softraster.core.math3d import make_rotation, make_translation

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class CameraParams:
    """Camera placement and frustum as read from a scene description.

    Attributes:
        position: Camera position in world space.
        axis: Rotation axis of the camera orientation.
        angle: Rotation angle in radians.
        near: Distance to the near clipping plane (must be non-zero).
        far: Distance to the far clipping plane (must differ from near).
        left: Left extent of the near plane.
        right: Right extent of the near plane (must differ from left).
        top: Top extent of the near plane.
        bottom: Bottom extent of the near plane (must differ from top).
    """

    position: tuple[float, float, float] = (0.0, 0.0, 0.0)
    axis: tuple[float, float, float] = (0.0, 1.0, 0.0)
    angle: float = 0.0
    near: float = 0.0
    far: float = 0.0
    left: float = 0.0
    right: float = 0.0
    top: float = 0.0
    bottom: float = 0.0

    def validate(self) -> None:
        """Check the frustum parameters.

        Raises:
            ValueError: If near is zero, or far/near, right/left or
                top/bottom coincide.
        """
        if self.near == 0.0:
            raise ValueError("Invalid frustum parameters: near must be non-zero")
        if self.far == self.near:
            raise ValueError(f"Invalid frustum parameters: far == near ({self.far})")
        if self.right == self.left:
            raise ValueError(f"Invalid frustum parameters: right == left ({self.right})")
        if self.top == self.bottom:
            raise ValueError(f"Invalid frustum parameters: top == bottom ({self.top})")


@dataclass(frozen=True, eq=False)
class Camera:
    """Camera matrices derived from CameraParams.

    Attributes:
        inverse_extrinsic: 4x4 world -> view transform.
        projection: 4x4 view -> clip transform.
    """

    inverse_extrinsic: npt.NDArray[np.float64]
    projection: npt.NDArray[np.float64]


# =============================================================================
# Matrix Construction
# =============================================================================


def make_projection(
    near: float,
    far: float,
    left: float,
    right: float,
    top: float,
    bottom: float,
) -> npt.NDArray[np.float64]:
    """Build the off-axis perspective projection matrix.

    Maps the view frustum to the [-1, 1] cube after the homogeneous divide;
    the near plane maps to z = -1 and the far plane to z = +1.
    """
    n, f, l, r, t, b = near, far, left, right, top, bottom
    return np.array(
        [
            [2.0 * n / (r - l), 0.0, (r + l) / (r - l), 0.0],
            [0.0, 2.0 * n / (t - b), (t + b) / (t - b), 0.0],
            [0.0, 0.0, -(f + n) / (f - n), -2.0 * f * n / (f - n)],
            [0.0, 0.0, -1.0, 0.0],
        ]
    )


def build_camera(params: CameraParams) -> Camera:
    """Derive the camera matrices from its parameters.

    The extrinsic transform places the camera: translation(position) applied
    after rotation(axis, angle). Its inverse maps world space into view space.

    Args:
        params: Camera placement and frustum.

    Returns:
        The Camera with inverse extrinsic and projection matrices.

    Raises:
        ValueError: If the frustum parameters are degenerate.
    """
    params.validate()

    extrinsic = make_translation(*params.position) @ make_rotation(params.axis, params.angle)
    inverse_extrinsic = np.linalg.inv(extrinsic)
    projection = make_projection(
        params.near, params.far, params.left, params.right, params.top, params.bottom
    )
    return Camera(inverse_extrinsic=inverse_extrinsic, projection=projection)


# =============================================================================
# Utility Functions
# =============================================================================


def camera_info(camera: Camera) -> dict[str, tuple[float, ...]]:
    """Get the camera position and viewing axes in world space for debugging.

    Returns:
        Dictionary with the world-space "position", "forward" (-z of the
        camera), "up" (+y) and "right" (+x) directions.
    """
    extrinsic = np.linalg.inv(camera.inverse_extrinsic)
    return {
        "position": tuple(float(c) for c in extrinsic[:3, 3]),
        "forward": tuple(float(c) for c in -extrinsic[:3, 2]),
        "up": tuple(float(c) for c in extrinsic[:3, 1]),
        "right": tuple(float(c) for c in extrinsic[:3, 0]),
    }
