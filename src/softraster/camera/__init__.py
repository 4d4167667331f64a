"""Camera module for view and projection matrices.

This module provides the perspective camera used by the rasterizer:

Components:
    perspective: Camera parameters, frustum validation and matrix builder

Camera responsibilities:
    - Place the camera in the world (translation + axis-angle rotation)
    - Invert that placement to move geometry into view space
    - Project view space into normalized device coordinates

Matrices are computed once per scene with NumPy and shared by every
object instance and light.
"""

from .perspective import (
    Camera,
    CameraParams,
    build_camera,
    camera_info,
    make_projection,
)

__all__ = [
    "Camera",
    "CameraParams",
    "build_camera",
    "make_projection",
    "camera_info",
]
