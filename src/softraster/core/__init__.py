"""Core rendering module.

This module contains the building blocks of the rasterization pipeline:

Components:
    math3d: Homogeneous 4x4 transform builders and point/normal mapping
    image: Color and depth buffers of a render target
    transform: world -> view -> NDC -> screen space changes and culling
    rasterizer: Taichi triangle fill, depth test and anti-aliased lines
    shading: Blinn-Phong lighting for point lights
    pipeline: Per-frame shading strategies and the render entry point

Geometry is prepared with NumPy on the host; scan conversion and lighting
run in Taichi kernels that write straight into an Image's buffers.
"""

from .image import Image
from .math3d import (
    make_rotation,
    make_scaling,
    make_translation,
    normal_matrix,
    transform_normals,
    transform_points,
)

# Note: transform, rasterizer, shading and pipeline are NOT imported here to
# avoid circular imports with softraster.scene.
# Import directly from softraster.core.pipeline when needed:
#   from softraster.core.pipeline import render_scene

__all__ = [
    "Image",
    "make_translation",
    "make_scaling",
    "make_rotation",
    "normal_matrix",
    "transform_points",
    "transform_normals",
]
