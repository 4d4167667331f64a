"""Software (CPU) 3D rasterization pipeline built on Taichi kernels.

This package renders a scene of triangle meshes into an RGB image without a
GPU graphics API, with support for:
- World -> view -> NDC -> screen coordinate transforms
- Back-face culling and barycentric triangle fill with a depth buffer
- Flat, Gouraud and Phong (per-pixel) Blinn-Phong shading
- Anti-aliased wireframe line drawing

Subpackages:
    core: Math primitives, image buffers, transform pipeline, rasterizer,
        lighting and the per-frame shading strategies
    camera: Perspective camera matrices
    scene: Scene data model, scene/OBJ file loading and built-in scenes
    output: PPM and PNG image export
"""

__version__ = "0.1.0"
