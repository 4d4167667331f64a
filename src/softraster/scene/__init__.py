"""Scene module for scene data and scene loading.

This module handles what gets rendered:

Components:
    model: Mesh, Material, ObjectInstance, Light and Scene values
    loader: Scene-file and OBJ mesh parsing
    presets: Built-in unit-square and cube scenes

Scene values are immutable; every transform stage returns new values, so a
loaded scene can be rendered repeatedly in any shading mode.
"""

from .model import RGB, Light, Material, Mesh, ObjectInstance, Scene

# Note: loader and presets are NOT imported here to avoid circular imports
# (both depend on softraster.core.transform, which depends on this package).
# Import directly when needed:
#   from softraster.scene.loader import load_scene
#   from softraster.scene.presets import create_unit_square_scene

__all__ = [
    "RGB",
    "Mesh",
    "Material",
    "ObjectInstance",
    "Light",
    "Scene",
]
