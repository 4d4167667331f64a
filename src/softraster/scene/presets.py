"""Built-in scenes.

Small scenes that need no files on disk, used by the examples and tests:

- Unit square: a 1x1 square in the z = 0 plane facing a camera at (0, 0, 5)
  with a [-0.5, 0.5] near-plane window, lit by a white light at the camera.
  At 4x4 pixels it covers exactly the four center pixels.
- Cube: a unit cube with per-face normals, slightly rotated so three faces
  are visible and three are culled.

Example:
    >>> from softraster.scene.presets import create_unit_square_scene
    >>> scene = create_unit_square_scene()
    >>> scene.objects[0].name
    'square_copy1'
"""

from dataclasses import dataclass

import numpy as np

from softraster.camera.perspective import CameraParams, build_camera
from softraster.core.math3d import make_rotation
from softraster.core.transform import apply_transform
from softraster.scene.model import Light, Material, Mesh, ObjectInstance, Scene

# =============================================================================
# Preset Parameters
# =============================================================================


@dataclass
class PresetParams:
    """Shared camera, light and material settings of the built-in scenes.

    Attributes:
        camera_distance: Camera distance from the origin along +z.
        half_extent: Half width/height of the near-plane window.
        light_color: RGB color of the light at the camera.
        attenuation: Light attenuation coefficient.
        ambient: Material ambient reflectance.
        diffuse: Material diffuse reflectance.
        specular: Material specular reflectance.
        shininess: Material specular exponent.
    """

    camera_distance: float = 5.0
    half_extent: float = 0.5
    light_color: tuple[float, float, float] = (1.0, 1.0, 1.0)
    attenuation: float = 0.0
    ambient: tuple[float, float, float] = (0.2, 0.2, 0.2)
    diffuse: tuple[float, float, float] = (0.8, 0.8, 0.8)
    specular: tuple[float, float, float] = (0.2, 0.2, 0.2)
    shininess: float = 10.0


def _camera_and_light(params: PresetParams):
    camera = build_camera(
        CameraParams(
            position=(0.0, 0.0, params.camera_distance),
            near=1.0,
            far=10.0,
            left=-params.half_extent,
            right=params.half_extent,
            top=params.half_extent,
            bottom=-params.half_extent,
        )
    )
    light = Light(
        position=(0.0, 0.0, params.camera_distance),
        color=params.light_color,
        attenuation=params.attenuation,
    )
    return camera, light


def _material(params: PresetParams) -> Material:
    return Material(
        ambient=params.ambient,
        diffuse=params.diffuse,
        specular=params.specular,
        shininess=params.shininess,
    )


# =============================================================================
# Meshes
# =============================================================================


def create_square_mesh() -> Mesh:
    """Create a 1x1 square in the z = 0 plane, facing +z."""
    return Mesh(
        name="square",
        vertices=np.array(
            [[-0.5, -0.5, 0.0], [0.5, -0.5, 0.0], [0.5, 0.5, 0.0], [-0.5, 0.5, 0.0]]
        ),
        normals=np.array([[0.0, 0.0, 1.0]]),
        faces=np.array([[0, 1, 2], [0, 2, 3]]),
        face_normals=np.zeros((2, 3), dtype=np.int64),
    )


def create_cube_mesh() -> Mesh:
    """Create a unit cube centered at the origin with one normal per side.

    Every side is two counter-clockwise triangles when seen from outside.
    """
    # Corners of each side, counter-clockwise from outside, with its normal
    sides = [
        ([[-1, -1, 1], [1, -1, 1], [1, 1, 1], [-1, 1, 1]], [0, 0, 1]),
        ([[1, -1, -1], [-1, -1, -1], [-1, 1, -1], [1, 1, -1]], [0, 0, -1]),
        ([[1, -1, 1], [1, -1, -1], [1, 1, -1], [1, 1, 1]], [1, 0, 0]),
        ([[-1, -1, -1], [-1, -1, 1], [-1, 1, 1], [-1, 1, -1]], [-1, 0, 0]),
        ([[-1, 1, 1], [1, 1, 1], [1, 1, -1], [-1, 1, -1]], [0, 1, 0]),
        ([[-1, -1, -1], [1, -1, -1], [1, -1, 1], [-1, -1, 1]], [0, -1, 0]),
    ]
    vertices = []
    normals = []
    faces = []
    face_normals = []
    for side, (corners, normal) in enumerate(sides):
        base = len(vertices)
        vertices.extend(corners)
        normals.append(normal)
        faces.extend([[base, base + 1, base + 2], [base, base + 2, base + 3]])
        face_normals.extend([[side] * 3, [side] * 3])

    return Mesh(
        name="cube",
        vertices=np.array(vertices, dtype=np.float64) * 0.5,
        normals=np.array(normals, dtype=np.float64),
        faces=np.array(faces),
        face_normals=np.array(face_normals),
    )


# =============================================================================
# Scenes
# =============================================================================


def create_unit_square_scene(params: PresetParams | None = None) -> Scene:
    """Create the unit-square scene.

    Args:
        params: Optional camera, light and material settings.

    Returns:
        Scene with one square instance and one light at the camera.
    """
    if params is None:
        params = PresetParams()
    camera, light = _camera_and_light(params)
    square = ObjectInstance("square_copy1", create_square_mesh(), _material(params))
    return Scene(camera=camera, objects=(square,), lights=(light,))


def create_cube_scene(params: PresetParams | None = None, angle: float = 0.5) -> Scene:
    """Create a scene with a unit cube turned about the (1, 1, 0) axis.

    Args:
        params: Optional camera, light and material settings; the default
            window is narrowed so the cube fills the view.
        angle: Rotation angle in radians.

    Returns:
        Scene with one cube instance and one light at the camera.
    """
    if params is None:
        params = PresetParams(half_extent=0.25)
    camera, light = _camera_and_light(params)
    mesh = apply_transform(create_cube_mesh(), make_rotation((1.0, 1.0, 0.0), angle))
    cube = ObjectInstance("cube_copy1", mesh, _material(params))
    return Scene(camera=camera, objects=(cube,), lights=(light,))
