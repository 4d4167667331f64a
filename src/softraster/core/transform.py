"""Coordinate-space transform pipeline.

Geometry moves through a fixed chain of spaces:

    world --(camera inverse extrinsic)--> view --(projection)--> NDC --> screen

Every function here is pure: it returns new Mesh / ObjectInstance / Light /
Scene values and never edits its inputs.

Normals only take part in the world -> view step (through the normal matrix);
the projection is not angle-preserving, so lighting is always evaluated with
view-space positions and normals, never NDC or screen values.

Example:
    >>> from softraster.core.transform import build_triangle_batch, world_to_view
    >>> view_scene = world_to_view(scene)
    >>> batch = build_triangle_batch(view_scene.objects[0], scene.camera, 640, 480)
    >>> batch.count  # front-facing, on-screen triangles
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

from softraster.core.math3d import round_half_away, transform_normals, transform_points
from softraster.scene.model import Light, Mesh, ObjectInstance, Scene

if TYPE_CHECKING:
    from softraster.camera.perspective import Camera

# Screen coordinates beyond this magnitude come from vertices at (or behind)
# the eye plane; triangles touching them are dropped.
MAX_SCREEN_COORD = float(1 << 20)


# =============================================================================
# Mesh Transforms
# =============================================================================


def apply_transform(
    mesh: Mesh,
    matrix: npt.NDArray[np.float64],
    with_normals: bool = True,
) -> Mesh:
    """Transform a mesh's vertices (and optionally its normals).

    Args:
        mesh: Source mesh; left unchanged.
        matrix: 4x4 homogeneous transform.
        with_normals: Also map normals through the normal matrix.

    Returns:
        A new Mesh with transformed geometry.
    """
    vertices = transform_points(matrix, mesh.vertices)
    normals = None
    if with_normals and len(mesh.normals):
        normals = transform_normals(matrix, mesh.normals)
    return mesh.with_geometry(vertices, normals)


def transform_light(light: Light, matrix: npt.NDArray[np.float64]) -> Light:
    """Move a light's position by a homogeneous transform."""
    position = transform_points(matrix, np.asarray(light.position))[0]
    return replace(light, position=tuple(float(c) for c in position))


# =============================================================================
# Space Changes
# =============================================================================


def instance_world_to_view(instance: ObjectInstance, camera: Camera) -> ObjectInstance:
    """Move an object instance from world space into view space."""
    return replace(instance, mesh=apply_transform(instance.mesh, camera.inverse_extrinsic))


def light_world_to_view(light: Light, camera: Camera) -> Light:
    """Move a light from world space into view space."""
    return transform_light(light, camera.inverse_extrinsic)


def world_to_view(scene: Scene) -> Scene:
    """Move every object instance and light of a scene into view space."""
    return replace(
        scene,
        objects=tuple(instance_world_to_view(obj, scene.camera) for obj in scene.objects),
        lights=tuple(light_world_to_view(light, scene.camera) for light in scene.lights),
    )


def instance_view_to_ndc(instance: ObjectInstance, camera: Camera) -> ObjectInstance:
    """Project an instance's vertices into NDC; normals are left as they are."""
    return replace(
        instance,
        mesh=apply_transform(instance.mesh, camera.projection, with_normals=False),
    )


def view_to_ndc(scene: Scene) -> Scene:
    """Project every object instance of a view-space scene into NDC."""
    return replace(
        scene,
        objects=tuple(instance_view_to_ndc(obj, scene.camera) for obj in scene.objects),
    )


def ndc_to_screen(points: npt.ArrayLike, width: int, height: int) -> npt.NDArray[np.float64]:
    """Map NDC x, y from [-1, 1] to pixel coordinates [0, w-1] x [0, h-1].

    Args:
        points: (..., 3) array of NDC points.
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        Array of the same shape with x, y in pixel units (y growing upward)
        and z still in NDC range for the depth test.
    """
    screen = np.array(points, dtype=np.float64)
    screen[..., 0] = (screen[..., 0] + 1.0) * 0.5 * (width - 1)
    screen[..., 1] = (screen[..., 1] + 1.0) * 0.5 * (height - 1)
    return screen


# =============================================================================
# Per-Triangle Gathering
# =============================================================================


def face_corners(mesh: Mesh) -> npt.NDArray[np.float64]:
    """Gather the three corner positions of every face as an (F, 3, 3) array."""
    return mesh.vertices[mesh.faces]


def face_corner_normals(mesh: Mesh) -> npt.NDArray[np.float64]:
    """Gather the three corner normals of every face as an (F, 3, 3) array.

    Raises:
        ValueError: If the mesh has no normals.
    """
    if not mesh.has_normals:
        raise ValueError(f"Mesh '{mesh.name}' has no normals")
    return mesh.normals[mesh.face_normals]


def backface_mask(corners: npt.NDArray[np.float64]) -> npt.NDArray[np.bool_]:
    """Flag back-facing triangles.

    A triangle (v1, v2, v3) is back-facing when the z component of
    (v3 - v2) x (v1 - v2) is negative, i.e. it winds clockwise as seen by
    the camera. Pass projected (NDC or screen) corners so the sign is the
    on-screen winding.

    Args:
        corners: (F, 3, 3) triangle corners.

    Returns:
        (F,) boolean array, True for back faces.
    """
    v1 = corners[:, 0]
    v2 = corners[:, 1]
    v3 = corners[:, 2]
    a = v3 - v2
    b = v1 - v2
    cross_z = a[:, 0] * b[:, 1] - a[:, 1] * b[:, 0]
    return cross_z < 0.0


@dataclass(frozen=True, eq=False)
class TriangleBatch:
    """Front-facing triangles of one instance, ready for rasterization.

    Attributes:
        face_indices: (T,) indices of the kept faces, in face order.
        positions: (T, 3, 3) view-space corner positions.
        normals: (T, 3, 3) view-space corner normals, or None without normals.
        screen_xy: (T, 3, 2) int32 rounded pixel coordinates.
        screen_z: (T, 3) float32 NDC depth of each corner.
    """

    face_indices: npt.NDArray[np.int64]
    positions: npt.NDArray[np.float64]
    normals: npt.NDArray[np.float64] | None
    screen_xy: npt.NDArray[np.int32]
    screen_z: npt.NDArray[np.float32]

    @property
    def count(self) -> int:
        """Get the number of triangles in the batch."""
        return int(self.face_indices.shape[0])


def project_to_screen(
    corners_view: npt.NDArray[np.float64],
    camera: Camera,
    width: int,
    height: int,
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64], npt.NDArray[np.bool_]]:
    """Project view-space triangle corners all the way to the screen.

    Args:
        corners_view: (F, 3, 3) view-space corners.
        camera: Camera providing the projection matrix.
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        Tuple of (corners_ndc, screen, drawable) where screen holds rounded
        x, y and NDC z, and drawable flags triangles whose screen
        coordinates are all finite and within MAX_SCREEN_COORD.
    """
    count = corners_view.shape[0]
    corners_ndc = transform_points(camera.projection, corners_view.reshape(-1, 3)).reshape(
        count, 3, 3
    )
    screen = ndc_to_screen(corners_ndc, width, height)
    with np.errstate(invalid="ignore"):
        screen[..., :2] = round_half_away(screen[..., :2])
        in_range = np.abs(screen[..., :2]) <= MAX_SCREEN_COORD
    drawable = (np.isfinite(screen).all(axis=2) & in_range.all(axis=2)).all(axis=1)
    return corners_ndc, screen, drawable


def build_triangle_batch(
    view_instance: ObjectInstance,
    camera: Camera,
    width: int,
    height: int,
    cull_backfaces: bool = True,
) -> TriangleBatch:
    """Collect the drawable triangles of a view-space instance.

    Projects every face to the screen, drops back faces (when culling) and
    faces with unusable screen coordinates, and keeps the remaining faces in
    mesh order.

    Args:
        view_instance: Object instance already in view space.
        camera: Camera providing the projection matrix.
        width: Image width in pixels.
        height: Image height in pixels.
        cull_backfaces: Drop back-facing triangles.

    Returns:
        The TriangleBatch of kept faces.
    """
    mesh = view_instance.mesh
    positions = face_corners(mesh)
    corners_ndc, screen, keep = project_to_screen(positions, camera, width, height)
    if cull_backfaces:
        with np.errstate(invalid="ignore"):
            keep &= ~backface_mask(corners_ndc)

    face_indices = np.nonzero(keep)[0]
    normals = face_corner_normals(mesh)[face_indices] if mesh.has_normals else None
    return TriangleBatch(
        face_indices=face_indices,
        positions=positions[face_indices],
        normals=normals,
        screen_xy=np.ascontiguousarray(screen[face_indices, :, :2], dtype=np.int32),
        screen_z=np.ascontiguousarray(screen[face_indices, :, 2], dtype=np.float32),
    )
