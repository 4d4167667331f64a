"""Scene data model: meshes, materials, object instances and lights.

All values are immutable once built. Mesh arrays are flagged read-only and
every stage of the transform pipeline produces new values instead of
editing existing ones, so a loaded scene can be rendered any number of times.

Index convention:
    Mesh faces hold 0-based indices into the vertex and normal arrays.
    OBJ files are 1-based; the loader converts at the file boundary.

Example:
    >>> import numpy as np
    >>> from softraster.scene.model import Material, Mesh
    >>> tri = Mesh(
    ...     name="tri",
    ...     vertices=np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]]),
    ...     normals=np.array([[0.0, 0.0, 1.0]]),
    ...     faces=np.array([[0, 1, 2]]),
    ...     face_normals=np.array([[0, 0, 0]]),
    ... )
    >>> tri.face_count
    1
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

if TYPE_CHECKING:
    from softraster.camera.perspective import Camera

# Type alias for RGB triples in [0, 1]
RGB = tuple[float, float, float]


def _frozen_array(values: npt.ArrayLike, dtype: type, columns: int) -> npt.NDArray:
    arr = np.array(values, dtype=dtype).reshape(-1, columns)
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True, eq=False)
class Mesh:
    """A triangle mesh.

    Attributes:
        name: Tag identifying the mesh (usually its file path).
        vertices: (N, 3) float64 vertex positions.
        normals: (M, 3) float64 normals; empty when the mesh has none.
        faces: (F, 3) int64 vertex indices per triangle.
        face_normals: (F, 3) int64 normal indices per triangle corner, or an
            empty (0, 3) array when the mesh has no normals.
    """

    name: str
    vertices: npt.NDArray[np.float64]
    normals: npt.NDArray[np.float64] = field(default_factory=lambda: np.empty((0, 3)))
    faces: npt.NDArray[np.int64] = field(default_factory=lambda: np.empty((0, 3), dtype=np.int64))
    face_normals: npt.NDArray[np.int64] = field(
        default_factory=lambda: np.empty((0, 3), dtype=np.int64)
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "vertices", _frozen_array(self.vertices, np.float64, 3))
        object.__setattr__(self, "normals", _frozen_array(self.normals, np.float64, 3))
        object.__setattr__(self, "faces", _frozen_array(self.faces, np.int64, 3))
        object.__setattr__(self, "face_normals", _frozen_array(self.face_normals, np.int64, 3))

        if self.faces.size and (self.faces.min() < 0 or self.faces.max() >= len(self.vertices)):
            raise ValueError(f"Mesh '{self.name}': face vertex index out of range")
        if self.face_normals.size:
            if len(self.face_normals) != len(self.faces):
                raise ValueError(
                    f"Mesh '{self.name}': {len(self.face_normals)} normal index rows "
                    f"for {len(self.faces)} faces"
                )
            if self.face_normals.min() < 0 or self.face_normals.max() >= len(self.normals):
                raise ValueError(f"Mesh '{self.name}': face normal index out of range")

    @property
    def face_count(self) -> int:
        """Get the number of triangles."""
        return int(self.faces.shape[0])

    @property
    def has_normals(self) -> bool:
        """True when every face corner references a normal."""
        return self.face_count == 0 or len(self.face_normals) == self.face_count

    def with_geometry(
        self,
        vertices: npt.NDArray[np.float64],
        normals: npt.NDArray[np.float64] | None = None,
    ) -> Mesh:
        """Return a copy with new vertex (and optionally normal) arrays."""
        return Mesh(
            name=self.name,
            vertices=vertices,
            normals=self.normals if normals is None else normals,
            faces=self.faces,
            face_normals=self.face_normals,
        )


def _check_reflectance(name: str, color: RGB) -> None:
    if len(color) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(color)}")
    for i, component in enumerate(color):
        if component < 0.0 or component > 1.0:
            raise ValueError(f"{name} component {i} = {component} is outside [0, 1].")


@dataclass(frozen=True)
class Material:
    """Blinn-Phong surface reflectance.

    Attributes:
        ambient: Ambient reflectance (RGB in [0, 1]).
        diffuse: Diffuse reflectance (RGB in [0, 1]).
        specular: Specular reflectance (RGB in [0, 1]).
        shininess: Specular exponent. Values <= 0 are allowed; 0 makes the
            highlight uniform.
    """

    ambient: RGB = (0.0, 0.0, 0.0)
    diffuse: RGB = (0.0, 0.0, 0.0)
    specular: RGB = (0.0, 0.0, 0.0)
    shininess: float = 0.0

    def __post_init__(self) -> None:
        for name in ("ambient", "diffuse", "specular"):
            color = tuple(float(c) for c in getattr(self, name))
            _check_reflectance(name, color)
            object.__setattr__(self, name, color)
        object.__setattr__(self, "shininess", float(self.shininess))


@dataclass(frozen=True)
class ObjectInstance:
    """One placed copy of a mesh with its own material.

    Attributes:
        name: Instance name, e.g. "cube_copy1".
        mesh: The mesh, already moved into the instance's current space.
        material: Surface material.
    """

    name: str
    mesh: Mesh
    material: Material = field(default_factory=Material)


@dataclass(frozen=True)
class Light:
    """A point light with quadratic distance attenuation.

    Attributes:
        position: Light position in the current space.
        color: Light color (RGB).
        attenuation: Coefficient k in ``1 / (1 + k * d^2)``.
    """

    position: tuple[float, float, float]
    color: RGB = (1.0, 1.0, 1.0)
    attenuation: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", tuple(float(c) for c in self.position))
        object.__setattr__(self, "color", tuple(float(c) for c in self.color))
        object.__setattr__(self, "attenuation", float(self.attenuation))


@dataclass(frozen=True)
class Scene:
    """Everything the pipeline needs to render a frame.

    Attributes:
        camera: Camera matrices, computed once per scene.
        objects: Object instances in world space, in draw order.
        lights: Point lights in world space.
        ambient: Ambient light color multiplied with each material's ambient term.
    """

    camera: Camera
    objects: tuple[ObjectInstance, ...] = ()
    lights: tuple[Light, ...] = ()
    ambient: RGB = (1.0, 1.0, 1.0)

    def __post_init__(self) -> None:
        object.__setattr__(self, "objects", tuple(self.objects))
        object.__setattr__(self, "lights", tuple(self.lights))
