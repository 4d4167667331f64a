"""Scene-file and OBJ mesh loading.

A scene file has three sections:

    camera:
    position 0 0 5
    orientation 0 1 0 0
    near 1
    far 10
    left -0.5
    right 0.5
    top 0.5
    bottom -0.5

    light -2 2 2 , 1 1 1 , 0.2

    objects:
    cube cube.obj

    cube
    ambient 0.2 0.2 0.2
    diffuse 0.8 0.1 0.1
    specular 0.3 0.3 0.3
    shininess 10
    s 1 1 1
    r 0 1 0 0.5
    t 0.5 0 0

The mapping lines right after ``objects:`` (up to the first blank line) name
OBJ files, resolved relative to the scene file. Each following block places
one copy of a named mesh; its transform lines compose by left-multiplication,
so they apply in the order written. Instances are named ``<name>_copy<n>``.

OBJ meshes use ``v``, ``vn`` and ``f`` records with 1-based indices; faces are
``a``, ``a//n`` or ``a/t/n`` and polygons are fan-triangulated.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

import numpy as np
import numpy.typing as npt

from softraster.camera.perspective import CameraParams, build_camera
from softraster.core.math3d import make_rotation, make_scaling, make_translation
from softraster.core.transform import apply_transform
from softraster.scene.model import Light, Material, Mesh, ObjectInstance, Scene

logger = logging.getLogger(__name__)

_MATERIAL_KEYS = ("ambient", "diffuse", "specular", "shininess")
_TRANSFORM_KINDS = ("t", "s", "r")


def _content_lines(lines: Iterable[str], start: int = 1) -> Iterable[tuple[int, str]]:
    """Yield (line number, stripped text) pairs, blank lines as empty strings."""
    for lineno, raw in enumerate(lines, start=start):
        text = raw.strip()
        if text.startswith("#"):
            continue
        yield lineno, text


def _floats(values: list[str], count: int, what: str, lineno: int) -> list[float]:
    if len(values) != count:
        raise ValueError(f"Line {lineno}: {what} expects {count} numbers, got {len(values)}")
    try:
        return [float(v) for v in values]
    except ValueError:
        raise ValueError(f"Line {lineno}: invalid number in {what}: {' '.join(values)}") from None


# =============================================================================
# OBJ Meshes
# =============================================================================


def _parse_face_corner(token: str, lineno: int) -> tuple[int, int | None]:
    parts = token.split("/")
    if len(parts) not in (1, 3) or not parts[0]:
        raise ValueError(f"Line {lineno}: invalid face corner '{token}'")
    try:
        vertex = int(parts[0])
        normal = int(parts[2]) if len(parts) == 3 and parts[2] else None
    except ValueError:
        raise ValueError(f"Line {lineno}: invalid face corner '{token}'") from None
    return vertex, normal


def parse_mesh(lines: Iterable[str], name: str = "mesh") -> Mesh:
    """Parse OBJ text into a Mesh.

    Args:
        lines: OBJ file lines.
        name: Tag stored on the mesh.

    Returns:
        The Mesh with 0-based indices.

    Raises:
        ValueError: On unknown records, malformed numbers, out-of-range
            indices, or faces mixing corners with and without normals.
    """
    vertices: list[list[float]] = []
    normals: list[list[float]] = []
    faces: list[list[int]] = []
    face_normals: list[list[int]] = []
    with_normals: bool | None = None

    for lineno, text in _content_lines(lines):
        if not text:
            continue
        record, *values = text.split()
        if record == "v":
            vertices.append(_floats(values, 3, "vertex", lineno))
        elif record == "vn":
            normals.append(_floats(values, 3, "normal", lineno))
        elif record == "f":
            if len(values) < 3:
                raise ValueError(f"Line {lineno}: face needs at least 3 corners")
            corners = [_parse_face_corner(token, lineno) for token in values]
            has_normals = all(n is not None for _, n in corners)
            if not has_normals and any(n is not None for _, n in corners):
                raise ValueError(f"Line {lineno}: face mixes corners with and without normals")
            if with_normals is None:
                with_normals = has_normals
            elif with_normals != has_normals:
                raise ValueError(
                    f"Line {lineno}: faces must all carry normals or none may"
                )

            for v, n in corners:
                if not 1 <= v <= len(vertices):
                    raise ValueError(f"Line {lineno}: vertex index {v} out of range")
                if n is not None and not 1 <= n <= len(normals):
                    raise ValueError(f"Line {lineno}: normal index {n} out of range")

            # Fan triangulation around the first corner
            for k in range(1, len(corners) - 1):
                tri = (corners[0], corners[k], corners[k + 1])
                faces.append([v - 1 for v, _ in tri])
                if has_normals:
                    face_normals.append([n - 1 for _, n in tri])
        else:
            raise ValueError(
                f"Line {lineno}: unknown record '{record}' (expected 'v', 'vn' or 'f')"
            )

    logger.debug(
        "Parsed mesh %s: %d vertices, %d normals, %d faces",
        name,
        len(vertices),
        len(normals),
        len(faces),
    )
    return Mesh(
        name=name,
        vertices=np.array(vertices, dtype=np.float64).reshape(-1, 3),
        normals=np.array(normals, dtype=np.float64).reshape(-1, 3),
        faces=np.array(faces, dtype=np.int64).reshape(-1, 3),
        face_normals=np.array(face_normals, dtype=np.int64).reshape(-1, 3),
    )


def load_mesh(path: str | Path) -> Mesh:
    """Load an OBJ file.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If its contents are malformed.
    """
    path = Path(path)
    with path.open() as f:
        try:
            return parse_mesh(f, name=str(path))
        except ValueError as e:
            raise ValueError(f"{path}: {e}") from None


# =============================================================================
# Transforms
# =============================================================================


def parse_transform(lines: Iterable[tuple[int, str]]) -> npt.NDArray[np.float64]:
    """Compose transform lines into one matrix.

    Each line is ``t tx ty tz``, ``s sx sy sz`` or ``r ax ay az angle``;
    every new transform is left-multiplied onto the running matrix.

    Args:
        lines: (line number, text) pairs.

    Returns:
        The composed 4x4 matrix (identity for no lines).

    Raises:
        ValueError: If a transform has the wrong number of values.
    """
    matrix = np.eye(4)
    for lineno, text in lines:
        kind, *values = text.split()
        if kind == "t":
            step = make_translation(*_floats(values, 3, "translation", lineno))
        elif kind == "s":
            step = make_scaling(*_floats(values, 3, "scale", lineno))
        elif kind == "r":
            ax, ay, az, angle = _floats(values, 4, "rotation", lineno)
            step = make_rotation((ax, ay, az), angle)
        else:
            logger.warning("Line %d: unknown transform type '%s', skipped", lineno, kind)
            continue
        matrix = step @ matrix
    return matrix


# =============================================================================
# Scene Files
# =============================================================================


class _InstanceBlock:
    """Material and transform lines collected for one instance."""

    def __init__(self, name: str, lineno: int):
        self.name = name
        self.lineno = lineno
        self.material: dict[str, object] = {}
        self.transforms: list[tuple[int, str]] = []


def _parse_camera(
    numbered: list[tuple[int, str]],
) -> tuple[CameraParams, list[Light], int]:
    """Read camera keys and lights; return the index just past ``objects:``."""
    params = CameraParams()
    lights: list[Light] = []
    in_lights = False
    index = 0

    while index < len(numbered):
        lineno, text = numbered[index]
        index += 1
        if not text:
            continue
        if text == "objects:":
            return params, lights, index

        key, *values = text.split()
        if key == "light":
            in_lights = True
            groups = " ".join(values).split(",")
            if len(groups) != 3:
                raise ValueError(f"Line {lineno}: light expects 'x y z , r g b , atten'")
            position = _floats(groups[0].split(), 3, "light position", lineno)
            color = _floats(groups[1].split(), 3, "light color", lineno)
            (attenuation,) = _floats(groups[2].split(), 1, "light attenuation", lineno)
            lights.append(Light(tuple(position), tuple(color), attenuation))
        elif in_lights:
            logger.warning("Line %d: unexpected key '%s' in lights section, skipped", lineno, key)
        elif key == "position":
            params.position = tuple(_floats(values, 3, "position", lineno))
        elif key == "orientation":
            ax, ay, az, angle = _floats(values, 4, "orientation", lineno)
            params.axis = (ax, ay, az)
            params.angle = angle
        elif key in ("near", "far", "left", "right", "top", "bottom"):
            (value,) = _floats(values, 1, key, lineno)
            setattr(params, key, value)
        else:
            logger.warning("Line %d: unknown camera key '%s', skipped", lineno, key)

    logger.warning("Missing 'objects:' after camera section; scene has no objects")
    return params, lights, index


def _parse_mappings(
    numbered: list[tuple[int, str]], index: int
) -> tuple[list[tuple[str, str]], int]:
    """Read ``name path`` lines up to the first blank line after the first mapping."""
    mappings: list[tuple[str, str]] = []
    while index < len(numbered):
        lineno, text = numbered[index]
        index += 1
        if not text:
            if mappings:
                break
            continue
        parts = text.split()
        if len(parts) != 2:
            logger.warning("Line %d: cannot read mesh mapping '%s', skipped", lineno, text)
            continue
        mappings.append((parts[0], parts[1]))
    return mappings, index


def _parse_blocks(numbered: list[tuple[int, str]], index: int) -> list[_InstanceBlock]:
    blocks: list[_InstanceBlock] = []
    current: _InstanceBlock | None = None

    for lineno, text in numbered[index:]:
        if not text:
            current = None
            continue
        key, *values = text.split()
        if key in _MATERIAL_KEYS or key in _TRANSFORM_KINDS:
            if current is None:
                logger.warning("Line %d: '%s' before an object name, skipped", lineno, key)
                continue
            if key == "shininess":
                current.material[key] = _floats(values, 1, key, lineno)[0]
            elif key in _MATERIAL_KEYS:
                current.material[key] = tuple(_floats(values, 3, key, lineno))
            else:
                current.transforms.append((lineno, text))
        else:
            if values:
                logger.warning("Line %d: unknown transform type '%s', skipped", lineno, key)
                continue
            current = _InstanceBlock(key, lineno)
            blocks.append(current)
    return blocks


def parse_scene(lines: Iterable[str], base_dir: str | Path = ".") -> Scene:
    """Parse scene-file text into a world-space Scene.

    Args:
        lines: Scene file lines.
        base_dir: Directory that mesh paths are resolved against.

    Returns:
        The Scene with object instances already transformed into world space.

    Raises:
        ValueError: If the camera section is missing, a number is malformed,
            the frustum is degenerate, or not every named mesh could be loaded.
    """
    numbered = list(_content_lines(lines))
    start = next((i + 1 for i, (_, text) in enumerate(numbered) if text == "camera:"), None)
    if start is None:
        raise ValueError("Missing 'camera:' section")

    params, lights, index = _parse_camera(numbered[start:])
    camera = build_camera(params)
    index += start

    mappings, index = _parse_mappings(numbered, index)
    meshes: dict[str, Mesh] = {}
    for name, rel_path in mappings:
        path = Path(base_dir) / rel_path
        try:
            meshes[name] = load_mesh(path)
        except OSError as e:
            logger.error("Could not open mesh file %s: %s", path, e)
    if len(meshes) != len(mappings):
        raise ValueError(
            f"Loaded {len(meshes)} meshes for {len(mappings)} object names"
        )

    objects: list[ObjectInstance] = []
    copy_count: dict[str, int] = {}
    for block in _parse_blocks(numbered, index):
        mesh = meshes.get(block.name)
        if mesh is None:
            logger.error("Line %d: unknown object '%s', block skipped", block.lineno, block.name)
            continue
        matrix = parse_transform(block.transforms)
        copy_count[block.name] = copy_count.get(block.name, 0) + 1
        objects.append(
            ObjectInstance(
                name=f"{block.name}_copy{copy_count[block.name]}",
                mesh=apply_transform(mesh, matrix),
                material=Material(**block.material),
            )
        )

    logger.info("Loaded scene: %d objects, %d lights", len(objects), len(lights))
    return Scene(camera=camera, objects=tuple(objects), lights=tuple(lights))


def load_scene(path: str | Path) -> Scene:
    """Load a scene file; mesh paths are relative to its directory.

    Raises:
        OSError: If the scene file cannot be read.
        ValueError: If the scene is malformed.
    """
    path = Path(path)
    with path.open() as f:
        lines = f.readlines()
    return parse_scene(lines, base_dir=path.parent)
