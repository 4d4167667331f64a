"""Blinn-Phong local illumination for point lights.

The lighting model evaluated at a view-space point P with normal n (the eye
sits at the view-space origin):

    for each light L:
        l = normalize(L.position - P), d = |L.position - P|
        atten = 1 / (1 + L.attenuation * d^2)
        diffuse  += atten * L.color * max(0, n . l)
        h = normalize(normalize(eye - P) + l)
        specular += atten * L.color * max(0, n . h) ^ shininess
    color = min(ambient + diffuse * kd + specular * ks, 1)

where ``ambient`` is the scene's ambient light times the material's ambient
reflectance. A light sitting exactly on P contributes nothing.

Lights and materials cross into Taichi kernels as small packed float32
arrays:

    lights:   (L, 7) rows of (x, y, z, r, g, b, attenuation)
    material: (10,) ambient rgb, diffuse rgb, specular rgb, shininess
"""

from collections.abc import Sequence

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from softraster.scene.model import Light, Material

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

LIGHT_STRIDE = 7
MATERIAL_SIZE = 10


# =============================================================================
# Lighting Model (Taichi functions)
# =============================================================================


@ti.func
def specular_power(cosine: ti.f32, shininess: ti.f32) -> ti.f32:
    """Raise the clamped half-vector cosine to the shininess exponent.

    ``x^0`` is 1 for every x, including 0; a non-positive base with a
    non-zero exponent gives no highlight.
    """
    base = ti.max(cosine, 0.0)
    result = 1.0
    if shininess != 0.0:
        if base > 0.0:
            result = base**shininess
        else:
            result = 0.0
    return result


@ti.func
def blinn_phong(
    point: vec3,
    normal: vec3,
    lights: ti.template(),
    num_lights: ti.i32,
    material: ti.template(),
) -> vec3:
    """Evaluate the lighting model at one view-space point.

    Args:
        point: Surface position in view space.
        normal: Surface normal in view space; renormalized here, so
            interpolated normals can be passed directly.
        lights: (L, 7) packed view-space lights.
        num_lights: Number of valid light rows.
        material: (10,) packed material.

    Returns:
        The RGB color, each component clamped to at most 1.
    """
    n = normal
    n_len = tm.length(n)
    if n_len > 0.0:
        n = n / n_len

    eye_dir = -point
    eye_len = tm.length(eye_dir)
    if eye_len > 0.0:
        eye_dir = eye_dir / eye_len

    ambient = vec3(material[0], material[1], material[2])
    diffuse = vec3(material[3], material[4], material[5])
    specular = vec3(material[6], material[7], material[8])
    shininess = material[9]

    diffuse_sum = vec3(0.0, 0.0, 0.0)
    specular_sum = vec3(0.0, 0.0, 0.0)
    for li in range(num_lights):
        light_pos = vec3(lights[li, 0], lights[li, 1], lights[li, 2])
        light_color = vec3(lights[li, 3], lights[li, 4], lights[li, 5])
        to_light = light_pos - point
        d = tm.length(to_light)
        if d > 0.0:
            l_dir = to_light / d
            atten = 1.0 / (1.0 + lights[li, 6] * d * d)
            diffuse_sum += atten * light_color * ti.max(tm.dot(n, l_dir), 0.0)

            half = eye_dir + l_dir
            half_len = tm.length(half)
            if half_len > 0.0:
                half = half / half_len
            specular_sum += atten * light_color * specular_power(tm.dot(n, half), shininess)

    color = ambient + diffuse_sum * diffuse + specular_sum * specular
    return ti.min(color, vec3(1.0, 1.0, 1.0))


# =============================================================================
# Kernels
# =============================================================================


@ti.kernel
def _shade_points_kernel(
    points: ti.types.ndarray(),
    normals: ti.types.ndarray(),
    lights: ti.types.ndarray(),
    num_lights: ti.i32,
    material: ti.types.ndarray(),
    out: ti.types.ndarray(),
):
    for i in range(points.shape[0]):
        point = vec3(points[i, 0], points[i, 1], points[i, 2])
        normal = vec3(normals[i, 0], normals[i, 1], normals[i, 2])
        color = blinn_phong(point, normal, lights, num_lights, material)
        for c in ti.static(range(3)):
            out[i, c] = color[c]


# =============================================================================
# Packing Helpers
# =============================================================================


def pack_lights(lights: Sequence[Light]) -> tuple[npt.NDArray[np.float32], int]:
    """Pack lights into the (L, 7) float32 layout used by the kernels.

    The array always has at least one row so kernels never receive an empty
    buffer; the returned count says how many rows are real.

    Returns:
        Tuple of (packed_lights, num_lights).
    """
    packed = np.zeros((max(len(lights), 1), LIGHT_STRIDE), dtype=np.float32)
    for i, light in enumerate(lights):
        packed[i, 0:3] = light.position
        packed[i, 3:6] = light.color
        packed[i, 6] = light.attenuation
    return packed, len(lights)


def pack_material(
    material: Material,
    ambient_light: Sequence[float] = (1.0, 1.0, 1.0),
) -> npt.NDArray[np.float32]:
    """Pack a material into the (10,) float32 layout used by the kernels.

    The ambient slot holds the product of the ambient light and the
    material's ambient reflectance.
    """
    packed = np.zeros(MATERIAL_SIZE, dtype=np.float32)
    packed[0:3] = np.asarray(ambient_light, dtype=np.float64) * np.asarray(material.ambient)
    packed[3:6] = material.diffuse
    packed[6:9] = material.specular
    packed[9] = material.shininess
    return packed


# =============================================================================
# Public Shading API
# =============================================================================


def shade_points(
    points: npt.ArrayLike,
    normals: npt.ArrayLike,
    lights: Sequence[Light],
    material: Material,
    ambient_light: Sequence[float] = (1.0, 1.0, 1.0),
) -> npt.NDArray[np.float32]:
    """Evaluate the lighting model at many view-space points.

    Args:
        points: (N, 3) view-space positions.
        normals: (N, 3) view-space normals (need not be unit length).
        lights: View-space lights.
        material: Surface material.
        ambient_light: Ambient light color.

    Returns:
        (N, 3) float32 colors in [0, 1] (clamped above at 1).

    Raises:
        ValueError: If points and normals do not have matching shapes.
    """
    pts = np.ascontiguousarray(points, dtype=np.float32).reshape(-1, 3)
    nrm = np.ascontiguousarray(normals, dtype=np.float32).reshape(-1, 3)
    if pts.shape != nrm.shape:
        raise ValueError(f"Points {pts.shape} and normals {nrm.shape} do not match")

    out = np.zeros_like(pts)
    if pts.shape[0] == 0:
        return out
    packed_lights, num_lights = pack_lights(lights)
    _shade_points_kernel(
        pts, nrm, packed_lights, num_lights, pack_material(material, ambient_light), out
    )
    return out
