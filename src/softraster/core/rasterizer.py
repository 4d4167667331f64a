"""Triangle and line rasterization into an Image's color and depth buffers.

This module implements the scan conversion stage with Taichi kernels:
- Barycentric triangle fill over the integer bounding box of each triangle
- Per-pixel depth test against the image depth buffer
- Flat, Gouraud (interpolated color) and Phong (per-pixel lighting) fills
- Anti-aliased lines using a fractional-error Bresenham walk

Buffers are passed to the kernels as NumPy arrays (``ti.types.ndarray()``)
and updated in place, so every call works on the Image it is given rather
than on module-level state.

Pixel rules (``put_pixel``):
    1. Pixels outside the image are discarded.
    2. Depths outside [-1, 1] and samples with no coverage are discarded.
    3. The depth test is strict: a pixel is written only if its z is less
       than the stored depth, so on ties the earlier write wins.
    4. The color is blended as ``coverage * rgb + (1 - coverage) * existing``
       and truncated to a byte; depth is stored only when the test ran.

Triangle and segment loops are serialized, which makes the draw order a
contract: triangles are processed in the order they are passed in.

Example:
    >>> import numpy as np
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from softraster.core.image import Image
    >>> from softraster.core.rasterizer import draw_lines
    >>> image = Image.blank(8, 8)
    >>> draw_lines(image, np.array([[0, 0, 7, 7]]), (255, 255, 255))
"""

from collections.abc import Sequence

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from softraster.core.image import Image
from softraster.core.shading import blinn_phong

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


# =============================================================================
# Pixel Helpers (Taichi functions)
# =============================================================================


@ti.func
def _edge(xi: ti.f64, yi: ti.f64, xj: ti.f64, yj: ti.f64, xp: ti.f64, yp: ti.f64) -> ti.f64:
    """Implicit line equation of the edge (i, j) evaluated at p.

    Zero on the line through i and j; its sign tells the side of p.
    """
    return (yi - yj) * xp + (xj - xi) * yp + xi * yj - xj * yi


@ti.func
def barycentric(
    xa: ti.i32,
    ya: ti.i32,
    xb: ti.i32,
    yb: ti.i32,
    xc: ti.i32,
    yc: ti.i32,
    x: ti.i32,
    y: ti.i32,
) -> vec3:
    """Compute the barycentric weights of pixel (x, y) in triangle (a, b, c).

    Each weight is the ratio of the signed area opposite a vertex for the
    pixel and for the vertex itself. The edge functions are evaluated in
    f64 so integer coordinates stay exact.

    Args:
        xa, ya, xb, yb, xc, yc: Integer screen positions of the corners.
        x, y: Integer pixel position.

    Returns:
        vec3(alpha, beta, gamma). For a degenerate (zero-area) triangle the
        weights are non-finite and fail every inside test.
    """
    fxa = ti.cast(xa, ti.f64)
    fya = ti.cast(ya, ti.f64)
    fxb = ti.cast(xb, ti.f64)
    fyb = ti.cast(yb, ti.f64)
    fxc = ti.cast(xc, ti.f64)
    fyc = ti.cast(yc, ti.f64)
    fx = ti.cast(x, ti.f64)
    fy = ti.cast(y, ti.f64)

    alpha = _edge(fxb, fyb, fxc, fyc, fx, fy) / _edge(fxb, fyb, fxc, fyc, fxa, fya)
    beta = _edge(fxa, fya, fxc, fyc, fx, fy) / _edge(fxa, fya, fxc, fyc, fxb, fyb)
    gamma = _edge(fxa, fya, fxb, fyb, fx, fy) / _edge(fxa, fya, fxb, fyb, fxc, fyc)
    return vec3(ti.cast(alpha, ti.f32), ti.cast(beta, ti.f32), ti.cast(gamma, ti.f32))


@ti.func
def is_inside(weights: vec3) -> ti.i32:
    """Check that all three weights lie in [0, 1]; edge pixels count as inside."""
    inside = 0
    if 0.0 <= weights[0] <= 1.0 and 0.0 <= weights[1] <= 1.0 and 0.0 <= weights[2] <= 1.0:
        inside = 1
    return inside


@ti.func
def to_byte_rgb(color: vec3) -> vec3:
    """Convert a [0, 1] color to byte levels, truncating like an integer cast.

    Interpolated colors that sum to just under 1.0 in f32 land on 254, not 255.
    """
    return ti.floor(tm.clamp(color, 0.0, 1.0) * 255.0)


@ti.func
def put_pixel(
    color: ti.template(),
    depth: ti.template(),
    x: ti.i32,
    y: ti.i32,
    z: ti.f32,
    rgb: vec3,
    coverage: ti.f32,
    depth_test: ti.template(),
):
    """Write one pixel following the pixel rules of this module.

    Args:
        color: (H, W, 3) uint8 color buffer.
        depth: (H, W) float32 depth buffer.
        x, y: Pixel position, y growing upward.
        z: NDC depth of the sample.
        rgb: Color in byte levels [0, 255].
        coverage: Blend weight of the new color in [0, 1].
        depth_test: Compile-time flag; when False the depth buffer is neither
            read nor written.
    """
    height = depth.shape[0]
    width = depth.shape[1]
    if 0 <= x < width and 0 <= y < height and -1.0 <= z <= 1.0 and coverage > 0.0:
        row = height - 1 - y
        passes = 1
        if ti.static(depth_test):
            if z >= depth[row, x]:
                passes = 0
        if passes == 1:
            for c in ti.static(range(3)):
                existing = ti.cast(color[row, x, c], ti.f32)
                blended = (1.0 - coverage) * existing + coverage * rgb[c]
                color[row, x, c] = ti.cast(ti.min(ti.max(blended, 0.0), 255.0), ti.u8)
            if ti.static(depth_test):
                depth[row, x] = z


@ti.func
def corner(values: ti.template(), t: ti.i32, k: ti.i32) -> vec3:
    """Read corner k of triangle t from a (T, 3, 3) array as a vec3."""
    return vec3(values[t, k, 0], values[t, k, 1], values[t, k, 2])


# =============================================================================
# Rasterization Kernels
# =============================================================================


@ti.kernel
def _put_pixel_kernel(
    color: ti.types.ndarray(),
    depth: ti.types.ndarray(),
    x: ti.i32,
    y: ti.i32,
    z: ti.f32,
    rgb: ti.types.ndarray(),
    coverage: ti.f32,
    depth_test: ti.template(),
):
    put_pixel(color, depth, x, y, z, vec3(rgb[0], rgb[1], rgb[2]), coverage, depth_test)


@ti.kernel
def _fill_triangles_kernel(
    color: ti.types.ndarray(),
    depth: ti.types.ndarray(),
    screen_xy: ti.types.ndarray(),
    screen_z: ti.types.ndarray(),
    colors: ti.types.ndarray(),
    smooth: ti.template(),
):
    """Fill triangles with a flat color or interpolated corner colors.

    Args:
        color: (H, W, 3) uint8 color buffer.
        depth: (H, W) float32 depth buffer.
        screen_xy: (T, 3, 2) int32 corner pixel positions.
        screen_z: (T, 3) float32 corner NDC depths.
        colors: (T, 3) flat colors, or (T, 3, 3) corner colors when smooth.
        smooth: Compile-time flag selecting Gouraud interpolation.
    """
    height = depth.shape[0]
    width = depth.shape[1]
    num_triangles = screen_xy.shape[0]

    ti.loop_config(serialize=True)
    for t in range(num_triangles):
        xa = screen_xy[t, 0, 0]
        ya = screen_xy[t, 0, 1]
        xb = screen_xy[t, 1, 0]
        yb = screen_xy[t, 1, 1]
        xc = screen_xy[t, 2, 0]
        yc = screen_xy[t, 2, 1]

        x_min = ti.max(ti.min(xa, ti.min(xb, xc)), 0)
        x_max = ti.min(ti.max(xa, ti.max(xb, xc)), width - 1)
        y_min = ti.max(ti.min(ya, ti.min(yb, yc)), 0)
        y_max = ti.min(ti.max(ya, ti.max(yb, yc)), height - 1)

        for x in range(x_min, x_max + 1):
            for y in range(y_min, y_max + 1):
                weights = barycentric(xa, ya, xb, yb, xc, yc, x, y)
                if is_inside(weights) == 1:
                    z = (
                        weights[0] * screen_z[t, 0]
                        + weights[1] * screen_z[t, 1]
                        + weights[2] * screen_z[t, 2]
                    )
                    shade = vec3(0.0, 0.0, 0.0)
                    if ti.static(smooth):
                        shade = (
                            weights[0] * corner(colors, t, 0)
                            + weights[1] * corner(colors, t, 1)
                            + weights[2] * corner(colors, t, 2)
                        )
                    else:
                        shade = vec3(colors[t, 0], colors[t, 1], colors[t, 2])
                    put_pixel(color, depth, x, y, z, to_byte_rgb(shade), 1.0, True)


@ti.kernel
def _fill_triangles_phong_kernel(
    color: ti.types.ndarray(),
    depth: ti.types.ndarray(),
    screen_xy: ti.types.ndarray(),
    screen_z: ti.types.ndarray(),
    positions: ti.types.ndarray(),
    normals: ti.types.ndarray(),
    lights: ti.types.ndarray(),
    num_lights: ti.i32,
    material: ti.types.ndarray(),
):
    """Fill triangles, lighting every pixel from interpolated view-space data.

    Args:
        color: (H, W, 3) uint8 color buffer.
        depth: (H, W) float32 depth buffer.
        screen_xy: (T, 3, 2) int32 corner pixel positions.
        screen_z: (T, 3) float32 corner NDC depths.
        positions: (T, 3, 3) view-space corner positions.
        normals: (T, 3, 3) view-space corner normals.
        lights: (L, 7) packed lights (see shading.pack_lights).
        num_lights: Number of valid rows in lights.
        material: (10,) packed material (see shading.pack_material).
    """
    height = depth.shape[0]
    width = depth.shape[1]
    num_triangles = screen_xy.shape[0]

    ti.loop_config(serialize=True)
    for t in range(num_triangles):
        xa = screen_xy[t, 0, 0]
        ya = screen_xy[t, 0, 1]
        xb = screen_xy[t, 1, 0]
        yb = screen_xy[t, 1, 1]
        xc = screen_xy[t, 2, 0]
        yc = screen_xy[t, 2, 1]

        x_min = ti.max(ti.min(xa, ti.min(xb, xc)), 0)
        x_max = ti.min(ti.max(xa, ti.max(xb, xc)), width - 1)
        y_min = ti.max(ti.min(ya, ti.min(yb, yc)), 0)
        y_max = ti.min(ti.max(ya, ti.max(yb, yc)), height - 1)

        for x in range(x_min, x_max + 1):
            for y in range(y_min, y_max + 1):
                weights = barycentric(xa, ya, xb, yb, xc, yc, x, y)
                if is_inside(weights) == 1:
                    z = (
                        weights[0] * screen_z[t, 0]
                        + weights[1] * screen_z[t, 1]
                        + weights[2] * screen_z[t, 2]
                    )
                    point = (
                        weights[0] * corner(positions, t, 0)
                        + weights[1] * corner(positions, t, 1)
                        + weights[2] * corner(positions, t, 2)
                    )
                    normal = (
                        weights[0] * corner(normals, t, 0)
                        + weights[1] * corner(normals, t, 1)
                        + weights[2] * corner(normals, t, 2)
                    )
                    shade = blinn_phong(point, normal, lights, num_lights, material)
                    put_pixel(color, depth, x, y, z, to_byte_rgb(shade), 1.0, True)


@ti.kernel
def _draw_lines_kernel(
    color: ti.types.ndarray(),
    depth: ti.types.ndarray(),
    endpoints: ti.types.ndarray(),
    endpoint_z: ti.types.ndarray(),
    rgb: ti.types.ndarray(),
    depth_test: ti.template(),
):
    """Draw anti-aliased line segments.

    At each step along the major axis two pixels straddling the ideal line
    are written, with coverages (1 - err) and err where err is the
    fractional distance of the line toward the next minor-axis pixel.

    Args:
        color: (H, W, 3) uint8 color buffer.
        depth: (H, W) float32 depth buffer.
        endpoints: (S, 4) int32 rows of (x0, y0, x1, y1).
        endpoint_z: (S, 2) float32 NDC depth of both endpoints.
        rgb: (3,) float32 line color in byte levels.
        depth_test: Compile-time flag; with it, z is interpolated along the
            major axis and depth-tested, without it z is 0 and the depth
            buffer is untouched.
    """
    line_rgb = vec3(rgb[0], rgb[1], rgb[2])
    num_segments = endpoints.shape[0]

    ti.loop_config(serialize=True)
    for s in range(num_segments):
        x0 = endpoints[s, 0]
        y0 = endpoints[s, 1]
        x1 = endpoints[s, 2]
        y1 = endpoints[s, 3]
        z0 = endpoint_z[s, 0]
        z1 = endpoint_z[s, 1]

        # Walk along x; steep lines are transposed first
        steep = 0
        if ti.abs(y1 - y0) > ti.abs(x1 - x0):
            steep = 1
            tmp = x0
            x0 = y0
            y0 = tmp
            tmp = x1
            x1 = y1
            y1 = tmp
        if x0 > x1:
            tmp = x0
            x0 = x1
            x1 = tmp
            tmp = y0
            y0 = y1
            y1 = tmp
            ztmp = z0
            z0 = z1
            z1 = ztmp

        dx = x1 - x0
        ystep = -1
        if y0 < y1:
            ystep = 1
        slope = 0.0
        if dx != 0:
            slope = ti.cast(ti.abs(y1 - y0), ti.f32) / ti.cast(dx, ti.f32)

        err = 0.0
        y = y0
        for x in range(x0, x1 + 1):
            z = 0.0
            if ti.static(depth_test):
                z = z0
                if dx != 0:
                    z = z0 + (z1 - z0) * ti.cast(x - x0, ti.f32) / ti.cast(dx, ti.f32)
            near_cov = 1.0 - err
            far_cov = err
            if steep == 1:
                put_pixel(color, depth, y, x, z, line_rgb, near_cov, depth_test)
                put_pixel(color, depth, y + ystep, x, z, line_rgb, far_cov, depth_test)
            else:
                put_pixel(color, depth, x, y, z, line_rgb, near_cov, depth_test)
                put_pixel(color, depth, x, y + ystep, z, line_rgb, far_cov, depth_test)

            err += slope
            while err >= 1.0:
                y += ystep
                err -= 1.0


# =============================================================================
# Public Rasterization API
# =============================================================================


def _byte_color(rgb: Sequence[float]) -> npt.NDArray[np.float32]:
    values = np.asarray(rgb, dtype=np.float32).reshape(3)
    if np.any(values < 0.0) or np.any(values > 255.0):
        raise ValueError(f"Byte color {tuple(rgb)} is outside [0, 255]")
    return values


def put_pixel_at(
    image: Image,
    x: int,
    y: int,
    z: float,
    rgb: Sequence[float],
    coverage: float = 1.0,
    depth_test: bool = True,
) -> None:
    """Write a single pixel into an image.

    Args:
        image: Target image.
        x, y: Pixel position, y growing upward.
        z: NDC depth; samples outside [-1, 1] are discarded.
        rgb: Color in byte levels [0, 255].
        coverage: Blend weight of the new color.
        depth_test: Apply (and update) the depth buffer.
    """
    _put_pixel_kernel(
        image.color, image.depth, x, y, z, _byte_color(rgb), coverage, depth_test
    )


def fill_triangles(
    image: Image,
    screen_xy: npt.NDArray[np.int32],
    screen_z: npt.NDArray[np.float32],
    colors: npt.ArrayLike,
    smooth: bool = False,
) -> None:
    """Rasterize triangles with flat or Gouraud-interpolated colors.

    Args:
        image: Target image.
        screen_xy: (T, 3, 2) integer corner pixel positions.
        screen_z: (T, 3) corner NDC depths.
        colors: (T, 3) per-triangle colors, or (T, 3, 3) per-corner colors
            when smooth; components in [0, 1].
        smooth: Interpolate per-corner colors across each triangle.
    """
    xy = np.ascontiguousarray(screen_xy, dtype=np.int32)
    if xy.shape[0] == 0:
        return
    expected_ndim = 3 if smooth else 2
    col = np.ascontiguousarray(colors, dtype=np.float32)
    if col.ndim != expected_ndim or col.shape[0] != xy.shape[0]:
        raise ValueError(
            f"Colors of shape {col.shape} do not match {xy.shape[0]} triangles "
            f"(smooth={smooth})"
        )
    _fill_triangles_kernel(
        image.color,
        image.depth,
        xy,
        np.ascontiguousarray(screen_z, dtype=np.float32),
        col,
        smooth,
    )


def fill_triangles_phong(
    image: Image,
    screen_xy: npt.NDArray[np.int32],
    screen_z: npt.NDArray[np.float32],
    positions: npt.ArrayLike,
    normals: npt.ArrayLike,
    lights: npt.NDArray[np.float32],
    num_lights: int,
    material: npt.NDArray[np.float32],
) -> None:
    """Rasterize triangles with per-pixel Blinn-Phong lighting.

    Args:
        image: Target image.
        screen_xy: (T, 3, 2) integer corner pixel positions.
        screen_z: (T, 3) corner NDC depths.
        positions: (T, 3, 3) view-space corner positions.
        normals: (T, 3, 3) view-space corner normals.
        lights: Packed view-space lights from shading.pack_lights.
        num_lights: Number of lights in the packed array.
        material: Packed material from shading.pack_material.
    """
    xy = np.ascontiguousarray(screen_xy, dtype=np.int32)
    if xy.shape[0] == 0:
        return
    _fill_triangles_phong_kernel(
        image.color,
        image.depth,
        xy,
        np.ascontiguousarray(screen_z, dtype=np.float32),
        np.ascontiguousarray(positions, dtype=np.float32),
        np.ascontiguousarray(normals, dtype=np.float32),
        lights,
        num_lights,
        material,
    )


def draw_lines(
    image: Image,
    endpoints: npt.ArrayLike,
    rgb: Sequence[float],
    endpoint_z: npt.ArrayLike | None = None,
    depth_test: bool = False,
) -> None:
    """Draw anti-aliased line segments in order.

    Args:
        image: Target image.
        endpoints: (S, 4) integer rows of (x0, y0, x1, y1), y growing upward.
        rgb: Line color in byte levels [0, 255].
        endpoint_z: (S, 2) NDC depths of the endpoints; only used with
            depth_test. Defaults to zeros.
        depth_test: Depth-test line pixels against the depth buffer.
    """
    ends = np.ascontiguousarray(endpoints, dtype=np.int32).reshape(-1, 4)
    if ends.shape[0] == 0:
        return
    if endpoint_z is None:
        z = np.zeros((ends.shape[0], 2), dtype=np.float32)
    else:
        z = np.ascontiguousarray(endpoint_z, dtype=np.float32).reshape(-1, 2)
    _draw_lines_kernel(image.color, image.depth, ends, z, _byte_color(rgb), depth_test)
