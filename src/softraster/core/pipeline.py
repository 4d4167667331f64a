"""Per-frame render pipeline and shading strategies.

A render call validates the scene, creates a blank Image, picks one shading
strategy for the whole frame and lets it draw every object instance in
scene order:

    FlatShader      one lighting evaluation per triangle (averaged corner
                    position and normal)
    GouraudShader   lighting at the three corners, colors interpolated
    PhongShader     position and normal interpolated, lighting per pixel
    WireframeShader triangle edges in the foreground color, no culling

The surface shaders move the scene into view space, cull back faces and
light with view-space data; only depth and pixel positions come from the
projected triangles.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from softraster.config import RenderConfig, ShadingMode
    >>> from softraster.core.pipeline import render_scene
    >>> from softraster.scene.presets import create_unit_square_scene
    >>> image = render_scene(create_unit_square_scene(), RenderConfig(64, 64, ShadingMode.PHONG))
"""

from __future__ import annotations

import logging

import numpy as np

from softraster.config import RenderConfig, ShadingMode
from softraster.core.image import Image
from softraster.core.rasterizer import draw_lines, fill_triangles, fill_triangles_phong
from softraster.core.shading import pack_lights, pack_material, shade_points
from softraster.core.transform import (
    TriangleBatch,
    build_triangle_batch,
    face_corners,
    project_to_screen,
    world_to_view,
)
from softraster.scene.model import ObjectInstance, Scene

logger = logging.getLogger(__name__)


# =============================================================================
# Shading Strategies
# =============================================================================


class Shader:
    """Base class of the per-frame shading strategies."""

    mode: ShadingMode

    def render(self, scene: Scene, image: Image, config: RenderConfig) -> None:
        """Draw every object instance of a world-space scene into the image."""
        raise NotImplementedError


class SurfaceShader(Shader):
    """Shared driver for the filled (lit) shading models.

    Subclasses implement ``draw_batch`` for one instance's front-facing
    triangles.
    """

    def render(self, scene: Scene, image: Image, config: RenderConfig) -> None:
        view_scene = world_to_view(scene)
        for instance in view_scene.objects:
            batch = build_triangle_batch(instance, scene.camera, image.width, image.height)
            logger.debug(
                "%s: %d of %d triangles front-facing and on screen",
                instance.name,
                batch.count,
                instance.mesh.face_count,
            )
            if batch.count == 0:
                continue
            self.draw_batch(batch, instance, view_scene, image)

    def draw_batch(
        self,
        batch: TriangleBatch,
        instance: ObjectInstance,
        view_scene: Scene,
        image: Image,
    ) -> None:
        raise NotImplementedError


class FlatShader(SurfaceShader):
    """One color per triangle, lit at the averaged corner position and normal."""

    mode = ShadingMode.FLAT

    def draw_batch(self, batch, instance, view_scene, image):
        centers = batch.positions.mean(axis=1)
        normals = batch.normals.mean(axis=1)
        colors = shade_points(
            centers, normals, view_scene.lights, instance.material, view_scene.ambient
        )
        fill_triangles(image, batch.screen_xy, batch.screen_z, colors, smooth=False)


class GouraudShader(SurfaceShader):
    """Lighting at the corners, colors interpolated across the triangle."""

    mode = ShadingMode.GOURAUD

    def draw_batch(self, batch, instance, view_scene, image):
        colors = shade_points(
            batch.positions.reshape(-1, 3),
            batch.normals.reshape(-1, 3),
            view_scene.lights,
            instance.material,
            view_scene.ambient,
        ).reshape(batch.count, 3, 3)
        fill_triangles(image, batch.screen_xy, batch.screen_z, colors, smooth=True)


class PhongShader(SurfaceShader):
    """Position and normal interpolated, lighting evaluated per pixel."""

    mode = ShadingMode.PHONG

    def draw_batch(self, batch, instance, view_scene, image):
        lights, num_lights = pack_lights(view_scene.lights)
        material = pack_material(instance.material, view_scene.ambient)
        fill_triangles_phong(
            image,
            batch.screen_xy,
            batch.screen_z,
            batch.positions,
            batch.normals,
            lights,
            num_lights,
            material,
        )


class WireframeShader(Shader):
    """Triangle edges of every face, front- or back-facing."""

    mode = ShadingMode.WIREFRAME

    def render(self, scene: Scene, image: Image, config: RenderConfig) -> None:
        view_scene = world_to_view(scene)
        endpoints = []
        endpoint_z = []
        for instance in view_scene.objects:
            corners = face_corners(instance.mesh)
            _, screen, drawable = project_to_screen(
                corners, scene.camera, image.width, image.height
            )
            screen = screen[drawable]
            # Edges (v1, v2), (v2, v3), (v3, v1) of each face, in face order
            starts = screen
            ends = np.roll(screen, -1, axis=1)
            segments = np.concatenate([starts[..., :2], ends[..., :2]], axis=2).reshape(-1, 4)
            depths = np.stack([starts[..., 2], ends[..., 2]], axis=2).reshape(-1, 2)
            endpoints.append(segments)
            endpoint_z.append(depths)

        if not endpoints:
            return
        draw_lines(
            image,
            np.concatenate(endpoints).astype(np.int32),
            config.foreground,
            endpoint_z=np.concatenate(endpoint_z),
            depth_test=config.wireframe_depth_test,
        )


_SHADERS: dict[ShadingMode, type[Shader]] = {
    ShadingMode.FLAT: FlatShader,
    ShadingMode.GOURAUD: GouraudShader,
    ShadingMode.PHONG: PhongShader,
    ShadingMode.WIREFRAME: WireframeShader,
}


def create_shader(mode: ShadingMode) -> Shader:
    """Create the shading strategy for a mode.

    Raises:
        ValueError: If the mode is unknown.
    """
    try:
        return _SHADERS[ShadingMode(mode)]()
    except (KeyError, ValueError):
        raise ValueError(f"Unknown shading mode: {mode!r}") from None


# =============================================================================
# Public Rendering API
# =============================================================================


def validate_scene(scene: Scene, mode: ShadingMode) -> None:
    """Check that a scene can be rendered in a mode.

    Lit modes need a normal for every face corner of every mesh.

    Raises:
        ValueError: If an instance cannot be shaded.
    """
    if mode == ShadingMode.WIREFRAME:
        return
    for instance in scene.objects:
        if not instance.mesh.has_normals:
            raise ValueError(
                f"Object '{instance.name}' has no normals and cannot be rendered "
                f"in {mode.name.lower()} mode"
            )


def render_scene(scene: Scene, config: RenderConfig) -> Image:
    """Render a world-space scene into a new image.

    Args:
        scene: Scene with camera, world-space object instances and lights.
        config: Image size, shading mode and colors.

    Returns:
        The finished Image.

    Raises:
        ValueError: If the scene cannot be rendered in the configured mode;
            raised before any pixel is written.
    """
    validate_scene(scene, config.mode)
    shader = create_shader(config.mode)
    image = Image.blank(config.width, config.height, config.background)

    logger.info(
        "Rendering %d objects, %d lights at %dx%d (%s)",
        len(scene.objects),
        len(scene.lights),
        config.width,
        config.height,
        config.mode.name.lower(),
    )
    shader.render(scene, image, config)
    return image
