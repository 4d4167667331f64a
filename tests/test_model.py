"""Unit tests for scene values and image buffers.

Tests cover:
- Mesh array coercion, read-only flags and index validation
- Material reflectance validation
- Image creation and pixel addressing
- Render configuration validation
"""

import numpy as np
import pytest


class TestMesh:
    """Tests for the Mesh value."""

    def test_arrays_are_read_only(self):
        from softraster.scene.presets import create_square_mesh

        mesh = create_square_mesh()
        with pytest.raises(ValueError):
            mesh.vertices[0, 0] = 1.0

    def test_face_index_out_of_range(self):
        from softraster.scene.model import Mesh

        with pytest.raises(ValueError, match="face vertex index out of range"):
            Mesh(name="bad", vertices=np.zeros((3, 3)), faces=np.array([[0, 1, 3]]))

    def test_normal_rows_must_match_faces(self):
        from softraster.scene.model import Mesh

        with pytest.raises(ValueError, match="normal index rows"):
            Mesh(
                name="bad",
                vertices=np.zeros((3, 3)),
                normals=np.array([[0.0, 0.0, 1.0]]),
                faces=np.array([[0, 1, 2]]),
                face_normals=np.zeros((2, 3), dtype=np.int64),
            )

    def test_with_geometry_keeps_topology(self):
        from softraster.scene.presets import create_square_mesh

        mesh = create_square_mesh()
        moved = mesh.with_geometry(mesh.vertices + 1.0)

        np.testing.assert_array_equal(moved.faces, mesh.faces)
        np.testing.assert_array_equal(moved.normals, mesh.normals)
        np.testing.assert_allclose(moved.vertices, mesh.vertices + 1.0)


class TestMaterial:
    """Tests for material validation."""

    def test_reflectance_outside_unit_range_raises(self):
        from softraster.scene.model import Material

        with pytest.raises(ValueError, match="diffuse component 1"):
            Material(diffuse=(0.5, 1.5, 0.5))

    def test_shininess_is_not_restricted(self):
        from softraster.scene.model import Material

        assert Material(shininess=-3).shininess == -3.0


class TestImage:
    """Tests for the Image buffers."""

    def test_blank_image(self):
        from softraster.core.image import Image

        image = Image.blank(5, 3, background=(1, 2, 3))

        assert (image.width, image.height) == (5, 3)
        assert image.color.shape == (3, 5, 3)
        assert image.pixel(4, 2) == (1, 2, 3)
        assert np.isinf(image.depth).all()

    @pytest.mark.parametrize("size", [(0, 4), (4, -1)])
    def test_non_positive_size_raises(self, size):
        from softraster.core.image import Image

        with pytest.raises(ValueError, match="positive"):
            Image.blank(*size)

    def test_copy_is_independent(self):
        from softraster.core.image import Image

        image = Image.blank(2, 2)
        clone = image.copy()
        clone.color[0, 0] = 255

        assert image.color.max() == 0


class TestRenderConfig:
    """Tests for render configuration."""

    def test_defaults(self):
        from softraster.config import RenderConfig, ShadingMode

        config = RenderConfig(8, 6)
        assert config.mode is ShadingMode.FLAT
        assert config.background == (0, 0, 0)
        assert config.foreground == (255, 255, 255)

    def test_mode_number_is_coerced(self):
        from softraster.config import RenderConfig, ShadingMode

        assert RenderConfig(8, 6, mode=3).mode is ShadingMode.WIREFRAME

    def test_bad_color_raises(self):
        from softraster.config import RenderConfig

        with pytest.raises(ValueError, match="foreground"):
            RenderConfig(8, 6, foreground=(0, 0, 300))
