"""Unit tests for image export.

Tests cover:
- ASCII PPM layout (header, top row first)
- PPM and PNG files
- Format selection by file suffix
"""

import io

import numpy as np


def _two_by_two():
    from softraster.core.image import Image
    from softraster.core.rasterizer import put_pixel_at

    image = Image.blank(2, 2)
    put_pixel_at(image, 0, 1, 0.0, (255, 0, 0))  # top left
    put_pixel_at(image, 1, 0, 0.0, (0, 0, 255))  # bottom right
    return image


class TestPPM:
    """Tests for the PPM writer."""

    def test_layout(self):
        from softraster.output.export import write_ppm

        stream = io.StringIO()
        write_ppm(_two_by_two(), stream)

        assert stream.getvalue().splitlines() == [
            "P3",
            "2 2",
            "255",
            "255 0 0",
            "0 0 0",
            "0 0 0",
            "0 0 255",
        ]

    def test_width_comes_first(self):
        from softraster.core.image import Image
        from softraster.output.export import write_ppm

        stream = io.StringIO()
        write_ppm(Image.blank(3, 1), stream)

        lines = stream.getvalue().splitlines()
        assert lines[1] == "3 1"
        assert len(lines) == 3 + 3

    def test_save_ppm(self, tmp_path):
        from softraster.output.export import save_image

        path = tmp_path / "out.ppm"
        save_image(_two_by_two(), path)

        assert path.read_text().startswith("P3\n2 2\n255\n255 0 0\n")


class TestPNG:
    """Tests for the PNG writer."""

    def test_save_png_round_trip(self, tmp_path):
        from PIL import Image as PILImage

        from softraster.output.export import save_image

        image = _two_by_two()
        path = tmp_path / "out.png"
        save_image(image, path)

        with PILImage.open(path) as loaded:
            assert loaded.size == (2, 2)
            assert loaded.mode == "RGB"
            np.testing.assert_array_equal(np.asarray(loaded), image.color)
