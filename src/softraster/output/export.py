"""Image export utilities for rendered images.

This module writes an Image's color buffer to files or streams.

Supported formats:
    - PPM (ASCII P3, top row first)
    - PNG (8-bit RGB via Pillow)

Example:
    >>> import sys
    >>> from softraster.output.export import save_image, write_ppm
    >>>
    >>> image = render_scene(scene, config)
    >>> write_ppm(image, sys.stdout)
    >>> save_image(image, "output.png")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TextIO

from PIL import Image as PILImage

from softraster.core.image import Image

logger = logging.getLogger(__name__)


def write_ppm(image: Image, stream: TextIO) -> None:
    """Write an image as ASCII PPM (P3).

    The header is ``P3``, the width and height, and the maximum level 255,
    followed by one ``r g b`` line per pixel, rows from top to bottom.

    Args:
        image: Image to write.
        stream: Text stream to write to.
    """
    stream.write(f"P3\n{image.width} {image.height}\n255\n")
    for row in image.color:
        stream.write("".join(f"{r} {g} {b}\n" for r, g, b in row.tolist()))


def save_ppm(image: Image, filepath: str | Path) -> None:
    """Save an image as an ASCII PPM file."""
    with open(filepath, "w") as f:
        write_ppm(image, f)


def save_png(image: Image, filepath: str | Path) -> None:
    """Save an image as an 8-bit RGB PNG file.

    Args:
        image: Image to save.
        filepath: Output file path (should end in .png).
    """
    pil_image = PILImage.fromarray(image.color)
    pil_image.save(filepath)


def save_image(image: Image, filepath: str | Path) -> None:
    """Save an image, choosing the format from the file suffix.

    ``.png`` files are written with Pillow; everything else is written as
    ASCII PPM.

    Args:
        image: Image to save.
        filepath: Output file path.
    """
    path = Path(filepath)
    if path.suffix.lower() == ".png":
        save_png(image, path)
    else:
        save_ppm(image, path)
    logger.info("Saved %dx%d image to %s", image.width, image.height, path)
