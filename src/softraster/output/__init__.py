"""Output module for writing rendered images.

Components:
    export: ASCII PPM streams and files, PNG files via Pillow
"""

from .export import save_image, save_png, save_ppm, write_ppm

__all__ = [
    "write_ppm",
    "save_ppm",
    "save_png",
    "save_image",
]
