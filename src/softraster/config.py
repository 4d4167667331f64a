"""Render configuration shared by the pipeline and the command line.

The shading mode numbering matches the command line's ``mode`` argument:
0 Gouraud, 1 Phong, 2 flat, 3 wireframe.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

# Type alias for 8-bit RGB colors
ByteColor = tuple[int, int, int]


class ShadingMode(IntEnum):
    """Enumeration of supported shading models.

    Selected once per frame to pick the shading strategy.
    """

    GOURAUD = 0
    PHONG = 1
    FLAT = 2
    WIREFRAME = 3

    @classmethod
    def parse(cls, text: str) -> ShadingMode:
        """Parse a mode from its number ("0".."3") or its name ("phong").

        Raises:
            ValueError: If the text names no shading mode.
        """
        value = text.strip()
        if value.isdigit():
            number = int(value)
            if number not in {int(mode) for mode in cls}:
                raise ValueError(
                    f"Invalid mode: {number}. Must be 0 (Gouraud), 1 (Phong), "
                    "2 (flat) or 3 (wireframe)."
                )
            return cls(number)
        try:
            return cls[value.upper()]
        except KeyError:
            raise ValueError(f"Unknown shading mode: {text!r}") from None


def _check_byte_color(name: str, color: ByteColor) -> None:
    if len(color) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(color)}")
    for i, component in enumerate(color):
        if not 0 <= component <= 255:
            raise ValueError(f"{name} component {i} = {component} is outside [0, 255].")


@dataclass
class RenderConfig:
    """Configuration for one render call.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        mode: Shading model used for every object in the frame.
        background: Clear color of the color buffer (8-bit RGB).
        foreground: Line color in wireframe mode (8-bit RGB).
        wireframe_depth_test: Depth-test wireframe lines against each other.
    """

    width: int
    height: int
    mode: ShadingMode = ShadingMode.FLAT
    background: ByteColor = (0, 0, 0)
    foreground: ByteColor = (255, 255, 255)
    wireframe_depth_test: bool = False

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Image dimensions must be positive, got {self.width}x{self.height}"
            )
        self.mode = ShadingMode(self.mode)
        _check_byte_color("background", self.background)
        _check_byte_color("foreground", self.foreground)
