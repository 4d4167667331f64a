"""Color and depth buffers for one rendered frame.

The Image is the only mutable state of a render pass. It is created by the
render call, handed to every rasterizer kernel explicitly, and returned to the
caller (typically an image sink) once the frame is complete.

Buffer layout:
    color: (height, width, 3) uint8, row 0 is the TOP row of the picture
    depth: (height, width) float32 NDC depth, +inf where nothing was drawn

Rasterizer coordinates have y growing upward, so pixel (x, y) lives at
buffer row ``height - 1 - y``.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import numpy.typing as npt


@dataclass
class Image:
    """An RGB color buffer with a matching depth buffer.

    Attributes:
        color: (H, W, 3) uint8 color buffer.
        depth: (H, W) float32 depth buffer.
    """

    color: npt.NDArray[np.uint8]
    depth: npt.NDArray[np.float32]

    def __post_init__(self) -> None:
        if self.color.ndim != 3 or self.color.shape[2] != 3:
            raise ValueError(f"Color buffer must have shape (H, W, 3), got {self.color.shape}")
        if self.depth.shape != self.color.shape[:2]:
            raise ValueError(
                f"Depth buffer shape {self.depth.shape} does not match "
                f"color buffer shape {self.color.shape[:2]}"
            )

    @classmethod
    def blank(
        cls,
        width: int,
        height: int,
        background: tuple[int, int, int] = (0, 0, 0),
    ) -> Image:
        """Create a cleared image.

        Args:
            width: Image width in pixels.
            height: Image height in pixels.
            background: Fill color of the color buffer.

        Raises:
            ValueError: If either dimension is not positive.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
        color = np.empty((height, width, 3), dtype=np.uint8)
        color[:, :] = np.asarray(background, dtype=np.uint8)
        depth = np.full((height, width), np.inf, dtype=np.float32)
        return cls(color=color, depth=depth)

    @property
    def width(self) -> int:
        """Get the image width."""
        return int(self.color.shape[1])

    @property
    def height(self) -> int:
        """Get the image height."""
        return int(self.color.shape[0])

    def pixel(self, x: int, y: int) -> tuple[int, int, int]:
        """Get the color at rasterizer coordinates (x, y), y growing upward."""
        r, g, b = self.color[self.height - 1 - y, x]
        return int(r), int(g), int(b)

    def copy(self) -> Image:
        """Return an independent copy of both buffers."""
        return Image(color=self.color.copy(), depth=self.depth.copy())

    def __repr__(self) -> str:
        """Return a string representation of the image size."""
        return f"Image(width={self.width}, height={self.height})"
