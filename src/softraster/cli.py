"""Command-line renderer.

Usage:
    softraster <scene_file> <xres> <yres> <mode> [options]

Arguments:
    scene_file      Scene description (camera, lights, objects)
    xres, yres      Image size in pixels
    mode            0 Gouraud, 1 Phong, 2 flat, 3 wireframe (names accepted)

Options:
    --output PATH           Write to a file (.png or .ppm) instead of PPM on stdout
    --arch {cpu,gpu}        Taichi backend (default: cpu)
    --wireframe-depth-test  Depth-test wireframe lines
    --verbose               Log debug output to stderr

Example:
    softraster examples/scenes/cube.txt 400 400 1 > cube.ppm
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Sequence

# Keep the Taichi version banner off stdout, which may carry the PPM image
os.environ.setdefault("ENABLE_TAICHI_HEADER_PRINT", "False")

import taichi as ti  # noqa: E402

from softraster.config import RenderConfig, ShadingMode

logger = logging.getLogger(__name__)

_ARCHS = {"cpu": ti.cpu, "gpu": ti.gpu}


class _ArgumentParser(argparse.ArgumentParser):
    """Argument parser that exits with status 1 on usage errors."""

    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def _positive_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {text!r}") from None
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {value}")
    return value


def _shading_mode(text: str) -> ShadingMode:
    try:
        return ShadingMode.parse(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = _ArgumentParser(
        prog="softraster",
        description="Render a scene file with a software rasterizer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("scene_file", help="Scene description file")
    parser.add_argument("xres", type=_positive_int, help="Image width in pixels")
    parser.add_argument("yres", type=_positive_int, help="Image height in pixels")
    parser.add_argument(
        "mode",
        type=_shading_mode,
        help="Shading mode: 0 Gouraud, 1 Phong, 2 flat, 3 wireframe",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output file path (default: PPM on stdout)",
    )
    parser.add_argument(
        "--arch",
        choices=sorted(_ARCHS),
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    parser.add_argument(
        "--wireframe-depth-test",
        action="store_true",
        help="Depth-test wireframe lines",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug output to stderr",
    )
    return parser.parse_args(argv)


def run(args: argparse.Namespace) -> int:
    """Load, render and write one image. Taichi must already be initialized.

    Returns:
        Process exit code.
    """
    # Lazy imports to allow Taichi initialization first
    from softraster.core.pipeline import render_scene
    from softraster.output.export import save_image, write_ppm
    from softraster.scene.loader import load_scene

    try:
        config = RenderConfig(
            width=args.xres,
            height=args.yres,
            mode=args.mode,
            wireframe_depth_test=args.wireframe_depth_test,
        )
        scene = load_scene(args.scene_file)
        image = render_scene(scene, config)
        if args.output:
            save_image(image, args.output)
        else:
            write_ppm(image, sys.stdout)
    except (OSError, ValueError) as e:
        logger.debug("Render failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    ti.init(arch=_ARCHS[args.arch], log_level=ti.DEBUG if args.verbose else ti.WARN)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
