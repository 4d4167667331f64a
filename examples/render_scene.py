#!/usr/bin/env python3
"""Render a scene in every shading mode.

This script renders a scene file (or the built-in cube scene) once per
shading mode and saves the images side by side in an output directory, which
makes it easy to compare flat, Gouraud, Phong and wireframe output.

Usage:
    python -m examples.render_scene [options]

Options:
    --scene PATH        Scene file (default: built-in cube scene)
    --width WIDTH       Image width in pixels (default: 400)
    --height HEIGHT     Image height in pixels (default: 400)
    --output-dir DIR    Output directory (default: renders)
    --format {png,ppm}  Image format (default: png)
    --quiet             Suppress progress output

Example:
    python -m examples.render_scene --scene examples/scenes/cube.txt --width 256 --height 256
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a scene in every shading mode.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--scene",
        type=str,
        default=None,
        help="Scene file (default: built-in cube scene)",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=400,
        help="Image width in pixels (default: 400)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=400,
        help="Image height in pixels (default: 400)",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default="renders",
        help="Output directory (default: renders)",
    )
    parser.add_argument(
        "--format",
        choices=["png", "ppm"],
        default="png",
        help="Image format (default: png)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args()


def render_all_modes(
    scene_path: str | None = None,
    width: int = 400,
    height: int = 400,
    output_dir: str = "renders",
    image_format: str = "png",
    quiet: bool = False,
) -> list[Path]:
    """Render a scene once per shading mode and save the images.

    Args:
        scene_path: Scene file to load; None renders the built-in cube scene.
        width: Image width in pixels.
        height: Image height in pixels.
        output_dir: Directory the images are written to.
        image_format: "png" or "ppm".
        quiet: If True, suppress progress output.

    Returns:
        Paths of the saved images, in shading-mode order.
    """
    # Lazy imports to allow Taichi initialization first
    from softraster.config import RenderConfig, ShadingMode
    from softraster.core.pipeline import render_scene
    from softraster.output.export import save_image
    from softraster.scene.loader import load_scene
    from softraster.scene.presets import create_cube_scene

    if scene_path is None:
        scene = create_cube_scene()
        stem = "cube"
    else:
        scene = load_scene(scene_path)
        stem = Path(scene_path).stem

    if not quiet:
        print(f"Loaded {stem}: {len(scene.objects)} objects, {len(scene.lights)} lights")

    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    saved = []
    for mode in ShadingMode:
        start_time = time.time()
        image = render_scene(scene, RenderConfig(width, height, mode))
        output_file = out_dir / f"{stem}_{mode.name.lower()}.{image_format}"
        save_image(image, output_file)
        saved.append(output_file)

        if not quiet:
            elapsed = time.time() - start_time
            print(f"  {mode.name.lower():<10} {elapsed:6.2f}s  -> {output_file}")

    return saved


def main() -> int:
    """Main entry point."""
    args = parse_args()
    logging.basicConfig(level=logging.WARNING)

    # Barycentric edge functions use f64, which the CPU backend always supports
    ti.init(arch=ti.cpu)

    try:
        render_all_modes(
            scene_path=args.scene,
            width=args.width,
            height=args.height,
            output_dir=args.output_dir,
            image_format=args.format,
            quiet=args.quiet,
        )
        return 0
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
