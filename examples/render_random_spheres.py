#!/usr/bin/env python3
"""Render the random-spheres scene.

This script demonstrates end-to-end rendering through the Python API rather
than the ``rtweekend`` command: it builds the scene, sets up the thin-lens
camera and refines the image progressively, printing progress from the
renderer's generator interface.

Usage:
    python examples/render_random_spheres.py [options]

Options:
    --width WIDTH       Image width in pixels (default: 400)
    --height HEIGHT     Image height in pixels (default: 225)
    --samples SAMPLES   Number of samples per pixel (default: 100)
    --bounces BOUNCES   Scattering events per ray (default: 10)
    --seed SEED         Layout and sampling seed (default: 42)
    --gamma GAMMA       Gamma applied before quantization (default: 2.2)
    --output OUTPUT     Output file path (default: random_spheres.png)
    --batch-size SIZE   Samples per progress update (default: 10)
    --quiet             Suppress progress output

Example:
    python examples/render_random_spheres.py --width 320 --height 180 --samples 50
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

from rtweekend.runtime import init_taichi


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the random-spheres scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=400, help="Image width (default: 400)")
    parser.add_argument("--height", type=int, default=225, help="Image height (default: 225)")
    parser.add_argument(
        "--samples",
        type=int,
        default=100,
        help="Number of samples per pixel (default: 100)",
    )
    parser.add_argument(
        "--bounces",
        type=int,
        default=10,
        help="Scattering events per ray (default: 10)",
    )
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    parser.add_argument(
        "--gamma",
        type=float,
        default=2.2,
        help="Gamma correction before quantization (default: 2.2)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="random_spheres.png",
        help="Output file path (default: random_spheres.png)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Samples per progress update (default: 10)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args()


def render_random_spheres(
    width: int = 400,
    height: int = 225,
    num_samples: int = 100,
    max_bounces: int = 10,
    seed: int = 42,
    gamma: float = 2.2,
    output_path: str = "random_spheres.png",
    batch_size: int = 10,
    quiet: bool = False,
) -> Path:
    """Render the random-spheres scene and save it to a PNG file.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from rtweekend.core.progressive import ProgressiveRenderer
    from rtweekend.output.export import save_png
    from rtweekend.scene.manager import SceneManager
    from rtweekend.scene.stock import create_random_spheres_scene, random_spheres_camera

    if not quiet:
        print(f"Creating random-spheres scene ({width}x{height}, seed {seed})...")

    scene = create_random_spheres_scene(SceneManager(), seed=seed)
    scene.set_camera(random_spheres_camera(width, height))

    if not quiet:
        print(f"  {scene.get_sphere_count()} spheres, {scene.get_material_count()} materials")

    renderer = ProgressiveRenderer(width, height, max_bounces)

    start_time = time.time()
    for current, target in renderer.render_progressive(num_samples, batch_size):
        if not quiet:
            elapsed = time.time() - start_time
            samples_per_sec = current / elapsed if elapsed > 0 else 0
            print(
                f"\r  Progress: {current}/{target} samples - {samples_per_sec:.1f} spp/s",
                end="",
                flush=True,
            )

    if not quiet:
        print()  # Newline after progress

    output_file = Path(output_path)
    save_png(renderer, output_file, gamma=gamma)

    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {time.time() - start_time:.2f}s")

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    arch = init_taichi("cpu", seed=args.seed)
    if not args.quiet:
        print(f"Using {arch.upper()} backend")

    try:
        render_random_spheres(
            width=args.width,
            height=args.height,
            num_samples=args.samples,
            max_bounces=args.bounces,
            seed=args.seed,
            gamma=args.gamma,
            output_path=args.output,
            batch_size=args.batch_size,
            quiet=args.quiet,
        )
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
