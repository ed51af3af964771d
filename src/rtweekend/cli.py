"""Command-line interface.

Usage:
    rtweekend render [SCENE.json] [options]
    rtweekend create-scene [options]

render options:
    --stock NAME        Render a stock scene instead of a file
                        (three-spheres or random-spheres)
    -o, --output PATH   Output PNG path (default: ./output.png)
    --width WIDTH       Image width in pixels (default: scene camera or 400)
    --height HEIGHT     Image height in pixels (default: scene camera or 225)
    --samples SAMPLES   Rays per pixel (default: 500)
    --bounces BOUNCES   Scattering events per ray (default: 10)
    --seed SEED         Random seed for sampling and stock layouts
    --arch ARCH         Taichi backend (default: cpu)
    --threads THREADS   Maximum CPU threads
    --gamma GAMMA       Gamma applied before quantization (default: 1.0)
    --tone-map METHOD   Tone mapping: none, reinhard or exposure (default: none)
    --exposure VALUE    Exposure for --tone-map exposure (default: 1.0)
    --batch-size SIZE   Samples per progress update (default: 10)
    --quiet             Suppress progress output

create-scene options:
    -o, --output PATH   Output JSON path (default: ./scene.json)
    --scene NAME        Stock scene to write (default: random-spheres)
    --seed SEED         Layout seed

Example:
    rtweekend create-scene -o spheres.json --seed 7
    rtweekend render spheres.json --width 320 --height 180 --samples 50
"""

from __future__ import annotations

import argparse
import dataclasses
import sys
import time
from pathlib import Path

from rtweekend import __version__
from rtweekend.output.encode import TONE_MAP_METHODS
from rtweekend.runtime import ARCH_CHOICES, init_taichi

STOCK_SCENE_NAMES = ("three-spheres", "random-spheres")

DEFAULT_WIDTH = 400
DEFAULT_HEIGHT = 225
DEFAULT_SAMPLES = 500


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the rtweekend command."""
    parser = argparse.ArgumentParser(
        prog="rtweekend",
        description="Render scenes of spheres with a Monte Carlo ray tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    render = subparsers.add_parser("render", help="Render a scene to a PNG file")
    render.add_argument(
        "scene",
        nargs="?",
        default=None,
        help="Path to a JSON scene description",
    )
    render.add_argument(
        "--stock",
        choices=STOCK_SCENE_NAMES,
        default=None,
        help="Render a stock scene instead of a scene file",
    )
    render.add_argument(
        "-o",
        "--output",
        type=str,
        default="./output.png",
        help="Output file path (default: ./output.png)",
    )
    render.add_argument(
        "--width",
        type=int,
        default=None,
        help=f"Image width in pixels (default: scene camera or {DEFAULT_WIDTH})",
    )
    render.add_argument(
        "--height",
        type=int,
        default=None,
        help=f"Image height in pixels (default: scene camera or {DEFAULT_HEIGHT})",
    )
    render.add_argument(
        "--samples",
        type=int,
        default=DEFAULT_SAMPLES,
        help=f"Number of samples per pixel (default: {DEFAULT_SAMPLES})",
    )
    render.add_argument(
        "--bounces",
        type=int,
        default=None,
        help="Scattering events allowed per ray (default: 10)",
    )
    render.add_argument("--seed", type=int, default=None, help="Random seed")
    render.add_argument(
        "--arch",
        choices=ARCH_CHOICES,
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    render.add_argument(
        "--threads",
        type=int,
        default=None,
        help="Maximum number of CPU threads",
    )
    render.add_argument(
        "--gamma",
        type=float,
        default=1.0,
        help="Gamma correction before quantization (default: 1.0)",
    )
    render.add_argument(
        "--tone-map",
        choices=TONE_MAP_METHODS,
        default="none",
        help="Tone mapping applied before gamma (default: none)",
    )
    render.add_argument(
        "--exposure",
        type=float,
        default=1.0,
        help="Exposure for --tone-map exposure (default: 1.0)",
    )
    render.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Samples per progress update (default: 10)",
    )
    render.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )

    create = subparsers.add_parser("create-scene", help="Write a stock scene to JSON")
    create.add_argument(
        "-o",
        "--output",
        type=str,
        default="./scene.json",
        help="Output file path (default: ./scene.json)",
    )
    create.add_argument(
        "--scene",
        choices=STOCK_SCENE_NAMES,
        default="random-spheres",
        help="The stock scene to generate (default: random-spheres)",
    )
    create.add_argument("--seed", type=int, default=None, help="Layout seed")

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Raises:
        SystemExit: On invalid arguments (argparse behaviour).
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "render":
        if args.scene is None and args.stock is None:
            parser.error("render needs a SCENE file or --stock NAME")
        if args.scene is not None and args.stock is not None:
            parser.error("give either a SCENE file or --stock, not both")
        if args.exposure <= 0.0:
            parser.error(f"--exposure must be positive, got {args.exposure}")

    return args


def _load_render_scene(args: argparse.Namespace):
    """Build the SceneManager for the render command, camera included."""
    # Lazy imports to allow Taichi initialization first
    from rtweekend.camera.lens import CameraConfig
    from rtweekend.scene.manager import SceneManager
    from rtweekend.scene.serialization import load_scene
    from rtweekend.scene.stock import build_stock_scene

    scene = SceneManager()

    if args.stock is not None:
        width = args.width if args.width is not None else DEFAULT_WIDTH
        height = args.height if args.height is not None else DEFAULT_HEIGHT
        return build_stock_scene(args.stock, scene, width, height, seed=args.seed)

    load_scene(args.scene, scene)

    if scene.camera is None:
        width = args.width if args.width is not None else DEFAULT_WIDTH
        height = args.height if args.height is not None else DEFAULT_HEIGHT
        scene.set_camera(CameraConfig.orthogonal((0.0, 0.0, 0.0), 1.0, width, height))
    elif args.width is not None or args.height is not None:
        scene.set_camera(
            dataclasses.replace(
                scene.camera,
                image_width=args.width if args.width is not None else scene.camera.image_width,
                image_height=(
                    args.height if args.height is not None else scene.camera.image_height
                ),
            )
        )

    return scene


def run_render(args: argparse.Namespace) -> Path:
    """Render a scene and save it as PNG.

    Args:
        args: Parsed arguments of the render command.

    Returns:
        Path to the saved image file.
    """
    from rtweekend.core.integrator import DEFAULT_MAX_BOUNCES
    from rtweekend.core.progressive import ProgressiveRenderer
    from rtweekend.output.export import save_png

    quiet = args.quiet
    max_bounces = args.bounces if args.bounces is not None else DEFAULT_MAX_BOUNCES

    scene = _load_render_scene(args)
    camera = scene.camera
    if not scene.has_background():
        print(
            "Warning: scene has no background; escaping rays will render magenta",
            file=sys.stderr,
        )

    if not quiet:
        print(
            f"Scene: {scene.get_geometry_count()} geometries, "
            f"{scene.get_material_count()} materials ({camera.image_width}x{camera.image_height})"
        )

    renderer = ProgressiveRenderer(camera.image_width, camera.image_height, max_bounces)

    if not quiet:
        print(f"Rendering {args.samples} samples per pixel...")

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            progress_pct = (current / target) * 100 if target > 0 else 0
            samples_per_sec = current / elapsed if elapsed > 0 else 0
            print(
                f"\r  Progress: {current}/{target} samples "
                f"({progress_pct:.1f}%) - {samples_per_sec:.1f} spp/s",
                end="",
                flush=True,
            )

    renderer.render(
        num_samples=args.samples,
        batch_size=args.batch_size,
        callback=progress_callback,
    )

    if not quiet:
        print()  # Newline after progress

    output_file = Path(args.output)
    save_png(
        renderer,
        output_file,
        tone_map=args.tone_map,
        gamma=args.gamma,
        exposure=args.exposure,
    )

    total_time = time.time() - start_time
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def run_create_scene(args: argparse.Namespace) -> Path:
    """Write a stock scene, camera included, to a JSON file.

    Args:
        args: Parsed arguments of the create-scene command.

    Returns:
        Path to the written scene file.
    """
    from rtweekend.scene.manager import SceneManager
    from rtweekend.scene.serialization import save_scene
    from rtweekend.scene.stock import build_stock_scene

    scene = build_stock_scene(
        args.scene, SceneManager(), DEFAULT_WIDTH, DEFAULT_HEIGHT, seed=args.seed
    )

    output_file = Path(args.output)
    save_scene(scene, output_file)
    print(f"Wrote {args.scene} ({scene.get_geometry_count()} geometries) to {output_file}")
    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    try:
        if args.command == "render":
            arch = init_taichi(args.arch, seed=args.seed, threads=args.threads)
            if not args.quiet:
                print(f"Using {arch.upper()} backend")
            run_render(args)
        else:
            init_taichi("cpu")
            run_create_scene(args)
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
