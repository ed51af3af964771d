"""Tests for the rtweekend command line.

Argument parsing runs in-process. Commands that initialize Taichi run in a
subprocess, since re-initializing Taichi inside the test session would
invalidate the fields the other tests rely on.
"""

import json
import os
import subprocess
import sys
from pathlib import Path

import numpy as np
import pytest

SRC_DIR = Path(__file__).resolve().parent.parent / "src"


def run_cli(*args, timeout=600):
    """Run `python -m rtweekend` with the given arguments."""
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(
        p for p in (str(SRC_DIR), env.get("PYTHONPATH")) if p
    )
    return subprocess.run(
        [sys.executable, "-m", "rtweekend", *map(str, args)],
        capture_output=True,
        text=True,
        env=env,
        timeout=timeout,
    )


class TestParseArgs:
    """Tests for argument parsing."""

    def test_render_defaults(self):
        """The render command has the documented defaults."""
        from rtweekend.cli import parse_args

        args = parse_args(["render", "--stock", "three-spheres"])

        assert args.command == "render"
        assert args.scene is None
        assert args.stock == "three-spheres"
        assert args.output == "./output.png"
        assert args.width is None
        assert args.height is None
        assert args.samples == 500
        assert args.bounces is None
        assert args.arch == "cpu"
        assert args.gamma == 1.0
        assert args.tone_map == "none"
        assert args.exposure == 1.0
        assert args.batch_size == 10
        assert args.quiet is False

    def test_render_scene_file(self):
        """A scene file path is accepted as a positional argument."""
        from rtweekend.cli import parse_args

        args = parse_args(
            ["render", "scene.json", "--width", "64", "--height", "32", "--seed", "3"]
        )

        assert args.scene == "scene.json"
        assert args.stock is None
        assert (args.width, args.height, args.seed) == (64, 32, 3)

    def test_create_scene_defaults(self):
        """create-scene writes the random-spheres scene by default."""
        from rtweekend.cli import parse_args

        args = parse_args(["create-scene"])

        assert args.command == "create-scene"
        assert args.output == "./scene.json"
        assert args.scene == "random-spheres"
        assert args.seed is None

    @pytest.mark.parametrize(
        "argv",
        [
            ["render"],
            ["render", "scene.json", "--stock", "three-spheres"],
            ["render", "--stock", "teapot"],
            ["render", "--stock", "three-spheres", "--arch", "metal"],
            ["render", "--stock", "three-spheres", "--tone-map", "filmic"],
            ["render", "--stock", "three-spheres", "--exposure", "0"],
            [],
        ],
    )
    def test_invalid_arguments(self, argv, capsys):
        """Bad command lines exit with status 2."""
        from rtweekend.cli import parse_args

        with pytest.raises(SystemExit) as excinfo:
            parse_args(argv)
        assert excinfo.value.code == 2

    def test_version(self, capsys):
        """--version prints the package version."""
        from rtweekend import __version__
        from rtweekend.cli import parse_args

        with pytest.raises(SystemExit) as excinfo:
            parse_args(["--version"])
        assert excinfo.value.code == 0
        assert __version__ in capsys.readouterr().out


class TestCommands:
    """End-to-end runs of the rtweekend command."""

    def test_render_stock_scene(self, tmp_path):
        """Rendering a stock scene writes a PNG of the requested size."""
        from PIL import Image

        output = tmp_path / "three.png"
        result = run_cli(
            "render", "--stock", "three-spheres",
            "--width", 24, "--height", 12, "--samples", 2, "--bounces", 3,
            "--seed", 1, "--threads", 1, "-o", output,
        )

        assert result.returncode == 0, result.stderr
        assert "Saved to" in result.stdout
        with Image.open(output) as png:
            assert png.size == (24, 12)
            assert png.mode == "RGB"

    def test_create_and_render_scene_file(self, tmp_path):
        """create-scene output can be rendered, with the size overridden."""
        from PIL import Image

        scene_file = tmp_path / "scene.json"
        result = run_cli("create-scene", "--scene", "random-spheres", "--seed", 4, "-o", scene_file)
        assert result.returncode == 0, result.stderr

        data = json.loads(scene_file.read_text())
        assert data["camera"]["look_from"] == [13.0, 2.0, 3.0]
        assert data["geometries"][-1]["shape"] == "background"

        output = tmp_path / "spheres.png"
        result = run_cli(
            "render", scene_file, "--width", 16, "--height", 10,
            "--samples", 1, "--bounces", 2, "--threads", 1, "--quiet", "-o", output,
        )
        assert result.returncode == 0, result.stderr
        assert "Saved to" not in result.stdout
        with Image.open(output) as png:
            assert png.size == (16, 10)

    def test_scene_without_background_warns(self, tmp_path):
        """Rendering a scene with no background prints a warning."""
        scene_file = tmp_path / "bare.json"
        scene_file.write_text(
            json.dumps(
                {
                    "materials": [{"type": "solid_colour", "colour": [1, 1, 1]}],
                    "geometries": [
                        {"shape": "sphere", "centre": [0, 0, -1], "radius": 0.5, "material": 0}
                    ],
                }
            )
        )
        output = tmp_path / "bare.png"
        result = run_cli(
            "render", scene_file, "--width", 8, "--height", 8,
            "--samples", 1, "--quiet", "-o", output,
        )

        assert result.returncode == 0, result.stderr
        assert "no background" in result.stderr
        assert output.exists()

    def test_tone_map_applied_before_quantization(self, tmp_path):
        """--tone-map reinhard maps a white background to 1 / (1 + 1)."""
        from rtweekend.output.export import load_png

        scene_file = tmp_path / "white.json"
        scene_file.write_text(
            json.dumps(
                {
                    "materials": [{"type": "solid_colour", "colour": [1, 1, 1]}],
                    "geometries": [{"shape": "background", "material": 0}],
                }
            )
        )
        plain = tmp_path / "plain.png"
        mapped = tmp_path / "mapped.png"
        for output, extra in ((plain, ()), (mapped, ("--tone-map", "reinhard"))):
            result = run_cli(
                "render", scene_file, "--width", 6, "--height", 4,
                "--samples", 1, "--quiet", "-o", output, *extra,
            )
            assert result.returncode == 0, result.stderr

        assert np.all(load_png(plain) == 255)
        assert np.all(load_png(mapped) == 128)

    def test_missing_scene_file_fails(self, tmp_path):
        """A missing scene file is reported and exits with status 1."""
        result = run_cli(
            "render", tmp_path / "missing.json", "--samples", 1, "--quiet",
            "-o", tmp_path / "out.png",
        )

        assert result.returncode == 1
        assert "Error:" in result.stderr

    def test_seeded_single_thread_render_is_reproducible(self, tmp_path):
        """Same seed, one thread: identical images."""
        from rtweekend.output.export import load_png

        outputs = []
        for name in ("a.png", "b.png"):
            output = tmp_path / name
            result = run_cli(
                "render", "--stock", "random-spheres",
                "--width", 20, "--height", 12, "--samples", 3, "--bounces", 4,
                "--seed", 9, "--threads", 1, "--quiet", "-o", output,
            )
            assert result.returncode == 0, result.stderr
            outputs.append(load_png(output))

        assert np.array_equal(outputs[0], outputs[1])
