"""Tests for the integrator module.

Tests cover:
- Colour-producing materials seen directly
- The miss colour for scenes without a background
- The bounce budget for scattering materials
- Deterministic mirror and glass paths
- The background gradient over a whole image
- Per-pixel sample averaging and its variance
- Render target management and argument validation

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run.
"""

import numpy as np
import pytest
import taichi as ti

SKY_AT_HORIZON = (0.75, 0.85, 1.0)


class TestDirectColour:
    """Rays ending on colour-producing materials."""

    def test_solid_colour_sphere_is_exact(self):
        """A solid-colour sphere returns exactly its colour."""
        from rtweekend.core.integrator import trace_ray
        from rtweekend.scene.manager import SceneManager

        scene = SceneManager()
        mat = scene.add_solid_colour_material((0.25, 0.5, 0.75))
        scene.add_sphere((0, 0, -1), 0.5, mat)

        assert trace_ray((0, 0, 0), (0, 0, -1)) == (0.25, 0.5, 0.75)

    def test_solid_colour_pixel_average_is_exact(self):
        """Averaging identical samples does not perturb the colour."""
        from rtweekend.camera.lens import CameraConfig
        from rtweekend.core.integrator import render_pixel
        from rtweekend.scene.manager import SceneManager

        scene = SceneManager()
        mat = scene.add_solid_colour_material((0.25, 0.5, 0.75))
        scene.add_sphere((0, 0, -1), 0.5, mat)
        scene.set_camera(CameraConfig.orthogonal((0, 0, 0), 1.0, 32, 18))

        assert render_pixel(16, 9, samples=16) == (0.25, 0.5, 0.75)

    def test_solid_colour_is_unaffected_by_bounce_budget(self):
        """Colour-producing materials are visible with max_bounces = 0."""
        from rtweekend.core.integrator import trace_ray
        from rtweekend.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_background(scene.add_solid_colour_material((2.0, 0.0, 0.5)))

        assert trace_ray((0, 0, 0), (1, 0, 0), max_bounces=0) == (2.0, 0.0, 0.5)

    def test_normal_space_gradient(self):
        """The debug material shows the hit normal."""
        from rtweekend.core.integrator import trace_ray
        from rtweekend.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_sphere((0, 0, -1), 0.5, scene.add_normal_space_gradient_material())

        assert trace_ray((0, 0, 0), (0, 0, -1)) == pytest.approx((0.5, 0.5, 1.0))

    def test_sky_background(self):
        """An escaping horizontal ray sees the middle of the sky gradient."""
        from rtweekend.core.integrator import trace_ray
        from rtweekend.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_sky_background()

        assert trace_ray((0, 0, 0), (0, 0, -1)) == pytest.approx(SKY_AT_HORIZON)

    def test_miss_is_magenta(self):
        """Without a background, an escaping ray returns magenta."""
        from rtweekend.core.integrator import trace_ray
        from rtweekend.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_sphere((0, 0, -1), 0.5, (0.5, 0.5, 0.5))

        assert trace_ray((0, 0, 0), (0, 1, 0)) == (1.0, 0.0, 1.0)

    def test_tie_goes_to_first_geometry(self):
        """Coincident spheres render with the earlier sphere's material."""
        from rtweekend.core.integrator import trace_ray
        from rtweekend.scene.manager import SceneManager

        scene = SceneManager()
        red = scene.add_solid_colour_material((1.0, 0.0, 0.0))
        green = scene.add_solid_colour_material((0.0, 1.0, 0.0))
        scene.add_sphere((0, 0, -1), 0.5, red)
        scene.add_sphere((0, 0, -1), 0.5, green)

        assert trace_ray((0, 0, 0), (0, 0, -1)) == (1.0, 0.0, 0.0)


class TestBounceBudget:
    """Tests for max_bounces."""

    @pytest.mark.parametrize("kind", ["lambertian", "metal", "dielectric"])
    def test_zero_bounces_gives_black(self, kind):
        """Scattering materials return black when no bounce is allowed."""
        from rtweekend.core.integrator import trace_ray
        from rtweekend.scene.manager import SceneManager

        scene = SceneManager()
        if kind == "lambertian":
            scene.add_lambertian_sphere((0, 0, -1), 0.5, (0.8, 0.8, 0.8), 1.0)
        elif kind == "metal":
            scene.add_metal_sphere((0, 0, -1), 0.5, (0.8, 0.8, 0.8), 0.0)
        else:
            scene.add_dielectric_sphere((0, 0, -1), 0.5, 1.5)
        scene.add_sky_background()

        assert trace_ray((0, 0, 0), (0, 0, -1), max_bounces=0) == (0.0, 0.0, 0.0)

    def test_mirror_reflects_sky_with_one_bounce(self):
        """A head-on mirror sends the ray back to the sky, tinted."""
        from rtweekend.core.integrator import trace_ray
        from rtweekend.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_metal_sphere((0, 0, -1), 0.5, (0.8, 0.6, 0.2), 0.0)
        scene.add_sky_background()

        colour = trace_ray((0, 0, 0), (0, 0, -1), max_bounces=1)
        expected = tuple(t * s for t, s in zip((0.8, 0.6, 0.2), SKY_AT_HORIZON))
        assert colour == pytest.approx(expected)

    def test_glass_needs_two_bounces(self):
        """Passing through a glass sphere takes two scattering events."""
        from rtweekend.core.integrator import trace_ray
        from rtweekend.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_dielectric_sphere((0, 0, -2), 0.5, 1.5)
        scene.add_sky_background()

        assert trace_ray((0, 0, 0), (0, 0, -1), max_bounces=1) == (0.0, 0.0, 0.0)
        assert trace_ray((0, 0, 0), (0, 0, -1), max_bounces=2) == pytest.approx(SKY_AT_HORIZON)

    def test_negative_bounces_rejected(self):
        """A negative budget is an argument error."""
        from rtweekend.core.integrator import trace_ray

        with pytest.raises(ValueError, match="max_bounces"):
            trace_ray((0, 0, 0), (0, 0, -1), max_bounces=-1)

    def test_diffuse_colour_is_bounded_by_albedo(self):
        """Under a white sky, a diffuse surface never exceeds colour * albedo."""
        from rtweekend.core.integrator import trace_ray
        from rtweekend.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_sphere((0, 0, -1), 0.5, (1.0, 0.5, 0.25), 0.5)
        scene.add_background(scene.add_solid_colour_material((1.0, 1.0, 1.0)))

        for _ in range(20):
            r, g, b = trace_ray((0, 0, 0), (0, 0, -1), max_bounces=10)
            assert 0.0 <= r <= 0.5 + 1e-12
            assert 0.0 <= g <= 0.25 + 1e-12
            assert 0.0 <= b <= 0.125 + 1e-12


class TestBackgroundGradient:
    """A background-only scene seen through the orthogonal camera."""

    WIDTH = 32
    HEIGHT = 18

    def _render_centres(self):
        """Colour of each pixel centre, shape (height, width, 3)."""
        from rtweekend.camera.lens import CameraConfig, screen_to_world
        from rtweekend.core.integrator import ray_colour
        from rtweekend.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_sky_background()
        scene.set_camera(CameraConfig.orthogonal((0, 0, 0), 1.0, self.WIDTH, self.HEIGHT))

        image = ti.Vector.field(3, dtype=ti.f64, shape=(self.WIDTH, self.HEIGHT))

        @ti.kernel
        def test_kernel():
            for x, y in image:
                ray = screen_to_world(x, y)
                image[x, y] = ray_colour(ray.origin, ray.direction, 10)

        test_kernel()
        return np.transpose(image.to_numpy(), (1, 0, 2))

    def test_gradient_runs_from_blue_to_white(self):
        """Rows get whiter from the top of the image to the bottom."""
        image = self._render_centres()
        red = image[:, :, 0]

        # Red falls from 1 (white) to 0.5 (sky blue) as rays turn upward
        assert np.all(np.diff(red, axis=0) > 0.0)
        assert np.all(red[0] < 0.75)
        assert np.all(red[-1] > 0.75)
        assert np.allclose(image[:, :, 2], 1.0)

    def test_gradient_is_left_right_symmetric(self):
        """Mirrored columns see the same colour."""
        image = self._render_centres()
        assert np.allclose(image, image[:, ::-1, :], atol=1e-12)

    def test_rendered_image_matches_gradient(self):
        """render_image converges on the centre-ray colours, sample noise aside."""
        from rtweekend.core.integrator import get_image_numpy, render_image, setup_render_target

        expected = self._render_centres()
        setup_render_target(self.WIDTH, self.HEIGHT)
        render_image(samples=8)

        image = get_image_numpy()
        assert image.shape == (self.HEIGHT, self.WIDTH, 3)
        # Jitter moves each sample at most half a pixel
        assert np.allclose(image, expected, atol=0.02)


class TestSampling:
    """Tests for per-pixel averaging."""

    def test_variance_falls_with_more_samples(self):
        """Averaging 16 samples cuts the variance well below a single sample's."""
        from rtweekend.camera.lens import CameraConfig
        from rtweekend.core.integrator import render_pixel
        from rtweekend.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_sphere((0, 0, -1), 0.5, (0.8, 0.8, 0.8), 0.5)
        scene.add_sky_background()
        scene.set_camera(CameraConfig.orthogonal((0, 0, 0), 1.0, 32, 18))

        single = np.array([render_pixel(16, 9, samples=1)[0] for _ in range(200)])
        averaged = np.array([render_pixel(16, 9, samples=16)[0] for _ in range(200)])

        assert single.var() > 0.0
        assert averaged.var() < single.var() / 4.0
        # Both estimate the same mean
        assert abs(averaged.mean() - single.mean()) < 0.05

    def test_render_pixel_requires_camera(self):
        """render_pixel needs a configured camera."""
        from rtweekend.core.integrator import render_pixel

        with pytest.raises(RuntimeError, match="Camera not set up"):
            render_pixel(0, 0)

    def test_render_pixel_rejects_zero_samples(self):
        """At least one sample is required."""
        from rtweekend.camera.lens import CameraConfig
        from rtweekend.core.integrator import render_pixel
        from rtweekend.scene.manager import SceneManager

        scene = SceneManager()
        scene.set_camera(CameraConfig.orthogonal((0, 0, 0), 1.0, 8, 8))

        with pytest.raises(ValueError, match="samples"):
            render_pixel(0, 0, samples=0)


class TestRenderTarget:
    """Tests for the image buffer and render_image."""

    def _solid_scene(self, width=8, height=4):
        from rtweekend.camera.lens import CameraConfig
        from rtweekend.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_background(scene.add_solid_colour_material((0.25, 0.5, 1.0)))
        scene.set_camera(CameraConfig.orthogonal((0, 0, 0), 1.0, width, height))
        return scene

    def test_setup_render_target(self):
        """The target starts empty with the requested size."""
        from rtweekend.core.integrator import (
            get_image_dimensions,
            get_image_numpy,
            get_total_samples,
            setup_render_target,
        )

        setup_render_target(8, 4)
        assert get_image_dimensions() == (8, 4)
        assert get_total_samples() == 0
        assert np.all(get_image_numpy() == 0.0)

    @pytest.mark.parametrize("size", [(0, 4), (8, -1), (4000, 10), (10, 2000)])
    def test_invalid_target_size(self, size):
        """Sizes must be positive and within the preallocated buffer."""
        from rtweekend.core.integrator import setup_render_target

        with pytest.raises(ValueError):
            setup_render_target(*size)

    def test_running_average_accumulates(self):
        """Successive batches merge into a running average."""
        from rtweekend.core.integrator import (
            get_image_numpy,
            get_total_samples,
            render_image,
            setup_render_target,
        )

        self._solid_scene()
        setup_render_target(8, 4)
        render_image(samples=3)
        render_image(samples=5)

        assert get_total_samples() == 8
        image = get_image_numpy()
        assert np.allclose(image, np.array([0.25, 0.5, 1.0]))

    def test_clear_render_target(self):
        """Clearing zeroes the buffer and the sample count."""
        from rtweekend.core.integrator import (
            clear_render_target,
            get_image_numpy,
            get_total_samples,
            render_image,
            setup_render_target,
        )

        self._solid_scene()
        setup_render_target(8, 4)
        render_image(samples=2)
        clear_render_target()

        assert get_total_samples() == 0
        assert np.all(get_image_numpy() == 0.0)

    def test_render_without_target(self):
        """render_image needs a render target."""
        from rtweekend.core.integrator import get_total_samples, render_image

        self._solid_scene()
        with pytest.raises(RuntimeError, match="Render target not set up"):
            render_image()
        with pytest.raises(RuntimeError, match="Render target not set up"):
            get_total_samples()

    def test_render_without_camera(self):
        """render_image needs a camera."""
        from rtweekend.core.integrator import render_image, setup_render_target

        setup_render_target(8, 4)
        with pytest.raises(RuntimeError, match="Camera not set up"):
            render_image()

    def test_camera_size_mismatch(self):
        """The camera must be set up for the target's size."""
        from rtweekend.core.integrator import render_image, setup_render_target

        self._solid_scene(width=16, height=8)
        setup_render_target(8, 4)
        with pytest.raises(RuntimeError, match="16x8"):
            render_image()

    def test_invalid_render_arguments(self):
        """samples < 1 and max_bounces < 0 are rejected."""
        from rtweekend.core.integrator import render_image, setup_render_target

        self._solid_scene()
        setup_render_target(8, 4)
        with pytest.raises(ValueError, match="samples"):
            render_image(samples=0)
        with pytest.raises(ValueError, match="max_bounces"):
            render_image(samples=1, max_bounces=-2)
