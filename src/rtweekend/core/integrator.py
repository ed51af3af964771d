"""Light transport integrator: ray colour, per-pixel and whole-image rendering.

This module implements the rendering kernels. A camera ray is traced through
the scene, bouncing off surfaces according to their material until it reaches
a colour-producing material (gradient or solid colour), is absorbed, escapes
the scene, or runs out of bounces.

The bounce chain is evaluated as a loop that carries the colour throughput
(the product of the attenuations seen so far):
    - A colour-producing material ends the path with throughput * colour.
    - A miss (no geometry and no Background) ends it with throughput * magenta.
    - An absorbed ray or an exhausted bounce budget ends it with black.

Key features:
    - Material dispatch over the closed MaterialType set
    - Bounded path length (max_bounces scattering events)
    - Per-pixel sample averaging with jittered camera rays
    - Progressive accumulation into a preallocated image buffer

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from rtweekend.core.integrator import render_image, setup_render_target
    >>> from rtweekend.scene.stock import create_three_spheres_scene, three_spheres_camera
    >>> from rtweekend.scene.manager import SceneManager
    >>>
    >>> scene = SceneManager()
    >>> create_three_spheres_scene(scene)
    >>> scene.set_camera(three_spheres_camera(400, 225))
    >>> setup_render_target(400, 225)
    >>> render_image(samples=100)
"""

import numpy as np
import taichi as ti
import taichi.math as tm

from rtweekend.camera.lens import (
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    get_camera_image_size,
    is_camera_ready,
    screen_to_world_sampled,
)
from rtweekend.core.colour import BLACK, MISS_COLOUR, WHITE
from rtweekend.core.ray import vec3
from rtweekend.materials.dielectric import scatter_dielectric_by_id
from rtweekend.materials.gradient import normal_space_gradient, screen_space_gradient
from rtweekend.materials.lambertian import scatter_lambertian_by_id
from rtweekend.materials.metal import scatter_metal_by_id
from rtweekend.materials.solid import get_solid_colour
from rtweekend.scene.intersection import T_MIN, intersect_scene
from rtweekend.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

# =============================================================================
# Rendering Constants
# =============================================================================

# Scattering events allowed per camera ray
DEFAULT_MAX_BOUNCES = 10

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Running-average colour per pixel, indexed [x, y] with y = 0 the top row
_colour_buffer = ti.Vector.field(3, dtype=ti.f64, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Sample count per pixel (preallocated to max size)
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers.
    The buffers are preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT
    to avoid Taichi kernel recompilation issues.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _colour_buffer.fill(0.0)
    _sample_count.fill(0)


def release_render_target() -> None:
    """Mark the render target as not set up."""
    _render_target_initialized[None] = 0


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def _check_camera_ready() -> None:
    """Check that a camera has been set up and raise if not."""
    if not is_camera_ready():
        raise RuntimeError("Camera not set up. Call setup_camera() first.")


def _check_render_args(samples: int, max_bounces: int) -> None:
    if samples < 1:
        raise ValueError(f"samples must be at least 1, got {samples}")
    if max_bounces < 0:
        raise ValueError(f"max_bounces must be non-negative, got {max_bounces}")


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(
    mat_type: ti.i32,
    type_index: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """Dispatch to the appropriate material scattering function.

    Args:
        mat_type: The MaterialType of the hit surface.
        type_index: The index into the type-specific material registry.
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal, facing against the incoming ray.
        front_face: 1 if hit front face, 0 if back face.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter). Types that
        do not scatter report did_scatter = 0.
    """
    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered_direction, attenuation, did_scatter = scatter_lambertian_by_id(
            type_index, normal
        )

    elif mat_type == int(MaterialType.METAL):
        scattered_direction, attenuation, did_scatter = scatter_metal_by_id(
            type_index, incident_direction, normal
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered_direction, attenuation, did_scatter = scatter_dielectric_by_id(
            type_index, incident_direction, normal, front_face
        )

    return scattered_direction, attenuation, did_scatter


# =============================================================================
# Integrator Core
# =============================================================================


@ti.func
def ray_colour(origin: vec3, direction: vec3, max_bounces: ti.i32) -> vec3:
    """Compute the colour seen along a ray.

    Each loop iteration resolves one hit. A ray may scatter at most
    max_bounces times; a path still bouncing after that contributes black,
    so max_bounces = 0 gives black for every scattering material while
    colour-producing materials are still seen directly.

    Args:
        origin: The ray origin.
        direction: The ray direction (any non-zero length).
        max_bounces: Scattering events allowed along the path.

    Returns:
        The linear RGB colour for the ray. Not clamped.
    """
    ray_origin = origin
    ray_direction = direction
    colour = BLACK
    throughput = WHITE
    active = 1

    for _ in range(max_bounces + 1):
        if active == 1:
            rec = intersect_scene(ray_origin, ray_direction, T_MIN, tm.inf)

            if rec.hit == 0:
                colour = throughput * MISS_COLOUR
                active = 0
            else:
                mat_type = get_material_type(rec.material_id)
                type_index = get_material_type_index(rec.material_id)

                if mat_type == int(MaterialType.SCREEN_SPACE_GRADIENT):
                    colour = throughput * screen_space_gradient(ray_direction)
                    active = 0
                elif mat_type == int(MaterialType.NORMAL_SPACE_GRADIENT):
                    colour = throughput * normal_space_gradient(rec.normal)
                    active = 0
                elif mat_type == int(MaterialType.SOLID_COLOUR):
                    colour = throughput * get_solid_colour(type_index)
                    active = 0
                else:
                    scattered_direction, attenuation, did_scatter = _scatter_material(
                        mat_type, type_index, ray_direction, rec.normal, rec.front_face
                    )
                    if did_scatter == 0:
                        # Absorbed
                        active = 0
                    else:
                        throughput *= attenuation
                        ray_origin = rec.point
                        ray_direction = scattered_direction

    return colour


@ti.func
def render_pixel_impl(x: ti.i32, y: ti.i32, samples: ti.i32, max_bounces: ti.i32) -> vec3:
    """Average ray_colour over jittered camera rays through pixel (x, y).

    Args:
        x: Pixel column (0 = left).
        y: Pixel row (0 = top).
        samples: Number of rays to average (at least 1).
        max_bounces: Scattering events allowed per ray.

    Returns:
        The mean colour of the samples.
    """
    total = vec3(0.0, 0.0, 0.0)
    for _ in range(samples):
        ray = screen_to_world_sampled(x, y)
        total += ray_colour(ray.origin, ray.direction, max_bounces)
    return total / ti.cast(samples, ti.f64)


# =============================================================================
# Rendering Kernels
# =============================================================================

# Single-result outputs for the Python-callable probes
_pixel_result = ti.Vector.field(3, dtype=ti.f64, shape=())
_ray_result = ti.Vector.field(3, dtype=ti.f64, shape=())


@ti.kernel
def _render_samples(width: ti.i32, height: ti.i32, samples: ti.i32, max_bounces: ti.i32):
    """Render a batch of samples per pixel and merge into the running average.

    Every pixel reads and writes only its own buffer cell.
    """
    for x, y in ti.ndrange(width, height):
        batch_mean = render_pixel_impl(x, y, samples, max_bounces)

        n_prev = ti.cast(_sample_count[x, y], ti.f64)
        n_new = ti.cast(samples, ti.f64)
        _colour_buffer[x, y] = (_colour_buffer[x, y] * n_prev + batch_mean * n_new) / (
            n_prev + n_new
        )
        _sample_count[x, y] += samples


@ti.kernel
def _render_single_pixel(x: ti.i32, y: ti.i32, samples: ti.i32, max_bounces: ti.i32):
    """Render one pixel into _pixel_result.

    The outer single-iteration loop keeps the sample loop serial.
    """
    for _ in range(1):
        _pixel_result[None] = render_pixel_impl(x, y, samples, max_bounces)


@ti.kernel
def _trace_single_ray(origin: vec3, direction: vec3, max_bounces: ti.i32):
    """Trace one ray into _ray_result."""
    for _ in range(1):
        _ray_result[None] = ray_colour(origin, direction, max_bounces)


# =============================================================================
# Public Rendering API
# =============================================================================


def render_pixel(
    x: int,
    y: int,
    samples: int = 1,
    max_bounces: int = DEFAULT_MAX_BOUNCES,
) -> tuple[float, float, float]:
    """Render a single pixel.

    This is a Python-callable function for testing and debugging. For
    production rendering, use render_image() which processes all pixels in
    parallel.

    Args:
        x: Pixel column (0 = left).
        y: Pixel row (0 = top).
        samples: Number of jittered rays to average.
        max_bounces: Scattering events allowed per ray.

    Returns:
        Tuple of (R, G, B) colour values.

    Raises:
        RuntimeError: If the camera has not been set up.
        ValueError: If samples < 1 or max_bounces < 0.
    """
    _check_camera_ready()
    _check_render_args(samples, max_bounces)

    _render_single_pixel(x, y, samples, max_bounces)
    colour = _pixel_result[None]
    return (float(colour[0]), float(colour[1]), float(colour[2]))


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_bounces: int = DEFAULT_MAX_BOUNCES,
) -> tuple[float, float, float]:
    """Compute ray_colour for an arbitrary ray from Python.

    Args:
        origin: The ray origin.
        direction: The ray direction (any non-zero length).
        max_bounces: Scattering events allowed along the path.

    Returns:
        Tuple of (R, G, B) colour values.

    Raises:
        ValueError: If max_bounces < 0.
    """
    _check_render_args(1, max_bounces)

    _trace_single_ray(vec3(*origin), vec3(*direction), max_bounces)
    colour = _ray_result[None]
    return (float(colour[0]), float(colour[1]), float(colour[2]))


def render_image(samples: int = 1, max_bounces: int = DEFAULT_MAX_BOUNCES) -> None:
    """Render the image with the specified number of samples per pixel.

    Merges the new samples into the running average held in the colour
    buffer. Can be called multiple times to add more samples for convergence.

    Args:
        samples: Number of samples to render per pixel in this call.
        max_bounces: Scattering events allowed per ray.

    Raises:
        RuntimeError: If the render target or camera has not been set up, or
            the camera was set up for a different image size.
        ValueError: If samples < 1 or max_bounces < 0.
    """
    _check_render_target_initialized()
    _check_camera_ready()
    _check_render_args(samples, max_bounces)

    width, height = get_image_dimensions()
    if get_camera_image_size() != (width, height):
        cam_w, cam_h = get_camera_image_size()
        raise RuntimeError(
            f"Camera is set up for {cam_w}x{cam_h} but the render target is {width}x{height}"
        )

    _render_samples(width, height, samples, max_bounces)


def get_total_samples() -> int:
    """Get the total number of samples rendered so far.

    Returns the sample count from pixel (0, 0), which is the same for all
    pixels after calling render_image().

    Returns:
        The number of samples per pixel.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    return int(_sample_count[0, 0])


def get_image_numpy() -> np.ndarray:
    """Get the rendered image as a NumPy array.

    The array shape is (height, width, 3) with dtype float64, row 0 at the top.
    Values are the raw linear averages: not clamped and not gamma corrected.

    Returns:
        NumPy array of shape (height, width, 3).

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    full_image = _colour_buffer.to_numpy()
    image = full_image[:width, :height, :]

    # Transpose from (width, height, 3) to (height, width, 3) for standard image format
    return np.ascontiguousarray(np.transpose(image, (1, 0, 2)))
