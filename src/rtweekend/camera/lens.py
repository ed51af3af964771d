"""Thin-lens camera model for primary ray generation.

This module implements a look-at perspective camera with an optional defocus
disc for depth of field. The camera supports:
- Look-at positioning (look_from, look_at, vup)
- Vertical field of view specification
- Arbitrary image sizes (aspect ratio follows the pixel counts)
- Depth of field through a defocus angle and focus distance
- Jittered sampling for anti-aliasing

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from look_at toward look_from (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

Pixel coordinates have their origin at the top-left of the image: x grows to
the right and y grows downward, so row 0 is the top row.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from rtweekend.camera.lens import CameraConfig, setup_camera, screen_to_world
    >>>
    >>> camera = CameraConfig(
    ...     look_from=(0.0, 0.0, 0.0),
    ...     look_at=(0.0, 0.0, -1.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=90.0,
    ...     image_width=400,
    ...     image_height=225,
    ... )
    >>> setup_camera(camera)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray = screen_to_world(200, 112)  # Ray through the image centre
"""

import math
from dataclasses import dataclass

import numpy as np
import taichi as ti

from rtweekend.core.ray import Ray, make_ray, random_in_unit_disc, vec3

# Largest raster the render buffers are allocated for
MAX_IMAGE_WIDTH = 1920
MAX_IMAGE_HEIGHT = 1080

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class CameraConfig:
    """Configuration for a thin-lens (perspective) camera.

    With defocus_angle = 0 the camera is a pinhole and everything is in focus.

    Attributes:
        look_from: Camera position in world space (x, y, z).
        look_at: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation (typically (0, 1, 0)).
        vfov: Vertical field of view in degrees, in (0, 180).
        image_width: Output image width in pixels.
        image_height: Output image height in pixels.
        defocus_angle: Cone angle in degrees subtended by the defocus disc at
            the focus plane. 0 disables depth of field.
        focus_distance: Distance from look_from to the plane of perfect focus.
            None means |look_from - look_at|.
    """

    look_from: tuple[float, float, float]
    look_at: tuple[float, float, float]
    vup: tuple[float, float, float]
    vfov: float
    image_width: int
    image_height: int
    defocus_angle: float = 0.0
    focus_distance: float | None = None

    def __post_init__(self) -> None:
        self.look_from = tuple(float(c) for c in self.look_from)
        self.look_at = tuple(float(c) for c in self.look_at)
        self.vup = tuple(float(c) for c in self.vup)
        self.vfov = float(self.vfov)
        self.defocus_angle = float(self.defocus_angle)
        if self.focus_distance is not None:
            self.focus_distance = float(self.focus_distance)
        self.validate()

    @classmethod
    def orthogonal(
        cls,
        origin: tuple[float, float, float],
        focal_length: float,
        image_width: int,
        image_height: int,
    ) -> "CameraConfig":
        """Fixed camera looking down -z with a viewport 2 units high.

        The viewport sits at focal_length in front of origin, so the vertical
        field of view is 2 * atan(1 / focal_length). There is no defocus.

        Args:
            origin: Eye position in world space.
            focal_length: Distance from the eye to the viewport (positive).
            image_width: Output image width in pixels.
            image_height: Output image height in pixels.

        Raises:
            ValueError: If focal_length is not positive or the image size is
                invalid.
        """
        focal_length = float(focal_length)
        if not (math.isfinite(focal_length) and focal_length > 0.0):
            raise ValueError(f"Focal length must be positive, got {focal_length}")

        ox, oy, oz = (float(c) for c in origin)
        return cls(
            look_from=(ox, oy, oz),
            look_at=(ox, oy, oz - focal_length),
            vup=(0.0, 1.0, 0.0),
            vfov=math.degrees(2.0 * math.atan(1.0 / focal_length)),
            image_width=image_width,
            image_height=image_height,
            focus_distance=focal_length,
        )

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height of the output image."""
        return self.image_width / self.image_height

    def resolved_focus_distance(self) -> float:
        """The focus distance, defaulting to the look-from to look-at distance."""
        if self.focus_distance is not None:
            return self.focus_distance
        return float(
            np.linalg.norm(np.array(self.look_from) - np.array(self.look_at))
        )

    def validate(self) -> None:
        """Check the configuration.

        Raises:
            ValueError: If any parameter is out of range or the view basis is
                degenerate.
        """
        if len(self.look_from) != 3 or len(self.look_at) != 3 or len(self.vup) != 3:
            raise ValueError("look_from, look_at and vup must have 3 components")

        values = (*self.look_from, *self.look_at, *self.vup, self.vfov, self.defocus_angle)
        if not all(math.isfinite(v) for v in values):
            raise ValueError("Camera parameters must be finite")

        if int(self.image_width) != self.image_width or int(self.image_height) != self.image_height:
            raise ValueError(
                f"Image size must be integral, got {self.image_width}x{self.image_height}"
            )
        self.image_width = int(self.image_width)
        self.image_height = int(self.image_height)
        if self.image_width <= 0 or self.image_height <= 0:
            raise ValueError(
                f"Image size must be positive, got {self.image_width}x{self.image_height}"
            )
        if self.image_width > MAX_IMAGE_WIDTH or self.image_height > MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Image size {self.image_width}x{self.image_height} exceeds maximum "
                f"{MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT}"
            )

        if not 0.0 < self.vfov < 180.0:
            raise ValueError(f"vfov must be in (0, 180) degrees, got {self.vfov}")

        if self.defocus_angle < 0.0:
            raise ValueError(f"defocus_angle must be non-negative, got {self.defocus_angle}")

        if self.focus_distance is not None and not (
            math.isfinite(self.focus_distance) and self.focus_distance > 0.0
        ):
            raise ValueError(f"focus_distance must be positive, got {self.focus_distance}")

        view = np.array(self.look_from) - np.array(self.look_at)
        if np.linalg.norm(view) == 0.0:
            raise ValueError("look_from and look_at must be different points")

        if np.linalg.norm(np.cross(np.array(self.vup), view)) < 1e-12:
            raise ValueError("vup must not be parallel to the view direction")

    def to_dict(self) -> dict:
        """Convert to a JSON-compatible dictionary."""
        return {
            "look_from": list(self.look_from),
            "look_at": list(self.look_at),
            "vup": list(self.vup),
            "vfov": self.vfov,
            "image_width": self.image_width,
            "image_height": self.image_height,
            "defocus_angle": self.defocus_angle,
            "focus_distance": self.focus_distance,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CameraConfig":
        """Create from a dictionary produced by to_dict().

        Raises:
            ValueError: If a required key is missing or a value is invalid.
        """
        try:
            return cls(
                look_from=tuple(data["look_from"]),
                look_at=tuple(data["look_at"]),
                vup=tuple(data.get("vup", (0.0, 1.0, 0.0))),
                vfov=data["vfov"],
                image_width=data["image_width"],
                image_height=data["image_height"],
                defocus_angle=data.get("defocus_angle", 0.0),
                focus_distance=data.get("focus_distance"),
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"Invalid camera entry {data!r}: {e}") from e


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

# Eye position
_camera_origin = ti.Vector.field(3, dtype=ti.f64, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f64, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f64, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f64, shape=())  # Backward (opposite view)

# Pixel grid on the focus plane
_pixel00_loc = ti.Vector.field(3, dtype=ti.f64, shape=())  # Centre of pixel (0, 0)
_pixel_delta_u = ti.Vector.field(3, dtype=ti.f64, shape=())  # One pixel right
_pixel_delta_v = ti.Vector.field(3, dtype=ti.f64, shape=())  # One pixel down

# Defocus disc basis, scaled to the disc radius
_defocus_disc_u = ti.Vector.field(3, dtype=ti.f64, shape=())
_defocus_disc_v = ti.Vector.field(3, dtype=ti.f64, shape=())
_defocus_enabled = ti.field(dtype=ti.i32, shape=())

_image_size = ti.Vector.field(2, dtype=ti.i32, shape=())
_camera_ready = ti.field(dtype=ti.i32, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per camera configuration)
# =============================================================================


def setup_camera(camera: CameraConfig) -> None:
    """Initialize camera state from configuration.

    Computes the camera's orthonormal basis (u, v, w), the pixel grid on the
    focus plane and the defocus disc. This must be called before rendering.

    Args:
        camera: Camera configuration with position, orientation, FOV and lens.

    Raises:
        ValueError: If the configuration is invalid.

    Note:
        This function writes to Taichi fields and should be called from
        Python (not from within a Taichi kernel).
    """
    camera.validate()

    focus_distance = camera.resolved_focus_distance()

    # Viewport dimensions on the focus plane
    theta = math.radians(camera.vfov)
    h = math.tan(theta / 2.0)
    viewport_height = 2.0 * h * focus_distance
    viewport_width = viewport_height * camera.image_width / camera.image_height

    # Build orthonormal basis using NumPy (Python-side computation)
    look_from = np.array(camera.look_from, dtype=np.float64)
    look_at = np.array(camera.look_at, dtype=np.float64)
    vup = np.array(camera.vup, dtype=np.float64)

    w = look_from - look_at
    w = w / np.linalg.norm(w)

    u = np.cross(vup, w)
    u = u / np.linalg.norm(u)

    v = np.cross(w, u)

    # viewport_v points down so that row 0 is the top of the image
    viewport_u = viewport_width * u
    viewport_v = -viewport_height * v

    pixel_delta_u = viewport_u / camera.image_width
    pixel_delta_v = viewport_v / camera.image_height

    viewport_upper_left = look_from - focus_distance * w - viewport_u / 2.0 - viewport_v / 2.0
    pixel00_loc = viewport_upper_left + 0.5 * (pixel_delta_u + pixel_delta_v)

    _camera_origin[None] = look_from.tolist()
    _camera_u[None] = u.tolist()
    _camera_v[None] = v.tolist()
    _camera_w[None] = w.tolist()

    _pixel00_loc[None] = pixel00_loc.tolist()
    _pixel_delta_u[None] = pixel_delta_u.tolist()
    _pixel_delta_v[None] = pixel_delta_v.tolist()

    if camera.defocus_angle > 0.0:
        defocus_radius = focus_distance * math.tan(math.radians(camera.defocus_angle / 2.0))
        _defocus_disc_u[None] = (u * defocus_radius).tolist()
        _defocus_disc_v[None] = (v * defocus_radius).tolist()
        _defocus_enabled[None] = 1
    else:
        _defocus_disc_u[None] = [0.0, 0.0, 0.0]
        _defocus_disc_v[None] = [0.0, 0.0, 0.0]
        _defocus_enabled[None] = 0

    _image_size[None] = [camera.image_width, camera.image_height]
    _camera_ready[None] = 1


def clear_camera() -> None:
    """Mark the camera as not configured."""
    _camera_ready[None] = 0


def is_camera_ready() -> bool:
    """Check whether setup_camera() has been called since the last clear."""
    return bool(_camera_ready[None])


def get_camera_image_size() -> tuple[int, int]:
    """Get the (width, height) the current camera was set up for."""
    size = _image_size[None]
    return int(size[0]), int(size[1])


# =============================================================================
# Ray Generation (Taichi-compatible)
# =============================================================================


@ti.func
def _lens_origin() -> vec3:
    """Ray origin: the eye, or a random point on the defocus disc."""
    origin = _camera_origin[None]
    if _defocus_enabled[None] == 1:
        p = random_in_unit_disc()
        origin = origin + p.x * _defocus_disc_u[None] + p.y * _defocus_disc_v[None]
    return origin


@ti.func
def screen_to_world(x: ti.i32, y: ti.i32) -> Ray:
    """Generate a ray through the centre of pixel (x, y).

    Args:
        x: Pixel column (0 = left).
        y: Pixel row (0 = top).

    Returns:
        A Ray from the eye (or a point on the defocus disc) toward the pixel
        centre on the focus plane. The direction is not normalized.
    """
    pixel_centre = (
        _pixel00_loc[None]
        + ti.cast(x, ti.f64) * _pixel_delta_u[None]
        + ti.cast(y, ti.f64) * _pixel_delta_v[None]
    )
    origin = _lens_origin()
    return make_ray(origin, pixel_centre - origin)


@ti.func
def screen_to_world_sampled(x: ti.i32, y: ti.i32) -> Ray:
    """Generate a jittered ray for anti-aliasing.

    The target is offset uniformly within [-0.5, 0.5) pixel on each axis
    around the pixel centre. When accumulated over multiple samples, this
    produces smooth edges.

    Args:
        x: Pixel column (0 = left).
        y: Pixel row (0 = top).

    Returns:
        A Ray with a random sub-pixel offset.

    Example:
        @ti.kernel
        def render():
            for i, j in image:
                ray = screen_to_world_sampled(i, j)
                colour = ray_colour(ray.origin, ray.direction, max_bounces)
    """
    px = ti.random(ti.f64) - 0.5
    py = ti.random(ti.f64) - 0.5

    target = (
        _pixel00_loc[None]
        + (ti.cast(x, ti.f64) + px) * _pixel_delta_u[None]
        + (ti.cast(y, ti.f64) + py) * _pixel_delta_v[None]
    )
    origin = _lens_origin()
    return make_ray(origin, target - origin)


@ti.func
def get_camera_origin() -> vec3:
    """Get the eye position in world space."""
    return _camera_origin[None]


@ti.func
def get_camera_basis():
    """Get the camera's orthonormal basis vectors.

    Returns:
        A tuple (u, v, w) where:
        - u: Right direction in world space
        - v: Up direction in world space
        - w: Backward direction (opposite view direction)
    """
    return _camera_u[None], _camera_v[None], _camera_w[None]


# =============================================================================
# Utility Functions
# =============================================================================


def _as_tuple(field) -> tuple[float, float, float]:
    vec = field[None]
    return (float(vec[0]), float(vec[1]), float(vec[2]))


def get_camera_info() -> dict:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, pixel00_loc, pixel_delta_u,
        pixel_delta_v, defocus_disc_u, defocus_disc_v and defocus_enabled.
    """
    return {
        "origin": _as_tuple(_camera_origin),
        "u": _as_tuple(_camera_u),
        "v": _as_tuple(_camera_v),
        "w": _as_tuple(_camera_w),
        "pixel00_loc": _as_tuple(_pixel00_loc),
        "pixel_delta_u": _as_tuple(_pixel_delta_u),
        "pixel_delta_v": _as_tuple(_pixel_delta_v),
        "defocus_disc_u": _as_tuple(_defocus_disc_u),
        "defocus_disc_v": _as_tuple(_defocus_disc_v),
        "defocus_enabled": bool(_defocus_enabled[None]),
    }
