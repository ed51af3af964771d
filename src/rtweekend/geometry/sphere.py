"""Sphere primitive with ray-sphere intersection.

The intersection solves |O + tD - C|^2 = r^2 with the half-b form of the
quadratic formula. The smaller root is tried first and the larger root only
when the smaller one falls outside the accepted interval, so the nearest
valid surface point always wins.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from rtweekend.geometry.sphere import Sphere, hit_sphere, vec3
    >>> sphere = Sphere(centre=vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import math

import taichi as ti
import taichi.math as tm

from rtweekend.core.ray import vec3


@ti.dataclass
class Sphere:
    """A sphere defined by centre point and radius.

    Attributes:
        centre: The centre point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
    """

    centre: vec3
    radius: ti.f64


@ti.dataclass
class HitRecord:
    """Record of a ray-shape intersection.

    Attributes:
        hit: Whether the ray intersected the shape (1 if hit, 0 if miss).
        t: The parameter value along the ray where intersection occurred.
            Only valid if hit == 1.
        point: The 3D point where the ray intersected the shape.
            Only valid if hit == 1.
        normal: The unit surface normal at the intersection point, oriented
            against the incoming ray (flipped for back-face hits).
            Only valid if hit == 1.
        front_face: Whether the ray hit the front face (1) or back face (0).
            Front face means the ray arrived from outside the sphere.
            Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f64
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def _in_range(t: ti.f64, t_min: ti.f64, t_max: ti.f64) -> ti.i32:
    """Half-open interval test: t_min <= t < t_max."""
    return t >= t_min and t < t_max


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f64,
    t_max: ti.f64,
) -> HitRecord:
    """Test for ray-sphere intersection.

    With oc = origin - centre the quadratic a*t^2 + 2*half_b*t + c = 0 has

        a = dot(direction, direction)
        half_b = dot(oc, direction)
        c = dot(oc, oc) - radius^2

    and roots (-half_b -/+ sqrt(half_b^2 - a*c)) / a.

    The interval [t_min, t_max) both rejects hits behind the origin and lets
    the scene search prune everything farther than its closest hit so far.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        sphere: The sphere to test intersection against.
        t_min: Smallest accepted t (inclusive).
        t_max: Largest accepted t (exclusive).

    Returns:
        A HitRecord containing intersection information. Check hit field
        to determine if intersection occurred.
    """
    oc = ray_origin - sphere.centre
    a = tm.dot(ray_direction, ray_direction)
    half_b = tm.dot(oc, ray_direction)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius

    discriminant = half_b * half_b - a * c

    # Initialize result fields (Taichi requires outer-scope declaration)
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)
    is_front_face = 0

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)

        # Nearest root first
        t = (-half_b - sqrt_d) / a
        valid = _in_range(t, t_min, t_max)

        if not valid:
            t = (-half_b + sqrt_d) / a
            valid = _in_range(t, t_min, t_max)

        if valid:
            did_hit = 1
            hit_t = t
            hit_point = ray_origin + t * ray_direction

            # Unit length by construction
            outward_normal = (hit_point - sphere.centre) / sphere.radius

            if tm.dot(ray_direction, outward_normal) < 0.0:
                is_front_face = 1
                hit_normal = outward_normal
            else:
                # Ray is inside the sphere, hitting back face
                is_front_face = 0
                hit_normal = -outward_normal

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
        front_face=is_front_face,
    )


def validate_sphere(
    centre: tuple[float, float, float],
    radius: float,
) -> tuple[tuple[float, float, float], float]:
    """Validate sphere parameters on the Python side.

    Args:
        centre: The centre point (x, y, z).
        radius: The sphere radius.

    Returns:
        The centre as a tuple of floats and the radius as a float.

    Raises:
        ValueError: If the centre is not a finite 3-vector or the radius is
            not a finite positive number.
    """
    point = tuple(float(c) for c in centre)
    if len(point) != 3 or not all(math.isfinite(c) for c in point):
        raise ValueError(f"Sphere centre {centre!r} must be 3 finite coordinates")

    radius = float(radius)
    if not math.isfinite(radius) or radius <= 0.0:
        raise ValueError(f"Sphere radius = {radius} must be a finite positive number")

    return point, radius  # type: ignore[return-value]
