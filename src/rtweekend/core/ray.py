"""Ray data structure and vector utilities for the path tracer.

This module provides the Ray dataclass together with the vector algebra and
random sampling helpers used by the camera, the geometry tests and the
materials. Everything here runs inside Taichi kernels.

Vectors are double precision (``ti.f64``). Runtime initialization must use
``default_fp=ti.f64`` so that literals inside kernels share that precision
(see ``rtweekend.runtime.init_taichi``).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> origin = vec3(0.0, 0.0, 0.0)
    >>> direction = vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

# Double precision 3D vector, also used for linear RGB colours
vec3 = ti.types.vector(3, ti.f64)

# Upper bound on rejection sampling rounds before the closed-form fallback
MAX_REJECTION_ATTEMPTS = 64


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not required to be
            unit length; code that needs a unit direction normalizes it.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f64) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f64:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f64:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return tm.dot(v, v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Scale a vector to unit length.

    The division is unguarded: a zero-length input produces NaN components,
    which propagate to the caller. Callers must pass non-zero vectors.

    Args:
        v: The input vector.

    Returns:
        v / length(v).
    """
    return v / tm.length(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f64:
    """Compute the dot product a . b."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return tm.cross(a, b)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Computes incident - 2 * dot(incident, normal) * normal. The normal must be
    unit length; the incident vector may have any length and the result keeps
    that length.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (unit length).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(unit_incident: vec3, normal: vec3, refraction_ratio: ti.f64) -> vec3:
    """Refract a unit incident vector through a surface using Snell's law.

    The refracted ray is split into the component perpendicular to the normal,
    ratio * (uv + cos_theta * n), and the parallel component, which restores
    unit length. The caller is responsible for detecting total internal
    reflection beforehand; this function always returns a refracted vector.

    Args:
        unit_incident: The incoming direction (unit length).
        normal: The surface normal facing against the incoming ray.
        refraction_ratio: eta_incident / eta_transmitted.

    Returns:
        The refracted direction vector.
    """
    cos_theta = tm.min(-tm.dot(unit_incident, normal), 1.0)
    r_out_perp = refraction_ratio * (unit_incident + cos_theta * normal)
    r_out_parallel = -ti.sqrt(ti.abs(1.0 - length_squared(r_out_perp))) * normal
    return r_out_perp + r_out_parallel


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Args:
        v: The vector to check.

    Returns:
        1 if all components are near zero, 0 otherwise.
    """
    s = 1e-8
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def _uniform_signed() -> ti.f64:
    """Uniform sample in [-1, 1)."""
    return ti.random(ti.f64) * 2.0 - 1.0


@ti.func
def _closed_form_in_unit_sphere() -> vec3:
    """Uniform point in the unit ball without rejection.

    The direction is uniform on the sphere (z uniform in [-1, 1), azimuth
    uniform) and the radius is cbrt(U), which spreads points evenly by volume.
    """
    z = _uniform_signed()
    phi = 2.0 * tm.pi * ti.random(ti.f64)
    ring = ti.sqrt(1.0 - z * z)
    radius = ti.random(ti.f64) ** (1.0 / 3.0)
    return radius * vec3(ring * ti.cos(phi), ring * ti.sin(phi), z)


@ti.func
def _closed_form_in_unit_disc() -> vec3:
    """Uniform point in the unit disc (z = 0) from polar coordinates."""
    radius = ti.sqrt(ti.random(ti.f64))
    phi = 2.0 * tm.pi * ti.random(ti.f64)
    return vec3(radius * ti.cos(phi), radius * ti.sin(phi), 0.0)


@ti.func
def random_in_unit_sphere() -> vec3:
    """Generate a random point inside the unit sphere.

    Draws points uniformly from the cube [-1, 1]^3 and accepts the first one
    with squared length below 1 (about 1.9 draws on average). The loop is
    capped at MAX_REJECTION_ATTEMPTS; if every draw is rejected, a point is
    built directly from spherical coordinates, which is uniform over the same
    volume.

    Returns:
        A random point with length < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_ATTEMPTS):
        candidate = vec3(_uniform_signed(), _uniform_signed(), _uniform_signed())
        if length_squared(candidate) < 1.0:
            p = candidate
            found = True
            break

    if not found:
        p = _closed_form_in_unit_sphere()
    return p


@ti.func
def random_unit_vector() -> vec3:
    """Generate a random unit vector uniformly distributed on the sphere.

    This is the normalized version of random_in_unit_sphere().
    """
    return normalize(random_in_unit_sphere())


@ti.func
def random_on_hemisphere(normal: vec3) -> vec3:
    """Generate a random unit vector on the hemisphere around a normal.

    A uniform unit vector is flipped onto the normal's side whenever it points
    away from the normal.

    Args:
        normal: The surface normal defining the hemisphere orientation.

    Returns:
        A random unit vector with dot(result, normal) >= 0.
    """
    on_sphere = random_unit_vector()
    result = on_sphere
    if tm.dot(on_sphere, normal) < 0.0:
        result = -on_sphere
    return result


@ti.func
def random_in_unit_disc() -> vec3:
    """Generate a random point inside the unit disc in the xy-plane.

    Used to jitter the camera origin across the lens aperture. Same bounded
    rejection scheme as random_in_unit_sphere(), with a polar-coordinate
    fallback.

    Returns:
        A random point (x, y, 0) with x^2 + y^2 < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_ATTEMPTS):
        x = _uniform_signed()
        y = _uniform_signed()
        if x * x + y * y < 1.0:
            p = vec3(x, y, 0.0)
            found = True
            break

    if not found:
        p = _closed_form_in_unit_disc()
    return p
