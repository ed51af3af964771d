"""Closed set of shape kinds and their intersection dispatch.

Only two shapes exist: finite spheres and the infinite Background. The
Background is not a surface; it reports a hit at t = +inf so that rays which
strike nothing finite still reach a material (typically a sky gradient).
"""

from enum import IntEnum

import taichi as ti
import taichi.math as tm

from rtweekend.core.ray import vec3
from rtweekend.geometry.sphere import HitRecord, Sphere, hit_sphere


class ShapeType(IntEnum):
    """Enumeration of supported shape kinds."""

    SPHERE = 0
    BACKGROUND = 1


@ti.func
def hit_background(ray_origin: vec3, ray_direction: vec3) -> HitRecord:
    """Background hit: always present, infinitely far, with a zero normal.

    The point is left at the ray origin since no finite position exists.
    """
    return HitRecord(
        hit=1,
        t=tm.inf,
        point=ray_origin,
        normal=vec3(0.0, 0.0, 0.0),
        front_face=1,
    )


@ti.func
def hit_shape(
    shape_type: ti.i32,
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f64,
    t_max: ti.f64,
) -> HitRecord:
    """Intersect a ray with a shape of the given kind.

    Args:
        shape_type: A ShapeType value.
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        sphere: Sphere parameters (ignored for the background).
        t_min: Smallest accepted t (inclusive).
        t_max: Largest accepted t (exclusive). Does not apply to the
            background, which always reports t = +inf.

    Returns:
        The HitRecord for this shape.
    """
    rec = HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
    )
    if shape_type == int(ShapeType.SPHERE):
        rec = hit_sphere(ray_origin, ray_direction, sphere, t_min, t_max)
    elif shape_type == int(ShapeType.BACKGROUND):
        rec = hit_background(ray_origin, ray_direction)
    return rec
