"""Geometry module for shape primitives.

This module provides the analytic primitives and their intersection tests:

Components:
    sphere: Sphere primitive with ray-sphere intersection
    shape: Closed shape enumeration (sphere, background) and dispatch

All intersection routines are Taichi functions (@ti.func). Scenes are searched
linearly; there is no acceleration structure.

Ray-object intersection follows the pattern:
    record = hit_sphere(ray_origin, ray_direction, sphere, t_min, t_max)
"""

from .shape import ShapeType, hit_background, hit_shape
from .sphere import HitRecord, Sphere, hit_sphere, validate_sphere

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "validate_sphere",
    "ShapeType",
    "hit_background",
    "hit_shape",
]
