"""Core rendering module.

This module contains the fundamental building blocks for ray tracing:

Components:
    ray: Ray data structure, vector algebra and random sampling
    colour: Colour constants, blending and validation
    integrator: Ray colour, per-pixel and whole-image rendering kernels
    progressive: Batched progressive rendering with progress reporting

All compute-intensive operations use Taichi kernels.
"""

from .colour import BLACK, MISS_COLOUR, SKY_BLUE, WHITE, blend, validate_colour
from .ray import (
    MAX_REJECTION_ATTEMPTS,
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    normalize,
    random_in_unit_disc,
    random_in_unit_sphere,
    random_on_hemisphere,
    random_unit_vector,
    ray_at,
    reflect,
    refract,
    vec3,
)

# Note: integrator and progressive are NOT imported here to avoid circular imports.
# Import directly from rtweekend.core.integrator or rtweekend.core.progressive.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "MAX_REJECTION_ATTEMPTS",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "refract",
    "near_zero",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_on_hemisphere",
    "random_in_unit_disc",
    "BLACK",
    "WHITE",
    "SKY_BLUE",
    "MISS_COLOUR",
    "blend",
    "validate_colour",
]
