"""Metal (specular reflective) material implementation.

This module implements the metal material, which mirror-reflects incoming rays
with optional fuzz. A scatter of 0 gives a perfect mirror; larger values
perturb the reflection by a random unit vector scaled by the scatter amount.

The reflection formula is:
    R = I - 2(I . N)N

where I is the incident direction and N is the surface normal. Fuzzed rays that
end up pointing into the surface are absorbed, which darkens rough metals at
grazing angles (self-shadowing of the microsurface).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from rtweekend.materials.metal import scatter_metal
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_metal(
    >>> #     tint, scatter, incident_dir, normal
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from rtweekend.core.colour import validate_colour
from rtweekend.core.ray import (
    random_unit_vector,
    reflect,
    vec3,
)


@ti.func
def scatter_metal(
    tint: vec3,
    scatter: ti.f64,
    incident_direction: vec3,
    normal: vec3,
):
    """Compute the scattered ray direction for a metal surface.

    Args:
        tint: The reflective colour (RGB).
        scatter: The fuzziness in [0, 1]. 0 = perfect mirror.
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal, facing against the incoming ray.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: The fuzzed reflection (not normalized).
        - attenuation: The tint. No further energy loss is applied.
        - did_scatter: 1 if the ray leaves above the surface, 0 if absorbed.
    """
    reflected = reflect(incident_direction, normal)
    scattered_direction = reflected + scatter * random_unit_vector()

    did_scatter = 1
    if tm.dot(scattered_direction, normal) < 0.0:
        did_scatter = 0

    attenuation = tint

    return scattered_direction, attenuation, did_scatter


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of metal materials in the scene
MAX_METAL_MATERIALS = 1024

# Storage for metal material properties
metal_tints = ti.Vector.field(3, dtype=ti.f64, shape=MAX_METAL_MATERIALS)
metal_scatters = ti.field(dtype=ti.f64, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    """Clear all metal materials.

    Resets the material count to zero. Existing data in the fields will be
    overwritten when new materials are added.
    """
    num_metal_materials[None] = 0


def add_metal_material(
    tint: tuple[float, float, float],
    scatter: float = 0.0,
) -> int:
    """Add a metal material to the material registry.

    Args:
        tint: The reflective colour as (R, G, B). Each component in [0, 1].
        scatter: The fuzziness in [0, 1]. Default is 0 (perfect mirror).

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any tint component is outside [0, 1].
        ValueError: If scatter is outside [0, 1].
    """
    tint = validate_colour(tint, "Metal tint")

    scatter = float(scatter)
    if not 0.0 <= scatter <= 1.0:
        raise ValueError(
            f"Scatter = {scatter} is outside [0, 1]. "
            "Scatter must be between 0 (perfect mirror) and 1 (maximum fuzz)."
        )

    idx = num_metal_materials[None]
    if idx >= MAX_METAL_MATERIALS:
        raise RuntimeError(
            f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded"
        )

    metal_tints[idx] = list(tint)
    metal_scatters[idx] = scatter
    num_metal_materials[None] = idx + 1
    return idx


def get_metal_material_count() -> int:
    """Get the number of metal materials in the registry."""
    return int(num_metal_materials[None])


@ti.func
def get_metal_tint(material_idx: ti.i32) -> vec3:
    """Get the tint for a metal material by index."""
    return metal_tints[material_idx]


@ti.func
def get_metal_scatter(material_idx: ti.i32) -> ti.f64:
    """Get the fuzziness for a metal material by index."""
    return metal_scatters[material_idx]


@ti.func
def scatter_metal_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
):
    """Scatter off a registered metal material.

    Looks up the tint and scatter from the registry and calls scatter_metal.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter).
    """
    tint = get_metal_tint(material_idx)
    scatter = get_metal_scatter(material_idx)
    return scatter_metal(tint, scatter, incident_direction, normal)
