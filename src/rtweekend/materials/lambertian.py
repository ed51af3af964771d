"""Lambertian (diffuse) material implementation.

A Lambertian surface scatters incoming light into the hemisphere around its
normal. The scattered direction is a uniform hemisphere sample around the
normal, further perturbed by an independent random unit vector; the sum leans
toward the normal and approximates a cosine-weighted lobe without building a
local frame.

The returned light is tinted by the surface colour and scaled by the scalar
albedo (the fraction of energy retained per bounce):

    L_out = colour * albedo * L_in

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from rtweekend.materials.lambertian import scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_lambertian(colour, albedo, normal)
"""

import taichi as ti

from rtweekend.core.colour import validate_colour
from rtweekend.core.ray import (
    near_zero,
    random_on_hemisphere,
    random_unit_vector,
    vec3,
)


@ti.func
def scatter_lambertian(
    colour: vec3,
    albedo: ti.f64,
    normal: vec3,
):
    """Sample a scattered ray direction for a Lambertian surface.

    Args:
        colour: The diffuse surface colour (RGB).
        albedo: The scalar energy retention factor.
        normal: The unit surface normal, facing against the incoming ray.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: The sampled direction (not normalized).
        - attenuation: colour * albedo.
        - did_scatter: Always 1; diffuse surfaces never absorb the ray.
    """
    scattered_direction = random_on_hemisphere(normal) + random_unit_vector()

    # The two samples can cancel; fall back to the normal in that case
    if near_zero(scattered_direction):
        scattered_direction = normal

    attenuation = colour * albedo
    did_scatter = 1

    return scattered_direction, attenuation, did_scatter


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of Lambertian materials in the scene
MAX_LAMBERTIAN_MATERIALS = 1024

# Storage for Lambertian material properties
lambertian_colours = ti.Vector.field(3, dtype=ti.f64, shape=MAX_LAMBERTIAN_MATERIALS)
lambertian_albedos = ti.field(dtype=ti.f64, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    """Clear all Lambertian materials.

    Resets the material count to zero. Existing data in the fields will be
    overwritten when new materials are added.
    """
    num_lambertian_materials[None] = 0


def add_lambertian_material(
    colour: tuple[float, float, float],
    albedo: float = 0.5,
) -> int:
    """Add a Lambertian material to the material registry.

    Args:
        colour: The diffuse colour as (R, G, B). Each component in [0, 1].
        albedo: The scalar energy retention factor in [0, 1].

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If a colour component or the albedo is outside [0, 1].
    """
    colour = validate_colour(colour, "Lambertian colour")
    albedo = float(albedo)
    if not 0.0 <= albedo <= 1.0:
        raise ValueError(
            f"Albedo = {albedo} is outside [0, 1]. "
            "This would violate energy conservation."
        )

    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_colours[idx] = list(colour)
    lambertian_albedos[idx] = albedo
    num_lambertian_materials[None] = idx + 1
    return idx


def get_lambertian_material_count() -> int:
    """Get the number of Lambertian materials in the registry."""
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_colour(material_idx: ti.i32) -> vec3:
    """Get the colour for a Lambertian material by index."""
    return lambertian_colours[material_idx]


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> ti.f64:
    """Get the albedo for a Lambertian material by index."""
    return lambertian_albedos[material_idx]


@ti.func
def scatter_lambertian_by_id(material_idx: ti.i32, normal: vec3):
    """Scatter off a registered Lambertian material.

    Looks up the colour and albedo from the registry and calls
    scatter_lambertian.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter).
    """
    colour = get_lambertian_colour(material_idx)
    albedo = get_lambertian_albedo(material_idx)
    return scatter_lambertian(colour, albedo, normal)
