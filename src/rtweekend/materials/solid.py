"""Solid colour material: flat shading with no further bounces.

A SolidColour surface returns its stored colour unchanged for every hit. It can
stand in for an emitter, so components above 1 are accepted; the image encoder
clamps at output time.
"""

import taichi as ti

from rtweekend.core.colour import validate_colour
from rtweekend.core.ray import vec3

# Maximum number of solid colour materials in the scene
MAX_SOLID_MATERIALS = 1024

# Storage for solid colour material properties
solid_colours = ti.Vector.field(3, dtype=ti.f64, shape=MAX_SOLID_MATERIALS)
num_solid_materials = ti.field(dtype=ti.i32, shape=())


def clear_solid_materials() -> None:
    """Clear all solid colour materials."""
    num_solid_materials[None] = 0


def add_solid_material(colour: tuple[float, float, float]) -> int:
    """Add a solid colour material to the material registry.

    Args:
        colour: The flat colour as (R, G, B). Components must be finite and
            non-negative; values above 1 are allowed.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If a component is negative or not finite.
    """
    colour = validate_colour(colour, "Solid colour", upper=None)

    idx = num_solid_materials[None]
    if idx >= MAX_SOLID_MATERIALS:
        raise RuntimeError(
            f"Maximum number of solid colour materials ({MAX_SOLID_MATERIALS}) exceeded"
        )

    solid_colours[idx] = list(colour)
    num_solid_materials[None] = idx + 1
    return idx


def get_solid_material_count() -> int:
    """Get the number of solid colour materials in the registry."""
    return int(num_solid_materials[None])


@ti.func
def get_solid_colour(material_idx: ti.i32) -> vec3:
    """Get the colour for a solid colour material by index."""
    return solid_colours[material_idx]
