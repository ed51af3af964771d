"""Materials module: the closed set of surface behaviours.

Components:
    gradient: ScreenSpaceGradient (sky) and NormalSpaceGradient (debug)
    solid: SolidColour, a flat colour with no further bounces
    lambertian: Diffuse scattering with a colour and scalar albedo
    metal: Mirror reflection with optional fuzz
    dielectric: Clear refractive material (reflects only under TIR)

Scattering materials return a (direction, attenuation, did_scatter) tuple;
colour-producing materials return the final colour directly. Parameters live
in per-type Taichi field registries and are looked up by type-local index.
"""

from .dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
    get_dielectric_ior,
    get_dielectric_material_count,
    scatter_dielectric,
    scatter_dielectric_by_id,
    will_reflect,
)
from .gradient import normal_space_gradient, screen_space_gradient
from .lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_albedo,
    get_lambertian_colour,
    get_lambertian_material_count,
    scatter_lambertian,
    scatter_lambertian_by_id,
)
from .metal import (
    add_metal_material,
    clear_metal_materials,
    get_metal_material_count,
    get_metal_scatter,
    get_metal_tint,
    scatter_metal,
    scatter_metal_by_id,
)
from .solid import (
    add_solid_material,
    clear_solid_materials,
    get_solid_colour,
    get_solid_material_count,
)

__all__ = [
    # Gradients
    "screen_space_gradient",
    "normal_space_gradient",
    # Solid colour
    "add_solid_material",
    "clear_solid_materials",
    "get_solid_material_count",
    "get_solid_colour",
    # Lambertian
    "scatter_lambertian",
    "scatter_lambertian_by_id",
    "add_lambertian_material",
    "clear_lambertian_materials",
    "get_lambertian_material_count",
    "get_lambertian_colour",
    "get_lambertian_albedo",
    # Metal
    "scatter_metal",
    "scatter_metal_by_id",
    "add_metal_material",
    "clear_metal_materials",
    "get_metal_material_count",
    "get_metal_tint",
    "get_metal_scatter",
    # Dielectric
    "scatter_dielectric",
    "scatter_dielectric_by_id",
    "add_dielectric_material",
    "clear_dielectric_materials",
    "get_dielectric_material_count",
    "get_dielectric_ior",
    "will_reflect",
]
