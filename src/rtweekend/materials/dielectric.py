"""Dielectric material: clear glass, water and the like.

A ray hitting a dielectric always continues, with no attenuation. It refracts
by Snell's law, eta_i * sin(theta_i) = eta_t * sin(theta_t), unless that has
no solution ((eta_i / eta_t) * sin(theta_i) > 1), in which case it reflects.
Reflection is never chosen at random: there is no Fresnel term.

The index of refraction is relative to the medium on the outside of the
surface. A ray arriving at the front face goes from ior 1 into ior, one
leaving through the back face goes the other way.
"""

import math

import taichi as ti
import taichi.math as tm

from rtweekend.core.ray import normalize, reflect, refract, vec3

MAX_DIELECTRIC_MATERIALS = 1024

dielectric_iors = ti.field(dtype=ti.f64, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


@ti.func
def _incidence(
    ior: ti.f64,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """Returns (eta_i / eta_t, unit incident direction, sin(theta_i))."""
    eta_ratio = ior
    if front_face != 0:
        eta_ratio = 1.0 / ior
    unit_in = normalize(incident_direction)
    cos_theta = tm.min(-tm.dot(unit_in, normal), 1.0)
    return eta_ratio, unit_in, ti.sqrt(1.0 - cos_theta * cos_theta)


@ti.func
def will_reflect(
    ior: ti.f64,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.i32:
    """1 when the ray undergoes total internal reflection, else 0.

    `normal` must be unit length and face against the incoming ray.
    """
    eta_ratio, _unit_in, sin_theta = _incidence(ior, incident_direction, normal, front_face)
    return eta_ratio * sin_theta > 1.0


@ti.func
def scatter_dielectric(
    ior: ti.f64,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """Bend or mirror a ray at a dielectric boundary.

    Args:
        ior: Index of refraction of the material.
        incident_direction: Incoming direction, any non-zero length.
        normal: Unit surface normal facing against the incoming ray.
        front_face: 1 if the ray enters the material, 0 if it leaves.

    Returns:
        (scattered_direction, attenuation, did_scatter). The direction is the
        mirror image of the incoming one under total internal reflection and
        the unit refracted direction otherwise. Attenuation is always white
        and did_scatter always 1.
    """
    eta_ratio, unit_in, sin_theta = _incidence(ior, incident_direction, normal, front_face)

    direction = vec3(0.0, 0.0, 0.0)
    if eta_ratio * sin_theta > 1.0:
        direction = reflect(incident_direction, normal)
    else:
        direction = refract(unit_in, normal, eta_ratio)
    attenuation = vec3(1.0, 1.0, 1.0)
    did_scatter = 1
    return direction, attenuation, did_scatter


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f64:
    return dielectric_iors[material_idx]


@ti.func
def scatter_dielectric_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """scatter_dielectric with the ior of registry entry material_idx."""
    ior = dielectric_iors[material_idx]
    return scatter_dielectric(ior, incident_direction, normal, front_face)


# =============================================================================
# Registry
# =============================================================================


def add_dielectric_material(ior: float = 1.5) -> int:
    """Register a dielectric and return its index in the dielectric registry.

    Args:
        ior: Index of refraction, 1.5 for typical glass. Values below 1 are
            accepted; they model a thinner medium, such as an air bubble in
            water.

    Raises:
        ValueError: If ior is not finite and positive.
        RuntimeError: If MAX_DIELECTRIC_MATERIALS entries already exist.
    """
    ior = float(ior)
    if not (math.isfinite(ior) and ior > 0.0):
        raise ValueError(f"Index of refraction must be finite and positive, got {ior}")

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )
    dielectric_iors[idx] = ior
    num_dielectric_materials[None] = idx + 1
    return idx


def clear_dielectric_materials() -> None:
    """Empty the registry. Old entries are overwritten by later adds."""
    num_dielectric_materials[None] = 0


def get_dielectric_material_count() -> int:
    return int(num_dielectric_materials[None])
