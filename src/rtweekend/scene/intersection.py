"""Scene-level closest-hit search.

The scene is an ordered list of geometries, each a (shape, material) pair,
stored as a Structure of Arrays in Taichi fields. The closest-hit search scans
the list linearly, shrinking the accepted interval to [t_min, closest_t) as
hits are found.

Ordering rules:
    - The comparison is strict, so when two geometries are hit at exactly the
      same distance the one added first wins.
    - Background geometries are never candidates during the scan. They are
      consulted only when no finite geometry was hit, and then the first
      Background in list order supplies the material at t = +inf.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from rtweekend.scene.intersection import (
    ...     add_sphere, add_background, intersect_scene, clear_scene
    ... )
    >>> clear_scene()
    >>> add_sphere((0, 0, -1), 0.5, material_id=0)
    >>> add_background(material_id=1)
    >>> # Use intersect_scene within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from rtweekend.core.ray import vec3
from rtweekend.geometry.shape import ShapeType, hit_shape
from rtweekend.geometry.sphere import HitRecord, Sphere, validate_sphere


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with material information.

    Extends the basic HitRecord with the index of the geometry that was hit
    and its material id.

    Attributes:
        hit: Whether the ray hit any geometry, background included (1 or 0).
        t: Distance parameter of the hit; +inf for the background.
        point: World-space hit point. Only valid if hit == 1.
        normal: Unit normal facing against the incoming ray. Zero for the
            background.
        front_face: Whether the ray hit the outside of the surface (1) or
            the inside (0).
        geometry_index: Position of the hit geometry in the scene list.
        material_id: The unified material id of the hit geometry.
    """

    hit: ti.i32
    t: ti.f64
    point: vec3
    normal: vec3
    front_face: ti.i32
    geometry_index: ti.i32
    material_id: ti.i32


# Default lower bound of the search interval, avoids self-intersection
# ("shadow acne") at a scattered ray's own origin
T_MIN = 0.001

# Maximum number of geometries supported in the scene
MAX_GEOMETRIES = 4096

# Geometry storage: Structure of Arrays layout, in scene order
geometry_shape_types = ti.field(dtype=ti.i32, shape=MAX_GEOMETRIES)
geometry_centres = ti.Vector.field(3, dtype=ti.f64, shape=MAX_GEOMETRIES)
geometry_radii = ti.field(dtype=ti.f64, shape=MAX_GEOMETRIES)
geometry_material_ids = ti.field(dtype=ti.i32, shape=MAX_GEOMETRIES)
num_geometries = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Clear all geometry from the scene.

    Resets the geometry count to zero. The field data is overwritten when new
    geometries are added.
    """
    num_geometries[None] = 0


def _next_geometry_index() -> int:
    idx = num_geometries[None]
    if idx >= MAX_GEOMETRIES:
        raise RuntimeError(f"Maximum number of geometries ({MAX_GEOMETRIES}) exceeded")
    return idx


def add_sphere(
    centre: tuple[float, float, float],
    radius: float,
    material_id: int = 0,
) -> int:
    """Append a sphere to the scene.

    Args:
        centre: The centre point of the sphere.
        radius: The radius of the sphere (must be positive).
        material_id: The material id to associate with this sphere.

    Returns:
        The index of the added geometry.

    Raises:
        RuntimeError: If the maximum number of geometries is exceeded.
        ValueError: If the radius is not positive or the centre is invalid.
    """
    centre, radius = validate_sphere(centre, radius)
    idx = _next_geometry_index()

    geometry_shape_types[idx] = int(ShapeType.SPHERE)
    geometry_centres[idx] = list(centre)
    geometry_radii[idx] = radius
    geometry_material_ids[idx] = material_id
    num_geometries[None] = idx + 1
    return idx


def add_background(material_id: int = 0) -> int:
    """Append the infinite background to the scene.

    Args:
        material_id: The material used for rays that hit nothing finite.

    Returns:
        The index of the added geometry.

    Raises:
        RuntimeError: If the maximum number of geometries is exceeded.
    """
    idx = _next_geometry_index()

    geometry_shape_types[idx] = int(ShapeType.BACKGROUND)
    geometry_centres[idx] = [0.0, 0.0, 0.0]
    geometry_radii[idx] = 0.0
    geometry_material_ids[idx] = material_id
    num_geometries[None] = idx + 1
    return idx


def get_geometry_count() -> int:
    """Get the number of geometries in the scene, background included."""
    return int(num_geometries[None])


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    types = geometry_shape_types.to_numpy()[: get_geometry_count()]
    return int((types == int(ShapeType.SPHERE)).sum())


def has_background() -> bool:
    """Check whether the scene contains at least one Background geometry."""
    types = geometry_shape_types.to_numpy()[: get_geometry_count()]
    return bool((types == int(ShapeType.BACKGROUND)).any())


@ti.func
def _hit_record_to_scene_hit_record(
    rec: HitRecord, geometry_index: ti.i32, material_id: ti.i32
) -> SceneHitRecord:
    """Attach geometry and material ids to a primitive hit record."""
    return SceneHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        front_face=rec.front_face,
        geometry_index=geometry_index,
        material_id=material_id,
    )


@ti.func
def _make_miss_record() -> SceneHitRecord:
    """Create a SceneHitRecord indicating no intersection."""
    return SceneHitRecord(
        hit=0,
        t=tm.inf,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        geometry_index=-1,
        material_id=-1,
    )


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f64,
    t_max: ti.f64,
) -> SceneHitRecord:
    """Find the closest geometry hit by a ray.

    Scans the finite geometries in scene order through hit_shape, keeping the
    hit with the smallest t in [t_min, closest_t). Background rows are only
    noted during the scan; if nothing finite is hit, the first one supplies a
    hit at t = +inf.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Minimum t value to consider a valid hit (inclusive).
        t_max: Maximum t value to consider a valid hit (exclusive).

    Returns:
        A SceneHitRecord for the closest hit, the background, or a miss record
        if the scene holds neither a hit sphere nor a background.
    """
    closest_t = t_max
    result = _make_miss_record()
    background_index = -1

    n = num_geometries[None]
    for i in range(n):
        shape_type = geometry_shape_types[i]
        if shape_type == int(ShapeType.BACKGROUND):
            if background_index < 0:
                background_index = i
        else:
            sphere = Sphere(centre=geometry_centres[i], radius=geometry_radii[i])
            # The open upper bound makes later equal-t hits lose
            rec = hit_shape(shape_type, ray_origin, ray_direction, sphere, t_min, closest_t)
            if rec.hit == 1:
                closest_t = rec.t
                result = _hit_record_to_scene_hit_record(rec, i, geometry_material_ids[i])

    if result.hit == 0 and background_index >= 0:
        backdrop = Sphere(centre=vec3(0.0, 0.0, 0.0), radius=0.0)
        rec = hit_shape(
            int(ShapeType.BACKGROUND), ray_origin, ray_direction, backdrop, t_min, closest_t
        )
        result = _hit_record_to_scene_hit_record(
            rec, background_index, geometry_material_ids[background_index]
        )

    return result


# =============================================================================
# Python-side probing (diagnostics and tests)
# =============================================================================

_probe_result = SceneHitRecord.field(shape=())


@ti.kernel
def _probe_kernel(ray_origin: vec3, ray_direction: vec3, t_min: ti.f64):
    # Single-iteration outer loop keeps the geometry scan serial
    for _ in range(1):
        _probe_result[None] = intersect_scene(ray_origin, ray_direction, t_min, tm.inf)


def hit_test(
    ray_origin: tuple[float, float, float],
    ray_direction: tuple[float, float, float],
    t_min: float = T_MIN,
) -> dict | None:
    """Run the closest-hit search for a single ray from Python.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Minimum t value to consider a valid hit.

    Returns:
        None on a miss, otherwise a dict with keys t, point, normal,
        front_face, geometry_index and material_id.
    """
    _probe_kernel(vec3(*ray_origin), vec3(*ray_direction), t_min)
    rec = _probe_result[None]
    if rec.hit == 0:
        return None

    return {
        "t": float(rec.t),
        "point": tuple(float(c) for c in rec.point),
        "normal": tuple(float(c) for c in rec.normal),
        "front_face": bool(rec.front_face),
        "geometry_index": int(rec.geometry_index),
        "material_id": int(rec.material_id),
    }
