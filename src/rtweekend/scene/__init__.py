"""Scene module for scene management and closest-hit queries.

Components:
    intersection: Geometry table in Taichi fields and the closest-hit search
    manager: Unified scene manager coordinating geometry, materials and camera
    stock: Ready-made scenes with matching cameras
    serialization: JSON scene files

Scene data is organized for kernel access:
    - Structure-of-Arrays layout for geometric data, in insertion order
    - A unified material id mapped to (material type, type-local index)
"""

from .intersection import (
    MAX_GEOMETRIES,
    T_MIN,
    SceneHitRecord,
    add_background,
    add_sphere,
    clear_scene,
    get_geometry_count,
    get_sphere_count,
    has_background,
    hit_test,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    GeometryInfo,
    MaterialInfo,
    MaterialType,
    SceneConfig,
    SceneManager,
    get_material_type,
    get_material_type_index,
)
from .serialization import load_scene, save_scene
from .stock import (
    STOCK_SCENES,
    build_stock_scene,
    create_random_spheres_scene,
    create_three_spheres_scene,
    random_spheres_camera,
    three_spheres_camera,
)

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "T_MIN",
    "MAX_GEOMETRIES",
    "add_sphere",
    "add_background",
    "clear_scene",
    "get_geometry_count",
    "get_sphere_count",
    "has_background",
    "hit_test",
    "intersect_scene",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "GeometryInfo",
    "SceneConfig",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    # Serialization
    "save_scene",
    "load_scene",
    # Stock scenes
    "STOCK_SCENES",
    "build_stock_scene",
    "create_three_spheres_scene",
    "create_random_spheres_scene",
    "three_spheres_camera",
    "random_spheres_camera",
]
