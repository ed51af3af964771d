"""Unified scene manager for coordinating geometry, materials and the camera.

This module provides a high-level scene management API that coordinates
geometry storage (spheres and the background) with material assignment. It
tracks which material type each material ID corresponds to, enabling material
dispatch in the integrator.

The SceneManager maintains:
- A unified material_id space across all material types
- Mapping from material_id to (material_type, type_local_index)
- The ordered geometry list, mirrored from the Taichi geometry table
- The camera configuration
- Dictionary (JSON) serialization of all of the above

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from rtweekend.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> ground = scene.add_lambertian_material(colour=(0.8, 0.8, 0.0), albedo=0.5)
    >>> scene.add_sphere(centre=(0, -100.5, -1), radius=100, material_id=ground)
    >>> scene.add_background(scene.add_screen_space_gradient_material())
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

import taichi as ti

from rtweekend.camera.lens import CameraConfig, clear_camera, setup_camera
from rtweekend.geometry.shape import ShapeType
from rtweekend.materials.dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
)
from rtweekend.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from rtweekend.materials.metal import (
    add_metal_material,
    clear_metal_materials,
)
from rtweekend.materials.solid import (
    add_solid_material,
    clear_solid_materials,
)
from rtweekend.scene.intersection import (
    MAX_GEOMETRIES,
    add_background,
    add_sphere,
    clear_scene,
    get_geometry_count,
    get_sphere_count,
    has_background,
)


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Used for material dispatch in the integrator to determine which
    colour or scattering function to call.
    """

    SCREEN_SPACE_GRADIENT = 0
    NORMAL_SPACE_GRADIENT = 1
    SOLID_COLOUR = 2
    LAMBERTIAN = 3
    METAL = 4
    DIELECTRIC = 5


# Names used in scene dictionaries
_MATERIAL_NAMES = {
    MaterialType.SCREEN_SPACE_GRADIENT: "screen_space_gradient",
    MaterialType.NORMAL_SPACE_GRADIENT: "normal_space_gradient",
    MaterialType.SOLID_COLOUR: "solid_colour",
    MaterialType.LAMBERTIAN: "lambertian",
    MaterialType.METAL: "metal",
    MaterialType.DIELECTRIC: "dielectric",
}

_SHAPE_NAMES = {
    ShapeType.SPHERE: "sphere",
    ShapeType.BACKGROUND: "background",
}

# Maximum number of materials across all types
MAX_MATERIALS = 4096

# Taichi fields for kernel-side material type lookup
# material_types[i] stores the MaterialType for material_id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the type-local index for material_id i
# (e.g., if material_id 5 is the 2nd metal material, material_type_indices[5] = 1)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    """Clear the material tracking fields."""
    num_materials[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a given material ID.

    This is a Taichi function for use in kernels.

    Args:
        material_id: The unified material ID.

    Returns:
        The material type as an integer (see MaterialType enum).
        Returns -1 for invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the type-local index for a given material ID.

    This is used to look up material properties in the type-specific
    material arrays (e.g., lambertian_albedos[type_index]).

    Args:
        material_id: The unified material ID.

    Returns:
        The index into the type-specific material array.
        Returns -1 for invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The unified material ID.
        material_type: The kind of material.
        type_index: The index within the type-specific material array.
            Parameterless materials (the gradients) use 0.
        params: The material parameters as provided during creation.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class GeometryInfo:
    """Information about one geometry row in the scene.

    Attributes:
        geometry_index: The position in the scene's geometry list.
        shape_type: Sphere or Background.
        material_id: The material ID assigned to the geometry.
        centre: The sphere centre. None for the background.
        radius: The sphere radius. None for the background.
    """

    geometry_index: int
    shape_type: ShapeType
    material_id: int
    centre: tuple[float, float, float] | None = None
    radius: float | None = None


@dataclass
class SceneConfig:
    """Configuration for scene serialization.

    Attributes:
        camera: The camera configuration as a dictionary, or None.
        materials: List of material configurations, in material_id order.
        geometries: List of geometry configurations, in scene order.
    """

    camera: dict[str, Any] | None = None
    materials: list[dict[str, Any]] = field(default_factory=list)
    geometries: list[dict[str, Any]] = field(default_factory=list)


def _vec3_param(entry: dict[str, Any], key: str) -> tuple[float, float, float]:
    value = entry[key]
    if len(value) != 3:
        raise ValueError(f"'{key}' must have 3 components, got {value!r}")
    return (float(value[0]), float(value[1]), float(value[2]))


class SceneManager:
    """Unified scene manager coordinating geometry, materials and the camera.

    The SceneManager provides a high-level API for building scenes with
    automatic material tracking. It maintains a unified material_id space
    that maps to type-specific material registries, enabling the integrator
    to dispatch to the correct material function.

    Only one scene can be live at a time: the geometry and material tables are
    module-level Taichi fields, and creating a SceneManager clears them.

    Attributes:
        materials: List of MaterialInfo for all registered materials.
        geometries: List of GeometryInfo for all geometry rows, in order.
        camera: The camera configuration, or None if not set.

    Example:
        >>> scene = SceneManager()
        >>> red = scene.add_lambertian_material(colour=(0.8, 0.1, 0.1))
        >>> gold = scene.add_metal_material(tint=(0.8, 0.6, 0.2), scatter=0.3)
        >>> glass = scene.add_dielectric_material(ior=1.5)
        >>> scene.add_sphere((0, 0, -1), 0.5, red)
        >>> scene.add_sphere((1, 0, -1), 0.5, gold)
        >>> scene.add_sphere((-1, 0, -1), 0.5, glass)
        >>> scene.add_background(scene.add_screen_space_gradient_material())
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.materials: list[MaterialInfo] = []
        self.geometries: list[GeometryInfo] = []
        self.camera: CameraConfig | None = None
        self._clear_all()

    def _clear_all(self) -> None:
        """Clear all scene data including Taichi fields."""
        # Clear geometry storage
        clear_scene()
        # Clear material registries
        clear_solid_materials()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        # Clear material tracking
        _clear_material_tracking()
        clear_camera()
        # Clear local tracking
        self.materials.clear()
        self.geometries.clear()
        self.camera = None

    def clear(self) -> None:
        """Clear the entire scene (geometry, materials and camera).

        Resets all Taichi fields and internal tracking structures.
        """
        self._clear_all()

    # =========================================================================
    # Material Management
    # =========================================================================

    def _register_material(
        self,
        material_type: MaterialType,
        type_index: int,
        params: dict[str, Any],
    ) -> int:
        """Assign a unified material ID and record the type mapping."""
        material_id = num_materials[None]
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        material_types[material_id] = int(material_type)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1

        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                material_type=material_type,
                type_index=type_index,
                params=params,
            )
        )
        return material_id

    def add_screen_space_gradient_material(self) -> int:
        """Add a white-to-sky-blue gradient keyed on ray direction.

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
        """
        return self._register_material(MaterialType.SCREEN_SPACE_GRADIENT, 0, {})

    def add_normal_space_gradient_material(self) -> int:
        """Add a material that shows the surface normal as a colour.

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
        """
        return self._register_material(MaterialType.NORMAL_SPACE_GRADIENT, 0, {})

    def add_solid_colour_material(self, colour: tuple[float, float, float]) -> int:
        """Add a flat-colour material.

        Args:
            colour: The colour as (R, G, B). Components must be non-negative.

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If a colour component is negative or not finite.
        """
        type_index = add_solid_material(colour)
        return self._register_material(
            MaterialType.SOLID_COLOUR,
            type_index,
            {"colour": tuple(float(c) for c in colour)},
        )

    def add_lambertian_material(
        self,
        colour: tuple[float, float, float],
        albedo: float = 0.5,
    ) -> int:
        """Add a Lambertian (diffuse) material to the scene.

        Args:
            colour: The surface colour as (R, G, B). Each component in [0, 1].
            albedo: Fraction of incoming light reflected, in [0, 1].

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any colour component or the albedo is outside [0, 1].
        """
        type_index = add_lambertian_material(colour, albedo)
        return self._register_material(
            MaterialType.LAMBERTIAN,
            type_index,
            {"colour": tuple(float(c) for c in colour), "albedo": float(albedo)},
        )

    def add_metal_material(
        self,
        tint: tuple[float, float, float],
        scatter: float = 0.0,
    ) -> int:
        """Add a metal (specular reflective) material to the scene.

        Args:
            tint: The reflective colour as (R, G, B). Each component in [0, 1].
            scatter: The fuzziness in [0, 1]. Default is 0 (perfect mirror).

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any tint component or scatter is outside [0, 1].
        """
        type_index = add_metal_material(tint, scatter)
        return self._register_material(
            MaterialType.METAL,
            type_index,
            {"tint": tuple(float(c) for c in tint), "scatter": float(scatter)},
        )

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Add a dielectric (glass/water) material to the scene.

        Args:
            ior: Index of refraction. Default is 1.5 (typical glass).
                Common values: Air=1.0, Water=1.33, Glass=1.5, Diamond=2.4

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If the IOR is not positive.
        """
        type_index = add_dielectric_material(ior)
        return self._register_material(MaterialType.DIELECTRIC, type_index, {"ior": float(ior)})

    def get_material_count(self) -> int:
        """Get the total number of materials in the scene."""
        return int(num_materials[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material by ID.

        Args:
            material_id: The unified material ID.

        Returns:
            MaterialInfo for the material, or None if not found.
        """
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def get_material_type_python(self, material_id: int) -> MaterialType | None:
        """Get the material type for a given material ID (Python side).

        For kernel-side lookup, use the get_material_type() Taichi function.

        Args:
            material_id: The unified material ID.

        Returns:
            The MaterialType, or None for invalid material IDs.
        """
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id].material_type
        return None

    def _check_material_id(self, material_id: int) -> int:
        if int(material_id) != material_id or not 0 <= material_id < len(self.materials):
            raise ValueError(f"Invalid material_id: {material_id}")
        return int(material_id)

    # =========================================================================
    # Geometry Management
    # =========================================================================

    def add_sphere(
        self,
        centre: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Append a sphere to the scene.

        Args:
            centre: The centre point of the sphere as (x, y, z).
            radius: The radius of the sphere (must be positive).
            material_id: The unified material ID to assign to the sphere.

        Returns:
            The index of the added geometry.

        Raises:
            RuntimeError: If the maximum number of geometries is exceeded.
            ValueError: If material_id is invalid or the sphere is degenerate.
        """
        material_id = self._check_material_id(material_id)
        geometry_index = add_sphere(centre, radius, material_id)

        self.geometries.append(
            GeometryInfo(
                geometry_index=geometry_index,
                shape_type=ShapeType.SPHERE,
                material_id=material_id,
                centre=tuple(float(c) for c in centre),
                radius=float(radius),
            )
        )
        return geometry_index

    def add_background(self, material_id: int) -> int:
        """Append the infinite background to the scene.

        The background is hit only by rays that miss every sphere, whatever
        its position in the list.

        Args:
            material_id: The unified material ID seen by escaping rays.

        Returns:
            The index of the added geometry.

        Raises:
            RuntimeError: If the maximum number of geometries is exceeded.
            ValueError: If material_id is invalid.
        """
        material_id = self._check_material_id(material_id)
        geometry_index = add_background(material_id)

        self.geometries.append(
            GeometryInfo(
                geometry_index=geometry_index,
                shape_type=ShapeType.BACKGROUND,
                material_id=material_id,
            )
        )
        return geometry_index

    # =========================================================================
    # Convenience Methods (add object with material in one call)
    # =========================================================================

    def add_lambertian_sphere(
        self,
        centre: tuple[float, float, float],
        radius: float,
        colour: tuple[float, float, float],
        albedo: float = 0.5,
    ) -> tuple[int, int]:
        """Add a sphere with a new Lambertian material.

        Returns:
            Tuple of (geometry_index, material_id).
        """
        material_id = self.add_lambertian_material(colour, albedo)
        geometry_index = self.add_sphere(centre, radius, material_id)
        return geometry_index, material_id

    def add_metal_sphere(
        self,
        centre: tuple[float, float, float],
        radius: float,
        tint: tuple[float, float, float],
        scatter: float = 0.0,
    ) -> tuple[int, int]:
        """Add a sphere with a new metal material.

        Returns:
            Tuple of (geometry_index, material_id).
        """
        material_id = self.add_metal_material(tint, scatter)
        geometry_index = self.add_sphere(centre, radius, material_id)
        return geometry_index, material_id

    def add_dielectric_sphere(
        self,
        centre: tuple[float, float, float],
        radius: float,
        ior: float = 1.5,
    ) -> tuple[int, int]:
        """Add a sphere with a new dielectric material.

        Returns:
            Tuple of (geometry_index, material_id).
        """
        material_id = self.add_dielectric_material(ior)
        geometry_index = self.add_sphere(centre, radius, material_id)
        return geometry_index, material_id

    def add_sky_background(self) -> tuple[int, int]:
        """Add a background with a new screen-space gradient material.

        Returns:
            Tuple of (geometry_index, material_id).
        """
        material_id = self.add_screen_space_gradient_material()
        geometry_index = self.add_background(material_id)
        return geometry_index, material_id

    # =========================================================================
    # Camera
    # =========================================================================

    def set_camera(self, camera: CameraConfig) -> None:
        """Set the camera and upload it to the kernel-side camera state.

        Args:
            camera: The camera configuration.

        Raises:
            ValueError: If the configuration is invalid.
        """
        setup_camera(camera)
        self.camera = camera

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def get_sphere_count(self) -> int:
        """Get the number of spheres in the scene."""
        return get_sphere_count()

    def get_geometry_count(self) -> int:
        """Get the number of geometry rows in the scene, background included."""
        return get_geometry_count()

    def has_background(self) -> bool:
        """Check whether the scene geometry table holds a Background row."""
        return has_background()

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object.

        Returns:
            A SceneConfig containing the camera, materials and geometry.
        """
        config = SceneConfig()

        if self.camera is not None:
            config.camera = self.camera.to_dict()

        for mat in self.materials:
            mat_config: dict[str, Any] = {"type": _MATERIAL_NAMES[mat.material_type]}
            for key, value in mat.params.items():
                mat_config[key] = list(value) if isinstance(value, tuple) else value
            config.materials.append(mat_config)

        for geo in self.geometries:
            geo_config: dict[str, Any] = {"shape": _SHAPE_NAMES[geo.shape_type]}
            if geo.shape_type == ShapeType.SPHERE:
                geo_config["centre"] = list(geo.centre)
                geo_config["radius"] = geo.radius
            geo_config["material"] = geo.material_id
            config.geometries.append(geo_config)

        return config

    def _add_material_from_config(self, mat_config: dict[str, Any]) -> int:
        mat_type = str(mat_config["type"]).lower()
        if mat_type == "screen_space_gradient":
            return self.add_screen_space_gradient_material()
        elif mat_type == "normal_space_gradient":
            return self.add_normal_space_gradient_material()
        elif mat_type == "solid_colour":
            return self.add_solid_colour_material(_vec3_param(mat_config, "colour"))
        elif mat_type == "lambertian":
            return self.add_lambertian_material(
                _vec3_param(mat_config, "colour"),
                mat_config.get("albedo", 0.5),
            )
        elif mat_type == "metal":
            return self.add_metal_material(
                _vec3_param(mat_config, "tint"),
                mat_config.get("scatter", 0.0),
            )
        elif mat_type == "dielectric":
            return self.add_dielectric_material(mat_config.get("ior", 1.5))
        raise ValueError(f"Unknown material type: {mat_type}")

    def _add_geometry_from_config(self, geo_config: dict[str, Any]) -> int:
        shape = str(geo_config["shape"]).lower()
        if shape == "sphere":
            return self.add_sphere(
                _vec3_param(geo_config, "centre"),
                geo_config["radius"],
                geo_config["material"],
            )
        elif shape == "background":
            return self.add_background(geo_config["material"])
        raise ValueError(f"Unknown shape: {shape}")

    def from_config(self, config: SceneConfig) -> None:
        """Load a scene from a configuration object.

        Clears the current scene and loads the configuration.

        Args:
            config: The scene configuration to load.

        Raises:
            ValueError: If the configuration contains invalid data. The message
                names the offending entry.
        """
        self.clear()

        # Load materials first (needed for geometry)
        for i, mat_config in enumerate(config.materials):
            try:
                self._add_material_from_config(mat_config)
            except (KeyError, TypeError, ValueError) as e:
                raise ValueError(f"Invalid material entry {i} ({mat_config!r}): {e}") from e

        for i, geo_config in enumerate(config.geometries):
            try:
                self._add_geometry_from_config(geo_config)
            except (KeyError, TypeError, ValueError) as e:
                raise ValueError(f"Invalid geometry entry {i} ({geo_config!r}): {e}") from e

        if config.camera is not None:
            self.set_camera(CameraConfig.from_dict(config.camera))

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization).

        Returns:
            A dictionary with 'camera', 'materials' and 'geometries' keys.
        """
        config = self.to_config()
        return {
            "camera": config.camera,
            "materials": config.materials,
            "geometries": config.geometries,
        }

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary.

        Args:
            data: Dictionary with 'camera', 'materials' and 'geometries' keys.

        Raises:
            ValueError: If the dictionary is malformed.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Scene description must be a mapping, got {type(data).__name__}")

        config = SceneConfig(
            camera=data.get("camera"),
            materials=data.get("materials", []),
            geometries=data.get("geometries", []),
        )
        self.from_config(config)

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_geometries() -> int:
        """Get the maximum number of geometry rows supported."""
        return MAX_GEOMETRIES

    @staticmethod
    def get_max_materials() -> int:
        """Get the maximum number of materials supported."""
        return MAX_MATERIALS
