"""Tests for the SceneManager class.

Tests cover:
- Unified material ids across all six material types
- Geometry with material assignment and id validation
- Convenience methods that add a material and a shape together
- Camera assignment
- Dictionary round-trips and malformed descriptions
"""

import pytest
import taichi as ti


class TestMaterialRegistration:
    """Tests for adding materials to a scene."""

    def test_material_ids_are_sequential_across_types(self):
        """Every material gets the next unified id regardless of its type."""
        from rtweekend.scene.manager import MaterialType, SceneManager

        scene = SceneManager()
        ids = [
            scene.add_screen_space_gradient_material(),
            scene.add_normal_space_gradient_material(),
            scene.add_solid_colour_material((1.0, 0.0, 0.0)),
            scene.add_lambertian_material((0.5, 0.5, 0.5), 0.5),
            scene.add_metal_material((0.8, 0.8, 0.8), 0.1),
            scene.add_dielectric_material(1.5),
        ]

        assert ids == [0, 1, 2, 3, 4, 5]
        assert scene.get_material_count() == 6
        assert [scene.get_material_type_python(i) for i in ids] == [
            MaterialType.SCREEN_SPACE_GRADIENT,
            MaterialType.NORMAL_SPACE_GRADIENT,
            MaterialType.SOLID_COLOUR,
            MaterialType.LAMBERTIAN,
            MaterialType.METAL,
            MaterialType.DIELECTRIC,
        ]

    def test_type_indices_are_per_registry(self):
        """Type indices count within each material registry."""
        from rtweekend.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_material((0.1, 0.2, 0.3))
        scene.add_metal_material((0.5, 0.5, 0.5))
        second_lambertian = scene.add_lambertian_material((0.4, 0.5, 0.6))

        info = scene.get_material_info(second_lambertian)
        assert info.type_index == 1
        assert info.params == {"colour": (0.4, 0.5, 0.6), "albedo": 0.5}

    def test_kernel_side_material_lookup(self):
        """get_material_type and get_material_type_index work inside kernels."""
        from rtweekend.scene.manager import (
            MaterialType,
            SceneManager,
            get_material_type,
            get_material_type_index,
        )

        scene = SceneManager()
        scene.add_lambertian_material((0.5, 0.5, 0.5))
        metal = scene.add_metal_material((0.5, 0.5, 0.5))

        result_type = ti.field(dtype=ti.i32, shape=2)
        result_index = ti.field(dtype=ti.i32, shape=2)

        @ti.kernel
        def test_kernel(mat_id: ti.i32):
            result_type[0] = get_material_type(mat_id)
            result_index[0] = get_material_type_index(mat_id)
            result_type[1] = get_material_type(99)
            result_index[1] = get_material_type_index(99)

        test_kernel(metal)
        assert result_type[0] == int(MaterialType.METAL)
        assert result_index[0] == 0
        assert result_type[1] == -1
        assert result_index[1] == -1

    def test_unknown_material_info(self):
        """Unknown ids return None from the Python-side queries."""
        from rtweekend.scene.manager import SceneManager

        scene = SceneManager()
        assert scene.get_material_info(0) is None
        assert scene.get_material_type_python(-1) is None

    @pytest.mark.parametrize(
        "method, args",
        [
            ("add_lambertian_material", ((1.5, 0.0, 0.0), 0.5)),
            ("add_lambertian_material", ((0.5, 0.5, 0.5), 1.5)),
            ("add_metal_material", ((0.5, 0.5, 0.5), -0.1)),
            ("add_metal_material", ((0.5, -0.5, 0.5), 0.0)),
            ("add_dielectric_material", (0.0,)),
            ("add_solid_colour_material", ((-1.0, 0.0, 0.0),)),
        ],
    )
    def test_invalid_material_parameters(self, method, args):
        """Out-of-range parameters raise ValueError and register nothing."""
        from rtweekend.scene.manager import SceneManager

        scene = SceneManager()
        with pytest.raises(ValueError):
            getattr(scene, method)(*args)
        assert scene.get_material_count() == 0


class TestGeometry:
    """Tests for adding geometry through the manager."""

    def test_add_sphere_and_background(self):
        """Geometry rows record shape, material and parameters."""
        from rtweekend.geometry.shape import ShapeType
        from rtweekend.scene.manager import SceneManager

        scene = SceneManager()
        mat = scene.add_lambertian_material((0.5, 0.5, 0.5))
        sky = scene.add_screen_space_gradient_material()

        assert scene.add_sphere((0, 0, -1), 0.5, mat) == 0
        assert scene.add_background(sky) == 1

        assert scene.get_geometry_count() == 2
        assert scene.get_sphere_count() == 1
        assert scene.has_background()
        assert scene.geometries[0].shape_type == ShapeType.SPHERE
        assert scene.geometries[0].centre == (0.0, 0.0, -1.0)
        assert scene.geometries[1].shape_type == ShapeType.BACKGROUND
        assert scene.geometries[1].radius is None

    def test_has_background_follows_geometry_table(self):
        """has_background reports what the kernels will see."""
        from rtweekend.scene.intersection import has_background
        from rtweekend.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_sphere((0, 0, -1), 0.5, scene.add_solid_colour_material((1, 0, 0)))
        assert not scene.has_background()

        scene.add_background(scene.add_screen_space_gradient_material())
        assert scene.has_background()
        assert has_background()

        scene.clear()
        assert not scene.has_background()

    @pytest.mark.parametrize("material_id", [-1, 1, 2.5])
    def test_invalid_material_id(self, material_id):
        """Geometry must reference a registered material."""
        from rtweekend.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_material((0.5, 0.5, 0.5))

        with pytest.raises(ValueError, match="material_id"):
            scene.add_sphere((0, 0, -1), 0.5, material_id)
        with pytest.raises(ValueError, match="material_id"):
            scene.add_background(material_id)
        assert scene.get_geometry_count() == 0

    def test_convenience_methods(self):
        """The add_*_sphere helpers return (geometry_index, material_id)."""
        from rtweekend.scene.manager import MaterialType, SceneManager

        scene = SceneManager()
        assert scene.add_lambertian_sphere((0, 0, -1), 0.5, (0.7, 0.3, 0.3)) == (0, 0)
        assert scene.add_metal_sphere((1, 0, -1), 0.5, (0.8, 0.6, 0.2), 0.3) == (1, 1)
        assert scene.add_dielectric_sphere((-1, 0, -1), 0.5, 1.5) == (2, 2)
        assert scene.add_sky_background() == (3, 3)

        assert scene.get_material_type_python(3) == MaterialType.SCREEN_SPACE_GRADIENT

    def test_new_manager_clears_previous_scene(self):
        """Creating a SceneManager resets the module-level tables."""
        from rtweekend.scene.intersection import get_geometry_count
        from rtweekend.scene.manager import SceneManager

        first = SceneManager()
        first.add_lambertian_sphere((0, 0, -1), 0.5, (0.5, 0.5, 0.5))

        second = SceneManager()
        assert get_geometry_count() == 0
        assert second.get_material_count() == 0

    def test_capacity_constants(self):
        """Capacity queries report the storage limits."""
        from rtweekend.scene.intersection import MAX_GEOMETRIES
        from rtweekend.scene.manager import MAX_MATERIALS, SceneManager

        assert SceneManager.get_max_geometries() == MAX_GEOMETRIES
        assert SceneManager.get_max_materials() == MAX_MATERIALS


class TestCamera:
    """Tests for the scene camera."""

    def test_set_camera_uploads_state(self):
        """set_camera stores the config and readies the kernel-side camera."""
        from rtweekend.camera.lens import CameraConfig, get_camera_image_size, is_camera_ready
        from rtweekend.scene.manager import SceneManager

        scene = SceneManager()
        camera = CameraConfig.orthogonal((0, 0, 0), 1.0, 32, 18)
        scene.set_camera(camera)

        assert scene.camera is camera
        assert is_camera_ready()
        assert get_camera_image_size() == (32, 18)

    def test_clear_resets_camera(self):
        """clear() drops the camera too."""
        from rtweekend.camera.lens import CameraConfig, is_camera_ready
        from rtweekend.scene.manager import SceneManager

        scene = SceneManager()
        scene.set_camera(CameraConfig.orthogonal((0, 0, 0), 1.0, 32, 18))
        scene.clear()

        assert scene.camera is None
        assert not is_camera_ready()


class TestSerialization:
    """Tests for to_dict and from_dict."""

    def _build(self, scene):
        from rtweekend.camera.lens import CameraConfig

        red = scene.add_lambertian_material((0.7, 0.3, 0.3), 0.4)
        gold = scene.add_metal_material((0.8, 0.6, 0.2), 0.3)
        glass = scene.add_dielectric_material(1.33)
        flat = scene.add_solid_colour_material((2.0, 2.0, 2.0))
        normals = scene.add_normal_space_gradient_material()
        sky = scene.add_screen_space_gradient_material()
        scene.add_sphere((0, 0, -1), 0.5, red)
        scene.add_sphere((1, 0, -1), 0.5, gold)
        scene.add_sphere((-1, 0, -1), 0.5, glass)
        scene.add_sphere((0, 1, -1), 0.25, flat)
        scene.add_sphere((0, -1, -1), 0.25, normals)
        scene.add_background(sky)
        scene.set_camera(CameraConfig.orthogonal((0, 0, 0), 1.0, 40, 20))

    def test_to_dict_layout(self):
        """to_dict produces camera, materials and geometries."""
        from rtweekend.scene.manager import SceneManager

        scene = SceneManager()
        self._build(scene)
        data = scene.to_dict()

        assert data["materials"][0] == {
            "type": "lambertian",
            "colour": [0.7, 0.3, 0.3],
            "albedo": 0.4,
        }
        assert data["materials"][2] == {"type": "dielectric", "ior": 1.33}
        assert data["materials"][5] == {"type": "screen_space_gradient"}
        assert data["geometries"][1] == {
            "shape": "sphere",
            "centre": [1.0, 0.0, -1.0],
            "radius": 0.5,
            "material": 1,
        }
        assert data["geometries"][5] == {"shape": "background", "material": 5}
        assert data["camera"]["image_width"] == 40

    def test_round_trip_preserves_scene(self):
        """from_dict(to_dict()) rebuilds an identical scene."""
        from rtweekend.scene.manager import SceneManager

        scene = SceneManager()
        self._build(scene)
        data = scene.to_dict()

        restored = SceneManager()
        restored.from_dict(data)

        assert restored.to_dict() == data
        assert restored.camera == scene.camera
        assert restored.get_geometry_count() == 6

    def test_missing_camera_is_allowed(self):
        """A description without a camera leaves the camera unset."""
        from rtweekend.scene.manager import SceneManager

        scene = SceneManager()
        scene.from_dict(
            {
                "materials": [{"type": "solid_colour", "colour": [1, 0, 0]}],
                "geometries": [{"shape": "background", "material": 0}],
            }
        )
        assert scene.camera is None
        assert scene.has_background()

    @pytest.mark.parametrize(
        "data, message",
        [
            ({"materials": [{"type": "plastic"}]}, "material entry 0"),
            ({"materials": [{"type": "lambertian"}]}, "material entry 0"),
            (
                {
                    "materials": [{"type": "dielectric"}],
                    "geometries": [{"shape": "cube", "material": 0}],
                },
                "geometry entry 0",
            ),
            (
                {
                    "materials": [{"type": "dielectric"}],
                    "geometries": [
                        {"shape": "background", "material": 0},
                        {"shape": "sphere", "centre": [0, 0, 0], "radius": 1, "material": 3},
                    ],
                },
                "geometry entry 1",
            ),
        ],
    )
    def test_malformed_descriptions(self, data, message):
        """Bad entries raise ValueError naming the entry."""
        from rtweekend.scene.manager import SceneManager

        scene = SceneManager()
        with pytest.raises(ValueError, match=message):
            scene.from_dict(data)

    def test_non_mapping_rejected(self):
        """The top level must be a mapping."""
        from rtweekend.scene.manager import SceneManager

        with pytest.raises(ValueError, match="mapping"):
            SceneManager().from_dict([1, 2, 3])

    def test_invalid_camera_rejected(self):
        """Camera validation errors surface as ValueError."""
        from rtweekend.scene.manager import SceneManager

        with pytest.raises(ValueError):
            SceneManager().from_dict({"camera": {"look_from": [0, 0, 0]}})
