"""Pytest configuration for rtweekend tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls, which would
    invalidate the fields the rtweekend modules declare at import time.
    """
    ti.init(arch=ti.cpu, default_fp=ti.f64, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene, material, camera and render target state around each test."""
    # Import here so that Taichi is initialized first
    from rtweekend.camera.lens import clear_camera
    from rtweekend.core.integrator import release_render_target
    from rtweekend.materials.dielectric import clear_dielectric_materials
    from rtweekend.materials.lambertian import clear_lambertian_materials
    from rtweekend.materials.metal import clear_metal_materials
    from rtweekend.materials.solid import clear_solid_materials
    from rtweekend.scene.intersection import clear_scene
    from rtweekend.scene.manager import _clear_material_tracking

    def _clear_all():
        clear_scene()
        clear_solid_materials()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()
        clear_camera()
        release_render_target()

    _clear_all()

    yield

    _clear_all()
