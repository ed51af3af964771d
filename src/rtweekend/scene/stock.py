"""Stock scenes with matching cameras.

Two ready-made scenes are provided:

three-spheres:
    - Large yellow-ish Lambertian ground sphere
    - Lambertian centre sphere flanked by a fuzzy silver and a very fuzzy
      gold metal sphere
    - Screen-space gradient sky
    Viewed by a fixed camera at the origin looking down -z.

random-spheres:
    - Grey Lambertian ground sphere of radius 1000
    - A 22 x 22 grid of small spheres with jittered centres; materials are
      80% Lambertian, 15% metal and 5% glass
    - Three large spheres (glass, brown Lambertian, mirror)
    - Screen-space gradient sky
    Viewed from (13, 2, 3) with a shallow depth of field.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from rtweekend.scene.manager import SceneManager
    >>> from rtweekend.scene.stock import create_random_spheres_scene, random_spheres_camera
    >>>
    >>> scene = SceneManager()
    >>> create_random_spheres_scene(scene, seed=7)
    >>> scene.set_camera(random_spheres_camera(400, 225))
"""

from collections.abc import Callable

import numpy as np

from rtweekend.camera.lens import CameraConfig
from rtweekend.scene.manager import SceneManager

# =============================================================================
# Three Spheres Parameters
# =============================================================================

GROUND_COLOUR = (0.8, 0.8, 0.0)
CENTRE_COLOUR = (0.7, 0.3, 0.3)
DIFFUSE_ALBEDO = 0.5

LEFT_METAL_TINT = (0.8, 0.8, 0.8)
LEFT_METAL_SCATTER = 0.3
RIGHT_METAL_TINT = (0.8, 0.6, 0.2)
RIGHT_METAL_SCATTER = 1.0

# =============================================================================
# Random Spheres Parameters
# =============================================================================

GRID_HALF_EXTENT = 11
SMALL_SPHERE_RADIUS = 0.2
# Small spheres closer than this to the metal feature sphere are skipped
CLEARANCE_CENTRE = (4.0, 0.2, 0.0)
CLEARANCE_RADIUS = 0.9

LAMBERTIAN_FRACTION = 0.8
METAL_FRACTION = 0.15
GLASS_IOR = 1.5


def create_three_spheres_scene(scene: SceneManager) -> SceneManager:
    """Populate a scene with the three-spheres layout.

    Any existing content is cleared first.

    Args:
        scene: The scene manager to fill.

    Returns:
        The same scene manager, for chaining.
    """
    scene.clear()

    # ground
    scene.add_lambertian_sphere((0.0, -100.5, -1.0), 100.0, GROUND_COLOUR, DIFFUSE_ALBEDO)
    # centre
    scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, CENTRE_COLOUR, DIFFUSE_ALBEDO)
    # left
    scene.add_metal_sphere((-1.0, 0.0, -1.0), 0.5, LEFT_METAL_TINT, LEFT_METAL_SCATTER)
    # right
    scene.add_metal_sphere((1.0, 0.0, -1.0), 0.5, RIGHT_METAL_TINT, RIGHT_METAL_SCATTER)
    # sky
    scene.add_sky_background()

    return scene


def three_spheres_camera(image_width: int = 400, image_height: int = 225) -> CameraConfig:
    """Camera for the three-spheres scene: origin, looking down -z, focal length 1."""
    return CameraConfig.orthogonal((0.0, 0.0, 0.0), 1.0, image_width, image_height)


def create_random_spheres_scene(scene: SceneManager, seed: int | None = None) -> SceneManager:
    """Populate a scene with the random-spheres layout.

    Any existing content is cleared first. The layout is a deterministic
    function of the seed.

    Args:
        scene: The scene manager to fill.
        seed: Seed for numpy's default_rng. None draws fresh entropy.

    Returns:
        The same scene manager, for chaining.
    """
    rng = np.random.default_rng(seed)
    scene.clear()

    # ground
    scene.add_lambertian_sphere((0.0, -1000.0, 0.0), 1000.0, (0.5, 0.5, 0.5), 0.3)

    # small spheres
    clearance_centre = np.array(CLEARANCE_CENTRE)
    for a in range(-GRID_HALF_EXTENT, GRID_HALF_EXTENT):
        for b in range(-GRID_HALF_EXTENT, GRID_HALF_EXTENT):
            centre = np.array([a + rng.random(), SMALL_SPHERE_RADIUS, b + rng.random()])

            if np.linalg.norm(centre - clearance_centre) <= CLEARANCE_RADIUS:
                continue

            material_variate = rng.random()
            centre_tuple = tuple(float(c) for c in centre)
            if material_variate < LAMBERTIAN_FRACTION:
                colour = rng.random(3) * rng.random(3)
                scene.add_lambertian_sphere(
                    centre_tuple, SMALL_SPHERE_RADIUS, tuple(colour.tolist()), 1.0
                )
            elif material_variate < LAMBERTIAN_FRACTION + METAL_FRACTION:
                tint = rng.uniform(0.5, 1.0, 3)
                scatter = float(rng.random() * 0.5)
                scene.add_metal_sphere(
                    centre_tuple, SMALL_SPHERE_RADIUS, tuple(tint.tolist()), scatter
                )
            else:
                scene.add_dielectric_sphere(centre_tuple, SMALL_SPHERE_RADIUS, GLASS_IOR)

    # large spheres
    scene.add_dielectric_sphere((0.0, 1.0, 0.0), 1.0, GLASS_IOR)
    scene.add_lambertian_sphere((-4.0, 1.0, 0.0), 1.0, (0.4, 0.2, 0.1), 1.0)
    scene.add_metal_sphere((4.0, 1.0, 0.0), 1.0, (0.7, 0.6, 0.5), 0.0)

    # background
    scene.add_sky_background()

    return scene


def random_spheres_camera(image_width: int = 400, image_height: int = 225) -> CameraConfig:
    """Camera for the random-spheres scene, with a 0.6 degree defocus angle."""
    return CameraConfig(
        look_from=(13.0, 2.0, 3.0),
        look_at=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        image_width=image_width,
        image_height=image_height,
        defocus_angle=0.6,
        focus_distance=10.0,
    )


def _build_random_spheres(scene: SceneManager, seed: int | None) -> SceneManager:
    return create_random_spheres_scene(scene, seed)


def _build_three_spheres(scene: SceneManager, seed: int | None) -> SceneManager:
    return create_three_spheres_scene(scene)


# Stock scene name -> (builder(scene, seed), camera(width, height))
STOCK_SCENES: dict[
    str,
    tuple[
        Callable[[SceneManager, int | None], SceneManager],
        Callable[[int, int], CameraConfig],
    ],
] = {
    "three-spheres": (_build_three_spheres, three_spheres_camera),
    "random-spheres": (_build_random_spheres, random_spheres_camera),
}


def build_stock_scene(
    name: str,
    scene: SceneManager,
    image_width: int = 400,
    image_height: int = 225,
    seed: int | None = None,
) -> SceneManager:
    """Build a stock scene by name and attach its camera.

    Args:
        name: "three-spheres" or "random-spheres".
        scene: The scene manager to fill.
        image_width: Camera image width in pixels.
        image_height: Camera image height in pixels.
        seed: Layout seed (random-spheres only).

    Returns:
        The same scene manager, for chaining.

    Raises:
        ValueError: If the name is unknown or the image size is invalid.
    """
    if name not in STOCK_SCENES:
        raise ValueError(
            f"Unknown stock scene {name!r}, expected one of {', '.join(STOCK_SCENES)}"
        )
    builder, camera_factory = STOCK_SCENES[name]
    builder(scene, seed)
    scene.set_camera(camera_factory(image_width, image_height))
    return scene
